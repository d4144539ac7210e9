import os
import random
import re
from concurrent.futures import ThreadPoolExecutor

import pytest

from server.app.errors import (
    InvalidName,
    NameCollision,
    RetryBudgetExceeded,
    StoreIOError,
)
from server.app.services import storage
from server.app.services.naming import generate_name
from server.app.services.storage import KeepName, RandomName, store


class TestRandomMode:
    def test_round_trip(self, upload_dir):
        name = store(upload_dir, b"hello", RandomName(6, "txt"))
        assert re.fullmatch(r"[a-zA-Z0-9]{6}\.txt", name)
        assert (upload_dir / name).read_bytes() == b"hello"

    def test_extension_kept_verbatim(self, upload_dir):
        name = store(upload_dir, b"x", RandomName(6, "TaR.Gz"))
        assert name.endswith(".TaR.Gz")

    def test_empty_extension_gives_trailing_dot(self, upload_dir):
        # accepted edge case: "trailing." uploads are stored as "<id>."
        name = store(upload_dir, b"x", RandomName(5, ""))
        assert re.fullmatch(r"[a-zA-Z0-9]{5}\.", name)
        assert (upload_dir / name).read_bytes() == b"x"

    def test_zero_length_content(self, upload_dir):
        name = store(upload_dir, b"", RandomName(6, "bin"))
        assert (upload_dir / name).stat().st_size == 0

    def test_collision_is_retried(self, upload_dir):
        taken = generate_name(6, random.Random(1234)) + ".txt"
        (upload_dir / taken).write_bytes(b"original")

        name = store(upload_dir, b"new", RandomName(6, "txt"), rng=random.Random(1234))

        assert name != taken
        assert (upload_dir / taken).read_bytes() == b"original"
        assert (upload_dir / name).read_bytes() == b"new"

    def test_retry_budget_exceeded(self, upload_dir):
        # zero-length ids always produce ".txt"
        (upload_dir / ".txt").write_bytes(b"x")
        with pytest.raises(RetryBudgetExceeded) as exc:
            store(upload_dir, b"y", RandomName(0, "txt"), retry_limit=5)
        assert exc.value.attempts == 5
        assert not exc.value.client_error

    def test_extension_with_separator_rejected(self, upload_dir):
        with pytest.raises(InvalidName):
            store(upload_dir, b"x", RandomName(6, "/../../etc/passwd"))
        assert list(upload_dir.iterdir()) == []

    def test_missing_directory_is_io_error(self, tmp_path):
        with pytest.raises(StoreIOError) as exc:
            store(tmp_path / "nope", b"x", RandomName(6, "txt"))
        assert isinstance(exc.value.cause, FileNotFoundError)
        assert not exc.value.client_error


class TestKeepNameMode:
    def test_stores_verbatim(self, upload_dir):
        assert store(upload_dir, b"hi", KeepName("report.pdf")) == "report.pdf"
        assert (upload_dir / "report.pdf").read_bytes() == b"hi"

    def test_second_store_collides(self, upload_dir):
        store(upload_dir, b"first", KeepName("same.txt"))
        with pytest.raises(NameCollision):
            store(upload_dir, b"second", KeepName("same.txt"))
        assert (upload_dir / "same.txt").read_bytes() == b"first"

    @pytest.mark.parametrize("name", ["../escape.txt", "sub/dir.txt", "a\\b.txt", "..", "."])
    def test_path_escapes_rejected(self, upload_dir, name):
        with pytest.raises(InvalidName):
            store(upload_dir, b"x", KeepName(name))
        assert not (upload_dir.parent / "escape.txt").exists()


class TestWrite:
    def test_short_writes_are_looped(self, upload_dir, monkeypatch):
        real_write = os.write
        calls = []

        def short_write(fd, data):
            calls.append(len(data))
            return real_write(fd, bytes(data[:3]))

        monkeypatch.setattr(storage.os, "write", short_write)
        name = store(upload_dir, b"0123456789", RandomName(6, "txt"))

        assert (upload_dir / name).read_bytes() == b"0123456789"
        assert calls == [10, 7, 4, 1]

    def test_write_failure_leaves_partial_file(self, upload_dir, monkeypatch):
        def failing_write(fd, data):
            raise OSError(28, "No space left on device")

        monkeypatch.setattr(storage.os, "write", failing_write)
        with pytest.raises(StoreIOError):
            store(upload_dir, b"data", KeepName("partial.txt"))

        # no rollback: the created file stays behind
        assert (upload_dir / "partial.txt").exists()


class TestConcurrency:
    def test_concurrent_random_stores_are_distinct(self, upload_dir):
        n = 200
        payloads = [f"payload-{i}".encode() for i in range(n)]

        # short ids make real collisions likely
        with ThreadPoolExecutor(max_workers=32) as pool:
            names = list(
                pool.map(lambda p: store(upload_dir, p, RandomName(2, "bin")), payloads)
            )

        assert len(set(names)) == n
        assert len(list(upload_dir.iterdir())) == n
        for name, payload in zip(names, payloads):
            assert (upload_dir / name).read_bytes() == payload

    def test_concurrent_keep_name_only_one_wins(self, upload_dir):
        def attempt(i):
            try:
                store(upload_dir, f"writer-{i}".encode(), KeepName("contested.txt"))
                return True
            except NameCollision:
                return False

        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(attempt, range(50)))

        assert results.count(True) == 1
        assert (upload_dir / "contested.txt").read_bytes().startswith(b"writer-")
