import json

from server.app.telemetry import Telemetry


def test_counters_and_unknown_names():
    t = Telemetry()
    t.increment("upload_total")
    t.increment("upload_total")
    t.increment("no_such_counter")
    stats = t.get_stats()
    assert stats["upload_total"] == 2
    assert "no_such_counter" not in stats


def test_log_json_is_off_until_configured(tmp_path):
    t = Telemetry()
    t.log_json("upload", status="ok")
    assert list(tmp_path.iterdir()) == []


def test_log_json_writes_jsonl(tmp_path):
    t = Telemetry()
    t.configure(tmp_path / "logs")
    t.log_json("upload", status="ok", stored_name="abc123.txt")
    lines = (tmp_path / "logs" / "server.jsonl").read_text(encoding="utf-8").splitlines()
    entry = json.loads(lines[-1])
    assert entry["event"] == "upload"
    assert entry["subsystem"] == "server"
    assert entry["stored_name"] == "abc123.txt"


def test_rotation(tmp_path):
    t = Telemetry()
    t.configure(tmp_path, max_log_mb=0)
    t.log_json("a")
    t.log_json("b")
    t.log_json("c")
    assert (tmp_path / "server.jsonl.1").exists()
    assert (tmp_path / "server.jsonl.2").exists()


def test_upload_updates_status(client):
    before = client.get("/status").json()["upload_total"]
    client.post("/upload", files={"file": ("a.txt", b"x")})
    client.post("/upload", files={"file": ("noext", b"x")})
    data = client.get("/status").json()
    assert data["upload_total"] == before + 2
    assert data["modules"]["calendar"] is None
