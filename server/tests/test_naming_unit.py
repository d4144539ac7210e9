import random

import pytest

from server.app.errors import MissingExtension
from server.app.services.naming import ALPHABET, generate_name, split_extension


class TestGenerateName:
    """Unit tests for random short identifiers."""

    @pytest.mark.parametrize("length", [0, 1, 6, 32])
    def test_length_and_alphabet(self, length):
        name = generate_name(length)
        assert len(name) == length
        assert all(c in ALPHABET for c in name)

    def test_zero_length_is_empty(self):
        assert generate_name(0) == ""

    def test_negative_length_rejected(self):
        with pytest.raises(ValueError):
            generate_name(-1)

    def test_alphabet_order(self):
        """0-25 -> a-z, 26-51 -> A-Z, 52-61 -> 0-9."""
        assert len(ALPHABET) == 62
        assert ALPHABET[0] == "a" and ALPHABET[25] == "z"
        assert ALPHABET[26] == "A" and ALPHABET[51] == "Z"
        assert ALPHABET[52] == "0" and ALPHABET[61] == "9"

    def test_value_to_char_mapping(self):
        """Injected source values map straight onto the alphabet."""

        class Fixed:
            def __init__(self, values):
                self._values = iter(values)

            def randrange(self, stop):
                assert stop == 62
                return next(self._values)

        assert generate_name(6, Fixed([0, 25, 26, 51, 52, 61])) == "azAZ09"

    def test_injected_rng_is_reproducible(self):
        assert generate_name(8, random.Random(7)) == generate_name(8, random.Random(7))

    def test_no_duplicates_in_10k_samples(self):
        samples = {generate_name(8) for _ in range(10_000)}
        assert len(samples) == 10_000


class TestSplitExtension:
    def test_simple(self):
        assert split_extension("a.txt") == "txt"

    def test_last_dot_wins(self):
        assert split_extension("archive.tar.gz") == "gz"

    def test_case_preserved(self):
        assert split_extension("Photo.JPG") == "JPG"

    def test_missing_extension(self):
        with pytest.raises(MissingExtension):
            split_extension("noext")

    def test_trailing_dot_gives_empty_extension(self):
        # accepted edge case: kept as-is, not rejected
        assert split_extension("trailing.") == ""

    def test_dotfile(self):
        assert split_extension(".bashrc") == "bashrc"
