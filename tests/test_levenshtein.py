from pathlib import Path
import random
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parent.parent))

from levenshtein import distance  # noqa: E402


def test_identical_strings_have_zero_distance():
    for s in ["", "a", "How are you?", "psst, Bot"]:
        assert distance(s, s) == 0


def test_empty_string_costs_length():
    assert distance("", "abc") == 3
    assert distance("abc", "") == 3


def test_classic_examples():
    assert distance("kitten", "sitting") == 3
    assert distance("flaw", "lawn") == 2
    assert distance("How are you?", "how are you?") == 1
    assert distance("How are you?", "How are you") == 1


def test_distance_is_symmetric():
    rng = random.Random(7)
    alphabet = "abc "
    for _ in range(50):
        a = "".join(rng.choice(alphabet) for _ in range(rng.randint(0, 9)))
        b = "".join(rng.choice(alphabet) for _ in range(rng.randint(0, 9)))
        assert distance(a, b) == distance(b, a)


def test_none_is_rejected():
    with pytest.raises(ValueError):
        distance(None, "abc")
    with pytest.raises(ValueError):
        distance("abc", None)
