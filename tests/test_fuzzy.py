from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parent.parent))

import fuzzy  # noqa: E402

KEYS = ["how are you?", "what's up?", "what are you doing?", "see ya"]


def test_exact_phrase_matches_its_key():
    match = fuzzy.best_match(KEYS, ["What's up?"])
    assert match is not None
    assert match.key == "what's up?"
    assert match.phrase == "What's up?"
    assert match.ratio == 0


def test_typo_within_threshold_matches():
    match = fuzzy.best_match(KEYS, ["how r you?"])
    assert match is not None
    assert match.key == "how are you?"


def test_best_relative_match_wins():
    match = fuzzy.best_match(["what are you doing?", "what are you doing now?"], ["What are you doing now?"])
    assert match.key == "what are you doing now?"


def test_substring_match_within_slack():
    # too many edits for the ratio, but the key is contained
    match = fuzzy.best_match(KEYS, ["see ya!"], match_ratio=0.1)
    assert match is not None
    assert match.key == "see ya"


def test_substring_too_long_does_not_match():
    assert fuzzy.best_match(KEYS, ["see ya at the cinema tomorrow"]) is None


def test_self_referential_phrases_are_skipped():
    assert fuzzy.is_self_referential("I see ya")
    assert fuzzy.is_self_referential("so i said what's up?")
    assert not fuzzy.is_self_referential("I'm bored")
    assert fuzzy.best_match(KEYS, ["I what's up?"]) is None


def test_no_match_returns_none():
    assert fuzzy.best_match(KEYS, ["foobar", "the weather is nice"]) is None
    assert fuzzy.best_match([], ["how are you?"]) is None
    assert fuzzy.best_match(KEYS, []) is None


def test_thresholds_are_tunable():
    assert fuzzy.best_match(["abcdef"], ["abcxyz"]) is None
    assert fuzzy.best_match(["abcdef"], ["abcxyz"], match_ratio=0.5) is not None
