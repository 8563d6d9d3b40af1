"""Fuzzy trigger matching shared by the scripted table and the script cache."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from levenshtein import distance

logger = logging.getLogger(__name__)

MATCH_RATIO = 1 / 3
SUBSTRING_SLACK = 1.3


@dataclass
class FuzzyMatch:
    """Best trigger found for one turn."""

    key: str
    phrase: str
    ratio: float


def is_self_referential(phrase: str) -> bool:
    """Personal statements ("I think...", "so I said...") never trigger."""
    lowered = phrase.lower()
    return lowered.startswith("i ") or " i " in lowered


def best_match(
    keys: Iterable[str],
    phrases: Iterable[str],
    match_ratio: float = MATCH_RATIO,
    substring_slack: float = SUBSTRING_SLACK,
) -> Optional[FuzzyMatch]:
    """Find the key that best matches any of *phrases*.

    A pair is accepted when the edit distance between the key and the
    lower-cased phrase is at most ``len(phrase) * match_ratio``, or when the
    phrase contains the key and is at most ``substring_slack`` times as long.
    Accepted pairs are ranked by ``distance / len(key)``; ties keep the pair
    found first.

    Args:
        keys: Lower-case trigger phrases.
        phrases: Phrases of the current turn.
        match_ratio: Share of the phrase length tolerated as edits.
        substring_slack: Maximum phrase/key length ratio for containment.

    Returns:
        The winning :class:`FuzzyMatch`, or ``None`` when nothing matched.
    """
    candidates = [p for p in phrases if not is_self_referential(p)]
    best: Optional[FuzzyMatch] = None

    for key in keys:
        if not key:
            continue
        for phrase in candidates:
            lowered = phrase.lower()
            edits = distance(key, lowered)
            close = edits <= len(phrase) * match_ratio
            contained = key in lowered and len(phrase) <= len(key) * substring_slack
            if not (close or contained):
                continue
            ratio = edits / len(key)
            if best is None or ratio < best.ratio:
                best = FuzzyMatch(key=key, phrase=phrase, ratio=ratio)

    if best is not None:
        logger.debug(f"best_match: '{best.phrase}' -> '{best.key}' (ratio={best.ratio:.2f})")
    return best
