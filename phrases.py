"""Phrase memory for the mimic engine.

Everything the user says is cut into phrases and remembered for the lifetime
of the conversation. Besides the ordered memory itself, the store keeps, for
every reply the bot ever gave, the phrases the user sent right after it; this
is what later lets the bot answer the way the user once did.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional, Set

import constraints
from levenshtein import distance

logger = logging.getLogger(__name__)

GREETING = "How are you?"
GREETING_RATIO = 0.5


def _is_greeting(phrase: str, ratio: float) -> bool:
    if "hello" in phrase or "Hello" in phrase:
        return True
    return distance(phrase, GREETING) <= len(phrase) * ratio


class PhraseStore:
    """Insertion-ordered phrase memory plus the response -> follow-up map."""

    def __init__(self, greeting_ratio: float = GREETING_RATIO) -> None:
        self.greeting_ratio = greeting_ratio
        self._phrases: List[str] = []
        self._seen: Set[str] = set()
        self.follow_ups: Dict[str, List[str]] = {}

    def __len__(self) -> int:
        return len(self._phrases)

    def __iter__(self) -> Iterator[str]:
        return iter(self._phrases)

    def __contains__(self, phrase: object) -> bool:
        return phrase in self._seen

    def latest(self) -> Optional[str]:
        """Return the most recently remembered phrase, if any."""
        return self._phrases[-1] if self._phrases else None

    def follow_ups_for(self, response: str) -> List[str]:
        return self.follow_ups.get(response, [])

    def _known(self, phrase: str) -> bool:
        if phrase in self._seen:
            return True
        bare = phrase.rstrip(constraints.TERMINAL_PUNCT)
        if bare in self._seen:
            return True
        return any(v in self._seen for v in constraints.punctuated_variants(bare))

    def extract(self, message: str, last_response: str = "") -> List[str]:
        """Split *message* into phrases and record the storable ones.

        Greetings are not remembered. Every other phrase is appended to the
        follow-ups of *last_response*, whether or not it was new.

        Args:
            message: Raw user message.
            last_response: Reply the bot gave before this message.

        Returns:
            The distinct phrases of the message in order, greetings included.
        """
        sentences = []
        for piece in constraints.split_sentences(message or ""):
            trimmed = piece.strip()
            if len(trimmed) > 1 and trimmed not in sentences:
                sentences.append(trimmed)

        for phrase in sentences:
            if _is_greeting(phrase, self.greeting_ratio):
                logger.debug(f"extract: skipping greeting '{phrase}'")
                continue
            if not self._known(phrase):
                self._seen.add(phrase)
                self._phrases.append(phrase)
            if last_response:
                self.follow_ups.setdefault(last_response, []).append(phrase)

        return sentences

    def record_response(self, response: str) -> None:
        """Make sure *response* has a follow-up entry."""
        if response and response not in self.follow_ups:
            self.follow_ups[response] = []
