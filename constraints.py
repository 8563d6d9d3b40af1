"""Text constraints and normalization utilities.

This module provides the small text helpers shared by the engine: sentence
splitting, whitespace normalization, first-letter capitalization and
terminal punctuation checks. All functions are pure stdlib.
"""

import re
from typing import List

TERMINAL_PUNCT = ".!?"

_SENTENCE_BREAK = re.compile(r"(?<=[.!?])")


def normalize_whitespace(text: str) -> str:
    """Collapse consecutive whitespace characters into single spaces.

    Args:
        text: Input text that may contain multiple spaces, tabs, newlines, etc.

    Returns:
        Text with all whitespace sequences collapsed to single spaces and trimmed.
    """
    return re.sub(r"\s+", " ", text).strip()


def capitalize_first_alpha(text: str) -> str:
    """Capitalize the first alphabetic character in the text.

    This is unicode-aware and will capitalize letters in any language.
    Non-alphabetic characters at the beginning are preserved.

    Args:
        text: Input text to capitalize.

    Returns:
        Text with the first alphabetic character capitalized.
    """
    if not text:
        return text

    result = list(text)
    for i, char in enumerate(result):
        if char.isalpha():
            result[i] = char.upper()
            break

    return "".join(result)


def split_sentences(text: str) -> List[str]:
    """Split *text* right after every terminal punctuation mark.

    Each mark closes a piece on its own, so ``"Wait...what"`` yields
    ``["Wait.", ".", ".", "what"]``. Pieces are returned untrimmed.

    Args:
        text: Raw message or transcript line.

    Returns:
        List of pieces, punctuation kept at the end of each piece.
    """
    if not text:
        return []
    return [piece for piece in _SENTENCE_BREAK.split(text) if piece]


def ends_sentence(text: str) -> bool:
    """Return ``True`` when *text* ends with a terminal punctuation mark."""
    return bool(text) and text[-1] in TERMINAL_PUNCT


def punctuated_variants(text: str) -> List[str]:
    """Return *text* followed by each terminal punctuation mark."""
    return [text + punct for punct in TERMINAL_PUNCT]
