"""Echo adjustment: turn a remembered user phrase into a bot reply."""

from __future__ import annotations

import re
from typing import Dict


def swap_names(phrase: str, cur_user: str, bot_name: str) -> str:
    """Exchange mentions of the user and of the bot in *phrase*.

    All names are replaced in a single pass, longest first, so a name that
    is part of the other one is never rewritten twice.
    """
    if not cur_user:
        return phrase
    counterparts: Dict[str, str] = {}
    if bot_name:
        counterparts[bot_name.lower()] = cur_user
        counterparts[bot_name] = cur_user
    counterparts[cur_user] = bot_name
    names = sorted(counterparts, key=len, reverse=True)
    pattern = re.compile("|".join(re.escape(name) for name in names))
    return pattern.sub(lambda m: counterparts[m.group(0)], phrase)


def add_you_too(phrase: str) -> str:
    """Insert ``" too"`` right after the last ``"you"`` of *phrase*."""
    index = phrase.rfind("you")
    if index < 0:
        return phrase
    end = index + len("you")
    return phrase[:end] + " too" + phrase[end:]


def can_add_you_too(phrase: str) -> bool:
    """Return whether *phrase* is a statement ending near ``"you"``.

    ``"I like talking to you"`` qualifies; ``"are you OK?"`` does not.
    """
    if not phrase:
        return False
    index = phrase.rfind("you")
    return index > 0 and index >= len(phrase) - 4 and not phrase.endswith("?")


def adjust(
    phrase: str,
    cur_user: str,
    bot_name: str = "Bot",
    swap: bool = True,
    you_too: bool = False,
) -> str:
    """Rewrite *phrase* so it reads as a reply from the bot.

    Args:
        phrase: Phrase borrowed from the user.
        cur_user: Display name of the user.
        bot_name: Display name of the bot.
        swap: Exchange user and bot names.
        you_too: Append "too" after the trailing "you".

    Returns:
        The adjusted phrase.
    """
    if swap:
        phrase = swap_names(phrase, cur_user, bot_name)
    if you_too:
        phrase = add_you_too(phrase)
    return phrase
