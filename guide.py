"""Guide module for the bot's scripted replies.

This module parses the markdown playbook of canned replies and turns it into
the per-conversation scripted table: canonical triggers mapped to a single
reply, with the current user's name baked in. Triggers are matched fuzzily by
the engine; regex aliases catch loose spellings the edit distance misses.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from fuzzy import is_self_referential

logger = logging.getLogger(__name__)

HOW_ARE_YOU = "how are you?"


@dataclass
class Entry:
    """One trigger of the playbook."""

    trigger: str
    reply: str
    aliases: List[re.Pattern] = field(default_factory=list)


@dataclass
class Guide:
    """Container for parsed playbook entries."""

    entries: List[Entry]


# Global cache for the loaded guide
_guide_cache: Optional[Guide] = None


def _compile_alias(text: str) -> Optional[re.Pattern]:
    flags = 0
    if text.endswith(" (i)"):
        flags = re.IGNORECASE
        text = text[:-4].strip()
    try:
        return re.compile(text, flags)
    except re.error:
        logger.warning(f"ignoring invalid alias pattern: {text!r}")
        return None


def load_guide(path: Optional[str] = None) -> Guide:
    """Load and parse the playbook from markdown.

    Args:
        path: Optional path to guide file. Defaults to docs/BOT_GUIDE.md

    Returns:
        Parsed Guide object, cached for the process
    """
    global _guide_cache

    if _guide_cache is not None:
        return _guide_cache

    if path is None:
        module_dir = Path(__file__).parent
        path = module_dir / "docs" / "BOT_GUIDE.md"

    path = Path(path)
    if not path.exists():
        logger.warning(f"guide not found at {path}, scripted replies disabled")
        _guide_cache = Guide(entries=[])
        return _guide_cache

    entries: List[Entry] = []
    current: Optional[Entry] = None
    section = None

    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.rstrip()

            if line.startswith("## Trigger:"):
                if current is not None and current.reply:
                    entries.append(current)
                trigger = line[len("## Trigger:"):].strip()
                current = Entry(trigger=trigger, reply="")
                section = None

            elif line.startswith("### Reply"):
                section = "reply"

            elif line.startswith("### Aliases"):
                section = "aliases"

            elif line.startswith("#"):
                section = None

            elif line.startswith("- ") and current is not None and section:
                content = line[2:].strip()
                if section == "reply" and not current.reply:
                    current.reply = content
                elif section == "aliases":
                    pattern = _compile_alias(content)
                    if pattern is not None:
                        current.aliases.append(pattern)

    if current is not None and current.reply:
        entries.append(current)

    _guide_cache = Guide(entries=entries)
    return _guide_cache


def clear_cache():
    """Clear the cached guide. Useful for testing."""
    global _guide_cache
    _guide_cache = None


class ScriptedTable:
    """Trigger -> canned reply table of one conversation.

    The table is seeded once, with the name of the user the bot is talking to.
    """

    def __init__(self, guide: Optional[Guide] = None) -> None:
        self._guide = guide
        self._replies: Dict[str, str] = {}
        self._aliases: List[Tuple[re.Pattern, str]] = []

    def __len__(self) -> int:
        return len(self._replies)

    def seed(self, cur_user: str, bot_name: str = "Bot") -> Dict[str, str]:
        """Fill the table for *cur_user* unless it is already filled."""
        if self._replies:
            return self._replies

        guide = self._guide if self._guide is not None else load_guide()
        for entry in guide.entries:
            reply = entry.reply.replace("{user}", cur_user).replace("{bot}", bot_name)
            key = entry.trigger.lower()
            self._replies.setdefault(key, reply)
            for pattern in entry.aliases:
                self._aliases.append((pattern, reply))

        logger.debug(f"seeded scripted table with {len(self._replies)} triggers for '{cur_user}'")
        return self._replies

    def lookup(self) -> Dict[str, str]:
        """Return the seeded table (empty before :meth:`seed`)."""
        return self._replies

    def get(self, key: str) -> Optional[str]:
        return self._replies.get(key.lower())

    def match_alias(self, phrases: Iterable[str]) -> Optional[str]:
        """Return the reply of the first alias matching one of *phrases*."""
        candidates = [p for p in phrases if not is_self_referential(p)]
        for pattern, reply in self._aliases:
            for phrase in candidates:
                if pattern.search(phrase):
                    logger.debug(f"match_alias: '{phrase}' matched {pattern.pattern!r}")
                    return reply
        return None
