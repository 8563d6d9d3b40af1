"""parrot-with-a-memory reply engine

The :mod:`mimic` module answers every message of the bot conversation with a
single line. It has no understanding of language: it remembers what the user
says, recognizes a handful of scripted triggers by edit distance, borrows the
next line from movie scripts that contain the same phrase, and otherwise
echoes the user's own phrases back with the names swapped.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional

import constraints
import echo
from config import Settings
from fuzzy import best_match
from guide import HOW_ARE_YOU, ScriptedTable
from miner import PageFetcher, ScriptMiner
from phrases import PhraseStore

logger = logging.getLogger(__name__)

GREETING_TEMPLATE = "Hey {user}! I'm the {bot} :P"
ACKNOWLEDGMENT = "Cool, that's good to hear"
FILLER = "C'mon, send something original!"


@dataclass
class Conversation:
    """State of one bot conversation.

    ``message_count`` is owned by the chat around the engine: it counts every
    message of the conversation, the one being answered included.
    """

    cur_user: str
    settings: Settings = field(default_factory=Settings)
    fetcher: Optional[PageFetcher] = None
    rng: Optional[random.Random] = None
    message_count: int = 0
    last_response: str = ""
    matched_phrase: str = ""
    phrases: PhraseStore = field(init=False, repr=False)
    table: ScriptedTable = field(init=False, repr=False)
    miner: ScriptMiner = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.rng is None:
            self.rng = random.Random(self.settings.seed)
        self.phrases = PhraseStore(greeting_ratio=self.settings.greeting_ratio)
        self.table = ScriptedTable()
        self.miner = ScriptMiner(fetcher=self.fetcher, rng=self.rng, settings=self.settings)

    @property
    def bot_name(self) -> str:
        return self.settings.bot_name

    @property
    def is_fresh(self) -> bool:
        return self.message_count <= 1


def _adjust(conversation: Conversation, phrase: str, you_too: bool = False) -> str:
    return echo.adjust(
        phrase,
        conversation.cur_user,
        conversation.bot_name,
        swap=True,
        you_too=you_too,
    )


def _scripted(conversation: Conversation, phrases: List[str]) -> Optional[str]:
    table = conversation.table.lookup()
    settings = conversation.settings
    match = best_match(table, phrases, settings.match_ratio, settings.substring_slack)
    if match is not None:
        conversation.matched_phrase = match.phrase
        return table[match.key]
    return conversation.table.match_alias(phrases)


def _mined(conversation: Conversation, phrases: List[str]) -> Optional[str]:
    found = conversation.miner.reply(phrases, mine=conversation.settings.mining_enabled)
    if found is None:
        return None
    conversation.matched_phrase, reply = found
    return reply


def _you_too(conversation: Conversation) -> Optional[str]:
    latest = conversation.phrases.latest()
    if latest is None or latest == conversation.last_response:
        return None
    if not echo.can_add_you_too(latest):
        return None
    reply = _adjust(conversation, latest, you_too=True)
    if constraints.capitalize_first_alpha(reply) == conversation.last_response:
        return None
    return reply


def _needs_more(conversation: Conversation) -> bool:
    remembered = len(conversation.phrases)
    return remembered <= 1 or (conversation.message_count > 4 and remembered == 2)


def _echo(conversation: Conversation, phrases: List[str]) -> str:
    store = conversation.phrases
    rng = conversation.rng

    for phrase in phrases:
        follow_ups = store.follow_ups_for(phrase)
        if follow_ups:
            logger.debug(f"echo: '{phrase}' has {len(follow_ups)} recorded follow-ups")
            return _adjust(conversation, rng.choice(follow_ups))

    last = conversation.last_response
    pool = [
        p
        for p in store
        if p not in phrases
        and p != last
        and constraints.capitalize_first_alpha(_adjust(conversation, p)) != last
    ]
    if not pool:
        logger.debug("FALLBACK TRIGGERED: NO_FRESH_PHRASE - returning filler")
        return FILLER
    return _adjust(conversation, rng.choice(pool))


def _choose(body: str, conversation: Conversation) -> str:
    phrases = conversation.phrases.extract(body, conversation.last_response)
    logger.debug(f"Phrases: {phrases}")
    cur_user = conversation.cur_user

    if conversation.is_fresh:
        logger.debug("Fresh conversation - greeting")
        return GREETING_TEMPLATE.format(user=cur_user, bot=conversation.bot_name)

    table = conversation.table.seed(cur_user, conversation.bot_name)
    if conversation.last_response and conversation.last_response == table.get(HOW_ARE_YOU):
        return ACKNOWLEDGMENT

    reply = _scripted(conversation, phrases)
    if reply is not None:
        logger.debug(f"Scripted reply for '{conversation.matched_phrase}'")
        return reply

    reply = _mined(conversation, phrases)
    if reply is not None:
        logger.debug(f"Mined reply for '{conversation.matched_phrase}'")
        return reply

    reply = _you_too(conversation)
    if reply is not None:
        logger.debug("Echoing with 'you too'")
        return reply

    if _needs_more(conversation):
        logger.debug("FALLBACK TRIGGERED: TOO_FEW_PHRASES - returning filler")
        return FILLER

    return _echo(conversation, phrases)


def respond(body: str, conversation: Conversation) -> str:
    """Generate the bot's reply to *body* in *conversation*."""
    logger.debug(f"=== RESPOND START ===")
    logger.debug(f"Input text: '{body}'")

    try:
        reply = _choose(body or "", conversation)
    except Exception:
        logger.exception("reply selection failed")
        reply = FILLER

    reply = constraints.capitalize_first_alpha(reply)
    conversation.last_response = reply
    conversation.phrases.record_response(reply)

    logger.debug(f"Final response: '{reply}'")
    logger.debug(f"=== RESPOND END ===")
    return reply


if __name__ == "__main__":  # pragma: no cover - manual exercise
    import sys

    conversation = Conversation(cur_user=sys.argv[1] if len(sys.argv) > 1 else "you")
    while True:
        try:
            line = input("> ")
        except EOFError:
            break
        conversation.message_count += 1
        print(respond(line, conversation))
        conversation.message_count += 1
