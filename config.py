"""Runtime settings for the mimic engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional


def _flag(value: str) -> bool:
    return value.strip().lower() not in ("", "0", "false", "no", "off")


@dataclass
class Settings:
    """Tunable knobs of one bot conversation.

    The matching thresholds are tunable constants: earlier versions of the bot
    used ``len/2`` and ``len/3`` for trigger matching interchangeably.
    """

    bot_name: str = "Bot"
    mining_enabled: bool = True
    # trigger matching
    match_ratio: float = 1 / 3
    substring_slack: float = 1.3
    greeting_ratio: float = 0.5
    # transcript mining
    mine_min_length: int = 8
    mine_lookahead: int = 4
    # a following line this close to the mined phrase is a repeat, not a reply
    repeat_ratio: float = 0.5
    max_links: int = 5
    search_suffix: str = "movie script"
    fetch_timeout: float = 10.0
    seed: Optional[int] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``MIMIC_*`` environment variables."""
        env = os.environ if environ is None else environ
        settings = cls()
        if env.get("MIMIC_BOT_NAME"):
            settings.bot_name = env["MIMIC_BOT_NAME"].strip()
        if "MIMIC_MINING" in env:
            settings.mining_enabled = _flag(env["MIMIC_MINING"])
        if env.get("MIMIC_FETCH_TIMEOUT"):
            settings.fetch_timeout = float(env["MIMIC_FETCH_TIMEOUT"])
        if env.get("MIMIC_SEED"):
            settings.seed = int(env["MIMIC_SEED"])
        return settings
