"""Script mining: borrow the next line of a movie script.

When nothing in the playbook fits, the engine looks the user's phrase up on the
web, restricted to two transcript sites, finds the line of dialogue that says
the same thing and answers with the line that follows it. Results are cached
per phrase for the whole conversation. Mining is best effort: a page that
cannot be fetched or parsed simply contributes nothing.
"""

from __future__ import annotations

import logging
import random
import re
import urllib.parse
import urllib.request
from dataclasses import dataclass
from html.parser import HTMLParser
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import constraints
from config import Settings
from fuzzy import FuzzyMatch, best_match
from levenshtein import distance

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
SEARCH_URL = "https://www.google.com/search?q={query}&num=10"

# transcripts are plain text with real line breaks
STANDARD_HOST = "imsdb.com"
# transcripts are one markup blob with <br> between lines
BREAK_HOST = "springfieldspringfield.co.uk"
TRANSCRIPT_HOSTS = (STANDARD_HOST, BREAK_HOST)

# search-engine chrome, not results
SEARCH_CHROME = {"cached", "similar"}

_BREAK = re.compile(r"<br\s*/?>", re.IGNORECASE)
_BLOCK_TAGS = {"p", "div", "pre", "tr", "li", "h1", "h2", "h3", "h4", "b"}

PageFetcher = Callable[[str], str]


class UrlFetcher:
    """Fetch a page with ``urllib`` and return its decoded body."""

    def __init__(self, timeout: float = 10.0, user_agent: str = USER_AGENT) -> None:
        self.timeout = timeout
        self.user_agent = user_agent

    def __call__(self, url: str) -> str:
        req = urllib.request.Request(url, headers={"User-Agent": self.user_agent})
        with urllib.request.urlopen(req, timeout=self.timeout) as resp:
            charset = resp.headers.get_content_charset() or "utf-8"
            return resp.read().decode(charset, "ignore")


class _Extractor(HTMLParser):
    """Pull text from HTML, keeping block boundaries as line breaks."""

    def __init__(self) -> None:
        super().__init__()
        self._chunks: List[str] = []
        self._skip = 0

    def handle_starttag(self, tag: str, attrs) -> None:
        tag = tag.lower()
        if tag in ("script", "style"):
            self._skip += 1
        elif tag == "br" or tag in _BLOCK_TAGS:
            self._chunks.append("\n")

    def handle_endtag(self, tag: str) -> None:
        tag = tag.lower()
        if tag in ("script", "style"):
            self._skip = max(0, self._skip - 1)
        elif tag in _BLOCK_TAGS:
            self._chunks.append("\n")

    def handle_data(self, data: str) -> None:
        if not self._skip:
            self._chunks.append(data)

    @property
    def text(self) -> str:
        return "".join(self._chunks)


class _LinkExtractor(HTMLParser):
    """Collect ``(href, anchor text)`` pairs."""

    def __init__(self) -> None:
        super().__init__()
        self.links: List[Tuple[str, str]] = []
        self._href: Optional[str] = None
        self._text: List[str] = []

    def handle_starttag(self, tag: str, attrs) -> None:
        if tag.lower() == "a":
            self._href = dict(attrs).get("href") or ""
            self._text = []

    def handle_endtag(self, tag: str) -> None:
        if tag.lower() == "a" and self._href is not None:
            self.links.append((self._href, constraints.normalize_whitespace("".join(self._text))))
            self._href = None

    def handle_data(self, data: str) -> None:
        if self._href is not None:
            self._text.append(data)


def _html_text(html: str) -> str:
    parser = _Extractor()
    parser.feed(html)
    parser.close()
    return parser.text


def _host_matches(host: str, domain: str) -> bool:
    return host == domain or host.endswith("." + domain)


def transcript_host(url: str) -> Optional[str]:
    """Return the known transcript site serving *url*, if any."""
    parsed = urllib.parse.urlparse(url)
    if parsed.scheme not in ("http", "https"):
        return None
    host = parsed.netloc.lower().split(":")[0]
    for domain in TRANSCRIPT_HOSTS:
        if _host_matches(host, domain):
            return domain
    return None


def _unwrap(href: str) -> str:
    # result links come wrapped as /url?q=<target>&sa=...
    if href.startswith("/url?"):
        query = urllib.parse.parse_qs(urllib.parse.urlparse(href).query)
        return query.get("q", [""])[0]
    return href


def extract_links(html: str) -> List[str]:
    """Return transcript links found on a search results page."""
    parser = _LinkExtractor()
    parser.feed(html)
    parser.close()

    links: List[str] = []
    for href, text in parser.links:
        if text.lower() in SEARCH_CHROME:
            continue
        url = _unwrap(href)
        if transcript_host(url) and url not in links:
            links.append(url)
    return links


def page_lines(html: str, host: str) -> List[str]:
    """Split a transcript page into raw dialogue lines."""
    if host == BREAK_HOST:
        return [constraints.normalize_whitespace(_html_text(piece)) for piece in _BREAK.split(html)]
    return _html_text(html).splitlines()


@dataclass
class DialogueLine:
    text: str
    new_speaker: bool = False


def strip_speaker(line: str) -> Tuple[str, bool]:
    """Drop a leading speaker label from *line*.

    A label is a leading dash, or anything before a ``:``, ``]`` or ``)``
    that appears before the first space (``"JOHN: Hi."``, ``"[Bart] Hi."``).

    Returns:
        The bare line and whether it opens a new speaker's turn.
    """
    if line.startswith("-"):
        bare = line.lstrip("-").strip()
        return bare, len(bare.split()) >= 2

    first_space = line.find(" ")
    for marker in (":", "]", ")"):
        index = line.find(marker)
        if index > 0 and (first_space < 0 or index < first_space):
            return line[index + 1:].strip(), True
    return line, False


def merge_lines(lines: Iterable[str]) -> List[DialogueLine]:
    """Join wrapped fragments into one line per spoken sentence.

    Blank lines and dash-led lines close the current fragment; blank lines
    are kept as empty separators.
    """
    merged: List[DialogueLine] = []
    buffer: List[str] = []

    def flush() -> None:
        if buffer:
            text, new_speaker = strip_speaker(" ".join(buffer))
            merged.append(DialogueLine(text, new_speaker))
            buffer.clear()

    for raw in lines:
        line = constraints.normalize_whitespace(raw)
        if not line:
            flush()
            if merged and merged[-1].text:
                merged.append(DialogueLine(""))
            continue
        if line.startswith("-"):
            flush()
        buffer.append(line)
        if constraints.ends_sentence(line):
            flush()
    flush()
    return merged


class ScriptMiner:
    """Mine and cache replies from movie transcripts.

    ``cache`` maps a lower-cased phrase to the candidate replies mined for it.
    An entry exists for every phrase whose search returned transcript links,
    even when no usable reply came out of them.
    """

    def __init__(
        self,
        fetcher: Optional[PageFetcher] = None,
        rng: Optional[random.Random] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.fetcher = fetcher or UrlFetcher(timeout=self.settings.fetch_timeout)
        self.rng = rng or random.Random()
        self.cache: Dict[str, List[str]] = {}

    def search(self, phrase: str) -> List[str]:
        """Return transcript links for *phrase*; empty on any failure."""
        query = f'"{phrase}" {self.settings.search_suffix}'
        url = SEARCH_URL.format(query=urllib.parse.quote_plus(query))
        try:
            links = extract_links(self.fetcher(url))
        except Exception as exc:
            logger.warning(f"search for '{phrase}' failed: {exc}")
            return []
        logger.debug(f"search: {len(links)} transcript links for '{phrase}'")
        return links[: self.settings.max_links]

    def harvest(self, url: str, phrase: str) -> Optional[str]:
        """Return the line answering *phrase* on the transcript at *url*."""
        host = transcript_host(url)
        if host is None:
            return None
        lines = merge_lines(page_lines(self.fetcher(url), host))

        target = phrase.lower()
        threshold = len(phrase) * self.settings.match_ratio
        for i, line in enumerate(lines):
            if not line.text:
                continue
            subs = [s.strip() for s in constraints.split_sentences(line.text)]
            subs = [s for s in subs if s]
            for j, sub in enumerate(subs):
                if distance(target, sub.lower()) > threshold:
                    continue
                logger.debug(f"harvest: '{phrase}' found in {url}: '{line.text}'")
                reply = self._follow(lines, i, subs, j, target)
                if reply is not None:
                    return reply
        return None

    def _follow(
        self, lines: List[DialogueLine], index: int, subs: List[str], sub_index: int, target: str
    ) -> Optional[str]:
        following = [line for line in lines[index + 1:] if line.text]
        for line in following[: self.settings.mine_lookahead]:
            if line.new_speaker:
                return line.text

        rest = [s for s in subs[sub_index + 1:] if len(s) > 1]
        if rest:
            return constraints.capitalize_first_alpha(rest[0])

        if not following:
            return None
        # the same line again, e.g. a repeated chorus
        limit = len(target) * self.settings.repeat_ratio
        if distance(target, following[0].text.lower()) <= limit:
            return None
        return following[0].text

    def mine(self, phrases: Iterable[str]) -> Optional[str]:
        """Mine replies for every long enough phrase not mined before.

        Returns:
            Cache key of the last phrase that produced a reply this turn.
        """
        found = None
        for phrase in phrases:
            if len(phrase) < self.settings.mine_min_length:
                continue
            key = phrase.lower()
            if key in self.cache:
                continue

            links = self.search(phrase)
            if not links:
                continue

            replies = self.cache.setdefault(key, [])
            for url in links:
                try:
                    reply = self.harvest(url, phrase)
                except Exception as exc:
                    logger.warning(f"mining {url} failed: {exc}")
                    continue
                if reply and reply not in replies:
                    replies.append(reply)

            logger.debug(f"mine: {len(replies)} replies cached for '{key}'")
            if replies:
                found = key
        return found

    def recall(self, phrases: Iterable[str]) -> Optional[FuzzyMatch]:
        """Fuzzy-match *phrases* against phrases mined earlier."""
        stocked = [key for key, replies in self.cache.items() if replies]
        return best_match(
            stocked,
            phrases,
            self.settings.match_ratio,
            self.settings.substring_slack,
        )

    def reply(self, phrases: Iterable[str], mine: bool = True) -> Optional[Tuple[str, str]]:
        """Return ``(matched key, reply)`` from the cache or a fresh mining run."""
        phrases = list(phrases)
        match = self.recall(phrases)
        key = match.key if match is not None else None
        if key is None and mine:
            key = self.mine(phrases)
        if key is None:
            return None
        return key, self.rng.choice(self.cache[key])
