from pathlib import Path
import random
import sys

sys.path.append(str(Path(__file__).resolve().parent.parent))

import guide  # noqa: E402
import mimic  # noqa: E402
from config import Settings  # noqa: E402

USER = "bart"

TRANSCRIPT_URL = "https://www.imsdb.com/scripts/Casablanca.html"
SEARCH_PAGE = f'<a href="{TRANSCRIPT_URL}">Casablanca</a>'
TRANSCRIPT = """<pre>
- Where were you last night?
- That's so long ago, I don't remember.
</pre>"""


def _conversation(seed=1, **overrides):
    settings = Settings(mining_enabled=False, **overrides)
    return mimic.Conversation(cur_user=USER, settings=settings, rng=random.Random(seed))


def _say(conversation, text):
    # the chat stores the user's message, then the bot's reply
    conversation.message_count += 1
    reply = mimic.respond(text, conversation)
    conversation.message_count += 1
    return reply


def test_first_message_gets_greeting():
    conversation = _conversation()
    assert conversation.is_fresh
    assert _say(conversation, "hey") == "Hey bart! I'm the Bot :P"
    assert not conversation.is_fresh


def test_greeting_uses_bot_name():
    conversation = _conversation(bot_name="Robo")
    assert _say(conversation, "hey") == "Hey bart! I'm the Robo :P"


def test_how_are_you_then_acknowledgment():
    conversation = _conversation()
    _say(conversation, "hey")
    assert _say(conversation, "How are you?") == "I'm good, bart, thanks. How are you?"
    assert _say(conversation, "I'm good, thanks!") == "Cool, that's good to hear"


def test_every_trigger_gets_its_reply():
    guide.clear_cache()
    conversation = _conversation()
    _say(conversation, "hey")
    table = conversation.table.seed(USER)

    entries = list(guide.load_guide().entries)
    random.Random(3).shuffle(entries)
    for entry in entries:
        if entry.trigger == "How are you?":
            continue
        assert _say(conversation, entry.trigger) == table[entry.trigger.lower()]


def test_typo_still_hits_trigger():
    conversation = _conversation()
    _say(conversation, "hey")
    assert _say(conversation, "whats up?") == "Just hanging out! What about you?"


def test_loose_spelling_hits_alias():
    conversation = _conversation()
    _say(conversation, "hey")
    assert _say(conversation, "how r u doing") == "I'm good, bart, thanks. How are you?"
    assert _say(conversation, "fine") == "Cool, that's good to hear"


def test_you_too_echo():
    conversation = _conversation()
    _say(conversation, "hey")
    assert _say(conversation, "I like talking to you") == "I like talking to you too"


def test_adjusted_responses():
    conversation = _conversation()
    _say(conversation, "hey")
    previous = _say(conversation, "I like talking to you")

    reply = _say(conversation, "Hey bot, you're really cool")
    assert "bot" not in reply.lower()
    assert reply != previous
    previous = reply

    reply = _say(conversation, "psst, Bot, I have something to tell you")
    assert reply == "Psst, bart, I have something to tell you too"
    assert reply != previous


def test_filler_while_memory_is_too_small():
    conversation = _conversation()
    _say(conversation, "hello there")
    for text in ["hello again", "nice weather", "nice weather.", "nice weather!"]:
        assert _say(conversation, text) == mimic.FILLER
    assert len(conversation.phrases) == 1


def test_filler_with_two_phrases_later_on():
    conversation = _conversation()
    _say(conversation, "hey there")
    assert _say(conversation, "alpha one") == "Hey there"
    assert _say(conversation, "alpha one") == mimic.FILLER


def test_recorded_follow_up_is_reused():
    conversation = _conversation()
    _say(conversation, "hey")
    assert _say(conversation, "nice weather") == "Hey"
    _say(conversation, "sunny day")
    assert conversation.phrases.follow_ups_for("Hey") == ["sunny day"]
    assert _say(conversation, "Hey") == "Sunny day"


def test_every_response_gets_follow_up_entry():
    conversation = _conversation()
    replies = [_say(conversation, text) for text in ["hey", "How are you?", "good", "foo bar baz"]]
    for reply in replies:
        assert reply in conversation.phrases.follow_ups
    assert conversation.last_response == replies[-1]


def test_random_responses_never_repeat():
    test_strings = [
        "foobar",
        "bot you're the best",
        "this is a test string",
        "the Bot is cool",
        "I don't know what to say",
        "My name is " + USER,
        "here is another test string",
        "barfoo",
        USER,
        "testing",
        "I'll see ya next time, bot",
    ]
    conversation = _conversation(seed=11)
    for text in ["hey", "first warm up line", "second warm up line", "third warm up line"]:
        _say(conversation, text)

    picker = random.Random(5)
    previous = conversation.last_response
    for _ in range(100):
        text = picker.choice(test_strings)
        # a phrase equal to a past reply may be answered with what followed it
        mapped = bool(conversation.phrases.follow_ups_for(text)) or text == previous
        reply = _say(conversation, text)

        if "you're the best" in reply:
            assert reply == "Bart you're the best"
        if "is cool" in reply:
            assert reply == "The bart is cool"
        assert reply != "My name is " + USER
        if not mapped:
            assert reply != previous
        previous = reply


def test_seeded_conversations_are_reproducible():
    texts = ["hey", "one thing", "another thing", "a third thing", "more stuff", "one thing"]
    first = _conversation(seed=42)
    second = _conversation(seed=42)
    assert [_say(first, t) for t in texts] == [_say(second, t) for t in texts]


def test_mined_reply_is_used():
    pages = {TRANSCRIPT_URL: TRANSCRIPT}

    def fetcher(url):
        if url.startswith("https://www.google.com/search"):
            return SEARCH_PAGE
        return pages[url]

    conversation = mimic.Conversation(
        cur_user=USER,
        settings=Settings(mining_enabled=True),
        fetcher=fetcher,
        rng=random.Random(0),
    )
    _say(conversation, "hey")
    reply = _say(conversation, "Where were you last night?")
    assert reply == "That's so long ago, I don't remember."
    assert conversation.matched_phrase == "where were you last night?"


def test_mining_failures_fall_through():
    def fetcher(url):
        raise OSError("offline")

    conversation = mimic.Conversation(
        cur_user=USER,
        settings=Settings(mining_enabled=True),
        fetcher=fetcher,
        rng=random.Random(0),
    )
    _say(conversation, "hey")
    assert _say(conversation, "Where were you last night?") == "Hey"


def test_errors_never_reach_the_caller(monkeypatch):
    conversation = _conversation()
    _say(conversation, "hey")

    def boom(*args, **kwargs):
        raise RuntimeError("broken strategy")

    monkeypatch.setattr(mimic, "_scripted", boom)
    assert _say(conversation, "How are you?") == mimic.FILLER
    assert conversation.last_response == mimic.FILLER
    assert mimic.FILLER in conversation.phrases.follow_ups


def test_none_body_is_tolerated():
    conversation = _conversation()
    conversation.message_count = 1
    assert mimic.respond(None, conversation) == "Hey bart! I'm the Bot :P"
