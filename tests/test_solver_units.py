from services import prompts
from services.errors import LLMError
from services.solver import (
    chat_error_message,
    classify_confidence,
    extract_json_object,
    normalize_conversation,
    significant_words,
)


def user(content, **extra):
    return {"role": "user", "content": content, **extra}


def assistant(content, **extra):
    return {"role": "assistant", "content": content, **extra}


class TestNormalizeConversation:

    def test_alternating_history_is_kept(self):
        history = [user("a"), assistant("b"), user("c")]
        assert normalize_conversation(history) == history

    def test_leading_assistant_turns_are_dropped(self):
        history = [assistant("Hello! How can I help?"), user("db is down")]
        assert normalize_conversation(history) == [user("db is down")]

    def test_error_replies_are_dropped(self):
        history = [user("first"), assistant("Sorry, error", isError=True), user("second")]
        assert normalize_conversation(history) == [user("second")]

    def test_consecutive_user_turns_keep_latest(self):
        history = [user("a"), assistant("b"), user("c"), user("d")]
        assert normalize_conversation(history) == [user("a"), assistant("b"), user("d")]

    def test_trailing_assistant_turns_are_cut(self):
        history = [user("a"), assistant("b"), user("c"), assistant("d")]
        assert normalize_conversation(history) == [user("a"), assistant("b"), user("c")]

    def test_empty_turns_are_dropped(self):
        history = [user("a"), assistant("   "), user("c")]
        assert normalize_conversation(history) == [user("c")]

    def test_no_user_turn(self):
        assert normalize_conversation([assistant("hi")]) == []
        assert normalize_conversation([]) == []


def test_classify_confidence():
    assert classify_confidence("**Match Assessment: High** - same symptoms") == "high"
    assert classify_confidence("I have medium confidence this applies") == "medium"
    assert classify_confidence("Not sure at all") == "low"


def test_significant_words():
    assert significant_words("the api is very slow today") == ["very", "slow", "today"]


class TestChatErrorMessage:

    def test_missing_key(self):
        error = LLMError("No API key configured, set ANTHROPIC_API_KEY to enable AI features")
        assert chat_error_message(error) == prompts.CHAT_CONNECTION_APOLOGY

    def test_rate_limited(self):
        assert chat_error_message(LLMError("rate limit exceeded", 429)) == prompts.CHAT_BUSY_APOLOGY

    def test_invalid_key(self):
        assert chat_error_message(LLMError("invalid x-api-key", 401)) == prompts.CHAT_INVALID_KEY_APOLOGY

    def test_generic(self):
        assert chat_error_message(RuntimeError("boom")) == prompts.CHAT_GENERIC_APOLOGY


class TestExtractJsonObject:

    def test_embedded_object(self):
        reply = 'Here you go:\n```json\n{"title": "Disk full", "tags": ["disk"]}\n```'
        assert extract_json_object(reply) == {"title": "Disk full", "tags": ["disk"]}

    def test_invalid_or_missing(self):
        assert extract_json_object("no json here") is None
        assert extract_json_object('{"title": ') is None
        assert extract_json_object(None) is None
