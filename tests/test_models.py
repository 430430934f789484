import pytest
from code_assist.models.message import Message
from code_assist.models.context import ContextData, HistoryEntry, Role

def test_message_initialization():
    msg = Message(role="user", content="Hello, world!", message_id="abc")
    assert msg.role == "user"
    assert msg.content == "Hello, world!"
    assert msg.message_id == "abc"
    assert msg.timestamp is not None

def test_message_from_dict():
    data = {"role": "assistant", "content": "Hello, user!", "id": "r1", "timestamp": 1234567890}
    msg = Message.from_dict(data)
    assert msg.role == "assistant"
    assert msg.content == "Hello, user!"
    assert msg.message_id == "r1"
    assert msg.timestamp == 1234567890

def test_message_from_dict_multimodal_content():
    data = {"role": "user", "content": [{"type": "text", "text": "a"}, {"type": "image"}, {"type": "text", "text": "b"}]}
    assert Message.from_dict(data).content == "a b"

def test_message_to_dict():
    msg = Message(role="user", content="Test message", message_id="x")
    msg_dict = msg.to_dict()
    assert msg_dict["role"] == "user"
    assert msg_dict["content"] == "Test message"
    assert msg_dict["id"] == "x"
    assert "timestamp" in msg_dict

def test_message_to_api_format():
    msg = Message(role="assistant", content="API response", message_id="x")
    assert msg.to_api_format() == {"role": "assistant", "content": "API response"}

def test_history_entry_accepts_plain_role():
    entry = HistoryEntry("user", "hi")
    assert entry.role is Role.USER
    assert entry.to_api_format() == {"role": "user", "content": "hi"}

def test_history_entry_rejects_unknown_role():
    with pytest.raises(ValueError):
        HistoryEntry("tool", "hi")

def test_context_history_normalised_to_tuple():
    context = ContextData(prefix="x", history=[{"role": "user", "content": "hi"}])
    assert context.history == (HistoryEntry(Role.USER, "hi"),)
    hash(context)  # frozen and hashable

def test_context_rejects_empty_history():
    with pytest.raises(ValueError, match="non-empty"):
        ContextData(prefix="x", history=[])

def test_context_rejects_missing_prefix():
    with pytest.raises(ValueError):
        ContextData(prefix=None)

def test_context_is_immutable():
    context = ContextData(prefix="x")
    with pytest.raises(AttributeError):
        context.prefix = "y"

def test_context_for_chat_appends_user_message():
    context = ContextData.for_chat("new", [HistoryEntry("user", "old"), HistoryEntry("assistant", "reply")], "sys")
    assert context.prefix == "new"
    assert context.system_prompt == "sys"
    assert [e.content for e in context.history] == ["old", "reply", "new"]
    assert context.history[-1].role is Role.USER
