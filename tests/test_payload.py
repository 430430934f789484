import pytest

from code_assist.core.payload import build_provider_request, endpoint_url, plain_messages
from code_assist.core.request import RequestType
from code_assist.models.context import ContextData, HistoryEntry
from code_assist.providers import OllamaProvider, OpenAICompatibleProvider
from code_assist.templates import ChatML, StarCoder2Fim


@pytest.fixture
def chat_context():
    return ContextData.for_chat("and now?", [HistoryEntry("user", "hi"), HistoryEntry("assistant", "hello")], "be terse")


@pytest.mark.parametrize("provider", [OllamaProvider(), OpenAICompatibleProvider()], ids=lambda p: p.name)
def test_payload_is_deterministic(provider, chat_context, settings):
    first = build_provider_request("m", chat_context, RequestType.CHAT, provider, ChatML(), settings)
    second = build_provider_request("m", chat_context, RequestType.CHAT, provider, ChatML(), settings)
    assert first == second
    assert first["model"] == "m"
    assert first["stream"] is True
    assert len(first["messages"]) == 4


def test_plain_messages(chat_context):
    assert plain_messages(chat_context) == [
        {"role": "system", "content": "be terse"},
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello"},
        {"role": "user", "content": "and now?"},
    ]


def test_payload_without_template_is_undecorated(chat_context, settings):
    payload = build_provider_request("m", chat_context, RequestType.CHAT, OllamaProvider(), None, settings)
    assert payload["messages"] == plain_messages(chat_context)
    assert "options" in payload


def test_completion_payload(settings):
    context = ContextData(prefix="x = ", suffix="\n")
    payload = build_provider_request("sc2", context, RequestType.COMPLETION, OpenAICompatibleProvider(), StarCoder2Fim(), settings)
    assert payload["prompt"] == "<fim_prefix>x = <fim_suffix>\n<fim_middle>"
    assert "messages" not in payload
    assert payload["max_tokens"] == settings.MAX_TOKENS


def test_endpoint_url():
    assert endpoint_url("http://h:11434/", OllamaProvider(), RequestType.CHAT) == "http://h:11434/api/chat"
    assert endpoint_url("http://h:8080", OpenAICompatibleProvider(), RequestType.COMPLETION) == "http://h:8080/v1/completions"
