import pytest

from code_assist.providers import OllamaProvider
from code_assist.registry import ProviderRegistry, TemplateRegistry, default_providers, default_templates
from code_assist.templates import BasicChat, Llama3, TemplateType
from code_assist.templates.base import ChatTemplate


class CustomChat(ChatTemplate):
    name = "Custom"

    def format_message(self, role, content):
        return f"[{role}] {content}"

    def stop_words(self):
        return []

    def description(self):
        return "bracketed roles"


def test_default_providers():
    providers = default_providers()
    assert providers.names() == ["Ollama", "OpenAI Compatible", "LM Studio"]
    assert isinstance(providers.get_provider_by_name("Ollama"), OllamaProvider)
    assert providers.get_provider_by_name("Nope") is None


def test_default_templates_by_type():
    templates = default_templates()
    assert templates.names_of_type(TemplateType.CHAT) == ["Llama 3", "ChatML", "Alpaca", "Basic Chat"]
    assert templates.names_of_type(TemplateType.COMPLETION) == ["CodeLlama FIM", "StarCoder2 FIM", "Plain"]
    assert isinstance(templates.get_chat_template("Llama 3"), Llama3)


def test_typed_lookup_rejects_wrong_kind():
    templates = default_templates()
    assert templates.get_chat_template("CodeLlama FIM") is None
    assert templates.get_completion_template("Llama 3") is None
    assert templates.get_chat_template("missing") is None


def test_duplicate_names_rejected():
    with pytest.raises(ValueError, match="Duplicate"):
        TemplateRegistry([Llama3(), Llama3()])


def test_with_entry_returns_extended_copy():
    templates = TemplateRegistry([BasicChat()])
    extended = templates.with_entry(CustomChat())
    assert "Custom" in extended
    assert "Custom" not in templates
    assert len(extended) == 2
    assert isinstance(extended, TemplateRegistry)
    assert isinstance(extended.get_chat_template("Custom"), CustomChat)


def test_registry_is_iterable():
    providers = ProviderRegistry([OllamaProvider()])
    assert [p.name for p in providers] == ["Ollama"]
