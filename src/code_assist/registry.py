"""Name -> instance lookup for providers and prompt templates.

Registries are plain values: build them once at startup (``default_providers()``,
``default_templates()``) and pass them to the facades. They cannot be mutated
after construction; ``with_entry`` returns an extended copy instead.
"""

import logging
from types import MappingProxyType
from typing import Generic, Iterable, List, Optional, TypeVar

from .providers import LMStudioProvider, OllamaProvider, OpenAICompatibleProvider, Provider
from .templates import (
    Alpaca,
    BasicChat,
    ChatML,
    CodeLlamaFim,
    Llama3,
    PlainCompletion,
    PromptTemplate,
    StarCoder2Fim,
    TemplateType,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", Provider, PromptTemplate)


class Registry(Generic[T]):
    def __init__(self, entries: Iterable[T] = ()):
        items: dict[str, T] = {}
        for entry in entries:
            if not entry.name:
                raise ValueError(f"{entry!r} has no name")
            if entry.name in items:
                raise ValueError(f"Duplicate registry name: {entry.name!r}")
            items[entry.name] = entry
        self._items = MappingProxyType(items)

    def get(self, name: str) -> Optional[T]:
        return self._items.get(name)

    def names(self) -> List[str]:
        return list(self._items)

    def with_entry(self, entry: T) -> "Registry[T]":
        """Return a new registry containing every current entry plus ``entry``."""
        return type(self)([*self._items.values(), entry])

    def __contains__(self, name: object) -> bool:
        return name in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items.values())


class ProviderRegistry(Registry[Provider]):
    def get_provider_by_name(self, name: str) -> Optional[Provider]:
        provider = self.get(name)
        if provider is None:
            logger.debug(f"Provider not found: {name}")
        return provider


class TemplateRegistry(Registry[PromptTemplate]):
    def _get_typed(self, name: str, template_type: TemplateType) -> Optional[PromptTemplate]:
        template = self.get(name)
        if template is None or template.template_type != template_type:
            logger.debug(f"No {template_type.value} template named {name!r}")
            return None
        return template

    def get_chat_template(self, name: str) -> Optional[PromptTemplate]:
        return self._get_typed(name, TemplateType.CHAT)

    def get_completion_template(self, name: str) -> Optional[PromptTemplate]:
        return self._get_typed(name, TemplateType.COMPLETION)

    def names_of_type(self, template_type: TemplateType) -> List[str]:
        return [t.name for t in self if t.template_type == template_type]


def default_providers() -> ProviderRegistry:
    return ProviderRegistry([OllamaProvider(), OpenAICompatibleProvider(), LMStudioProvider()])


def default_templates() -> TemplateRegistry:
    return TemplateRegistry([
        Llama3(), ChatML(), Alpaca(), BasicChat(),
        CodeLlamaFim(), StarCoder2Fim(), PlainCompletion(),
    ])
