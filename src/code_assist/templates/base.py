from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, List

from ..models.context import ContextData


class TemplateType(str, Enum):
    COMPLETION = "completion"
    CHAT = "chat"


class PromptTemplate(ABC):
    """Abstract base class for prompt templates.

    A template turns ContextData into the provider-agnostic part of a request:
    a ``messages`` list for chat templates or a ``prompt`` string for completion
    templates. Templates hold no per-request state and are shared between
    requests through the template registry.
    """

    name: str = ""
    template_type: TemplateType = TemplateType.CHAT

    @abstractmethod
    def stop_words(self) -> List[str]:
        """Strings that truncate a streamed response produced with this template."""
        pass

    @abstractmethod
    def prepare_request(self, request: dict[str, Any], context: ContextData) -> None:
        """Insert ``messages`` or ``prompt`` into ``request``, derived from ``context``.

        Args:
            request: Payload being built; mutated in place.
            context: Read-only context for this request.
        """
        pass

    @abstractmethod
    def description(self) -> str:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class ChatTemplate(PromptTemplate):
    """Chat template that wraps every message in the same role delimiters.

    Subclasses only supply ``format_message``; the message ordering rules live
    here: an optional leading system message, then the history in order.
    """

    template_type = TemplateType.CHAT

    @abstractmethod
    def format_message(self, role: str, content: str) -> str:
        pass

    def prepare_request(self, request: dict[str, Any], context: ContextData) -> None:
        messages = []
        if context.system_prompt:
            messages.append({
                "role": "system",
                "content": self.format_message("system", context.system_prompt),
            })
        for entry in context.history or ():
            messages.append({
                "role": entry.role.value,
                "content": self.format_message(entry.role.value, entry.content),
            })
        request["messages"] = messages


class CompletionTemplate(PromptTemplate):
    """Fill-in-the-middle style template producing a single ``prompt`` string."""

    template_type = TemplateType.COMPLETION

    @abstractmethod
    def format_prompt(self, prefix: str, suffix: str) -> str:
        pass

    def prepare_request(self, request: dict[str, Any], context: ContextData) -> None:
        header = ""
        if context.system_prompt:
            header += context.system_prompt + "\n"
        if context.file_path:
            header += f"# File: {context.file_path}\n"
        request["prompt"] = self.format_prompt(header + context.prefix, context.suffix)
