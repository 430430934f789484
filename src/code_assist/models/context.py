"""Context values handed to prompt templates and providers.

ContextData describes *what* to send: the text around the cursor (or the
chat message), an optional system prompt, the ordered conversation history
and the path of the edited file. It is immutable once built; templates read
it and never write back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass(frozen=True)
class HistoryEntry:
    role: Role
    content: str

    def __post_init__(self) -> None:
        # Accept plain strings ("user") as well as Role members
        object.__setattr__(self, "role", Role(self.role))

    def to_api_format(self) -> dict:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class ContextData:
    prefix: str = ""
    suffix: str = ""
    system_prompt: str | None = None
    history: tuple[HistoryEntry, ...] | None = field(default=None)
    file_path: str | None = None

    def __post_init__(self) -> None:
        if self.prefix is None:
            raise ValueError("ContextData.prefix must be a string (use '' for an empty prefix)")
        if self.history is not None:
            history = tuple(
                entry if isinstance(entry, HistoryEntry) else HistoryEntry(entry["role"], entry["content"])
                for entry in self.history
            )
            if not history:
                raise ValueError("ContextData.history must be None or a non-empty sequence")
            object.__setattr__(self, "history", history)

    @classmethod
    def for_chat(
        cls,
        message: str,
        history: Iterable[HistoryEntry] = (),
        system_prompt: str | None = None,
    ) -> "ContextData":
        """Context for a chat turn: prior history followed by the new user message."""
        entries = list(history)
        entries.append(HistoryEntry(Role.USER, message))
        return cls(prefix=message, system_prompt=system_prompt, history=tuple(entries))
