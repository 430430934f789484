"""Values exchanged between the facades and the RequestHandler."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping

if TYPE_CHECKING:
    from ..providers.base import Provider
    from ..templates.base import PromptTemplate


class RequestType(str, Enum):
    COMPLETION = "completion"
    CHAT = "chat"


def new_request_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class RequestConfig:
    """Everything needed to send one request. Built fresh per request."""
    request_type: RequestType
    provider: "Provider"
    prompt_template: "PromptTemplate"
    url: str
    provider_request: dict[str, Any]
    multi_line_completion: bool = False
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.provider is None:
            raise ValueError("RequestConfig requires a provider")
        if self.prompt_template is None:
            raise ValueError("RequestConfig requires a prompt template")
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))


@dataclass(frozen=True)
class RequestEnvelope:
    """Correlation id for one submission, echoed back on every event."""
    id: str = field(default_factory=new_request_id)


# ---------------------------------------------------------------------
# Events emitted by the RequestHandler
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class CompletionReceived:
    envelope: RequestEnvelope
    text: str
    delta: str
    is_complete: bool

    @property
    def request_id(self) -> str:
        return self.envelope.id


@dataclass(frozen=True)
class RequestFinished:
    request_id: str
    success: bool
    error: str = ""


@dataclass(frozen=True)
class RequestCancelled:
    request_id: str


Event = CompletionReceived | RequestFinished | RequestCancelled
