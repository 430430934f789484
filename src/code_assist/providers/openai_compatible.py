import json
import logging
from typing import Any, Dict

from .base import ParsedChunk, Provider
from ..core.errors import ProviderError
from ..core.request import RequestType
from ..utils.config import Settings, PROVIDER_OPENAI_COMPATIBLE, PROVIDER_LM_STUDIO

logger = logging.getLogger(__name__)

SSE_DATA_PREFIX = b"data:"
SSE_DONE = b"[DONE]"


class OpenAICompatibleProvider(Provider):
    """Any backend speaking the OpenAI HTTP API with server-sent event streaming."""

    name = PROVIDER_OPENAI_COMPATIBLE
    url = "http://localhost:8080"
    chat_endpoint = "/v1/chat/completions"
    completion_endpoint = "/v1/completions"

    def prepare_request(self, request: Dict[str, Any], request_type: RequestType, settings: Settings) -> None:
        request["max_tokens"] = settings.MAX_TOKENS
        request["temperature"] = settings.TEMPERATURE
        # top_k is not part of this wire format
        request.update(self._optional_sampling(settings, {
            "top_p": "top_p",
            "presence_penalty": "presence_penalty",
            "frequency_penalty": "frequency_penalty",
        }))
        request["stream"] = True

    def headers(self, settings: Settings) -> Dict[str, str]:
        if settings.API_KEY:
            return {"Authorization": f"Bearer {settings.API_KEY}"}
        return {}

    def parse_frame(self, frame: bytes, request_type: RequestType) -> ParsedChunk | None:
        line = frame.strip()
        if line.startswith(b":"):
            return None  # SSE comment / keep-alive
        if not line.startswith(SSE_DATA_PREFIX):
            if line.startswith((b"event:", b"id:", b"retry:")):
                return None
            raise self._invalid(frame, "expected an SSE 'data:' line")

        data = line[len(SSE_DATA_PREFIX):].strip()
        if data == SSE_DONE:
            return ParsedChunk("", True)
        try:
            chunk = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise self._invalid(frame, f"invalid JSON ({e})") from e
        if not isinstance(chunk, dict):
            raise self._invalid(frame, "expected a JSON object")

        if "error" in chunk:
            error = chunk["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise ProviderError(f"{self.name} error: {message}")

        choices = chunk.get("choices") or []
        if not choices:
            return None  # usage-only frames
        choice = choices[0]
        if request_type == RequestType.CHAT:
            text = (choice.get("delta") or {}).get("content") or ""
        else:
            text = choice.get("text") or ""
        return ParsedChunk(text, choice.get("finish_reason") is not None)


class LMStudioProvider(OpenAICompatibleProvider):
    """LM Studio's local server; OpenAI wire format without authentication."""

    name = PROVIDER_LM_STUDIO
    url = "http://localhost:1234"

    def headers(self, settings: Settings) -> Dict[str, str]:
        return {}
