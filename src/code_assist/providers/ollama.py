import json
import logging
from typing import Any, Dict

from .base import ParsedChunk, Provider
from ..core.errors import ProviderError
from ..core.request import RequestType
from ..utils.config import Settings, PROVIDER_OLLAMA

logger = logging.getLogger(__name__)


class OllamaProvider(Provider):
    """Ollama's native API: newline-delimited JSON objects, one per token batch."""

    name = PROVIDER_OLLAMA
    url = "http://localhost:11434"
    chat_endpoint = "/api/chat"
    completion_endpoint = "/api/generate"

    def prepare_request(self, request: Dict[str, Any], request_type: RequestType, settings: Settings) -> None:
        options = {
            "temperature": settings.TEMPERATURE,
            "num_predict": settings.MAX_TOKENS,
        }
        options.update(self._optional_sampling(settings, {
            "top_p": "top_p",
            "top_k": "top_k",
            "presence_penalty": "presence_penalty",
            "frequency_penalty": "frequency_penalty",
        }))
        request["options"] = options
        request["keep_alive"] = settings.OLLAMA_KEEP_ALIVE
        request["stream"] = True

    def parse_frame(self, frame: bytes, request_type: RequestType) -> ParsedChunk | None:
        try:
            chunk = json.loads(frame)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise self._invalid(frame, f"invalid JSON ({e})") from e
        if not isinstance(chunk, dict):
            raise self._invalid(frame, "expected a JSON object")

        if "error" in chunk:
            error_msg = str(chunk["error"])
            if "GGML_ASSERT" in error_msg:
                logger.warning("Ollama reported GGML_ASSERT; this might be a model compatibility issue")
            raise ProviderError(f"Ollama error: {error_msg}")

        if request_type == RequestType.CHAT:
            text = (chunk.get("message") or {}).get("content", "")
        else:
            text = chunk.get("response", "")
        return ParsedChunk(text or "", bool(chunk.get("done", False)))
