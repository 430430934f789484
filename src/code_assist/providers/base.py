from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List
import logging

from ..core.errors import ParseError
from ..core.request import RequestType
from ..utils.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedChunk:
    """Text extracted from one or more stream frames."""
    text: str = ""
    is_complete: bool = False


class FrameBuffer:
    """Reassembles newline-terminated frames from arbitrarily split transport chunks.

    One buffer belongs to one in-flight request; providers stay stateless.
    """

    def __init__(self):
        self._pending = b""

    def feed(self, data: bytes) -> List[bytes]:
        """Add raw bytes and return every frame completed by them (without line endings)."""
        self._pending += data
        *frames, self._pending = self._pending.split(b"\n")
        return [frame.rstrip(b"\r") for frame in frames]

    def flush(self) -> bytes:
        """Return and clear whatever is left after the last newline."""
        rest, self._pending = self._pending, b""
        return rest.rstrip(b"\r")

    @property
    def pending(self) -> bytes:
        return self._pending


class Provider(ABC):
    """Abstract base class for LLM backends.

    A provider knows its endpoints, how to authenticate, which provider-specific
    fields to add to a payload and how to read its own streaming wire format.
    Instances are shared and must not keep per-request state; the frame buffer
    passed to ``parse_chunk`` carries it instead.
    """

    name: str = ""
    url: str = ""
    chat_endpoint: str = ""
    completion_endpoint: str = ""

    def endpoint(self, request_type: RequestType) -> str:
        return self.chat_endpoint if request_type == RequestType.CHAT else self.completion_endpoint

    @abstractmethod
    def prepare_request(self, request: Dict[str, Any], request_type: RequestType, settings: Settings) -> None:
        """Add streaming flag and sampling parameters to ``request`` in place."""
        pass

    def headers(self, settings: Settings) -> Dict[str, str]:
        """HTTP headers for authentication; none by default."""
        return {}

    @abstractmethod
    def parse_frame(self, frame: bytes, request_type: RequestType) -> ParsedChunk | None:
        """Interpret one complete frame. Return None for frames that carry nothing (keep-alives, comments)."""
        pass

    def parse_chunk(self, raw: bytes, frames: FrameBuffer, request_type: RequestType = RequestType.CHAT) -> ParsedChunk:
        """Parse a raw transport chunk, buffering any incomplete trailing frame.

        Raises:
            ParseError: a complete frame is malformed.
        """
        return self._merge(self.parse_frame(frame, request_type) for frame in frames.feed(raw) if frame.strip())

    def finish(self, frames: FrameBuffer, request_type: RequestType = RequestType.CHAT) -> ParsedChunk:
        """Parse the unterminated tail left in ``frames`` once the stream has closed."""
        rest = frames.flush()
        if not rest.strip():
            return ParsedChunk()
        return self._merge([self.parse_frame(rest, request_type)])

    @staticmethod
    def _merge(parsed) -> ParsedChunk:
        text = ""
        is_complete = False
        for chunk in parsed:
            if chunk is None or is_complete:
                # Anything after an end-of-stream frame is ignored
                continue
            text += chunk.text
            is_complete = chunk.is_complete
        return ParsedChunk(text, is_complete)

    def _optional_sampling(self, settings: Settings, names: Dict[str, str]) -> Dict[str, Any]:
        """Collect the sampling fields whose ``USE_*`` flag is set, keyed by wire name."""
        optional = {
            "top_p": ("USE_TOP_P", "TOP_P"),
            "top_k": ("USE_TOP_K", "TOP_K"),
            "presence_penalty": ("USE_PRESENCE_PENALTY", "PRESENCE_PENALTY"),
            "frequency_penalty": ("USE_FREQUENCY_PENALTY", "FREQUENCY_PENALTY"),
        }
        result = {}
        for key, wire_name in names.items():
            flag, value = optional[key]
            if getattr(settings, flag):
                result[wire_name] = getattr(settings, value)
        return result

    @staticmethod
    def _invalid(frame: bytes, reason: str) -> ParseError:
        logger.debug(f"Malformed frame ({reason}): {frame[:200]!r}")
        return ParseError(f"Malformed stream frame: {reason}", frame=frame)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
