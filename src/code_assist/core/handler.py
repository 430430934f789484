"""
RequestHandler: owns in-flight LLM requests and turns their streams into events.

Lifecycle per correlation id:
    IDLE -> SENT -> STREAMING -> COMPLETED | CANCELLED | FAILED

Rules:
- At most one in-flight request per id; submitting again cancels the old one.
- Every event for an id is emitted from the owning event loop, in chunk order.
- Nothing is emitted for an id after its terminal event.
- No retries and no timeouts; both are caller policy.
"""

from __future__ import annotations

import asyncio
import copy
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, List

from .errors import CodeAssistError
from .request import (
    CompletionReceived,
    Event,
    RequestCancelled,
    RequestConfig,
    RequestEnvelope,
    RequestFinished,
    RequestType,
)
from .transport import RequestsTransport, StreamHandle, Transport
from ..providers.base import FrameBuffer, ParsedChunk
from ..utils.logging import RequestLogger

log = RequestLogger(__name__)

EventSink = Callable[[Event], None]


class RequestState(str, Enum):
    IDLE = "idle"
    SENT = "sent"
    STREAMING = "streaming"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


_TERMINAL = (RequestState.COMPLETED, RequestState.CANCELLED, RequestState.FAILED)


@dataclass
class InFlightRequest:
    config: RequestConfig
    envelope: RequestEnvelope
    stream: StreamHandle
    frames: FrameBuffer = field(default_factory=FrameBuffer)
    accumulated_text: str = ""
    emitted_text: str = ""
    cancelled: bool = False
    state: RequestState = RequestState.SENT
    task: asyncio.Task | None = None
    started_at: float = field(default_factory=time.monotonic)

    @property
    def id(self) -> str:
        return self.envelope.id

    @property
    def elapsed_ms(self) -> float:
        return (time.monotonic() - self.started_at) * 1000


def find_stop_word(text: str, stop_words: Iterable[str]) -> int | None:
    """Index of the earliest occurrence of any stop word in ``text``."""
    positions = [text.find(word) for word in stop_words if word]
    positions = [pos for pos in positions if pos != -1]
    return min(positions) if positions else None


def held_back_length(text: str, stop_words: Iterable[str]) -> int:
    """Length of the longest suffix of ``text`` that could still grow into a stop word."""
    longest = 0
    for word in stop_words:
        for size in range(min(len(word) - 1, len(text)), longest, -1):
            if text.endswith(word[:size]):
                longest = size
                break
    return longest


def find_line_end(text: str) -> int | None:
    """Index of the first newline that follows non-blank content."""
    content_start = len(text) - len(text.lstrip())
    if content_start == len(text):
        return None
    index = text.find("\n", content_start)
    return index if index != -1 else None


class RequestHandler:
    """Submits requests through a Transport and emits CompletionReceived /
    RequestFinished / RequestCancelled events to its listeners.

    All public methods must be called from the event loop that owns the handler.
    """

    def __init__(self, transport: Transport | None = None, emit_event: EventSink | None = None):
        self._transport = transport or RequestsTransport()
        self._listeners: List[EventSink] = []
        if emit_event is not None:
            self._listeners.append(emit_event)
        self._active: dict[str, InFlightRequest] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add_listener(self, listener: EventSink) -> None:
        self._listeners.append(listener)

    def submit(self, config: RequestConfig, envelope: RequestEnvelope) -> None:
        """Send a request; any in-flight request with the same id is cancelled first."""
        loop = asyncio.get_running_loop()
        if envelope.id in self._active:
            log.debug(f"Replacing in-flight request {envelope.id}")
            self.cancel(envelope.id)

        body = copy.deepcopy(config.provider_request)
        stream = self._transport.open(config.url, body, dict(config.headers))
        request = InFlightRequest(config=config, envelope=envelope, stream=stream)
        self._active[envelope.id] = request
        log.request_sent(envelope.id, config.url, config.provider.name, config.prompt_template.name, body)
        request.task = loop.create_task(self._run(request), name=f"llm-request-{envelope.id[:8]}")

    def cancel(self, request_id: str) -> bool:
        """
        Cancel an in-flight request.

        Returns False (and does nothing) when no request is in flight for the id.
        After this returns no CompletionReceived or RequestFinished is emitted
        for the cancelled request, only a single RequestCancelled.
        """
        request = self._active.pop(request_id, None)
        if request is None:
            return False

        request.cancelled = True
        request.state = RequestState.CANCELLED
        self._transport.abort(request.stream)
        task = request.task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
        log.request_cancelled(request_id)
        self._emit(RequestCancelled(request_id))
        return True

    def cancel_all(self) -> None:
        for request_id in list(self._active):
            self.cancel(request_id)

    def state(self, request_id: str) -> RequestState:
        request = self._active.get(request_id)
        return request.state if request is not None else RequestState.IDLE

    def active_ids(self) -> List[str]:
        return list(self._active)

    async def wait(self, request_id: str) -> None:
        """Wait until the request for ``request_id`` (if any) has reached a terminal state."""
        request = self._active.get(request_id)
        if request is not None and request.task is not None:
            await asyncio.gather(request.task, return_exceptions=True)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _run(self, request: InFlightRequest) -> None:
        provider = request.config.provider
        request_type = request.config.request_type
        try:
            async for raw in request.stream:
                if request.cancelled:
                    return
                if request.state == RequestState.SENT:
                    request.state = RequestState.STREAMING
                parsed = provider.parse_chunk(raw, request.frames, request_type)
                if self._consume(request, parsed) or request.cancelled:
                    break
            else:
                if request.cancelled:
                    return
                self._consume(request, provider.finish(request.frames, request_type), end_of_stream=True)

            if request.cancelled:
                return
            self._complete(request)

        except asyncio.CancelledError:
            if request.cancelled:
                return
            raise
        except CodeAssistError as e:
            if request.cancelled:
                return
            if request.state in _TERMINAL:
                raise
            self._fail(request, str(e))
        except Exception as e:  # pylint: disable=broad-exception-caught
            if request.cancelled:
                return
            if request.state in _TERMINAL:
                # A listener failed while handling the terminal event
                raise
            log.error(f"Unexpected error while handling request {request.id}: {type(e).__name__}: {e}")
            self._fail(request, f"{type(e).__name__}: {e}")
        finally:
            self._release(request)

    def _consume(self, request: InFlightRequest, parsed: ParsedChunk, end_of_stream: bool = False) -> bool:
        """Apply a parsed chunk; emit CompletionReceived. Returns True when the response is complete."""
        previous = request.emitted_text
        text = request.accumulated_text + parsed.text
        stop_words = request.config.prompt_template.stop_words()
        is_complete = parsed.is_complete or end_of_stream

        stop_at = find_stop_word(text, stop_words)
        if stop_at is not None:
            text = text[:stop_at]
            is_complete = True

        if request.config.request_type == RequestType.COMPLETION and not request.config.multi_line_completion:
            line_end = find_line_end(text)
            if line_end is not None:
                text = text[:line_end]
                is_complete = True

        request.accumulated_text = text
        if not is_complete:
            # A partial stop word stays unsent until the next chunk settles it
            text = text[:len(text) - held_back_length(text, stop_words)]
        delta = text[len(previous):]
        request.emitted_text = text
        if not delta and not is_complete:
            return False

        self._emit(CompletionReceived(request.envelope, text, delta, is_complete), request)
        return is_complete

    def _complete(self, request: InFlightRequest) -> None:
        request.state = RequestState.COMPLETED
        self._release(request)
        log.request_finished(request.id, len(request.accumulated_text), request.elapsed_ms)
        self._emit(RequestFinished(request.id, True, ""))

    def _fail(self, request: InFlightRequest, error: str) -> None:
        request.state = RequestState.FAILED
        self._release(request)
        log.request_failed(request.id, error, request.elapsed_ms)
        self._emit(RequestFinished(request.id, False, error))

    def _release(self, request: InFlightRequest) -> None:
        self._transport.abort(request.stream)
        if self._active.get(request.id) is request:
            del self._active[request.id]

    def _emit(self, event: Event, request: InFlightRequest | None = None) -> None:
        for listener in list(self._listeners):
            if request is not None and request.cancelled:
                # A listener cancelled the request mid-dispatch
                return
            listener(event)
