"""Byte-stream transport the RequestHandler drives.

The handler only needs ``open(url, body, headers) -> handle``, an async
iteration over raw chunks, and ``abort(handle)``. ``RequestsTransport`` is the
default: it streams with ``requests`` on a worker thread and marshals every
chunk back onto the owning event loop, so handlers never run off-loop.
"""

import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, Optional

import requests

from .errors import TransportError

logger = logging.getLogger(__name__)

_END = object()


class StreamHandle(ABC):
    """An open response stream yielding raw ``bytes`` chunks."""

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self.chunks()

    @abstractmethod
    def chunks(self) -> AsyncIterator[bytes]:
        pass

    @abstractmethod
    def close(self) -> None:
        """Stop the stream; no further chunks are delivered. Idempotent."""
        pass


class Transport(ABC):
    @abstractmethod
    def open(self, url: str, body: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> StreamHandle:
        """Start sending ``body`` to ``url``. Failures surface as TransportError while iterating."""
        pass

    def abort(self, handle: StreamHandle) -> None:
        handle.close()


class RequestsStream(StreamHandle):
    def __init__(
        self,
        session: requests.Session,
        url: str,
        body: Dict[str, Any],
        headers: Dict[str, str],
        timeout: Optional[float],
        loop: asyncio.AbstractEventLoop,
    ):
        self.url = url
        self._session = session
        self._body = body
        self._headers = headers
        self._timeout = timeout
        self._loop = loop
        self._queue: asyncio.Queue = asyncio.Queue()
        self._cancel_event = threading.Event()
        self._response: Optional[requests.Response] = None
        self._thread = threading.Thread(target=self._stream_to_queue, daemon=True, name="code-assist-stream")
        self._thread.start()

    def _post(self, item: Any) -> None:
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, item)
        except RuntimeError:
            # Owning loop already closed; nobody is left to read the stream
            logger.debug(f"Dropping stream item for {self.url}: event loop is closed")

    def _stream_to_queue(self) -> None:
        """Run the blocking request and push chunks, errors and the end marker to the queue."""
        try:
            response = self._session.post(
                self.url,
                json=self._body,
                headers=self._headers,
                stream=True,
                timeout=self._timeout,
            )
            self._response = response
            if self._cancel_event.is_set():
                return
            if not response.ok:
                detail = response.text[:200]
                raise TransportError(f"HTTP {response.status_code} from {self.url}: {detail}".strip(), status_code=response.status_code)
            for chunk in response.iter_content(chunk_size=None):
                if self._cancel_event.is_set():
                    return
                if chunk:
                    self._post(chunk)
        except TransportError as e:
            self._post(e)
        except requests.exceptions.ConnectionError as e:
            if not self._cancel_event.is_set():
                logger.debug(f"Connection error for {self.url}: {e}")
                self._post(TransportError(f"Could not connect to {self.url}. Ensure the server is running."))
        except requests.exceptions.RequestException as e:
            if not self._cancel_event.is_set():
                self._post(TransportError(str(e)))
        except Exception as e:
            # Closing the response from another thread can break iteration midway
            if self._cancel_event.is_set():
                logger.debug(f"Stream to {self.url} stopped after abort: {e}")
            else:
                self._post(TransportError(f"Unexpected transport error: {e}"))
        finally:
            self._post(_END)
            if self._response is not None:
                self._response.close()

    async def chunks(self) -> AsyncIterator[bytes]:
        while True:
            item = await self._queue.get()
            if item is _END:
                return
            if isinstance(item, BaseException):
                raise item
            yield item

    def close(self) -> None:
        self._cancel_event.set()
        if self._response is not None:
            self._response.close()


class RequestsTransport(Transport):
    """Streams over HTTP with a shared ``requests.Session``.

    Must be used from inside a running event loop; that loop becomes the owner
    every chunk is delivered to.
    """

    def __init__(self, session: Optional[requests.Session] = None, timeout: Optional[float] = None):
        self.session = session or requests.Session()
        self.timeout = timeout

    def open(self, url: str, body: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> RequestsStream:
        loop = asyncio.get_running_loop()
        return RequestsStream(self.session, url, body, dict(headers or {}), self.timeout, loop)
