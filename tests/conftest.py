import asyncio

import pytest

from code_assist.core.transport import StreamHandle, Transport
from code_assist.utils.config import Settings

_END = object()


class FakeStream(StreamHandle):
    """In-memory stream; tests push chunks and decide when it ends."""

    def __init__(self, url, body, headers):
        self.url = url
        self.body = body
        self.headers = headers
        self.closed = False
        self._queue = asyncio.Queue()

    def push(self, data):
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._queue.put_nowait(data)

    def end(self):
        self._queue.put_nowait(_END)

    def fail(self, exc):
        self._queue.put_nowait(exc)

    async def chunks(self):
        while True:
            item = await self._queue.get()
            if item is _END:
                return
            if isinstance(item, BaseException):
                raise item
            yield item

    def close(self):
        if not self.closed:
            self.closed = True
            self._queue.put_nowait(_END)


class FakeTransport(Transport):
    def __init__(self):
        self.streams = []
        self.aborted = []

    def open(self, url, body, headers=None):
        stream = FakeStream(url, body, headers or {})
        self.streams.append(stream)
        return stream

    def abort(self, handle):
        self.aborted.append(handle)
        handle.close()

    @property
    def last(self) -> FakeStream:
        return self.streams[-1]


async def settle(rounds: int = 20):
    """Give the event loop enough turns to process queued chunks."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def settings():
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        CHAT_PROVIDER="Ollama",
        CHAT_TEMPLATE="Llama 3",
        CHAT_URL="http://llm.test:11434",
        CHAT_MODEL="llama3",
        COMPLETION_PROVIDER="Ollama",
        COMPLETION_TEMPLATE="CodeLlama FIM",
        COMPLETION_URL="http://llm.test:11434/",
        COMPLETION_MODEL="codellama:7b-code",
        USE_SYSTEM_PROMPT=True,
        SYSTEM_PROMPT="be terse",
        HISTORY_FILE=None,
    )


@pytest.fixture
def events():
    """A list that doubles as a RequestHandler listener."""
    class EventLog(list):
        def __call__(self, event):
            self.append(event)

        def of_type(self, event_type):
            return [e for e in self if isinstance(e, event_type)]

    return EventLog()
