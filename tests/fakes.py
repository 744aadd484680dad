"""
Shared fakes: an AsyncOpenAI stand-in with scripted vector store results and
completion deltas, so tests never reach the network.
"""

import asyncio
from types import SimpleNamespace
from typing import Any

from app.schemas.chat import ChatMessage


def text_block(text: str) -> SimpleNamespace:
    return SimpleNamespace(type="text", text=text)


def search_result(content: Any, filename: str = "", attributes: dict | None = None, score: float = 0.5):
    return SimpleNamespace(
        content=content if not isinstance(content, str) else [text_block(content)],
        filename=filename,
        attributes=attributes or {},
        score=score,
        file_id="file-123",
    )


def completion_chunk(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


class FakeStream:
    """
    Async iterable of completion chunks; optionally fails after the scripted deltas,
    or hangs once `stall_after` chunks have been sent.
    """

    def __init__(self, deltas: list[str], error: Exception | None = None, on_chunk=None,
                 stall_after: int | None = None) -> None:
        self.deltas = deltas
        self.error = error
        self.on_chunk = on_chunk
        self.stall_after = stall_after
        self.closed = False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for i, d in enumerate(self.deltas):
            if self.stall_after is not None and i >= self.stall_after:
                await asyncio.sleep(3600)
            if self.on_chunk is not None:
                self.on_chunk(i)
            yield completion_chunk(d)
        if self.error is not None:
            raise self.error

    async def close(self) -> None:
        await asyncio.sleep(0)
        self.closed = True


class FakeCompletions:
    def __init__(self, deltas: list[str], error: Exception | None = None,
                 stream_error: Exception | None = None, stall_after: int | None = None) -> None:
        self.deltas = deltas
        self.error = error
        self.stream_error = stream_error
        self.stall_after = stall_after
        self.calls: list[dict[str, Any]] = []
        self.streams: list[FakeStream] = []

    async def create(self, **kwargs: Any) -> FakeStream:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        stream = FakeStream(list(self.deltas), self.stream_error, stall_after=self.stall_after)
        self.streams.append(stream)
        return stream


class FakeVectorStores:
    def __init__(self, results: list | None = None, error: Exception | None = None,
                 delay: float = 0.0) -> None:
        self.results = results or []
        self.error = error
        self.delay = delay
        self.calls: list[dict[str, Any]] = []

    async def search(self, vector_store_id: str, **kwargs: Any) -> SimpleNamespace:
        self.calls.append({"vector_store_id": vector_store_id, **kwargs})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(data=list(self.results))


class FakeOpenAI:
    def __init__(
        self,
        results: list | None = None,
        deltas: list[str] | None = None,
        search_error: Exception | None = None,
        create_error: Exception | None = None,
        stream_error: Exception | None = None,
        search_delay: float = 0.0,
        stall_after: int | None = None,
    ) -> None:
        self.vector_stores = FakeVectorStores(results, search_error, search_delay)
        self.completions = FakeCompletions(
            deltas if deltas is not None else ["Hello", " there"], create_error, stream_error, stall_after
        )
        self.chat = SimpleNamespace(completions=self.completions)
        self.closed = False

    async def close(self) -> None:
        self.closed = True

    @property
    def last_call(self) -> dict[str, Any]:
        return self.completions.calls[-1]

    @property
    def system_prompt(self) -> str:
        return self.last_call["messages"][0]["content"]


def user_message(*parts: dict[str, Any]) -> ChatMessage:
    return ChatMessage(id="m1", role="user", parts=list(parts))


def text_part(text: str) -> dict[str, Any]:
    return {"type": "text", "text": text}


def image_part(url: str = "data:image/png;base64,AAAA") -> dict[str, Any]:
    return {"type": "file", "mediaType": "image/png", "url": url}


