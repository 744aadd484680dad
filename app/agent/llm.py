"""
Chat model access: model selection, UI message conversion, and streamed completions.

The AsyncOpenAI client is created by the app factory and passed in; nothing here
builds its own client.
"""

import asyncio
import logging
from typing import Any, AsyncIterator

import anyio
import httpx
import openai

from app.core.config import Settings, TEMPERATURE
from app.core.deadline import remaining_seconds
from app.core.errors import GenerationTimeoutError, ServiceUnavailableError
from app.schemas.chat import ChatMessage

logger = logging.getLogger(__name__)


def select_model(visual: bool, settings: Settings) -> str:
    """Vision-capable model for image attachments, lighter model otherwise."""
    return settings.vision_model if visual else settings.text_model


def _message_text(message: ChatMessage) -> str:
    return "\n".join(p.text or "" for p in message.parts if p.is_text).strip()


def _user_content(message: ChatMessage) -> list[dict[str, Any]]:
    blocks: list[dict[str, Any]] = []
    for part in message.parts:
        if part.is_text:
            if part.text:
                blocks.append({"type": "text", "text": part.text})
        elif part.is_image:
            blocks.append({"type": "image_url", "image_url": {"url": part.url}})
        elif part.type == "file":
            blocks.append({
                "type": "file",
                "file": {"file_data": part.url, "filename": part.filename or "attachment"},
            })
    return blocks


def to_openai_messages(system_prompt: str, messages: list[ChatMessage]) -> list[dict[str, Any]]:
    """
    Build chat-completions messages: system prompt first, then the conversation.
    User messages keep text and file parts as content blocks; assistant and system
    messages become plain text. Messages with nothing to send are dropped.
    """
    out: list[dict[str, Any]] = [{"role": "system", "content": system_prompt}]
    for m in messages:
        if m.role == "user":
            content = _user_content(m)
            if content:
                out.append({"role": "user", "content": content})
        else:
            text = _message_text(m)
            if text:
                out.append({"role": m.role, "content": text})
    return out


async def open_completion_stream(
    client: Any,
    model: str,
    messages: list[dict[str, Any]],
    temperature: float = TEMPERATURE,
    deadline: float | None = None,
) -> Any:
    """
    Start a streaming chat completion. The remaining time before `deadline`
    (monotonic seconds) bounds the HTTP call. API failures surface as
    ServiceUnavailableError, timeouts as GenerationTimeoutError.
    """
    remaining = remaining_seconds(deadline)
    logger.info("[llm:open_completion_stream] IN  model=%s messages=%d temperature=%.2f timeout=%s",
                model, len(messages), temperature,
                f"{remaining:.1f}s" if remaining is not None else None)
    kwargs: dict[str, Any] = {}
    if remaining is not None:
        kwargs["timeout"] = httpx.Timeout(remaining)
    try:
        return await client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=temperature,
            stream=True,
            **kwargs,
        )
    except openai.APITimeoutError as e:
        raise GenerationTimeoutError() from e
    except openai.APIError as e:
        raise ServiceUnavailableError(f"Chat model request failed: {e!s}") from e


_END = object()
_ABORTED = object()


async def _pull(iterator: Any) -> Any:
    try:
        return await iterator.__anext__()
    except StopAsyncIteration:
        return _END


async def _next_chunk(iterator: Any, cancel_event: asyncio.Event | None, deadline: float | None) -> Any:
    """
    Wait for the next chunk, the cancel event, or the deadline, whichever comes first.
    Returns the chunk, _END when the stream is exhausted, or _ABORTED on cancel.
    """
    remaining = remaining_seconds(deadline)
    pull = asyncio.ensure_future(_pull(iterator))
    waiters = {pull}
    stop = None
    if cancel_event is not None:
        stop = asyncio.ensure_future(cancel_event.wait())
        waiters.add(stop)
    try:
        done, _ = await asyncio.wait(waiters, timeout=remaining, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in waiters:
            if not task.done():
                task.cancel()
    if pull in done:
        return pull.result()
    if stop is not None and stop in done:
        return _ABORTED
    raise GenerationTimeoutError()


async def iter_text_deltas(
    stream: Any,
    cancel_event: asyncio.Event | None = None,
    deadline: float | None = None,
    label: str = "primary",
) -> AsyncIterator[str]:
    """
    Yield text deltas from an open completion stream.

    Each wait for the next chunk is bounded by `deadline` and interrupted by
    `cancel_event`. A set event ends the iteration quietly; a passed deadline
    raises GenerationTimeoutError. The upstream stream is closed on every exit,
    including task cancellation.
    """
    chunks = 0
    iterator = stream.__aiter__()
    try:
        while True:
            if cancel_event is not None and cancel_event.is_set():
                logger.info("[llm:iter_text_deltas] stream aborted by client (%s path)", label)
                return
            try:
                chunk = await _next_chunk(iterator, cancel_event, deadline)
            except GenerationTimeoutError:
                logger.warning("[llm:iter_text_deltas] deadline exceeded after %d chunks (%s path)",
                               chunks, label)
                raise
            if chunk is _END:
                break
            if chunk is _ABORTED or (cancel_event is not None and cancel_event.is_set()):
                logger.info("[llm:iter_text_deltas] stream aborted by client (%s path)", label)
                return
            if not chunk.choices:
                continue
            delta = getattr(chunk.choices[0].delta, "content", None)
            if delta:
                chunks += 1
                yield delta
    except openai.APITimeoutError as e:
        raise GenerationTimeoutError() from e
    except asyncio.CancelledError:
        logger.info("[llm:iter_text_deltas] request cancelled after %d chunks (%s path)", chunks, label)
        raise
    finally:
        with anyio.CancelScope(shield=True):
            await stream.close()
    logger.info("[llm:iter_text_deltas] OUT chunks=%d (%s path)", chunks, label)
