"""
UI message stream encoding (Server-Sent Events) for AI SDK chat front ends.

Each event is `data: <json>\\n\\n`; the stream ends with `data: [DONE]`.
"""

import asyncio
import json
import logging
import uuid
from typing import Any, AsyncIterable, AsyncIterator

logger = logging.getLogger(__name__)

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
    "x-vercel-ai-ui-message-stream": "v1",
}


def sse_event(payload: dict[str, Any] | str) -> str:
    data = payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False)
    return f"data: {data}\n\n"


async def ui_message_stream(
    chunks: AsyncIterable[str],
    cancel_event: asyncio.Event | None = None,
    message_id: str | None = None,
) -> AsyncIterator[str]:
    """
    Wrap text chunks in start / text-delta / finish events.
    Errors while streaming become an `error` event. A client disconnect cancels
    this generator; `cancel_event` is set so the reply is marked as aborted.
    """
    message_id = message_id or f"msg-{uuid.uuid4().hex}"
    text_id = f"text-{uuid.uuid4().hex[:12]}"
    yield sse_event({"type": "start", "messageId": message_id})
    yield sse_event({"type": "start-step"})
    yield sse_event({"type": "text-start", "id": text_id})
    try:
        async for delta in chunks:
            yield sse_event({"type": "text-delta", "id": text_id, "delta": delta})
    except asyncio.CancelledError:
        logger.info("[stream] client disconnected, cancelling generation")
        if cancel_event is not None:
            cancel_event.set()
        raise
    except Exception as e:
        logger.exception("[stream] UI message stream failed")
        yield sse_event({"type": "error", "errorText": str(e) or type(e).__name__})
        yield sse_event("[DONE]")
        return
    if cancel_event is not None and cancel_event.is_set():
        yield sse_event({"type": "abort"})
        yield sse_event("[DONE]")
        return
    yield sse_event({"type": "text-end", "id": text_id})
    yield sse_event({"type": "finish-step"})
    yield sse_event({"type": "finish"})
    yield sse_event("[DONE]")
