"""
API handlers: call services, map results/errors to HTTP.

Responsibility: Bridge HTTP types and services. Marshalling and exception-to-HTTP mapping.
Lives in the API layer so services stay free of FastAPI/HTTP types.
"""

import asyncio
import logging
import time
from typing import Any

from fastapi import HTTPException
from fastapi.responses import StreamingResponse

from app.api.stream_protocol import STREAM_HEADERS, ui_message_stream
from app.core.config import Settings
from app.core.errors import GenerationTimeoutError, ServiceUnavailableError
from app.schemas.chat import ChatRequest
from app.services.chat_service import prepare_reply

logger = logging.getLogger(__name__)


async def handle_chat(body: ChatRequest, client: Any, settings: Settings) -> StreamingResponse:
    """
    Prepare the reply (retrieval, prompt, opened completion) before responding so
    failures to start generation become 502/504; later failures end the stream with
    an error event.
    """
    deadline = time.monotonic() + settings.max_duration_seconds
    cancel_event = asyncio.Event()
    try:
        reply = await prepare_reply(
            body.messages, client, settings, cancel_event=cancel_event, deadline=deadline
        )
    except GenerationTimeoutError as e:
        logger.warning("[api:handle_chat] timed out before streaming: %s", e)
        raise HTTPException(status_code=504, detail="The assistant took too long to respond.") from e
    except ServiceUnavailableError as e:
        logger.exception("[api:handle_chat] chat model request failed")
        raise HTTPException(status_code=502, detail=e.message) from e

    logger.info("[api:handle_chat] streaming model=%s augmented=%s", reply.model, reply.augmented)
    return StreamingResponse(
        ui_message_stream(reply, cancel_event),
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
    )
