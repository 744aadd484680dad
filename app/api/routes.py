"""
API route aggregator: register endpoints; no logic, only delegate to handlers.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from app.api.dependencies import get_openai_client, get_settings
from app.api.handlers import handle_chat
from app.core.config import Settings
from app.schemas.chat import ChatRequest

logger = logging.getLogger(__name__)
router = APIRouter()


# --- System ---

@router.get("/", tags=["system"])
def root():
    return {"status": "Fitment chat backend running"}


@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


# --- Chat ---

@router.post(
    "/api/chat",
    tags=["chat"],
    summary="Chat with the fitment assistant (UI message stream)",
    description=(
        "Send the full conversation as UI messages; receive the assistant reply as a "
        "Server-Sent Events UI message stream. 422 on invalid body, 502 if the chat model "
        "cannot be reached, 504 on timeout."
    ),
)
async def post_chat(
    body: ChatRequest,
    client: Any = Depends(get_openai_client),
    settings: Settings = Depends(get_settings),
) -> StreamingResponse:
    logger.info("[api:post_chat] IN  messages=%d last_role=%s", len(body.messages), body.messages[-1].role)
    return await handle_chat(body, client, settings)
