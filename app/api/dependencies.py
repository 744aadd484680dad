"""FastAPI dependencies: the shared OpenAI client and settings built by the app factory."""

from typing import Any

from fastapi import HTTPException, Request, status

from app.core.config import Settings


def get_openai_client(request: Request) -> Any:
    """Return the AsyncOpenAI client owned by the application."""
    client = getattr(request.app.state, "openai_client", None)
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Chat model client not configured"
        )
    return client


def get_settings(request: Request) -> Settings:
    """Return the Settings loaded at startup."""
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Settings not loaded"
        )
    return settings
