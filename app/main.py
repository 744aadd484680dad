# Run from project root: uvicorn app.main:app --reload

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from openai import AsyncOpenAI

from app.api.routes import router
from app.core.config import LOG_LEVEL, Settings, load_settings

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)


def create_app(client: Any = None, settings: Settings | None = None) -> FastAPI:
    """
    Composition root. Settings and the AsyncOpenAI client are created once at
    startup unless injected (tests pass fakes); an owned client is closed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.settings = settings or load_settings()
        owned = client is None
        app.state.openai_client = client or AsyncOpenAI(api_key=app.state.settings.openai_api_key)
        logger.info(
            "Fitment chat backend starting (vector_store=%s, models=%s/%s)",
            app.state.settings.vector_store_id,
            app.state.settings.text_model,
            app.state.settings.vision_model,
        )
        try:
            yield
        finally:
            if owned:
                await app.state.openai_client.close()
            logger.info("Fitment chat backend shutting down")

    app = FastAPI(title="BBS Fitment Chat Backend", lifespan=lifespan)
    app.include_router(router)
    return app


app = create_app()
