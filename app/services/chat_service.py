"""
Chat request handler: retrieval-augmented prompt, model choice, streamed reply.

Responsibility: For one conversation, search the vector store with the latest
message, build the system prompt with primary-source results first, open a
streamed completion, and audit URLs once the text is complete. If anything
before generation fails, answer from the bare instruction template on the
vision-capable model instead. Called by the API; no HTTP here.
"""

import asyncio
import logging
from typing import Any, AsyncIterator

from app.agent.llm import iter_text_deltas, open_completion_stream, select_model, to_openai_messages
from app.core.config import Settings
from app.core.errors import GenerationTimeoutError
from app.prompts.fitment_prompt import assemble_system_prompt, load_system_prompt
from app.schemas.chat import ChatMessage
from app.services.retrieval_service import extract_query, has_image_attachment, retrieve_context
from app.services.url_audit import audit_response_urls

logger = logging.getLogger(__name__)


class FitmentReply:
    """
    An opened completion stream for one request. Iterate it for text chunks;
    the full text is kept on `text` and audited when the stream ends.
    """

    def __init__(
        self,
        stream: Any,
        model: str,
        augmented: bool,
        trusted_urls: set[str],
        settings: Settings,
        cancel_event: asyncio.Event | None = None,
        deadline: float | None = None,
    ) -> None:
        self.stream = stream
        self.model = model
        self.augmented = augmented
        self.trusted_urls = trusted_urls
        self.settings = settings
        self.cancel_event = cancel_event
        self.deadline = deadline
        self.text = ""
        self.flagged_urls: list[str] = []

    async def __aiter__(self) -> AsyncIterator[str]:
        label = "primary" if self.augmented else "fallback"
        parts: list[str] = []
        async for delta in iter_text_deltas(self.stream, self.cancel_event, self.deadline, label):
            parts.append(delta)
            yield delta
        self.text = "".join(parts)
        if self.cancel_event is not None and self.cancel_event.is_set():
            return
        if self.augmented:
            self.flagged_urls = audit_response_urls(
                self.text, self.trusted_urls, self.settings.trusted_url_domain
            )


async def _prepare_augmented(
    messages: list[ChatMessage], client: Any, settings: Settings, deadline: float | None = None
) -> tuple[str, list[dict[str, Any]], set[str]]:
    last = messages[-1]
    query = extract_query(last)
    visual = has_image_attachment(last)
    logger.info("[chat:prepare] IN  messages=%d query=%r visual=%s", len(messages), query, visual)

    context = await retrieve_context(
        client,
        settings.vector_store_id,
        query,
        max_results=settings.max_search_results,
        marker=settings.primary_source_marker,
        separator=settings.context_separator,
        deadline=deadline,
    )
    system_prompt = assemble_system_prompt(load_system_prompt(), context.text)
    model = select_model(visual, settings)
    return model, to_openai_messages(system_prompt, messages), context.trusted_urls


async def prepare_reply(
    messages: list[ChatMessage],
    client: Any,
    settings: Settings,
    cancel_event: asyncio.Event | None = None,
    deadline: float | None = None,
) -> FitmentReply:
    """
    Retrieve context, assemble the prompt and open the completion stream.
    Retrieval or prompt failures switch to the un-augmented fallback for this
    request; failures opening the completion propagate, as does a deadline that
    passes during retrieval, since no time is left for the fallback.
    """
    try:
        model, chat_messages, trusted_urls = await _prepare_augmented(messages, client, settings, deadline)
        augmented = True
    except GenerationTimeoutError:
        logger.warning("[chat:prepare] request deadline passed during retrieval")
        raise
    except Exception:
        logger.exception("[chat:prepare] retrieval failed; falling back to prompt without context")
        model = settings.vision_model
        chat_messages = to_openai_messages(load_system_prompt(), messages)
        trusted_urls = set()
        augmented = False

    logger.info("[chat:prepare] OUT model=%s augmented=%s", model, augmented)
    stream = await open_completion_stream(
        client, model, chat_messages, temperature=settings.temperature, deadline=deadline
    )
    return FitmentReply(
        stream,
        model=model,
        augmented=augmented,
        trusted_urls=trusted_urls,
        settings=settings,
        cancel_event=cancel_event,
        deadline=deadline,
    )
