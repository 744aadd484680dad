"""
Retrieval: vector store search, collection URL extraction, and context assembly.

Responsibility: Turn the latest chat message into a search query, query the
OpenAI vector store, and build the context block for the system prompt with
results from the primary dataset file first.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any

from app.core.config import CONTEXT_SEPARATOR, MAX_SEARCH_RESULTS, PRIMARY_SOURCE_MARKER
from app.core.deadline import remaining_seconds
from app.core.errors import GenerationTimeoutError
from app.schemas.chat import ChatMessage

logger = logging.getLogger(__name__)


@dataclass
class SearchHit:
    """One vector store result, reduced to what the handler needs."""

    content: str
    attributes: dict[str, Any] = field(default_factory=dict)
    filename: str = ""
    score: float = 0.0


@dataclass
class RetrievalContext:
    """Context block for the prompt plus the URLs the results vouch for."""

    text: str = ""
    trusted_urls: set[str] = field(default_factory=set)
    primary_count: int = 0
    secondary_count: int = 0


def extract_query(message: ChatMessage) -> str:
    """Join the message's text parts with single spaces, in order."""
    return " ".join(p.text or "" for p in message.parts if p.is_text)


def has_image_attachment(message: ChatMessage) -> bool:
    """True when any file part declares an image/* media type."""
    return any(p.is_image for p in message.parts)


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _block_dict(block: Any) -> dict[str, Any]:
    if isinstance(block, dict):
        return block
    if hasattr(block, "model_dump"):
        return block.model_dump(exclude_none=True)
    return dict(getattr(block, "__dict__", {}))


def coerce_content(content: Any) -> str:
    """
    Coerce a result's content to a string.

    Vector store results carry a list of {"type": "text", "text": ...} blocks. When
    every block is exactly that shape, their texts are joined with newlines so the
    chunk text (often itself JSON with a collection_url) can be parsed downstream.
    Blocks with any other keys, and anything else that is not a string, are
    JSON-encoded whole so no field is dropped.
    """
    if isinstance(content, str):
        return content
    if isinstance(content, (list, tuple)) and content:
        blocks = [_block_dict(block) for block in content]
        if all(b.get("type") == "text" and set(b) <= {"type", "text"} for b in blocks):
            return "\n".join(b.get("text") or "" for b in blocks)
        content = blocks
    elif hasattr(content, "model_dump"):
        content = content.model_dump()
    return json.dumps(content, default=str)


async def search_vector_store(
    client: Any,
    vector_store_id: str,
    query: str,
    max_results: int = MAX_SEARCH_RESULTS,
    deadline: float | None = None,
) -> list[SearchHit]:
    """
    Run one semantic search against the vector store and normalize the results.
    The search is cancelled once `deadline` (monotonic seconds) passes and
    GenerationTimeoutError is raised. Errors from the API propagate to the caller.
    """
    remaining = remaining_seconds(deadline)
    logger.info("[retrieval:search_vector_store] IN  query=%r max_results=%d", query, max_results)
    search = client.vector_stores.search(
        vector_store_id,
        query=query,
        max_num_results=max_results,
    )
    try:
        page = (
            await asyncio.wait_for(search, timeout=remaining) if remaining is not None else await search
        )
    except asyncio.TimeoutError as e:
        logger.warning("[retrieval:search_vector_store] timed out after %.1fs", remaining)
        raise GenerationTimeoutError("Vector store search exceeded the request deadline") from e
    hits = []
    for r in page.data:
        hits.append(SearchHit(
            content=coerce_content(_field(r, "content", "")),
            attributes=dict(_field(r, "attributes") or {}),
            filename=_field(r, "filename") or "",
            score=float(_field(r, "score") or 0.0),
        ))
    logger.info("[retrieval:search_vector_store] OUT hits=%d files=%s",
                len(hits), [h.filename for h in hits[:5]])
    return hits


def extract_collection_urls(hits: list[SearchHit]) -> set[str]:
    """
    Collect collection_url values from results whose content is JSON: either on the
    top-level object or on any element of a top-level list. Non-JSON content is skipped.
    """
    urls: set[str] = set()
    for hit in hits:
        try:
            parsed = json.loads(hit.content)
        except (TypeError, ValueError):
            continue
        items = parsed if isinstance(parsed, list) else [parsed]
        for item in items:
            if isinstance(item, dict) and item.get("collection_url"):
                urls.add(str(item["collection_url"]))
    return urls


def hit_file_name(hit: SearchHit) -> str:
    """File name from attributes (file_name, then filename), else the result's own filename."""
    name = hit.attributes.get("file_name") or hit.attributes.get("filename") or hit.filename
    return str(name or "")


def prioritize_hits(
    hits: list[SearchHit], marker: str = PRIMARY_SOURCE_MARKER
) -> tuple[list[SearchHit], list[SearchHit]]:
    """Stable split into (primary, secondary) by case-insensitive marker match on the file name."""
    needle = marker.lower()
    primary: list[SearchHit] = []
    secondary: list[SearchHit] = []
    for hit in hits:
        if needle in hit_file_name(hit).lower():
            primary.append(hit)
        else:
            secondary.append(hit)
    return primary, secondary


def build_retrieval_context(
    hits: list[SearchHit],
    marker: str = PRIMARY_SOURCE_MARKER,
    separator: str = CONTEXT_SEPARATOR,
) -> RetrievalContext:
    """Primary-source results first, then the rest, joined by the separator."""
    primary, secondary = prioritize_hits(hits, marker)
    if primary:
        logger.info("[retrieval:build_retrieval_context] found %d results from %s (primary source)",
                    len(primary), marker)
    if secondary:
        logger.info("[retrieval:build_retrieval_context] found %d results from secondary sources",
                    len(secondary))
    return RetrievalContext(
        text=separator.join(h.content for h in primary + secondary),
        trusted_urls=extract_collection_urls(hits),
        primary_count=len(primary),
        secondary_count=len(secondary),
    )


async def retrieve_context(
    client: Any,
    vector_store_id: str,
    query: str,
    max_results: int = MAX_SEARCH_RESULTS,
    marker: str = PRIMARY_SOURCE_MARKER,
    separator: str = CONTEXT_SEPARATOR,
    deadline: float | None = None,
) -> RetrievalContext:
    """
    Pipeline: vector store search → collection URL extraction → primary-first context.
    A blank query skips the search entirely; the search is bounded by `deadline`.
    """
    logger.info("[retrieval:retrieve_context] IN  query=%r", query)
    if not query or not query.strip():
        logger.info("[retrieval:retrieve_context] OUT empty query, no search")
        return RetrievalContext()
    hits = await search_vector_store(client, vector_store_id, query, max_results, deadline)
    context = build_retrieval_context(hits, marker, separator)
    logger.info("[retrieval:retrieve_context] OUT context_len=%d trusted_urls=%d",
                len(context.text), len(context.trusted_urls))
    return context
