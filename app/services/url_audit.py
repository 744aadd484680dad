"""
Post-generation URL audit.

Links on the trusted domain must come from collection_url values returned by the
vector store. The audit runs after the text has been streamed, so it only logs.
"""

import logging
import re

from app.core.config import TRUSTED_URL_DOMAIN

logger = logging.getLogger(__name__)

URL_PATTERN = re.compile(r"https?://[^\s)]+")


def find_urls(text: str) -> list[str]:
    """Return URL-shaped substrings in order of appearance."""
    return URL_PATTERN.findall(text or "")


def is_trusted_url(url: str, trusted_urls: set[str] | list[str]) -> bool:
    """Exact match ignoring case, or the URL extends a trusted URL."""
    lowered = url.lower()
    return any(t.lower() == lowered or url.startswith(t) for t in trusted_urls if t)


def audit_response_urls(
    text: str, trusted_urls: set[str] | list[str], domain: str = TRUSTED_URL_DOMAIN
) -> list[str]:
    """
    Log every URL on `domain` that is not backed by a trusted URL and return them.
    The text is never modified.
    """
    needle = domain.lower()
    flagged = [
        url
        for url in find_urls(text)
        if needle in url.lower() and not is_trusted_url(url, trusted_urls)
    ]
    for url in flagged:
        logger.warning("[url_audit] untrusted %s URL in response: %s", domain, url)
    if flagged:
        logger.warning("[url_audit] response contained %d untrusted URL(s)", len(flagged))
    return flagged
