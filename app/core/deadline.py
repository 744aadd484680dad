"""
Request deadlines as absolute `time.monotonic()` values.

One deadline is set per chat request and shared by retrieval and generation.
"""

import time

from app.core.errors import GenerationTimeoutError


def remaining_seconds(deadline: float | None) -> float | None:
    """Seconds left before `deadline` (None means unbounded). Raises once it has passed."""
    if deadline is None:
        return None
    left = deadline - time.monotonic()
    if left <= 0:
        raise GenerationTimeoutError()
    return left
