"""
System prompt for the fitment assistant.

The instruction template is a text asset next to this module so wording changes
ship without touching code. Catalog-code display names, vehicle aliases and the
dealer-by-state rules live only in that text and are applied by the model.
"""

from functools import lru_cache
from pathlib import Path

PROMPT_FILE = Path(__file__).resolve().parent / "bbs_fitment_system.txt"

CONTEXT_START = "===== VECTOR DB DATA ====="
CONTEXT_END = "===== END VECTOR DB DATA ====="


@lru_cache(maxsize=1)
def load_system_prompt() -> str:
    """Read the fitment instruction template (cached for the process lifetime)."""
    return PROMPT_FILE.read_text(encoding="utf-8").strip()


def assemble_system_prompt(base: str, context: str = "") -> str:
    """
    Append retrieved context to the instruction template between visible markers.
    With no context the template is returned as-is (no markers).
    """
    if not context:
        return base
    return f"{base}\n\n{CONTEXT_START}\n{context}\n{CONTEXT_END}"
