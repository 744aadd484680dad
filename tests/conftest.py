from pathlib import Path
import sys

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.core.config import Settings  # noqa: E402


@pytest.fixture
def settings() -> Settings:
    return Settings(
        openai_api_key="sk-test",
        vector_store_id="vs_test",
        vision_model="gpt-4o",
        text_model="gpt-4o-mini",
    )
