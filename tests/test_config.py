"""
Tests for settings loading and the prompt asset.
"""

import pytest

from app.core import config
from app.core.errors import ConfigurationError
from app.prompts.fitment_prompt import CONTEXT_END, CONTEXT_START, assemble_system_prompt, load_system_prompt


def test_missing_credentials_raise(monkeypatch) -> None:
    monkeypatch.setattr(config, "OPENAI_API_KEY", "")
    monkeypatch.setattr(config, "OPENAI_VECTOR_STORE_ID", "")
    with pytest.raises(ConfigurationError) as exc:
        config.load_settings()
    assert exc.value.missing == ["OPENAI_API_KEY", "OPENAI_VECTOR_STORE_ID"]


def test_missing_vector_store_only(monkeypatch) -> None:
    monkeypatch.setattr(config, "OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(config, "OPENAI_VECTOR_STORE_ID", "")
    with pytest.raises(ConfigurationError, match="OPENAI_VECTOR_STORE_ID"):
        config.load_settings()


def test_settings_loaded(monkeypatch) -> None:
    monkeypatch.setattr(config, "OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(config, "OPENAI_VECTOR_STORE_ID", "vs_abc")
    settings = config.load_settings()
    assert settings.vector_store_id == "vs_abc"
    assert settings.max_search_results == 10
    assert settings.temperature == 0.3
    assert settings.max_duration_seconds == 30.0


def test_prompt_asset_loads() -> None:
    prompt = load_system_prompt()
    assert prompt.startswith("You are The BBS Fitment Assistant")
    assert "DEALER RECOMMENDATION LOGIC" in prompt


def test_assemble_without_context_has_no_markers() -> None:
    assert assemble_system_prompt("BASE", "") == "BASE"


def test_assemble_wraps_context_in_markers() -> None:
    out = assemble_system_prompt("BASE", "ctx")
    assert out == f"BASE\n\n{CONTEXT_START}\nctx\n{CONTEXT_END}"


class TestLogLevel:
    def test_known_level_normalised(self) -> None:
        assert config._log_level(" debug ") == "DEBUG"

    def test_unknown_level_falls_back_to_info(self) -> None:
        assert config._log_level("verbose") == "INFO"
        assert config._log_level("") == "INFO"
