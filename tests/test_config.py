# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from cancel_spotter.config import ENV_VARS, Settings
from cancel_spotter.detector.highlight import DEFAULT_OUTLINE
from cancel_spotter.detector.keywords import DEFAULT_KEYWORDS


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in list(ENV_VARS) + ["OPENAI_API_KEY"]:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env) -> None:
    s = Settings.from_env()

    assert s.app_name == "cancel-spotter"
    assert s.data_dir == Path(".local/cancel-spotter")
    assert s.keywords == list(DEFAULT_KEYWORDS)
    assert s.settle_delay_seconds == 1.0
    assert s.debounce_seconds == 0.0
    assert s.highlight_outline == DEFAULT_OUTLINE
    assert s.html_parser == "lxml"
    assert s.openai_api_key is None
    assert s.llm_models == ["gpt-4o"]
    assert s.llm_temperature == 0.7
    assert s.llm_max_tokens == 800


def test_keywords_split_on_commas_only(clean_env) -> None:
    clean_env.setenv("CANCEL_SPOTTER_KEYWORDS", "cancel, pause membership ,, downgrade plan")
    assert Settings.from_env().keywords == ["cancel", "pause membership", "downgrade plan"]


def test_models_split_on_commas_and_spaces(clean_env) -> None:
    clean_env.setenv("CANCEL_SPOTTER_LLM_MODELS", "gpt-4o, gpt-4o-mini  o3")
    assert Settings.from_env().llm_models == ["gpt-4o", "gpt-4o-mini", "o3"]


def test_invalid_numbers_fall_back_and_delays_are_clamped(clean_env) -> None:
    clean_env.setenv("CANCEL_SPOTTER_SETTLE_DELAY_SECONDS", "-3")
    clean_env.setenv("CANCEL_SPOTTER_DEBOUNCE_SECONDS", "soon")
    clean_env.setenv("CANCEL_SPOTTER_LLM_MAX_TOKENS", "lots")

    s = Settings.from_env()

    assert s.settle_delay_seconds == 0.0
    assert s.debounce_seconds == 0.0
    assert s.llm_max_tokens == 800


def test_blank_highlight_style_uses_default(clean_env) -> None:
    clean_env.setenv("CANCEL_SPOTTER_HIGHLIGHT_OUTLINE", "   ")
    assert Settings.from_env().highlight_outline == DEFAULT_OUTLINE


def test_api_key_falls_back_to_plain_openai_variable(clean_env) -> None:
    clean_env.setenv("OPENAI_API_KEY", "sk-plain")
    assert Settings.from_env().openai_api_key == "sk-plain"

    clean_env.setenv("CANCEL_SPOTTER_OPENAI_API_KEY", "sk-prefixed")
    assert Settings.from_env().openai_api_key == "sk-prefixed"
