# src/cancel_spotter/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- Every variable documented in ENV_VARS (printed by `cancel-spotter env`).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .detector.highlight import DEFAULT_BOX_SHADOW, DEFAULT_OUTLINE
from .detector.keywords import DEFAULT_KEYWORDS

ENV_PREFIX = "CANCEL_SPOTTER"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


ENV_VARS = {
    # App / logging
    _k("APP_NAME"): "App display name (default: cancel-spotter).",
    _k("LOG_LEVEL"): "Console logging level (default: INFO).",
    _k("DATA_DIR"): "Local data directory for logs (default: .local/cancel-spotter).",
    # Detector
    _k("KEYWORDS"): "Comma separated cancellation phrases (default: cancel, unsubscribe, ...).",
    _k("SETTLE_DELAY_SECONDS"): "Delay before the first scan of a loaded page (default: 1.0).",
    _k("DEBOUNCE_SECONDS"): "Coalesce mutation bursts for this long; 0 rescans every batch (default: 0).",
    _k("HIGHLIGHT_OUTLINE"): f"Outline applied to matches (default: {DEFAULT_OUTLINE}).",
    _k("HIGHLIGHT_BOX_SHADOW"): f"Box-shadow applied to matches (default: {DEFAULT_BOX_SHADOW}).",
    _k("HTML_PARSER"): "BeautifulSoup parser for pages (default: lxml).",
    # LLM
    _k("OPENAI_API_KEY"): "API key for cancellation instructions (falls back to OPENAI_API_KEY).",
    _k("OPENAI_BASE_URL"): "OpenAI-compatible base URL (default: https://api.openai.com/v1).",
    _k("LLM_MODELS"): "Comma/space separated list of models to try in order (default: gpt-4o).",
    _k("LLM_TEMPERATURE"): "Sampling temperature (default: 0.7).",
    _k("LLM_MAX_TOKENS"): "Max tokens per answer (default: 800).",
    _k("LLM_CONNECT_TIMEOUT_SECONDS"): "LLM connect timeout (default: 5).",
    _k("LLM_READ_TIMEOUT_SECONDS"): "LLM read timeout (default: 30).",
    _k("LLM_FIRST_TOKEN_TIMEOUT_SECONDS"): "Skip a model that sends nothing for this long (default: 20).",
}


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    parts = [p.strip() for p in raw.replace(",", " ").split() if p.strip()]
    return parts


def _env_phrases(name: str, default: List[str]) -> List[str]:
    # Phrases contain spaces ("end subscription"), so only commas separate items.
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.split(",") if p.strip()]


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    data_dir: Path

    # ---- Detector ----
    keywords: List[str]
    settle_delay_seconds: float
    debounce_seconds: float
    highlight_outline: str
    highlight_box_shadow: str
    html_parser: str

    # ---- LLM ----
    openai_api_key: Optional[str]
    openai_base_url: str
    llm_models: List[str]
    llm_temperature: float
    llm_max_tokens: int

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "cancel-spotter") or "cancel-spotter"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/cancel-spotter"))

        keywords = _env_phrases(_k("KEYWORDS"), list(DEFAULT_KEYWORDS))
        settle_delay_seconds = max(0.0, _env_float(_k("SETTLE_DELAY_SECONDS"), 1.0))
        debounce_seconds = max(0.0, _env_float(_k("DEBOUNCE_SECONDS"), 0.0))
        highlight_outline = _env(_k("HIGHLIGHT_OUTLINE"), DEFAULT_OUTLINE).strip() or DEFAULT_OUTLINE
        highlight_box_shadow = (
            _env(_k("HIGHLIGHT_BOX_SHADOW"), DEFAULT_BOX_SHADOW).strip() or DEFAULT_BOX_SHADOW
        )
        html_parser = _env(_k("HTML_PARSER"), "lxml").strip() or "lxml"

        openai_api_key = _first_env(_k("OPENAI_API_KEY"), "OPENAI_API_KEY", default=None)
        openai_base_url = _env(_k("OPENAI_BASE_URL"), "https://api.openai.com/v1")
        llm_models = _env_list(_k("LLM_MODELS"), ["gpt-4o"])
        llm_temperature = _env_float(_k("LLM_TEMPERATURE"), 0.7)
        llm_max_tokens = _env_int(_k("LLM_MAX_TOKENS"), 800)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            keywords=keywords,
            settle_delay_seconds=settle_delay_seconds,
            debounce_seconds=debounce_seconds,
            highlight_outline=highlight_outline,
            highlight_box_shadow=highlight_box_shadow,
            html_parser=html_parser,
            openai_api_key=openai_api_key,
            openai_base_url=openai_base_url,
            llm_models=llm_models,
            llm_temperature=llm_temperature,
            llm_max_tokens=llm_max_tokens,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
