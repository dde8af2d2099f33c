# tests/conftest.py

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from types import SimpleNamespace

import pytest

from cancel_spotter.cli.bootstrap import create_initial_state
from cancel_spotter.core.state import AppState
from cancel_spotter.detector.keywords import DEFAULT_KEYWORDS
from cancel_spotter.dom.soup import SoupDocument

from .fakes import FakeLLMClient

PAGE_BODY = (
    '<button>Unsubscribe Now</button>'
    '<a href="#" title="cancel">Stop</a>'
    '<p>Some unrelated cancel mention</p>'
)


def page_html(body: str) -> str:
    return f"<!DOCTYPE html><html><head><title>Account</title></head><body>{body}</body></html>"


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the bootstrap helpers.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the developer's environment.
    """
    return SimpleNamespace(
        app_name="cancel-spotter-test",
        log_level="DEBUG",
        data_dir=tmp_path / "data",
        keywords=list(DEFAULT_KEYWORDS),
        settle_delay_seconds=0.01,
        debounce_seconds=0.0,
        highlight_outline="3px solid #EA4335",
        highlight_box_shadow="0 0 0 2px rgba(234, 67, 53, 0.3)",
        html_parser="lxml",
        openai_api_key=None,
        openai_base_url="https://api.openai.com/v1",
        llm_models=["gpt-4o"],
        llm_temperature=0.7,
        llm_max_tokens=800,
    )


@pytest.fixture()
def make_doc() -> Callable[[str], SoupDocument]:
    def _make(body: str) -> SoupDocument:
        return SoupDocument(page_html(body))

    return _make


@pytest.fixture()
def page_file(tmp_path: Path) -> Path:
    path = tmp_path / "account.html"
    path.write_text(page_html(PAGE_BODY), encoding="utf-8")
    return path


@pytest.fixture()
def llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture()
def state(settings: SimpleNamespace, page_file: Path, llm: FakeLLMClient) -> AppState:
    """AppState over the sample page, wired with a deterministic LLM."""
    return create_initial_state(
        page_file,
        url="https://www.example.com/account",
        settings=settings,
        llm=llm,
    )
