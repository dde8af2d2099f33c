# src/cancel_spotter/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- parses the page into a SoupDocument,
- wires the detector (keywords, highlight style), its runtime and the LLM client into AppState.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..config import get_settings
from ..core.ports import LLMClient
from ..core.state import AppState
from ..detector.detector import CancelButtonDetector
from ..detector.highlight import HighlightStyle
from ..detector.keywords import KeywordSet
from ..detector.runtime import DetectorRuntime
from ..dom.soup import SoupDocument
from ..llm.client import OpenAIChatClient
from ..llm.offline import OfflineLLMClient

logger = logging.getLogger(__name__)


def create_llm_client(settings) -> LLMClient:
    try:
        return OpenAIChatClient(settings)
    except Exception as e:
        # Fallback for demos / local runs without an API key.
        logger.debug("Using offline LLM client (%s)", e)
        return OfflineLLMClient()


def create_detector(document: SoupDocument, settings, *, enabled: bool = True) -> CancelButtonDetector:
    return CancelButtonDetector(
        document,
        keywords=KeywordSet.of(settings.keywords),
        style=HighlightStyle(
            outline=settings.highlight_outline,
            box_shadow=settings.highlight_box_shadow,
        ),
        enabled=enabled,
    )


def create_initial_state(
    page: str | Path,
    *,
    url: str | None = None,
    settings=None,
    enabled: bool = True,
    llm: LLMClient | None = None,
) -> AppState:
    """
    Create AppState for one page.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    document = SoupDocument.from_path(page, parser=settings.html_parser, url=url)
    detector = create_detector(document, settings, enabled=enabled)

    state = AppState(
        settings=settings,
        document=document,
        detector=detector,
        llm=llm or create_llm_client(settings),
        page_url=url,
    )

    def _on_count(count: int) -> None:
        if count != state.last_count:
            logger.info("Cancel buttons on page: %d", count)
        state.last_count = count
        state.count_updates.append(count)

    detector.add_listener(_on_count)
    return state


def attach_runtime(state: AppState) -> DetectorRuntime:
    """Build and start the event-driven runtime. Must be called with a running event loop."""
    settings = state.settings
    runtime = DetectorRuntime(
        state.detector,
        state.document,
        settle_delay_seconds=settings.settle_delay_seconds,
        debounce_seconds=settings.debounce_seconds,
    )
    runtime.start()
    state.runtime = runtime
    return runtime
