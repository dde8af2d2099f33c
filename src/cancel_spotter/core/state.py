# src/cancel_spotter/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..detector.detector import CancelButtonDetector
from ..detector.runtime import DetectorRuntime
from ..dom.soup import SoupDocument
from .ports import LLMClient


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    document: SoupDocument
    detector: CancelButtonDetector
    llm: LLMClient

    runtime: DetectorRuntime | None = None
    page_url: str | None = None
    last_count: int = 0
    count_updates: list[int] = field(default_factory=list)
