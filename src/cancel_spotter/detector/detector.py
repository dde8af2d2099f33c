# src/cancel_spotter/detector/detector.py

from __future__ import annotations

"""
Cancel-button detector.

One instance per page. It owns:
- the enabled flag,
- the ordered set of highlighted elements,
- the pre-highlight style snapshot of each of them (keyed by element identity).

Nothing here raises past the public methods: per-element failures are logged and skipped,
so a broken node can never take the host page down.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from ..core.ports import CountListener, Document, Element
from .highlight import HighlightStyle, StyleSnapshot, apply_highlight, capture_style, restore_style
from .keywords import KeywordSet
from .matching import find_candidates

logger = logging.getLogger(__name__)


class DetectorState(str, Enum):
    DISABLED = "disabled"
    IDLE = "idle"
    SCANNING = "scanning"


@dataclass(frozen=True, slots=True)
class ScanResult:
    elements: tuple[Element, ...]

    @property
    def count(self) -> int:
        return len(self.elements)


class CancelButtonDetector:
    def __init__(
        self,
        document: Document,
        *,
        keywords: KeywordSet | None = None,
        style: HighlightStyle | None = None,
        enabled: bool = True,
    ) -> None:
        self.document = document
        self.keywords = keywords or KeywordSet.default()
        self.style = style or HighlightStyle()

        self._enabled = bool(enabled)
        self._scanning = False
        # id(element) -> (element, snapshot); dict order is highlight order.
        self._highlighted: dict[int, tuple[Element, StyleSnapshot]] = {}
        self._listeners: list[CountListener] = []

    # ---- state ----

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def state(self) -> DetectorState:
        if self._scanning:
            return DetectorState.SCANNING
        return DetectorState.IDLE if self._enabled else DetectorState.DISABLED

    @property
    def highlighted(self) -> tuple[Element, ...]:
        return tuple(el for el, _ in self._highlighted.values())

    def snapshot_of(self, element: Element) -> StyleSnapshot | None:
        entry = self._highlighted.get(id(element))
        if entry is None or entry[0] is not element:
            return None
        return entry[1]

    # ---- notifications ----

    def add_listener(self, listener: CountListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: CountListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def _notify(self, count: int) -> None:
        for listener in list(self._listeners):
            try:
                listener(count)
            except Exception:
                logger.exception("Count listener failed")

    # ---- commands ----

    def scan(self) -> ScanResult:
        """
        Full rescan: replace the highlighted set with the current page's candidates.

        Disabled -> clear everything and report 0.
        """
        if not self._enabled:
            self.clear()
            self._notify(0)
            return ScanResult(elements=())

        self._scanning = True
        try:
            try:
                candidates = find_candidates(self.document, self.keywords)
            except Exception:
                logger.exception("Candidate search failed; treating page as empty")
                candidates = []
            self._apply(candidates)
        finally:
            self._scanning = False

        result = ScanResult(elements=self.highlighted)
        logger.debug("Scan complete: %d cancel button(s)", result.count)
        self._notify(result.count)
        return result

    def set_enabled(self, enabled: bool) -> int:
        enabled = bool(enabled)
        if enabled != self._enabled:
            logger.info("Highlighting %s", "enabled" if enabled else "disabled")
        self._enabled = enabled

        if enabled:
            return self.scan().count

        self.clear()
        self._notify(0)
        return 0

    def get_count(self) -> int:
        return len(self._highlighted)

    def clear(self) -> None:
        """Restore every highlighted element's original inline style and forget it."""
        for element, snapshot in self._highlighted.values():
            try:
                restore_style(element, snapshot)
            except Exception:
                logger.debug("Restore failed; element skipped", exc_info=True)
        self._highlighted = {}

    # ---- internals ----

    def _apply(self, candidates: list[Element]) -> None:
        previous = self._highlighted
        current: dict[int, tuple[Element, StyleSnapshot]] = {}

        for element in candidates:
            key = id(element)
            if key in current:
                continue

            kept = previous.get(key)
            if kept is not None and kept[0] is element:
                # Already highlighted: keep the original snapshot, never re-capture our own style.
                snapshot = kept[1]
            else:
                snapshot = capture_style(element)

            try:
                apply_highlight(element, self.style)
            except Exception:
                logger.debug("Highlight write failed; keeping candidate", exc_info=True)

            current[key] = (element, snapshot)

        for key, (element, snapshot) in previous.items():
            if key in current and current[key][0] is element:
                continue
            try:
                restore_style(element, snapshot)
            except Exception:
                logger.debug("Restore failed; element skipped", exc_info=True)

        self._highlighted = current
