# src/cancel_spotter/detector/runtime.py

from __future__ import annotations

"""
Event-loop wiring for a detector.

Triggers:
- page settled: one scan settle_delay_seconds after start()
- mutation: full rescan while enabled; mutations raised in the same loop turn
  are batched into one rescan, like a MutationObserver callback
- optional debounce: with debounce_seconds > 0 a burst is coalesced until it goes quiet

Everything runs on the loop thread; a scan always finishes before the next one starts.
"""

import asyncio
import logging

from ..core.ports import MutationSource, Unsubscribe
from .detector import CancelButtonDetector

logger = logging.getLogger(__name__)


class DetectorRuntime:
    def __init__(
        self,
        detector: CancelButtonDetector,
        source: MutationSource,
        *,
        settle_delay_seconds: float = 1.0,
        debounce_seconds: float = 0.0,
    ) -> None:
        self.detector = detector
        self.source = source
        self.settle_delay_seconds = max(0.0, float(settle_delay_seconds))
        self.debounce_seconds = max(0.0, float(debounce_seconds))

        self._loop: asyncio.AbstractEventLoop | None = None
        self._unsubscribe: Unsubscribe | None = None
        self._settle_handle: asyncio.TimerHandle | None = None
        self._pending: asyncio.Handle | None = None

        self.scans_run = 0

    @property
    def running(self) -> bool:
        return self._loop is not None

    def start(self) -> None:
        """Attach to the running loop. Must be called from a coroutine (or loop callback)."""
        if self._loop is not None:
            return
        self._loop = asyncio.get_running_loop()
        self._unsubscribe = self.source.observe(self._on_mutation)
        self._settle_handle = self._loop.call_later(self.settle_delay_seconds, self._on_settled)
        logger.debug(
            "Detector runtime started (settle=%.2fs, debounce=%.2fs)",
            self.settle_delay_seconds,
            self.debounce_seconds,
        )

    def stop(self) -> None:
        if self._unsubscribe is not None:
            try:
                self._unsubscribe()
            except Exception:
                logger.debug("Mutation unsubscribe failed", exc_info=True)
            self._unsubscribe = None
        if self._settle_handle is not None:
            self._settle_handle.cancel()
            self._settle_handle = None
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        self._loop = None
        logger.debug("Detector runtime stopped")

    def _on_settled(self) -> None:
        self._settle_handle = None
        self._scan("load")

    def _on_mutation(self) -> None:
        loop = self._loop
        if loop is None:
            return

        if self.debounce_seconds > 0:
            if self._pending is not None:
                self._pending.cancel()
            self._pending = loop.call_later(self.debounce_seconds, self._flush)
            return

        if self._pending is None:
            self._pending = loop.call_soon(self._flush)

    def _flush(self) -> None:
        self._pending = None
        # Disabled pages ignore mutations entirely; re-enabling rescans anyway.
        if self.detector.enabled:
            self._scan("mutation")

    def _scan(self, trigger: str) -> None:
        try:
            result = self.detector.scan()
        except Exception:
            logger.exception("Scan failed (trigger=%s)", trigger)
            return
        self.scans_run += 1
        logger.debug("Rescan (trigger=%s): %d cancel button(s)", trigger, result.count)
