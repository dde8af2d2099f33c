# src/cancel_spotter/core/errors.py

from __future__ import annotations


class DomAccessError(RuntimeError):
    """Raised by DOM adapters when a node can no longer be read or written (detached/destroyed)."""


class InstructionsError(RuntimeError):
    """Cancellation instructions could not be produced."""
