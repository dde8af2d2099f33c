# src/cancel_spotter/detector/highlight.py

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..core.ports import Element

logger = logging.getLogger(__name__)

OUTLINE = "outline"
BOX_SHADOW = "box-shadow"
POSITION = "position"

DEFAULT_OUTLINE = "3px solid #EA4335"
DEFAULT_BOX_SHADOW = "0 0 0 2px rgba(234, 67, 53, 0.3)"


@dataclass(frozen=True, slots=True)
class HighlightStyle:
    outline: str = DEFAULT_OUTLINE
    box_shadow: str = DEFAULT_BOX_SHADOW


@dataclass(frozen=True, slots=True)
class StyleSnapshot:
    """Inline style values an element had before it was highlighted ("" = not set)."""

    outline: str = ""
    box_shadow: str = ""
    position: str = ""


def _read(element: Element, prop: str) -> str:
    try:
        return element.get_style(prop) or ""
    except Exception:
        logger.debug("Style read failed (%s); treating as unset", prop, exc_info=True)
        return ""


def capture_style(element: Element) -> StyleSnapshot:
    return StyleSnapshot(
        outline=_read(element, OUTLINE),
        box_shadow=_read(element, BOX_SHADOW),
        position=_read(element, POSITION),
    )


def apply_highlight(element: Element, style: HighlightStyle) -> None:
    """
    Outline + halo; static elements become relative so the halo renders in place.
    Already positioned elements keep their position.
    """
    element.set_style(OUTLINE, style.outline)
    element.set_style(BOX_SHADOW, style.box_shadow)
    if element.computed_position() == "static":
        element.set_style(POSITION, "relative")


def restore_style(element: Element, snapshot: StyleSnapshot | None) -> None:
    snap = snapshot or StyleSnapshot()
    element.set_style(OUTLINE, snap.outline)
    element.set_style(BOX_SHADOW, snap.box_shadow)
    element.set_style(POSITION, snap.position)
