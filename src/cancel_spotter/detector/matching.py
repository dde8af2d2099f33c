# src/cancel_spotter/detector/matching.py

from __future__ import annotations

"""
Candidate matching.

Two passes per keyword, in keyword order:
- text pass: text nodes under <body> containing the keyword -> nearest clickable ancestor
- attribute pass: clickable-selector elements whose text or label-ish attributes contain it

Results are unioned in first-seen order and de-duplicated by identity.
Any element that fails to answer (detached, destroyed, adapter error) is skipped.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass

from ..core.ports import Document, Element, Node, NodeKind, TextNode
from .keywords import KeywordSet

logger = logging.getLogger(__name__)

CLICKABLE_TAGS = frozenset({"a", "button"})
CLICKABLE_ROLES = frozenset({"button", "link", "menuitem"})
INPUT_BUTTON_TYPES = frozenset({"button", "submit"})
LABEL_ATTRIBUTES = ("aria-label", "title", "name", "id", "value")


def is_clickable(element: Element) -> bool:
    """Can the element receive a click/activation on its own?"""
    return (
        element.tag_name in CLICKABLE_TAGS
        or element.has_attribute("onclick")
        or element.get_attribute("role") in CLICKABLE_ROLES
        or element.get_attribute("tabindex") == "0"
    )


def matches_clickable_selector(element: Element) -> bool:
    # a, button, [role="button"], input[type="button"], input[type="submit"]
    tag = element.tag_name
    if tag in CLICKABLE_TAGS:
        return True
    if element.get_attribute("role") == "button":
        return True
    if tag == "input":
        return (element.get_attribute("type") or "").strip().lower() in INPUT_BUTTON_TYPES
    return False


def clickable_ancestor(node: Node) -> Element | None:
    """
    Closest clickable element starting at the node's parent, or None at the document top.

    An ancestor that can't be inspected is passed over; the climb goes on above it.
    """
    element = _safe_parent(node)
    while element is not None:
        try:
            if is_clickable(element):
                return element
        except Exception:
            logger.debug("Cannot inspect <%s>; climbing past it", _tag_or_unknown(element), exc_info=True)
        element = _safe_parent(element)
    return None


def _safe_parent(node: Node) -> Element | None:
    try:
        return node.parent
    except Exception:
        logger.debug("Parent unavailable; stopping climb", exc_info=True)
        return None


def label_text(element: Element) -> str:
    return " ".join(element.get_attribute(name) or "" for name in LABEL_ATTRIBUTES).lower()


def iter_nodes(root: Element) -> Iterator[Node]:
    """
    Depth-first, document-order walk below root (root itself excluded).

    Iterative so very deep pages can't hit the recursion limit.
    A subtree whose children can't be listed is skipped.
    """
    stack: list[Iterator[Node]] = [_safe_children(root)]
    while stack:
        node = next(stack[-1], None)
        if node is None:
            stack.pop()
            continue
        yield node
        if node.kind == NodeKind.ELEMENT:
            stack.append(_safe_children(node))  # type: ignore[arg-type]


def _safe_children(element: Element) -> Iterator[Node]:
    try:
        return iter(list(element.children()))
    except Exception:
        logger.debug("Cannot list children of <%s>; skipping subtree", _tag_or_unknown(element), exc_info=True)
        return iter(())


def _tag_or_unknown(element: Element) -> str:
    try:
        return element.tag_name
    except Exception:
        return "?"


@dataclass(slots=True)
class PageSnapshot:
    """Nodes the passes look at, collected in one walk."""

    text_nodes: list[TextNode]
    clickables: list[Element]


def collect_page(document: Document) -> PageSnapshot:
    text_nodes: list[TextNode] = []
    clickables: list[Element] = []

    body = document.body()
    if body is not None:
        for node in iter_nodes(body):
            if node.kind == NodeKind.TEXT:
                text_nodes.append(node)  # type: ignore[arg-type]

    root = document.document_element()
    if root is not None:
        for node in _with_root(root):
            if node.kind != NodeKind.ELEMENT:
                continue
            try:
                if matches_clickable_selector(node):  # type: ignore[arg-type]
                    clickables.append(node)  # type: ignore[arg-type]
            except Exception:
                logger.debug("Selector check failed; skipping element", exc_info=True)

    return PageSnapshot(text_nodes=text_nodes, clickables=clickables)


def _with_root(root: Element) -> Iterator[Node]:
    yield root
    yield from iter_nodes(root)


def find_candidates(document: Document, keywords: KeywordSet) -> list[Element]:
    """
    Elements that plausibly start a subscription cancellation, in first-seen order.
    """
    page = collect_page(document)

    found: dict[int, Element] = {}

    def add(element: Element) -> None:
        found.setdefault(id(element), element)

    # Lower-case each string once; keyword loops reuse it.
    texts: list[tuple[TextNode, str]] = []
    for tn in page.text_nodes:
        try:
            texts.append((tn, tn.data.lower()))
        except Exception:
            logger.debug("Unreadable text node; skipping", exc_info=True)

    labels: list[tuple[Element, str, str]] = []
    for el in page.clickables:
        try:
            labels.append((el, el.text_content().lower(), label_text(el)))
        except Exception:
            logger.debug("Unreadable clickable <%s>; skipping", _tag_or_unknown(el), exc_info=True)

    for keyword in keywords:
        for tn, text in texts:
            if keyword not in text:
                continue
            try:
                target = clickable_ancestor(tn)
            except Exception:
                logger.debug("Ancestor walk failed for %r; skipping", keyword, exc_info=True)
                continue
            if target is not None:
                add(target)

        for el, text, attrs in labels:
            if keyword in text or keyword in attrs:
                add(el)

    return list(found.values())
