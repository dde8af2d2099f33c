# src/cancel_spotter/dom/soup.py

from __future__ import annotations

"""
BeautifulSoup-backed document.

Implements the DOM ports for a parsed HTML page:
- stable wrapper objects per tag (identity matters to the detector),
- inline style read/write,
- a MutationObserver-like observe() fed by the mutation helpers below.

There is no layout engine, so the "computed" position is the inline one or "static".
"""

import logging
from collections.abc import Iterator
from pathlib import Path

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from ..core.errors import DomAccessError
from ..core.ports import MutationCallback, Node, NodeKind, Unsubscribe
from .style import parse_inline_style, serialize_inline_style

logger = logging.getLogger(__name__)

DEFAULT_PARSER = "lxml"
FRAGMENT_PARSER = "html.parser"

# Stay outside <body> when the skeleton is added.
HEAD_TAGS = frozenset({"head", "title", "meta", "link", "base", "style"})


def _is_text(obj: object) -> bool:
    # Comments, CDATA, doctypes and processing instructions are not text nodes.
    return isinstance(obj, NavigableString) and not isinstance(obj, PreformattedString)


def _is_destroyed(obj: object) -> bool:
    return bool(getattr(obj, "decomposed", False))


def _ensure_html_body(soup: BeautifulSoup) -> None:
    """
    Give the tree the <html><body> skeleton a browser would.

    lxml always adds it; html.parser keeps the markup as written, so a fragment or a page
    relying on optional tags would otherwise have no <body> to scan.
    """
    if soup.body is not None:
        return

    html = soup.find("html", recursive=False)
    if html is None:
        html = soup.new_tag("html")
        for node in list(soup.contents):
            if not isinstance(node, PreformattedString):
                html.append(node.extract())
        soup.append(html)

    body = soup.new_tag("body")
    for node in list(html.contents):
        if isinstance(node, Tag) and node.name in HEAD_TAGS:
            continue
        body.append(node.extract())
    # Anything parsed after </html> belongs to the body as well.
    for node in list(soup.contents):
        if node is html or isinstance(node, PreformattedString):
            continue
        body.append(node.extract())
    html.append(body)


class SoupText:
    kind = NodeKind.TEXT

    def __init__(self, document: SoupDocument, string: NavigableString) -> None:
        self._document = document
        self.string = string

    @property
    def data(self) -> str:
        if _is_destroyed(self.string):
            raise DomAccessError("text node was destroyed")
        return str(self.string)

    @property
    def parent(self) -> SoupElement | None:
        return self._document._wrap_parent(self.string.parent)

    def __repr__(self) -> str:
        return f"SoupText({str(self.string)[:30]!r})"


class SoupElement:
    kind = NodeKind.ELEMENT

    def __init__(self, document: SoupDocument, tag: Tag) -> None:
        self._document = document
        self.tag = tag

    def _live(self) -> Tag:
        if _is_destroyed(self.tag):
            raise DomAccessError("element was destroyed")
        return self.tag

    @property
    def tag_name(self) -> str:
        return (self._live().name or "").lower()

    @property
    def parent(self) -> SoupElement | None:
        return self._document._wrap_parent(self._live().parent)

    def children(self) -> Iterator[Node]:
        for child in list(self._live().contents):
            if isinstance(child, Tag):
                yield self._document.wrap(child)
            elif _is_text(child):
                yield SoupText(self._document, child)  # type: ignore[arg-type]

    def get_attribute(self, name: str) -> str | None:
        value = self._live().get(name.lower())
        if value is None:
            return None
        if isinstance(value, (list, tuple)):
            # Multi-valued attributes (class, rel, ...) come back as lists.
            return " ".join(str(v) for v in value)
        return str(value)

    def has_attribute(self, name: str) -> bool:
        return self._live().has_attr(name.lower())

    def text_content(self) -> str:
        return "".join(str(s) for s in self._live().descendants if _is_text(s))

    def get_style(self, prop: str) -> str:
        return parse_inline_style(self.get_attribute("style")).get(prop.lower(), "")

    def set_style(self, prop: str, value: str) -> None:
        tag = self._live()
        decls = parse_inline_style(self.get_attribute("style"))
        prop = prop.lower()
        if value:
            decls[prop] = value
        else:
            decls.pop(prop, None)

        if decls:
            tag["style"] = serialize_inline_style(decls)
        elif tag.has_attr("style"):
            del tag["style"]

    def computed_position(self) -> str:
        raw = self.get_style("position")
        value = raw.replace("!important", "").strip().lower()
        return value or "static"

    def __repr__(self) -> str:
        try:
            return f"<SoupElement {self.tag_name}>"
        except DomAccessError:
            return "<SoupElement (destroyed)>"


class SoupDocument:
    def __init__(self, html: str, *, parser: str = DEFAULT_PARSER, url: str | None = None) -> None:
        self.parser = parser
        self.url = url
        self.soup = BeautifulSoup(html, parser)
        _ensure_html_body(self.soup)

        self._wrappers: dict[int, SoupElement] = {}
        self._observers: list[MutationCallback] = []

    @classmethod
    def from_path(cls, path: str | Path, *, parser: str = DEFAULT_PARSER, url: str | None = None) -> SoupDocument:
        html = Path(path).read_text(encoding="utf-8", errors="replace")
        return cls(html, parser=parser, url=url)

    # ---- wrappers ----

    def wrap(self, tag: Tag) -> SoupElement:
        # Wrappers keep their tag alive, so id(tag) can't be reused while cached.
        w = self._wrappers.get(id(tag))
        if w is None or w.tag is not tag:
            w = SoupElement(self, tag)
            self._wrappers[id(tag)] = w
        return w

    def _forget(self, tag: Tag) -> None:
        # Callers holding a wrapper keep it; the document just stops caching a detached subtree.
        for t in (tag, *tag.find_all(True)):
            w = self._wrappers.get(id(t))
            if w is not None and w.tag is t:
                del self._wrappers[id(t)]

    def _wrap_parent(self, parent: object) -> SoupElement | None:
        if parent is None or isinstance(parent, BeautifulSoup) or not isinstance(parent, Tag):
            return None
        return self.wrap(parent)

    # ---- Document port ----

    def document_element(self) -> SoupElement | None:
        html = self.soup.find("html", recursive=False)
        if isinstance(html, Tag):
            return self.wrap(html)
        for child in self.soup.contents:
            if isinstance(child, Tag):
                return self.wrap(child)
        return None

    def body(self) -> SoupElement | None:
        body = self.soup.body
        return self.wrap(body) if body is not None else None

    def select(self, css: str) -> list[SoupElement]:
        return [self.wrap(t) for t in self.soup.select(css)]

    def select_one(self, css: str) -> SoupElement | None:
        tag = self.soup.select_one(css)
        return self.wrap(tag) if tag is not None else None

    # ---- MutationSource port ----

    def observe(self, callback: MutationCallback) -> Unsubscribe:
        self._observers.append(callback)

        def unsubscribe() -> None:
            try:
                self._observers.remove(callback)
            except ValueError:
                pass

        return unsubscribe

    def _notify(self) -> None:
        for cb in list(self._observers):
            try:
                cb()
            except Exception:
                logger.exception("Mutation observer failed")

    # ---- mutations (reported to observers) ----

    def append_html(self, html: str, parent: SoupElement | None = None) -> list[SoupElement]:
        """Parse an HTML fragment and append its nodes to parent (default: <body>)."""
        target = parent or self.body() or self.document_element()
        container: Tag = target._live() if target is not None else self.soup

        fragment = BeautifulSoup(html, FRAGMENT_PARSER)
        added: list[SoupElement] = []
        for node in list(fragment.contents):
            container.append(node.extract())
            if isinstance(node, Tag):
                added.append(self.wrap(node))

        self._notify()
        return added

    def remove(self, node: SoupElement | SoupText, *, destroy: bool = False) -> None:
        """
        Detach a node from the tree.

        destroy=True also decomposes an element: later reads/writes through old references
        fail with DomAccessError (a node torn down by the page).
        """
        if isinstance(node, SoupElement):
            self._forget(node.tag)
            if destroy:
                node.tag.decompose()
            else:
                node.tag.extract()
        else:
            node.string.extract()
        self._notify()

    def set_text(self, node: SoupText, data: str) -> SoupText:
        """Replace a text node's character data (the node object is replaced too)."""
        new = NavigableString(data)
        node.string.replace_with(new)
        self._notify()
        return SoupText(self, new)

    def to_html(self) -> str:
        return str(self.soup)
