# src/cancel_spotter/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The detector depends on Protocols instead of a concrete DOM.
A page can come from a parsed HTML file, a browser bridge or an in-memory fake;
each adapter only has to provide this small traversal/style capability set.

Adapters must return the SAME object for the same underlying element every time,
because the detector de-duplicates and keys style snapshots by object identity.
"""

from collections.abc import Callable, Iterable, Iterator
from enum import Enum
from typing import Protocol, Union

ChatMessage = dict[str, str]
# OpenAI-style chat messages: {"role": "...", "content": "..."}.

MutationCallback = Callable[[], None]
Unsubscribe = Callable[[], None]
CountListener = Callable[[int], None]


class NodeKind(str, Enum):
    ELEMENT = "element"
    TEXT = "text"


class TextNode(Protocol):
    kind: NodeKind

    @property
    def data(self) -> str: ...

    @property
    def parent(self) -> Element | None: ...


class Element(Protocol):
    kind: NodeKind

    @property
    def tag_name(self) -> str: ...
    # lower-case tag name ("button", "a", ...)

    @property
    def parent(self) -> Element | None: ...
    # None at the top of the document

    def children(self) -> Iterator[Node]: ...
    def get_attribute(self, name: str) -> str | None: ...
    def has_attribute(self, name: str) -> bool: ...
    def text_content(self) -> str: ...

    # Inline style access; "" means "not set".
    def get_style(self, prop: str) -> str: ...
    def set_style(self, prop: str, value: str) -> None: ...
    def computed_position(self) -> str: ...


Node = Union[Element, TextNode]


class Document(Protocol):
    def document_element(self) -> Element | None: ...
    def body(self) -> Element | None: ...


class MutationSource(Protocol):
    """
    Change-notification source (MutationObserver equivalent).

    Callbacks fire on child insertion/removal anywhere in the tree and on text changes.
    Style writes are not reported.
    """

    def observe(self, callback: MutationCallback) -> Unsubscribe: ...


class LLMClient(Protocol):
    """Streaming chat completion client (OpenAI-compatible)."""
    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]: ...
