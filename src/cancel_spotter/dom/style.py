# src/cancel_spotter/dom/style.py

from __future__ import annotations

"""Inline `style="..."` attribute parsing and serialization."""


def parse_inline_style(raw: str | None) -> dict[str, str]:
    """
    "outline: 1px solid red; background: url('a;b.png')" -> {"outline": "...", "background": "..."}

    Property names are lower-cased, later declarations win, order of first appearance is kept.
    Semicolons inside quotes or parentheses do not split declarations.
    """
    out: dict[str, str] = {}
    for decl in _split_declarations(raw or ""):
        name, sep, value = decl.partition(":")
        if not sep:
            continue
        name = name.strip().lower()
        value = value.strip()
        if name and value:
            out[name] = value
    return out


def serialize_inline_style(decls: dict[str, str]) -> str:
    return " ".join(f"{name}: {value};" for name, value in decls.items())


def _split_declarations(raw: str) -> list[str]:
    parts: list[str] = []
    buf: list[str] = []
    depth = 0
    quote: str | None = None

    for ch in raw:
        if quote:
            buf.append(ch)
            if ch == quote:
                quote = None
            continue
        if ch in ("'", '"'):
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(0, depth - 1)
        elif ch == ";" and depth == 0:
            parts.append("".join(buf))
            buf = []
            continue
        buf.append(ch)

    if buf:
        parts.append("".join(buf))
    return [p for p in (s.strip() for s in parts) if p]
