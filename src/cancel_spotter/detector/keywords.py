# src/cancel_spotter/detector/keywords.py

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

DEFAULT_KEYWORDS: tuple[str, ...] = (
    "cancel",
    "unsubscribe",
    "end subscription",
    "terminate",
    "stop subscription",
    "stop service",
    "delete account",
    "close account",
    "end membership",
)


@dataclass(frozen=True, slots=True)
class KeywordSet:
    """
    Ordered, immutable set of cancellation phrases.

    Phrases are matched as case-insensitive substrings, so they are stored lower-cased.
    Order matters: it decides the first-seen order of candidates.
    """

    phrases: tuple[str, ...]

    @classmethod
    def of(cls, phrases: Iterable[str]) -> KeywordSet:
        out: list[str] = []
        for raw in phrases:
            p = " ".join(str(raw or "").split()).lower()
            if p and p not in out:
                out.append(p)
        return cls(phrases=tuple(out))

    @classmethod
    def default(cls) -> KeywordSet:
        return cls.of(DEFAULT_KEYWORDS)

    def __iter__(self) -> Iterator[str]:
        return iter(self.phrases)

    def __len__(self) -> int:
        return len(self.phrases)

    def first_match(self, text: str) -> str | None:
        t = (text or "").lower()
        for p in self.phrases:
            if p in t:
                return p
        return None
