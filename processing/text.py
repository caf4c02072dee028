from __future__ import annotations

import re
import unicodedata

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_PAD = "  "


def normalize(text: str | None) -> str:
    """Lowercase, strip diacritics and trim.

    Case folding happens before NFD so that any marks produced by lowercasing
    are removed too, which keeps normalize() idempotent.
    """
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", str(text).lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.strip()


def tokenize(text: str | None) -> list[str]:
    return [t for t in _NON_ALNUM.split(normalize(text)) if t]


def trigrams(text: str | None) -> frozenset[str]:
    padded = _PAD + normalize(text) + _PAD
    return frozenset(padded[i : i + 3] for i in range(len(padded) - 2))
