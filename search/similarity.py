from __future__ import annotations

from collections.abc import Set

from index.tfidf import SparseVector


def cosine(a: SparseVector | None, b: SparseVector | None) -> float:
    """Cosine of two sparse vectors; 0.0 when either side is missing or empty."""
    if a is None or b is None or not a.weights or not b.weights:
        return 0.0
    small, large = (a, b) if len(a.weights) <= len(b.weights) else (b, a)
    # dot product over intersection
    s = 0.0
    for term, w in small.weights.items():
        v = large.weights.get(term)
        if v:
            s += w * v
    denom = (a.norm or 1.0) * (b.norm or 1.0)
    return min(s / denom, 1.0)


def jaccard(a: Set[str], b: Set[str]) -> float:
    inter = len(a & b)
    union = len(a) + len(b) - inter
    return inter / union if union else 0.0
