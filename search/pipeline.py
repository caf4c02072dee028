from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from index.tfidf import CorpusIndex, IndexedDocument, vectorize
from processing.text import normalize, trigrams
from search.similarity import cosine, jaccard

# Empirical constants; tune here, not per call.
COSINE_WEIGHT = 0.7
TRIGRAM_WEIGHT = 0.3
SUBSTRING_BONUS = 0.1
CONFIDENCE_THRESHOLD = 0.12
MAX_RESULTS = 20


@dataclass(frozen=True)
class SearchOptions:
    only_confident: bool = False


@dataclass(frozen=True)
class ScoredResult:
    document: IndexedDocument
    score: float

    def to_dict(self) -> dict:
        item = self.document.item
        category = self.document.category
        return {
            "id": item.id,
            "name": item.name,
            "aliases": item.alias_list,
            "notes": item.notes or None,
            "bin": item.bin or None,
            "category": category.to_dict() if category else None,
            "score": float(round(self.score, 6)),
        }


def _bonus(q_norm: str, doc: IndexedDocument) -> float:
    item = doc.item
    if q_norm in (item.name or "").lower() or q_norm in (item.aliases or "").lower():
        return SUBSTRING_BONUS
    return 0.0


def score_documents(query: str, index: CorpusIndex) -> np.ndarray:
    """Blend of TF-IDF cosine, trigram Jaccard and exact-substring bonus, per document."""
    q_norm = normalize(query)
    q_vec = vectorize(q_norm, index.idf)
    q_tri = trigrams(q_norm)
    scores = np.zeros(index.size, dtype=np.float64)
    for i, doc in enumerate(index.documents):
        scores[i] = (
            COSINE_WEIGHT * cosine(q_vec, doc.vector)
            + TRIGRAM_WEIGHT * jaccard(q_tri, doc.trigrams)
            + _bonus(q_norm, doc)
        )
    return scores


def search(
    query: str, index: CorpusIndex, options: SearchOptions | None = None
) -> list[ScoredResult]:
    options = options or SearchOptions()
    if not normalize(query) or index.size == 0:
        return []

    scores = score_documents(query, index)
    # stable sort keeps corpus order among equal scores
    order = np.argsort(-scores, kind="stable")
    ranked = [ScoredResult(index.documents[i], float(scores[i])) for i in order.tolist()]
    if options.only_confident:
        ranked = [r for r in ranked if r.score >= CONFIDENCE_THRESHOLD]
    return ranked[:MAX_RESULTS]


def suggestions(index: CorpusIndex, limit: int = 5) -> list[ScoredResult]:
    return [ScoredResult(doc, 0.0) for doc in index.documents[: max(limit, 0)]]
