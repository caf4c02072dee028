from __future__ import annotations

import logging
import math
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from processing.text import tokenize, trigrams

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Item:
    id: str
    name: str
    aliases: str = ""
    notes: str = ""
    bin: str = ""

    @property
    def alias_list(self) -> list[str]:
        return [a.strip() for a in (self.aliases or "").split(";") if a.strip()]


@dataclass(frozen=True)
class Category:
    id: str
    label: str
    hex: str = ""
    text_hex: str = ""
    notes: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "hex": self.hex,
            "text_hex": self.text_hex,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class SparseVector:
    weights: dict[str, float] = field(default_factory=dict)
    norm: float = 1.0  # never 0; an all-zero vector keeps norm 1


def _weigh(tokens: list[str], idf: Mapping[str, float]) -> SparseVector:
    if not tokens:
        return SparseVector()
    n = len(tokens)
    weights = {term: (count / n) * idf.get(term, 0.0) for term, count in Counter(tokens).items()}
    norm = math.sqrt(sum(w * w for w in weights.values())) or 1.0
    return SparseVector(weights, norm)


@dataclass(frozen=True)
class IndexedDocument:
    item: Item
    text: str
    tokens: tuple[str, ...]
    trigrams: frozenset[str]
    vector: SparseVector
    category: Category | None = None

    @property
    def id(self) -> str:
        return self.item.id

    @property
    def name(self) -> str:
        return self.item.name


@dataclass(frozen=True)
class CorpusIndex:
    documents: tuple[IndexedDocument, ...]
    df: dict[str, int]
    idf: dict[str, float]

    @property
    def size(self) -> int:
        return len(self.documents)


def document_text(item: Item) -> str:
    return " ".join(part for part in (item.name, item.aliases, item.notes) if part)


def build_index(
    items: Iterable[Item], categories: Mapping[str, Category] | None = None
) -> CorpusIndex:
    """Index a fixed corpus: tokens, trigrams and TF-IDF vectors per item.

    idf(t) = ln(1 + N / (1 + df(t))) stays positive even when df == N, so
    terms present everywhere are discounted but never suppressed outright.
    """
    categories = categories or {}
    staged: list[tuple[Item, str, list[str]]] = []
    df: Counter[str] = Counter()
    for item in items:
        text = document_text(item)
        tokens = tokenize(text)
        staged.append((item, text, tokens))
        df.update(set(tokens))

    n = len(staged)
    idf = {term: math.log(1.0 + n / (1.0 + count)) for term, count in df.items()}

    documents = tuple(
        IndexedDocument(
            item=item,
            text=text,
            tokens=tuple(tokens),
            trigrams=trigrams(text),
            vector=_weigh(tokens, idf),
            category=categories.get(item.bin) if item.bin else None,
        )
        for item, text, tokens in staged
    )
    logger.debug("indexed %d documents, %d distinct terms", n, len(idf))
    return CorpusIndex(documents=documents, df=dict(df), idf=idf)


def vectorize(query: str, idf: Mapping[str, float]) -> SparseVector:
    # Terms unseen in the corpus weigh 0; the IDF table is never extended.
    return _weigh(tokenize(query), idf)
