from __future__ import annotations

import pytest

from index.tfidf import Item, build_index, vectorize
from processing.text import trigrams
from search.pipeline import (
    CONFIDENCE_THRESHOLD,
    MAX_RESULTS,
    SUBSTRING_BONUS,
    ScoredResult,
    SearchOptions,
    score_documents,
    search,
    suggestions,
)
from search.similarity import cosine, jaccard


def _two_items():
    return build_index(
        [
            Item(id="1", name="Boîte de conserve", aliases="conserve;boite metal", bin="metal"),
            Item(id="2", name="Pot de yaourt", aliases="yaourt", bin="plastique"),
        ]
    )


def _catalog():
    rows = [
        ("Bouteille en plastique", "bouteille eau;bouteille soda"),
        ("Bouteille en verre", "bouteille vin;bocal"),
        ("Canette", "canette alu;cannette"),
        ("Carton d'emballage", "carton;boite carton"),
        ("Journal", "presse;magazine"),
        ("Pile", "piles;batterie"),
    ]
    return build_index(
        [Item(id=str(i), name=n, aliases=a) for i, (n, a) in enumerate(rows, start=1)]
    )


def test_empty_query_returns_nothing():
    idx = _two_items()
    assert search("", idx) == []
    assert search("   ", idx) == []
    assert search("", idx, SearchOptions(only_confident=True)) == []


def test_empty_corpus_returns_nothing():
    assert search("conserve", build_index([])) == []


def test_alias_match_ranks_first_with_bonus():
    idx = _two_items()
    results = search("conserve", idx)
    assert [r.document.id for r in results] == ["1", "2"]
    top = results[0]
    base = 0.7 * cosine(vectorize("conserve", idx.idf), top.document.vector) + 0.3 * jaccard(
        trigrams("conserve"), top.document.trigrams
    )
    assert top.score - base == pytest.approx(SUBSTRING_BONUS)
    assert top.score > results[1].score


def test_bonus_requires_literal_lowercase_substring():
    idx = build_index([Item(id="1", name="Pot de Yaourt")])
    q = "yaourt"
    (r,) = search(q, idx)
    base = 0.7 * cosine(vectorize(q, idx.idf), r.document.vector) + 0.3 * jaccard(
        trigrams(q), r.document.trigrams
    )
    assert r.score == pytest.approx(base + SUBSTRING_BONUS)


def test_unseen_token_falls_back_to_trigrams():
    idx = _catalog()
    q = "bouteil"
    qv = vectorize(q, idx.idf)
    assert all(cosine(qv, d.vector) == 0.0 for d in idx.documents)
    results = search(q, idx)
    for r in results:
        expected = 0.3 * jaccard(trigrams(q), r.document.trigrams)
        if q in r.document.item.name.lower() or q in r.document.item.aliases.lower():
            expected += SUBSTRING_BONUS
        assert r.score == pytest.approx(expected)
    assert results[0].document.item.name.startswith("Bouteille")


def test_typo_still_finds_item():
    results = search("canete", _catalog())
    assert results and results[0].document.item.name == "Canette"


def test_ordering_is_deterministic():
    idx = _catalog()
    a = [(r.document.id, r.score) for r in search("bouteille", idx)]
    b = [(r.document.id, r.score) for r in search("bouteille", idx)]
    assert a == b


def test_ties_keep_corpus_order():
    idx = build_index([Item(id=c, name="Pile") for c in "abc"])
    assert [r.document.id for r in search("pile", idx)] == ["a", "b", "c"]


def test_only_confident_filters_without_reordering():
    idx = _catalog()
    for q in ("bouteille", "carton", "zzzqx", "batery"):
        everything = search(q, idx)
        confident = search(q, idx, SearchOptions(only_confident=True))
        expected = [r for r in everything if r.score >= CONFIDENCE_THRESHOLD]
        assert confident == expected


def test_only_confident_drops_non_matches():
    idx = _two_items()
    assert len(search("zzzqx", idx)) == 2
    assert search("zzzqx", idx, SearchOptions(only_confident=True)) == []


def test_results_are_capped_to_best_scores():
    idx = build_index(
        [Item(id=str(i), name=f"widget {'x' * i}", aliases="widget") for i in range(50)]
    )
    results = search("widget", idx, SearchOptions(only_confident=True))
    assert len(results) == MAX_RESULTS
    assert all(r.score >= CONFIDENCE_THRESHOLD for r in results)

    scores = score_documents("widget", idx)
    returned = {r.document.id for r in results}
    floor = min(r.score for r in results)
    for i, doc in enumerate(idx.documents):
        if doc.id not in returned:
            assert scores[i] <= floor
    assert [r.score for r in results] == sorted((r.score for r in results), reverse=True)


def test_result_to_dict():
    r = search("conserve", _two_items())[0]
    data = r.to_dict()
    assert data["id"] == "1"
    assert data["aliases"] == ["conserve", "boite metal"]
    assert data["bin"] == "metal"
    assert data["category"] is None
    assert data["notes"] is None
    assert isinstance(data["score"], float)


def test_suggestions_follow_corpus_order():
    idx = _catalog()
    out = suggestions(idx, limit=2)
    assert [r.document.id for r in out] == ["1", "2"]
    assert all(isinstance(r, ScoredResult) and r.score == 0.0 for r in out)
    assert suggestions(idx, limit=0) == []
