import logging
import os
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from index.catalog import Catalog, get_catalog
from index.tfidf import CorpusIndex
from ingestion.loader import DatasetError
from processing.render import render_results
from processing.text import normalize
from search.pipeline import SearchOptions, search, suggestions

logging.basicConfig(
    level=os.getenv("SORTGUIDE_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

LOAD_ERROR = "Erreur de chargement des données."

app = FastAPI(title="sortguide", version="0.1.0")


async def _index(catalog: Catalog | None = None) -> CorpusIndex:
    catalog = catalog or get_catalog()
    try:
        return await catalog.ensure_loaded()
    except DatasetError:
        raise HTTPException(status_code=503, detail=LOAD_ERROR) from None


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


def _payload(query: str, index: CorpusIndex, only_confident: bool) -> dict[str, Any]:
    ranked = search(query, index, SearchOptions(only_confident=only_confident))
    return {
        "query": query,
        "count": len(ranked),
        "results": [r.to_dict() for r in ranked],
    }


@app.get("/search")
async def search_get(q: str = "", only_confident: bool = False) -> dict[str, Any]:
    return _payload(q, await _index(), only_confident)


class SearchRequest(BaseModel):
    query: str
    only_confident: bool = False


@app.post("/search")
async def search_post(body: SearchRequest) -> dict[str, Any]:
    return _payload(body.query, await _index(), body.only_confident)


@app.get("/search/cards", response_class=HTMLResponse)
async def search_cards(q: str = "", only_confident: bool = False) -> str:
    index = await _index()
    if not normalize(q):
        # nothing typed yet: show the first items as unscored suggestions
        return render_results(suggestions(index), q, show_score=False)
    ranked = search(q, index, SearchOptions(only_confident=only_confident))
    return render_results(ranked, q)


@app.get("/suggestions")
async def suggestions_get(limit: int = 5) -> dict[str, list[dict]]:
    index = await _index()
    return {"results": [r.to_dict() for r in suggestions(index, limit=limit)]}


@app.get("/categories")
async def categories() -> dict[str, list[dict]]:
    catalog = get_catalog()
    await _index(catalog)
    return {"categories": [c.to_dict() for c in catalog.categories.values()]}


@app.get("/index/stats")
def index_stats() -> dict[str, Any]:
    return get_catalog().stats()


class ReloadRequest(BaseModel):
    items_source: str | None = None
    categories_source: str | None = None


@app.post("/reload")
async def reload(body: ReloadRequest | None = None) -> dict[str, Any]:
    catalog = get_catalog()
    body = body or ReloadRequest()
    try:
        await catalog.reload(body.items_source, body.categories_source)
    except DatasetError:
        raise HTTPException(status_code=503, detail=LOAD_ERROR) from None
    return catalog.stats()
