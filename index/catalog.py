from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass

from index.tfidf import Category, CorpusIndex, build_index
from ingestion.cache import Fetcher
from ingestion.loader import DatasetError, load_dataset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogConfig:
    items_source: str = "data/wastes.csv"
    categories_source: str = "data/bins.config.json"
    max_age_hours: float = 24
    fetch_timeout: float = 10.0

    @classmethod
    def from_env(cls) -> CatalogConfig:
        return cls(
            items_source=os.getenv("SORTGUIDE_ITEMS_SOURCE") or cls.items_source,
            categories_source=os.getenv("SORTGUIDE_BINS_SOURCE") or cls.categories_source,
            max_age_hours=float(os.getenv("SORTGUIDE_CACHE_MAX_AGE_HOURS") or cls.max_age_hours),
            fetch_timeout=float(os.getenv("SORTGUIDE_FETCH_TIMEOUT") or cls.fetch_timeout),
        )


class Catalog:
    """Owns the corpus lifecycle: load the dataset, build the index, swap it on reload.

    Queries read `index` and never mutate it; a reload replaces it wholesale, and a
    failed reload keeps the previous index.
    """

    def __init__(self, config: CatalogConfig | None = None, *, fetch: Fetcher | None = None):
        self.config = config or CatalogConfig()
        self.fetch = fetch
        self.index: CorpusIndex | None = None
        self.categories: dict[str, Category] = {}
        self.error: str | None = None
        self._lock = asyncio.Lock()

    @property
    def loaded(self) -> bool:
        return self.index is not None

    async def reload(
        self, items_source: str | None = None, categories_source: str | None = None
    ) -> CorpusIndex:
        items_source = items_source or self.config.items_source
        categories_source = categories_source or self.config.categories_source
        async with self._lock:
            try:
                dataset = await load_dataset(
                    items_source,
                    categories_source,
                    max_age_hours=self.config.max_age_hours,
                    timeout=self.config.fetch_timeout,
                    fetch=self.fetch,
                )
            except DatasetError as e:
                logger.exception("dataset load failed")
                self.error = str(e)
                raise

            index = build_index(dataset.items, dataset.categories)
            unresolved = sum(1 for d in index.documents if d.item.bin and d.category is None)
            if unresolved:
                logger.warning("%d items reference an unknown bin", unresolved)

            self.index = index
            self.categories = dataset.categories
            self.error = None
            self.config = CatalogConfig(
                items_source=items_source,
                categories_source=categories_source,
                max_age_hours=self.config.max_age_hours,
                fetch_timeout=self.config.fetch_timeout,
            )
            logger.info(
                "loaded %d items and %d bins from %s", index.size, len(self.categories), items_source
            )
            return index

    async def ensure_loaded(self) -> CorpusIndex:
        if self.index is not None:
            return self.index
        return await self.reload()

    def stats(self) -> dict:
        return {
            "documents": self.index.size if self.index else 0,
            "vocabulary": len(self.index.idf) if self.index else 0,
            "categories": len(self.categories),
            "items_source": self.config.items_source,
            "categories_source": self.config.categories_source,
            "error": self.error,
        }


_SINGLETONS: dict[CatalogConfig, Catalog] = {}


def get_catalog(config: CatalogConfig | None = None) -> Catalog:
    cfg = config or CatalogConfig.from_env()
    inst = _SINGLETONS.get(cfg)
    if inst is None:
        inst = Catalog(cfg)
        _SINGLETONS[cfg] = inst
    return inst
