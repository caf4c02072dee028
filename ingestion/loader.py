from __future__ import annotations

import asyncio
import csv
import io
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

import httpx

from index.tfidf import Category, Item
from ingestion.cache import Fetcher, fetch_url_cached

logger = logging.getLogger(__name__)


class DatasetError(RuntimeError):
    """Raised when the items file or the bins config cannot be read or parsed."""


@dataclass
class Dataset:
    items: list[Item] = field(default_factory=list)
    categories: dict[str, Category] = field(default_factory=dict)


def _cell(row: dict, key: str) -> str:
    return (row.get(key) or "").strip()


def parse_items(text: str) -> list[Item]:
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    try:
        rows = list(reader)
    except csv.Error as e:
        raise DatasetError(f"invalid items file: {e}") from e

    items: list[Item] = []
    for n, row in enumerate(rows, start=1):
        name = _cell(row, "name")
        if not name:
            logger.debug("skipping row %d without a name", n)
            continue
        items.append(
            Item(
                id=_cell(row, "id") or str(n),
                name=name,
                aliases=_cell(row, "aliases"),
                notes=_cell(row, "notes"),
                bin=_cell(row, "bin"),
            )
        )
    return items


def parse_categories(text: str) -> dict[str, Category]:
    try:
        data = json.loads(text)
    except ValueError as e:
        raise DatasetError(f"invalid bins config: {e}") from e
    bins = data.get("bins") if isinstance(data, dict) else None
    if not isinstance(bins, list):
        raise DatasetError("bins config must contain a 'bins' list")

    out: dict[str, Category] = {}
    for b in bins:
        if not isinstance(b, dict) or not b.get("id"):
            logger.warning("skipping bin entry without an id: %r", b)
            continue
        cid = str(b["id"])
        out[cid] = Category(
            id=cid,
            label=str(b.get("label") or cid),
            hex=str(b.get("hex") or ""),
            text_hex=str(b.get("text_hex") or ""),
            notes=b.get("notes") or None,
        )
    return out


def _is_remote(source: str) -> bool:
    return source.startswith(("http://", "https://"))


async def read_source(
    source: str,
    *,
    max_age_hours: float = 24,
    timeout: float = 10.0,
    fetch: Fetcher | None = None,
) -> str:
    """Read a data asset from a local path or an http(s) URL (through the offline cache)."""
    if _is_remote(source):
        try:
            status, text, _ctype = await fetch_url_cached(
                source, max_age_hours=max_age_hours, timeout=timeout, fetch=fetch
            )
        except httpx.HTTPError as e:
            raise DatasetError(f"could not fetch {source}: {e}") from e
        if status != 200:
            raise DatasetError(f"could not fetch {source}: HTTP {status}")
        return text

    try:
        return Path(source).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DatasetError(f"could not read {source}: {e}") from e


async def load_dataset(
    items_source: str,
    categories_source: str,
    *,
    max_age_hours: float = 24,
    timeout: float = 10.0,
    fetch: Fetcher | None = None,
) -> Dataset:
    items_text, bins_text = await asyncio.gather(
        read_source(items_source, max_age_hours=max_age_hours, timeout=timeout, fetch=fetch),
        read_source(categories_source, max_age_hours=max_age_hours, timeout=timeout, fetch=fetch),
    )
    return Dataset(items=parse_items(items_text), categories=parse_categories(bins_text))
