"""Bounded-concurrency execution of independent queries."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from loguru import logger

from serpscout.search.errors import SearchError
from serpscout.search.models import SearchOptions, SearchResult

if TYPE_CHECKING:
    from serpscout.search.pipeline import SearchPipeline


@dataclass(slots=True)
class BatchOutcome:
    """Per-query result of a batch run: results on success, the error otherwise."""

    query: str
    results: list[SearchResult] = field(default_factory=list)
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def search_batch(
    pipeline: "SearchPipeline",
    queries: Sequence[str],
    options: SearchOptions | None = None,
    max_workers: int = 5,
    *,
    timeout_s: float | None = None,
) -> list[BatchOutcome]:
    """Run each query through the pipeline in isolation, at most `max_workers` at a time."""
    if max_workers < 1:
        raise ValueError("max_workers must be >= 1")
    semaphore = asyncio.Semaphore(max_workers)

    async def run_one(query: str) -> BatchOutcome:
        async with semaphore:
            try:
                results = await pipeline.search(query, options, timeout_s=timeout_s)
            except SearchError as e:
                logger.warning("Search for '{}' failed: {}", query, e)
                return BatchOutcome(query=query, error=e)
            except Exception as e:
                logger.exception("Search for '{}' crashed", query)
                return BatchOutcome(query=query, error=e)
            return BatchOutcome(query=query, results=results)

    logger.info("Running {} searches with {} workers", len(queries), max_workers)
    return list(await asyncio.gather(*(run_one(q) for q in queries)))
