"""Domain filters and follow-up query generation."""

from __future__ import annotations

from collections.abc import Iterable

from loguru import logger

from serpscout.search.models import SearchFilters, SearchResult

# Topic-agnostic templates; a content-aware generator would replace these.
FOLLOW_UP_TEMPLATES = (
    "{query} causes",
    "{query} solutions",
    "{query} recent developments",
    "{query} statistics",
    "{query} future predictions",
)


def apply_filters(results: Iterable[SearchResult], filters: SearchFilters | None) -> list[SearchResult]:
    """Keep results whose URL matches an include substring (if any) and no exclude substring."""
    results = list(results)
    if filters is None or filters.empty:
        return results

    include = [s.lower() for s in filters.include]
    exclude = [s.lower() for s in filters.exclude]
    kept: list[SearchResult] = []
    for result in results:
        url = result.url.lower()
        if include and not any(s in url for s in include):
            continue
        if any(s in url for s in exclude):
            continue
        kept.append(result)

    if len(kept) != len(results):
        logger.info("Domain filters removed {} of {} results", len(results) - len(kept), len(results))
    return kept


def generate_follow_up_queries(query: str) -> list[str]:
    query = (query or "").strip()
    if not query:
        return []
    return [template.format(query=query) for template in FOLLOW_UP_TEMPLATES]
