"""Result normalization, deduplication and merging."""

from __future__ import annotations

from collections.abc import Iterable

from loguru import logger

from serpscout.search.models import SearchResult
from serpscout.search.text import clean_description, clean_title, normalize_date
from serpscout.search.urls import (
    clean_provider,
    is_absolute_url,
    normalize_icon_url,
    normalize_url,
    provider_from_url,
    title_from_url,
)


def normalize_results(results: Iterable[SearchResult], max_results: int) -> list[SearchResult]:
    """Clean, deduplicate and truncate results, preserving extraction order."""
    cleaned: list[SearchResult] = []
    dropped = 0
    for result in results:
        normalized = normalize_result(result)
        if normalized is None:
            dropped += 1
            continue
        cleaned.append(normalized)

    unique = deduplicate_results(cleaned)
    if dropped or len(unique) != len(cleaned):
        logger.debug(
            "Normalizer dropped {} invalid and {} duplicate results",
            dropped,
            len(cleaned) - len(unique),
        )
    return unique[: max(0, max_results)]


def normalize_result(result: SearchResult) -> SearchResult | None:
    """Return a cleaned copy, or None when no absolute URL can be recovered."""
    url = normalize_url(result.url)
    if not is_absolute_url(url):
        return None

    title = clean_title(result.title) or clean_title(title_from_url(url))
    provider = clean_provider(result.provider) if result.provider else ""

    return SearchResult(
        title=title,
        url=url,
        description=clean_description(result.description, title),
        icon=normalize_icon_url(result.icon or "", url) or None,
        provider=provider or provider_from_url(url),
        date=normalize_date(result.date) or None,
    )


def deduplicate_results(results: Iterable[SearchResult]) -> list[SearchResult]:
    """
    Collapse results sharing a normalized URL.

    The richer record (longer title, then longer description) wins and takes
    the position of the first occurrence.
    """
    kept: dict[str, SearchResult] = {}
    for result in results:
        key = normalize_url(result.url)
        existing = kept.get(key)
        if existing is None or _is_richer(result, existing):
            kept[key] = result
    return list(kept.values())


def combine_results(
    primary: Iterable[SearchResult],
    secondary: Iterable[SearchResult],
    max_results: int,
) -> list[SearchResult]:
    """Merge two result lists by normalized URL, first seen wins, capped at max_results."""
    combined: list[SearchResult] = []
    seen: set[str] = set()
    for source in (primary, secondary):
        for result in source:
            if len(combined) >= max_results:
                return combined
            if not result.url:
                continue
            key = normalize_url(result.url)
            if key in seen:
                continue
            seen.add(key)
            combined.append(result)
    return combined


def _is_richer(candidate: SearchResult, existing: SearchResult) -> bool:
    if len(candidate.title) != len(existing.title):
        return len(candidate.title) > len(existing.title)
    return len(candidate.description or "") > len(existing.description or "")
