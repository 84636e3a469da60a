"""Static HTML result parsing with engine selectors and a generic link fallback."""

from __future__ import annotations

from bs4 import BeautifulSoup, Tag
from loguru import logger

from serpscout.search.engine import (
    AD_CONTAINER_CLASSES,
    DATE_SELECTOR,
    DESCRIPTION_SELECTORS,
    ICON_SELECTORS,
    RESULT_CONTAINER_SELECTOR,
    TITLE_SELECTORS,
    URL_SELECTORS,
    href_from_display,
    is_engine_url,
    resolve_redirect_url,
)
from serpscout.search.models import SearchResult
from serpscout.search.normalizer import combine_results
from serpscout.search.text import clean_text
from serpscout.search.urls import host_of, is_absolute_url, normalize_url

_MIN_ANCHOR_TITLE_CHARS = 10
_MIN_GENERIC_TITLE_CHARS = 5


def parse_results(markup: str, max_results: int) -> list[SearchResult]:
    """Parse a result page: engine pass, generic fallback if short, then dates."""
    soup = BeautifulSoup(markup or "", "html.parser")

    results = parse_engine_results(soup, max_results)
    if len(results) < max_results:
        logger.info(
            "Engine selectors found only {} results, trying generic link parsing",
            len(results),
        )
        generic = parse_generic_results(soup, max_results)
        results = combine_results(results, generic, max_results)

    results = enhance_with_metadata(soup, results)
    logger.info("Parsed {} results from static markup", len(results))
    return results


def parse_engine_results(soup: BeautifulSoup, max_results: int) -> list[SearchResult]:
    results: list[SearchResult] = []
    seen: set[str] = set()

    for container in soup.select(RESULT_CONTAINER_SELECTOR):
        if len(results) >= max_results:
            break
        if _is_ad(container):
            continue

        title_el = _first_match(container, TITLE_SELECTORS)
        if title_el is None:
            continue
        title = clean_text(title_el.get_text(" "))

        href = _href_of(title_el)
        if not href:
            url_el = _first_match(container, URL_SELECTORS)
            href = href_from_display(url_el.get_text(" ")) if url_el else ""
        url = resolve_redirect_url(href) if href else ""

        if not title or not is_absolute_url(url):
            continue
        key = normalize_url(url)
        if key in seen:
            continue
        seen.add(key)

        desc_el = _first_match(container, DESCRIPTION_SELECTORS)
        description = clean_text(desc_el.get_text(" ")) if desc_el else ""
        icon_el = _first_match(container, ICON_SELECTORS)
        icon = str(icon_el.get("src") or "") if icon_el else ""

        results.append(
            SearchResult(
                title=title,
                url=url,
                description=description or f"Result for search query related to {title}",
                icon=icon or None,
                provider=host_of(url),
            )
        )

    return results


def parse_generic_results(soup: BeautifulSoup, max_results: int) -> list[SearchResult]:
    """Heuristic pass over every anchor for layouts the engine selectors miss."""
    results: list[SearchResult] = []
    seen: set[str] = set()

    for anchor in soup.find_all("a", href=True):
        if len(results) >= max_results:
            break

        href = str(anchor.get("href") or "").strip()
        if not href or href.startswith("#") or href == "/" or "javascript:" in href.lower():
            continue
        if anchor.find_parent(["nav", "header", "footer"]) is not None or _is_ad(anchor):
            continue

        url = resolve_redirect_url(href)
        if not is_absolute_url(url) or is_engine_url(url):
            continue
        key = normalize_url(url)
        if key in seen:
            continue

        title = clean_text(anchor.get_text(" "))
        if len(title) < _MIN_ANCHOR_TITLE_CHARS:
            block = anchor.find_parent("div")
            heading = block.find(["h1", "h2", "h3", "h4", "h5"]) if block else None
            if heading is not None:
                title = clean_text(heading.get_text(" "))
        if len(title) < _MIN_ANCHOR_TITLE_CHARS and isinstance(anchor.parent, Tag):
            parent_text = clean_text(anchor.parent.get_text(" "))
            if len(parent_text) > len(title):
                title = parent_text
        if len(title) <= _MIN_GENERIC_TITLE_CHARS:
            continue

        seen.add(key)
        img = anchor.find("img")
        icon = str(img.get("src") or "") if img is not None else ""
        results.append(
            SearchResult(
                title=title,
                url=url,
                description=_nearby_description(anchor) or "Result related to search query",
                icon=icon or None,
                provider=host_of(url),
            )
        )

    return results


def enhance_with_metadata(soup: BeautifulSoup, results: list[SearchResult]) -> list[SearchResult]:
    """Attach a nearby date element to results that have none."""
    if not any(not r.date for r in results):
        return results

    anchors: dict[str, Tag] = {}
    for anchor in soup.find_all("a", href=True):
        url = resolve_redirect_url(str(anchor.get("href") or ""))
        if is_absolute_url(url):
            anchors.setdefault(normalize_url(url), anchor)

    for result in results:
        if result.date:
            continue
        anchor = anchors.get(normalize_url(result.url))
        if anchor is None:
            continue
        date = _nearby_date(anchor)
        if date:
            result.date = date
    return results


def _first_match(container: Tag, selectors: tuple[str, ...]) -> Tag | None:
    for selector in selectors:
        found = container.select_one(selector)
        if found is not None:
            return found
    return None


def _href_of(element: Tag) -> str:
    if element.name == "a" and element.get("href"):
        return str(element["href"])
    inner = element.find("a", href=True)
    return str(inner["href"]) if inner is not None else ""


def _is_ad(element: Tag) -> bool:
    node: Tag | None = element
    while node is not None and isinstance(node, Tag):
        classes = node.get("class") or []
        if any(c in AD_CONTAINER_CLASSES for c in classes):
            return True
        node = node.parent
    return False


def _nearby_description(anchor: Tag) -> str:
    sibling = anchor.find_next_sibling(["p", "div"])
    if sibling is not None:
        text = clean_text(sibling.get_text(" "))
        if text:
            return text

    parent = anchor.parent
    if isinstance(parent, Tag):
        paragraph = parent.find("p")
        if paragraph is not None and paragraph.find("a") is None:
            return clean_text(paragraph.get_text(" "))
    return ""


def _nearby_date(anchor: Tag) -> str:
    scopes: list[Tag] = []
    if isinstance(anchor.parent, Tag):
        scopes.append(anchor.parent)
    container = anchor.find_parent(class_=["result", "web-result", "links_main", "result__body"])
    if container is not None and container not in scopes:
        scopes.append(container)

    for scope in scopes:
        element = scope.select_one(DATE_SELECTOR)
        if element is None:
            element = next(
                (span for span in scope.find_all("span") if "/" in span.get_text()),
                None,
            )
        if element is None:
            continue
        text = clean_text(element.get_text(" ")) or str(element.get("datetime") or "")
        if text:
            return text
    return ""
