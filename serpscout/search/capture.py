"""Text-mining fallback over a captured page."""

from __future__ import annotations

import re
from typing import Protocol

from loguru import logger

from serpscout.search.models import PageCapture, SearchResult
from serpscout.search.normalizer import combine_results
from serpscout.search.text import clean_text
from serpscout.search.urls import is_absolute_url, title_from_url

_URL_RE = re.compile(r"https?://[^\s<>\"']+")
_URL_TRAILING = ".,;:!?)]}>"
_NUMBERED_LINE_RE = re.compile(r"^\s*(\d+)\.\s+(.*)$")

# Blank-line runs, horizontal rules, then bullet glyphs.
_BLOCK_SEPARATORS = (
    re.compile(r"\n\s*\n"),
    re.compile(r"-{4,}"),
    re.compile(r"={4,}"),
    re.compile(r"#{4,}"),
    re.compile(r"_{4,}"),
    re.compile("[\u25a0\u25cf\u25b6\u25ba\u2022]"),
)
_MIN_BLOCKS = 3
_MIN_BLOCK_CHARS = 20
_MIN_CONTEXT_TITLE_CHARS = 10

_SKIPPED_URL_PARTS = (
    "duckduckgo.com/html",
    "duckduckgo.com/?q=",
    "google.com/search",
    "bing.com/search",
    "/images/",
    "/css/",
    "/js/",
)
_ASSET_EXTENSION_RE = re.compile(
    r"\.(css|js|png|jpe?g|gif|svg|ico|webp|woff2?|ttf)(?:[?#].*)?$", re.I
)

LIKELY_RESULTS_LINK_COUNT = 10


class CaptureProvider(Protocol):
    """Supplies a captured snapshot of a page."""

    async def capture(self, url: str) -> PageCapture: ...


def is_likely_results_page(capture: PageCapture) -> bool:
    """Link-density hint. Advisory only; it never produces results."""
    likely = capture.link_count > LIKELY_RESULTS_LINK_COUNT
    if likely:
        logger.info(
            "Capture has {} links, likely a search results page",
            capture.link_count,
        )
    return likely


def extract_from_capture(capture: PageCapture, max_results: int) -> list[SearchResult]:
    """Mine results out of captured page text with escalating heuristics."""
    text = (capture.text_content or "").replace("\r\n", "\n")
    if not text.strip() or max_results < 1:
        return []

    is_likely_results_page(capture)

    blocks = split_blocks(text)
    if len(blocks) < _MIN_BLOCKS:
        numbered = split_numbered_blocks(text)
        if len(numbered) >= _MIN_BLOCKS:
            logger.info("Found {} numbered result patterns", len(numbered))
            blocks = numbered

    results = combine_results(_results_from_blocks(blocks), [], max_results)
    if len(results) < max_results:
        results = combine_results(results, extract_url_context(text, max_results), max_results)

    logger.info("Capture analysis found {} results", len(results))
    return results


def split_blocks(text: str) -> list[str]:
    """Split on the first separator that yields at least three sizeable blocks."""
    blocks: list[str] = []
    for separator in _BLOCK_SEPARATORS:
        if not separator.search(text):
            continue
        blocks = [
            b.strip() for b in separator.split(text) if len(b.strip()) > _MIN_BLOCK_CHARS
        ]
        if len(blocks) >= _MIN_BLOCKS:
            logger.debug("Split capture into {} blocks on {!r}", len(blocks), separator.pattern)
            return blocks
    return blocks


def split_numbered_blocks(text: str) -> list[str]:
    """Blocks that start at an `N. ` line and run to the next numbered or blank line."""
    blocks: list[str] = []
    current: list[str] | None = None

    for line in text.split("\n"):
        match = _NUMBERED_LINE_RE.match(line)
        if match:
            if current:
                blocks.append("\n".join(current))
            current = [match.group(2).strip()]
        elif current is not None:
            if line.strip():
                current.append(line.strip())
            else:
                blocks.append("\n".join(current))
                current = None
    if current:
        blocks.append("\n".join(current))

    return [b for b in blocks if len(b) > _MIN_BLOCK_CHARS]


def extract_url_context(text: str, max_results: int) -> list[SearchResult]:
    """Scan unique URLs in order and take a title and description from their surroundings."""
    results: list[SearchResult] = []
    seen: set[str] = set()

    for match in _URL_RE.finditer(text):
        if len(results) >= max_results:
            break
        url = match.group(0).rstrip(_URL_TRAILING)
        if url in seen or not is_absolute_url(url) or _is_non_result_url(url):
            continue
        seen.add(url)

        start = match.start()
        end = start + len(url)
        results.append(
            SearchResult(
                title=clean_text(_title_before(text, start, url)),
                url=url,
                description=clean_text(_description_after(text, end))
                or "Result related to search query",
            )
        )
    return results


def _results_from_blocks(blocks: list[str]) -> list[SearchResult]:
    results: list[SearchResult] = []
    for block in blocks:
        match = _URL_RE.search(block)
        if match is None:
            continue
        url = match.group(0).rstrip(_URL_TRAILING)
        if not is_absolute_url(url) or _is_non_result_url(url):
            continue

        lines = [line.strip() for line in block.split("\n") if line.strip()]
        title_index = 0
        if lines and url in lines[0] and len(lines) > 1:
            title_index = 1
        title = lines[title_index].replace(url, " ") if lines else ""
        description = " ".join(lines[title_index + 1 :]).replace(url, " ")

        title = clean_text(title)
        description = clean_text(description)
        if not title and not description:
            continue
        results.append(
            SearchResult(
                title=title or title_from_url(url),
                url=url,
                description=description,
            )
        )
    return results


def _title_before(text: str, index: int, url: str) -> str:
    lines = [line.strip() for line in text[max(0, index - 150) : index].split("\n") if line.strip()]
    title = lines[-1] if lines else ""
    if _is_usable_title(title):
        return title

    paragraphs = [
        p.strip() for p in re.split(r"\n\s*\n", text[max(0, index - 300) : index]) if p.strip()
    ]
    if paragraphs:
        first_line = paragraphs[-1].split("\n")[0].strip()
        if _is_usable_title(first_line):
            return first_line
    return title_from_url(url)


def _description_after(text: str, index: int) -> str:
    after = text[index : index + 300].strip()
    paragraphs = [p.strip() for p in re.split(r"\n\s*\n", after) if p.strip()]
    if paragraphs:
        return paragraphs[0]
    lines = [line.strip() for line in after.split("\n") if line.strip()]
    return lines[0] if lines else ""


def _is_usable_title(text: str) -> bool:
    return len(text) >= _MIN_CONTEXT_TITLE_CHARS and _URL_RE.search(text) is None


def _is_non_result_url(url: str) -> bool:
    lowered = url.lower()
    if any(part in lowered for part in _SKIPPED_URL_PARTS):
        return True
    return _ASSET_EXTENSION_RE.search(lowered) is not None
