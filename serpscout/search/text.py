"""Text cleanup for result titles, descriptions and dates."""

from __future__ import annotations

import re
from datetime import datetime

from dateutil import parser as date_parser

_WS_RE = re.compile(r"\s+")
_MULTI_DOT_RE = re.compile(r"\.{2,}")
_TERMINAL_PUNCT_RE = re.compile(r"[.!?]$")
_YEAR_RE = re.compile(r"\b(1[89]\d{2}|2\d{3})\b")

# Missing month or day parts resolve to Jan 1 rather than the current date.
_DATE_DEFAULT = datetime(2000, 1, 1)

_TITLE_PREFIX_RE = re.compile(r"^(?:web result|search result|result)(?:\s*[:|\-]\s*|\s+)", re.I)
_TITLE_INDEX_SUFFIX_RE = re.compile(r"\s*\(\d+\)$")

_DESCRIPTION_PREFIX_RE = re.compile(r"^(?:description|summary|excerpt)[:|\-\s]\s*", re.I)
_CALL_TO_ACTION_RES = (
    re.compile(r"Click to view\b.*", re.I),
    re.compile(r"\bVisit website\b.*", re.I),
)

_CHAR_REPLACEMENTS = (
    ("\\n", " "),
    ("\u2018", "'"),
    ("\u2019", "'"),
    ("\u201c", '"'),
    ("\u201d", '"'),
    ("\u2026", "..."),
    ("\u2013", "-"),
    ("\u2014", "--"),
    ("\u200b", ""),
)

MAX_TITLE_CHARS = 100
MAX_DESCRIPTION_CHARS = 300
MIN_DESCRIPTION_CHARS = 10


def clean_text(text: str | None) -> str:
    """Normalize typographic characters and collapse whitespace."""
    if not text:
        return ""
    for old, new in _CHAR_REPLACEMENTS:
        text = text.replace(old, new)
    return _WS_RE.sub(" ", text).strip()


def clean_title(text: str | None) -> str:
    cleaned = clean_text(text)

    previous = None
    while previous != cleaned:
        previous = cleaned
        cleaned = _TITLE_PREFIX_RE.sub("", cleaned)
        cleaned = _TITLE_INDEX_SUFFIX_RE.sub("", cleaned).strip()

    if len(cleaned) > MAX_TITLE_CHARS:
        cleaned = cleaned[: MAX_TITLE_CHARS - 3].rstrip() + "..."

    if cleaned:
        cleaned = cleaned[0].upper() + cleaned[1:]
    return cleaned


def description_placeholder(title: str) -> str:
    return f"Information about {title}" if title else "Search result"


def clean_description(text: str | None, title: str = "") -> str:
    """
    Clean a result snippet.

    Absent, too short or title-duplicating snippets are replaced by
    `description_placeholder(title)`. Output always ends with terminal
    punctuation (unless it is the placeholder) and stays within
    MAX_DESCRIPTION_CHARS, cut at a sentence boundary where one exists past
    the midpoint.
    """
    placeholder = description_placeholder(title)
    title = title.strip()
    cleaned = clean_text(text)
    if not cleaned or cleaned == placeholder or cleaned == title:
        return placeholder

    cleaned = _MULTI_DOT_RE.sub("...", cleaned)

    previous = None
    while previous != cleaned:
        previous = cleaned
        cleaned = _DESCRIPTION_PREFIX_RE.sub("", cleaned)
        for pattern in _CALL_TO_ACTION_RES:
            cleaned = pattern.sub("", cleaned)
        cleaned = cleaned.strip()

    if len(cleaned) < MIN_DESCRIPTION_CHARS:
        return placeholder

    if not _TERMINAL_PUNCT_RE.search(cleaned):
        cleaned += "."

    if len(cleaned) > MAX_DESCRIPTION_CHARS:
        head = cleaned[:MAX_DESCRIPTION_CHARS]
        break_point = head.rfind(".")
        if break_point > MAX_DESCRIPTION_CHARS // 2:
            cleaned = head[: break_point + 1]
        else:
            cleaned = head[: MAX_DESCRIPTION_CHARS - 3].rstrip(" .") + "..."
        cleaned = _MULTI_DOT_RE.sub("...", cleaned)

    if cleaned == title:
        return placeholder
    return cleaned


def normalize_date(value: str | None) -> str:
    """Render dates carrying a year as `Mon D, YYYY`; anything else is returned cleaned."""
    cleaned = clean_text(value)
    if not cleaned or not _YEAR_RE.search(cleaned):
        return cleaned
    try:
        parsed = date_parser.parse(cleaned, fuzzy=True, default=_DATE_DEFAULT)
    except (ValueError, OverflowError):
        return cleaned
    return f"{parsed:%b} {parsed.day}, {parsed.year}"
