"""URL normalization and provider inference."""

from __future__ import annotations

import re
from urllib.parse import unquote, unquote_plus, urlsplit, urlunsplit

from serpscout.search.text import clean_text

TRACKING_PARAMS = frozenset(
    {
        "utm_source",
        "utm_medium",
        "utm_campaign",
        "utm_term",
        "utm_content",
        "fbclid",
        "gclid",
        "msclkid",
        "ref",
        "ref_",
        "source",
        "session_id",
        "twitter",
        "facebook",
        "linkedin",
        "mc_eid",
        "mc_cid",
    }
)

_FRAGMENT_TOKEN_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_PROVIDER_PREFIX_RE = re.compile(r"^(from|by|source|provider)[:|\-\s]\s*", re.I)
_COMMON_TLD_RE = re.compile(r"\.(com|org|net|edu|gov|io|co)$", re.I)
_WWW_RE = re.compile(r"^www\.", re.I)
_PAGE_EXTENSION_RE = re.compile(r"\.(html?|php|aspx?|jsp)$", re.I)


def is_absolute_url(url: str) -> bool:
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme in {"http", "https"} and bool(parts.hostname)


def normalize_url(url: str) -> str:
    """
    Canonical form used as result identity.

    Tracking parameters are removed (other parameters keep their original
    order and encoding), short or token-like fragments are dropped, scheme and
    host are lowercased and an empty path becomes `/`. Unparseable input is
    returned stripped but otherwise unchanged.
    """
    url = (url or "").strip()
    if not is_absolute_url(url):
        return url

    parts = urlsplit(url)
    kept = [
        pair
        for pair in parts.query.split("&")
        if pair and unquote_plus(pair.split("=", 1)[0]).lower() not in TRACKING_PARAMS
    ]
    fragment = parts.fragment
    if fragment and (len(fragment) + 1 < 20 or _FRAGMENT_TOKEN_RE.match(fragment)):
        fragment = ""
    path = parts.path or "/"

    return urlunsplit(
        (parts.scheme.lower(), parts.netloc.lower(), path, "&".join(kept), fragment)
    )


def host_of(url: str) -> str:
    """Lowercased hostname without a leading `www.`."""
    try:
        host = urlsplit(url).hostname or ""
    except ValueError:
        return ""
    host = host.lower()
    return host[4:] if host.startswith("www.") else host


def clean_provider(provider: str) -> str:
    """Reduce a provider label or domain to a short display name."""
    cleaned = clean_text(provider)
    previous = None
    while previous != cleaned:
        previous = cleaned
        cleaned = _PROVIDER_PREFIX_RE.sub("", cleaned).strip()
        if "." in cleaned:
            cleaned = _WWW_RE.sub("", cleaned)
            cleaned = _COMMON_TLD_RE.sub("", cleaned).strip()
    return cleaned


def provider_from_url(url: str) -> str:
    return clean_provider(host_of(url))


def normalize_icon_url(icon: str, page_url: str) -> str:
    """Make a root-relative icon URL absolute against the result's origin."""
    icon = (icon or "").strip()
    if not icon or icon.startswith("data:"):
        return icon
    if icon.startswith("//"):
        return "https:" + icon
    if icon.startswith("/") and is_absolute_url(page_url):
        parts = urlsplit(page_url)
        return f"{parts.scheme}://{parts.netloc}{icon}"
    return icon


def title_from_url(url: str) -> str:
    """Synthesize a readable title from the last path segment, else the host."""
    try:
        path = urlsplit(url).path
    except ValueError:
        path = ""
    segments = [s for s in path.split("/") if s]
    if segments:
        last = _PAGE_EXTENSION_RE.sub("", unquote(segments[-1]))
        words = re.sub(r"[-_+]+", " ", last).split()
        title = " ".join(w[:1].upper() + w[1:] for w in words)
        if len(title) > 3:
            return title
    return host_of(url) or "Search result"
