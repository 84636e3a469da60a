"""DuckDuckGo HTML engine profile: endpoints, selectors and redirect handling."""

from __future__ import annotations

from urllib.parse import parse_qs, urlencode, urlsplit

from serpscout.search.models import SearchOptions

ENGINE_NAME = "duckduckgo"
ENGINE_ORIGIN = "https://duckduckgo.com"
ENGINE_HOSTS = ("duckduckgo.com", "html.duckduckgo.com", "lite.duckduckgo.com")
DEFAULT_BASE_URL = "https://html.duckduckgo.com/html/"

RESULT_CONTAINER_SELECTOR = ".result, .web-result, .links_main, .result__body"
AD_CONTAINER_CLASSES = ("result--ad", "result--spotlight", "badge--ad")

# Ordered candidates, first match wins.
TITLE_SELECTORS = (".result__title a", ".result__a", ".result__title", ".result-title", "h2 a")
URL_SELECTORS = (".result__url", ".result__snippet-url", ".result-url")
DESCRIPTION_SELECTORS = (".result__snippet", ".result-snippet", ".result-desc")
ICON_SELECTORS = (".result__icon img", "img.result-favicon", ".result-favicon", ".favicon")
DATE_SELECTOR = 'time, [class*="date"], [class*="time"]'

LOAD_MORE_SELECTOR = ".result--more a, .result--more, .result__more, .more-results"

_TIME_RANGE_CODES = {"day": "d", "week": "w", "month": "m", "year": "y"}


def build_search_url(options: SearchOptions, base_url: str = DEFAULT_BASE_URL) -> str:
    """Build the engine result-page URL for a query."""
    params: dict[str, str] = {
        "q": options.query.strip(),
        "kl": options.region or "wt-wt",
        "kp": "1" if options.safe_search else "-1",
    }
    if options.time_range:
        params["df"] = _TIME_RANGE_CODES[options.time_range]
    return f"{base_url}?{urlencode(params)}"


def absolutize(url: str) -> str:
    """Make engine-relative and protocol-relative hrefs absolute."""
    url = (url or "").strip()
    if url.startswith("//"):
        return "https:" + url
    if url.startswith("/"):
        return ENGINE_ORIGIN + url
    return url


def href_from_display(text: str) -> str:
    """Turn a displayed result URL such as `example.com/page` into an href."""
    text = "".join((text or "").split())
    if not text:
        return ""
    if "://" in text or text.startswith("/"):
        return text
    return "https://" + text


def resolve_redirect_url(url: str) -> str:
    """Unwrap the engine's `/l/?uddg=<target>` redirect to the destination URL."""
    url = absolutize(url)
    if "duckduckgo.com/l/?" not in url:
        return url
    try:
        query = parse_qs(urlsplit(url).query)
    except ValueError:
        return url
    targets = query.get("uddg")
    if targets and targets[0]:
        return targets[0]
    return url


def is_engine_url(url: str) -> bool:
    """Whether a URL points at the engine itself rather than a result."""
    host = (urlsplit(url).hostname or "").lower()
    return any(host == h or host.endswith("." + h) for h in ENGINE_HOSTS)
