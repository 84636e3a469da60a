"""Engine result-page fetcher."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from loguru import logger

from serpscout.search.engine import build_search_url
from serpscout.search.errors import FetchError
from serpscout.search.models import SearchOptions

if TYPE_CHECKING:
    from serpscout.config.schema import FetcherConfig


async def fetch_results_page(
    options: SearchOptions,
    config: "FetcherConfig | None" = None,
) -> str:
    """GET the engine's HTML result page for a query. No retries."""
    from serpscout.config.schema import FetcherConfig

    config = config or FetcherConfig()
    url = build_search_url(options, config.base_url)
    logger.info("Fetching result page for: {}", options.query)

    try:
        async with httpx.AsyncClient(follow_redirects=True) as client:
            response = await client.get(
                url,
                headers={
                    "User-Agent": config.user_agent,
                    "Accept": "text/html,application/xhtml+xml,application/xml",
                    "Accept-Language": config.accept_language,
                },
                timeout=config.timeout_s,
            )
            response.raise_for_status()
    except httpx.TimeoutException as e:
        raise FetchError(f"result page timed out after {config.timeout_s:g}s") from e
    except httpx.HTTPStatusError as e:
        raise FetchError(f"result page returned HTTP {e.response.status_code}") from e
    except httpx.HTTPError as e:
        raise FetchError(f"result page request failed: {e}") from e

    return response.text
