"""Rendered-page extraction with progressive scrolling."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from loguru import logger

from serpscout.search.cancellation import CancellationToken
from serpscout.search.engine import (
    AD_CONTAINER_CLASSES,
    DEFAULT_BASE_URL,
    DESCRIPTION_SELECTORS,
    ICON_SELECTORS,
    LOAD_MORE_SELECTOR,
    RESULT_CONTAINER_SELECTOR,
    TITLE_SELECTORS,
    URL_SELECTORS,
    build_search_url,
    href_from_display,
    resolve_redirect_url,
)
from serpscout.search.errors import RenderError, SearchCancelled
from serpscout.search.models import SearchOptions, SearchResult
from serpscout.search.normalizer import combine_results
from serpscout.search.text import clean_text
from serpscout.search.urls import host_of, is_absolute_url, normalize_url

if TYPE_CHECKING:
    from serpscout.browser.session import Session, SessionProvider
    from serpscout.config.schema import BrowserConfig

_SELECTOR_POLL_S = 0.25

_COUNT_SCRIPT = "(selector) => document.querySelectorAll(selector).length"
_HEIGHT_SCRIPT = "() => document.body.scrollHeight"
_SCROLL_SCRIPT = "() => window.scrollBy(0, window.innerHeight / 2)"
_LOAD_MORE_SCRIPT = """
(selector) => {
  const button = document.querySelector(selector);
  if (button instanceof HTMLElement) {
    button.click();
    return true;
  }
  return false;
}
"""
_EXTRACT_SCRIPT = """
(args) => {
  const pick = (root, selectors) => {
    for (const selector of selectors) {
      const found = root.querySelector(selector);
      if (found) return found;
    }
    return null;
  };
  const text = (el) => (el && el.textContent ? el.textContent.trim() : '');
  const containers = document.querySelectorAll(args.containerSelector);
  const results = [];
  for (let i = args.start; i < containers.length; i++) {
    const el = containers[i];
    if (args.adClasses.some((c) => el.closest('.' + c))) continue;
    const titleEl = pick(el, args.titleSelectors);
    if (!titleEl) continue;
    const link = titleEl.tagName === 'A' ? titleEl : titleEl.querySelector('a[href]');
    const urlEl = pick(el, args.urlSelectors);
    const iconEl = pick(el, args.iconSelectors);
    results.push({
      title: text(titleEl),
      href: link ? link.getAttribute('href') || '' : '',
      displayUrl: text(urlEl),
      description: text(pick(el, args.descriptionSelectors)),
      icon: iconEl ? iconEl.getAttribute('src') || '' : '',
    });
  }
  return { total: containers.length, results };
}
"""


@dataclass(slots=True)
class ScrollState:
    """Mutable state threaded through scroll-loop iterations."""

    results: list[SearchResult] = field(default_factory=list)
    seen_urls: set[str] = field(default_factory=set)
    containers_seen: int = 0
    previous_height: int = 0
    stall_count: int = 0
    iterations: int = 0


class DynamicExtractor:
    """Extract results from a rendered session, scrolling until quota or stall ceiling."""

    def __init__(
        self,
        sessions: "SessionProvider",
        config: "BrowserConfig | None" = None,
        *,
        base_url: str = DEFAULT_BASE_URL,
    ):
        from serpscout.config.schema import BrowserConfig

        self.sessions = sessions
        self.config = config or BrowserConfig()
        self.base_url = base_url

    async def extract(
        self,
        options: SearchOptions,
        max_results: int | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> list[SearchResult]:
        token = cancel_token or CancellationToken()
        limit = max_results or options.max_results
        url = build_search_url(options, self.base_url)

        try:
            session = await token.guard(self.sessions.new_session())
        except (RenderError, SearchCancelled):
            raise
        except Exception as e:
            raise RenderError(f"failed to open rendered session: {e}") from e

        try:
            logger.info("Rendering result page for: {}", options.query)
            try:
                await token.guard(
                    session.navigate(url, timeout_ms=self.config.navigation_timeout_ms)
                )
            except (RenderError, SearchCancelled):
                raise
            except Exception as e:
                raise RenderError(f"navigation failed: {e}") from e

            await self._wait_for_results(session, token)
            state = await self._scroll_and_extract(session, limit, token)
        finally:
            try:
                await session.close()
            except Exception as e:
                logger.warning("Error closing rendered session: {}", e)

        resolved: list[SearchResult] = []
        for result in state.results:
            target = resolve_redirect_url(result.url)
            if not is_absolute_url(target):
                continue
            result.url = target
            result.provider = host_of(target)
            resolved.append(result)

        results = combine_results(resolved, [], limit)
        logger.info(
            "Rendered extraction found {} results in {} scroll passes",
            len(results),
            state.iterations,
        )
        return results

    async def _wait_for_results(self, session: "Session", token: CancellationToken) -> bool:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.config.selector_timeout_ms / 1000
        while True:
            try:
                count = await token.guard(
                    session.evaluate(_COUNT_SCRIPT, RESULT_CONTAINER_SELECTOR)
                )
            except SearchCancelled:
                raise
            except Exception as e:
                logger.warning("Could not query result selectors: {}", e)
                return False
            if count:
                return True
            if loop.time() >= deadline:
                logger.warning("Timeout waiting for search result selectors")
                return False
            await token.sleep(_SELECTOR_POLL_S)

    async def _scroll_and_extract(
        self,
        session: "Session",
        max_results: int,
        token: CancellationToken,
    ) -> ScrollState:
        state = ScrollState()
        ceiling = self.config.max_scroll_attempts

        try:
            while state.stall_count < ceiling and len(state.results) < max_results:
                state.iterations += 1
                batch = await token.guard(
                    session.evaluate(_EXTRACT_SCRIPT, self._extract_args(state.containers_seen))
                )
                added = self._absorb(state, batch, max_results)
                if added:
                    logger.debug("Found {} new results while scrolling", added)
                if len(state.results) >= max_results:
                    logger.info("Reached target of {} results, stopping scrolling", max_results)
                    break

                height = int(await token.guard(session.evaluate(_HEIGHT_SCRIPT)) or 0)
                if height == state.previous_height:
                    state.stall_count += 1
                    logger.debug(
                        "No height change detected, attempt {}/{}",
                        state.stall_count,
                        ceiling,
                    )
                    if await self._click_load_more(session, token):
                        await token.sleep(self.config.load_more_delay_ms / 1000)
                else:
                    state.stall_count = 0
                    state.previous_height = height

                await token.guard(session.evaluate(_SCROLL_SCRIPT))
                await token.sleep(self.config.settle_delay_ms / 1000)
        except SearchCancelled:
            raise
        except Exception as e:
            logger.warning(
                "Scroll extraction interrupted after {} results: {}",
                len(state.results),
                e,
            )

        return state

    async def _click_load_more(self, session: "Session", token: CancellationToken) -> bool:
        try:
            clicked = bool(await token.guard(session.evaluate(_LOAD_MORE_SCRIPT, LOAD_MORE_SELECTOR)))
        except SearchCancelled:
            raise
        except Exception as e:
            logger.warning("Error clicking more results: {}", e)
            return False
        if clicked:
            logger.info('Clicked "More Results"')
        return clicked

    @staticmethod
    def _extract_args(start: int) -> dict[str, Any]:
        return {
            "start": start,
            "containerSelector": RESULT_CONTAINER_SELECTOR,
            "adClasses": list(AD_CONTAINER_CLASSES),
            "titleSelectors": list(TITLE_SELECTORS),
            "urlSelectors": list(URL_SELECTORS),
            "descriptionSelectors": list(DESCRIPTION_SELECTORS),
            "iconSelectors": list(ICON_SELECTORS),
        }

    @staticmethod
    def _absorb(state: ScrollState, batch: Any, max_results: int) -> int:
        """Append a batch of newly visible containers; returns how many were new."""
        if not isinstance(batch, dict):
            return 0
        total = batch.get("total")
        if isinstance(total, int) and total > state.containers_seen:
            state.containers_seen = total

        added = 0
        for raw in batch.get("results") or []:
            if len(state.results) >= max_results:
                break
            title = clean_text(raw.get("title"))
            href = (raw.get("href") or "").strip() or href_from_display(raw.get("displayUrl") or "")
            if not title or not href:
                continue
            key = normalize_url(resolve_redirect_url(href))
            if key in state.seen_urls:
                continue
            state.seen_urls.add(key)
            state.results.append(
                SearchResult(
                    title=title,
                    url=href,
                    description=clean_text(raw.get("description")),
                    icon=(raw.get("icon") or None),
                )
            )
            added += 1
        return added
