"""Fallback chain that turns a query into a normalized result set."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Protocol

from loguru import logger

from serpscout.search.cancellation import CancellationToken
from serpscout.search.capture import CaptureProvider, extract_from_capture
from serpscout.search.dynamic import DynamicExtractor
from serpscout.search.engine import build_search_url
from serpscout.search.errors import ExtractionExhausted, RenderError, SearchCancelled, StageError
from serpscout.search.fetcher import fetch_results_page
from serpscout.search.filters import apply_filters, generate_follow_up_queries
from serpscout.search.models import SearchOptions, SearchResult
from serpscout.search.normalizer import combine_results, normalize_results
from serpscout.search.static_parser import parse_results

if TYPE_CHECKING:
    from serpscout.browser.session import SessionProvider
    from serpscout.config.schema import Config, FetcherConfig


class Stage(Protocol):
    """One extraction strategy in the fallback chain."""

    name: str

    async def run(
        self,
        options: SearchOptions,
        max_results: int,
        token: CancellationToken,
    ) -> list[SearchResult]: ...


class StaticStage:
    """Plain HTTP fetch followed by markup parsing."""

    name = "static"

    def __init__(self, config: "FetcherConfig | None" = None):
        self.config = config

    async def run(
        self,
        options: SearchOptions,
        max_results: int,
        token: CancellationToken,
    ) -> list[SearchResult]:
        markup = await token.guard(fetch_results_page(options, self.config))
        return parse_results(markup, max_results)


class DynamicStage:
    """Rendered-session scrolling extraction."""

    name = "dynamic"

    def __init__(self, extractor: DynamicExtractor):
        self.extractor = extractor

    async def run(
        self,
        options: SearchOptions,
        max_results: int,
        token: CancellationToken,
    ) -> list[SearchResult]:
        return await self.extractor.extract(options, max_results, token)


class CaptureStage:
    """Text mining over a capture of the result page."""

    name = "capture"

    def __init__(self, provider: CaptureProvider, base_url: str):
        self.provider = provider
        self.base_url = base_url

    async def run(
        self,
        options: SearchOptions,
        max_results: int,
        token: CancellationToken,
    ) -> list[SearchResult]:
        url = build_search_url(options, self.base_url)
        try:
            capture = await token.guard(self.provider.capture(url))
        except (StageError, SearchCancelled):
            raise
        except Exception as e:
            raise RenderError(f"page capture failed: {e}", stage="capture") from e
        return extract_from_capture(capture, max_results)


class SearchPipeline:
    """
    Runs the stage chain for a query until the result quota is met.

    Stages default to static, then dynamic and capture when a session provider
    is available. When the pipeline builds its own Playwright provider it also
    closes it; use `async with SearchPipeline(...)` or call `close()`.
    """

    def __init__(
        self,
        config: "Config | None" = None,
        session_provider: "SessionProvider | None" = None,
        capture_provider: CaptureProvider | None = None,
        stages: list[Stage] | None = None,
    ):
        from serpscout.config.schema import Config

        self.config = config or Config()
        self._owned_provider = None

        if stages is None:
            stages = self._default_stages(session_provider, capture_provider)
        self.stages = stages

    def _default_stages(
        self,
        session_provider: "SessionProvider | None",
        capture_provider: CaptureProvider | None,
    ) -> list[Stage]:
        stages: list[Stage] = [StaticStage(self.config.fetcher)]

        if session_provider is None and self.config.browser.enabled:
            from serpscout.browser.session import PlaywrightSessionProvider

            session_provider = PlaywrightSessionProvider(self.config.browser)
            self._owned_provider = session_provider

        if session_provider is not None:
            stages.append(
                DynamicStage(
                    DynamicExtractor(
                        session_provider,
                        self.config.browser,
                        base_url=self.config.fetcher.base_url,
                    )
                )
            )
            if capture_provider is None and self.config.capture.enabled:
                from serpscout.browser.capture import PlaywrightCaptureProvider

                capture_provider = PlaywrightCaptureProvider(
                    session_provider,
                    self.config.capture,
                    self.config.browser,
                )

        if capture_provider is not None:
            stages.append(CaptureStage(capture_provider, self.config.fetcher.base_url))
        return stages

    async def __aenter__(self) -> "SearchPipeline":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owned_provider is not None:
            await self._owned_provider.close()

    async def search(
        self,
        query: str,
        options: SearchOptions | None = None,
        *,
        cancel_token: CancellationToken | None = None,
        timeout_s: float | None = None,
    ) -> list[SearchResult]:
        """Run the fallback chain, then normalize and filter the merged results."""
        if options is None:
            options = SearchOptions.from_config(query, self.config.search)
        elif options.query != query:
            options = replace(options, query=query)

        token = cancel_token or CancellationToken()
        if timeout_s is not None:
            token.cancel_after(timeout_s)

        try:
            collected, errors = await self._run_stages(options, token)
        finally:
            if timeout_s is not None:
                token.clear_deadline()

        results = normalize_results(collected, options.max_results)
        if not results:
            raise ExtractionExhausted(options.query, errors)

        results = apply_filters(results, options.filters)
        logger.info("Search for '{}' returned {} results", options.query, len(results))
        return results

    async def _run_stages(
        self,
        options: SearchOptions,
        token: CancellationToken,
    ) -> tuple[list[SearchResult], list[StageError]]:
        limit = options.max_results
        collected: list[SearchResult] = []
        errors: list[StageError] = []

        for stage in self.stages:
            token.raise_if_cancelled()
            shortfall = limit - len(collected)
            if shortfall <= 0:
                break

            logger.info("Running {} stage, {} results still needed", stage.name, shortfall)
            try:
                found = await stage.run(options, limit, token)
            except StageError as e:
                logger.warning("{} stage failed: {}", stage.name, e)
                errors.append(e)
                continue
            except SearchCancelled:
                raise
            except Exception as e:
                logger.warning("{} stage crashed: {}", stage.name, e)
                errors.append(StageError(f"unexpected error: {e}", stage=stage.name))
                continue

            before = len(collected)
            collected = combine_results(collected, found, limit)
            logger.info(
                "{} stage added {} new results ({} total)",
                stage.name,
                len(collected) - before,
                len(collected),
            )

        return collected, errors

    def follow_up_queries(self, query: str) -> list[str]:
        return generate_follow_up_queries(query)
