"""Rendered-session abstraction and its Playwright implementation."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Protocol

from loguru import logger

from serpscout.browser.installer import install_playwright_browsers, is_missing_browser_error
from serpscout.browser.safety import navigation_block_reason
from serpscout.search.errors import RenderError

if TYPE_CHECKING:
    from serpscout.config.schema import BrowserConfig


class Session(Protocol):
    """One controllable rendered page."""

    async def navigate(self, url: str, *, timeout_ms: int, wait_until: str = "networkidle") -> None: ...

    async def evaluate(self, script: str, arg: Any = None) -> Any: ...

    async def screenshot(self, path: str, *, full_page: bool = True) -> None: ...

    async def close(self) -> None: ...


class SessionProvider(Protocol):
    """Hands out sessions. Browser process lifecycle stays with the provider."""

    async def new_session(self) -> Session: ...


class PlaywrightSession:
    """A browser context with a single page."""

    def __init__(self, context: Any, page: Any, config: "BrowserConfig"):
        self._context = context
        self._page = page
        self._config = config
        self._closed = False

    async def navigate(self, url: str, *, timeout_ms: int, wait_until: str = "networkidle") -> None:
        reason = navigation_block_reason(
            url,
            allow_private_network=self._config.allow_private_network,
            block_file_scheme=self._config.block_file_scheme,
        )
        if reason:
            raise RenderError(reason)
        await self._page.goto(url, wait_until=wait_until, timeout=timeout_ms)

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        return await self._page.evaluate(script, arg)

    async def screenshot(self, path: str, *, full_page: bool = True) -> None:
        await self._page.screenshot(path=path, full_page=full_page)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._context.close()


class PlaywrightSessionProvider:
    """
    Lazily launches one browser and opens a fresh context per session.

    Use as an async context manager, or call `close()` when done.
    """

    def __init__(self, config: "BrowserConfig | None" = None):
        from serpscout.config.schema import BrowserConfig

        self.config = config or BrowserConfig()
        self._playwright: Any = None
        self._browser: Any = None
        self._lock = asyncio.Lock()

    async def __aenter__(self) -> "PlaywrightSessionProvider":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def start(self) -> None:
        async with self._lock:
            if self._browser is not None:
                return
            try:
                await self._launch()
            except Exception as first_error:
                if not self.config.auto_install_browsers or not is_missing_browser_error(first_error):
                    raise RenderError(f"browser launch failed: {first_error}") from first_error

                ok, details = await install_playwright_browsers((self.config.default_browser,))
                if not ok:
                    raise RenderError(f"browser install failed: {details}") from first_error
                try:
                    await self._launch()
                except Exception as second_error:
                    raise RenderError(
                        f"browser launch failed after install: {second_error}"
                    ) from second_error

    async def new_session(self) -> PlaywrightSession:
        await self.start()
        try:
            context = await self._browser.new_context(
                viewport={
                    "width": self.config.viewport_width,
                    "height": self.config.viewport_height,
                },
                user_agent=self.config.user_agent or None,
                accept_downloads=False,
            )
        except Exception as e:
            raise RenderError(f"failed to open browser context: {e}") from e

        try:
            await context.route("**/*", self._apply_network_guard)
            page = await context.new_page()
        except Exception as e:
            await context.close()
            raise RenderError(f"failed to open page: {e}") from e
        return PlaywrightSession(context, page, self.config)

    async def close(self) -> None:
        async with self._lock:
            browser, playwright = self._browser, self._playwright
            self._browser = None
            self._playwright = None
            try:
                if browser is not None:
                    await browser.close()
            finally:
                if playwright is not None:
                    await playwright.stop()
        if browser is not None:
            logger.info("Browser closed")

    async def _launch(self) -> None:
        from playwright.async_api import async_playwright

        playwright = await async_playwright().start()
        try:
            browser_type = getattr(playwright, self.config.default_browser)
            self._browser = await browser_type.launch(headless=self.config.headless)
        except BaseException:
            await playwright.stop()
            raise
        self._playwright = playwright
        logger.info("Launched {} (headless={})", self.config.default_browser, self.config.headless)

    async def _apply_network_guard(self, route: Any, request: Any) -> None:
        reason = navigation_block_reason(
            request.url,
            allow_private_network=self.config.allow_private_network,
            block_file_scheme=self.config.block_file_scheme,
            top_level=False,
        )
        if reason:
            await route.abort("blockedbyclient")
            return
        await route.continue_()
