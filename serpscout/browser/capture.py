"""Playwright-backed page capture for the text-mining fallback."""

from __future__ import annotations

import time
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from serpscout.search.errors import RenderError
from serpscout.search.models import PageCapture

if TYPE_CHECKING:
    from serpscout.browser.session import SessionProvider
    from serpscout.config.schema import BrowserConfig, CaptureConfig

_CAPTURE_SCRIPT = """
(maxChars) => {
  const text = document.body ? document.body.innerText || '' : '';
  return {
    text: text.slice(0, maxChars),
    links: document.querySelectorAll('a[href]').length,
  };
}
"""


class PlaywrightCaptureProvider:
    """Captures body text, link count and an optional screenshot of a page."""

    def __init__(
        self,
        sessions: "SessionProvider",
        config: "CaptureConfig | None" = None,
        browser_config: "BrowserConfig | None" = None,
    ):
        from serpscout.config.schema import BrowserConfig, CaptureConfig

        self.sessions = sessions
        self.config = config or CaptureConfig()
        self.browser_config = browser_config or BrowserConfig()

    async def capture(self, url: str) -> PageCapture:
        try:
            session = await self.sessions.new_session()
        except RenderError as e:
            raise RenderError(str(e), stage="capture") from e
        except Exception as e:
            raise RenderError(f"failed to open capture session: {e}", stage="capture") from e

        try:
            await session.navigate(
                url,
                timeout_ms=self.browser_config.navigation_timeout_ms,
                wait_until="networkidle",
            )
            payload = await session.evaluate(_CAPTURE_SCRIPT, self.config.max_text_chars)
            screenshot_path = None
            if self.config.screenshot:
                screenshot_path = await self._screenshot(session)
        except RenderError as e:
            raise RenderError(str(e), stage="capture") from e
        except Exception as e:
            raise RenderError(f"page capture failed: {e}", stage="capture") from e
        finally:
            try:
                await session.close()
            except Exception as e:
                logger.warning("Error closing capture session: {}", e)

        payload = payload if isinstance(payload, dict) else {}
        text = str(payload.get("text") or "")
        capture = PageCapture(
            text_content=text[: self.config.max_text_chars],
            link_count=int(payload.get("links") or 0),
            screenshot_path=screenshot_path,
            url=url,
        )
        logger.info(
            "Captured {} chars and {} links from {}",
            len(capture.text_content),
            capture.link_count,
            url,
        )
        return capture

    async def _screenshot(self, session) -> str:
        directory = Path(self.config.artifacts_dir).expanduser()
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"capture-{int(time.time() * 1000)}.png"
        await session.screenshot(str(path), full_page=True)
        return str(path)
