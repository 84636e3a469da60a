"""Playwright browser binary installation."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Sequence

from loguru import logger

_INSTALL_LOCK = asyncio.Lock()
_DEFAULT_INSTALL_TIMEOUT_S = 10 * 60
_MISSING_BROWSER_HINTS = (
    "executable doesn't exist",
    "please run the following command",
    "browser has not been found",
)


def is_missing_browser_error(exc: BaseException) -> bool:
    """Detect launch failures caused by missing browser binaries."""
    text = str(exc).lower()
    return any(hint in text for hint in _MISSING_BROWSER_HINTS)


async def install_playwright_browsers(
    browsers: Sequence[str],
    *,
    timeout_s: int = _DEFAULT_INSTALL_TIMEOUT_S,
) -> tuple[bool, str]:
    """Run `python -m playwright install <browsers>`; returns (ok, output)."""
    requested = [b for b in dict.fromkeys(browsers) if b]
    if not requested:
        return False, "No browser targets specified"

    async with _INSTALL_LOCK:
        logger.info("Installing Playwright browsers: {}", ", ".join(requested))
        process = await asyncio.create_subprocess_exec(
            sys.executable,
            "-m",
            "playwright",
            "install",
            *requested,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )

        try:
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=timeout_s)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            return False, f"Playwright install timed out after {timeout_s}s"

    output = stdout.decode("utf-8", errors="replace").strip()
    if process.returncode == 0:
        return True, output[-2000:] or "Playwright browsers installed"

    logger.warning("Playwright install exited with code {}", process.returncode)
    return False, output[-2000:] or f"playwright install exited with code {process.returncode}"
