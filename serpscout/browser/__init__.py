"""Playwright-backed rendered sessions and page capture."""

from serpscout.browser.capture import PlaywrightCaptureProvider
from serpscout.browser.session import PlaywrightSessionProvider, Session, SessionProvider

__all__ = ["PlaywrightSessionProvider", "PlaywrightCaptureProvider", "Session", "SessionProvider"]
