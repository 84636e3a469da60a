"""Search pipeline exceptions."""

from __future__ import annotations


class SearchError(Exception):
    """Base class for search pipeline failures."""


class StageError(SearchError):
    """Raised when one stage of the fallback chain fails."""

    def __init__(self, message: str, *, stage: str):
        super().__init__(message)
        self.stage = stage


class FetchError(StageError):
    """Network, timeout or HTTP status failure while fetching the result page."""

    def __init__(self, message: str):
        super().__init__(message, stage="static")


class RenderError(StageError):
    """Rendered session, navigation or capture failure."""

    def __init__(self, message: str, *, stage: str = "dynamic"):
        super().__init__(message, stage=stage)


class ExtractionExhausted(SearchError):
    """Every stage ran and nothing usable was extracted."""

    def __init__(self, query: str, errors: list[StageError] | None = None):
        self.query = query
        self.errors = list(errors or [])
        detail = "; ".join(f"{e.stage}: {e}" for e in self.errors)
        message = f"no results extracted for: {query}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class SearchCancelled(SearchError):
    """The invocation was cancelled or ran past its deadline."""
