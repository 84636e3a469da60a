"""Shared search pipeline models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from serpscout.config.schema import SearchConfig

TimeRange = Literal["day", "week", "month", "year"]

_TIME_RANGES = ("day", "week", "month", "year")


@dataclass(slots=True)
class SearchResult:
    """One extracted result candidate."""

    title: str
    url: str
    description: str = ""
    icon: str | None = None
    provider: str = ""
    date: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "title": self.title,
            "url": self.url,
            "description": self.description,
            "provider": self.provider,
        }
        if self.icon:
            payload["icon"] = self.icon
        if self.date:
            payload["date"] = self.date
        return payload


@dataclass(frozen=True, slots=True)
class PageCapture:
    """Previously captured page snapshot. Read-only input to the capture fallback."""

    text_content: str
    link_count: int = 0
    screenshot_path: str | None = None
    url: str | None = None


@dataclass(frozen=True, slots=True)
class SearchFilters:
    """URL substring filters."""

    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "include", tuple(s for s in self.include if s))
        object.__setattr__(self, "exclude", tuple(s for s in self.exclude if s))

    @property
    def empty(self) -> bool:
        return not self.include and not self.exclude


@dataclass(frozen=True, slots=True)
class SearchOptions:
    """Options for one pipeline invocation. Immutable for the run."""

    query: str
    region: str = "wt-wt"
    safe_search: bool = False
    time_range: TimeRange | None = None
    max_results: int = 10
    filters: SearchFilters = field(default_factory=SearchFilters)

    def __post_init__(self) -> None:
        if not isinstance(self.query, str) or not self.query.strip():
            raise ValueError("query must not be empty")
        if self.max_results < 1:
            raise ValueError("max_results must be >= 1")
        if self.time_range is not None and self.time_range not in _TIME_RANGES:
            raise ValueError(f"time_range must be one of {_TIME_RANGES}")

    @classmethod
    def from_config(
        cls,
        query: str,
        config: "SearchConfig",
        **overrides: Any,
    ) -> "SearchOptions":
        """Build options from configured defaults plus explicit overrides."""
        values: dict[str, Any] = {
            "region": config.region,
            "safe_search": config.safe_search,
            "time_range": config.time_range,
            "max_results": config.max_results,
            "filters": SearchFilters(
                include=tuple(config.filters.include),
                exclude=tuple(config.filters.exclude),
            ),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(query=query, **values)
