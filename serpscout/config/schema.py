"""Configuration schema."""

from typing import Literal

from pydantic import BaseModel, Field


class DomainFiltersConfig(BaseModel):
    """Default include/exclude URL substrings applied to results."""

    include: list[str] = Field(default_factory=list)
    exclude: list[str] = Field(default_factory=list)


class SearchConfig(BaseModel):
    """Search defaults used when the caller passes no explicit options."""

    engine: Literal["duckduckgo"] = "duckduckgo"
    region: str = "wt-wt"
    safe_search: bool = False
    time_range: Literal["day", "week", "month", "year"] | None = None
    max_results: int = 10
    filters: DomainFiltersConfig = Field(default_factory=DomainFiltersConfig)
    max_concurrent_searches: int = 5


class FetcherConfig(BaseModel):
    """Static HTML fetch settings."""

    base_url: str = "https://html.duckduckgo.com/html/"
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    )
    accept_language: str = "en-US,en;q=0.9"
    timeout_s: float = 10.0


class BrowserConfig(BaseModel):
    """Rendered-session settings for the dynamic extractor."""

    enabled: bool = True
    default_browser: Literal["chromium", "firefox"] = "chromium"
    headless: bool = True
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    )
    viewport_width: int = 1366
    viewport_height: int = 768
    navigation_timeout_ms: int = 30000
    selector_timeout_ms: int = 5000
    settle_delay_ms: int = 1000
    load_more_delay_ms: int = 2000
    max_scroll_attempts: int = 10
    auto_install_browsers: bool = True
    allow_private_network: bool = False
    block_file_scheme: bool = True


class CaptureConfig(BaseModel):
    """Page capture settings for the capture-analysis fallback."""

    enabled: bool = True
    max_text_chars: int = 10000
    screenshot: bool = False
    artifacts_dir: str = "~/.serpscout/captures"


class LoggingConfig(BaseModel):
    level: str = "INFO"


class Config(BaseModel):
    """Root configuration."""

    search: SearchConfig = Field(default_factory=SearchConfig)
    fetcher: FetcherConfig = Field(default_factory=FetcherConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
