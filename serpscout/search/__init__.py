"""Search result acquisition pipeline."""

from serpscout.search.batch import BatchOutcome, search_batch
from serpscout.search.cancellation import CancellationToken
from serpscout.search.errors import (
    ExtractionExhausted,
    FetchError,
    RenderError,
    SearchCancelled,
    SearchError,
    StageError,
)
from serpscout.search.models import PageCapture, SearchFilters, SearchOptions, SearchResult
from serpscout.search.pipeline import SearchPipeline

__all__ = [
    "SearchPipeline",
    "SearchOptions",
    "SearchFilters",
    "SearchResult",
    "PageCapture",
    "CancellationToken",
    "BatchOutcome",
    "search_batch",
    "SearchError",
    "StageError",
    "FetchError",
    "RenderError",
    "ExtractionExhausted",
    "SearchCancelled",
]
