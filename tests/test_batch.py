import asyncio

import pytest

from serpscout.search.batch import search_batch
from serpscout.search.errors import ExtractionExhausted, FetchError
from serpscout.search.models import SearchOptions, SearchResult
from serpscout.search.pipeline import SearchPipeline


class QueryStage:
    name = "static"

    def __init__(self):
        self.active = 0
        self.peak = 0
        self.seen: list[str] = []

    async def run(self, options, max_results, token):
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(0.01)
        finally:
            self.active -= 1
        self.seen.append(options.query)
        if options.query == "broken":
            raise FetchError("HTTP 500")
        slug = options.query.replace(" ", "-")
        return [SearchResult(title=f"About {options.query}", url=f"https://{slug}.example/")]


@pytest.mark.asyncio
async def test_search_batch_isolates_failures_and_bounds_concurrency() -> None:
    stage = QueryStage()
    pipeline = SearchPipeline(stages=[stage])
    queries = ["alpha", "broken", "gamma", "delta", "epsilon"]

    outcomes = await search_batch(pipeline, queries, SearchOptions(query="placeholder"), max_workers=2)

    assert [o.query for o in outcomes] == queries
    assert stage.peak <= 2
    assert sorted(stage.seen) == sorted(queries)

    failed = outcomes[1]
    assert failed.ok is False
    assert isinstance(failed.error, ExtractionExhausted)
    assert failed.results == []

    assert outcomes[0].ok is True
    assert outcomes[0].results[0].url == "https://alpha.example/"


@pytest.mark.asyncio
async def test_search_batch_rejects_non_positive_workers() -> None:
    with pytest.raises(ValueError):
        await search_batch(SearchPipeline(stages=[]), ["x"], max_workers=0)


class _CrashingPipeline:
    async def search(self, query, options=None, *, timeout_s=None):
        await asyncio.sleep(0.01)
        if query == "boom":
            raise RuntimeError("unexpected failure")
        return [SearchResult(title=f"About {query}", url=f"https://{query}.example/")]


@pytest.mark.asyncio
async def test_search_batch_records_unexpected_errors_per_query() -> None:
    outcomes = await search_batch(_CrashingPipeline(), ["one", "boom", "two"], max_workers=3)

    assert [o.ok for o in outcomes] == [True, False, True]
    assert isinstance(outcomes[1].error, RuntimeError)
    assert outcomes[2].results[0].url == "https://two.example/"
