import pytest

from serpscout.config.schema import BrowserConfig
from serpscout.search.cancellation import CancellationToken
from serpscout.search.dynamic import DynamicExtractor
from serpscout.search.errors import RenderError, SearchCancelled
from serpscout.search.models import SearchOptions


def _container(i: int) -> dict:
    return {
        "title": f"Rendered result {i}",
        "href": f"//duckduckgo.com/l/?uddg=https%3A%2F%2Fexample.com%2Fr{i}&rut=abc",
        "displayUrl": f"example.com/r{i}",
        "description": f"Description for rendered result {i}.",
        "icon": "",
    }


class FakeSession:
    """Page whose containers appear as it is scrolled or 'more' is clicked."""

    def __init__(
        self,
        total: int,
        visible: int,
        *,
        per_scroll: int = 0,
        load_more: int = 0,
        fail_on: str | None = None,
        navigate_error: Exception | None = None,
    ):
        self.containers = [_container(i) for i in range(total)]
        self.visible = visible
        self.per_scroll = per_scroll
        self.load_more = load_more
        self.fail_on = fail_on
        self.navigate_error = navigate_error
        self.navigated: list[str] = []
        self.extract_calls = 0
        self.load_more_clicks = 0
        self.closed = False

    async def navigate(self, url, *, timeout_ms, wait_until="networkidle"):
        self.navigated.append(url)
        if self.navigate_error:
            raise self.navigate_error

    async def evaluate(self, script, arg=None):
        if "scrollHeight" in script:
            kind = "height"
        elif "scrollBy" in script:
            kind = "scroll"
        elif "click()" in script:
            kind = "load_more"
        elif "containers[i]" in script:
            kind = "extract"
        else:
            kind = "count"
        if kind == self.fail_on:
            raise RuntimeError(f"{kind} failed")

        if kind == "count":
            return self.visible
        if kind == "height":
            return 1000 + self.visible * 100
        if kind == "scroll":
            self.visible = min(len(self.containers), self.visible + self.per_scroll)
            return None
        if kind == "load_more":
            if not self.load_more:
                return False
            self.load_more_clicks += 1
            self.visible = min(len(self.containers), self.visible + self.load_more)
            self.load_more = 0
            return True

        self.extract_calls += 1
        start = arg["start"]
        return {
            "total": self.visible,
            "results": self.containers[start : self.visible],
        }

    async def screenshot(self, path, *, full_page=True):
        return None

    async def close(self):
        self.closed = True


class FakeProvider:
    def __init__(self, session=None, error: Exception | None = None):
        self.session = session
        self.error = error

    async def new_session(self):
        if self.error:
            raise self.error
        return self.session


def _config(**overrides) -> BrowserConfig:
    values = {
        "settle_delay_ms": 0,
        "load_more_delay_ms": 0,
        "selector_timeout_ms": 0,
        "max_scroll_attempts": 3,
    }
    values.update(overrides)
    return BrowserConfig(**values)


@pytest.mark.asyncio
async def test_scrolls_until_quota_and_resolves_redirects() -> None:
    session = FakeSession(total=25, visible=10, per_scroll=10)
    extractor = DynamicExtractor(FakeProvider(session), _config(), base_url="https://ddg.example/html/")

    results = await extractor.extract(SearchOptions(query="rust async"), max_results=20)

    assert len(results) == 20
    assert results[0].url == "https://example.com/r0"
    assert results[0].provider == "example.com"
    assert results[19].url == "https://example.com/r19"
    assert session.extract_calls == 2
    assert session.navigated[0].startswith("https://ddg.example/html/?q=rust+async")
    assert session.closed is True


@pytest.mark.asyncio
async def test_stops_at_stall_ceiling() -> None:
    session = FakeSession(total=5, visible=5)
    extractor = DynamicExtractor(FakeProvider(session), _config(max_scroll_attempts=3))

    results = await extractor.extract(SearchOptions(query="python"), max_results=10)

    assert [r.url for r in results] == [f"https://example.com/r{i}" for i in range(5)]
    assert session.extract_calls == 4
    assert session.closed is True


@pytest.mark.asyncio
async def test_load_more_reveals_additional_results() -> None:
    session = FakeSession(total=10, visible=5, load_more=5)
    extractor = DynamicExtractor(FakeProvider(session), _config())

    results = await extractor.extract(SearchOptions(query="python"), max_results=10)

    assert len(results) == 10
    assert session.load_more_clicks == 1
    assert len({r.url for r in results}) == 10


@pytest.mark.asyncio
async def test_evaluation_failure_keeps_partial_results() -> None:
    session = FakeSession(total=5, visible=5, fail_on="height")
    extractor = DynamicExtractor(FakeProvider(session), _config())

    results = await extractor.extract(SearchOptions(query="python"), max_results=10)

    assert len(results) == 5
    assert session.closed is True


@pytest.mark.asyncio
async def test_navigation_failure_raises_render_error_and_closes_session() -> None:
    session = FakeSession(total=5, visible=5, navigate_error=RuntimeError("net::ERR_NAME_NOT_RESOLVED"))
    extractor = DynamicExtractor(FakeProvider(session), _config())

    with pytest.raises(RenderError, match="navigation failed"):
        await extractor.extract(SearchOptions(query="python"))

    assert session.closed is True


@pytest.mark.asyncio
async def test_session_creation_failure_raises_render_error() -> None:
    extractor = DynamicExtractor(FakeProvider(error=RuntimeError("no browser")), _config())

    with pytest.raises(RenderError) as exc_info:
        await extractor.extract(SearchOptions(query="python"))

    assert exc_info.value.stage == "dynamic"


@pytest.mark.asyncio
async def test_selector_timeout_is_not_a_failure() -> None:
    session = FakeSession(total=0, visible=0)
    extractor = DynamicExtractor(FakeProvider(session), _config(max_scroll_attempts=1))

    results = await extractor.extract(SearchOptions(query="python"), max_results=5)

    assert results == []
    assert session.closed is True


@pytest.mark.asyncio
async def test_cancellation_unwinds_settle_wait_and_closes_session() -> None:
    session = FakeSession(total=5, visible=5)
    extractor = DynamicExtractor(FakeProvider(session), _config(settle_delay_ms=60_000))
    token = CancellationToken()
    token.cancel_after(0.05)

    with pytest.raises(SearchCancelled, match="timed out"):
        await extractor.extract(SearchOptions(query="python"), max_results=10, cancel_token=token)

    assert session.closed is True
