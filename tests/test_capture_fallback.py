import pytest

from serpscout.browser.capture import PlaywrightCaptureProvider
from serpscout.config.schema import CaptureConfig
from serpscout.search.capture import extract_from_capture, is_likely_results_page
from serpscout.search.errors import RenderError
from serpscout.search.models import PageCapture


def test_blank_line_blocks_are_parsed_first() -> None:
    text = (
        "First result title here\nhttps://one.example/a\nA description of the first result.\n\n"
        "Second result title here\nhttps://two.example/b\nA description of the second result.\n\n"
        "Third result title here\nhttps://three.example/c\nA description of the third result."
    )

    results = extract_from_capture(PageCapture(text_content=text), 3)

    assert [r.url for r in results] == [
        "https://one.example/a",
        "https://two.example/b",
        "https://three.example/c",
    ]
    assert results[0].title == "First result title here"
    assert results[0].description == "A description of the first result."


def test_title_moves_to_next_line_when_first_line_is_the_url() -> None:
    text = "\n----\n".join(
        f"https://site{i}.example/page\nUseful page number {i}\nMore words about page {i}"
        for i in range(3)
    )

    results = extract_from_capture(PageCapture(text_content=text), 3)

    assert results[0].title == "Useful page number 0"
    assert results[0].description == "More words about page 0"


def test_numbered_patterns_used_when_blocks_are_too_few() -> None:
    text = (
        "Results\n"
        "1. Alpha project homepage https://alpha.example/\n"
        "2. Beta project documentation https://beta.example/docs\n"
        "3. Gamma project releases https://gamma.example/releases\n"
    )

    results = extract_from_capture(PageCapture(text_content=text), 5)

    assert [r.url for r in results] == [
        "https://alpha.example/",
        "https://beta.example/docs",
        "https://gamma.example/releases",
    ]
    assert results[0].title == "Alpha project homepage"


def test_url_context_scan_skips_non_result_urls() -> None:
    text = (
        "Intro text\n"
        "A very informative article\n"
        "https://news.example/story then some trailing words\n"
        "see https://duckduckgo.com/html/?q=x and https://cdn.example/images/logo.png "
        "and https://cdn.example/app.js\n"
        "Another helpful guide title\n"
        "https://guide.example/how-to-start"
    )

    results = extract_from_capture(PageCapture(text_content=text), 10)

    assert [r.url for r in results] == [
        "https://news.example/story",
        "https://guide.example/how-to-start",
    ]
    assert results[0].title == "A very informative article"
    assert results[0].description == "then some trailing words see https://duckduckgo.com/html/?q=x and https://cdn.example/images/logo.png and https://cdn.example/app.js Another helpful guide title https://guide.example/how-to-start"
    assert results[1].title == "Another helpful guide title"
    assert results[1].description == "Result related to search query"


def test_url_context_synthesizes_title_from_path() -> None:
    results = extract_from_capture(
        PageCapture(text_content="https://blog.example/posts/async-python-tips"),
        5,
    )

    assert results[0].title == "Async Python Tips"


def test_quota_respected_across_heuristics() -> None:
    text = "\n".join(f"Result title number {i} https://r{i}.example/" for i in range(20))

    results = extract_from_capture(PageCapture(text_content=text), 4)

    assert len(results) == 4


def test_link_density_is_advisory_only() -> None:
    capture = PageCapture(text_content="nothing useful here", link_count=42)

    assert is_likely_results_page(capture) is True
    assert extract_from_capture(capture, 5) == []


class _CaptureSession:
    def __init__(self, payload=None, error: Exception | None = None):
        self.payload = payload
        self.error = error
        self.closed = False
        self.screenshots: list[str] = []

    async def navigate(self, url, *, timeout_ms, wait_until="networkidle"):
        if self.error:
            raise self.error

    async def evaluate(self, script, arg=None):
        return self.payload

    async def screenshot(self, path, *, full_page=True):
        self.screenshots.append(path)

    async def close(self):
        self.closed = True


class _Provider:
    def __init__(self, session):
        self.session = session

    async def new_session(self):
        return self.session


@pytest.mark.asyncio
async def test_playwright_capture_provider_records_text_links_and_screenshot(tmp_path) -> None:
    session = _CaptureSession(payload={"text": "x" * 50, "links": 12})
    provider = PlaywrightCaptureProvider(
        _Provider(session),
        CaptureConfig(max_text_chars=20, screenshot=True, artifacts_dir=str(tmp_path)),
    )

    capture = await provider.capture("https://ddg.example/html/?q=x")

    assert capture.text_content == "x" * 20
    assert capture.link_count == 12
    assert capture.url == "https://ddg.example/html/?q=x"
    assert capture.screenshot_path is not None
    assert capture.screenshot_path.startswith(str(tmp_path))
    assert session.closed is True


@pytest.mark.asyncio
async def test_playwright_capture_provider_wraps_failures() -> None:
    session = _CaptureSession(error=RuntimeError("boom"))
    provider = PlaywrightCaptureProvider(_Provider(session))

    with pytest.raises(RenderError) as exc_info:
        await provider.capture("https://ddg.example/html/?q=x")

    assert exc_info.value.stage == "capture"
    assert session.closed is True
