import pytest

from serpscout.browser.installer import is_missing_browser_error
from serpscout.browser.safety import is_private_or_local_host, navigation_block_reason
from serpscout.browser.session import PlaywrightSession, PlaywrightSessionProvider
from serpscout.config.schema import BrowserConfig
from serpscout.search.errors import RenderError

_MISSING = "Executable doesn't exist at /ms-playwright/chromium/chrome"


def _block(url: str, **kwargs) -> str | None:
    values = {"allow_private_network": False, "block_file_scheme": True}
    values.update(kwargs)
    return navigation_block_reason(url, **values)


def test_navigation_guard_rules() -> None:
    assert _block("https://duckduckgo.com/html/?q=x") is None
    assert _block("http://127.0.0.1:8080/") == "Private/local host blocked: 127.0.0.1"
    assert _block("http://printer.local/") == "Private/local host blocked: printer.local"
    assert _block("http://10.0.0.5/", allow_private_network=True) is None
    assert _block("file:///etc/passwd") == "file:// URLs are blocked"
    assert _block("file:///tmp/page.html", block_file_scheme=False) is None
    assert "Only http/https" in _block("data:text/html,hi")
    assert _block("data:image/png;base64,AAAA", top_level=False) is None
    assert is_private_or_local_host("[::1]") is True
    assert is_private_or_local_host("example.com") is False


def test_missing_browser_detection() -> None:
    assert is_missing_browser_error(RuntimeError(_MISSING)) is True
    assert is_missing_browser_error(RuntimeError("connection refused")) is False


@pytest.mark.asyncio
async def test_provider_auto_installs_once_then_relaunches(monkeypatch) -> None:
    provider = PlaywrightSessionProvider(BrowserConfig(auto_install_browsers=True))
    calls = {"launch": 0, "install": 0}

    async def fake_launch():
        calls["launch"] += 1
        if calls["launch"] == 1:
            raise RuntimeError(_MISSING)
        provider._browser = object()

    async def fake_install(browsers):
        calls["install"] += 1
        assert tuple(browsers) == ("chromium",)
        return True, "installed"

    monkeypatch.setattr(provider, "_launch", fake_launch)
    monkeypatch.setattr("serpscout.browser.session.install_playwright_browsers", fake_install)

    await provider.start()
    await provider.start()

    assert calls == {"launch": 2, "install": 1}


@pytest.mark.asyncio
async def test_provider_without_auto_install_raises_render_error(monkeypatch) -> None:
    provider = PlaywrightSessionProvider(BrowserConfig(auto_install_browsers=False))

    async def fake_launch():
        raise RuntimeError(_MISSING)

    monkeypatch.setattr(provider, "_launch", fake_launch)

    with pytest.raises(RenderError, match="browser launch failed"):
        await provider.start()


@pytest.mark.asyncio
async def test_provider_reports_failed_install(monkeypatch) -> None:
    provider = PlaywrightSessionProvider(BrowserConfig())

    async def fake_launch():
        raise RuntimeError(_MISSING)

    async def fake_install(browsers):
        return False, "network unreachable"

    monkeypatch.setattr(provider, "_launch", fake_launch)
    monkeypatch.setattr("serpscout.browser.session.install_playwright_browsers", fake_install)

    with pytest.raises(RenderError, match="network unreachable"):
        await provider.start()


class _Page:
    def __init__(self):
        self.gotos: list[tuple[str, str, int]] = []

    async def goto(self, url, wait_until, timeout):
        self.gotos.append((url, wait_until, timeout))

    async def evaluate(self, script, arg=None):
        return {"script": script, "arg": arg}


class _Context:
    def __init__(self):
        self.close_calls = 0

    async def close(self):
        self.close_calls += 1


@pytest.mark.asyncio
async def test_session_blocks_private_navigation_and_closes_once() -> None:
    page, context = _Page(), _Context()
    session = PlaywrightSession(context, page, BrowserConfig())

    with pytest.raises(RenderError, match="Private/local host blocked"):
        await session.navigate("http://192.168.1.1/", timeout_ms=1000)

    await session.navigate("https://duckduckgo.com/html/?q=x", timeout_ms=1000)
    assert page.gotos == [("https://duckduckgo.com/html/?q=x", "networkidle", 1000)]
    assert await session.evaluate("() => 1", 5) == {"script": "() => 1", "arg": 5}

    await session.close()
    await session.close()
    assert context.close_calls == 1
