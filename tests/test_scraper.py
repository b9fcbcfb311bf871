"""Tests for the content scraper."""

import httpx
import pytest

from tabvault.config import ScraperConfig
from tabvault.ingestion import ContentScraper, Renderer, RenderResult, is_scrapeable, strip_html

ARTICLE = "Event loops let one thread wait on many sockets at once. " * 12

ARTICLE_HTML = f"""
<html>
<head><title>Event loops</title><script>var tracking = 1;</script></head>
<body>
<nav>Home | About | Contact</nav>
<article><h1>Event loops</h1><p>{ARTICLE}</p><p>{ARTICLE}</p></article>
<footer>Copyright footer</footer>
</body>
</html>
"""

APP_SHELL_HTML = '<html><head><title>App</title></head><body><div id="root"></div></body></html>'


class StubRenderer(Renderer):
    def __init__(self, result: RenderResult) -> None:
        self.result = result
        self.urls = []

    async def render(self, url: str) -> RenderResult:
        self.urls.append(url)
        return self.result


def html_transport(body: str, status: int = 200, content_type: str = "text/html; charset=utf-8"):
    def handler(request: httpx.Request) -> httpx.Response:
        assert "Mozilla/5.0" in request.headers["user-agent"]
        return httpx.Response(status, text=body, headers={"content-type": content_type})

    return httpx.MockTransport(handler)


def make_scraper(transport, renderer=None, **config):
    settings = ScraperConfig(render_fallback=renderer is not None, **config)
    return ContentScraper(settings, renderer=renderer, transport=transport)


def test_is_scrapeable():
    assert is_scrapeable("https://example.com")
    assert is_scrapeable("http://example.com/a?b=c")
    assert not is_scrapeable("chrome://extensions")
    assert not is_scrapeable("chrome-extension://abc/popup.html")
    assert not is_scrapeable("about:blank")
    assert not is_scrapeable("file:///tmp/a.html")
    assert not is_scrapeable("javascript:void(0)")
    assert not is_scrapeable("")
    assert not is_scrapeable(None)


def test_strip_html_drops_non_content_and_decodes_entities():
    html = (
        "<html><head><style>p {color: red}</style></head><body>"
        "<header>Site header</header><nav>Menu</nav>"
        "<p>Fish &amp; chips</p>\n\n<p>cost&nbsp;&pound;5</p>"
        "<aside>Related</aside><script>alert(1)</script></body></html>"
    )
    text = strip_html(html)
    assert "Fish & chips" in text
    assert "£5" in text
    for noise in ("Site header", "Menu", "Related", "alert", "color"):
        assert noise not in text


@pytest.mark.asyncio
async def test_scrape_success_uses_fast_path():
    renderer = StubRenderer(RenderResult(success=False, error="unused"))
    scraper = make_scraper(html_transport(ARTICLE_HTML), renderer=renderer)

    result = await scraper.scrape("https://example.com/loops")

    assert result.success is True
    assert result.rendered is False
    assert "Event loops let one thread" in result.content
    assert "var tracking" not in result.content
    assert result.html == ARTICLE_HTML
    assert renderer.urls == []


@pytest.mark.asyncio
async def test_scrape_truncates_content():
    scraper = make_scraper(html_transport(ARTICLE_HTML), max_content_length=150)
    result = await scraper.scrape("https://example.com/loops")
    assert result.success is True
    assert len(result.content) == 150


@pytest.mark.asyncio
async def test_scrape_non_html_fails():
    scraper = make_scraper(html_transport("%PDF-1.4", content_type="application/pdf"))
    result = await scraper.scrape("https://example.com/paper.pdf")
    assert result.success is False
    assert result.error == "Scraping failed: Not an HTML page"
    assert result.content is None


@pytest.mark.asyncio
async def test_scrape_http_error():
    scraper = make_scraper(html_transport("Not found", status=404))
    result = await scraper.scrape("https://example.com/missing")
    assert result.success is False
    assert result.error == "Scraping failed: HTTP 404"


@pytest.mark.asyncio
async def test_scrape_timeout():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    scraper = make_scraper(httpx.MockTransport(handler))
    result = await scraper.scrape("https://example.com/slow")
    assert result.success is False
    assert result.error == "Scraping failed: Request timed out"


@pytest.mark.asyncio
async def test_scrape_connection_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    scraper = make_scraper(httpx.MockTransport(handler))
    result = await scraper.scrape("https://example.com/down")
    assert result.success is False
    assert result.error.startswith("Scraping failed: Fetch failed")
    assert result.html == ""


@pytest.mark.asyncio
async def test_short_page_escalates_to_renderer():
    rendered_text = "Rendered single page app content. " * 10
    renderer = StubRenderer(
        RenderResult(success=True, content=rendered_text, html="<html>rendered</html>")
    )
    scraper = make_scraper(html_transport(APP_SHELL_HTML), renderer=renderer)

    result = await scraper.scrape("https://app.example.com")

    assert renderer.urls == ["https://app.example.com"]
    assert result.success is True
    assert result.rendered is True
    assert result.content == rendered_text
    assert result.html == APP_SHELL_HTML


@pytest.mark.asyncio
async def test_renderer_failure_keeps_markup_for_metadata():
    renderer = StubRenderer(RenderResult(success=False, error="Playwright is not installed"))
    scraper = make_scraper(html_transport(APP_SHELL_HTML), renderer=renderer)

    result = await scraper.scrape("https://app.example.com")

    assert result.success is False
    assert result.error == "Scraping failed: Content too short (likely JS-rendered)"
    assert result.html == APP_SHELL_HTML


@pytest.mark.asyncio
async def test_short_page_without_renderer_fails():
    scraper = make_scraper(html_transport(APP_SHELL_HTML))
    result = await scraper.scrape("https://app.example.com")
    assert result.success is False
    assert "Content too short" in result.error


@pytest.mark.asyncio
@pytest.mark.parametrize("url", ["http://[::1/x", "https://exa\x00mple.com/"])
async def test_malformed_url_fails_without_raising(url):
    assert is_scrapeable(url)
    scraper = make_scraper(html_transport(ARTICLE_HTML))
    result = await scraper.scrape(url)
    assert result.success is False
    assert result.error.startswith("Scraping failed: Invalid URL")


@pytest.mark.asyncio
async def test_scrape_accepts_xhtml():
    scraper = make_scraper(html_transport(ARTICLE_HTML, content_type="application/xhtml+xml"))
    result = await scraper.scrape("https://example.com/page.xhtml")
    assert result.success is True
    assert "Event loops let one thread" in result.content
