"""Page fetcher and text extractor."""

import logging
import re
from typing import Optional, Tuple

import httpx
import trafilatura
from bs4 import BeautifulSoup

from ..config import ScraperConfig
from .models import ScrapeResult
from .renderer import PlaywrightRenderer, Renderer

logger = logging.getLogger(__name__)

NON_CONTENT_TAGS = ["script", "style", "noscript", "nav", "header", "footer", "aside"]

UNSCRAPEABLE_PREFIXES = (
    "chrome://",
    "chrome-extension://",
    "moz-extension://",
    "about:",
    "file://",
    "javascript:",
    "data:",
)


def is_scrapeable(url: Optional[str]) -> bool:
    """Check that a URL is a fetchable resource rather than a browser-internal page."""
    if not url:
        return False
    return not url.lower().startswith(UNSCRAPEABLE_PREFIXES)


def strip_html(html: str) -> str:
    """Reduce markup to plain text, dropping non-content elements."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(NON_CONTENT_TAGS):
        tag.decompose()
    text = soup.get_text(" ")
    return re.sub(r"\s+", " ", text).strip()


def extract_text(html: str, url: Optional[str] = None) -> str:
    """Extract main text, falling back to a full-page strip."""
    extracted = trafilatura.extract(
        html,
        include_comments=False,
        include_tables=False,
        deduplicate=True,
        url=url,
    )
    if extracted:
        return re.sub(r"\s+", " ", extracted).strip()
    return strip_html(html)


class ContentScraper:
    """Fetch pages and reduce them to plain text."""

    def __init__(
        self,
        config: Optional[ScraperConfig] = None,
        renderer: Optional[Renderer] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize scraper.

        Args:
            config: Scraper settings
            renderer: Headless fallback; defaults to Playwright when enabled
            transport: Custom httpx transport (for testing)
        """
        self.config = config or ScraperConfig()
        if renderer is None and self.config.render_fallback:
            renderer = PlaywrightRenderer(
                user_agent=self.config.user_agent,
                timeout=self.config.render_timeout,
                settle_ms=self.config.settle_ms,
            )
        self.renderer = renderer
        self.transport = transport

    def _truncate(self, text: str) -> str:
        return text[: self.config.max_content_length]

    async def _fetch(self, url: str) -> Tuple[str, Optional[str], Optional[str]]:
        """
        Fetch a page.

        Returns:
            Tuple of (html, text, error); text is None when the fast path failed
        """
        headers = {
            "User-Agent": self.config.user_agent,
            "Accept": "text/html,application/xhtml+xml",
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout,
                follow_redirects=True,
                headers=headers,
                transport=self.transport,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()

                content_type = response.headers.get("content-type", "")
                if "text/html" not in content_type and "application/xhtml+xml" not in content_type:
                    return "", None, "Not an HTML page"

                html = response.text
        except httpx.HTTPStatusError as e:
            return "", None, f"HTTP {e.response.status_code}"
        except httpx.TimeoutException:
            return "", None, "Request timed out"
        except httpx.HTTPError as e:
            return "", None, f"Fetch failed: {e}"
        except (httpx.InvalidURL, ValueError) as e:
            return "", None, f"Invalid URL: {e}"

        text = extract_text(html, url)
        if len(text) < self.config.min_content_length:
            return html, None, "Content too short (likely JS-rendered)"
        return html, text, None

    async def scrape(self, url: str) -> ScrapeResult:
        """Scrape a URL: direct fetch first, headless rendering for script-heavy pages."""
        logger.info("Scraping %s", url)
        html, text, error = await self._fetch(url)

        if text is not None:
            logger.info("Fetched %d chars from %s", len(text), url)
            return ScrapeResult(url=url, success=True, content=self._truncate(text), html=html)

        logger.info("Direct fetch failed for %s: %s", url, error)

        if self.renderer is not None:
            rendered = await self.renderer.render(url)
            if rendered.success and len(rendered.content) >= self.config.min_content_length:
                logger.info("Rendered %d chars from %s", len(rendered.content), url)
                return ScrapeResult(
                    url=url,
                    success=True,
                    content=self._truncate(rendered.content),
                    html=html or rendered.html,
                    rendered=True,
                )
            logger.info("Rendering failed for %s: %s", url, rendered.error or "content too short")
            html = html or rendered.html

        return ScrapeResult(
            url=url,
            success=False,
            html=html,
            error=f"Scraping failed: {error}",
        )
