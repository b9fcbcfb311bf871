"""Headless-browser fallback for script-rendered pages."""

import logging
import re
from abc import ABC, abstractmethod

from .models import RenderResult

logger = logging.getLogger(__name__)

EXTRACT_TEXT_JS = """
() => {
    ['script', 'style', 'noscript', 'nav', 'header', 'footer', 'aside']
        .forEach(tag => document.querySelectorAll(tag).forEach(el => el.remove()));
    const main = document.querySelector('article, main, [role="main"], .content, #content');
    const el = (main && main.textContent.trim().length > 200) ? main : document.body;
    return el ? el.textContent : '';
}
"""


class Renderer(ABC):
    """Loads a page in a full browser and returns its text."""

    @abstractmethod
    async def render(self, url: str) -> RenderResult:
        """Render a URL; never raises."""


class PlaywrightRenderer(Renderer):
    """Chromium via Playwright, imported lazily so it stays optional."""

    def __init__(self, user_agent: str, timeout: float = 30.0, settle_ms: int = 1000) -> None:
        self.user_agent = user_agent
        self.timeout = timeout
        self.settle_ms = settle_ms

    async def render(self, url: str) -> RenderResult:
        try:
            from playwright.async_api import async_playwright
        except ImportError:
            return RenderResult(success=False, error="Playwright is not installed")

        try:
            async with async_playwright() as p:
                browser = await p.chromium.launch(headless=True)
                try:
                    context = await browser.new_context(user_agent=self.user_agent)
                    page = await context.new_page()
                    await page.goto(
                        url, timeout=self.timeout * 1000, wait_until="domcontentloaded"
                    )
                    await page.wait_for_timeout(self.settle_ms)
                    html = await page.content()
                    text = await page.evaluate(EXTRACT_TEXT_JS)
                finally:
                    await browser.close()
        except Exception as e:
            logger.debug("Playwright render failed for %s", url, exc_info=True)
            return RenderResult(success=False, error=str(e))

        return RenderResult(success=True, content=re.sub(r"\s+", " ", text).strip(), html=html)
