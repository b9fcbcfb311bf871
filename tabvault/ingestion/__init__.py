"""Page scraping and metadata extraction."""

from .metadata import ImageLocator, detect_platform, extract_author, extract_og_image
from .models import RenderResult, ScrapeResult
from .renderer import PlaywrightRenderer, Renderer
from .scraper import ContentScraper, extract_text, is_scrapeable, strip_html

__all__ = [
    "ContentScraper",
    "ImageLocator",
    "PlaywrightRenderer",
    "Renderer",
    "RenderResult",
    "ScrapeResult",
    "detect_platform",
    "extract_author",
    "extract_og_image",
    "extract_text",
    "is_scrapeable",
    "strip_html",
]
