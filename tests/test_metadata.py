"""Tests for platform, author and image extraction."""

import json

import httpx
import pytest

from tabvault.ingestion import ImageLocator, detect_platform, extract_author, extract_og_image
from tabvault.ingestion.metadata import (
    clean_domain,
    extract_tweet_id,
    extract_youtube_id,
    sanitize_author,
)


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://x.com/jack/status/20", "twitter"),
        ("https://twitter.com/jack", "twitter"),
        ("https://youtu.be/dQw4w9WgXcQ", "youtube"),
        ("https://www.youtube.com/watch?v=dQw4w9WgXcQ", "youtube"),
        ("https://someone.medium.com/post-1", "medium"),
        ("https://newsletter.substack.com/p/issue", "substack"),
        ("https://github.com/psf/requests", "github"),
        ("https://old.reddit.com/r/python", "reddit"),
        ("https://news.ycombinator.com/item?id=1", "hackernews"),
        ("https://www.linkedin.com/in/someone", "linkedin"),
        ("https://www.example.com/post", "example"),
        ("https://blog.example.co.uk/post", "example"),
        ("not a url", "unknown"),
    ],
)
def test_detect_platform(url, expected):
    assert detect_platform(url) == expected


def test_clean_domain():
    assert clean_domain("www.python.org") == "python"
    assert clean_domain("shop.bbc.co.uk") == "bbc"
    assert clean_domain("localhost") == "localhost"


def test_sanitize_author():
    assert sanitize_author("  By   Jane&nbsp;Doe ") == "Jane Doe"
    assert sanitize_author("J") is None
    assert sanitize_author("x" * 101) is None
    assert sanitize_author("https://example.com/jane") is None
    assert sanitize_author("example.com") is None
    assert sanitize_author(None) is None


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://x.com/jack/status/20", "@jack"),
        ("https://x.com/explore", None),
        ("https://github.com/psf/requests", "psf"),
        ("https://github.com/trending", None),
        ("https://www.youtube.com/@veritasium/videos", "@veritasium"),
        ("https://www.reddit.com/user/spez/comments", "u/spez"),
        ("https://medium.com/@writer/post-123", "@writer"),
        ("https://writer.medium.com/post-123", "writer"),
        ("https://www.instagram.com/p/abc123", None),
        ("https://dev.to/ben/my-post", "ben"),
    ],
)
def test_author_from_url_conventions(url, expected):
    assert extract_author("", url) == expected


def test_author_url_convention_beats_markup():
    html = '<meta name="author" content="Someone Else">'
    assert extract_author(html, "https://github.com/psf/requests") == "psf"


def test_author_from_meta_tags():
    html = '<html><head><meta property="article:author" content="Ada Lovelace"></head></html>'
    assert extract_author(html, "https://example.com/a") == "Ada Lovelace"


def test_author_from_json_ld_graph():
    data = {
        "@context": "https://schema.org",
        "@graph": [
            {"@type": "WebSite", "name": "Example"},
            {"@type": "Article", "author": [{"@type": "Person", "name": "Grace Hopper"}]},
        ],
    }
    html = f'<script type="application/ld+json">{json.dumps(data)}</script>'
    assert extract_author(html, "https://example.com/a") == "Grace Hopper"


def test_author_from_byline_markup():
    html = '<div class="post-byline">By Alan Turing</div><p>Body text here.</p>'
    assert extract_author(html, "https://example.com/a") == "Alan Turing"

    html = "<article><p>By Linus Torvalds</p><p>Some content.</p></article>"
    assert extract_author(html, "https://example.com/a") == "Linus Torvalds"


def test_author_absent_or_malformed_markup():
    assert extract_author("<html><body>No author</body></html>", "https://example.com/a") is None
    assert extract_author('<script type="application/ld+json">{bad json</script>', "https://example.com/a") is None
    assert extract_author(None, "https://example.com/a") is None


def test_extract_og_image_resolves_relative_and_skips_placeholders():
    html = """
    <meta property="og:image" content="https://example.com/static/default-og-image.png">
    <meta name="twitter:image" content="/img/cover.jpg">
    """
    assert extract_og_image(html, "https://example.com/post") == "https://example.com/img/cover.jpg"
    assert extract_og_image('<meta property="og:image" content="data:image/png;base64,xx">') is None
    assert extract_og_image("") is None


def test_youtube_and_tweet_ids():
    assert extract_youtube_id("https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=10") == "dQw4w9WgXcQ"
    assert extract_youtube_id("https://youtu.be/dQw4w9WgXcQ") == "dQw4w9WgXcQ"
    assert extract_youtube_id("https://www.youtube.com/shorts/dQw4w9WgXcQ") == "dQw4w9WgXcQ"
    assert extract_youtube_id("https://www.youtube.com/@channel") is None
    assert extract_tweet_id("https://x.com/jack/status/20") == "20"
    assert extract_tweet_id("https://example.com/jack/status/20") is None


@pytest.mark.asyncio
async def test_image_locator_youtube_thumbnail_needs_no_request():
    def handler(request):
        raise AssertionError("no request expected")

    locator = ImageLocator(transport=httpx.MockTransport(handler))
    image = await locator.extract_image_url("https://youtu.be/dQw4w9WgXcQ", "")
    assert image == "https://img.youtube.com/vi/dQw4w9WgXcQ/hqdefault.jpg"


@pytest.mark.asyncio
async def test_image_locator_tweet_photo_and_video_thumbnail():
    payloads = {
        "1": {"tweet": {"media": {"photos": [{"url": "https://pbs.twimg.com/media/photo.jpg"}]}}},
        "2": {"tweet": {"media": {"videos": [{"thumbnail_url": "https://pbs.twimg.com/thumb.jpg"}]}}},
    }

    def handler(request):
        tweet_id = request.url.path.rsplit("/", 1)[-1]
        return httpx.Response(200, json=payloads[tweet_id])

    locator = ImageLocator(transport=httpx.MockTransport(handler))
    assert await locator.extract_image_url("https://x.com/a/status/1", "") == "https://pbs.twimg.com/media/photo.jpg"
    assert await locator.extract_image_url("https://x.com/a/status/2", "") == "https://pbs.twimg.com/thumb.jpg"


@pytest.mark.asyncio
async def test_image_locator_vimeo_oembed():
    def handler(request):
        assert request.url.host == "vimeo.com"
        assert request.url.params["url"] == "https://vimeo.com/76979871"
        return httpx.Response(200, json={"thumbnail_url": "https://i.vimeocdn.com/video/1.jpg"})

    locator = ImageLocator(transport=httpx.MockTransport(handler))
    assert await locator.extract_image_url("https://vimeo.com/76979871", "") == "https://i.vimeocdn.com/video/1.jpg"


@pytest.mark.asyncio
async def test_image_locator_falls_back_to_preview_tags_when_lookup_fails():
    def handler(request):
        return httpx.Response(503)

    html = '<meta property="og:image" content="https://pbs.twimg.com/card.jpg">'
    locator = ImageLocator(transport=httpx.MockTransport(handler))
    assert await locator.extract_image_url("https://x.com/a/status/1", html) == "https://pbs.twimg.com/card.jpg"


@pytest.mark.asyncio
async def test_image_locator_returns_none_without_image():
    locator = ImageLocator(transport=httpx.MockTransport(lambda request: httpx.Response(404)))
    assert await locator.extract_image_url("https://example.com/a", "<html></html>") is None
