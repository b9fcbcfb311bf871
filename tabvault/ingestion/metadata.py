"""Source platform, author and preview image extraction."""

import html as html_lib
import json
import logging
import re
from typing import Any, List, Optional, Tuple
from urllib.parse import parse_qs, urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

# (platform, exact hosts, host suffixes)
PLATFORMS: List[Tuple[str, Tuple[str, ...], Tuple[str, ...]]] = [
    ("twitter", ("twitter.com", "x.com", "mobile.twitter.com", "mobile.x.com"), ()),
    ("youtube", ("youtube.com", "m.youtube.com", "music.youtube.com", "youtu.be"), ()),
    ("medium", ("medium.com",), (".medium.com",)),
    ("substack", ("substack.com",), (".substack.com",)),
    ("github", ("github.com", "gist.github.com"), ()),
    ("reddit", ("reddit.com", "old.reddit.com", "new.reddit.com"), (".reddit.com",)),
    ("hackernews", ("news.ycombinator.com", "ycombinator.com"), ()),
    ("linkedin", ("linkedin.com",), (".linkedin.com",)),
    ("instagram", ("instagram.com",), ()),
    ("tiktok", ("tiktok.com",), (".tiktok.com",)),
    ("vimeo", ("vimeo.com", "player.vimeo.com"), ()),
    ("stackoverflow", ("stackoverflow.com",), ()),
    ("devto", ("dev.to",), ()),
]

TWO_PART_TLDS = {"co.uk", "org.uk", "ac.uk", "com.au", "net.au", "co.nz", "com.br", "co.jp", "co.in"}

# First path segments that are site pages rather than profiles
RESERVED_PATHS = {
    "twitter": {
        "home", "explore", "search", "i", "settings", "notifications", "messages",
        "hashtag", "intent", "share", "login", "signup", "compose", "tos", "privacy",
    },
    "github": {
        "features", "pricing", "about", "login", "join", "marketplace", "explore",
        "topics", "trending", "orgs", "settings", "sponsors", "collections",
        "enterprise", "notifications", "search", "apps", "site", "security", "readme",
    },
    "instagram": {"p", "reel", "reels", "explore", "stories", "accounts", "direct", "tv"},
}

AUTHOR_META = [
    ("name", "author"),
    ("property", "article:author"),
    ("name", "article:author"),
    ("name", "parsely-author"),
    ("name", "sailthru.author"),
    ("name", "dc.creator"),
    ("name", "DC.creator"),
    ("name", "twitter:creator"),
]

BYLINE_CLASS = re.compile(r"byline|author-name|author__name|post-author|article-author|\bauthor\b", re.I)
BY_PATTERN = re.compile(r"^\s*by\s+(.+)$", re.I)
URL_SHAPED = re.compile(r"(^https?:|^www\.|://|^[\w-]+(\.[\w-]+)+/|\.(com|org|net|io|dev)\b)", re.I)

IMAGE_META = [
    ("property", "og:image"),
    ("property", "og:image:url"),
    ("name", "twitter:image"),
    ("name", "twitter:image:src"),
    ("property", "twitter:image"),
]

# Generic site images that say nothing about the captured page
PLACEHOLDER_IMAGE_PATTERNS = [
    re.compile(p, re.I)
    for p in (
        r"placeholder",
        r"default[-_]?(og|image|share|social|thumb)",
        r"/favicon",
        r"abs\.twimg\.com/responsive-web",
        r"abs\.twimg\.com/rweb",
        r"static\.xx\.fbcdn\.net/rsrc\.php",
        r"static\.licdn\.com/aero-v1/sc/h/",
        r"redditstatic\.com/(icon|shreddit/assets/favicon)",
        r"github\.githubassets\.com/images/modules/open_graph",
        r"cdn\.sstatic\.net/Sites/stackoverflow/Img/apple-touch-icon",
        r"news\.ycombinator\.com/y18\.(gif|svg)",
    )
]

YOUTUBE_ID = re.compile(r"^[A-Za-z0-9_-]{11}$")
TWEET_PATH = re.compile(r"^/[^/]+/status(?:es)?/(\d+)")


def _hostname(url: str) -> str:
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def clean_domain(hostname: str) -> str:
    """Registrable name of a host: ``blog.example.co.uk`` -> ``example``."""
    domain = re.sub(r"^www\.", "", hostname.lower())
    parts = domain.split(".")
    if len(parts) < 2:
        return domain
    if ".".join(parts[-2:]) in TWO_PART_TLDS and len(parts) >= 3:
        return parts[-3]
    return parts[-2]


def detect_platform(url: str) -> str:
    """Detect the source platform of a URL, or fall back to its base domain."""
    host = _hostname(url)
    if not host:
        return "unknown"
    bare = re.sub(r"^www\.", "", host)
    for platform, hosts, suffixes in PLATFORMS:
        if bare in hosts or any(bare.endswith(s) for s in suffixes):
            return platform
    return clean_domain(host)


def sanitize_author(value: Optional[str]) -> Optional[str]:
    """Normalize an author string; None if it is not a plausible name."""
    if not value or not isinstance(value, str):
        return None
    name = html_lib.unescape(value)
    name = re.sub(r"\s+", " ", name).strip()
    match = BY_PATTERN.match(name)
    if match:
        name = match.group(1).strip()
    name = name.strip(" ,|-·")
    if not 2 <= len(name) <= 100:
        return None
    if URL_SHAPED.search(name):
        return None
    return name


def _author_from_url(url: str) -> Optional[str]:
    parsed = urlparse(url)
    host = re.sub(r"^www\.", "", (parsed.hostname or "").lower())
    segments = [s for s in parsed.path.split("/") if s]
    platform = detect_platform(url)

    if platform == "medium":
        if segments and segments[0].startswith("@"):
            return segments[0]
        sub = host[: -len(".medium.com")] if host.endswith(".medium.com") else ""
        if sub and sub not in ("www", "blog", "help", "policy"):
            return sub
        return None

    if not segments:
        return None
    first = segments[0]

    if platform in ("youtube", "tiktok") and first.startswith("@"):
        return first
    if platform == "reddit" and first in ("user", "u") and len(segments) > 1:
        return f"u/{segments[1]}"
    if platform == "twitter" and first.lower() not in RESERVED_PATHS["twitter"]:
        return f"@{first}"
    if platform == "github" and host == "github.com" and first.lower() not in RESERVED_PATHS["github"]:
        return first
    if platform == "instagram" and first.lower() not in RESERVED_PATHS["instagram"]:
        return f"@{first}"
    if platform == "devto" and len(segments) > 1:
        return first
    return None


def _author_from_meta(soup: BeautifulSoup) -> Optional[str]:
    for attr, key in AUTHOR_META:
        tag = soup.find("meta", attrs={attr: key})
        if tag:
            name = sanitize_author(tag.get("content"))
            if name:
                return name
    return None


def _find_author_field(node: Any) -> Optional[str]:
    """Depth-first search of a JSON-LD node for an author/creator name."""
    if isinstance(node, list):
        for item in node:
            found = _find_author_field(item)
            if found:
                return found
        return None
    if not isinstance(node, dict):
        return None

    for key in ("author", "creator"):
        value = node.get(key)
        if value is None:
            continue
        candidates = value if isinstance(value, list) else [value]
        for candidate in candidates:
            if isinstance(candidate, str):
                name = sanitize_author(candidate)
            elif isinstance(candidate, dict):
                name = sanitize_author(candidate.get("name"))
            else:
                name = None
            if name:
                return name

    for key, value in node.items():
        if key in ("author", "creator"):
            continue
        if isinstance(value, (dict, list)):
            found = _find_author_field(value)
            if found:
                return found
    return None


def _author_from_json_ld(soup: BeautifulSoup) -> Optional[str]:
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = script.string or script.get_text()
        if not raw:
            continue
        try:
            data = json.loads(raw)
        except ValueError:
            continue
        found = _find_author_field(data)
        if found:
            return found
    return None


def _author_from_markup(soup: BeautifulSoup) -> Optional[str]:
    link = soup.find("a", rel="author")
    if link:
        name = sanitize_author(link.get_text(" ", strip=True))
        if name:
            return name

    for el in soup.find_all(attrs={"class": BYLINE_CLASS}, limit=10):
        name = sanitize_author(el.get_text(" ", strip=True))
        if name:
            return name

    for el in soup.find_all(["p", "span", "div"], limit=400):
        text = el.get_text(" ", strip=True)
        if len(text) > 120:
            continue
        match = BY_PATTERN.match(text)
        if match:
            name = sanitize_author(match.group(1))
            if name:
                return name
    return None


def extract_author(html: Optional[str], url: str) -> Optional[str]:
    """Extract an author name; URL conventions first, then page markup."""
    try:
        author = _author_from_url(url)
        if author:
            return author
        if not html:
            return None
        soup = BeautifulSoup(html, "html.parser")
        return _author_from_meta(soup) or _author_from_json_ld(soup) or _author_from_markup(soup)
    except Exception as e:
        logger.warning("Author extraction failed for %s: %s", url, e)
        return None


def is_placeholder_image(image_url: str) -> bool:
    """Whether an image URL matches a known generic/default image."""
    return any(p.search(image_url) for p in PLACEHOLDER_IMAGE_PATTERNS)


def extract_og_image(html: Optional[str], base_url: Optional[str] = None) -> Optional[str]:
    """Social preview image from document head, skipping placeholders."""
    if not html:
        return None
    soup = BeautifulSoup(html, "html.parser")
    for attr, key in IMAGE_META:
        for tag in soup.find_all("meta", attrs={attr: key}):
            content = (tag.get("content") or "").strip()
            if not content:
                continue
            image_url = urljoin(base_url, content) if base_url else content
            if not image_url.startswith(("http://", "https://")):
                continue
            if is_placeholder_image(image_url):
                continue
            return image_url
    return None


def extract_youtube_id(url: str) -> Optional[str]:
    """Video id from watch, short, embed and youtu.be URLs."""
    parsed = urlparse(url)
    host = re.sub(r"^(www\.|m\.)", "", (parsed.hostname or "").lower())
    segments = [s for s in parsed.path.split("/") if s]
    candidate = None
    if host == "youtu.be" and segments:
        candidate = segments[0]
    elif host in ("youtube.com", "music.youtube.com"):
        if parsed.path == "/watch":
            candidate = (parse_qs(parsed.query).get("v") or [None])[0]
        elif len(segments) >= 2 and segments[0] in ("shorts", "embed", "live", "v"):
            candidate = segments[1]
    if candidate and YOUTUBE_ID.match(candidate):
        return candidate
    return None


def extract_tweet_id(url: str) -> Optional[str]:
    """Status id from a twitter.com / x.com URL."""
    if detect_platform(url) != "twitter":
        return None
    match = TWEET_PATH.match(urlparse(url).path)
    return match.group(1) if match else None


class ImageLocator:
    """Find a representative image for a captured page."""

    TWEET_API = "https://api.fxtwitter.com/status/{tweet_id}"
    VIMEO_OEMBED = "https://vimeo.com/api/oembed.json"

    def __init__(
        self,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = timeout
        self.transport = transport

    async def _get_json(self, url: str, params: Optional[dict] = None) -> Any:
        async with httpx.AsyncClient(
            timeout=self.timeout, follow_redirects=True, transport=self.transport
        ) as client:
            response = await client.get(url, params=params)
            response.raise_for_status()
            return response.json()

    async def _tweet_image(self, tweet_id: str) -> Optional[str]:
        data = await self._get_json(self.TWEET_API.format(tweet_id=tweet_id))
        media = (data.get("tweet") or {}).get("media") or {}
        for photo in media.get("photos") or []:
            if photo.get("url"):
                return photo["url"]
        for video in media.get("videos") or []:
            if video.get("thumbnail_url"):
                return video["thumbnail_url"]
        return None

    async def _vimeo_image(self, url: str) -> Optional[str]:
        data = await self._get_json(self.VIMEO_OEMBED, params={"url": url})
        return data.get("thumbnail_url")

    async def _platform_image(self, url: str) -> Optional[str]:
        video_id = extract_youtube_id(url)
        if video_id:
            return f"https://img.youtube.com/vi/{video_id}/hqdefault.jpg"

        tweet_id = extract_tweet_id(url)
        if tweet_id:
            return await self._tweet_image(tweet_id)

        if detect_platform(url) == "vimeo":
            return await self._vimeo_image(url)
        return None

    async def extract_image_url(self, url: str, html: Optional[str]) -> Optional[str]:
        """Platform lookup first, then social preview tags. Never raises."""
        try:
            image_url = await self._platform_image(url)
            if image_url:
                return image_url
        except Exception as e:
            logger.info("Platform image lookup failed for %s: %s", url, e)

        try:
            return extract_og_image(html, base_url=url)
        except Exception as e:
            logger.warning("Preview image extraction failed for %s: %s", url, e)
            return None
