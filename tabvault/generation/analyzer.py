"""Content analysis: summary, category and tags, scores, display title, insights."""

import asyncio
import json
import logging
import re
from typing import Any, List, Optional, Sequence

from ..config.ai_models import AIModelSpec, get_model_config
from ..db.categories import CategoryStore
from ..db.settings import SettingsStore
from ..db.usage import UsageRecorder
from ..exceptions import ProviderError
from ..models import Category
from .llm_provider import LLMProvider
from .models import AnalysisResult, Categorization, Insights, Scores
from .prompts import (
    CATEGORIZE_PROMPT,
    DISPLAY_TITLE_PROMPT,
    INSIGHTS_PROMPT,
    SCORE_PROMPT,
    SUMMARY_PROMPT,
    format_categories,
)

logger = logging.getLogger(__name__)

MAX_DISPLAY_TITLE = 80
MAX_TAGS = 4
MAX_TAKEAWAYS = 5
MAX_ACTION_ITEMS = 3
MAX_INSIGHT_CHARS = 300

SUMMARY_CONTENT_CHARS = 8000
CATEGORIZE_CONTENT_CHARS = 4000
TITLE_CONTENT_CHARS = 2000
INSIGHTS_CONTENT_CHARS = 6000
SCORE_FALLBACK_CHARS = 1000

URL_RE = re.compile(r"(https?://\S+|www\.\S+)", re.I)
BULLET_RE = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s+(.*)$")


def extract_json(text: Optional[str]) -> Optional[Any]:
    """Parse the first JSON object in a model response (tolerates code fences and chatter)."""
    if not text:
        return None
    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            data, _ = decoder.raw_decode(text, start)
            return data
        except ValueError:
            start = text.find("{", start + 1)
    return None


def normalize_tags(raw: Any, limit: int = MAX_TAGS) -> List[str]:
    """Lowercase, strip and de-duplicate tags, keeping first-seen order."""
    if not isinstance(raw, list):
        return []
    tags: List[str] = []
    for item in raw:
        if not isinstance(item, str):
            continue
        tag = re.sub(r"\s+", " ", item).strip().lstrip("#").strip().lower()
        if tag and tag not in tags:
            tags.append(tag)
    return tags[:limit]


def parse_categorization(
    text: Optional[str], categories: Sequence[Category], fallback: str
) -> Categorization:
    """Parse a categorize response; malformed output maps to (fallback, [])."""
    data = extract_json(text)
    if not isinstance(data, dict):
        logger.warning("Failed to parse categorization, using fallback %r", fallback)
        return Categorization(category=fallback, tags=[])

    allowed = {c.name.lower(): c.name for c in categories}
    raw_category = str(data.get("category") or "").strip().lower()
    category = allowed.get(raw_category, fallback)
    if category == fallback and raw_category and raw_category not in allowed:
        logger.info("Model returned unknown category %r, using %r", raw_category, fallback)

    return Categorization(category=category, tags=normalize_tags(data.get("tags")))


def clamp_score(value: Any, default: int = 5) -> int:
    """Coerce a model-provided score to an integer in [1, 10]."""
    if isinstance(value, bool) or value is None:
        return default
    try:
        number = int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        return default
    return min(10, max(1, number))


def parse_scores(text: Optional[str]) -> Scores:
    """Parse a score response; malformed output maps to 5/5."""
    data = extract_json(text)
    if not isinstance(data, dict):
        logger.warning("Failed to parse scores, using neutral defaults")
        return Scores()
    return Scores(
        quality=clamp_score(data.get("quality")),
        actionability=clamp_score(data.get("actionability")),
    )


def clean_summary(text: Optional[str]) -> str:
    """Strip markdown markers and preamble from a summary."""
    summary = text or ""
    summary = re.sub(r"^#+\s*", "", summary, flags=re.M)
    summary = re.sub(r"\*{1,3}|__|`", "", summary)
    summary = re.sub(r"^\s*summary\s*:\s*", "", summary, flags=re.I)
    return re.sub(r"\s+", " ", summary).strip()


def truncate_title(title: str, limit: int = MAX_DISPLAY_TITLE) -> str:
    """Cut a title to ``limit`` characters, ending with an ellipsis when cut."""
    if len(title) <= limit:
        return title
    return title[: limit - 3].rstrip() + "..."


def clean_display_title(text: Optional[str]) -> Optional[str]:
    """Normalize a generated title; None if nothing usable is left."""
    if not text or not text.strip():
        return None
    title = text.strip().splitlines()[0].strip().strip("\"'`")
    title = re.sub(r"^\s*title\s*:\s*", "", title, flags=re.I)
    title = re.sub(r"^\(\d+\)\s*", "", title)
    title = URL_RE.sub("", title)
    title = re.sub(r"\s+", " ", title).strip().strip("\"'`").strip()
    if not title:
        return None
    return truncate_title(title)


def _clean_items(raw: Any, limit: int) -> List[str]:
    if not isinstance(raw, list):
        return []
    items: List[str] = []
    for item in raw:
        if not isinstance(item, str):
            continue
        text = re.sub(r"\s+", " ", item).strip()
        if text:
            items.append(text[:MAX_INSIGHT_CHARS])
    return items[:limit]


def parse_insights(text: Optional[str]) -> Insights:
    """Parse an insights response; falls back to bullet lines, then to empty lists."""
    data = extract_json(text)
    if isinstance(data, dict):
        return Insights(
            takeaways=_clean_items(data.get("takeaways"), MAX_TAKEAWAYS),
            action_items=_clean_items(
                data.get("actions", data.get("action_items")), MAX_ACTION_ITEMS
            ),
        )

    bullets = []
    for line in (text or "").splitlines():
        match = BULLET_RE.match(line)
        if match:
            bullets.append(match.group(1))
    if not bullets:
        logger.warning("Failed to parse insights, using empty lists")
    return Insights(takeaways=_clean_items(bullets, MAX_TAKEAWAYS), action_items=[])


class ContentAnalyzer:
    """Run the AI analysis calls for one capture."""

    def __init__(
        self,
        provider: LLMProvider,
        category_store: Optional[CategoryStore] = None,
        settings_store: Optional[SettingsStore] = None,
        usage: Optional[UsageRecorder] = None,
        fallback_category: str = "reference",
    ) -> None:
        self.provider = provider
        self.category_store = category_store or CategoryStore()
        self.settings_store = settings_store or SettingsStore()
        self.usage = usage or UsageRecorder(None)
        self.fallback_category = fallback_category

    async def _resolve_model(self) -> AIModelSpec:
        return get_model_config(await self.settings_store.get_ai_model())

    async def _generate(
        self,
        operation: str,
        system_prompt: str,
        user_prompt: str,
        capture_id: Optional[str],
        model: Optional[AIModelSpec],
    ) -> str:
        model = model or await self._resolve_model()
        completion = await self.provider.complete(
            system_prompt,
            user_prompt,
            model=model.id,
            max_tokens=model.max_tokens,
            temperature=model.temperature,
        )
        self.usage.record(
            capture_id=capture_id,
            service=self.provider.service,
            model=model.id,
            operation=operation,
            input_tokens=completion.input_tokens,
            output_tokens=completion.output_tokens,
        )
        return completion.text

    async def summarize(
        self,
        title: str,
        content: str,
        capture_id: Optional[str] = None,
        model: Optional[AIModelSpec] = None,
    ) -> str:
        """2-3 sentence plain-text summary."""
        user_prompt = (
            f"Title: {title}\n\nContent:\n{content[:SUMMARY_CONTENT_CHARS]}\n\n"
            "Provide a 2-3 sentence summary:"
        )
        text = await self._generate("summarize", SUMMARY_PROMPT, user_prompt, capture_id, model)
        summary = clean_summary(text)
        if not summary:
            raise ProviderError("Empty summary")
        return summary

    async def categorize(
        self,
        title: str,
        content: str,
        categories: Optional[Sequence[Category]] = None,
        capture_id: Optional[str] = None,
        model: Optional[AIModelSpec] = None,
    ) -> Categorization:
        """One category from the dynamic list plus 2-4 tags."""
        if categories is None:
            categories = await self.category_store.get_categories()
        system_prompt = CATEGORIZE_PROMPT.format(
            categories=format_categories(categories),
            example=categories[0].name if categories else self.fallback_category,
        )
        user_prompt = (
            f"Title: {title}\n\nContent:\n{content[:CATEGORIZE_CONTENT_CHARS]}\n\n"
            "Categorize this content:"
        )
        text = await self._generate("categorize", system_prompt, user_prompt, capture_id, model)
        return parse_categorization(text, categories, self.fallback_category)

    async def score(
        self,
        title: str,
        summary: str,
        category: Optional[str],
        capture_id: Optional[str] = None,
        model: Optional[AIModelSpec] = None,
    ) -> Scores:
        """Quality and actionability from the summary."""
        user_prompt = (
            f"Title: {title}\nCategory: {category or 'unknown'}\nSummary: {summary}\n\n"
            "Rate this content:"
        )
        text = await self._generate("score", SCORE_PROMPT, user_prompt, capture_id, model)
        return parse_scores(text)

    async def generate_display_title(
        self,
        title: str,
        content: str,
        capture_id: Optional[str] = None,
        model: Optional[AIModelSpec] = None,
    ) -> str:
        """Clean title of at most 80 characters."""
        user_prompt = (
            f"Original title: {title}\n\nContent:\n{content[:TITLE_CONTENT_CHARS]}\n\n"
            "Write the title:"
        )
        text = await self._generate("title", DISPLAY_TITLE_PROMPT, user_prompt, capture_id, model)
        cleaned = clean_display_title(text) or clean_display_title(title)
        if not cleaned:
            raise ProviderError("Empty display title")
        return cleaned

    async def extract_insights(
        self,
        title: str,
        content: str,
        capture_id: Optional[str] = None,
        model: Optional[AIModelSpec] = None,
    ) -> Insights:
        """3-5 takeaways and 0-3 action items."""
        user_prompt = (
            f"Title: {title}\n\nContent:\n{content[:INSIGHTS_CONTENT_CHARS]}\n\n"
            "Extract the insights:"
        )
        text = await self._generate("insights", INSIGHTS_PROMPT, user_prompt, capture_id, model)
        return parse_insights(text)

    async def analyze(
        self, title: str, content: str, capture_id: Optional[str] = None
    ) -> AnalysisResult:
        """
        Run every analysis call for one capture.

        Summary, categorization, title and insights run concurrently; scoring
        runs afterwards on the summary. A failed call leaves its fields None.
        """
        model = await self._resolve_model()
        categories = await self.category_store.get_categories()

        summary, categorization, display_title, insights = await asyncio.gather(
            self.summarize(title, content, capture_id, model),
            self.categorize(title, content, categories, capture_id, model),
            self.generate_display_title(title, content, capture_id, model),
            self.extract_insights(title, content, capture_id, model),
            return_exceptions=True,
        )

        result = AnalysisResult()

        if isinstance(summary, BaseException):
            result.errors.append(f"summarize: {summary}")
            summary = None
        else:
            result.summary = summary

        category = None
        if isinstance(categorization, BaseException):
            result.errors.append(f"categorize: {categorization}")
        else:
            category = categorization.category
            result.category = categorization.category
            result.tags = categorization.tags

        if isinstance(display_title, BaseException):
            result.errors.append(f"title: {display_title}")
        else:
            result.display_title = display_title

        if isinstance(insights, BaseException):
            result.errors.append(f"insights: {insights}")
        else:
            result.key_takeaways = insights.takeaways
            result.action_items = insights.action_items

        try:
            scores = await self.score(
                title, summary or content[:SCORE_FALLBACK_CHARS], category, capture_id, model
            )
            result.quality_score = scores.quality
            result.actionability_score = scores.actionability
        except Exception as e:
            result.errors.append(f"score: {e}")

        for error in result.errors:
            logger.warning("Analysis call failed for %s: %s", capture_id or title, error)
        return result
