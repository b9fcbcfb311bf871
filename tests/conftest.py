"""Shared fakes and fixtures."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx
import pytest

from tabvault.db.captures import UPDATABLE_COLUMNS, CaptureStore
from tabvault.db.usage import UsageLedger, UsageRecorder
from tabvault.exceptions import PersistenceError
from tabvault.generation import ContentAnalyzer, EmbeddingGenerator
from tabvault.generation.llm_provider import EmbeddingProvider, LLMProvider
from tabvault.generation.models import Completion, EmbeddingResponse
from tabvault.ingestion.models import ScrapeResult
from tabvault.models import Capture, CaptureStatus, SearchMatch
from tabvault.pipeline import CaptureProcessor
from tabvault.storage import ImageStore
from tabvault.storage.blob import BlobStorage

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

PAGE_TEXT = (
    "Async Python lets a single thread juggle many network calls. "
    "This guide walks through event loops, tasks and cancellation with worked examples. "
) * 3

PAGE_HTML = f"""
<html><head>
<title>Example Page</title>
<meta name="author" content="Jane Doe">
<meta property="og:image" content="https://cdn.example.com/cover.png">
</head><body><article><p>{PAGE_TEXT}</p></article></body></html>
"""

DEFAULT_RESPONSES = {
    "summarize": "**Summary:** Async Python runs many network calls on one thread. The guide covers tasks and cancellation.",
    "categorize": '{"category": "learning", "tags": ["Python", "python", "#Asyncio"]}',
    "score": '{"quality": 12, "actionability": "7"}',
    "title": '"Async Python: A Practical Guide"',
    "insights": '{"takeaways": ["Event loops schedule tasks", "Cancel with care", "Use timeouts"], "actions": ["Add timeouts to clients"]}',
}

PROMPT_OPERATIONS = (
    ("You are a concise summarizer", "summarize"),
    ("You categorize web content", "categorize"),
    ("You rate content", "score"),
    ("You write clean", "title"),
    ("You extract insights", "insights"),
)


class InMemoryCaptureStore(CaptureStore):
    """Dict-backed capture store that records every write."""

    def __init__(self) -> None:
        self.captures: Dict[str, Capture] = {}
        self.writes: List[Tuple[str, Dict[str, Any]]] = []
        self.fail_get: Optional[Exception] = None
        self.fail_statuses: set = set()
        self.fail_embedding_writes = False
        self.matches: List[SearchMatch] = []
        self.search_calls: List[Tuple[List[float], float, int]] = []

    def add(self, capture: Capture) -> Capture:
        self.captures[capture.id] = capture
        return capture

    async def get_capture(self, capture_id: str) -> Optional[Capture]:
        if self.fail_get is not None:
            raise self.fail_get
        capture = self.captures.get(capture_id)
        return capture.model_copy(deep=True) if capture else None

    async def update_capture(self, capture_id: str, fields: Dict[str, Any]) -> None:
        unknown = set(fields) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update columns: {', '.join(sorted(unknown))}")
        if fields.get("status") in self.fail_statuses:
            raise PersistenceError("connection lost")
        if self.fail_embedding_writes and "embedding" in fields:
            raise PersistenceError("vector write failed")
        if capture_id not in self.captures:
            raise PersistenceError(f"Capture {capture_id} was not updated (row missing)")
        self.writes.append((capture_id, dict(fields)))
        self.captures[capture_id] = self.captures[capture_id].model_copy(update=dict(fields))

    async def list_pending_ids(self, limit: int) -> List[str]:
        pending = [c for c in self.captures.values() if c.status == CaptureStatus.PENDING]
        pending.sort(key=lambda c: c.created_at)
        return [c.id for c in pending[:limit]]

    def _completed_missing(self, field: str) -> List[Capture]:
        found = [
            c
            for c in self.captures.values()
            if c.status == CaptureStatus.COMPLETED and getattr(c, field) is None
        ]
        found.sort(key=lambda c: c.created_at, reverse=True)
        return found

    async def list_missing_embedding(self, limit: int) -> List[Capture]:
        return self._completed_missing("embedding")[:limit]

    async def count_missing_embedding(self) -> int:
        return len(self._completed_missing("embedding"))

    async def list_missing_display_title(self, limit: int) -> List[Capture]:
        return self._completed_missing("display_title")[:limit]

    async def count_missing_display_title(self) -> int:
        return len(self._completed_missing("display_title"))

    async def search_similar(
        self, embedding: Sequence[float], threshold: float, count: int
    ) -> List[SearchMatch]:
        self.search_calls.append((list(embedding), threshold, count))
        return [m for m in self.matches if m.similarity >= threshold][:count]

    async def delete_capture(self, capture_id: str) -> Optional[Capture]:
        return self.captures.pop(capture_id, None)


class FakeLLMProvider(LLMProvider):
    """Scripted text backend. A response may be an exception to raise."""

    service = "openrouter"

    def __init__(self, responses: Optional[Dict[str, Any]] = None) -> None:
        self.responses = dict(DEFAULT_RESPONSES)
        self.responses.update(responses or {})
        self.calls: List[Dict[str, Any]] = []

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        model: str,
        max_tokens: int = 500,
        temperature: float = 0.3,
    ) -> Completion:
        operation = next(op for prefix, op in PROMPT_OPERATIONS if system_prompt.startswith(prefix))
        self.calls.append(
            {
                "operation": operation,
                "system": system_prompt,
                "user": user_prompt,
                "model": model,
                "max_tokens": max_tokens,
                "temperature": temperature,
            }
        )
        response = self.responses[operation]
        if isinstance(response, Exception):
            raise response
        return Completion(text=response, model=model, input_tokens=120, output_tokens=40)

    def operations(self) -> List[str]:
        return [call["operation"] for call in self.calls]


class FakeEmbeddingProvider(EmbeddingProvider):
    """Deterministic embedding backend."""

    service = "openai"
    model = "text-embedding-3-small"

    def __init__(self, dimensions: int = 1536, error: Optional[Exception] = None) -> None:
        self.dimensions = dimensions
        self.error = error
        self.texts: List[str] = []

    async def embed(self, text: str, dimensions: int) -> EmbeddingResponse:
        self.texts.append(text)
        if self.error is not None:
            raise self.error
        value = (len(text) % 97) / 100
        return EmbeddingResponse(
            vector=[value] * self.dimensions, model=self.model, input_tokens=len(text) // 4
        )


class RecordingLedger(UsageLedger):
    def __init__(self, fail: bool = False) -> None:
        self.records = []
        self.fail = fail

    async def record(self, record) -> None:
        if self.fail:
            raise PersistenceError("usage table unavailable")
        self.records.append(record)

    async def usage_rows(self, days_back: int) -> List[Dict[str, Any]]:
        if self.fail:
            raise PersistenceError("usage table unavailable")
        cutoff = BASE_TIME.date() - timedelta(days=days_back)
        grouped: Dict[Tuple[Any, str], Dict[str, Any]] = {}
        for record in self.records:
            day = (record.created_at or BASE_TIME).date()
            if day < cutoff:
                continue
            row = grouped.setdefault(
                (day, record.service),
                {"day": day, "service": record.service, "requests": 0,
                 "input_tokens": 0, "output_tokens": 0, "cost_units": 0},
            )
            row["requests"] += 1
            row["input_tokens"] += record.input_tokens
            row["output_tokens"] += record.output_tokens
            row["cost_units"] += round(record.cost_cents * 100)
        return list(grouped.values())


class MemoryBlobStorage(BlobStorage):
    def __init__(self) -> None:
        self.files: Dict[str, bytes] = {}

    async def upload(self, filename: str, data: bytes, content_type: str) -> str:
        self.files[filename] = data
        return f"https://blobs.example.com/images/{filename}"

    async def delete(self, filenames: List[str]) -> Tuple[int, int]:
        deleted = sum(1 for name in filenames if self.files.pop(name, None) is not None)
        return deleted, len(filenames) - deleted


class FakeScraper:
    def __init__(self, result: Optional[ScrapeResult] = None, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.urls: List[str] = []

    async def scrape(self, url: str) -> ScrapeResult:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        if self.result is not None:
            return self.result
        return ScrapeResult(url=url, success=True, content=PAGE_TEXT, html=PAGE_HTML)


class FakeImageLocator:
    def __init__(self, image_url: Optional[str] = "https://cdn.example.com/cover.png") -> None:
        self.image_url = image_url

    async def extract_image_url(self, url: str, html: Optional[str]) -> Optional[str]:
        return self.image_url


def image_transport(status: int = 200, content_type: str = "image/png") -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, content=b"\x89PNG fake", headers={"content-type": content_type})

    return httpx.MockTransport(handler)


def make_capture(capture_id: str = "cap-1", minutes: int = 0, **fields) -> Capture:
    data = {
        "id": capture_id,
        "url": "https://example.com/x",
        "title": "(1) Async Python | Example Blog",
        "status": CaptureStatus.PENDING,
        "created_at": BASE_TIME + timedelta(minutes=minutes),
    }
    data.update(fields)
    return Capture(**data)


@pytest.fixture
def store() -> InMemoryCaptureStore:
    return InMemoryCaptureStore()


@pytest.fixture
def llm() -> FakeLLMProvider:
    return FakeLLMProvider()


@pytest.fixture
def embedding_provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def ledger() -> RecordingLedger:
    return RecordingLedger()


@pytest.fixture
def blobs() -> MemoryBlobStorage:
    return MemoryBlobStorage()


@pytest.fixture
def build(store, llm, embedding_provider, ledger, blobs):
    """Factory for a processor wired to the fakes; keyword arguments override parts."""

    def _build(**overrides) -> CaptureProcessor:
        usage = UsageRecorder(ledger)
        parts = {
            "store": store,
            "scraper": FakeScraper(),
            "image_locator": FakeImageLocator(),
            "image_store": ImageStore(blobs, transport=image_transport()),
            "analyzer": ContentAnalyzer(llm, usage=usage),
            "embedder": EmbeddingGenerator(embedding_provider, usage=usage),
            "usage": usage,
        }
        parts.update(overrides)
        return CaptureProcessor(**parts)

    return _build
