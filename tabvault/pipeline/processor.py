"""Capture processor that runs the enrichment pipeline for saved pages."""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Set

import pendulum

from ..db.captures import CaptureStore
from ..db.usage import UsageRecorder
from ..exceptions import CaptureNotFoundError
from ..generation import ContentAnalyzer, EmbeddingGenerator
from ..ingestion import (
    ContentScraper,
    ImageLocator,
    ScrapeResult,
    detect_platform,
    extract_author,
    is_scrapeable,
)
from ..models import Capture, CaptureStatus, SearchMatch
from ..storage import ImageStore, filename_from_url
from .models import BackfillResult, BatchResult, DeleteResult, ProcessResult

logger = logging.getLogger(__name__)


class PipelineStage:
    """Represents a pipeline stage."""

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None
        self.success = False
        self.skipped = False
        self.error: Optional[str] = None
        self.stats: Dict = {}

    def start(self):
        """Mark stage as started."""
        self.start_time = time.time()

    def complete(self, stats: Optional[Dict] = None):
        """Mark stage as completed successfully."""
        self.end_time = time.time()
        self.success = True
        if stats:
            self.stats.update(stats)

    def fail(self, error: str):
        """Mark stage as failed."""
        self.end_time = time.time()
        self.success = False
        self.error = error

    def skip(self, reason: str):
        """Mark stage as not run."""
        self.end_time = self.start_time = time.time()
        self.skipped = True
        self.error = reason

    @property
    def duration(self) -> float:
        """Get stage duration in seconds."""
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        return 0.0

    def report(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "success": self.success,
            "skipped": self.skipped,
            "error": self.error,
            "duration": round(self.duration, 3),
            "stats": self.stats,
        }


class CaptureProcessor:
    """
    Takes a captured URL through scraping, metadata extraction, AI analysis
    and embedding, and writes the merged result back in one update.

    Only two failures are fatal: the capture cannot be loaded, or the final
    write fails. Every other stage degrades to leaving its fields untouched.
    """

    def __init__(
        self,
        store: CaptureStore,
        scraper: ContentScraper,
        image_locator: ImageLocator,
        image_store: Optional[ImageStore] = None,
        analyzer: Optional[ContentAnalyzer] = None,
        embedder: Optional[EmbeddingGenerator] = None,
        usage: Optional[UsageRecorder] = None,
    ) -> None:
        """
        Initialize processor.

        Args:
            store: Capture storage
            scraper: Page scraper
            image_locator: Preview image lookup
            image_store: Persists a copy of the preview image; images are skipped when None
            analyzer: AI analysis; the analysis stage is skipped when None
            embedder: Embedding generation; the embedding stage is skipped when None
            usage: Usage recorder shared with analyzer and embedder
        """
        self.store = store
        self.scraper = scraper
        self.image_locator = image_locator
        self.image_store = image_store
        self.analyzer = analyzer
        self.embedder = embedder
        self.usage = usage
        self._background: Set[asyncio.Task] = set()

    async def _mark_error(self, capture_id: str, message: str) -> Optional[str]:
        """Record a fatal failure on the capture. Returns the status written, if any."""
        try:
            await self.store.update_capture(
                capture_id,
                {
                    "status": CaptureStatus.ERROR,
                    "error_message": message,
                    "processed_at": pendulum.now("UTC"),
                },
            )
            return CaptureStatus.ERROR.value
        except Exception as e:
            logger.error("Could not mark capture %s as error: %s", capture_id, e)
            return None

    async def _scrape(self, capture: Capture, stage: PipelineStage) -> Optional[ScrapeResult]:
        if not is_scrapeable(capture.url):
            stage.skip("URL cannot be scraped")
            logger.info("Skipping scrape for %s", capture.url)
            return None

        stage.start()
        try:
            scraped = await self.scraper.scrape(capture.url)
        except Exception as e:
            stage.fail(str(e))
            logger.warning("Scrape raised for %s: %s", capture.url, e)
            return None

        if scraped.success:
            stage.complete({"chars": len(scraped.content or ""), "rendered": scraped.rendered})
        else:
            stage.fail(scraped.error or "Scraping failed")
            logger.warning("Scrape failed for %s: %s", capture.url, scraped.error)
        return scraped

    async def _locate_and_store_image(self, capture: Capture, html: str) -> Dict[str, Any]:
        image_url = await self.image_locator.extract_image_url(capture.url, html)
        if not image_url:
            return {"image_url": None}

        stored = await self.image_store.store_image(image_url, capture.id)
        if not stored.success:
            logger.warning("Image storage failed for %s: %s", capture.id, stored.error)
            return {}
        return {"image_url": stored.url}

    async def _extract_metadata(
        self, capture: Capture, html: str, stage: PipelineStage
    ) -> Dict[str, Any]:
        stage.start()
        fields: Dict[str, Any] = {}
        errors: List[str] = []

        try:
            fields["source_platform"] = detect_platform(capture.url)
        except Exception as e:
            errors.append(f"platform: {e}")

        try:
            fields["author_name"] = extract_author(html, capture.url)
        except Exception as e:
            errors.append(f"author: {e}")

        if self.image_store is not None:
            try:
                fields.update(await self._locate_and_store_image(capture, html))
            except Exception as e:
                errors.append(f"image: {e}")

        logger.info(
            "Metadata for %s: platform=%s author=%s image=%s",
            capture.id,
            fields.get("source_platform"),
            fields.get("author_name"),
            fields.get("image_url"),
        )
        if errors:
            stage.fail("; ".join(errors))
            logger.warning("Metadata extraction degraded for %s: %s", capture.id, stage.error)
        else:
            stage.complete({"platform": fields.get("source_platform")})
        return fields

    async def _analyze(self, capture: Capture, text: str) -> Dict[str, Any]:
        result = await self.analyzer.analyze(capture.title or capture.url, text, capture.id)
        fields = result.to_update()
        if result.errors and not fields:
            raise RuntimeError("; ".join(result.errors))
        return fields

    async def _embed(self, capture: Capture, content: Optional[str]) -> Dict[str, Any]:
        # Compose from this run's inputs only so reprocessing is deterministic
        snapshot = Capture(id=capture.id, url=capture.url, title=capture.title, content=content)
        return {"embedding": await self.embedder.embed_capture(snapshot)}

    async def process_capture(self, capture_id: str) -> ProcessResult:
        """
        Run the full pipeline for one capture.

        Returns:
            ProcessResult; never raises
        """
        start = time.time()
        stages = {
            "fetch": PipelineStage("fetch", "Loading capture"),
            "scrape": PipelineStage("scrape", "Scraping page"),
            "metadata": PipelineStage("metadata", "Extracting platform, author and image"),
            "analysis": PipelineStage("analysis", "AI analysis"),
            "embedding": PipelineStage("embedding", "Generating embedding"),
            "persist": PipelineStage("persist", "Saving results"),
        }

        def finish(success: bool, status: Optional[str], error: Optional[str] = None):
            return ProcessResult(
                capture_id=capture_id,
                success=success,
                status=status,
                error=error,
                stages=[s.report() for s in stages.values() if s.start_time or s.skipped],
                duration=time.time() - start,
            )

        # Stage 1: load the record
        stage = stages["fetch"]
        stage.start()
        try:
            capture = await self.store.get_capture(capture_id)
            if capture is None:
                raise CaptureNotFoundError(capture_id)
        except CaptureNotFoundError as e:
            stage.fail(str(e))
            logger.error("%s", e)
            return finish(False, None, str(e))
        except Exception as e:
            stage.fail(str(e))
            logger.error("Failed to load capture %s: %s", capture_id, e)
            status = await self._mark_error(capture_id, str(e))
            return finish(False, status, str(e))
        stage.complete()

        logger.info("Processing capture %s: %s", capture_id, capture.label)
        try:
            await self.store.update_capture(capture_id, {"status": CaptureStatus.PROCESSING})
        except Exception as e:
            logger.warning("Could not mark capture %s as processing: %s", capture_id, e)

        # Stage 2: scrape
        scraped = await self._scrape(capture, stages["scrape"])
        content = scraped.content if scraped and scraped.success else None
        html = scraped.html if scraped else ""

        update: Dict[str, Any] = {"content": content}

        # Stage 3: platform, author, image
        update.update(await self._extract_metadata(capture, html, stages["metadata"]))

        # Stage 4: analysis and embedding, independently
        ai_text = content or capture.title or capture.url
        branches = {}
        if self.analyzer is not None:
            branches["analysis"] = self._analyze(capture, ai_text)
        else:
            stages["analysis"].skip("Text generation not configured")
        if self.embedder is not None:
            branches["embedding"] = self._embed(capture, content)
        else:
            stages["embedding"].skip("Embeddings not configured")

        for name in branches:
            stages[name].start()
        outcomes = await asyncio.gather(*branches.values(), return_exceptions=True)
        for name, outcome in zip(branches, outcomes):
            if isinstance(outcome, BaseException):
                stages[name].fail(str(outcome) or outcome.__class__.__name__)
                logger.warning("%s failed for %s: %s", name.title(), capture_id, stages[name].error)
                continue
            update.update(outcome)
            stages[name].complete({"fields": sorted(outcome)})
            logger.info("%s completed for %s", name.title(), capture_id)

        # Stage 5: single merged write
        update.update(
            status=CaptureStatus.COMPLETED,
            error_message=None,
            processed_at=pendulum.now("UTC"),
        )
        stage = stages["persist"]
        stage.start()
        try:
            await self.store.update_capture(capture_id, update)
        except Exception as e:
            stage.fail(str(e))
            logger.error("Failed to save capture %s: %s", capture_id, e)
            status = await self._mark_error(capture_id, str(e))
            return finish(False, status, str(e))
        stage.complete({"fields": len(update)})

        result = finish(True, CaptureStatus.COMPLETED.value)
        logger.info(
            "Processed capture %s in %.1fs (degraded: %s)",
            capture_id,
            result.duration,
            ", ".join(result.degraded_stages) or "none",
        )
        return result

    def process_in_background(self, capture_id: str) -> asyncio.Task:
        """Schedule ``process_capture`` without waiting for it."""
        task = asyncio.get_running_loop().create_task(self.process_capture(capture_id))
        self._background.add(task)

        def _done(t: asyncio.Task) -> None:
            self._background.discard(t)
            if t.cancelled():
                logger.warning("Background processing of %s was cancelled", capture_id)
            elif t.exception() is not None:
                logger.error("Background processing of %s failed: %s", capture_id, t.exception())
            elif not t.result().success:
                logger.error("Background processing of %s failed: %s", capture_id, t.result().error)

        task.add_done_callback(_done)
        return task

    async def wait_for_background(self) -> None:
        """Wait for scheduled background runs to finish."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def process_pending_captures(self, limit: int = 10) -> BatchResult:
        """Process up to ``limit`` pending captures, oldest first, one at a time."""
        try:
            capture_ids = await self.store.list_pending_ids(limit)
        except Exception as e:
            logger.error("Failed to list pending captures: %s", e)
            return BatchResult(success=False, error=str(e))

        logger.info("Processing %d pending captures", len(capture_ids))
        batch = BatchResult()
        for capture_id in capture_ids:
            result = await self.process_capture(capture_id)
            batch.results.append(result)
            if result.success:
                batch.processed += 1
            else:
                batch.failed += 1

        logger.info("Pending sweep done: %d processed, %d failed", batch.processed, batch.failed)
        return batch

    async def backfill_embeddings(self, limit: int = 50) -> BackfillResult:
        """Generate embeddings for completed captures that have none."""
        if self.embedder is None:
            return BackfillResult(success=False, error="Embeddings not configured")

        try:
            captures = await self.store.list_missing_embedding(limit)
        except Exception as e:
            logger.error("Failed to list captures without embeddings: %s", e)
            return BackfillResult(success=False, error=str(e))

        result = BackfillResult()
        for capture in captures:
            try:
                embedding = await self.embedder.embed_capture(capture)
                await self.store.update_capture(capture.id, {"embedding": embedding})
                result.processed += 1
            except Exception as e:
                logger.warning("Embedding backfill failed for %s: %s", capture.id, e)
                result.failed += 1

        try:
            result.remaining = await self.store.count_missing_embedding()
        except Exception as e:
            logger.warning("Failed to count captures without embeddings: %s", e)

        logger.info(
            "Embedding backfill: %d processed, %d failed, %d remaining",
            result.processed,
            result.failed,
            result.remaining,
        )
        return result

    async def backfill_display_titles(self, limit: int = 50) -> BackfillResult:
        """Generate display titles for completed captures that have none."""
        if self.analyzer is None:
            return BackfillResult(success=False, error="Text generation not configured")

        try:
            captures = await self.store.list_missing_display_title(limit)
        except Exception as e:
            logger.error("Failed to list captures without display titles: %s", e)
            return BackfillResult(success=False, error=str(e))

        result = BackfillResult()
        for capture in captures:
            try:
                display_title = await self.analyzer.generate_display_title(
                    capture.title or capture.url, capture.content or "", capture.id
                )
                await self.store.update_capture(capture.id, {"display_title": display_title})
                result.processed += 1
            except Exception as e:
                logger.warning("Display title backfill failed for %s: %s", capture.id, e)
                result.failed += 1

        try:
            result.remaining = await self.store.count_missing_display_title()
        except Exception as e:
            logger.warning("Failed to count captures without display titles: %s", e)

        logger.info(
            "Display title backfill: %d processed, %d failed, %d remaining",
            result.processed,
            result.failed,
            result.remaining,
        )
        return result

    async def search(
        self, query: str, threshold: float = 0.7, count: int = 10
    ) -> List[SearchMatch]:
        """Semantic search over stored captures. Returns [] on any failure."""
        if self.embedder is None or not query.strip():
            return []
        try:
            vector = await self.embedder.embed_query(query)
            return await self.store.search_similar(vector, threshold, count)
        except Exception as e:
            logger.error("Search failed for %r: %s", query, e)
            return []

    async def delete_capture(self, capture_id: str) -> DeleteResult:
        """Delete a capture and its stored image."""
        try:
            deleted = await self.store.delete_capture(capture_id)
        except Exception as e:
            logger.error("Failed to delete capture %s: %s", capture_id, e)
            return DeleteResult(capture_id=capture_id, success=False, error=str(e))

        if deleted is None:
            return DeleteResult(
                capture_id=capture_id,
                success=False,
                error=str(CaptureNotFoundError(capture_id)),
            )

        image_deleted = False
        filename = filename_from_url(deleted.image_url)
        if filename and self.image_store is not None:
            removed, _ = await self.image_store.delete_images([filename])
            image_deleted = removed > 0

        logger.info("Deleted capture %s", capture_id)
        return DeleteResult(capture_id=capture_id, success=True, image_deleted=image_deleted)

    async def close(self) -> None:
        """Wait for background runs and pending usage records."""
        await self.wait_for_background()
        if self.usage is not None:
            await self.usage.flush()
