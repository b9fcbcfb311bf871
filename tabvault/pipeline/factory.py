"""Wire a CaptureProcessor from configuration."""

import logging
from typing import Any, Dict

from ..config import Config
from ..db import (
    CategoryStore,
    PostgresCaptureStore,
    PostgresUsageLedger,
    SettingsStore,
    UsageRecorder,
    get_async_pool,
)
from ..exceptions import ProviderNotConfiguredError
from ..generation import (
    ContentAnalyzer,
    EmbeddingGenerator,
    OpenAIEmbeddingProvider,
    OpenAIProvider,
)
from ..ingestion import ContentScraper, ImageLocator
from ..storage import FilesystemBlobStorage, ImageStore
from .processor import CaptureProcessor

logger = logging.getLogger(__name__)


def get_llm_provider(llm_config: Dict[str, Any]) -> OpenAIProvider:
    """Text-generation provider; raises ProviderNotConfiguredError without an API key."""
    if not llm_config.get("api_key"):
        raise ProviderNotConfiguredError(
            f"No text-generation API key (set {llm_config.get('api_key_env')})"
        )
    return OpenAIProvider(
        api_key=llm_config["api_key"],
        base_url=llm_config.get("base_url"),
        service=llm_config.get("provider", "openrouter"),
        timeout=llm_config.get("timeout", 30.0),
    )


def get_embedding_provider(embedding_config: Dict[str, Any]) -> OpenAIEmbeddingProvider:
    """Embedding provider; raises ProviderNotConfiguredError without an API key."""
    if not embedding_config.get("api_key"):
        raise ProviderNotConfiguredError(
            f"No embedding API key (set {embedding_config.get('api_key_env')})"
        )
    return OpenAIEmbeddingProvider(
        api_key=embedding_config["api_key"],
        model=embedding_config["model"],
        base_url=embedding_config.get("base_url"),
        timeout=embedding_config.get("timeout", 20.0),
    )


async def build_processor(config: Config) -> CaptureProcessor:
    """
    Build a processor backed by Postgres, the configured AI backends and
    filesystem image storage.

    A backend without an API key is left out and its stage is skipped.
    """
    settings = config.config
    pool = await get_async_pool(config.get_db_config())
    usage = UsageRecorder(PostgresUsageLedger(pool))

    analyzer = None
    llm_config = config.get_llm_config()
    try:
        analyzer = ContentAnalyzer(
            get_llm_provider(llm_config),
            category_store=CategoryStore(pool),
            settings_store=SettingsStore(pool, default_model=llm_config["default_model"]),
            usage=usage,
            fallback_category=settings.pipeline.fallback_category,
        )
    except ProviderNotConfiguredError as e:
        logger.warning("%s; AI analysis disabled", e)

    embedder = None
    embedding_config = config.get_embedding_config()
    try:
        embedder = EmbeddingGenerator(
            get_embedding_provider(embedding_config),
            usage=usage,
            dimensions=embedding_config["dimensions"],
            max_input_chars=embedding_config["max_input_chars"],
            content_prefix_chars=embedding_config["content_prefix_chars"],
        )
    except ProviderNotConfiguredError as e:
        logger.warning("%s; embeddings disabled", e)

    image_store = ImageStore(
        FilesystemBlobStorage(config.images_dir, settings.images.public_base_url),
        config=settings.images,
    )

    return CaptureProcessor(
        store=PostgresCaptureStore(pool),
        scraper=ContentScraper(settings.scraper),
        image_locator=ImageLocator(timeout=settings.scraper.metadata_timeout),
        image_store=image_store,
        analyzer=analyzer,
        embedder=embedder,
        usage=usage,
    )
