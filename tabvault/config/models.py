"""Configuration models."""

from typing import Optional

from pydantic import BaseModel, Field


class PostgresConfig(BaseModel):
    """Postgres configuration."""

    host: str = Field("localhost", description="Database host")
    port: int = Field(5432, description="Database port")
    database: str = Field("tabvault", description="Database name")
    user: str = Field("tabvault", description="Database user")
    password: Optional[str] = Field(None, description="Database password")
    password_env: Optional[str] = Field(None, description="Environment variable for password")


class LLMConfig(BaseModel):
    """Text-generation backend configuration (OpenAI-compatible API)."""

    provider: str = Field("openrouter", description="LLM provider (openrouter, openai)")
    base_url: Optional[str] = Field(
        "https://openrouter.ai/api/v1", description="Base URL for the chat completions API"
    )
    default_model: str = Field("claude-haiku", description="Model key used when no setting is stored")
    api_key_env: Optional[str] = Field("OPENROUTER_API_KEY", description="Environment variable for API key")
    api_key: Optional[str] = Field(None, description="API key (prefer api_key_env)")
    timeout: float = Field(30.0, description="Request timeout in seconds", gt=0)


class EmbeddingConfig(BaseModel):
    """Embedding backend configuration."""

    model: str = Field("text-embedding-3-small", description="Embedding model name")
    dimensions: int = Field(1536, description="Embedding vector size", ge=1)
    api_key_env: Optional[str] = Field("OPENAI_API_KEY", description="Environment variable for API key")
    api_key: Optional[str] = Field(None, description="API key (prefer api_key_env)")
    base_url: Optional[str] = Field(None, description="Custom base URL")
    max_input_chars: int = Field(30000, description="Client-side input truncation (~4 chars/token)", ge=1)
    content_prefix_chars: int = Field(10000, description="Raw content kept in composed text", ge=0)
    timeout: float = Field(20.0, description="Request timeout in seconds", gt=0)


class ScraperConfig(BaseModel):
    """Page fetching and rendering configuration."""

    user_agent: str = Field(
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        description="Browser-like User-Agent header",
    )
    timeout: float = Field(15.0, description="Fetch timeout in seconds", gt=0)
    min_content_length: int = Field(100, description="Minimum usable text length", ge=0)
    max_content_length: int = Field(50000, description="Maximum stored text length", ge=1)
    render_fallback: bool = Field(True, description="Use headless rendering for short pages")
    render_timeout: float = Field(30.0, description="Headless navigation timeout in seconds", gt=0)
    settle_ms: int = Field(1000, description="Wait after navigation before extracting", ge=0)
    metadata_timeout: float = Field(10.0, description="Timeout for oEmbed-style lookups", gt=0)


class ImageConfig(BaseModel):
    """Preview image storage configuration."""

    directory: str = Field("images", description="Directory under workspace_root")
    public_base_url: str = Field(
        "http://localhost:8000/images/", description="Prefix for stored image URLs"
    )
    max_bytes: int = Field(5 * 1024 * 1024, description="Maximum image size", ge=1)
    timeout: float = Field(10.0, description="Download timeout in seconds", gt=0)


class PipelineConfig(BaseModel):
    """Batch and classification defaults."""

    pending_batch_size: int = Field(10, description="Captures per pending sweep", ge=1, le=500)
    backfill_batch_size: int = Field(50, description="Captures per backfill", ge=1, le=1000)
    fallback_category: str = Field("reference", description="Category used when parsing fails")


class ConfigModel(BaseModel):
    """Main configuration model."""

    workspace_root: str = Field("~/TabVault", description="Root directory for stored files")
    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    embeddings: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    scraper: ScraperConfig = Field(default_factory=ScraperConfig)
    images: ImageConfig = Field(default_factory=ImageConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
