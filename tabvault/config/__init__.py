"""Configuration management for Tab Vault."""

from .ai_models import DEFAULT_MODEL, MODELS, AIModelSpec, get_available_models, get_model_config
from .loader import Config, load_config, save_config
from .models import (
    ConfigModel,
    EmbeddingConfig,
    ImageConfig,
    LLMConfig,
    PipelineConfig,
    PostgresConfig,
    ScraperConfig,
)

__all__ = [
    "Config",
    "ConfigModel",
    "PostgresConfig",
    "LLMConfig",
    "EmbeddingConfig",
    "ScraperConfig",
    "ImageConfig",
    "PipelineConfig",
    "AIModelSpec",
    "MODELS",
    "DEFAULT_MODEL",
    "get_model_config",
    "get_available_models",
    "load_config",
    "save_config",
]
