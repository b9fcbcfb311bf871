"""Selectable text-generation models."""

from typing import Dict, List

from pydantic import BaseModel, Field


class AIModelSpec(BaseModel):
    """A text-generation model an admin can select."""

    key: str = Field(..., description="Settings key")
    id: str = Field(..., description="Provider model identifier")
    name: str = Field(..., description="Display name")
    provider: str = Field(..., description="Model vendor")
    description: str = Field("", description="Short description")
    cost_per_1k_input: float = Field(..., description="USD per 1K input tokens")
    cost_per_1k_output: float = Field(..., description="USD per 1K output tokens")
    max_tokens: int = Field(500, description="Max output tokens per call")
    temperature: float = Field(0.3, description="Sampling temperature")


MODELS: Dict[str, AIModelSpec] = {
    "claude-haiku": AIModelSpec(
        key="claude-haiku",
        id="anthropic/claude-haiku-4.5",
        name="Claude Haiku 4.5",
        provider="Anthropic",
        description="Fast and efficient, great for most tasks",
        cost_per_1k_input=0.001,
        cost_per_1k_output=0.005,
    ),
    "claude-sonnet": AIModelSpec(
        key="claude-sonnet",
        id="anthropic/claude-sonnet-4-20250514",
        name="Claude Sonnet 4",
        provider="Anthropic",
        description="Balanced performance and quality",
        cost_per_1k_input=0.003,
        cost_per_1k_output=0.015,
    ),
    "gpt-4o-mini": AIModelSpec(
        key="gpt-4o-mini",
        id="openai/gpt-4o-mini",
        name="GPT-4o Mini",
        provider="OpenAI",
        description="Fast and affordable OpenAI option",
        cost_per_1k_input=0.00015,
        cost_per_1k_output=0.0006,
    ),
}

DEFAULT_MODEL = "claude-haiku"


def get_model_config(key: str) -> AIModelSpec:
    """Get model config by key, falling back to the default model."""
    return MODELS.get(key) or MODELS[DEFAULT_MODEL]


def estimate_capture_cost(model: AIModelSpec, calls: int = 5) -> float:
    """Estimate USD cost of one capture (~1000 input / 200 output tokens per call)."""
    input_tokens = 1000 * calls
    output_tokens = 200 * calls
    return (
        input_tokens / 1000 * model.cost_per_1k_input
        + output_tokens / 1000 * model.cost_per_1k_output
    )


def get_available_models() -> List[Dict]:
    """Get all models for display."""
    return [
        {
            "key": key,
            "name": model.name,
            "provider": model.provider,
            "description": model.description,
            "estimated_cost_per_capture": estimate_capture_cost(model),
        }
        for key, model in MODELS.items()
    ]
