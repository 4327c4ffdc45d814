"""
Static model-mode registry.

A model mode is a named bundle of provider + model + sampling parameters that
callers select per request or per thread.
"""

from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_MODE = "fast"


class ModelConfig(BaseModel):
    """Sampling configuration for one model mode."""

    provider: str = Field(..., description="Provider identifier (e.g. groq, gemini)")
    model: str = Field(..., description="Provider-side model name")
    label: str = Field("", description="Human readable name")
    temperature: float = Field(0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(2048, ge=1)
    top_p: float = Field(0.9, ge=0.0, le=1.0)


MODEL_MODES: dict[str, ModelConfig] = {
    "fast": ModelConfig(
        provider="groq",
        model="llama-3.3-70b-versatile",
        label="Fast (Llama 3.3 70B)",
        temperature=0.7,
        max_tokens=2048,
        top_p=0.9,
    ),
    "creative": ModelConfig(
        provider="gemini",
        model="gemini-2.0-flash",
        label="Creative (Gemini 2.0 Flash)",
        temperature=0.9,
        max_tokens=2048,
        top_p=0.9,
    ),
}


def is_known_mode(mode: Optional[str]) -> bool:
    return bool(mode) and mode in MODEL_MODES


def resolve_mode(mode: Optional[str]) -> tuple[str, ModelConfig]:
    """Return ``(mode_key, config)``, falling back to the default mode."""
    if mode and mode in MODEL_MODES:
        return mode, MODEL_MODES[mode]
    return DEFAULT_MODE, MODEL_MODES[DEFAULT_MODE]
