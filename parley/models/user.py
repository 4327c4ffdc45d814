"""
User-level models.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class UserPreference(BaseModel):
    """Stored per-user chat preferences."""

    user_id: str
    model_mode: str = Field("fast", description="Default model mode")
    updated_at: datetime

    model_config = {"from_attributes": True, "protected_namespaces": ()}


class ModelPreferenceUpdate(BaseModel):
    """Request body for changing the default model mode."""

    model_mode: str = Field(..., alias="modelMode", min_length=1, max_length=50)

    model_config = {"populate_by_name": True, "protected_namespaces": ()}
