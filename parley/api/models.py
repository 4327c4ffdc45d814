"""
Model mode endpoints.

Lists the selectable model modes and stores the caller's default.
"""

from fastapi import APIRouter

from parley.api.deps import CurrentUser, Gateway, PreferenceRepo
from parley.core.exceptions import ValidationError
from parley.core.model_modes import DEFAULT_MODE, MODEL_MODES, is_known_mode
from parley.models.user import ModelPreferenceUpdate

router = APIRouter()


@router.get("")
async def list_available_models(gateway: Gateway):
    """List model modes whose provider is configured."""
    available = set(gateway.available_modes())
    return {
        "success": True,
        "default": DEFAULT_MODE,
        "models": [
            {
                "mode": mode,
                "name": config.label or config.model,
                "provider": config.provider,
                "model": config.model,
                "available": mode in available,
            }
            for mode, config in MODEL_MODES.items()
        ],
    }


@router.get("/preference")
async def get_model_preference(user: CurrentUser, repo: PreferenceRepo):
    """Get the caller's default model mode."""
    preference = await repo.get(user.id)
    return {
        "success": True,
        "preference": preference.model_mode if preference else DEFAULT_MODE,
    }


@router.put("/preference")
async def update_model_preference(
    body: ModelPreferenceUpdate,
    user: CurrentUser,
    repo: PreferenceRepo,
):
    """Store the caller's default model mode."""
    if not is_known_mode(body.model_mode):
        raise ValidationError("Invalid model mode")
    preference = await repo.set_model_mode(user.id, body.model_mode)
    return {
        "success": True,
        "message": "Model preference updated",
        "preference": preference.model_mode,
    }
