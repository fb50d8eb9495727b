from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from api.responses import success
from auth.utils import get_current_user
from db.models import User
from db.repository import Repository, get_repository
from services.serializers import preferences_to_dict

router = APIRouter(prefix="/preferences", tags=["preferences"], dependencies=[Depends(get_current_user)])

DEFAULT_PREFERENCES = {
    "default_meditation_duration": 1260,
    "preferred_soundscape_type": "cosmic_harmony",
    "preferred_consciousness_state": "theta_gamma_sync",
    "preferred_affirmation_category": None,
    "settings": {},
    "updated_at": None,
}


class PreferencesUpdate(BaseModel):
    default_meditation_duration: Optional[int] = Field(default=None, ge=60, le=7200)
    preferred_soundscape_type: Optional[str] = Field(default=None, max_length=100)
    preferred_consciousness_state: Optional[str] = Field(default=None, max_length=100)
    preferred_affirmation_category: Optional[str] = Field(default=None, max_length=100)
    settings: Optional[dict[str, Any]] = None


@router.get("")
def get_preferences(
    user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    prefs = repo.get_preferences(user.id)
    if prefs is None:
        return success(dict(DEFAULT_PREFERENCES))
    return success(preferences_to_dict(prefs))


@router.put("")
def update_preferences(
    req: PreferencesUpdate,
    user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    changes = req.model_dump(exclude_unset=True)
    prefs = repo.upsert_preferences(user.id, **changes)
    return success(preferences_to_dict(prefs))
