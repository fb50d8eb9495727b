import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from api.responses import success
from auth.utils import get_current_user
from db.models import User
from db.repository import Repository, get_repository
from services import serializers
from services.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/favorites", tags=["favorites"], dependencies=[Depends(get_current_user)])

# entity_type -> (repository getter, serializer)
FAVORITE_ENTITIES = {
    "meditation": ("get_meditation", serializers.meditation_to_dict),
    "affirmation": ("get_affirmation", serializers.affirmation_to_dict),
    "soundscape": ("get_soundscape", serializers.soundscape_to_dict),
    "neural_pattern": ("get_neural_pattern", serializers.neural_pattern_to_dict),
    "heart_galaxy_session": ("get_heart_galaxy_session", serializers.heart_galaxy_to_dict),
}


class FavoriteRequest(BaseModel):
    entity_type: str
    entity_id: str = Field(min_length=1, max_length=36)


def _check_entity_type(entity_type: str) -> None:
    if entity_type not in FAVORITE_ENTITIES:
        raise ValidationError(f"entity_type must be one of: {', '.join(sorted(FAVORITE_ENTITIES))}")


def _load_entity(repo: Repository, entity_type: str, entity_id: str) -> Optional[dict]:
    getter, to_dict = FAVORITE_ENTITIES[entity_type]
    entity = getattr(repo, getter)(entity_id)
    return to_dict(entity) if entity is not None else None


@router.get("")
def list_favorites(
    entity_type: Optional[str] = Query(default=None),
    user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    if entity_type:
        _check_entity_type(entity_type)
    rows = []
    for favorite in repo.list_favorites(user.id, entity_type=entity_type):
        item = serializers.favorite_to_dict(favorite)
        item["entity"] = _load_entity(repo, favorite.entity_type, favorite.entity_id)
        rows.append(item)
    return success(rows)


@router.post("")
def add_favorite(
    req: FavoriteRequest,
    user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    _check_entity_type(req.entity_type)
    entity = _load_entity(repo, req.entity_type, req.entity_id)
    if entity is None:
        raise NotFoundError(f"{req.entity_type.replace('_', ' ').capitalize()} not found")
    if repo.get_favorite(user.id, req.entity_type, req.entity_id) is not None:
        raise ConflictError("Already in favorites")

    favorite = repo.add_favorite(user.id, req.entity_type, req.entity_id)
    logger.info("User %s favorited %s %s", user.id, req.entity_type, req.entity_id)
    return success({**serializers.favorite_to_dict(favorite), "entity": entity})


@router.delete("/{entity_type}/{entity_id}")
def remove_favorite(
    entity_type: str,
    entity_id: str,
    user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    _check_entity_type(entity_type)
    favorite = repo.get_favorite(user.id, entity_type, entity_id)
    if favorite is None:
        raise NotFoundError("Favorite not found")
    repo.remove_favorite(favorite)
    return success({"entity_type": entity_type, "entity_id": entity_id, "removed": True})
