from typing import Optional

from fastapi import APIRouter, Depends, Query

from ai.generators import ContentGenerator, get_content_generator
from api.responses import success
from db.repository import Repository, get_repository
from services.errors import NotFoundError
from services.serializers import meditation_to_dict
from utils.codes import awakening_code

router = APIRouter(prefix="/sacred-geometry", tags=["sacred-geometry"])


@router.get("/generate")
async def generate_meditation(
    intention: Optional[str] = Query(default=None, max_length=500),
    duration: Optional[int] = Query(default=None, ge=60, le=7200),
    repo: Repository = Depends(get_repository),
    generator: ContentGenerator = Depends(get_content_generator),
):
    content = await generator.sacred_geometry_meditation(intention, duration)
    code = awakening_code("SGM", content["pattern"])
    meditation = repo.create_meditation(
        pattern=content["pattern"],
        duration=content["duration"],
        frequencies=content["frequencies"],
        geometry_sequence=content["geometry_sequence"],
        neural_targets=content["neural_targets"],
        consciousness_level=content["consciousness_level"],
        guided_text=content["guided_text"],
        awakening_code=code,
    )
    data = {"meditation_id": meditation.id, **meditation_to_dict(meditation)}
    return success(
        data,
        type="sacred_geometry_meditation",
        awakening_code=code,
        next_evolution="/api/neural/pathways/activate",
    )


@router.get("")
def list_meditations(repo: Repository = Depends(get_repository)):
    return success([meditation_to_dict(m) for m in repo.list_meditations()])


@router.get("/{meditation_id}")
def get_meditation(meditation_id: str, repo: Repository = Depends(get_repository)):
    meditation = repo.get_meditation(meditation_id)
    if meditation is None:
        raise NotFoundError("Meditation not found")
    return success(meditation_to_dict(meditation))
