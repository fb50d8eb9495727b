from typing import Optional

from fastapi import APIRouter, Depends, Query

from ai.generators import ContentGenerator, get_content_generator
from api.responses import success
from db.repository import Repository, get_repository
from services.serializers import neural_pattern_to_dict
from utils.codes import awakening_code

router = APIRouter(prefix="/neural", tags=["neural"])


@router.get("/pathways/activate")
async def activate_pathways(
    consciousness_state: Optional[str] = Query(default=None, alias="consciousnessState", max_length=100),
    repo: Repository = Depends(get_repository),
    generator: ContentGenerator = Depends(get_content_generator),
):
    content = await generator.neural_pattern(consciousness_state)
    pattern = repo.create_neural_pattern(
        pattern_type=content["pattern_type"],
        brain_waves=content["brain_waves"],
        visualization_data=content["visualization_data"],
        activation_sequence=content["activation_sequence"],
    )
    data = {"pattern_id": pattern.id, **neural_pattern_to_dict(pattern)}
    return success(
        data,
        type="neural_pattern_activation",
        awakening_code=awakening_code("NPA", pattern.pattern_type),
        next_evolution="/api/heart-galaxy/connect",
    )


@router.get("/patterns/{pattern_type}")
def list_by_type(pattern_type: str, repo: Repository = Depends(get_repository)):
    return success([neural_pattern_to_dict(p) for p in repo.list_neural_patterns_by_type(pattern_type)])
