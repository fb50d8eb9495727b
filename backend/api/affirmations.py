from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import AliasChoices, BaseModel, Field

from ai.generators import ContentGenerator, get_content_generator
from api.responses import success
from auth.utils import get_optional_user
from db.models import User
from db.repository import Repository, get_repository
from services.serializers import affirmation_to_dict
from utils.codes import awakening_code

router = APIRouter(prefix="/affirmations", tags=["affirmations"])


class CosmicAffirmationRequest(BaseModel):
    intention: Optional[str] = Field(default=None, max_length=500)
    life_area: Optional[str] = Field(
        default=None,
        max_length=100,
        validation_alias=AliasChoices("life_area", "lifeArea"),
    )
    personality: Optional[str] = Field(default=None, max_length=200)


@router.post("/cosmic")
async def generate_affirmation(
    req: Optional[CosmicAffirmationRequest] = None,
    user: Optional[User] = Depends(get_optional_user),
    repo: Repository = Depends(get_repository),
    generator: ContentGenerator = Depends(get_content_generator),
):
    req = req or CosmicAffirmationRequest()
    content = await generator.cosmic_affirmation(req.intention, req.life_area, req.personality)
    affirmation = repo.create_affirmation(
        text=content["text"],
        category=content["category"],
        vibrational_frequency=content["vibrational_frequency"],
        cosmic_alignment=content["cosmic_alignment"],
        personalization_factors=content["personalization_factors"],
        user_id=user.id if user else None,
    )
    data = {"affirmation_id": affirmation.id, **affirmation_to_dict(affirmation)}
    return success(
        data,
        type="cosmic_affirmation",
        awakening_code=awakening_code("CCA", affirmation.category),
        next_evolution="/api/heart-galaxy/connect",
    )


@router.get("/category/{category}")
def list_by_category(category: str, repo: Repository = Depends(get_repository)):
    return success([affirmation_to_dict(a) for a in repo.list_affirmations_by_category(category)])
