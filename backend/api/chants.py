from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ai.generators import ContentGenerator, get_content_generator
from api.responses import success
from db.repository import Repository, get_repository
from services.serializers import soundscape_to_dict
from utils.codes import awakening_code

router = APIRouter(prefix="/chants", tags=["chants"])


class SynthesizeRequest(BaseModel):
    type: Optional[str] = Field(default=None, max_length=100)
    duration: Optional[int] = Field(default=None, ge=10, le=7200)


@router.post("/galactic/synthesize")
async def synthesize_soundscape(
    req: Optional[SynthesizeRequest] = None,
    repo: Repository = Depends(get_repository),
    generator: ContentGenerator = Depends(get_content_generator),
):
    req = req or SynthesizeRequest()
    content = await generator.galactic_soundscape(req.type, req.duration)
    soundscape = repo.create_soundscape(
        name=content["name"],
        frequencies=content["frequencies"],
        duration=content["duration"],
        galactic_type=content["galactic_type"],
        audio_params=content["audio_params"],
    )
    data = {"soundscape_id": soundscape.id, **soundscape_to_dict(soundscape)}
    return success(
        data,
        type="galactic_soundscape",
        awakening_code=awakening_code("GCS", soundscape.galactic_type),
        next_evolution="/api/neural/pathways/activate",
    )


@router.get("/galactic")
def list_soundscapes(repo: Repository = Depends(get_repository)):
    return success([soundscape_to_dict(s) for s in repo.list_soundscapes()])
