import logging
import math
from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from api.responses import success
from auth.utils import get_current_user, get_optional_user
from db.models import User
from db.repository import Repository, get_repository
from services.errors import NotFoundError, ValidationError
from services.heart_galaxy_service import MAX_HEART_RATE, MIN_HEART_RATE, read_heart_galaxy
from services.serializers import heart_galaxy_to_dict
from utils.codes import awakening_code

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/heart-galaxy", tags=["heart-galaxy"])

DEFAULT_SESSION_DURATION = 300


class ConnectRequest(BaseModel):
    # Validated in the handler; missing and non-numeric rates share one message.
    heart_rate: Any = None
    session_duration: Optional[int] = Field(default=None, ge=1, le=7200)
    meditation_session_id: Optional[str] = None


@router.post("/connect")
def connect(
    req: ConnectRequest,
    user: Optional[User] = Depends(get_optional_user),
    repo: Repository = Depends(get_repository),
):
    heart_rate = req.heart_rate
    if (
        isinstance(heart_rate, bool)
        or not isinstance(heart_rate, (int, float))
        or not heart_rate
        or (isinstance(heart_rate, float) and not math.isfinite(heart_rate))
    ):
        raise ValidationError("Heart rate is required and must be a number")
    if not MIN_HEART_RATE <= heart_rate <= MAX_HEART_RATE:
        raise ValidationError(f"Heart rate must be between {MIN_HEART_RATE} and {MAX_HEART_RATE} bpm")

    if req.meditation_session_id:
        linked = repo.get_meditation_session(req.meditation_session_id)
        if linked is None or user is None or linked.user_id != user.id:
            raise NotFoundError("Meditation session not found")

    reading = read_heart_galaxy(heart_rate)
    session = repo.create_heart_galaxy_session(
        user_id=user.id if user else None,
        meditation_session_id=req.meditation_session_id,
        heart_rate=reading.heart_rate,
        coherence_level=reading.coherence_level,
        galaxy_sync_status=reading.galaxy_sync_status,
        cosmic_coordinates=reading.cosmic_coordinates,
        session_duration=req.session_duration or DEFAULT_SESSION_DURATION,
    )
    logger.info("Heart-galaxy session %s: coherence %s", session.id, reading.coherence_level)
    data = {
        "session_id": session.id,
        **heart_galaxy_to_dict(session),
        "connection_strength": reading.connection_strength,
        "biometric_harmony": reading.biometric_harmony,
    }
    return success(
        data,
        type="heart_galaxy_connection",
        awakening_code=awakening_code("HGC", reading.galaxy_sync_status),
        next_evolution="/api/sacred-geometry/generate",
    )


@router.get("/sessions")
def list_sessions(
    user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return success([heart_galaxy_to_dict(s) for s in repo.list_heart_galaxy_sessions_by_user(user.id)])
