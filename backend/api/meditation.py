from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from api.responses import success
from auth.utils import get_current_user
from db.models import User
from db.repository import Repository, get_repository
from services import meditation_session_service as engine

router = APIRouter(prefix="/meditation", tags=["meditation"], dependencies=[Depends(get_current_user)])


class StartSessionRequest(BaseModel):
    meditation_id: Optional[str] = None
    soundscape_id: Optional[str] = None
    neural_pattern_id: Optional[str] = None
    target_duration: Optional[int] = None
    config: Optional[dict[str, Any]] = None


class AdvancePhaseRequest(BaseModel):
    feedback: Optional[str] = Field(default=None, max_length=2000)


class FeedbackRequest(BaseModel):
    feedback_type: str
    value: int
    biometric_data: Optional[dict[str, Any]] = None


@router.post("/start")
def start_session(
    req: StartSessionRequest,
    user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    result = engine.start_session(
        repo,
        user.id,
        meditation_id=req.meditation_id,
        soundscape_id=req.soundscape_id,
        neural_pattern_id=req.neural_pattern_id,
        target_duration=req.target_duration,
        config=req.config,
    )
    return success(result, message="Meditation session started")


@router.get("/current")
def current_session(
    user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return success(engine.get_current_session(repo, user.id))


@router.get("/sessions")
def list_sessions(
    limit: int = Query(default=20, ge=1, le=100),
    user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return success(engine.list_sessions(repo, user.id, limit=limit))


@router.get("/{session_id}")
def get_session(
    session_id: str,
    user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return success(engine.get_session(repo, user.id, session_id))


@router.post("/{session_id}/phase/advance")
def advance_phase(
    session_id: str,
    req: Optional[AdvancePhaseRequest] = None,
    user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    feedback = req.feedback if req else None
    return success(engine.advance_phase(repo, user.id, session_id, feedback=feedback))


@router.post("/{session_id}/pause")
def pause_session(
    session_id: str,
    user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return success(engine.pause_session(repo, user.id, session_id), message="Meditation session paused")


@router.post("/{session_id}/resume")
def resume_session(
    session_id: str,
    user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return success(engine.resume_session(repo, user.id, session_id), message="Meditation session resumed")


@router.post("/{session_id}/feedback")
def submit_feedback(
    session_id: str,
    req: FeedbackRequest,
    user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    result = engine.submit_feedback(
        repo,
        user.id,
        session_id,
        feedback_type=req.feedback_type,
        value=req.value,
        biometric_data=req.biometric_data,
    )
    return success(result)
