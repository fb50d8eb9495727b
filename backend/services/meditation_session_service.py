"""Meditation session phase engine.

A session walks a fixed, non-branching phase list and is advanced only by
explicit client calls. Every state change appends an event row; the event
log is diagnostic, the session row is authoritative.
"""
from __future__ import annotations

import logging
from typing import Any

from db.models import MeditationSession
from db.repository import Repository
from services.errors import ConflictError, InvalidStateError, NotFoundError, ValidationError
from services.serializers import meditation_session_to_dict, session_event_to_dict
from utils.datetime_utils import elapsed_minutes, elapsed_seconds, utcnow

logger = logging.getLogger(__name__)

PHASES = ("preparation", "induction", "deepening", "expansion", "integration")
FEEDBACK_TYPES = {"difficulty", "comfort", "focus", "relaxation"}

DEFAULT_INTENSITY = 5.0
MIN_INTENSITY = 1.0
MAX_INTENSITY = 10.0
MIN_TARGET_DURATION = 60
MAX_TARGET_DURATION = 7200
MIN_FEEDBACK_VALUE = 1
MAX_FEEDBACK_VALUE = 10
BASELINE_HEART_RATE = 65
HEART_RATE_TOLERANCE = 20
MAX_BIOMETRIC_REDUCTION = 2.0
RECENT_EVENT_LIMIT = 5

PHASE_GUIDANCE: dict[str, list[str]] = {
    "preparation": [
        "Find a comfortable seated or lying position.",
        "Let your eyes soften or close.",
        "Take three slow breaths, lengthening each exhale.",
    ],
    "induction": [
        "Follow the breath as it moves in and out without changing it.",
        "Let the sacred pattern hold your gaze or your inner vision.",
        "Notice sounds around you and let them pass.",
    ],
    "deepening": [
        "Allow the body to feel heavier with every exhale.",
        "Rest attention on the center of the pattern.",
        "When thoughts arise, return gently to the rhythm of the breath.",
    ],
    "expansion": [
        "Imagine awareness widening beyond the edges of the body.",
        "Feel the heartbeat as a steady pulse connecting you to the larger field.",
        "Stay open to whatever arises without holding on to it.",
    ],
    "integration": [
        "Slowly bring awareness back to the body and the room.",
        "Move fingers and toes, then take a deep, energising breath.",
        "Carry one word or image from this session into your day.",
    ],
}


def progress_for_phase(phase: str | None) -> int:
    """Percent complete once `phase` is reached; 20 per phase."""
    index = PHASES.index(phase) if phase in PHASES else 0
    return round((index + 1) / len(PHASES) * 100)


def _clamp_intensity(value: float) -> float:
    return round(max(MIN_INTENSITY, min(MAX_INTENSITY, value)), 2)


def adjust_intensity(
    current: float,
    feedback_type: str,
    value: int,
    heart_rate: float | None = None,
) -> float | None:
    """New intensity after one feedback submission, or None when no rule fires.

    Each rule is computed from `current`; a firing heart-rate rule replaces
    the feedback rule's result instead of compounding it.
    """
    adjusted: float | None = None
    if feedback_type == "difficulty":
        adjusted = _clamp_intensity(current + (value - 5) * 0.5)
    elif feedback_type == "comfort" and value < 5:
        adjusted = _clamp_intensity(current - (5 - value) * 0.3)

    if heart_rate is not None:
        deviation = abs(heart_rate - BASELINE_HEART_RATE)
        if deviation > HEART_RATE_TOLERANCE:
            adjusted = _clamp_intensity(current - min(MAX_BIOMETRIC_REDUCTION, deviation / 20))
    return adjusted


def _heart_rate_from(biometric_data: dict | None) -> float | None:
    if not isinstance(biometric_data, dict):
        return None
    value = biometric_data.get("heart_rate")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _owned_session(repo: Repository, user_id: str, session_id: str) -> MeditationSession:
    session = repo.get_meditation_session(session_id)
    if session is None or session.user_id != user_id:
        raise NotFoundError("Meditation session not found")
    return session


def _log_event(repo: Repository, session: MeditationSession, event_type: str, payload: dict[str, Any]) -> None:
    repo.create_session_event(session_id=session.id, event_type=event_type, payload=payload)


def _session_view(session: MeditationSession) -> dict:
    data = meditation_session_to_dict(session)
    data["progress"] = progress_for_phase(session.current_phase)
    return data


def start_session(
    repo: Repository,
    user_id: str,
    *,
    meditation_id: str | None = None,
    soundscape_id: str | None = None,
    neural_pattern_id: str | None = None,
    target_duration: int | None = None,
    config: dict | None = None,
) -> dict:
    if target_duration is not None and not MIN_TARGET_DURATION <= target_duration <= MAX_TARGET_DURATION:
        raise ValidationError(
            f"target_duration must be between {MIN_TARGET_DURATION} and {MAX_TARGET_DURATION} seconds"
        )
    if meditation_id and repo.get_meditation(meditation_id) is None:
        raise NotFoundError("Meditation not found")
    if soundscape_id and repo.get_soundscape(soundscape_id) is None:
        raise NotFoundError("Soundscape not found")
    if neural_pattern_id and repo.get_neural_pattern(neural_pattern_id) is None:
        raise NotFoundError("Neural pattern not found")

    if repo.get_running_session(user_id) is not None:
        raise ConflictError("You already have a meditation session in progress")

    session = repo.create_meditation_session(
        user_id=user_id,
        meditation_id=meditation_id,
        soundscape_id=soundscape_id,
        neural_pattern_id=neural_pattern_id,
        status="running",
        current_phase=PHASES[0],
        intensity=DEFAULT_INTENSITY,
        target_duration=target_duration,
        config=dict(config or {}),
        started_at=utcnow(),
    )
    _log_event(
        repo,
        session,
        "session_started",
        {
            "meditation_id": meditation_id,
            "target_duration": target_duration,
            "intensity": session.intensity,
        },
    )
    logger.info("Meditation session %s started for user %s", session.id, user_id)
    return {
        "session": _session_view(session),
        "guidance": list(PHASE_GUIDANCE[PHASES[0]]),
    }


def advance_phase(repo: Repository, user_id: str, session_id: str, feedback: str | None = None) -> dict:
    session = _owned_session(repo, user_id, session_id)
    if session.status != "running":
        raise InvalidStateError(f"Cannot advance phase of a {session.status} session")

    from_phase = session.current_phase if session.current_phase in PHASES else PHASES[0]
    index = PHASES.index(from_phase)
    now = utcnow()
    minutes = elapsed_minutes(session.started_at, now)

    if index >= len(PHASES) - 2:
        to_phase = PHASES[-1]
        session = repo.update_meditation_session(
            session,
            status="completed",
            current_phase=to_phase,
            ended_at=now,
            actual_duration=elapsed_seconds(session.started_at, now),
        )
        event_type = "session_completed"
    else:
        to_phase = PHASES[index + 1]
        session = repo.update_meditation_session(session, current_phase=to_phase)
        event_type = "phase_advanced"

    _log_event(
        repo,
        session,
        event_type,
        {
            "from_phase": from_phase,
            "to_phase": to_phase,
            "feedback": feedback,
            "elapsed_minutes": minutes,
        },
    )
    logger.info("Meditation session %s: %s -> %s (%s)", session.id, from_phase, to_phase, session.status)
    return {
        "session_id": session.id,
        "current_phase": session.current_phase,
        "status": session.status,
        "progress": progress_for_phase(session.current_phase),
        "actual_duration": session.actual_duration,
        "guidance": list(PHASE_GUIDANCE[to_phase]),
    }


def pause_session(repo: Repository, user_id: str, session_id: str) -> dict:
    session = _owned_session(repo, user_id, session_id)
    # Pausing an already paused session is accepted and logged again.
    if session.status not in {"running", "paused"}:
        raise InvalidStateError(f"Cannot pause a {session.status} session")

    session = repo.update_meditation_session(session, status="paused")
    _log_event(
        repo,
        session,
        "session_paused",
        {"phase": session.current_phase, "elapsed_minutes": elapsed_minutes(session.started_at)},
    )
    logger.info("Meditation session %s paused", session.id)
    return _session_view(session)


def resume_session(repo: Repository, user_id: str, session_id: str) -> dict:
    session = _owned_session(repo, user_id, session_id)
    if session.status not in {"running", "paused"}:
        raise InvalidStateError(f"Cannot resume a {session.status} session")

    running = repo.get_running_session(user_id)
    if running is not None and running.id != session.id:
        raise ConflictError("Another meditation session is already running")

    session = repo.update_meditation_session(session, status="running")
    _log_event(
        repo,
        session,
        "session_resumed",
        {"phase": session.current_phase, "elapsed_minutes": elapsed_minutes(session.started_at)},
    )
    logger.info("Meditation session %s resumed", session.id)
    return _session_view(session)


def submit_feedback(
    repo: Repository,
    user_id: str,
    session_id: str,
    feedback_type: str,
    value: int,
    biometric_data: dict | None = None,
) -> dict:
    if feedback_type not in FEEDBACK_TYPES:
        raise ValidationError(f"feedback_type must be one of: {', '.join(sorted(FEEDBACK_TYPES))}")
    if not MIN_FEEDBACK_VALUE <= value <= MAX_FEEDBACK_VALUE:
        raise ValidationError(f"value must be between {MIN_FEEDBACK_VALUE} and {MAX_FEEDBACK_VALUE}")

    session = _owned_session(repo, user_id, session_id)
    previous = float(session.intensity if session.intensity is not None else DEFAULT_INTENSITY)
    adjusted = adjust_intensity(previous, feedback_type, value, _heart_rate_from(biometric_data))

    if adjusted is not None:
        session = repo.update_meditation_session(session, intensity=adjusted)
    intensity = adjusted if adjusted is not None else previous
    adjustment = round(intensity - previous, 2)

    _log_event(
        repo,
        session,
        "feedback_received",
        {
            "feedback_type": feedback_type,
            "value": value,
            "biometric_data": biometric_data,
            "previous_intensity": previous,
            "intensity": intensity,
            "adjustment": adjustment,
        },
    )
    return {
        "session_id": session.id,
        "adaptation_applied": adjusted is not None,
        "intensity": intensity,
        "adjustment": adjustment,
    }


def get_current_session(repo: Repository, user_id: str) -> dict | None:
    session = repo.get_running_session(user_id)
    if session is None:
        return None
    events = repo.list_session_events(session.id, limit=RECENT_EVENT_LIMIT)
    return {
        "session": _session_view(session),
        "recent_events": [session_event_to_dict(e) for e in events],
        "progress": progress_for_phase(session.current_phase),
        "guidance": list(PHASE_GUIDANCE.get(session.current_phase, [])),
    }


def list_sessions(repo: Repository, user_id: str, limit: int = 20) -> list[dict]:
    return [_session_view(s) for s in repo.list_meditation_sessions(user_id, limit=limit)]


def get_session(repo: Repository, user_id: str, session_id: str) -> dict:
    session = _owned_session(repo, user_id, session_id)
    events = repo.list_session_events(session.id)
    return {
        "session": _session_view(session),
        "events": [session_event_to_dict(e) for e in events],
    }
