from db.models import (
    Affirmation,
    ChatMessage,
    ChatSession,
    HeartGalaxySession,
    Meditation,
    MeditationSession,
    MeditationSessionEvent,
    NeuralPattern,
    Soundscape,
    User,
    UserFavorite,
    UserPreference,
)
from utils.datetime_utils import isoformat_or_none


def user_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "display_name": user.display_name,
        "created_at": isoformat_or_none(user.created_at),
    }


def preferences_to_dict(prefs: UserPreference) -> dict:
    return {
        "default_meditation_duration": prefs.default_meditation_duration,
        "preferred_soundscape_type": prefs.preferred_soundscape_type,
        "preferred_consciousness_state": prefs.preferred_consciousness_state,
        "preferred_affirmation_category": prefs.preferred_affirmation_category,
        "settings": prefs.settings or {},
        "updated_at": isoformat_or_none(prefs.updated_at),
    }


def meditation_to_dict(meditation: Meditation) -> dict:
    return {
        "id": meditation.id,
        "pattern": meditation.pattern,
        "duration": meditation.duration,
        "frequencies": meditation.frequencies,
        "geometry_sequence": meditation.geometry_sequence,
        "neural_targets": meditation.neural_targets,
        "consciousness_level": meditation.consciousness_level,
        "guided_text": meditation.guided_text,
        "awakening_code": meditation.awakening_code,
        "created_at": isoformat_or_none(meditation.created_at),
    }


def affirmation_to_dict(affirmation: Affirmation) -> dict:
    return {
        "id": affirmation.id,
        "text": affirmation.text,
        "category": affirmation.category,
        "vibrational_frequency": affirmation.vibrational_frequency,
        "cosmic_alignment": affirmation.cosmic_alignment,
        "personalization_factors": affirmation.personalization_factors or [],
        "user_id": affirmation.user_id,
        "created_at": isoformat_or_none(affirmation.created_at),
    }


def soundscape_to_dict(soundscape: Soundscape) -> dict:
    return {
        "id": soundscape.id,
        "name": soundscape.name,
        "frequencies": soundscape.frequencies,
        "duration": soundscape.duration,
        "galactic_type": soundscape.galactic_type,
        "audio_params": soundscape.audio_params,
        "created_at": isoformat_or_none(soundscape.created_at),
    }


def neural_pattern_to_dict(pattern: NeuralPattern) -> dict:
    return {
        "id": pattern.id,
        "pattern_type": pattern.pattern_type,
        "brain_waves": pattern.brain_waves,
        "visualization_data": pattern.visualization_data,
        "activation_sequence": pattern.activation_sequence,
        "created_at": isoformat_or_none(pattern.created_at),
    }


def heart_galaxy_to_dict(session: HeartGalaxySession) -> dict:
    return {
        "id": session.id,
        "user_id": session.user_id,
        "meditation_session_id": session.meditation_session_id,
        "heart_rate": session.heart_rate,
        "coherence_level": session.coherence_level,
        "galaxy_sync_status": session.galaxy_sync_status,
        "cosmic_coordinates": session.cosmic_coordinates,
        "session_duration": session.session_duration,
        "created_at": isoformat_or_none(session.created_at),
    }


def chat_session_to_dict(chat_session: ChatSession) -> dict:
    return {
        "id": chat_session.id,
        "title": chat_session.title,
        "created_at": isoformat_or_none(chat_session.created_at),
        "updated_at": isoformat_or_none(chat_session.updated_at),
    }


def chat_message_to_dict(message: ChatMessage) -> dict:
    return {
        "id": message.id,
        "chat_session_id": message.chat_session_id,
        "role": message.role,
        "content": message.content,
        "context_references": message.context_references or [],
        "suggested_actions": message.suggested_actions or [],
        "created_at": isoformat_or_none(message.created_at),
    }


def meditation_session_to_dict(session: MeditationSession) -> dict:
    return {
        "id": session.id,
        "user_id": session.user_id,
        "meditation_id": session.meditation_id,
        "soundscape_id": session.soundscape_id,
        "neural_pattern_id": session.neural_pattern_id,
        "status": session.status,
        "current_phase": session.current_phase,
        "intensity": session.intensity,
        "target_duration": session.target_duration,
        "actual_duration": session.actual_duration,
        "config": session.config or {},
        "started_at": isoformat_or_none(session.started_at),
        "ended_at": isoformat_or_none(session.ended_at),
        "created_at": isoformat_or_none(session.created_at),
    }


def session_event_to_dict(event: MeditationSessionEvent) -> dict:
    return {
        "id": event.id,
        "session_id": event.session_id,
        "event_type": event.event_type,
        "payload": event.payload or {},
        "timestamp": isoformat_or_none(event.created_at),
    }


def favorite_to_dict(favorite: UserFavorite) -> dict:
    return {
        "id": favorite.id,
        "entity_type": favorite.entity_type,
        "entity_id": favorite.entity_id,
        "created_at": isoformat_or_none(favorite.created_at),
    }
