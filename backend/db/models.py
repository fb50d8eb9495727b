import uuid

from sqlalchemy import (
    Column, Integer, Text, Float, ForeignKey, Index, JSON, String,
    DateTime, UniqueConstraint, text,
)
from sqlalchemy.orm import relationship
from db.database import Base
from utils.datetime_utils import utcnow


def new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    username = Column(Text, unique=True, nullable=False)
    email = Column(Text, unique=True, nullable=False)
    password_hash = Column(Text, nullable=False)
    display_name = Column(Text)
    created_at = Column(DateTime, default=utcnow)

    preferences = relationship("UserPreference", back_populates="user", uselist=False, cascade="all, delete-orphan")
    chat_sessions = relationship("ChatSession", back_populates="user", cascade="all, delete-orphan")
    meditation_sessions = relationship("MeditationSession", back_populates="user", cascade="all, delete-orphan")
    favorites = relationship("UserFavorite", back_populates="user", cascade="all, delete-orphan")


class UserPreference(Base):
    __tablename__ = "user_preferences"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, unique=True)
    default_meditation_duration = Column(Integer, default=1260)  # seconds
    preferred_soundscape_type = Column(Text, default="cosmic_harmony")
    preferred_consciousness_state = Column(Text, default="theta_gamma_sync")
    preferred_affirmation_category = Column(Text)
    settings = Column(JSON, default=dict)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="preferences")


# ─── Generated content (immutable once stored) ───


class Meditation(Base):
    __tablename__ = "meditations"

    id = Column(String(36), primary_key=True, default=new_id)
    pattern = Column(Text, nullable=False)
    duration = Column(Integer, nullable=False)  # seconds
    frequencies = Column(JSON, nullable=False)
    geometry_sequence = Column(JSON, nullable=False)
    neural_targets = Column(JSON, nullable=False)
    consciousness_level = Column(Text, nullable=False)
    guided_text = Column(Text)
    awakening_code = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow)


class Affirmation(Base):
    __tablename__ = "affirmations"

    id = Column(String(36), primary_key=True, default=new_id)
    text = Column(Text, nullable=False)
    category = Column(Text, nullable=False, index=True)
    vibrational_frequency = Column(Integer, nullable=False)
    cosmic_alignment = Column(Text, nullable=False)
    personalization_factors = Column(JSON, default=list)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow)


class Soundscape(Base):
    __tablename__ = "soundscapes"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(Text, nullable=False)
    frequencies = Column(JSON, nullable=False)
    duration = Column(Integer, nullable=False)  # seconds
    galactic_type = Column(Text, nullable=False)
    audio_params = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=utcnow)


class NeuralPattern(Base):
    __tablename__ = "neural_patterns"

    id = Column(String(36), primary_key=True, default=new_id)
    pattern_type = Column(Text, nullable=False, index=True)
    brain_waves = Column(JSON, nullable=False)
    visualization_data = Column(JSON, nullable=False)
    activation_sequence = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=utcnow)


class HeartGalaxySession(Base):
    __tablename__ = "heart_galaxy_sessions"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=True, index=True)
    meditation_session_id = Column(String(36), ForeignKey("meditation_sessions.id"), nullable=True)
    heart_rate = Column(Integer, nullable=False)
    coherence_level = Column(Integer, nullable=False)
    galaxy_sync_status = Column(Text, nullable=False)  # synchronized | aligning | seeking
    cosmic_coordinates = Column(JSON, nullable=False)
    session_duration = Column(Integer, nullable=False)  # seconds
    created_at = Column(DateTime, default=utcnow)


# ─── Chat assistant ───


class ChatSession(Base):
    __tablename__ = "chat_sessions"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(Text)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="chat_sessions")
    messages = relationship("ChatMessage", back_populates="chat_session", cascade="all, delete-orphan")


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    chat_session_id = Column(String(64), ForeignKey("chat_sessions.id"), nullable=False, index=True)
    role = Column(Text, nullable=False)  # user | assistant
    content = Column(Text, nullable=False)
    context_references = Column(JSON)
    suggested_actions = Column(JSON)
    created_at = Column(DateTime, default=utcnow)

    chat_session = relationship("ChatSession", back_populates="messages")


# ─── Meditation phase engine ───


class MeditationSession(Base):
    __tablename__ = "meditation_sessions"
    __table_args__ = (
        # At most one running session per user.
        Index(
            "uq_meditation_sessions_running_user",
            "user_id",
            unique=True,
            sqlite_where=text("status = 'running'"),
            postgresql_where=text("status = 'running'"),
        ),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    meditation_id = Column(String(36), ForeignKey("meditations.id"), nullable=True)
    soundscape_id = Column(String(36), ForeignKey("soundscapes.id"), nullable=True)
    neural_pattern_id = Column(String(36), ForeignKey("neural_patterns.id"), nullable=True)
    status = Column(Text, nullable=False, default="draft")  # draft | running | paused | completed | aborted
    current_phase = Column(Text)  # preparation | induction | deepening | expansion | integration
    intensity = Column(Float, nullable=False, default=5.0)  # 1-10
    target_duration = Column(Integer)  # seconds
    actual_duration = Column(Integer)  # seconds, set on completion
    config = Column(JSON, default=dict)
    started_at = Column(DateTime)
    ended_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="meditation_sessions")
    events = relationship("MeditationSessionEvent", back_populates="session", cascade="all, delete-orphan")


class MeditationSessionEvent(Base):
    __tablename__ = "meditation_session_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(36), ForeignKey("meditation_sessions.id"), nullable=False, index=True)
    event_type = Column(Text, nullable=False)
    payload = Column(JSON, default=dict)
    created_at = Column(DateTime, default=utcnow)

    session = relationship("MeditationSession", back_populates="events")


class UserFavorite(Base):
    __tablename__ = "user_favorites"
    __table_args__ = (
        UniqueConstraint("user_id", "entity_type", "entity_id", name="uq_user_favorites_entity"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    entity_type = Column(Text, nullable=False)  # meditation | affirmation | soundscape | neural_pattern | heart_galaxy_session
    entity_id = Column(String(36), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    user = relationship("User", back_populates="favorites")
