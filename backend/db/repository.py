"""Storage boundary shared by the API layer and the phase engine.

Both implementations hand out the ORM entity classes from ``db.models``: the
SQL repository persists them through a SQLAlchemy session, the memory
repository keeps transient instances in insertion-ordered dicts.
"""
from __future__ import annotations

import itertools
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Any, TypeVar

from fastapi import Request
from sqlalchemy import Integer
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from db.database import Base, SessionLocal
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
from services.errors import ConflictError, UpstreamError
from utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)

Row = TypeVar("Row", bound=Base)


def _unique_keys(row: Base) -> list[tuple]:
    """Uniqueness rules mirrored from the relational schema."""
    if isinstance(row, User):
        return [("users.username", row.username), ("users.email", row.email)]
    if isinstance(row, UserPreference):
        return [("user_preferences.user_id", row.user_id)]
    if isinstance(row, UserFavorite):
        return [("user_favorites", row.user_id, row.entity_type, row.entity_id)]
    if isinstance(row, MeditationSession) and row.status == "running":
        return [("meditation_sessions.running", row.user_id)]
    return []


class Repository(ABC):
    """CRUD operations per entity type on top of four storage primitives."""

    @abstractmethod
    def _insert(self, row: Row) -> Row:
        ...

    @abstractmethod
    def _get(self, model: type[Row], row_id: Any) -> Row | None:
        ...

    @abstractmethod
    def _select(
        self,
        model: type[Row],
        *,
        newest_first: bool = False,
        limit: int | None = None,
        **equals: Any,
    ) -> list[Row]:
        ...

    @abstractmethod
    def _update(self, row: Row, changes: dict[str, Any]) -> Row:
        ...

    @abstractmethod
    def _delete(self, rows: list[Base]) -> None:
        ...

    def _first(self, model: type[Row], **equals: Any) -> Row | None:
        rows = self._select(model, limit=1, **equals)
        return rows[0] if rows else None

    # Users
    def create_user(self, **fields: Any) -> User:
        return self._insert(User(**fields))

    def get_user(self, user_id: str) -> User | None:
        return self._get(User, user_id)

    def get_user_by_username(self, username: str) -> User | None:
        return self._first(User, username=username)

    def get_user_by_email(self, email: str) -> User | None:
        return self._first(User, email=email)

    # Preferences
    def get_preferences(self, user_id: str) -> UserPreference | None:
        return self._first(UserPreference, user_id=user_id)

    def upsert_preferences(self, user_id: str, **changes: Any) -> UserPreference:
        existing = self.get_preferences(user_id)
        if existing is None:
            return self._insert(UserPreference(user_id=user_id, **changes))
        return self._update(existing, changes)

    # Meditations
    def create_meditation(self, **fields: Any) -> Meditation:
        return self._insert(Meditation(**fields))

    def get_meditation(self, meditation_id: str) -> Meditation | None:
        return self._get(Meditation, meditation_id)

    def list_meditations(self) -> list[Meditation]:
        return self._select(Meditation)

    # Affirmations
    def create_affirmation(self, **fields: Any) -> Affirmation:
        return self._insert(Affirmation(**fields))

    def get_affirmation(self, affirmation_id: str) -> Affirmation | None:
        return self._get(Affirmation, affirmation_id)

    def list_affirmations_by_category(self, category: str) -> list[Affirmation]:
        return self._select(Affirmation, category=category)

    def list_affirmations_by_user(self, user_id: str) -> list[Affirmation]:
        return self._select(Affirmation, user_id=user_id)

    # Soundscapes
    def create_soundscape(self, **fields: Any) -> Soundscape:
        return self._insert(Soundscape(**fields))

    def get_soundscape(self, soundscape_id: str) -> Soundscape | None:
        return self._get(Soundscape, soundscape_id)

    def list_soundscapes(self) -> list[Soundscape]:
        return self._select(Soundscape)

    # Neural patterns
    def create_neural_pattern(self, **fields: Any) -> NeuralPattern:
        return self._insert(NeuralPattern(**fields))

    def get_neural_pattern(self, pattern_id: str) -> NeuralPattern | None:
        return self._get(NeuralPattern, pattern_id)

    def list_neural_patterns_by_type(self, pattern_type: str) -> list[NeuralPattern]:
        return self._select(NeuralPattern, pattern_type=pattern_type)

    # Heart-galaxy sessions
    def create_heart_galaxy_session(self, **fields: Any) -> HeartGalaxySession:
        return self._insert(HeartGalaxySession(**fields))

    def get_heart_galaxy_session(self, session_id: str) -> HeartGalaxySession | None:
        return self._get(HeartGalaxySession, session_id)

    def list_heart_galaxy_sessions_by_user(self, user_id: str) -> list[HeartGalaxySession]:
        return self._select(HeartGalaxySession, user_id=user_id)

    # Chat
    def create_chat_session(self, **fields: Any) -> ChatSession:
        return self._insert(ChatSession(**fields))

    def get_chat_session(self, chat_session_id: str) -> ChatSession | None:
        return self._get(ChatSession, chat_session_id)

    def update_chat_session(self, chat_session: ChatSession, **changes: Any) -> ChatSession:
        return self._update(chat_session, changes)

    def list_chat_sessions(self, user_id: str) -> list[ChatSession]:
        return self._select(ChatSession, newest_first=True, user_id=user_id)

    def delete_chat_session(self, chat_session: ChatSession) -> None:
        messages = self._select(ChatMessage, chat_session_id=chat_session.id)
        self._delete([*messages, chat_session])

    def create_chat_message(self, **fields: Any) -> ChatMessage:
        return self._insert(ChatMessage(**fields))

    def list_chat_messages(self, chat_session_id: str) -> list[ChatMessage]:
        return self._select(ChatMessage, chat_session_id=chat_session_id)

    # Meditation sessions
    def create_meditation_session(self, **fields: Any) -> MeditationSession:
        return self._insert(MeditationSession(**fields))

    def get_meditation_session(self, session_id: str) -> MeditationSession | None:
        return self._get(MeditationSession, session_id)

    def update_meditation_session(self, session: MeditationSession, **changes: Any) -> MeditationSession:
        return self._update(session, changes)

    def list_meditation_sessions(self, user_id: str, limit: int | None = None) -> list[MeditationSession]:
        return self._select(MeditationSession, newest_first=True, limit=limit, user_id=user_id)

    def get_running_session(self, user_id: str) -> MeditationSession | None:
        return self._first(MeditationSession, user_id=user_id, status="running")

    def create_session_event(self, **fields: Any) -> MeditationSessionEvent:
        return self._insert(MeditationSessionEvent(**fields))

    def list_session_events(self, session_id: str, limit: int | None = None) -> list[MeditationSessionEvent]:
        """Events of a session, most recent first."""
        return self._select(MeditationSessionEvent, newest_first=True, limit=limit, session_id=session_id)

    # Favorites
    def add_favorite(self, user_id: str, entity_type: str, entity_id: str) -> UserFavorite:
        return self._insert(UserFavorite(user_id=user_id, entity_type=entity_type, entity_id=entity_id))

    def get_favorite(self, user_id: str, entity_type: str, entity_id: str) -> UserFavorite | None:
        return self._first(UserFavorite, user_id=user_id, entity_type=entity_type, entity_id=entity_id)

    def list_favorites(self, user_id: str, entity_type: str | None = None) -> list[UserFavorite]:
        if entity_type:
            return self._select(UserFavorite, newest_first=True, user_id=user_id, entity_type=entity_type)
        return self._select(UserFavorite, newest_first=True, user_id=user_id)

    def remove_favorite(self, favorite: UserFavorite) -> None:
        self._delete([favorite])


class SqlRepository(Repository):
    """Repository over a SQLAlchemy session; every write commits on its own."""

    def __init__(self, db: Session):
        self.db = db

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning("Constraint violation during %s: %s", action, exc.orig)
            raise ConflictError(f"Conflicting {action}") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Database failure during %s: %s", action, exc)
            raise UpstreamError(str(exc)) from exc

    def _insert(self, row: Row) -> Row:
        self.db.add(row)
        self._commit(f"insert into {row.__tablename__}")
        self.db.refresh(row)
        return row

    def _get(self, model: type[Row], row_id: Any) -> Row | None:
        if row_id is None:
            return None
        return self.db.get(model, row_id)

    def _select(self, model, *, newest_first=False, limit=None, **equals):
        query = self.db.query(model).filter_by(**equals)
        order_col = model.id if _has_integer_pk(model) else model.created_at
        if newest_first:
            query = query.order_by(order_col.desc(), model.id.desc())
        else:
            query = query.order_by(order_col.asc(), model.id.asc())
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def _update(self, row: Row, changes: dict[str, Any]) -> Row:
        for key, value in changes.items():
            setattr(row, key, value)
        self._commit(f"update of {row.__tablename__}")
        self.db.refresh(row)
        return row

    def _delete(self, rows: list[Base]) -> None:
        for row in rows:
            self.db.delete(row)
        self._commit("delete")


class MemoryRepository(Repository):
    """Process-local repository; keeps rows in insertion order."""

    def __init__(self) -> None:
        self._tables: dict[type, dict[Any, Base]] = {}
        self._counters: dict[type, Iterator[int]] = {}
        self._unique: dict[tuple, Any] = {}
        self._lock = threading.RLock()

    def _table(self, model: type) -> dict[Any, Base]:
        return self._tables.setdefault(model, {})

    def _apply_defaults(self, row: Base) -> None:
        model = type(row)
        if getattr(row, "id", None) is None:
            if _has_integer_pk(model):
                counter = self._counters.setdefault(model, itertools.count(1))
                row.id = next(counter)
            else:
                row.id = str(uuid.uuid4())
        for column in model.__table__.columns:
            default = column.default
            if default is None or getattr(row, column.key) is not None:
                continue
            if default.is_callable:
                setattr(row, column.key, default.arg(None))
            elif default.is_scalar:
                setattr(row, column.key, default.arg)

    def _claim(self, row: Base, keys: list[tuple]) -> None:
        for key in keys:
            holder = self._unique.get(key)
            if holder is not None and holder is not row:
                raise ConflictError(f"Conflicting write on {key[0]}")
        for key in keys:
            self._unique[key] = row

    def _release(self, row: Base) -> None:
        for key in [k for k, holder in self._unique.items() if holder is row]:
            del self._unique[key]

    def _insert(self, row: Row) -> Row:
        with self._lock:
            self._apply_defaults(row)
            self._claim(row, _unique_keys(row))
            self._table(type(row))[row.id] = row
        return row

    def _get(self, model: type[Row], row_id: Any) -> Row | None:
        with self._lock:
            return self._table(model).get(row_id)

    def _select(self, model, *, newest_first=False, limit=None, **equals):
        with self._lock:
            rows = [
                row for row in self._table(model).values()
                if all(getattr(row, key) == value for key, value in equals.items())
            ]
        if newest_first:
            rows.reverse()
        if limit is not None:
            rows = rows[:limit]
        return rows

    def _update(self, row: Row, changes: dict[str, Any]) -> Row:
        with self._lock:
            previous = {key: getattr(row, key) for key in changes}
            for key, value in changes.items():
                setattr(row, key, value)
            try:
                self._release(row)
                self._claim(row, _unique_keys(row))
            except ConflictError:
                for key, value in previous.items():
                    setattr(row, key, value)
                self._claim(row, _unique_keys(row))
                raise
            if "updated_at" in type(row).__table__.columns:
                row.updated_at = utcnow()
        return row

    def _delete(self, rows: list[Base]) -> None:
        with self._lock:
            for row in rows:
                self._table(type(row)).pop(row.id, None)
                self._release(row)


def _has_integer_pk(model: type) -> bool:
    return isinstance(model.__table__.c.id.type, Integer)


def build_memory_repository() -> MemoryRepository:
    logger.info("Using in-memory repository")
    return MemoryRepository()


def get_repository(request: Request) -> Iterator[Repository]:
    """FastAPI dependency yielding the repository for one request."""
    memory_repository = getattr(request.app.state, "memory_repository", None)
    if memory_repository is not None:
        yield memory_repository
        return
    db = SessionLocal()
    try:
        yield SqlRepository(db)
    finally:
        db.close()
