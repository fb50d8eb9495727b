import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from config import settings

logger = logging.getLogger(__name__)


def _is_sqlite(url: str) -> bool:
    return (url or "").strip().lower().startswith("sqlite")


def build_engine(url: str) -> Engine:
    connect_args = {"check_same_thread": False} if _is_sqlite(url) else {}
    new_engine = create_engine(url, connect_args=connect_args, echo=False)
    if _is_sqlite(url):
        event.listen(new_engine, "connect", set_sqlite_pragma)
    return new_engine


# Enable WAL mode for better concurrent read performance
def set_sqlite_pragma(dbapi_connection, connection_record):
    _ = connection_record
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def create_schema(bind: Engine | None = None) -> None:
    """Create all tables on the given engine (the application engine by default)."""
    # Import models so every table is registered on Base.metadata.
    import db.models  # noqa: F401

    target = bind or engine
    Base.metadata.create_all(bind=target)
    logger.info("Database schema ready (%s)", target.url.render_as_string(hide_password=True))
