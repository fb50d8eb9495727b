from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("GENERATION_MODE", "mock")

from db.database import create_schema, set_sqlite_pragma  # noqa: E402
from db.repository import MemoryRepository, SqlRepository  # noqa: E402
from services.rate_limit_service import reset_rate_limits  # noqa: E402


@pytest.fixture
def memory_repo() -> MemoryRepository:
    return MemoryRepository()


@pytest.fixture
def sql_repo():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", set_sqlite_pragma)
    create_schema(engine)
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield SqlRepository(session)
    finally:
        session.close()
        engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def repo(request):
    """Runs a test once per repository implementation."""
    return request.getfixturevalue(f"{request.param}_repo")


@pytest.fixture(autouse=True)
def _fresh_rate_limits():
    reset_rate_limits()
    yield
    reset_rate_limits()
