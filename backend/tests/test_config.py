from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import Settings  # noqa: E402


def test_production_security_gate_rejects_default_secret_values():
    settings = Settings(
        ENVIRONMENT="production",
        SECRET_KEY="change-me-in-production",
        AUTH_COOKIE_SECURE=False,
    )
    with pytest.raises(RuntimeError):
        settings.validate_security_configuration()


def test_production_security_gate_requires_key_for_llm_mode():
    settings = Settings(
        ENVIRONMENT="production",
        SECRET_KEY="a-long-random-secret",
        AUTH_COOKIE_SECURE=True,
        GENERATION_MODE="llm",
        AI_API_KEY="",
    )
    with pytest.raises(RuntimeError, match="AI_API_KEY"):
        settings.validate_security_configuration()


def test_development_settings_skip_the_gate():
    Settings(ENVIRONMENT="development", SECRET_KEY="change-me-in-production").validate_security_configuration()


@pytest.mark.parametrize(
    ("environment", "mode", "api_key", "expected"),
    [
        ("development", "auto", "sk-live", "mock"),
        ("test", "auto", "sk-live", "mock"),
        ("production", "auto", "", "mock"),
        ("production", "auto", "sk-live", "llm"),
        ("development", "llm", "", "llm"),
        ("production", "MOCK", "sk-live", "mock"),
    ],
)
def test_generation_mode_resolution(environment, mode, api_key, expected):
    settings = Settings(ENVIRONMENT=environment, GENERATION_MODE=mode, AI_API_KEY=api_key)
    assert settings.resolved_generation_mode == expected


def test_memory_storage_flag():
    assert Settings(STORAGE_BACKEND="Memory").uses_memory_storage is True
    assert Settings(STORAGE_BACKEND="database").uses_memory_storage is False
