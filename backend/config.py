from pydantic_settings import BaseSettings
from pathlib import Path


class Settings(BaseSettings):
    ENVIRONMENT: str = "development"  # development | test | staging | production
    APP_NAME: str = "NeuraPeace AI"
    LOG_LEVEL: str = "INFO"
    SECRET_KEY: str = "change-me-in-production"
    DATABASE_URL: str = "sqlite:///data/neurapeace.db"
    DATA_DIR: Path = Path("data")
    STORAGE_BACKEND: str = "database"  # database | memory
    CORS_ORIGINS: list[str] = [
        "http://localhost:5000",
        "http://localhost:5173",
        "http://127.0.0.1:5000",
    ]
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRY_HOURS: int = 72
    AUTH_COOKIE_NAME: str = "neurapeace_session"
    AUTH_COOKIE_SECURE: bool = False
    AUTH_COOKIE_HTTPONLY: bool = True
    AUTH_COOKIE_SAMESITE: str = "lax"  # strict | lax | none
    AUTH_COOKIE_DOMAIN: str | None = None
    AUTH_COOKIE_PATH: str = "/"
    AI_PROVIDER: str = "openai"  # openai | anthropic
    AI_API_KEY: str = ""
    AI_MODEL: str | None = None
    AI_TIMEOUT_SECONDS: int = 120
    GENERATION_MODE: str = "auto"  # auto | mock | llm
    SECURITY_HEADERS_ENABLED: bool = True
    SECURITY_CSP: str = (
        "default-src 'self'; "
        "img-src 'self' data: blob:; "
        "style-src 'self' 'unsafe-inline'; "
        "script-src 'self'; "
        "connect-src 'self' https: wss:; "
        "media-src 'self' blob:; "
        "frame-ancestors 'none'; "
        "base-uri 'self';"
    )
    RATE_LIMIT_AUTH_LOGIN_ATTEMPTS: int = 10
    RATE_LIMIT_AUTH_LOGIN_WINDOW_SECONDS: int = 300
    RATE_LIMIT_AUTH_REGISTER_ATTEMPTS: int = 5
    RATE_LIMIT_AUTH_REGISTER_WINDOW_SECONDS: int = 600
    RATE_LIMIT_CHAT_MESSAGES: int = 30
    RATE_LIMIT_CHAT_WINDOW_SECONDS: int = 60

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def is_production_like(self) -> bool:
        return (self.ENVIRONMENT or "").strip().lower() in {"production", "prod", "staging"}

    @property
    def uses_memory_storage(self) -> bool:
        return (self.STORAGE_BACKEND or "").strip().lower() == "memory"

    @property
    def resolved_generation_mode(self) -> str:
        """Return `mock` or `llm` for the configured GENERATION_MODE."""
        mode = (self.GENERATION_MODE or "auto").strip().lower()
        if mode in {"mock", "llm"}:
            return mode
        environment = (self.ENVIRONMENT or "").strip().lower()
        if environment in {"development", "dev", "test"} or not (self.AI_API_KEY or "").strip():
            return "mock"
        return "llm"

    def validate_security_configuration(self) -> None:
        if not self.is_production_like:
            return

        errors: list[str] = []
        if self.SECRET_KEY == "change-me-in-production":
            errors.append("SECRET_KEY must be changed from the default value")
        if not self.AUTH_COOKIE_SECURE:
            errors.append("AUTH_COOKIE_SECURE must be true in production-like environments")
        if (self.AUTH_COOKIE_SAMESITE or "").strip().lower() == "none" and not self.AUTH_COOKIE_SECURE:
            errors.append("AUTH_COOKIE_SAMESITE=none requires AUTH_COOKIE_SECURE=true")
        if (self.GENERATION_MODE or "").strip().lower() == "llm" and not (self.AI_API_KEY or "").strip():
            errors.append("GENERATION_MODE=llm requires AI_API_KEY")
        if errors:
            joined = "; ".join(errors)
            raise RuntimeError(f"Insecure production configuration: {joined}")


settings = Settings()
settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
