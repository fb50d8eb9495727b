import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from api.responses import success
from auth.models import LoginRequest, RegisterRequest
from auth.utils import (
    create_token,
    get_current_user,
    hash_password,
    normalize_email,
    normalize_username,
    verify_password,
)
from config import settings
from db.models import User
from db.repository import Repository, get_repository
from services.errors import ConflictError
from services.rate_limit_service import RateLimitRule, enforce_rate_limit
from services.serializers import user_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _client_ip(request: Request) -> str:
    return (request.client.host if request.client else "") or "unknown"


def _cookie_name() -> str:
    return (settings.AUTH_COOKIE_NAME or "neurapeace_session").strip() or "neurapeace_session"


def _set_session_cookie(response: Response, token: str, *, max_age_seconds: int) -> None:
    samesite = (settings.AUTH_COOKIE_SAMESITE or "lax").strip().lower()
    if samesite not in {"strict", "lax", "none"}:
        samesite = "lax"
    response.set_cookie(
        key=_cookie_name(),
        value=token,
        httponly=bool(settings.AUTH_COOKIE_HTTPONLY),
        secure=bool(settings.AUTH_COOKIE_SECURE),
        samesite=samesite,  # type: ignore[arg-type]
        domain=settings.AUTH_COOKIE_DOMAIN,
        path=settings.AUTH_COOKIE_PATH or "/",
        max_age=max(int(max_age_seconds), 1),
    )


def _clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=_cookie_name(),
        domain=settings.AUTH_COOKIE_DOMAIN,
        path=settings.AUTH_COOKIE_PATH or "/",
    )


def _enforce(request: Request, rule: RateLimitRule, username: str, message: str) -> None:
    allowed, retry_after = enforce_rate_limit(
        rule=rule,
        scope_key=f"{_client_ip(request)}:{username}",
        ip_address=_client_ip(request),
    )
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=message,
            headers={"Retry-After": str(retry_after)},
        )


def _issue_session(response: Response, user: User) -> dict:
    token = create_token(user.id)
    _set_session_cookie(response, token, max_age_seconds=max(int(settings.JWT_EXPIRY_HOURS), 1) * 3600)
    return {"user": user_to_dict(user), "access_token": token, "token_type": "bearer"}


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    req: RegisterRequest,
    request: Request,
    response: Response,
    repo: Repository = Depends(get_repository),
):
    normalized_username = normalize_username(req.username)
    _enforce(
        request,
        RateLimitRule(
            endpoint="/api/auth/register",
            limit=settings.RATE_LIMIT_AUTH_REGISTER_ATTEMPTS,
            window_seconds=settings.RATE_LIMIT_AUTH_REGISTER_WINDOW_SECONDS,
        ),
        normalized_username,
        "Too many registration attempts. Please try again later.",
    )
    if len(normalized_username) < 3:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username must be at least 3 characters")

    email = normalize_email(req.email)
    if repo.get_user_by_username(normalized_username):
        raise ConflictError("Username already taken")
    if repo.get_user_by_email(email):
        raise ConflictError("Email already registered")

    user = repo.create_user(
        username=normalized_username,
        email=email,
        password_hash=hash_password(req.password),
        display_name=(req.display_name or "").strip() or req.username.strip(),
    )
    repo.upsert_preferences(user.id)
    logger.info("Registered user %s", user.id)
    return success(_issue_session(response, user))


@router.post("/login")
def login(
    req: LoginRequest,
    request: Request,
    response: Response,
    repo: Repository = Depends(get_repository),
):
    normalized_username = normalize_username(req.username)
    _enforce(
        request,
        RateLimitRule(
            endpoint="/api/auth/login",
            limit=settings.RATE_LIMIT_AUTH_LOGIN_ATTEMPTS,
            window_seconds=settings.RATE_LIMIT_AUTH_LOGIN_WINDOW_SECONDS,
        ),
        normalized_username,
        "Too many login attempts. Please try again later.",
    )
    user = repo.get_user_by_username(normalized_username)
    if not user or not verify_password(req.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return success(_issue_session(response, user))


@router.get("/user")
def current_user(user: User = Depends(get_current_user)):
    return success(user_to_dict(user))


@router.post("/logout")
def logout(response: Response):
    _clear_session_cookie(response)
    return success(None)
