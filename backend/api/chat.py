import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import AliasChoices, BaseModel, Field

from ai.generators import ContentGenerator, get_content_generator
from api.responses import success
from auth.utils import get_current_user
from config import settings
from db.models import ChatSession, User
from db.repository import Repository, get_repository
from services.errors import NotFoundError
from services.rate_limit_service import RateLimitRule, enforce_rate_limit
from services.serializers import chat_message_to_dict, chat_session_to_dict
from utils.codes import awakening_code
from utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"], dependencies=[Depends(get_current_user)])

TITLE_MAX_CHARS = 60


class ChatRequest(BaseModel):
    message: str = Field(min_length=1, max_length=4000)
    session_id: Optional[str] = Field(
        default=None,
        min_length=1,
        max_length=64,
        validation_alias=AliasChoices("session_id", "sessionId"),
    )


def _owned_chat_session(repo: Repository, user: User, chat_session_id: str) -> ChatSession:
    chat_session = repo.get_chat_session(chat_session_id)
    if chat_session is None or chat_session.user_id != user.id:
        raise NotFoundError("Chat session not found")
    return chat_session


def _title_from(message: str) -> str:
    title = " ".join(message.split())
    if len(title) > TITLE_MAX_CHARS:
        title = title[: TITLE_MAX_CHARS - 3].rstrip() + "..."
    return title


@router.post("")
async def chat(
    req: ChatRequest,
    request: Request,
    user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
    generator: ContentGenerator = Depends(get_content_generator),
):
    allowed, retry_after = enforce_rate_limit(
        rule=RateLimitRule(
            endpoint="/api/chat",
            limit=settings.RATE_LIMIT_CHAT_MESSAGES,
            window_seconds=settings.RATE_LIMIT_CHAT_WINDOW_SECONDS,
        ),
        scope_key=user.id,
        ip_address=request.client.host if request.client else None,
    )
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many chat messages. Please slow down.",
            headers={"Retry-After": str(retry_after)},
        )

    chat_session = repo.get_chat_session(req.session_id) if req.session_id else None
    if chat_session is not None and chat_session.user_id != user.id:
        raise NotFoundError("Chat session not found")

    history = []
    if chat_session is not None:
        history = [{"role": m.role, "content": m.content} for m in repo.list_chat_messages(chat_session.id)]

    # Generate before writing anything so a failed reply leaves no orphan rows.
    reply = await generator.chat_response(req.message, history)

    if chat_session is None:
        chat_session = repo.create_chat_session(
            id=req.session_id or f"chat-{secrets.token_hex(5)}",
            user_id=user.id,
            title=_title_from(req.message),
        )
        logger.info("Created chat session %s for user %s", chat_session.id, user.id)

    repo.create_chat_message(chat_session_id=chat_session.id, role="user", content=req.message)
    assistant = repo.create_chat_message(
        chat_session_id=chat_session.id,
        role="assistant",
        content=reply["content"],
        context_references=reply["context_references"],
        suggested_actions=reply["suggested_actions"],
    )
    repo.update_chat_session(chat_session, updated_at=utcnow())

    data = {
        "response": reply["content"],
        "context_references": reply["context_references"],
        "suggested_actions": reply["suggested_actions"],
        "session_id": chat_session.id,
        "message": chat_message_to_dict(assistant),
    }
    return success(
        data,
        type="chat_response",
        awakening_code=awakening_code("NGC"),
        next_evolution="/api/neural/pathways/activate",
    )


@router.get("/sessions")
def list_chat_sessions(
    user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return success([chat_session_to_dict(s) for s in repo.list_chat_sessions(user.id)])


@router.get("/{chat_session_id}/history")
def get_chat_history(
    chat_session_id: str,
    user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    chat_session = _owned_chat_session(repo, user, chat_session_id)
    return success([chat_message_to_dict(m) for m in repo.list_chat_messages(chat_session.id)])


@router.delete("/{chat_session_id}")
def delete_chat_session(
    chat_session_id: str,
    user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    chat_session = _owned_chat_session(repo, user, chat_session_id)
    repo.delete_chat_session(chat_session)
    logger.info("Deleted chat session %s", chat_session_id)
    return success({"id": chat_session_id, "deleted": True})
