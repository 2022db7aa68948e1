from typing import Any

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel

from aitana.api.deps import get_chat_handler
from aitana.config import SESSION_COOKIE_NAME, SESSION_COOKIE_SECURE
from aitana.core.chat_handler import ChatHandler
from aitana.core.logging import get_logger
from aitana.core.session.models import is_session_token, new_session_token

_log = get_logger("api.chat")

router = APIRouter(tags=["Chat"])


class ChatRequest(BaseModel):
    # Validated by ChatHandler so a missing message is a 400, not a 422.
    message: Any = None


class ChatResponse(BaseModel):
    response: str


@router.post("/chat", response_model=ChatResponse)
async def chat(
    body: ChatRequest,
    request: Request,
    response: Response,
    handler: ChatHandler = Depends(get_chat_handler),
):
    ChatHandler.validate(body.message)

    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not is_session_token(token):
        token = new_session_token()
        response.set_cookie(
            SESSION_COOKIE_NAME,
            token,
            httponly=True,
            samesite="lax",
            secure=SESSION_COOKIE_SECURE,
        )
        _log.debug("Session cookie minted", session=token[:8])

    result = await handler.handle(token, body.message)
    return ChatResponse(response=result.response)
