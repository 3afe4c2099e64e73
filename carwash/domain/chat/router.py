"""Chat router - REST history endpoints and the live socket"""

import json
import logging
from typing import Callable, Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session

from ...auth import get_current_user, resolve_user_from_token
from ...database import get_db, get_session_factory
from ...models import User
from ...services.connection_registry import ConnectionRegistry, get_connection_registry
from ...shared.errors import APIError, NotAuthenticated
from ..users.repository import UserRepository
from .schemas import (
    ConversationResponse,
    MessageCreate,
    MessageResponse,
    message_event,
    message_response,
)
from .service import ChatService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["Chat"])
ws_router = APIRouter(tags=["Chat"])


def get_chat_service(db: Session = Depends(get_db)) -> ChatService:
    return ChatService(db)


# ============================================================================
# REST
# ============================================================================


@router.get("/conversations", response_model=list[ConversationResponse])
async def list_conversations(
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    conversations = service.conversations(current_user)
    for conversation in conversations:
        conversation["lastMessage"] = message_response(conversation["lastMessage"])
    return conversations


@router.get("/unread-count")
async def unread_count(
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    return {"unreadCount": service.unread_count(current_user)}


@router.post("/send", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    data: MessageCreate,
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
    registry: ConnectionRegistry = Depends(get_connection_registry),
):
    message = service.send_message(current_user, data.receiverId, data.content)
    event = message_event(message)
    registry.publish(message.receiver_id, event)
    registry.publish(message.sender_id, event)
    return message_response(message)


@router.get("/{user_id}", response_model=list[MessageResponse])
async def get_conversation(
    user_id: str,
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    return [message_response(m) for m in service.history(current_user, user_id, limit)]


# ============================================================================
# WEBSOCKET
# ============================================================================


async def handle_event(
    websocket: WebSocket,
    user: User,
    event: dict,
    service: ChatService,
    registry: ConnectionRegistry,
) -> None:
    event_type = event.get("type")

    if event_type == "ping":
        await websocket.send_json({"type": "pong"})
    elif event_type == "send-message":
        try:
            message = service.send_message(user, event.get("receiverId"), event.get("content"))
        except APIError as e:
            await websocket.send_json({"type": "error", "error": e.detail, "code": e.code})
            return
        outgoing = message_event(message)
        await registry.send(message.receiver_id, outgoing)
        await registry.send(message.sender_id, outgoing)
    else:
        await websocket.send_json(
            {"type": "error", "error": f"Unknown event type: {event_type}", "code": "VALIDATION_ERROR"}
        )


@ws_router.websocket("/ws")
async def chat_socket(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
):
    """
    Live channel for chat and notifications.

    Connect with ``/ws?token=<jwt>``; an invalid token closes the socket with
    1008 before it is accepted. Each event runs in its own database session
    and re-checks that the account is still active.
    """
    with session_factory() as db:
        try:
            user_id = resolve_user_from_token(token, db).id
        except NotAuthenticated as e:
            logger.warning(f"🚫 Socket rejected: {e.detail}")
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return

    registry: ConnectionRegistry = websocket.app.state.connections
    await websocket.accept()
    registry.register(user_id, websocket)

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                event = json.loads(raw)
            except json.JSONDecodeError:
                await websocket.send_json(
                    {"type": "error", "error": "Invalid JSON", "code": "VALIDATION_ERROR"}
                )
                continue
            if not isinstance(event, dict):
                await websocket.send_json(
                    {"type": "error", "error": "Event must be an object", "code": "VALIDATION_ERROR"}
                )
                continue

            with session_factory() as db:
                user = UserRepository.get_by_id(db, user_id)
                if not user or not user.is_active:
                    logger.warning(f"🚫 Closing socket for deactivated user {user_id}")
                    await websocket.send_json(
                        {"type": "error", "error": "Account is deactivated", "code": "NOT_AUTHENTICATED"}
                    )
                    await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
                    return
                await handle_event(websocket, user, event, ChatService(db), registry)
    except WebSocketDisconnect:
        logger.info(f"🔌 Socket closed for {user_id}")
    finally:
        registry.unregister(user_id, websocket)
