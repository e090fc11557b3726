"""
Real-time notification gateway.

A single WebSocket endpoint, `/notifications`, carries server pushes
(`notification`, `newMessage`, `userTyping`) and a few client events.
Frames in both directions are JSON objects of the form
`{"event": <name>, "data": <payload>}`.

Client events:
    joinConversation   {"conversationId"}            participants only
    leaveConversation  {"conversationId"}
    typing             {"conversationId", "isTyping"} relayed as userTyping
    ping               any                            answered with pong

The JWT access token is taken from the `token` query parameter or an
`Authorization: Bearer` header. Sockets without a valid token, or whose
user is missing or deactivated, are closed with code 4401.
"""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.core.logging import get_logger
from app.core.security import ACCESS_TOKEN_TYPE, TokenExpired, decode_token
from app.db.postgres import session as db_session
from app.db.postgres.repositories import UserRepository
from app.services.message_service import get_message_service
from app.services.notification_gateway import ConnectionManager, get_connection_manager

logger = get_logger(__name__)

router = APIRouter()

WS_UNAUTHORIZED = 4401


def _token_from(websocket: WebSocket) -> str | None:
    token = websocket.query_params.get("token")
    if token:
        return token
    authorization = websocket.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


def authenticate(websocket: WebSocket) -> str | None:
    """Return the user id of a valid access token, else None."""
    token = _token_from(websocket)
    if not token:
        return None
    try:
        payload = decode_token(token, expected_type=ACCESS_TOKEN_TYPE)
    except TokenExpired:
        return None
    if not payload or not payload.get("sub"):
        return None
    return str(payload["sub"])


async def is_active_user(user_id: str) -> bool:
    """Token subjects must still exist and be active, as on the REST side."""
    try:
        user_uuid = UUID(user_id)
    except (TypeError, ValueError):
        return False
    async with db_session.db_router.read() as session:
        user = await UserRepository(session).get(user_uuid)
    return user is not None and bool(user.is_active)


async def can_join(conversation_id: str, user_id: str) -> bool:
    try:
        conversation_uuid = UUID(conversation_id)
        user_uuid = UUID(user_id)
    except (TypeError, ValueError):
        return False
    async with db_session.db_router.read() as session:
        return await get_message_service().is_participant(session, conversation_uuid, user_uuid)


async def handle_event(
    manager: ConnectionManager,
    websocket: WebSocket,
    user_id: str,
    event: str | None,
    data: Any,
) -> None:
    payload = data if isinstance(data, dict) else {}
    conversation_id = str(payload.get("conversationId") or "")

    if event == "ping":
        await manager.send_event(websocket, "pong", data)

    elif event == "joinConversation":
        if conversation_id and await can_join(conversation_id, user_id):
            manager.join_room(conversation_id, websocket)
            await manager.send_event(websocket, "joinedConversation", {"conversationId": conversation_id})
        else:
            await manager.send_event(
                websocket,
                "error",
                {"message": "You are not a participant of this conversation", "conversationId": conversation_id},
            )

    elif event == "leaveConversation":
        if conversation_id:
            manager.leave_room(conversation_id, websocket)

    elif event == "typing":
        if conversation_id and websocket in manager.room_members(conversation_id):
            await manager.broadcast_to_room(
                conversation_id,
                "userTyping",
                {
                    "userId": user_id,
                    "conversationId": conversation_id,
                    "isTyping": bool(payload.get("isTyping")),
                },
                exclude=websocket,
            )

    else:
        await manager.send_event(websocket, "error", {"message": f"Unknown event: {event}"})


@router.websocket("/notifications")
async def notifications_socket(websocket: WebSocket) -> None:
    user_id = authenticate(websocket)
    await websocket.accept()
    if user_id is None or not await is_active_user(user_id):
        logger.warning("WebSocket rejected: missing or invalid token, or inactive user")
        await websocket.close(code=WS_UNAUTHORIZED)
        return

    manager = get_connection_manager()
    manager.connect(user_id, websocket)
    try:
        while True:
            try:
                frame = await websocket.receive_json()
            except ValueError:
                await manager.send_event(websocket, "error", {"message": "Frames must be JSON objects"})
                continue
            if not isinstance(frame, dict):
                await manager.send_event(websocket, "error", {"message": "Frames must be JSON objects"})
                continue
            await handle_event(manager, websocket, user_id, frame.get("event"), frame.get("data"))
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(websocket)
