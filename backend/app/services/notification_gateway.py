"""
In-process WebSocket connection registry.

Keeps user id -> open sockets and conversation id -> joined sockets, and
delivers `{"event": ..., "data": ...}` frames to them. Delivery is best
effort: a socket that fails to receive is dropped and the failure logged.
"""

from collections import defaultdict
from typing import Any

from fastapi.encoders import jsonable_encoder
from starlette.websockets import WebSocket

from app.core.logging import get_logger

logger = get_logger(__name__)


class ConnectionManager:
    """Registry of live sockets per user and per conversation room."""

    def __init__(self) -> None:
        self._user_sockets: dict[str, set[WebSocket]] = defaultdict(set)
        self._rooms: dict[str, set[WebSocket]] = defaultdict(set)
        self._socket_user: dict[WebSocket, str] = {}

    def connect(self, user_id: Any, websocket: WebSocket) -> None:
        key = str(user_id)
        self._user_sockets[key].add(websocket)
        self._socket_user[websocket] = key
        logger.info(f"WebSocket connected for user {key} ({len(self._user_sockets[key])} open)")

    def disconnect(self, websocket: WebSocket) -> None:
        user_id = self._socket_user.pop(websocket, None)
        if user_id is not None:
            sockets = self._user_sockets.get(user_id)
            if sockets is not None:
                sockets.discard(websocket)
                if not sockets:
                    del self._user_sockets[user_id]
        for room_id in [room for room, members in self._rooms.items() if websocket in members]:
            self.leave_room(room_id, websocket)
        if user_id is not None:
            logger.info(f"WebSocket disconnected for user {user_id}")

    def join_room(self, room_id: Any, websocket: WebSocket) -> None:
        self._rooms[str(room_id)].add(websocket)

    def leave_room(self, room_id: Any, websocket: WebSocket) -> None:
        members = self._rooms.get(str(room_id))
        if members is None:
            return
        members.discard(websocket)
        if not members:
            del self._rooms[str(room_id)]

    def room_members(self, room_id: Any) -> set[WebSocket]:
        return set(self._rooms.get(str(room_id), ()))

    @property
    def connection_count(self) -> int:
        return len(self._socket_user)

    async def send_to_user(self, user_id: Any, event: str, data: Any) -> int:
        """
        Push an event to every socket of a user.

        Returns:
            Number of sockets the frame was delivered to
        """
        sockets = list(self._user_sockets.get(str(user_id), ()))
        delivered = 0
        for websocket in sockets:
            if await self._send(websocket, event, data):
                delivered += 1
        return delivered

    async def broadcast_to_room(
        self,
        room_id: Any,
        event: str,
        data: Any,
        exclude: WebSocket | None = None,
    ) -> int:
        delivered = 0
        for websocket in self.room_members(room_id):
            if websocket is exclude:
                continue
            if await self._send(websocket, event, data):
                delivered += 1
        return delivered

    async def send_event(self, websocket: WebSocket, event: str, data: Any) -> bool:
        return await self._send(websocket, event, data)

    async def _send(self, websocket: WebSocket, event: str, data: Any) -> bool:
        try:
            await websocket.send_json({"event": event, "data": jsonable_encoder(data)})
            return True
        except Exception as e:
            logger.warning(f"Dropping WebSocket after failed send of '{event}': {e}")
            self.disconnect(websocket)
            return False


# Singleton instance
_connection_manager: ConnectionManager | None = None


def get_connection_manager() -> ConnectionManager:
    """Get or create the process-wide connection manager."""
    global _connection_manager
    if _connection_manager is None:
        _connection_manager = ConnectionManager()
    return _connection_manager
