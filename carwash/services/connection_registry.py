"""
Live connection registry

Maps each user id to the websockets that user currently has open. Delivery
is at most once: events for users with no open socket are dropped.
"""

import asyncio
import logging
from collections import defaultdict
from typing import Any

from fastapi import Request, WebSocket
from starlette.websockets import WebSocketState

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    def __init__(self):
        self._connections: dict[str, set[WebSocket]] = defaultdict(set)
        self._pending: set[asyncio.Task] = set()

    def register(self, user_id: str, websocket: WebSocket) -> None:
        self._connections[user_id].add(websocket)
        logger.info(f"🔌 User {user_id} connected ({len(self._connections[user_id])} socket(s))")

    def unregister(self, user_id: str, websocket: WebSocket) -> None:
        sockets = self._connections.get(user_id)
        if not sockets:
            return
        sockets.discard(websocket)
        if not sockets:
            del self._connections[user_id]
        logger.info(f"🔌 User {user_id} disconnected")

    def is_connected(self, user_id: str) -> bool:
        return bool(self._connections.get(user_id))

    def connected_users(self) -> list[str]:
        return list(self._connections)

    async def send(self, user_id: str, event: dict[str, Any]) -> int:
        """Deliver ``event`` to every open socket of ``user_id``; returns the delivery count"""
        delivered = 0
        for websocket in list(self._connections.get(user_id, ())):
            if websocket.client_state != WebSocketState.CONNECTED:
                self.unregister(user_id, websocket)
                continue
            try:
                await websocket.send_json(event)
                delivered += 1
            except (RuntimeError, OSError) as e:
                logger.warning(f"⚠️ Dropping dead socket for {user_id}: {e}")
                self.unregister(user_id, websocket)
        return delivered

    def publish(self, user_id: str, event: dict[str, Any]) -> None:
        """Fire-and-forget ``send`` from synchronous code running on the event loop"""
        if not self.is_connected(user_id):
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No running loop, live event for {user_id} skipped")
            return
        task = loop.create_task(self.send(user_id, event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)


def get_connection_registry(request: Request) -> ConnectionRegistry:
    """Dependency returning the application's registry"""
    return request.app.state.connections
