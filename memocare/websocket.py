import logging
from typing import Any, Dict, List

from fastapi import WebSocket

logger = logging.getLogger(__name__)


def user_topic(user_id: int) -> str:
    return f"user_{user_id}"


class ConnectionManager:
    """Per-user live channel. Each user has one topic; a browser tab joins it by
    opening the user websocket. Events published to a topic with no listeners
    are dropped."""

    def __init__(self):
        self.active_connections: Dict[str, List[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, user_id: int):
        await websocket.accept()
        topic = user_topic(user_id)
        if topic not in self.active_connections:
            self.active_connections[topic] = []
        self.active_connections[topic].append(websocket)
        logger.info(f"🔌 [WebSocket] User {user_id} joined {topic}")

    def disconnect(self, websocket: WebSocket, user_id: int):
        topic = user_topic(user_id)
        if topic in self.active_connections:
            try:
                self.active_connections[topic].remove(websocket)
            except ValueError:
                pass  # WebSocket already removed
            if not self.active_connections[topic]:
                del self.active_connections[topic]
            logger.info(f"🔌 [WebSocket] User {user_id} left {topic}")

    def is_connected(self, user_id: int) -> bool:
        return bool(self.active_connections.get(user_topic(user_id)))

    async def publish(self, user_id: int, event: str, data: Dict[str, Any]) -> bool:
        """Send ``{"event", "data"}`` to every connection on the user's topic.

        Returns True if at least one connection received the message.
        """
        connections = list(self.active_connections.get(user_topic(user_id), []))
        if not connections:
            logger.info(f"⚠️ [WebSocket] No active connections for user {user_id} - dropping {event}")
            return False

        message = {"event": event, "data": data}
        delivered = 0
        disconnected = []
        for connection in connections:
            try:
                await connection.send_json(message)
                delivered += 1
            except Exception as e:
                logger.warning(f"⚠️ [WebSocket] Send to user {user_id} failed: {e!r}")
                disconnected.append(connection)

        # Clean up disconnected connections
        for connection in disconnected:
            self.disconnect(connection, user_id)
        return delivered > 0


# Global websocket manager instance used by the app; the dispatcher receives it explicitly
manager = ConnectionManager()
