import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from memocare.websocket import manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/users/{user_id}")
async def user_channel(websocket: WebSocket, user_id: int):
    """Live channel for one user; reminder notifications arrive here."""
    await manager.connect(websocket, user_id)
    try:
        while True:
            # Nothing is expected from the client; reading detects the disconnect
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(websocket, user_id)
