"""WebSocket endpoint — real-time event delivery to dashboard clients.

Learn: Each client connects to /ws?token=JWT. The handler:
1. Authenticates via JWT query param (required outside development)
2. Waits for {"type": "join-dashboard"} before subscribing the
   connection to the dashboard room (acked with {"type": "joined"})
3. Forwards every hub message for its rooms to the client
4. Answers {"type": "ping"} with {"type": "pong"}

This is a long-lived connection — one per browser tab.
"""

import asyncio
import json

import structlog
from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from procmon.auth.dependencies import authenticate_token
from procmon.config import settings
from procmon.events.types import DASHBOARD_ROOM
from procmon.realtime.hub import hub

logger = structlog.get_logger()
router = APIRouter()


@router.websocket("/ws")
async def dashboard_websocket(websocket: WebSocket):
    """WebSocket endpoint for real-time dashboard events.

    Learn: Two concurrent tasks run:
    1. Hub forwarder — reads this connection's queue, sends to the client
    2. Client listener — handles join/ping messages from the client

    When either side finishes (usually a client disconnect), the other
    is cancelled and the queue leaves every room.
    """
    # ── Authentication ──────────────────────────────────────
    token = websocket.query_params.get("token")
    username = None

    if not token and settings.environment != "development":
        await websocket.close(code=4001, reason="Authentication required")
        return

    if token:
        try:
            username = authenticate_token(token).username
        except HTTPException:
            await websocket.close(code=4001, reason="Invalid or expired token")
            return

    # ── Connection accepted ─────────────────────────────────
    await websocket.accept()
    queue = hub.connect()
    logger.info("ws.connected", username=username)

    async def hub_forwarder():
        """Forward hub messages to the WebSocket client."""
        while True:
            message = await queue.get()
            await websocket.send_text(message)

    async def client_listener():
        """Handle incoming WebSocket messages."""
        try:
            while True:
                data = await websocket.receive_text()
                try:
                    msg = json.loads(data)
                except json.JSONDecodeError:
                    continue
                if not isinstance(msg, dict):
                    continue
                if msg.get("type") == "join-dashboard":
                    hub.join(DASHBOARD_ROOM, queue)
                    await websocket.send_text(json.dumps({"type": "joined", "room": DASHBOARD_ROOM}))
                elif msg.get("type") == "ping":
                    await websocket.send_text(json.dumps({"type": "pong"}))
        except WebSocketDisconnect:
            pass

    forward_task = asyncio.create_task(hub_forwarder())
    client_task = asyncio.create_task(client_listener())

    try:
        done, pending = await asyncio.wait(
            [forward_task, client_task],
            return_when=asyncio.FIRST_COMPLETED,
        )
        for task in pending:
            task.cancel()
        for task in done:
            if not task.cancelled() and task.exception():
                logger.warning("ws.task_failed", error=str(task.exception()))
    finally:
        hub.leave(queue)
        logger.info("ws.disconnected", username=username)
        if websocket.client_state == WebSocketState.CONNECTED:
            await websocket.close()
