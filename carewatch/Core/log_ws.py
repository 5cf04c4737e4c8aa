"""
Log WebSocket Management Module
================================

Real-time log streaming over the /logs WebSocket. Rejected samples,
geofence transitions and persistence failures are mirrored here so an
operator can watch the service live.

Message Format:
--------------
    {
        "msg_type": "log" | "error" | "warning",
        "message": "The log message content"
    }

Usage Example:
-------------
    from carewatch.Core import log_ws

    # From any thread (FastAPI threadpool, lifespan, tests)
    log_ws.log_from_thread("[PIPELINE] Zone lookup failed", msg_type="error")

Frontend Connection:
-------------------
    const ws = new WebSocket('ws://localhost:8000/logs');
    ws.onmessage = (event) => {
        const log = JSON.parse(event.data);
        console.log(`[${log.msg_type}] ${log.message}`);
    };
"""

from typing import Dict, Any
from fastapi import WebSocket
from .wsBase import WebSocketManager


LOG_MESSAGE_TYPES = ("log", "warning", "error")


def log_from_thread(message: str, msg_type: str = "log"):
    """
    Thread-safe entry point for broadcasting a log line to every /logs client.

    Args:
        message: The log message content
        msg_type: "log" (default), "warning" or "error". Unknown values are
            sent as "log".

    Behavior:
        - Clients connected: the broadcast is scheduled on the main loop
        - No clients: returns immediately (the caller already printed)
    """
    if not log_ws_manager.has_clients:
        return

    payload: Dict[str, Any] = {
        "msg_type": msg_type if msg_type in LOG_MESSAGE_TYPES else "log",
        "message": str(message),
    }
    log_ws_manager.send_from_thread(payload)


class LogWebSocketManager(WebSocketManager):
    """
    WebSocket manager for the /logs stream.

    The stream is one-way; messages sent by clients are only echoed to the
    console.
    """

    async def handle_message(self, ws: WebSocket, message: str):
        print(f"[LOG-WS] Received message from client: {message}")


# ============================================================
# GLOBAL LOG WEBSOCKET MANAGER INSTANCE
# ============================================================
log_ws_manager = LogWebSocketManager()
