"""
WebSocket Base Manager Module
==============================

Thread-safe foundation for the service's WebSocket channels (system logs and
live caregiver dashboards).

Architecture:
------------
- Thread-Safe Operations: the client list is guarded by a threading.Lock
- Lifecycle Management: register on connect, idempotent unregister on close
- Cross-Thread Communication: ingest runs on FastAPI's threadpool, so
  messages produced there are scheduled on the main event loop with
  asyncio.run_coroutine_threadsafe()

Usage Example:
-------------
    manager = WebSocketManager()
    manager.set_main_loop(asyncio.get_running_loop())   # in lifespan

    @app.websocket("/channel")
    async def channel(ws: WebSocket):
        await manager.register(ws)
        try:
            while True:
                await manager.handle_message(ws, await ws.receive_text())
        finally:
            manager.unregister(ws)

    # From a worker thread
    manager.send_from_thread({"msg_type": "log", "message": "..."})
"""

from fastapi import WebSocket
import asyncio
from typing import List, Optional, Dict, Any
import json
import threading


class WebSocketManager:
    """
    Base WebSocket manager for concurrent client connections.

    Attributes:
        clients (List[WebSocket]): Currently active WebSocket connections
        main_loop (Optional[asyncio.AbstractEventLoop]): FastAPI's main event loop
        _lock (threading.Lock): Guards self.clients
    """

    def __init__(self):
        self.clients: List[WebSocket] = []
        """List of currently active WebSocket client connections."""

        self.main_loop: Optional[asyncio.AbstractEventLoop] = None
        """FastAPI's event loop, set during application startup."""

        self._lock = threading.Lock()

    def set_main_loop(self, loop: asyncio.AbstractEventLoop):
        """
        Register FastAPI's main event loop.

        Must be called from the lifespan handler; without it
        send_from_thread() has nowhere to schedule its coroutines.
        """
        self.main_loop = loop

    async def register(self, ws: WebSocket):
        """
        Accept and register a new WebSocket client.

        The client is added before accept() so nothing sent right after the
        handshake is lost. If the handshake fails the client is removed and
        the error propagates.
        """
        with self._lock:
            if ws not in self.clients:
                self.clients.append(ws)

        try:
            await ws.accept()
            print(f"[WSBase] Client registered. Total clients: {len(self.clients)}")
        except Exception:
            self.unregister(ws)
            raise

    def unregister(self, ws: WebSocket):
        """Remove a client from the active list. Idempotent; does not close the socket."""
        with self._lock:
            if ws in self.clients:
                self.clients.remove(ws)
                print(f"[WSBase] Client unregistered. Total clients: {len(self.clients)}")

    @property
    def has_clients(self) -> bool:
        with self._lock:
            return len(self.clients) > 0

    async def send_to(self, ws: WebSocket, message: Dict[str, Any]) -> bool:
        """
        Send a message to a single client.

        Returns:
            bool: False if the send failed (the client is unregistered)
        """
        try:
            await ws.send_text(json.dumps(message))
            return True
        except Exception as send_error:
            print(f"[WSBase] Send failed, dropping client: {send_error}")
            self.unregister(ws)
            return False

    async def broadcast(self, message: Dict[str, Any]):
        """
        Send a message to every connected client.

        The client list is copied under the lock and the lock is released
        before any I/O. Clients whose send fails are unregistered.
        """
        with self._lock:
            current_clients = list(self.clients)

        for ws in current_clients:
            await self.send_to(ws, message)

    def schedule(self, coro) -> bool:
        """
        Schedule a coroutine on the main loop from any thread.

        Returns:
            bool: False if no loop is running (the coroutine is closed unawaited)
        """
        if self.main_loop is None or self.main_loop.is_closed():
            coro.close()
            return False

        asyncio.run_coroutine_threadsafe(coro, self.main_loop)
        return True

    def send_from_thread(self, message: Dict[str, Any]):
        """
        Fire-and-forget broadcast from a non-async context.

        Returns immediately when no client is connected.
        """
        if not self.has_clients:
            return

        if not self.schedule(self.broadcast(message)):
            print(f"[WSBase] Event loop not available. Message not sent: {message}")

    async def handle_message(self, ws: WebSocket, message: str):
        """
        Handle an incoming client message. Subclasses override this.
        """
        print(f"[WSBase] Received message from client: {message}")
