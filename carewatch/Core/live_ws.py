"""
Live Dashboard WebSocket Module
================================

Bridges SubscriptionHub subscriptions to the /live/{caregiver_id} WebSocket.

Each connected dashboard gets its own hub subscription with a push callback.
The callback runs on the ingest worker thread (inside the caregiver's
exclusive section), so it only schedules the send on the main event loop and
returns.

Lifecycle:
    connect    → hub.subscribe(caregiver_id, callback) → accept()
    disconnect → subscription.close()                  → unregister

Message Format:
--------------
    {
        "type": "live_update",
        "caregiver_id": "cg-1",
        "record": {... HistoryRecord, Timestamp ISO 'Z' ...},
        "events": [{"zone_id": "...", "kind": "entry", ...}]
    }
"""

from typing import Any, Dict, List, Optional
from fastapi import WebSocket

from carewatch.Schemas.location import HistoryRecord_get
from carewatch.Schemas.tracking_state import GeofenceEvent
from carewatch.Services.history_serialization import serialize_history_record
from carewatch.Services.subscription_hub import Subscription, SubscriptionHub, subscription_hub
from .wsBase import WebSocketManager


def build_live_message(
    caregiver_id: str,
    record: HistoryRecord_get,
    events: List[GeofenceEvent]
) -> Dict[str, Any]:
    return {
        "type": "live_update",
        "caregiver_id": caregiver_id,
        "record": serialize_history_record(record),
        "events": [event.model_dump(mode="json") for event in events],
    }


class LiveWebSocketManager(WebSocketManager):
    """
    WebSocket manager for per-caregiver live dashboards.

    Attributes:
        hub: SubscriptionHub the viewers subscribe to
        subscriptions: WebSocket → open hub Subscription
    """

    def __init__(self, hub: Optional[SubscriptionHub] = None):
        super().__init__()
        self.hub = hub if hub is not None else subscription_hub
        self.subscriptions: Dict[WebSocket, Subscription] = {}

    def _push_callback(self, ws: WebSocket, caregiver_id: str):
        def push(record: HistoryRecord_get, events: List[GeofenceEvent]):
            message = build_live_message(caregiver_id, record, events)
            if not self.schedule(self.send_to(ws, message)):
                # Raising makes the hub drop this viewer
                raise RuntimeError("Event loop not available for live push")
        return push

    async def connect_viewer(self, ws: WebSocket, caregiver_id: str) -> Subscription:
        """
        Subscribe a dashboard to a caregiver, then complete the handshake.
        """
        subscription = self.hub.subscribe(caregiver_id, callback=self._push_callback(ws, caregiver_id))
        with self._lock:
            self.subscriptions[ws] = subscription

        try:
            await self.register(ws)
        except Exception:
            self.disconnect_viewer(ws)
            raise

        print(f"[LIVE-WS] Viewer connected for caregiver {caregiver_id}")
        return subscription

    def disconnect_viewer(self, ws: WebSocket):
        """Close the viewer's subscription and forget the socket. Idempotent."""
        with self._lock:
            subscription = self.subscriptions.pop(ws, None)

        if subscription is not None:
            subscription.close()
            print(f"[LIVE-WS] Viewer disconnected from caregiver {subscription.caregiver_id}")

        self.unregister(ws)

    async def handle_message(self, ws: WebSocket, message: str):
        # Dashboards only listen; keepalive pings are answered
        if message == "ping":
            await self.send_to(ws, {"type": "pong"})


# ============================================================
# GLOBAL LIVE WEBSOCKET MANAGER INSTANCE
# ============================================================
live_ws_manager = LiveWebSocketManager()
