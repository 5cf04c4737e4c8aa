# carewatch/Services/subscription_hub.py
"""
Subscription Hub
================
Process-wide registry of live viewers, keyed by caregiver_id.

Each viewer owns a Subscription: an explicit channel with a lifecycle

    open ──close()──▶ closed ──drain()──▶ drained

While open, notify() either pushes a LiveUpdate onto the subscription's
bounded queue or, when the subscriber registered a push callback, invokes
callback(record, events) directly. Once closed, nothing is delivered;
updates still queued can be collected with drain().

Semantics:
- No replay: a subscription only receives notifications issued while it is open
- Bounded queues: when a slow viewer falls behind, the oldest pending update
  is discarded
- A callback that raises is logged and unsubscribed; other viewers are unaffected
"""

import queue
import threading
import uuid
from typing import Callable, Dict, List, Optional, Sequence

from carewatch.Core.config import settings
from carewatch.Core import log_ws
from carewatch.Schemas.location import HistoryRecord_get
from carewatch.Schemas.telemetry import LiveUpdate
from carewatch.Schemas.tracking_state import GeofenceEvent


PushCallback = Callable[[HistoryRecord_get, List[GeofenceEvent]], None]


class Subscription:
    """
    Handle returned by SubscriptionHub.subscribe().

    Also the capability to unsubscribe: close() (or leaving a `with` block)
    removes it from the hub.
    """

    OPEN = "open"
    CLOSED = "closed"
    DRAINED = "drained"

    def __init__(
        self,
        hub: "SubscriptionHub",
        caregiver_id: str,
        callback: Optional[PushCallback] = None,
        maxsize: Optional[int] = None
    ):
        self.id = uuid.uuid4().hex
        self.caregiver_id = caregiver_id
        self.callback = callback
        self._hub = hub
        self._queue: "queue.Queue[LiveUpdate]" = queue.Queue(
            maxsize=settings.SUBSCRIBER_QUEUE_SIZE if maxsize is None else maxsize
        )
        self._state = self.OPEN
        # Reentrant: a callback may close its own subscription
        self._lock = threading.RLock()

    @property
    def state(self) -> str:
        with self._lock:
            return self._state

    @property
    def is_open(self) -> bool:
        return self.state == self.OPEN

    def _deliver(self, update: LiveUpdate) -> bool:
        """
        Delivers one update if the subscription is still open.

        Returns:
            bool: True if delivered (queued or pushed)

        Raises:
            Exception: Whatever the push callback raises
        """
        with self._lock:
            if self._state != self.OPEN:
                return False

            if self.callback is not None:
                self.callback(update.record, list(update.events))
                return True

            while True:
                try:
                    self._queue.put_nowait(update)
                    return True
                except queue.Full:
                    try:
                        self._queue.get_nowait()
                        print(f"[HUB] Queue full for subscription {self.id} ({self.caregiver_id}), dropping oldest update")
                    except queue.Empty:
                        pass

    def get(self, timeout: Optional[float] = None) -> Optional[LiveUpdate]:
        """
        Next pending update, waiting up to `timeout` seconds.

        Returns None on timeout.
        """
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> List[LiveUpdate]:
        """
        Pending updates, oldest first. Draining a closed subscription moves it
        to the drained state.
        """
        pending: List[LiveUpdate] = []
        with self._lock:
            while True:
                try:
                    pending.append(self._queue.get_nowait())
                except queue.Empty:
                    break
            if self._state == self.CLOSED:
                self._state = self.DRAINED
        return pending

    def _mark_closed(self) -> bool:
        with self._lock:
            if self._state != self.OPEN:
                return False
            self._state = self.CLOSED
            return True

    def close(self):
        self._hub.unsubscribe(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def __repr__(self) -> str:
        return f"<Subscription(id={self.id!r}, caregiver_id={self.caregiver_id!r}, state={self.state!r})>"


class SubscriptionHub:
    """
    Registry caregiver_id → {subscription_id: Subscription}.

    Thread Safety:
        The registry is guarded by a lock that is never held while
        delivering, so a slow callback cannot block subscribe/unsubscribe.
    """

    def __init__(self, queue_size: Optional[int] = None):
        self._subscriptions: Dict[str, Dict[str, Subscription]] = {}
        self._lock = threading.Lock()
        self.queue_size = queue_size

    def subscribe(
        self,
        caregiver_id: str,
        callback: Optional[PushCallback] = None
    ) -> Subscription:
        """
        Registers a live viewer for a caregiver.

        Args:
            caregiver_id: Caregiver whose records the viewer wants
            callback: Optional push callback (record, events) -> None; when
                omitted, updates are queued on the subscription

        Returns:
            Subscription: Open handle
        """
        subscription = Subscription(self, caregiver_id, callback=callback, maxsize=self.queue_size)
        with self._lock:
            self._subscriptions.setdefault(caregiver_id, {})[subscription.id] = subscription
            total = len(self._subscriptions[caregiver_id])
        print(f"[HUB] Subscription {subscription.id} opened for {caregiver_id}. Viewers: {total}")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        """
        Closes a subscription and removes it from the registry.

        Idempotent: returns False if it was already closed.
        """
        closed = subscription._mark_closed()
        with self._lock:
            by_id = self._subscriptions.get(subscription.caregiver_id)
            if by_id is not None:
                by_id.pop(subscription.id, None)
                if not by_id:
                    del self._subscriptions[subscription.caregiver_id]
        if closed:
            print(f"[HUB] Subscription {subscription.id} closed for {subscription.caregiver_id}")
        return closed

    def subscriber_count(self, caregiver_id: str) -> int:
        with self._lock:
            return len(self._subscriptions.get(caregiver_id, {}))

    def notify(
        self,
        caregiver_id: str,
        record: HistoryRecord_get,
        events: Sequence[GeofenceEvent] = ()
    ) -> int:
        """
        Delivers a committed record and its events to every subscription open
        for the caregiver at the time of the call.

        Returns:
            int: Number of subscriptions that received the update
        """
        with self._lock:
            current = list(self._subscriptions.get(caregiver_id, {}).values())

        if not current:
            return 0

        update = LiveUpdate(caregiver_id=caregiver_id, record=record, events=list(events))
        delivered = 0
        failed: List[Subscription] = []

        for subscription in current:
            try:
                if subscription._deliver(update):
                    delivered += 1
            except Exception as callback_error:
                print(f"[HUB] Callback error for subscription {subscription.id}: {callback_error}")
                failed.append(subscription)

        for subscription in failed:
            self.unsubscribe(subscription)
            log_ws.log_from_thread(
                f"[HUB] Dropped failing viewer of caregiver '{caregiver_id}'",
                msg_type="warning"
            )

        return delivered


# --------------------------------------------------------
# GLOBAL INSTANCE (Singleton)
# --------------------------------------------------------
subscription_hub = SubscriptionHub()
