"""
tests/test_subscription_hub.py

Unit tests for carewatch/Services/subscription_hub.py.
Covers delivery, isolation between caregivers, lifecycle and failing callbacks.
"""

from unittest.mock import MagicMock

from carewatch.Schemas.location import HistoryRecord_get
from carewatch.Services.subscription_hub import Subscription, SubscriptionHub
from tests.fixtures import OTHER_CAREGIVER, T0, TEST_CAREGIVER


def build_record(record_id: int = 1, caregiver_id: str = TEST_CAREGIVER) -> HistoryRecord_get:
    return HistoryRecord_get(
        id=record_id,
        CaregiverID=caregiver_id,
        Latitude=0.0,
        Longitude=0.0,
        Timestamp=T0,
        ConnectionStatus="online",
    )


def test_queued_subscription_receives_update() -> None:
    hub = SubscriptionHub(queue_size=5)
    subscription = hub.subscribe(TEST_CAREGIVER)

    delivered = hub.notify(TEST_CAREGIVER, build_record(), [])

    assert delivered == 1
    update = subscription.get(timeout=0)
    assert update.caregiver_id == TEST_CAREGIVER
    assert update.record.id == 1
    assert update.events == []


def test_callback_subscription_is_invoked_with_record_and_events() -> None:
    hub = SubscriptionHub()
    callback = MagicMock()
    hub.subscribe(TEST_CAREGIVER, callback=callback)

    record = build_record()
    hub.notify(TEST_CAREGIVER, record, [])

    callback.assert_called_once_with(record, [])


def test_notify_only_reaches_same_caregiver() -> None:
    hub = SubscriptionHub()
    mine = MagicMock()
    other = MagicMock()
    hub.subscribe(TEST_CAREGIVER, callback=mine)
    hub.subscribe(OTHER_CAREGIVER, callback=other)

    hub.notify(TEST_CAREGIVER, build_record(), [])

    mine.assert_called_once()
    other.assert_not_called()


def test_unsubscribed_listener_is_not_invoked() -> None:
    hub = SubscriptionHub()
    callback = MagicMock()
    subscription = hub.subscribe(TEST_CAREGIVER, callback=callback)

    assert hub.unsubscribe(subscription) is True
    delivered = hub.notify(TEST_CAREGIVER, build_record(), [])

    assert delivered == 0
    callback.assert_not_called()
    assert hub.subscriber_count(TEST_CAREGIVER) == 0


def test_late_subscriber_gets_no_replay() -> None:
    hub = SubscriptionHub()
    hub.notify(TEST_CAREGIVER, build_record(1), [])

    subscription = hub.subscribe(TEST_CAREGIVER)

    assert subscription.get(timeout=0) is None
    hub.notify(TEST_CAREGIVER, build_record(2), [])
    assert subscription.get(timeout=0).record.id == 2


def test_unsubscribe_is_idempotent() -> None:
    hub = SubscriptionHub()
    subscription = hub.subscribe(TEST_CAREGIVER)

    assert hub.unsubscribe(subscription) is True
    assert hub.unsubscribe(subscription) is False
    subscription.close()


def test_lifecycle_open_closed_drained() -> None:
    hub = SubscriptionHub()
    subscription = hub.subscribe(TEST_CAREGIVER)
    hub.notify(TEST_CAREGIVER, build_record(1), [])
    hub.notify(TEST_CAREGIVER, build_record(2), [])

    assert subscription.state == Subscription.OPEN
    subscription.close()
    assert subscription.state == Subscription.CLOSED

    hub.notify(TEST_CAREGIVER, build_record(3), [])
    pending = subscription.drain()

    assert [u.record.id for u in pending] == [1, 2]
    assert subscription.state == Subscription.DRAINED


def test_context_manager_closes_subscription() -> None:
    hub = SubscriptionHub()

    with hub.subscribe(TEST_CAREGIVER) as subscription:
        assert hub.subscriber_count(TEST_CAREGIVER) == 1

    assert subscription.is_open is False
    assert hub.subscriber_count(TEST_CAREGIVER) == 0


def test_full_queue_drops_oldest() -> None:
    hub = SubscriptionHub(queue_size=2)
    subscription = hub.subscribe(TEST_CAREGIVER)

    for record_id in (1, 2, 3):
        hub.notify(TEST_CAREGIVER, build_record(record_id), [])

    assert [u.record.id for u in subscription.drain()] == [2, 3]


def test_failing_callback_is_dropped_without_affecting_others() -> None:
    hub = SubscriptionHub()
    healthy = MagicMock()
    hub.subscribe(TEST_CAREGIVER, callback=MagicMock(side_effect=RuntimeError("socket gone")))
    hub.subscribe(TEST_CAREGIVER, callback=healthy)

    delivered = hub.notify(TEST_CAREGIVER, build_record(), [])

    assert delivered == 1
    healthy.assert_called_once()
    assert hub.subscriber_count(TEST_CAREGIVER) == 1


def test_callback_may_close_its_own_subscription() -> None:
    hub = SubscriptionHub()
    holder = {}

    def close_self(record, events) -> None:
        holder["subscription"].close()

    holder["subscription"] = hub.subscribe(TEST_CAREGIVER, callback=close_self)
    hub.notify(TEST_CAREGIVER, build_record(), [])

    assert hub.subscriber_count(TEST_CAREGIVER) == 0
