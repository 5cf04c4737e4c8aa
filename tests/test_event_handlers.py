"""
tests/test_event_handlers.py

Tests for the database-backed pipeline collaborators in
carewatch/Services/event_handlers and the repositories they use.
Runs against an in-memory SQLite database.
"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from carewatch.Core.exceptions import PersistenceError, ZoneLookupError
from carewatch.Models.safe_zone import SafeZone
from carewatch.Repositories import location_history as history_repo
from carewatch.Schemas.location import HistoryRecord_create
from carewatch.Services.event_handlers import (
    DatabaseHistoryLoader,
    DatabaseRecordStore,
    DatabaseZoneProvider,
    insert_history_record,
    load_history_seed,
)
from carewatch.Services.history_serialization import serialize_history_record
from carewatch.Services.telemetry_pipeline import TelemetryPipeline
from carewatch.Services.subscription_hub import SubscriptionHub
from tests.fixtures import (
    HOME_LNG,
    OTHER_CAREGIVER,
    OUTSIDE_LNG,
    T0,
    TEST_CAREGIVER,
    at,
    build_payload,
    build_session_factory,
)


def build_record(
    timestamp=None,
    lng: float = 0.0,
    is_checkpoint: bool = False,
    distance: float = 0.0,
    caregiver_id: str = TEST_CAREGIVER,
) -> HistoryRecord_create:
    return HistoryRecord_create(
        CaregiverID=caregiver_id,
        Latitude=0.0,
        Longitude=lng,
        Timestamp=timestamp or T0,
        BatteryLevel=50,
        ConnectionStatus="online",
        IsCheckpoint=is_checkpoint,
        DistanceTraveled=distance,
    )


def add_zone(factory, zone_id: str, caregiver_id: str = TEST_CAREGIVER, lng: float = 0.0) -> None:
    with factory() as db:
        db.add(SafeZone(
            id=zone_id,
            caregiver_id=caregiver_id,
            name=zone_id.title(),
            latitude=0.0,
            longitude=lng,
            radius=100.0,
            alert_on_entry=True,
            alert_on_exit=True,
        ))
        db.commit()


def test_insert_history_record_returns_stored_record() -> None:
    factory = build_session_factory()

    with factory() as db:
        stored = insert_history_record(db, build_record(is_checkpoint=True))

    assert stored.id == 1
    assert stored.IsCheckpoint is True
    assert stored.Timestamp == T0
    assert stored.Timestamp.tzinfo is not None


def test_integrity_error_rolls_back_and_raises_persistence_error() -> None:
    """A row violating a check constraint is rolled back, nothing is stored."""
    factory = build_session_factory()
    invalid = HistoryRecord_create.model_construct(
        **{**build_record().model_dump(), "ConnectionStatus": "unknown"}
    )

    with factory() as db:
        with pytest.raises(PersistenceError):
            insert_history_record(db, invalid)
        assert history_repo.count_records(db, TEST_CAREGIVER) == 0


def test_stored_record_does_not_reload_row_after_commit() -> None:
    """Once the commit went through, the record is returned even if the DB stops answering."""
    factory = build_session_factory()
    db_down = OperationalError("SELECT", {}, Exception("db down"))

    with factory() as db:
        db.refresh = MagicMock(side_effect=db_down)
        db.execute = MagicMock(side_effect=db_down)
        stored = insert_history_record(db, build_record(lng=0.5, distance=2.0))

    assert stored.id == 1
    assert stored.Longitude == 0.5
    assert stored.DistanceTraveled == 2.0
    with factory() as db:
        assert history_repo.count_records(db, TEST_CAREGIVER) == 1


def test_failed_commit_rolls_back_and_raises_persistence_error() -> None:
    factory = build_session_factory()

    with factory() as db:
        db.commit = MagicMock(side_effect=OperationalError("COMMIT", {}, Exception("db down")))
        with pytest.raises(PersistenceError):
            insert_history_record(db, build_record())

    with factory() as db:
        assert history_repo.count_records(db, TEST_CAREGIVER) == 0


def test_record_store_wraps_session_errors() -> None:
    factory = MagicMock(side_effect=OperationalError("connect", {}, Exception("db down")))
    store = DatabaseRecordStore(factory)

    with pytest.raises(PersistenceError):
        store(build_record())


def test_zone_provider_returns_own_zones_sorted() -> None:
    factory = build_session_factory()
    add_zone(factory, "zone-b")
    add_zone(factory, "zone-a")
    add_zone(factory, "zone-foreign", caregiver_id=OTHER_CAREGIVER)

    zones = DatabaseZoneProvider(factory)(TEST_CAREGIVER)

    assert [z.id for z in zones] == ["zone-a", "zone-b"]
    assert zones[0].alert_on_exit is True


def test_zone_provider_raises_zone_lookup_error() -> None:
    factory = MagicMock()
    factory.return_value.__enter__.return_value.query.side_effect = OperationalError(
        "select", {}, Exception("db down")
    )

    with pytest.raises(ZoneLookupError):
        DatabaseZoneProvider(factory)(TEST_CAREGIVER)


def test_history_seed_from_persisted_records() -> None:
    factory = build_session_factory()
    with factory() as db:
        insert_history_record(db, build_record(timestamp=at(0), is_checkpoint=True))
        insert_history_record(db, build_record(timestamp=at(60), lng=0.01, distance=1.1))
        insert_history_record(db, build_record(timestamp=at(120), lng=0.02, distance=1.2))

        seed = load_history_seed(db, TEST_CAREGIVER)

    assert seed.last_timestamp == at(120)
    assert seed.aggregate.last_position.longitude == 0.02
    assert seed.aggregate.cumulative_distance_km == pytest.approx(2.3)
    assert seed.aggregate.last_checkpoint_at == at(0)


def test_history_seed_is_none_without_records() -> None:
    factory = build_session_factory()
    assert DatabaseHistoryLoader(factory)(TEST_CAREGIVER) is None


def test_repository_summary_queries() -> None:
    factory = build_session_factory()
    with factory() as db:
        insert_history_record(db, build_record(timestamp=at(0), is_checkpoint=True))
        insert_history_record(db, build_record(timestamp=at(60), distance=0.5))
        insert_history_record(db, build_record(timestamp=at(30), caregiver_id=OTHER_CAREGIVER, distance=9.0))

        assert history_repo.count_records(db, TEST_CAREGIVER) == 2
        assert history_repo.count_records(db, TEST_CAREGIVER, only_checkpoints=True) == 1
        assert history_repo.get_total_distance(db, TEST_CAREGIVER) == pytest.approx(0.5)
        assert history_repo.get_total_distance(db, "nobody") == 0.0
        assert history_repo.get_last_record_by_caregiver(db, TEST_CAREGIVER).DistanceTraveled == 0.5


def test_serialize_history_record_uses_utc_z_suffix() -> None:
    factory = build_session_factory()
    with factory() as db:
        stored = insert_history_record(db, build_record())

    data = serialize_history_record(stored)

    assert data["Timestamp"] == "2025-01-01T12:00:00Z"
    assert data["CaregiverID"] == TEST_CAREGIVER


def test_pipeline_restart_continues_from_database() -> None:
    """A second pipeline over the same database resumes distance and containment."""
    factory = build_session_factory()
    add_zone(factory, "zone-home")

    def new_pipeline() -> TelemetryPipeline:
        return TelemetryPipeline(
            zone_provider=DatabaseZoneProvider(factory),
            record_store=DatabaseRecordStore(factory),
            hub=SubscriptionHub(),
            history_loader=DatabaseHistoryLoader(factory),
            clock=lambda: T0,
        )

    first_run = new_pipeline()
    first = first_run.ingest(build_payload(lng=HOME_LNG, timestamp=at(0)))
    assert first.record.IsCheckpoint is True

    restarted = new_pipeline()
    result = restarted.ingest(build_payload(lng=OUTSIDE_LNG, timestamp=at(60)))

    assert [e.kind for e in result.events] == ["exit"]
    assert result.record.DistanceTraveled > 1.0
    assert result.record.id == 2


def test_restart_after_out_of_order_sample_matches_live_process() -> None:
    """Distance after a restart is measured from the last sample received, like the live process."""
    live_factory = build_session_factory()
    restart_factory = build_session_factory()

    def new_pipeline(factory) -> TelemetryPipeline:
        return TelemetryPipeline(
            zone_provider=DatabaseZoneProvider(factory),
            record_store=DatabaseRecordStore(factory),
            hub=SubscriptionHub(),
            history_loader=DatabaseHistoryLoader(factory),
            clock=lambda: T0,
        )

    live = new_pipeline(live_factory)
    before_restart = new_pipeline(restart_factory)
    for pipeline in (live, before_restart):
        pipeline.ingest(build_payload(lng=0.0, timestamp=at(100)))
        pipeline.ingest(build_payload(lng=1.0, timestamp=at(50)))

    restarted = new_pipeline(restart_factory)
    next_sample = build_payload(lng=1.0, timestamp=at(160))
    live_result = live.ingest(next_sample)
    restarted_result = restarted.ingest(next_sample)

    assert live_result.record.DistanceTraveled == 0.0
    assert restarted_result.record.DistanceTraveled == live_result.record.DistanceTraveled
    assert restarted.snapshot(TEST_CAREGIVER) == live.snapshot(TEST_CAREGIVER)
