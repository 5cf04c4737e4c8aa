"""
tests/fixtures.py

Shared test data and builders for samples, zones and pipelines.
Tests use these builders instead of hardcoding payloads.
"""

import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from carewatch.Core.exceptions import PersistenceError
from carewatch.DB.base import Base
from carewatch.Schemas.location import HistoryRecord_create, HistoryRecord_get, LocationSample_in
from carewatch.Schemas.safe_zone import SafeZone_get
from carewatch.Services.subscription_hub import SubscriptionHub
from carewatch.Services.telemetry_pipeline import TelemetryPipeline


TEST_CAREGIVER = "cg-001"
OTHER_CAREGIVER = "cg-002"

T0 = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

# Zone centered on (0, 0); 0.01 degrees of longitude at the equator is ~1.1 km
HOME_LAT = 0.0
HOME_LNG = 0.0
OUTSIDE_LNG = 0.01


def at(seconds: float) -> datetime:
    """T0 shifted by a number of seconds."""
    return T0 + timedelta(seconds=seconds)


def build_payload(
    caregiver_id: str = TEST_CAREGIVER,
    lat: Any = HOME_LAT,
    lng: Any = HOME_LNG,
    timestamp: Any = None,
    battery_level: Any = 80,
    **extra: Any,
) -> Dict[str, Any]:
    """Raw device payload using the snake_case aliases devices send."""
    ts = timestamp if timestamp is not None else T0
    payload = {
        "caregiver_id": caregiver_id,
        "lat": lat,
        "lng": lng,
        "timestamp": ts.isoformat() if isinstance(ts, datetime) else ts,
        "battery_level": battery_level,
    }
    payload.update(extra)
    return payload


def build_sample(
    caregiver_id: str = TEST_CAREGIVER,
    lat: float = HOME_LAT,
    lng: float = HOME_LNG,
    timestamp: Optional[datetime] = None,
    battery_level: Optional[float] = 80,
    speed: Optional[float] = None,
    accuracy: Optional[float] = None,
) -> LocationSample_in:
    """Already-validated LocationSample_in with sensible defaults."""
    return LocationSample_in(
        CaregiverID=caregiver_id,
        Latitude=lat,
        Longitude=lng,
        Timestamp=timestamp or T0,
        BatteryLevel=battery_level,
        Speed=speed,
        Accuracy=accuracy,
    )


def build_zone(
    zone_id: str = "zone-home",
    caregiver_id: str = TEST_CAREGIVER,
    name: str = "Home",
    lat: float = HOME_LAT,
    lng: float = HOME_LNG,
    radius: float = 100.0,
    alert_on_entry: bool = True,
    alert_on_exit: bool = True,
) -> SafeZone_get:
    """Circular safe zone; alerts on both transitions by default."""
    return SafeZone_get(
        id=zone_id,
        caregiver_id=caregiver_id,
        name=name,
        latitude=lat,
        longitude=lng,
        radius=radius,
        alert_on_entry=alert_on_entry,
        alert_on_exit=alert_on_exit,
    )


class InMemoryRecordStore:
    """Append-only record store that keeps records in a list."""

    def __init__(self) -> None:
        self.records: List[HistoryRecord_get] = []
        self.fail_next = False
        self._lock = threading.Lock()

    def __call__(self, record: HistoryRecord_create) -> HistoryRecord_get:
        if self.fail_next:
            self.fail_next = False
            raise PersistenceError(record.CaregiverID, "simulated write failure")
        with self._lock:
            stored = HistoryRecord_get(id=len(self.records) + 1, **record.model_dump())
            self.records.append(stored)
        return stored


def static_zone_provider(zones: Sequence[SafeZone_get]):
    """Zone provider returning the given zones of the requested caregiver."""
    def provider(caregiver_id: str) -> List[SafeZone_get]:
        return [zone for zone in zones if zone.caregiver_id == caregiver_id]
    return provider


def build_pipeline(
    zones: Sequence[SafeZone_get] = (),
    store: Optional[InMemoryRecordStore] = None,
    hub: Optional[SubscriptionHub] = None,
    now: Optional[datetime] = None,
    **kwargs: Any,
) -> TelemetryPipeline:
    """
    Pipeline wired to in-memory collaborators and a fixed clock.

    Extra keyword arguments are passed to TelemetryPipeline (zone_provider
    overrides the static zones).
    """
    kwargs.setdefault("zone_provider", static_zone_provider(zones))
    return TelemetryPipeline(
        record_store=store if store is not None else InMemoryRecordStore(),
        hub=hub if hub is not None else SubscriptionHub(queue_size=10),
        clock=lambda: now or T0,
        **kwargs,
    )


def build_session_factory():
    """In-memory SQLite database shared across threads, with all tables created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
