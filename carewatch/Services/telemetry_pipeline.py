# carewatch/Services/telemetry_pipeline.py
"""
Telemetry Pipeline
==================
Orchestrates one location sample end to end:

    validator → classifier → evaluator → aggregator → persistence → notify

Architecture:
- Collaborators are injected (zone provider, record store, hub), so the
  pipeline runs the same against the database or in-memory fakes
- Per-caregiver state lives in a CaregiverStateStore cell; ingest holds the
  cell's lock for the whole sequence, so two samples of the same caregiver
  never interleave while different caregivers run in parallel
- New state is computed from the prior snapshot and committed only after the
  record store confirmed the write: a failed write leaves the cell at its
  pre-call value and nobody is notified

Cold start:
- The first time a caregiver is seen by this process, the optional
  history_loader rebuilds the TripAggregate from persisted history and the
  containment from the last persisted position (silently, no events)

Usage:
    from carewatch.Services.telemetry_pipeline import telemetry_pipeline

    result = telemetry_pipeline.ingest(payload)
    if result.status == "accepted":
        print(result.record.IsCheckpoint, result.events)
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from carewatch.Core.config import settings
from carewatch.Core.exceptions import PersistenceError, ZoneLookupError
from carewatch.Core import log_ws
from carewatch.DB.session import SessionLocal
from carewatch.Schemas.location import HistoryRecord_create, HistoryRecord_get, LocationSample_in
from carewatch.Schemas.safe_zone import SafeZone_get
from carewatch.Schemas.telemetry import IngestAccepted, IngestRejected, RejectionReason
from carewatch.Schemas.tracking_state import ContainmentState, GeofenceEvent, HistorySeed, Position, TripAggregate
from carewatch.Services.caregiver_state import CaregiverCell, CaregiverStateStore
from carewatch.Services.event_handlers import DatabaseHistoryLoader, DatabaseRecordStore, DatabaseZoneProvider
from carewatch.Services.geofence_evaluator import GeofenceEvaluator, geofence_evaluator
from carewatch.Services.status_classifier import StatusClassifier, status_classifier
from carewatch.Services.subscription_hub import SubscriptionHub, subscription_hub
from carewatch.Services.telemetry_core import validate_sample
from carewatch.Services.trip_aggregator import TripAggregator, trip_aggregator


ZoneProvider = Callable[[str], Sequence[SafeZone_get]]
RecordStore = Callable[[HistoryRecord_create], HistoryRecord_get]
HistoryLoader = Callable[[str], Optional[HistorySeed]]

IngestResult = Union[IngestAccepted, IngestRejected]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TelemetryPipeline:
    """
    Per-sample orchestration of the telemetry core.

    Args:
        zone_provider: caregiver_id → read-only snapshot of safe zones.
            Raises ZoneLookupError when the zone source is unavailable.
        record_store: Appends a HistoryRecord_create, returns the stored
            HistoryRecord_get. Raises PersistenceError on failure.
        hub: Live subscription registry to notify after each commit
        state_store: Per-caregiver cells (a private store by default)
        classifier / evaluator / aggregator: Component instances
        clock: Returns the current UTC instant (used by the classifier)
        history_loader: Optional cold-start seed source
        zone_lookup_fail_open: Skip geofences (containment unchanged) instead of failing
            when the zone lookup raises ZoneLookupError
    """

    def __init__(
        self,
        zone_provider: ZoneProvider,
        record_store: RecordStore,
        hub: Optional[SubscriptionHub] = None,
        state_store: Optional[CaregiverStateStore] = None,
        classifier: Optional[StatusClassifier] = None,
        evaluator: Optional[GeofenceEvaluator] = None,
        aggregator: Optional[TripAggregator] = None,
        clock: Optional[Callable[[], datetime]] = None,
        history_loader: Optional[HistoryLoader] = None,
        zone_lookup_fail_open: Optional[bool] = None
    ):
        self.zone_provider = zone_provider
        self.record_store = record_store
        self.hub = hub if hub is not None else subscription_hub
        self.state_store = state_store if state_store is not None else CaregiverStateStore()
        self.classifier = classifier if classifier is not None else status_classifier
        self.evaluator = evaluator if evaluator is not None else geofence_evaluator
        self.aggregator = aggregator if aggregator is not None else trip_aggregator
        self.clock = clock if clock is not None else _utc_now
        self.history_loader = history_loader
        self.zone_lookup_fail_open = (
            settings.ZONE_LOOKUP_FAIL_OPEN if zone_lookup_fail_open is None else zone_lookup_fail_open
        )

    # ==========================================================
    # COLLABORATORS
    # ==========================================================

    def _load_zones(self, caregiver_id: str) -> Optional[List[SafeZone_get]]:
        """
        Zone snapshot of a caregiver.

        Returns None when the lookup failed and the pipeline fails open:
        geofences are skipped and prior containment is kept as is.
        """
        try:
            return list(self.zone_provider(caregiver_id))
        except ZoneLookupError as lookup_error:
            if not self.zone_lookup_fail_open:
                print(f"[PIPELINE] Zone lookup failed for {caregiver_id}, failing closed: {lookup_error}")
                log_ws.log_from_thread(
                    f"[PIPELINE] Zone lookup failed for caregiver '{caregiver_id}', sample not recorded",
                    msg_type="error"
                )
                raise
            print(f"[PIPELINE] Zone lookup failed for {caregiver_id}, keeping prior containment: {lookup_error}")
            log_ws.log_from_thread(
                f"[PIPELINE] Zone lookup failed for caregiver '{caregiver_id}', geofences skipped",
                msg_type="warning"
            )
            return None

    def _prior_state(
        self,
        cell: CaregiverCell,
        zones: Optional[Sequence[SafeZone_get]]
    ) -> Tuple[Dict[str, ContainmentState], Optional[TripAggregate]]:
        """
        State the new sample is evaluated against.

        For a cell that was never hydrated, the seed is only returned here;
        it reaches the cell together with the result of this sample.
        """
        if cell.hydrated or self.history_loader is None:
            return dict(cell.containment), cell.aggregate

        seed = self.history_loader(cell.caregiver_id)
        if seed is None:
            return {}, None

        last_position = seed.aggregate.last_position
        containment = {}
        if last_position is not None:
            containment = self.evaluator.containment_snapshot(last_position, zones or [], seed.last_timestamp)

        print(
            f"[PIPELINE] Caregiver {cell.caregiver_id} seeded from history: "
            f"{seed.aggregate.cumulative_distance_km:.3f} km, {len(containment)} zones"
        )
        return containment, seed.aggregate

    # ==========================================================
    # INGEST
    # ==========================================================

    def ingest(self, raw_sample: Union[Mapping[str, Any], LocationSample_in]) -> IngestResult:
        """
        Runs one sample through the pipeline.

        Args:
            raw_sample: Device payload (dict with any supported aliases) or
                an already-built LocationSample_in

        Returns:
            IngestAccepted: record as stored + geofence events (id order)
            IngestRejected: validation failure; no state touched

        Raises:
            PersistenceError: The record could not be stored (state rolled back)
            ZoneLookupError: Zones unavailable and the pipeline fails closed
        """
        candidate = validate_sample(raw_sample)
        if isinstance(candidate, RejectionReason):
            return IngestRejected(reason=candidate)

        caregiver_id = candidate.CaregiverID
        now = self.clock()

        with self.state_store.exclusive(caregiver_id) as cell:
            zones = self._load_zones(caregiver_id)
            prior_containment, prior_aggregate = self._prior_state(cell, zones)

            status = self.classifier.classify(candidate, now)

            position = Position(latitude=candidate.Latitude, longitude=candidate.Longitude)
            if zones is None:
                containment, events = prior_containment, []
            else:
                containment, events = self.evaluator.evaluate(
                    caregiver_id,
                    position,
                    zones,
                    prior_containment,
                    candidate.Timestamp
                )

            aggregate, is_checkpoint, delta_km = self.aggregator.aggregate(
                caregiver_id,
                candidate,
                prior_aggregate,
                had_events=bool(events)
            )

            record = HistoryRecord_create(
                CaregiverID=caregiver_id,
                Latitude=candidate.Latitude,
                Longitude=candidate.Longitude,
                Timestamp=candidate.Timestamp,
                BatteryLevel=candidate.BatteryLevel,
                Speed=candidate.Speed,
                Accuracy=candidate.Accuracy,
                ConnectionStatus=status,
                IsCheckpoint=is_checkpoint,
                DistanceTraveled=delta_km
            )

            try:
                stored = self.record_store(record)
            except PersistenceError:
                print(f"[PIPELINE] Record for {caregiver_id} not stored, state left unchanged")
                raise

            cell.commit(containment, aggregate)
            cell.hydrated = True

            # Still under the caregiver lock: viewers see records in commit order
            self.hub.notify(caregiver_id, stored, events)

        self._log_events(events)
        print(
            f"[PIPELINE] {caregiver_id}: record {stored.id} {status}"
            f"{' checkpoint' if is_checkpoint else ''}, +{delta_km:.3f} km, {len(events)} events"
        )

        return IngestAccepted(record=stored, events=events)

    def _log_events(self, events: Sequence[GeofenceEvent]):
        for event in events:
            print(f"[GEOFENCE] {event.caregiver_id}: {event.kind.upper()} '{event.zone_name}' ({event.zone_id})")
            log_ws.log_from_thread(
                f"[GEOFENCE] {event.kind.upper()} {event.zone_name} for caregiver '{event.caregiver_id}'",
                msg_type="warning" if event.kind == "exit" else "log"
            )

    def snapshot(self, caregiver_id: str) -> Tuple[Dict[str, ContainmentState], Optional[TripAggregate]]:
        """Committed containment and aggregate of a caregiver."""
        return self.state_store.snapshot(caregiver_id)


# --------------------------------------------------------
# GLOBAL INSTANCE (Singleton)
# --------------------------------------------------------
telemetry_pipeline = TelemetryPipeline(
    zone_provider=DatabaseZoneProvider(SessionLocal),
    record_store=DatabaseRecordStore(SessionLocal),
    hub=subscription_hub,
    history_loader=DatabaseHistoryLoader(SessionLocal)
)
