# carewatch/Services/trip_aggregator.py
"""
Trip Aggregator Service - running distance and checkpoint bookkeeping.

Responsibilities:
- Compute the incremental distance between consecutive accepted samples
- Accumulate the caregiver's total distance (never decreases)
- Decide whether a record is a checkpoint

Checkpoint rules (any of):
1. No checkpoint recorded yet for the caregiver
2. More than CHECKPOINT_INTERVAL_S elapsed since the last checkpoint
3. The geofence evaluator produced at least one event for this sample

Key Concepts:
- Stateless: receives the prior TripAggregate and returns a new one
- No outlier filtering: GPS jumps are accepted as computed
"""

from datetime import datetime, timezone
from typing import Optional, Tuple

from carewatch.Core.config import settings
from carewatch.Schemas.location import LocationSample_in
from carewatch.Schemas.tracking_state import Position, TripAggregate
from carewatch.Services.distance import calculate_haversine_distance_km


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class TripAggregator:
    """
    Stateless trip aggregation engine.
    """

    def __init__(self, checkpoint_interval_s: Optional[float] = None):
        self.checkpoint_interval_s = (
            settings.CHECKPOINT_INTERVAL_S if checkpoint_interval_s is None else checkpoint_interval_s
        )

    def is_checkpoint(
        self,
        prior: Optional[TripAggregate],
        timestamp: datetime,
        had_events: bool
    ) -> bool:
        if prior is None or prior.last_checkpoint_at is None:
            return True

        if had_events:
            return True

        # Out-of-order samples give a negative elapsed time and never tick
        elapsed = (_as_utc(timestamp) - _as_utc(prior.last_checkpoint_at)).total_seconds()
        return elapsed > self.checkpoint_interval_s

    def aggregate(
        self,
        caregiver_id: str,
        sample: LocationSample_in,
        prior: Optional[TripAggregate],
        had_events: bool = False
    ) -> Tuple[TripAggregate, bool, float]:
        """
        Folds an accepted sample into the caregiver's trip aggregate.

        Args:
            caregiver_id: Owner of the aggregate
            sample: Validated sample being recorded
            prior: Aggregate before this sample (None on the first sample)
            had_events: Whether this sample produced geofence events

        Returns:
            (updated aggregate, is_checkpoint, distance delta in km)

        Examples:
            >>> agg, checkpoint, delta = trip_aggregator.aggregate("cg-1", sample, None)
            >>> checkpoint, delta
            (True, 0.0)
        """
        position = Position(latitude=sample.Latitude, longitude=sample.Longitude)

        if prior is None:
            prior = TripAggregate(caregiver_id=caregiver_id)

        if prior.last_position is None:
            delta_km = 0.0
        else:
            delta_km = calculate_haversine_distance_km(
                prior.last_position.latitude,
                prior.last_position.longitude,
                position.latitude,
                position.longitude
            )

        checkpoint = self.is_checkpoint(prior, sample.Timestamp, had_events)

        updated = prior.model_copy(update={
            "last_position": position,
            "cumulative_distance_km": prior.cumulative_distance_km + delta_km,
            "last_checkpoint_at": sample.Timestamp if checkpoint else prior.last_checkpoint_at,
        })

        return updated, checkpoint, delta_km


# --------------------------------------------------------
# GLOBAL INSTANCE (Singleton)
# --------------------------------------------------------
trip_aggregator = TripAggregator()
