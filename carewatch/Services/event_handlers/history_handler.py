# carewatch/Services/event_handlers/history_handler.py
"""
History Seed Handler
====================
Rebuilds a caregiver's TripAggregate from persisted history, so a restarted
process continues distance accounting and checkpoint spacing instead of
starting a new trip log.

- last_position: position of the last appended record (arrival order, the
  order the aggregator folds samples in)
- cumulative_distance_km: sum of DistanceTraveled
- last_checkpoint_at: timestamp of the last appended checkpoint
"""

from typing import Callable, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from carewatch.Repositories.location_history import (
    get_last_appended_record,
    get_last_appended_checkpoint,
    get_total_distance,
)
from carewatch.Schemas.tracking_state import HistorySeed, Position, TripAggregate
from carewatch.Services.history_serialization import record_from_row
from carewatch.Core.exceptions import PersistenceError


def load_history_seed(db: Session, caregiver_id: str) -> Optional[HistorySeed]:
    last = record_from_row(get_last_appended_record(db, caregiver_id))
    if last is None:
        return None

    checkpoint = record_from_row(get_last_appended_checkpoint(db, caregiver_id))

    aggregate = TripAggregate(
        caregiver_id=caregiver_id,
        last_position=Position(latitude=last.Latitude, longitude=last.Longitude),
        cumulative_distance_km=get_total_distance(db, caregiver_id),
        last_checkpoint_at=checkpoint.Timestamp if checkpoint else None,
    )
    return HistorySeed(aggregate=aggregate, last_timestamp=last.Timestamp)


class DatabaseHistoryLoader:
    """
    Callable history seed source backed by location_history.

    Raises:
        PersistenceError: If the history cannot be read
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def __call__(self, caregiver_id: str) -> Optional[HistorySeed]:
        try:
            with self.session_factory() as db:
                return load_history_seed(db, caregiver_id)
        except SQLAlchemyError as db_error:
            print(f"[HISTORY] Seed load failed for caregiver '{caregiver_id}': {db_error}")
            raise PersistenceError(caregiver_id, f"History read failed: {db_error}") from db_error
