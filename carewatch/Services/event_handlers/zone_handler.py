# carewatch/Services/event_handlers/zone_handler.py
"""
Safe Zone Lookup Handler
========================
Loads a read-only snapshot of a caregiver's safe zones for one evaluation.

Zones are not cached: every ingest asks for a fresh snapshot, so the list is
only as stale as the underlying table.
"""

from typing import Callable, List
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from carewatch.Repositories.safe_zone import get_safe_zones_by_caregiver
from carewatch.Schemas.safe_zone import SafeZone_get
from carewatch.Core.exceptions import ZoneLookupError


def load_safe_zones(db: Session, caregiver_id: str) -> List[SafeZone_get]:
    return [SafeZone_get.model_validate(row) for row in get_safe_zones_by_caregiver(db, caregiver_id)]


class DatabaseZoneProvider:
    """
    Zone provider backed by the safe_zones table.

    Raises:
        ZoneLookupError: If the table cannot be read
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def __call__(self, caregiver_id: str) -> List[SafeZone_get]:
        try:
            with self.session_factory() as db:
                return load_safe_zones(db, caregiver_id)
        except SQLAlchemyError as db_error:
            print(f"[ZONES] Lookup failed for caregiver '{caregiver_id}': {db_error}")
            raise ZoneLookupError(caregiver_id, f"Safe zone lookup failed: {db_error}") from db_error
