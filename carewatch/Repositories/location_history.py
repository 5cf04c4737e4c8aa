# carewatch/Repositories/location_history.py
"""
Location History Repository - append-only access to location_history.

Responsibilities:
- Append enriched history records (the only write path)
- Read a caregiver's trip log and its latest records (by timestamp or append order)
- Dashboard aggregates (record count, checkpoint count, total distance)

Records are never updated or deleted here.

Usage:
    from carewatch.Repositories.location_history import append_history_record

    row = append_history_record(db, record)
    db.commit()
"""

from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import List, Optional

from carewatch.Models.location_history import LocationHistory
from carewatch.Schemas.location import HistoryRecord_create


# ==========================================================
# CREATE OPERATIONS
# ==========================================================

def append_history_record(DB: Session, record: HistoryRecord_create) -> LocationHistory:
    """
    Append a new history record to the session and flush it.

    The id is assigned by the flush. The caller owns the transaction and
    commits (or rolls back) once it has read what it needs from the row.

    Args:
        DB: SQLAlchemy session
        record: Enriched record produced by the telemetry pipeline

    Returns:
        LocationHistory: Flushed ORM row with its generated id
    """
    new_row = LocationHistory(**record.model_dump())
    DB.add(new_row)
    DB.flush()
    return new_row


# ==========================================================
# READ OPERATIONS
# ==========================================================

def get_last_record_by_caregiver(DB: Session, caregiver_id: str) -> Optional[LocationHistory]:
    """Most recent record of a caregiver by timestamp (ties broken by id)."""
    return (
        DB.query(LocationHistory)
        .filter(LocationHistory.CaregiverID == caregiver_id)
        .order_by(LocationHistory.Timestamp.desc(), LocationHistory.id.desc())
        .first()
    )


def get_last_appended_record(DB: Session, caregiver_id: str) -> Optional[LocationHistory]:
    """
    Last record written for a caregiver (append order, i.e. highest id).

    Differs from get_last_record_by_caregiver after an out-of-order sample.
    The trip aggregate is folded in this order.
    """
    return (
        DB.query(LocationHistory)
        .filter(LocationHistory.CaregiverID == caregiver_id)
        .order_by(LocationHistory.id.desc())
        .first()
    )


def get_last_appended_checkpoint(DB: Session, caregiver_id: str) -> Optional[LocationHistory]:
    return (
        DB.query(LocationHistory)
        .filter(
            LocationHistory.CaregiverID == caregiver_id,
            LocationHistory.IsCheckpoint.is_(True)
        )
        .order_by(LocationHistory.id.desc())
        .first()
    )


def get_history_by_caregiver(DB: Session, caregiver_id: str) -> List[LocationHistory]:
    """Whole trip log of a caregiver, oldest first (ties broken by id)."""
    return (
        DB.query(LocationHistory)
        .filter(LocationHistory.CaregiverID == caregiver_id)
        .order_by(LocationHistory.Timestamp.asc(), LocationHistory.id.asc())
        .all()
    )


def count_records(DB: Session, caregiver_id: str, only_checkpoints: bool = False) -> int:
    query = DB.query(LocationHistory).filter(LocationHistory.CaregiverID == caregiver_id)

    if only_checkpoints:
        query = query.filter(LocationHistory.IsCheckpoint.is_(True))

    return query.count()


def get_total_distance(DB: Session, caregiver_id: str) -> float:
    """Sum of DistanceTraveled (km) over the caregiver's whole trip log."""
    total = (
        DB.query(func.coalesce(func.sum(LocationHistory.DistanceTraveled), 0.0))
        .filter(LocationHistory.CaregiverID == caregiver_id)
        .scalar()
    )
    return float(total or 0.0)
