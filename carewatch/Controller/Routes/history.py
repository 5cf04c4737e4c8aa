# carewatch/Controller/Routes/history.py
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from carewatch.Controller.deps import get_DB
from carewatch.Repositories import location_history as history_repo
from carewatch.Schemas import location as location_schema
from carewatch.Services.history_serialization import record_from_row

router = APIRouter()


@router.get("/last", response_model=location_schema.HistoryRecord_get)
def get_last_record(
    caregiver_id: str = Query(..., description="Caregiver ID (required)"),
    DB: Session = Depends(get_DB)
):
    """
    Get the most recent history record of a caregiver.

    Example:
        GET /history/last?caregiver_id=cg-1

    Raises:
        404: No history for the caregiver
    """
    last_row = history_repo.get_last_record_by_caregiver(DB, caregiver_id)

    if last_row is None:
        raise HTTPException(
            status_code=404,
            detail=f"No history found for caregiver '{caregiver_id}'"
        )

    return record_from_row(last_row)


@router.get("/summary", response_model=location_schema.HistorySummary)
def get_history_summary(
    caregiver_id: str = Query(..., description="Caregiver ID (required)"),
    DB: Session = Depends(get_DB)
):
    """
    Dashboard statistics of a caregiver's trip log.

    Returns:
        {
            "caregiver_id": "cg-1",
            "total_records": 120,
            "checkpoints": 9,
            "total_distance_km": 14.2,
            "latest": {...} | null
        }
    """
    return location_schema.HistorySummary(
        caregiver_id=caregiver_id,
        total_records=history_repo.count_records(DB, caregiver_id),
        checkpoints=history_repo.count_records(DB, caregiver_id, only_checkpoints=True),
        total_distance_km=history_repo.get_total_distance(DB, caregiver_id),
        latest=record_from_row(history_repo.get_last_record_by_caregiver(DB, caregiver_id))
    )


@router.get("", response_model=List[location_schema.HistoryRecord_get])
def get_history(
    caregiver_id: str = Query(..., description="Caregiver ID (required)"),
    DB: Session = Depends(get_DB)
):
    """
    Whole trip log of a caregiver, oldest first.

    Used by the history view to draw the path. Empty list if the caregiver
    has no records.

    Example:
        GET /history?caregiver_id=cg-1
    """
    rows = history_repo.get_history_by_caregiver(DB, caregiver_id)
    return [record_from_row(row) for row in rows]
