# carewatch/Controller/Routes/telemetry.py
from typing import Any, Dict
from fastapi import APIRouter, Body, Depends, HTTPException
from carewatch.Controller.deps import get_pipeline
from carewatch.Core.exceptions import PersistenceError, ZoneLookupError
from carewatch.Schemas.telemetry import IngestAccepted
from carewatch.Services.telemetry_pipeline import TelemetryPipeline

router = APIRouter()


@router.post("", response_model=IngestAccepted, status_code=201)
def ingest_sample(
    payload: Dict[str, Any] = Body(..., description="Location sample reported by the device"),
    pipeline: TelemetryPipeline = Depends(get_pipeline)
):
    """
    Device ingress: run one location sample through the telemetry pipeline.

    Accepts canonical field names (CaregiverID, Latitude, ...) and the usual
    aliases (caregiver_id, lat, lng, battery_level, ...). Timestamps may be
    ISO-8601 strings or UNIX seconds/milliseconds.

    Returns:
        201: Stored record plus the geofence events it produced

    Raises:
        422: Sample rejected (detail carries the RejectionReason)
        503: Record could not be stored or safe zones are unavailable

    Example:
        POST /telemetry
        {"caregiver_id": "cg-1", "lat": 10.99, "lng": -74.81,
         "timestamp": "2025-01-01T12:00:00Z", "battery_level": 80}
    """
    try:
        result = pipeline.ingest(payload)
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=f"Record not stored: {e}")
    except ZoneLookupError as e:
        raise HTTPException(status_code=503, detail=f"Safe zones unavailable: {e}")

    if result.status == "rejected":
        raise HTTPException(status_code=422, detail=result.reason.model_dump())

    return result
