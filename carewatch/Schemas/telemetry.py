# carewatch/Schemas/telemetry.py

from pydantic import BaseModel, Field
from typing import List, Literal

from carewatch.Schemas.location import HistoryRecord_get
from carewatch.Schemas.tracking_state import GeofenceEvent


RejectionCode = Literal[
    "invalid_coordinates",
    "invalid_timestamp",
    "invalid_battery",
    "invalid_speed",
    "invalid_accuracy",
    "malformed",
]


class RejectionReason(BaseModel):
    """Why a sample was dropped by the validator."""
    code: RejectionCode
    detail: str = ""


class IngestAccepted(BaseModel):
    status: Literal["accepted"] = "accepted"
    record: HistoryRecord_get
    events: List[GeofenceEvent] = Field(default_factory=list)


class IngestRejected(BaseModel):
    status: Literal["rejected"] = "rejected"
    reason: RejectionReason


class LiveUpdate(BaseModel):
    """Message pushed to live subscribers after a record is committed."""
    caregiver_id: str
    record: HistoryRecord_get
    events: List[GeofenceEvent] = Field(default_factory=list)
