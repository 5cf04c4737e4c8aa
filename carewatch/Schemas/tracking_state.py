# carewatch/Schemas/tracking_state.py
"""
Per-caregiver derived state and the events computed from it.

All models are frozen: components return new instances instead of mutating
the ones they receive, so the pipeline can discard them if persistence fails.
"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional, Literal


class Position(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class ContainmentState(BaseModel):
    """Whether the caregiver's device was inside a zone at its last evaluation."""
    model_config = ConfigDict(frozen=True)

    zone_id: str
    is_inside: bool = False
    timestamp: datetime


class GeofenceEvent(BaseModel):
    """Entry or exit transition detected for one zone."""
    model_config = ConfigDict(frozen=True)

    caregiver_id: str
    zone_id: str
    zone_name: Optional[str] = None
    kind: Literal["entry", "exit"]
    occurred_at: datetime
    position: Position


class TripAggregate(BaseModel):
    """Running distance and checkpoint bookkeeping for a caregiver."""
    model_config = ConfigDict(frozen=True)

    caregiver_id: str
    last_position: Optional[Position] = None
    cumulative_distance_km: float = Field(0.0, ge=0)
    last_checkpoint_at: Optional[datetime] = None


class HistorySeed(BaseModel):
    """Trip state rebuilt from persisted history after a cold start."""
    model_config = ConfigDict(frozen=True)

    aggregate: TripAggregate
    last_timestamp: datetime
