# carewatch/Schemas/location.py

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional, Literal


ConnectionStatusType = Literal["online", "offline", "low_battery"]


"""
Validated location sample as reported by the monitored device.
Range checks here are the SampleValidator's acceptance rules.
"""
class LocationSample_in(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    CaregiverID: str = Field(..., min_length=1, max_length=100, description="Caregiver that owns the device")

    Latitude: float = Field(..., ge=-90, le=90, allow_inf_nan=False, description="Latitude in decimal degrees")
    Longitude: float = Field(..., ge=-180, le=180, allow_inf_nan=False, description="Longitude in decimal degrees")
    Timestamp: datetime = Field(..., description="UTC timestamp of the sample")

    BatteryLevel: Optional[float] = Field(None, ge=0, le=100, allow_inf_nan=False, description="Battery percentage")
    Speed: Optional[float] = Field(None, ge=0, allow_inf_nan=False, description="Speed in km/h")
    Accuracy: Optional[float] = Field(None, ge=0, allow_inf_nan=False, description="GPS accuracy in meters")
    RawConnectionStatus: Optional[str] = Field(None, max_length=20, description="Status hint sent by the device")


"""
Base schema shared by the enriched history record schemas.
"""
class HistoryRecord_base(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    CaregiverID: str = Field(..., min_length=1, max_length=100)
    Latitude: float = Field(..., ge=-90, le=90)
    Longitude: float = Field(..., ge=-180, le=180)
    Timestamp: datetime
    BatteryLevel: Optional[float] = Field(None, ge=0, le=100)
    Speed: Optional[float] = Field(None, ge=0)
    Accuracy: Optional[float] = Field(None, ge=0)

    ConnectionStatus: ConnectionStatusType
    IsCheckpoint: bool = False
    DistanceTraveled: float = Field(0.0, ge=0, description="Kilometers since the previous record")


"""
Record handed to the append-only store by the telemetry pipeline.
"""
class HistoryRecord_create(HistoryRecord_base):
    pass


"""
Record as read back from the store, including its internal identifier.
"""
class HistoryRecord_get(HistoryRecord_base):
    id: int = Field(..., description="Internal database record identifier")


class HistorySummary(BaseModel):
    """Dashboard statistics for a caregiver's trip log."""
    caregiver_id: str
    total_records: int = 0
    checkpoints: int = 0
    total_distance_km: float = 0.0
    latest: Optional[HistoryRecord_get] = None
