# carewatch/Schemas/safe_zone.py

from pydantic import BaseModel, ConfigDict, Field

from carewatch.Schemas.tracking_state import Position


class SafeZone_get(BaseModel):
    """Read-only snapshot of a caregiver's circular safe zone."""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str = Field(..., min_length=1, max_length=100)
    caregiver_id: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=200)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    radius: float = Field(..., gt=0, description="Radius in meters")
    alert_on_entry: bool = False
    alert_on_exit: bool = True

    @property
    def center(self) -> Position:
        return Position(latitude=self.latitude, longitude=self.longitude)
