# carewatch/Models/safe_zone.py

from sqlalchemy import Column, String, Float, Boolean, DateTime, CheckConstraint, func
from sqlalchemy.orm import declared_attr
from carewatch.DB.base_class import Base


class SafeZone(Base):
    """
    Circular safe zone configured by a caregiver.

    Rows are created and deleted by the safe-zone management screens; the
    telemetry core only reads them.
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "safe_zones"

    id = Column(String(100), primary_key=True)
    caregiver_id = Column(String(100), nullable=False, index=True)
    name = Column(String(200), nullable=False)

    # Center of the circle (WGS-84 degrees)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)

    # Radius in meters
    radius = Column(Float, nullable=False, default=100.0)

    alert_on_entry = Column(Boolean, nullable=False, default=False)
    alert_on_exit = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint('radius > 0', name='check_radius_positive'),
    )

    def __repr__(self):
        return f"<SafeZone(id={self.id!r}, name={self.name!r}, radius={self.radius})>"
