# carewatch/Models/location_history.py
from sqlalchemy.orm import declared_attr
from sqlalchemy import (
    Column, BigInteger, Integer, String, Float, Boolean, DateTime,
    CheckConstraint, func, Index
)
from carewatch.DB.base_class import Base


class LocationHistory(Base):
    """
    SQLAlchemy model for the append-only location history of a caregiver.

    Each row is a HistoryRecord: a validated location sample enriched by the
    telemetry pipeline with its classified connection status, checkpoint flag
    and the incremental distance since the previous record.

    Rows are never updated or deleted by the core.
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "location_history"

    # BIGINT does not alias ROWID on SQLite, so local databases use INTEGER
    id = Column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True
    )

    CaregiverID = Column(
        String(100),
        nullable=False,
        index=True,
        doc="Caregiver that owns the monitored device"
    )

    # Position (WGS-84 degrees)
    Latitude = Column(Float, nullable=False)
    Longitude = Column(Float, nullable=False)

    # Timestamp stored as timezone-aware DateTime (UTC)
    Timestamp = Column(
        DateTime(timezone=True),
        nullable=False
    )

    # Optional device readings
    BatteryLevel = Column(Float, nullable=True, doc="Battery percentage (0-100)")
    Speed = Column(Float, nullable=True, doc="Speed in km/h")
    Accuracy = Column(Float, nullable=True, doc="GPS accuracy in meters")

    # ========================================
    # PIPELINE ENRICHMENT
    # ========================================
    ConnectionStatus = Column(
        String(20),
        nullable=False,
        doc="Classified status: online, offline, low_battery"
    )

    IsCheckpoint = Column(
        Boolean,
        nullable=False,
        default=False,
        doc="First sample, periodic tick or geofence-triggered record"
    )

    DistanceTraveled = Column(
        Float,
        nullable=False,
        default=0.0,
        doc="Kilometers traveled since the previous record"
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index('idx_caregiver_timestamp', CaregiverID, Timestamp),
        Index('idx_caregiver_checkpoint', CaregiverID, IsCheckpoint),
        CheckConstraint(
            '"ConnectionStatus" IN (\'online\', \'offline\', \'low_battery\')',
            name='check_connection_status'
        ),
        CheckConstraint('"DistanceTraveled" >= 0', name='check_distance_non_negative'),
    )

    def __repr__(self) -> str:
        return (
            f"<LocationHistory(id={self.id}, CaregiverID={self.CaregiverID!r}, "
            f"Lat={self.Latitude:.4f}, Lon={self.Longitude:.4f}, status={self.ConnectionStatus!r})>"
        )
