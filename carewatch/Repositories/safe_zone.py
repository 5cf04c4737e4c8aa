# carewatch/Repositories/safe_zone.py

from sqlalchemy.orm import Session
from carewatch.Models.safe_zone import SafeZone
from typing import List


def get_safe_zones_by_caregiver(db: Session, caregiver_id: str) -> List[SafeZone]:
    """
    Zonas seguras de un cuidador, ordenadas por id.

    Solo lectura: las zonas se crean y eliminan desde la gestión de zonas.
    """
    return (
        db.query(SafeZone)
        .filter(SafeZone.caregiver_id == caregiver_id)
        .order_by(SafeZone.id.asc())
        .all()
    )
