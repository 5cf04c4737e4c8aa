# carewatch/Controller/Routes/safe_zones.py
from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from carewatch.Controller.deps import get_DB
from carewatch.Schemas.safe_zone import SafeZone_get
from carewatch.Services.event_handlers import load_safe_zones

router = APIRouter()


@router.get("", response_model=List[SafeZone_get])
def list_safe_zones(
    caregiver_id: str = Query(..., description="Caregiver ID (required)"),
    db: Session = Depends(get_DB)
):
    """
    Zonas seguras del cuidador (solo lectura), ordenadas por id.

    Ejemplo:
        GET /safe_zones?caregiver_id=cg-1
    """
    return load_safe_zones(db, caregiver_id)
