# tourapi/api/v1/endpoints/tours.py
from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from tourapi.api.deps.roles import require_admin
from tourapi.core.security import get_caller
from tourapi.db.session import get_db
from tourapi.schemas.auth import Caller
from tourapi.schemas.tours import TourAccessOut, TourStatusIn, TourStatusOut
from tourapi.services.tour_access import advance_tour_status, tour_access_summary

router = APIRouter(prefix="/tours", tags=["tours"])


@router.get("/{tour_id}/access", response_model=TourAccessOut)
def get_tour_access(
    tour_id: int = Path(...),
    db: Session = Depends(get_db),
    _caller: Caller = Depends(get_caller),
):
    return tour_access_summary(db, tour_id)


@router.patch("/{tour_id}/status", response_model=TourStatusOut)
def change_tour_status(
    payload: TourStatusIn,
    tour_id: int = Path(...),
    db: Session = Depends(get_db),
    _admin: Caller = Depends(require_admin),
):
    return advance_tour_status(db, tour_id, payload.status)
