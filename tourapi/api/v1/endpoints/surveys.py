# tourapi/api/v1/endpoints/surveys.py
from io import BytesIO
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Path, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from tourapi.api.deps.roles import require_admin, require_guide_or_admin
from tourapi.core.security import get_caller
from tourapi.db.session import get_db
from tourapi.schemas.auth import Caller
from tourapi.schemas.surveys import (
    AggregatedQuestion, PublicLinkOut, SaveProgressIn, SubmitIn, SubmitOut,
    SurveyResponseOut, SurveyResponseStats, SurveyStatusIn, SurveyStatusOut,
)
from tourapi.services import survey_responses, survey_stats, surveys
from tourapi.services.report_export import XLSX_MEDIA_TYPE, survey_workbook

router = APIRouter(prefix="/surveys", tags=["surveys"])


# ==================== Responder ====================

@router.post("/{survey_id}/submit", response_model=SubmitOut, status_code=201)
def submit_survey(
    payload: SubmitIn,
    survey_id: int = Path(...),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    resp = survey_responses.submit_response(db, survey_id, caller, payload)
    return SubmitOut(message="Survey submitted successfully", response_id=resp.id)


@router.post("/{survey_id}/save-progress", response_model=SubmitOut)
def save_survey_progress(
    payload: SaveProgressIn,
    survey_id: int = Path(...),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    resp = survey_responses.save_progress(db, survey_id, caller, payload)
    return SubmitOut(message="Progress saved successfully", response_id=resp.id)


@router.get("/{survey_id}/my-response", response_model=Optional[SurveyResponseOut])
def my_response(
    survey_id: int = Path(...),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    resp = survey_responses.get_user_response(db, survey_id, caller)
    return survey_responses.response_out(resp) if resp else None


# ==================== Resultados (Guide/Admin) ====================

@router.get("/{survey_id}/responses", response_model=List[SurveyResponseOut])
def list_survey_responses(
    survey_id: int = Path(...),
    include_details: bool = Query(False, description="Incluye las respuestas por pregunta"),
    db: Session = Depends(get_db),
    _staff: Caller = Depends(require_guide_or_admin),
):
    rows = survey_responses.list_responses(db, survey_id)
    return [survey_responses.response_out(r, include_answers=include_details) for r in rows]


@router.get("/{survey_id}/stats", response_model=SurveyResponseStats)
def survey_stats_endpoint(
    survey_id: int = Path(...),
    db: Session = Depends(get_db),
    _staff: Caller = Depends(require_guide_or_admin),
):
    return survey_stats.compute_stats(db, survey_id)


@router.get("/{survey_id}/aggregated-responses", response_model=Dict[int, AggregatedQuestion])
def aggregated_responses_endpoint(
    survey_id: int = Path(...),
    db: Session = Depends(get_db),
    _staff: Caller = Depends(require_guide_or_admin),
):
    return survey_stats.aggregated_responses(db, survey_id)


@router.get("/{survey_id}/responses/export")
def export_survey_responses(
    survey_id: int = Path(...),
    db: Session = Depends(get_db),
    _staff: Caller = Depends(require_guide_or_admin),
):
    content = survey_workbook(db, survey_id)
    filename = f"survey_{survey_id}_responses.xlsx"
    return StreamingResponse(
        BytesIO(content),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ==================== Administración (Admin) ====================

@router.patch("/{survey_id}/status", response_model=SurveyStatusOut)
def change_status(
    payload: SurveyStatusIn,
    survey_id: int = Path(...),
    db: Session = Depends(get_db),
    _admin: Caller = Depends(require_admin),
):
    return surveys.change_survey_status(db, survey_id, payload.status)


@router.post("/{survey_id}/generate-public-link", response_model=PublicLinkOut)
def generate_public_link(
    survey_id: int = Path(...),
    db: Session = Depends(get_db),
    _admin: Caller = Depends(require_admin),
):
    survey = surveys.generate_public_link(db, survey_id)
    return PublicLinkOut(
        message="Public link generated successfully",
        token=survey.public_access_token,
        public_url=surveys.public_url_for(survey.public_access_token),
        expires_at=survey.public_access_expires_at,
    )


@router.delete("/{survey_id}/revoke-public-link")
def revoke_public_link(
    survey_id: int = Path(...),
    db: Session = Depends(get_db),
    _admin: Caller = Depends(require_admin),
):
    surveys.revoke_public_link(db, survey_id)
    return {"message": "Public link revoked successfully"}
