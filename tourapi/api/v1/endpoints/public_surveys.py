# tourapi/api/v1/endpoints/public_surveys.py
"""Acceso sin cuenta mediante el token del enlace público (sin Bearer)."""
from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from tourapi.core.errors import NotFound
from tourapi.db.session import get_db
from tourapi.schemas.surveys import PublicSubmitIn, PublicSurveyOut, SubmitOut
from tourapi.services import survey_responses
from tourapi.services.surveys import find_public_survey

router = APIRouter(prefix="/public/surveys", tags=["public-surveys"])


@router.get("/{token}", response_model=PublicSurveyOut)
def get_public_survey(token: str = Path(...), db: Session = Depends(get_db)):
    survey = find_public_survey(db, token)
    if survey is None:
        raise NotFound("Survey not found or access has expired")
    return survey


@router.post("/{token}/submit", response_model=SubmitOut, status_code=201)
def submit_public_survey(
    payload: PublicSubmitIn,
    token: str = Path(...),
    db: Session = Depends(get_db),
):
    resp = survey_responses.submit_anonymous(db, token, payload)
    return SubmitOut(message="Thank you for your response", response_id=resp.id)


@router.post("/{token}/save-progress", response_model=SubmitOut)
def save_public_progress(
    payload: PublicSubmitIn,
    token: str = Path(...),
    db: Session = Depends(get_db),
):
    resp = survey_responses.save_anonymous_progress(db, token, payload)
    return SubmitOut(message="Progress saved successfully", response_id=resp.id)
