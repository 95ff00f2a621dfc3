# tourapi/services/surveys.py
"""Operaciones a nivel de encuesta: carga, enlace público y ciclo de estados."""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta

from sqlalchemy.orm import Session, selectinload

from tourapi.core.config import settings
from tourapi.core.errors import InvalidToken, InvalidTransition, SurveyNotFound
from tourapi.models.survey import Survey, SurveyQuestion, SurveyStatus
from tourapi.utils.time import as_utc, now_utc

logger = logging.getLogger(__name__)

# DRAFT -> ACTIVE -> ARCHIVED (por convención, no hay constraint en BD)
_STATUS_ORDER = [SurveyStatus.DRAFT.value, SurveyStatus.ACTIVE.value, SurveyStatus.ARCHIVED.value]


def get_survey(db: Session, survey_id: int) -> Survey:
    survey = (
        db.query(Survey)
        .options(selectinload(Survey.questions).selectinload(SurveyQuestion.options))
        .filter(Survey.id == survey_id)
        .first()
    )
    if survey is None:
        raise SurveyNotFound()
    return survey


def find_public_survey(db: Session, token: str, now: datetime | None = None) -> Survey | None:
    """
    Encuesta con token válido: allow_public_access, ACTIVE y sin expirar.
    None si el token no es un UUID o no cumple las condiciones.
    """
    try:
        token_uuid = uuid.UUID(str(token))
    except ValueError:
        return None

    survey = (
        db.query(Survey)
        .options(selectinload(Survey.questions).selectinload(SurveyQuestion.options))
        .filter(
            Survey.public_access_token == token_uuid,
            Survey.allow_public_access.is_(True),
            Survey.status == SurveyStatus.ACTIVE.value,
        )
        .first()
    )
    if survey is None:
        return None

    now = as_utc(now) if now is not None else now_utc()
    expires = as_utc(survey.public_access_expires_at)
    if expires is not None and expires <= now:
        return None
    return survey


def resolve_public_survey(db: Session, token: str, now: datetime | None = None) -> Survey:
    survey = find_public_survey(db, token, now)
    if survey is None:
        raise InvalidToken()
    return survey


def public_url_for(token: uuid.UUID) -> str:
    base = settings.PUBLIC_SURVEY_BASE_URL.rstrip("/")
    return f"{base}/public/survey/{token}"


def generate_public_link(db: Session, survey_id: int, now: datetime | None = None) -> Survey:
    survey = db.get(Survey, survey_id)
    if survey is None:
        raise SurveyNotFound()

    now = as_utc(now) if now is not None else now_utc()
    survey.public_access_token = uuid.uuid4()
    survey.allow_public_access = True
    survey.public_access_created_at = now
    survey.public_access_expires_at = now + timedelta(days=settings.PUBLIC_LINK_TTL_DAYS)
    db.commit()
    db.refresh(survey)
    logger.info("Enlace público generado para encuesta %s", survey_id)
    return survey


def revoke_public_link(db: Session, survey_id: int) -> None:
    survey = db.get(Survey, survey_id)
    if survey is None:
        raise SurveyNotFound()

    survey.public_access_token = None
    survey.allow_public_access = False
    survey.public_access_created_at = None
    survey.public_access_expires_at = None
    db.commit()
    logger.info("Enlace público revocado para encuesta %s", survey_id)


def change_survey_status(db: Session, survey_id: int, target: str, now: datetime | None = None) -> Survey:
    survey = db.get(Survey, survey_id)
    if survey is None:
        raise SurveyNotFound()
    if target not in _STATUS_ORDER:
        raise InvalidTransition(f"Unknown survey status '{target}'")

    current = _STATUS_ORDER.index(survey.status)
    if _STATUS_ORDER.index(target) != current + 1:
        raise InvalidTransition(f"Cannot move survey from {survey.status} to {target}")

    now = as_utc(now) if now is not None else now_utc()
    survey.status = target
    if target == SurveyStatus.ACTIVE.value:
        survey.published_at = now
    elif target == SurveyStatus.ARCHIVED.value:
        survey.archived_at = now
    db.commit()
    db.refresh(survey)
    return survey
