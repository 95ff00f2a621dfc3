# tourapi/services/survey_responses.py
"""
Motor de respuestas: envío completo, guardado parcial y envío anónimo.

Cada operación corre en una sola transacción (borrado + reinserción de
respuestas incluidos). El único guardián de concurrencia es el índice único
parcial survey_responses_unique_user; si dos envíos autenticados compiten por
crear la fila, el perdedor reintenta una vez como actualización.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Callable, Iterable, TypeVar
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from tourapi.core.errors import BadRequest, DuplicateResponse, InvalidEmail
from tourapi.models.survey import QuestionResponse, SurveyResponse
from tourapi.schemas.auth import Caller
from tourapi.schemas.surveys import AnswerOut, PublicSubmitIn, SaveProgressIn, SubmitIn, SurveyResponseOut
from tourapi.services.answers import TypedAnswer, coerce_answers, to_row
from tourapi.services.surveys import get_survey, resolve_public_survey
from tourapi.utils.time import as_utc, now_utc

logger = logging.getLogger(__name__)

EMAIL_REQUIRED_MESSAGE = "Email is required for anonymous survey responses"
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MAX_SUBMIT_ATTEMPTS = 2

T = TypeVar("T")


# -------------------- helpers -------------------- #

def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email or ""))


def _is_duplicate_user_response(exc: IntegrityError) -> bool:
    msg = str(getattr(exc, "orig", exc))
    return (
        "survey_responses_unique_user" in msg
        or "UNIQUE constraint failed: survey_responses.survey_id, survey_responses.user_id" in msg
    )


def _find_user_response(db: Session, survey_id: int, user_id: UUID) -> SurveyResponse | None:
    return (
        db.query(SurveyResponse)
        .filter(SurveyResponse.survey_id == survey_id, SurveyResponse.user_id == user_id)
        .first()
    )


def _insert_response(db: Session, resp: SurveyResponse) -> SurveyResponse:
    db.add(resp)
    try:
        db.flush()
    except IntegrityError as exc:
        if _is_duplicate_user_response(exc):
            raise DuplicateResponse() from exc
        raise
    return resp


def _write_answers(db: Session, response_id: int, answers: Iterable[TypedAnswer], now: datetime) -> None:
    for answer in answers:
        row = to_row(response_id, answer)
        row.created_at = now
        db.add(row)


def _run_in_transaction(
    db: Session,
    work: Callable[[], T],
    on_exhausted: Callable[[], T | None] | None = None,
) -> T:
    """
    Ejecuta `work` (que termina con commit). Si pierde la carrera del índice
    único se reintenta una vez; cualquier otro error hace rollback y se propaga.

    Si vuelve a perder, `on_exhausted` devuelve la fila ganadora y esa es la
    respuesta (el envío concurrente prevalece). Sin fila que devolver, el
    DuplicateResponse llega al cliente como 409.
    """
    attempt = 1
    while True:
        try:
            return work()
        except DuplicateResponse:
            db.rollback()
            if attempt >= MAX_SUBMIT_ATTEMPTS:
                winner = on_exhausted() if on_exhausted is not None else None
                if winner is None:
                    raise
                logger.warning(
                    "Respuesta duplicada tras %s intentos; se devuelve la fila existente", attempt
                )
                return winner
            attempt += 1
            logger.warning("Respuesta duplicada detectada; reintentando como actualización")
        except Exception:
            db.rollback()
            raise


# -------------------- autenticado -------------------- #

def submit_response(
    db: Session,
    survey_id: int,
    caller: Caller,
    payload: SubmitIn,
    now: datetime | None = None,
) -> SurveyResponse:
    """
    Envío final. Si ya existe respuesta para (encuesta, usuario) se reemplazan
    todas sus filas de respuesta; siempre queda is_complete = true.
    """
    survey = get_survey(db, survey_id)
    _, answers = coerce_answers(survey.questions, payload.responses)
    now = as_utc(now) if now is not None else now_utc()

    def _work() -> SurveyResponse:
        resp = _find_user_response(db, survey_id, caller.user_id)
        if resp is None:
            resp = _insert_response(db, SurveyResponse(
                survey_id=survey_id,
                user_id=caller.user_id,
                started_at=now,
                submitted_at=now,
                is_complete=True,
                is_anonymous=False,
                response_metadata=payload.metadata,
            ))
        else:
            db.query(QuestionResponse).filter(
                QuestionResponse.response_id == resp.id
            ).delete(synchronize_session="fetch")
            resp.submitted_at = now
            resp.is_complete = True
            resp.response_metadata = payload.metadata

        _write_answers(db, resp.id, answers, now)
        db.commit()
        db.refresh(resp)
        return resp

    resp = _run_in_transaction(db, _work, lambda: _find_user_response(db, survey_id, caller.user_id))
    logger.info("Encuesta %s enviada por usuario %s (respuesta %s)", survey_id, caller.user_id, resp.id)
    return resp


def save_progress(
    db: Session,
    survey_id: int,
    caller: Caller,
    payload: SaveProgressIn,
    now: datetime | None = None,
) -> SurveyResponse:
    """
    Guardado parcial: solo se reemplazan las preguntas presentes en esta
    llamada. is_complete no se toca (una respuesta completa sigue completa).
    """
    survey = get_survey(db, survey_id)
    touched, answers = coerce_answers(survey.questions, payload.responses)
    now = as_utc(now) if now is not None else now_utc()

    def _work() -> SurveyResponse:
        resp = _find_user_response(db, survey_id, caller.user_id)
        if resp is None:
            resp = _insert_response(db, SurveyResponse(
                survey_id=survey_id,
                user_id=caller.user_id,
                started_at=now,
                is_complete=False,
                is_anonymous=False,
            ))
        elif touched:
            db.query(QuestionResponse).filter(
                QuestionResponse.response_id == resp.id,
                QuestionResponse.question_id.in_(touched),
            ).delete(synchronize_session="fetch")

        _write_answers(db, resp.id, answers, now)
        db.commit()
        db.refresh(resp)
        return resp

    return _run_in_transaction(db, _work, lambda: _find_user_response(db, survey_id, caller.user_id))


# -------------------- anónimo (enlace público) -------------------- #

def _validated_anonymous(db: Session, token: str, payload: PublicSubmitIn, now: datetime):
    if not payload.respondent_email:
        raise BadRequest(EMAIL_REQUIRED_MESSAGE)
    survey = resolve_public_survey(db, token, now)
    if not is_valid_email(payload.respondent_email):
        raise InvalidEmail()
    if payload.responses is None:
        raise BadRequest("Responses array is required")
    _, answers = coerce_answers(survey.questions, payload.responses)
    return survey, answers


def _create_anonymous(
    db: Session,
    token: str,
    payload: PublicSubmitIn,
    complete: bool,
    now: datetime | None,
) -> SurveyResponse:
    now = as_utc(now) if now is not None else now_utc()
    survey, answers = _validated_anonymous(db, token, payload, now)
    survey_id = survey.id

    def _work() -> SurveyResponse:
        # Sin upsert: no hay identidad estable con la que deduplicar.
        resp = _insert_response(db, SurveyResponse(
            survey_id=survey_id,
            user_id=None,
            started_at=now,
            submitted_at=now if complete else None,
            is_complete=complete,
            is_anonymous=True,
            response_metadata=payload.metadata or {},
            respondent_email=payload.respondent_email,
            respondent_name=payload.respondent_name,
        ))
        _write_answers(db, resp.id, answers, now)
        db.commit()
        db.refresh(resp)
        return resp

    resp = _run_in_transaction(db, _work)
    logger.info(
        "Respuesta anónima %s registrada para encuesta %s (completa=%s)", resp.id, survey_id, complete
    )
    return resp


def submit_anonymous(
    db: Session, token: str, payload: PublicSubmitIn, now: datetime | None = None
) -> SurveyResponse:
    return _create_anonymous(db, token, payload, complete=True, now=now)


def save_anonymous_progress(
    db: Session, token: str, payload: PublicSubmitIn, now: datetime | None = None
) -> SurveyResponse:
    return _create_anonymous(db, token, payload, complete=False, now=now)


# -------------------- lectura -------------------- #

def response_out(resp: SurveyResponse, include_answers: bool = True) -> SurveyResponseOut:
    if resp.is_anonymous:
        user_name, user_email = resp.respondent_name, resp.respondent_email
    else:
        user_name = resp.user.display_name if resp.user else None
        user_email = resp.user.email if resp.user else None

    return SurveyResponseOut(
        id=resp.id,
        survey_id=resp.survey_id,
        user_id=resp.user_id,
        started_at=resp.started_at,
        submitted_at=resp.submitted_at,
        is_complete=bool(resp.is_complete),
        is_anonymous=bool(resp.is_anonymous),
        metadata=resp.response_metadata,
        respondent_email=resp.respondent_email,
        respondent_name=resp.respondent_name,
        user_name=user_name,
        user_email=user_email,
        responses=[AnswerOut.model_validate(a) for a in resp.answers] if include_answers else None,
    )


def get_user_response(db: Session, survey_id: int, caller: Caller) -> SurveyResponse | None:
    return _find_user_response(db, survey_id, caller.user_id)


def list_responses(db: Session, survey_id: int) -> list[SurveyResponse]:
    get_survey(db, survey_id)
    return (
        db.query(SurveyResponse)
        .options(selectinload(SurveyResponse.user), selectinload(SurveyResponse.answers))
        .filter(SurveyResponse.survey_id == survey_id)
        .order_by(SurveyResponse.submitted_at.desc().nullslast(), SurveyResponse.id.desc())
        .all()
    )
