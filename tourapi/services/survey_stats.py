# tourapi/services/survey_stats.py
"""
Estadísticas por pregunta, especializadas por question_type.

compute_stats: totales de la encuesta + una QuestionStats por pregunta.
aggregated_responses: vista por pregunta con el listado (nombre, respuesta,
fecha) de cada respuesta completa, para vistas de discusión / reportes.
"""
from __future__ import annotations

from collections import Counter
from statistics import mean
from typing import Iterable, Sequence

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from tourapi.models.survey import (
    QuestionResponse, QuestionType, SurveyQuestion, SurveyQuestionOption, SurveyResponse,
)
from tourapi.models.user import User
from tourapi.schemas.surveys import (
    AggregatedAnswer, AggregatedQuestion, OptionCount, OptionOut, QuestionStats, SurveyResponseStats,
)
from tourapi.services.answers import read_value
from tourapi.services.surveys import get_survey
from tourapi.utils.time import minutes_between

TEXT_SAMPLE_SIZE = 5
CHOICE_TYPES = (QuestionType.MULTIPLE_CHOICE.value, QuestionType.CHECKBOX.value)
TEXT_TYPES = (QuestionType.TEXT.value, QuestionType.TEXTAREA.value)


# -------------------- cálculos puros -------------------- #

def rating_summary(counts: dict[int, int]) -> tuple[float | None, dict[int, int]]:
    """Promedio ponderado por conteo e histograma {rating: n}."""
    distribution = {int(r): int(n) for r, n in sorted(counts.items()) if r is not None and n}
    total = sum(distribution.values())
    if not total:
        return None, {}
    average = sum(r * n for r, n in distribution.items()) / total
    return average, distribution


def yes_no_counts(values: Iterable[str | None]) -> tuple[int, int]:
    # Comparación literal ('Yes' / 'No'); otras variantes no cuentan en ningún lado.
    values = list(values)
    return sum(1 for v in values if v == "Yes"), sum(1 for v in values if v == "No")


def option_counts(
    options: Sequence[SurveyQuestionOption],
    selections: Iterable[Sequence[int] | None],
) -> tuple[int, dict[int, OptionCount]]:
    """
    Conteo por opción. El porcentaje es sobre las respuestas con alguna
    selección, no sobre el total de la encuesta.
    """
    answered = [set(s) for s in selections if s]
    total = len(answered)
    result: dict[int, OptionCount] = {}
    for option in options:
        count = sum(1 for s in answered if option.id in s)
        result[option.id] = OptionCount(
            text=option.option_text,
            count=count,
            percentage=(count / total) * 100 if total > 0 else 0.0,
        )
    return total, result


def format_answer(question: SurveyQuestion, row: QuestionResponse):
    value = read_value(question.question_type, row)
    if question.question_type in CHOICE_TYPES:
        selected = set(value)
        return [o.option_text for o in question.options if o.id in selected]
    return value


# -------------------- consultas -------------------- #

def _completed_answers(db: Session, question_id: int):
    return (
        db.query(QuestionResponse)
        .join(SurveyResponse, QuestionResponse.response_id == SurveyResponse.id)
        .filter(QuestionResponse.question_id == question_id, SurveyResponse.is_complete.is_(True))
    )


def _question_stats(db: Session, question: SurveyQuestion) -> QuestionStats:
    stats = QuestionStats(
        question_id=question.id,
        question_text=question.question_text,
        question_type=question.question_type,
    )
    qtype = question.question_type
    base = _completed_answers(db, question.id)

    if qtype == QuestionType.RATING.value:
        grouped = (
            base.filter(QuestionResponse.rating_response.isnot(None))
            .with_entities(QuestionResponse.rating_response, func.count(QuestionResponse.id))
            .group_by(QuestionResponse.rating_response)
            .all()
        )
        average, distribution = rating_summary({r: n for r, n in grouped})
        stats.response_count = sum(distribution.values())
        stats.average_rating = average
        stats.rating_distribution = distribution

    elif qtype == QuestionType.YES_NO.value:
        total, yes, no = (
            base.filter(QuestionResponse.text_response.isnot(None))
            .with_entities(
                func.count(QuestionResponse.id),
                func.sum(case((QuestionResponse.text_response == "Yes", 1), else_=0)),
                func.sum(case((QuestionResponse.text_response == "No", 1), else_=0)),
            )
            .one()
        )
        stats.response_count = int(total or 0)
        stats.yes_count = int(yes or 0)
        stats.no_count = int(no or 0)

    elif qtype in CHOICE_TYPES:
        selections = [ids for (ids,) in base.with_entities(QuestionResponse.selected_option_ids).all()]
        stats.response_count, stats.option_counts = option_counts(question.options, selections)

    elif qtype in TEXT_TYPES:
        with_text = base.filter(QuestionResponse.text_response.isnot(None))
        stats.response_count = with_text.count()
        stats.sample_responses = [
            t for (t,) in with_text
            .with_entities(QuestionResponse.text_response)
            .order_by(QuestionResponse.created_at.desc(), QuestionResponse.id.desc())
            .limit(TEXT_SAMPLE_SIZE)
            .all()
        ]

    elif qtype == QuestionType.NUMBER.value:
        stats.response_count = base.filter(QuestionResponse.number_response.isnot(None)).count()

    elif qtype == QuestionType.DATE.value:
        stats.response_count = base.filter(QuestionResponse.date_response.isnot(None)).count()

    return stats


def compute_stats(db: Session, survey_id: int) -> SurveyResponseStats:
    survey = get_survey(db, survey_id)

    total, completed = (
        db.query(
            func.count(SurveyResponse.id),
            func.sum(case((SurveyResponse.is_complete.is_(True), 1), else_=0)),
        )
        .filter(SurveyResponse.survey_id == survey_id)
        .one()
    )
    total = int(total or 0)
    completed = int(completed or 0)

    durations = [
        minutes_between(started, submitted)
        for started, submitted in (
            db.query(SurveyResponse.started_at, SurveyResponse.submitted_at)
            .filter(
                SurveyResponse.survey_id == survey_id,
                SurveyResponse.is_complete.is_(True),
                SurveyResponse.submitted_at.isnot(None),
            )
            .all()
        )
    ]
    durations = [d for d in durations if d is not None]

    return SurveyResponseStats(
        survey_id=survey_id,
        total_responses=total,
        completed_responses=completed,
        partial_responses=total - completed,
        completion_rate=(completed / total) if total > 0 else 0,
        average_completion_time=mean(durations) if durations else None,
        question_stats=[_question_stats(db, q) for q in survey.questions],
    )


def _respondent_name(resp: SurveyResponse, user: User | None) -> str | None:
    if resp.is_anonymous:
        return resp.respondent_name
    return (user.display_name if user else None) or "Unknown"


def _aggregate_stats(question: SurveyQuestion, rows: list[QuestionResponse]) -> dict:
    qtype = question.question_type
    if qtype == QuestionType.RATING.value:
        average, distribution = rating_summary(
            Counter(r.rating_response for r in rows if r.rating_response is not None)
        )
        if average is None:
            return {}
        return {"average": average, "distribution": distribution}
    if qtype in CHOICE_TYPES:
        _, counts = option_counts(question.options, [r.selected_option_ids for r in rows])
        return {"option_counts": {oid: c.model_dump() for oid, c in counts.items()}}
    if qtype == QuestionType.YES_NO.value:
        yes, no = yes_no_counts(r.text_response for r in rows)
        return {"yes_count": yes, "no_count": no}
    return {}


def aggregated_responses(db: Session, survey_id: int) -> dict[int, AggregatedQuestion]:
    survey = get_survey(db, survey_id)
    aggregated: dict[int, AggregatedQuestion] = {}

    for question in survey.questions:
        rows = (
            db.query(QuestionResponse, SurveyResponse, User)
            .join(SurveyResponse, QuestionResponse.response_id == SurveyResponse.id)
            .outerjoin(User, SurveyResponse.user_id == User.id)
            .filter(QuestionResponse.question_id == question.id, SurveyResponse.is_complete.is_(True))
            .order_by(QuestionResponse.created_at.asc(), QuestionResponse.id.asc())
            .all()
        )
        answers = [qr for qr, _, _ in rows]

        aggregated[question.id] = AggregatedQuestion(
            question_id=question.id,
            question_text=question.question_text,
            question_type=question.question_type,
            options=[OptionOut.model_validate(o) for o in question.options],
            response_count=len(rows),
            stats=_aggregate_stats(question, answers),
            responses=[
                AggregatedAnswer(
                    user_name=_respondent_name(resp, user),
                    answer=format_answer(question, qr),
                    submitted_at=qr.created_at,
                )
                for qr, resp, user in rows
            ],
        )

    return aggregated
