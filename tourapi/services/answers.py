# tourapi/services/answers.py
"""
Respuestas tipadas por pregunta.

El cuerpo HTTP trae todos los slots opcionales (text_response, number_response,
...). Aquí se convierte cada ítem, según el question_type declarado, en una
única variante de una unión cerrada; cada variante sabe en qué columna de
survey_question_responses escribe y solo escribe esa.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Union

from tourapi.core.errors import InvalidAnswer
from tourapi.models.survey import QuestionResponse, QuestionType, SurveyQuestion
from tourapi.schemas.surveys import AnswerIn


@dataclass(frozen=True)
class TextAnswer:
    question_id: int
    value: str
    column = "text_response"


@dataclass(frozen=True)
class YesNoAnswer:
    # Se guarda tal cual en text_response; las estadísticas comparan 'Yes' / 'No' literal.
    question_id: int
    value: str
    column = "text_response"


@dataclass(frozen=True)
class NumberAnswer:
    question_id: int
    value: float
    column = "number_response"


@dataclass(frozen=True)
class DateAnswer:
    question_id: int
    value: date
    column = "date_response"


@dataclass(frozen=True)
class RatingAnswer:
    question_id: int
    value: int
    column = "rating_response"


@dataclass(frozen=True)
class ChoiceAnswer:
    question_id: int
    value: tuple[int, ...]
    column = "selected_option_ids"


TypedAnswer = Union[TextAnswer, YesNoAnswer, NumberAnswer, DateAnswer, RatingAnswer, ChoiceAnswer]


def _text_or_none(value: str | None) -> str | None:
    # "" y solo espacios cuentan como slot vacío (no se escribe fila)
    if value is None or not value.strip():
        return None
    return value


def _coerce_one(question: SurveyQuestion, item: AnswerIn) -> TypedAnswer | None:
    qtype = QuestionType(question.question_type)
    qid = question.id

    if qtype in (QuestionType.TEXT, QuestionType.TEXTAREA):
        text = _text_or_none(item.text_response)
        return TextAnswer(qid, text) if text is not None else None

    if qtype is QuestionType.YES_NO:
        text = _text_or_none(item.text_response)
        return YesNoAnswer(qid, text) if text is not None else None

    if qtype is QuestionType.NUMBER:
        if item.number_response is None:
            return None
        return NumberAnswer(qid, float(item.number_response))

    if qtype is QuestionType.DATE:
        if item.date_response is None:
            return None
        return DateAnswer(qid, item.date_response)

    if qtype is QuestionType.RATING:
        if item.rating_response is None:
            return None
        if not 1 <= item.rating_response <= 5:
            raise InvalidAnswer(f"Rating must be between 1 and 5 (question {qid})")
        return RatingAnswer(qid, item.rating_response)

    # MULTIPLE_CHOICE / CHECKBOX
    if item.selected_option_ids is None:
        return None
    valid = {o.id for o in question.options}
    chosen: list[int] = []
    for oid in item.selected_option_ids:
        if oid not in valid:
            raise InvalidAnswer(f"Option {oid} does not belong to question {qid}")
        if oid not in chosen:
            chosen.append(oid)
    if qtype is QuestionType.MULTIPLE_CHOICE and len(chosen) > 1:
        raise InvalidAnswer(f"Question {qid} accepts a single option")
    return ChoiceAnswer(qid, tuple(chosen))


def coerce_answers(
    questions: Iterable[SurveyQuestion],
    items: Iterable[AnswerIn],
) -> tuple[list[int], list[TypedAnswer]]:
    """
    Devuelve (ids de pregunta tocados, respuestas tipadas). Un ítem cuyo slot
    correspondiente viene vacío toca la pregunta pero no genera fila.
    Si la misma pregunta llega dos veces, gana la última.
    """
    by_id = {q.id: q for q in questions}
    touched: list[int] = []
    typed: dict[int, TypedAnswer] = {}
    for item in items:
        question = by_id.get(item.question_id)
        if question is None:
            raise InvalidAnswer(f"Question {item.question_id} does not belong to this survey")
        if item.question_id not in touched:
            touched.append(item.question_id)
        answer = _coerce_one(question, item)
        if answer is None:
            typed.pop(item.question_id, None)
        else:
            typed[item.question_id] = answer
    return touched, list(typed.values())


def to_row(response_id: int, answer: TypedAnswer) -> QuestionResponse:
    value = list(answer.value) if isinstance(answer, ChoiceAnswer) else answer.value
    return QuestionResponse(response_id=response_id, question_id=answer.question_id, **{answer.column: value})


def read_value(question_type: str, row) -> object:
    """Lee el valor con el mismo mapeo tipo -> columna usado al escribir."""
    qtype = QuestionType(question_type)
    if qtype in (QuestionType.TEXT, QuestionType.TEXTAREA, QuestionType.YES_NO):
        return row.text_response
    if qtype is QuestionType.NUMBER:
        return row.number_response
    if qtype is QuestionType.DATE:
        return row.date_response
    if qtype is QuestionType.RATING:
        return row.rating_response
    return list(row.selected_option_ids or [])
