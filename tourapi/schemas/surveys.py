# tourapi/schemas/surveys.py
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# ---------- Entradas ----------

class AnswerIn(BaseModel):
    question_id: int
    text_response: Optional[str] = None
    number_response: Optional[float] = None
    date_response: Optional[date] = None
    selected_option_ids: Optional[List[int]] = None
    rating_response: Optional[int] = None


class SubmitIn(BaseModel):
    responses: List[AnswerIn] = Field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = None


class SaveProgressIn(BaseModel):
    responses: List[AnswerIn] = Field(default_factory=list)


class PublicSubmitIn(BaseModel):
    # Opcional aquí para poder responder 400 con el mensaje exacto
    respondent_email: Optional[str] = None
    respondent_name: Optional[str] = None
    responses: Optional[List[AnswerIn]] = None
    metadata: Optional[Dict[str, Any]] = None


class SurveyStatusIn(BaseModel):
    status: str


# ---------- Salidas ----------

class AnswerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    question_id: int
    text_response: Optional[str] = None
    number_response: Optional[float] = None
    date_response: Optional[date] = None
    selected_option_ids: Optional[List[int]] = None
    rating_response: Optional[int] = None


class SurveyResponseOut(BaseModel):
    id: int
    survey_id: int
    user_id: Optional[UUID] = None
    started_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    is_complete: bool
    is_anonymous: bool = False
    metadata: Optional[Dict[str, Any]] = None
    respondent_email: Optional[str] = None
    respondent_name: Optional[str] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    responses: Optional[List[AnswerOut]] = None


class SubmitOut(BaseModel):
    message: str
    response_id: int


class OptionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    option_text: str
    order_index: int
    is_other: bool = False


class QuestionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    question_text: str
    question_type: str
    is_required: bool
    order_index: int
    description: Optional[str] = None
    validation_rules: Optional[Any] = None
    options: List[OptionOut] = Field(default_factory=list)


class PublicSurveyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    type: str
    status: str
    questions: List[QuestionOut] = Field(default_factory=list)


class PublicLinkOut(BaseModel):
    message: str
    token: UUID
    public_url: str
    expires_at: datetime


class SurveyStatusOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: str
    published_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None


# ---------- Estadísticas ----------

class OptionCount(BaseModel):
    text: str
    count: int
    percentage: float


class QuestionStats(BaseModel):
    question_id: int
    question_text: str
    question_type: str
    response_count: int = 0
    # RATING
    average_rating: Optional[float] = None
    rating_distribution: Optional[Dict[int, int]] = None
    # MULTIPLE_CHOICE / CHECKBOX
    option_counts: Optional[Dict[int, OptionCount]] = None
    # TEXT / TEXTAREA
    sample_responses: Optional[List[str]] = None
    # YES_NO
    yes_count: Optional[int] = None
    no_count: Optional[int] = None


class SurveyResponseStats(BaseModel):
    survey_id: int
    total_responses: int
    completed_responses: int
    partial_responses: int
    completion_rate: float
    average_completion_time: Optional[float] = None  # minutos
    question_stats: List[QuestionStats] = Field(default_factory=list)


class AggregatedAnswer(BaseModel):
    user_name: Optional[str] = None
    answer: Any = None
    submitted_at: Optional[datetime] = None


class AggregatedQuestion(BaseModel):
    question_id: int
    question_text: str
    question_type: str
    options: List[OptionOut] = Field(default_factory=list)
    response_count: int
    stats: Dict[str, Any] = Field(default_factory=dict)
    responses: List[AggregatedAnswer] = Field(default_factory=list)
