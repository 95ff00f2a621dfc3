# tourapi/models/survey.py
from __future__ import annotations

import enum

from sqlalchemy import (
    Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Integer, Numeric, String,
    Text, UniqueConstraint, Uuid, false, func, text,
)
from sqlalchemy.orm import relationship

from tourapi.db.base_class import Base
from tourapi.db.types import IntArray, JSONType


class SurveyType(str, enum.Enum):
    TOUR_APPLICATION = "TOUR_APPLICATION"
    ACTIVITY_FEEDBACK = "ACTIVITY_FEEDBACK"
    TOUR_COMPLETION = "TOUR_COMPLETION"
    CUSTOM = "CUSTOM"


class SurveyStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"


class QuestionType(str, enum.Enum):
    TEXT = "TEXT"
    TEXTAREA = "TEXTAREA"
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    CHECKBOX = "CHECKBOX"
    RATING = "RATING"
    DATE = "DATE"
    NUMBER = "NUMBER"
    YES_NO = "YES_NO"


class Survey(Base):
    __tablename__ = "surveys"
    __table_args__ = (
        # Ligada a un tour, a una actividad, o a ninguno (nunca a ambos)
        CheckConstraint("NOT (tour_id IS NOT NULL AND activity_id IS NOT NULL)", name="survey_link_check"),
        Index("idx_surveys_public_access_token", "public_access_token"),
    )

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    type = Column(String(30), nullable=False, index=True)
    status = Column(String(20), nullable=False, server_default=SurveyStatus.DRAFT.value, index=True)
    tour_id = Column(Integer, ForeignKey("tours.id", ondelete="CASCADE"), index=True)
    activity_id = Column(Integer, ForeignKey("activities.id", ondelete="CASCADE"), index=True)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    published_at = Column(DateTime(timezone=True))
    archived_at = Column(DateTime(timezone=True))

    # Acceso público (independiente del status)
    public_access_token = Column(Uuid(as_uuid=True))
    allow_public_access = Column(Boolean, nullable=False, server_default=false())
    public_access_created_at = Column(DateTime(timezone=True))
    public_access_expires_at = Column(DateTime(timezone=True))

    questions = relationship(
        "SurveyQuestion",
        back_populates="survey",
        order_by="SurveyQuestion.order_index",
        cascade="all, delete-orphan",
    )


class SurveyQuestion(Base):
    __tablename__ = "survey_questions"
    __table_args__ = (
        UniqueConstraint("survey_id", "order_index", name="survey_questions_unique_order"),
    )

    id = Column(Integer, primary_key=True)
    survey_id = Column(Integer, ForeignKey("surveys.id", ondelete="CASCADE"), nullable=False, index=True)
    question_text = Column(Text, nullable=False)
    question_type = Column(String(30), nullable=False)
    is_required = Column(Boolean, nullable=False, server_default=false())
    order_index = Column(Integer, nullable=False)
    description = Column(Text)
    validation_rules = Column(JSONType)  # opaco: min/max, regex, etc.
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    survey = relationship("Survey", back_populates="questions")
    options = relationship(
        "SurveyQuestionOption",
        order_by="SurveyQuestionOption.order_index",
        cascade="all, delete-orphan",
    )


class SurveyQuestionOption(Base):
    __tablename__ = "survey_question_options"
    __table_args__ = (
        UniqueConstraint("question_id", "order_index", name="survey_question_options_unique_order"),
    )

    id = Column(Integer, primary_key=True)
    question_id = Column(Integer, ForeignKey("survey_questions.id", ondelete="CASCADE"), nullable=False, index=True)
    option_text = Column(Text, nullable=False)
    order_index = Column(Integer, nullable=False)
    is_other = Column(Boolean, nullable=False, server_default=false())


class SurveyResponse(Base):
    __tablename__ = "survey_responses"
    __table_args__ = (
        # Autenticado: user_id y no anónimo. Anónimo: sin user_id y con email.
        CheckConstraint(
            "(is_anonymous = false AND user_id IS NOT NULL) OR "
            "(is_anonymous = true AND respondent_email IS NOT NULL AND user_id IS NULL)",
            name="check_anonymous_response_email",
        ),
        # Unicidad solo entre respuestas autenticadas; las anónimas nunca se deduplican.
        Index(
            "survey_responses_unique_user",
            "survey_id",
            "user_id",
            unique=True,
            postgresql_where=text("user_id IS NOT NULL"),
            sqlite_where=text("user_id IS NOT NULL"),
        ),
    )

    id = Column(Integer, primary_key=True)
    survey_id = Column(Integer, ForeignKey("surveys.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), index=True)
    started_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    submitted_at = Column(DateTime(timezone=True), index=True)
    is_complete = Column(Boolean, nullable=False, server_default=false())
    response_metadata = Column("metadata", JSONType)
    respondent_email = Column(String(255))
    respondent_name = Column(String(255))
    is_anonymous = Column(Boolean, nullable=False, server_default=false())

    answers = relationship(
        "QuestionResponse",
        back_populates="response",
        order_by="QuestionResponse.id",
        cascade="all, delete-orphan",
    )
    user = relationship("User")


class QuestionResponse(Base):
    __tablename__ = "survey_question_responses"
    __table_args__ = (
        UniqueConstraint("response_id", "question_id", name="uq_answer_per_question_response"),
        CheckConstraint("rating_response >= 1 AND rating_response <= 5", name="rating_response_range"),
    )

    id = Column(Integer, primary_key=True)
    response_id = Column(Integer, ForeignKey("survey_responses.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(Integer, ForeignKey("survey_questions.id", ondelete="CASCADE"), nullable=False, index=True)

    # Exactamente una de estas columnas según question_type (ver services/answers.py)
    text_response = Column(Text)
    number_response = Column(Numeric(asdecimal=False))
    date_response = Column(Date)
    selected_option_ids = Column(IntArray)
    rating_response = Column(Integer)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    response = relationship("SurveyResponse", back_populates="answers")
