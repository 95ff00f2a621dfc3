# tourapi/schemas/collaboration.py
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# ---------- Notas ----------

class NoteIn(BaseModel):
    content: str = Field(..., min_length=1)
    title: Optional[str] = None
    question_id: Optional[int] = None
    is_private: bool = False
    tags: Optional[List[str]] = None
    attachments: Optional[List[Any]] = None


class NoteUpdate(BaseModel):
    content: Optional[str] = Field(default=None, min_length=1)
    title: Optional[str] = None
    is_private: Optional[bool] = None
    tags: Optional[List[str]] = None
    attachments: Optional[List[Any]] = None


class NoteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: UUID
    activity_id: int
    question_id: Optional[int] = None
    question_text_snapshot: Optional[str] = None
    title: Optional[str] = None
    content: str
    is_private: bool
    tags: Optional[List[str]] = None
    attachments: Optional[List[Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ---------- Preguntas de actividad ----------

class ActivityQuestionIn(BaseModel):
    question_text: str = Field(..., min_length=1)


class ActivityQuestionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    activity_id: int
    user_id: UUID
    question_text: str
    created_at: Optional[datetime] = None


# ---------- Discusiones y mensajes ----------

class DiscussionIn(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    activity_id: Optional[int] = None


class DiscussionUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    is_pinned: Optional[bool] = None
    is_locked: Optional[bool] = None


class DiscussionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tour_id: int
    activity_id: Optional[int] = None
    created_by: UUID
    title: str
    description: Optional[str] = None
    is_pinned: bool
    is_locked: bool


class MessageIn(BaseModel):
    content: str = Field(..., min_length=1)
    parent_message_id: Optional[int] = None
    media_urls: Optional[List[str]] = None


class MessageUpdate(BaseModel):
    content: str = Field(..., min_length=1)


class MessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    discussion_id: int
    user_id: UUID
    parent_message_id: Optional[int] = None
    content: str
    media_urls: Optional[List[str]] = None
    is_edited: bool
    edited_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class ReactionIn(BaseModel):
    reaction: str = Field(..., min_length=1, max_length=50)


class ReactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    message_id: int
    user_id: UUID
    reaction: str


# ---------- Equipos de discusión ----------

class TeamIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    order_index: int = 0


class TeamUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    order_index: Optional[int] = None


class TeamOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    discussion_activity_id: int
    name: str
    description: Optional[str] = None
    order_index: int


class TeamNoteIn(BaseModel):
    content: str = Field(..., min_length=1)
    question_id: Optional[int] = None
    attachments: Optional[List[Any]] = None


class TeamNoteUpdate(BaseModel):
    content: Optional[str] = Field(default=None, min_length=1)
    attachments: Optional[List[Any]] = None


class TeamNoteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    team_id: int
    question_id: Optional[int] = None
    content: str
    attachments: Optional[List[Any]] = None
    created_by: UUID


class DiscussionQuestionUpdate(BaseModel):
    question_text: Optional[str] = Field(default=None, min_length=1)
    order_index: Optional[int] = None
    is_required: Optional[bool] = None


class DiscussionQuestionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    discussion_activity_id: int
    question_text: str
    order_index: int
    is_required: Optional[bool] = None
