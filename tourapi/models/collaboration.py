# tourapi/models/collaboration.py
"""
Entidades colaborativas colgadas de un tour (directa o indirectamente).
Todas quedan en solo lectura cuando el tour termina; ver services/tour_access.py.
"""
from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid, false, func, true
)

from tourapi.db.base_class import Base
from tourapi.db.types import JSONType


class ActivityQuestion(Base):
    __tablename__ = "activity_questions"

    id = Column(Integer, primary_key=True)
    activity_id = Column(Integer, ForeignKey("activities.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    question_text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Note(Base):
    __tablename__ = "notes"

    id = Column(Integer, primary_key=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    activity_id = Column(Integer, ForeignKey("activities.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(Integer, ForeignKey("activity_questions.id", ondelete="SET NULL"), index=True)
    question_text_snapshot = Column(Text)
    title = Column(String(255))
    content = Column(Text, nullable=False)
    is_private = Column(Boolean, nullable=False, server_default=false())
    tags = Column(JSONType)
    attachments = Column(JSONType)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class Discussion(Base):
    __tablename__ = "discussions"

    id = Column(Integer, primary_key=True)
    tour_id = Column(Integer, ForeignKey("tours.id", ondelete="CASCADE"), nullable=False, index=True)
    activity_id = Column(Integer, ForeignKey("activities.id", ondelete="CASCADE"), index=True)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    is_pinned = Column(Boolean, nullable=False, server_default=false())
    is_locked = Column(Boolean, nullable=False, server_default=false())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class DiscussionMessage(Base):
    __tablename__ = "discussion_messages"

    id = Column(Integer, primary_key=True)
    discussion_id = Column(Integer, ForeignKey("discussions.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    parent_message_id = Column(Integer, ForeignKey("discussion_messages.id", ondelete="CASCADE"), index=True)
    content = Column(Text, nullable=False)
    media_urls = Column(JSONType)
    is_edited = Column(Boolean, nullable=False, server_default=false())
    edited_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class MessageReaction(Base):
    __tablename__ = "message_reactions"
    __table_args__ = (
        UniqueConstraint("message_id", "user_id", "reaction", name="message_reactions_once"),
    )

    id = Column(Integer, primary_key=True)
    message_id = Column(Integer, ForeignKey("discussion_messages.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    reaction = Column(String(50), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class DiscussionTeam(Base):
    __tablename__ = "discussion_teams"
    __table_args__ = (
        UniqueConstraint("discussion_activity_id", "name", name="discussion_teams_unique_name"),
    )

    id = Column(Integer, primary_key=True)
    discussion_activity_id = Column(Integer, ForeignKey("activities.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    order_index = Column(Integer, nullable=False, server_default="0")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class DiscussionQuestion(Base):
    __tablename__ = "discussion_questions"
    __table_args__ = (
        UniqueConstraint("discussion_activity_id", "order_index", name="discussion_questions_unique_order"),
    )

    id = Column(Integer, primary_key=True)
    discussion_activity_id = Column(Integer, ForeignKey("activities.id", ondelete="CASCADE"), nullable=False, index=True)
    question_text = Column(Text, nullable=False)
    order_index = Column(Integer, nullable=False)
    is_required = Column(Boolean, server_default=true())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class DiscussionTeamNote(Base):
    __tablename__ = "discussion_team_notes"

    id = Column(Integer, primary_key=True)
    team_id = Column(Integer, ForeignKey("discussion_teams.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(Integer, ForeignKey("discussion_questions.id", ondelete="SET NULL"), index=True)  # NULL = nota general
    content = Column(Text, nullable=False)
    attachments = Column(JSONType)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
