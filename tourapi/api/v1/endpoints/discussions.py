# tourapi/api/v1/endpoints/discussions.py
from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.orm import Session

from tourapi.core.security import get_caller
from tourapi.db.session import get_db
from tourapi.models.collaboration import Discussion, DiscussionMessage, MessageReaction
from tourapi.models.tour import Activity
from tourapi.schemas.auth import Caller
from tourapi.schemas.collaboration import (
    DiscussionIn, DiscussionOut, DiscussionUpdate, MessageIn, MessageOut, MessageUpdate, ReactionIn, ReactionOut,
)
from tourapi.services.tour_access import EntityKind, assert_mutable
from tourapi.utils.time import now_utc

router = APIRouter(tags=["discussions"])


def _own_discussion(db: Session, discussion_id: int, caller: Caller) -> Discussion:
    discussion = db.get(Discussion, discussion_id)
    if not discussion or (discussion.created_by != caller.user_id and not caller.is_admin):
        raise HTTPException(404, "Discussion not found or access denied")
    return discussion


def _own_message(db: Session, message_id: int, caller: Caller) -> DiscussionMessage:
    message = db.get(DiscussionMessage, message_id)
    if not message or (message.user_id != caller.user_id and not caller.is_admin):
        raise HTTPException(404, "Message not found or access denied")
    return message


# ==================== Discusiones ====================

@router.post("/tours/{tour_id}/discussions", response_model=DiscussionOut, status_code=201)
def create_discussion(
    payload: DiscussionIn,
    tour_id: int = Path(...),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    assert_mutable(db, EntityKind.TOUR, tour_id)
    if payload.activity_id is not None:
        activity = db.get(Activity, payload.activity_id)
        if not activity or activity.tour_id != tour_id:
            raise HTTPException(400, "Activity does not belong to this tour")

    discussion = Discussion(
        tour_id=tour_id,
        activity_id=payload.activity_id,
        created_by=caller.user_id,
        title=payload.title,
        description=payload.description,
    )
    db.add(discussion)
    db.commit()
    db.refresh(discussion)
    return discussion


@router.put("/discussions/{discussion_id}", response_model=DiscussionOut)
def update_discussion(
    payload: DiscussionUpdate,
    discussion_id: int = Path(...),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    assert_mutable(db, EntityKind.DISCUSSION, discussion_id)
    discussion = _own_discussion(db, discussion_id, caller)

    changes = payload.model_dump(exclude_unset=True)
    # fijar / bloquear es cosa de moderación
    if ("is_pinned" in changes or "is_locked" in changes) and not caller.is_guide_or_admin:
        raise HTTPException(403, "Guide or Admin access required")
    for field, value in changes.items():
        setattr(discussion, field, value)
    db.commit()
    db.refresh(discussion)
    return discussion


@router.delete("/discussions/{discussion_id}")
def delete_discussion(
    discussion_id: int = Path(...),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    assert_mutable(db, EntityKind.DISCUSSION, discussion_id)
    discussion = _own_discussion(db, discussion_id, caller)
    db.delete(discussion)
    db.commit()
    return {"message": "Discussion deleted successfully"}


# ==================== Mensajes ====================

@router.post("/discussions/{discussion_id}/messages", response_model=MessageOut, status_code=201)
def create_message(
    payload: MessageIn,
    discussion_id: int = Path(...),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    assert_mutable(db, EntityKind.DISCUSSION, discussion_id)
    discussion = db.get(Discussion, discussion_id)
    if discussion.is_locked and not caller.is_guide_or_admin:
        raise HTTPException(403, "Discussion is locked")

    if payload.parent_message_id is not None:
        parent = db.get(DiscussionMessage, payload.parent_message_id)
        if not parent or parent.discussion_id != discussion_id:
            raise HTTPException(400, "Parent message does not belong to this discussion")

    message = DiscussionMessage(
        discussion_id=discussion_id,
        user_id=caller.user_id,
        parent_message_id=payload.parent_message_id,
        content=payload.content,
        media_urls=payload.media_urls,
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    return message


@router.post("/activities/{activity_id}/messages", response_model=MessageOut, status_code=201)
def create_activity_message(
    payload: MessageIn,
    activity_id: int = Path(...),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    """Publica en el hilo de la actividad; el hilo se crea con el primer mensaje."""
    assert_mutable(db, EntityKind.ACTIVITY, activity_id)
    activity = db.get(Activity, activity_id)

    discussion = (
        db.query(Discussion)
        .filter(Discussion.activity_id == activity_id)
        .order_by(Discussion.id)
        .first()
    )
    if discussion is None:
        discussion = Discussion(
            tour_id=activity.tour_id,
            activity_id=activity_id,
            created_by=caller.user_id,
            title=f"{activity.title} Discussion",
            description=f"Discussion for activity: {activity.title}",
        )
        db.add(discussion)
        db.flush()
    elif discussion.is_locked and not caller.is_guide_or_admin:
        raise HTTPException(403, "Discussion is locked")

    message = DiscussionMessage(
        discussion_id=discussion.id,
        user_id=caller.user_id,
        content=payload.content,
        media_urls=payload.media_urls,
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    return message


@router.put("/messages/{message_id}", response_model=MessageOut)
def update_message(
    payload: MessageUpdate,
    message_id: int = Path(...),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    assert_mutable(db, EntityKind.MESSAGE, message_id)
    message = _own_message(db, message_id, caller)
    message.content = payload.content
    message.is_edited = True
    message.edited_at = now_utc()
    db.commit()
    db.refresh(message)
    return message


@router.delete("/messages/{message_id}")
def delete_message(
    message_id: int = Path(...),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    assert_mutable(db, EntityKind.MESSAGE, message_id)
    message = _own_message(db, message_id, caller)
    db.delete(message)
    db.commit()
    return {"message": "Message deleted successfully"}


# ==================== Reacciones ====================

@router.post("/messages/{message_id}/reactions", response_model=ReactionOut, status_code=201)
def add_reaction(
    payload: ReactionIn,
    message_id: int = Path(...),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    assert_mutable(db, EntityKind.MESSAGE, message_id)
    exists = (
        db.query(MessageReaction)
        .filter(
            MessageReaction.message_id == message_id,
            MessageReaction.user_id == caller.user_id,
            MessageReaction.reaction == payload.reaction,
        )
        .first()
    )
    if exists:
        raise HTTPException(409, "Reaction already exists")

    reaction = MessageReaction(message_id=message_id, user_id=caller.user_id, reaction=payload.reaction)
    db.add(reaction)
    db.commit()
    db.refresh(reaction)
    return reaction


@router.delete("/messages/{message_id}/reactions/{reaction}")
def remove_reaction(
    message_id: int = Path(...),
    reaction: str = Path(...),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    assert_mutable(db, EntityKind.MESSAGE, message_id)
    deleted = (
        db.query(MessageReaction)
        .filter(
            MessageReaction.message_id == message_id,
            MessageReaction.user_id == caller.user_id,
            MessageReaction.reaction == reaction,
        )
        .delete(synchronize_session=False)
    )
    if not deleted:
        raise HTTPException(404, "Reaction not found")
    db.commit()
    return {"message": "Reaction removed successfully"}
