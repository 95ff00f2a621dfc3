# tourapi/api/v1/endpoints/notes.py
from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.orm import Session

from tourapi.core.security import get_caller
from tourapi.db.session import get_db
from tourapi.models.collaboration import ActivityQuestion, Note
from tourapi.schemas.auth import Caller
from tourapi.schemas.collaboration import NoteIn, NoteOut, NoteUpdate
from tourapi.services.tour_access import EntityKind, assert_mutable

router = APIRouter(tags=["notes"])


def _own_note(db: Session, note_id: int, caller: Caller) -> Note:
    note = db.get(Note, note_id)
    if not note or (note.user_id != caller.user_id and not caller.is_admin):
        raise HTTPException(404, "Note not found or access denied")
    return note


@router.post("/activities/{activity_id}/notes", response_model=NoteOut, status_code=201)
def create_note(
    payload: NoteIn,
    activity_id: int = Path(...),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    assert_mutable(db, EntityKind.ACTIVITY, activity_id)

    snapshot = None
    if payload.question_id is not None:
        question = db.get(ActivityQuestion, payload.question_id)
        if not question or question.activity_id != activity_id:
            raise HTTPException(400, "Question does not belong to this activity")
        # se guarda el texto por si la pregunta se borra después
        snapshot = question.question_text

    note = Note(
        user_id=caller.user_id,
        activity_id=activity_id,
        question_id=payload.question_id,
        question_text_snapshot=snapshot,
        title=payload.title,
        content=payload.content,
        is_private=payload.is_private,
        tags=payload.tags,
        attachments=payload.attachments,
    )
    db.add(note)
    db.commit()
    db.refresh(note)
    return note


@router.put("/notes/{note_id}", response_model=NoteOut)
def update_note(
    payload: NoteUpdate,
    note_id: int = Path(...),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    assert_mutable(db, EntityKind.NOTE, note_id)
    note = _own_note(db, note_id, caller)

    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(note, field, value)
    db.commit()
    db.refresh(note)
    return note


@router.delete("/notes/{note_id}")
def delete_note(
    note_id: int = Path(...),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    assert_mutable(db, EntityKind.NOTE, note_id)
    note = _own_note(db, note_id, caller)
    db.delete(note)
    db.commit()
    return {"message": "Note deleted successfully"}
