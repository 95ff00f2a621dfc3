# tourapi/api/v1/endpoints/discussion_teams.py
from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tourapi.api.deps.roles import require_guide_or_admin
from tourapi.core.security import get_caller
from tourapi.db.session import get_db
from tourapi.models.collaboration import DiscussionQuestion, DiscussionTeam, DiscussionTeamNote
from tourapi.models.tour import Activity
from tourapi.schemas.auth import Caller
from tourapi.schemas.collaboration import (
    DiscussionQuestionOut, DiscussionQuestionUpdate,
    TeamIn, TeamNoteIn, TeamNoteOut, TeamNoteUpdate, TeamOut, TeamUpdate,
)
from tourapi.services.tour_access import EntityKind, assert_mutable

router = APIRouter(tags=["discussion-teams"])


def _commit_unique(db: Session, detail: str) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(409, detail)


# ==================== Equipos ====================

@router.post("/discussion-activities/{activity_id}/teams", response_model=TeamOut, status_code=201)
def create_team(
    payload: TeamIn,
    activity_id: int = Path(...),
    db: Session = Depends(get_db),
    _staff: Caller = Depends(require_guide_or_admin),
):
    assert_mutable(db, EntityKind.ACTIVITY, activity_id)
    activity = db.get(Activity, activity_id)
    if activity.type != "Discussion":
        raise HTTPException(400, "Activity is not a discussion activity")

    team = DiscussionTeam(
        discussion_activity_id=activity_id,
        name=payload.name,
        description=payload.description,
        order_index=payload.order_index,
    )
    db.add(team)
    _commit_unique(db, "A team with this name already exists")
    db.refresh(team)
    return team


@router.put("/teams/{team_id}", response_model=TeamOut)
def update_team(
    payload: TeamUpdate,
    team_id: int = Path(...),
    db: Session = Depends(get_db),
    _staff: Caller = Depends(require_guide_or_admin),
):
    assert_mutable(db, EntityKind.TEAM, team_id)
    team = db.get(DiscussionTeam, team_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(team, field, value)
    _commit_unique(db, "A team with this name already exists")
    db.refresh(team)
    return team


@router.delete("/teams/{team_id}")
def delete_team(
    team_id: int = Path(...),
    db: Session = Depends(get_db),
    _staff: Caller = Depends(require_guide_or_admin),
):
    assert_mutable(db, EntityKind.TEAM, team_id)
    db.delete(db.get(DiscussionTeam, team_id))
    db.commit()
    return {"message": "Team deleted successfully"}


# ==================== Notas de equipo ====================

def _own_team_note(db: Session, note_id: int, caller: Caller) -> DiscussionTeamNote:
    note = db.get(DiscussionTeamNote, note_id)
    if not note or (note.created_by != caller.user_id and not caller.is_admin):
        raise HTTPException(404, "Team note not found or access denied")
    return note


@router.post("/teams/{team_id}/notes", response_model=TeamNoteOut, status_code=201)
def create_team_note(
    payload: TeamNoteIn,
    team_id: int = Path(...),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    assert_mutable(db, EntityKind.TEAM, team_id)

    if payload.question_id is not None:
        team = db.get(DiscussionTeam, team_id)
        question = db.get(DiscussionQuestion, payload.question_id)
        if not question or question.discussion_activity_id != team.discussion_activity_id:
            raise HTTPException(400, "Question does not belong to this discussion activity")

    note = DiscussionTeamNote(
        team_id=team_id,
        question_id=payload.question_id,
        content=payload.content,
        attachments=payload.attachments,
        created_by=caller.user_id,
    )
    db.add(note)
    db.commit()
    db.refresh(note)
    return note


@router.put("/team-notes/{note_id}", response_model=TeamNoteOut)
def update_team_note(
    payload: TeamNoteUpdate,
    note_id: int = Path(...),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    assert_mutable(db, EntityKind.TEAM_NOTE, note_id)
    note = _own_team_note(db, note_id, caller)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(note, field, value)
    db.commit()
    db.refresh(note)
    return note


@router.delete("/team-notes/{note_id}")
def delete_team_note(
    note_id: int = Path(...),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    assert_mutable(db, EntityKind.TEAM_NOTE, note_id)
    note = _own_team_note(db, note_id, caller)
    db.delete(note)
    db.commit()
    return {"message": "Team note deleted successfully"}


# ==================== Preguntas de discusión ====================

@router.put("/discussion-questions/{question_id}", response_model=DiscussionQuestionOut)
def update_discussion_question(
    payload: DiscussionQuestionUpdate,
    question_id: int = Path(...),
    db: Session = Depends(get_db),
    _staff: Caller = Depends(require_guide_or_admin),
):
    assert_mutable(db, EntityKind.DISCUSSION_QUESTION, question_id)
    question = db.get(DiscussionQuestion, question_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(question, field, value)
    _commit_unique(db, "Another question already uses this position")
    db.refresh(question)
    return question


@router.delete("/discussion-questions/{question_id}")
def delete_discussion_question(
    question_id: int = Path(...),
    db: Session = Depends(get_db),
    _staff: Caller = Depends(require_guide_or_admin),
):
    assert_mutable(db, EntityKind.DISCUSSION_QUESTION, question_id)
    db.delete(db.get(DiscussionQuestion, question_id))
    db.commit()
    return {"message": "Discussion question deleted successfully"}
