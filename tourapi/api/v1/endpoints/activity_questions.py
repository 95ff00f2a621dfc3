# tourapi/api/v1/endpoints/activity_questions.py
from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.orm import Session

from tourapi.core.security import get_caller
from tourapi.db.session import get_db
from tourapi.models.collaboration import ActivityQuestion
from tourapi.schemas.auth import Caller
from tourapi.schemas.collaboration import ActivityQuestionIn, ActivityQuestionOut
from tourapi.services.tour_access import EntityKind, assert_mutable

router = APIRouter(tags=["activity-questions"])


@router.post("/activities/{activity_id}/questions", response_model=ActivityQuestionOut, status_code=201)
def create_activity_question(
    payload: ActivityQuestionIn,
    activity_id: int = Path(...),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    assert_mutable(db, EntityKind.ACTIVITY, activity_id)
    question = ActivityQuestion(
        activity_id=activity_id,
        user_id=caller.user_id,
        question_text=payload.question_text,
    )
    db.add(question)
    db.commit()
    db.refresh(question)
    return question


@router.delete("/questions/{question_id}")
def delete_activity_question(
    question_id: int = Path(...),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    assert_mutable(db, EntityKind.ACTIVITY_QUESTION, question_id)
    question = db.get(ActivityQuestion, question_id)
    if not question or (question.user_id != caller.user_id and not caller.is_admin):
        raise HTTPException(404, "Question not found or access denied")
    db.delete(question)
    db.commit()
    return {"message": "Question deleted successfully"}
