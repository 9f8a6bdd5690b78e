from fastapi import APIRouter, HTTPException, Depends, Query
from typing import List, Optional

from models import Answer, InsertAnswer, InsertQuestion, QuestionUpdate, User, NotificationType, TargetType
from schemas.questions import QuestionCreate, AnswerCreate, SolveRequest, QuestionResponse, AnswerResponse
from schemas.shared import SuccessResponse
from storage import IStorage
from utils.route_helpers import get_storage, get_current_user, is_staff, notify, with_author

router = APIRouter(prefix="/api", tags=["questions"])

def _get_question_or_404(storage: IStorage, question_id: str):
    question = storage.get_question(question_id)
    if not question:
        raise HTTPException(status_code=404, detail="Question not found")
    return question

@router.get("/questions", response_model=List[QuestionResponse])
def list_questions(
    tag: Optional[str] = None,
    sort: str = Query("recent", pattern="^(recent|upvotes)$"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    storage: IStorage = Depends(get_storage),
):
    questions = storage.get_questions(tag=tag, sort=sort, limit=limit, offset=offset)
    return [with_author(storage, q, q.author_id) for q in questions]

@router.post("/questions", response_model=QuestionResponse, status_code=201)
def create_question(data: QuestionCreate, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    question = storage.create_question(InsertQuestion(author_id=current_user.id, **data.model_dump()))
    return with_author(storage, question, question.author_id)

@router.get("/questions/{question_id}", response_model=QuestionResponse)
def get_question(question_id: str, storage: IStorage = Depends(get_storage)):
    question = _get_question_or_404(storage, question_id)
    return with_author(storage, question, question.author_id)

@router.post("/questions/{question_id}/upvote", response_model=QuestionResponse)
def toggle_question_upvote(question_id: str, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    question = storage.toggle_question_upvote(question_id, current_user.id)
    if not question:
        raise HTTPException(status_code=404, detail="Question not found")
    return with_author(storage, question, question.author_id)

@router.post("/questions/{question_id}/solve", response_model=QuestionResponse)
def solve_question(question_id: str, data: SolveRequest, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    question = _get_question_or_404(storage, question_id)
    if question.author_id != current_user.id:
        raise HTTPException(status_code=403, detail="Only the question author can mark it as solved")
    answer = storage.get_answer(data.answer_id)
    if not answer or answer.question_id != question_id:
        raise HTTPException(status_code=400, detail="Answer does not belong to this question")
    updated = storage.update_question(question_id, QuestionUpdate(solved_answer_id=answer.id))
    return with_author(storage, updated, updated.author_id)

@router.delete("/questions/{question_id}", response_model=SuccessResponse)
def delete_question(question_id: str, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    question = _get_question_or_404(storage, question_id)
    if question.author_id != current_user.id and not is_staff(current_user):
        raise HTTPException(status_code=403, detail="Not authorized")
    storage.delete_question(question_id)
    return {"success": True}

@router.get("/questions/{question_id}/answers", response_model=List[AnswerResponse])
def list_answers(question_id: str, storage: IStorage = Depends(get_storage)):
    """Answers, most upvoted first"""
    return [with_author(storage, a, a.author_id) for a in storage.get_answers(question_id)]

@router.post("/questions/{question_id}/answers", response_model=AnswerResponse, status_code=201)
def create_answer(question_id: str, data: AnswerCreate, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    question = _get_question_or_404(storage, question_id)
    answer = storage.create_answer(InsertAnswer(question_id=question_id, author_id=current_user.id, body=data.body))
    notify(storage, question.author_id, NotificationType.ANSWER, actor_id=current_user.id,
           target_type=TargetType.QUESTION, target_id=question_id, metadata={"answer_id": answer.id})
    return with_author(storage, answer, answer.author_id)

@router.post("/answers/{answer_id}/upvote", response_model=Answer)
def toggle_answer_upvote(answer_id: str, current_user: User = Depends(get_current_user), storage: IStorage = Depends(get_storage)):
    answer = storage.toggle_answer_upvote(answer_id, current_user.id)
    if not answer:
        raise HTTPException(status_code=404, detail="Answer not found")
    return answer
