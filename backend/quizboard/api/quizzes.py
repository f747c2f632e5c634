"""Participant-facing quiz listing routes."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, status

from quizboard.api.deps import get_current_user, get_repository
from quizboard.db.models import Profile, Quiz
from quizboard.schemas.quiz import QuestionPublic, QuizPublic, QuizSummary
from quizboard.services.repository import QuizRepository

router = APIRouter()


def public_questions(quiz: Quiz) -> list[QuestionPublic]:
    return [
        QuestionPublic(
            question=q["question"],
            options=list(q["options"]),
            points=int(q.get("points") or 0),
        )
        for q in quiz.questions or []
    ]


@router.get("/", response_model=list[QuizSummary])
def list_quizzes(
    current_user: Profile = Depends(get_current_user),
    repo: QuizRepository = Depends(get_repository),
):
    """Active quizzes, newest first, marked with the caller's own result."""
    mine = {s.quiz_id: s for s in repo.list_user_submissions(current_user.id)}
    results = []
    for quiz in repo.list_quizzes(active_only=True):
        submission = mine.get(quiz.id)
        results.append(
            QuizSummary(
                id=quiz.id,
                title=quiz.title,
                description=quiz.description,
                question_count=len(quiz.questions or []),
                total_points=quiz.total_points,
                time_limit=quiz.time_limit,
                created_at=quiz.created_at,
                completed=submission is not None,
                score=submission.score if submission else None,
                percentage=submission.percentage if submission else None,
            )
        )
    return results


@router.get("/{quiz_id}", response_model=QuizPublic)
def get_quiz(
    quiz_id: uuid.UUID,
    current_user: Profile = Depends(get_current_user),
    repo: QuizRepository = Depends(get_repository),
):
    """An active quiz without its answer key."""
    quiz = repo.get_active_quiz(quiz_id)
    if quiz is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz not found")
    questions = public_questions(quiz)
    return QuizPublic(
        id=quiz.id,
        title=quiz.title,
        description=quiz.description,
        questions=questions,
        question_count=len(questions),
        total_points=quiz.total_points,
        time_limit=quiz.time_limit,
        created_at=quiz.created_at,
    )
