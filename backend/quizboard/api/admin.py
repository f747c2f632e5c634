"""Administrator routes — quiz authoring and platform statistics."""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status

from quizboard.api.deps import get_repository, get_session_manager, require_admin
from quizboard.db.models import Profile, Quiz
from quizboard.schemas.quiz import AdminStats, QuizAdminRead, QuizCreate, QuizUpdate
from quizboard.services.repository import QuizRepository
from quizboard.services.scoring import percentage_of
from quizboard.services.session_manager import SessionManager

logger = logging.getLogger(__name__)
router = APIRouter()


def _average_score(results: list[tuple[int, int]]) -> float:
    """Mean percentage over submissions, skipping those worth nothing."""
    scored = [percentage_of(score, total) for score, total in results if total > 0]
    return sum(scored) / len(scored) if scored else 0.0


def _admin_view(quiz: Quiz, results: list[tuple[int, int]]) -> QuizAdminRead:
    view = QuizAdminRead.model_validate(quiz)
    view.submission_count = len(results)
    view.avg_score = _average_score(results)
    return view


def _get_quiz_or_404(repo: QuizRepository, quiz_id: uuid.UUID) -> Quiz:
    quiz = repo.get_quiz(quiz_id)
    if quiz is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz not found")
    return quiz


@router.get("/quizzes", response_model=list[QuizAdminRead])
def list_all_quizzes(
    admin: Profile = Depends(require_admin),
    repo: QuizRepository = Depends(get_repository),
):
    """Every quiz, active or not, newest first, with submission stats."""
    quizzes = repo.list_quizzes(active_only=False)
    results = repo.submission_scores_by_quiz(q.id for q in quizzes)
    return [_admin_view(q, results[q.id]) for q in quizzes]


@router.get("/stats", response_model=AdminStats)
def get_stats(
    admin: Profile = Depends(require_admin),
    repo: QuizRepository = Depends(get_repository),
):
    return AdminStats(
        total_quizzes=repo.count_quizzes(),
        total_submissions=repo.count_submissions(),
        total_users=repo.count_profiles(),
        avg_score=repo.average_percentage(),
    )


@router.post("/quizzes", response_model=QuizAdminRead, status_code=status.HTTP_201_CREATED)
def create_quiz(
    body: QuizCreate,
    admin: Profile = Depends(require_admin),
    repo: QuizRepository = Depends(get_repository),
):
    quiz = repo.create_quiz(body.to_definition(), created_by=admin.id)
    return _admin_view(quiz, [])


@router.patch("/quizzes/{quiz_id}", response_model=QuizAdminRead)
def update_quiz(
    quiz_id: uuid.UUID,
    body: QuizUpdate,
    admin: Profile = Depends(require_admin),
    repo: QuizRepository = Depends(get_repository),
):
    """Edit quiz fields. Existing submissions keep the totals they were graded with."""
    quiz = _get_quiz_or_404(repo, quiz_id)
    changes = body.model_dump(exclude_unset=True)
    if "questions" in changes:
        if body.questions is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="A quiz needs at least one question",
            )
        changes["questions"] = [q.to_definition().to_dict() for q in body.questions]
    for required in ("title", "is_active"):
        if required in changes and changes[required] is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"{required} cannot be null",
            )
    quiz = repo.update_quiz(quiz, **changes)
    return _admin_view(quiz, repo.submission_scores_by_quiz([quiz.id])[quiz.id])


@router.post("/quizzes/{quiz_id}/toggle", response_model=QuizAdminRead)
def toggle_quiz(
    quiz_id: uuid.UUID,
    admin: Profile = Depends(require_admin),
    repo: QuizRepository = Depends(get_repository),
):
    """Activate an inactive quiz or deactivate an active one."""
    quiz = _get_quiz_or_404(repo, quiz_id)
    quiz = repo.update_quiz(quiz, is_active=not quiz.is_active)
    return _admin_view(quiz, repo.submission_scores_by_quiz([quiz.id])[quiz.id])


@router.delete("/quizzes/{quiz_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_quiz(
    quiz_id: uuid.UUID,
    admin: Profile = Depends(require_admin),
    repo: QuizRepository = Depends(get_repository),
    manager: SessionManager = Depends(get_session_manager),
):
    """Delete a quiz together with its submissions and any attempts in progress."""
    quiz = _get_quiz_or_404(repo, quiz_id)
    repo.delete_quiz(quiz)
    dropped = manager.discard_quiz(quiz_id)
    if dropped:
        logger.info("Dropped %d live session(s) for deleted quiz %s", dropped, quiz_id)
