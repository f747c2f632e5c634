"""Live quiz session routes.

Flow:
  1. POST   /api/sessions/{quiz_id}           → open (or resume) the attempt
  2. GET    /api/sessions/{quiz_id}           → current view; also runs the countdown
  3. POST   /api/sessions/{quiz_id}/answer    → answer the current question
  4. POST   /api/sessions/{quiz_id}/navigate  → jump to a question
     POST   /api/sessions/{quiz_id}/next | /previous
  5. POST   /api/sessions/{quiz_id}/submit    → grade and save
  6. DELETE /api/sessions/{quiz_id}           → abandon without saving

Once time runs out, whichever request touches the session first submits it
and the response carries the result.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status

from quizboard.api.deps import get_current_user, get_repository, get_session_manager, http_error
from quizboard.db.models import Profile
from quizboard.schemas.quiz import QuestionPublic
from quizboard.schemas.session import (
    AnswerRequest,
    NavigateRequest,
    SessionRead,
    SubmissionResultRead,
)
from quizboard.services.errors import QuizboardError
from quizboard.services.quiz_session import QuizSession, SessionState
from quizboard.services.repository import QuizRepository
from quizboard.services.scoring import format_time
from quizboard.services.session_manager import SessionManager

logger = logging.getLogger(__name__)
router = APIRouter()


def _result_view(session: QuizSession) -> SubmissionResultRead | None:
    outcome = session.outcome
    if outcome is None:
        return None
    return SubmissionResultRead(
        submission_id=outcome.submission_id,
        score=outcome.result.score,
        total_possible=outcome.result.total_possible,
        percentage=outcome.result.percentage,
        correct_count=outcome.result.correct_count,
        question_count=len(outcome.answers),
        correctness=list(outcome.result.correctness),
        correct_answers=list(outcome.correct_answers),
        user_answers=list(outcome.answers),
        time_taken=outcome.time_taken,
        submitted_at=outcome.submitted_at,
        forced=outcome.forced,
    )


def session_view(session: QuizSession) -> SessionRead:
    quiz = session.quiz
    question = None
    if session.state is SessionState.ACTIVE:
        current = quiz.questions[session.current_question]
        question = QuestionPublic(
            question=current.question, options=list(current.options), points=current.points
        )
    remaining = session.time_remaining
    return SessionRead(
        quiz_id=session.quiz_id,
        quiz_title=quiz.title,
        state=session.state.value,
        current_question=session.current_question,
        question_count=session.question_count,
        question=question,
        answers=list(session.answers),
        unanswered=session.unanswered,
        time_remaining=remaining,
        time_remaining_display=format_time(remaining) if remaining is not None else None,
        can_go_next=session.can_go_next,
        can_go_previous=session.state is SessionState.ACTIVE and session.current_question > 0,
        can_submit=session.can_submit,
        started_at=session.start_time,
        result=_result_view(session),
    )


def _run(manager, repo, quiz_id, user_id, action) -> SessionRead:
    try:
        session = manager.run(repo, quiz_id, user_id, action)
    except QuizboardError as exc:
        raise http_error(exc) from exc
    return session_view(session)


@router.post("/{quiz_id}", response_model=SessionRead, status_code=status.HTTP_201_CREATED)
def open_session(
    quiz_id: uuid.UUID,
    current_user: Profile = Depends(get_current_user),
    repo: QuizRepository = Depends(get_repository),
    manager: SessionManager = Depends(get_session_manager),
):
    """Start the caller's attempt, or return the one already in progress."""
    try:
        session = manager.open(repo, quiz_id, current_user.id)
    except QuizboardError as exc:
        logger.info("Open refused for quiz=%s user=%s: %s", quiz_id, current_user.id, exc.message)
        raise http_error(exc) from exc
    return session_view(session)


@router.get("/{quiz_id}", response_model=SessionRead)
def get_session(
    quiz_id: uuid.UUID,
    current_user: Profile = Depends(get_current_user),
    repo: QuizRepository = Depends(get_repository),
    manager: SessionManager = Depends(get_session_manager),
):
    return _run(manager, repo, quiz_id, current_user.id, lambda s: None)


@router.post("/{quiz_id}/answer", response_model=SessionRead)
def answer_question(
    quiz_id: uuid.UUID,
    body: AnswerRequest,
    current_user: Profile = Depends(get_current_user),
    repo: QuizRepository = Depends(get_repository),
    manager: SessionManager = Depends(get_session_manager),
):
    return _run(manager, repo, quiz_id, current_user.id,
                lambda s: s.select_option(body.option_index))


@router.post("/{quiz_id}/navigate", response_model=SessionRead)
def navigate(
    quiz_id: uuid.UUID,
    body: NavigateRequest,
    current_user: Profile = Depends(get_current_user),
    repo: QuizRepository = Depends(get_repository),
    manager: SessionManager = Depends(get_session_manager),
):
    return _run(manager, repo, quiz_id, current_user.id, lambda s: s.go_to(body.index))


@router.post("/{quiz_id}/next", response_model=SessionRead)
def next_question(
    quiz_id: uuid.UUID,
    current_user: Profile = Depends(get_current_user),
    repo: QuizRepository = Depends(get_repository),
    manager: SessionManager = Depends(get_session_manager),
):
    return _run(manager, repo, quiz_id, current_user.id, lambda s: s.next())


@router.post("/{quiz_id}/previous", response_model=SessionRead)
def previous_question(
    quiz_id: uuid.UUID,
    current_user: Profile = Depends(get_current_user),
    repo: QuizRepository = Depends(get_repository),
    manager: SessionManager = Depends(get_session_manager),
):
    return _run(manager, repo, quiz_id, current_user.id, lambda s: s.previous())


@router.post("/{quiz_id}/submit", response_model=SessionRead)
def submit_session(
    quiz_id: uuid.UUID,
    current_user: Profile = Depends(get_current_user),
    repo: QuizRepository = Depends(get_repository),
    manager: SessionManager = Depends(get_session_manager),
):
    """Grade the attempt and save it. Safe to repeat after a 503."""
    return _run(manager, repo, quiz_id, current_user.id, lambda s: s.submit(repo))


@router.delete("/{quiz_id}", status_code=status.HTTP_204_NO_CONTENT)
def abandon_session(
    quiz_id: uuid.UUID,
    current_user: Profile = Depends(get_current_user),
    manager: SessionManager = Depends(get_session_manager),
):
    """Discard the attempt; nothing is saved."""
    if not manager.abandon(quiz_id, current_user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No quiz in progress")
