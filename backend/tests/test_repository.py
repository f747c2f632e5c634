"""Tests for the persistence adapter against in-memory SQLite."""

import uuid
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from quizboard.db.models import Profile, QuizSubmission, RoleEnum
from quizboard.domain.models import QuestionDefinition, QuizDefinition, SubmissionDraft
from quizboard.services.errors import (
    QuizNotFoundError,
    SubmissionPersistenceError,
    SubmissionRaceLostError,
)
from quizboard.services.repository import QuizRepository


def _profile(db: Session, name: str = "Repo User") -> Profile:
    profile = Profile(
        email=f"repo_{uuid.uuid4().hex[:8]}@ex.com",
        hashed_password="x",
        full_name=name,
        role=RoleEnum.STUDENT,
    )
    db.add(profile)
    db.commit()
    return profile


def _definition(points=(10, 10, 5), **kwargs) -> QuizDefinition:
    questions = [
        QuestionDefinition(question=f"Q{i}", options=("a", "b"), correct_answer=0, points=p)
        for i, p in enumerate(points)
    ]
    return QuizDefinition.build("Repository quiz", questions, **kwargs)


def _draft(quiz_id, user_id, score=10, time_taken=30) -> SubmissionDraft:
    return SubmissionDraft(
        quiz_id=quiz_id,
        user_id=user_id,
        answers=(0, 1, None),
        score=score,
        total_possible=25,
        percentage=score / 25 * 100,
        time_taken=time_taken,
    )


@pytest.fixture
def repo(db: Session) -> QuizRepository:
    return QuizRepository(db)


def test_create_and_fetch_quiz(repo: QuizRepository):
    quiz = repo.create_quiz(_definition(time_limit=10), created_by=None)

    fetched = repo.get_active_quiz(quiz.id)
    assert fetched is not None
    assert fetched.total_points == 25
    assert fetched.questions[2] == {"question": "Q2", "options": ["a", "b"], "correct_answer": 0, "points": 5}

    repo.update_quiz(quiz, is_active=False)
    assert repo.get_active_quiz(quiz.id) is None
    assert repo.get_quiz(quiz.id) is not None
    assert quiz.id not in [q.id for q in repo.list_quizzes()]
    assert quiz.id in [q.id for q in repo.list_quizzes(active_only=False)]


def test_update_rejects_unknown_fields(repo: QuizRepository):
    quiz = repo.create_quiz(_definition(), created_by=None)
    with pytest.raises(ValueError):
        repo.update_quiz(quiz, total_points=999)


def test_insert_submission_and_lookup(repo: QuizRepository, db: Session):
    quiz = repo.create_quiz(_definition(), created_by=None)
    user = _profile(db)

    receipt = repo.insert_submission(_draft(quiz.id, user.id))

    stored = repo.get_submission(quiz.id, user.id)
    assert stored.id == receipt.id
    assert stored.answers == [0, 1, None]
    assert receipt.submitted_at is not None
    assert repo.has_submission(quiz.id, user.id)
    assert not repo.has_submission(quiz.id, uuid.uuid4())


def test_submission_for_deleted_quiz_is_not_a_duplicate(repo: QuizRepository, db: Session):
    quiz = repo.create_quiz(_definition(), created_by=None)
    user = _profile(db)
    quiz_id = quiz.id
    repo.delete_quiz(quiz)

    with pytest.raises(QuizNotFoundError):
        repo.insert_submission(_draft(quiz_id, user.id))

    assert not repo.has_submission(quiz_id, user.id)


def test_stored_submission_is_not_read_back():
    db = MagicMock(spec=Session)
    db.refresh.side_effect = OperationalError("SELECT", {}, Exception("connection reset"))
    repo = QuizRepository(db)

    receipt = repo.insert_submission(_draft(uuid.uuid4(), uuid.uuid4()))

    assert receipt.id is not None
    db.commit.assert_called_once()
    db.refresh.assert_not_called()
    db.rollback.assert_not_called()


def test_duplicate_submission_loses_race(repo: QuizRepository, db: Session):
    quiz = repo.create_quiz(_definition(), created_by=None)
    user = _profile(db)
    repo.insert_submission(_draft(quiz.id, user.id, score=10))

    with pytest.raises(SubmissionRaceLostError):
        repo.insert_submission(_draft(quiz.id, user.id, score=25))

    # the session is still usable and the first write stands
    assert repo.get_submission(quiz.id, user.id).score == 10
    assert repo.count_submissions(quiz.id) == 1


def test_other_database_errors_are_retryable():
    db = MagicMock(spec=Session)
    db.commit.side_effect = OperationalError("INSERT", {}, Exception("connection reset"))
    repo = QuizRepository(db)

    with pytest.raises(SubmissionPersistenceError) as excinfo:
        repo.insert_submission(_draft(uuid.uuid4(), uuid.uuid4()))

    assert excinfo.value.retryable
    db.rollback.assert_called_once()


def test_ranked_submissions_order_and_limit(repo: QuizRepository, db: Session):
    quiz = repo.create_quiz(_definition(), created_by=None)
    rows = [
        ("no time", 20, None),
        ("slow", 20, 90),
        ("fast", 20, 40),
        ("best", 25, 300),
    ]
    for name, score, time_taken in rows:
        user = _profile(db, name)
        repo.insert_submission(_draft(quiz.id, user.id, score=score, time_taken=time_taken))

    ranked = repo.ranked_quiz_submissions(quiz.id)
    assert [r.full_name for r in ranked] == ["best", "fast", "slow", "no time"]
    assert ranked[0].quiz_id == quiz.id

    top = repo.ranked_quiz_submissions(quiz.id, limit=2)
    assert [r.full_name for r in top] == ["best", "fast"]


def test_delete_quiz_removes_submissions(repo: QuizRepository, db: Session):
    quiz = repo.create_quiz(_definition(), created_by=None)
    repo.insert_submission(_draft(quiz.id, _profile(db).id))
    quiz_id = quiz.id

    repo.delete_quiz(quiz)

    assert repo.get_quiz(quiz_id) is None
    assert db.query(QuizSubmission).filter(QuizSubmission.quiz_id == quiz_id).count() == 0


def test_scores_by_quiz_groups_results(repo: QuizRepository, db: Session):
    quiz = repo.create_quiz(_definition(), created_by=None)
    empty = repo.create_quiz(_definition(), created_by=None)
    repo.insert_submission(_draft(quiz.id, _profile(db).id, score=10))
    repo.insert_submission(_draft(quiz.id, _profile(db).id, score=20))

    grouped = repo.submission_scores_by_quiz([quiz.id, empty.id])

    assert sorted(grouped[quiz.id]) == [(10, 25), (20, 25)]
    assert grouped[empty.id] == []
