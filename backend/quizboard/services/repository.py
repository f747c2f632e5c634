"""Persistence adapter over the ``quizzes``, ``quiz_submissions`` and ``profiles`` tables.

All reads and writes the session, ranking and admin code need go through
``QuizRepository`` so the uniqueness rule for submissions is enforced in one
place: the database constraint is authoritative, and a violation surfaces as
``SubmissionRaceLostError`` rather than a generic failure.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from quizboard.db.models import Profile, Quiz, QuizSubmission, RoleEnum
from quizboard.domain.models import QuizDefinition, SubmissionDraft, SubmissionReceipt
from quizboard.services.errors import (
    QuizboardError,
    QuizNotFoundError,
    SubmissionPersistenceError,
    SubmissionRaceLostError,
)
from quizboard.services.ranking import RankableSubmission

logger = logging.getLogger(__name__)

_EDITABLE_QUIZ_FIELDS = {"title", "description", "questions", "time_limit", "is_active"}


def _rankable(row: QuizSubmission) -> RankableSubmission:
    profile = row.user
    return RankableSubmission(
        user_id=row.user_id,
        score=row.score,
        percentage=row.percentage,
        time_taken=row.time_taken,
        submitted_at=row.submitted_at,
        full_name=profile.full_name if profile else None,
        email=profile.email if profile else None,
        quiz_id=row.quiz_id,
    )


class QuizRepository:
    """Thin query layer bound to one SQLAlchemy session."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # ── Quizzes ──────────────────────────────────────────────────────────

    def get_quiz(self, quiz_id: uuid.UUID) -> Quiz | None:
        return self.db.query(Quiz).filter(Quiz.id == quiz_id).first()

    def get_active_quiz(self, quiz_id: uuid.UUID) -> Quiz | None:
        return (
            self.db.query(Quiz)
            .filter(Quiz.id == quiz_id, Quiz.is_active.is_(True))
            .first()
        )

    def list_quizzes(self, active_only: bool = True) -> list[Quiz]:
        query = self.db.query(Quiz)
        if active_only:
            query = query.filter(Quiz.is_active.is_(True))
        return query.order_by(Quiz.created_at.desc()).all()

    def create_quiz(self, definition: QuizDefinition, created_by: uuid.UUID | None) -> Quiz:
        quiz = Quiz(
            id=definition.id,
            title=definition.title,
            description=definition.description,
            questions=[q.to_dict() for q in definition.questions],
            total_points=definition.total_points,
            time_limit=definition.time_limit,
            is_active=definition.is_active,
            created_by=created_by,
        )
        self.db.add(quiz)
        self.db.commit()
        self.db.refresh(quiz)
        logger.info("Created quiz %s (%d questions, %d points)",
                    quiz.id, len(quiz.questions), quiz.total_points)
        return quiz

    def update_quiz(self, quiz: Quiz, **fields: Any) -> Quiz:
        """Update named fields; replacing ``questions`` also resets ``total_points``."""
        unknown = set(fields) - _EDITABLE_QUIZ_FIELDS
        if unknown:
            raise ValueError(f"Quiz fields are not editable: {', '.join(sorted(unknown))}")
        for name, value in fields.items():
            setattr(quiz, name, value)
        if "questions" in fields:
            quiz.total_points = sum(int(q.get("points") or 0) for q in quiz.questions)
        self.db.commit()
        self.db.refresh(quiz)
        logger.info("Updated quiz %s: %s", quiz.id, ", ".join(sorted(fields)))
        return quiz

    def delete_quiz(self, quiz: Quiz) -> None:
        """Delete a quiz; its submissions go with it."""
        quiz_id = quiz.id
        self.db.delete(quiz)
        self.db.commit()
        logger.info("Deleted quiz %s and its submissions", quiz_id)

    # ── Profiles ─────────────────────────────────────────────────────────

    def get_profile_by_email(self, email: str) -> Profile | None:
        return self.db.query(Profile).filter(Profile.email == email).first()

    def promote_to_admin(self, email: str) -> Profile | None:
        """Give an existing profile the admin role. Returns None if no such profile."""
        profile = self.get_profile_by_email(email)
        if profile is None:
            return None
        if profile.role != RoleEnum.ADMIN:
            profile.role = RoleEnum.ADMIN
            self.db.commit()
            self.db.refresh(profile)
            logger.info("Promoted %s to admin", email)
        return profile

    # ── Submissions ──────────────────────────────────────────────────────

    def get_submission(self, quiz_id: uuid.UUID, user_id: uuid.UUID) -> QuizSubmission | None:
        return (
            self.db.query(QuizSubmission)
            .filter(QuizSubmission.quiz_id == quiz_id, QuizSubmission.user_id == user_id)
            .first()
        )

    def has_submission(self, quiz_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        return self.get_submission(quiz_id, user_id) is not None

    def list_user_submissions(self, user_id: uuid.UUID) -> list[QuizSubmission]:
        return (
            self.db.query(QuizSubmission)
            .filter(QuizSubmission.user_id == user_id)
            .order_by(QuizSubmission.submitted_at.desc())
            .all()
        )

    def insert_submission(self, draft: SubmissionDraft) -> SubmissionReceipt:
        """Write a new submission.

        The id and timestamp are assigned before the commit, so nothing has to
        be read back once the row is stored.

        Raises:
            SubmissionRaceLostError: a submission for the pair already exists.
            QuizNotFoundError: the quiz was deleted before the write landed.
            SubmissionPersistenceError: any other database failure.
        """
        receipt = SubmissionReceipt(id=uuid.uuid4(), submitted_at=datetime.now(timezone.utc))
        row = QuizSubmission(
            id=receipt.id,
            quiz_id=draft.quiz_id,
            user_id=draft.user_id,
            answers=list(draft.answers),
            score=draft.score,
            total_possible=draft.total_possible,
            percentage=draft.percentage,
            time_taken=draft.time_taken,
            submitted_at=receipt.submitted_at,
        )
        try:
            self.db.add(row)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise self._integrity_failure(draft) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.warning("Could not save submission for quiz=%s user=%s: %s",
                           draft.quiz_id, draft.user_id, exc)
            raise SubmissionPersistenceError() from exc
        return receipt

    def _integrity_failure(self, draft: SubmissionDraft) -> QuizboardError:
        """Tell a duplicate submission apart from a dangling foreign key."""
        try:
            duplicate = self.has_submission(draft.quiz_id, draft.user_id)
            quiz_gone = not duplicate and self.get_quiz(draft.quiz_id) is None
        except SQLAlchemyError as exc:
            logger.warning("Could not classify failed submission for quiz=%s user=%s: %s",
                           draft.quiz_id, draft.user_id, exc)
            return SubmissionPersistenceError()
        if duplicate:
            logger.warning("Duplicate submission rejected for quiz=%s user=%s",
                           draft.quiz_id, draft.user_id)
            return SubmissionRaceLostError("You have already submitted this quiz.")
        if quiz_gone:
            logger.warning("Submission for deleted quiz=%s user=%s", draft.quiz_id, draft.user_id)
            return QuizNotFoundError()
        logger.warning("Submission for quiz=%s user=%s violated a constraint",
                       draft.quiz_id, draft.user_id)
        return SubmissionPersistenceError()

    # ── Leaderboard snapshots ────────────────────────────────────────────

    def ranked_quiz_submissions(
        self, quiz_id: uuid.UUID, limit: int | None = None
    ) -> list[RankableSubmission]:
        """One quiz's submissions in leaderboard order, earliest first on full ties."""
        query = (
            self.db.query(QuizSubmission)
            .options(joinedload(QuizSubmission.user))
            .filter(QuizSubmission.quiz_id == quiz_id)
            .order_by(
                QuizSubmission.score.desc(),
                QuizSubmission.time_taken.asc().nulls_last(),
                QuizSubmission.submitted_at.asc(),
            )
        )
        if limit is not None:
            query = query.limit(limit)
        return [_rankable(row) for row in query.all()]

    def all_submissions(self) -> list[RankableSubmission]:
        """Every submission in the order it was written."""
        rows = (
            self.db.query(QuizSubmission)
            .options(joinedload(QuizSubmission.user))
            .order_by(QuizSubmission.submitted_at.asc())
            .all()
        )
        return [_rankable(row) for row in rows]

    # ── Counts & aggregates ──────────────────────────────────────────────

    def count_quizzes(self) -> int:
        return self.db.query(func.count(Quiz.id)).scalar() or 0

    def count_submissions(self, quiz_id: uuid.UUID | None = None) -> int:
        query = self.db.query(func.count(QuizSubmission.id))
        if quiz_id is not None:
            query = query.filter(QuizSubmission.quiz_id == quiz_id)
        return query.scalar() or 0

    def count_profiles(self) -> int:
        return self.db.query(func.count(Profile.id)).scalar() or 0

    def average_percentage(self) -> float:
        return float(self.db.query(func.avg(QuizSubmission.percentage)).scalar() or 0.0)

    def submission_scores_by_quiz(
        self, quiz_ids: Iterable[uuid.UUID]
    ) -> dict[uuid.UUID, list[tuple[int, int]]]:
        """``{quiz_id: [(score, total_possible), ...]}`` for the given quizzes."""
        ids = list(quiz_ids)
        result: dict[uuid.UUID, list[tuple[int, int]]] = {qid: [] for qid in ids}
        if not ids:
            return result
        rows = (
            self.db.query(
                QuizSubmission.quiz_id,
                QuizSubmission.score,
                QuizSubmission.total_possible,
            )
            .filter(QuizSubmission.quiz_id.in_(ids))
            .all()
        )
        for quiz_id, score, total_possible in rows:
            result[quiz_id].append((score, total_possible))
        return result
