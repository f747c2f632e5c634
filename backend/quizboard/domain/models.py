"""Immutable quiz definitions used by the session, scoring and ranking engines."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping

MIN_OPTIONS = 2


@dataclass(frozen=True, slots=True)
class QuestionDefinition:
    """One multiple-choice question: prompt, ordered options, correct index, weight."""

    question: str
    options: tuple[str, ...]
    correct_answer: int
    points: int

    def __post_init__(self) -> None:
        if len(self.options) < MIN_OPTIONS:
            raise ValueError(f"A question needs at least {MIN_OPTIONS} options.")
        if not 0 <= self.correct_answer < len(self.options):
            raise ValueError(
                f"correct_answer {self.correct_answer} is outside 0..{len(self.options) - 1}."
            )
        if self.points < 0:
            raise ValueError("Question points must be non-negative.")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> QuestionDefinition:
        return cls(
            question=str(data["question"]),
            options=tuple(str(option) for option in data["options"]),
            correct_answer=int(data["correct_answer"]),
            points=int(data.get("points") or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "question": self.question,
            "options": list(self.options),
            "correct_answer": self.correct_answer,
            "points": self.points,
        }

    def is_correct(self, answer: int | None) -> bool:
        return answer is not None and answer == self.correct_answer


@dataclass(frozen=True, slots=True)
class QuizDefinition:
    """Read-only snapshot of a quiz for the duration of an attempt."""

    id: uuid.UUID
    title: str
    questions: tuple[QuestionDefinition, ...]
    total_points: int
    time_limit: int | None = None  # minutes
    is_active: bool = True
    description: str | None = None

    @classmethod
    def build(
        cls,
        title: str,
        questions: Iterable[QuestionDefinition],
        *,
        quiz_id: uuid.UUID | None = None,
        time_limit: int | None = None,
        is_active: bool = True,
        description: str | None = None,
    ) -> QuizDefinition:
        """Create a new definition; ``total_points`` is derived from the questions."""
        questions = tuple(questions)
        if not questions:
            raise ValueError("A quiz needs at least one question.")
        if time_limit is not None and time_limit <= 0:
            raise ValueError("time_limit must be a positive number of minutes.")
        return cls(
            id=quiz_id or uuid.uuid4(),
            title=title,
            questions=questions,
            total_points=sum(q.points for q in questions),
            time_limit=time_limit,
            is_active=is_active,
            description=description,
        )

    @classmethod
    def from_record(cls, record: Any) -> QuizDefinition:
        """Snapshot a persisted ``Quiz`` row.

        The stored ``total_points`` is kept as-is rather than recomputed.
        A zero or missing time limit means the quiz is untimed.
        """
        return cls(
            id=record.id,
            title=record.title,
            questions=tuple(QuestionDefinition.from_dict(q) for q in record.questions or []),
            total_points=record.total_points or 0,
            time_limit=record.time_limit or None,
            is_active=bool(record.is_active),
            description=record.description,
        )

    @property
    def question_count(self) -> int:
        return len(self.questions)

    @property
    def time_limit_seconds(self) -> int | None:
        return self.time_limit * 60 if self.time_limit else None


@dataclass(frozen=True, slots=True)
class SubmissionDraft:
    """Everything the submit transition hands to persistence."""

    quiz_id: uuid.UUID
    user_id: uuid.UUID
    answers: tuple[int | None, ...]
    score: int
    total_possible: int
    percentage: float
    time_taken: int | None


@dataclass(frozen=True, slots=True)
class SubmissionReceipt:
    """Identity and timestamp of a stored submission."""

    id: uuid.UUID
    submitted_at: datetime
