"""Scoring engine for multiple-choice attempts.

A pure function of (quiz definition, answer sequence). Every question is
all-or-nothing: the slot either equals ``correct_answer`` and earns the
question's points, or it earns nothing. Unanswered slots (``None``) never
match.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from quizboard.domain.models import QuizDefinition


@dataclass(frozen=True, slots=True)
class ScoreResult:
    score: int
    total_possible: int
    percentage: float
    correctness: tuple[bool, ...]

    @property
    def correct_count(self) -> int:
        return sum(self.correctness)


def percentage_of(score: int, total_possible: int) -> float:
    """Unrounded percentage; 0.0 when nothing was possible."""
    if total_possible <= 0:
        return 0.0
    return score / total_possible * 100


def score_answers(quiz: QuizDefinition, answers: Sequence[int | None]) -> ScoreResult:
    """Grade *answers* against *quiz*.

    ``answers`` is aligned with ``quiz.questions``; a shorter sequence is
    treated as unanswered for the missing tail. ``total_possible`` is the
    quiz's stored ``total_points``, not a recount of the questions.
    """
    correctness = tuple(
        question.is_correct(answers[i] if i < len(answers) else None)
        for i, question in enumerate(quiz.questions)
    )
    score = sum(q.points for q, ok in zip(quiz.questions, correctness) if ok)
    return ScoreResult(
        score=score,
        total_possible=quiz.total_points,
        percentage=percentage_of(score, quiz.total_points),
        correctness=correctness,
    )


def format_time(seconds: int) -> str:
    """Render a countdown as ``m:ss``."""
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes}:{secs:02d}"


def format_percentage(value: float) -> str:
    """One decimal place for display; stored values keep full precision."""
    return f"{value:.1f}%"
