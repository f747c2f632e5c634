"""Leaderboard ranking engine.

Both views are recomputed from a snapshot of submissions on every call.

Per-quiz ranking
    score descending, then time_taken ascending with unknown times last.
    Remaining ties keep input (submission) order; ranks are the 1-based
    positions, so they are always exactly 1..N.

Overall ranking
    submissions grouped by participant, ordered by total_score descending
    only. Participants with equal totals keep the order in which they first
    appear in the input.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable


@dataclass(frozen=True, slots=True)
class RankableSubmission:
    """A submission joined with the participant's display metadata."""

    user_id: uuid.UUID
    score: int
    percentage: float
    time_taken: int | None
    submitted_at: datetime | None
    full_name: str | None = None
    email: str | None = None
    quiz_id: uuid.UUID | None = None


@dataclass(frozen=True, slots=True)
class QuizRankingEntry:
    rank: int
    user_id: uuid.UUID
    full_name: str | None
    email: str | None
    score: int
    percentage: float
    time_taken: int | None
    submitted_at: datetime | None


@dataclass(frozen=True, slots=True)
class OverallRankingEntry:
    rank: int
    user_id: uuid.UUID
    full_name: str | None
    email: str | None
    total_score: int
    quiz_count: int
    average_score: float
    best_score: int


def _quiz_sort_key(sub: RankableSubmission) -> tuple[int, bool, int]:
    untimed = sub.time_taken is None
    return (-sub.score, untimed, 0 if untimed else sub.time_taken)


def rank_quiz_submissions(
    submissions: Iterable[RankableSubmission],
) -> list[QuizRankingEntry]:
    """Order one quiz's submissions and assign sequential ranks."""
    ordered = sorted(submissions, key=_quiz_sort_key)  # sorted() is stable
    return [
        QuizRankingEntry(
            rank=position,
            user_id=sub.user_id,
            full_name=sub.full_name,
            email=sub.email,
            score=sub.score,
            percentage=sub.percentage,
            time_taken=sub.time_taken,
            submitted_at=sub.submitted_at,
        )
        for position, sub in enumerate(ordered, start=1)
    ]


@dataclass(slots=True)
class _ParticipantTally:
    user_id: uuid.UUID
    full_name: str | None
    email: str | None
    total_score: int = 0
    quiz_count: int = 0
    best_score: int | None = None

    def add(self, score: int) -> None:
        self.total_score += score
        self.quiz_count += 1
        if self.best_score is None or score > self.best_score:
            self.best_score = score


def rank_overall(submissions: Iterable[RankableSubmission]) -> list[OverallRankingEntry]:
    """Aggregate submissions per participant and rank by total score."""
    tallies: dict[uuid.UUID, _ParticipantTally] = {}
    for sub in submissions:
        tally = tallies.get(sub.user_id)
        if tally is None:
            tally = _ParticipantTally(sub.user_id, sub.full_name, sub.email)
            tallies[sub.user_id] = tally
        tally.add(sub.score)

    ordered = sorted(tallies.values(), key=lambda t: -t.total_score)
    return [
        OverallRankingEntry(
            rank=position,
            user_id=t.user_id,
            full_name=t.full_name,
            email=t.email,
            total_score=t.total_score,
            quiz_count=t.quiz_count,
            average_score=t.total_score / t.quiz_count,
            best_score=t.best_score or 0,
        )
        for position, t in enumerate(ordered, start=1)
    ]


def find_entry(entries: Iterable[QuizRankingEntry], user_id: uuid.UUID) -> QuizRankingEntry | None:
    """The participant's own row in a per-quiz ranking, if they submitted."""
    return next((e for e in entries if e.user_id == user_id), None)
