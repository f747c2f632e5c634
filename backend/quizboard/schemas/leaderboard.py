"""Leaderboard schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, computed_field

from quizboard.services.scoring import format_percentage


class QuizLeaderboardEntry(BaseModel):
    rank: int
    user_id: uuid.UUID
    full_name: str | None = None
    email: str | None = None
    score: int
    percentage: float
    time_taken: int | None = None
    submitted_at: datetime | None = None

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def percentage_display(self) -> str:
        return format_percentage(self.percentage)


class OverallLeaderboardEntry(BaseModel):
    rank: int
    user_id: uuid.UUID
    full_name: str | None = None
    email: str | None = None
    total_score: int
    quiz_count: int
    average_score: float
    best_score: int

    model_config = {"from_attributes": True}


class QuizLeaderboardRead(BaseModel):
    """GET /api/leaderboards/{quiz_id}"""

    quiz_id: uuid.UUID
    title: str
    description: str | None = None
    total_points: int
    entries: list[QuizLeaderboardEntry] = []
    my_entry: QuizLeaderboardEntry | None = None


class QuizLeaderboardPreview(BaseModel):
    quiz_id: uuid.UUID
    quiz_title: str
    entries: list[QuizLeaderboardEntry] = []


class LeaderboardsRead(BaseModel):
    """GET /api/leaderboards — overall standings plus a top-N per active quiz."""

    overall: list[OverallLeaderboardEntry] = []
    quizzes: list[QuizLeaderboardPreview] = []
