"""Live quiz session schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, computed_field

from quizboard.schemas.quiz import QuestionPublic
from quizboard.services.scoring import format_percentage


class AnswerRequest(BaseModel):
    """POST /api/sessions/{quiz_id}/answer"""

    option_index: int = Field(ge=0)


class NavigateRequest(BaseModel):
    """POST /api/sessions/{quiz_id}/navigate"""

    index: int = Field(ge=0)


class SubmissionResultRead(BaseModel):
    """What the participant sees once their quiz is graded."""

    submission_id: uuid.UUID
    score: int
    total_possible: int
    percentage: float
    correct_count: int
    question_count: int
    correctness: list[bool]
    correct_answers: list[int]
    user_answers: list[int | None]
    time_taken: int
    submitted_at: datetime
    forced: bool = False

    @computed_field
    @property
    def percentage_display(self) -> str:
        return format_percentage(self.percentage)


class SessionRead(BaseModel):
    quiz_id: uuid.UUID
    quiz_title: str
    state: str
    current_question: int
    question_count: int
    question: QuestionPublic | None = None
    answers: list[int | None]
    unanswered: list[int] = []
    time_remaining: int | None = None
    time_remaining_display: str | None = None
    can_go_next: bool = False
    can_go_previous: bool = False
    can_submit: bool = False
    started_at: datetime | None = None
    result: SubmissionResultRead | None = None
