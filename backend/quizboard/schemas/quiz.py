"""Quiz authoring and listing schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from quizboard.domain.models import QuestionDefinition, QuizDefinition


class QuestionIn(BaseModel):
    """One multiple-choice question as written by an administrator."""

    question: str = Field(min_length=1)
    options: list[str] = Field(min_length=2)
    correct_answer: int = Field(ge=0)
    points: int = Field(default=1, ge=0)

    @model_validator(mode="after")
    def _correct_answer_in_range(self) -> "QuestionIn":
        if self.correct_answer >= len(self.options):
            raise ValueError(
                f"correct_answer must index into options (0..{len(self.options) - 1})"
            )
        return self

    def to_definition(self) -> QuestionDefinition:
        return QuestionDefinition(
            question=self.question,
            options=tuple(self.options),
            correct_answer=self.correct_answer,
            points=self.points,
        )


class QuizCreate(BaseModel):
    """POST /api/admin/quizzes"""

    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    questions: list[QuestionIn] = Field(min_length=1)
    time_limit: int | None = Field(default=None, gt=0)  # minutes
    is_active: bool = True

    def to_definition(self) -> QuizDefinition:
        return QuizDefinition.build(
            title=self.title,
            questions=[q.to_definition() for q in self.questions],
            time_limit=self.time_limit,
            is_active=self.is_active,
            description=self.description,
        )


class QuizUpdate(BaseModel):
    """PATCH /api/admin/quizzes/{id} — only the fields sent are changed."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    questions: list[QuestionIn] | None = Field(default=None, min_length=1)
    time_limit: int | None = Field(default=None, gt=0)
    is_active: bool | None = None


class QuestionPublic(BaseModel):
    """A question as shown to participants — no correct answer."""

    question: str
    options: list[str]
    points: int


class QuizPublic(BaseModel):
    id: uuid.UUID
    title: str
    description: str | None = None
    questions: list[QuestionPublic]
    question_count: int
    total_points: int
    time_limit: int | None = None
    created_at: datetime


class QuizSummary(BaseModel):
    """Entry in the participant's quiz list, with their own result if any."""

    id: uuid.UUID
    title: str
    description: str | None = None
    question_count: int
    total_points: int
    time_limit: int | None = None
    created_at: datetime
    completed: bool = False
    score: int | None = None
    percentage: float | None = None


class QuizAdminRead(BaseModel):
    id: uuid.UUID
    title: str
    description: str | None = None
    questions: list[QuestionIn]
    total_points: int
    time_limit: int | None = None
    is_active: bool
    created_by: uuid.UUID | None = None
    created_at: datetime
    updated_at: datetime
    submission_count: int = 0
    avg_score: float = 0.0

    model_config = {"from_attributes": True}


class AdminStats(BaseModel):
    total_quizzes: int
    total_submissions: int
    total_users: int
    avg_score: float
