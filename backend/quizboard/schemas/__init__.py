"""Pydantic schemas — re‑exported for convenience."""

from quizboard.schemas.user import (  # noqa: F401
    AuthResponse,
    UserCreate,
    UserLogin,
    UserRead,
)
from quizboard.schemas.quiz import (  # noqa: F401
    AdminStats,
    QuestionIn,
    QuestionPublic,
    QuizAdminRead,
    QuizCreate,
    QuizPublic,
    QuizSummary,
    QuizUpdate,
)
from quizboard.schemas.session import (  # noqa: F401
    AnswerRequest,
    NavigateRequest,
    SessionRead,
    SubmissionResultRead,
)
from quizboard.schemas.leaderboard import (  # noqa: F401
    LeaderboardsRead,
    OverallLeaderboardEntry,
    QuizLeaderboardEntry,
    QuizLeaderboardPreview,
    QuizLeaderboardRead,
)
