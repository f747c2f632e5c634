"""API route package — imports all routers for main.py."""

from quizboard.api.health import router as health_router  # noqa: F401
from quizboard.api.users import router as users_router  # noqa: F401
from quizboard.api.quizzes import router as quizzes_router  # noqa: F401
from quizboard.api.sessions import router as sessions_router  # noqa: F401
from quizboard.api.leaderboards import router as leaderboards_router  # noqa: F401
from quizboard.api.admin import router as admin_router  # noqa: F401
