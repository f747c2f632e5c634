"""FastAPI dependencies shared across routes."""

import uuid

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from quizboard.core.security import decode_access_token
from quizboard.db.models import Profile, RoleEnum
from quizboard.db.session import get_db
from quizboard.services.errors import (
    AlreadyCompletedError,
    IncompleteAnswersError,
    InvalidAnswerError,
    InvalidNavigationError,
    QuizboardError,
    QuizNotFoundError,
    SessionNotFoundError,
    SessionStateError,
)
from quizboard.services.repository import QuizRepository
from quizboard.services.session_manager import SessionManager

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/users/login")

_STATUS_BY_ERROR: list[tuple[type[QuizboardError], int]] = [
    (QuizNotFoundError, status.HTTP_404_NOT_FOUND),
    (SessionNotFoundError, status.HTTP_404_NOT_FOUND),
    (AlreadyCompletedError, status.HTTP_409_CONFLICT),
    (SessionStateError, status.HTTP_409_CONFLICT),
    (IncompleteAnswersError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidNavigationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidAnswerError, status.HTTP_422_UNPROCESSABLE_ENTITY),
]


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> Profile:
    """Decode JWT and return the authenticated profile, or 401."""
    payload = decode_access_token(token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user_id = payload.get("sub")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload"
        )
    user = db.query(Profile).filter(Profile.id == uuid.UUID(user_id)).first()
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )
    return user


def require_admin(current_user: Profile = Depends(get_current_user)) -> Profile:
    """Raise 403 unless the caller is an admin."""
    if current_user.role != RoleEnum.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required"
        )
    return current_user


def get_repository(db: Session = Depends(get_db)) -> QuizRepository:
    return QuizRepository(db)


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def http_error(exc: QuizboardError) -> HTTPException:
    """Translate a domain error into the HTTP response routers raise."""
    if exc.retryable:
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=exc.message,
            headers={"Retry-After": "1"},
        )
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=exc.message)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
