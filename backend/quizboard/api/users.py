"""Profile registration, login, and lookup routes."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from quizboard.api.deps import get_current_user
from quizboard.core.security import create_access_token, hash_password, verify_password
from quizboard.db.models import Profile, RoleEnum
from quizboard.db.session import get_db
from quizboard.schemas.user import AuthResponse, UserCreate, UserLogin, UserRead

router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(body: UserCreate, db: Session = Depends(get_db)):
    """Create a participant profile. Administrators are promoted out of band."""
    existing = db.query(Profile).filter(Profile.email == body.email).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )

    try:
        hashed = hash_password(body.password)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc

    user = Profile(
        email=body.email,
        hashed_password=hashed,
        full_name=body.full_name,
        role=RoleEnum.STUDENT,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    token = create_access_token(data={"sub": str(user.id), "role": user.role.value})
    return AuthResponse(access_token=token, user=UserRead.model_validate(user))


@router.post("/login", response_model=AuthResponse)
def login(body: UserLogin, db: Session = Depends(get_db)):
    """Authenticate and return a JWT access token + profile."""
    user = db.query(Profile).filter(Profile.email == body.email).first()
    if not user or not verify_password(body.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account deactivated",
        )

    token = create_access_token(data={"sub": str(user.id), "role": user.role.value})
    return AuthResponse(access_token=token, user=UserRead.model_validate(user))


@router.get("/me", response_model=UserRead)
def me(current_user: Profile = Depends(get_current_user)):
    """Return the authenticated profile."""
    return current_user
