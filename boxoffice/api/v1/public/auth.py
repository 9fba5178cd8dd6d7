from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from boxoffice.db.session import get_db
from boxoffice.core.config import settings
from boxoffice.core.security import create_access_token, get_password_hash, verify_password

from boxoffice.api.deps import get_current_user, get_user_role
from boxoffice.models.user import User
from boxoffice.schemas.user import (
    UserCreate,
    AdminCreate,
    LoginRequest,
    AuthResponse,
    MeResponse,
    User as UserSchema,
)

router = APIRouter(prefix="/auth", tags=["auth"])

INVALID_CREDENTIALS = "Invalid credentials"


def _public_user(db: Session, user: User) -> UserSchema:
    return UserSchema(
        id=user.id,
        email=user.email,
        display_name=user.display_name,
        role=get_user_role(db, user.id),
        created_at=user.created_at,
    )


def _build_token_response(db: Session, user: User) -> AuthResponse:
    public_user = _public_user(db, user)
    token = create_access_token(
        user_id=public_user.id,
        email=public_user.email,
        role=public_user.role,
    )
    return AuthResponse(token=token, user=public_user)


def _create_user(db: Session, body: UserCreate, role: str) -> User:
    if db.query(User).filter(func.lower(User.email) == body.email).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already in use",
        )
    user = User(
        email=body.email,
        password_hash=get_password_hash(body.password),
        display_name=body.display_name,
        role=role,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already in use",
        )
    db.refresh(user)
    return user


@router.post("/register", response_model=AuthResponse)
def register(body: UserCreate, db: Session = Depends(get_db)):
    user = _create_user(db, body, role="USER")
    return _build_token_response(db, user)


@router.post("/admin/register", response_model=AuthResponse)
def admin_register(body: AdminCreate, db: Session = Depends(get_db)):
    if body.admin_secret != settings.ADMIN_SECRET_KEY:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid admin secret",
        )
    user = _create_user(db, body, role="ADMIN")
    return _build_token_response(db, user)


@router.post("/login", response_model=AuthResponse)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    # Same answer for an unknown email and a wrong password
    user = db.query(User).filter(func.lower(User.email) == body.email.strip().lower()).first()
    if not user or not verify_password(body.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CREDENTIALS,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _build_token_response(db, user)


@router.get("/me", response_model=MeResponse)
def me(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Return the authenticated user's profile and role."""
    return MeResponse(user=_public_user(db, current_user))
