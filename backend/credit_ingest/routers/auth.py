"""
Credit Ingest - Authentication Router

Accounts come in two roles: "user" uploads and ingests reports, "admin"
also curates canonical fields and field mappings. New accounts are always
users; admins are created with scripts/seed_admin.py.
"""
from uuid import uuid4
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.db_models import UserDB
from ..auth import (
    ACCESS_TOKEN_EXPIRE_HOURS,
    create_access_token,
    get_current_user,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

MIN_PASSWORD_LENGTH = 8


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class Credentials(BaseModel):
    email: EmailStr
    password: str


class RegisterRequest(Credentials):
    username: str

    @field_validator("password")
    @classmethod
    def check_length(cls, v):
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return v


class AccountResponse(BaseModel):
    id: str
    email: str
    username: str
    role: str

    @classmethod
    def from_user(cls, user: UserDB) -> "AccountResponse":
        return cls(id=user.id, email=user.email, username=user.username, role=user.role or "user")


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: str
    expires_in: int


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.post("/register", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest, db: Session = Depends(get_db)):
    """Create a user account. Email and username must both be unused."""
    user = UserDB(
        id=str(uuid4()),
        email=request.email,
        username=request.username,
        password_hash=hash_password(request.password),
        role="user",
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email or username already registered",
        )
    db.refresh(user)

    logger.info(f"Account created: {user.username}")
    return AccountResponse.from_user(user)


@router.post("/login", response_model=TokenResponse)
async def login(credentials: Credentials, db: Session = Depends(get_db)):
    user = db.query(UserDB).filter(UserDB.email == credentials.email).first()
    if not user or not verify_password(credentials.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    role = user.role or "user"
    return TokenResponse(
        access_token=create_access_token(user.id, user.email, role),
        role=role,
        expires_in=ACCESS_TOKEN_EXPIRE_HOURS * 3600,
    )


@router.get("/me", response_model=AccountResponse)
async def me(current_user: UserDB = Depends(get_current_user)):
    return AccountResponse.from_user(current_user)
