import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from jose import JWTError, jwt
from pydantic import BaseModel
from sqlalchemy.orm import Session

from database import get_db
from models.database.user import User as DBUser
from shared.config import ALGORITHM, SECRET_KEY
from shared.utils import config, setup_logging

logger = setup_logging("auth")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/token")
# Optional auth scheme that allows anonymous viewers
oauth2_scheme_optional = OAuth2PasswordBearer(tokenUrl="/token", auto_error=False)


class User(BaseModel):
    id: str
    email: str
    disabled: bool = False


class SessionStore:
    """In-memory session registry; a token is only honoured while its session lives."""

    def __init__(self) -> None:
        self._sessions: dict[str, dict[str, Any]] = {}

    def create(self, user_id: str, expire_minutes: int) -> tuple[str, datetime]:
        now = datetime.now(timezone.utc)
        self.purge_expired(now)
        session_id = secrets.token_urlsafe(32)
        expires_at = now + timedelta(minutes=expire_minutes)
        self._sessions[session_id] = {
            "session_id": session_id,
            "user_id": user_id,
            "created_at": now,
            "expires_at": expires_at,
        }
        return session_id, expires_at

    def get(self, session_id: str) -> dict[str, Any] | None:
        session = self._sessions.get(session_id)
        if not session:
            return None
        if datetime.now(timezone.utc) > session["expires_at"]:
            self.revoke(session_id)
            return None
        return session

    def revoke(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def purge_expired(self, now: datetime | None = None) -> int:
        """Drop every session past its expiry; returns how many were removed."""
        now = now or datetime.now(timezone.utc)
        expired = [sid for sid, session in self._sessions.items() if now > session["expires_at"]]
        for session_id in expired:
            del self._sessions[session_id]
        return len(expired)

    def clear(self) -> None:
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)


session_store = SessionStore()


def hash_password(plain_password: str) -> str:
    """Hash a password with a fresh bcrypt salt."""
    return bcrypt.hashpw(plain_password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


def get_user_by_email(db: Session, email: str) -> DBUser | None:
    """Get user from database by email (case-insensitive)."""
    return db.query(DBUser).filter(DBUser.email == email.strip().lower()).first()


def authenticate_user(db: Session, email: str, password: str) -> DBUser | None:
    """Authenticate user credentials."""
    user = get_user_by_email(db, email)
    if not user or user.disabled or not verify_password(password, user.hashed_password):
        return None
    return user


def create_access_token(data: dict[str, Any], expires_at: datetime | None = None) -> str:
    """Create JWT access token."""
    payload = dict(data)
    if expires_at is not None:
        payload["exp"] = expires_at
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def issue_session_token(user: DBUser) -> tuple[str, str, int]:
    """Open a session for ``user`` and return ``(token, session_id, expires_in_seconds)``."""
    expire_minutes = config.get("auth_session_expire_minutes", 1440)
    session_id, expires_at = session_store.create(user.id, expire_minutes)
    token = create_access_token(
        {"sub": user.id, "session_id": session_id, "email": user.email}, expires_at=expires_at
    )
    return token, session_id, expire_minutes * 60


def resolve_session(token: str) -> tuple[dict[str, Any], dict[str, Any]]:
    """Decode a token and return its claims together with its live session."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        raise HTTPException(status_code=401, detail="Invalid token") from e

    user_id = payload.get("sub")
    session_id = payload.get("session_id")
    if not isinstance(user_id, str) or not isinstance(session_id, str):
        raise HTTPException(status_code=401, detail="Invalid token")

    session = session_store.get(session_id)
    if session is None or session["user_id"] != user_id:
        raise HTTPException(status_code=401, detail="Session expired or invalid")
    return payload, session


def decode_token(token: str) -> dict[str, Any]:
    """Decode a token and make sure its session is still alive."""
    payload, _ = resolve_session(token)
    return payload


def _load_user(db: Session, token: str) -> DBUser:
    payload = decode_token(token)
    user = db.get(DBUser, payload["sub"])
    if user is None or user.disabled:
        raise HTTPException(status_code=401, detail="User not found")
    return user


async def get_current_user(
    token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)
) -> DBUser:
    """Resolve the signed-in user or fail with 401."""
    return _load_user(db, token)


async def get_optional_user(
    token: str | None = Depends(oauth2_scheme_optional), db: Session = Depends(get_db)
) -> DBUser | None:
    """Resolve the signed-in user; anonymous callers get ``None``.

    A token that is present but invalid is still rejected.
    """
    if not token:
        return None
    return _load_user(db, token)


router = APIRouter()


@router.post(
    "/token",
    tags=["Authentication"],
    summary="User Login",
    description="Authenticate with email (sent as `username`) and password, receive a JWT access token",
    response_description="JWT access token for API authentication",
    responses={
        200: {
            "description": "Successfully authenticated user",
            "content": {
                "application/json": {
                    "example": {
                        "access_token": "eyJ0eXAiOiJKV1QiLCJhbGciOiJIUzI1NiJ9...",
                        "token_type": "bearer",
                    }
                }
            },
        },
        400: {
            "description": "Invalid credentials provided",
            "content": {
                "application/json": {"example": {"detail": "Incorrect email or password"}}
            },
        },
    },
)
async def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    """Authenticate user and return JWT access token."""
    user = authenticate_user(db, form_data.username, form_data.password)
    if not user:
        raise HTTPException(status_code=400, detail="Incorrect email or password")
    token, _, _ = issue_session_token(user)
    logger.info(f"Issued token for user {user.id}")
    return {"access_token": token, "token_type": "bearer"}


@router.get(
    "/users/me",
    tags=["Authentication"],
    summary="Get Current User",
    description="Retrieve current authenticated user information",
    response_model=User,
    responses={
        401: {
            "description": "Invalid or expired token",
            "content": {"application/json": {"example": {"detail": "Invalid token"}}},
        },
    },
)
async def read_users_me(current_user: DBUser = Depends(get_current_user)):
    """Get current authenticated user profile."""
    return User(id=current_user.id, email=current_user.email, disabled=current_user.disabled)
