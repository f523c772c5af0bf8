"""
Email + password authentication service.
Handles sign-up, sign-in, sign-out, session lookup and role grants.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import get_db
from models.database.user import User as DBUser, UserRole
from services.auth import (
    authenticate_user,
    decode_token,
    get_user_by_email,
    hash_password,
    issue_session_token,
    oauth2_scheme,
    oauth2_scheme_optional,
    resolve_session,
    session_store,
)
from shared.enums import AppRole
from shared.models import (
    AuthSessionResponse,
    CurrentSessionResponse,
    SessionUser,
    SignInRequest,
    SignUpRequest,
)
from shared.response_models import MessageResponse
from shared.utils import config, setup_logging

logger = setup_logging("auth-service")


class EmailAlreadyRegisteredError(Exception):
    """Raised when signing up with an email that already has an account."""


class WeakPasswordError(ValueError):
    """Raised when a password does not meet the minimum length."""


class InvalidCredentialsError(Exception):
    """Raised when email and password do not match an active account."""


class AuthService:
    """Account and session management backed by the users/user_roles tables."""

    def __init__(self) -> None:
        self.min_password_length = config.get("auth_min_password_length", 6)

    def sign_up(self, db: Session, email: str, password: str) -> DBUser:
        """Create an account with the default ``user`` role."""
        if len(password) < self.min_password_length:
            raise WeakPasswordError(
                f"Password must be at least {self.min_password_length} characters"
            )

        normalized = email.strip().lower()
        if get_user_by_email(db, normalized):
            raise EmailAlreadyRegisteredError("Email already registered")

        user = DBUser(email=normalized, hashed_password=hash_password(password))
        user.roles.append(UserRole(role=AppRole.USER.value))
        db.add(user)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise EmailAlreadyRegisteredError("Email already registered") from e
        db.refresh(user)

        logger.info(f"Registered new user: {user.id}")
        return user

    def sign_in(self, db: Session, email: str, password: str) -> AuthSessionResponse:
        user = authenticate_user(db, email, password)
        if not user:
            raise InvalidCredentialsError("Incorrect email or password")
        return self.open_session(user)

    def open_session(self, user: DBUser) -> AuthSessionResponse:
        token, session_id, expires_in = issue_session_token(user)
        logger.info(f"Opened session {session_id[:8]}... for user {user.id}")
        return AuthSessionResponse(
            access_token=token,
            expires_in=expires_in,
            session_id=session_id,
            user=self.describe_user(user),
        )

    def sign_out(self, token: str) -> bool:
        payload = decode_token(token)
        revoked = session_store.revoke(payload["session_id"])
        if revoked:
            logger.info(f"Signed out session {payload['session_id'][:8]}...")
        return revoked

    @staticmethod
    def has_role(user: DBUser, role: AppRole) -> bool:
        return any(grant.role == role.value for grant in user.roles)

    def grant_role(self, db: Session, user: DBUser, role: AppRole) -> None:
        """Grant ``role`` to ``user``; granting an existing role is a no-op."""
        if self.has_role(user, role):
            return
        user.roles.append(UserRole(role=role.value))
        db.commit()
        logger.info(f"Granted role {role.value} to user {user.id}")

    @staticmethod
    def describe_user(user: DBUser) -> SessionUser:
        return SessionUser(
            id=user.id,
            email=user.email,
            roles=sorted(grant.role for grant in user.roles),
            created_at=user.created_at,
        )


# Create global authentication service instance
auth_service = AuthService()

# Create API router
router = APIRouter()


@router.post("/signup", response_model=AuthSessionResponse, status_code=201, tags=["Authentication"])
async def sign_up(request: SignUpRequest, db: Session = Depends(get_db)) -> AuthSessionResponse:
    """Register with email and password; the new account is signed in immediately."""
    try:
        user = auth_service.sign_up(db, request.email, request.password)
    except WeakPasswordError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except EmailAlreadyRegisteredError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return auth_service.open_session(user)


@router.post("/signin", response_model=AuthSessionResponse, tags=["Authentication"])
async def sign_in(request: SignInRequest, db: Session = Depends(get_db)) -> AuthSessionResponse:
    """Sign in with email and password."""
    try:
        return auth_service.sign_in(db, request.email, request.password)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.post("/signout", response_model=MessageResponse, tags=["Authentication"])
async def sign_out(token: str = Depends(oauth2_scheme)) -> MessageResponse:
    """Invalidate the caller's session."""
    auth_service.sign_out(token)
    return MessageResponse(message="Signed out successfully")


@router.get("/session", response_model=CurrentSessionResponse, tags=["Authentication"])
async def current_session(
    token: str | None = Depends(oauth2_scheme_optional), db: Session = Depends(get_db)
) -> CurrentSessionResponse:
    """Return the caller's live session, or ``{"session": null}`` for anonymous callers."""
    if not token:
        return CurrentSessionResponse(session=None)
    try:
        payload, session = resolve_session(token)
    except HTTPException:
        return CurrentSessionResponse(session=None)

    user = db.get(DBUser, payload["sub"])
    if user is None:
        return CurrentSessionResponse(session=None)

    expires_in = int((session["expires_at"] - session["created_at"]).total_seconds())
    return CurrentSessionResponse(
        session=AuthSessionResponse(
            access_token=token,
            expires_in=expires_in,
            session_id=payload["session_id"],
            user=auth_service.describe_user(user),
        )
    )


@router.get("/health", tags=["Authentication"])
async def auth_health():
    """Authentication service health check"""
    return {
        "status": "healthy",
        "active_sessions": len(session_store),
    }
