"""Registration, login, refresh and logout, plus the get_current_user dependency."""

import logging
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from chatapi.api.deps import SettingsDep, get_session_manager
from chatapi.core.config import Settings
from chatapi.core.database import get_db
from chatapi.models.user import User
from chatapi.schemas.auth import (
    AuthResponse,
    CurrentUser,
    LoginRequest,
    MessageOnlyResponse,
    RefreshResponse,
    RegisterRequest,
    UserInfo,
)
from chatapi.services.errors import ChatServiceError, TokenExpiredError, TokenInvalidError
from chatapi.services.sessions import SessionManager, SessionResult
from chatapi.services.transactions import transaction

logger = logging.getLogger(__name__)

router = APIRouter()
security = HTTPBearer(auto_error=False)

SessionManagerDep = Annotated[SessionManager, Depends(get_session_manager)]


def _set_refresh_cookie(response: Response, settings: Settings, result: SessionResult) -> None:
    """HTTP-only, path-restricted cookie whose max-age matches the stored expiry."""
    max_age = int((result.refresh_expires_at - datetime.now(UTC)).total_seconds())
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=result.refresh_token,
        max_age=max_age,
        path=settings.REFRESH_COOKIE_PATH,
        httponly=True,
        secure=settings.is_production,
        samesite=settings.REFRESH_COOKIE_SAMESITE,
    )


def _clear_refresh_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        path=settings.REFRESH_COOKIE_PATH,
        httponly=True,
        secure=settings.is_production,
        samesite=settings.REFRESH_COOKIE_SAMESITE,
    )


def _auth_response(settings: Settings, result: SessionResult) -> AuthResponse:
    return AuthResponse(
        access_token=result.access_token,
        token_type="bearer",
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
        user=UserInfo.model_validate(result.user),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    response: Response,
    settings: SettingsDep,
    sessions: SessionManagerDep,
    db: Annotated[Session, Depends(get_db)],
) -> AuthResponse:
    """
    Create an account and sign it in.
    Returns an access token; the refresh token is set as an HTTP-only cookie.
    """
    result = sessions.register(db, body.name, body.email, body.password)
    _set_refresh_cookie(response, settings, result)
    return _auth_response(settings, result)


@router.post("/login", response_model=AuthResponse)
def login(
    body: LoginRequest,
    response: Response,
    settings: SettingsDep,
    sessions: SessionManagerDep,
    db: Annotated[Session, Depends(get_db)],
) -> AuthResponse:
    """
    Authenticate with email and password; returns a JWT access token.
    Include the token in the Authorization header as: Bearer <access_token>
    """
    result = sessions.login(db, body.email, body.password)
    _set_refresh_cookie(response, settings, result)
    return _auth_response(settings, result)


@router.post("/refresh", response_model=RefreshResponse)
def refresh(
    request: Request,
    response: Response,
    settings: SettingsDep,
    sessions: SessionManagerDep,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Exchange the refresh cookie for a new access token.
    The cookie is rotated on success and cleared on failure.
    """
    token = (request.cookies.get(settings.REFRESH_COOKIE_NAME) or "").strip()
    try:
        result = sessions.rotate_refresh_token(db, token)
    except (TokenInvalidError, TokenExpiredError) as e:
        failed = JSONResponse(
            status_code=e.status_code,
            content={"detail": e.message, "code": e.code},
            headers={"WWW-Authenticate": "Bearer"},
        )
        _clear_refresh_cookie(failed, settings)
        return failed
    _set_refresh_cookie(response, settings, result)
    return RefreshResponse(
        access_token=result.access_token,
        token_type="bearer",
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
    )


@router.post("/logout", response_model=MessageOnlyResponse)
def logout(
    request: Request,
    response: Response,
    settings: SettingsDep,
    sessions: SessionManagerDep,
    db: Annotated[Session, Depends(get_db)],
) -> MessageOnlyResponse:
    """Revoke the refresh token (if any) and clear the cookie. Always succeeds."""
    token = (request.cookies.get(settings.REFRESH_COOKIE_NAME) or "").strip()
    try:
        sessions.revoke_refresh_token(db, token)
    except ChatServiceError:
        # The client-side cookie is cleared regardless.
        logger.exception("Refresh token revocation failed during logout")
    _clear_refresh_cookie(response, settings)
    return MessageOnlyResponse(message="Logged out.")


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    sessions: SessionManagerDep,
    db: Annotated[Session, Depends(get_db)],
) -> CurrentUser:
    """Dependency: require valid Bearer JWT and return the current user. Raises 401 if missing or invalid."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        claims = sessions.verify_access_token(credentials.credentials)
    except TokenInvalidError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    with transaction(db, "load current user"):
        user = db.get(User, claims.user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return CurrentUser(id=user.id, name=user.name, email=user.email)


CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]
