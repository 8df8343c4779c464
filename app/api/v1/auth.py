"""Auth routes (register, login, refresh, logout, me) and the bearer access-token gate."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.database import get_db
from app.core.deps import get_app_settings
from app.core.errors import AuthenticationError, InvalidTokenError
from app.core.security import decode_access_token
from app.repositories.users import UserRepository
from app.schemas.auth import (
    CurrentUser,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    TokenPairResponse,
    UserOut,
)
from app.services.sessions import SessionService

router = APIRouter()
security = HTTPBearer(auto_error=False)


def get_session_service(
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> SessionService:
    return SessionService(UserRepository(db), settings)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> CurrentUser:
    """Dependency: require a valid Bearer access token and return its identity. Raises 401 otherwise."""
    if credentials is None:
        raise AuthenticationError("Not authenticated")
    try:
        payload = decode_access_token(credentials.credentials, settings)
    except InvalidTokenError as e:
        raise AuthenticationError("Invalid or expired token") from e
    try:
        return CurrentUser(
            id=int(payload["sub"]),
            email=str(payload.get("email", "")),
            role_id=int(payload.get("role_id", settings.DEFAULT_ROLE_ID)),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise AuthenticationError("Invalid token payload") from e


@router.post("/register", response_model=RegisterResponse, status_code=201)
def register(
    body: RegisterRequest,
    service: Annotated[SessionService, Depends(get_session_service)],
) -> RegisterResponse:
    """Create an account. Returns id and email only; call /login to obtain tokens."""
    user = service.register(body.email, body.password, body.role_id)
    return RegisterResponse(id=user.id, email=user.email)


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    service: Annotated[SessionService, Depends(get_session_service)],
) -> LoginResponse:
    """
    Authenticate with email and password; returns an access and a refresh token.
    Include the access token in the Authorization header as: Bearer <accessToken>
    """
    result = service.login(body.email, body.password)
    return LoginResponse(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        user=UserOut(
            id=result.user.id,
            email=result.user.email,
            role_id=result.user.role_id,
        ),
    )


@router.post("/refresh", response_model=TokenPairResponse)
def refresh(
    body: RefreshRequest,
    service: Annotated[SessionService, Depends(get_session_service)],
) -> TokenPairResponse:
    """Exchange the current refresh token for a new pair. The presented token stops working."""
    pair = service.refresh(body.refresh_token)
    return TokenPairResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
    )


@router.post("/logout", response_model=MessageResponse)
def logout(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    service: Annotated[SessionService, Depends(get_session_service)],
) -> MessageResponse:
    """Revoke the caller's refresh token."""
    service.logout(current_user.id)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserOut)
def me(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> UserOut:
    """Identity carried by the presented access token."""
    return UserOut(
        id=current_user.id,
        email=current_user.email,
        role_id=current_user.role_id,
    )
