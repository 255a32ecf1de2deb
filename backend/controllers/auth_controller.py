"""HTTP controller layer for account registration and login."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from backend.controllers.dependencies import get_auth_service, require_user
from backend.domain.models import User
from backend.services.auth_service import (
    AuthService,
    AuthSession,
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    RegistrationValidationError,
)
from backend.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)
    name: Optional[str] = None


class LoginRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UserResponse(BaseModel):
    id: int = Field(gt=0)
    email: str
    name: Optional[str] = None
    role: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class MeResponse(BaseModel):
    user: UserResponse


def _user_response(user: User) -> UserResponse:
    return UserResponse(id=user.user_id, email=user.email, name=user.name, role=user.role)


def _token_response(session: AuthSession) -> TokenResponse:
    return TokenResponse(access_token=session.access_token, user=_user_response(session.user))


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    try:
        session = auth_service.register(
            email=payload.email,
            password=payload.password,
            name=payload.name,
        )
    except RegistrationValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except EmailAlreadyRegisteredError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected registration failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal Server Error",
        ) from exc
    return _token_response(session)


@router.post("/login", response_model=TokenResponse, status_code=status.HTTP_200_OK)
def login(
    payload: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    try:
        session = auth_service.login(email=payload.email, password=payload.password)
    except InvalidCredentialsError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    return _token_response(session)


@router.get("/me", response_model=MeResponse, status_code=status.HTTP_200_OK)
async def me(user: User = Depends(require_user)) -> MeResponse:
    return MeResponse(user=_user_response(user))
