"""Account registration, password login and bearer token verification."""

from __future__ import annotations

import hashlib
import re
import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import bcrypt

from backend.domain.models import User
from backend.repository.data_repository import DataRepository, DuplicateEmailError
from backend.utils.config import Settings, get_settings
from backend.utils.dates import utc_now
from backend.utils.logger import get_logger


logger = get_logger(__name__)

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# bcrypt only reads the first 72 bytes of a password.
_BCRYPT_MAX_PASSWORD_BYTES = 72


class AuthenticationError(Exception):
    """Base authentication failure."""


class RegistrationValidationError(AuthenticationError):
    """Raised when registration input is malformed."""


class EmailAlreadyRegisteredError(AuthenticationError):
    """Raised when the email is already taken."""


class InvalidCredentialsError(AuthenticationError):
    """Raised when email or password does not match."""


class InvalidTokenError(AuthenticationError):
    """Raised when a bearer token is unknown or expired."""


@dataclass(frozen=True)
class AuthSession:
    access_token: str
    user: User


def _digest_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def hash_password(password: str, rounds: int) -> str:
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("ascii")


def verify_password(password: str, encoded: str) -> bool:
    """False for a wrong password and for a stored value that is not a bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), encoded.encode("utf-8"))
    except ValueError:
        return False


class AuthService:
    """Issues opaque session tokens and resolves them back to users."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    def _issue_session(self, user: User) -> AuthSession:
        token = secrets.token_urlsafe(32)
        now = utc_now()
        expires_at = now + timedelta(minutes=self._settings.auth_token_ttl_minutes)
        self._repository.create_session(_digest_token(token), user.user_id, expires_at, now)
        return AuthSession(access_token=token, user=user)

    def register(self, email: str, password: str, name: Optional[str] = None) -> AuthSession:
        normalized_email = email.strip().lower()
        if not _EMAIL_PATTERN.fullmatch(normalized_email):
            raise RegistrationValidationError("invalid email")
        if len(password) < self._settings.auth_password_min_length:
            raise RegistrationValidationError(
                f"password must be at least {self._settings.auth_password_min_length} characters"
            )
        if len(password.encode("utf-8")) > _BCRYPT_MAX_PASSWORD_BYTES:
            raise RegistrationValidationError(
                f"password must be at most {_BCRYPT_MAX_PASSWORD_BYTES} bytes"
            )

        password_hash = hash_password(password, self._settings.auth_password_bcrypt_rounds)
        try:
            user = self._repository.create_user(
                email=normalized_email,
                password_hash=password_hash,
                name=(name or "").strip() or None,
            )
        except DuplicateEmailError as exc:
            raise EmailAlreadyRegisteredError("email already exists") from exc

        logger.info("Registered user %s", user.user_id)
        return self._issue_session(user)

    def login(self, email: str, password: str) -> AuthSession:
        credentials = self._repository.get_user_credentials(email.strip().lower())
        if credentials is None or not verify_password(password, credentials.password_hash):
            raise InvalidCredentialsError("invalid credentials")
        return self._issue_session(credentials.user)

    def authenticate(self, bearer_token: str) -> User:
        user = self._repository.get_session_user(_digest_token(bearer_token), utc_now())
        if user is None:
            raise InvalidTokenError("Invalid or expired bearer token")
        return user
