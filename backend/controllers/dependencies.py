"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from backend.domain.models import CallerContext, User
from backend.services.auth_service import AuthService, InvalidTokenError
from backend.services.availability_service import AvailabilityService
from backend.services.catalog_service import CatalogService
from backend.services.reservation_service import ReservationService


bearer_scheme = HTTPBearer(auto_error=False)


def _service_from_state(request: Request, attribute: str, label: str):
    service = getattr(request.app.state, attribute, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label} service is not initialized",
        )
    return service


def get_auth_service(request: Request) -> AuthService:
    return _service_from_state(request, "auth_service", "Auth")


def get_availability_service(request: Request) -> AvailabilityService:
    return _service_from_state(request, "availability_service", "Availability")


def get_reservation_service(request: Request) -> ReservationService:
    return _service_from_state(request, "reservation_service", "Reservation")


def get_catalog_service(request: Request) -> CatalogService:
    return _service_from_state(request, "catalog_service", "Catalog")


def require_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> User:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header with Bearer token is required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return auth_service.authenticate(credentials.credentials)
    except InvalidTokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


def require_caller(user: User = Depends(require_user)) -> CallerContext:
    """Reduce the authenticated user to the identity the core trusts."""
    return CallerContext(user_id=user.user_id)
