"""Reservation creation as a single serializable transaction with bounded retry."""

from __future__ import annotations

import time
from datetime import date
from typing import Callable, Optional

from backend.domain.constraints import (
    RetryPolicy,
    backoff_delay,
    count_nights,
    validate_retry_policy,
    validate_stay,
)
from backend.domain.models import (
    AbortReason,
    CallerContext,
    Reservation,
    ReservationState,
    StayPeriod,
)
from backend.domain.pricing import PricingConfigurationError, compute_total
from backend.repository.data_repository import (
    DataRepository,
    ReservationOverlapError,
    SerializationConflictError,
)
from backend.services.availability_service import AvailabilityService
from backend.utils.config import Settings, get_settings
from backend.utils.dates import coerce_date, utc_now
from backend.utils.logger import get_logger


logger = get_logger(__name__)


class ReservationError(Exception):
    """Base exception for reservation creation; ``reason`` names the abort outcome."""

    reason: AbortReason


class ReservationValidationError(ReservationError):
    """Raised for malformed dates or an empty stay; never retried."""

    reason = AbortReason.BAD_INPUT


class RoomNotFoundError(ReservationError):
    """Raised when the room does not exist or is inactive."""

    reason = AbortReason.NOT_FOUND


class ReservationConflictError(ReservationError):
    """Raised when an active reservation already overlaps the stay."""

    reason = AbortReason.CONFLICT

    def __init__(self, message: str, conflicting_reservation_id: Optional[int] = None) -> None:
        super().__init__(message)
        self.conflicting_reservation_id = conflicting_reservation_id


class ReservationPricingError(ReservationError):
    """Raised when stored price data yields an invalid total."""

    reason = AbortReason.BAD_PRICING


class ReservationUnavailableError(ReservationError):
    """Raised after every attempt hit a transient store conflict."""

    reason = AbortReason.TRANSIENT

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class ReservationService:
    """Sole writer of new reservation rows.

    Each attempt checks the room, checks availability, prices the stay and
    inserts the row inside one serializable transaction. Transient store
    conflicts restart the attempt with linear backoff until the retry policy
    is exhausted; business outcomes are never retried.
    """

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
        availability_service: Optional[AvailabilityService] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._availability_service = availability_service or AvailabilityService(
            repository=self._repository,
            settings=self._settings,
        )
        self._retry_policy = RetryPolicy(
            max_attempts=self._settings.reservation_max_attempts,
            backoff_seconds=self._settings.reservation_retry_backoff_seconds,
        )
        validate_retry_policy(self._retry_policy)
        self._sleep = sleep

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry_policy

    def _validate(self, start_date: str | date, end_date: str | date) -> StayPeriod:
        try:
            start = coerce_date(start_date, self._settings.date_format_regex)
            end = coerce_date(end_date, self._settings.date_format_regex)
            return validate_stay(start, end)
        except ValueError as exc:
            raise ReservationValidationError(str(exc)) from exc

    def create_reservation(
        self,
        context: CallerContext,
        room_id: int,
        start_date: str | date,
        end_date: str | date,
    ) -> Reservation:
        """Book ``room_id`` for ``[start_date, end_date)`` on behalf of the caller."""
        logger.debug("room=%s state=%s", room_id, ReservationState.VALIDATING.value)
        stay = self._validate(start_date, end_date)

        policy = self._retry_policy
        last_error: Optional[SerializationConflictError] = None
        for attempt in range(1, policy.max_attempts + 1):
            try:
                reservation = self._attempt(context, room_id, stay)
            except SerializationConflictError as exc:
                last_error = exc
                logger.warning(
                    "Reservation %s room=%s reason=%s (attempt %s/%s): %s",
                    ReservationState.ABORTED.value,
                    room_id,
                    AbortReason.TRANSIENT.value,
                    attempt,
                    policy.max_attempts,
                    exc,
                )
                if attempt < policy.max_attempts:
                    self._sleep(backoff_delay(policy, attempt))
                continue
            except ReservationError as exc:
                logger.info(
                    "Reservation %s room=%s %s..%s reason=%s: %s",
                    ReservationState.ABORTED.value,
                    room_id,
                    stay.start,
                    stay.end,
                    exc.reason.value,
                    exc,
                )
                raise

            logger.info(
                "Reservation %s committed room=%s user=%s %s..%s total=%s %s",
                reservation.reservation_id,
                room_id,
                context.user_id,
                stay.start,
                stay.end,
                reservation.total_amount,
                reservation.currency,
            )
            return reservation

        raise ReservationUnavailableError(
            "reservation temporarily unavailable, try again",
            attempts=policy.max_attempts,
        ) from last_error

    def _attempt(self, context: CallerContext, room_id: int, stay: StayPeriod) -> Reservation:
        with self._repository.serializable_transaction() as transaction:
            logger.debug("room=%s state=%s", room_id, ReservationState.CHECKING_ROOM.value)
            room = transaction.get_bookable_room(room_id)
            if room is None or not room.is_active:
                raise RoomNotFoundError(f"room {room_id} not found")

            logger.debug("room=%s state=%s", room_id, ReservationState.CHECKING_AVAILABILITY.value)
            conflict_id = self._availability_service.find_conflict(
                room_id,
                stay.start,
                stay.end,
                transaction=transaction,
            )
            if conflict_id is not None:
                raise ReservationConflictError(
                    "room is not available for these dates",
                    conflicting_reservation_id=conflict_id,
                )

            logger.debug("room=%s state=%s", room_id, ReservationState.PRICING.value)
            try:
                total = compute_total(room.base_price, count_nights(stay.start, stay.end))
            except PricingConfigurationError as exc:
                raise ReservationPricingError("invalid room pricing configuration") from exc

            logger.debug("room=%s state=%s", room_id, ReservationState.INSERTING.value)
            try:
                reservation = transaction.insert_reservation(
                    user_id=context.user_id,
                    room_id=room_id,
                    start=stay.start,
                    end=stay.end,
                    total_amount=total,
                    currency=self._settings.reservation_currency,
                    created_at=utc_now(),
                )
            except ReservationOverlapError as exc:
                raise ReservationConflictError("room is not available for these dates") from exc

        logger.debug("room=%s state=%s", room_id, ReservationState.COMMITTED.value)
        return reservation
