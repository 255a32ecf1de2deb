"""Room availability checks and the read-only availability query."""

from __future__ import annotations

from datetime import date
from typing import Optional

from backend.domain.constraints import validate_stay
from backend.domain.models import AvailableRoom, StayPeriod
from backend.repository.data_repository import DataRepository, ReservationTransaction
from backend.utils.config import Settings, get_settings
from backend.utils.dates import coerce_date
from backend.utils.logger import get_logger


logger = get_logger(__name__)


class AvailabilityError(Exception):
    """Base exception for availability lookups."""


class AvailabilityValidationError(AvailabilityError):
    """Raised when the requested scope or date range is invalid."""


class AvailabilityService:
    """Answers whether rooms are free for a half-open date range.

    Only PENDING and CONFIRMED reservations block a room. When a
    ``transaction`` is supplied the check runs inside it, which is how the
    reservation coordinator keeps check and insert in one atomic unit.
    """

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    def parse_stay(self, start: str | date, end: str | date) -> StayPeriod:
        try:
            start_date = coerce_date(start, self._settings.date_format_regex)
            end_date = coerce_date(end, self._settings.date_format_regex)
            return validate_stay(start_date, end_date)
        except ValueError as exc:
            raise AvailabilityValidationError(str(exc)) from exc

    def find_conflict(
        self,
        room_id: int,
        start: date,
        end: date,
        transaction: Optional[ReservationTransaction] = None,
    ) -> Optional[int]:
        """Return the id of a reservation blocking ``[start, end)``, if any."""
        if end <= start:
            raise AvailabilityValidationError("end date must be after start date")
        if transaction is not None:
            return transaction.find_blocking_reservation(room_id, start, end)
        return self._repository.find_blocking_reservation(room_id, start, end)

    def is_available(
        self,
        room_id: int,
        start: date,
        end: date,
        transaction: Optional[ReservationTransaction] = None,
    ) -> bool:
        return self.find_conflict(room_id, start, end, transaction=transaction) is None

    def search_available_rooms(
        self,
        from_date: str | date,
        to_date: str | date,
        hotel_id: Optional[int] = None,
        room_id: Optional[int] = None,
    ) -> list[AvailableRoom]:
        """List free active rooms ordered by floor, room number and id."""
        if hotel_id is None and room_id is None:
            raise AvailabilityValidationError("hotel_id or room_id is required")
        stay = self.parse_stay(from_date, to_date)
        rooms = self._repository.list_available_rooms(
            start=stay.start,
            end=stay.end,
            hotel_id=hotel_id,
            room_id=room_id,
        )
        logger.debug(
            "Availability hotel=%s room=%s %s..%s -> %s rooms",
            hotel_id,
            room_id,
            stay.start,
            stay.end,
            len(rooms),
        )
        return rooms
