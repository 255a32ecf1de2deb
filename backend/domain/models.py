"""Domain models for the hotel catalog and reservations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class ReservationStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


# Statuses that occupy a room; CANCELLED never blocks a booking.
BLOCKING_STATUSES: tuple[ReservationStatus, ...] = (
    ReservationStatus.PENDING,
    ReservationStatus.CONFIRMED,
)


class ReservationState(str, Enum):
    """Progress of a single reservation attempt."""

    VALIDATING = "VALIDATING"
    CHECKING_ROOM = "CHECKING_ROOM"
    CHECKING_AVAILABILITY = "CHECKING_AVAILABILITY"
    PRICING = "PRICING"
    INSERTING = "INSERTING"
    COMMITTED = "COMMITTED"
    ABORTED = "ABORTED"


class AbortReason(str, Enum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    BAD_PRICING = "bad_pricing"
    BAD_INPUT = "bad_input"
    TRANSIENT = "transient"


@dataclass(frozen=True)
class CallerContext:
    """Verified identity handed to the core by the authentication layer."""

    user_id: int


@dataclass(frozen=True)
class User:
    user_id: int
    email: str
    name: Optional[str]
    role: str


@dataclass(frozen=True)
class Hotel:
    hotel_id: int
    name: str
    address: str
    city: Optional[str]
    country: Optional[str]
    description: Optional[str]


@dataclass(frozen=True)
class RoomType:
    room_type_id: int
    hotel_id: int
    name: str
    capacity: int
    base_price: Decimal


@dataclass(frozen=True)
class BookableRoom:
    """Room joined with the pricing data needed to book it."""

    room_id: int
    hotel_id: int
    is_active: bool
    # Decimal text exactly as stored; converted by the pricing calculator.
    base_price: str


@dataclass(frozen=True)
class AvailableRoom:
    room_id: int
    number: str
    floor: int
    room_type: RoomType


@dataclass(frozen=True)
class StayPeriod:
    """Half-open interval ``[start, end)`` of calendar days."""

    start: date
    end: date


@dataclass(frozen=True)
class Reservation:
    reservation_id: int
    user_id: int
    room_id: int
    start_date: date
    end_date: date
    status: ReservationStatus
    total_amount: Decimal
    currency: str
    created_at: datetime
