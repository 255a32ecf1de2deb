"""HTTP controller layer for hotels, room availability and reservations."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_serializer

from backend.controllers.dependencies import (
    get_availability_service,
    get_catalog_service,
    get_reservation_service,
    require_caller,
)
from backend.domain.models import AvailableRoom, CallerContext, Hotel, Reservation
from backend.services.availability_service import (
    AvailabilityService,
    AvailabilityValidationError,
)
from backend.services.catalog_service import CatalogService
from backend.services.reservation_service import (
    ReservationConflictError,
    ReservationPricingError,
    ReservationService,
    ReservationUnavailableError,
    ReservationValidationError,
    RoomNotFoundError,
)
from backend.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["reservations"])

RETRY_AFTER_SECONDS = "1"


class HotelResponse(BaseModel):
    id: int = Field(gt=0)
    name: str
    address: str
    city: Optional[str] = None
    country: Optional[str] = None
    description: Optional[str] = None


class HotelsResponse(BaseModel):
    hotels: list[HotelResponse]


class RoomTypeResponse(BaseModel):
    id: int = Field(gt=0)
    name: str
    capacity: int = Field(gt=0)
    base_price: Decimal

    @field_serializer("base_price")
    def serialize_base_price(self, value: Decimal) -> str:
        return f"{value:.2f}"


class AvailableRoomResponse(BaseModel):
    id: int = Field(gt=0)
    number: str
    floor: int
    room_type: RoomTypeResponse


class AvailableRoomsResponse(BaseModel):
    hotel_id: Optional[int] = None
    room_id: Optional[int] = None
    from_date: str = Field(serialization_alias="from")
    to_date: str = Field(serialization_alias="to")
    rooms: list[AvailableRoomResponse]


class CreateReservationRequest(BaseModel):
    """Dates stay plain strings so malformed input maps to 400, not 422."""

    room_id: int = Field(gt=0)
    start_date: str = Field(min_length=1)
    end_date: str = Field(min_length=1)


class ReservationResponse(BaseModel):
    id: int = Field(gt=0)
    room_id: int = Field(gt=0)
    user_id: int = Field(gt=0)
    status: str
    start_date: date
    end_date: date
    total_amount: Decimal
    currency: str
    created_at: datetime

    @field_serializer("total_amount")
    def serialize_total_amount(self, value: Decimal) -> str:
        return f"{value:.2f}"


class CreateReservationResponse(BaseModel):
    reservation: ReservationResponse


def _hotel_response(hotel: Hotel) -> HotelResponse:
    return HotelResponse(
        id=hotel.hotel_id,
        name=hotel.name,
        address=hotel.address,
        city=hotel.city,
        country=hotel.country,
        description=hotel.description,
    )


def _room_response(room: AvailableRoom) -> AvailableRoomResponse:
    return AvailableRoomResponse(
        id=room.room_id,
        number=room.number,
        floor=room.floor,
        room_type=RoomTypeResponse(
            id=room.room_type.room_type_id,
            name=room.room_type.name,
            capacity=room.room_type.capacity,
            base_price=room.room_type.base_price,
        ),
    )


def _reservation_response(reservation: Reservation) -> ReservationResponse:
    return ReservationResponse(
        id=reservation.reservation_id,
        room_id=reservation.room_id,
        user_id=reservation.user_id,
        status=reservation.status.value,
        start_date=reservation.start_date,
        end_date=reservation.end_date,
        total_amount=reservation.total_amount,
        currency=reservation.currency,
        created_at=reservation.created_at,
    )


@router.get("/hotels", response_model=HotelsResponse, status_code=status.HTTP_200_OK)
def list_hotels(
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> HotelsResponse:
    return HotelsResponse(hotels=[_hotel_response(hotel) for hotel in catalog_service.list_hotels()])


@router.get(
    "/rooms/available",
    response_model=AvailableRoomsResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_200_OK,
)
def available_rooms(
    from_date: str = Query(alias="from", min_length=1),
    to_date: str = Query(alias="to", min_length=1),
    hotel_id: Optional[int] = Query(default=None, gt=0),
    room_id: Optional[int] = Query(default=None, gt=0),
    service: AvailabilityService = Depends(get_availability_service),
) -> AvailableRoomsResponse:
    """Rooms with no PENDING/CONFIRMED reservation overlapping [from, to)."""
    try:
        rooms = service.search_available_rooms(
            from_date=from_date,
            to_date=to_date,
            hotel_id=hotel_id,
            room_id=room_id,
        )
    except AvailabilityValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return AvailableRoomsResponse(
        hotel_id=hotel_id,
        room_id=room_id,
        from_date=from_date,
        to_date=to_date,
        rooms=[_room_response(room) for room in rooms],
    )


@router.post(
    "/reservations",
    response_model=CreateReservationResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_reservation(
    payload: CreateReservationRequest,
    caller: CallerContext = Depends(require_caller),
    service: ReservationService = Depends(get_reservation_service),
) -> CreateReservationResponse:
    try:
        reservation = service.create_reservation(
            caller,
            room_id=payload.room_id,
            start_date=payload.start_date,
            end_date=payload.end_date,
        )
    except ReservationValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RoomNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ReservationConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ReservationPricingError as exc:
        logger.error("Pricing configuration error for room %s: %s", payload.room_id, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    except ReservationUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
            headers={"Retry-After": RETRY_AFTER_SECONDS},
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected reservation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create reservation",
        ) from exc
    return CreateReservationResponse(reservation=_reservation_response(reservation))
