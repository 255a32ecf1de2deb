from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace

from fastapi import FastAPI
from fastapi.testclient import TestClient

from app import create_app
from backend.controllers.auth_controller import router as auth_router
from backend.controllers.error_handlers import install_error_handlers
from backend.controllers.reservation_controller import router as reservation_router
from backend.repository.data_repository import DataRepository, SerializationConflictError
from backend.services.auth_service import AuthService
from backend.services.availability_service import AvailabilityService
from backend.services.catalog_service import CatalogService
from backend.services.reservation_service import ReservationService
from backend.utils.config import get_settings


def _build_test_settings(tmp_path, filename: str):
    base = get_settings()
    return replace(
        base,
        database_path=tmp_path / filename,
        reservation_retry_backoff_seconds=0.0,
        auth_password_bcrypt_rounds=4,
        seed_demo_catalog=True,
    )


def _build_test_app(tmp_path) -> tuple[FastAPI, DataRepository]:
    settings = _build_test_settings(tmp_path, "reservation_api.db")
    repository = DataRepository(settings)
    repository.initialize_database()
    repository.seed_demo_catalog()

    availability_service = AvailabilityService(repository=repository, settings=settings)
    reservation_service = ReservationService(
        repository=repository,
        settings=settings,
        availability_service=availability_service,
    )

    app = FastAPI()
    app.include_router(auth_router)
    app.include_router(reservation_router)
    install_error_handlers(app)
    app.state.settings = settings
    app.state.repository = repository
    app.state.availability_service = availability_service
    app.state.reservation_service = reservation_service
    app.state.auth_service = AuthService(repository=repository, settings=settings)
    app.state.catalog_service = CatalogService(repository=repository, settings=settings)
    return app, repository


def _register(client: TestClient, email: str = "guest@example.com") -> dict[str, str]:
    response = client.post(
        "/auth/register",
        json={"email": email, "password": "correct-horse", "name": "Guest"},
    )
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def _aurora_rooms(client: TestClient, start: str, end: str) -> dict[str, int]:
    hotels = client.get("/hotels").json()["hotels"]
    aurora_id = next(hotel["id"] for hotel in hotels if hotel["name"] == "Hotel Aurora")
    response = client.get(
        "/rooms/available",
        params={"hotel_id": aurora_id, "from": start, "to": end},
    )
    assert response.status_code == 200, response.text
    return {room["number"]: room["id"] for room in response.json()["rooms"]}


def test_register_login_and_me(tmp_path):
    app, _ = _build_test_app(tmp_path)
    client = TestClient(app)

    headers = _register(client, email="  Guest@Example.com ")
    me = client.get("/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["user"]["email"] == "guest@example.com"
    assert me.json()["user"]["role"] == "USER"

    login = client.post(
        "/auth/login",
        json={"email": "guest@example.com", "password": "correct-horse"},
    )
    assert login.status_code == 200
    assert login.json()["token_type"] == "bearer"

    wrong = client.post("/auth/login", json={"email": "guest@example.com", "password": "nope-nope"})
    assert wrong.status_code == 401

    duplicate = client.post(
        "/auth/register",
        json={"email": "guest@example.com", "password": "correct-horse"},
    )
    assert duplicate.status_code == 409

    short = client.post("/auth/register", json={"email": "other@example.com", "password": "short"})
    assert short.status_code == 400

    assert client.get("/auth/me").status_code == 401
    assert client.get("/auth/me", headers={"Authorization": "Bearer bogus"}).status_code == 401


def test_hotels_are_listed_by_name(tmp_path):
    app, _ = _build_test_app(tmp_path)
    client = TestClient(app)

    response = client.get("/hotels")

    assert response.status_code == 200
    names = [hotel["name"] for hotel in response.json()["hotels"]]
    assert names == ["Hotel Aurora", "Hotel Baltic View", "Hotel Mountain Peak"]


def test_available_rooms_payload_shape(tmp_path):
    app, _ = _build_test_app(tmp_path)
    client = TestClient(app)
    hotels = client.get("/hotels").json()["hotels"]
    aurora_id = hotels[0]["id"]

    response = client.get(
        "/rooms/available",
        params={"hotel_id": aurora_id, "from": "2024-03-01", "to": "2024-03-04"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["hotel_id"] == aurora_id
    assert payload["room_id"] is None
    assert payload["from"] == "2024-03-01"
    assert payload["to"] == "2024-03-04"
    assert [room["number"] for room in payload["rooms"]] == ["101", "102", "201", "202", "301"]
    assert payload["rooms"][0]["room_type"] == {
        "id": payload["rooms"][0]["room_type"]["id"],
        "name": "Single",
        "capacity": 1,
        "base_price": "199.00",
    }


def test_available_rooms_rejects_bad_input(tmp_path):
    app, _ = _build_test_app(tmp_path)
    client = TestClient(app)

    reversed_range = client.get(
        "/rooms/available",
        params={"hotel_id": 1, "from": "2024-03-05", "to": "2024-03-01"},
    )
    bad_format = client.get(
        "/rooms/available",
        params={"hotel_id": 1, "from": "05.03.2024", "to": "2024-03-09"},
    )
    no_scope = client.get("/rooms/available", params={"from": "2024-03-01", "to": "2024-03-02"})

    assert reversed_range.status_code == 400
    assert bad_format.status_code == 400
    assert no_scope.status_code == 400


def test_reservation_flow(tmp_path):
    app, repository = _build_test_app(tmp_path)
    client = TestClient(app)
    headers = _register(client)
    rooms = _aurora_rooms(client, "2024-03-01", "2024-03-04")

    created = client.post(
        "/reservations",
        headers=headers,
        json={"room_id": rooms["101"], "start_date": "2024-03-01", "end_date": "2024-03-04"},
    )
    assert created.status_code == 201, created.text
    reservation = created.json()["reservation"]
    assert reservation["status"] == "PENDING"
    assert reservation["total_amount"] == "597.00"
    assert reservation["currency"] == "PLN"
    assert reservation["start_date"] == "2024-03-01"
    assert reservation["end_date"] == "2024-03-04"

    conflict = client.post(
        "/reservations",
        headers=headers,
        json={"room_id": rooms["101"], "start_date": "2024-03-03", "end_date": "2024-03-05"},
    )
    assert conflict.status_code == 409

    back_to_back = client.post(
        "/reservations",
        headers=headers,
        json={"room_id": rooms["101"], "start_date": "2024-03-04", "end_date": "2024-03-06"},
    )
    assert back_to_back.status_code == 201

    assert "101" not in _aurora_rooms(client, "2024-03-02", "2024-03-03")
    assert repository.count_reservations(room_id=rooms["101"]) == 2


def test_reservation_error_statuses(tmp_path):
    app, repository = _build_test_app(tmp_path)
    client = TestClient(app)
    headers = _register(client)
    rooms = _aurora_rooms(client, "2024-03-01", "2024-03-04")

    bad_date = client.post(
        "/reservations",
        headers=headers,
        json={"room_id": rooms["102"], "start_date": "2024-02-30", "end_date": "2024-03-04"},
    )
    reversed_range = client.post(
        "/reservations",
        headers=headers,
        json={"room_id": rooms["102"], "start_date": "2024-03-04", "end_date": "2024-03-01"},
    )
    unknown_room = client.post(
        "/reservations",
        headers=headers,
        json={"room_id": 9999, "start_date": "2024-03-01", "end_date": "2024-03-04"},
    )
    no_token = client.post(
        "/reservations",
        json={"room_id": rooms["102"], "start_date": "2024-03-01", "end_date": "2024-03-04"},
    )

    assert bad_date.status_code == 400
    assert reversed_range.status_code == 400
    assert unknown_room.status_code == 404
    assert no_token.status_code == 401
    assert no_token.headers["WWW-Authenticate"] == "Bearer"
    assert repository.count_reservations() == 0


def test_missing_or_empty_fields_are_input_errors(tmp_path):
    app, repository = _build_test_app(tmp_path)
    client = TestClient(app)
    headers = _register(client)
    rooms = _aurora_rooms(client, "2024-03-01", "2024-03-04")

    missing_end = client.post(
        "/reservations",
        headers=headers,
        json={"room_id": rooms["101"], "start_date": "2024-03-01"},
    )
    empty_start = client.post(
        "/reservations",
        headers=headers,
        json={"room_id": rooms["101"], "start_date": "", "end_date": "2024-03-04"},
    )
    missing_room = client.post(
        "/reservations",
        headers=headers,
        json={"start_date": "2024-03-01", "end_date": "2024-03-04"},
    )
    missing_to = client.get("/rooms/available", params={"hotel_id": 1, "from": "2024-03-01"})
    non_numeric_hotel = client.get(
        "/rooms/available",
        params={"hotel_id": "aurora", "from": "2024-03-01", "to": "2024-03-02"},
    )
    missing_password = client.post("/auth/register", json={"email": "other@example.com"})

    for response in (missing_end, empty_start, missing_room, missing_to, non_numeric_hotel, missing_password):
        assert response.status_code == 400, response.text
    assert repository.count_reservations() == 0


def test_ids_beyond_store_range_are_not_found(tmp_path):
    app, repository = _build_test_app(tmp_path)
    client = TestClient(app)
    headers = _register(client)
    huge = 2**63

    booking = client.post(
        "/reservations",
        headers=headers,
        json={"room_id": huge, "start_date": "2024-03-01", "end_date": "2024-03-04"},
    )
    by_hotel = client.get(
        "/rooms/available",
        params={"hotel_id": huge, "from": "2024-03-01", "to": "2024-03-02"},
    )
    by_room = client.get(
        "/rooms/available",
        params={"room_id": huge, "from": "2024-03-01", "to": "2024-03-02"},
    )

    assert booking.status_code == 404
    assert by_hotel.status_code == 200
    assert by_hotel.json()["rooms"] == []
    assert by_room.status_code == 200
    assert by_room.json()["rooms"] == []
    assert repository.count_reservations() == 0


def test_corrupt_price_returns_server_error(tmp_path):
    app, repository = _build_test_app(tmp_path)
    client = TestClient(app)
    headers = _register(client)
    hotel_id = client.get("/hotels").json()["hotels"][0]["id"]
    room_type_id = repository.create_room_type(hotel_id, "Broken", 2, "NaN")
    room_id = repository.create_room(hotel_id, room_type_id, "999", 9)

    response = client.post(
        "/reservations",
        headers=headers,
        json={"room_id": room_id, "start_date": "2024-03-01", "end_date": "2024-03-02"},
    )

    assert response.status_code == 500
    assert repository.count_reservations() == 0


class _BusyRepository:
    @contextmanager
    def serializable_transaction(self):
        raise SerializationConflictError("database is locked")
        yield  # pragma: no cover


def test_exhausted_retries_return_service_unavailable(tmp_path):
    app, _ = _build_test_app(tmp_path)
    app.state.reservation_service = ReservationService(
        repository=_BusyRepository(),
        settings=app.state.settings,
        sleep=lambda _: None,
    )
    client = TestClient(app)
    headers = _register(client)

    response = client.post(
        "/reservations",
        headers=headers,
        json={"room_id": 1, "start_date": "2024-03-01", "end_date": "2024-03-02"},
    )

    assert response.status_code == 503
    assert response.headers["Retry-After"] == "1"


def test_create_app_runs_startup(tmp_path):
    settings = _build_test_settings(tmp_path, "startup.db")

    with TestClient(create_app(settings)) as client:
        hotels = client.get("/hotels")
        assert hotels.status_code == 200
        assert len(hotels.json()["hotels"]) == 3

    # Restart against the same file must not duplicate the catalog.
    with TestClient(create_app(settings)) as client:
        assert len(client.get("/hotels").json()["hotels"]) == 3


def test_create_app_maps_missing_fields_to_bad_request(tmp_path):
    settings = _build_test_settings(tmp_path, "validation.db")

    with TestClient(create_app(settings)) as client:
        response = client.get("/rooms/available", params={"hotel_id": 1, "to": "2024-03-02"})

    assert response.status_code == 400
    assert response.json()["detail"][0]["loc"] == ["query", "from"]
