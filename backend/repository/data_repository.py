"""Repository layer responsible for all database access."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from backend.domain.models import (
    BLOCKING_STATUSES,
    AvailableRoom,
    BookableRoom,
    Hotel,
    Reservation,
    ReservationStatus,
    RoomType,
    User,
)
from backend.domain.pricing import to_decimal
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)

_OVERLAP_GUARD_MESSAGE = "reservation_overlap"
_BLOCKING_STATUS_VALUES = tuple(status.value for status in BLOCKING_STATUSES)
_BLOCKING_PLACEHOLDERS = ",".join("?" for _ in _BLOCKING_STATUS_VALUES)


class RepositoryError(Exception):
    """Base exception for persistence failures."""


class SerializationConflictError(RepositoryError):
    """Raised when the store refuses a transaction because of concurrent writers."""


class ReservationOverlapError(RepositoryError):
    """Raised when the overlap guard trigger rejects a reservation row."""


class DuplicateEmailError(RepositoryError):
    """Raised when a user with the same email already exists."""


@dataclass(frozen=True)
class UserCredentials:
    user: User
    password_hash: str


# Largest value an SQLite INTEGER column can hold.
_SQLITE_MAX_INTEGER = 2**63 - 1


def _fits_integer_column(value: int) -> bool:
    return -_SQLITE_MAX_INTEGER - 1 <= value <= _SQLITE_MAX_INTEGER


def _is_lock_contention(exc: sqlite3.OperationalError) -> bool:
    message = str(exc).lower()
    return "locked" in message or "busy" in message


def _row_to_reservation(row: sqlite3.Row) -> Reservation:
    return Reservation(
        reservation_id=int(row["id"]),
        user_id=int(row["user_id"]),
        room_id=int(row["room_id"]),
        start_date=date.fromisoformat(str(row["start_date"])),
        end_date=date.fromisoformat(str(row["end_date"])),
        status=ReservationStatus(str(row["status"])),
        total_amount=Decimal(str(row["total_amount"])),
        currency=str(row["currency"]),
        created_at=datetime.fromisoformat(str(row["created_at"])),
    )


def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        user_id=int(row["id"]),
        email=str(row["email"]),
        name=row["name"],
        role=str(row["role"]),
    )


def _find_blocking_reservation(
    connection: sqlite3.Connection,
    room_id: int,
    start: date,
    end: date,
) -> Optional[int]:
    if not _fits_integer_column(room_id):
        return None
    # Half-open overlap: existing.start < end AND existing.end > start.
    cursor = connection.execute(
        f"""
        SELECT id
        FROM Reservations
        WHERE room_id = ?
          AND status IN ({_BLOCKING_PLACEHOLDERS})
          AND start_date < ?
          AND end_date > ?
        ORDER BY start_date ASC, id ASC
        LIMIT 1;
        """,
        (room_id, *_BLOCKING_STATUS_VALUES, end.isoformat(), start.isoformat()),
    )
    row = cursor.fetchone()
    if row is None:
        return None
    return int(row["id"])


def _insert_hotel(
    connection: sqlite3.Connection,
    name: str,
    address: str,
    city: Optional[str] = None,
    country: Optional[str] = None,
    description: Optional[str] = None,
) -> int:
    cursor = connection.execute(
        """
        INSERT INTO Hotels (name, address, city, country, description)
        VALUES (?, ?, ?, ?, ?);
        """,
        (name, address, city, country, description),
    )
    return int(cursor.lastrowid)


def _insert_room_type(
    connection: sqlite3.Connection,
    hotel_id: int,
    name: str,
    capacity: int,
    base_price: Decimal | str,
    description: Optional[str] = None,
) -> int:
    cursor = connection.execute(
        """
        INSERT INTO RoomTypes (hotel_id, name, capacity, base_price, description)
        VALUES (?, ?, ?, ?, ?);
        """,
        (hotel_id, name, capacity, str(base_price), description),
    )
    return int(cursor.lastrowid)


def _insert_room(
    connection: sqlite3.Connection,
    hotel_id: int,
    room_type_id: int,
    number: str,
    floor: int,
    is_active: bool = True,
) -> int:
    cursor = connection.execute(
        """
        INSERT INTO Rooms (hotel_id, room_type_id, number, floor, is_active)
        VALUES (?, ?, ?, ?, ?);
        """,
        (hotel_id, room_type_id, number, floor, int(is_active)),
    )
    return int(cursor.lastrowid)


def _session_timestamp(value: datetime) -> str:
    # Fixed-width UTC text so SQL string comparison orders by time.
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _purge_expired_sessions(connection: sqlite3.Connection, now: datetime) -> int:
    cursor = connection.execute(
        "DELETE FROM Sessions WHERE expires_at <= ?;",
        (_session_timestamp(now),),
    )
    return int(cursor.rowcount)


class ReservationTransaction:
    """Operations available inside one serializable reservation transaction."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection

    def get_bookable_room(self, room_id: int) -> Optional[BookableRoom]:
        if not _fits_integer_column(room_id):
            return None
        cursor = self._connection.execute(
            """
            SELECT r.id, r.hotel_id, r.is_active, rt.base_price
            FROM Rooms AS r
            INNER JOIN RoomTypes AS rt ON rt.id = r.room_type_id
            WHERE r.id = ?;
            """,
            (room_id,),
        )
        row = cursor.fetchone()
        if row is None:
            return None
        return BookableRoom(
            room_id=int(row["id"]),
            hotel_id=int(row["hotel_id"]),
            is_active=bool(row["is_active"]),
            base_price=str(row["base_price"]),
        )

    def find_blocking_reservation(self, room_id: int, start: date, end: date) -> Optional[int]:
        return _find_blocking_reservation(self._connection, room_id, start, end)

    def insert_reservation(
        self,
        *,
        user_id: int,
        room_id: int,
        start: date,
        end: date,
        total_amount: Decimal,
        currency: str,
        created_at: datetime,
    ) -> Reservation:
        try:
            cursor = self._connection.execute(
                """
                INSERT INTO Reservations (
                    user_id,
                    room_id,
                    start_date,
                    end_date,
                    status,
                    total_amount,
                    currency,
                    created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    user_id,
                    room_id,
                    start.isoformat(),
                    end.isoformat(),
                    ReservationStatus.PENDING.value,
                    str(total_amount),
                    currency,
                    created_at.isoformat(),
                ),
            )
        except sqlite3.IntegrityError as exc:
            if _OVERLAP_GUARD_MESSAGE in str(exc):
                raise ReservationOverlapError(
                    f"room {room_id} already booked between {start} and {end}"
                ) from exc
            raise
        return Reservation(
            reservation_id=int(cursor.lastrowid),
            user_id=user_id,
            room_id=room_id,
            start_date=start,
            end_date=end,
            status=ReservationStatus.PENDING,
            total_amount=total_amount,
            currency=currency,
            created_at=created_at,
        )


class DataRepository:
    """Encapsulates SQLite access so business logic stays storage-agnostic."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _open(self, isolation_level: Optional[str] = "") -> sqlite3.Connection:
        connection = sqlite3.connect(
            self._db_path,
            timeout=self._settings.database_busy_timeout_seconds,
            isolation_level=isolation_level,
        )
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON;")
        return connection

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Connection that commits on success, rolls back on error and always closes."""
        connection = self._open()
        try:
            with connection:
                yield connection
        finally:
            connection.close()

    @contextmanager
    def serializable_transaction(self) -> Iterator[ReservationTransaction]:
        """Run the body as one serializable unit.

        ``BEGIN IMMEDIATE`` takes the database write lock before the first
        read, so concurrent bookings are serialized by SQLite. Lock contention
        that outlasts the busy timeout surfaces as SerializationConflictError.
        Any exception, including cancellation, rolls the transaction back.
        """
        connection = self._open(isolation_level=None)
        try:
            try:
                connection.execute("BEGIN IMMEDIATE;")
                yield ReservationTransaction(connection)
                connection.execute("COMMIT;")
            except sqlite3.OperationalError as exc:
                if _is_lock_contention(exc):
                    raise SerializationConflictError(str(exc)) from exc
                raise
        except BaseException:
            if connection.in_transaction:
                connection.execute("ROLLBACK;")
            raise
        finally:
            connection.close()

    def initialize_database(self) -> None:
        """Create all persistence artifacts before API startup."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute("PRAGMA journal_mode = WAL;")

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Users (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        email TEXT NOT NULL UNIQUE,
                        name TEXT,
                        role TEXT NOT NULL DEFAULT 'USER',
                        password_hash TEXT NOT NULL,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Sessions (
                        token_digest TEXT PRIMARY KEY,
                        user_id INTEGER NOT NULL,
                        expires_at TEXT NOT NULL,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                        FOREIGN KEY (user_id) REFERENCES Users(id)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Hotels (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        name TEXT NOT NULL,
                        address TEXT NOT NULL,
                        city TEXT,
                        country TEXT,
                        description TEXT,
                        UNIQUE (name, address)
                    );
                    """
                )

                # Prices are TEXT so decimals never round-trip through REAL.
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS RoomTypes (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        hotel_id INTEGER NOT NULL,
                        name TEXT NOT NULL,
                        capacity INTEGER NOT NULL CHECK (capacity > 0),
                        base_price TEXT NOT NULL,
                        description TEXT,
                        UNIQUE (hotel_id, name),
                        FOREIGN KEY (hotel_id) REFERENCES Hotels(id)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Rooms (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        hotel_id INTEGER NOT NULL,
                        room_type_id INTEGER NOT NULL,
                        number TEXT NOT NULL,
                        floor INTEGER NOT NULL DEFAULT 0,
                        is_active INTEGER NOT NULL DEFAULT 1 CHECK (is_active IN (0,1)),
                        UNIQUE (hotel_id, number),
                        FOREIGN KEY (hotel_id) REFERENCES Hotels(id),
                        FOREIGN KEY (room_type_id) REFERENCES RoomTypes(id)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Reservations (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        user_id INTEGER NOT NULL,
                        room_id INTEGER NOT NULL,
                        start_date TEXT NOT NULL,
                        end_date TEXT NOT NULL,
                        status TEXT NOT NULL DEFAULT 'PENDING'
                            CHECK (status IN ('PENDING','CONFIRMED','CANCELLED')),
                        total_amount TEXT NOT NULL,
                        currency TEXT NOT NULL,
                        created_at TEXT NOT NULL,
                        CHECK (end_date > start_date),
                        FOREIGN KEY (user_id) REFERENCES Users(id),
                        FOREIGN KEY (room_id) REFERENCES Rooms(id)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_reservations_room_status_dates
                    ON Reservations(room_id, status, start_date, end_date);
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_rooms_hotel_floor_number
                    ON Rooms(hotel_id, floor, number);
                    """
                )

                # Last line of defence behind the in-transaction availability check.
                cursor.execute(
                    f"""
                    CREATE TRIGGER IF NOT EXISTS trg_reservations_no_overlap_insert
                    BEFORE INSERT ON Reservations
                    WHEN NEW.status IN ('PENDING','CONFIRMED')
                    BEGIN
                        SELECT RAISE(ABORT, '{_OVERLAP_GUARD_MESSAGE}')
                        WHERE EXISTS (
                            SELECT 1 FROM Reservations
                            WHERE room_id = NEW.room_id
                              AND status IN ('PENDING','CONFIRMED')
                              AND start_date < NEW.end_date
                              AND end_date > NEW.start_date
                        );
                    END;
                    """
                )
                cursor.execute(
                    f"""
                    CREATE TRIGGER IF NOT EXISTS trg_reservations_no_overlap_update
                    BEFORE UPDATE OF status, start_date, end_date, room_id ON Reservations
                    WHEN NEW.status IN ('PENDING','CONFIRMED')
                    BEGIN
                        SELECT RAISE(ABORT, '{_OVERLAP_GUARD_MESSAGE}')
                        WHERE EXISTS (
                            SELECT 1 FROM Reservations
                            WHERE room_id = NEW.room_id
                              AND id != NEW.id
                              AND status IN ('PENDING','CONFIRMED')
                              AND start_date < NEW.end_date
                              AND end_date > NEW.start_date
                        );
                    END;
                    """
                )
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Database initialization failed: {exc}") from exc

    def seed_demo_catalog(self) -> list[int]:
        """Seed the demo hotels only when the catalog is empty.

        The emptiness check and every insert share one ``BEGIN IMMEDIATE``
        transaction, so a crash leaves no partial catalog and concurrent
        starters seed it exactly once.
        """
        connection = self._open(isolation_level=None)
        try:
            connection.execute("BEGIN IMMEDIATE;")
            cursor = connection.execute("SELECT COUNT(*) AS count FROM Hotels;")
            if int(cursor.fetchone()["count"]) > 0:
                connection.execute("ROLLBACK;")
                logger.info("Catalog already present; skipping seed")
                return []

            hotel_ids: list[int] = []
            for hotel in DEMO_CATALOG:
                hotel_id = _insert_hotel(
                    connection,
                    name=hotel["name"],
                    address=hotel["address"],
                    city=hotel["city"],
                    country=hotel["country"],
                    description=hotel["description"],
                )
                room_type_ids = {
                    name: _insert_room_type(
                        connection,
                        hotel_id=hotel_id,
                        name=name,
                        capacity=capacity,
                        base_price=base_price,
                        description=description,
                    )
                    for name, capacity, base_price, description in hotel["room_types"]
                }
                for number, floor, room_type_name in hotel["rooms"]:
                    _insert_room(
                        connection,
                        hotel_id=hotel_id,
                        room_type_id=room_type_ids[room_type_name],
                        number=number,
                        floor=floor,
                    )
                hotel_ids.append(hotel_id)
            connection.execute("COMMIT;")
        except BaseException:
            if connection.in_transaction:
                connection.execute("ROLLBACK;")
            raise
        finally:
            connection.close()
        logger.info("Demo catalog seeded with %s hotels", len(hotel_ids))
        return hotel_ids

    def create_hotel(
        self,
        name: str,
        address: str,
        city: Optional[str] = None,
        country: Optional[str] = None,
        description: Optional[str] = None,
    ) -> int:
        with self._connect() as conn:
            return _insert_hotel(conn, name, address, city, country, description)

    def create_room_type(
        self,
        hotel_id: int,
        name: str,
        capacity: int,
        base_price: Decimal | str,
        description: Optional[str] = None,
    ) -> int:
        with self._connect() as conn:
            return _insert_room_type(conn, hotel_id, name, capacity, base_price, description)

    def update_room_type_price(self, room_type_id: int, base_price: Decimal | str) -> None:
        with self._connect() as conn:
            conn.execute(
                "UPDATE RoomTypes SET base_price = ? WHERE id = ?;",
                (str(base_price), room_type_id),
            )

    def create_room(
        self,
        hotel_id: int,
        room_type_id: int,
        number: str,
        floor: int,
        is_active: bool = True,
    ) -> int:
        with self._connect() as conn:
            return _insert_room(conn, hotel_id, room_type_id, number, floor, is_active)

    def set_room_active(self, room_id: int, is_active: bool) -> None:
        with self._connect() as conn:
            conn.execute(
                "UPDATE Rooms SET is_active = ? WHERE id = ?;",
                (int(is_active), room_id),
            )

    def list_hotels(self) -> list[Hotel]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT id, name, address, city, country, description
                FROM Hotels
                ORDER BY name ASC, address ASC, id ASC;
                """
            )
            return [
                Hotel(
                    hotel_id=int(row["id"]),
                    name=str(row["name"]),
                    address=str(row["address"]),
                    city=row["city"],
                    country=row["country"],
                    description=row["description"],
                )
                for row in cursor.fetchall()
            ]

    def list_available_rooms(
        self,
        start: date,
        end: date,
        hotel_id: Optional[int] = None,
        room_id: Optional[int] = None,
    ) -> list[AvailableRoom]:
        """Active rooms in scope with no blocking reservation overlapping [start, end)."""
        scope = [value for value in (hotel_id, room_id) if value is not None]
        if not all(_fits_integer_column(value) for value in scope):
            return []
        conditions = ["r.is_active = 1"]
        params: list[object] = []
        if hotel_id is not None:
            conditions.append("r.hotel_id = ?")
            params.append(hotel_id)
        if room_id is not None:
            conditions.append("r.id = ?")
            params.append(room_id)
        params.extend([*_BLOCKING_STATUS_VALUES, end.isoformat(), start.isoformat()])

        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT
                    r.id,
                    r.number,
                    r.floor,
                    rt.id AS room_type_id,
                    rt.hotel_id AS room_type_hotel_id,
                    rt.name AS room_type_name,
                    rt.capacity,
                    rt.base_price
                FROM Rooms AS r
                INNER JOIN RoomTypes AS rt ON rt.id = r.room_type_id
                WHERE {" AND ".join(conditions)}
                  AND NOT EXISTS (
                      SELECT 1 FROM Reservations AS res
                      WHERE res.room_id = r.id
                        AND res.status IN ({_BLOCKING_PLACEHOLDERS})
                        AND res.start_date < ?
                        AND res.end_date > ?
                  )
                ORDER BY r.floor ASC, r.number ASC, r.id ASC;
                """,
                tuple(params),
            )
            return [
                AvailableRoom(
                    room_id=int(row["id"]),
                    number=str(row["number"]),
                    floor=int(row["floor"]),
                    room_type=RoomType(
                        room_type_id=int(row["room_type_id"]),
                        hotel_id=int(row["room_type_hotel_id"]),
                        name=str(row["room_type_name"]),
                        capacity=int(row["capacity"]),
                        base_price=to_decimal(str(row["base_price"])),
                    ),
                )
                for row in cursor.fetchall()
            ]

    def find_blocking_reservation(self, room_id: int, start: date, end: date) -> Optional[int]:
        """Standalone read of the overlap check, outside any booking transaction."""
        with self._connect() as conn:
            return _find_blocking_reservation(conn, room_id, start, end)

    def get_reservation(self, reservation_id: int) -> Optional[Reservation]:
        if not _fits_integer_column(reservation_id):
            return None
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM Reservations WHERE id = ?;", (reservation_id,))
            row = cursor.fetchone()
            if row is None:
                return None
            return _row_to_reservation(row)

    def list_reservations_for_room(self, room_id: int) -> List[Reservation]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT * FROM Reservations
                WHERE room_id = ?
                ORDER BY start_date ASC, id ASC;
                """,
                (room_id,),
            )
            return [_row_to_reservation(row) for row in cursor.fetchall()]

    def count_reservations(
        self,
        room_id: Optional[int] = None,
        statuses: Optional[Sequence[ReservationStatus]] = None,
    ) -> int:
        conditions = ["1 = 1"]
        params: list[object] = []
        if room_id is not None:
            conditions.append("room_id = ?")
            params.append(room_id)
        if statuses:
            conditions.append(f"status IN ({','.join('?' for _ in statuses)})")
            params.extend(ReservationStatus(status).value for status in statuses)
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT COUNT(*) AS count FROM Reservations WHERE {' AND '.join(conditions)};",
                tuple(params),
            )
            return int(cursor.fetchone()["count"])

    def update_reservation_status(self, reservation_id: int, status: ReservationStatus) -> None:
        """Status transitions belong to external collaborators (admin, payments)."""
        try:
            with self._connect() as conn:
                conn.execute(
                    "UPDATE Reservations SET status = ? WHERE id = ?;",
                    (ReservationStatus(status).value, reservation_id),
                )
        except sqlite3.IntegrityError as exc:
            if _OVERLAP_GUARD_MESSAGE in str(exc):
                raise ReservationOverlapError(
                    f"reservation {reservation_id} would overlap an active booking"
                ) from exc
            raise

    def create_user(
        self,
        email: str,
        password_hash: str,
        name: Optional[str] = None,
        role: str = "USER",
    ) -> User:
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    INSERT INTO Users (email, name, role, password_hash)
                    VALUES (?, ?, ?, ?);
                    """,
                    (email, name, role, password_hash),
                )
                return User(user_id=int(cursor.lastrowid), email=email, name=name, role=role)
        except sqlite3.IntegrityError as exc:
            raise DuplicateEmailError(f"email {email} already registered") from exc

    def get_user(self, user_id: int) -> Optional[User]:
        if not _fits_integer_column(user_id):
            return None
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT id, email, name, role FROM Users WHERE id = ?;", (user_id,))
            row = cursor.fetchone()
            if row is None:
                return None
            return _row_to_user(row)

    def get_user_credentials(self, email: str) -> Optional[UserCredentials]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT id, email, name, role, password_hash FROM Users WHERE email = ?;",
                (email,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            return UserCredentials(user=_row_to_user(row), password_hash=str(row["password_hash"]))

    def create_session(
        self,
        token_digest: str,
        user_id: int,
        expires_at: datetime,
        now: datetime,
    ) -> None:
        """Store a session and drop every session that expired before ``now``."""
        with self._connect() as conn:
            _purge_expired_sessions(conn, now)
            conn.execute(
                """
                INSERT INTO Sessions (token_digest, user_id, expires_at)
                VALUES (?, ?, ?);
                """,
                (token_digest, user_id, _session_timestamp(expires_at)),
            )

    def count_sessions(self) -> int:
        with self._connect() as conn:
            cursor = conn.execute("SELECT COUNT(*) AS count FROM Sessions;")
            return int(cursor.fetchone()["count"])

    def get_session_user(self, token_digest: str, now: datetime) -> Optional[User]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT u.id, u.email, u.name, u.role, s.expires_at
                FROM Sessions AS s
                INNER JOIN Users AS u ON u.id = s.user_id
                WHERE s.token_digest = ?;
                """,
                (token_digest,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            if datetime.fromisoformat(str(row["expires_at"])) <= now:
                conn.execute("DELETE FROM Sessions WHERE token_digest = ?;", (token_digest,))
                return None
            return _row_to_user(row)


# Demo hotels: (name, capacity, base price, description)
# per room type and (number, floor, room type) per room.
DEMO_CATALOG: tuple[dict, ...] = (
    {
        "name": "Hotel Aurora",
        "address": "ul. Przykładowa 1",
        "city": "Warszawa",
        "country": "PL",
        "description": "Przykładowy hotel do seedowania bazy.",
        "room_types": [
            ("Single", 1, "199.00", "Pokój jednoosobowy"),
            ("Double", 2, "299.00", "Pokój dwuosobowy"),
            ("Suite", 4, "599.00", "Apartament"),
        ],
        "rooms": [
            ("101", 1, "Single"),
            ("102", 1, "Single"),
            ("201", 2, "Double"),
            ("202", 2, "Double"),
            ("301", 3, "Suite"),
        ],
    },
    {
        "name": "Hotel Baltic View",
        "address": "ul. Nadmorska 10",
        "city": "Gdańsk",
        "country": "PL",
        "description": "Hotel nad morzem.",
        "room_types": [
            ("Single", 1, "229.00", "Pokój jednoosobowy"),
            ("Double", 2, "349.00", "Pokój dwuosobowy"),
            ("Family", 3, "459.00", "Pokój rodzinny"),
        ],
        "rooms": [
            ("11", 1, "Single"),
            ("12", 1, "Single"),
            ("21", 2, "Double"),
            ("22", 2, "Double"),
            ("31", 3, "Family"),
        ],
    },
    {
        "name": "Hotel Mountain Peak",
        "address": "ul. Górska 5",
        "city": "Zakopane",
        "country": "PL",
        "description": "Hotel w górach.",
        "room_types": [
            ("Double", 2, "319.00", "Pokój dwuosobowy"),
            ("Suite", 4, "649.00", "Apartament"),
        ],
        "rooms": [
            ("A1", 1, "Double"),
            ("A2", 1, "Double"),
            ("B1", 2, "Suite"),
        ],
    },
)
