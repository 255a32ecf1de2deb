#!/usr/bin/env python3
"""Check that the reservation service can run on this machine."""

from __future__ import annotations

import importlib
import shutil
import sys
import tempfile
from dataclasses import replace
from decimal import Decimal
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from backend.domain.models import CallerContext
from backend.repository.data_repository import DataRepository
from backend.services.auth_service import AuthService
from backend.services.availability_service import AvailabilityService
from backend.services.reservation_service import ReservationConflictError, ReservationService
from backend.utils.config import get_settings

SEPARATOR_LINE = "=" * 44
REQUIRED_PACKAGES = ("fastapi", "uvicorn", "pydantic", "dotenv", "bcrypt")
MIN_PYTHON = (3, 11)


def _result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def _python_check(version_info) -> tuple[bool, str]:
    version = ".".join(str(part) for part in version_info[:3])
    if version_info >= MIN_PYTHON:
        return _result(f"Python {version}", True)
    return _result("Python version", False, f"found {version}, need >= 3.11")


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="hrs-env-")

    ok, line = _python_check(sys.version_info)
    results.append(line)
    all_passed = all_passed and ok

    missing: list[str] = []
    for module_name in REQUIRED_PACKAGES:
        try:
            importlib.import_module(module_name)
        except ImportError as exc:
            missing.append(f"{module_name} ({exc})")
    if missing:
        ok, line = _result("Required packages", False, "missing -> " + "; ".join(missing))
    else:
        ok, line = _result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    try:
        settings = replace(
            get_settings(),
            database_path=Path(temp_dir) / "hrs_validation.db",
            auth_password_bcrypt_rounds=4,
        )
        repository = DataRepository(settings)

        try:
            repository.initialize_database()
            hotels = repository.seed_demo_catalog()
            ok, line = _result("Schema and demo catalog", True, f": {len(hotels)} hotels")
        except Exception as exc:
            ok, line = _result("Schema and demo catalog", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        try:
            user = AuthService(repository=repository, settings=settings).register(
                "validate@example.com", "validation-password"
            ).user
            availability = AvailabilityService(repository=repository, settings=settings)
            reservations = ReservationService(
                repository=repository,
                settings=settings,
                availability_service=availability,
            )
            room = availability.search_available_rooms("2030-01-01", "2030-01-04", hotel_id=1)[0]
            booked = reservations.create_reservation(
                CallerContext(user_id=user.user_id), room.room_id, "2030-01-01", "2030-01-04"
            )
            expected = room.room_type.base_price * 3
            if booked.total_amount != expected.quantize(Decimal("0.01")):
                raise RuntimeError(f"expected total {expected}, got {booked.total_amount}")
            try:
                reservations.create_reservation(
                    CallerContext(user_id=user.user_id), room.room_id, "2030-01-02", "2030-01-03"
                )
            except ReservationConflictError:
                pass
            else:
                raise RuntimeError("overlapping booking was accepted")
            ok, line = _result("Reservation round trip", True, f": total={booked.total_amount}")
        except Exception as exc:
            ok, line = _result("Reservation round trip", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok
    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Hotel Reservation Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
