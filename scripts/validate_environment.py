#!/usr/bin/env python3
"""Validate local hotel operations environment readiness."""

from __future__ import annotations

import importlib
import shutil
import sys
import tempfile
from dataclasses import replace
from datetime import datetime, timedelta
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from hotelops.repository.hotel_repository import ROOMS, HotelRepository
from hotelops.services.analytics_service import AnalyticsService
from hotelops.services.room_service import RoomOperationsService
from hotelops.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="hotelops-env-")

    # CHECK 1: Python version >= 3.10
    if sys.version_info >= (3, 10):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.10",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable with versions
    package_specs = [
        ("fastapi", "fastapi"),
        ("uvicorn", "uvicorn"),
        ("pydantic", "pydantic"),
        ("pandas", "pandas"),
        ("requests", "requests"),
        ("streamlit", "streamlit"),
        ("httpx", "httpx"),
        ("pytest", "pytest"),
    ]
    import_errors: list[str] = []
    for module_name, dist_name in package_specs:
        try:
            importlib.import_module(module_name)
            version(dist_name)
        except (ImportError, PackageNotFoundError) as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    try:
        validation_settings = replace(
            get_settings(),
            database_path=Path(temp_dir) / "hotelops_validation.db",
        )
        repository = HotelRepository(validation_settings)
        hotel_id = validation_settings.demo_hotel_id

        # CHECK 3: Document store initialization
        try:
            repository.initialize_database()
            ok, line = _print_result("Document store initialization", True)
        except Exception as exc:
            ok, line = _print_result("Document store initialization", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 4: Demo hotel seeding (8 rooms)
        try:
            repository.seed_demo_hotel()
            room_count = repository.count_documents(hotel_id, ROOMS)
            if room_count != 8:
                raise RuntimeError(f"expected 8 rooms, got {room_count}")
            ok, line = _print_result("Demo hotel: 8 rooms", True)
        except Exception as exc:
            ok, line = _print_result("Demo hotel", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 5: Stay lifecycle through checkout
        try:
            rooms = RoomOperationsService(repository=repository, settings=validation_settings)
            today = datetime.now().replace(hour=12, minute=0, second=0, microsecond=0)
            stay = rooms.add_stay(
                hotel_id,
                "room-101",
                guest_name="Validation Guest",
                check_in_date=today - timedelta(days=1),
                check_out_date=today,
                room_charge=1000.0,
                paid_amount=1280.0,
            )
            rooms.check_in_stay(hotel_id, "room-101", stay.stay_id)
            result = rooms.checkout_stay(hotel_id, "room-101", stay.stay_id)
            ok, line = _print_result(
                "Stay lifecycle",
                True,
                f": total={result.final_bill.total:.2f} archived={result.archived}",
            )
        except Exception as exc:
            ok, line = _print_result("Stay lifecycle", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 6: Revenue analytics
        try:
            analytics = AnalyticsService(repository=repository, settings=validation_settings)
            revenue = analytics.revenue(hotel_id, datetime.now())
            if revenue.total_revenue <= 0:
                raise RuntimeError("checkout did not reach revenue analytics")
            ok, line = _print_result("Revenue analytics", True, f": {revenue.total_revenue:.2f}")
        except Exception as exc:
            ok, line = _print_result("Revenue analytics", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Hotel Operations Environment Validation")
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
