from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path
from typing import Iterator, Sequence

import pytest
from sqlalchemy import text

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from floorops.infrastructure import settings
from floorops.infrastructure.cache import redis_client
from floorops.infrastructure.db import session as db_session

BACKEND_DIR = Path(__file__).resolve().parents[2]


class RecordingPublisher:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def publish_batch(self, channel: str, messages: Sequence[str]) -> None:
        self.messages.extend((channel, message) for message in messages)


def _clear_caches() -> None:
    db_session._build_engine.cache_clear()
    redis_client._build_client.cache_clear()
    settings.default_currency.cache_clear()
    settings.events_channel.cache_clear()
    settings.service_charge_policy.cache_clear()


@pytest.fixture(scope="session", autouse=True)
def integration_environment() -> Iterator[None]:
    if not os.getenv("DATABASE_URL"):
        pytest.skip("DATABASE_URL is not set")
    os.environ.setdefault("OTEL_SERVICE_NAME", "floorops-test")
    os.environ.setdefault("OTEL_EXPORTER_OTLP_ENDPOINT", "")
    _clear_caches()
    if not db_session.ping_database(timeout_seconds=2.0):
        pytest.skip("PostgreSQL at DATABASE_URL is not reachable")

    env = os.environ.copy()
    env["PYTHONPATH"] = f"{BACKEND_DIR / 'src'}{os.pathsep}{env.get('PYTHONPATH', '')}".rstrip(
        os.pathsep
    )

    subprocess.run(
        [sys.executable, "-m", "alembic", "-c", "alembic.ini", "upgrade", "head"],
        cwd=BACKEND_DIR,
        env=env,
        check=True,
    )
    subprocess.run(
        [sys.executable, "-m", "floorops.tools.seed"],
        cwd=BACKEND_DIR,
        env=env,
        check=True,
    )
    yield
    _clear_caches()


@pytest.fixture(autouse=True)
def empty_floor() -> Iterator[None]:
    """Every test starts with free tables and no floor history."""

    def _reset() -> None:
        with db_session.get_engine().begin() as connection:
            connection.execute(
                text("TRUNCATE payments, bills, order_items, orders, reservations CASCADE")
            )
            connection.execute(
                text(
                    "UPDATE tables SET status = 'available', booking_reservation_id = NULL, "
                    "booking_customer_name = NULL, booking_party_size = NULL, "
                    "booking_starts_at = NULL, booking_duration_minutes = NULL, "
                    "booking_notes = NULL, booked_by = NULL, booked_at = NULL"
                )
            )
            connection.execute(text("UPDATE promotions SET usage_count = 0"))

    _reset()
    yield
    _reset()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()
