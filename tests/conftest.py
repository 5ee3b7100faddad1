"""
Fixtures partagées : base SQLite en mémoire et fabrique de rides
"""
from datetime import datetime, timedelta

import pytest

from mototrack.core.database import build_engine, create_db_and_tables
from mototrack.domain.entities.coordinate import Coordinate
from mototrack.domain.entities.ride import RideCreate
from mototrack.domain.services.local_store import LocalStore

START = datetime(2025, 6, 1, 9, 30, 0)


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def local_store(engine):
    return LocalStore(engine)


@pytest.fixture
def ride_factory():
    """Construit un RideCreate valide (2 points) avec surcharges."""
    def _make(**overrides) -> RideCreate:
        values = dict(
            title="Ride on 2025-06-01",
            distance=14.17,
            duration=1,
            start_time=START,
            end_time=START + timedelta(seconds=1),
            max_speed=12.0,
            avg_speed=14.17,
            route=[
                Coordinate(37.7749, -122.4194, 0, accuracy=5.0).to_dict(),
                Coordinate(37.7750, -122.4195, 1000, accuracy=5.0).to_dict(),
            ],
        )
        values.update(overrides)
        return RideCreate(**values)
    return _make
