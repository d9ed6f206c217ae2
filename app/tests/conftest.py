"""Test fixtures shared by unit/integration tests."""

from __future__ import annotations

from typing import Any

import pytest
from fastapi.testclient import TestClient

from app.dependencies.units import get_unit_service
from app.main import app
from app.services.unit_service import UnitService
from app.tests.fakes import InMemoryUnitRepository, UnavailableRepository, make_unit


@pytest.fixture
def seed_units() -> list[dict[str, Any]]:
    return [
        make_unit("79", "province", "Thành phố Hồ Chí Minh"),
        make_unit("760", "district", "Quận 1", "79"),
        make_unit("26734", "commune", "Phường Bến Nghé", "760"),
        make_unit("01", "province", "Thành phố Hà Nội"),
        make_unit("00004", "commune", "Phường Ba Đình", "01"),
    ]


@pytest.fixture
def repository(seed_units: list[dict[str, Any]]) -> InMemoryUnitRepository:
    return InMemoryUnitRepository(seed_units)


def _client_for(repository: InMemoryUnitRepository):
    service = UnitService(repository, root_level="province")
    app.dependency_overrides[get_unit_service] = lambda: service
    try:
        # Not entered as a context manager, so the MongoDB lifespan never runs.
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def client(repository: InMemoryUnitRepository):
    yield from _client_for(repository)


@pytest.fixture
def empty_client():
    yield from _client_for(InMemoryUnitRepository())


@pytest.fixture
def unavailable_client():
    yield from _client_for(UnavailableRepository())
