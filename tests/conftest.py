from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.orm import Session

from floodguard.schemas.risk import DataSource, Location, RiskRecord, ScoringMode


@pytest.fixture
def mock_db_session():
    """Fixture for mocking SQLAlchemy session."""
    session = MagicMock(spec=Session)
    return session


@pytest.fixture
def mock_session_factory(mock_db_session):
    """Session factory handing out the mocked session."""
    return MagicMock(return_value=mock_db_session)


@pytest.fixture
def make_record():
    """Factory for risk records with overridable fields."""

    def _make(prediction=78, record_id=1, sent_alert=False, **overrides):
        fields = dict(
            id=record_id,
            location=Location(lat=6.45, lng=3.39),
            rainfall=45.0,
            water_level=4.2,
            soil_moisture=0.7,
            data_source=DataSource(
                rainfall="OpenWeatherMap", water_level="USGS", soil_moisture="SoilGrids"
            ),
            prediction=prediction,
            scoring_mode=ScoringMode.HEURISTIC,
            sent_alert=sent_alert,
        )
        fields.update(overrides)
        return RiskRecord(**fields)

    return _make


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "api: Mark tests as API tests")
    config.addinivalue_line("markers", "core: Mark tests as Core tests")
    config.addinivalue_line("markers", "services: Mark tests as Service tests")
    config.addinivalue_line("markers", "tasks: Mark tests as Celery task tests")
    config.addinivalue_line("markers", "ml: Mark tests as model artifact tests")
    config.addinivalue_line("markers", "v1: Mark tests as V1 API tests")


def pytest_collection_modifyitems(items):
    """Add markers based on directory structure."""
    for item in items:
        path = str(item.fspath)

        if "test_api" in path:
            item.add_marker("api")
            item.add_marker("v1")

        if "test_core" in path:
            item.add_marker("core")

        if "test_services" in path:
            item.add_marker("services")

        if "test_tasks" in path:
            item.add_marker("tasks")

        if "test_ml" in path:
            item.add_marker("ml")


@pytest.fixture
def mock_store():
    """Record store double for API tests."""
    from floodguard.services.record_store import RiskRecordStore

    return MagicMock(spec=RiskRecordStore)


@pytest.fixture
def client(mock_store):
    """
    Test client with dependency overrides.
    - Mocks the record store
    - Skips database initialization
    """
    from fastapi.testclient import TestClient

    from floodguard.api.deps import get_record_store
    from floodguard.main import app

    app.dependency_overrides[get_record_store] = lambda: mock_store

    with patch("floodguard.main.init_db"), TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
