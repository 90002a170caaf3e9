import pytest
from fastapi.testclient import TestClient

from reminders.services import ReminderServices
from server.dependencies import get_services
from server.main import app


@pytest.fixture
def services(store, dedup, gate, engine):
    return ReminderServices(store=store, dedup=dedup, gate=gate, engine=engine)


@pytest.fixture
def api_client(services):
    # No context manager: startup hooks (real database + scheduler) stay off
    app.dependency_overrides[get_services] = lambda: services
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
