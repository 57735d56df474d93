import pytest
from httpx import AsyncClient, ASGITransport
from unittest.mock import Mock
import os
from datetime import datetime, timedelta, timezone

# Set up test environment variables before anything else
os.environ["ENV"] = "testing"
os.environ["SECRET_KEY"] = "test_secret_key_12345"
os.environ["NOTIFICATIONS_SCHEDULER_ENABLED"] = "false"

from config import config
config.ENV = "testing"

from mongomock_motor import AsyncMongoMockClient

from main import app
from models.task import TaskModel
from routes.deps import create_access_token, get_db, get_notification_repository, get_scheduler
from automations.scanner import DueItemScanner
from automations.scheduler import NotificationScheduler
from repositories.notifications import NotificationRepository
from utils.clock import FixedClock, document_to_storage


TEST_USER = {
    "id": "test_owner_id",
    "email": "owner@test.com",
    "name": "Test Owner",
}


@pytest.fixture(scope="function")
def mock_db():
    """Fresh in-memory database per test."""
    return AsyncMongoMockClient()["todu_test"]


@pytest.fixture(scope="function")
def clock():
    # 2024-01-15 12:00 UTC, days are UTC calendar days
    return FixedClock(datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture(scope="function")
def email_sender():
    return Mock(return_value={"id": "email_123"})


@pytest.fixture(scope="function")
def scanner(mock_db, clock, email_sender):
    return DueItemScanner(mock_db, clock=clock, email_sender=email_sender)


@pytest.fixture(scope="function")
async def test_user(mock_db):
    await mock_db["users"].insert_one(dict(TEST_USER))
    return dict(TEST_USER)


@pytest.fixture(scope="function")
def insert_task(mock_db):
    """Insert a task document the way the task CRUD layer stores it."""
    async def _insert(**fields):
        data = {"title": "Write report", "user_id": TEST_USER["id"], **fields}
        task = TaskModel(**data)
        await mock_db["tasks"].insert_one(document_to_storage(task.model_dump()))
        return task
    return _insert


@pytest.fixture(scope="function")
def notifications_in_db(mock_db):
    async def _fetch(**query):
        return await mock_db["notifications"].find(query).to_list(length=None)
    return _fetch


@pytest.fixture(scope="function")
async def async_client(mock_db, scanner):
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_notification_repository] = lambda: NotificationRepository(mock_db, scanner.clock)
    app.dependency_overrides[get_scheduler] = lambda: NotificationScheduler(scanner)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def auth_headers(test_user):
    token = create_access_token(
        data={"sub": test_user["id"]},
        expires_delta=timedelta(minutes=60)
    )
    return {"Authorization": f"Bearer {token}"}
