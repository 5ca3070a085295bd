import pytest
from fastapi.testclient import TestClient

import repairshop.models  # noqa: F401
from repairshop.core.config import Settings
from repairshop.core.database import Base, build_engine, build_session_factory
from repairshop.main import create_app
from tests.api_helpers import auth_headers, bootstrap_and_login, provision_workspace
from tests.fakes import InlineExecutor, RecordingSmsSender
from tests.fixtures_data import BOOTSTRAP_TOKEN, OWNER

TEST_SETTINGS = Settings(
    env="test",
    database_url="sqlite://",
    log_level="WARNING",
    jwt_secret="test-secret",
    bootstrap_token=BOOTSTRAP_TOKEN,
)


@pytest.fixture
def sms_sender():
    return RecordingSmsSender()


@pytest.fixture
def executor():
    return InlineExecutor()


@pytest.fixture
def app(sms_sender, executor):
    return create_app(TEST_SETTINGS, sms_sender=sms_sender, executor=executor)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    session = build_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def workspace(client):
    """Bootstrapped superadmin plus one workspace; returns (workspace_id, owner_headers, admin_headers)."""
    admin_headers = bootstrap_and_login(client)
    workspace_id = provision_workspace(client, admin_headers)
    owner_headers = auth_headers(client, OWNER["email"], OWNER["password"])
    return workspace_id, owner_headers, admin_headers
