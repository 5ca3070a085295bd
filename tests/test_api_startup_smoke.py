from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from repairshop.core.startup_checks import validate_auth_configuration, validate_database_environment
from tests.conftest import TEST_SETTINGS

REQUIRED_ROUTES = {
    "/repair/v1/health",
    "/repair/v1/auth/login",
    "/repair/v1/auth/me",
    "/repair/v1/workspaces",
    "/repair/v1/workspaces/{workspace_id}/members",
    "/repair/v1/workspaces/{workspace_id}/members/{member_id}",
    "/repair/v1/workspaces/{workspace_id}/repairs",
    "/repair/v1/workspaces/{workspace_id}/repairs/{repair_id}",
    "/repair/v1/workspaces/{workspace_id}/repairs/{repair_id}/complete",
    "/repair/v1/workspaces/{workspace_id}/repairs/{repair_id}/notes",
    "/repair/v1/workspaces/{workspace_id}/repairs/{repair_id}/message",
    "/repair/v1/workspaces/{workspace_id}/repairs/{repair_id}/activity",
    "/repair/admin/v1/superadmin/bootstrap",
    "/repair/admin/v1/workspaces",
}


def test_api_startup_and_router_registration(monkeypatch):
    from repairshop import main

    monkeypatch.setattr(main, "_startup_tasks", lambda app: None)

    with TestClient(main.app) as client:
        response = client.get("/")
        docs_response = client.get("/docs")
        openapi_response = client.get("/openapi.json")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert docs_response.status_code == 200
    assert openapi_response.status_code == 200

    paths = set(openapi_response.json()["paths"])
    assert REQUIRED_ROUTES.issubset(paths)


def test_sqlite_is_refused_in_production():
    with pytest.raises(RuntimeError):
        validate_database_environment(replace(TEST_SETTINGS, env="production"))

    validate_database_environment(replace(TEST_SETTINGS, env="dev"))


def test_jwt_secret_is_mandatory():
    with pytest.raises(RuntimeError):
        validate_auth_configuration(replace(TEST_SETTINGS, jwt_secret=""))

    validate_auth_configuration(replace(TEST_SETTINGS, bootstrap_token=""))
