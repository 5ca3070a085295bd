from dataclasses import replace

from fastapi.testclient import TestClient

from repairshop.main import create_app
from repairshop.models.user import User
from tests.api_helpers import auth_headers, provision_workspace
from tests.conftest import TEST_SETTINGS
from tests.fakes import InlineExecutor, RecordingSmsSender
from tests.fixtures_data import BOOTSTRAP_TOKEN, OWNER, REPAIR_PAYLOAD, SUPERADMIN

BOOTSTRAP_URL = "/repair/admin/v1/superadmin/bootstrap"


def _disable(app, email):
    db = app.state.session_factory()
    try:
        db.query(User).filter(User.email == email).update({User.status: "disabled"})
        db.commit()
    finally:
        db.close()


def test_bootstrap_requires_the_configured_token(client):
    missing = client.post(BOOTSTRAP_URL, json=SUPERADMIN)
    wrong = client.post(BOOTSTRAP_URL, json=SUPERADMIN, headers={"X-Bootstrap-Token": "nope"})

    assert missing.status_code == 401
    assert missing.json() == {"message": "missing_bootstrap_token"}
    assert wrong.status_code == 401
    assert wrong.json() == {"message": "invalid_bootstrap_token"}


def test_bootstrap_token_is_checked_before_the_body(client):
    response = client.post(BOOTSTRAP_URL, json={"email": "not-an-email"})

    assert response.status_code == 401


def test_bootstrap_happens_only_once(client):
    headers = {"X-Bootstrap-Token": BOOTSTRAP_TOKEN}

    first = client.post(BOOTSTRAP_URL, json=SUPERADMIN, headers=headers)
    second = client.post(BOOTSTRAP_URL, json={**SUPERADMIN, "email": "other@example.com"}, headers=headers)

    assert first.status_code == 201
    assert first.json()["user"]["role"] == "superadmin"
    assert "password_hash" not in first.json()["user"]
    assert second.status_code == 409
    assert second.json() == {"message": "superadmin_already_exists"}


def test_bootstrap_is_hidden_without_configured_token():
    app = create_app(
        replace(TEST_SETTINGS, bootstrap_token=""),
        sms_sender=RecordingSmsSender(),
        executor=InlineExecutor(),
    )
    with TestClient(app) as client:
        response = client.post(BOOTSTRAP_URL, json=SUPERADMIN, headers={"X-Bootstrap-Token": "anything"})

    assert response.status_code == 404


def test_bootstrap_validates_fields(client):
    response = client.post(
        BOOTSTRAP_URL,
        json={"email": "bad", "password": ""},
        headers={"X-Bootstrap-Token": BOOTSTRAP_TOKEN},
    )

    assert response.status_code == 422
    assert response.json() == {
        "errors": [
            {"field": "email", "message": "email_is_invalid"},
            {"field": "password", "message": "password_is_required"},
        ]
    }


def test_login_by_phone_and_generic_failures(client, workspace):
    by_phone = client.post("/repair/v1/auth/login", json={"id": OWNER["telephone_number"], "password": OWNER["password"]})
    wrong = client.post("/repair/v1/auth/login", json={"id": OWNER["email"], "password": "wrong"})
    unknown = client.post("/repair/v1/auth/login", json={"id": "ghost@x.com", "password": "wrong"})
    blank = client.post("/repair/v1/auth/login", json={"id": "  ", "password": "x"})

    assert by_phone.status_code == 200
    assert by_phone.json()["token_type"] == "bearer"
    assert by_phone.json()["user"]["email"] == OWNER["email"]
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json() == {"message": "invalid_credentials"}
    assert blank.status_code == 422
    assert blank.json() == {"errors": [{"field": "id", "message": "id_is_required"}]}


def test_me_requires_a_valid_token(client, workspace):
    _, owner_headers, _ = workspace

    me = client.get("/repair/v1/auth/me", headers=owner_headers)
    missing = client.get("/repair/v1/auth/me")
    garbage = client.get("/repair/v1/auth/me", headers={"Authorization": "Bearer garbage"})

    assert me.status_code == 200
    assert me.json()["user"]["email"] == OWNER["email"]
    assert missing.status_code == 401
    assert missing.json() == {"message": "missing_authorization"}
    assert garbage.status_code == 401
    assert garbage.json() == {"message": "invalid_token"}


def test_disabled_user_is_locked_out(client, app, workspace):
    _, owner_headers, _ = workspace
    _disable(app, OWNER["email"])

    with_token = client.get("/repair/v1/auth/me", headers=owner_headers)
    login = client.post("/repair/v1/auth/login", json={"id": OWNER["email"], "password": OWNER["password"]})

    assert with_token.status_code == 403
    assert with_token.json() == {"message": "user_inactive"}
    assert login.status_code == 403
    assert login.json() == {"message": "user_inactive"}


def test_authentication_runs_before_body_validation(client, workspace):
    workspace_id, _, _ = workspace

    response = client.post(f"/repair/v1/workspaces/{workspace_id}/repairs", json={})

    assert response.status_code == 401


def test_outsiders_see_the_same_not_found(client, workspace):
    workspace_id, _, admin_headers = workspace
    other_id = provision_workspace(
        client,
        admin_headers,
        name="Other Shop",
        owner={"email": "other@x.com", "password": "other-pass"},
    )
    outsider_headers = auth_headers(client, "other@x.com", "other-pass")

    existing = client.get(f"/repair/v1/workspaces/{workspace_id}/repairs", headers=outsider_headers)
    missing = client.get("/repair/v1/workspaces/987654/repairs", headers=outsider_headers)
    own = client.get(f"/repair/v1/workspaces/{other_id}/repairs", headers=outsider_headers)

    assert existing.status_code == missing.status_code == 404
    assert existing.json() == missing.json() == {"message": "workspace_not_found"}
    assert own.status_code == 200


def test_repairs_do_not_leak_across_workspaces(client, workspace):
    workspace_id, owner_headers, admin_headers = workspace
    repair_id = client.post(
        f"/repair/v1/workspaces/{workspace_id}/repairs", json=REPAIR_PAYLOAD, headers=owner_headers
    ).json()["repair"]["id"]
    other_id = provision_workspace(
        client,
        admin_headers,
        name="Other Shop",
        owner={"email": "other@x.com", "password": "other-pass"},
    )
    other_headers = auth_headers(client, "other@x.com", "other-pass")

    fetched = client.get(f"/repair/v1/workspaces/{other_id}/repairs/{repair_id}", headers=other_headers)
    completed = client.post(f"/repair/v1/workspaces/{other_id}/repairs/{repair_id}/complete", headers=other_headers)
    still_open = client.get(f"/repair/v1/workspaces/{workspace_id}/repairs/{repair_id}", headers=owner_headers)

    assert fetched.status_code == completed.status_code == 404
    assert fetched.json() == {"message": "repair_not_found"}
    assert still_open.json()["repair"]["status"] == "in_progress"


def test_only_superadmin_provisions_workspaces(client, workspace):
    _, owner_headers, _ = workspace

    response = client.post(
        "/repair/admin/v1/workspaces",
        json={"name": "Rogue", "owner": {"email": "r@x.com", "password": "r-pass"}},
        headers=owner_headers,
    )

    assert response.status_code == 403
    assert response.json() == {"message": "forbidden"}


def test_workspace_owner_password_only_needed_for_new_users(client, workspace):
    _, _, admin_headers = workspace

    new_owner = client.post(
        "/repair/admin/v1/workspaces",
        json={"name": "Branch", "owner": {"email": "fresh@x.com"}},
        headers=admin_headers,
    )
    existing_owner = client.post(
        "/repair/admin/v1/workspaces",
        json={"name": "Branch", "owner": {"email": OWNER["email"]}},
        headers=admin_headers,
    )

    assert new_owner.status_code == 422
    assert new_owner.json()["errors"][0]["field"] == "owner.password"
    assert existing_owner.status_code == 201
    assert existing_owner.json()["workspace"]["name"] == "Branch"


def test_request_validation_uses_field_codes(client, workspace):
    workspace_id, owner_headers, _ = workspace
    url = f"/repair/v1/workspaces/{workspace_id}/repairs"

    blank_customer = client.post(
        url,
        json={"customer": {"name": "  ", "telephone_number": "255700000000"}, "issue_description": "x"},
        headers=owner_headers,
    )
    missing_issue = client.post(url, json={"customer": REPAIR_PAYLOAD["customer"]}, headers=owner_headers)
    bad_status = client.get(url, params={"status": "lost"}, headers=owner_headers)
    bad_role = client.post(
        f"/repair/v1/workspaces/{workspace_id}/members",
        json={"email": "m@x.com", "password": "p", "role": "boss"},
        headers=owner_headers,
    )

    assert blank_customer.json() == {"errors": [{"field": "customer.name", "message": "customer.name_is_required"}]}
    assert missing_issue.json() == {
        "errors": [{"field": "issue_description", "message": "issue_description_is_required"}]
    }
    assert bad_status.status_code == 422
    assert bad_status.json() == {"errors": [{"field": "status", "message": "status_is_invalid"}]}
    assert bad_role.json() == {"errors": [{"field": "role", "message": "role_is_invalid"}]}


def test_invalid_assignee_is_a_domain_error(client, workspace):
    workspace_id, owner_headers, _ = workspace

    response = client.post(
        f"/repair/v1/workspaces/{workspace_id}/repairs",
        json={**REPAIR_PAYLOAD, "assigned_to_user_id": 4040},
        headers=owner_headers,
    )

    assert response.status_code == 422
    assert response.json() == {"message": "assigned_to_user_id_is_invalid"}


def test_unexpected_errors_are_generic(app):
    def explode():
        raise RuntimeError("database password=hunter2 leaked")

    app.add_api_route("/explode", explode)
    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/explode")

    assert response.status_code == 500
    assert response.json() == {"message": "internal_server_error"}


def test_request_id_is_echoed(client):
    response = client.get("/repair/v1/health", headers={"X-Request-ID": "abc-123"})

    assert response.json() == {"ok": True}
    assert response.headers["X-Request-ID"] == "abc-123"
