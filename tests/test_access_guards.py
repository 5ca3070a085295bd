from dataclasses import replace
from types import SimpleNamespace

import pytest
from fastapi.security import HTTPAuthorizationCredentials

from repairshop.core.errors import AuthenticationError, AuthorizationError, NotFoundError
from repairshop.deps import (
    AuthContext,
    WorkspaceContext,
    get_auth_context,
    require_superadmin,
    require_workspace_action,
    require_workspace_admin,
    require_workspace_member,
)
from repairshop.models.enums import GlobalRole, WorkspaceRole
from repairshop.services.authorization import Action
from repairshop.models.user import User
from repairshop.services.tenancy import UserSpec, add_member
from repairshop.services.tokens import create_access_token
from tests.conftest import TEST_SETTINGS
from tests.factories import build_request, make_user, make_workspace


def _bearer(token):
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


def _owner_of(db, workspace):
    return db.get(User, workspace.owner_user_id)


def _auth_for(user):
    return AuthContext(user_id=user.id, global_role=user.role, user=user)


def test_missing_credential_is_rejected(db):
    with pytest.raises(AuthenticationError) as exc:
        get_auth_context(request=build_request(), credentials=None, db=db, settings=TEST_SETTINGS)

    assert exc.value.status_code == 401
    assert exc.value.message == "missing_authorization"


@pytest.mark.parametrize("token", ["not-a-jwt", "a.b.c"])
def test_malformed_credential_is_invalid(db, token):
    with pytest.raises(AuthenticationError) as exc:
        get_auth_context(request=build_request(), credentials=_bearer(token), db=db, settings=TEST_SETTINGS)

    assert exc.value.message == "invalid_token"


def test_expired_credential_is_invalid(db):
    user = make_user(db, "late@example.com")
    expired_settings = replace(TEST_SETTINGS, jwt_expire_minutes=-5)
    token = create_access_token(expired_settings, user_id=user.id, role=user.role)

    with pytest.raises(AuthenticationError) as exc:
        get_auth_context(request=build_request(), credentials=_bearer(token), db=db, settings=TEST_SETTINGS)

    assert exc.value.message == "invalid_token"


def test_credential_for_unknown_subject_is_invalid(db):
    token = create_access_token(TEST_SETTINGS, user_id=9999, role="user")

    with pytest.raises(AuthenticationError) as exc:
        get_auth_context(request=build_request(), credentials=_bearer(token), db=db, settings=TEST_SETTINGS)

    assert exc.value.message == "invalid_token"
    assert "subject_not_found" in exc.value.reason


def test_disabled_subject_is_forbidden(db):
    user = make_user(db, "gone@example.com")
    user.status = "disabled"
    db.commit()
    token = create_access_token(TEST_SETTINGS, user_id=user.id, role=user.role)

    with pytest.raises(AuthorizationError) as exc:
        get_auth_context(request=build_request(), credentials=_bearer(token), db=db, settings=TEST_SETTINGS)

    assert exc.value.status_code == 403
    assert exc.value.message == "user_inactive"


def test_valid_credential_attaches_auth_context(db):
    user = make_user(db, "ok@example.com")
    token = create_access_token(TEST_SETTINGS, user_id=user.id, role=user.role)
    request = build_request()

    auth = get_auth_context(request=request, credentials=_bearer(token), db=db, settings=TEST_SETTINGS)

    assert auth.user_id == user.id
    assert auth.global_role == "user"
    assert request.state.auth is auth


def test_outsider_cannot_tell_missing_from_foreign_workspace(db):
    workspace = make_workspace(db)
    outsider = make_user(db, "outsider@example.com")

    with pytest.raises(NotFoundError) as foreign:
        require_workspace_member(workspace_id=workspace.id, request=build_request(), auth=_auth_for(outsider), db=db)
    with pytest.raises(NotFoundError) as missing:
        require_workspace_member(workspace_id=424242, request=build_request(), auth=_auth_for(outsider), db=db)

    assert foreign.value.to_payload() == missing.value.to_payload() == {"message": "workspace_not_found"}
    assert foreign.value.reason == "not_a_workspace_member"
    assert missing.value.reason == "workspace_not_found"


def test_archived_workspace_is_hidden_from_its_owner(db):
    workspace = make_workspace(db)
    owner = _owner_of(db, workspace)
    workspace.status = "archived"
    db.commit()

    with pytest.raises(NotFoundError) as exc:
        require_workspace_member(workspace_id=workspace.id, request=build_request(), auth=_auth_for(owner), db=db)

    assert exc.value.message == "workspace_not_found"
    assert exc.value.reason == "workspace_inactive"


def test_removed_member_fails_membership_check(db):
    workspace = make_workspace(db)
    result = add_member(
        db,
        workspace_id=workspace.id,
        user=UserSpec(email="tech@example.com", password="tech-pass"),
        role=WorkspaceRole.MEMBER,
        invited_by_user_id=workspace.owner_user_id,
    )
    result.member.status = "removed"
    db.commit()

    with pytest.raises(NotFoundError):
        require_workspace_member(
            workspace_id=workspace.id,
            request=build_request(),
            auth=_auth_for(result.member.user),
            db=db,
        )


def test_membership_check_attaches_context_without_writing(db):
    workspace = make_workspace(db)
    owner = _owner_of(db, workspace)
    request = build_request(workspace_id=workspace.id)

    context = require_workspace_member(workspace_id=workspace.id, request=request, auth=_auth_for(owner), db=db)

    assert context.workspace.id == workspace.id
    assert context.workspace_id == workspace.id
    assert context.membership.role == "owner"
    assert request.state.workspace_context is context
    assert not db.new and not db.dirty and not db.deleted


def test_admin_guard_fails_closed_without_membership_context():
    with pytest.raises(AuthorizationError) as exc:
        require_workspace_admin(request=build_request(), context=None)

    assert exc.value.message == "forbidden"


def test_admin_guard_denies_plain_member():
    context = SimpleNamespace(
        auth=SimpleNamespace(user_id=5),
        workspace=SimpleNamespace(id=1),
        membership=SimpleNamespace(role="member"),
        workspace_id=1,
    )

    with pytest.raises(AuthorizationError) as exc:
        require_workspace_admin(request=build_request(), context=context)

    assert exc.value.status_code == 403


@pytest.mark.parametrize("role", ["owner", "admin"])
def test_admin_guard_passes_owner_and_admin(role):
    context = WorkspaceContext(
        auth=SimpleNamespace(user_id=5),
        workspace=SimpleNamespace(id=1),
        membership=SimpleNamespace(role=role),
        workspace_id=1,
    )

    assert require_workspace_admin(request=build_request(), context=context) is context


def test_superadmin_guard_checks_global_role_only():
    ordinary = SimpleNamespace(user_id=3, global_role=GlobalRole.USER.value)
    superadmin = SimpleNamespace(user_id=1, global_role=GlobalRole.SUPERADMIN.value)

    with pytest.raises(AuthorizationError):
        require_superadmin(request=build_request(path="/repair/admin/v1/workspaces"), auth=ordinary)
    assert require_superadmin(request=build_request(), auth=superadmin) is superadmin


def test_workspace_id_outlives_a_rolled_back_session(db):
    workspace = make_workspace(db)
    expected_id = workspace.id
    context = require_workspace_member(
        workspace_id=expected_id,
        request=build_request(),
        auth=_auth_for(_owner_of(db, workspace)),
        db=db,
    )

    db.rollback()
    db.close()

    assert context.workspace_id == expected_id


@pytest.mark.parametrize(
    "role, action, allowed",
    [
        ("member", Action.VIEW_REPAIRS, True),
        ("member", Action.MANAGE_REPAIRS, True),
        ("member", Action.VIEW_MEMBERS, True),
        ("cashier", Action.VIEW_REPAIRS, False),
    ],
)
def test_action_guard_consults_role_policy(role, action, allowed):
    guard = require_workspace_action(action)
    context = WorkspaceContext(
        auth=SimpleNamespace(user_id=5),
        workspace=SimpleNamespace(id=1),
        membership=SimpleNamespace(role=role),
        workspace_id=1,
    )

    if allowed:
        assert guard(request=build_request(), context=context) is context
    else:
        with pytest.raises(AuthorizationError):
            guard(request=build_request(), context=context)
