# repairshop/deps.py
"""
Access control chain.

Each guard is a FastAPI dependency that either returns an enriched context or
raises one of the errors from `repairshop.core.errors`. They are meant to be
stacked in this order:

    get_auth_context -> require_workspace_member -> require_workspace_action(action)
    get_auth_context -> require_workspace_member -> require_workspace_admin
    get_auth_context -> require_superadmin

Guards only read; they never modify users, workspaces or memberships.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from repairshop.core.config import Settings
from repairshop.core.database import get_db
from repairshop.core.errors import AuthenticationError, AuthorizationError, NotFoundError
from repairshop.models.enums import MemberStatus, UserStatus, WorkspaceStatus
from repairshop.models.user import User
from repairshop.models.workspace import Workspace
from repairshop.models.workspace_member import WorkspaceMember
from repairshop.services.authorization import (
    Action,
    Decision,
    authorize,
    is_superadmin,
    log_access_denied,
)
from repairshop.services.identity import get_user_by_id
from repairshop.services.notifications import NotificationDispatcher
from repairshop.services.tenancy import get_membership, get_workspace
from repairshop.services.tokens import decode_access_token, extract_user_id

# Shows the "Authorize" button in Swagger; missing headers are handled below.
bearer_scheme = HTTPBearer(auto_error=False)

logger = logging.getLogger(__name__)


@dataclass
class AuthContext:
    user_id: int
    global_role: str
    user: User


@dataclass
class WorkspaceContext:
    auth: AuthContext
    workspace: Workspace
    membership: WorkspaceMember
    # Copied out of the ORM row so it stays readable after the session closes.
    workspace_id: int

    @property
    def user_id(self) -> int:
        return self.auth.user_id


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_notifications(request: Request) -> NotificationDispatcher:
    return request.app.state.notifications


def get_auth_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AuthContext:
    """Resolve the bearer token to a live, active user."""
    if credentials is None or not (credentials.credentials or "").strip():
        raise AuthenticationError("missing_authorization", reason="missing_credential")

    try:
        payload = decode_access_token(settings, credentials.credentials.strip())
    except ValueError:
        raise AuthenticationError("invalid_token", reason="invalid_credential")

    user_id = extract_user_id(payload)
    if user_id is None:
        raise AuthenticationError("invalid_token", reason="invalid_credential_subject")

    user = get_user_by_id(db, user_id)
    if not user:
        raise AuthenticationError("invalid_token", reason=f"subject_not_found user_id={user_id}")
    if user.status != UserStatus.ACTIVE.value:
        raise AuthorizationError("user_inactive", reason=f"inactive_subject user_id={user_id}")

    auth = AuthContext(user_id=user.id, global_role=user.role, user=user)
    request.state.auth = auth
    return auth


def require_workspace_member(
    workspace_id: int,
    request: Request,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
) -> WorkspaceContext:
    """Caller must be an active member of an active workspace.

    Missing workspace, archived workspace and non-membership all surface as
    the same 404 so outsiders cannot probe which workspaces exist.
    """
    reason: str | None = None
    membership: WorkspaceMember | None = None

    workspace = get_workspace(db, workspace_id)
    if workspace is None:
        reason = "workspace_not_found"
    elif workspace.status != WorkspaceStatus.ACTIVE.value:
        reason = "workspace_inactive"
    else:
        membership = get_membership(db, workspace_id=workspace.id, user_id=auth.user_id)
        if membership is None or membership.status != MemberStatus.ACTIVE.value:
            reason = "not_a_workspace_member"

    if reason is not None:
        log_access_denied(
            reason=reason,
            request=request,
            user_id=auth.user_id,
            role=membership.role if membership is not None else None,
            workspace_id=workspace_id,
        )
        raise NotFoundError("workspace_not_found", reason=reason)

    context = WorkspaceContext(auth=auth, workspace=workspace, membership=membership, workspace_id=workspace.id)
    request.state.workspace_context = context
    return context


def _ensure_workspace_action(request: Request, context: Optional[WorkspaceContext], action: Action) -> WorkspaceContext:
    if context is None or getattr(context, "membership", None) is None:
        logger.error("Workspace role check ran without membership context: %s %s", request.method, request.url.path)
        raise AuthorizationError("forbidden", reason="workspace_member_context_missing")

    if authorize(context.membership.role, action) is not Decision.ALLOW:
        log_access_denied(
            reason=f"role_denied action={action.value}",
            request=request,
            user_id=context.auth.user_id,
            role=context.membership.role,
            workspace_id=context.workspace_id,
        )
        raise AuthorizationError("forbidden", reason="role_denied")
    return context


def require_workspace_action(action: Action):
    """Build a guard that runs the membership check, then `authorize(role, action)`."""

    def dependency(
        request: Request,
        context: Optional[WorkspaceContext] = Depends(require_workspace_member),
    ) -> WorkspaceContext:
        return _ensure_workspace_action(request, context, action)

    dependency.__name__ = f"require_{action.value}"
    return dependency


require_repair_viewer = require_workspace_action(Action.VIEW_REPAIRS)
require_repair_editor = require_workspace_action(Action.MANAGE_REPAIRS)
require_member_viewer = require_workspace_action(Action.VIEW_MEMBERS)


def require_workspace_admin(
    request: Request,
    context: Optional[WorkspaceContext] = Depends(require_workspace_member),
) -> WorkspaceContext:
    return _ensure_workspace_action(request, context, Action.MANAGE_MEMBERS)


def require_superadmin(
    request: Request,
    auth: AuthContext = Depends(get_auth_context),
) -> AuthContext:
    if not is_superadmin(auth.global_role):
        log_access_denied(
            reason="superadmin_required",
            request=request,
            user_id=auth.user_id,
            role=auth.global_role,
        )
        raise AuthorizationError("forbidden", reason="superadmin_required")
    return auth
