from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from fastapi import Request

from repairshop.models.enums import GlobalRole, WorkspaceRole

logger = logging.getLogger(__name__)


class Action(str, Enum):
    VIEW_REPAIRS = "view_repairs"
    MANAGE_REPAIRS = "manage_repairs"
    VIEW_MEMBERS = "view_members"
    MANAGE_MEMBERS = "manage_members"


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


_MEMBER_ACTIONS = frozenset(
    {
        Action.VIEW_REPAIRS,
        Action.MANAGE_REPAIRS,
        Action.VIEW_MEMBERS,
    }
)

_WORKSPACE_POLICY: dict[WorkspaceRole, frozenset[Action]] = {
    WorkspaceRole.OWNER: frozenset(Action),
    WorkspaceRole.ADMIN: frozenset(Action),
    WorkspaceRole.MEMBER: _MEMBER_ACTIONS,
}


def normalize_role(role: Any) -> str:
    if isinstance(role, Enum):
        role = role.value
    return (role or "").strip().lower()


def authorize(role: Any, action: Action) -> Decision:
    """Workspace-scoped role check. Unknown or missing roles are denied."""
    try:
        workspace_role = WorkspaceRole(normalize_role(role))
    except ValueError:
        return Decision.DENY
    if action in _WORKSPACE_POLICY[workspace_role]:
        return Decision.ALLOW
    return Decision.DENY


def is_superadmin(global_role: Any) -> bool:
    return normalize_role(global_role) == GlobalRole.SUPERADMIN.value


def log_access_denied(
    *,
    reason: str,
    request: Request | None,
    user_id: int | None,
    role: Any = None,
    workspace_id: int | None = None,
) -> None:
    endpoint = f"{request.method} {request.url.path}" if request is not None else None
    logger.warning(
        "Access denied (%s): user_id=%s role=%s workspace_id=%s endpoint=%s",
        reason,
        user_id,
        normalize_role(role) or None,
        workspace_id,
        endpoint,
    )
