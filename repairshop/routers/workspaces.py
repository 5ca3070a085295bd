from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from repairshop.core.database import get_db
from repairshop.deps import AuthContext, get_auth_context
from repairshop.services.tenancy import list_workspaces_for_user, serialize_workspace

router = APIRouter(prefix="/repair/v1/workspaces", tags=["workspaces"])


@router.get("")
def list_my_workspaces(
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    rows = list_workspaces_for_user(db, user_id=auth.user_id)
    return {"workspaces": [serialize_workspace(workspace, role=member.role) for workspace, member in rows]}
