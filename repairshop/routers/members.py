from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from repairshop.core.database import get_db
from repairshop.deps import WorkspaceContext, require_member_viewer, require_workspace_admin
from repairshop.schemas.tenancy import MemberCreate
from repairshop.services.tenancy import (
    UserSpec,
    add_member,
    list_members,
    remove_member,
    serialize_member,
)

router = APIRouter(prefix="/repair/v1/workspaces/{workspace_id}/members", tags=["workspace-members"])


@router.get("")
def list_workspace_members(
    context: WorkspaceContext = Depends(require_member_viewer),
    db: Session = Depends(get_db),
):
    members = list_members(db, workspace_id=context.workspace_id)
    return {"members": [serialize_member(member) for member in members]}


@router.post("", status_code=status.HTTP_201_CREATED)
def add_workspace_member(
    payload: MemberCreate,
    response: Response,
    context: WorkspaceContext = Depends(require_workspace_admin),
    db: Session = Depends(get_db),
):
    result = add_member(
        db,
        workspace_id=context.workspace_id,
        user=UserSpec(
            email=payload.email,
            password=payload.password,
            first_name=payload.first_name,
            last_name=payload.last_name,
            telephone_number=payload.telephone_number,
        ),
        role=payload.role,
        invited_by_user_id=context.user_id,
    )
    if result.reactivated:
        response.status_code = status.HTTP_200_OK
    return {"member": serialize_member(result.member), "reactivated": result.reactivated}


@router.delete("/{member_id}")
def remove_workspace_member(
    member_id: int,
    context: WorkspaceContext = Depends(require_workspace_admin),
    db: Session = Depends(get_db),
):
    remove_member(db, workspace_id=context.workspace_id, member_id=member_id)
    return {"ok": True}
