from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from repairshop.core.database import get_db
from repairshop.deps import AuthContext, require_superadmin
from repairshop.schemas.tenancy import WorkspaceCreate
from repairshop.services.tenancy import UserSpec, create_workspace, serialize_workspace

router = APIRouter(prefix="/repair/admin/v1/workspaces", tags=["admin-workspaces"])


@router.post("", status_code=status.HTTP_201_CREATED)
def provision_workspace(
    payload: WorkspaceCreate,
    auth: AuthContext = Depends(require_superadmin),
    db: Session = Depends(get_db),
):
    owner = payload.owner
    workspace = create_workspace(
        db,
        name=payload.name,
        owner=UserSpec(
            email=owner.email,
            password=owner.password,
            first_name=owner.first_name,
            last_name=owner.last_name,
            telephone_number=owner.telephone_number,
        ),
        created_by_user_id=auth.user_id,
    )
    return {"workspace": serialize_workspace(workspace)}
