from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from repairshop.core.database import get_db
from repairshop.core.errors import ValidationError
from repairshop.deps import WorkspaceContext, get_notifications, require_repair_editor, require_repair_viewer
from repairshop.models.enums import RepairStatus
from repairshop.schemas.repairs import (
    MessagePayload,
    NotePayload,
    RepairComplete,
    RepairCreate,
    RepairUpdate,
)
from repairshop.services.activity import list_activity, serialize_activity
from repairshop.services.notifications import NotificationDispatcher
from repairshop.services.repairs import (
    CustomerSnapshot,
    ItemSnapshot,
    add_note,
    complete_repair,
    create_repair,
    list_repairs,
    require_repair,
    serialize_repair,
    update_repair,
)

router = APIRouter(prefix="/repair/v1/workspaces/{workspace_id}/repairs", tags=["repairs"])


def _changes_from_update(payload: RepairUpdate) -> dict[str, Any]:
    data = payload.model_dump(exclude_unset=True)
    changes: dict[str, Any] = {}

    if "issue_description" in data:
        if data["issue_description"] is None:
            raise ValidationError.for_field("issue_description")
        changes["issue_description"] = data["issue_description"]

    if "assigned_to_user_id" in data:
        changes["assigned_to_user_id"] = data["assigned_to_user_id"]

    for key, value in (data.get("item") or {}).items():
        changes[f"item_{key}"] = value
    return changes


@router.get("")
def list_workspace_repairs(
    repair_status: Optional[RepairStatus] = Query(None, alias="status"),
    context: WorkspaceContext = Depends(require_repair_viewer),
    db: Session = Depends(get_db),
):
    repairs = list_repairs(db, workspace_id=context.workspace_id, status=repair_status)
    return {"repairs": [serialize_repair(repair) for repair in repairs]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_workspace_repair(
    payload: RepairCreate,
    context: WorkspaceContext = Depends(require_repair_editor),
    db: Session = Depends(get_db),
    notifications: NotificationDispatcher = Depends(get_notifications),
):
    item = payload.item
    repair = create_repair(
        db,
        workspace_id=context.workspace_id,
        created_by_user_id=context.user_id,
        customer=CustomerSnapshot(
            name=payload.customer.name,
            telephone_number=payload.customer.telephone_number,
        ),
        item=ItemSnapshot(**item.model_dump()) if item is not None else None,
        issue_description=payload.issue_description,
        assigned_to_user_id=payload.assigned_to_user_id,
    )
    notifications.notify_repair_created(repair, payload.message)
    return {"repair": serialize_repair(repair)}


@router.get("/{repair_id}")
def get_workspace_repair(
    repair_id: int,
    context: WorkspaceContext = Depends(require_repair_viewer),
    db: Session = Depends(get_db),
):
    repair = require_repair(db, workspace_id=context.workspace_id, repair_id=repair_id)
    return {"repair": serialize_repair(repair)}


@router.patch("/{repair_id}")
def update_workspace_repair(
    repair_id: int,
    payload: RepairUpdate,
    context: WorkspaceContext = Depends(require_repair_editor),
    db: Session = Depends(get_db),
):
    repair, changed = update_repair(
        db,
        workspace_id=context.workspace_id,
        repair_id=repair_id,
        actor_user_id=context.user_id,
        changes=_changes_from_update(payload),
    )
    return {"repair": serialize_repair(repair), "updated": changed}


@router.post("/{repair_id}/complete")
def complete_workspace_repair(
    repair_id: int,
    payload: Optional[RepairComplete] = None,
    context: WorkspaceContext = Depends(require_repair_editor),
    db: Session = Depends(get_db),
    notifications: NotificationDispatcher = Depends(get_notifications),
):
    result = complete_repair(
        db,
        workspace_id=context.workspace_id,
        repair_id=repair_id,
        actor_user_id=context.user_id,
    )
    # A repeated completion must not message the customer again.
    if result.transitioned and payload is not None:
        notifications.notify_repair_completed(result.repair, payload.message)
    return {"repair": serialize_repair(result.repair)}


@router.post("/{repair_id}/notes", status_code=status.HTTP_201_CREATED)
def add_repair_note(
    repair_id: int,
    payload: NotePayload,
    context: WorkspaceContext = Depends(require_repair_editor),
    db: Session = Depends(get_db),
):
    entry = add_note(
        db,
        workspace_id=context.workspace_id,
        repair_id=repair_id,
        actor_user_id=context.user_id,
        note=payload.note,
    )
    return {"activity": serialize_activity(entry)}


@router.post("/{repair_id}/message")
def send_repair_message(
    repair_id: int,
    payload: MessagePayload,
    context: WorkspaceContext = Depends(require_repair_editor),
    db: Session = Depends(get_db),
    notifications: NotificationDispatcher = Depends(get_notifications),
):
    repair = require_repair(db, workspace_id=context.workspace_id, repair_id=repair_id)
    result = notifications.send_message(repair, payload.message)
    return {"ok": True, "status": result.status}


@router.get("/{repair_id}/activity")
def list_repair_activity(
    repair_id: int,
    context: WorkspaceContext = Depends(require_repair_viewer),
    db: Session = Depends(get_db),
):
    repair = require_repair(db, workspace_id=context.workspace_id, repair_id=repair_id)
    entries = list_activity(db, workspace_id=context.workspace_id, repair_id=repair.id)
    return {"activity": [serialize_activity(entry) for entry in entries]}
