from __future__ import annotations

from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from repairshop.models.enums import ActivityType
from repairshop.models.repair import Repair
from repairshop.models.repair_activity import RepairActivity


def append_activity(
    db: Session,
    *,
    repair: Repair,
    type: ActivityType,
    actor_user_id: Optional[int] = None,
    from_status: Optional[str] = None,
    to_status: Optional[str] = None,
    note: Optional[str] = None,
    meta: Optional[Mapping[str, Any]] = None,
) -> RepairActivity:
    """Stage one ledger entry. The caller commits it with the change it records."""
    entry = RepairActivity(
        repair_id=repair.id,
        workspace_id=repair.workspace_id,
        actor_user_id=actor_user_id,
        type=type.value,
        from_status=from_status,
        to_status=to_status,
        note=note,
        meta=dict(meta) if meta else None,
    )
    db.add(entry)
    return entry


def list_activity(db: Session, *, workspace_id: int, repair_id: int) -> list[RepairActivity]:
    return (
        db.query(RepairActivity)
        .filter(
            RepairActivity.workspace_id == workspace_id,
            RepairActivity.repair_id == repair_id,
        )
        .order_by(RepairActivity.created_at.desc(), RepairActivity.id.desc())
        .all()
    )


def serialize_activity(entry: RepairActivity) -> dict:
    return {
        "id": entry.id,
        "type": entry.type,
        "actor_user_id": entry.actor_user_id,
        "from_status": entry.from_status,
        "to_status": entry.to_status,
        "note": entry.note,
        "metadata": entry.meta,
        "created_at": entry.created_at,
    }
