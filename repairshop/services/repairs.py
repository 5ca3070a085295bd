from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping

from sqlalchemy.orm import Session

from repairshop.core.clock import utcnow
from repairshop.core.errors import DomainRuleError, NotFoundError
from repairshop.models.enums import ActivityType, RepairStatus
from repairshop.models.repair import Repair
from repairshop.models.repair_activity import RepairActivity
from repairshop.services.activity import append_activity
from repairshop.services.tenancy import is_active_member

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    "issue_description",
    "assigned_to_user_id",
    "item_type",
    "item_brand",
    "item_model",
    "item_serial_number",
)


@dataclass
class CustomerSnapshot:
    name: str
    telephone_number: str


@dataclass
class ItemSnapshot:
    type: str | None = None
    brand: str | None = None
    model: str | None = None
    serial_number: str | None = None


@dataclass
class CompletionResult:
    repair: Repair
    transitioned: bool


def _ensure_assignee(db: Session, *, workspace_id: int, user_id: int | None) -> None:
    if user_id is None:
        return
    if not is_active_member(db, workspace_id=workspace_id, user_id=user_id):
        raise DomainRuleError("assigned_to_user_id_is_invalid")


def get_repair(db: Session, *, workspace_id: int, repair_id: int) -> Repair | None:
    return (
        db.query(Repair)
        .filter(Repair.id == repair_id, Repair.workspace_id == workspace_id)
        .first()
    )


def require_repair(db: Session, *, workspace_id: int, repair_id: int) -> Repair:
    repair = get_repair(db, workspace_id=workspace_id, repair_id=repair_id)
    if repair is None:
        raise NotFoundError("repair_not_found", reason=f"repair_not_found repair_id={repair_id}")
    return repair


def list_repairs(db: Session, *, workspace_id: int, status: RepairStatus | None = None) -> list[Repair]:
    query = db.query(Repair).filter(Repair.workspace_id == workspace_id)
    if status is not None:
        query = query.filter(Repair.status == status.value)
    return query.order_by(Repair.created_at.desc(), Repair.id.desc()).all()


def create_repair(
    db: Session,
    *,
    workspace_id: int,
    created_by_user_id: int,
    customer: CustomerSnapshot,
    issue_description: str,
    item: ItemSnapshot | None = None,
    assigned_to_user_id: int | None = None,
    now: datetime | None = None,
) -> Repair:
    _ensure_assignee(db, workspace_id=workspace_id, user_id=assigned_to_user_id)
    item = item or ItemSnapshot()
    now = now or utcnow()

    repair = Repair(
        workspace_id=workspace_id,
        created_by_user_id=created_by_user_id,
        assigned_to_user_id=assigned_to_user_id,
        status=RepairStatus.IN_PROGRESS.value,
        customer_name=customer.name,
        customer_telephone_number=customer.telephone_number,
        item_type=item.type,
        item_brand=item.brand,
        item_model=item.model,
        item_serial_number=item.serial_number,
        issue_description=issue_description,
        received_at=now,
        completed_at=None,
    )
    try:
        db.add(repair)
        db.flush()
        append_activity(
            db,
            repair=repair,
            type=ActivityType.CREATED,
            actor_user_id=created_by_user_id,
            to_status=repair.status,
        )
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Repair creation rolled back workspace_id=%s", workspace_id)
        raise

    db.refresh(repair)
    logger.info("Repair created id=%s workspace_id=%s", repair.id, workspace_id)
    return repair


def complete_repair(
    db: Session,
    *,
    workspace_id: int,
    repair_id: int,
    actor_user_id: int | None,
    now: datetime | None = None,
) -> CompletionResult:
    """Move a repair from in_progress to completed.

    The UPDATE only matches rows still in progress, so concurrent callers
    converge on a single transition and a single ledger entry. Completing an
    already completed repair returns it unchanged.
    """
    repair = require_repair(db, workspace_id=workspace_id, repair_id=repair_id)
    now = now or utcnow()

    try:
        updated = (
            db.query(Repair)
            .filter(
                Repair.id == repair_id,
                Repair.workspace_id == workspace_id,
                Repair.status == RepairStatus.IN_PROGRESS.value,
            )
            .update(
                {
                    Repair.status: RepairStatus.COMPLETED.value,
                    Repair.completed_at: now,
                    Repair.updated_at: now,
                },
                synchronize_session=False,
            )
        )
        if not updated:
            db.rollback()
            db.refresh(repair)
            logger.info("Repair already completed id=%s workspace_id=%s", repair_id, workspace_id)
            return CompletionResult(repair=repair, transitioned=False)

        append_activity(
            db,
            repair=repair,
            type=ActivityType.STATUS_CHANGED,
            actor_user_id=actor_user_id,
            from_status=RepairStatus.IN_PROGRESS.value,
            to_status=RepairStatus.COMPLETED.value,
        )
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Repair completion rolled back id=%s workspace_id=%s", repair_id, workspace_id)
        raise

    db.refresh(repair)
    logger.info("Repair completed id=%s workspace_id=%s", repair_id, workspace_id)
    return CompletionResult(repair=repair, transitioned=True)


def update_repair(
    db: Session,
    *,
    workspace_id: int,
    repair_id: int,
    actor_user_id: int | None,
    changes: Mapping[str, Any],
) -> tuple[Repair, bool]:
    repair = require_repair(db, workspace_id=workspace_id, repair_id=repair_id)

    diff: dict[str, dict[str, Any]] = {}
    for field, value in changes.items():
        if field not in UPDATABLE_FIELDS:
            raise DomainRuleError(f"{field}_is_not_updatable")
        current = getattr(repair, field)
        if current != value:
            diff[field] = {"from": current, "to": value}

    if not diff:
        return repair, False

    if "assigned_to_user_id" in diff:
        _ensure_assignee(db, workspace_id=workspace_id, user_id=diff["assigned_to_user_id"]["to"])

    try:
        for field, change in diff.items():
            setattr(repair, field, change["to"])
        append_activity(
            db,
            repair=repair,
            type=ActivityType.UPDATED,
            actor_user_id=actor_user_id,
            meta={"changes": diff},
        )
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Repair update rolled back id=%s workspace_id=%s", repair_id, workspace_id)
        raise

    db.refresh(repair)
    logger.info("Repair updated id=%s fields=%s", repair_id, ",".join(sorted(diff)))
    return repair, True


def add_note(
    db: Session,
    *,
    workspace_id: int,
    repair_id: int,
    actor_user_id: int | None,
    note: str,
) -> RepairActivity:
    repair = require_repair(db, workspace_id=workspace_id, repair_id=repair_id)
    try:
        entry = append_activity(
            db,
            repair=repair,
            type=ActivityType.NOTE_ADDED,
            actor_user_id=actor_user_id,
            note=note,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(entry)
    return entry


def serialize_repair(repair: Repair) -> dict:
    return {
        "id": repair.id,
        "workspace_id": repair.workspace_id,
        "status": repair.status,
        "customer": {
            "name": repair.customer_name,
            "telephone_number": repair.customer_telephone_number,
        },
        "item": {
            "type": repair.item_type,
            "brand": repair.item_brand,
            "model": repair.item_model,
            "serial_number": repair.item_serial_number,
        },
        "issue_description": repair.issue_description,
        "created_by_user_id": repair.created_by_user_id,
        "assigned_to_user_id": repair.assigned_to_user_id,
        "received_at": repair.received_at,
        "completed_at": repair.completed_at,
        "created_at": repair.created_at,
        "updated_at": repair.updated_at,
    }
