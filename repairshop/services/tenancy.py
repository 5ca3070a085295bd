from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from repairshop.core.clock import utcnow
from repairshop.core.errors import ConflictError, DomainRuleError, NotFoundError, ValidationError
from repairshop.models.enums import MemberStatus, WorkspaceRole, WorkspaceStatus
from repairshop.models.user import User
from repairshop.models.workspace import Workspace
from repairshop.models.workspace_member import WorkspaceMember
from repairshop.services.identity import build_user, find_user_by_identifier

logger = logging.getLogger(__name__)


@dataclass
class UserSpec:
    """Identity fields used to resolve, or create, the target of a tenancy operation."""

    email: str
    password: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    telephone_number: str | None = None


@dataclass
class MemberResult:
    member: WorkspaceMember
    created: bool

    @property
    def reactivated(self) -> bool:
        return not self.created


def get_workspace(db: Session, workspace_id: int) -> Workspace | None:
    return db.query(Workspace).filter(Workspace.id == workspace_id).first()


def get_membership(db: Session, *, workspace_id: int, user_id: int) -> WorkspaceMember | None:
    return (
        db.query(WorkspaceMember)
        .filter(WorkspaceMember.workspace_id == workspace_id, WorkspaceMember.user_id == user_id)
        .first()
    )


def get_membership_by_id(db: Session, *, workspace_id: int, member_id: int) -> WorkspaceMember | None:
    return (
        db.query(WorkspaceMember)
        .filter(WorkspaceMember.id == member_id, WorkspaceMember.workspace_id == workspace_id)
        .first()
    )


def _resolve_or_stage_user(db: Session, spec: UserSpec, *, password_field: str) -> User:
    user = find_user_by_identifier(db, spec.email)
    if user:
        return user
    if not spec.password:
        raise ValidationError.for_field(password_field, "password_is_required_for_new_user")
    return build_user(
        db,
        email=spec.email,
        password=spec.password,
        first_name=spec.first_name,
        last_name=spec.last_name,
        telephone_number=spec.telephone_number,
    )


def create_workspace(
    db: Session,
    *,
    name: str,
    owner: UserSpec,
    created_by_user_id: int,
    now: datetime | None = None,
) -> Workspace:
    """Create a workspace together with its owner membership, in one transaction."""
    now = now or utcnow()
    try:
        owner_user = _resolve_or_stage_user(db, owner, password_field="owner.password")

        workspace = Workspace(
            name=name.strip(),
            created_by_user_id=created_by_user_id,
            owner_user_id=owner_user.id,
            status=WorkspaceStatus.ACTIVE.value,
        )
        db.add(workspace)
        db.flush()

        db.add(
            WorkspaceMember(
                workspace_id=workspace.id,
                user_id=owner_user.id,
                invited_by_user_id=created_by_user_id,
                role=WorkspaceRole.OWNER.value,
                status=MemberStatus.ACTIVE.value,
                joined_at=now,
            )
        )
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Workspace creation rolled back: %s", exc.orig)
        raise ConflictError("workspace_conflict", reason="workspace_unique_violation") from exc
    except Exception:
        db.rollback()
        raise

    db.refresh(workspace)
    logger.info(
        "Workspace created id=%s owner_user_id=%s created_by=%s",
        workspace.id,
        workspace.owner_user_id,
        created_by_user_id,
    )
    return workspace


def add_member(
    db: Session,
    *,
    workspace_id: int,
    user: UserSpec,
    role: WorkspaceRole,
    invited_by_user_id: int,
    now: datetime | None = None,
) -> MemberResult:
    now = now or utcnow()
    try:
        target = _resolve_or_stage_user(db, user, password_field="password")

        existing = get_membership(db, workspace_id=workspace_id, user_id=target.id)
        if existing and existing.status != MemberStatus.REMOVED.value:
            raise ConflictError("member_already_exists")

        if existing:
            existing.status = MemberStatus.ACTIVE.value
            existing.role = role.value
            existing.joined_at = existing.joined_at or now
            db.commit()
            db.refresh(existing)
            logger.info("Member reactivated id=%s workspace_id=%s role=%s", existing.id, workspace_id, existing.role)
            return MemberResult(member=existing, created=False)

        member = WorkspaceMember(
            workspace_id=workspace_id,
            user_id=target.id,
            invited_by_user_id=invited_by_user_id,
            role=role.value,
            status=MemberStatus.ACTIVE.value,
            joined_at=now,
        )
        db.add(member)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("member_already_exists", reason="member_unique_violation") from exc
    except Exception:
        db.rollback()
        raise

    db.refresh(member)
    logger.info("Member added id=%s workspace_id=%s role=%s", member.id, workspace_id, member.role)
    return MemberResult(member=member, created=True)


def remove_member(db: Session, *, workspace_id: int, member_id: int) -> WorkspaceMember:
    member = get_membership_by_id(db, workspace_id=workspace_id, member_id=member_id)
    if not member or member.status == MemberStatus.REMOVED.value:
        raise NotFoundError("member_not_found")

    if member.role == WorkspaceRole.OWNER.value:
        raise DomainRuleError("owner_cannot_be_removed")

    member.status = MemberStatus.REMOVED.value
    db.commit()
    db.refresh(member)
    logger.info("Member removed id=%s workspace_id=%s", member.id, workspace_id)
    return member


def list_members(db: Session, *, workspace_id: int) -> list[WorkspaceMember]:
    return (
        db.query(WorkspaceMember)
        .filter(
            WorkspaceMember.workspace_id == workspace_id,
            WorkspaceMember.status != MemberStatus.REMOVED.value,
        )
        .order_by(WorkspaceMember.created_at.desc(), WorkspaceMember.id.desc())
        .all()
    )


def list_workspaces_for_user(db: Session, *, user_id: int) -> list[tuple[Workspace, WorkspaceMember]]:
    return (
        db.query(Workspace, WorkspaceMember)
        .join(WorkspaceMember, WorkspaceMember.workspace_id == Workspace.id)
        .filter(
            WorkspaceMember.user_id == user_id,
            WorkspaceMember.status == MemberStatus.ACTIVE.value,
            Workspace.status == WorkspaceStatus.ACTIVE.value,
        )
        .order_by(Workspace.created_at.desc(), Workspace.id.desc())
        .all()
    )


def is_active_member(db: Session, *, workspace_id: int, user_id: int) -> bool:
    membership = get_membership(db, workspace_id=workspace_id, user_id=user_id)
    return membership is not None and membership.status == MemberStatus.ACTIVE.value


def serialize_member(member: WorkspaceMember) -> dict:
    user = member.user
    return {
        "id": member.id,
        "role": member.role,
        "status": member.status,
        "joined_at": member.joined_at,
        "user": (
            {
                "id": user.id,
                "email": user.email,
                "telephone_number": user.telephone_number,
                "first_name": user.first_name,
                "last_name": user.last_name,
                "role": user.role,
                "status": user.status,
            }
            if user is not None
            else None
        ),
        "created_at": member.created_at,
    }


def serialize_workspace(workspace: Workspace, *, role: str | None = None) -> dict:
    payload = {
        "id": workspace.id,
        "name": workspace.name,
        "status": workspace.status,
        "owner_user_id": workspace.owner_user_id,
        "created_by_user_id": workspace.created_by_user_id,
        "created_at": workspace.created_at,
    }
    if role is not None:
        payload["role"] = role
    return payload
