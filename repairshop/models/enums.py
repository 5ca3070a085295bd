from __future__ import annotations

from enum import Enum


class GlobalRole(str, Enum):
    USER = "user"
    SUPERADMIN = "superadmin"


class UserStatus(str, Enum):
    ACTIVE = "active"
    DISABLED = "disabled"


class WorkspaceStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class WorkspaceRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


class MemberStatus(str, Enum):
    ACTIVE = "active"
    INVITED = "invited"
    REMOVED = "removed"


class RepairStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ActivityType(str, Enum):
    CREATED = "created"
    STATUS_CHANGED = "status_changed"
    NOTE_ADDED = "note_added"
    UPDATED = "updated"
