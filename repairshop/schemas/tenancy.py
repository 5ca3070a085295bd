from pydantic import BaseModel

from repairshop.models.enums import WorkspaceRole
from repairshop.schemas.common import Email, OptionalPassword, OptionalText, RequiredText


class OwnerPayload(BaseModel):
    email: Email
    # Only needed when the owner has no account yet.
    password: OptionalPassword = None
    first_name: OptionalText = None
    last_name: OptionalText = None
    telephone_number: OptionalText = None


class WorkspaceCreate(BaseModel):
    name: RequiredText
    owner: OwnerPayload


class MemberCreate(BaseModel):
    email: Email
    password: OptionalPassword = None
    first_name: OptionalText = None
    last_name: OptionalText = None
    telephone_number: OptionalText = None
    role: WorkspaceRole = WorkspaceRole.MEMBER
