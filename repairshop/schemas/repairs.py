from typing import Optional

from pydantic import BaseModel

from repairshop.schemas.common import OptionalText, RequiredText


class CustomerPayload(BaseModel):
    name: RequiredText
    telephone_number: RequiredText


class ItemPayload(BaseModel):
    type: OptionalText = None
    brand: OptionalText = None
    model: OptionalText = None
    serial_number: OptionalText = None


class RepairCreate(BaseModel):
    customer: CustomerPayload
    item: Optional[ItemPayload] = None
    issue_description: RequiredText
    assigned_to_user_id: Optional[int] = None
    message: OptionalText = None


class RepairUpdate(BaseModel):
    """Partial update; only the fields present in the body are applied."""

    item: Optional[ItemPayload] = None
    issue_description: Optional[RequiredText] = None
    assigned_to_user_id: Optional[int] = None


class RepairComplete(BaseModel):
    message: OptionalText = None


class NotePayload(BaseModel):
    note: RequiredText


class MessagePayload(BaseModel):
    message: RequiredText
