from pydantic import BaseModel, Field

from repairshop.schemas.common import Email, OptionalText, Password, RequiredText


class LoginPayload(BaseModel):
    id: RequiredText = Field(..., description="Email or telephone number")
    password: Password


class BootstrapPayload(BaseModel):
    email: Email
    password: Password
    first_name: OptionalText = None
    last_name: OptionalText = None
    telephone_number: OptionalText = None
