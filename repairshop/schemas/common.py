from typing import Annotated, Any, Optional

from pydantic import BeforeValidator, EmailStr, Field, StringConstraints


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _normalize_email(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


# Blank strings fail min_length and are reported as "<field>_is_required".
RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
OptionalText = Annotated[Optional[str], BeforeValidator(_blank_to_none)]
Email = Annotated[EmailStr, BeforeValidator(_normalize_email)]
Password = Annotated[str, Field(min_length=1)]
OptionalPassword = Annotated[Optional[str], BeforeValidator(_blank_to_none)]
