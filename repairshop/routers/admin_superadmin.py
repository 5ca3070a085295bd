from __future__ import annotations

import hmac
from typing import Optional

from fastapi import APIRouter, Depends, Header, status
from sqlalchemy.orm import Session

from repairshop.core.config import Settings
from repairshop.core.database import get_db
from repairshop.core.errors import AuthenticationError, NotFoundError
from repairshop.deps import get_settings
from repairshop.schemas.auth import BootstrapPayload
from repairshop.services.identity import bootstrap_superadmin, serialize_user

router = APIRouter(prefix="/repair/admin/v1/superadmin", tags=["admin-superadmin"])


def require_bootstrap_token(
    x_bootstrap_token: Optional[str] = Header(None, alias="X-Bootstrap-Token"),
    settings: Settings = Depends(get_settings),
) -> None:
    # Without a configured token the endpoint does not exist.
    if not settings.bootstrap_token:
        raise NotFoundError("not_found", reason="bootstrap_token_not_configured")

    provided = (x_bootstrap_token or "").strip()
    if not provided:
        raise AuthenticationError("missing_bootstrap_token")
    if not hmac.compare_digest(provided.encode("utf-8"), settings.bootstrap_token.encode("utf-8")):
        raise AuthenticationError("invalid_bootstrap_token")


@router.post("/bootstrap", status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_bootstrap_token)])
def bootstrap(payload: BootstrapPayload, db: Session = Depends(get_db)):
    user = bootstrap_superadmin(
        db,
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        telephone_number=payload.telephone_number,
    )
    return {"user": serialize_user(user)}
