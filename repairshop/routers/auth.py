# repairshop/routers/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from repairshop.core.config import Settings
from repairshop.core.database import get_db
from repairshop.deps import AuthContext, get_auth_context, get_settings
from repairshop.schemas.auth import LoginPayload
from repairshop.services.identity import authenticate_login, serialize_user
from repairshop.services.tokens import create_access_token

router = APIRouter(prefix="/repair/v1/auth", tags=["auth"])


@router.post("/login")
def login(
    payload: LoginPayload,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Login with an email or telephone number."""
    user = authenticate_login(db, identifier=payload.id, password=payload.password)
    token = create_access_token(settings, user_id=user.id, role=user.role)
    return {"access_token": token, "token_type": "bearer", "user": serialize_user(user)}


@router.get("/me")
def me(auth: AuthContext = Depends(get_auth_context)):
    return {"user": serialize_user(auth.user)}
