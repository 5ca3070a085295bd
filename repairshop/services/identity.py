from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from repairshop.core.clock import utcnow
from repairshop.core.errors import AuthenticationError, AuthorizationError, ConflictError
from repairshop.models.enums import GlobalRole, UserStatus
from repairshop.models.user import User
from repairshop.services.passwords import DUMMY_PASSWORD_HASH, hash_password, verify_password

logger = logging.getLogger(__name__)


def normalize_identifier(value: str | None) -> str:
    return (value or "").strip().lower()


def _clean_optional(value: str | None) -> str | None:
    cleaned = (value or "").strip()
    return cleaned or None


def get_user_by_id(db: Session, user_id: int) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def find_user_by_identifier(db: Session, identifier: str | None) -> User | None:
    """Match an email or telephone number. Blank input never matches anything."""
    normalized = normalize_identifier(identifier)
    if not normalized:
        return None
    return (
        db.query(User)
        .filter(or_(User.email == normalized, User.telephone_number == normalized))
        .first()
    )


def superadmin_exists(db: Session) -> bool:
    return db.query(User.id).filter(User.role == GlobalRole.SUPERADMIN.value).first() is not None


def build_user(
    db: Session,
    *,
    email: str,
    password: str,
    first_name: str | None = None,
    last_name: str | None = None,
    telephone_number: str | None = None,
    role: GlobalRole = GlobalRole.USER,
) -> User:
    """Stage a new user on the session without committing.

    Raises ConflictError when the email or telephone number is taken.
    """
    email = normalize_identifier(email)
    telephone_number = _clean_optional(telephone_number)

    clauses = [User.email == email]
    if telephone_number:
        clauses.append(User.telephone_number == telephone_number)
    if db.query(User.id).filter(or_(*clauses)).first() is not None:
        raise ConflictError("user_already_exists")

    user = User(
        email=email,
        telephone_number=telephone_number,
        first_name=_clean_optional(first_name),
        last_name=_clean_optional(last_name),
        password_hash=hash_password(password),
        role=role.value,
        status=UserStatus.ACTIVE.value,
    )
    db.add(user)
    db.flush()
    return user


def create_user(db: Session, **kwargs) -> User:
    try:
        user = build_user(db, **kwargs)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("user_already_exists", reason="user_unique_violation") from exc
    db.refresh(user)
    logger.info("User created id=%s role=%s", user.id, user.role)
    return user


def bootstrap_superadmin(
    db: Session,
    *,
    email: str,
    password: str,
    first_name: str | None = None,
    last_name: str | None = None,
    telephone_number: str | None = None,
) -> User:
    if superadmin_exists(db):
        raise ConflictError("superadmin_already_exists")

    user = create_user(
        db,
        email=email,
        password=password,
        first_name=first_name,
        last_name=last_name,
        telephone_number=telephone_number,
        role=GlobalRole.SUPERADMIN,
    )
    logger.info("Superadmin bootstrapped id=%s", user.id)
    return user


def authenticate_login(
    db: Session,
    *,
    identifier: str,
    password: str,
    now: datetime | None = None,
) -> User:
    user = find_user_by_identifier(db, identifier)
    if user is None:
        verify_password(password, DUMMY_PASSWORD_HASH)
        raise AuthenticationError("invalid_credentials", reason="unknown_identifier")
    if not verify_password(password, user.password_hash):
        raise AuthenticationError("invalid_credentials", reason=f"wrong_password user_id={user.id}")

    # Only reported once the password has matched.
    if user.status != UserStatus.ACTIVE.value:
        raise AuthorizationError("user_inactive", reason=f"user_inactive user_id={user.id}")

    user.last_login_at = now or utcnow()
    db.commit()
    db.refresh(user)
    return user


def serialize_user(user: User) -> dict:
    return {
        "id": user.id,
        "role": user.role,
        "status": user.status,
        "email": user.email,
        "telephone_number": user.telephone_number,
        "first_name": user.first_name,
        "last_name": user.last_name,
    }
