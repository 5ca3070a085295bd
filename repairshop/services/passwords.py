from __future__ import annotations

import bcrypt

# bcrypt only looks at the first 72 bytes; newer releases raise instead of truncating.
_BCRYPT_MAX_BYTES = 72


def _normalize_password_for_bcrypt(password: str) -> bytes:
    return (password or "").encode("utf-8")[:_BCRYPT_MAX_BYTES]


# Compared against when no account matches, so a miss costs as much as a wrong password.
DUMMY_PASSWORD_HASH = bcrypt.hashpw(b"repairshop-dummy-password", bcrypt.gensalt()).decode("utf-8")


def hash_password(password: str) -> str:
    hashed = bcrypt.hashpw(_normalize_password_for_bcrypt(password), bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(
            _normalize_password_for_bcrypt(plain_password),
            password_hash.encode("utf-8"),
        )
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False
