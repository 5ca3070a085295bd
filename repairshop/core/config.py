from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: str = "") -> bool:
    return os.getenv(name, default).strip().lower() in _TRUE_VALUES


def _env_list(name: str) -> list[str]:
    raw = os.getenv(name, "")
    return [value.strip() for value in raw.split(",") if value.strip() and value.strip() != "*"]


@dataclass(frozen=True)
class Settings:
    env: str = "dev"
    database_url: str = "sqlite:///./repairshop.db"
    log_level: str = "INFO"
    cors_allowed_origins: list[str] = field(default_factory=list)

    # Auth (JWT)
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7
    bootstrap_token: str = ""

    # SMS (Beem)
    sms_enabled: bool = False
    beem_sms_api: str = ""
    beem_auth_token: str = ""
    beem_source_address: str = ""
    beem_verify_tls: bool = True
    sms_timeout_seconds: float = 20.0
    notification_workers: int = 4

    @property
    def env_normalized(self) -> str:
        return self.env.strip().lower()

    @property
    def is_test(self) -> bool:
        return self.env_normalized == "test"

    @property
    def is_prod(self) -> bool:
        return self.env_normalized in {"prod", "production"}


def load_settings() -> Settings:
    """Build settings from the process environment (and `.env`, when present)."""
    load_dotenv()

    return Settings(
        env=os.getenv("ENV", "dev"),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./repairshop.db"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        cors_allowed_origins=_env_list("CORS_ALLOWED_ORIGINS"),
        jwt_secret=os.getenv("JWT_SECRET", ""),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        jwt_expire_minutes=int(os.getenv("JWT_EXPIRE_MINUTES", str(60 * 24 * 7))),
        bootstrap_token=os.getenv("BOOTSTRAP_TOKEN", "").strip(),
        sms_enabled=_env_flag("SMS_ENABLED", os.getenv("BEEM_ENABLED", "")),
        beem_sms_api=os.getenv("BEEM_SMS_API", "").strip(),
        beem_auth_token=os.getenv("BEEM_AUTH_TOKEN", "").strip(),
        beem_source_address=os.getenv("BEEM_SOURCE_ADDRESS", "").strip(),
        beem_verify_tls=_env_flag("BEEM_VERIFY_TLS", "1"),
        sms_timeout_seconds=float(os.getenv("SMS_TIMEOUT_SECONDS", "20")),
        notification_workers=int(os.getenv("NOTIFICATION_WORKERS", "4")),
    )
