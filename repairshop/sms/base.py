from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

SMS_STATUS_SENT = "sent"
SMS_STATUS_SKIPPED = "skipped"
SMS_STATUS_FAILED = "failed"


@dataclass
class SmsSendResult:
    status: str
    error: str | None = None
    response_payload: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return self.status == SMS_STATUS_SENT

    @property
    def failed(self) -> bool:
        return self.status == SMS_STATUS_FAILED


class SmsSender(Protocol):
    def send(self, message: str, recipient: str) -> SmsSendResult:
        ...


class DisabledSmsSender:
    """Used when SMS is switched off by configuration; nothing leaves the process."""

    def send(self, message: str, recipient: str) -> SmsSendResult:
        return SmsSendResult(status=SMS_STATUS_SKIPPED, error="sms_disabled")


def mask_phone(value: str | None) -> str:
    text = str(value or "")
    if len(text) <= 4:
        return "****"
    return f"****{text[-4:]}"
