from __future__ import annotations

import json
import logging

import httpx

from repairshop.core.config import Settings
from repairshop.sms.base import SMS_STATUS_FAILED, SMS_STATUS_SENT, SmsSendResult, mask_phone

logger = logging.getLogger(__name__)


class BeemSmsSender:
    """Beem Africa SMS gateway (`POST {BEEM_SMS_API}` with Basic auth)."""

    def __init__(
        self,
        *,
        api_url: str,
        auth_token: str,
        source_address: str,
        timeout: float = 20.0,
        verify_tls: bool = True,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_url = api_url
        self.auth_token = auth_token
        self.source_address = source_address
        self.timeout = timeout
        self.verify_tls = verify_tls
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "BeemSmsSender":
        return cls(
            api_url=settings.beem_sms_api,
            auth_token=settings.beem_auth_token,
            source_address=settings.beem_source_address,
            timeout=settings.sms_timeout_seconds,
            verify_tls=settings.beem_verify_tls,
        )

    def _missing_config(self) -> str | None:
        if not self.api_url:
            return "BEEM_SMS_API is required"
        if not self.auth_token:
            return "BEEM_AUTH_TOKEN is required"
        if not self.source_address:
            return "BEEM_SOURCE_ADDRESS is required"
        return None

    def build_payload(self, message: str, recipient: str) -> dict:
        return {
            "encoding": 0,
            "message": message,
            "schedule_time": "",
            "recipients": [{"recipient_id": recipient}],
            "source_addr": self.source_address,
        }

    def send(self, message: str, recipient: str) -> SmsSendResult:
        missing = self._missing_config()
        if missing:
            logger.error("Beem SMS not configured: %s", missing)
            return SmsSendResult(status=SMS_STATUS_FAILED, error=missing)

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Basic {self.auth_token}",
        }
        try:
            with httpx.Client(
                timeout=self.timeout,
                verify=self.verify_tls,
                transport=self._transport,
            ) as client:
                response = client.post(self.api_url, headers=headers, json=self.build_payload(message, recipient))
        except httpx.HTTPError as exc:
            logger.warning("Beem SMS request failed to=%s error=%s", mask_phone(recipient), exc)
            return SmsSendResult(status=SMS_STATUS_FAILED, error=str(exc))

        try:
            data = response.json()
        except json.JSONDecodeError:
            data = {"raw": response.text}

        if not 200 <= response.status_code < 300:
            logger.warning(
                "Beem SMS rejected to=%s status_code=%s",
                mask_phone(recipient),
                response.status_code,
            )
            return SmsSendResult(
                status=SMS_STATUS_FAILED,
                error=f"Beem SMS error {response.status_code}",
                response_payload=data if isinstance(data, dict) else {"raw": data},
            )

        logger.info("Beem SMS sent to=%s", mask_phone(recipient))
        return SmsSendResult(
            status=SMS_STATUS_SENT,
            response_payload=data if isinstance(data, dict) else {"raw": data},
        )
