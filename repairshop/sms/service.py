from __future__ import annotations

import logging

from repairshop.core.config import Settings
from repairshop.sms.base import DisabledSmsSender, SmsSender
from repairshop.sms.beem_provider import BeemSmsSender

logger = logging.getLogger(__name__)


def build_sms_sender(settings: Settings) -> SmsSender:
    if not settings.sms_enabled:
        logger.info("SMS disabled; outbound messages will be skipped")
        return DisabledSmsSender()
    if not settings.beem_verify_tls:
        logger.warning("Beem SMS TLS verification disabled via BEEM_VERIFY_TLS")
    return BeemSmsSender.from_settings(settings)
