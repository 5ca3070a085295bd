from __future__ import annotations

import logging
from concurrent.futures import Executor, Future
from typing import Optional

from repairshop.core.errors import DomainRuleError, UpstreamNotificationError
from repairshop.models.repair import Repair
from repairshop.sms.base import SmsSender, SmsSendResult, mask_phone

logger = logging.getLogger(__name__)

EVENT_REPAIR_CREATED = "repair.created"
EVENT_REPAIR_COMPLETED = "repair.completed"


class NotificationDispatcher:
    """Customer SMS for repair events.

    Lifecycle triggers are detached: they are submitted to the executor and
    their outcome is only ever logged. `send_message` is the one synchronous
    path and reports failure to its caller.
    """

    def __init__(self, sender: SmsSender, executor: Executor) -> None:
        self.sender = sender
        self.executor = executor

    def notify_repair_created(self, repair: Repair, message: Optional[str]) -> Future | None:
        return self._dispatch(EVENT_REPAIR_CREATED, repair, message)

    def notify_repair_completed(self, repair: Repair, message: Optional[str]) -> Future | None:
        return self._dispatch(EVENT_REPAIR_COMPLETED, repair, message)

    def send_message(self, repair: Repair, message: str) -> SmsSendResult:
        recipient = (repair.customer_telephone_number or "").strip()
        if not recipient:
            raise DomainRuleError("customer_telephone_number_missing")

        try:
            result = self.sender.send(message, recipient)
        except Exception as exc:
            logger.exception("SMS send failed repair_id=%s to=%s", repair.id, mask_phone(recipient))
            raise UpstreamNotificationError(reason=f"sms_send_failed repair_id={repair.id}") from exc

        if result.failed:
            logger.error(
                "SMS send failed repair_id=%s to=%s error=%s",
                repair.id,
                mask_phone(recipient),
                result.error,
            )
            raise UpstreamNotificationError(reason=f"sms_send_failed repair_id={repair.id}")
        return result

    def _dispatch(self, event: str, repair: Repair, message: Optional[str]) -> Future | None:
        text = (message or "").strip()
        recipient = (repair.customer_telephone_number or "").strip()
        if not text or not recipient:
            return None

        repair_id = repair.id
        try:
            future = self.executor.submit(self._deliver, event, repair_id, text, recipient)
        except RuntimeError:
            # Executor already shut down.
            logger.exception("SMS dispatch rejected event=%s repair_id=%s", event, repair_id)
            return None
        logger.info("SMS dispatched event=%s repair_id=%s", event, repair_id)
        return future

    def _deliver(self, event: str, repair_id: int, text: str, recipient: str) -> SmsSendResult | None:
        try:
            result = self.sender.send(text, recipient)
        except Exception:
            logger.exception("SMS delivery crashed event=%s repair_id=%s", event, repair_id)
            return None

        if result.failed:
            logger.error(
                "SMS delivery failed event=%s repair_id=%s to=%s error=%s",
                event,
                repair_id,
                mask_phone(recipient),
                result.error,
            )
        else:
            logger.info(
                "SMS delivery %s event=%s repair_id=%s to=%s",
                result.status,
                event,
                repair_id,
                mask_phone(recipient),
            )
        return result
