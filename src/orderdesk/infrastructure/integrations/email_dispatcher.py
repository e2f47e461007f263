"""Email dispatcher that writes the notification to the log instead of SMTP."""

from __future__ import annotations

import logging

from orderdesk.application.ports import EmailDispatcher, ShipmentEmail

logger = logging.getLogger("orderdesk.email")


class LoggingEmailDispatcher(EmailDispatcher):

    def send_shipment_email(self, email: ShipmentEmail) -> None:
        logger.info(
            "shipment email to %s (%s): order %s shipment %s, %d lines, total %s, "
            "attachments=%s",
            email.recipient,
            email.recipient_role,
            email.order_number,
            email.shipment_id,
            len(email.lines),
            email.shipped_total,
            ", ".join(email.attachments) or "none",
        )
