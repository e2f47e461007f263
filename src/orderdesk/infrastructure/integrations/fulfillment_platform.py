"""Fulfillment platform adapter used when no storefront is connected.

It records the call and hands back no fulfillment id, so shipments stay
local-only.
"""

from __future__ import annotations

import logging

from orderdesk.application.ports import FulfillmentPlatform
from orderdesk.domain.model.shipment import ShipmentTracking

logger = logging.getLogger("orderdesk.shipments")


class LoggingFulfillmentPlatform(FulfillmentPlatform):

    def create_fulfillment(
        self,
        external_order_id: str,
        tracking: ShipmentTracking | None,
        notify_customer: bool,
    ) -> str | None:
        logger.info(
            "no fulfillment platform configured; skipping sync for external order %s "
            "(tracking=%s, notify=%s)",
            external_order_id,
            tracking.tracking_number if tracking else None,
            notify_customer,
        )
        return None
