"""Collaborators the use cases call but do not own.

The external fulfillment platform, the document generator, the email
dispatcher and the activity log are reached through these interfaces;
concrete adapters are wired in ``orderdesk.infrastructure.bootstrap``.
Apart from the activity log, none of them is allowed to affect the
outcome of the operation that calls it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from orderdesk.domain.model.order import Order
from orderdesk.domain.model.shipment import Shipment, ShipmentTracking

INVOICE = "invoice"
PACKING_SLIP = "packing-slip"


@dataclass(frozen=True)
class ShipmentEmailLine:
    sku: str
    quantity: int
    unit_price: str
    line_total: str


@dataclass(frozen=True)
class ShipmentEmail:
    """Everything a shipment notification needs, already formatted."""

    recipient: str
    recipient_role: str  # "customer" or "rep"
    order_number: str
    customer_name: str
    currency: str
    shipment_id: int
    ship_date: str
    lines: list[ShipmentEmailLine]
    shipping_cost: str
    shipped_total: str
    tracking: list[tuple[str, str, str | None]] = field(default_factory=list)
    attachments: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ActivityEntry:
    action: str
    order_id: int
    entity_id: int | None
    performed_by: str
    description: str
    details: dict[str, Any] = field(default_factory=dict)


class FulfillmentPlatform(ABC):

    @abstractmethod
    def create_fulfillment(
        self,
        external_order_id: str,
        tracking: ShipmentTracking | None,
        notify_customer: bool,
    ) -> str | None:
        """Register a fulfillment; returns the platform's id for it, if any."""


class DocumentGenerator(ABC):

    @abstractmethod
    def generate(self, order: Order, shipment: Shipment, kinds: list[str]) -> list[str]:
        """Produce the requested documents; returns attachment names."""


class EmailDispatcher(ABC):

    @abstractmethod
    def send_shipment_email(self, email: ShipmentEmail) -> None:
        """Deliver one shipment notification."""


class ActivityLogger(ABC):

    @abstractmethod
    def log(self, entry: ActivityEntry) -> None:
        """Record who did what to an order."""
