"""Shipment aggregate — one physical fulfilment event for an order.

A shipment is never deleted.  Voiding attaches a ``VoidRecord`` and from
then on the shipment is excluded from every shipped-quantity and
shipped-total aggregate; ``active_shipments()`` is the filter all
aggregate code goes through.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Iterable
from urllib.parse import quote

from orderdesk.domain.exceptions import ValidationError
from orderdesk.domain.model.order import OrderItem
from orderdesk.domain.model.value_objects import Money


class Carrier(Enum):
    UPS = "UPS"
    FEDEX = "FedEx"
    USPS = "USPS"
    DHL = "DHL"
    OTHER = "Other"


_TRACKING_URLS = {
    Carrier.UPS: "https://www.ups.com/track?tracknum={}",
    Carrier.FEDEX: "https://www.fedex.com/fedextrack/?trknbr={}",
    Carrier.USPS: "https://tools.usps.com/go/TrackConfirmAction?tLabels={}",
    Carrier.DHL: (
        "https://www.dhl.com/us-en/home/tracking/tracking-express.html"
        "?submit=1&tracking-id={}"
    ),
}

VOID_REASONS = (
    "Shipped to wrong address",
    "Items damaged before shipping",
    "Customer cancelled after ship",
    "Duplicate shipment",
    "Data entry error",
    "Other",
)


@dataclass
class ShipmentTracking:
    carrier: Carrier
    tracking_number: str
    id: int | None = None
    added_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if not self.tracking_number or not self.tracking_number.strip():
            raise ValidationError("Tracking number is required")
        self.tracking_number = self.tracking_number.strip()

    @property
    def tracking_url(self) -> str | None:
        template = _TRACKING_URLS.get(self.carrier)
        if template is None:
            return None
        return template.format(quote(self.tracking_number, safe=""))


@dataclass
class ShipmentItem:
    order_item_id: int
    quantity_shipped: int
    unit_price: Money  # effective price: override or the order item's price
    price_override: Money | None = None
    id: int | None = None

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity_shipped


@dataclass(frozen=True)
class VoidRecord:
    at: datetime
    by: str
    reason: str
    notes: str | None = None


@dataclass
class Shipment:
    """Aggregate root for shipments.

    ``shipped_subtotal`` is fixed when the shipment is created.
    ``shipped_total`` is always ``shipped_subtotal + shipping_cost``.
    """

    id: int | None
    order_id: int
    items: list[ShipmentItem]
    shipped_subtotal: Money
    shipping_cost: Money
    ship_date: date
    created_by: str
    notes: str | None = None
    planned_shipment_id: int | None = None
    tracking: list[ShipmentTracking] = field(default_factory=list)
    external_fulfillment_id: str | None = None
    void_record: VoidRecord | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime | None = None

    # --- Factory --------------------------------------------------------------

    @staticmethod
    def create(
        order_id: int,
        lines: list[tuple[OrderItem, int, Money | None]],
        shipping_cost: Money,
        created_by: str,
        ship_date: date | None = None,
        notes: str | None = None,
        planned_shipment_id: int | None = None,
        tracking: ShipmentTracking | None = None,
    ) -> Shipment:
        """Build a new shipment from ``(order item, quantity, price override)``."""
        if not lines:
            raise ValidationError("Shipment must contain at least one item")

        items: list[ShipmentItem] = []
        subtotal = Money.zero(shipping_cost.currency)
        for order_item, quantity, override in lines:
            if not isinstance(quantity, int) or quantity <= 0:
                raise ValidationError(f"Invalid quantity for item {order_item.sku}")
            price = override if override is not None else order_item.unit_price
            item = ShipmentItem(
                order_item_id=order_item.id,
                quantity_shipped=quantity,
                unit_price=price,
                price_override=override,
            )
            subtotal = subtotal + item.line_total
            items.append(item)

        return Shipment(
            id=None,
            order_id=order_id,
            items=items,
            shipped_subtotal=subtotal,
            shipping_cost=shipping_cost,
            ship_date=ship_date or date.today(),
            created_by=created_by,
            notes=notes,
            planned_shipment_id=planned_shipment_id,
            tracking=[tracking] if tracking else [],
        )

    # --- Computed properties --------------------------------------------------

    @property
    def shipped_total(self) -> Money:
        return self.shipped_subtotal + self.shipping_cost

    @property
    def is_voided(self) -> bool:
        return self.void_record is not None

    def quantity_for(self, order_item_id: int) -> int:
        return sum(
            i.quantity_shipped for i in self.items if i.order_item_id == order_item_id
        )

    # --- Mutations ------------------------------------------------------------

    def update(
        self,
        shipping_cost: Money | None = None,
        notes: str | None = None,
        ship_date: date | None = None,
    ) -> None:
        """Edit the header; the subtotal stays as computed at creation."""
        self._ensure_active()
        if shipping_cost is not None:
            self.shipping_cost = shipping_cost
        if notes is not None:
            self.notes = notes
        if ship_date is not None:
            self.ship_date = ship_date
        self.updated_at = datetime.now(timezone.utc)

    def add_tracking(self, tracking: ShipmentTracking) -> ShipmentTracking:
        self._ensure_active()
        self.tracking.append(tracking)
        return tracking

    def void(
        self,
        voided_by: str,
        reason: str,
        notes: str | None = None,
        at: datetime | None = None,
    ) -> None:
        if self.is_voided:
            raise ValidationError(f"Shipment {self.id} is already voided")
        if reason not in VOID_REASONS:
            raise ValidationError(f"Unknown void reason '{reason}'")
        self.void_record = VoidRecord(
            at=at or datetime.now(timezone.utc),
            by=voided_by,
            reason=reason,
            notes=notes,
        )

    def _ensure_active(self) -> None:
        if self.is_voided:
            raise ValidationError(f"Shipment {self.id} has been voided")


def active_shipments(shipments: Iterable[Shipment]) -> list[Shipment]:
    """The only sanctioned way to pick the shipments aggregates may count."""
    return [s for s in shipments if not s.is_voided]
