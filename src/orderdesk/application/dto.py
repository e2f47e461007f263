"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.  Money values travel as
strings: inputs are parsed by the handlers, outputs are pre-formatted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

# --- Inputs -------------------------------------------------------------------


@dataclass(frozen=True)
class OrderLineSpec:
    """Input: one line of a new order."""

    sku: str
    quantity: int
    price: str
    planned_group: str | None = None


@dataclass(frozen=True)
class ShipmentLineSpec:
    """Input: how many units of one order item go into a shipment."""

    order_item_id: int
    quantity: int
    price_override: str | None = None


@dataclass(frozen=True)
class TrackingSpec:
    carrier: str
    tracking_number: str


@dataclass(frozen=True)
class CreateShipmentSpec:
    order_id: int
    lines: list[ShipmentLineSpec]
    shipping_cost: str = "0"
    ship_date: date | None = None
    tracking: TrackingSpec | None = None
    planned_shipment_id: int | None = None
    notes: str | None = None
    notify_customer: bool = False
    attach_invoice: bool = False
    attach_packing_slip: bool = False
    notify_rep: bool = False
    notify_platform: bool = False
    customer_email_override: str | None = None


# --- Outputs ------------------------------------------------------------------


@dataclass(frozen=True)
class OrderItemDTO:
    """Output: a line item with its fulfilment position."""

    id: int
    sku: str
    ordered_quantity: int
    shipped_quantity: int
    cancelled_quantity: int
    remaining_quantity: int
    status: str
    unit_price: str
    line_total: str
    notes: str
    planned_shipment_id: int | None
    cancelled_reason: str | None


@dataclass(frozen=True)
class PlannedShipmentDTO:
    id: int
    name: str
    status: str
    planned_ship_start: str
    planned_ship_end: str
    item_ids: list[int]


@dataclass(frozen=True)
class OrderDTO:
    id: int
    order_number: str
    customer_name: str
    status: str
    currency: str
    items: list[OrderItemDTO]
    order_amount: str
    planned_shipments: list[PlannedShipmentDTO]
    created_at: str
    ship_window: str | None = None

    @property
    def has_shipments(self) -> bool:
        return any(item.shipped_quantity > 0 for item in self.items)


@dataclass(frozen=True)
class TrackingDTO:
    id: int
    carrier: str
    tracking_number: str
    tracking_url: str | None
    added_at: str


@dataclass(frozen=True)
class ShipmentItemDTO:
    order_item_id: int
    sku: str
    ordered_quantity: int
    quantity_shipped: int
    unit_price: str
    price_override: str | None
    line_total: str


@dataclass(frozen=True)
class ShipmentDTO:
    id: int
    order_id: int
    order_number: str
    shipped_subtotal: str
    shipping_cost: str
    shipped_total: str
    ship_date: str
    notes: str | None
    created_by: str
    created_at: str
    external_fulfillment_id: str | None
    is_voided: bool
    voided_at: str | None
    voided_by: str | None
    void_reason: str | None
    void_notes: str | None
    items: list[ShipmentItemDTO] = field(default_factory=list)
    tracking: list[TrackingDTO] = field(default_factory=list)


@dataclass(frozen=True)
class ShipmentSummaryDTO:
    """Active-shipment roll-up used by order listings."""

    order_id: int
    shipment_count: int
    total_shipped: str
    tracking_count: int
    tracking_numbers: list[str]
    is_fully_shipped: bool
    variance: str
