"""Domain service: Status Reconciler.

Derives line-item, order and planned-shipment statuses from the ledger
(ordered / cancelled quantities on the items, shipped quantities on the
non-voided shipments).  Nothing here reads or writes storage: callers
load the ledger inside their transaction, call these functions and
persist whatever changed.  Every function is idempotent, so running it
after any mutation is always safe.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from orderdesk.domain.model.order import (
    LOCKED_STATUSES,
    LineItemStatus,
    OrderItem,
    OrderStatus,
)
from orderdesk.domain.model.planned_shipment import PlannedShipmentStatus
from orderdesk.domain.model.shipment import Shipment, active_shipments


def shipped_quantities(shipments: Iterable[Shipment]) -> dict[int, int]:
    """Map order item id -> quantity shipped, counting active shipments only."""
    shipped: dict[int, int] = defaultdict(int)
    for shipment in active_shipments(shipments):
        for line in shipment.items:
            shipped[line.order_item_id] += line.quantity_shipped
    return dict(shipped)


def item_status(ordered: int, shipped: int, cancelled: int) -> LineItemStatus:
    if ordered - shipped - cancelled > 0:
        return LineItemStatus.OPEN
    if cancelled > 0:
        return LineItemStatus.CANCELLED
    return LineItemStatus.SHIPPED


def is_fully_shipped(items: Iterable[OrderItem], shipped: dict[int, int]) -> bool:
    """True when every item has shipped at least its effective quantity."""
    return all(
        shipped.get(item.id, 0) >= item.effective_quantity
        for item in items
    )


def planned_shipment_status(
    items: list[OrderItem],
    shipped: dict[int, int],
) -> PlannedShipmentStatus | None:
    """Status of a planned shipment from its member items.

    Returns None for a grouping without members; the caller leaves the
    stored status alone in that case.
    """
    if not items:
        return None

    total_ordered = sum(i.ordered_quantity for i in items)
    total_shipped = sum(shipped.get(i.id, 0) for i in items)
    total_cancelled = sum(i.cancelled_quantity for i in items)
    total_remaining = total_ordered - total_shipped - total_cancelled

    if total_cancelled == total_ordered:
        return PlannedShipmentStatus.CANCELLED
    if total_remaining <= 0:
        return PlannedShipmentStatus.FULFILLED
    if total_shipped > 0:
        return PlannedShipmentStatus.PARTIALLY_FULFILLED
    return PlannedShipmentStatus.PLANNED


def reconcile_order_status(
    current: OrderStatus,
    items: list[OrderItem],
    shipped: dict[int, int],
    has_shipments: bool,
    reverting: bool = False,
) -> OrderStatus:
    """The order status implied by the ledger.

    Invoiced and Cancelled orders are never touched.  With no active
    shipment left the status only falls back to Pending on the
    ``reverting`` path (a void); otherwise it is left as it was.
    """
    if current in LOCKED_STATUSES:
        return current
    if has_shipments:
        if is_fully_shipped(items, shipped):
            return OrderStatus.SHIPPED
        return OrderStatus.PARTIALLY_SHIPPED
    if reverting:
        return OrderStatus.PENDING
    return current
