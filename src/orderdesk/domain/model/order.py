"""Order aggregate — the customer order and its line items.

The Order owns its OrderItems.  Shipped quantities are *not* stored on
the items: they are derived from the shipment ledger by the status
reconciler, so the aggregate methods that need them take the shipped
quantity as an argument.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum

from orderdesk.domain.exceptions import OrderLockedError, ValidationError
from orderdesk.domain.model.value_objects import Money, require_positive


class OrderStatus(Enum):
    DRAFT = "Draft"
    PENDING = "Pending"
    PROCESSING = "Processing"
    PARTIALLY_SHIPPED = "Partially Shipped"
    SHIPPED = "Shipped"
    INVOICED = "Invoiced"
    CANCELLED = "Cancelled"


# No item, shipment or cancellation mutation is allowed in these states.
LOCKED_STATUSES = frozenset({OrderStatus.INVOICED, OrderStatus.CANCELLED})


class LineItemStatus(Enum):
    OPEN = "Open"
    SHIPPED = "Shipped"
    CANCELLED = "Cancelled"


CANCEL_REASONS = (
    "Out of stock",
    "Discontinued",
    "Customer request",
    "Damaged/defective",
    "Price error",
    "Other",
)


@dataclass
class OrderItem:
    """One line of a customer order.

    ``ordered_quantity`` and ``unit_price`` may be adjusted by an admin
    while the order is open; ``cancelled_quantity`` only ever grows.
    """

    id: int | None
    sku: str
    ordered_quantity: int
    unit_price: Money
    order_id: int | None = None
    cancelled_quantity: int = 0
    notes: str = ""
    variant_id: int | None = None  # None for manual adjustment lines
    planned_shipment_id: int | None = None
    cancelled_reason: str | None = None
    cancelled_at: datetime | None = None
    cancelled_by: str | None = None

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.ordered_quantity

    @property
    def effective_quantity(self) -> int:
        """Ordered minus cancelled: what is still expected to ship."""
        return self.ordered_quantity - self.cancelled_quantity

    def remaining_quantity(self, shipped: int) -> int:
        return self.ordered_quantity - shipped - self.cancelled_quantity

    def max_cancellable(self, shipped: int) -> int:
        return max(0, self.remaining_quantity(shipped))

    def cancel(
        self,
        quantity: int,
        shipped: int,
        reason: str,
        cancelled_by: str,
        at: datetime | None = None,
    ) -> None:
        """Cancel *quantity* units that have not shipped yet."""
        require_positive(quantity, "Cancel quantity")
        if reason not in CANCEL_REASONS:
            raise ValidationError(f"Unknown cancel reason '{reason}'")
        limit = self.max_cancellable(shipped)
        if quantity > limit:
            raise ValidationError(
                f"Cannot cancel {quantity} of {self.sku} "
                f"- only {limit} can be cancelled"
            )
        self.cancelled_quantity += quantity
        self.cancelled_reason = reason
        self.cancelled_by = cancelled_by
        self.cancelled_at = at or datetime.now(timezone.utc)


@dataclass
class Order:
    """Aggregate root for customer orders.

    ``order_amount`` is a denormalised total kept in step with the items
    by ``recalculate_amount()``; every item mutation calls it.
    """

    id: int | None
    order_number: str
    customer_name: str
    items: list[OrderItem]
    customer_email: str = ""
    rep_email: str | None = None
    currency: str = "USD"
    status: OrderStatus = OrderStatus.PENDING
    order_amount: Money | None = None
    external_order_id: str | None = None
    ship_start: date | None = None
    ship_end: date | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if self.order_amount is None:
            self.recalculate_amount()

    # --- Status gate ----------------------------------------------------------

    @property
    def is_locked(self) -> bool:
        return self.status in LOCKED_STATUSES

    def ensure_modifiable(self) -> None:
        if self.is_locked:
            raise OrderLockedError(
                f"Cannot modify {self.status.value.lower()} orders"
            )

    def change_status(self, status: OrderStatus) -> bool:
        """Set a reconciled status; returns False when nothing changed."""
        if status == self.status:
            return False
        self.status = status
        return True

    # --- Items ----------------------------------------------------------------

    def find_item(self, item_id: int) -> OrderItem:
        for item in self.items:
            if item.id == item_id:
                return item
        raise ValidationError(f"Order item {item_id} not found")

    def add_item(self, item: OrderItem) -> OrderItem:
        self.ensure_modifiable()
        require_positive(item.ordered_quantity, "Quantity")
        item.order_id = self.id
        self.items.append(item)
        self.recalculate_amount()
        return item

    def update_item(
        self,
        item_id: int,
        shipped: int,
        quantity: int | None = None,
        price: Money | None = None,
        notes: str | None = None,
    ) -> OrderItem:
        self.ensure_modifiable()
        item = self.find_item(item_id)
        if quantity is not None:
            require_positive(quantity, "Quantity")
            floor = shipped + item.cancelled_quantity
            if quantity < floor:
                raise ValidationError(
                    f"Quantity for {item.sku} cannot go below {floor} "
                    f"({shipped} shipped, {item.cancelled_quantity} cancelled)"
                )
            item.ordered_quantity = quantity
        if price is not None:
            item.unit_price = price
        if notes is not None:
            item.notes = notes
        self.recalculate_amount()
        return item

    def remove_item(self, item_id: int, shipped: int) -> OrderItem:
        self.ensure_modifiable()
        item = self.find_item(item_id)
        if shipped != 0:
            raise ValidationError(
                f"Cannot remove {item.sku} - {shipped} units have already been shipped"
            )
        self.items.remove(item)
        self.recalculate_amount()
        return item

    def recalculate_amount(self) -> Money:
        total = Money.zero(self.currency)
        for item in self.items:
            total = total + item.line_total
        self.order_amount = total
        return total
