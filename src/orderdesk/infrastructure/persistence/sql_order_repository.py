"""SQLAlchemy-backed implementation of OrderRepository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from orderdesk.domain.model.order import Order, OrderItem, OrderStatus
from orderdesk.domain.model.value_objects import Money
from orderdesk.domain.repository.order_repository import OrderRepository
from orderdesk.infrastructure.persistence.orm import OrderItemRow, OrderRow


class SqlOrderRepository(OrderRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    # --- OrderRepository interface --------------------------------------------

    def get_by_id(self, order_id: int) -> Order | None:
        row = self._session.get(OrderRow, order_id)
        if row is None:
            return None
        return self._to_domain(row)

    def get_by_item_id(self, item_id: int) -> Order | None:
        order_id = self._session.execute(
            select(OrderItemRow.order_id).where(OrderItemRow.id == item_id)
        ).scalar_one_or_none()
        if order_id is None:
            return None
        return self.get_by_id(order_id)

    def save(self, order: Order) -> None:
        row = self._session.get(OrderRow, order.id) if order.id is not None else None
        if row is None:
            row = OrderRow()
            self._session.add(row)

        item_rows = self._apply(order, row)
        self._session.flush()

        order.id = row.id
        for item, item_row in zip(order.items, item_rows):
            item.id = item_row.id
            item.order_id = row.id

    # --- Mapping --------------------------------------------------------------

    @staticmethod
    def _apply(order: Order, row: OrderRow) -> list[OrderItemRow]:
        row.order_number = order.order_number
        row.customer_name = order.customer_name
        row.customer_email = order.customer_email
        row.rep_email = order.rep_email
        row.currency = order.currency
        row.status = order.status.value
        row.order_amount = order.recalculate_amount().amount
        row.external_order_id = order.external_order_id
        row.ship_start = order.ship_start
        row.ship_end = order.ship_end
        row.created_at = order.created_at

        existing = {r.id: r for r in row.items}
        item_rows: list[OrderItemRow] = []
        for item in order.items:
            item_row = existing.get(item.id) if item.id is not None else None
            if item_row is None:
                item_row = OrderItemRow()
            item_row.sku = item.sku
            item_row.ordered_quantity = item.ordered_quantity
            item_row.cancelled_quantity = item.cancelled_quantity
            item_row.unit_price = item.unit_price.amount
            item_row.notes = item.notes
            item_row.variant_id = item.variant_id
            item_row.planned_shipment_id = item.planned_shipment_id
            item_row.cancelled_reason = item.cancelled_reason
            item_row.cancelled_at = item.cancelled_at
            item_row.cancelled_by = item.cancelled_by
            item_rows.append(item_row)
        # rows missing from the list are deleted (delete-orphan)
        row.items = item_rows
        return item_rows

    @staticmethod
    def _to_domain(row: OrderRow) -> Order:
        items = [
            OrderItem(
                id=i.id,
                sku=i.sku,
                ordered_quantity=i.ordered_quantity,
                unit_price=Money(i.unit_price, row.currency),
                order_id=row.id,
                cancelled_quantity=i.cancelled_quantity,
                notes=i.notes,
                variant_id=i.variant_id,
                planned_shipment_id=i.planned_shipment_id,
                cancelled_reason=i.cancelled_reason,
                cancelled_at=i.cancelled_at,
                cancelled_by=i.cancelled_by,
            )
            for i in row.items
        ]
        return Order(
            id=row.id,
            order_number=row.order_number,
            customer_name=row.customer_name,
            items=items,
            customer_email=row.customer_email,
            rep_email=row.rep_email,
            currency=row.currency,
            status=OrderStatus(row.status),
            order_amount=Money(row.order_amount, row.currency),
            external_order_id=row.external_order_id,
            ship_start=row.ship_start,
            ship_end=row.ship_end,
            created_at=row.created_at,
        )
