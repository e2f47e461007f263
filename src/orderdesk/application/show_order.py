"""Application service: Show Order use case (query).

Returns the order with each line's fulfilment position: shipped
(non-voided shipments only), cancelled, remaining and derived status.
"""

from __future__ import annotations

from orderdesk.application.dto import OrderDTO, OrderItemDTO, PlannedShipmentDTO
from orderdesk.domain.model.order import Order
from orderdesk.domain.model.planned_shipment import PlannedShipment
from orderdesk.domain.repository.unit_of_work import UnitOfWork
from orderdesk.domain.service.status_reconciler import item_status, shipped_quantities


class ShowOrderHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, order_id: int) -> OrderDTO | None:
        with self._uow:
            order = self._uow.orders.get_by_id(order_id)
            if order is None:
                return None
            shipped = shipped_quantities(self._uow.shipments.list_for_order(order_id))
            planned = self._uow.planned_shipments.list_for_order(order_id)
        return self._to_dto(order, shipped, planned)

    @staticmethod
    def _to_dto(
        order: Order,
        shipped: dict[int, int],
        planned: list[PlannedShipment],
    ) -> OrderDTO:
        items = []
        for item in order.items:
            qty_shipped = shipped.get(item.id, 0)
            items.append(
                OrderItemDTO(
                    id=item.id,  # type: ignore[arg-type]
                    sku=item.sku,
                    ordered_quantity=item.ordered_quantity,
                    shipped_quantity=qty_shipped,
                    cancelled_quantity=item.cancelled_quantity,
                    remaining_quantity=max(0, item.remaining_quantity(qty_shipped)),
                    status=item_status(
                        item.ordered_quantity, qty_shipped, item.cancelled_quantity
                    ).value,
                    unit_price=str(item.unit_price),
                    line_total=str(item.line_total),
                    notes=item.notes,
                    planned_shipment_id=item.planned_shipment_id,
                    cancelled_reason=item.cancelled_reason,
                )
            )

        window = None
        if order.ship_start and order.ship_end:
            window = f"{order.ship_start.isoformat()} .. {order.ship_end.isoformat()}"

        return OrderDTO(
            id=order.id,  # type: ignore[arg-type]
            order_number=order.order_number,
            customer_name=order.customer_name,
            status=order.status.value,
            currency=order.currency,
            items=items,
            order_amount=str(order.order_amount),
            planned_shipments=[
                PlannedShipmentDTO(
                    id=p.id,  # type: ignore[arg-type]
                    name=p.name,
                    status=p.status.value,
                    planned_ship_start=p.planned_ship_start.isoformat(),
                    planned_ship_end=p.planned_ship_end.isoformat(),
                    item_ids=[i.id for i in order.items if i.planned_shipment_id == p.id],
                )
                for p in planned
            ],
            created_at=order.created_at.strftime("%Y-%m-%d %H:%M UTC"),
            ship_window=window,
        )
