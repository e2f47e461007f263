"""Domain service: Ledger Reconciliation.

Applies the status reconciler to stored state.  It loads what the
pure functions need from the repositories of an *open* unit of work and
writes back only the statuses that actually changed, so it must be
called inside the caller's ``with uow:`` block; committing stays the
caller's job.
"""

from __future__ import annotations

from orderdesk.domain.exceptions import EntityNotFoundError
from orderdesk.domain.model.order import Order
from orderdesk.domain.model.planned_shipment import PlannedShipmentStatus
from orderdesk.domain.model.shipment import Shipment, active_shipments
from orderdesk.domain.repository.unit_of_work import UnitOfWork
from orderdesk.domain.service.status_reconciler import (
    planned_shipment_status,
    reconcile_order_status,
    shipped_quantities,
)


class LedgerReconciliationService:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def shipped_for_order(self, order_id: int) -> dict[int, int]:
        return shipped_quantities(self._uow.shipments.list_for_order(order_id))

    def refresh_order_status(self, order: Order, reverting: bool = False) -> bool:
        """Recompute and persist the order status; True if it changed."""
        shipments = self._uow.shipments.list_for_order(order.id)
        status = reconcile_order_status(
            order.status,
            order.items,
            shipped_quantities(shipments),
            has_shipments=bool(active_shipments(shipments)),
            reverting=reverting,
        )
        if not order.change_status(status):
            return False
        self._uow.orders.save(order)
        return True

    def refresh_ship_window(self, order: Order) -> bool:
        """Roll the order's ship window up from its planned shipments."""
        planned = self._uow.planned_shipments.list_for_order(order.id)
        if not planned:
            return False
        start = min(p.planned_ship_start for p in planned)
        end = max(p.planned_ship_end for p in planned)
        if (order.ship_start, order.ship_end) == (start, end):
            return False
        order.ship_start, order.ship_end = start, end
        self._uow.orders.save(order)
        return True

    def refresh_planned_shipment(
        self,
        planned_shipment_id: int,
        order: Order | None = None,
    ) -> PlannedShipmentStatus | None:
        """Recompute and persist one planned shipment's status.

        Returns the resulting status, or None when the grouping has no
        member items (nothing is written then).
        """
        planned = self._uow.planned_shipments.get_by_id(planned_shipment_id)
        if planned is None:
            raise EntityNotFoundError(
                f"Planned shipment #{planned_shipment_id} not found"
            )
        if order is None or order.id != planned.order_id:
            order = self._uow.orders.get_by_id(planned.order_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{planned.order_id} not found")

        members = [
            i for i in order.items if i.planned_shipment_id == planned_shipment_id
        ]
        status = planned_shipment_status(
            members, self.shipped_for_order(order.id)
        )
        if status is None:
            return None
        if status != planned.status:
            planned.status = status
            self._uow.planned_shipments.save(planned)
        return status


def affected_planned_shipments(order: Order, shipment: Shipment) -> list[int]:
    """Planned shipments whose status a shipment (or its void) can move.

    That is the grouping the shipment was recorded against plus the
    groupings of every item it carries.
    """
    shipped_items = {line.order_item_id for line in shipment.items}
    ids = {
        item.planned_shipment_id
        for item in order.items
        if item.id in shipped_items and item.planned_shipment_id is not None
    }
    if shipment.planned_shipment_id is not None:
        ids.add(shipment.planned_shipment_id)
    return sorted(ids)
