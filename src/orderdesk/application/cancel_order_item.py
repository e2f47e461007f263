"""Application service: Cancel Order Item use case.

Cancels part or all of an item's unshipped quantity.  The item's status
is derived (it reads Cancelled once nothing is left to ship), and the
planned shipment the item belongs to plus the order status are
recomputed in the same transaction.
"""

from __future__ import annotations

import logging

from orderdesk.application.ports import ActivityEntry, ActivityLogger
from orderdesk.application.results import OperationResult
from orderdesk.domain.exceptions import DomainException, EntityNotFoundError, PersistenceError
from orderdesk.domain.repository.unit_of_work import UnitOfWork
from orderdesk.domain.service.ledger_reconciliation import LedgerReconciliationService
from orderdesk.domain.service.status_reconciler import item_status

logger = logging.getLogger("orderdesk.items")


class CancelOrderItemHandler:

    def __init__(self, uow: UnitOfWork, activity: ActivityLogger) -> None:
        self._uow = uow
        self._activity = activity

    def handle(
        self,
        item_id: int,
        quantity: int,
        reason: str,
        performed_by: str,
    ) -> OperationResult:
        try:
            with self._uow:
                order = self._uow.orders.get_by_item_id(item_id)
                if order is None:
                    raise EntityNotFoundError("Item not found")
                order.ensure_modifiable()
                item = order.find_item(item_id)

                reconciler = LedgerReconciliationService(self._uow)
                shipped = reconciler.shipped_for_order(order.id)
                item.cancel(quantity, shipped.get(item_id, 0), reason, performed_by)
                self._uow.orders.save(order)

                if item.planned_shipment_id is not None:
                    reconciler.refresh_planned_shipment(item.planned_shipment_id, order)
                reconciler.refresh_order_status(order)
                self._uow.commit()
        except PersistenceError:
            logger.exception("cancel_order_item failed for item %s", item_id)
            return OperationResult.failed("Failed to cancel item")
        except DomainException as exc:
            return OperationResult.failed(str(exc))

        status = item_status(
            item.ordered_quantity, shipped.get(item_id, 0), item.cancelled_quantity
        )
        logger.info(
            "item %s (%s) cancelled %d: %s; now %s",
            item_id, item.sku, quantity, reason, status.value,
        )
        self._activity.log(
            ActivityEntry(
                action="item_cancelled",
                order_id=order.id,  # type: ignore[arg-type]
                entity_id=item_id,
                performed_by=performed_by,
                description=f"Cancelled {quantity} x {item.sku}: {reason}",
                details={
                    "quantity": quantity,
                    "reason": reason,
                    "cancelled_quantity": item.cancelled_quantity,
                    "item_status": status.value,
                },
            )
        )
        return OperationResult(success=True)
