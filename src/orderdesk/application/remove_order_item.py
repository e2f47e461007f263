"""Application service: Remove Order Item use case.

Only items that have never shipped (counting non-voided shipments) can
be removed; anything else must be cancelled instead so the shipment
ledger keeps pointing at a real line.
"""

from __future__ import annotations

import logging

from orderdesk.application.results import OperationResult
from orderdesk.domain.exceptions import DomainException, EntityNotFoundError, PersistenceError
from orderdesk.domain.repository.unit_of_work import UnitOfWork
from orderdesk.domain.service.ledger_reconciliation import LedgerReconciliationService

logger = logging.getLogger("orderdesk.items")


class RemoveOrderItemHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, item_id: int) -> OperationResult:
        try:
            with self._uow:
                order = self._uow.orders.get_by_item_id(item_id)
                if order is None:
                    raise EntityNotFoundError("Item not found")
                reconciler = LedgerReconciliationService(self._uow)
                item = order.remove_item(
                    item_id, shipped=reconciler.shipped_for_order(order.id).get(item_id, 0)
                )
                self._uow.orders.save(order)
                if item.planned_shipment_id is not None:
                    reconciler.refresh_planned_shipment(item.planned_shipment_id, order)
                reconciler.refresh_order_status(order)
                self._uow.commit()
        except PersistenceError:
            logger.exception("remove_order_item failed for item %s", item_id)
            return OperationResult.failed("Failed to remove item")
        except DomainException as exc:
            return OperationResult.failed(str(exc))

        logger.info(
            "item %s (%s) removed from order %s, amount now %s",
            item_id, item.sku, order.order_number, order.order_amount,
        )
        return OperationResult(success=True)
