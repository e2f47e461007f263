"""Application service: Update Order Item use case."""

from __future__ import annotations

import logging

from orderdesk.application.results import OperationResult
from orderdesk.domain.exceptions import DomainException, EntityNotFoundError, PersistenceError
from orderdesk.domain.model.value_objects import Money
from orderdesk.domain.repository.unit_of_work import UnitOfWork
from orderdesk.domain.service.ledger_reconciliation import LedgerReconciliationService

logger = logging.getLogger("orderdesk.items")


class UpdateOrderItemHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        item_id: int,
        quantity: int | None = None,
        price: str | None = None,
        notes: str | None = None,
    ) -> OperationResult:
        """Change quantity, price and/or notes of an item in place.

        The quantity may not drop below what has already shipped or been
        cancelled.  The order amount is recalculated afterwards.
        """
        try:
            with self._uow:
                order = self._uow.orders.get_by_item_id(item_id)
                if order is None:
                    raise EntityNotFoundError("Item not found")
                reconciler = LedgerReconciliationService(self._uow)
                item = order.update_item(
                    item_id,
                    shipped=reconciler.shipped_for_order(order.id).get(item_id, 0),
                    quantity=quantity,
                    price=Money.of(price, order.currency) if price is not None else None,
                    notes=notes,
                )
                self._uow.orders.save(order)
                if item.planned_shipment_id is not None:
                    reconciler.refresh_planned_shipment(item.planned_shipment_id, order)
                reconciler.refresh_order_status(order)
                self._uow.commit()
        except PersistenceError:
            logger.exception("update_order_item failed for item %s", item_id)
            return OperationResult.failed("Failed to update item")
        except DomainException as exc:
            return OperationResult.failed(str(exc))
        return OperationResult(success=True)
