"""Application service: Move Item Between Planned Shipments use case.

Both groupings must belong to the same pending order.  Their statuses
are recomputed after the move; a source left without members is deleted
unless a shipment still references it.
"""

from __future__ import annotations

import logging

from orderdesk.application.results import OperationResult
from orderdesk.domain.exceptions import (
    DomainException,
    EntityNotFoundError,
    PersistenceError,
    ValidationError,
)
from orderdesk.domain.model.order import Order, OrderStatus
from orderdesk.domain.repository.unit_of_work import UnitOfWork
from orderdesk.domain.service.ledger_reconciliation import LedgerReconciliationService

logger = logging.getLogger("orderdesk.orders")


class MovePlannedItemHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, item_id: int, target_planned_shipment_id: int) -> OperationResult:
        removed_source = False
        try:
            with self._uow:
                order = self._uow.orders.get_by_item_id(item_id)
                if order is None:
                    raise EntityNotFoundError("Item not found")
                if order.status != OrderStatus.PENDING:
                    raise ValidationError(
                        "Planned shipments can only be changed on pending orders"
                    )
                target = self._uow.planned_shipments.get_by_id(target_planned_shipment_id)
                if target is None or target.order_id != order.id:
                    raise EntityNotFoundError("Planned shipment not found")

                item = order.find_item(item_id)
                source_id = item.planned_shipment_id
                if source_id == target.id:
                    raise ValidationError(
                        f"{item.sku} is already in planned shipment '{target.name}'"
                    )
                item.planned_shipment_id = target.id
                self._uow.orders.save(order)

                reconciler = LedgerReconciliationService(self._uow)
                reconciler.refresh_planned_shipment(target.id, order)
                if source_id is not None:
                    removed_source = self._settle_source(reconciler, source_id, order)
                reconciler.refresh_ship_window(order)
                self._uow.commit()
        except PersistenceError:
            logger.exception("move_planned_item failed for item %s", item_id)
            return OperationResult.failed("Failed to move item")
        except DomainException as exc:
            return OperationResult.failed(str(exc))

        logger.info(
            "item %s moved to planned shipment %s%s",
            item_id, target_planned_shipment_id,
            " (empty source removed)" if removed_source else "",
        )
        return OperationResult(success=True)

    def _settle_source(
        self, reconciler: LedgerReconciliationService, source_id: int, order: Order
    ) -> bool:
        if reconciler.refresh_planned_shipment(source_id, order) is not None:
            return False
        if self._uow.shipments.count_for_planned_shipment(source_id) > 0:
            return False
        self._uow.planned_shipments.delete(source_id)
        return True
