"""Application service: Bulk Cancel Items use case.

Cancels everything still open on each listed item.  Items on invoiced or
cancelled orders, unknown items and items with nothing left to cancel are
skipped without failing the batch.  Each touched planned shipment and
each touched order is recomputed once, after all item writes.
"""

from __future__ import annotations

import logging

from orderdesk.application.ports import ActivityEntry, ActivityLogger
from orderdesk.application.results import BulkCancelResult
from orderdesk.domain.exceptions import DomainException, PersistenceError, ValidationError
from orderdesk.domain.model.order import CANCEL_REASONS, Order
from orderdesk.domain.repository.unit_of_work import UnitOfWork
from orderdesk.domain.service.ledger_reconciliation import LedgerReconciliationService

logger = logging.getLogger("orderdesk.items")


class BulkCancelItemsHandler:

    def __init__(self, uow: UnitOfWork, activity: ActivityLogger) -> None:
        self._uow = uow
        self._activity = activity

    def handle(
        self,
        item_ids: list[int],
        reason: str,
        performed_by: str,
    ) -> BulkCancelResult:
        try:
            cancelled = self._cancel(item_ids, reason, performed_by)
        except PersistenceError:
            logger.exception("bulk cancel failed for %d items", len(item_ids))
            return BulkCancelResult.failed("Failed to cancel items")
        except DomainException as exc:
            return BulkCancelResult.failed(str(exc))

        for order_id, item_id, sku, quantity in cancelled:
            self._activity.log(
                ActivityEntry(
                    action="item_cancelled",
                    order_id=order_id,
                    entity_id=item_id,
                    performed_by=performed_by,
                    description=f"Cancelled {quantity} x {sku}: {reason} (bulk)",
                    details={"quantity": quantity, "reason": reason, "bulk": True},
                )
            )
        logger.info("bulk cancel: %d of %d items cancelled", len(cancelled), len(item_ids))
        return BulkCancelResult(success=True, cancelled_count=len(cancelled))

    def _cancel(
        self, item_ids: list[int], reason: str, performed_by: str
    ) -> list[tuple[int, int, str, int]]:
        if not item_ids:
            raise ValidationError("No items selected")
        if reason not in CANCEL_REASONS:
            raise ValidationError(f"Unknown cancel reason '{reason}'")

        cancelled: list[tuple[int, int, str, int]] = []
        with self._uow:
            reconciler = LedgerReconciliationService(self._uow)
            orders: dict[int, Order] = {}
            shipped_by_order: dict[int, dict[int, int]] = {}
            touched_planned: dict[int, int] = {}

            for item_id in dict.fromkeys(item_ids):
                order = self._load_order(item_id, orders)
                if order is None:
                    logger.debug("bulk cancel: item %s not found, skipped", item_id)
                    continue
                if order.is_locked:
                    continue
                if order.id not in shipped_by_order:
                    shipped_by_order[order.id] = reconciler.shipped_for_order(order.id)
                shipped = shipped_by_order[order.id].get(item_id, 0)

                item = order.find_item(item_id)
                remaining = item.max_cancellable(shipped)
                if remaining <= 0:
                    continue
                item.cancel(remaining, shipped, reason, performed_by)
                cancelled.append((order.id, item_id, item.sku, remaining))
                if item.planned_shipment_id is not None:
                    touched_planned[item.planned_shipment_id] = order.id

            touched_orders = {order_id for order_id, _, _, _ in cancelled}
            for order_id in touched_orders:
                self._uow.orders.save(orders[order_id])
            for planned_id, order_id in touched_planned.items():
                reconciler.refresh_planned_shipment(planned_id, orders[order_id])
            for order_id in touched_orders:
                reconciler.refresh_order_status(orders[order_id])
            self._uow.commit()
        return cancelled

    def _load_order(self, item_id: int, orders: dict[int, Order]) -> Order | None:
        for order in orders.values():
            if any(item.id == item_id for item in order.items):
                return order
        order = self._uow.orders.get_by_item_id(item_id)
        if order is not None:
            orders[order.id] = order
        return order
