"""Application service: Add Order Item use case.

Post-order adjustment: a manual line (no catalogue variant) appended to
an open order.
"""

from __future__ import annotations

import logging

from orderdesk.application.results import AddOrderItemResult
from orderdesk.domain.exceptions import DomainException, EntityNotFoundError, PersistenceError
from orderdesk.domain.model.order import OrderItem
from orderdesk.domain.model.value_objects import Money
from orderdesk.domain.repository.unit_of_work import UnitOfWork
from orderdesk.domain.service.ledger_reconciliation import LedgerReconciliationService

logger = logging.getLogger("orderdesk.items")


class AddOrderItemHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        order_id: int,
        sku: str,
        quantity: int,
        price: str,
        performed_by: str,
        notes: str | None = None,
    ) -> AddOrderItemResult:
        try:
            with self._uow:
                order = self._uow.orders.get_by_id(order_id)
                if order is None:
                    raise EntityNotFoundError("Order not found")
                item = order.add_item(
                    OrderItem(
                        id=None,
                        sku=sku.strip(),
                        ordered_quantity=quantity,
                        unit_price=Money.of(price, order.currency),
                        notes=notes or f"Added by {performed_by}",
                    )
                )
                self._uow.orders.save(order)
                LedgerReconciliationService(self._uow).refresh_order_status(order)
                self._uow.commit()
        except PersistenceError:
            logger.exception("add_order_item failed for order %s", order_id)
            return AddOrderItemResult.failed("Failed to add item")
        except DomainException as exc:
            return AddOrderItemResult.failed(str(exc))

        logger.info(
            "item %s added to order %s: %d x %s, amount now %s",
            item.id, order.order_number, quantity, item.sku, order.order_amount,
        )
        return AddOrderItemResult(success=True, item_id=item.id)
