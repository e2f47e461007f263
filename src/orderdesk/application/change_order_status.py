"""Application service: Change Order Status use case.

Everything between Pending and Shipped is derived from the ledger; the
only statuses an admin sets by hand are the two lock states.  Once an
order is invoiced or cancelled it stays that way.
"""

from __future__ import annotations

import logging

from orderdesk.application.ports import ActivityEntry, ActivityLogger
from orderdesk.application.results import OperationResult
from orderdesk.domain.exceptions import (
    DomainException,
    EntityNotFoundError,
    OrderLockedError,
    PersistenceError,
    ValidationError,
)
from orderdesk.domain.model.order import LOCKED_STATUSES, OrderStatus
from orderdesk.domain.repository.unit_of_work import UnitOfWork

logger = logging.getLogger("orderdesk.orders")


class ChangeOrderStatusHandler:

    def __init__(self, uow: UnitOfWork, activity: ActivityLogger) -> None:
        self._uow = uow
        self._activity = activity

    def handle(self, order_id: int, status: str, performed_by: str) -> OperationResult:
        try:
            target = self._parse(status)
            with self._uow:
                order = self._uow.orders.get_by_id(order_id)
                if order is None:
                    raise EntityNotFoundError("Order not found")
                if order.is_locked:
                    raise OrderLockedError(
                        f"Order is already {order.status.value.lower()}"
                    )
                previous = order.status
                order.change_status(target)
                self._uow.orders.save(order)
                self._uow.commit()
        except PersistenceError:
            logger.exception("change_order_status failed for order %s", order_id)
            return OperationResult.failed("Failed to change order status")
        except DomainException as exc:
            return OperationResult.failed(str(exc))

        self._activity.log(
            ActivityEntry(
                action="status_changed",
                order_id=order_id,
                entity_id=order_id,
                performed_by=performed_by,
                description=f"Status {previous.value} -> {target.value}",
                details={"from": previous.value, "to": target.value},
            )
        )
        return OperationResult(success=True)

    @staticmethod
    def _parse(status: str) -> OrderStatus:
        for candidate in LOCKED_STATUSES:
            if candidate.value.lower() == status.strip().lower():
                return candidate
        raise ValidationError(
            f"Status '{status}' cannot be set manually; use Invoiced or Cancelled"
        )
