"""Application service: Update Planned Shipment Dates use case.

Reschedules a planned shipment and rolls the order's ship window up to
the earliest start and latest end across all of its planned shipments.
"""

from __future__ import annotations

import logging
from datetime import date

from orderdesk.application.results import OperationResult
from orderdesk.domain.exceptions import (
    DomainException,
    EntityNotFoundError,
    PersistenceError,
    ValidationError,
)
from orderdesk.domain.model.order import OrderStatus
from orderdesk.domain.repository.unit_of_work import UnitOfWork
from orderdesk.domain.service.ledger_reconciliation import LedgerReconciliationService

logger = logging.getLogger("orderdesk.orders")


class UpdatePlannedDatesHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, planned_shipment_id: int, start: date, end: date) -> OperationResult:
        try:
            with self._uow:
                planned = self._uow.planned_shipments.get_by_id(planned_shipment_id)
                if planned is None:
                    raise EntityNotFoundError("Planned shipment not found")
                order = self._uow.orders.get_by_id(planned.order_id)
                if order is None:
                    raise EntityNotFoundError("Order not found")
                if order.status != OrderStatus.PENDING:
                    raise ValidationError(
                        "Planned shipments can only be changed on pending orders"
                    )

                planned.reschedule(start, end)
                self._uow.planned_shipments.save(planned)
                LedgerReconciliationService(self._uow).refresh_ship_window(order)
                self._uow.commit()
        except PersistenceError:
            logger.exception("update_planned_dates failed for %s", planned_shipment_id)
            return OperationResult.failed("Failed to update planned shipment")
        except DomainException as exc:
            return OperationResult.failed(str(exc))

        logger.info(
            "planned shipment %s rescheduled to %s..%s; order %s window %s..%s",
            planned_shipment_id, start, end, order.order_number,
            order.ship_start, order.ship_end,
        )
        return OperationResult(success=True)
