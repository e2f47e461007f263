"""Application service: Void Shipment use case.

A void is a soft delete: the shipment keeps its rows and totals for
audit, but from now on every aggregate ignores it.  The order status is
recomputed from the shipments that remain, falling back to Pending when
none do.
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
)
from orderdesk.domain.model.order import OrderStatus
from orderdesk.domain.repository.unit_of_work import UnitOfWork
from orderdesk.domain.service.ledger_reconciliation import (
    LedgerReconciliationService,
    affected_planned_shipments,
)

logger = logging.getLogger("orderdesk.shipments")


class VoidShipmentHandler:

    def __init__(self, uow: UnitOfWork, activity: ActivityLogger) -> None:
        self._uow = uow
        self._activity = activity

    def handle(
        self,
        shipment_id: int,
        reason: str,
        performed_by: str,
        notes: str | None = None,
    ) -> OperationResult:
        try:
            with self._uow:
                shipment = self._uow.shipments.get_by_id(shipment_id)
                if shipment is None:
                    raise EntityNotFoundError("Shipment not found")
                order = self._uow.orders.get_by_id(shipment.order_id)
                if order is None:
                    raise EntityNotFoundError("Order not found")
                if order.status == OrderStatus.INVOICED:
                    raise OrderLockedError("Cannot void shipments on invoiced orders")

                shipment.void(performed_by, reason, notes)
                self._uow.shipments.save(shipment)
                previous = order.status
                LedgerReconciliationService(self._uow).refresh_order_status(
                    order, reverting=True
                )
                self._uow.commit()
        except PersistenceError:
            logger.exception("void_shipment failed for shipment %s", shipment_id)
            return OperationResult.failed("Failed to void shipment")
        except DomainException as exc:
            return OperationResult.failed(str(exc))

        logger.info(
            "shipment %s voided (%s); order %s %s -> %s",
            shipment_id, reason, order.order_number, previous.value, order.status.value,
        )
        for planned_id in affected_planned_shipments(order, shipment):
            self._refresh_planned_shipment(planned_id, shipment_id)

        self._activity.log(
            ActivityEntry(
                action="shipment_voided",
                order_id=order.id,  # type: ignore[arg-type]
                entity_id=shipment_id,
                performed_by=performed_by,
                description=f"Shipment {shipment_id} voided: {reason}",
                details={
                    "reason": reason,
                    "notes": notes,
                    "shipped_total": str(shipment.shipped_total.amount),
                    "order_status": order.status.value,
                },
            )
        )
        return OperationResult(success=True)

    def _refresh_planned_shipment(self, planned_shipment_id: int, shipment_id: int) -> None:
        try:
            with self._uow:
                LedgerReconciliationService(self._uow).refresh_planned_shipment(
                    planned_shipment_id
                )
                self._uow.commit()
        except Exception:
            logger.warning(
                "planned shipment %s status update failed after voiding shipment %s",
                planned_shipment_id, shipment_id, exc_info=True,
            )
