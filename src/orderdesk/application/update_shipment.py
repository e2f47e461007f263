"""Application service: Update Shipment use case.

Only the header is editable.  The subtotal was fixed when the shipment
was created, so changing the shipping cost moves the total and nothing
else.
"""

from __future__ import annotations

import logging
from datetime import date

from orderdesk.application.results import OperationResult
from orderdesk.domain.exceptions import DomainException, EntityNotFoundError, PersistenceError
from orderdesk.domain.model.value_objects import Money
from orderdesk.domain.repository.unit_of_work import UnitOfWork

logger = logging.getLogger("orderdesk.shipments")


class UpdateShipmentHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        shipment_id: int,
        shipping_cost: str | None = None,
        notes: str | None = None,
        ship_date: date | None = None,
    ) -> OperationResult:
        try:
            with self._uow:
                shipment = self._uow.shipments.get_by_id(shipment_id)
                if shipment is None:
                    raise EntityNotFoundError("Shipment not found")
                order = self._uow.orders.get_by_id(shipment.order_id)
                if order is None:
                    raise EntityNotFoundError("Order not found")
                order.ensure_modifiable()

                shipment.update(
                    shipping_cost=(
                        Money.of(shipping_cost, order.currency)
                        if shipping_cost is not None
                        else None
                    ),
                    notes=notes,
                    ship_date=ship_date,
                )
                self._uow.shipments.save(shipment)
                self._uow.commit()
        except PersistenceError:
            logger.exception("update_shipment failed for shipment %s", shipment_id)
            return OperationResult.failed("Failed to update shipment")
        except DomainException as exc:
            return OperationResult.failed(str(exc))
        return OperationResult(success=True)
