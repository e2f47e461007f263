"""Application service: Add Tracking Number use case."""

from __future__ import annotations

import logging

from orderdesk.application.create_shipment import parse_carrier
from orderdesk.application.dto import TrackingSpec
from orderdesk.application.results import AddTrackingResult
from orderdesk.domain.exceptions import DomainException, EntityNotFoundError, PersistenceError
from orderdesk.domain.model.shipment import ShipmentTracking
from orderdesk.domain.repository.unit_of_work import UnitOfWork

logger = logging.getLogger("orderdesk.shipments")


class AddTrackingHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, shipment_id: int, tracking: TrackingSpec) -> AddTrackingResult:
        try:
            with self._uow:
                shipment = self._uow.shipments.get_by_id(shipment_id)
                if shipment is None:
                    raise EntityNotFoundError("Shipment not found")
                record = shipment.add_tracking(
                    ShipmentTracking(
                        carrier=parse_carrier(tracking.carrier),
                        tracking_number=tracking.tracking_number,
                    )
                )
                self._uow.shipments.save(shipment)
                self._uow.commit()
        except PersistenceError:
            logger.exception("add_tracking failed for shipment %s", shipment_id)
            return AddTrackingResult.failed("Failed to add tracking number")
        except DomainException as exc:
            return AddTrackingResult.failed(str(exc))
        return AddTrackingResult(success=True, tracking_id=record.id)
