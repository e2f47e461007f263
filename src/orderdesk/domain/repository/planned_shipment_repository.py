"""Abstract repository for PlannedShipment."""

from __future__ import annotations

from abc import ABC, abstractmethod

from orderdesk.domain.model.planned_shipment import PlannedShipment


class PlannedShipmentRepository(ABC):

    @abstractmethod
    def get_by_id(self, planned_shipment_id: int) -> PlannedShipment | None:
        """Return a planned shipment by its ID, or None if not found."""

    @abstractmethod
    def list_for_order(self, order_id: int) -> list[PlannedShipment]:
        """Every planned shipment of an order."""

    @abstractmethod
    def save(self, planned: PlannedShipment) -> None:
        """Persist a new or updated planned shipment."""

    @abstractmethod
    def delete(self, planned_shipment_id: int) -> None:
        """Remove an empty planned shipment."""
