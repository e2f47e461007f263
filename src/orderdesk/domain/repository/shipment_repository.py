"""Abstract repository for Shipment aggregate.

Listing returns voided shipments too (they are kept for audit); code that
aggregates quantities or totals must go through ``active_shipments()``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from orderdesk.domain.model.shipment import Shipment


class ShipmentRepository(ABC):

    @abstractmethod
    def get_by_id(self, shipment_id: int) -> Shipment | None:
        """Return a shipment with items and tracking, or None."""

    @abstractmethod
    def list_for_order(self, order_id: int) -> list[Shipment]:
        """Every shipment of an order, voided included, newest first."""

    @abstractmethod
    def count_for_planned_shipment(self, planned_shipment_id: int) -> int:
        """Number of shipments (voided included) linked to a grouping."""

    @abstractmethod
    def save(self, shipment: Shipment) -> None:
        """Persist a new or updated shipment and its tracking records."""
