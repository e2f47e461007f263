"""Abstract unit of work — the transaction boundary of every use case.

Usage::

    with uow:
        order = uow.orders.get_by_id(order_id)
        ...
        uow.commit()

Leaving the block without ``commit()`` (or through an exception) rolls
every write back.  A unit of work can be entered again afterwards; each
``with`` block is its own transaction.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from orderdesk.domain.repository.order_repository import OrderRepository
from orderdesk.domain.repository.planned_shipment_repository import (
    PlannedShipmentRepository,
)
from orderdesk.domain.repository.shipment_repository import ShipmentRepository


class UnitOfWork(ABC):

    orders: OrderRepository
    shipments: ShipmentRepository
    planned_shipments: PlannedShipmentRepository

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.rollback()

    @abstractmethod
    def commit(self) -> None:
        """Make every write of the current block durable."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard uncommitted writes; a no-op after ``commit()``."""
