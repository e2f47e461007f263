"""PlannedShipment — a grouping of order items meant to ship together.

Membership lives on the items (``OrderItem.planned_shipment_id``); the
grouping itself only carries its planned window and a derived status.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum

from orderdesk.domain.exceptions import ValidationError


class PlannedShipmentStatus(Enum):
    PLANNED = "Planned"
    PARTIALLY_FULFILLED = "PartiallyFulfilled"
    FULFILLED = "Fulfilled"
    CANCELLED = "Cancelled"


@dataclass
class PlannedShipment:

    id: int | None
    order_id: int
    name: str
    planned_ship_start: date
    planned_ship_end: date
    status: PlannedShipmentStatus = PlannedShipmentStatus.PLANNED

    def __post_init__(self) -> None:
        _validate_window(self.planned_ship_start, self.planned_ship_end)

    def reschedule(self, start: date, end: date) -> None:
        _validate_window(start, end)
        self.planned_ship_start = start
        self.planned_ship_end = end


def _validate_window(start: date, end: date) -> None:
    if end < start:
        raise ValidationError(
            f"Planned ship end {end.isoformat()} is before start {start.isoformat()}"
        )
