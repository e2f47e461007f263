"""SQLAlchemy-backed implementation of PlannedShipmentRepository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from orderdesk.domain.model.planned_shipment import PlannedShipment, PlannedShipmentStatus
from orderdesk.domain.repository.planned_shipment_repository import (
    PlannedShipmentRepository,
)
from orderdesk.infrastructure.persistence.orm import PlannedShipmentRow


class SqlPlannedShipmentRepository(PlannedShipmentRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_id(self, planned_shipment_id: int) -> PlannedShipment | None:
        row = self._session.get(PlannedShipmentRow, planned_shipment_id)
        if row is None:
            return None
        return self._to_domain(row)

    def list_for_order(self, order_id: int) -> list[PlannedShipment]:
        rows = self._session.scalars(
            select(PlannedShipmentRow)
            .where(PlannedShipmentRow.order_id == order_id)
            .order_by(PlannedShipmentRow.planned_ship_start, PlannedShipmentRow.id)
        )
        return [self._to_domain(row) for row in rows]

    def save(self, planned: PlannedShipment) -> None:
        row = (
            self._session.get(PlannedShipmentRow, planned.id)
            if planned.id is not None
            else None
        )
        if row is None:
            row = PlannedShipmentRow()
            self._session.add(row)
        row.order_id = planned.order_id
        row.name = planned.name
        row.planned_ship_start = planned.planned_ship_start
        row.planned_ship_end = planned.planned_ship_end
        row.status = planned.status.value
        self._session.flush()
        planned.id = row.id

    def delete(self, planned_shipment_id: int) -> None:
        row = self._session.get(PlannedShipmentRow, planned_shipment_id)
        if row is not None:
            self._session.delete(row)
            self._session.flush()

    @staticmethod
    def _to_domain(row: PlannedShipmentRow) -> PlannedShipment:
        return PlannedShipment(
            id=row.id,
            order_id=row.order_id,
            name=row.name,
            planned_ship_start=row.planned_ship_start,
            planned_ship_end=row.planned_ship_end,
            status=PlannedShipmentStatus(row.status),
        )
