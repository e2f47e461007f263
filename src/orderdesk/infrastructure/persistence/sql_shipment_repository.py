"""SQLAlchemy-backed implementation of ShipmentRepository."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from orderdesk.domain.model.shipment import (
    Carrier,
    Shipment,
    ShipmentItem,
    ShipmentTracking,
    VoidRecord,
)
from orderdesk.domain.model.value_objects import Money
from orderdesk.domain.repository.shipment_repository import ShipmentRepository
from orderdesk.infrastructure.persistence.orm import (
    ShipmentItemRow,
    ShipmentRow,
    ShipmentTrackingRow,
)


class SqlShipmentRepository(ShipmentRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    # --- ShipmentRepository interface -----------------------------------------

    def get_by_id(self, shipment_id: int) -> Shipment | None:
        row = self._session.get(ShipmentRow, shipment_id)
        if row is None:
            return None
        return self._to_domain(row)

    def list_for_order(self, order_id: int) -> list[Shipment]:
        rows = self._session.scalars(
            select(ShipmentRow)
            .where(ShipmentRow.order_id == order_id)
            .order_by(ShipmentRow.created_at.desc(), ShipmentRow.id.desc())
        )
        return [self._to_domain(row) for row in rows]

    def count_for_planned_shipment(self, planned_shipment_id: int) -> int:
        return self._session.scalar(
            select(func.count(ShipmentRow.id)).where(
                ShipmentRow.planned_shipment_id == planned_shipment_id
            )
        ) or 0

    def save(self, shipment: Shipment) -> None:
        row = self._session.get(ShipmentRow, shipment.id) if shipment.id is not None else None
        if row is None:
            row = ShipmentRow()
            self._session.add(row)

        item_rows, tracking_rows = self._apply(shipment, row)
        self._session.flush()

        shipment.id = row.id
        for item, item_row in zip(shipment.items, item_rows):
            item.id = item_row.id
        for record, tracking_row in zip(shipment.tracking, tracking_rows):
            record.id = tracking_row.id

    # --- Mapping --------------------------------------------------------------

    @staticmethod
    def _apply(
        shipment: Shipment, row: ShipmentRow
    ) -> tuple[list[ShipmentItemRow], list[ShipmentTrackingRow]]:
        row.order_id = shipment.order_id
        row.planned_shipment_id = shipment.planned_shipment_id
        row.currency = shipment.shipped_subtotal.currency
        row.shipped_subtotal = shipment.shipped_subtotal.amount
        row.shipping_cost = shipment.shipping_cost.amount
        row.shipped_total = shipment.shipped_total.amount
        row.ship_date = shipment.ship_date
        row.created_by = shipment.created_by
        row.notes = shipment.notes
        row.external_fulfillment_id = shipment.external_fulfillment_id
        row.created_at = shipment.created_at
        row.updated_at = shipment.updated_at

        void = shipment.void_record
        row.voided_at = void.at if void else None
        row.voided_by = void.by if void else None
        row.void_reason = void.reason if void else None
        row.void_notes = void.notes if void else None

        # Shipment lines are fixed at creation; only new ones get rows.
        existing_items = {r.id: r for r in row.items}
        item_rows = []
        for item in shipment.items:
            item_row = existing_items.get(item.id) if item.id is not None else None
            if item_row is None:
                item_row = ShipmentItemRow(
                    order_item_id=item.order_item_id,
                    quantity_shipped=item.quantity_shipped,
                    unit_price=item.unit_price.amount,
                    price_override=item.price_override.amount if item.price_override else None,
                )
            item_rows.append(item_row)
        row.items = item_rows

        existing_tracking = {r.id: r for r in row.tracking}
        tracking_rows = []
        for record in shipment.tracking:
            tracking_row = existing_tracking.get(record.id) if record.id is not None else None
            if tracking_row is None:
                tracking_row = ShipmentTrackingRow(
                    carrier=record.carrier.value,
                    tracking_number=record.tracking_number,
                    added_at=record.added_at,
                )
            tracking_rows.append(tracking_row)
        row.tracking = tracking_rows
        return item_rows, tracking_rows

    @staticmethod
    def _to_domain(row: ShipmentRow) -> Shipment:
        currency = row.currency
        void = None
        if row.voided_at is not None:
            void = VoidRecord(
                at=row.voided_at,
                by=row.voided_by or "",
                reason=row.void_reason or "",
                notes=row.void_notes,
            )
        return Shipment(
            id=row.id,
            order_id=row.order_id,
            items=[
                ShipmentItem(
                    order_item_id=i.order_item_id,
                    quantity_shipped=i.quantity_shipped,
                    unit_price=Money(i.unit_price, currency),
                    price_override=(
                        Money(i.price_override, currency)
                        if i.price_override is not None
                        else None
                    ),
                    id=i.id,
                )
                for i in row.items
            ],
            shipped_subtotal=Money(row.shipped_subtotal, currency),
            shipping_cost=Money(row.shipping_cost, currency),
            ship_date=row.ship_date,
            created_by=row.created_by,
            notes=row.notes,
            planned_shipment_id=row.planned_shipment_id,
            tracking=[
                ShipmentTracking(
                    carrier=Carrier(t.carrier),
                    tracking_number=t.tracking_number,
                    id=t.id,
                    added_at=t.added_at,
                )
                for t in row.tracking
            ],
            external_fulfillment_id=row.external_fulfillment_id,
            void_record=void,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
