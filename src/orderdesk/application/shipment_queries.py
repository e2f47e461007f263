"""Application services: shipment queries.

``ListShipmentsHandler`` is the audit view (voided shipments included,
flagged).  ``ShipmentSummaryHandler`` feeds order listings and counts
active shipments only.
"""

from __future__ import annotations

from decimal import Decimal

from orderdesk.application.dto import (
    ShipmentDTO,
    ShipmentItemDTO,
    ShipmentSummaryDTO,
    TrackingDTO,
)
from orderdesk.domain.model.order import Order
from orderdesk.domain.model.shipment import Shipment, active_shipments
from orderdesk.domain.model.value_objects import Money, signed_difference
from orderdesk.domain.repository.unit_of_work import UnitOfWork
from orderdesk.domain.service.status_reconciler import is_fully_shipped, shipped_quantities

_ISO = "%Y-%m-%d %H:%M UTC"


def format_variance(variance: Decimal) -> str:
    """``+$12.50`` when more shipped than ordered, ``-$12.50`` when less."""
    sign = "-" if variance < 0 else "+"
    return f"{sign}${abs(variance):.2f}"


class ListShipmentsHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, order_id: int) -> list[ShipmentDTO]:
        with self._uow:
            order = self._uow.orders.get_by_id(order_id)
            if order is None:
                return []
            shipments = self._uow.shipments.list_for_order(order_id)
        return [self._to_dto(order, s) for s in shipments]

    @staticmethod
    def _to_dto(order: Order, shipment: Shipment) -> ShipmentDTO:
        items_by_id = {item.id: item for item in order.items}
        void = shipment.void_record
        return ShipmentDTO(
            id=shipment.id,  # type: ignore[arg-type]
            order_id=order.id,  # type: ignore[arg-type]
            order_number=order.order_number,
            shipped_subtotal=str(shipment.shipped_subtotal),
            shipping_cost=str(shipment.shipping_cost),
            shipped_total=str(shipment.shipped_total),
            ship_date=shipment.ship_date.isoformat(),
            notes=shipment.notes,
            created_by=shipment.created_by,
            created_at=shipment.created_at.strftime(_ISO),
            external_fulfillment_id=shipment.external_fulfillment_id,
            is_voided=void is not None,
            voided_at=void.at.strftime(_ISO) if void else None,
            voided_by=void.by if void else None,
            void_reason=void.reason if void else None,
            void_notes=void.notes if void else None,
            items=[
                ShipmentItemDTO(
                    order_item_id=line.order_item_id,
                    # removed lines can only ever appear on voided shipments
                    sku=items_by_id[line.order_item_id].sku
                    if line.order_item_id in items_by_id
                    else f"#{line.order_item_id}",
                    ordered_quantity=items_by_id[line.order_item_id].ordered_quantity
                    if line.order_item_id in items_by_id
                    else 0,
                    quantity_shipped=line.quantity_shipped,
                    unit_price=str(line.unit_price),
                    price_override=str(line.price_override) if line.price_override else None,
                    line_total=str(line.line_total),
                )
                for line in shipment.items
            ],
            tracking=[
                TrackingDTO(
                    id=t.id,  # type: ignore[arg-type]
                    carrier=t.carrier.value,
                    tracking_number=t.tracking_number,
                    tracking_url=t.tracking_url,
                    added_at=t.added_at.strftime(_ISO),
                )
                for t in shipment.tracking
            ],
        )


class ShipmentSummaryHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, order_ids: list[int]) -> dict[int, ShipmentSummaryDTO]:
        """Summaries keyed by order id; orders without active shipments are left out."""
        summaries: dict[int, ShipmentSummaryDTO] = {}
        with self._uow:
            for order_id in dict.fromkeys(order_ids):
                order = self._uow.orders.get_by_id(order_id)
                if order is None:
                    continue
                shipments = active_shipments(self._uow.shipments.list_for_order(order_id))
                if not shipments:
                    continue
                summaries[order_id] = self._summarise(order, shipments)
        return summaries

    @staticmethod
    def _summarise(order: Order, shipments: list[Shipment]) -> ShipmentSummaryDTO:
        total = Money.zero(order.currency)
        for shipment in shipments:
            total = total + shipment.shipped_total
        tracking_numbers = [t.tracking_number for s in shipments for t in s.tracking]
        return ShipmentSummaryDTO(
            order_id=order.id,  # type: ignore[arg-type]
            shipment_count=len(shipments),
            total_shipped=str(total),
            tracking_count=len(tracking_numbers),
            tracking_numbers=tracking_numbers[:3],
            is_fully_shipped=is_fully_shipped(order.items, shipped_quantities(shipments)),
            variance=format_variance(signed_difference(total, order.order_amount)),
        )
