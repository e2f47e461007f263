"""Plain-text shipment documents (invoice, packing slip).

Files land in ``<data dir>/documents/`` and are named after the order
number, the shipment id and the document kind.
"""

from __future__ import annotations

from pathlib import Path

from orderdesk.application.ports import INVOICE, PACKING_SLIP, DocumentGenerator
from orderdesk.domain.exceptions import ValidationError
from orderdesk.domain.model.order import Order
from orderdesk.domain.model.shipment import Shipment


class TextDocumentGenerator(DocumentGenerator):

    def __init__(self, output_dir: Path) -> None:
        self._output_dir = output_dir

    def generate(self, order: Order, shipment: Shipment, kinds: list[str]) -> list[str]:
        self._output_dir.mkdir(parents=True, exist_ok=True)
        names: list[str] = []
        for kind in kinds:
            if kind not in (INVOICE, PACKING_SLIP):
                raise ValidationError(f"Unknown document kind '{kind}'")
            name = f"{order.order_number}-S{shipment.id}-{kind}.txt"
            (self._output_dir / name).write_text(
                _render(order, shipment, kind), encoding="utf-8"
            )
            names.append(name)
        return names


def _render(order: Order, shipment: Shipment, kind: str) -> str:
    skus = {item.id: item.sku for item in order.items}
    title = "INVOICE" if kind == INVOICE else "PACKING SLIP"
    lines = [
        f"{title}  {order.order_number}  shipment #{shipment.id}",
        f"Customer: {order.customer_name}",
        f"Ship date: {shipment.ship_date.isoformat()}",
        "",
    ]
    if kind == INVOICE:
        lines.append(f"  {'SKU':<20} {'Qty':>5} {'Price':>10} {'Total':>10}")
        lines.append(f"  {'-'*48}")
        for line in shipment.items:
            lines.append(
                f"  {skus.get(line.order_item_id, '?'):<20} {line.quantity_shipped:>5} "
                f"{str(line.unit_price):>10} {str(line.line_total):>10}"
            )
        lines.append(f"  {'-'*48}")
        lines.append(f"  {'Subtotal':<37} {str(shipment.shipped_subtotal):>10}")
        lines.append(f"  {'Shipping':<37} {str(shipment.shipping_cost):>10}")
        lines.append(f"  {'Total':<37} {str(shipment.shipped_total):>10}")
    else:
        lines.append(f"  {'SKU':<20} {'Qty':>5}")
        lines.append(f"  {'-'*26}")
        for line in shipment.items:
            lines.append(
                f"  {skus.get(line.order_item_id, '?'):<20} {line.quantity_shipped:>5}"
            )
    for record in shipment.tracking:
        lines.append(f"Tracking: {record.carrier.value} {record.tracking_number}")
    return "\n".join(lines) + "\n"
