"""Application service: Create Shipment use case.

The shipment, its items, its tracking record and the order status move
together in one transaction.  Everything that happens after the commit
(planned-shipment status, platform sync, documents, emails) is best
effort: each step is isolated, logged on failure, and can never undo or
fail the shipment, which is the source of truth.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from orderdesk.application.dto import CreateShipmentSpec
from orderdesk.application.ports import (
    INVOICE,
    PACKING_SLIP,
    ActivityEntry,
    ActivityLogger,
    DocumentGenerator,
    EmailDispatcher,
    FulfillmentPlatform,
    ShipmentEmail,
    ShipmentEmailLine,
)
from orderdesk.application.results import CreateShipmentResult, EmailsSent
from orderdesk.domain.exceptions import (
    DomainException,
    EntityNotFoundError,
    PersistenceError,
    ValidationError,
)
from orderdesk.domain.model.order import Order
from orderdesk.domain.model.shipment import Carrier, Shipment, ShipmentTracking
from orderdesk.domain.model.value_objects import Money
from orderdesk.domain.repository.unit_of_work import UnitOfWork
from orderdesk.domain.service.ledger_reconciliation import (
    LedgerReconciliationService,
    affected_planned_shipments,
)

logger = logging.getLogger("orderdesk.shipments")


def parse_carrier(value: str) -> Carrier:
    for carrier in Carrier:
        if carrier.value.lower() == value.strip().lower():
            return carrier
    raise ValidationError(
        f"Unknown carrier '{value}'. Expected one of: "
        + ", ".join(c.value for c in Carrier)
    )


class CreateShipmentHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        platform: FulfillmentPlatform,
        documents: DocumentGenerator,
        emails: EmailDispatcher,
        activity: ActivityLogger,
    ) -> None:
        self._uow = uow
        self._platform = platform
        self._documents = documents
        self._emails = emails
        self._activity = activity

    def handle(self, spec: CreateShipmentSpec, performed_by: str) -> CreateShipmentResult:
        try:
            order, shipment = self._create(spec, performed_by)
        except PersistenceError:
            logger.exception("create_shipment failed for order %s", spec.order_id)
            return CreateShipmentResult.failed("Failed to create shipment")
        except DomainException as exc:
            return CreateShipmentResult.failed(str(exc))

        logger.info(
            "shipment %s created for order %s (%d lines, total %s)",
            shipment.id, order.order_number, len(shipment.items), shipment.shipped_total,
        )
        self._activity.log(
            ActivityEntry(
                action="shipment_created",
                order_id=order.id,  # type: ignore[arg-type]
                entity_id=shipment.id,
                performed_by=performed_by,
                description=(
                    f"Shipment {shipment.id} created: "
                    f"{sum(i.quantity_shipped for i in shipment.items)} units, "
                    f"total {shipment.shipped_total}"
                ),
                details={
                    "items": {i.order_item_id: i.quantity_shipped for i in shipment.items},
                    "shipped_total": str(shipment.shipped_total.amount),
                    "order_status": order.status.value,
                },
            )
        )

        for planned_id in affected_planned_shipments(order, shipment):
            self._refresh_planned_shipment(planned_id, shipment)
        fulfillment_id = self._sync_platform(order, shipment, spec.notify_platform)
        attachments = self._generate_documents(order, shipment, spec)
        emails_sent = self._send_emails(order, shipment, spec, attachments)

        return CreateShipmentResult(
            success=True,
            shipment_id=shipment.id,
            external_fulfillment_id=fulfillment_id,
            emails_sent=replace(
                emails_sent,
                platform_notified=fulfillment_id is not None and spec.notify_platform,
            ),
        )

    # --- Core transaction -----------------------------------------------------

    def _create(self, spec: CreateShipmentSpec, performed_by: str) -> tuple[Order, Shipment]:
        with self._uow:
            order = self._uow.orders.get_by_id(spec.order_id)
            if order is None:
                raise EntityNotFoundError("Order not found")
            order.ensure_modifiable()
            if not spec.lines:
                raise ValidationError("Shipment must contain at least one item")

            reconciler = LedgerReconciliationService(self._uow)
            shipped = reconciler.shipped_for_order(order.id)
            items_by_id = {item.id: item for item in order.items}
            lines = []
            for line in spec.lines:
                order_item = items_by_id.get(line.order_item_id)
                if order_item is None:
                    raise ValidationError(f"Order item {line.order_item_id} not found")
                if line.quantity <= 0:
                    raise ValidationError(f"Invalid quantity for item {order_item.sku}")
                remaining = order_item.remaining_quantity(shipped.get(order_item.id, 0))
                if line.quantity > remaining:
                    raise ValidationError(
                        f"Cannot ship {line.quantity} of {order_item.sku} "
                        f"- only {remaining} remaining"
                    )
                shipped[order_item.id] = shipped.get(order_item.id, 0) + line.quantity
                override = (
                    Money.of(line.price_override, order.currency)
                    if line.price_override is not None
                    else None
                )
                lines.append((order_item, line.quantity, override))

            if spec.planned_shipment_id is not None:
                planned = self._uow.planned_shipments.get_by_id(spec.planned_shipment_id)
                if planned is None or planned.order_id != order.id:
                    raise ValidationError(
                        f"Planned shipment {spec.planned_shipment_id} not found on this order"
                    )

            tracking = None
            if spec.tracking is not None:
                tracking = ShipmentTracking(
                    carrier=parse_carrier(spec.tracking.carrier),
                    tracking_number=spec.tracking.tracking_number,
                )

            shipment = Shipment.create(
                order_id=order.id,  # type: ignore[arg-type]
                lines=lines,
                shipping_cost=Money.of(spec.shipping_cost, order.currency),
                created_by=performed_by,
                ship_date=spec.ship_date,
                notes=spec.notes,
                planned_shipment_id=spec.planned_shipment_id,
                tracking=tracking,
            )
            self._uow.shipments.save(shipment)
            reconciler.refresh_order_status(order)
            self._uow.commit()
        return order, shipment

    # --- After commit ---------------------------------------------------------

    def _refresh_planned_shipment(self, planned_id: int, shipment: Shipment) -> None:
        try:
            with self._uow:
                LedgerReconciliationService(self._uow).refresh_planned_shipment(planned_id)
                self._uow.commit()
        except Exception:
            logger.warning(
                "planned shipment %s status update failed after shipment %s",
                planned_id, shipment.id, exc_info=True,
            )

    def _sync_platform(self, order: Order, shipment: Shipment, notify: bool) -> str | None:
        if not order.external_order_id:
            return None
        try:
            fulfillment_id = self._platform.create_fulfillment(
                order.external_order_id,
                shipment.tracking[0] if shipment.tracking else None,
                notify,
            )
            if fulfillment_id is None:
                return None
            with self._uow:
                stored = self._uow.shipments.get_by_id(shipment.id)
                if stored is not None:
                    stored.external_fulfillment_id = fulfillment_id
                    self._uow.shipments.save(stored)
                    self._uow.commit()
            shipment.external_fulfillment_id = fulfillment_id
            return fulfillment_id
        except Exception:
            logger.warning(
                "fulfillment sync failed for order %s shipment %s",
                order.order_number, shipment.id, exc_info=True,
            )
            return None

    def _generate_documents(
        self, order: Order, shipment: Shipment, spec: CreateShipmentSpec
    ) -> list[str]:
        kinds = []
        if spec.attach_invoice:
            kinds.append(INVOICE)
        if spec.attach_packing_slip:
            kinds.append(PACKING_SLIP)
        if not kinds:
            return []
        try:
            return self._documents.generate(order, shipment, kinds)
        except Exception:
            logger.warning(
                "document generation failed for shipment %s", shipment.id, exc_info=True
            )
            return []

    def _send_emails(
        self,
        order: Order,
        shipment: Shipment,
        spec: CreateShipmentSpec,
        attachments: list[str],
    ) -> EmailsSent:
        customer_email = None
        rep_email = None

        recipient = spec.customer_email_override or order.customer_email
        if spec.notify_customer and recipient:
            try:
                self._emails.send_shipment_email(
                    build_shipment_email(order, shipment, recipient, "customer", attachments)
                )
                customer_email = recipient
            except Exception:
                logger.warning(
                    "customer email failed for shipment %s", shipment.id, exc_info=True
                )

        if spec.notify_rep and order.rep_email:
            try:
                self._emails.send_shipment_email(
                    build_shipment_email(order, shipment, order.rep_email, "rep", [])
                )
                rep_email = order.rep_email
            except Exception:
                logger.warning("rep email failed for shipment %s", shipment.id, exc_info=True)

        return EmailsSent(
            customer_email=customer_email,
            customer_attachments=attachments if customer_email else [],
            rep_email=rep_email,
        )


def build_shipment_email(
    order: Order,
    shipment: Shipment,
    recipient: str,
    role: str,
    attachments: list[str],
) -> ShipmentEmail:
    skus = {item.id: item.sku for item in order.items}
    return ShipmentEmail(
        recipient=recipient,
        recipient_role=role,
        order_number=order.order_number,
        customer_name=order.customer_name,
        currency=order.currency,
        shipment_id=shipment.id,
        ship_date=shipment.ship_date.isoformat(),
        lines=[
            ShipmentEmailLine(
                sku=skus.get(line.order_item_id, str(line.order_item_id)),
                quantity=line.quantity_shipped,
                unit_price=str(line.unit_price),
                line_total=str(line.line_total),
            )
            for line in shipment.items
        ],
        shipping_cost=str(shipment.shipping_cost),
        shipped_total=str(shipment.shipped_total),
        tracking=[
            (t.carrier.value, t.tracking_number, t.tracking_url) for t in shipment.tracking
        ],
        attachments=list(attachments),
    )
