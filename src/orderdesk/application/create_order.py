"""Application service: Create Order use case.

Orders normally arrive from the storefront; this handler is how the
back office (and the test-suite) places one directly.  Lines sharing a
``planned_group`` become one PlannedShipment with the given window.
"""

from __future__ import annotations

import logging
from datetime import date

from orderdesk.application.dto import OrderLineSpec
from orderdesk.application.results import CreateOrderResult
from orderdesk.domain.exceptions import DomainException, PersistenceError, ValidationError
from orderdesk.domain.model.order import Order, OrderItem, OrderStatus
from orderdesk.domain.model.planned_shipment import PlannedShipment
from orderdesk.domain.model.value_objects import Money, require_positive
from orderdesk.domain.repository.unit_of_work import UnitOfWork
from orderdesk.domain.service.ledger_reconciliation import LedgerReconciliationService

logger = logging.getLogger("orderdesk.orders")


class CreateOrderHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        customer_name: str,
        lines: list[OrderLineSpec],
        customer_email: str = "",
        rep_email: str | None = None,
        currency: str = "USD",
        order_number: str | None = None,
        external_order_id: str | None = None,
        ship_start: date | None = None,
        ship_end: date | None = None,
    ) -> CreateOrderResult:
        try:
            order = self._create(
                customer_name, lines, customer_email, rep_email, currency,
                order_number, external_order_id, ship_start, ship_end,
            )
        except PersistenceError:
            logger.exception("create_order failed for customer %r", customer_name)
            return CreateOrderResult.failed("Failed to create order")
        except DomainException as exc:
            return CreateOrderResult.failed(str(exc))

        logger.info("order %s created with %d items", order.order_number, len(order.items))
        return CreateOrderResult(
            success=True, order_id=order.id, order_number=order.order_number
        )

    def _create(
        self,
        customer_name: str,
        lines: list[OrderLineSpec],
        customer_email: str,
        rep_email: str | None,
        currency: str,
        order_number: str | None,
        external_order_id: str | None,
        ship_start: date | None,
        ship_end: date | None,
    ) -> Order:
        if not customer_name or not customer_name.strip():
            raise ValidationError("Customer name is required")
        if not lines:
            raise ValidationError("Order must contain at least one item")

        items: list[OrderItem] = []
        groups: dict[str, list[OrderItem]] = {}
        for spec in lines:
            if not spec.sku or not spec.sku.strip():
                raise ValidationError("SKU is required")
            item = OrderItem(
                id=None,
                sku=spec.sku.strip(),
                ordered_quantity=require_positive(spec.quantity, "Quantity"),
                unit_price=Money.of(spec.price, currency),
            )
            items.append(item)
            if spec.planned_group:
                groups.setdefault(spec.planned_group, []).append(item)

        start = ship_start or date.today()
        end = ship_end or start

        with self._uow:
            order = Order(
                id=None,
                order_number=order_number or "",
                customer_name=customer_name.strip(),
                items=items,
                customer_email=customer_email,
                rep_email=rep_email,
                currency=currency,
                status=OrderStatus.PENDING,
                external_order_id=external_order_id,
            )
            self._uow.orders.save(order)
            if not order.order_number:
                order.order_number = f"ORD-{order.id:05d}"

            for name, members in groups.items():
                planned = PlannedShipment(
                    id=None,
                    order_id=order.id,  # type: ignore[arg-type]
                    name=name,
                    planned_ship_start=start,
                    planned_ship_end=end,
                )
                self._uow.planned_shipments.save(planned)
                for item in members:
                    item.planned_shipment_id = planned.id

            LedgerReconciliationService(self._uow).refresh_ship_window(order)
            self._uow.orders.save(order)
            self._uow.commit()
        return order
