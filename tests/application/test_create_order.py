"""Integration tests for the CreateOrder use case.

Uses in-memory fakes — no database.
"""

from datetime import date

from orderdesk.application.create_order import CreateOrderHandler
from orderdesk.application.dto import OrderLineSpec
from orderdesk.domain.model.order import OrderStatus
from orderdesk.domain.model.planned_shipment import PlannedShipmentStatus
from orderdesk.domain.model.value_objects import Money
from tests.fakes import FakeUnitOfWork


def _setup() -> tuple[CreateOrderHandler, FakeUnitOfWork]:
    uow = FakeUnitOfWork()
    return CreateOrderHandler(uow), uow


class TestCreateOrderHappyPath:

    def test_creates_pending_order_with_amount(self):
        handler, uow = _setup()
        result = handler.handle("Alice", [
            OrderLineSpec("SKU-A", 3, "15.00"),
            OrderLineSpec("SKU-B", 5, "25.00"),
        ])
        assert result.success
        assert result.order_number == "ORD-00001"

        order = uow.orders.get_by_id(result.order_id)
        assert order.status == OrderStatus.PENDING
        assert order.order_amount == Money.of("170.00")
        assert [i.sku for i in order.items] == ["SKU-A", "SKU-B"]
        assert all(i.id is not None for i in order.items)

    def test_explicit_order_number(self):
        handler, _ = _setup()
        result = handler.handle("Alice", [OrderLineSpec("SKU-A", 1, "1")], order_number="WEB-77")
        assert result.order_number == "WEB-77"

    def test_sequential_ids(self):
        handler, _ = _setup()
        first = handler.handle("Alice", [OrderLineSpec("SKU-A", 1, "1")])
        second = handler.handle("Bob", [OrderLineSpec("SKU-A", 1, "1")])
        assert second.order_id == first.order_id + 1
        assert second.order_number == "ORD-00002"


class TestPlannedGroups:

    def test_groups_become_planned_shipments(self):
        handler, uow = _setup()
        result = handler.handle(
            "Alice",
            [
                OrderLineSpec("SKU-A", 3, "15.00", "Spring"),
                OrderLineSpec("SKU-B", 5, "25.00", "Summer"),
                OrderLineSpec("SKU-C", 1, "5.00", "Spring"),
                OrderLineSpec("SKU-D", 1, "5.00"),
            ],
            ship_start=date(2026, 3, 1),
            ship_end=date(2026, 3, 15),
        )
        planned = uow.planned_shipments.list_for_order(result.order_id)
        assert sorted(p.name for p in planned) == ["Spring", "Summer"]
        assert all(p.status == PlannedShipmentStatus.PLANNED for p in planned)

        order = uow.orders.get_by_id(result.order_id)
        by_sku = {i.sku: i.planned_shipment_id for i in order.items}
        spring = next(p.id for p in planned if p.name == "Spring")
        assert by_sku["SKU-A"] == by_sku["SKU-C"] == spring
        assert by_sku["SKU-D"] is None
        assert (order.ship_start, order.ship_end) == (date(2026, 3, 1), date(2026, 3, 15))


class TestCreateOrderValidation:

    def test_requires_lines(self):
        handler, _ = _setup()
        result = handler.handle("Alice", [])
        assert not result.success
        assert result.error == "Order must contain at least one item"

    def test_requires_customer(self):
        handler, _ = _setup()
        result = handler.handle("  ", [OrderLineSpec("SKU-A", 1, "1")])
        assert result.error == "Customer name is required"

    def test_rejects_zero_quantity(self):
        handler, uow = _setup()
        result = handler.handle("Alice", [OrderLineSpec("SKU-A", 0, "1")])
        assert not result.success
        assert "must be positive" in result.error
        assert uow.orders.get_by_id(1) is None

    def test_rejects_bad_price(self):
        handler, _ = _setup()
        result = handler.handle("Alice", [OrderLineSpec("SKU-A", 1, "cheap")])
        assert "Invalid money amount" in result.error

    def test_database_failure_is_reported_and_rolled_back(self):
        handler, uow = _setup()
        uow.fail_on_commit = True
        result = handler.handle("Alice", [OrderLineSpec("SKU-A", 1, "1", "Wave 1")])
        assert result.error == "Failed to create order"
        assert uow.orders.get_by_id(1) is None
        assert uow.planned_shipments.get_by_id(1) is None
