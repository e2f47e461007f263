"""Integration tests for adding, updating and removing order items."""

import pytest

from orderdesk.application.add_order_item import AddOrderItemHandler
from orderdesk.application.create_shipment import CreateShipmentHandler
from orderdesk.application.dto import CreateShipmentSpec, ShipmentLineSpec
from orderdesk.application.remove_order_item import RemoveOrderItemHandler
from orderdesk.application.update_order_item import UpdateOrderItemHandler
from orderdesk.domain.model.order import OrderStatus
from orderdesk.domain.model.planned_shipment import PlannedShipmentStatus
from orderdesk.domain.model.value_objects import Money
from tests.fakes import (
    FakeActivityLogger,
    FakeDocumentGenerator,
    FakeEmailDispatcher,
    FakeFulfillmentPlatform,
    FakeUnitOfWork,
    place_order,
)


def _ship(uow: FakeUnitOfWork, order_id: int, *lines: tuple) -> None:
    handler = CreateShipmentHandler(
        uow, FakeFulfillmentPlatform(), FakeDocumentGenerator(),
        FakeEmailDispatcher(), FakeActivityLogger(),
    )
    result = handler.handle(
        CreateShipmentSpec(order_id, [ShipmentLineSpec(*line) for line in lines]), "bob"
    )
    assert result.success, result.error


@pytest.fixture
def uow() -> FakeUnitOfWork:
    return FakeUnitOfWork()


class TestAddOrderItem:

    def test_adds_manual_line(self, uow):
        order_id = place_order(uow)
        result = AddOrderItemHandler(uow).handle(order_id, " SKU-X ", 2, "3.00", "dave")
        assert result.success

        order = uow.orders.get_by_id(order_id)
        added = order.items[-1]
        assert added.id == result.item_id
        assert added.sku == "SKU-X"
        assert added.variant_id is None
        assert added.notes == "Added by dave"
        assert order.order_amount == Money.of("66.00")

    def test_adding_to_shipped_order_reopens_it(self, uow):
        order_id = place_order(uow, [("SKU-A", 2, "5.00")])
        _ship(uow, order_id, (1, 2))
        assert uow.orders.get_by_id(order_id).status == OrderStatus.SHIPPED

        AddOrderItemHandler(uow).handle(order_id, "SKU-B", 1, "1.00", "dave")
        assert uow.orders.get_by_id(order_id).status == OrderStatus.PARTIALLY_SHIPPED

    def test_unknown_order(self, uow):
        result = AddOrderItemHandler(uow).handle(5, "SKU-X", 1, "1.00", "dave")
        assert result.error == "Order not found"

    def test_rejects_zero_quantity(self, uow):
        order_id = place_order(uow)
        result = AddOrderItemHandler(uow).handle(order_id, "SKU-X", 0, "1.00", "dave")
        assert result.error == "Quantity must be positive"
        assert len(uow.orders.get_by_id(order_id).items) == 2

    def test_rejects_infinite_price(self, uow):
        order_id = place_order(uow)
        result = AddOrderItemHandler(uow).handle(order_id, "SKU-X", 1, "Infinity", "dave")
        assert result.success is False
        assert result.error == "Money amount must be finite, got Infinity"
        order = uow.orders.get_by_id(order_id)
        assert len(order.items) == 2
        assert order.order_amount == Money.of("60.00")


class TestUpdateOrderItem:

    def test_updates_quantity_price_and_notes(self, uow):
        order_id = place_order(uow)
        result = UpdateOrderItemHandler(uow).handle(1, quantity=4, price="6.00", notes="resized")
        assert result.success

        order = uow.orders.get_by_id(order_id)
        assert order.items[0].ordered_quantity == 4
        assert order.items[0].notes == "resized"
        assert order.order_amount == Money.of("34.00")

    def test_quantity_floor(self, uow):
        order_id = place_order(uow)
        _ship(uow, order_id, (1, 6))
        result = UpdateOrderItemHandler(uow).handle(1, quantity=5)
        assert result.error == "Quantity for SKU-A cannot go below 6 (6 shipped, 0 cancelled)"

    def test_lowering_to_shipped_completes_item(self, uow):
        order_id = place_order(uow, [("SKU-A", 10, "5.00", "Wave 1")])
        _ship(uow, order_id, (1, 6))
        UpdateOrderItemHandler(uow).handle(1, quantity=6)
        assert uow.orders.get_by_id(order_id).status == OrderStatus.SHIPPED
        assert uow.planned_shipments.get_by_id(1).status == PlannedShipmentStatus.FULFILLED

    def test_unknown_item(self, uow):
        result = UpdateOrderItemHandler(uow).handle(7, quantity=1)
        assert result.error == "Item not found"


class TestRemoveOrderItem:

    def test_remove_unshipped_item_recomputes_amount(self, uow):
        order_id = place_order(uow)
        result = RemoveOrderItemHandler(uow).handle(2)
        assert result.success

        order = uow.orders.get_by_id(order_id)
        assert [i.sku for i in order.items] == ["SKU-A"]
        assert order.order_amount == Money.of("50.00")

    def test_remove_shipped_item_rejected(self, uow):
        order_id = place_order(uow)
        _ship(uow, order_id, (1, 3))
        result = RemoveOrderItemHandler(uow).handle(1)
        assert result.error == "Cannot remove SKU-A - 3 units have already been shipped"
        assert len(uow.orders.get_by_id(order_id).items) == 2

    def test_removing_last_open_item_completes_order(self, uow):
        order_id = place_order(uow)
        _ship(uow, order_id, (1, 10))
        assert uow.orders.get_by_id(order_id).status == OrderStatus.PARTIALLY_SHIPPED

        RemoveOrderItemHandler(uow).handle(2)
        assert uow.orders.get_by_id(order_id).status == OrderStatus.SHIPPED
