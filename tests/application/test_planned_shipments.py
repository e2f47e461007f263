"""Integration tests for rescheduling planned shipments and moving items between them."""

from datetime import date

import pytest

from orderdesk.application.cancel_order_item import CancelOrderItemHandler
from orderdesk.application.create_shipment import CreateShipmentHandler
from orderdesk.application.dto import CreateShipmentSpec, ShipmentLineSpec
from orderdesk.application.move_planned_item import MovePlannedItemHandler
from orderdesk.application.update_planned_dates import UpdatePlannedDatesHandler
from orderdesk.application.void_shipment import VoidShipmentHandler
from orderdesk.domain.model.planned_shipment import PlannedShipmentStatus
from tests.fakes import (
    FakeActivityLogger,
    FakeDocumentGenerator,
    FakeEmailDispatcher,
    FakeFulfillmentPlatform,
    FakeUnitOfWork,
    place_order,
)

_LINES = [
    ("SKU-A", 10, "5.00", "Spring"),
    ("SKU-B", 4, "2.50", "Summer"),
    ("SKU-C", 2, "1.00", "Summer"),
]


def _ship(uow: FakeUnitOfWork, order_id: int, *lines: tuple, **kwargs) -> int:
    handler = CreateShipmentHandler(
        uow, FakeFulfillmentPlatform(), FakeDocumentGenerator(),
        FakeEmailDispatcher(), FakeActivityLogger(),
    )
    result = handler.handle(
        CreateShipmentSpec(order_id, [ShipmentLineSpec(*line) for line in lines], **kwargs),
        "bob",
    )
    assert result.success, result.error
    return result.shipment_id


@pytest.fixture
def uow() -> FakeUnitOfWork:
    return FakeUnitOfWork()


@pytest.fixture
def order_id(uow) -> int:
    return place_order(uow, _LINES, ship_start=date(2026, 3, 1), ship_end=date(2026, 3, 5))


class TestUpdatePlannedDates:

    def test_rolls_up_order_window(self, uow, order_id):
        result = UpdatePlannedDatesHandler(uow).handle(2, date(2026, 3, 10), date(2026, 3, 20))
        assert result.success

        assert uow.planned_shipments.get_by_id(2).planned_ship_end == date(2026, 3, 20)
        order = uow.orders.get_by_id(order_id)
        assert (order.ship_start, order.ship_end) == (date(2026, 3, 1), date(2026, 3, 20))

    def test_end_before_start_rejected(self, uow, order_id):
        result = UpdatePlannedDatesHandler(uow).handle(1, date(2026, 3, 10), date(2026, 3, 9))
        assert result.error == "Planned ship end 2026-03-09 is before start 2026-03-10"
        assert uow.planned_shipments.get_by_id(1).planned_ship_start == date(2026, 3, 1)

    def test_only_pending_orders(self, uow, order_id):
        _ship(uow, order_id, (1, 1))
        result = UpdatePlannedDatesHandler(uow).handle(1, date(2026, 4, 1), date(2026, 4, 2))
        assert result.error == "Planned shipments can only be changed on pending orders"

    def test_unknown_planned_shipment(self, uow, order_id):
        result = UpdatePlannedDatesHandler(uow).handle(9, date(2026, 4, 1), date(2026, 4, 2))
        assert result.error == "Planned shipment not found"


class TestMovePlannedItem:

    def test_move_keeps_both_groupings_when_source_not_empty(self, uow, order_id):
        result = MovePlannedItemHandler(uow).handle(2, 1)
        assert result.success

        order = uow.orders.get_by_id(order_id)
        assert [i.planned_shipment_id for i in order.items] == [1, 1, 2]
        assert uow.planned_shipments.get_by_id(2) is not None

    def test_empty_source_is_deleted_and_window_rolled_up(self, uow, order_id):
        UpdatePlannedDatesHandler(uow).handle(1, date(2026, 2, 1), date(2026, 2, 3))
        result = MovePlannedItemHandler(uow).handle(1, 2)
        assert result.success

        assert uow.planned_shipments.get_by_id(1) is None
        order = uow.orders.get_by_id(order_id)
        assert [i.planned_shipment_id for i in order.items] == [2, 2, 2]
        assert (order.ship_start, order.ship_end) == (date(2026, 3, 1), date(2026, 3, 5))

    def test_empty_source_with_shipments_is_kept(self, uow, order_id):
        shipment_id = _ship(uow, order_id, (1, 1), planned_shipment_id=1)
        VoidShipmentHandler(uow, FakeActivityLogger()).handle(shipment_id, "Other", "carol")

        result = MovePlannedItemHandler(uow).handle(1, 2)
        assert result.success
        assert uow.planned_shipments.get_by_id(1) is not None

    def test_target_status_recomputed(self, uow, order_id):
        CancelOrderItemHandler(uow, FakeActivityLogger()).handle(1, 10, "Discontinued", "carol")
        assert uow.planned_shipments.get_by_id(1).status == PlannedShipmentStatus.CANCELLED

        MovePlannedItemHandler(uow).handle(2, 1)
        assert uow.planned_shipments.get_by_id(1).status == PlannedShipmentStatus.PLANNED

    def test_target_must_belong_to_same_order(self, uow, order_id):
        other = place_order(uow, [("SKU-X", 1, "1.00", "Solo")])
        foreign = uow.planned_shipments.list_for_order(other)[0]
        result = MovePlannedItemHandler(uow).handle(1, foreign.id)
        assert result.error == "Planned shipment not found"

    def test_already_in_target(self, uow, order_id):
        result = MovePlannedItemHandler(uow).handle(1, 1)
        assert result.error == "SKU-A is already in planned shipment 'Spring'"

    def test_only_pending_orders(self, uow, order_id):
        _ship(uow, order_id, (2, 1))
        result = MovePlannedItemHandler(uow).handle(1, 2)
        assert result.error == "Planned shipments can only be changed on pending orders"
