"""Integration tests for the CreateShipment use case.

The core transaction must be all-or-nothing; the auxiliary steps after
commit must never change the outcome.
"""

import logging

import pytest

from orderdesk.application.change_order_status import ChangeOrderStatusHandler
from orderdesk.application.create_shipment import CreateShipmentHandler
from orderdesk.application.dto import CreateShipmentSpec, ShipmentLineSpec, TrackingSpec
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


class _Env:
    def __init__(self, **order_kwargs) -> None:
        self.uow = FakeUnitOfWork()
        self.platform = FakeFulfillmentPlatform()
        self.documents = FakeDocumentGenerator()
        self.emails = FakeEmailDispatcher()
        self.activity = FakeActivityLogger()
        self.order_id = place_order(self.uow, **order_kwargs)

    def handler(self) -> CreateShipmentHandler:
        return CreateShipmentHandler(
            self.uow, self.platform, self.documents, self.emails, self.activity
        )

    def ship(self, *lines: tuple, **kwargs):
        spec = CreateShipmentSpec(
            order_id=kwargs.pop("order_id", self.order_id),
            lines=[ShipmentLineSpec(*line) for line in lines],
            **kwargs,
        )
        return self.handler().handle(spec, performed_by="bob")

    def order(self):
        return self.uow.orders.get_by_id(self.order_id)


@pytest.fixture
def env() -> _Env:
    return _Env(rep_email="rep@example.com")


class TestCreateShipmentCore:

    def test_ship_everything_marks_order_shipped(self, env):
        result = env.ship((1, 10), (2, 4), shipping_cost="7.00")
        assert result.success
        assert result.shipment_id == 1

        shipment = env.uow.shipments.get_by_id(1)
        assert shipment.shipped_subtotal == Money.of("60.00")
        assert shipment.shipped_total == Money.of("67.00")
        assert shipment.created_by == "bob"
        assert env.order().status == OrderStatus.SHIPPED

    def test_partial_shipment(self, env):
        env.ship((1, 4))
        assert env.order().status == OrderStatus.PARTIALLY_SHIPPED

    def test_price_override_changes_line_price(self, env):
        env.ship((1, 2, "4.00"))
        shipment = env.uow.shipments.get_by_id(1)
        assert shipment.items[0].unit_price == Money.of("4.00")
        assert shipment.shipped_subtotal == Money.of("8.00")

    def test_tracking_recorded(self, env):
        result = env.ship((1, 1), tracking=TrackingSpec("fedex", "7777"))
        shipment = env.uow.shipments.get_by_id(result.shipment_id)
        assert shipment.tracking[0].tracking_number == "7777"
        assert shipment.tracking[0].id is not None

    def test_activity_entry_written(self, env):
        env.ship((1, 1))
        assert env.activity.actions() == ["shipment_created"]
        assert env.activity.entries[0].performed_by == "bob"


class TestCreateShipmentValidation:

    def test_order_not_found(self, env):
        result = env.ship((1, 1), order_id=99)
        assert result.error == "Order not found"

    def test_no_lines(self, env):
        result = env.ship()
        assert result.error == "Shipment must contain at least one item"

    def test_foreign_item(self, env):
        result = env.ship((99, 1))
        assert result.error == "Order item 99 not found"

    def test_zero_quantity(self, env):
        result = env.ship((1, 0))
        assert result.error == "Invalid quantity for item SKU-A"

    def test_cannot_ship_more_than_remaining(self, env):
        env.ship((1, 8))
        result = env.ship((1, 3))
        assert result.error == "Cannot ship 3 of SKU-A - only 2 remaining"
        assert len(env.uow.shipments.list_for_order(env.order_id)) == 1

    def test_same_item_twice_in_one_shipment_counts_both(self, env):
        result = env.ship((1, 6), (1, 6))
        assert result.error == "Cannot ship 6 of SKU-A - only 4 remaining"

    def test_planned_shipment_of_another_order(self, env):
        other = place_order(env.uow, [("SKU-Z", 1, "1", "Wave 1")])
        planned = env.uow.planned_shipments.list_for_order(other)[0]
        result = env.ship((1, 1), planned_shipment_id=planned.id)
        assert "not found on this order" in result.error

    def test_unknown_carrier(self, env):
        result = env.ship((1, 1), tracking=TrackingSpec("Pigeon", "1"))
        assert result.error.startswith("Unknown carrier 'Pigeon'")

    def test_invoiced_order_rejected(self, env):
        ChangeOrderStatusHandler(env.uow, env.activity).handle(env.order_id, "Invoiced", "bob")
        result = env.ship((1, 1))
        assert result.error == "Cannot modify invoiced orders"

    def test_infinite_shipping_cost_rejected(self, env):
        result = env.ship((1, 1), shipping_cost="Infinity")
        assert result.success is False
        assert result.error == "Money amount must be finite, got Infinity"
        assert env.uow.shipments.list_for_order(env.order_id) == []
        assert env.activity.entries == []

    def test_infinite_price_override_rejected(self, env):
        result = env.ship((1, 1, "Infinity"))
        assert result.error == "Money amount must be finite, got Infinity"
        assert env.uow.shipments.list_for_order(env.order_id) == []

    def test_negative_shipping_cost_rejected(self, env):
        result = env.ship((1, 1), shipping_cost="-2.00")
        assert result.error == "Money amount cannot be negative, got -2.00"
        assert env.uow.shipments.list_for_order(env.order_id) == []

    def test_failure_writes_nothing(self, env):
        env.ship((99, 1))
        assert env.uow.shipments.list_for_order(env.order_id) == []
        assert env.order().status == OrderStatus.PENDING
        assert env.activity.entries == []
        assert env.emails.sent == []

    def test_database_failure(self, env, caplog):
        env.uow.fail_on_commit = True
        with caplog.at_level(logging.ERROR, logger="orderdesk.shipments"):
            result = env.ship((1, 1))
        assert result.error == "Failed to create shipment"
        assert "create_shipment failed" in caplog.text
        assert env.uow.shipments.get_by_id(1) is None


class TestPlannedShipmentRefresh:

    def test_member_planned_shipment_moves_with_shipments(self):
        env = _Env(lines=[("SKU-A", 10, "5.00", "Wave 1"), ("SKU-B", 4, "2.50", "Wave 1")])
        env.ship((1, 10))
        assert env.uow.planned_shipments.get_by_id(1).status == PlannedShipmentStatus.PARTIALLY_FULFILLED
        env.ship((2, 4), planned_shipment_id=1)
        assert env.uow.planned_shipments.get_by_id(1).status == PlannedShipmentStatus.FULFILLED


class TestPlatformSync:

    def test_fulfillment_id_stored(self):
        env = _Env(external_order_id="SHOP-1")
        result = env.ship(
            (1, 1), tracking=TrackingSpec("UPS", "1Z1"), notify_platform=True
        )
        assert result.external_fulfillment_id == "F-1"
        assert result.emails_sent.platform_notified is True
        assert env.uow.shipments.get_by_id(result.shipment_id).external_fulfillment_id == "F-1"
        external_id, tracking, notify = env.platform.calls[0]
        assert (external_id, tracking.tracking_number, notify) == ("SHOP-1", "1Z1", True)

    def test_skipped_without_external_order(self, env):
        result = env.ship((1, 1))
        assert env.platform.calls == []
        assert result.external_fulfillment_id is None
        assert result.emails_sent.platform_notified is False

    def test_platform_failure_does_not_fail_shipment(self, caplog):
        env = _Env(external_order_id="SHOP-1")
        env.platform.fail = True
        with caplog.at_level(logging.WARNING, logger="orderdesk.shipments"):
            result = env.ship((1, 1))
        assert result.success
        assert result.external_fulfillment_id is None
        assert env.uow.shipments.get_by_id(result.shipment_id) is not None
        assert "fulfillment sync failed" in caplog.text


class TestDocumentsAndEmails:

    def test_customer_email_with_attachments(self, env):
        result = env.ship(
            (1, 2), notify_customer=True, attach_invoice=True, attach_packing_slip=True
        )
        assert env.documents.calls == [["invoice", "packing-slip"]]
        email = env.emails.sent[0]
        assert email.recipient == "alice@example.com"
        assert email.recipient_role == "customer"
        assert email.attachments == ["ORD-00001-invoice.txt", "ORD-00001-packing-slip.txt"]
        assert email.lines[0].sku == "SKU-A"
        assert result.emails_sent.customer_email == "alice@example.com"
        assert result.emails_sent.customer_attachments == email.attachments

    def test_override_address(self, env):
        result = env.ship((1, 1), notify_customer=True, customer_email_override="ap@corp.test")
        assert env.emails.sent[0].recipient == "ap@corp.test"
        assert result.emails_sent.customer_email == "ap@corp.test"

    def test_rep_notification(self, env):
        result = env.ship((1, 1), notify_rep=True)
        assert [e.recipient for e in env.emails.sent] == ["rep@example.com"]
        assert result.emails_sent.rep_email == "rep@example.com"
        assert result.emails_sent.customer_email is None

    def test_no_flags_no_side_effects(self, env):
        env.ship((1, 1))
        assert env.documents.calls == []
        assert env.emails.sent == []

    def test_document_failure_still_emails_without_attachments(self, env):
        env.documents.fail = True
        result = env.ship((1, 1), notify_customer=True, attach_invoice=True)
        assert result.success
        assert env.emails.sent[0].attachments == []

    def test_email_failure_does_not_fail_shipment(self, env, caplog):
        env.emails.fail = True
        with caplog.at_level(logging.WARNING, logger="orderdesk.shipments"):
            result = env.ship((1, 1), notify_customer=True, notify_rep=True)
        assert result.success
        assert result.emails_sent.customer_email is None
        assert result.emails_sent.rep_email is None
        assert "customer email failed" in caplog.text
        assert env.order().status == OrderStatus.PARTIALLY_SHIPPED
