"""In-memory fakes for testing.

The repositories implement the same abstract interfaces as the
SQLAlchemy ones but keep everything in dicts.  Like a real database they
hand out copies, so a handler only changes stored state through
``save()``.  ``FakeUnitOfWork`` snapshots the stores on entry and
restores them unless ``commit()`` was called.
"""

from __future__ import annotations

from copy import deepcopy

from orderdesk.application.create_order import CreateOrderHandler
from orderdesk.application.dto import OrderLineSpec
from orderdesk.application.ports import (
    ActivityEntry,
    ActivityLogger,
    DocumentGenerator,
    EmailDispatcher,
    FulfillmentPlatform,
    ShipmentEmail,
)
from orderdesk.domain.exceptions import PersistenceError
from orderdesk.domain.model.order import Order
from orderdesk.domain.model.planned_shipment import PlannedShipment
from orderdesk.domain.model.shipment import Shipment, ShipmentTracking
from orderdesk.domain.repository.order_repository import OrderRepository
from orderdesk.domain.repository.planned_shipment_repository import (
    PlannedShipmentRepository,
)
from orderdesk.domain.repository.shipment_repository import ShipmentRepository
from orderdesk.domain.repository.unit_of_work import UnitOfWork


class _Sequence:
    def __init__(self) -> None:
        self.value = 0

    def next(self) -> int:
        self.value += 1
        return self.value


class FakeOrderRepository(OrderRepository):

    def __init__(self) -> None:
        self._store: dict[int, Order] = {}
        self._ids = _Sequence()
        self._item_ids = _Sequence()

    def get_by_id(self, order_id: int) -> Order | None:
        order = self._store.get(order_id)
        return deepcopy(order) if order is not None else None

    def get_by_item_id(self, item_id: int) -> Order | None:
        for order in self._store.values():
            if any(item.id == item_id for item in order.items):
                return deepcopy(order)
        return None

    def save(self, order: Order) -> None:
        if order.id is None:
            order.id = self._ids.next()
        for item in order.items:
            if item.id is None:
                item.id = self._item_ids.next()
            item.order_id = order.id
        order.recalculate_amount()
        self._store[order.id] = deepcopy(order)


class FakeShipmentRepository(ShipmentRepository):

    def __init__(self) -> None:
        self._store: dict[int, Shipment] = {}
        self._ids = _Sequence()
        self._child_ids = _Sequence()

    def get_by_id(self, shipment_id: int) -> Shipment | None:
        shipment = self._store.get(shipment_id)
        return deepcopy(shipment) if shipment is not None else None

    def list_for_order(self, order_id: int) -> list[Shipment]:
        found = [s for s in self._store.values() if s.order_id == order_id]
        found.sort(key=lambda s: (s.created_at, s.id), reverse=True)
        return deepcopy(found)

    def count_for_planned_shipment(self, planned_shipment_id: int) -> int:
        return sum(
            1 for s in self._store.values()
            if s.planned_shipment_id == planned_shipment_id
        )

    def save(self, shipment: Shipment) -> None:
        if shipment.id is None:
            shipment.id = self._ids.next()
        for child in [*shipment.items, *shipment.tracking]:
            if child.id is None:
                child.id = self._child_ids.next()
        self._store[shipment.id] = deepcopy(shipment)


class FakePlannedShipmentRepository(PlannedShipmentRepository):

    def __init__(self) -> None:
        self._store: dict[int, PlannedShipment] = {}
        self._ids = _Sequence()

    def get_by_id(self, planned_shipment_id: int) -> PlannedShipment | None:
        planned = self._store.get(planned_shipment_id)
        return deepcopy(planned) if planned is not None else None

    def list_for_order(self, order_id: int) -> list[PlannedShipment]:
        found = [p for p in self._store.values() if p.order_id == order_id]
        return deepcopy(sorted(found, key=lambda p: (p.planned_ship_start, p.id)))

    def save(self, planned: PlannedShipment) -> None:
        if planned.id is None:
            planned.id = self._ids.next()
        self._store[planned.id] = deepcopy(planned)

    def delete(self, planned_shipment_id: int) -> None:
        self._store.pop(planned_shipment_id, None)


class FakeUnitOfWork(UnitOfWork):

    def __init__(self) -> None:
        self.orders = FakeOrderRepository()
        self.shipments = FakeShipmentRepository()
        self.planned_shipments = FakePlannedShipmentRepository()
        self.commits = 0
        self.fail_on_commit = False
        self._snapshot: tuple | None = None

    def __enter__(self) -> FakeUnitOfWork:
        self._snapshot = deepcopy(
            (self.orders.__dict__, self.shipments.__dict__, self.planned_shipments.__dict__)
        )
        return self

    def commit(self) -> None:
        if self.fail_on_commit:
            raise PersistenceError("simulated database failure")
        self.commits += 1
        self._snapshot = None

    def rollback(self) -> None:
        if self._snapshot is None:
            return
        orders, shipments, planned = self._snapshot
        self.orders.__dict__.update(orders)
        self.shipments.__dict__.update(shipments)
        self.planned_shipments.__dict__.update(planned)
        self._snapshot = None


# --- Collaborators ------------------------------------------------------------


class FakeFulfillmentPlatform(FulfillmentPlatform):

    def __init__(self, fulfillment_id: str | None = "F-1", fail: bool = False) -> None:
        self.fulfillment_id = fulfillment_id
        self.fail = fail
        self.calls: list[tuple[str, ShipmentTracking | None, bool]] = []

    def create_fulfillment(
        self,
        external_order_id: str,
        tracking: ShipmentTracking | None,
        notify_customer: bool,
    ) -> str | None:
        self.calls.append((external_order_id, tracking, notify_customer))
        if self.fail:
            raise ConnectionError("platform unavailable")
        return self.fulfillment_id


class FakeDocumentGenerator(DocumentGenerator):

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[list[str]] = []

    def generate(self, order: Order, shipment: Shipment, kinds: list[str]) -> list[str]:
        self.calls.append(list(kinds))
        if self.fail:
            raise OSError("disk full")
        return [f"{order.order_number}-{kind}.txt" for kind in kinds]


class FakeEmailDispatcher(EmailDispatcher):

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[ShipmentEmail] = []

    def send_shipment_email(self, email: ShipmentEmail) -> None:
        if self.fail:
            raise ConnectionError("smtp down")
        self.sent.append(email)


class FakeActivityLogger(ActivityLogger):

    def __init__(self) -> None:
        self.entries: list[ActivityEntry] = []

    def log(self, entry: ActivityEntry) -> None:
        self.entries.append(entry)

    def actions(self) -> list[str]:
        return [e.action for e in self.entries]


# --- Seeding ------------------------------------------------------------------


def place_order(
    uow: FakeUnitOfWork,
    lines: list[tuple] | None = None,
    **kwargs,
) -> int:
    """Create an order through the real handler; returns its id.

    ``lines`` are ``(sku, quantity, price)`` or ``(sku, quantity, price, group)``.
    """
    if lines is None:
        lines = [("SKU-A", 10, "5.00"), ("SKU-B", 4, "2.50")]
    kwargs.setdefault("customer_email", "alice@example.com")
    result = CreateOrderHandler(uow).handle(
        "Alice", [OrderLineSpec(*line) for line in lines], **kwargs
    )
    assert result.success, result.error
    return result.order_id
