"""Abstract repository for Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from orderdesk.domain.model.order import Order


class OrderRepository(ABC):

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return an order with its items, or None if not found."""

    @abstractmethod
    def get_by_item_id(self, item_id: int) -> Order | None:
        """Return the order owning the given line item, or None."""

    @abstractmethod
    def save(self, order: Order) -> None:
        """Persist a new or updated order.

        Items are synchronised with the aggregate: new items are inserted
        (and get their ``id`` assigned), removed items are deleted.
        """
