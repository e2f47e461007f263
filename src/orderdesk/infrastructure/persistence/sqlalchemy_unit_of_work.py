"""SQLAlchemy implementation of UnitOfWork.

Each ``with`` block opens a fresh session from the factory.  Any
SQLAlchemy error raised inside the block, or by ``commit()``, reaches the
application layer as ``PersistenceError``.
"""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from orderdesk.domain.exceptions import PersistenceError
from orderdesk.domain.repository.unit_of_work import UnitOfWork
from orderdesk.infrastructure.persistence.sql_order_repository import SqlOrderRepository
from orderdesk.infrastructure.persistence.sql_planned_shipment_repository import (
    SqlPlannedShipmentRepository,
)
from orderdesk.infrastructure.persistence.sql_shipment_repository import (
    SqlShipmentRepository,
)


class SqlAlchemyUnitOfWork(UnitOfWork):

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory
        self._session: Session | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        self._session = self._session_factory()
        self.orders = SqlOrderRepository(self._session)
        self.shipments = SqlShipmentRepository(self._session)
        self.planned_shipments = SqlPlannedShipmentRepository(self._session)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self.rollback()
        finally:
            if self._session is not None:
                self._session.close()
                self._session = None
        if isinstance(exc, SQLAlchemyError):
            raise PersistenceError(f"Database error: {exc}") from exc

    def commit(self) -> None:
        try:
            self._active_session().commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Database error: {exc}") from exc

    def rollback(self) -> None:
        if self._session is not None:
            self._session.rollback()

    def _active_session(self) -> Session:
        if self._session is None:
            raise RuntimeError("Unit of work used outside of a 'with' block")
        return self._session
