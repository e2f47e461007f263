"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.

Configuration comes from the environment:

``ORDERDESK_DATABASE_URL``  SQLAlchemy URL (default: SQLite file in the data dir)
``ORDERDESK_DATA_DIR``      where the database and generated documents live
``ORDERDESK_LOG_LEVEL``     logging level name (default: WARNING)
``ORDERDESK_USER``          name recorded as performer in audit fields
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from orderdesk.application.ports import (
    ActivityLogger,
    DocumentGenerator,
    EmailDispatcher,
    FulfillmentPlatform,
)
from orderdesk.domain.repository.unit_of_work import UnitOfWork
from orderdesk.infrastructure.integrations.email_dispatcher import LoggingEmailDispatcher
from orderdesk.infrastructure.integrations.fulfillment_platform import (
    LoggingFulfillmentPlatform,
)
from orderdesk.infrastructure.integrations.text_documents import TextDocumentGenerator
from orderdesk.infrastructure.persistence.orm import Base
from orderdesk.infrastructure.persistence.sql_activity_logger import SqlActivityLogger
from orderdesk.infrastructure.persistence.sqlalchemy_unit_of_work import (
    SqlAlchemyUnitOfWork,
)

# Resolve data directory relative to the project root.
# When installed in editable mode the project root is the repo root.
_DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


def data_dir() -> Path:
    return Path(os.environ.get("ORDERDESK_DATA_DIR", str(_DEFAULT_DATA_DIR)))


def database_url() -> str:
    url = os.environ.get("ORDERDESK_DATABASE_URL")
    if url:
        return url
    return f"sqlite:///{data_dir() / 'orderdesk.db'}"


def current_user() -> str:
    return os.environ.get("ORDERDESK_USER", "admin")


def configure_logging() -> None:
    level = os.environ.get("ORDERDESK_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@lru_cache(maxsize=None)
def _engine(url: str) -> Engine:
    if url.startswith("sqlite:///") and not url.startswith("sqlite:///:memory:"):
        Path(url.removeprefix("sqlite:///")).parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(url)
    Base.metadata.create_all(engine)
    return engine


def session_factory() -> sessionmaker[Session]:
    return sessionmaker(bind=_engine(database_url()))


def unit_of_work() -> UnitOfWork:
    return SqlAlchemyUnitOfWork(session_factory())


def activity_logger() -> ActivityLogger:
    return SqlActivityLogger(session_factory())


def fulfillment_platform() -> FulfillmentPlatform:
    return LoggingFulfillmentPlatform()


def document_generator() -> DocumentGenerator:
    return TextDocumentGenerator(data_dir() / "documents")


def email_dispatcher() -> EmailDispatcher:
    return LoggingEmailDispatcher()
