"""Activity log writer backed by the ``activity_log`` table.

Writes in its own session so an entry never rides on (or breaks) the
use case's transaction.  If the insert fails the entry goes to the
``orderdesk.audit`` logger instead.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session, sessionmaker

from orderdesk.application.ports import ActivityEntry, ActivityLogger
from orderdesk.infrastructure.persistence.orm import ActivityLogRow

logger = logging.getLogger("orderdesk.audit")


class SqlActivityLogger(ActivityLogger):

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def log(self, entry: ActivityEntry) -> None:
        try:
            with self._session_factory() as session:
                session.add(
                    ActivityLogRow(
                        action=entry.action,
                        order_id=entry.order_id,
                        entity_id=entry.entity_id,
                        performed_by=entry.performed_by,
                        description=entry.description,
                        details=json.loads(json.dumps(entry.details, default=str)),
                        created_at=datetime.now(timezone.utc),
                    )
                )
                session.commit()
        except Exception:
            logger.warning(
                "[activity-fallback] %s | order %s | %s | %s | %s",
                entry.action,
                entry.order_id,
                entry.performed_by,
                entry.description,
                json.dumps(entry.details, default=str),
                exc_info=True,
            )
