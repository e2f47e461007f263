"""Result values returned by every mutating use case.

Handlers never let a DomainException escape: business-rule failures come
back as ``success=False`` with a readable ``error`` so callers (the CLI,
an HTTP layer) can render them without exception handling.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class OperationResult:
    success: bool
    error: str | None = None

    @classmethod
    def failed(cls, error: str) -> OperationResult:
        return cls(success=False, error=error)


@dataclass(frozen=True)
class EmailsSent:
    customer_email: str | None = None
    customer_attachments: list[str] = field(default_factory=list)
    rep_email: str | None = None
    platform_notified: bool = False


@dataclass(frozen=True)
class CreateShipmentResult(OperationResult):
    shipment_id: int | None = None
    external_fulfillment_id: str | None = None
    emails_sent: EmailsSent | None = None


@dataclass(frozen=True)
class CreateOrderResult(OperationResult):
    order_id: int | None = None
    order_number: str | None = None


@dataclass(frozen=True)
class AddOrderItemResult(OperationResult):
    item_id: int | None = None


@dataclass(frozen=True)
class AddTrackingResult(OperationResult):
    tracking_id: int | None = None


@dataclass(frozen=True)
class BulkCancelResult(OperationResult):
    cancelled_count: int = 0
