"""SQLAlchemy table mappings.

Rows are persistence shapes only; repositories translate them to and
from the domain dataclasses.  ``shipment_items.order_item_id`` carries
no foreign key: a voided shipment may keep pointing at a line that was
removed from the order afterwards.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

_MONEY = Numeric(12, 2)


class Base(DeclarativeBase):
    pass


class OrderRow(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_number: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    customer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    rep_email: Mapped[str | None] = mapped_column(String(200), nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    status: Mapped[str] = mapped_column(String(32), nullable=False)
    order_amount: Mapped[Decimal] = mapped_column(_MONEY, nullable=False)
    external_order_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    ship_start: Mapped[date | None] = mapped_column(Date, nullable=True)
    ship_end: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    items: Mapped[list[OrderItemRow]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemRow.id",
    )

    __table_args__ = (Index("ix_orders_order_number", "order_number"),)


class OrderItemRow(Base):
    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sku: Mapped[str] = mapped_column(String(100), nullable=False)
    ordered_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    cancelled_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    unit_price: Mapped[Decimal] = mapped_column(_MONEY, nullable=False)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    variant_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    planned_shipment_id: Mapped[int | None] = mapped_column(
        ForeignKey("planned_shipments.id"), nullable=True, index=True
    )
    cancelled_reason: Mapped[str | None] = mapped_column(String(100), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_by: Mapped[str | None] = mapped_column(String(100), nullable=True)

    order: Mapped[OrderRow] = relationship(back_populates="items")


class PlannedShipmentRow(Base):
    __tablename__ = "planned_shipments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    planned_ship_start: Mapped[date] = mapped_column(Date, nullable=False)
    planned_ship_end: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False)


class ShipmentRow(Base):
    __tablename__ = "shipments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    planned_shipment_id: Mapped[int | None] = mapped_column(
        ForeignKey("planned_shipments.id"), nullable=True, index=True
    )
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    shipped_subtotal: Mapped[Decimal] = mapped_column(_MONEY, nullable=False)
    shipping_cost: Mapped[Decimal] = mapped_column(_MONEY, nullable=False)
    # stored for reporting queries; always subtotal + shipping cost
    shipped_total: Mapped[Decimal] = mapped_column(_MONEY, nullable=False)
    ship_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_by: Mapped[str] = mapped_column(String(100), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    external_fulfillment_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    voided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    voided_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    void_reason: Mapped[str | None] = mapped_column(String(100), nullable=True)
    void_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    items: Mapped[list[ShipmentItemRow]] = relationship(
        cascade="all, delete-orphan", order_by="ShipmentItemRow.id"
    )
    tracking: Mapped[list[ShipmentTrackingRow]] = relationship(
        cascade="all, delete-orphan", order_by="ShipmentTrackingRow.id"
    )

    __table_args__ = (
        Index("ix_shipments_order_voided", "order_id", "voided_at"),
    )


class ShipmentItemRow(Base):
    __tablename__ = "shipment_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    shipment_id: Mapped[int] = mapped_column(
        ForeignKey("shipments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    order_item_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    quantity_shipped: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(_MONEY, nullable=False)
    price_override: Mapped[Decimal | None] = mapped_column(_MONEY, nullable=True)


class ShipmentTrackingRow(Base):
    __tablename__ = "shipment_tracking"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    shipment_id: Mapped[int] = mapped_column(
        ForeignKey("shipments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    carrier: Mapped[str] = mapped_column(String(16), nullable=False)
    tracking_number: Mapped[str] = mapped_column(String(100), nullable=False)
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class ActivityLogRow(Base):
    __tablename__ = "activity_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    order_id: Mapped[int] = mapped_column(Integer, nullable=False)
    entity_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    performed_by: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    details: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (Index("ix_activity_log_order", "order_id", "created_at"),)
