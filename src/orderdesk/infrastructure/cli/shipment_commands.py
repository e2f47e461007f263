"""CLI commands for the Shipment aggregate."""

from __future__ import annotations

import click

from orderdesk.application.add_tracking import AddTrackingHandler
from orderdesk.application.create_shipment import CreateShipmentHandler
from orderdesk.application.dto import CreateShipmentSpec, ShipmentLineSpec, TrackingSpec
from orderdesk.application.shipment_queries import ListShipmentsHandler, ShipmentSummaryHandler
from orderdesk.application.update_shipment import UpdateShipmentHandler
from orderdesk.application.void_shipment import VoidShipmentHandler
from orderdesk.domain.model.shipment import VOID_REASONS, Carrier
from orderdesk.infrastructure.bootstrap import (
    activity_logger,
    current_user,
    document_generator,
    email_dispatcher,
    fulfillment_platform,
    unit_of_work,
)

_CARRIERS = [c.value for c in Carrier]


def _parse_lines(raw: str) -> list[ShipmentLineSpec]:
    """Parse 'ItemId:Qty[:Price],...' into ShipmentLineSpec list."""
    specs: list[ShipmentLineSpec] = []
    for chunk in raw.split(","):
        parts = [p.strip() for p in chunk.strip().split(":")]
        if len(parts) not in (2, 3):
            raise click.BadParameter(
                f"Invalid line format '{chunk.strip()}'. Expected 'ItemId:Qty[:Price]'."
            )
        try:
            item_id, qty = int(parts[0]), int(parts[1])
        except ValueError:
            raise click.BadParameter(f"Invalid item id or quantity in '{chunk.strip()}'.")
        override = parts[2] if len(parts) == 3 and parts[2] else None
        specs.append(ShipmentLineSpec(order_item_id=item_id, quantity=qty, price_override=override))
    return specs


@click.command("create")
@click.option("--order", "order_id", required=True, type=int, help="Order ID.")
@click.option("--lines", required=True, help="Lines as 'ItemId:Qty[:Price],...'.")
@click.option("--shipping-cost", default="0", help="Shipping cost charged.")
@click.option("--ship-date", type=click.DateTime(["%Y-%m-%d"]), default=None)
@click.option("--carrier", type=click.Choice(_CARRIERS, case_sensitive=False), default=None)
@click.option("--tracking", "tracking_number", default=None, help="Tracking number.")
@click.option("--planned", "planned_shipment_id", type=int, default=None,
              help="Planned shipment this fulfils.")
@click.option("--notes", default=None)
@click.option("--notify-customer", is_flag=True, default=False)
@click.option("--customer-email", default=None, help="One-off customer address.")
@click.option("--attach-invoice", is_flag=True, default=False)
@click.option("--attach-packing-slip", is_flag=True, default=False)
@click.option("--notify-rep", is_flag=True, default=False)
@click.option("--notify-platform", is_flag=True, default=False)
def shipment_create(
    order_id: int,
    lines: str,
    shipping_cost: str,
    ship_date,
    carrier: str | None,
    tracking_number: str | None,
    planned_shipment_id: int | None,
    notes: str | None,
    notify_customer: bool,
    customer_email: str | None,
    attach_invoice: bool,
    attach_packing_slip: bool,
    notify_rep: bool,
    notify_platform: bool,
) -> None:
    """Record a shipment against an order."""
    if bool(carrier) != bool(tracking_number):
        raise click.ClickException("--carrier and --tracking must be given together")

    spec = CreateShipmentSpec(
        order_id=order_id,
        lines=_parse_lines(lines),
        shipping_cost=shipping_cost,
        ship_date=ship_date.date() if ship_date else None,
        tracking=TrackingSpec(carrier, tracking_number) if carrier and tracking_number else None,
        planned_shipment_id=planned_shipment_id,
        notes=notes,
        notify_customer=notify_customer,
        attach_invoice=attach_invoice,
        attach_packing_slip=attach_packing_slip,
        notify_rep=notify_rep,
        notify_platform=notify_platform,
        customer_email_override=customer_email,
    )
    handler = CreateShipmentHandler(
        uow=unit_of_work(),
        platform=fulfillment_platform(),
        documents=document_generator(),
        emails=email_dispatcher(),
        activity=activity_logger(),
    )
    result = handler.handle(spec, performed_by=current_user())
    if not result.success:
        raise click.ClickException(result.error or "Shipment creation failed")

    click.echo(f"Shipment #{result.shipment_id} created for order #{order_id}.")
    sent = result.emails_sent
    if sent is not None:
        if sent.customer_email:
            attached = ", ".join(sent.customer_attachments) or "no attachments"
            click.echo(f"  customer notified: {sent.customer_email} ({attached})")
        if sent.rep_email:
            click.echo(f"  rep notified: {sent.rep_email}")
        if sent.platform_notified:
            click.echo(f"  platform fulfillment: {result.external_fulfillment_id}")


@click.command("update")
@click.option("--id", "shipment_id", required=True, type=int, help="Shipment ID.")
@click.option("--shipping-cost", default=None)
@click.option("--notes", default=None)
@click.option("--ship-date", type=click.DateTime(["%Y-%m-%d"]), default=None)
def shipment_update(
    shipment_id: int, shipping_cost: str | None, notes: str | None, ship_date
) -> None:
    """Edit shipping cost, notes or ship date."""
    result = UpdateShipmentHandler(unit_of_work()).handle(
        shipment_id,
        shipping_cost=shipping_cost,
        notes=notes,
        ship_date=ship_date.date() if ship_date else None,
    )
    if not result.success:
        raise click.ClickException(result.error or "Update failed")
    click.echo(f"Shipment #{shipment_id} updated.")


@click.command("track")
@click.option("--id", "shipment_id", required=True, type=int, help="Shipment ID.")
@click.option("--carrier", required=True, type=click.Choice(_CARRIERS, case_sensitive=False))
@click.option("--number", "tracking_number", required=True, help="Tracking number.")
def shipment_track(shipment_id: int, carrier: str, tracking_number: str) -> None:
    """Add a tracking number to a shipment."""
    result = AddTrackingHandler(unit_of_work()).handle(
        shipment_id, TrackingSpec(carrier=carrier, tracking_number=tracking_number)
    )
    if not result.success:
        raise click.ClickException(result.error or "Adding tracking failed")
    click.echo(f"Tracking #{result.tracking_id} added to shipment #{shipment_id}.")


@click.command("void")
@click.option("--id", "shipment_id", required=True, type=int, help="Shipment ID.")
@click.option("--reason", required=True, type=click.Choice(VOID_REASONS))
@click.option("--notes", default=None)
def shipment_void(shipment_id: int, reason: str, notes: str | None) -> None:
    """Void a shipment (kept for audit, excluded from totals)."""
    result = VoidShipmentHandler(unit_of_work(), activity_logger()).handle(
        shipment_id, reason, performed_by=current_user(), notes=notes
    )
    if not result.success:
        raise click.ClickException(result.error or "Void failed")
    click.echo(f"Shipment #{shipment_id} voided.")


@click.command("list")
@click.option("--order", "order_id", required=True, type=int, help="Order ID.")
def shipment_list(order_id: int) -> None:
    """List every shipment of an order, newest first."""
    shipments = ListShipmentsHandler(unit_of_work()).handle(order_id)
    if not shipments:
        click.echo("No shipments found.")
        return

    for s in shipments:
        flag = f"  VOIDED {s.voided_at} by {s.voided_by}: {s.void_reason}" if s.is_voided else ""
        click.echo(
            f"Shipment #{s.id}  {s.ship_date}  subtotal {s.shipped_subtotal} "
            f"+ shipping {s.shipping_cost} = {s.shipped_total}{flag}"
        )
        for line in s.items:
            click.echo(
                f"  {line.sku:<20} {line.quantity_shipped:>5} of {line.ordered_quantity:<5} "
                f"@ {line.unit_price:>10} {line.line_total:>10}"
            )
        for t in s.tracking:
            click.echo(f"  {t.carrier} {t.tracking_number}  {t.tracking_url or ''}".rstrip())


@click.command("summary")
@click.argument("order_ids", nargs=-1, type=int, required=True)
def shipment_summary(order_ids: tuple[int, ...]) -> None:
    """Shipment roll-up for one or more orders."""
    summaries = ShipmentSummaryHandler(unit_of_work()).handle(list(order_ids))
    click.echo(
        f"  {'Order':>6} {'Ships':>6} {'Shipped':>12} {'Variance':>12} {'Tracking':>9} {'Full':>5}"
    )
    click.echo(f"  {'-'*55}")
    for order_id in order_ids:
        s = summaries.get(order_id)
        if s is None:
            click.echo(f"  {order_id:>6} {'-':>6}")
            continue
        click.echo(
            f"  {s.order_id:>6} {s.shipment_count:>6} {s.total_shipped:>12} "
            f"{s.variance:>12} {s.tracking_count:>9} {'yes' if s.is_fully_shipped else 'no':>5}"
        )
