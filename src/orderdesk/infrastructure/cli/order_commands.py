"""CLI commands for the Order aggregate."""

from __future__ import annotations

import click

from orderdesk.application.change_order_status import ChangeOrderStatusHandler
from orderdesk.application.create_order import CreateOrderHandler
from orderdesk.application.dto import OrderDTO, OrderLineSpec
from orderdesk.application.show_order import ShowOrderHandler
from orderdesk.infrastructure.bootstrap import activity_logger, current_user, unit_of_work


def _parse_lines(raw: str) -> list[OrderLineSpec]:
    """Parse 'SKU:Qty:Price[:Group],...' into OrderLineSpec list."""
    specs: list[OrderLineSpec] = []
    for chunk in raw.split(","):
        parts = [p.strip() for p in chunk.strip().split(":")]
        if len(parts) not in (3, 4):
            raise click.BadParameter(
                f"Invalid item format '{chunk.strip()}'. Expected 'SKU:Qty:Price[:Group]'."
            )
        sku, qty_str, price = parts[:3]
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(f"Invalid quantity '{qty_str}' for SKU '{sku}'.")
        group = parts[3] if len(parts) == 4 and parts[3] else None
        specs.append(OrderLineSpec(sku=sku, quantity=qty, price=price, planned_group=group))
    return specs


@click.command("create")
@click.option("--customer", required=True, help="Customer name.")
@click.option("--items", required=True, help="Items as 'SKU:Qty:Price[:Group],...'.")
@click.option("--email", "customer_email", default="", help="Customer email address.")
@click.option("--rep-email", default=None, help="Sales rep email address.")
@click.option("--number", "order_number", default=None, help="Order number (default ORD-nnnnn).")
@click.option("--external-id", default=None, help="Order id on the storefront platform.")
@click.option("--ship-start", type=click.DateTime(["%Y-%m-%d"]), default=None)
@click.option("--ship-end", type=click.DateTime(["%Y-%m-%d"]), default=None)
def order_create(
    customer: str,
    items: str,
    customer_email: str,
    rep_email: str | None,
    order_number: str | None,
    external_id: str | None,
    ship_start,
    ship_end,
) -> None:
    """Create a new order."""
    specs = _parse_lines(items)
    result = CreateOrderHandler(unit_of_work()).handle(
        customer_name=customer,
        lines=specs,
        customer_email=customer_email,
        rep_email=rep_email,
        order_number=order_number,
        external_order_id=external_id,
        ship_start=ship_start.date() if ship_start else None,
        ship_end=ship_end.date() if ship_end else None,
    )
    if not result.success:
        raise click.ClickException(result.error or "Order creation failed")
    click.echo(f"Order {result.order_number} created  (id={result.order_id})")


def display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order {dto.order_number} #{dto.id}  (status={dto.status})")
    click.echo(f"Customer: {dto.customer_name}")
    click.echo(f"Created:  {dto.created_at}")
    if dto.ship_window:
        click.echo(f"Ship window: {dto.ship_window}")
    click.echo()

    click.echo(
        f"  {'ID':>5} {'SKU':<20} {'Qty':>5} {'Shipped':>8} {'Cancel':>7} "
        f"{'Remain':>7} {'Status':<10} {'Price':>10} {'Total':>10}"
    )
    click.echo(f"  {'-'*90}")
    for item in dto.items:
        click.echo(
            f"  {item.id:>5} {item.sku:<20} {item.ordered_quantity:>5} "
            f"{item.shipped_quantity:>8} {item.cancelled_quantity:>7} "
            f"{item.remaining_quantity:>7} {item.status:<10} "
            f"{item.unit_price:>10} {item.line_total:>10}"
        )
    click.echo(f"  {'-'*90}")
    click.echo(f"  {'Order Total':<27} {dto.order_amount:>63}")

    if dto.planned_shipments:
        click.echo()
        click.echo("Planned shipments:")
        for planned in dto.planned_shipments:
            click.echo(
                f"  #{planned.id} {planned.name:<20} {planned.status:<18} "
                f"{planned.planned_ship_start} .. {planned.planned_ship_end}  "
                f"items={','.join(str(i) for i in planned.item_ids) or '-'}"
            )


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
def order_show(order_id: int) -> None:
    """Show an order with its per-item fulfilment position."""
    dto = ShowOrderHandler(unit_of_work()).handle(order_id)
    if dto is None:
        raise click.ClickException(f"Order #{order_id} not found")
    display_order(dto)


@click.command("status")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.argument("status", type=click.Choice(["Invoiced", "Cancelled"]))
def order_status(order_id: int, status: str) -> None:
    """Mark an order Invoiced or Cancelled (locks it)."""
    result = ChangeOrderStatusHandler(unit_of_work(), activity_logger()).handle(
        order_id, status, performed_by=current_user()
    )
    if not result.success:
        raise click.ClickException(result.error or "Status change failed")
    click.echo(f"Order #{order_id} is now {status}.")
