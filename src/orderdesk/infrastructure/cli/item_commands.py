"""CLI commands for order line items."""

from __future__ import annotations

import click

from orderdesk.application.add_order_item import AddOrderItemHandler
from orderdesk.application.bulk_cancel_items import BulkCancelItemsHandler
from orderdesk.application.cancel_order_item import CancelOrderItemHandler
from orderdesk.application.remove_order_item import RemoveOrderItemHandler
from orderdesk.application.update_order_item import UpdateOrderItemHandler
from orderdesk.domain.model.order import CANCEL_REASONS
from orderdesk.infrastructure.bootstrap import activity_logger, current_user, unit_of_work


def _parse_ids(raw: str) -> list[int]:
    """Parse '12,13,14' into a list of item ids."""
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise click.BadParameter(f"Invalid item id list '{raw}'.")


@click.command("add")
@click.option("--order", "order_id", required=True, type=int, help="Order ID.")
@click.option("--sku", required=True, help="SKU of the new line.")
@click.option("--qty", "quantity", required=True, type=int, help="Quantity ordered.")
@click.option("--price", required=True, help="Unit price, e.g. 19.99.")
@click.option("--notes", default=None, help="Line notes.")
def item_add(order_id: int, sku: str, quantity: int, price: str, notes: str | None) -> None:
    """Add a manual line to an open order."""
    result = AddOrderItemHandler(unit_of_work()).handle(
        order_id, sku, quantity, price, performed_by=current_user(), notes=notes
    )
    if not result.success:
        raise click.ClickException(result.error or "Add item failed")
    click.echo(f"Item #{result.item_id} ({sku} x {quantity}) added to order #{order_id}.")


@click.command("update")
@click.option("--id", "item_id", required=True, type=int, help="Item ID.")
@click.option("--qty", "quantity", type=int, default=None, help="New ordered quantity.")
@click.option("--price", default=None, help="New unit price.")
@click.option("--notes", default=None, help="New notes.")
def item_update(
    item_id: int, quantity: int | None, price: str | None, notes: str | None
) -> None:
    """Change quantity, price or notes of an item."""
    if quantity is None and price is None and notes is None:
        raise click.ClickException("Nothing to update: pass --qty, --price or --notes")
    result = UpdateOrderItemHandler(unit_of_work()).handle(item_id, quantity, price, notes)
    if not result.success:
        raise click.ClickException(result.error or "Update failed")
    click.echo(f"Item #{item_id} updated.")


@click.command("remove")
@click.option("--id", "item_id", required=True, type=int, help="Item ID.")
def item_remove(item_id: int) -> None:
    """Remove an item that has never shipped."""
    result = RemoveOrderItemHandler(unit_of_work()).handle(item_id)
    if not result.success:
        raise click.ClickException(result.error or "Remove failed")
    click.echo(f"Item #{item_id} removed.")


@click.command("cancel")
@click.option("--id", "item_id", required=True, type=int, help="Item ID.")
@click.option("--qty", "quantity", required=True, type=int, help="Units to cancel.")
@click.option("--reason", required=True, type=click.Choice(CANCEL_REASONS))
def item_cancel(item_id: int, quantity: int, reason: str) -> None:
    """Cancel unshipped units of an item."""
    result = CancelOrderItemHandler(unit_of_work(), activity_logger()).handle(
        item_id, quantity, reason, performed_by=current_user()
    )
    if not result.success:
        raise click.ClickException(result.error or "Cancel failed")
    click.echo(f"Cancelled {quantity} unit(s) of item #{item_id}.")


@click.command("bulk-cancel")
@click.option("--ids", required=True, help="Item IDs as '12,13,14'.")
@click.option("--reason", required=True, type=click.Choice(CANCEL_REASONS))
def item_bulk_cancel(ids: str, reason: str) -> None:
    """Cancel everything still open on several items."""
    result = BulkCancelItemsHandler(unit_of_work(), activity_logger()).handle(
        _parse_ids(ids), reason, performed_by=current_user()
    )
    if not result.success:
        raise click.ClickException(result.error or "Bulk cancel failed")
    click.echo(f"{result.cancelled_count} item(s) cancelled.")
