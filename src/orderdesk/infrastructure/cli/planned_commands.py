"""CLI commands for planned shipments."""

from __future__ import annotations

import click

from orderdesk.application.move_planned_item import MovePlannedItemHandler
from orderdesk.application.update_planned_dates import UpdatePlannedDatesHandler
from orderdesk.infrastructure.bootstrap import unit_of_work


@click.command("dates")
@click.option("--id", "planned_shipment_id", required=True, type=int,
              help="Planned shipment ID.")
@click.option("--start", required=True, type=click.DateTime(["%Y-%m-%d"]))
@click.option("--end", required=True, type=click.DateTime(["%Y-%m-%d"]))
def planned_dates(planned_shipment_id: int, start, end) -> None:
    """Reschedule a planned shipment."""
    result = UpdatePlannedDatesHandler(unit_of_work()).handle(
        planned_shipment_id, start.date(), end.date()
    )
    if not result.success:
        raise click.ClickException(result.error or "Reschedule failed")
    click.echo(f"Planned shipment #{planned_shipment_id} rescheduled.")


@click.command("move")
@click.option("--item", "item_id", required=True, type=int, help="Order item ID.")
@click.option("--to", "target_id", required=True, type=int,
              help="Target planned shipment ID.")
def planned_move(item_id: int, target_id: int) -> None:
    """Move an item into another planned shipment of the same order."""
    result = MovePlannedItemHandler(unit_of_work()).handle(item_id, target_id)
    if not result.success:
        raise click.ClickException(result.error or "Move failed")
    click.echo(f"Item #{item_id} moved to planned shipment #{target_id}.")
