import click

from orderdesk.infrastructure.bootstrap import configure_logging
from orderdesk.infrastructure.cli.item_commands import (
    item_add,
    item_bulk_cancel,
    item_cancel,
    item_remove,
    item_update,
)
from orderdesk.infrastructure.cli.order_commands import order_create, order_show, order_status
from orderdesk.infrastructure.cli.planned_commands import planned_dates, planned_move
from orderdesk.infrastructure.cli.shipment_commands import (
    shipment_create,
    shipment_list,
    shipment_summary,
    shipment_track,
    shipment_update,
    shipment_void,
)


@click.group()
def cli() -> None:
    """OrderDesk — order fulfilment and shipment reconciliation"""
    configure_logging()


@cli.group()
def order() -> None:
    """Manage orders."""


@cli.group()
def item() -> None:
    """Adjust, cancel and remove order items."""


@cli.group()
def shipment() -> None:
    """Record, edit and void shipments."""


@cli.group()
def planned() -> None:
    """Manage planned shipments."""


# Register subcommands
order.add_command(order_create)
order.add_command(order_show)
order.add_command(order_status)
item.add_command(item_add)
item.add_command(item_bulk_cancel)
item.add_command(item_cancel)
item.add_command(item_remove)
item.add_command(item_update)
shipment.add_command(shipment_create)
shipment.add_command(shipment_list)
shipment.add_command(shipment_summary)
shipment.add_command(shipment_track)
shipment.add_command(shipment_update)
shipment.add_command(shipment_void)
planned.add_command(planned_dates)
planned.add_command(planned_move)
