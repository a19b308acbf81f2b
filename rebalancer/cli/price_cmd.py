"""Price CLI commands: set, show."""

from __future__ import annotations

import click

from rebalancer.cli.common import open_service, reports_errors


@click.group("price")
def price_group() -> None:
    """Publish and inspect asset prices."""
    pass


@price_group.command("set")
@click.argument("slot", type=int)
@click.argument("price", type=int)
@click.pass_context
@reports_errors
def price_set(ctx: click.Context, slot: int, price: int) -> None:
    """Set the price of SLOT (administrators only)."""
    with open_service(ctx) as (service, caller):
        record = service.update_price(caller, slot, price)
    click.echo(f"Slot {record.slot} price {record.price} (updated {record.last_updated})")


@price_group.command("show")
@click.argument("slot", type=int)
@click.pass_context
@reports_errors
def price_show(ctx: click.Context, slot: int) -> None:
    """Show the latest price for SLOT."""
    with open_service(ctx) as (service, _caller):
        record = service.get_price(slot)
    if record is None:
        click.echo(f"No price for slot {slot}.", err=True)
        raise SystemExit(1)
    click.echo(f"Slot {record.slot} price {record.price} (updated {record.last_updated})")
