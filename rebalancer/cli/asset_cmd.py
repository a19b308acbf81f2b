"""Asset CLI commands: add, show, target."""

from __future__ import annotations

import click

from rebalancer.cli.common import open_service, reports_errors


@click.group("asset")
def asset_group() -> None:
    """Manage holdings in the acting identity's portfolio."""
    pass


@asset_group.command("add")
@click.argument("slot", type=int)
@click.argument("name")
@click.option("--target", "-t", type=int, required=True, help="Target allocation in bp")
@click.option("--amount", "-a", type=int, default=0, show_default=True, help="Initial amount held")
@click.pass_context
@reports_errors
def asset_add(ctx: click.Context, slot: int, name: str, target: int, amount: int) -> None:
    """Add asset NAME in SLOT."""
    with open_service(ctx) as (service, caller):
        holding = service.add_asset(caller, slot, target, amount, name)
    click.echo(
        f"Added {holding.asset_name} in slot {holding.slot} "
        f"(target {holding.target_allocation} bp, amount {holding.current_amount})"
    )


@asset_group.command("show")
@click.argument("slot", type=int)
@click.option("--owner", default=None, help="Owner to show (defaults to the acting identity)")
@click.pass_context
@reports_errors
def asset_show(ctx: click.Context, slot: int, owner: str | None) -> None:
    """Show the holding in SLOT."""
    with open_service(ctx) as (service, caller):
        owner = owner or caller.identity
        holding = service.get_asset(owner, slot)
    if holding is None:
        click.echo(f"No asset in slot {slot} for {owner}.", err=True)
        raise SystemExit(1)
    click.echo(f"Slot {holding.slot}: {holding.asset_name}")
    click.echo(f"  Amount:             {holding.current_amount}")
    click.echo(f"  Target allocation:  {holding.target_allocation} bp")
    click.echo(f"  Cached allocation:  {holding.current_allocation} bp")


@asset_group.command("target")
@click.argument("slot", type=int)
@click.argument("target", type=int)
@click.pass_context
@reports_errors
def asset_target(ctx: click.Context, slot: int, target: int) -> None:
    """Change the target allocation (bp) of the holding in SLOT."""
    with open_service(ctx) as (service, caller):
        service.update_target_allocation(caller, slot, target)
    click.echo(f"Slot {slot} target set to {target} bp")
