"""Portfolio CLI commands: create, show, threshold, auto, value, allocations, check, rebalance."""

from __future__ import annotations

import click

from rebalancer.cli.common import open_service, reports_errors
from rebalancer.engine.percent import bp_to_pct


@click.group("portfolio")
def portfolio_group() -> None:
    """Manage the acting identity's portfolio."""
    pass


@portfolio_group.command("create")
@click.option("--threshold", "-t", type=int, default=None, help="Drift threshold in bp (default from config)")
@click.pass_context
@reports_errors
def portfolio_create(ctx: click.Context, threshold: int | None) -> None:
    """Create a portfolio for the acting identity."""
    with open_service(ctx) as (service, caller):
        portfolio = service.create_portfolio(caller, threshold)
    click.echo(
        f"Created portfolio for {portfolio.owner} "
        f"(threshold {portfolio.rebalance_threshold} bp)"
    )


@portfolio_group.command("show")
@click.option("--owner", default=None, help="Owner to show (defaults to the acting identity)")
@click.pass_context
@reports_errors
def portfolio_show(ctx: click.Context, owner: str | None) -> None:
    """Show portfolio settings and bookkeeping."""
    with open_service(ctx) as (service, caller):
        owner = owner or caller.identity
        portfolio = service.get_portfolio(owner)
    if portfolio is None:
        click.echo(f"No portfolio for {owner}.", err=True)
        raise SystemExit(1)
    click.echo(f"Owner:           {portfolio.owner}")
    click.echo(f"Threshold:       {portfolio.rebalance_threshold} bp")
    click.echo(f"Auto-rebalance:  {'on' if portfolio.auto_rebalance_enabled else 'off'}")
    click.echo(f"Last rebalance:  {portfolio.last_rebalance}")
    click.echo(f"Recorded value:  {portfolio.total_value}")


@portfolio_group.command("threshold")
@click.argument("threshold", type=int)
@click.pass_context
@reports_errors
def portfolio_threshold(ctx: click.Context, threshold: int) -> None:
    """Set the drift threshold (bp)."""
    with open_service(ctx) as (service, caller):
        service.update_threshold(caller, threshold)
    click.echo(f"Threshold set to {threshold} bp")


@portfolio_group.command("auto")
@click.argument("state", type=click.Choice(["on", "off"]))
@click.pass_context
@reports_errors
def portfolio_auto(ctx: click.Context, state: str) -> None:
    """Enable or disable auto-rebalance."""
    with open_service(ctx) as (service, caller):
        service.set_auto_rebalance(caller, state == "on")
    click.echo(f"Auto-rebalance {state}")


@portfolio_group.command("value")
@click.option("--owner", default=None, help="Owner to value (defaults to the acting identity)")
@click.pass_context
@reports_errors
def portfolio_value(ctx: click.Context, owner: str | None) -> None:
    """Print the current portfolio value."""
    with open_service(ctx) as (service, caller):
        click.echo(service.portfolio_value(owner or caller.identity))


@portfolio_group.command("allocations")
@click.option("--owner", default=None, help="Owner to report (defaults to the acting identity)")
@click.pass_context
@reports_errors
def portfolio_allocations(ctx: click.Context, owner: str | None) -> None:
    """Show current vs target allocation for every priced holding."""
    from rebalancer.portfolio.report import format_allocations

    with open_service(ctx) as (service, caller):
        allocations = service.get_current_allocations(owner or caller.identity)
    click.echo(format_allocations(allocations))


@portfolio_group.command("check")
@click.option("--owner", default=None, help="Owner to check (defaults to the acting identity)")
@click.pass_context
@reports_errors
def portfolio_check(ctx: click.Context, owner: str | None) -> None:
    """Report drift and whether a rebalance is needed."""
    with open_service(ctx) as (service, caller):
        report = service.drift_report(owner or caller.identity)

    click.echo(f"Value:      {report.total_value}")
    click.echo(f"Threshold:  {report.threshold} bp")
    click.echo(f"Max drift:  {report.max_drift} bp ({bp_to_pct(report.max_drift):.2f}%)")
    for slot, drift in sorted(report.drifts.items()):
        click.echo(f"  slot {slot}: {drift} bp")
    if report.worst_slot is not None:
        click.echo(f"Worst slot: {report.worst_slot}")
    click.echo(f"Needs rebalance: {'yes' if report.needs_rebalance else 'no'}")


@portfolio_group.command("rebalance")
@click.pass_context
@reports_errors
def portfolio_rebalance(ctx: click.Context) -> None:
    """Rebalance the acting identity's portfolio to its targets."""
    with open_service(ctx) as (service, caller):
        result = service.execute_rebalance(caller)

    click.echo(f"Rebalanced {result.owner} at value {result.total_value}")
    for change in result.changes:
        click.echo(
            f"  slot {change.slot} {change.asset_name}: "
            f"{change.old_amount} -> {change.new_amount}"
        )
    for slot in result.skipped_slots:
        click.echo(f"  slot {slot}: skipped (no price)")
