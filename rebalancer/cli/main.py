"""Top-level CLI entry point for the rebalancer."""

from __future__ import annotations

import logging

import click

from rebalancer import __version__


@click.group()
@click.version_option(version=__version__, prog_name="rebalancer")
@click.option(
    "--config",
    type=click.Path(),
    default=None,
    envvar="REBALANCER_CONFIG",
    help="Path to rebalancer.yaml",
)
@click.option(
    "--as",
    "identity",
    default=None,
    envvar="REBALANCER_IDENTITY",
    help="Identity to act as (defaults to auth.default_identity)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, config: str | None, identity: str | None, verbose: bool) -> None:
    """Rebalancer -- target-allocation tracking and threshold rebalancing."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["identity"] = identity

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


# Register sub-commands
from rebalancer.cli.asset_cmd import asset_group  # noqa: E402
from rebalancer.cli.config_cmd import config_group  # noqa: E402
from rebalancer.cli.portfolio_cmd import portfolio_group  # noqa: E402
from rebalancer.cli.price_cmd import price_group  # noqa: E402

cli.add_command(asset_group, "asset")
cli.add_command(config_group, "config")
cli.add_command(portfolio_group, "portfolio")
cli.add_command(price_group, "price")


@cli.command()
@click.pass_context
def init(ctx: click.Context) -> None:
    """Create the database and apply the schema."""
    from rebalancer.config.loader import load_config, resolve_path
    from rebalancer.storage.database import Database
    from rebalancer.storage.migrations import ensure_schema

    config = load_config(ctx.obj.get("config_path"))
    if config.storage.backend != "sqlite":
        click.echo(f"Storage backend is {config.storage.backend!r}; nothing to initialize.")
        return

    db_path = resolve_path(config.storage.path)
    click.echo(f"  Database: {db_path}")
    with Database(db_path) as db:
        version = ensure_schema(db)
        click.echo(f"  Schema version: {version}")

    click.echo("\nRebalancer initialized successfully.")
    click.echo("Next steps:")
    click.echo("  1. Run: rebalancer --as alice portfolio create --threshold 500")
    click.echo("  2. Run: rebalancer --as alice asset add 1 BTC --target 5000 --amount 10")
    click.echo("  3. Run: rebalancer price set 1 50000   (as an admin identity)")
