"""Config CLI commands: show, validate."""

from __future__ import annotations

import json

import click


@click.group("config")
def config_group() -> None:
    """Manage configuration."""
    pass


@config_group.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Print the resolved configuration."""
    from rebalancer.config.loader import load_config

    config = load_config(ctx.obj.get("config_path"))
    click.echo(json.dumps(config.model_dump(), indent=2, default=str))


@config_group.command("validate")
@click.pass_context
def config_validate(ctx: click.Context) -> None:
    """Validate rebalancer.yaml against the schema."""
    from rebalancer.config.loader import load_config

    try:
        config = load_config(ctx.obj.get("config_path"))
    except Exception as e:
        click.echo(f"Config validation failed: {e}", err=True)
        raise SystemExit(1) from None

    click.echo("Config is valid.")
    click.echo(f"  Version: {config.version}")
    click.echo(f"  Asset slots: {config.portfolio.max_asset_slots}")
    click.echo(f"  Default threshold: {config.portfolio.default_threshold} bp")
    click.echo(f"  Admins: {', '.join(config.auth.admins)}")
    click.echo(f"  Storage: {config.storage.backend} ({config.storage.path})")
