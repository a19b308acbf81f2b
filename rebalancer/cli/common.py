"""Shared CLI plumbing: service construction and error reporting."""

from __future__ import annotations

import functools
from contextlib import contextmanager
from typing import Any, Callable, Generator

import click

from rebalancer.errors import RebalancerError
from rebalancer.portfolio.context import Authorizer, Caller, SystemClock
from rebalancer.portfolio.service import PortfolioService


@contextmanager
def open_service(ctx: click.Context) -> Generator[tuple[PortfolioService, Caller], None, None]:
    """Build a service from the resolved config and the acting caller."""
    from rebalancer.config.loader import load_config
    from rebalancer.storage import create_store

    config = load_config(ctx.obj.get("config_path"))
    identity = ctx.obj.get("identity") or config.auth.default_identity
    caller = Authorizer(config.auth.admins).caller(identity)

    store = create_store(config)
    try:
        yield PortfolioService(store, clock=SystemClock(), config=config), caller
    finally:
        store.close()


def reports_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Turn domain and validation errors into a message and exit status 1."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except RebalancerError as e:
            click.echo(f"Error [{e.code}] {type(e).__name__}: {e}", err=True)
            raise SystemExit(1) from None
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            raise SystemExit(1) from None

    return wrapper
