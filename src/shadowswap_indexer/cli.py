"""CLI entry point for the shadowswap indexer."""

from __future__ import annotations

import asyncio
import logging
import sys

import click

from shadowswap_indexer.config import ConfigurationError, load_config, validate_config
from shadowswap_indexer.daemon import run_daemon
from shadowswap_indexer.models.events import EventKind
from shadowswap_indexer.starknet.selectors import EVENT_NAMES, resolve_selectors
from shadowswap_indexer.storage.sqlite import SQLiteEventStore


def _short(value: str, keep: int = 10) -> str:
    if len(value) <= 2 * keep + 3:
        return value
    return f"{value[:keep]}...{value[-keep:]}"


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """shadowswap-indexer - forwards ShadowSwap pool events to the relayer."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Indexer ────────────────────────────────────────────


@cli.command()
@click.pass_context
def run(ctx: click.Context) -> None:
    """Start the indexer."""
    try:
        cfg = load_config(ctx.obj["config_path"])
        validate_config(cfg)
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        click.echo("Set the variables in the environment or the config TOML.", err=True)
        sys.exit(1)

    click.echo(f"Starting shadowswap indexer from block {cfg.starting_block}")
    try:
        asyncio.run(run_daemon(cfg))
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def selectors(ctx: click.Context) -> None:
    """Print the event selectors the indexer filters on."""
    cfg = load_config(ctx.obj["config_path"])
    try:
        resolved = resolve_selectors(cfg.selectors)
    except ValueError as exc:
        click.echo(f"Error: invalid selector override: {exc}", err=True)
        sys.exit(1)
    for kind, selector in resolved.items():
        click.echo(f"{EVENT_NAMES[kind]:<12} ({kind.value:<13}) {selector}")


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show configuration, cursor and stored event counts."""
    cfg = load_config(ctx.obj["config_path"])
    click.echo(f"Stream URL:     {cfg.stream_url or '(not set)'}")
    click.echo(f"Finality:       {cfg.finality}")
    click.echo(f"Start block:    {cfg.starting_block}")
    click.echo(f"Fast pool:      {cfg.fast_pool_address or '(not set)'}")
    click.echo(f"Standard pool:  {cfg.standard_pool_address or '(not set)'}")
    click.echo(f"Relayer URL:    {cfg.relayer_url or '(not set)'}")
    click.echo(f"HMAC secret:    {'***configured***' if cfg.hmac_secret else '(not set)'}")
    click.echo(f"DB path:        {cfg.db_path}")

    async def _status():
        store = SQLiteEventStore(cfg.db_path)
        await store.initialize()
        try:
            cursor = await store.get_cursor()
            click.echo("")
            click.echo(f"Next block:     {cursor if cursor is not None else '(none saved)'}")
            click.echo(f"Events stored:  {await store.count_events()}")
            for kind in EventKind:
                click.echo(f"  {kind.value:<14}{await store.count_events(kind.value)}")
        finally:
            await store.close()

    asyncio.run(_status())


@cli.command()
@click.option("--limit", "-n", type=int, default=20, help="Number of events to show")
@click.pass_context
def events(ctx: click.Context, limit: int) -> None:
    """List the most recently stored events."""
    cfg = load_config(ctx.obj["config_path"])

    async def _events():
        store = SQLiteEventStore(cfg.db_path)
        await store.initialize()
        try:
            records = await store.get_recent_events(limit)
        finally:
            await store.close()

        if not records:
            click.echo("No events stored yet.")
            return

        click.echo(f"{'Block':>9}  {'Type':<14}{'Pool':<10}{'Swap ID':<26}Tx")
        click.echo("-" * 80)
        for r in records:
            click.echo(
                f"{r.block_number:>9}  {r.event_type:<14}{r.pool_type:<10}"
                f"{_short(r.swap_id):<26}{_short(r.transaction_hash)}"
            )

    asyncio.run(_events())


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
