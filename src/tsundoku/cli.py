"""tsd CLI — read-it-later link manager.

Commands:
    tsd init                          write tsundoku.toml + create the store
    tsd add URL [-c TEXT] [-t a,b] [-a]
                                      add a link to the dump (-a: straight to the archive)
    tsd bored [-t TAG] [-s TEXT]      list the dump
    tsd read ID                       move a link from the dump to the archive
    tsd show ID                       show one link
    tsd archived [-t TAG] [-s TEXT]   list the archive
    tsd tags                          list every tag in use
"""

from __future__ import annotations

import contextlib
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import click

from tsundoku.config import TsdConfig, init_config, load_config
from tsundoku.errors import TsundokuError
from tsundoku.models import LinkId, LinkRecord, State, parse_tags
from tsundoku.query import build_filter, select
from tsundoku.store import LinkStore

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger("tsundoku.cli")

_LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@contextlib.contextmanager
def _errors() -> Iterator[None]:
    """Turn store errors into click errors with the matching exit code."""
    try:
        yield
    except TsundokuError as exc:
        logger.debug("command failed", exc_info=True)
        err = click.ClickException(str(exc))
        err.exit_code = exc.exit_code
        raise err from exc


def _cfg(ctx: click.Context) -> TsdConfig:
    cfg: TsdConfig = ctx.obj["cfg"]
    return cfg


def _store(ctx: click.Context) -> LinkStore:
    cfg = _cfg(ctx)
    with _errors():
        return LinkStore(cfg.store.path, lock_timeout=cfg.store.lock_timeout)


def _parse_id(text: str) -> LinkId:
    with _errors():
        return LinkId.parse(text)


def _setup_logging(cfg: TsdConfig, debug: int) -> None:
    level = cfg.log.level_no
    if debug == 1:
        level = min(level, logging.INFO)
    elif debug >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format=_LOG_FORMAT)
    logging.getLogger("tsundoku").setLevel(level)


def _print_table(records: list[LinkRecord], title: str) -> None:
    from rich.console import Console
    from rich.table import Table

    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("URL", overflow="fold")
    table.add_column("Comment", overflow="fold")
    table.add_column("Tags", style="magenta")
    for r in records:
        table.add_row(str(r.id), r.url, r.comment, ", ".join(r.tags))
    Console().print(table)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="tsundoku")
@click.option(
    "-c", "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: $TSD_CONFIG or ~/.config/tsundoku/tsundoku.toml)",
)
@click.option("-d", "--debug", count=True, help="More logging (-d info, -dd debug)")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, debug: int) -> None:
    """tsd — a pile of links to read later."""
    try:
        cfg = load_config(config_path)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    _setup_logging(cfg, debug)
    logger.debug("config %s, store %s", cfg.config_path, cfg.store.path)
    ctx.ensure_object(dict)
    ctx.obj["cfg"] = cfg


# ---------------------------------------------------------------------------
# tsd init
# ---------------------------------------------------------------------------


@cli.command()
@click.option(
    "--dir", "store_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Store directory to write into the new config",
)
@click.pass_context
def init(ctx: click.Context, store_dir: Path | None) -> None:
    """Write a default tsundoku.toml and create the store directory."""
    cfg = _cfg(ctx)
    if cfg.config_path.exists():
        click.echo(f"{cfg.config_path} already exists, skipping")
    else:
        try:
            path = init_config(cfg.config_path, store_dir=store_dir.resolve() if store_dir else None)
        except OSError as exc:
            raise click.ClickException(f"Cannot write {cfg.config_path}: {exc}") from exc
        click.echo(f"Created {path}")

    try:
        cfg = load_config(cfg.config_path)
        cfg.ensure_dirs()
    except (OSError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Store dir : {cfg.store.path}")


# ---------------------------------------------------------------------------
# tsd add
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("url")
@click.option("-c", "--comment", default="", help="A comment on the link for later reference")
@click.option("-t", "--tags", default=None, help="Comma-separated tags, e.g. -t python,async")
@click.option("-a", "--archive", is_flag=True, help="Already read: file straight into the archive")
@click.pass_context
def add(ctx: click.Context, url: str, comment: str, tags: str | None, archive: bool) -> None:
    """Add a link to the dump."""
    store = _store(ctx)
    with _errors():
        record = store.add(url, comment=comment, tags=parse_tags(tags), archive=archive)
    click.echo(str(record.id))


# ---------------------------------------------------------------------------
# tsd bored / tsd archived
# ---------------------------------------------------------------------------


@cli.command()
@click.option("-t", "--tag", default=None, help="Only links with this tag")
@click.option("-s", "--search", "text", default=None, help="Only links whose url/comment contains TEXT")
@click.pass_context
def bored(ctx: click.Context, tag: str | None, text: str | None) -> None:
    """Find something to read: list the dump."""
    store = _store(ctx)
    with _errors():
        records = select(store, State.DUMP, build_filter(tag, text))
    if not records:
        click.echo("Nothing in the dump.")
        return
    _print_table(records, title=f"dump ({len(records)})")


@cli.command()
@click.option("-t", "--tag", default=None, help="Only links with this tag")
@click.option("-s", "--search", "text", default=None, help="Only links whose url/comment contains TEXT")
@click.pass_context
def archived(ctx: click.Context, tag: str | None, text: str | None) -> None:
    """List links that have been read."""
    store = _store(ctx)
    with _errors():
        records = select(store, State.ARCHIVE, build_filter(tag, text))
    if not records:
        click.echo("Archive is empty.")
        return
    _print_table(records, title=f"archive ({len(records)})")


# ---------------------------------------------------------------------------
# tsd read / tsd show
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("link_id")
@click.pass_context
def read(ctx: click.Context, link_id: str) -> None:
    """Pull a link from the dump, mark it read, and file it in the archive."""
    lid = _parse_id(link_id)
    store = _store(ctx)
    with _errors():
        record = store.move_to_archive(lid)
    click.echo(record.url)
    click.echo(f"Archived {record.id}")


@cli.command()
@click.argument("link_id")
@click.pass_context
def show(ctx: click.Context, link_id: str) -> None:
    """Show one link, wherever it is."""
    lid = _parse_id(link_id)
    store = _store(ctx)
    with _errors():
        r = store.get(lid)
    click.echo(f"{r.id}  [{r.state.value}]")
    click.echo(f"  url     : {r.url}")
    if r.comment:
        click.echo(f"  comment : {r.comment}")
    if r.tags:
        click.echo(f"  tags    : {', '.join(r.tags)}")
    click.echo(f"  added   : {r.created_at}")


# ---------------------------------------------------------------------------
# tsd tags
# ---------------------------------------------------------------------------


@cli.command()
@click.pass_context
def tags(ctx: click.Context) -> None:
    """List every tag in use."""
    store = _store(ctx)
    with _errors():
        all_tags = store.tags()
    for t in all_tags:
        click.echo(t)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    cli(standalone_mode=True)


if __name__ == "__main__":
    main()
