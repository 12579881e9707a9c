"""CLI entry point for depotcompact."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from depotcompact.config import ConfigError, load_config

_DEPOT = click.Path(file_okay=False, resolve_path=True)


def _setup_logging(verbose: int) -> None:
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    logging.getLogger("filelock").setLevel(max(level, logging.INFO))


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ./depotcompact.yaml if present).",
)
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (-v info, -vv debug).")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, verbose: int) -> None:
    """depotcompact: move resources duplicated across depots into a shared depot."""
    _setup_logging(verbose)
    try:
        ctx.obj = load_config(config_path)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command()
@click.argument("depot", type=_DEPOT)
def resources(depot: str) -> None:
    """List the packages and artifacts contained in DEPOT."""
    from depotcompact.depot import enumerate_depot_resources

    for resource in enumerate_depot_resources(depot):
        click.echo(resource)


@cli.command()
@click.argument("depots", nargs=-1, type=_DEPOT)
@click.option(
    "--ref",
    "refs",
    multiple=True,
    type=_DEPOT,
    help="Reference depot to compare against (repeatable; default: DEPOTS).",
)
@click.pass_obj
def shared(config: dict, depots: tuple[str, ...], refs: tuple[str, ...]) -> None:
    """List resources present in more than one of DEPOTS."""
    from depotcompact.shared import shared_resources

    if depots:
        subjects = list(depots)
        references = list(refs) or None
    else:
        subjects = config["depots"]["sources"]
        references = list(refs) or config["depots"]["references"] or None
    if not subjects:
        raise click.UsageError("No depots given and none configured under depots.sources")

    for resource in shared_resources(subjects, references):
        click.echo(resource)


@cli.command("compact")
@click.argument("destination", required=False, type=_DEPOT)
@click.argument("sources", nargs=-1, type=_DEPOT)
@click.option(
    "--ref",
    "refs",
    multiple=True,
    type=_DEPOT,
    help="Reference depot consulted for duplicates (repeatable; default: SOURCES).",
)
@click.option(
    "--lock-timeout",
    type=click.FloatRange(min=0),
    default=None,
    help="Seconds to wait for the destination lock (default: wait forever).",
)
@click.option("--dry-run", is_flag=True, help="Show what would be done without changing anything.")
@click.pass_obj
def compact_cmd(
    config: dict,
    destination: str | None,
    sources: tuple[str, ...],
    refs: tuple[str, ...],
    lock_timeout: float | None,
    dry_run: bool,
) -> None:
    """Move resources shared among SOURCES into DESTINATION."""
    from depotcompact.compact import (
        LockTimeoutError,
        RelocationError,
        compact,
        plan_compaction,
    )
    from depotcompact.compact.compactor import MOVE

    depots_cfg = config["depots"]
    lock_cfg = config["lock"]
    dest = destination or depots_cfg["destination"]
    if sources:
        source_list = list(sources)
        references = list(refs) or None
    else:
        source_list = depots_cfg["sources"]
        references = list(refs) or depots_cfg["references"] or None
    if not dest:
        raise click.UsageError("No destination depot given and none configured")
    if not source_list:
        raise click.UsageError("No source depots given and none configured")

    if dry_run:
        actions = plan_compaction(dest, source_list, references)
        for action in actions:
            click.echo(f"would {action.describe()}")
        click.echo(f"{len(actions)} actions planned.")
        return

    timeout = lock_timeout if lock_timeout is not None else lock_cfg["timeout"]
    try:
        actions = compact(
            dest,
            source_list,
            references,
            lock_timeout=timeout,
            poll_interval=lock_cfg["poll_interval"],
            lock_filename=lock_cfg["filename"],
        )
    except LockTimeoutError as exc:
        raise click.ClickException(str(exc)) from exc
    except RelocationError as exc:
        raise click.ClickException(f"Compaction aborted: {exc}") from exc
    except OSError as exc:
        raise click.ClickException(f"Compaction failed: {exc}") from exc

    for action in actions:
        click.echo(action.describe())
    moved = sum(1 for a in actions if a.kind == MOVE)
    click.echo(f"Compacted into {dest}: {moved} moved, {len(actions) - moved} deleted.")


@cli.command()
@click.argument("depot", type=_DEPOT)
@click.option(
    "--lock-timeout",
    type=click.FloatRange(min=0),
    default=None,
    help="Seconds to wait for the depot lock (default: wait forever).",
)
@click.pass_obj
def sweep(config: dict, depot: str, lock_timeout: float | None) -> None:
    """Remove temporary directories left in DEPOT by interrupted compactions."""
    from depotcompact.compact import LockTimeoutError, sweep_depot

    lock_cfg = config["lock"]
    timeout = lock_timeout if lock_timeout is not None else lock_cfg["timeout"]
    try:
        removed = sweep_depot(
            depot,
            lock_timeout=timeout,
            poll_interval=lock_cfg["poll_interval"],
            lock_filename=lock_cfg["filename"],
        )
    except LockTimeoutError as exc:
        raise click.ClickException(str(exc)) from exc
    except OSError as exc:
        raise click.ClickException(f"Sweep failed: {exc}") from exc

    for path in removed:
        click.echo(f"Removed {path}")
    click.echo(f"{len(removed)} orphaned directories removed.")
