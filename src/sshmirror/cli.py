from __future__ import annotations

import sys
from collections.abc import Sequence
from pathlib import Path

import click
import typer
from rich.console import Console
from rich.markup import escape

from .config import USAGE, SyncConfig, resolve_ssh_target
from .engine import SyncOutcome, run_sync
from .errors import LocalScanError, SyncError
from .logs import configure_logging, stderr_console
from .remote_tree import open_remote_tree

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_LOCAL_FAILURE = 2
EXIT_REMOTE_FAILURE = 3
EXIT_BAD_FLAGS = 99

PROG_NAME = "sshmirror"

app = typer.Typer(
    help="Mirror a local folder onto a remote host over SSH, deleting what was removed.",
    add_completion=False,
)
console = Console(highlight=False, soft_wrap=True)


def _echo(message: str) -> None:
    console.print(message, markup=False)


def _usage_error(message: str) -> typer.Exit:
    stderr_console.print(message, markup=False, highlight=False)
    stderr_console.print(USAGE, markup=False, highlight=False)
    return typer.Exit(EXIT_USAGE)


def _print_summary(outcome: SyncOutcome) -> None:
    result = outcome.result
    if result is None:
        return
    copied = (
        "copied all files"
        if result.copied_all
        else f"created {result.dirs_created} directories, copied {result.files_copied} files"
    )
    console.print(
        f"Done: {copied}, deleted {result.dirs_deleted} directories "
        f"and {result.files_deleted} files.",
        markup=False,
    )
    if outcome.plan.warnings:
        console.print(
            f"{len(outcome.plan.warnings)} files skipped: older locally than on remote.",
            markup=False,
        )


@app.command()
def sync(
    paths: list[str] | None = typer.Argument(
        None,
        metavar="<src-folder> <host> <dest-folder>",
        show_default=False,
    ),
    dry: bool = typer.Option(
        False, "--dry", help="Only report what would be copied and deleted."
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Report progress."),
    debug: bool = typer.Option(
        False, "--debug", help="Trace remote commands and per-file decisions."
    ),
    overwrite_all: bool = typer.Option(
        False,
        "--overwrite-all",
        help="Copy the whole source tree instead of only changed files.",
    ),
    port: int | None = typer.Option(None, "--port", help="SSH port override."),
    ssh_config: Path | None = typer.Option(
        None, "--ssh-config", help="ssh_config file (default: ~/.ssh/config)."
    ),
    copy_workers: int = typer.Option(
        1, "--copy-workers", min=1, help="Parallel file copies in incremental mode."
    ),
) -> None:
    """Replacement for `rsync -avuz --delete <src> <host>:<dest>` without rsync on the remote."""
    if not paths or len(paths) != 3:
        raise _usage_error("Expected exactly three arguments.")
    source, host, destination = paths

    config = SyncConfig(
        source=Path(source),
        host=host,
        destination=destination,
        dry_run=dry,
        verbose=verbose or debug,
        debug=debug,
        overwrite_all=overwrite_all,
        port=port,
        ssh_config=ssh_config,
        copy_workers=copy_workers,
    )
    configure_logging(config.log_level)

    if not config.source.expanduser().is_dir():
        raise _usage_error(f"Source folder not found: {config.source}")
    try:
        target = resolve_ssh_target(config.host, config.port, config.ssh_config)
    except ValueError as exc:
        raise _usage_error(str(exc))

    try:
        with open_remote_tree(target, config.remote_root) as remote:
            outcome = run_sync(config, remote, echo=_echo)
    except LocalScanError as exc:
        stderr_console.print(
            f"[red]Local scan failed:[/red] {escape(str(exc))}", highlight=False
        )
        raise typer.Exit(EXIT_LOCAL_FAILURE)
    except SyncError as exc:
        stderr_console.print(
            f"[red]Remote operation failed:[/red] {escape(str(exc))}", highlight=False
        )
        raise typer.Exit(EXIT_REMOTE_FAILURE)

    if outcome.report is not None:
        typer.echo(outcome.report, nl=False)
        return
    _print_summary(outcome)


def main(argv: Sequence[str] | None = None) -> int:
    try:
        result = app(
            args=list(argv) if argv is not None else None,
            prog_name=PROG_NAME,
            standalone_mode=False,
        )
    except click.UsageError as exc:
        stderr_console.print(f"Error: {exc.format_message()}", markup=False)
        stderr_console.print(USAGE, markup=False, highlight=False)
        return EXIT_BAD_FLAGS
    except click.Abort:
        return EXIT_USAGE
    return result if isinstance(result, int) else EXIT_OK


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
