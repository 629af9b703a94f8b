from __future__ import annotations

import concurrent.futures
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from .models import ReconciliationPlan
from .remote_tree import RemoteTree

logger = logging.getLogger(__name__)

HEADER_CREATE_DIRS = "### WOULD CREATE DIRECTORIES ###"
HEADER_COPY_FILES = "### WOULD COPY FILES ###"
HEADER_COPY_ALL = "### WOULD COPY ALL FILES ###"
HEADER_DELETE_DIRS = "### WOULD DELETE DIRECTORIES ###"
HEADER_DELETE_FILES = "### WOULD DELETE FILES ###"


@dataclass(frozen=True)
class ExecuteResult:
    dirs_created: int = 0
    files_copied: int = 0
    dirs_deleted: int = 0
    files_deleted: int = 0
    copied_all: bool = False


def render_report(plan: ReconciliationPlan) -> str:
    lines: list[str] = []
    if plan.overwrite_all:
        lines.append(HEADER_COPY_ALL)
    else:
        lines.append(HEADER_CREATE_DIRS)
        lines.extend(plan.dirs_to_create)
        lines.append(HEADER_COPY_FILES)
        lines.extend(plan.files_to_copy)
    lines.append(HEADER_DELETE_DIRS)
    lines.extend(plan.dirs_to_delete)
    lines.append(HEADER_DELETE_FILES)
    lines.extend(plan.files_to_delete)
    return "\n".join(lines) + "\n"


def _create_directories(remote: RemoteTree, dirs: Sequence[str]) -> int:
    for relpath in dirs:
        remote.mkdir_all(relpath)
    return len(dirs)


def _copy_files(
    remote: RemoteTree,
    source_root: Path,
    files: Sequence[str],
    workers: int,
    echo: Callable[[str], None],
) -> int:
    if not files:
        echo("No files to copy.")
        return 0

    if workers <= 1:
        for relpath in files:
            logger.debug("Copying %s ...", relpath)
            remote.copy_file(source_root / relpath, relpath)
        return len(files)

    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [
            pool.submit(remote.copy_file, source_root / relpath, relpath)
            for relpath in files
        ]
        try:
            for future in concurrent.futures.as_completed(futures):
                future.result()
        except BaseException:
            for future in futures:
                future.cancel()
            raise
    return len(files)


def _delete(
    remote: RemoteTree,
    paths: Sequence[str],
    name: str,
    echo: Callable[[str], None],
) -> int:
    if not paths:
        echo(f"No {name} to delete.")
        return 0
    echo(f"Deleting {name} ...")
    for relpath in paths:
        echo(relpath)
        remote.delete_recursive(relpath)
    return len(paths)


def execute_plan(
    plan: ReconciliationPlan,
    remote: RemoteTree,
    source_root: Path,
    *,
    copy_workers: int = 1,
    echo: Callable[[str], None] = logger.info,
) -> ExecuteResult:
    """Apply the plan; the first failing remote operation propagates.

    Creations and copies always finish before anything is deleted. ``echo``
    receives the lines that are shown on every run: empty sets and each
    deleted path.
    """
    dirs_created = 0
    files_copied = 0

    if plan.overwrite_all:
        logger.info("Copying all files ...")
        remote.copy_tree(source_root)
    else:
        logger.info("Creating missing directories ...")
        dirs_created = _create_directories(remote, plan.dirs_to_create)
        logger.info("Copying files ...")
        files_copied = _copy_files(
            remote, source_root, plan.files_to_copy, copy_workers, echo
        )

    dirs_deleted = _delete(remote, plan.dirs_to_delete, "directories", echo)
    files_deleted = _delete(remote, plan.files_to_delete, "files", echo)

    return ExecuteResult(
        dirs_created=dirs_created,
        files_copied=files_copied,
        dirs_deleted=dirs_deleted,
        files_deleted=files_deleted,
        copied_all=plan.overwrite_all,
    )
