from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from .config import SyncConfig
from .executor import ExecuteResult, execute_plan, render_report
from .models import NodeType, ReconciliationPlan, TreeSnapshots
from .planner import build_plan
from .remote_tree import RemoteTree
from .scanner_local import LocalScanner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncOutcome:
    plan: ReconciliationPlan
    report: str | None = None
    result: ExecuteResult | None = None


def collect_snapshots(
    local: LocalScanner, remote: RemoteTree
) -> tuple[TreeSnapshots, TreeSnapshots]:
    logger.info("Getting local files ...")
    local_files = local.scan(NodeType.FILE)
    logger.debug("local files: %d", len(local_files))
    logger.info("Getting remote files ...")
    remote_files = remote.list_entries(NodeType.FILE)
    logger.debug("remote files: %d", len(remote_files))
    logger.info("Getting local directories ...")
    local_dirs = local.scan(NodeType.DIR)
    logger.debug("local directories: %d", len(local_dirs))
    logger.info("Getting remote directories ...")
    remote_dirs = remote.list_entries(NodeType.DIR)
    logger.debug("remote directories: %d", len(remote_dirs))
    return (
        TreeSnapshots(dirs=local_dirs, files=local_files),
        TreeSnapshots(dirs=remote_dirs, files=remote_files),
    )


def run_sync(
    config: SyncConfig,
    remote: RemoteTree,
    local: LocalScanner | None = None,
    echo: Callable[[str], None] = logger.info,
) -> SyncOutcome:
    scanner = local or LocalScanner(config.source)
    local_tree, remote_tree = collect_snapshots(scanner, remote)
    plan = build_plan(local_tree, remote_tree, overwrite_all=config.overwrite_all)

    if config.dry_run:
        return SyncOutcome(plan=plan, report=render_report(plan))

    result = execute_plan(
        plan,
        remote,
        scanner.root,
        copy_workers=config.copy_workers,
        echo=echo,
    )
    return SyncOutcome(plan=plan, result=result)
