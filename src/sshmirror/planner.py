from __future__ import annotations

import logging

from .cascade import prune_descendants
from .diff import diff_paths
from .models import ReconciliationPlan, TreeSnapshots
from .policy import files_needing_copy

logger = logging.getLogger(__name__)


def _trace(label: str, paths: tuple[str, ...]) -> None:
    logger.debug("%s: %d", label, len(paths))
    for path in paths:
        logger.debug("  %s", path)


def build_plan(
    local: TreeSnapshots,
    remote: TreeSnapshots,
    *,
    overwrite_all: bool = False,
) -> ReconciliationPlan:
    """Compare the remote (current) tree to the local (desired) tree."""
    dir_diff = diff_paths(remote.dirs, local.dirs)
    file_diff = diff_paths(remote.files, local.files)
    _trace("deleted_dirs (pre cleanup)", dir_diff.removed)
    _trace("deleted_files (pre cleanup)", file_diff.removed)

    deleted_dirs = prune_descendants(dir_diff.removed, dir_diff.removed)
    deleted_files = prune_descendants(file_diff.removed, deleted_dirs)
    _trace("deleted_dirs", deleted_dirs)
    _trace("deleted_files", deleted_files)

    if overwrite_all:
        return ReconciliationPlan(
            dirs_to_delete=deleted_dirs,
            files_to_delete=deleted_files,
            overwrite_all=True,
        )

    _trace("missing_dirs", dir_diff.added)
    decision = files_needing_copy(local.files, remote.files)
    _trace("newer_files", decision.to_copy)

    return ReconciliationPlan(
        dirs_to_create=dir_diff.added,
        files_to_copy=decision.to_copy,
        dirs_to_delete=deleted_dirs,
        files_to_delete=deleted_files,
        warnings=decision.warnings,
    )
