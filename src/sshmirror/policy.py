from __future__ import annotations

import logging

from .models import ClockSkewWarning, Snapshot, UpdateDecision

logger = logging.getLogger(__name__)


def _format_mode(mode: int | None) -> str:
    return "-" if mode is None else f"0{mode:o}"


def files_needing_copy(local_files: Snapshot, remote_files: Snapshot) -> UpdateDecision:
    """Pick the local files that must overwrite (or be added to) the remote.

    Newer seconds win. Equal seconds fall back to the permission bits: the
    sub-second part is not compared since the copy truncates it to zero on
    the remote, which would otherwise flag every file on the next run. A
    remote file newer than the local one is skipped with a warning.
    """
    to_copy: list[str] = []
    warnings: list[ClockSkewWarning] = []

    for local in local_files:
        remote = remote_files.get(local.relpath)
        if remote is None:
            logger.debug("%s is new", local.relpath)
            to_copy.append(local.relpath)
            continue

        local_sec = local.mtime_sec or 0
        remote_sec = remote.mtime_sec or 0
        if local_sec > remote_sec:
            logger.debug("%s is newer (%d > %d)", local.relpath, local_sec, remote_sec)
            to_copy.append(local.relpath)
            continue
        if local_sec < remote_sec:
            warning = ClockSkewWarning(
                relpath=local.relpath,
                local_mtime_sec=local_sec,
                remote_mtime_sec=remote_sec,
            )
            logger.warning(warning.message)
            warnings.append(warning)
            continue

        if local.mode != remote.mode:
            logger.debug(
                "%s changed permissions (%s != %s)",
                local.relpath,
                _format_mode(local.mode),
                _format_mode(remote.mode),
            )
            to_copy.append(local.relpath)
            continue
        logger.debug("%s is not updated", local.relpath)

    return UpdateDecision(to_copy=tuple(to_copy), warnings=tuple(warnings))
