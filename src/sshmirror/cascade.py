from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import PurePosixPath


def _ancestors(relpath: str) -> Iterable[str]:
    for parent in PurePosixPath(relpath).parents:
        text = parent.as_posix()
        if text == ".":
            return
        yield text


def prune_descendants(
    candidates: Sequence[str], deleted_dirs: Iterable[str]
) -> tuple[str, ...]:
    """Drop candidates that live strictly below one of ``deleted_dirs``.

    Deleting a directory already removes its contents, so only the topmost
    deleted path is kept. A path is never its own descendant, which makes it
    safe to prune a list against itself.
    """
    deleted = set(deleted_dirs)
    if not deleted:
        return tuple(candidates)
    return tuple(
        path
        for path in candidates
        if not any(parent in deleted for parent in _ancestors(path))
    )
