from __future__ import annotations

from .models import PathDiff, Snapshot


def diff_paths(old: Snapshot, new: Snapshot) -> PathDiff:
    """Merge the two sorted path lists.

    ``added`` is what ``new`` has and ``old`` lacks, ``removed`` the reverse.
    """
    old_paths = old.paths
    new_paths = new.paths
    added: list[str] = []
    removed: list[str] = []
    i = j = 0

    while i < len(old_paths) and j < len(new_paths):
        old_path = old_paths[i]
        new_path = new_paths[j]
        if old_path == new_path:
            i += 1
            j += 1
        elif old_path < new_path:
            removed.append(old_path)
            i += 1
        else:
            added.append(new_path)
            j += 1

    removed.extend(old_paths[i:])
    added.extend(new_paths[j:])
    return PathDiff(added=tuple(added), removed=tuple(removed))
