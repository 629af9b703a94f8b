from __future__ import annotations

import os
import stat
from pathlib import Path, PurePosixPath

from .errors import LocalScanError
from .models import Entry, NodeType, Snapshot

_NS_PER_SEC = 1_000_000_000


class LocalScanner:
    """Lists a local tree the way ``find -type d`` / ``find -type f`` would.

    Symlinks are never followed and never listed.
    """

    def __init__(self, root: Path) -> None:
        self.root = root.expanduser().resolve()

    def scan(self, kind: NodeType) -> Snapshot:
        if not self.root.exists() or not self.root.is_dir():
            raise FileNotFoundError(f"Local root not found: {self.root}")

        # A skipped subtree would look deleted and be removed on the remote.
        def on_walk_error(exc: OSError) -> None:
            raise LocalScanError(str(exc.filename or self.root), str(exc)) from exc

        entries: list[Entry] = []
        for current_dir, dirs, files in os.walk(
            self.root, topdown=True, onerror=on_walk_error, followlinks=False
        ):
            current_path = Path(current_dir)
            rel_dir = PurePosixPath(".")
            if current_path != self.root:
                rel_dir = PurePosixPath(current_path.relative_to(self.root).as_posix())

            real_dirs = [
                name for name in dirs if not (current_path / name).is_symlink()
            ]
            dirs[:] = real_dirs

            if kind == NodeType.DIR:
                entries.extend(
                    Entry(relpath=self._relpath(rel_dir, name), node_type=NodeType.DIR)
                    for name in real_dirs
                )
                continue

            for filename in files:
                local_file = current_path / filename
                try:
                    st = local_file.lstat()
                except OSError as exc:
                    raise LocalScanError(str(local_file), str(exc)) from exc
                if not stat.S_ISREG(st.st_mode):
                    continue
                seconds, fraction = divmod(st.st_mtime_ns, _NS_PER_SEC)
                entries.append(
                    Entry(
                        relpath=self._relpath(rel_dir, filename),
                        node_type=NodeType.FILE,
                        mode=stat.S_IMODE(st.st_mode),
                        mtime_sec=seconds,
                        mtime_frac_ns=fraction,
                    )
                )

        return Snapshot.build(kind, entries)

    @staticmethod
    def _relpath(rel_dir: PurePosixPath, name: str) -> str:
        if rel_dir == PurePosixPath("."):
            return name
        return (rel_dir / name).as_posix()
