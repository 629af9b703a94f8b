from __future__ import annotations

import logging
import os
import shlex
import socket
import stat
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Protocol

import paramiko

from .config import SSHTarget
from .errors import MetadataDecodeError, RemoteOperationError, TransportError
from .models import NodeType, Snapshot
from .scanner_remote import RemoteScanner
from .ssh import SSHSession

logger = logging.getLogger(__name__)

_REMOTE_FAILURES = (TransportError, paramiko.SSHException, socket.error)


class RemoteTree(Protocol):
    def list_entries(self, kind: NodeType) -> Snapshot: ...

    def mkdir_all(self, relpath: str) -> None: ...

    def delete_recursive(self, relpath: str) -> None: ...

    def copy_file(self, local_path: Path, relpath: str) -> None: ...

    def copy_tree(self, local_root: Path) -> None: ...


def _join_remote(root: str, relpath: str) -> str:
    return f"{root.rstrip('/')}/{relpath}"


def _apply_remote_metadata_from_local(
    sftp: Any, remote_path: str, local_stat: os.stat_result
) -> None:
    sftp.chmod(remote_path, stat.S_IMODE(local_stat.st_mode))
    sftp.utime(
        remote_path,
        (
            int(local_stat.st_atime_ns // 1_000_000_000),
            int(local_stat.st_mtime_ns // 1_000_000_000),
        ),
    )


class SSHRemoteTree:
    """The destination tree, reached through one SSH session.

    Listing, mkdir and delete are shell commands; copies go over SFTP and
    carry mode and whole-second mtime, like ``scp -p``.
    """

    def __init__(self, session: Any, root: str) -> None:
        self.session = session
        self.root = root.rstrip("/") or "/"

    def list_entries(self, kind: NodeType) -> Snapshot:
        try:
            return RemoteScanner(self.session, self.root).scan(kind)
        except (*_REMOTE_FAILURES, MetadataDecodeError) as exc:
            raise RemoteOperationError("list", self.root, str(exc)) from exc

    def mkdir_all(self, relpath: str) -> None:
        path = _join_remote(self.root, relpath)
        try:
            self.session.run(f"mkdir -p {shlex.quote(path)}")
        except _REMOTE_FAILURES as exc:
            raise RemoteOperationError("mkdir", relpath, str(exc)) from exc

    def delete_recursive(self, relpath: str) -> None:
        command = f"cd {shlex.quote(self.root)} && rm -r -- {shlex.quote(relpath)}"
        try:
            self.session.run(command)
        except _REMOTE_FAILURES as exc:
            raise RemoteOperationError("delete", relpath, str(exc)) from exc

    def copy_file(self, local_path: Path, relpath: str) -> None:
        remote_path = _join_remote(self.root, relpath)
        try:
            self._put(local_path, remote_path)
        except (*_REMOTE_FAILURES, OSError) as exc:
            raise RemoteOperationError("copy", relpath, str(exc)) from exc

    def copy_tree(self, local_root: Path) -> None:
        root = local_root.expanduser().resolve()
        current = "."
        try:
            self._ensure_remote_dir(self.root)
            created_dirs: list[tuple[str, Path]] = [(self.root, root)]
            for current_dir, dirs, files in os.walk(root, topdown=True):
                current_path = Path(current_dir)
                rel_dir = current_path.relative_to(root).as_posix()
                remote_dir = (
                    self.root if rel_dir == "." else _join_remote(self.root, rel_dir)
                )
                dirs[:] = [
                    name for name in dirs if not (current_path / name).is_symlink()
                ]
                for name in dirs:
                    current = _relative(rel_dir, name)
                    remote_child = _join_remote(remote_dir, name)
                    self._ensure_remote_dir(remote_child)
                    created_dirs.append((remote_child, current_path / name))
                for name in files:
                    local_file = current_path / name
                    if not stat.S_ISREG(local_file.lstat().st_mode):
                        continue
                    current = _relative(rel_dir, name)
                    logger.debug("Copying %s ...", current)
                    self._put(local_file, _join_remote(remote_dir, name))
            # Directory times last: writing files into them bumps their mtime.
            for remote_dir, local_dir in reversed(created_dirs):
                current = remote_dir
                _apply_remote_metadata_from_local(
                    self.session.sftp, remote_dir, local_dir.stat()
                )
        except (*_REMOTE_FAILURES, OSError) as exc:
            raise RemoteOperationError("copy-tree", current, str(exc)) from exc

    def _put(self, local_path: Path, remote_path: str) -> None:
        local_stat = local_path.stat()
        sftp = self.session.sftp
        sftp.put(str(local_path), remote_path, confirm=False)
        _apply_remote_metadata_from_local(sftp, remote_path, local_stat)

    def _ensure_remote_dir(self, remote_path: str) -> None:
        sftp = self.session.sftp
        try:
            sftp.stat(remote_path)
        except FileNotFoundError:
            sftp.mkdir(remote_path)


def _relative(rel_dir: str, name: str) -> str:
    return name if rel_dir == "." else f"{rel_dir}/{name}"


@contextmanager
def open_remote_tree(target: SSHTarget, root: str) -> Iterator[SSHRemoteTree]:
    with SSHSession(target) as session:
        yield SSHRemoteTree(session, root)
