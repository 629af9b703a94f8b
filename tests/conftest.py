from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from sshmirror.errors import RemoteOperationError, TransportError
from sshmirror.models import Entry, NodeType, Snapshot, TreeSnapshots


def mk_file(
    relpath: str,
    *,
    mode: int = 0o644,
    mtime_sec: int = 100,
    mtime_frac_ns: int = 0,
) -> Entry:
    return Entry(
        relpath=relpath,
        node_type=NodeType.FILE,
        mode=mode,
        mtime_sec=mtime_sec,
        mtime_frac_ns=mtime_frac_ns,
    )


def mk_dir(relpath: str) -> Entry:
    return Entry(relpath=relpath, node_type=NodeType.DIR)


def files(*entries: Entry) -> Snapshot:
    return Snapshot.build(NodeType.FILE, entries)


def dirs(*relpaths: str) -> Snapshot:
    return Snapshot.build(NodeType.DIR, [mk_dir(p) for p in relpaths])


def tree(dir_paths: tuple[str, ...] = (), file_entries: tuple[Entry, ...] = ()) -> TreeSnapshots:
    return TreeSnapshots(dirs=dirs(*dir_paths), files=files(*file_entries))


class FakeRemoteTree:
    """Records every RemoteTree call; ``failures`` maps (method, path) to an error."""

    def __init__(self, snapshot: TreeSnapshots | None = None) -> None:
        self.snapshot = snapshot or tree()
        self.calls: list[tuple[str, str]] = []
        self.failures: dict[tuple[str, str], Exception] = {}

    def _record(self, method: str, path: str) -> None:
        err = self.failures.get((method, path))
        if err is not None:
            raise err
        self.calls.append((method, path))

    @property
    def mutations(self) -> list[tuple[str, str]]:
        return [call for call in self.calls if call[0] != "list_entries"]

    def list_entries(self, kind: NodeType) -> Snapshot:
        self._record("list_entries", kind.value)
        return self.snapshot.dirs if kind == NodeType.DIR else self.snapshot.files

    def mkdir_all(self, relpath: str) -> None:
        self._record("mkdir_all", relpath)

    def delete_recursive(self, relpath: str) -> None:
        self._record("delete_recursive", relpath)

    def copy_file(self, local_path: Path, relpath: str) -> None:
        self._record("copy_file", relpath)

    def copy_tree(self, local_root: Path) -> None:
        self._record("copy_tree", str(local_root))


def remote_failure(operation: str, path: str) -> RemoteOperationError:
    return RemoteOperationError(operation, path, "boom")


class FakeShell:
    """Stands in for SSHSession: canned stdout per command prefix."""

    def __init__(self, outputs: dict[str, str] | None = None) -> None:
        self.outputs = outputs or {}
        self.commands: list[str] = []
        self.fail_with: dict[str, TransportError] = {}
        self.sftp = FakeSFTPClient()

    def run(self, command: str) -> str:
        self.commands.append(command)
        for needle, err in self.fail_with.items():
            if needle in command:
                raise err
        for needle, output in self.outputs.items():
            if needle in command:
                return output
        return ""


@dataclass
class RemoteStat:
    st_mode: int
    st_atime: float
    st_mtime: float


class FakeSFTPClient:
    def __init__(self) -> None:
        self.remote_files: dict[str, bytes] = {}
        self.existing_dirs: set[str] = {"/"}
        self.modes: dict[str, int] = {}
        self.times: dict[str, tuple[int, int]] = {}
        self.failures: dict[tuple[str, str], Exception] = {}
        self.calls: list[tuple] = []

    def _check_failure(self, method: str, path: str) -> None:
        err = self.failures.get((method, path))
        if err is not None:
            raise err

    def stat(self, path: str) -> RemoteStat:
        self._check_failure("stat", path)
        self.calls.append(("stat", path))
        if path in self.existing_dirs:
            return RemoteStat(st_mode=0o040755, st_atime=1.0, st_mtime=1.0)
        if path in self.remote_files:
            return RemoteStat(st_mode=0o100644, st_atime=1.0, st_mtime=1.0)
        raise FileNotFoundError(f"no such file: {path}")

    def mkdir(self, path: str) -> None:
        self._check_failure("mkdir", path)
        self.calls.append(("mkdir", path))
        self.existing_dirs.add(path)

    def put(self, local_path: str, remote_path: str, *, confirm: bool = True) -> None:
        self._check_failure("put", remote_path)
        self.calls.append(("put", local_path, remote_path))
        self.remote_files[remote_path] = Path(local_path).read_bytes()

    def chmod(self, path: str, mode: int) -> None:
        self._check_failure("chmod", path)
        self.calls.append(("chmod", path, mode))
        self.modes[path] = mode

    def utime(self, path: str, times: tuple[int, int]) -> None:
        self._check_failure("utime", path)
        self.calls.append(("utime", path, times))
        self.times[path] = times

    def close(self) -> None:
        self.calls.append(("close",))


class _FakeChannel:
    def __init__(self, exit_status: int) -> None:
        self.exit_status = exit_status

    def recv_exit_status(self) -> int:
        return self.exit_status


class _FakeStream:
    def __init__(self, text: str, exit_status: int = 0) -> None:
        self._data = text.encode("utf-8")
        self.channel = _FakeChannel(exit_status)

    def read(self) -> bytes:
        return self._data


class FakeSSHClient:
    def __init__(
        self,
        sftp: FakeSFTPClient | None = None,
        *,
        stdout: str = "",
        stderr: str = "",
        exit_status: int = 0,
        connect_error: Exception | None = None,
    ) -> None:
        self.sftp = sftp or FakeSFTPClient()
        self.stdout = stdout
        self.stderr = stderr
        self.exit_status = exit_status
        self.connect_error = connect_error
        self.connect_calls: list[dict[str, object]] = []
        self.commands: list[str] = []
        self.closed = False

    def load_system_host_keys(self) -> None:
        return None

    def set_missing_host_key_policy(self, policy: object) -> None:
        _ = policy

    def connect(self, **kwargs) -> None:
        self.connect_calls.append(kwargs)
        if self.connect_error is not None:
            raise self.connect_error

    def exec_command(self, command: str):
        self.commands.append(command)
        return (
            None,
            _FakeStream(self.stdout, self.exit_status),
            _FakeStream(self.stderr),
        )

    def open_sftp(self) -> FakeSFTPClient:
        return self.sftp

    def close(self) -> None:
        self.closed = True


class DummyAutoAddPolicy:
    pass
