from __future__ import annotations

import getpass
import logging
from dataclasses import dataclass
from pathlib import Path

import paramiko

DEFAULT_REMOTE_PORT = 22
DEFAULT_SSH_CONFIG = Path("~/.ssh/config")
DEFAULT_CONNECT_TIMEOUT = 10

USAGE = (
    "Usage: sshmirror [--dry] [-v|--verbose] [--debug] [--overwrite-all] "
    "[--port N] [--ssh-config PATH] [--copy-workers N] "
    "<src-folder> <host> <dest-folder>"
)


@dataclass(frozen=True)
class SSHTarget:
    host: str
    user: str
    port: int = DEFAULT_REMOTE_PORT
    key_filenames: tuple[str, ...] = ()

    @property
    def address(self) -> str:
        return f"{self.user}@{self.host}:{self.port}"


@dataclass(frozen=True)
class SyncConfig:
    source: Path
    host: str
    destination: str
    dry_run: bool = False
    verbose: bool = False
    debug: bool = False
    overwrite_all: bool = False
    port: int | None = None
    ssh_config: Path | None = None
    copy_workers: int = 1

    @property
    def log_level(self) -> int:
        if self.debug:
            return logging.DEBUG
        if self.verbose:
            return logging.INFO
        return logging.WARNING

    @property
    def remote_root(self) -> str:
        return self.destination.rstrip("/") or "/"


def _split_user(host_spec: str) -> tuple[str | None, str]:
    if "@" in host_spec:
        user, host = host_spec.rsplit("@", 1)
        return (user or None), host
    return None, host_spec


def resolve_ssh_target(
    host_spec: str,
    port: int | None = None,
    ssh_config_path: Path | None = None,
) -> SSHTarget:
    """Resolve ``[user@]alias`` the way ``ssh`` would, via ~/.ssh/config."""
    user, alias = _split_user(host_spec)
    if not alias:
        raise ValueError(f"Invalid host: {host_spec!r}")

    config_path = (ssh_config_path or DEFAULT_SSH_CONFIG).expanduser()
    options: dict = {}
    if config_path.is_file():
        options = dict(paramiko.SSHConfig.from_path(str(config_path)).lookup(alias))

    resolved_port = port
    if resolved_port is None:
        resolved_port = int(options.get("port", DEFAULT_REMOTE_PORT))

    return SSHTarget(
        host=str(options.get("hostname", alias)),
        user=user or str(options.get("user") or getpass.getuser()),
        port=resolved_port,
        key_filenames=tuple(
            str(Path(name).expanduser()) for name in options.get("identityfile", [])
        ),
    )
