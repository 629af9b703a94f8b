from __future__ import annotations

import logging
import socket
import threading
from collections.abc import Callable
from typing import Any

import paramiko

from .config import DEFAULT_CONNECT_TIMEOUT, SSHTarget
from .errors import TransportError

logger = logging.getLogger(__name__)


class SSHSession:
    """One SSH connection per run, shared by listing and mutation.

    SFTP channels are opened on first use, one per thread. Any command that
    exits nonzero raises ``TransportError``.
    """

    def __init__(
        self,
        target: SSHTarget,
        *,
        client_factory: Callable[[], Any] = paramiko.SSHClient,
        policy_factory: Callable[[], Any] = paramiko.AutoAddPolicy,
        timeout: int = DEFAULT_CONNECT_TIMEOUT,
    ) -> None:
        self.target = target
        self._client_factory = client_factory
        self._policy_factory = policy_factory
        self._timeout = timeout
        self._client: Any | None = None
        self._local = threading.local()
        self._sftp_lock = threading.Lock()
        self._sftp_clients: list[Any] = []

    def __enter__(self) -> SSHSession:
        self.connect()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def connect(self) -> None:
        if self._client is not None:
            return
        client = self._client_factory()
        client.load_system_host_keys()
        client.set_missing_host_key_policy(self._policy_factory())
        logger.debug("Connecting to %s", self.target.address)
        try:
            client.connect(
                hostname=self.target.host,
                username=self.target.user,
                port=self.target.port,
                key_filename=list(self.target.key_filenames) or None,
                look_for_keys=True,
                allow_agent=True,
                timeout=self._timeout,
            )
        except (paramiko.SSHException, socket.error) as exc:
            client.close()
            raise TransportError(
                f"Cannot connect to {self.target.address}: {exc}"
            ) from exc
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self.connect()
        return self._client

    @property
    def sftp(self) -> Any:
        """SFTP client owned by the calling thread.

        ``paramiko.SFTPClient`` must not be shared between threads, so copy
        workers each get their own channel on the one connection.
        """
        sftp = getattr(self._local, "sftp", None)
        if sftp is not None:
            return sftp
        try:
            sftp = self.client.open_sftp()
        except (paramiko.SSHException, socket.error) as exc:
            raise TransportError(
                f"Cannot open SFTP channel on {self.target.address}: {exc}"
            ) from exc
        with self._sftp_lock:
            self._sftp_clients.append(sftp)
        self._local.sftp = sftp
        return sftp

    def run(self, command: str) -> str:
        logger.debug("Run: %s", command)
        try:
            _stdin, stdout, stderr = self.client.exec_command(command)
            out = stdout.read().decode("utf-8", errors="surrogateescape")
            err = stderr.read().decode("utf-8", errors="replace").strip()
            exit_status = stdout.channel.recv_exit_status()
        except (paramiko.SSHException, socket.error) as exc:
            raise TransportError(
                f"Remote command failed: {command}: {exc}", command=command
            ) from exc
        if exit_status != 0:
            detail = f": {err}" if err else ""
            raise TransportError(
                f"Remote command exited {exit_status}: {command}{detail}",
                command=command,
                exit_status=exit_status,
                stderr=err,
            )
        return out

    def close(self) -> None:
        with self._sftp_lock:
            clients, self._sftp_clients = self._sftp_clients, []
        self._local = threading.local()
        for sftp in clients:
            sftp.close()
        if self._client is not None:
            self._client.close()
            self._client = None
