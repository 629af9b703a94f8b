from __future__ import annotations


class SyncError(RuntimeError):
    """Base class for fatal sync failures."""


class TransportError(SyncError):
    def __init__(
        self,
        message: str,
        *,
        command: str | None = None,
        exit_status: int | None = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.command = command
        self.exit_status = exit_status
        self.stderr = stderr


class RemoteOperationError(SyncError):
    def __init__(self, operation: str, path: str, detail: str) -> None:
        super().__init__(f"{operation} {path}: {detail}")
        self.operation = operation
        self.path = path
        self.detail = detail


class MetadataDecodeError(SyncError, ValueError):
    def __init__(self, line: str, reason: str) -> None:
        super().__init__(f"cannot decode listing line {line[:120]!r}: {reason}")
        self.line = line
        self.reason = reason


class LocalScanError(SyncError):
    """A local entry could not be read; the local snapshot would be incomplete."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"cannot read {path}: {detail}")
        self.path = path
        self.detail = detail
