from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum


class NodeType(str, Enum):
    FILE = "file"
    DIR = "dir"


@dataclass(frozen=True)
class Entry:
    relpath: str
    node_type: NodeType
    mode: int | None = None
    mtime_sec: int | None = None
    mtime_frac_ns: int | None = None


@dataclass(frozen=True)
class Snapshot:
    """Entries of a single kind from one tree, sorted by relpath."""

    kind: NodeType
    entries: tuple[Entry, ...] = ()
    _index: dict[str, Entry] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        index: dict[str, Entry] = {}
        previous: str | None = None
        for entry in self.entries:
            if entry.node_type != self.kind:
                raise ValueError(
                    f"{entry.relpath}: expected {self.kind.value}, got {entry.node_type.value}"
                )
            if entry.relpath in index:
                raise ValueError(f"duplicate path in snapshot: {entry.relpath}")
            if previous is not None and entry.relpath < previous:
                raise ValueError(f"snapshot is not sorted at {entry.relpath}")
            index[entry.relpath] = entry
            previous = entry.relpath
        object.__setattr__(self, "_index", index)

    @classmethod
    def build(cls, kind: NodeType, entries: Iterable[Entry]) -> Snapshot:
        return cls(kind=kind, entries=tuple(sorted(entries, key=lambda e: e.relpath)))

    @property
    def paths(self) -> tuple[str, ...]:
        return tuple(entry.relpath for entry in self.entries)

    def get(self, relpath: str) -> Entry | None:
        return self._index.get(relpath)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self.entries)


@dataclass(frozen=True)
class TreeSnapshots:
    dirs: Snapshot
    files: Snapshot


@dataclass(frozen=True)
class PathDiff:
    added: tuple[str, ...]
    removed: tuple[str, ...]


@dataclass(frozen=True)
class ClockSkewWarning:
    relpath: str
    local_mtime_sec: int
    remote_mtime_sec: int

    @property
    def message(self) -> str:
        return f"Local file {self.relpath} is older than remote file."


@dataclass(frozen=True)
class UpdateDecision:
    to_copy: tuple[str, ...]
    warnings: tuple[ClockSkewWarning, ...] = ()


@dataclass(frozen=True)
class ReconciliationPlan:
    dirs_to_create: tuple[str, ...] = ()
    files_to_copy: tuple[str, ...] = ()
    dirs_to_delete: tuple[str, ...] = ()
    files_to_delete: tuple[str, ...] = ()
    overwrite_all: bool = False
    warnings: tuple[ClockSkewWarning, ...] = ()

    @property
    def total_operations(self) -> int:
        return (
            len(self.dirs_to_create)
            + len(self.files_to_copy)
            + len(self.dirs_to_delete)
            + len(self.files_to_delete)
            + (1 if self.overwrite_all else 0)
        )

    @property
    def is_empty(self) -> bool:
        return self.total_operations == 0
