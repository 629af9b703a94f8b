"""Listing-line codec shared by the remote and local sides.

Files are listed as ``<path>:<octal mode>:<seconds>.<fraction>``, which is
exactly what GNU find prints for ``-printf '%p:%#m:%T@\\n'``. Directories are
listed as a bare path. Paths are relative to the tree root and may carry a
leading ``./``.

A filename containing a newline cannot be listed unambiguously. Names that
themselves end in ``:<digits>:<digits>`` decode with the trailing groups
taken as metadata.
"""

from __future__ import annotations

import re

from .errors import MetadataDecodeError
from .models import Entry, NodeType

FIND_FILES_FORMAT = "%p:%#m:%T@"

_MODE_RE = re.compile(r"[0-7]+")
_TIMESTAMP_RE = re.compile(r"(\d+)(?:\.(\d*))?")
_NS_DIGITS = 9


def normalize_listing_path(path: str) -> str:
    if path == ".":
        return ""
    if path.startswith("./"):
        return path[2:]
    return path


def _fraction_to_ns(digits: str) -> int:
    if not digits:
        return 0
    return int(digits[:_NS_DIGITS].ljust(_NS_DIGITS, "0"))


def _format_mode(mode: int) -> str:
    return f"0{mode:o}" if mode else "0"


def encode_file_line(entry: Entry) -> str:
    if entry.node_type != NodeType.FILE:
        raise ValueError(f"not a file entry: {entry.relpath}")
    mode = entry.mode or 0
    seconds = entry.mtime_sec or 0
    fraction = entry.mtime_frac_ns or 0
    return f"./{entry.relpath}:{_format_mode(mode)}:{seconds}.{fraction:09d}"


def encode_dir_line(entry: Entry) -> str:
    if entry.node_type != NodeType.DIR:
        raise ValueError(f"not a directory entry: {entry.relpath}")
    return f"./{entry.relpath}"


def decode_file_line(line: str) -> Entry:
    parts = line.rsplit(":", 2)
    if len(parts) != 3:
        raise MetadataDecodeError(line, "expected <path>:<mode>:<timestamp>")
    raw_path, raw_mode, raw_timestamp = parts

    if not _MODE_RE.fullmatch(raw_mode):
        raise MetadataDecodeError(line, f"invalid permission field {raw_mode!r}")
    timestamp = _TIMESTAMP_RE.fullmatch(raw_timestamp)
    if timestamp is None:
        raise MetadataDecodeError(line, f"invalid timestamp field {raw_timestamp!r}")

    relpath = normalize_listing_path(raw_path)
    if not relpath:
        raise MetadataDecodeError(line, "empty path")

    return Entry(
        relpath=relpath,
        node_type=NodeType.FILE,
        mode=int(raw_mode, 8),
        mtime_sec=int(timestamp.group(1)),
        mtime_frac_ns=_fraction_to_ns(timestamp.group(2) or ""),
    )


def decode_dir_line(line: str) -> Entry | None:
    relpath = normalize_listing_path(line)
    if not relpath:
        return None
    return Entry(relpath=relpath, node_type=NodeType.DIR)
