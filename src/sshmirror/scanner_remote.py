from __future__ import annotations

import logging
import shlex
from typing import Protocol

from .codec import FIND_FILES_FORMAT, decode_dir_line, decode_file_line
from .models import Entry, NodeType, Snapshot

logger = logging.getLogger(__name__)


class RemoteShell(Protocol):
    def run(self, command: str) -> str: ...


def listing_command(root: str, kind: NodeType) -> str:
    prefix = f"cd {shlex.quote(root)} && find . "
    if kind == NodeType.DIR:
        return prefix + "-type d"
    return prefix + "-type f -printf " + shlex.quote(FIND_FILES_FORMAT + "\\n")


class RemoteScanner:
    def __init__(self, shell: RemoteShell, root: str) -> None:
        self.shell = shell
        self.root = root

    def scan(self, kind: NodeType) -> Snapshot:
        output = self.shell.run(listing_command(self.root, kind))

        entries: list[Entry] = []
        for line in output.split("\n"):
            if not line:
                continue
            if kind == NodeType.DIR:
                entry = decode_dir_line(line)
                if entry is None:
                    continue
            else:
                entry = decode_file_line(line)
            entries.append(entry)

        logger.debug("Remote %s entries: %d", kind.value, len(entries))
        return Snapshot.build(kind, entries)
