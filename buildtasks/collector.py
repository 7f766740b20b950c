"""
collector.py

Responsibility: find source files for whole-tree tooling passes (format, vet, lint).

A path is excluded when any ignore substring appears anywhere in it, not only
as a whole path segment.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

from buildtasks.errors import CommandError
from buildtasks.sequencer import Command, Sequencer

log = logging.getLogger(__name__)


class SourceFileCollector:
    def __init__(self, root: str | Path, ignore: Iterable[str] = ()) -> None:
        self.root = Path(root)
        self.ignore = tuple(ignore)

    def _ignored(self, path: str) -> bool:
        return any(part in path for part in self.ignore)

    def collect(self, extension: str) -> list[str]:
        """
        Return every file under root with the given extension, in sorted walk order.
        """
        files: list[str] = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames.sort()
            for name in sorted(filenames):
                path = os.path.join(dirpath, name)
                if self._ignored(path):
                    continue
                if os.path.splitext(name)[1] == extension:
                    files.append(path)
        return files

    def apply(self, sequencer: Sequencer, template: Command, extension: str) -> None:
        """
        Run `template + [file]` once per collected file, stopping at the first failure.
        """
        if not template:
            raise CommandError("Applying to source files requires a command")
        files = self.collect(extension)
        log.debug("Found %d `%s` source files", len(files), extension)
        for path in files:
            sequencer.run(template, literal_tail=(path,))
