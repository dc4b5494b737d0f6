"""Run-scoped compile list.

A CompileRun owns the two parallel sequences a compilation run accumulates:
the stale source files to compile (the compile list) and the output files
they were checked against (the destination ledger). Scanner calls append to
it; the executor consumes it once and reconciles the ledger's timestamps.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Iterable, Sequence

from .source_kinds import OutputMapping

logger = logging.getLogger(__name__)


class CompileRun:
    """Compile list and destination ledger for one compilation run.

    Both lists only grow. A new run starts with a new CompileRun.
    """

    def __init__(self) -> None:
        self.sources: list[Path] = []
        self.outputs: list[Path] = []
        self.lock = threading.RLock()

    def append(self, sources: Sequence[Path]) -> None:
        """Add a batch of source files to the compile list."""
        with self.lock:
            self.sources.extend(sources)

    def append_output(self, path: Path) -> None:
        """Add an output file to the destination ledger."""
        with self.lock:
            self.outputs.append(path)

    def record_batch(self, mappings: Iterable[OutputMapping]) -> None:
        """Record both sides of a scan batch while holding the lock.

        Ledger entries are added in order, then the sources are appended as
        one batch, so the two lists stay paired across concurrent scans.
        """
        mappings = list(mappings)
        with self.lock:
            for mapping in mappings:
                self.append_output(mapping.output)
            self.append([m.source for m in mappings])

    def mappings(self) -> list[OutputMapping]:
        with self.lock:
            return [OutputMapping(source=s, output=o) for s, o in zip(self.sources, self.outputs)]

    @property
    def is_empty(self) -> bool:
        return not self.sources

    def __len__(self) -> int:
        return len(self.sources)

    def touch_outputs(self, now_ns: int) -> int:
        """Set every ledger file's modification time to now_ns.

        Ledger files that were never produced are skipped.

        Args:
            now_ns: Timestamp in nanoseconds since the epoch

        Returns:
            Number of files whose timestamps were updated
        """
        touched = 0
        with self.lock:
            outputs = list(self.outputs)
        for path in outputs:
            if not path.exists():
                logger.debug(f"No output produced for ledger entry: {path}")
                continue
            os.utime(path, ns=(now_ns, now_ns))
            touched += 1
        logger.debug(f"Reconciled timestamps on {touched}/{len(outputs)} ledger entries")
        return touched
