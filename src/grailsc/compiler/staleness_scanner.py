"""Staleness Scanner.

Decides which source files in a directory need recompiling by comparing
each file's modification time to the .class file it is expected to
produce.

Mapping rules:
    - Foo/Bar.groovy and Foo/Bar.java map to <destdir>/Foo/Bar.class
    - A nested .groovy file whose mirrored .class does not exist is also
      looked up at <destdir>/Bar.class, since scripts without a package
      declaration compile into the root package
    - Any other suffix is not a candidate

A source whose output is missing is always stale.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from grailsc.output import log_file

from .compile_run import CompileRun
from .source_kinds import OutputMapping, SourceCandidate, SourceKind

logger = logging.getLogger(__name__)


class StalenessScanner:
    """Selects out-of-date sources and records them in a CompileRun.

    Filesystem errors while stat-ing sources propagate to the caller.
    """

    def __init__(self, run: CompileRun, list_files: bool = False):
        """Initialize scanner.

        Args:
            run: Compile run receiving the selected files
            list_files: Print each selected file to the build console
        """
        self.run = run
        self.list_files = list_files

    def scan_dir(self, src_dir: Path, dest_dir: Path, files: Sequence[str]) -> list[OutputMapping]:
        """Scan one source directory.

        Args:
            src_dir: Source root the filenames are relative to
            dest_dir: Destination root for compiled classes
            files: Relative filenames belonging to src_dir

        Returns:
            Stale mappings selected in this batch, in listing order
        """
        src_dir = Path(src_dir).absolute()
        dest_dir = Path(dest_dir).absolute()
        selected: list[OutputMapping] = []

        for filename in files:
            candidate = SourceCandidate.classify(filename)
            if candidate is None:
                continue

            source = src_dir / candidate.filename
            output = self.resolve_output(candidate, dest_dir)

            if self.is_stale(source, output):
                logger.debug(f"Stale: {source} -> {output}")
                if self.list_files:
                    log_file(str(candidate.kind), candidate.filename)
                selected.append(OutputMapping(source=source, output=output))

        if selected:
            self.run.record_batch(selected)
        logger.debug(f"Scanned {len(files)} files in {src_dir}: {len(selected)} stale")
        return selected

    @staticmethod
    def resolve_output(candidate: SourceCandidate, dest_dir: Path) -> Path:
        """Resolve the output file a candidate is checked against."""
        output = dest_dir / candidate.output_name
        if candidate.kind is SourceKind.GROOVY and candidate.is_nested and not output.exists():
            # check root package
            root_output = dest_dir / candidate.root_output_name
            if root_output.exists():
                logger.debug(f"Using root package output for {candidate.filename}: {root_output}")
                return root_output
        return output

    @staticmethod
    def is_stale(source: Path, output: Path) -> bool:
        """True when output is missing or source is strictly newer than output."""
        source_mtime = source.stat().st_mtime_ns
        try:
            output_mtime = output.stat().st_mtime_ns
        except FileNotFoundError:
            return True
        return source_mtime > output_mtime
