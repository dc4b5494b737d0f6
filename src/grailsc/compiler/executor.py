"""Compilation Executor.

Compiles the accumulated compile list through the Grails-extended pipeline
and then reconciles timestamps so the next scan sees unchanged sources as
up to date.

Outcomes:
    OK           classes generated; ledger files and destdir set to `now`
    RECOVERABLE  compiler reported diagnostics; ledger files and destdir
                 set to `now`; nothing is raised
    FAULT        anything else; trace and "Groovy Compiler error: ..." go
                 to the diagnostic stream, ledger files are set to `now`,
                 the destdir is left alone, and the error is re-raised

A destdir the compiler never created is not stamped, just as ledger files
that were never produced are skipped.

Ledger reconciliation runs on every exit path. Without it an output that
was not regenerated keeps an old mtime and its source stays stale forever.
"""

from __future__ import annotations

import logging
import os
import sys
import time
import traceback
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional, Sequence, TextIO

from .backend import ClassGenerator
from .base_compiler import BaseCompiler
from .compile_run import CompileRun
from .errors import CompileResult, CompileStatus
from .injection import extend_compile_unit
from .phases import CompilationUnit
from .source_kinds import OutputMapping
from .staleness_scanner import StalenessScanner

logger = logging.getLogger(__name__)

ERROR_PREFIX = "Groovy Compiler error: "


class ExecutorState(Enum):
    IDLE = "idle"
    COMPILING = "compiling"
    SUCCEEDED = "succeeded"
    FAILED_RECOVERABLE = "failed_recoverable"
    FAILED_FATAL = "failed_fatal"
    RECONCILED = "reconciled"


_STATE_FOR_STATUS = {
    CompileStatus.OK: ExecutorState.SUCCEEDED,
    CompileStatus.RECOVERABLE: ExecutorState.FAILED_RECOVERABLE,
    CompileStatus.FAULT: ExecutorState.FAILED_FATAL,
}


class CompilationExecutor:
    """Runs one compile over a CompileRun and reconciles its timestamps."""

    def __init__(self, compiler: BaseCompiler, run: CompileRun, diagnostic_stream: Optional[TextIO] = None):
        """Initialize executor.

        Args:
            compiler: Compiler to run over the compile list
            run: Compile run holding the compile list and destination ledger
            diagnostic_stream: Stream for fault reports (defaults to sys.stderr)
        """
        self.compiler = compiler
        self.run = run
        self.diagnostic_stream = diagnostic_stream
        self.state = ExecutorState.IDLE
        self.outcome: Optional[ExecutorState] = None
        self.reconciled_at_ns: Optional[int] = None
        self.reconciled_count = 0

    def compile(self) -> Optional[CompileResult]:
        """Compile the run's sources.

        A run is consumed once; start a new CompileRun for the next compile.

        Returns:
            The compile result, or None when the compile list is empty

        Raises:
            RuntimeError: If this executor has already compiled its run
            Exception: Any fault raised while compiling, after reconciliation
        """
        if self.state is not ExecutorState.IDLE:
            raise RuntimeError(f"Compile run already consumed (state: {self.state.value})")
        if self.run.is_empty:
            logger.debug("Compile list is empty, nothing to compile")
            return None

        now_ns = time.time_ns()
        with self._reconciliation(now_ns):
            self.state = ExecutorState.COMPILING
            result = self.compiler.try_compile(self.run.sources)
            self.state = self.outcome = _STATE_FOR_STATUS[result.status]

            if result.status is CompileStatus.FAULT and result.error is not None:
                self._report_fault(result.error)
                raise result.error
            if result.status is CompileStatus.RECOVERABLE:
                logger.warning(f"Compilation failed with {len(result.messages)} error(s): {result.error}")

            self._stamp_destdir(now_ns)
        return result

    @contextmanager
    def _reconciliation(self, now_ns: int) -> Iterator[None]:
        try:
            yield
        finally:
            self.reconciled_count = self.run.touch_outputs(now_ns)
            self.reconciled_at_ns = now_ns
            self.state = ExecutorState.RECONCILED
            logger.info(f"Set {self.reconciled_count}/{len(self.run.outputs)} output timestamp(s) to compile time")

    def _stamp_destdir(self, now_ns: int) -> None:
        destdir = self.compiler.destdir
        if not destdir.is_dir():
            logger.debug(f"Destination directory not created, skipping timestamp: {destdir}")
            return
        os.utime(destdir, ns=(now_ns, now_ns))

    def _report_fault(self, error: BaseException) -> None:
        stream = self.diagnostic_stream if self.diagnostic_stream is not None else sys.stderr
        traceback.print_exception(type(error), error, error.__traceback__, file=stream)
        stream.write(f"{ERROR_PREFIX}{error}\n")
        stream.flush()
        logger.error(f"{ERROR_PREFIX}{error}")


class GrailsCompiler(BaseCompiler):
    """Incremental compiler for Grails applications.

    Adds the Grails-aware injection phase to every compilation unit, scans
    source directories for stale files into its CompileRun, and compiles
    them through a CompilationExecutor.
    """

    def __init__(
        self,
        destdir: Path,
        generator: Optional[ClassGenerator] = None,
        encoding: str = "UTF-8",
        run: Optional[CompileRun] = None,
        list_files: bool = False,
        diagnostic_stream: Optional[TextIO] = None,
    ):
        super().__init__(destdir=destdir, generator=generator, encoding=encoding, run=run)
        self.scanner = StalenessScanner(self.run, list_files=list_files)
        self.executor = CompilationExecutor(self, self.run, diagnostic_stream=diagnostic_stream)

    def make_compile_unit(self) -> CompilationUnit:
        return extend_compile_unit(super().make_compile_unit())

    def scan_dir(self, src_dir: Path, files: Sequence[str]) -> list[OutputMapping]:
        """Scan a source directory against this compiler's destdir."""
        return self.scanner.scan_dir(src_dir, self.destdir, files)

    def execute(self) -> Optional[CompileResult]:
        return self.executor.compile()
