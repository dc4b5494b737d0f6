"""
Timestamped console output for grailsc.

Every line is prefixed with the time elapsed since the run started, in
MM:SS.cc format, so a build log shows where a compile spent its time.

Example output:
    00:00.01 grailsc v0.3.0
    00:00.02 [1/3] Scanning source directories...
    00:00.04       [groovy] grails-app/domain/Book.groovy
    00:00.31 [2/3] Compiling 4 source files...

Usage:
    from grailsc.output import log, log_phase, log_detail

    log_phase(1, 3, "Scanning source directories...")
    log_detail("src/java: 2 stale")
"""

import sys
import time
from types import TracebackType
from typing import Optional, TextIO

_start_time: Optional[float] = None
_output_stream: Optional[TextIO] = None
_verbose: bool = False


def init_timer(output_stream: Optional[TextIO] = None) -> None:
    """
    Start the run clock.

    Called implicitly by the first log line if never called.

    Args:
        output_stream: Stream for console lines (defaults to sys.stdout at write time)
    """
    global _start_time, _output_stream
    _start_time = time.time()
    _output_stream = output_stream


def set_verbose(verbose: bool) -> None:
    """Enable or disable lines logged with verbose_only=True."""
    global _verbose
    _verbose = verbose


def is_verbose() -> bool:
    return _verbose


def get_elapsed() -> float:
    """Seconds since init_timer()."""
    if _start_time is None:
        init_timer(_output_stream)
    return time.time() - _start_time  # type: ignore[operator]


def format_timestamp() -> str:
    elapsed = get_elapsed()
    minutes = int(elapsed // 60)
    seconds = elapsed % 60
    return f"{minutes:02d}:{seconds:05.2f}"


def _write(message: str) -> None:
    stream = _output_stream if _output_stream is not None else sys.stdout
    stream.write(f"{format_timestamp()} {message}\n")
    stream.flush()


def log(message: str, verbose_only: bool = False) -> None:
    """
    Log a message with timestamp.

    Args:
        message: Message to log
        verbose_only: Only print in verbose mode
    """
    if verbose_only and not _verbose:
        return
    _write(message)


def log_phase(phase: int, total: int, message: str, verbose_only: bool = False) -> None:
    """Log a build step as "[N/M] message"."""
    if verbose_only and not _verbose:
        return
    _write(f"[{phase}/{total}] {message}")


def log_detail(message: str, indent: int = 6, verbose_only: bool = False) -> None:
    if verbose_only and not _verbose:
        return
    _write(f"{' ' * indent}{message}")


def log_file(kind: str, filename: str, verbose_only: bool = False) -> None:
    """
    Log one listed source file.

    Format: [kind] filename

    Args:
        kind: Source kind label (e.g. 'groovy', 'java')
        filename: Relative name of the file
        verbose_only: Only print in verbose mode
    """
    if verbose_only and not _verbose:
        return
    _write(f"      [{kind}] {filename}")


def log_error(message: str) -> None:
    _write(f"ERROR: {message}")


def log_warning(message: str) -> None:
    _write(f"WARNING: {message}")


class TimedLogger:
    """
    Context manager that logs an operation and its duration.

    Usage:
        with TimedLogger("Compiling", phase=(2, 3)) as step:
            step.detail("12 files")
    """

    def __init__(self, operation: str, phase: Optional[tuple[int, int]] = None, verbose_only: bool = False):
        self.operation = operation
        self.phase = phase
        self.verbose_only = verbose_only
        self.start_time = 0.0

    def __enter__(self) -> "TimedLogger":
        self.start_time = time.time()
        if self.phase:
            log_phase(self.phase[0], self.phase[1], f"{self.operation}...", self.verbose_only)
        else:
            log(f"{self.operation}...", self.verbose_only)
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        del exc_val, exc_tb
        elapsed = time.time() - self.start_time
        if exc_type is None:
            log_detail(f"Done ({elapsed:.2f}s)", verbose_only=self.verbose_only)
        else:
            log_detail(f"Failed after {elapsed:.2f}s", verbose_only=self.verbose_only)

    def detail(self, message: str) -> None:
        log_detail(message, verbose_only=self.verbose_only)
