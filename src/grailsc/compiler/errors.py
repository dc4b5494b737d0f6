"""Compiler error taxonomy and compile results.

Two exception kinds are "expected compiler diagnostics": the compiler
looked at the input and reported problems with it. Everything else raised
while compiling is a fault in the toolchain or the driver.

    CompilationFailedError           generic compile-failure signal
    MultipleCompilationErrorsError   aggregated multi-error report

try_classify() turns an exception into an explicit CompileResult so the
executor branches on a status tag rather than on exception types.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


class GrailscError(Exception):
    """Base class for grailsc errors."""

    pass


class ConfigError(GrailscError):
    """Raised when compiler settings are missing or invalid."""

    pass


@dataclass(frozen=True)
class CompileMessage:
    """A single diagnostic reported by the compiler."""

    message: str
    file_path: Optional[Path] = None
    line: Optional[int] = None

    def format(self) -> str:
        if self.file_path is None:
            return self.message
        if self.line is None:
            return f"{self.file_path}: {self.message}"
        return f"{self.file_path}:{self.line}: {self.message}"


class CompilationFailedError(GrailscError):
    """Raised when the compiler rejects its input."""

    def __init__(self, message: str, messages: Optional[list[CompileMessage]] = None):
        super().__init__(message)
        self.messages: list[CompileMessage] = list(messages or [])


class MultipleCompilationErrorsError(CompilationFailedError):
    """Raised when the compiler reports one or more located errors."""

    def __init__(self, messages: list[CompileMessage]):
        count = len(messages)
        lines = [f"startup failed, {count} error{'s' if count != 1 else ''}:"]
        lines.extend(m.format() for m in messages)
        super().__init__("\n".join(lines), messages)


class CompileStatus(Enum):
    """Outcome of one compile attempt."""

    OK = "ok"
    RECOVERABLE = "recoverable"
    FAULT = "fault"


@dataclass
class CompileResult:
    """Explicit result of a compile attempt.

    Attributes:
        status: OK, RECOVERABLE (compiler diagnostics) or FAULT
        error: The exception behind a non-OK status
        sources: Files that were handed to the compiler
    """

    status: CompileStatus
    error: Optional[Exception] = None
    sources: list[Path] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status is CompileStatus.OK

    @property
    def messages(self) -> list[CompileMessage]:
        if isinstance(self.error, CompilationFailedError):
            return self.error.messages
        return []

    @classmethod
    def ok(cls, sources: list[Path]) -> "CompileResult":
        return cls(status=CompileStatus.OK, sources=list(sources))


def is_expected_diagnostic(error: BaseException) -> bool:
    """True for the two recognized compiler diagnostic kinds."""
    return isinstance(error, (MultipleCompilationErrorsError, CompilationFailedError))


def try_classify(error: Exception, sources: list[Path]) -> CompileResult:
    """Wrap an exception raised by the compiler into a CompileResult."""
    status = CompileStatus.RECOVERABLE if is_expected_diagnostic(error) else CompileStatus.FAULT
    return CompileResult(status=status, error=error, sources=list(sources))
