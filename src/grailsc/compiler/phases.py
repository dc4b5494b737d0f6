"""Compilation pipeline.

A CompilationUnit carries the sources of one compile through an ordered
list of phases. Work happens in phase operations: plain callables over the
unit, registered against a phase with add_phase_operation(). Operations
within a phase run in registration order. Errors recorded during a phase
abort the compile at the end of that phase.

Phase order:
    INITIALIZATION -> PARSING -> CONVERSION -> SEMANTIC_ANALYSIS ->
    CANONICALIZATION -> INSTRUCTION_SELECTION -> CLASS_GENERATION ->
    OUTPUT -> FINALIZATION
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any, Optional, Protocol, runtime_checkable

from .errors import CompileMessage, MultipleCompilationErrorsError
from .source_kinds import SourceKind

logger = logging.getLogger(__name__)


class Phase(IntEnum):
    """Compilation phases, in execution order."""

    INITIALIZATION = 1
    PARSING = 2
    CONVERSION = 3
    SEMANTIC_ANALYSIS = 4
    CANONICALIZATION = 5
    INSTRUCTION_SELECTION = 6
    CLASS_GENERATION = 7
    OUTPUT = 8
    FINALIZATION = 9

    def __str__(self) -> str:
        return self.name.lower()


@runtime_checkable
class PhaseOperation(Protocol):
    """A unit of work bound to a compilation phase."""

    def __call__(self, unit: "CompilationUnit") -> None:
        """Process the in-progress compilation unit."""
        ...


@dataclass
class SourceUnit:
    """In-progress representation of one source file.

    Attributes:
        path: Source file on disk
        kind: Groovy or Java
        text: Current source text (None until parsed)
        original_text: Text as read from disk
        package_name: Declared package ("" for the root package)
        metadata: Free-form annotations added by phase operations
        injected: Names of members added by injection operations
    """

    path: Path
    kind: SourceKind
    text: Optional[str] = None
    original_text: Optional[str] = None
    package_name: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
    injected: list[str] = field(default_factory=list)

    @property
    def class_name(self) -> str:
        return self.path.stem

    @property
    def qualified_name(self) -> str:
        if self.package_name:
            return f"{self.package_name}.{self.class_name}"
        return self.class_name

    @property
    def modified(self) -> bool:
        """True when an operation rewrote the source text."""
        return self.text != self.original_text


class CompilationUnit:
    """Sources plus the phase operations that compile them."""

    def __init__(self, destdir: Path, encoding: str = "UTF-8"):
        self.destdir = destdir
        self.encoding = encoding
        self.sources: list[SourceUnit] = []
        self.errors: list[CompileMessage] = []
        self.phase = Phase.INITIALIZATION
        self._operations: dict[Phase, list[PhaseOperation]] = {phase: [] for phase in Phase}

    def add_source(self, path: Path) -> SourceUnit:
        kind = SourceKind.GROOVY if path.suffix == SourceKind.GROOVY.suffix else SourceKind.JAVA
        source = SourceUnit(path=path, kind=kind)
        self.sources.append(source)
        return source

    def add_sources(self, paths: list[Path]) -> None:
        for path in paths:
            self.add_source(path)

    def add_phase_operation(self, operation: PhaseOperation, phase: Phase) -> None:
        """Register an operation to run during the given phase."""
        if phase < self.phase or (phase == self.phase and self.phase is not Phase.INITIALIZATION):
            raise ValueError(f"Cannot register an operation for {phase}: unit is already at {self.phase}")
        self._operations[phase].append(operation)
        logger.debug(f"Registered {type(operation).__name__} at {phase}")

    def operations(self, phase: Phase) -> list[PhaseOperation]:
        return list(self._operations[phase])

    def has_operation(self, operation_type: type) -> bool:
        return any(isinstance(op, operation_type) for ops in self._operations.values() for op in ops)

    def add_error(self, message: str, source: Optional[SourceUnit] = None, line: Optional[int] = None) -> None:
        self.errors.append(CompileMessage(message=message, file_path=source.path if source else None, line=line))

    def fail_if_errors(self) -> None:
        """Raise MultipleCompilationErrorsError if any errors were recorded."""
        if self.errors:
            raise MultipleCompilationErrorsError(list(self.errors))

    def compile(self, through: Phase = Phase.FINALIZATION) -> None:
        """Run every phase up to and including `through`.

        Raises:
            MultipleCompilationErrorsError: If a phase recorded errors
        """
        for phase in Phase:
            if phase > through:
                break
            self.phase = phase
            operations = self._operations[phase]
            if operations:
                logger.debug(f"Phase {phase}: {len(operations)} operation(s) over {len(self.sources)} source(s)")
            for operation in operations:
                operation(self)
            self.fail_if_errors()
