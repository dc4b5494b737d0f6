"""Incremental Groovy/Java compilation.

Public API:
    GrailsCompiler: Scans source directories for stale files and compiles
                    them through the Grails-extended pipeline.
    StalenessScanner: Selects sources newer than their .class outputs.
    CompileRun: Compile list and destination ledger of one run.
    CompilationExecutor: Compiles a run and reconciles output timestamps.
"""

from .backend import ClassGenerator, GroovycProcessGenerator
from .base_compiler import BaseCompiler
from .compile_run import CompileRun
from .errors import (
    CompilationFailedError,
    CompileMessage,
    CompileResult,
    CompileStatus,
    ConfigError,
    GrailscError,
    MultipleCompilationErrorsError,
)
from .executor import ERROR_PREFIX, CompilationExecutor, ExecutorState, GrailsCompiler
from .injection import ClassInjector, DomainClassInjector, GrailsAwareInjectionOperation, extend_compile_unit
from .phases import CompilationUnit, Phase, PhaseOperation, SourceUnit
from .source_kinds import OutputMapping, SourceCandidate, SourceKind
from .staleness_scanner import StalenessScanner

__all__ = [
    "BaseCompiler",
    "ClassGenerator",
    "ClassInjector",
    "CompilationExecutor",
    "CompilationFailedError",
    "CompilationUnit",
    "CompileMessage",
    "CompileResult",
    "CompileRun",
    "CompileStatus",
    "ConfigError",
    "DomainClassInjector",
    "ERROR_PREFIX",
    "ExecutorState",
    "GrailsAwareInjectionOperation",
    "GrailsCompiler",
    "GrailscError",
    "GroovycProcessGenerator",
    "MultipleCompilationErrorsError",
    "OutputMapping",
    "Phase",
    "PhaseOperation",
    "SourceCandidate",
    "SourceKind",
    "SourceUnit",
    "StalenessScanner",
    "extend_compile_unit",
]
