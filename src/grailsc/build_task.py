"""Build task.

Drives one incremental compile of a Grails application:

    1. Validate settings and create the destination directory
    2. Register the resource loader over the app and plugin artefacts
    3. Scan every source directory for stale files
    4. Compile the stale set and reconcile output timestamps
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, TextIO

from grailsc.compiler.backend import ClassGenerator, GroovycProcessGenerator
from grailsc.compiler.errors import CompileResult
from grailsc.compiler.executor import GrailsCompiler
from grailsc.compiler.source_kinds import OutputMapping, SourceCandidate
from grailsc.config import CompilerSettings
from grailsc.output import TimedLogger, log_detail
from grailsc.resources import PluginBuildSettings, configure_resource_loader

logger = logging.getLogger(__name__)

TOTAL_STEPS = 2


@dataclass
class BuildResult:
    """Outcome of a build task.

    Attributes:
        result: Compile result, or None when nothing was stale
        mappings: Stale source/output pairs, in scan order
    """

    result: Optional[CompileResult]
    mappings: list[OutputMapping] = field(default_factory=list)

    @property
    def compiled(self) -> int:
        return len(self.mappings)

    @property
    def up_to_date(self) -> bool:
        return self.result is None

    @property
    def success(self) -> bool:
        return self.result is None or self.result.success


def list_source_files(src_dir: Path) -> list[str]:
    """List recognized source files under src_dir as sorted posix relative names."""
    return sorted(
        path.relative_to(src_dir).as_posix()
        for path in src_dir.rglob("*")
        if path.is_file() and SourceCandidate.classify(path.name) is not None
    )


class BuildTask:
    """Runs the scan and compile steps for one application."""

    def __init__(
        self,
        settings: CompilerSettings,
        generator: Optional[ClassGenerator] = None,
        diagnostic_stream: Optional[TextIO] = None,
    ):
        self.settings = settings
        self.compiler = GrailsCompiler(
            destdir=settings.dest_dir,
            generator=generator if generator is not None else GroovycProcessGenerator(settings.groovyc),
            encoding=settings.encoding,
            list_files=settings.list_files,
            diagnostic_stream=diagnostic_stream,
        )

    def execute(self) -> BuildResult:
        """Scan and compile.

        Raises:
            ConfigError: If the settings are invalid
            Exception: Compiler faults, re-raised after timestamp reconciliation
        """
        settings = self.settings
        settings.validate()
        settings.dest_dir.mkdir(parents=True, exist_ok=True)
        configure_resource_loader(PluginBuildSettings(settings.project_dir, settings.plugin_dirs))

        mappings: list[OutputMapping] = []
        with TimedLogger("Scanning source directories", phase=(1, TOTAL_STEPS)) as step:
            for src_dir in settings.src_dirs:
                if not src_dir.is_dir():
                    logger.debug(f"Skipping missing source directory: {src_dir}")
                    continue
                files = list_source_files(src_dir)
                selected = self.compiler.scan_dir(src_dir, files)
                mappings.extend(selected)
                step.detail(f"{src_dir}: {len(selected)}/{len(files)} stale")

        if not mappings:
            log_detail("All classes are up to date")
            return BuildResult(result=None)

        with TimedLogger(f"Compiling {len(mappings)} source file(s)", phase=(2, TOTAL_STEPS)) as step:
            result = self.compiler.execute()
            step.detail(f"{self.compiler.executor.reconciled_count} output timestamp(s) set to compile time")

        return BuildResult(result=result, mappings=mappings)
