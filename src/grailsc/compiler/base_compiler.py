"""Base compiler.

BaseCompiler compiles the sources of a CompileRun into a destination
directory through the standard compilation pipeline:

    PARSING           read each source with the configured encoding
    CONVERSION        resolve the declared package of each source
    CLASS_GENERATION  hand the sources to the class generator

Subclasses extend the pipeline by overriding make_compile_unit().
"""

import logging
import re
from pathlib import Path
from typing import Optional, Sequence

from .backend import ClassGenerator, GroovycProcessGenerator
from .compile_run import CompileRun
from .errors import CompileResult, try_classify
from .phases import CompilationUnit, Phase

logger = logging.getLogger(__name__)

_PACKAGE_PATTERN = re.compile(r"^\s*package\s+([\w.]+)\s*;?\s*$", re.MULTILINE)


class SourceReader:
    """Reads source text into each source unit."""

    def __call__(self, unit: CompilationUnit) -> None:
        for source in unit.sources:
            try:
                source.text = source.path.read_text(encoding=unit.encoding)
            except (OSError, UnicodeDecodeError) as e:
                unit.add_error(f"Cannot read source: {e}", source)
                continue
            source.original_text = source.text


class PackageResolver:
    """Records the package each source declares."""

    def __call__(self, unit: CompilationUnit) -> None:
        for source in unit.sources:
            match = _PACKAGE_PATTERN.search(source.text or "")
            source.package_name = match.group(1) if match else ""


class ClassGenerationOperation:
    """Delegates bytecode generation to a ClassGenerator."""

    def __init__(self, generator: ClassGenerator):
        self.generator = generator

    def __call__(self, unit: CompilationUnit) -> None:
        self.generator.generate(unit, unit.sources)


class BaseCompiler:
    """Compiles a run's compile list into a destination directory."""

    def __init__(
        self,
        destdir: Path,
        generator: Optional[ClassGenerator] = None,
        encoding: str = "UTF-8",
        run: Optional[CompileRun] = None,
    ):
        """Initialize compiler.

        Args:
            destdir: Destination directory for compiled classes
            generator: Class generator (defaults to an external groovyc process)
            encoding: Source file encoding
            run: Compile run supplying the compile list (a new one by default)
        """
        self.destdir = Path(destdir)
        self.generator = generator if generator is not None else GroovycProcessGenerator()
        self.encoding = encoding
        self.run = run if run is not None else CompileRun()

    def make_compile_unit(self) -> CompilationUnit:
        """Create a compilation unit with the standard pipeline registered."""
        unit = CompilationUnit(destdir=self.destdir, encoding=self.encoding)
        unit.add_phase_operation(SourceReader(), Phase.PARSING)
        unit.add_phase_operation(PackageResolver(), Phase.CONVERSION)
        unit.add_phase_operation(ClassGenerationOperation(self.generator), Phase.CLASS_GENERATION)
        return unit

    def compile(self, files: Optional[Sequence[Path]] = None) -> None:
        """Compile files (or the run's compile list).

        Raises:
            CompilationFailedError: If the compiler rejects the sources
        """
        files = list(self.run.sources if files is None else files)
        if not files:
            return
        logger.info(f"Compiling {len(files)} source file(s) to {self.destdir}")
        unit = self.make_compile_unit()
        unit.add_sources(files)
        unit.compile()

    def try_compile(self, files: Optional[Sequence[Path]] = None) -> CompileResult:
        """Compile and report the outcome as a CompileResult instead of raising."""
        files = list(self.run.sources if files is None else files)
        try:
            self.compile(files)
        except Exception as e:
            return try_classify(e, files)
        return CompileResult.ok(files)
