"""Class generation backend.

The pipeline hands its sources to a ClassGenerator during the
CLASS_GENERATION phase. GroovycProcessGenerator runs an external
groovyc-compatible joint compiler (Groovy and Java in one invocation).

Sources whose text was rewritten by an earlier phase are staged into a
temporary directory, mirroring their package path, and compiled from
there. Unmodified sources compile straight from disk.

Diagnostic parsing:
    groovyc reports errors as "path: line: message" lines. A failing
    exit code with such lines raises MultipleCompilationErrorsError; a
    failing exit code without them raises CompilationFailedError.
"""

import logging
import re
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import Any, Protocol, Sequence, runtime_checkable

from .errors import CompilationFailedError, CompileMessage, MultipleCompilationErrorsError
from .phases import CompilationUnit, SourceUnit

logger = logging.getLogger(__name__)

DEFAULT_GROOVYC_COMMAND: tuple[str, ...] = ("groovyc",)

_DIAGNOSTIC_PATTERN = re.compile(r"^(?P<path>.+?\.(?:groovy|java)):\s*(?P<line>\d+):\s*(?P<message>.+)$")


@runtime_checkable
class ClassGenerator(Protocol):
    """Produces .class files for the sources of a compilation unit."""

    def generate(self, unit: CompilationUnit, sources: Sequence[SourceUnit]) -> None:
        """Generate classes into unit.destdir.

        Raises:
            CompilationFailedError: If the compiler rejects the sources
        """
        ...


def run_compiler_process(cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess:
    """Run a compiler subprocess without a console window or inherited stdin."""
    if sys.platform == "win32":
        kwargs["creationflags"] = kwargs.get("creationflags", 0) | subprocess.CREATE_NO_WINDOW
    kwargs.setdefault("stdin", subprocess.DEVNULL)
    return subprocess.run(cmd, **kwargs)


def parse_diagnostics(output: str) -> list[CompileMessage]:
    """Extract located error messages from compiler output."""
    messages = []
    for line in output.splitlines():
        match = _DIAGNOSTIC_PATTERN.match(line.strip())
        if match:
            messages.append(
                CompileMessage(
                    message=match.group("message").strip(),
                    file_path=Path(match.group("path")),
                    line=int(match.group("line")),
                )
            )
    return messages


class GroovycProcessGenerator:
    """Generates classes by running an external groovyc process."""

    def __init__(self, command: Sequence[str] = DEFAULT_GROOVYC_COMMAND, extra_args: Sequence[str] = ()):
        """Initialize generator.

        Args:
            command: Compiler executable and leading arguments
            extra_args: Arguments appended after the standard options
        """
        self.command = tuple(command)
        self.extra_args = tuple(extra_args)

    def build_command(self, unit: CompilationUnit, paths: Sequence[Path]) -> list[str]:
        cmd = [*self.command, "-d", str(unit.destdir), "-encoding", unit.encoding]
        if any(p.suffix == ".java" for p in paths):
            cmd.append("-j")
        cmd.extend(self.extra_args)
        cmd.extend(str(p) for p in paths)
        return cmd

    def generate(self, unit: CompilationUnit, sources: Sequence[SourceUnit]) -> None:
        with tempfile.TemporaryDirectory(prefix="grailsc-") as staging:
            paths = [self._stage(source, Path(staging), unit.encoding) for source in sources]
            cmd = self.build_command(unit, paths)
            logger.debug(f"Running compiler: {' '.join(cmd)}")
            result = run_compiler_process(cmd, capture_output=True, text=True)

        if result.returncode != 0:
            output = "\n".join(part for part in (result.stdout, result.stderr) if part)
            messages = parse_diagnostics(output)
            if messages:
                raise MultipleCompilationErrorsError(messages)
            raise CompilationFailedError(f"Compiler exited with code {result.returncode}: {output.strip()}")

        logger.info(f"Compiled {len(sources)} source file(s) to {unit.destdir}")

    @staticmethod
    def _stage(source: SourceUnit, staging: Path, encoding: str) -> Path:
        if not source.modified or source.text is None:
            return source.path
        package_dir = staging.joinpath(*source.package_name.split(".")) if source.package_name else staging
        package_dir.mkdir(parents=True, exist_ok=True)
        staged = package_dir / source.path.name
        staged.write_text(source.text, encoding=encoding)
        logger.debug(f"Staged transformed source {source.path} -> {staged}")
        return staged
