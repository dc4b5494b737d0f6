"""
Command-line interface for grailsc.

This module provides the `grailsc` CLI tool for incrementally compiling
the Groovy and Java sources of a Grails application.

Exit codes:
    0   compiled successfully, or everything was up to date
    1   the compiler reported errors and fail_on_error is set
    2   invalid arguments or settings
    3   unexpected compiler fault
    130 interrupted
"""

import argparse
import logging
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from grailsc import __version__
from grailsc.build_task import BuildResult, BuildTask
from grailsc.compiler.errors import ConfigError
from grailsc.config import load_settings
from grailsc.output import init_timer, log, log_error, log_warning, set_verbose

EXIT_OK = 0
EXIT_COMPILE_ERRORS = 1
EXIT_CONFIG_ERROR = 2
EXIT_FAULT = 3
EXIT_INTERRUPTED = 130


@dataclass
class CompileArgs:
    """Arguments for the compile command."""

    project_dir: Path
    src_dirs: list[Path] = field(default_factory=list)
    dest_dir: Optional[Path] = None
    config: Optional[Path] = None
    groovyc: Optional[str] = None
    encoding: Optional[str] = None
    verbose: bool = False
    list_files: bool = False
    fail_on_error: Optional[bool] = None


def _render_summary(build: BuildResult, console: Console) -> None:
    table = Table(show_header=True, show_edge=False, box=None, padding=(0, 1))
    table.add_column("Source", style="bold", no_wrap=True)
    table.add_column("Class", style="dim", no_wrap=True)
    for mapping in build.mappings:
        table.add_row(str(mapping.source), str(mapping.output))
    console.print(table)

    if build.result is not None:
        for message in build.result.messages:
            console.print(Text(message.format(), style="red"))


def compile_command(args: CompileArgs) -> int:
    """Compile stale sources of a Grails application.

    Examples:
        grailsc compile                          # Compile the current directory
        grailsc compile myapp --destdir out      # Custom destination
        grailsc compile --srcdir src/groovy -l   # One source root, list files

    Returns:
        Process exit code
    """
    init_timer()
    set_verbose(args.verbose)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    log(f"grailsc v{__version__}")

    try:
        settings = load_settings(
            args.project_dir,
            config_file=args.config,
            src_dirs=args.src_dirs or None,
            dest_dir=args.dest_dir,
            groovyc=args.groovyc,
            encoding=args.encoding,
            verbose=args.verbose or None,
            list_files=args.list_files or None,
            fail_on_error=args.fail_on_error,
        )
        start_time = time.time()
        build = BuildTask(settings).execute()
    except ConfigError as e:
        log_error(str(e))
        return EXIT_CONFIG_ERROR
    except KeyboardInterrupt:
        log_warning("Compile interrupted")
        return EXIT_INTERRUPTED
    except Exception as e:
        log_error(f"{type(e).__name__}: {e}")
        return EXIT_FAULT

    console = Console()
    if build.up_to_date:
        log("Up to date")
        return EXIT_OK

    _render_summary(build, console)
    elapsed = time.time() - start_time
    if build.success:
        log(f"Compiled {build.compiled} file(s) in {elapsed:.2f}s")
        return EXIT_OK

    log_error(f"Compilation failed ({len(build.result.messages) if build.result else 0} error(s))")
    return EXIT_COMPILE_ERRORS if settings.fail_on_error else EXIT_OK


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="grailsc",
        description="Incremental Groovy/Java compiler for Grails applications",
    )
    parser.add_argument("--version", action="version", version=f"grailsc {__version__}")
    subparsers = parser.add_subparsers(dest="command")

    compile_parser = subparsers.add_parser("compile", help="Compile stale sources")
    compile_parser.add_argument(
        "project_dir",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Application directory (default: current directory)",
    )
    compile_parser.add_argument(
        "-s",
        "--srcdir",
        dest="src_dirs",
        action="append",
        type=Path,
        default=[],
        help="Source directory to scan (repeatable; default: from grailsc.ini)",
    )
    compile_parser.add_argument(
        "-d",
        "--destdir",
        dest="dest_dir",
        type=Path,
        default=None,
        help="Destination directory for classes (default: target/classes)",
    )
    compile_parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Config file (default: <project_dir>/grailsc.ini)",
    )
    compile_parser.add_argument(
        "--groovyc",
        default=None,
        help="Compiler command line (e.g. 'groovyc -cp lib/*')",
    )
    compile_parser.add_argument(
        "--encoding",
        default=None,
        help="Source encoding (default: UTF-8)",
    )
    compile_parser.add_argument(
        "-l",
        "--list-files",
        action="store_true",
        help="List stale files while scanning",
    )
    compile_parser.add_argument(
        "--fail-on-error",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Exit non-zero when the compiler reports errors (default: on)",
    )
    compile_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )

    parsed_args = parser.parse_args()

    if not parsed_args.command:
        parser.print_help()
        sys.exit(EXIT_OK)

    if not parsed_args.project_dir.is_dir():
        print(f"Error: Not a directory: {parsed_args.project_dir}", file=sys.stderr)
        sys.exit(EXIT_CONFIG_ERROR)

    args = CompileArgs(
        project_dir=parsed_args.project_dir,
        src_dirs=parsed_args.src_dirs,
        dest_dir=parsed_args.dest_dir,
        config=parsed_args.config,
        groovyc=parsed_args.groovyc,
        encoding=parsed_args.encoding,
        verbose=parsed_args.verbose,
        list_files=parsed_args.list_files,
        fail_on_error=parsed_args.fail_on_error,
    )
    sys.exit(compile_command(args))


if __name__ == "__main__":
    main()
