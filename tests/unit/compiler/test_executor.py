"""Tests for the compilation executor and timestamp reconciliation."""

import io
import os

import pytest

from compiler_helpers import RecordingGenerator, set_mtime
from grailsc.compiler.compile_run import CompileRun
from grailsc.compiler.errors import (
    CompilationFailedError,
    CompileMessage,
    CompileStatus,
    MultipleCompilationErrorsError,
)
from grailsc.compiler.executor import ERROR_PREFIX, CompilationExecutor, ExecutorState, GrailsCompiler

OLD = 1_500_000_000.0
SOURCE_TIME = 1_600_000_000.0


def _mtime(path):
    return path.stat().st_mtime


class TestCompilationExecutor:
    @pytest.fixture
    def project(self, dirs, write_file):
        """A source dir with one stale Groovy file and one stale Java file (classes exist but are old)."""
        src, dest = dirs
        write_file(src / "Book.groovy", "class Book {}\n", mtime=SOURCE_TIME)
        write_file(src / "com/acme/Util.java", "package com.acme;\npublic class Util {}\n", mtime=SOURCE_TIME)
        write_file(dest / "com/acme/Util.class", mtime=OLD)
        set_mtime(dest, OLD)
        return src, dest

    def _compiler(self, dest, generator, stream=None):
        return GrailsCompiler(dest, generator=generator, diagnostic_stream=stream or io.StringIO())

    def test_empty_compile_list_is_noop(self, dirs, generator):
        _, dest = dirs
        set_mtime(dest, OLD)
        compiler = self._compiler(dest, generator)

        assert compiler.execute() is None

        assert generator.calls == []
        assert _mtime(dest) == OLD
        assert compiler.executor.state is ExecutorState.IDLE

    def test_success_reconciles_ledger_and_destdir(self, project, generator):
        src, dest = project
        compiler = self._compiler(dest, generator)
        compiler.scan_dir(src, ["Book.groovy", "com/acme/Util.java"])

        result = compiler.execute()

        assert result.status is CompileStatus.OK
        now = compiler.executor.reconciled_at_ns
        assert now is not None
        for output in compiler.run.outputs:
            assert output.stat().st_mtime_ns == now
        assert dest.stat().st_mtime_ns == now
        assert compiler.executor.outcome is ExecutorState.SUCCEEDED
        assert compiler.executor.state is ExecutorState.RECONCILED

    def test_missing_class_is_compiled_and_stamped(self, dirs, write_file, generator):
        src, dest = dirs
        write_file(src / "Book.groovy", "class Book {}\n", mtime=SOURCE_TIME)
        compiler = self._compiler(dest, generator)

        compiler.scan_dir(src, ["Book.groovy"])
        compiler.execute()

        assert generator.calls == [[src.absolute() / "Book.groovy"]]
        assert (dest / "Book.class").stat().st_mtime_ns == compiler.executor.reconciled_at_ns

    def test_next_scan_after_compile_selects_nothing(self, project, generator):
        src, dest = project
        compiler = self._compiler(dest, generator)
        compiler.scan_dir(src, ["Book.groovy", "com/acme/Util.java"])
        compiler.execute()

        next_run = self._compiler(dest, RecordingGenerator())
        assert next_run.scan_dir(src, ["Book.groovy", "com/acme/Util.java"]) == []
        assert next_run.execute() is None

    def test_multiple_errors_are_recoverable(self, project, failing_generator):
        src, dest = project
        error = MultipleCompilationErrorsError([CompileMessage("unexpected token", line=1)])
        compiler = self._compiler(dest, failing_generator(error))
        compiler.scan_dir(src, ["Book.groovy", "com/acme/Util.java"])

        result = compiler.execute()

        assert result.status is CompileStatus.RECOVERABLE
        assert result.error is error
        assert result.messages[0].message == "unexpected token"
        util_class = dest / "com/acme/Util.class"
        assert util_class.stat().st_mtime_ns == compiler.executor.reconciled_at_ns
        assert dest.stat().st_mtime_ns == compiler.executor.reconciled_at_ns
        assert compiler.executor.outcome is ExecutorState.FAILED_RECOVERABLE

    def test_compilation_failed_is_recoverable(self, project, failing_generator):
        src, dest = project
        compiler = self._compiler(dest, failing_generator(CompilationFailedError("compiler said no")))
        compiler.scan_dir(src, ["Book.groovy"])

        result = compiler.execute()

        assert result.status is CompileStatus.RECOVERABLE
        assert not result.success

    def test_recoverable_failure_leaves_missing_outputs_missing(self, project, failing_generator):
        src, dest = project
        compiler = self._compiler(dest, failing_generator())
        compiler.scan_dir(src, ["Book.groovy"])

        compiler.execute()

        assert not (dest / "Book.class").exists()

    def test_fault_is_reported_reconciled_and_reraised(self, project, failing_generator):
        src, dest = project
        stream = io.StringIO()
        compiler = self._compiler(dest, failing_generator(RuntimeError("NPE in AST transform")), stream)
        compiler.scan_dir(src, ["Book.groovy", "com/acme/Util.java"])

        with pytest.raises(RuntimeError, match="NPE in AST transform"):
            compiler.execute()

        report = stream.getvalue()
        assert "Traceback" in report
        assert f"{ERROR_PREFIX}NPE in AST transform" in report
        util_class = dest / "com/acme/Util.class"
        assert util_class.stat().st_mtime_ns == compiler.executor.reconciled_at_ns
        assert _mtime(dest) == OLD
        assert compiler.executor.outcome is ExecutorState.FAILED_FATAL
        assert compiler.executor.state is ExecutorState.RECONCILED

    def test_fault_defaults_to_stderr(self, project, failing_generator, capsys):
        src, dest = project
        compiler = GrailsCompiler(dest, generator=failing_generator(ValueError("bad classpath")))
        compiler.scan_dir(src, ["Book.groovy"])

        with pytest.raises(ValueError):
            compiler.execute()

        assert f"{ERROR_PREFIX}bad classpath" in capsys.readouterr().err

    def test_executor_over_explicit_run(self, project, generator):
        src, dest = project
        run = CompileRun()
        compiler = GrailsCompiler(dest, generator=generator, run=run)
        compiler.scan_dir(src, ["Book.groovy"])

        executor = CompilationExecutor(compiler, run, diagnostic_stream=io.StringIO())
        result = executor.compile()

        assert result.success
        assert (dest / "Book.class").stat().st_mtime_ns == executor.reconciled_at_ns

    def test_compiler_reads_the_run_it_scans_into(self, project, generator):
        src, dest = project
        compiler = self._compiler(dest, generator)
        compiler.scan_dir(src, ["Book.groovy", "com/acme/Util.java"])

        result = compiler.try_compile()

        assert result.sources == compiler.run.sources
        assert len(compiler.run.sources) == len(compiler.run.outputs) == 2

    def test_recoverable_failure_without_destdir(self, tmp_path, write_file, failing_generator):
        src = tmp_path / "src"
        dest = tmp_path / "never-created"
        write_file(src / "Book.groovy", "class Book {}\n", mtime=SOURCE_TIME)
        compiler = self._compiler(dest, failing_generator(CompilationFailedError("syntax")))
        compiler.scan_dir(src, ["Book.groovy"])

        result = compiler.execute()

        assert result.status is CompileStatus.RECOVERABLE
        assert not dest.exists()
        assert compiler.executor.state is ExecutorState.RECONCILED

    def test_run_is_consumed_once(self, project, generator):
        src, dest = project
        compiler = self._compiler(dest, generator)
        compiler.scan_dir(src, ["Book.groovy"])
        compiler.execute()

        with pytest.raises(RuntimeError, match="already consumed"):
            compiler.execute()
        assert len(generator.calls) == 1

    def test_run_is_consumed_once_after_fault(self, project, failing_generator):
        src, dest = project
        generator = failing_generator(RuntimeError("NPE"))
        compiler = self._compiler(dest, generator)
        compiler.scan_dir(src, ["Book.groovy"])
        with pytest.raises(RuntimeError, match="NPE"):
            compiler.execute()

        with pytest.raises(RuntimeError, match="already consumed"):
            compiler.execute()
        assert len(generator.calls) == 1

    def test_reconciled_count_is_recorded(self, project, failing_generator):
        src, dest = project
        compiler = self._compiler(dest, failing_generator())
        compiler.scan_dir(src, ["Book.groovy", "com/acme/Util.java"])

        compiler.execute()

        assert compiler.executor.reconciled_count == 1

    def test_injected_domain_source_reaches_generator(self, tmp_path, write_file, generator):
        app = tmp_path / "app"
        dest = tmp_path / "classes"
        dest.mkdir()
        write_file(app / "grails-app/domain/Book.groovy", "class Book {\n    String title\n}\n", mtime=SOURCE_TIME)
        compiler = self._compiler(dest, generator)

        compiler.scan_dir(app / "grails-app", ["domain/Book.groovy"])
        compiler.execute()

        text = generator.texts[(app / "grails-app/domain/Book.groovy").absolute()]
        assert "Long id" in text
        assert os.path.exists(dest / "Book.class")
