"""Tests for the `grailsc compile` command."""

import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from grailsc.build_task import BuildResult
from grailsc.cli import EXIT_COMPILE_ERRORS, EXIT_CONFIG_ERROR, EXIT_FAULT, EXIT_OK, main
from grailsc.compiler.errors import CompilationFailedError, CompileMessage, CompileResult, CompileStatus
from grailsc.compiler.source_kinds import OutputMapping


@pytest.fixture
def project_dir(tmp_path):
    (tmp_path / "src/groovy").mkdir(parents=True)
    return tmp_path


def _run(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["grailsc", *argv])
    with pytest.raises(SystemExit) as exc_info:
        main()
    return exc_info.value.code


def _compiled(status=CompileStatus.OK, error=None):
    mapping = OutputMapping(source=Path("/app/src/groovy/Book.groovy"), output=Path("/app/target/classes/Book.class"))
    return BuildResult(result=CompileResult(status=status, error=error, sources=[mapping.source]), mappings=[mapping])


class TestCompileCommand:
    def test_no_command_prints_help(self, monkeypatch, capsys):
        assert _run(monkeypatch) == EXIT_OK
        assert "compile" in capsys.readouterr().out

    def test_success(self, project_dir, monkeypatch, capsys):
        with patch("grailsc.cli.BuildTask") as mock_task:
            mock_task.return_value.execute.return_value = _compiled()
            code = _run(monkeypatch, "compile", str(project_dir), "--destdir", "out", "-s", "src/groovy")

        assert code == EXIT_OK
        settings = mock_task.call_args[0][0]
        assert settings.dest_dir == project_dir.absolute() / "out"
        assert settings.src_dirs == (project_dir.absolute() / "src/groovy",)
        out = capsys.readouterr().out
        assert "Compiled 1 file(s)" in out
        assert "Book.groovy" in out

    def test_up_to_date(self, project_dir, monkeypatch, capsys):
        with patch("grailsc.cli.BuildTask") as mock_task:
            mock_task.return_value.execute.return_value = BuildResult(result=None)
            assert _run(monkeypatch, "compile", str(project_dir)) == EXIT_OK
        assert "Up to date" in capsys.readouterr().out

    def test_compile_errors_fail_by_default(self, project_dir, monkeypatch, capsys):
        error = CompilationFailedError("failed", [CompileMessage("unexpected token", Path("Book.groovy"), 3)])
        with patch("grailsc.cli.BuildTask") as mock_task:
            mock_task.return_value.execute.return_value = _compiled(CompileStatus.RECOVERABLE, error)
            assert _run(monkeypatch, "compile", str(project_dir)) == EXIT_COMPILE_ERRORS
        assert "Book.groovy:3: unexpected token" in capsys.readouterr().out

    def test_compile_errors_tolerated_with_no_fail_on_error(self, project_dir, monkeypatch):
        with patch("grailsc.cli.BuildTask") as mock_task:
            mock_task.return_value.execute.return_value = _compiled(CompileStatus.RECOVERABLE, CompilationFailedError("x"))
            assert _run(monkeypatch, "compile", str(project_dir), "--no-fail-on-error") == EXIT_OK

    def test_fault_exit_code(self, project_dir, monkeypatch, capsys):
        with patch("grailsc.cli.BuildTask") as mock_task:
            mock_task.return_value.execute.side_effect = RuntimeError("boom")
            assert _run(monkeypatch, "compile", str(project_dir)) == EXIT_FAULT
        assert "RuntimeError: boom" in capsys.readouterr().out

    def test_config_error_exit_code(self, project_dir, monkeypatch):
        assert _run(monkeypatch, "compile", str(project_dir), "--config", str(project_dir / "missing.ini")) == EXIT_CONFIG_ERROR

    def test_project_dir_must_exist(self, tmp_path, monkeypatch):
        assert _run(monkeypatch, "compile", str(tmp_path / "nowhere")) == EXIT_CONFIG_ERROR
