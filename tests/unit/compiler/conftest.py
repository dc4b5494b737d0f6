"""Shared fixtures for compiler tests."""

from pathlib import Path

import pytest

from compiler_helpers import RecordingGenerator, set_mtime
from grailsc.compiler.errors import CompilationFailedError


@pytest.fixture
def dirs(tmp_path):
    """Source and destination roots."""
    src = tmp_path / "src"
    dest = tmp_path / "classes"
    src.mkdir()
    dest.mkdir()
    return src, dest


@pytest.fixture
def write_file():
    """Create a file (and parents) with content and an explicit mtime."""

    def _write(path: Path, content: str = "", mtime: float = 1_600_000_000.0) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        set_mtime(path, mtime)
        return path

    return _write


@pytest.fixture
def generator():
    return RecordingGenerator()


@pytest.fixture
def failing_generator():
    """Generator factory raising the given error (CompilationFailedError by default)."""

    def _make(error=None):
        return RecordingGenerator(error=error or CompilationFailedError("boom"))

    return _make
