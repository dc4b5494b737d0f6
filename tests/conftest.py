"""Pytest configuration and fixtures for grailsc tests.

Restores stdout/stderr after each test, since tests that capture fault
reports swap the diagnostic stream, and resets the module-level state
(resource loader, console timer) that grailsc keeps between calls.
"""

import sys

import pytest

from grailsc import output, resources


@pytest.fixture(autouse=True)
def _restore_stdio():  # noqa: PT004
    """Ensure stdout/stderr are always restored after each test."""
    yield

    if sys.stdout.closed:
        sys.stdout = sys.__stdout__
    if sys.stderr.closed:
        sys.stderr = sys.__stderr__


@pytest.fixture(autouse=True)
def _reset_module_state():  # noqa: PT004
    """Clear the registered resource loader and console settings."""
    yield
    resources.set_resource_loader(None)
    output.init_timer()
    output.set_verbose(False)
