from __future__ import annotations

import io

import pytest

from lox.session import run_source


@pytest.fixture
def run_lox():
    """Run a Lox program and return (stdout text, RunResult)."""

    def _run(source: str, **kwargs):
        out = io.StringIO()
        result = run_source(source, stdout=out, **kwargs)
        return out.getvalue(), result

    return _run
