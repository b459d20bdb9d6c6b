"""Scan → parse → resolve → interpret, with the static-error gate in between."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .diagnostics import Diagnostic, LoxRuntimeError, has_errors
from .interp import Interpreter
from .parser import parse_program
from .resolver import Resolver

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    diagnostics: List[Diagnostic] = field(default_factory=list)
    runtime_error: Optional[LoxRuntimeError] = None

    @property
    def has_static_errors(self) -> bool:
        return has_errors(self.diagnostics)

    @property
    def ok(self) -> bool:
        return not self.has_static_errors and self.runtime_error is None


def run_source(
    source: str,
    interpreter: Interpreter | None = None,
    stdout=None,
    strict: bool = False,
    echo: bool = False,
) -> RunResult:
    """Run `source` to completion, collecting every diagnostic on the way.

    Nothing executes when scanning, parsing or resolution reported an error.
    Passing an existing `interpreter` keeps its globals (the REPL does this).
    """
    if interpreter is None:
        interpreter = Interpreter(stdout=stdout)

    parsed = parse_program(source)
    if parsed.has_errors:
        logger.debug("skipping resolution: %d parse diagnostics", len(parsed.diagnostics))
        return RunResult(diagnostics=parsed.diagnostics)

    resolver = Resolver(known_globals=interpreter.globals.values.keys(), strict=strict)
    resolved = resolver.resolve(parsed.statements)
    diagnostics = parsed.diagnostics + resolved.diagnostics
    if resolved.has_errors:
        return RunResult(diagnostics=diagnostics)

    try:
        interpreter.interpret(resolved, echo=echo)
    except LoxRuntimeError as err:
        logger.debug("runtime error: %s", err.message)
        return RunResult(diagnostics=diagnostics, runtime_error=err)
    return RunResult(diagnostics=diagnostics)
