from .diagnostics import Diagnostic, LoxError, LoxRuntimeError, ParseError
from .interp import Interpreter, stringify
from .parser import parse_program
from .resolver import resolve_program
from .session import RunResult, run_source

__all__ = [
    "Diagnostic",
    "Interpreter",
    "LoxError",
    "LoxRuntimeError",
    "ParseError",
    "RunResult",
    "parse_program",
    "resolve_program",
    "run_source",
    "stringify",
]
