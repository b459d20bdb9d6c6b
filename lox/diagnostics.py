"""
Diagnostics and error types shared by the scanner, parser, resolver and
interpreter.

Static stages (scanning, parsing, resolution) accumulate `Diagnostic` records
instead of raising, so a single run can report every problem it finds. Runtime
failures are raised as `LoxRuntimeError` and unwind to the top of the current
interpretation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from .token import Token

ERROR = "error"
WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    message: str
    line: int
    where: str = ""
    severity: str = ERROR

    @classmethod
    def at_token(cls, token: Token, message: str, severity: str = ERROR) -> Diagnostic:
        if token.kind == "EOF":
            where = " at end"
        else:
            where = f" at '{token.lexeme}'"
        return cls(message=message, line=token.line, where=where, severity=severity)

    @property
    def is_error(self) -> bool:
        return self.severity == ERROR

    def __str__(self) -> str:
        label = "Error" if self.is_error else "Warning"
        return f"[line {self.line}] {label}{self.where}: {self.message}"


def has_errors(diagnostics: Iterable[Diagnostic]) -> bool:
    return any(diag.is_error for diag in diagnostics)


class LoxError(Exception):
    pass


class ParseError(LoxError):
    def __init__(self, token: Token, message: str) -> None:
        super().__init__(message)
        self.token = token
        self.message = message

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic.at_token(self.token, self.message)


class LoxRuntimeError(LoxError):
    def __init__(self, token: Optional[Token], message: str) -> None:
        super().__init__(message)
        self.token = token
        self.message = message

    def __str__(self) -> str:
        if self.token is None:
            return self.message
        return f"{self.message}\n[line {self.token.line}]"


class LoxInternalError(LoxError):
    """Raised when the resolver/interpreter contract is broken."""
