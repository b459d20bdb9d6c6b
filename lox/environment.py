from __future__ import annotations

from typing import Dict

from .diagnostics import LoxInternalError, LoxRuntimeError
from .token import Token


class Environment:
    """One lexical scope: its own bindings plus a link to the enclosing scope.

    Scopes are shared freely (every closure keeps the scope it was created in),
    so nothing here copies values or owns its parent.
    """

    def __init__(self, enclosing: Environment | None = None) -> None:
        self.enclosing = enclosing
        self.values: Dict[str, object] = {}

    def define(self, name: str, value: object) -> None:
        self.values[name] = value

    def get(self, name: Token) -> object:
        if name.lexeme in self.values:
            return self.values[name.lexeme]
        if self.enclosing is not None:
            return self.enclosing.get(name)
        raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def assign(self, name: Token, value: object) -> None:
        if name.lexeme in self.values:
            self.values[name.lexeme] = value
            return
        if self.enclosing is not None:
            self.enclosing.assign(name, value)
            return
        raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def ancestor(self, distance: int) -> Environment:
        env = self
        for _ in range(distance):
            if env.enclosing is None:
                raise LoxInternalError(f"scope chain shorter than resolved distance {distance}")
            env = env.enclosing
        return env

    def get_at(self, distance: int, name: str) -> object:
        values = self.ancestor(distance).values
        if name not in values:
            raise LoxInternalError(f"'{name}' is not bound {distance} scope(s) out")
        return values[name]

    def assign_at(self, distance: int, name: Token, value: object) -> None:
        self.ancestor(distance).values[name.lexeme] = value

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"Environment({sorted(self.values)}, enclosing={self.enclosing is not None})"
