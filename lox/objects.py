"""
Runtime object model: callables, user functions, classes and instances.

Statement execution reports how it finished through a completion value:
``None`` for normal completion, ``BREAK`` after a ``break``, or a
``Returned`` record after a ``return``. Loops absorb ``BREAK`` and calls
absorb ``Returned``; neither ever reaches the top level.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Optional, Sequence, Tuple

from . import ast
from .diagnostics import LoxInternalError, LoxRuntimeError
from .environment import Environment
from .token import Token

if TYPE_CHECKING:  # pragma: no cover
    from .interp import Interpreter


class _Break:
    def __repr__(self) -> str:
        return "BREAK"


BREAK = _Break()


@dataclass(frozen=True)
class Returned:
    value: object


class LoxCallable:
    def arity(self) -> int:
        raise NotImplementedError

    def call(self, interpreter: Interpreter, arguments: Sequence[object]) -> object:
        raise NotImplementedError


class LoxFunction(LoxCallable):
    def __init__(
        self,
        name: Optional[str],
        params: Tuple[Token, ...],
        body: Tuple[ast.Stmt, ...],
        closure: Environment,
        is_initializer: bool = False,
    ) -> None:
        self.name = name
        self.params = params
        self.body = body
        self.closure = closure
        self.is_initializer = is_initializer

    @classmethod
    def from_declaration(
        cls, declaration: ast.Function, closure: Environment, is_initializer: bool = False
    ) -> LoxFunction:
        return cls(declaration.name.lexeme, declaration.params, declaration.body, closure, is_initializer)

    def arity(self) -> int:
        return len(self.params)

    def call(self, interpreter: Interpreter, arguments: Sequence[object]) -> object:
        env = Environment(self.closure)
        for param, value in zip(self.params, arguments):
            env.define(param.lexeme, value)
        completion = interpreter.execute_block(self.body, env)
        if completion is BREAK:
            raise LoxInternalError(f"'break' escaped the body of {self}")
        if self.is_initializer:
            return self.closure.get_at(0, "this")
        if isinstance(completion, Returned):
            return completion.value
        return None

    def bind(self, instance: LoxInstance) -> LoxFunction:
        env = Environment(self.closure)
        env.define("this", instance)
        return LoxFunction(self.name, self.params, self.body, env, self.is_initializer)

    def __str__(self) -> str:
        if self.name is None:
            return "<fn>"
        return f"<fn {self.name}>"


class LoxClass(LoxCallable):
    def __init__(
        self,
        name: str,
        superclass: Optional[LoxClass],
        methods: Dict[str, LoxFunction],
        static_methods: Dict[str, LoxFunction],
    ) -> None:
        self.name = name
        self.superclass = superclass
        self.methods = methods
        self.static_methods = static_methods

    def find_method(self, name: str) -> Optional[LoxFunction]:
        if name in self.methods:
            return self.methods[name]
        if self.superclass is not None:
            return self.superclass.find_method(name)
        return None

    def find_static(self, name: str) -> Optional[LoxFunction]:
        if name in self.static_methods:
            return self.static_methods[name]
        if self.superclass is not None:
            return self.superclass.find_static(name)
        return None

    def get(self, name: Token) -> object:
        method = self.find_static(name.lexeme)
        if method is None:
            raise LoxRuntimeError(name, f"Undefined property '{name.lexeme}'.")
        return method

    def arity(self) -> int:
        initializer = self.find_method("init")
        if initializer is None:
            return 0
        return initializer.arity()

    def call(self, interpreter: Interpreter, arguments: Sequence[object]) -> object:
        instance = LoxInstance(self)
        initializer = self.find_method("init")
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments)
        return instance

    def __str__(self) -> str:
        return self.name


class LoxInstance:
    def __init__(self, klass: LoxClass) -> None:
        self.klass = klass
        self.fields: Dict[str, object] = {}

    def get(self, name: Token) -> object:
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]
        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)
        raise LoxRuntimeError(name, f"Undefined property '{name.lexeme}'.")

    def set(self, name: Token, value: object) -> None:
        self.fields[name.lexeme] = value

    def __str__(self) -> str:
        return f"{self.klass.name} instance"
