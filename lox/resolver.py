"""
Static resolution pass.

Walks the parsed statements once, before anything runs, and

* records for every local variable / ``this`` / ``super`` reference how many
  scopes out its declaration lives (the interpreter's side-table),
* rejects misplaced ``return``/``break``/``this``/``super``, self-inheriting
  classes, redeclarations and self-referencing initializers,
* reports locals that are never read.

Top-level names are not resolved: references that find no enclosing local
scope are looked up in the interpreter's global scope at run time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from . import ast
from .diagnostics import ERROR, WARNING, Diagnostic, LoxInternalError, has_errors
from .token import Token

logger = logging.getLogger(__name__)


class FunctionType(Enum):
    NONE = "none"
    FUNCTION = "function"
    METHOD = "method"
    INITIALIZER = "initializer"
    STATIC_METHOD = "static method"


class ClassType(Enum):
    NONE = "none"
    CLASS = "class"
    SUBCLASS = "subclass"


@dataclass
class Binding:
    token: Optional[Token]
    defined: bool = False
    used: bool = False


@dataclass
class ResolvedProgram:
    statements: List[ast.Stmt]
    locals: Dict[ast.Expr, int]
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return has_errors(self.diagnostics)


class Resolver:
    def __init__(self, known_globals: Iterable[str] = (), strict: bool = False) -> None:
        self.strict = strict
        self._globals = set(known_globals)
        self._scopes: List[Dict[str, Binding]] = []
        self._locals: Dict[ast.Expr, int] = {}
        self._diagnostics: List[Diagnostic] = []
        self._current_function = FunctionType.NONE
        self._current_method = FunctionType.NONE
        self._current_class = ClassType.NONE
        self._loop_depth = 0

    def resolve(self, statements: Sequence[ast.Stmt]) -> ResolvedProgram:
        self._resolve_all(statements)
        logger.debug("resolved %d locals, %d diagnostics", len(self._locals), len(self._diagnostics))
        return ResolvedProgram(
            statements=list(statements),
            locals=dict(self._locals),
            diagnostics=list(self._diagnostics),
        )

    def _resolve_all(self, statements: Sequence[ast.Stmt]) -> None:
        for stmt in statements:
            self._resolve_stmt(stmt)

    def _resolve_stmt(self, stmt: ast.Stmt) -> None:
        if isinstance(stmt, ast.Block):
            self._begin_scope()
            self._resolve_all(stmt.statements)
            self._end_scope()
            return
        if isinstance(stmt, ast.Var):
            self._declare(stmt.name)
            if stmt.initializer is not None:
                self._resolve_expr(stmt.initializer)
            self._define(stmt.name)
            return
        if isinstance(stmt, ast.Function):
            self._declare(stmt.name)
            self._define(stmt.name)
            self._resolve_function(stmt.params, stmt.body, FunctionType.FUNCTION)
            return
        if isinstance(stmt, ast.Class):
            self._resolve_class(stmt)
            return
        if isinstance(stmt, ast.Expression):
            self._resolve_expr(stmt.expression)
            return
        if isinstance(stmt, ast.Print):
            self._resolve_expr(stmt.expression)
            return
        if isinstance(stmt, ast.If):
            self._resolve_expr(stmt.condition)
            self._resolve_stmt(stmt.then_branch)
            if stmt.else_branch is not None:
                self._resolve_stmt(stmt.else_branch)
            return
        if isinstance(stmt, ast.While):
            self._resolve_expr(stmt.condition)
            self._loop_depth += 1
            self._resolve_stmt(stmt.body)
            self._loop_depth -= 1
            return
        if isinstance(stmt, ast.Break):
            if self._loop_depth == 0:
                self._error(stmt.keyword, "Can't use 'break' outside of a loop.")
            return
        if isinstance(stmt, ast.Return):
            if self._current_function is FunctionType.NONE:
                self._error(stmt.keyword, "Can't return from top-level code.")
            if stmt.value is not None:
                if self._current_function is FunctionType.INITIALIZER:
                    self._error(stmt.keyword, "Can't return a value from an initializer.")
                self._resolve_expr(stmt.value)
            return
        raise LoxInternalError(f"Unsupported statement {stmt!r}")

    def _resolve_class(self, stmt: ast.Class) -> None:
        enclosing_class = self._current_class
        self._current_class = ClassType.CLASS
        self._declare(stmt.name)
        self._define(stmt.name)

        if stmt.superclass is not None:
            if stmt.superclass.name.lexeme == stmt.name.lexeme:
                self._error(stmt.superclass.name, "A class can't inherit from itself.")
            self._current_class = ClassType.SUBCLASS
            self._resolve_expr(stmt.superclass)
            self._begin_scope()
            self._scopes[-1]["super"] = Binding(token=None, defined=True, used=True)

        self._begin_scope()
        self._scopes[-1]["this"] = Binding(token=None, defined=True, used=True)
        for method in stmt.methods:
            kind = FunctionType.INITIALIZER if method.name.lexeme == "init" else FunctionType.METHOD
            self._resolve_function(method.params, method.body, kind)
        self._end_scope()

        # Static methods close over the class scope but never see `this`.
        for method in stmt.static_methods:
            self._resolve_function(method.params, method.body, FunctionType.STATIC_METHOD)

        if stmt.superclass is not None:
            self._end_scope()
        self._current_class = enclosing_class

    def _resolve_function(
        self,
        params: Sequence[Token],
        body: Sequence[ast.Stmt],
        kind: FunctionType,
    ) -> None:
        enclosing_function = self._current_function
        enclosing_method = self._current_method
        enclosing_loop_depth = self._loop_depth
        self._current_function = kind
        if kind is not FunctionType.FUNCTION:
            self._current_method = kind
        self._loop_depth = 0

        self._begin_scope()
        for param in params:
            self._declare(param)
            self._define(param)
        self._resolve_all(body)
        self._end_scope()

        self._current_function = enclosing_function
        self._current_method = enclosing_method
        self._loop_depth = enclosing_loop_depth

    def _resolve_expr(self, expr: ast.Expr) -> None:
        if isinstance(expr, ast.Variable):
            self._resolve_variable(expr)
            return
        if isinstance(expr, ast.Assign):
            self._resolve_expr(expr.value)
            self._resolve_local(expr, expr.name, read=False)
            return
        if isinstance(expr, (ast.Binary, ast.Logical)):
            self._resolve_expr(expr.left)
            self._resolve_expr(expr.right)
            return
        if isinstance(expr, ast.Unary):
            self._resolve_expr(expr.right)
            return
        if isinstance(expr, ast.Grouping):
            self._resolve_expr(expr.expression)
            return
        if isinstance(expr, ast.Literal):
            return
        if isinstance(expr, ast.Conditional):
            self._resolve_expr(expr.condition)
            self._resolve_expr(expr.then_branch)
            self._resolve_expr(expr.else_branch)
            return
        if isinstance(expr, ast.Call):
            self._resolve_expr(expr.callee)
            for argument in expr.arguments:
                self._resolve_expr(argument)
            return
        if isinstance(expr, ast.Get):
            self._resolve_expr(expr.obj)
            return
        if isinstance(expr, ast.Set):
            self._resolve_expr(expr.value)
            self._resolve_expr(expr.obj)
            return
        if isinstance(expr, ast.This):
            if self._current_class is ClassType.NONE:
                self._error(expr.keyword, "Can't use 'this' outside of a class.")
            elif self._current_method is FunctionType.STATIC_METHOD:
                self._error(expr.keyword, "Can't use 'this' in a static method.")
            else:
                self._resolve_local(expr, expr.keyword)
            return
        if isinstance(expr, ast.Super):
            if self._current_class is ClassType.NONE:
                self._error(expr.keyword, "Can't use 'super' outside of a class.")
            elif self._current_class is not ClassType.SUBCLASS:
                self._error(expr.keyword, "Can't use 'super' in a class with no superclass.")
            elif self._current_method is FunctionType.STATIC_METHOD:
                self._error(expr.keyword, "Can't use 'super' in a static method.")
            else:
                self._resolve_local(expr, expr.keyword)
            return
        if isinstance(expr, ast.AnonFunction):
            self._resolve_function(expr.params, expr.body, FunctionType.FUNCTION)
            return
        raise LoxInternalError(f"Unsupported expression {expr!r}")

    def _resolve_variable(self, expr: ast.Variable) -> None:
        name = expr.name.lexeme
        if self._scopes:
            binding = self._scopes[-1].get(name)
            if binding is not None and not binding.defined:
                # Inside its own initializer: the reference means the shadowed outer binding.
                # Function bodies run later, so an unbound name there is left to the globals.
                if self._resolve_outer(expr, name) or name in self._globals:
                    return
                if self._current_function is FunctionType.NONE:
                    self._error(expr.name, "Can't read local variable in its own initializer.")
                return
        self._resolve_local(expr, expr.name)

    def _resolve_outer(self, expr: ast.Expr, name: str) -> bool:
        for index in range(len(self._scopes) - 2, -1, -1):
            binding = self._scopes[index].get(name)
            if binding is not None:
                self._locals[expr] = len(self._scopes) - 1 - index
                binding.used = True
                return True
        return False

    def _resolve_local(self, expr: ast.Expr, name: Token, read: bool = True) -> None:
        for index in range(len(self._scopes) - 1, -1, -1):
            binding = self._scopes[index].get(name.lexeme)
            if binding is not None:
                self._locals[expr] = len(self._scopes) - 1 - index
                if read:
                    binding.used = True
                return

    def _begin_scope(self) -> None:
        self._scopes.append({})

    def _end_scope(self) -> None:
        scope = self._scopes.pop()
        for name, binding in scope.items():
            if binding.token is None or binding.used:
                continue
            severity = ERROR if self.strict else WARNING
            self._diagnostics.append(
                Diagnostic.at_token(binding.token, f"Local variable '{name}' is never used.", severity)
            )

    def _declare(self, name: Token) -> None:
        if not self._scopes:
            return
        scope = self._scopes[-1]
        if name.lexeme in scope:
            self._error(name, "Already a variable with this name in this scope.")
        scope[name.lexeme] = Binding(token=name)

    def _define(self, name: Token) -> None:
        if not self._scopes:
            self._globals.add(name.lexeme)
            return
        self._scopes[-1][name.lexeme].defined = True

    def _error(self, token: Token, message: str) -> None:
        diag = Diagnostic.at_token(token, message)
        logger.debug("resolve error: %s", diag)
        self._diagnostics.append(diag)


def resolve_program(
    statements: Sequence[ast.Stmt],
    known_globals: Iterable[str] = (),
    strict: bool = False,
) -> ResolvedProgram:
    return Resolver(known_globals=known_globals, strict=strict).resolve(statements)
