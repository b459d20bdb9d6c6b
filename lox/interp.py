from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Dict, Iterator, List, Mapping, Sequence

from . import ast
from .diagnostics import LoxInternalError, LoxRuntimeError
from .environment import Environment
from .objects import BREAK, LoxCallable, LoxClass, LoxFunction, LoxInstance, Returned
from .resolver import ResolvedProgram
from .runtime import NATIVES, NativeFunction, NativeImpl
from .token import Token

logger = logging.getLogger(__name__)

# Each Lox call costs several Python frames; the default limit stops recursion
# a few hundred calls deep.
RECURSION_LIMIT = 10_000


def is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_truthy(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(left: object, right: object) -> bool:
    if left is None or right is None:
        return left is right
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if is_number(left) and is_number(right):
        return left == right
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    return left is right


def stringify(value: object) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if is_number(value):
        text = str(value)
        if text.endswith(".0"):
            text = text[:-2]
        return text
    return str(value)


_ORDERING = {
    "GREATER": lambda a, b: a > b,
    "GREATER_EQUAL": lambda a, b: a >= b,
    "LESS": lambda a, b: a < b,
    "LESS_EQUAL": lambda a, b: a <= b,
}


class Interpreter:
    def __init__(
        self,
        stdout=None,
        natives: Mapping[str, NativeFunction] | None = None,
    ) -> None:
        self.stdout = stdout or sys.stdout
        self.globals = Environment()
        self.environment = self.globals
        self.locals: Dict[ast.Expr, int] = {}
        if sys.getrecursionlimit() < RECURSION_LIMIT:
            sys.setrecursionlimit(RECURSION_LIMIT)
        for name, native in (NATIVES if natives is None else natives).items():
            self.globals.define(name, native)

    def define_native(self, name: str, arity: int, impl: NativeImpl) -> NativeFunction:
        native = NativeFunction(name=name, param_count=arity, impl=impl)
        self.globals.define(name, native)
        logger.debug("registered native %s/%d", name, arity)
        return native

    def interpret(self, program: ResolvedProgram, echo: bool = False) -> None:
        """Run a resolved program against this interpreter's global scope.

        With `echo`, a program made of a single expression statement prints the
        expression's value instead (used by the REPL). Runtime errors propagate
        as `LoxRuntimeError`; the global scope keeps whatever ran before them.

        Resolved distances accumulate across calls and are never dropped:
        closures created by an earlier program keep pointing at its nodes.
        """
        if program.has_errors:
            raise LoxInternalError("refusing to run a program with static errors")
        self.locals.update(program.locals)
        statements = program.statements
        logger.debug("interpreting %d statements", len(statements))
        if echo and len(statements) == 1 and isinstance(statements[0], ast.Expression):
            self._write(stringify(self.evaluate(statements[0].expression)))
            return
        for stmt in statements:
            completion = self.execute(stmt)
            if completion is not None:
                raise LoxInternalError(f"{completion!r} escaped to the top level")

    # Statements

    def execute(self, stmt: ast.Stmt) -> object:
        if isinstance(stmt, ast.Expression):
            self.evaluate(stmt.expression)
            return None
        if isinstance(stmt, ast.Print):
            self._write(stringify(self.evaluate(stmt.expression)))
            return None
        if isinstance(stmt, ast.Var):
            value = None
            if stmt.initializer is not None:
                value = self.evaluate(stmt.initializer)
            self.environment.define(stmt.name.lexeme, value)
            return None
        if isinstance(stmt, ast.Block):
            return self.execute_block(stmt.statements, Environment(self.environment))
        if isinstance(stmt, ast.If):
            if is_truthy(self.evaluate(stmt.condition)):
                return self.execute(stmt.then_branch)
            if stmt.else_branch is not None:
                return self.execute(stmt.else_branch)
            return None
        if isinstance(stmt, ast.While):
            while is_truthy(self.evaluate(stmt.condition)):
                completion = self.execute(stmt.body)
                if completion is BREAK:
                    break
                if completion is not None:
                    return completion
            return None
        if isinstance(stmt, ast.Break):
            return BREAK
        if isinstance(stmt, ast.Function):
            self.environment.define(stmt.name.lexeme, LoxFunction.from_declaration(stmt, self.environment))
            return None
        if isinstance(stmt, ast.Return):
            value = None
            if stmt.value is not None:
                value = self.evaluate(stmt.value)
            return Returned(value)
        if isinstance(stmt, ast.Class):
            self._execute_class(stmt)
            return None
        raise LoxInternalError(f"Unsupported statement {stmt!r}")

    def execute_block(self, statements: Sequence[ast.Stmt], env: Environment) -> object:
        with self._scope(env):
            for stmt in statements:
                completion = self.execute(stmt)
                if completion is not None:
                    return completion
        return None

    @contextmanager
    def _scope(self, env: Environment) -> Iterator[Environment]:
        previous = self.environment
        self.environment = env
        try:
            yield env
        finally:
            self.environment = previous

    def _execute_class(self, stmt: ast.Class) -> None:
        superclass = None
        if stmt.superclass is not None:
            superclass = self.evaluate(stmt.superclass)
            if not isinstance(superclass, LoxClass):
                raise LoxRuntimeError(stmt.superclass.name, "Superclass must be a class.")

        self.environment.define(stmt.name.lexeme, None)
        method_env = self.environment
        if superclass is not None:
            method_env = Environment(self.environment)
            method_env.define("super", superclass)

        methods = {
            method.name.lexeme: LoxFunction.from_declaration(
                method, method_env, is_initializer=method.name.lexeme == "init"
            )
            for method in stmt.methods
        }
        static_methods = {
            method.name.lexeme: LoxFunction.from_declaration(method, method_env)
            for method in stmt.static_methods
        }
        klass = LoxClass(stmt.name.lexeme, superclass, methods, static_methods)
        self.environment.assign(stmt.name, klass)

    # Expressions

    def evaluate(self, expr: ast.Expr) -> object:
        if isinstance(expr, ast.Literal):
            return expr.value
        if isinstance(expr, ast.Grouping):
            return self.evaluate(expr.expression)
        if isinstance(expr, ast.Variable):
            return self._look_up(expr.name, expr)
        if isinstance(expr, ast.Assign):
            value = self.evaluate(expr.value)
            distance = self.locals.get(expr)
            if distance is not None:
                self.environment.assign_at(distance, expr.name, value)
            else:
                self.globals.assign(expr.name, value)
            return value
        if isinstance(expr, ast.Binary):
            return self._eval_binary(expr)
        if isinstance(expr, ast.Logical):
            left = self.evaluate(expr.left)
            if expr.operator.kind == "OR":
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self.evaluate(expr.right)
        if isinstance(expr, ast.Unary):
            return self._eval_unary(expr)
        if isinstance(expr, ast.Conditional):
            if is_truthy(self.evaluate(expr.condition)):
                return self.evaluate(expr.then_branch)
            return self.evaluate(expr.else_branch)
        if isinstance(expr, ast.Call):
            return self._eval_call(expr)
        if isinstance(expr, ast.Get):
            obj = self.evaluate(expr.obj)
            if isinstance(obj, (LoxInstance, LoxClass)):
                return obj.get(expr.name)
            raise LoxRuntimeError(expr.name, "Only instances have properties.")
        if isinstance(expr, ast.Set):
            obj = self.evaluate(expr.obj)
            if not isinstance(obj, LoxInstance):
                raise LoxRuntimeError(expr.name, "Only instances have fields.")
            value = self.evaluate(expr.value)
            obj.set(expr.name, value)
            return value
        if isinstance(expr, ast.This):
            return self._look_up(expr.keyword, expr)
        if isinstance(expr, ast.Super):
            return self._eval_super(expr)
        if isinstance(expr, ast.AnonFunction):
            return LoxFunction(None, expr.params, expr.body, self.environment)
        raise LoxInternalError(f"Unsupported expression {expr!r}")

    def _eval_binary(self, expr: ast.Binary) -> object:
        op = expr.operator
        if op.kind == "COMMA":
            self.evaluate(expr.left)
            return self.evaluate(expr.right)

        left = self.evaluate(expr.left)
        right = self.evaluate(expr.right)
        if op.kind == "EQUAL_EQUAL":
            return is_equal(left, right)
        if op.kind == "BANG_EQUAL":
            return not is_equal(left, right)
        if op.kind in _ORDERING:
            if (is_number(left) and is_number(right)) or (isinstance(left, str) and isinstance(right, str)):
                return _ORDERING[op.kind](left, right)
            raise LoxRuntimeError(op, f"Operands for '{op.lexeme}' must be both numbers or both strings.")
        if op.kind == "PLUS":
            if is_number(left) and is_number(right):
                return left + right
            if isinstance(left, str) or isinstance(right, str):
                return stringify(left) + stringify(right)
            raise LoxRuntimeError(op, "Operands must be two numbers or two strings.")
        self._check_number_operands(op, left, right)
        if op.kind == "MINUS":
            return left - right
        if op.kind == "STAR":
            return left * right
        if op.kind == "SLASH":
            if right == 0:
                raise LoxRuntimeError(op, "Division by zero.")
            return left / right
        raise LoxInternalError(f"Unsupported operator {op.lexeme!r}")

    def _eval_unary(self, expr: ast.Unary) -> object:
        right = self.evaluate(expr.right)
        if expr.operator.kind == "MINUS":
            if not is_number(right):
                raise LoxRuntimeError(expr.operator, "Operand must be a number.")
            return -right
        if expr.operator.kind == "BANG":
            return not is_truthy(right)
        raise LoxInternalError(f"Unsupported unary operator {expr.operator.lexeme!r}")

    def _eval_call(self, expr: ast.Call) -> object:
        callee = self.evaluate(expr.callee)
        arguments: List[object] = [self.evaluate(argument) for argument in expr.arguments]
        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError(expr.paren, "Can only call functions and classes.")
        if len(arguments) != callee.arity():
            raise LoxRuntimeError(
                expr.paren,
                f"Expected {callee.arity()} arguments but got {len(arguments)}.",
            )
        try:
            return callee.call(self, arguments)
        except RecursionError:
            raise LoxRuntimeError(expr.paren, "Stack overflow.") from None

    def _eval_super(self, expr: ast.Super) -> object:
        distance = self.locals.get(expr)
        if distance is None:
            raise LoxInternalError("'super' was not resolved")
        superclass = self.environment.get_at(distance, "super")
        # The scope holding `this` is always the one just inside the `super` scope.
        instance = self.environment.get_at(distance - 1, "this")
        method = superclass.find_method(expr.method.lexeme)
        if method is None:
            raise LoxRuntimeError(expr.method, f"Undefined property '{expr.method.lexeme}'.")
        return method.bind(instance)

    def _look_up(self, name: Token, expr: ast.Expr) -> object:
        distance = self.locals.get(expr)
        if distance is not None:
            return self.environment.get_at(distance, name.lexeme)
        return self.globals.get(name)

    def _check_number_operands(self, operator: Token, left: object, right: object) -> None:
        if is_number(left) and is_number(right):
            return
        raise LoxRuntimeError(operator, "Operands must be numbers.")

    def _write(self, text: str) -> None:
        self.stdout.write(text + "\n")
        self.stdout.flush()
