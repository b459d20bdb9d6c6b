from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from . import ast
from .diagnostics import Diagnostic, ParseError, has_errors
from .scanner import scan
from .token import STATEMENT_STARTS, Token

logger = logging.getLogger(__name__)

MAX_ARGUMENTS = 255


@dataclass
class ParseResult:
    statements: List[ast.Stmt]
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return has_errors(self.diagnostics)


class Parser:
    """Recursive-descent parser over a scanned token list.

    Syntax errors are recorded as diagnostics; after each one the parser skips
    to the next statement boundary and keeps going, so a single pass reports
    every independent error in the unit.
    """

    def __init__(self, tokens: Sequence[Token]) -> None:
        self.tokens = list(tokens)
        self.current = 0
        self.diagnostics: List[Diagnostic] = []

    def parse(self) -> ParseResult:
        statements: List[ast.Stmt] = []
        while not self._is_at_end():
            stmt = self._declaration()
            if stmt is not None:
                statements.append(stmt)
        logger.debug("parsed %d statements, %d diagnostics", len(statements), len(self.diagnostics))
        return ParseResult(statements=statements, diagnostics=self.diagnostics)

    # Declarations and statements

    def _declaration(self) -> Optional[ast.Stmt]:
        try:
            if self._match("CLASS"):
                return self._class_declaration()
            if self._check("FUN") and self._check_next("IDENTIFIER"):
                self._advance()
                return self._function("function")
            if self._match("VAR"):
                return self._var_declaration()
            return self._statement()
        except ParseError as err:
            self._report(err)
            self._synchronize()
            return None
        except RecursionError:
            self._report(ParseError(self._peek(), "Too much nesting."))
            self._synchronize()
            return None

    def _class_declaration(self) -> ast.Stmt:
        name = self._consume("IDENTIFIER", "Expect class name.")
        superclass = None
        if self._match("LESS"):
            self._consume("IDENTIFIER", "Expect superclass name.")
            superclass = ast.Variable(self._previous())
        self._consume("LEFT_BRACE", "Expect '{' before class body.")
        methods: List[ast.Function] = []
        static_methods: List[ast.Function] = []
        while not self._check("RIGHT_BRACE") and not self._is_at_end():
            if self._match("STATIC"):
                static_methods.append(self._function("static method"))
            else:
                methods.append(self._function("method"))
        self._consume("RIGHT_BRACE", "Expect '}' after class body.")
        return ast.Class(name, superclass, tuple(methods), tuple(static_methods))

    def _function(self, kind: str) -> ast.Function:
        name = self._consume("IDENTIFIER", f"Expect {kind} name.")
        params, body = self._function_rest(kind, f"Expect '(' after {kind} name.")
        return ast.Function(name, params, body)

    def _function_rest(self, kind: str, open_message: str) -> Tuple[Tuple[Token, ...], Tuple[ast.Stmt, ...]]:
        self._consume("LEFT_PAREN", open_message)
        params: List[Token] = []
        if not self._check("RIGHT_PAREN"):
            while True:
                if len(params) >= MAX_ARGUMENTS:
                    self._report(ParseError(self._peek(), f"Can't have more than {MAX_ARGUMENTS} parameters."))
                params.append(self._consume("IDENTIFIER", "Expect parameter name."))
                if not self._match("COMMA"):
                    break
        self._consume("RIGHT_PAREN", "Expect ')' after parameters.")
        self._consume("LEFT_BRACE", f"Expect '{{' before {kind} body.")
        return tuple(params), tuple(self._block())

    def _var_declaration(self) -> ast.Stmt:
        name = self._consume("IDENTIFIER", "Expect variable name.")
        initializer = None
        if self._match("EQUAL"):
            initializer = self._expression()
        self._consume("SEMICOLON", "Expect ';' after variable declaration.")
        return ast.Var(name, initializer)

    def _statement(self) -> ast.Stmt:
        if self._match("FOR"):
            return self._for_statement()
        if self._match("IF"):
            return self._if_statement()
        if self._match("PRINT"):
            value = self._expression()
            self._consume("SEMICOLON", "Expect ';' after value.")
            return ast.Print(value)
        if self._match("RETURN"):
            return self._return_statement()
        if self._match("WHILE"):
            return self._while_statement()
        if self._match("BREAK"):
            keyword = self._previous()
            self._consume("SEMICOLON", "Expect ';' after 'break'.")
            return ast.Break(keyword)
        if self._match("LEFT_BRACE"):
            return ast.Block(tuple(self._block()))
        return self._expression_statement()

    def _for_statement(self) -> ast.Stmt:
        self._consume("LEFT_PAREN", "Expect '(' after 'for'.")
        initializer: Optional[ast.Stmt]
        if self._match("SEMICOLON"):
            initializer = None
        elif self._match("VAR"):
            initializer = self._var_declaration()
        else:
            initializer = self._expression_statement()

        condition = None
        if not self._check("SEMICOLON"):
            condition = self._expression()
        self._consume("SEMICOLON", "Expect ';' after loop condition.")

        increment = None
        if not self._check("RIGHT_PAREN"):
            increment = self._expression()
        self._consume("RIGHT_PAREN", "Expect ')' after for clauses.")

        body = self._statement()
        if increment is not None:
            body = ast.Block((body, ast.Expression(increment)))
        if condition is None:
            condition = ast.Literal(True)
        body = ast.While(condition, body)
        if initializer is not None:
            body = ast.Block((initializer, body))
        return body

    def _if_statement(self) -> ast.Stmt:
        self._consume("LEFT_PAREN", "Expect '(' after 'if'.")
        condition = self._expression()
        self._consume("RIGHT_PAREN", "Expect ')' after if condition.")
        then_branch = self._statement()
        else_branch = None
        if self._match("ELSE"):
            else_branch = self._statement()
        return ast.If(condition, then_branch, else_branch)

    def _return_statement(self) -> ast.Stmt:
        keyword = self._previous()
        value = None
        if not self._check("SEMICOLON"):
            value = self._expression()
        self._consume("SEMICOLON", "Expect ';' after return value.")
        return ast.Return(keyword, value)

    def _while_statement(self) -> ast.Stmt:
        self._consume("LEFT_PAREN", "Expect '(' after 'while'.")
        condition = self._expression()
        self._consume("RIGHT_PAREN", "Expect ')' after condition.")
        return ast.While(condition, self._statement())

    def _block(self) -> List[ast.Stmt]:
        statements: List[ast.Stmt] = []
        while not self._check("RIGHT_BRACE") and not self._is_at_end():
            stmt = self._declaration()
            if stmt is not None:
                statements.append(stmt)
        self._consume("RIGHT_BRACE", "Expect '}' after block.")
        return statements

    def _expression_statement(self) -> ast.Stmt:
        expr = self._expression()
        self._consume("SEMICOLON", "Expect ';' after expression.")
        return ast.Expression(expr)

    # Expressions, lowest precedence first

    def _expression(self) -> ast.Expr:
        return self._comma()

    def _comma(self) -> ast.Expr:
        expr = self._conditional()
        while self._match("COMMA"):
            operator = self._previous()
            right = self._conditional()
            expr = ast.Binary(expr, operator, right)
        return expr

    def _conditional(self) -> ast.Expr:
        expr = self._assignment()
        if self._match("QUESTION"):
            then_branch = self._expression()
            self._consume("COLON", "Expect ':' after then branch of conditional expression.")
            else_branch = self._conditional()
            return ast.Conditional(expr, then_branch, else_branch)
        return expr

    def _assignment(self) -> ast.Expr:
        expr = self._or()
        if self._match("EQUAL"):
            equals = self._previous()
            value = self._conditional()
            if isinstance(expr, ast.Variable):
                return ast.Assign(expr.name, value)
            if isinstance(expr, ast.Get):
                return ast.Set(expr.obj, expr.name, value)
            self._report(ParseError(equals, "Invalid assignment target."))
        return expr

    def _or(self) -> ast.Expr:
        expr = self._and()
        while self._match("OR"):
            operator = self._previous()
            right = self._and()
            expr = ast.Logical(expr, operator, right)
        return expr

    def _and(self) -> ast.Expr:
        expr = self._equality()
        while self._match("AND"):
            operator = self._previous()
            right = self._equality()
            expr = ast.Logical(expr, operator, right)
        return expr

    def _equality(self) -> ast.Expr:
        return self._binary(("BANG_EQUAL", "EQUAL_EQUAL"), self._comparison)

    def _comparison(self) -> ast.Expr:
        return self._binary(("GREATER", "GREATER_EQUAL", "LESS", "LESS_EQUAL"), self._term)

    def _term(self) -> ast.Expr:
        return self._binary(("MINUS", "PLUS"), self._factor, leading=("PLUS",))

    def _factor(self) -> ast.Expr:
        return self._binary(("SLASH", "STAR"), self._unary)

    def _binary(self, kinds, operand, leading=None) -> ast.Expr:
        # `leading` lists the operators that can never start an operand; MINUS is unary.
        if self._check(*(leading if leading is not None else kinds)):
            operator = self._advance()
            self._report(ParseError(operator, f"Binary operator '{operator.lexeme}' has no left-hand operand."))
            return operand()
        expr = operand()
        while self._match(*kinds):
            operator = self._previous()
            right = operand()
            expr = ast.Binary(expr, operator, right)
        return expr

    def _unary(self) -> ast.Expr:
        if self._match("BANG", "MINUS"):
            operator = self._previous()
            return ast.Unary(operator, self._unary())
        return self._call()

    def _call(self) -> ast.Expr:
        expr = self._primary()
        while True:
            if self._match("LEFT_PAREN"):
                expr = self._finish_call(expr)
            elif self._match("DOT"):
                name = self._consume("IDENTIFIER", "Expect property name after '.'.")
                expr = ast.Get(expr, name)
            else:
                break
        return expr

    def _finish_call(self, callee: ast.Expr) -> ast.Expr:
        arguments: List[ast.Expr] = []
        if not self._check("RIGHT_PAREN"):
            while True:
                if len(arguments) >= MAX_ARGUMENTS:
                    self._report(ParseError(self._peek(), f"Can't have more than {MAX_ARGUMENTS} arguments."))
                arguments.append(self._conditional())
                if not self._match("COMMA"):
                    break
        paren = self._consume("RIGHT_PAREN", "Expect ')' after arguments.")
        return ast.Call(callee, paren, tuple(arguments))

    def _primary(self) -> ast.Expr:
        if self._match("FALSE"):
            return ast.Literal(False)
        if self._match("TRUE"):
            return ast.Literal(True)
        if self._match("NIL"):
            return ast.Literal(None)
        if self._match("NUMBER", "STRING"):
            return ast.Literal(self._previous().literal)
        if self._match("SUPER"):
            keyword = self._previous()
            self._consume("DOT", "Expect '.' after 'super'.")
            method = self._consume("IDENTIFIER", "Expect superclass method name.")
            return ast.Super(keyword, method)
        if self._match("THIS"):
            return ast.This(self._previous())
        if self._match("IDENTIFIER"):
            return ast.Variable(self._previous())
        if self._match("FUN"):
            keyword = self._previous()
            params, body = self._function_rest("function", "Expect '(' after 'fun'.")
            return ast.AnonFunction(keyword, params, body)
        if self._match("LEFT_PAREN"):
            expr = self._expression()
            self._consume("RIGHT_PAREN", "Expect ')' after expression.")
            return ast.Grouping(expr)
        raise ParseError(self._peek(), "Expect expression.")

    # Token stream helpers

    def _report(self, err: ParseError) -> None:
        diag = err.to_diagnostic()
        logger.debug("parse error: %s", diag)
        self.diagnostics.append(diag)

    def _synchronize(self) -> None:
        self._advance()
        while not self._is_at_end():
            if self._previous().kind == "SEMICOLON":
                return
            if self._peek().kind in STATEMENT_STARTS:
                return
            self._advance()

    def _consume(self, kind: str, message: str) -> Token:
        if self._check(kind):
            return self._advance()
        raise ParseError(self._peek(), message)

    def _match(self, *kinds: str) -> bool:
        if self._check(*kinds):
            self._advance()
            return True
        return False

    def _check(self, *kinds: str) -> bool:
        if self._is_at_end():
            return False
        return self._peek().is_kind(*kinds)

    def _check_next(self, kind: str) -> bool:
        if self._is_at_end() or self.current + 1 >= len(self.tokens):
            return False
        return self.tokens[self.current + 1].kind == kind

    def _advance(self) -> Token:
        if not self._is_at_end():
            self.current += 1
        return self._previous()

    def _is_at_end(self) -> bool:
        return self._peek().kind == "EOF"

    def _peek(self) -> Token:
        return self.tokens[self.current]

    def _previous(self) -> Token:
        return self.tokens[self.current - 1]


def parse_tokens(tokens: Sequence[Token]) -> ParseResult:
    return Parser(tokens).parse()


def parse_program(source: str) -> ParseResult:
    """Scan and parse `source`; scanner diagnostics come first in the result."""
    scanned = scan(source)
    result = parse_tokens(scanned.tokens)
    result.diagnostics = scanned.diagnostics + result.diagnostics
    return result
