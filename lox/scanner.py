from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from lark import Lark

from .diagnostics import Diagnostic
from .token import Token

logger = logging.getLogger(__name__)

# The rule only exists so lark keeps every terminal; scanning goes through Lark.lex.
_GRAMMAR = r"""
start: token*
token: LEFT_PAREN | RIGHT_PAREN | LEFT_BRACE | RIGHT_BRACE
     | COMMA | DOT | MINUS | PLUS | SEMICOLON | SLASH | STAR | QUESTION | COLON
     | BANG_EQUAL | BANG | EQUAL_EQUAL | EQUAL
     | GREATER_EQUAL | GREATER | LESS_EQUAL | LESS
     | AND | BREAK | CLASS | ELSE | FALSE | FOR | FUN | IF | NIL | OR
     | PRINT | RETURN | STATIC | SUPER | THIS | TRUE | VAR | WHILE
     | IDENTIFIER | STRING | NUMBER | UNEXPECTED

LEFT_PAREN: "("
RIGHT_PAREN: ")"
LEFT_BRACE: "{"
RIGHT_BRACE: "}"
COMMA: ","
DOT: "."
MINUS: "-"
PLUS: "+"
SEMICOLON: ";"
SLASH: "/"
STAR: "*"
QUESTION: "?"
COLON: ":"
BANG_EQUAL: "!="
BANG: "!"
EQUAL_EQUAL: "=="
EQUAL: "="
GREATER_EQUAL: ">="
GREATER: ">"
LESS_EQUAL: "<="
LESS: "<"

AND: "and"
BREAK: "break"
CLASS: "class"
ELSE: "else"
FALSE: "false"
FOR: "for"
FUN: "fun"
IF: "if"
NIL: "nil"
OR: "or"
PRINT: "print"
RETURN: "return"
STATIC: "static"
SUPER: "super"
THIS: "this"
TRUE: "true"
VAR: "var"
WHILE: "while"

IDENTIFIER: /[A-Za-z_][A-Za-z0-9_]*/
STRING: /"[^"]*"/
NUMBER: /[0-9]+(\.[0-9]+)?/
UNEXPECTED.-1: /./

LINE_COMMENT: /\/\/[^\n]*/
BLOCK_COMMENT: /\/\*(.|\n)*?\*\//

%import common.WS
%ignore WS
%ignore LINE_COMMENT
%ignore BLOCK_COMMENT
"""

LOX_LEXER = Lark(_GRAMMAR, start="start", parser="lalr", lexer="basic")


@dataclass
class ScanResult:
    tokens: List[Token]
    diagnostics: List[Diagnostic] = field(default_factory=list)


def _convert(raw) -> Token:
    kind = raw.type
    text = str(raw)
    literal: object = None
    if kind == "NUMBER":
        literal = float(text)
    elif kind == "STRING":
        literal = text[1:-1]
    return Token(kind=kind, lexeme=text, literal=literal, line=raw.line, column=raw.column)


def scan(source: str) -> ScanResult:
    tokens: List[Token] = []
    diagnostics: List[Diagnostic] = []
    for raw in LOX_LEXER.lex(source):
        if raw.type == "UNEXPECTED":
            message = "Unterminated string." if str(raw) == '"' else "Unexpected character."
            diagnostics.append(Diagnostic(message=message, line=raw.line))
            continue
        tokens.append(_convert(raw))
    eof_line = source.count("\n") + 1
    tokens.append(Token(kind="EOF", lexeme="", literal=None, line=eof_line))
    logger.debug("scanned %d tokens, %d diagnostics", len(tokens), len(diagnostics))
    return ScanResult(tokens=tokens, diagnostics=diagnostics)
