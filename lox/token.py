from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Token:
    kind: str
    lexeme: str
    literal: object
    line: int
    column: int = 0

    def is_kind(self, *kinds: str) -> bool:
        return self.kind in kinds

    def __str__(self) -> str:
        return f"{self.kind} {self.lexeme} {self.literal}"


KEYWORDS = frozenset(
    {
        "AND",
        "BREAK",
        "CLASS",
        "ELSE",
        "FALSE",
        "FOR",
        "FUN",
        "IF",
        "NIL",
        "OR",
        "PRINT",
        "RETURN",
        "STATIC",
        "SUPER",
        "THIS",
        "TRUE",
        "VAR",
        "WHILE",
    }
)

# Tokens that begin a declaration or statement; the parser resynchronises on them.
STATEMENT_STARTS = frozenset({"CLASS", "FUN", "VAR", "FOR", "IF", "WHILE", "PRINT", "RETURN"})

