#!/usr/bin/env python3
"""Statically check every .lox file under the given roots without running it."""
from __future__ import annotations

from pathlib import Path
import sys
from typing import Sequence

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from lox.diagnostics import has_errors
from lox.parser import parse_program
from lox.resolver import resolve_program


def check_file(path: Path) -> list:
    parsed = parse_program(path.read_text())
    if parsed.has_errors:
        return parsed.diagnostics
    return parsed.diagnostics + resolve_program(parsed.statements).diagnostics


def main(argv: Sequence[str] | None = None) -> int:
    roots = list(argv if argv is not None else sys.argv[1:]) or ["."]
    failed = False
    any_files = False

    for root in roots:
        files = sorted(Path(root).glob("*.lox"))
        if not files:
            print(f"[warn] no .lox files under {root}", file=sys.stderr)
            continue
        any_files = True
        for path in files:
            diagnostics = check_file(path)
            if has_errors(diagnostics):
                failed = True
                print(f"[error] {path}", file=sys.stderr)
            else:
                print(f"[ok] {path}")
            for diag in diagnostics:
                print(f"  {diag}", file=sys.stderr)

    if not any_files:
        print("no lox files found in provided roots", file=sys.stderr)
        return 1

    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
