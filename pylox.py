#!/usr/bin/env python3
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from lox.interp import Interpreter
from lox.session import RunResult, run_source

# sysexits.h codes.
EX_DATAERR = 65
EX_NOINPUT = 66
EX_SOFTWARE = 70


def report(result: RunResult) -> None:
    for diag in result.diagnostics:
        print(diag, file=sys.stderr)
    if result.runtime_error is not None:
        print(result.runtime_error, file=sys.stderr)


def run_file(path: Path, strict: bool = False) -> int:
    try:
        source = path.read_text()
    except OSError as exc:
        print(f"error: unable to read source: {exc}", file=sys.stderr)
        return EX_NOINPUT

    result = run_source(source, strict=strict)
    report(result)
    if result.has_static_errors:
        return EX_DATAERR
    if result.runtime_error is not None:
        return EX_SOFTWARE
    return 0


def run_prompt(strict: bool = False) -> int:
    interpreter = Interpreter()
    while True:
        sys.stdout.write("> ")
        sys.stdout.flush()
        line = sys.stdin.readline()
        if not line:
            sys.stdout.write("\n")
            return 0
        report(run_source(line, interpreter=interpreter, strict=strict, echo=True))


def main(argv: Sequence[str] | None = None) -> int:
    argp = argparse.ArgumentParser(description="Lox interpreter")
    argp.add_argument("script", nargs="?", help="Path to a .lox file; starts a REPL when omitted")
    argp.add_argument("--strict", action="store_true", help="Treat unused local variables as errors")
    argp.add_argument("-v", "--verbose", action="store_true", help="Log pipeline progress to stderr")
    args = argp.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.script:
        return run_file(Path(args.script), strict=args.strict)
    return run_prompt(strict=args.strict)


if __name__ == "__main__":
    raise SystemExit(main())
