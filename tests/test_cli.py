from __future__ import annotations

import importlib.util
import io
from pathlib import Path

import pytest

import pylox

ROOT = Path(__file__).resolve().parents[1]


def load_checker():
    spec = importlib.util.spec_from_file_location("check_lox", ROOT / "tools" / "check_lox.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def write(tmp_path: Path, name: str, source: str) -> Path:
    path = tmp_path / name
    path.write_text(source)
    return path


def test_runs_script(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    script = write(tmp_path, "ok.lox", 'var who = "world"; print "hello " + who;')
    assert pylox.main([str(script)]) == 0
    captured = capsys.readouterr()
    assert captured.out == "hello world\n"
    assert captured.err == ""


def test_static_error_exit_code(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    script = write(tmp_path, "bad.lox", 'print "never";\nprint ;')
    assert pylox.main([str(script)]) == pylox.EX_DATAERR
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "[line 2] Error at ';': Expect expression." in captured.err


def test_runtime_error_exit_code(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    script = write(tmp_path, "boom.lox", 'print "before"; print 1 / 0;')
    assert pylox.main([str(script)]) == pylox.EX_SOFTWARE
    captured = capsys.readouterr()
    assert captured.out == "before\n"
    assert "Division by zero.\n[line 1]" in captured.err


def test_stack_overflow_exit_code(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    script = write(tmp_path, "deep.lox", "fun f() { f(); }\nf();")
    assert pylox.main([str(script)]) == pylox.EX_SOFTWARE
    assert "Stack overflow." in capsys.readouterr().err


def test_missing_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert pylox.main([str(tmp_path / "missing.lox")]) == pylox.EX_NOINPUT
    assert "unable to read source" in capsys.readouterr().err


def test_unused_local_is_warning_unless_strict(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    script = write(tmp_path, "unused.lox", '{ var idle = 1; }\nprint "ran";')
    assert pylox.main([str(script)]) == 0
    captured = capsys.readouterr()
    assert captured.out == "ran\n"
    assert "Warning at 'idle': Local variable 'idle' is never used." in captured.err

    assert pylox.main(["--strict", str(script)]) == pylox.EX_DATAERR
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Error at 'idle'" in captured.err


def test_prompt_keeps_state_and_echoes(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO("var a = 1;\na + 1;\nprint nope;\nprint a;\n"))
    assert pylox.main([]) == 0
    captured = capsys.readouterr()
    assert captured.out.startswith("> ")
    assert "2\n" in captured.out
    assert "1\n" in captured.out
    assert "Undefined variable 'nope'." in captured.err


def test_prompt_reports_static_errors_and_continues(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO("print ;\nprint 3;\n"))
    assert pylox.main([]) == 0
    captured = capsys.readouterr()
    assert "Expect expression." in captured.err
    assert "3\n" in captured.out


def test_check_tool_reports_each_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    checker = load_checker()
    write(tmp_path, "good.lox", "fun f(x) { return x; } print f(1);")
    write(tmp_path, "bad.lox", "return 1;")
    assert checker.main([str(tmp_path)]) == 1
    captured = capsys.readouterr()
    assert f"[ok] {tmp_path / 'good.lox'}" in captured.out
    assert f"[error] {tmp_path / 'bad.lox'}" in captured.err
    assert "Can't return from top-level code." in captured.err


def test_check_tool_passes_clean_tree(tmp_path: Path) -> None:
    checker = load_checker()
    write(tmp_path, "good.lox", "var a = 1; print a;")
    assert checker.main([str(tmp_path)]) == 0


def test_check_tool_without_files(tmp_path: Path) -> None:
    checker = load_checker()
    assert checker.main([str(tmp_path)]) == 1
