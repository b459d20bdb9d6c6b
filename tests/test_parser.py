from __future__ import annotations

from lox import ast
from lox.parser import parse_program


def parse_ok(source: str) -> list:
    result = parse_program(source)
    assert result.diagnostics == [], [str(diag) for diag in result.diagnostics]
    return result.statements


def only_expression(source: str) -> ast.Expr:
    (stmt,) = parse_ok(source)
    assert isinstance(stmt, ast.Expression)
    return stmt.expression


def messages(source: str) -> list:
    return [diag.message for diag in parse_program(source).diagnostics]


def test_factor_binds_tighter_than_term() -> None:
    expr = only_expression("1 + 2 * 3;")
    assert isinstance(expr, ast.Binary)
    assert expr.operator.kind == "PLUS"
    assert isinstance(expr.right, ast.Binary)
    assert expr.right.operator.kind == "STAR"


def test_comma_is_the_loosest_operator() -> None:
    expr = only_expression("a = 1, b = 2;")
    assert isinstance(expr, ast.Binary)
    assert expr.operator.kind == "COMMA"
    assert isinstance(expr.left, ast.Assign)
    assert isinstance(expr.right, ast.Assign)


def test_call_arguments_are_not_comma_expressions() -> None:
    expr = only_expression("f(1, 2)(3);")
    assert isinstance(expr, ast.Call)
    assert len(expr.arguments) == 1
    assert isinstance(expr.callee, ast.Call)
    assert len(expr.callee.arguments) == 2


def test_conditional_else_branch_is_right_associative() -> None:
    expr = only_expression("a ? b : c ? d : e;")
    assert isinstance(expr, ast.Conditional)
    assert isinstance(expr.else_branch, ast.Conditional)
    assert isinstance(expr.then_branch, ast.Variable)


def test_assignment_value_may_be_a_conditional() -> None:
    expr = only_expression("x = ok ? 1 : 2;")
    assert isinstance(expr, ast.Assign)
    assert expr.name.lexeme == "x"
    assert isinstance(expr.value, ast.Conditional)


def test_property_assignment_becomes_set() -> None:
    expr = only_expression("point.x = 3;")
    assert isinstance(expr, ast.Set)
    assert expr.name.lexeme == "x"
    assert isinstance(expr.obj, ast.Variable)


def test_logical_operators_build_logical_nodes() -> None:
    expr = only_expression("a or b and c;")
    assert isinstance(expr, ast.Logical)
    assert expr.operator.kind == "OR"
    assert isinstance(expr.right, ast.Logical)
    assert expr.right.operator.kind == "AND"


def test_super_and_this_primaries() -> None:
    expr = only_expression("super.greet(this);")
    assert isinstance(expr, ast.Call)
    assert isinstance(expr.callee, ast.Super)
    assert expr.callee.method.lexeme == "greet"
    assert isinstance(expr.arguments[0], ast.This)


def test_anonymous_function_statement() -> None:
    expr = only_expression("fun (a, b) { print a + b; };")
    assert isinstance(expr, ast.AnonFunction)
    assert [param.lexeme for param in expr.params] == ["a", "b"]
    assert isinstance(expr.body[0], ast.Print)


def test_function_declaration() -> None:
    (stmt,) = parse_ok("fun add(a, b) { return a + b; }")
    assert isinstance(stmt, ast.Function)
    assert stmt.name.lexeme == "add"
    assert isinstance(stmt.body[0], ast.Return)


def test_class_with_superclass_and_static_methods() -> None:
    (stmt,) = parse_ok("class B < A { init(x) {} static make() { return B(1); } area() {} }")
    assert isinstance(stmt, ast.Class)
    assert stmt.superclass is not None
    assert stmt.superclass.name.lexeme == "A"
    assert [m.name.lexeme for m in stmt.methods] == ["init", "area"]
    assert [m.name.lexeme for m in stmt.static_methods] == ["make"]


def test_for_loop_desugars_into_while() -> None:
    (stmt,) = parse_ok("for (var i = 0; i < 3; i = i + 1) print i;")
    assert isinstance(stmt, ast.Block)
    init, loop = stmt.statements
    assert isinstance(init, ast.Var)
    assert isinstance(loop, ast.While)
    assert isinstance(loop.body, ast.Block)
    body, increment = loop.body.statements
    assert isinstance(body, ast.Print)
    assert isinstance(increment.expression, ast.Assign)


def test_for_loop_without_clauses_loops_forever() -> None:
    (stmt,) = parse_ok("for (;;) break;")
    assert isinstance(stmt, ast.While)
    assert isinstance(stmt.condition, ast.Literal)
    assert stmt.condition.value is True
    assert isinstance(stmt.body, ast.Break)


def test_if_else_and_while() -> None:
    stmt_if, stmt_while = parse_ok("if (a) print 1; else print 2; while (b) { b = false; }")
    assert isinstance(stmt_if, ast.If)
    assert isinstance(stmt_if.else_branch, ast.Print)
    assert isinstance(stmt_while, ast.While)
    assert isinstance(stmt_while.body, ast.Block)


def test_nodes_compare_by_identity() -> None:
    first = only_expression("a;")
    second = only_expression("a;")
    assert first != second
    assert len({first, second}) == 2


def test_error_message_points_at_token() -> None:
    result = parse_program("print ;")
    assert [str(diag) for diag in result.diagnostics] == ["[line 1] Error at ';': Expect expression."]
    assert result.has_errors


def test_error_at_end_of_input() -> None:
    result = parse_program("print 1")
    assert [str(diag) for diag in result.diagnostics] == ["[line 1] Error at end: Expect ';' after value."]


def test_synchronize_reports_independent_errors() -> None:
    result = parse_program("var = 1;\nprint ;\nvar ok = 2;")
    assert [diag.line for diag in result.diagnostics] == [1, 2]
    assert len(result.statements) == 1
    assert isinstance(result.statements[0], ast.Var)
    assert result.statements[0].name.lexeme == "ok"


def test_leading_binary_operator_reports_missing_left_operand() -> None:
    result = parse_program("== 3;\n* 4;\n> 1;")
    assert [diag.message for diag in result.diagnostics] == [
        "Binary operator '==' has no left-hand operand.",
        "Binary operator '*' has no left-hand operand.",
        "Binary operator '>' has no left-hand operand.",
    ]
    # The right-hand operands are still parsed, so no follow-on errors appear.
    assert len(result.statements) == 3


def test_leading_minus_is_unary_negation() -> None:
    expr = only_expression("-3;")
    assert isinstance(expr, ast.Unary)


def test_invalid_assignment_target_does_not_synchronize() -> None:
    result = parse_program("1 = 2; print 3;")
    assert [diag.message for diag in result.diagnostics] == ["Invalid assignment target."]
    assert len(result.statements) == 2


def test_unclosed_block() -> None:
    assert "Expect '}' after block." in messages("{ print 1;")


def test_missing_class_body_brace() -> None:
    assert messages("class A print 1;")[0] == "Expect '{' before class body."


def test_runaway_nesting_is_reported_not_raised() -> None:
    depth = 5000
    result = parse_program("print " + "(" * depth + "1" + ")" * depth + ";\nprint 2;")
    assert [diag.message for diag in result.diagnostics] == ["Too much nesting."]
    assert len(result.statements) == 1
    assert isinstance(result.statements[0], ast.Print)
