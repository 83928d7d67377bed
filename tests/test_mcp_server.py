"""Tests for the comprehension MCP server tools."""

import ast as python_ast

import pytest

from comprehension_mcp.server import (
    check_source,
    run_source,
    build_source,
    comprehension_guide,
)
from comprehension_runtime.config import _reset_config


@pytest.fixture(autouse=True)
def fresh_config():
    _reset_config()
    yield
    _reset_config()


def test_check_valid_comprehension():
    assert check_source("[x * x; x <- 0..10, x % 2 == 0]") == "OK"


def test_check_parse_error():
    result = check_source("[x; x <- 0..10,]")
    assert result.startswith("Error:")
    assert "Trailing" in result


def test_check_undefined_variable():
    result = check_source("[k; i <- 1..]")
    assert "Undefined variable 'k'" in result


def test_run_returns_items_one_per_line():
    assert run_source("[x * y; x <- 1..=2, y <- 1..=2]") == "1\n2\n2\n4"


def test_run_truncates_infinite_comprehension():
    result = run_source("[(i, j); i <- 1.., j <- 1..i, math.gcd(i, j) == 1]", take=3)
    assert result.splitlines() == ["(2, 1)", "(3, 1)", "(3, 2)"]


def test_run_default_take_from_config():
    assert len(run_source("[n; n <- 0..]").splitlines()) == 20


def test_run_no_items():
    assert run_source("[1; false]") == "(comprehension produced no items)"


def test_run_negative_take():
    assert run_source("[1;]", take=-1) == "Error: take must be non-negative"


def test_run_runtime_error():
    result = run_source("[10 // x; x <- [1, 0]]")
    assert result.startswith("Error:")
    assert "ZeroDivisionError" in result


def test_run_guard_type_error():
    result = run_source("[x; x <- [1, 2], len([x]) > 0 and x]")
    assert "Guard must evaluate to a bool" in result


def test_build_returns_python():
    code = build_source("[x; x <- xs, x > 0]")
    python_ast.parse(code)
    assert "def pipeline(xs):" in code


def test_build_error():
    assert build_source("[class; class <- xs]").startswith("Error:")


def test_guide_mentions_qualifiers_and_ranges():
    guide = comprehension_guide()
    assert "<-" in guide
    assert "let" in guide
    assert "1..=10" in guide
