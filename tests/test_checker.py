"""Tests for up-front validation: scoping, pattern bindings, guards and sources."""

import pytest

from comprehension.lexer import Lexer
from comprehension.parser import Parser
from comprehension.checker import Checker, free_names
from comprehension.errors import CompileError, ScopeError


def check(src: str, names=(), **kwargs):
    tree = Parser(Lexer(src).tokenize()).parse()
    return Checker(names, **kwargs).check(tree)


def test_valid_comprehension_passes():
    tree = check("[(i, j); i <- 1.., let k = i * i, j <- 1..=k]")
    assert len(tree.qualifiers) == 3


def test_environment_names_are_in_scope():
    check("[x; x <- xs, gcd(x, 2) == 1]", names=["xs", "gcd"])


def test_builtins_are_in_scope():
    check("[len(s); s <- ['a', 'bb'], math.floor(1.5) == 1]")


def test_builtins_can_be_disabled():
    with pytest.raises(ScopeError, match="len"):
        check("[len(s); s <- ['a']]", builtins=False)


class TestScope:
    def test_undefined_in_body(self):
        with pytest.raises(ScopeError, match="'y'"):
            check("[y; x <- 0..3]")

    def test_undefined_in_source(self):
        with pytest.raises(ScopeError, match="'xs'"):
            check("[x; x <- xs]")

    def test_use_before_binding(self):
        # Later qualifiers bind for later qualifiers only
        with pytest.raises(ScopeError, match="'k'"):
            check("[i; i <- 1..k, let k = 3]")

    def test_guard_sees_earlier_bindings(self):
        check("[x; x <- 0..10, let y = x * 2, y > 4]")

    def test_error_position(self):
        with pytest.raises(ScopeError) as exc:
            check("[x; x <- 0..3,\n  z > 1]")
        assert exc.value.line == 2
        assert exc.value.column == 3

    def test_nested_comprehension_sees_outer_bindings(self):
        check("[[(i, j); i <- [1, 2]]; j <- 1..3]")

    def test_nested_bindings_do_not_leak(self):
        with pytest.raises(ScopeError, match="'i'"):
            check("[i; j <- [x; x <- [i; i <- 0..2]]]")

    def test_tuple_pattern_binds_every_name(self):
        check("[a + b + c; (a, (b, c)) <- rows]", names=["rows"])

    def test_wildcard_binds_nothing(self):
        with pytest.raises(ScopeError, match="'_'"):
            check("[_; _ <- 0..3]")

    def test_duplicate_name_in_pattern(self):
        with pytest.raises(ScopeError, match="more than once"):
            check("[x; (x, x) <- ps]", names=["ps"])

    def test_rebinding_in_later_qualifier_is_allowed(self):
        check("[x; x <- 0..3, x <- [x, x]]")

    def test_scope_validation_can_be_disabled(self):
        check("[y; x <- 0..3]", validate_scope=False)


class TestGuards:
    @pytest.mark.parametrize("guard", ["1", "'yes'", "none", "[1]", "(1, 2)", "0..3", "x + 1", "-x", "[x; ]"])
    def test_non_boolean_guards_rejected(self, guard):
        with pytest.raises(CompileError, match="not a boolean"):
            check(f"[x; x <- 0..3, {guard}]")

    @pytest.mark.parametrize("guard", ["true", "x > 1", "not x", "x in [1]", "f(x)", "x and x > 1"])
    def test_boolean_guards_accepted(self, guard):
        check(f"[x; x <- 0..3, {guard}]", names=["f"])


class TestSources:
    @pytest.mark.parametrize("source", ["1", "true", "none", "x == 1", "not x", "y in x"])
    def test_non_iterable_sources_rejected(self, source):
        with pytest.raises(CompileError, match="not iterable"):
            check(f"[z; z <- {source}]", names=["x", "y"])

    @pytest.mark.parametrize("source", ["xs", "0..3", "[1, 2]", "'abc'", "f(1)", "[y; y <- xs]"])
    def test_iterable_sources_accepted(self, source):
        check(f"[z; z <- {source}]", names=["xs", "f"])


def test_dunder_attribute_rejected():
    with pytest.raises(CompileError, match="__class__"):
        check("[x.__class__; x <- 0..3]")


def test_free_names_in_order():
    tree = Parser(Lexer("[f(x, y); x <- xs, y <- ys, g(y)]").tokenize()).parse()
    assert free_names(tree) == ["xs", "ys", "g", "f"]


def test_free_names_can_exclude_builtins():
    tree = Parser(Lexer("[len(x); x <- xs]").tokenize()).parse()
    assert free_names(tree) == ["xs", "len"]
    assert free_names(tree, builtins=True) == ["xs"]
