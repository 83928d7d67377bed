"""Tests for host-expression evaluation."""

import pytest

from comprehension.lexer import Lexer
from comprehension.parser import Parser
from comprehension.evaluator import Evaluator, BUILTINS
from comprehension.ast_nodes import NamePattern, TuplePattern, WildcardPattern
from comprehension_runtime.exceptions import EvaluationError, PatternMismatchError


def evaluate(src: str, **scope):
    tree = Parser(Lexer(f"{src};").tokenize()).parse()
    return Evaluator().evaluate(tree.body, {**BUILTINS, **scope})


class TestArithmetic:
    def test_precedence(self):
        assert evaluate("1 + 2 * 3") == 7

    def test_true_and_floor_division(self):
        assert evaluate("7 / 2") == 3.5
        assert evaluate("7 // 2") == 3

    def test_modulo_and_power(self):
        assert evaluate("7 % 3") == 1
        assert evaluate("2 ** 10") == 1024

    def test_unary_minus(self):
        assert evaluate("-2 ** 2") == -4

    def test_string_concatenation(self):
        assert evaluate("'ab' + 'cd'") == "abcd"


class TestLogic:
    def test_comparisons(self):
        assert evaluate("1 < 2") is True
        assert evaluate("1 >= 2") is False

    def test_membership(self):
        assert evaluate("2 in [1, 2]") is True
        assert evaluate("3 not in [1, 2]") is True

    def test_and_short_circuits(self):
        # The right side would divide by zero
        assert evaluate("false and 1 / 0 == 1") is False

    def test_or_short_circuits(self):
        assert evaluate("true or 1 / 0 == 1") is True

    def test_not(self):
        assert evaluate("not false") is True


class TestValues:
    def test_names_from_scope(self):
        assert evaluate("x * y", x=3, y=4) == 12

    def test_tuple_and_list(self):
        assert evaluate("(1, [2, 3])") == (1, [2, 3])

    def test_none(self):
        assert evaluate("none") is None

    def test_index(self):
        assert evaluate("xs[1]", xs=[10, 20]) == 20

    def test_method_call(self):
        assert evaluate("c.upper()", c="h") == "H"

    def test_builtin_call(self):
        assert evaluate("len('abc') + abs(-1)") == 4

    def test_math_module(self):
        assert evaluate("math.gcd(12, 18)") == 6

    def test_range_is_lazy_span(self):
        assert list(evaluate("1..=3")) == [1, 2, 3]


class TestErrors:
    def test_division_by_zero_wrapped(self):
        with pytest.raises(EvaluationError) as exc:
            evaluate("1 / 0")
        assert isinstance(exc.value.__cause__, ZeroDivisionError)
        assert "ZeroDivisionError" in str(exc.value)

    def test_error_points_at_failing_node(self):
        with pytest.raises(EvaluationError) as exc:
            evaluate("1 + xs[5]", xs=[])
        assert exc.value.column == 7

    def test_undefined_name(self):
        with pytest.raises(EvaluationError, match="Undefined variable 'nope'"):
            evaluate("nope")

    def test_dunder_attribute_refused(self):
        with pytest.raises(EvaluationError, match="not allowed"):
            evaluate("x.__class__", x=1)

    def test_nested_comprehension_needs_runner(self):
        with pytest.raises(EvaluationError, match="Nested"):
            evaluate("[1;]")


class TestPatterns:
    def test_name_pattern(self):
        scope = Evaluator().bind_pattern(NamePattern(name="x"), 5, {"y": 1})
        assert scope == {"y": 1, "x": 5}

    def test_binding_copies_scope(self):
        outer = {"y": 1}
        Evaluator().bind_pattern(NamePattern(name="x"), 5, outer)
        assert outer == {"y": 1}

    def test_tuple_pattern(self):
        pattern = TuplePattern(elements=[NamePattern(name="a"), TuplePattern(elements=[NamePattern(name="b"), WildcardPattern()])])
        scope = Evaluator().bind_pattern(pattern, (1, (2, 3)), {})
        assert scope == {"a": 1, "b": 2}

    def test_tuple_pattern_arity_mismatch(self):
        pattern = TuplePattern(elements=[NamePattern(name="a"), NamePattern(name="b")], line=1, col=5)
        with pytest.raises(PatternMismatchError, match="Line 1, Col 5"):
            Evaluator().bind_pattern(pattern, (1, 2, 3), {})

    def test_tuple_pattern_non_iterable(self):
        pattern = TuplePattern(elements=[NamePattern(name="a"), NamePattern(name="b")])
        with pytest.raises(PatternMismatchError):
            Evaluator().bind_pattern(pattern, 7, {})
