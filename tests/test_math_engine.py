"""Tests for evaluation, formatting and the session entry point."""

from __future__ import annotations

import decimal
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest

from calculate import MathEngine
from calculate import error as E
from calculate.Ast import BinaryOp, Literal, UnaryOp, Variable
from calculate.Grammar import GRAMMAR, Arity
from calculate.Parser import parse
from calculate.ScientificEngine import PI
from calculate.config_manager import Settings


class TestArithmetic:
    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("2 + 3 * 4", "14"),
            ("(2 + 3) * 4", "20"),
            ("10 - 3 - 2", "5"),
            ("2 ^ 3 ^ 2", "512"),
            ("2 ** 3", "8"),
            ("-2 ^ 2", "4"),
            ("-2²", "-4"),
            ("3²", "9"),
            ("2³", "8"),
            ("√16", "4"),
            ("--5", "5"),
            ("4 - -3", "7"),
            ("+7", "7"),
            ("7 % 3", "1"),
            ("7.5 % 2", "1.5"),
            ("2 ^ -2", "0.25"),
            ("0 ^ 0", "1"),
            ("0.1 + 0.2", "0.3"),
            ("12.50 * 2", "25"),
        ],
    )
    def test_expressions(self, calc, source: str, expected: str) -> None:
        assert calc(source) == Decimal(expected)

    def test_addition_is_exact(self, calc) -> None:
        assert str(calc("0.1 + 0.2")) == "0.3"

    def test_exact_beyond_working_precision(self, calc) -> None:
        big = "1" + "0" * 60
        assert calc(f"{big} + 1") == Decimal(big) + 1

    def test_division_rounds_to_precision(self, calc) -> None:
        assert calc("1 / 3") == Decimal("0." + "3" * 50)
        assert calc("2 / 3") == Decimal("0." + "6" * 49 + "7")

    def test_precision_setting(self, calc) -> None:
        assert calc("1 / 3", precision=10) == Decimal("0.3333333333")

    def test_fractional_power(self, calc) -> None:
        assert calc("4 ^ 0.5") == 2

    def test_variables_and_constants(self, calc, env) -> None:
        env.set("x", Decimal("2.5"))
        assert calc("x * 4") == 10
        assert calc("pi") == decimal.Context(prec=50).plus(PI)

    def test_constant_follows_precision(self, calc) -> None:
        assert calc("pi", precision=5) == Decimal("3.1416")


class TestBitwise:
    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("6 & 3", 2),
            ("6 | 3", 7),
            ("1 << 10", 1024),
            ("1024 >> 3", 128),
            ("~5", -6),
            ("xor(6, 3)", 5),
            ("1 + 2 << 1", 6),
            ("1 | 2 & 3", 3),
        ],
    )
    def test_integer_operations(self, calc, source: str, expected: int) -> None:
        assert calc(source) == expected

    def test_non_integer_operand(self, calc) -> None:
        with pytest.raises(E.InvalidOperation):
            calc("1.5 & 1")

    def test_negative_shift(self, calc) -> None:
        with pytest.raises(E.InvalidOperation):
            calc("1 << -1")


class TestEvaluationErrors:
    def test_division_by_zero(self, calc) -> None:
        with pytest.raises(E.DivisionByZero) as exc:
            calc("1 / 0")
        assert exc.value.code == "3003"

    def test_remainder_by_zero(self, calc) -> None:
        with pytest.raises(E.DivisionByZero):
            calc("5 % 0")

    def test_zero_to_negative_power(self, calc) -> None:
        with pytest.raises(E.DivisionByZero):
            calc("0 ^ -1")

    def test_negative_base_fractional_exponent(self, calc) -> None:
        with pytest.raises(E.InvalidOperation):
            calc("(-8) ^ (1 / 3)")

    def test_undefined_variable(self, calc) -> None:
        with pytest.raises(E.UndefinedVariable) as exc:
            calc("x + 1")
        assert exc.value.name == "x"

    def test_unknown_function(self, calc) -> None:
        with pytest.raises(E.UnknownFunction) as exc:
            calc("foo(1)")
        assert exc.value.code == "2004"

    def test_domain_error(self, calc) -> None:
        with pytest.raises(E.DomainError):
            calc("sqrt(-1)")

    def test_every_failure_is_an_engine_error(self, calc) -> None:
        for source in ("1 / 0", "2 $", "(1", "nope", "ln(0)"):
            with pytest.raises(E.EngineError):
                calc(source)

    def test_nesting_too_deep(self, calc) -> None:
        with pytest.raises(E.NestingTooDeep) as exc:
            calc("(" * 5000 + "1" + ")" * 5000)
        assert isinstance(exc.value, E.ParseError)
        assert exc.value.code == "3035"

    def test_tree_too_deep_to_evaluate(self, env, settings) -> None:
        tree = Literal(Decimal(1))
        for _ in range(5000):
            tree = UnaryOp("-", tree)
        with pytest.raises(E.EvaluationTooDeep) as exc:
            MathEngine.evaluate(tree, env, settings)
        assert isinstance(exc.value, E.EvalError)
        assert exc.value.code == "3036"


class TestOverflow:
    def test_power_beyond_max_digits(self, calc) -> None:
        with pytest.raises(E.Overflow):
            calc("9 ^ 99999")

    def test_power_beyond_max_power(self, calc) -> None:
        with pytest.raises(E.Overflow):
            calc("2 ^ 100001")

    def test_unit_base_ignores_max_power(self, calc) -> None:
        assert calc("1 ^ 100001") == 1
        assert calc("(-1) ^ 100001") == -1

    def test_huge_integer_exponent(self, calc) -> None:
        huge = "1" + "0" * 18
        with pytest.raises(E.Overflow):
            calc(f"2 ^ {huge}")
        assert calc(f"1 ^ {huge}") == 1
        assert calc(f"0 ^ {huge}") == 0
        assert calc(f"(-1) ^ {huge}") == 1
        assert calc(f"(-1) ^ {huge}1") == -1
        assert calc(f"(-1) ^ -{huge}1") == -1
        with pytest.raises(E.DivisionByZero):
            calc(f"0 ^ -{huge}")

    def test_product_beyond_max_digits(self, calc) -> None:
        with pytest.raises(E.Overflow):
            calc("12345678901 * 12345678901", precision=10, max_digits=20)

    def test_literal_beyond_max_digits(self, calc) -> None:
        with pytest.raises(E.Overflow):
            calc("1" * 30, precision=10, max_digits=20)

    def test_exponent_beyond_max_exponent(self, calc) -> None:
        with pytest.raises(E.Overflow):
            calc("10 ^ 11", max_exponent=10)

    def test_shift_beyond_max_digits(self, calc) -> None:
        with pytest.raises(E.Overflow):
            calc("1 << 100000")

    def test_bitwise_results_beyond_max_digits(self, calc) -> None:
        nines = "9" * 20
        with pytest.raises(E.Overflow):
            calc(f"~({nines})", precision=10, max_digits=20)
        with pytest.raises(E.Overflow):
            calc(f"{nines} | {nines} << 1", precision=10, max_digits=20)
        assert calc(f"~(-{nines})", precision=10, max_digits=20) == Decimal(nines) - 1

    def test_function_results_beyond_max_digits(self, calc) -> None:
        with pytest.raises(E.Overflow):
            calc("roundto(12, 20)", precision=10, max_digits=20)


class TestEvaluate:
    def test_same_tree_twice(self, env, settings) -> None:
        tree = parse("x * 2 + sqrt(2)")
        env.set("x", 3)
        first = MathEngine.evaluate(tree, env, settings)
        second = MathEngine.evaluate(tree, env, settings)
        assert first == second

    def test_environment_is_not_modified(self, env, settings) -> None:
        env.set("x", 1)
        before = env.variables()
        MathEngine.evaluate(parse("x + 1"), env, settings)
        assert env.variables() == before

    def test_global_context_is_untouched(self, env, settings) -> None:
        previous = decimal.getcontext().prec
        MathEngine.evaluate_expression("1 / 7", env, Settings(precision=80))
        assert decimal.getcontext().prec == previous

    def test_precision_is_per_evaluation(self, env) -> None:
        precisions = [10, 20, 30, 40] * 5

        def third(precision):
            return MathEngine.evaluate_expression("1 / 3", env, Settings(precision=precision))

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(third, precisions))
        for precision, value in zip(precisions, results):
            assert len(value.as_tuple().digits) == precision

    def test_hand_built_tree(self, env, settings) -> None:
        tree = BinaryOp("+", Literal(Decimal(1)), UnaryOp("-", Variable("e")))
        assert MathEngine.evaluate(tree, env, settings) < 0

    def test_operator_missing_from_grammar(self, env, settings) -> None:
        tree = UnaryOp("+", Literal(Decimal(1)))
        with pytest.raises(E.InvalidOperation):
            MathEngine.evaluate(tree, env, settings, GRAMMAR.without("+", Arity.UNARY))

    def test_source_round_trip(self, env, settings) -> None:
        tree = parse("-(2 + 3) * 4 ^ 2 - max(1, 2)")
        again = parse(str(tree))
        assert again == tree
        assert MathEngine.evaluate(again, env, settings) == Decimal(-82)


class TestFormatting:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("1.500", "1.5"),
            ("100", "100"),
            ("1E+3", "1000"),
            ("0.000", "0"),
            ("-0", "0"),
            ("1E-7", "0.0000001"),
            ("-2.50", "-2.5"),
        ],
    )
    def test_format_decimal(self, value: str, expected: str) -> None:
        assert MathEngine.format_decimal(Decimal(value)) == expected

    def test_format_decimal_places(self) -> None:
        assert MathEngine.format_decimal(Decimal("2.345"), 2) == "2.35"
        assert MathEngine.format_decimal(Decimal("1.999"), 2) == "2"

    @pytest.mark.parametrize("literal", ["12.5", "0.000001", "123456789012345678901234567890.123", "-7.25"])
    def test_literal_round_trip(self, calc, literal: str) -> None:
        value = calc(literal)
        assert calc(MathEngine.format_decimal(value)) == value

    def test_cleanup(self) -> None:
        assert MathEngine.cleanup(Decimal("0.3333"), 2) == ("0.33", True)
        assert MathEngine.cleanup(Decimal("0.25"), 2) == ("0.25", False)
        assert MathEngine.cleanup(Decimal("1E+3"), 2) == ("1000", False)


class TestCalculate:
    def test_plain_expression_binds_ans(self, env, settings) -> None:
        result = MathEngine.calculate("2 + 2", env, settings)
        assert str(result) == "= 4"
        assert result.value == 4
        assert not result.rounded
        assert env.get("ans") == 4

    def test_rounded_result(self, env, settings) -> None:
        result = MathEngine.calculate("1 / 3", env, settings)
        assert str(result) == "≈ 0.3333333333"
        assert result.rounded

    def test_assignment(self, env, settings) -> None:
        result = MathEngine.calculate("x = 5", env, settings)
        assert str(result) == "x = 5"
        assert result.target == "x"
        assert MathEngine.calculate("x * 2", env, settings).value == 10

    def test_ans_chains(self, env, settings) -> None:
        MathEngine.calculate("2 + 2", env, settings)
        assert MathEngine.calculate("ans + 1", env, settings).value == 5

    def test_constant_cannot_be_assigned(self, env, settings) -> None:
        with pytest.raises(E.ReservedName) as exc:
            MathEngine.calculate("pi = 3", env, settings)
        assert exc.value.equation == "pi = 3"
        assert env.get("pi") == PI

    def test_failure_binds_nothing(self, env, settings) -> None:
        MathEngine.calculate("1 + 1", env, settings)
        with pytest.raises(E.DivisionByZero) as exc:
            MathEngine.calculate("y = 1 / 0", env, settings)
        assert exc.value.equation == "y = 1 / 0"
        assert "y" not in env
        assert env.get("ans") == 2

    def test_error_position_covers_whole_line(self, env, settings) -> None:
        with pytest.raises(E.InvalidCharacter) as exc:
            MathEngine.calculate("y = 2 $", env, settings)
        assert exc.value.position == 6

    def test_double_equals_is_invalid(self, env, settings) -> None:
        with pytest.raises(E.InvalidCharacter) as exc:
            MathEngine.calculate("x == 2", env, settings)
        assert exc.value.position == 3

    def test_number_is_not_an_assignment_target(self, env, settings) -> None:
        with pytest.raises(E.InvalidCharacter) as exc:
            MathEngine.calculate("2 = 3", env, settings)
        assert exc.value.position == 2
