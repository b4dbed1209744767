# MathEngine.py
"""Core calculation engine.

Pipeline
--------
1) Tokenizer: raw text -> lazy token stream (Tokenizer.py).
2) Parser: tokens -> AST by precedence climbing over the Grammar table (Parser.py).
3) Evaluator: post-order walk of the AST against an Environment (this module).
4) Formatter: renders Decimal results for the shells (this module).

All arithmetic runs in a private decimal context built from Settings, so
evaluations in different threads never see each other's precision.
"""

import decimal
import logging
import operator
from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, ROUND_HALF_UP, Decimal, localcontext

from . import ScientificEngine
from . import config_manager
from . import error as E
from .Ast import BinaryOp, Call, Literal, UnaryOp, Variable
from .Grammar import GRAMMAR
from .Parser import parse
from .Tokenizer import TokenKind, tokenize

logger = logging.getLogger(__name__)

# Beyond this many digits an integer exponent is not even converted to int.
_MAX_EXPONENT_DIGITS = 18


# -----------------------------
# Decimal contexts
# -----------------------------

def _context(settings):
    """Working context: `precision` digits, overflow and invalid results trapped."""
    return decimal.Context(
        prec=settings.precision,
        rounding=ROUND_HALF_EVEN,
        Emax=settings.max_exponent,
        Emin=-settings.max_exponent,
        traps=[decimal.InvalidOperation, decimal.DivisionByZero, decimal.Overflow],
    )


def _exact(operation, settings, *operands):
    """Run `operation` with room for `max_digits` digits; Overflow if that is not enough."""
    with localcontext() as ctx:
        ctx.prec = settings.max_digits
        ctx.clear_flags()
        result = operation(*operands)
        lost_digits = ctx.flags[decimal.Inexact] and not ctx.flags[decimal.Underflow]
    if lost_digits:
        raise E.Overflow(f"Result needs more than {settings.max_digits} digits")
    return result


def _check_digits(value, settings):
    if value.is_finite() and len(value.as_tuple().digits) > settings.max_digits:
        raise E.Overflow(f"Number has more than {settings.max_digits} digits")
    return value


def _is_odd(value):
    """Parity of an integral Decimal, read from its digits instead of int()."""
    _, digits, exponent = value.as_tuple()
    if exponent > 0:
        return False
    return digits[len(digits) - 1 + exponent] % 2 == 1


def _to_int(value, symbol):
    if not ScientificEngine.isInt(value):
        raise E.InvalidOperation(f"'{symbol}' needs integer operands, got {value}")
    return int(value)


# -----------------------------
# Operator semantics
# -----------------------------

def _add(left, right, settings):
    return _exact(operator.add, settings, left, right)


def _subtract(left, right, settings):
    return _exact(operator.sub, settings, left, right)


def _multiply(left, right, settings):
    return _exact(operator.mul, settings, left, right)


def _divide(left, right, settings):
    if right.is_zero():
        raise E.DivisionByZero()
    return left / right


def _remainder(left, right, settings):
    if right.is_zero():
        raise E.DivisionByZero("Remainder of division by zero")
    return _exact(operator.mod, settings, left, right)


def _power(base, exponent, settings):
    if ScientificEngine.isInt(exponent):
        if exponent.adjusted() >= _MAX_EXPONENT_DIGITS:
            if base == 1:
                return base
            if base == -1:
                return Decimal(-1) if _is_odd(exponent) else Decimal(1)
            if base.is_zero():
                if exponent < 0:
                    raise E.DivisionByZero("Zero raised to a negative power")
                return Decimal(0)
            raise E.Overflow(f"Exponent {exponent} is too large")
        n = int(exponent)
        if base.is_zero():
            if n < 0:
                raise E.DivisionByZero("Zero raised to a negative power")
            return Decimal(1) if n == 0 else Decimal(0)
        if abs(n) > settings.max_power and abs(base) != 1:
            raise E.Overflow(f"Exponent {n} is larger than {settings.max_power}")
        magnitude = _exact(operator.pow, settings, base, Decimal(abs(n)))
        if n < 0:
            return Decimal(1) / magnitude
        return magnitude

    if base < 0:
        raise E.InvalidOperation(f"{base} ^ {exponent} has no real result")
    if base.is_zero():
        if exponent < 0:
            raise E.DivisionByZero("Zero raised to a negative power")
        return Decimal(0)
    return base ** exponent


def _bit_and(left, right, settings):
    return Decimal(_to_int(left, "&") & _to_int(right, "&"))


def _bit_or(left, right, settings):
    return Decimal(_to_int(left, "|") | _to_int(right, "|"))


def _shift(symbol):
    def shift(left, right, settings):
        value = _to_int(left, symbol)
        count = _to_int(right, symbol)
        if count < 0:
            raise E.InvalidOperation(f"Negative shift count {count}")
        if symbol == "<<":
            # Roughly 3.3 bits per decimal digit
            if count > settings.max_digits * 4:
                raise E.Overflow(f"Shift by {count} is too large")
            return Decimal(value << count)
        return Decimal(value >> count)
    return shift


BINARY_OPERATIONS = {
    "+": _add,
    "-": _subtract,
    "*": _multiply,
    "/": _divide,
    "%": _remainder,
    "^": _power,
    "**": _power,
    "&": _bit_and,
    "|": _bit_or,
    "<<": _shift("<<"),
    ">>": _shift(">>"),
}


def _square_root(value, settings):
    return ScientificEngine.sqrt(settings, value)


UNARY_OPERATIONS = {
    "-": lambda value, settings: value.copy_negate(),
    "+": lambda value, settings: value,
    "~": lambda value, settings: Decimal(~_to_int(value, "~")),
    "√": _square_root,
    "²": lambda value, settings: _exact(operator.mul, settings, value, value),
    "³": lambda value, settings: _exact(lambda v: v * v * v, settings, value),
}


# -----------------------------
# Evaluator
# -----------------------------

def _evaluate(node, env, settings, grammar):
    if isinstance(node, Literal):
        return _check_digits(node.value, settings)

    if isinstance(node, Variable):
        value = env.get(node.name)
        if value is None:
            raise E.UndefinedVariable(node.name)
        if env.is_constant(node.name):
            return ScientificEngine.constant_value(node.name, value)
        return value

    if isinstance(node, UnaryOp):
        operand = _evaluate(node.operand, env, settings, grammar)
        # The table is consulted first so evaluator and parser cannot disagree.
        if grammar.unary(node.symbol) is None or node.symbol not in UNARY_OPERATIONS:
            raise E.InvalidOperation(f"Unknown unary operator: {node.symbol}")
        return _check_digits(UNARY_OPERATIONS[node.symbol](operand, settings), settings)

    if isinstance(node, BinaryOp):
        left = _evaluate(node.left, env, settings, grammar)
        right = _evaluate(node.right, env, settings, grammar)
        if grammar.binary(node.symbol) is None or node.symbol not in BINARY_OPERATIONS:
            raise E.InvalidOperation(f"Unknown operator: {node.symbol}")
        return _check_digits(BINARY_OPERATIONS[node.symbol](left, right, settings), settings)

    if isinstance(node, Call):
        args = [_evaluate(arg, env, settings, grammar) for arg in node.args]
        implementation = ScientificEngine.unknown_function(node.name)
        expected = grammar.arity(node.name)
        if expected is None:
            raise E.UnknownFunction(node.name)
        if expected != len(args):
            raise E.ArityMismatch(node.name, expected, len(args))
        return _check_digits(implementation(settings, *args), settings)

    raise E.InvalidOperation(f"Cannot evaluate {node!r}")


def evaluate(ast, env, settings=None, grammar=GRAMMAR):
    """Evaluate an AST against `env` and return a Decimal.

    Raises an EvalError subclass; never mutates `ast` or `env`.
    """
    if settings is None:
        settings = config_manager.load_settings()

    with localcontext(_context(settings)):
        try:
            result = _evaluate(ast, env, settings, grammar)
        except RecursionError:
            raise E.EvaluationTooDeep()
        # decimal signals that slipped past the explicit checks above
        except decimal.DivisionByZero:
            raise E.DivisionByZero()
        except decimal.Overflow:
            raise E.Overflow()
        except decimal.InvalidOperation as e:
            raise E.InvalidOperation(f"Invalid decimal operation: {e}")

    logger.debug("Evaluated %s -> %s", ast, result)
    return result


def evaluate_expression(text, env, settings=None, grammar=GRAMMAR):
    """Lex, parse and evaluate `text`. Raises EngineError on any failure."""
    tree = parse(tokenize(text), grammar)
    return evaluate(tree, env, settings, grammar)


# -----------------------------
# Result formatting
# -----------------------------

def format_decimal(value, decimal_places=None):
    """Plain positional text: no exponent, no insignificant trailing zeros."""
    if decimal_places is not None:
        value = _quantize(value, decimal_places)
    if value.is_zero():
        return "0"
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _quantize(value, decimal_places):
    pattern = Decimal(1).scaleb(-decimal_places)
    # Enough room for every integer digit plus the requested places.
    digits = max(value.adjusted(), 0) + decimal_places + 2
    return value.quantize(pattern, rounding=ROUND_HALF_UP, context=decimal.Context(prec=digits))


def cleanup(ergebnis, decimal_places):
    """Round a result for display.

    Returns:
        (rendered_value, rounding_flag)
    where rounding_flag tells whether digits were dropped.
    """
    if ScientificEngine.isInt(ergebnis):
        # Integer result, nothing to round
        return format_decimal(ergebnis), False

    gerundetes_ergebnis = _quantize(ergebnis, decimal_places)
    rounding = gerundetes_ergebnis != ergebnis
    return format_decimal(gerundetes_ergebnis), rounding


# -----------------------------
# Session level entry point
# -----------------------------

@dataclass(frozen=True)
class Calculation:
    text: str
    value: Decimal
    rounded: bool
    target: str | None = None

    def __str__(self):
        prefix = "≈" if self.rounded else "="
        if self.target is not None:
            return f"{self.target} {prefix} {self.text}"
        return f"{prefix} {self.text}"


def _split_assignment(problem):
    """Return (name, expression, offset) for 'name = expression', else None."""
    index = problem.find("=")
    if index == -1:
        return None
    try:
        tokens = list(tokenize(problem[:index]))
    except E.LexError:
        return None
    if len(tokens) != 2 or tokens[0].kind is not TokenKind.IDENTIFIER:
        return None
    return tokens[0].text, problem[index + 1:], index + 1


def calculate(problem, env, settings=None):
    """Evaluate one line of user input inside a session.

    'name = expression' assigns to `name` (never a builtin constant); anything
    else is a plain expression. Every successful line is also bound to 'ans'.
    """
    if settings is None:
        settings = config_manager.load_settings()

    assignment = _split_assignment(problem)
    target, expression, offset = assignment if assignment else (None, problem, 0)

    try:
        if target is not None and env.is_constant(target):
            raise E.ReservedName(target)
        ergebnis = evaluate_expression(expression, env, settings)
        if target is not None:
            env.set(target, ergebnis)
        env.set("ans", ergebnis)
    except E.MathError as e:
        # Attach the source equation; positions refer to the whole line.
        if e.position is not None:
            e.position += offset
        e.equation = problem
        raise

    text, rounding = cleanup(ergebnis, settings.decimal_places)
    logger.debug("%r -> %s (rounded=%s)", problem, text, rounding)
    return Calculation(text, ergebnis, rounding, target)

