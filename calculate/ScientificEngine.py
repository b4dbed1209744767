# ScientificEngine.py
"""Builtin functions and constants, computed with Decimal at the working precision.

Every implementation runs inside the evaluator's decimal context. Series work
with a few guard digits and the final unary plus rounds back to the working
precision.
"""

import decimal
from decimal import ROUND_CEILING, ROUND_DOWN, ROUND_FLOOR, ROUND_HALF_UP, Decimal, localcontext

from . import error as E

GUARD_DIGITS = 10

# Fixed 100 digit constants handed to every Environment.
PI = Decimal(
    "3.141592653589793238462643383279502884197169399375105820974944592307816406286208998628034825342117068"
)
E_CONSTANT = Decimal(
    "2.718281828459045235360287471352662497757247093699959574966967627724076630353547594571382178525166427"
)
TAU = decimal.Context(prec=100).multiply(PI, 2)


def isInt(value):
    """Return True if the Decimal holds a whole number."""
    return value.is_finite() and value == value.to_integral_value()


def _require_int(value, name):
    if not isInt(value):
        raise E.DomainError(f"{name}() needs an integer argument, got {value}")
    return int(value)


def compute_pi():
    """Pi at the current precision (Decimal FAQ recipe)."""
    with localcontext() as ctx:
        ctx.prec += 2
        three = Decimal(3)
        lasts, t, s, n, na, d, da = 0, three, 3, 1, 0, 0, 24
        while s != lasts:
            lasts = s
            n, na = n + na, na + 8
            d, da = d + da, da + 32
            t = (t * n) / d
            s += t
    return +s


def _pi():
    if decimal.getcontext().prec <= 95:
        return +PI
    return compute_pi()


def _e():
    if decimal.getcontext().prec <= 95:
        return +E_CONSTANT
    return Decimal(1).exp()


# Constants that are recomputed once the working precision exceeds the stored digits.
CONSTANT_RECIPES = {
    "pi": _pi,
    "π": _pi,
    "tau": lambda: 2 * _pi(),
    "e": _e,
}


def constant_value(name, stored):
    """`stored` at the working precision; recomputed when it has too few digits."""
    recipe = CONSTANT_RECIPES.get(name)
    if recipe is None or decimal.getcontext().prec <= len(stored.as_tuple().digits):
        return +stored
    return recipe()


# -----------------------------
# Trigonometry
# -----------------------------

def _from_radians(x, settings):
    if settings.degrees:
        return x * 180 / _pi()
    return x


def _angle(x, settings):
    """x in radians, brought into [-pi, pi] so the Taylor series converges quickly."""
    if x.adjusted() > settings.max_digits:
        raise E.Overflow(f"Angle {x} has more than {settings.max_digits} integer digits")
    with localcontext() as ctx:
        # Every integer digit of x costs one digit of the reduced angle.
        ctx.prec += max(x.adjusted(), 0) + 2
        if settings.degrees:
            reduced = x.remainder_near(360) * _pi() / 180
        else:
            reduced = x.remainder_near(2 * _pi())
    return +reduced


def _sin_series(x):
    i, lasts, s, fact, num, sign = 1, 0, x, 1, x, 1
    while s != lasts:
        lasts = s
        i += 2
        fact *= i * (i - 1)
        num *= x * x
        sign *= -1
        s += num / fact * sign
    return s


def _cos_series(x):
    i, lasts, s, fact, num, sign = 0, 0, 1, 1, 1, 1
    while s != lasts:
        lasts = s
        i += 2
        fact *= i * (i - 1)
        num *= x * x
        sign *= -1
        s += num / fact * sign
    return s


def sin(settings, x):
    with localcontext() as ctx:
        ctx.prec += GUARD_DIGITS
        result = _sin_series(_angle(x, settings))
    return +result


def cos(settings, x):
    with localcontext() as ctx:
        ctx.prec += GUARD_DIGITS
        result = _cos_series(_angle(x, settings))
    return +result


def tan(settings, x):
    with localcontext() as ctx:
        ctx.prec += GUARD_DIGITS
        angle = _angle(x, settings)
        cosine = _cos_series(angle)
        # cos is only ever 0 to within rounding; treat anything that small as a pole.
        if abs(cosine) < Decimal(10) ** -(ctx.prec - 2):
            raise E.DomainError(f"tan() is undefined at {x}")
        result = _sin_series(angle) / cosine
    return +result


def _atan(x):
    """Arctangent in radians at the current precision."""
    if x.is_zero():
        return Decimal(0)
    if x < 0:
        return -_atan(-x)
    if x > 1:
        return _pi() / 2 - _atan(1 / x)

    # atan(x) = 2 * atan(x / (1 + sqrt(1 + x^2))) shrinks the argument each time.
    halvings = 0
    while x > Decimal("0.1"):
        x = x / (1 + (1 + x * x).sqrt())
        halvings += 1

    i, lasts, s, num, sign = 1, 0, x, x, 1
    while s != lasts:
        lasts = s
        i += 2
        num *= x * x
        sign *= -1
        s += num / i * sign
    return s * (2 ** halvings)


def atan(settings, x):
    with localcontext() as ctx:
        ctx.prec += GUARD_DIGITS
        result = _from_radians(_atan(x), settings)
    return +result


def _asin(x):
    if abs(x) > 1:
        raise E.DomainError(f"asin() and acos() need -1 <= x <= 1, got {x}")
    if abs(x) == 1:
        return (_pi() / 2).copy_sign(x)
    return _atan(x / (1 - x * x).sqrt())


def asin(settings, x):
    with localcontext() as ctx:
        ctx.prec += GUARD_DIGITS
        result = _from_radians(_asin(x), settings)
    return +result


def acos(settings, x):
    with localcontext() as ctx:
        ctx.prec += GUARD_DIGITS
        result = _from_radians(_pi() / 2 - _asin(x), settings)
    return +result


# -----------------------------
# Roots, exponentials, logarithms
# -----------------------------

def sqrt(settings, x):
    if x < 0:
        raise E.DomainError(f"Square root of negative number {x}")
    return x.sqrt()


def cbrt(settings, x):
    if x.is_zero():
        return Decimal(0)
    with localcontext() as ctx:
        ctx.prec += GUARD_DIGITS
        root = (abs(x).ln() / 3).exp()
        whole = root.to_integral_value()
        if whole ** 3 == abs(x):
            root = whole
    return +root.copy_sign(x)


def exp(settings, x):
    return x.exp()


def ln(settings, x):
    if x <= 0:
        raise E.DomainError(f"Logarithm of non-positive number {x}")
    return x.ln()


def log10(settings, x):
    if x <= 0:
        raise E.DomainError(f"Logarithm of non-positive number {x}")
    return x.log10()


def log(settings, x, base):
    if x <= 0:
        raise E.DomainError(f"Logarithm of non-positive number {x}")
    if base <= 0 or base == 1:
        raise E.DomainError(f"Invalid logarithm base {base}")
    with localcontext() as ctx:
        ctx.prec += GUARD_DIGITS
        result = x.ln() / base.ln()
    return +result


# -----------------------------
# Rounding and comparison
# -----------------------------

def floor(settings, x):
    return x.to_integral_value(rounding=ROUND_FLOOR)


def ceil(settings, x):
    return x.to_integral_value(rounding=ROUND_CEILING)


def trunc(settings, x):
    return x.to_integral_value(rounding=ROUND_DOWN)


def round_half_up(settings, x):
    return x.to_integral_value(rounding=ROUND_HALF_UP)


def roundto(settings, x, places):
    places = _require_int(places, "roundto")
    if abs(places) > settings.max_digits:
        raise E.DomainError(f"roundto() places must be between -{settings.max_digits} and {settings.max_digits}")
    with localcontext() as ctx:
        # Room for every integer digit plus the requested places.
        ctx.prec = max(x.adjusted(), 0) + max(places, 0) + 2
        return x.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def absolute(settings, x):
    return x.copy_abs()


def minimum(settings, a, b):
    return a if a <= b else b


def maximum(settings, a, b):
    return a if a >= b else b


def xor(settings, a, b):
    return Decimal(_require_int(a, "xor") ^ _require_int(b, "xor"))


# name -> implementation(settings, *args); arities live in Grammar.FUNCTIONS
FUNCTION_IMPLEMENTATIONS = {
    "abs": absolute,
    "sqrt": sqrt,
    "cbrt": cbrt,
    "exp": exp,
    "ln": ln,
    "log10": log10,
    "log": log,
    "sin": sin,
    "cos": cos,
    "tan": tan,
    "asin": asin,
    "acos": acos,
    "atan": atan,
    "floor": floor,
    "ceil": ceil,
    "trunc": trunc,
    "round": round_half_up,
    "roundto": roundto,
    "min": minimum,
    "max": maximum,
    "xor": xor,
}


def unknown_function(name):
    """Return the implementation registered for `name`, or raise UnknownFunction."""
    implementation = FUNCTION_IMPLEMENTATIONS.get(name)
    if implementation is None:
        raise E.UnknownFunction(name)
    return implementation
