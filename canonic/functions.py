"""
Trigonometric, arctan and logarithm values.

Exact values are known for multiples of pi/6 and pi/4. Float arguments
(or any numeric argument in float mode) go through the math module.
Everything else stays as an unevaluated function node.
"""

import math
from fractions import Fraction
from typing import Optional

from . import product
from .arith import is_float, is_number, is_positive, is_rational
from .context import EvalContext, resolve
from .expr import E_CONST, PI, POWER, ExprType, is_multiply, is_power

_HALF = Fraction(1, 2)
_HALF_SQRT2 = ["*", _HALF, [POWER, 2, _HALF]]
_HALF_SQRT3 = ["*", _HALF, [POWER, 3, _HALF]]
_SQRT3 = [POWER, 3, _HALF]
_THIRD_SQRT3 = ["*", Fraction(1, 3), [POWER, 3, _HALF]]

# sin over the first quadrant, in degrees
_SINE_DEGREES = {
    0: 0,
    30: _HALF,
    45: _HALF_SQRT2,
    60: _HALF_SQRT3,
    90: 1,
}


def _pi_multiple(x: ExprType) -> Optional[Fraction]:
    """c for x == c*pi with rational c, else None."""
    if x == PI:
        return Fraction(1)
    if is_multiply(x) and len(x) == 3 and is_rational(x[1]) and x[2] == PI:
        return Fraction(x[1])
    return None


def _is_negative_term(x: ExprType) -> bool:
    if is_number(x):
        return x < 0
    return is_multiply(x) and is_number(x[1]) and x[1] < 0


def _as_float(x: ExprType, ctx: EvalContext) -> Optional[float]:
    if is_float(x) or (ctx.evaluating_as_floats and is_number(x)):
        return float(x)
    return None


def _sine_degrees(d: Fraction) -> Optional[ExprType]:
    """Exact sin of d degrees, for d in [0, 360)."""
    if d >= 180:
        value = _sine_degrees(d - 180)
        return None if value is None else product.negate(value)
    if d > 90:
        d = 180 - d
    if d.denominator != 1:
        return None
    value = _SINE_DEGREES.get(int(d))
    return value if not isinstance(value, list) else list(value)


def sine(x: ExprType, ctx: Optional[EvalContext] = None) -> ExprType:
    """
    sin(x).

    Examples:
        sine(["*", Fraction(1, 6), "pi"])   -> 1/2
        sine(["*", -1, "x"])                -> ["*", -1, ["sin", "x"]]
    """
    ctx = resolve(ctx)
    if x == 0:
        return 0
    value = _as_float(x, ctx)
    if value is not None:
        return math.sin(value)

    c = _pi_multiple(x)
    if c is not None:
        exact = _sine_degrees((c * 180) % 360)
        if exact is not None:
            return exact

    if _is_negative_term(x):
        return product.negate(sine(product.negate(x, ctx), ctx), ctx)
    return ["sin", x]


def cosine(x: ExprType, ctx: Optional[EvalContext] = None) -> ExprType:
    """
    cos(x).

    Examples:
        cosine("pi")                        -> -1
        cosine(["*", -1, "x"])              -> ["cos", "x"]
    """
    ctx = resolve(ctx)
    if x == 0:
        return 1
    value = _as_float(x, ctx)
    if value is not None:
        return math.cos(value)

    c = _pi_multiple(x)
    if c is not None:
        exact = _sine_degrees((c * 180 + 90) % 360)
        if exact is not None:
            return exact

    if _is_negative_term(x):
        return cosine(product.negate(x, ctx), ctx)
    return ["cos", x]


def arctan(y: ExprType, ctx: Optional[EvalContext] = None) -> ExprType:
    """
    arctan(y), exact for 0, 1, sqrt(3) and sqrt(3)/3 and odd in y.
    """
    ctx = resolve(ctx)
    if y == 0:
        return 0
    value = _as_float(y, ctx)
    if value is not None:
        return math.atan(value)
    if y == 1:
        return ["*", Fraction(1, 4), PI]
    if y == _SQRT3:
        return ["*", Fraction(1, 3), PI]
    if y == _THIRD_SQRT3:
        return ["*", Fraction(1, 6), PI]
    if _is_negative_term(y):
        return product.negate(arctan(product.negate(y, ctx), ctx), ctx)
    return ["arctan", y]


def logarithm(x: ExprType, ctx: Optional[EvalContext] = None) -> ExprType:
    """Natural logarithm: log 1 = 0, log e = 1, log e^y = y."""
    ctx = resolve(ctx)
    if x == 1:
        return 0
    if x == E_CONST:
        return 1
    value = _as_float(x, ctx)
    if value is not None and is_positive(value):
        return math.log(value)
    if is_power(x) and x[1] == E_CONST:
        return x[2]
    return ["log", x]
