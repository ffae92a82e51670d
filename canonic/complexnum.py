"""
Complex decomposition helpers.

The imaginary unit is the node (-1)^(1/2). A "complex number" here is a
numeric one: i, b*i, or a + b*i with numeric a and b. The helpers below
take arbitrary expressions and assume symbols are real unless the
context says otherwise.
"""

import math
from fractions import Fraction
from typing import Optional

from . import combine, exponent, functions, product, tensor
from .arith import (
    is_float, is_integer, is_negative, is_number, is_rational, is_zero,
)
from .context import EvalContext, resolve
from .errors import UnsupportedShape
from .expr import (
    E_CONST, IMAGINARY_UNIT, MULTIPLY, PI, ExprType, compound,
    find, is_add, is_head, is_multiply, is_power, is_tensor, variable,
)


# ============================================================
# Shape tests
# ============================================================

def is_imaginary_number(p: ExprType) -> bool:
    """i or b*i with numeric b."""
    if p == IMAGINARY_UNIT:
        return True
    return (is_multiply(p) and len(p) == 3 and is_number(p[1])
            and p[2] == IMAGINARY_UNIT)


def is_complex_number(p: ExprType) -> bool:
    """i, b*i or a + b*i with numeric a and b."""
    if is_imaginary_number(p):
        return True
    return (is_add(p) and len(p) == 3 and is_number(p[1])
            and is_imaginary_number(p[2]))


def has_float_part(p: ExprType) -> bool:
    """Check if a complex number carries a float component."""
    if is_float(p):
        return True
    if compound(p):
        return any(has_float_part(sub) for sub in p[1:])
    return False


def has_clock_form(p: ExprType) -> bool:
    """Check for (-1)^x with non-integer x anywhere in p, i itself excepted."""
    if is_power(p) and is_number(p[1]) and p[1] == -1:
        if p != IMAGINARY_UNIT and not is_integer(p[2]):
            return True
    if compound(p):
        return any(has_clock_form(sub) for sub in p[1:])
    return False


def has_exponential_form(p: ExprType) -> bool:
    """Check for e^x with an imaginary part in x anywhere in p."""
    if is_power(p) and p[1] == E_CONST and find(p[2], IMAGINARY_UNIT):
        return True
    if compound(p):
        return any(has_exponential_form(sub) for sub in p[1:])
    return False


def is_negative_term(p: ExprType) -> bool:
    """A negative number, or a product whose coefficient is negative."""
    if is_number(p):
        return p < 0
    return is_multiply(p) and is_number(p[1]) and p[1] < 0


_QUARTER_TURNS = {
    0: 1,
    1: IMAGINARY_UNIT,
    2: -1,
    3: [MULTIPLY, -1, IMAGINARY_UNIT],
}


def quarter_turn(p: ExprType) -> Optional[ExprType]:
    """
    Value of e^p when p is (n/2) i pi for an integer n, else None.

    Examples:
        quarter_turn(["*", IMAGINARY_UNIT, "pi"])              -> -1
        quarter_turn(["*", Fraction(1, 2), IMAGINARY_UNIT, "pi"]) -> i
    """
    if not is_multiply(p):
        return None
    coefficient = 1
    rest = p[1:]
    if is_rational(rest[0]):
        coefficient = rest[0]
        rest = rest[1:]
    if rest != [IMAGINARY_UNIT, PI]:
        return None
    n = coefficient * 2
    if not is_integer(n):
        return None
    value = _QUARTER_TURNS[int(n) % 4]
    return list(value) if isinstance(value, list) else value


# ============================================================
# Conjugate, real and imaginary parts
# ============================================================

def conjugate(p: ExprType, ctx: Optional[EvalContext] = None) -> ExprType:
    """
    Complex conjugate, treating symbols as real.

    (-1)^r becomes (-1)^-r; sums, products and powers are rebuilt
    canonically from their conjugated parts.
    """
    ctx = resolve(ctx)
    if is_tensor(p):
        return p.map(lambda e: conjugate(e, ctx))
    if not compound(p):
        return p
    if is_power(p) and is_number(p[1]) and p[1] == -1:
        return exponent.power(-1, product.negate(p[2], ctx), ctx)

    parts = [conjugate(sub, ctx) for sub in p[1:]]
    if is_add(p):
        return combine.add_all(parts, ctx)
    if is_multiply(p):
        return product.multiply_all(parts, ctx)
    if is_power(p):
        return exponent.power(parts[0], parts[1], ctx)
    return [p[0]] + parts


def rect(p: ExprType, ctx: Optional[EvalContext] = None) -> ExprType:
    """
    Rectangular form x + i y.

    Anything without an exponential or clock form (and without a
    sin/cos/i mix) is already rectangular when symbols are real.
    Otherwise p becomes |p| (cos arg p + i sin arg p).
    """
    ctx = resolve(ctx)
    if is_number(p):
        return p
    if is_tensor(p):
        return p.map(lambda e: rect(e, ctx))
    if variable(p):
        if ctx.assume_real_variables:
            return p
        return ["rect", p]

    if (ctx.assume_real_variables
            and not has_exponential_form(p)
            and not has_clock_form(p)
            and not (find(p, "sin") and find(p, "cos") and find(p, IMAGINARY_UNIT))):
        return p

    if is_add(p):
        return combine.add_all([rect(term, ctx) for term in p[1:]], ctx)

    theta = arg(p, ctx)
    return product.multiply(
        absval(p, ctx),
        combine.add(
            functions.cosine(theta, ctx),
            product.multiply(IMAGINARY_UNIT, functions.sine(theta, ctx), ctx),
            ctx),
        ctx)


def real(p: ExprType, ctx: Optional[EvalContext] = None) -> ExprType:
    """Real part: (z + conj z) / 2 of the rectangular form z."""
    z = rect(p, ctx)
    return product.multiply(
        combine.add(z, conjugate(z, ctx), ctx), Fraction(1, 2), ctx)


def imag(p: ExprType, ctx: Optional[EvalContext] = None) -> ExprType:
    """Imaginary part: (z - conj z) / 2i of the rectangular form z."""
    z = rect(p, ctx)
    return product.divide(
        combine.subtract(z, conjugate(z, ctx), ctx),
        product.multiply(2, IMAGINARY_UNIT, ctx),
        ctx)


# ============================================================
# Argument and magnitude
# ============================================================

def arg(p: ExprType, ctx: Optional[EvalContext] = None) -> ExprType:
    """
    Argument (phase angle) of p.

    Examples:
        arg(-3)                             -> pi
        arg(["^", -1, Fraction(1, 3)])      -> ["*", 1/3, "pi"]
        arg(["+", 1, IMAGINARY_UNIT])       -> ["*", 1/4, "pi"]
    """
    ctx = resolve(ctx)
    pi = math.pi if ctx.evaluating_as_floats else PI

    if is_number(p):
        return pi if p < 0 else 0
    if p == PI or p == E_CONST:
        return 0
    if is_power(p) and is_number(p[1]) and p[1] == -1:
        return product.multiply(pi, p[2], ctx)
    if is_power(p) and p[1] == E_CONST:
        return imag(p[2], ctx)
    if is_multiply(p):
        return combine.add_all([arg(f, ctx) for f in p[1:]], ctx)
    if is_add(p):
        z = rect(p, ctx)
        x = real(z, ctx)
        y = imag(z, ctx)
        if is_zero(x):
            half = product.multiply(pi, Fraction(1, 2), ctx)
            return product.negate(half, ctx) if is_negative_term(y) else half
        theta = functions.arctan(product.divide(y, x, ctx), ctx)
        if is_negative_term(x):
            if is_negative_term(y):
                return combine.subtract(theta, pi, ctx)
            return combine.add(theta, pi, ctx)
        return theta
    if ctx.assume_real_variables:
        # a real symbol has argument 0 whatever its sign
        return 0
    return ["arg", p]


def absval(p: ExprType, ctx: Optional[EvalContext] = None) -> ExprType:
    """
    Absolute value (magnitude) of p.

    Raises:
        UnsupportedShape: For tensors of rank other than 1.
    """
    ctx = resolve(ctx)
    if is_number(p):
        return -p if is_negative(p) else p
    if p == PI or p == E_CONST:
        return p
    if is_tensor(p):
        if p.ndim != 1:
            raise UnsupportedShape(f"abs: need a vector, got rank {p.ndim}")
        return exponent.power(
            tensor.inner(p, conjugate(p, ctx), ctx), Fraction(1, 2), ctx)

    if is_add(p) and (find(p, IMAGINARY_UNIT) or has_clock_form(p)
                      or has_exponential_form(p)):
        z = rect(p, ctx)
        squares = combine.add(
            exponent.power(real(z, ctx), 2, ctx),
            exponent.power(imag(z, ctx), 2, ctx),
            ctx)
        return exponent.power(squares, Fraction(1, 2), ctx)

    if is_power(p):
        if is_number(p[1]) and p[1] == -1:
            return 1
        if p[1] == E_CONST:
            return exponent.exponential(real(p[2], ctx), ctx)
        if is_number(p[2]):
            return exponent.power(absval(p[1], ctx), p[2], ctx)

    if is_multiply(p):
        return product.multiply_all([absval(f, ctx) for f in p[1:]], ctx)
    if is_head(p, "abs"):
        return p

    if is_add(p) and is_negative_term(p[1]):
        p = product.negate(p, ctx)
    return ["abs", p]
