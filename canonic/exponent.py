"""
Power normalizer.

power(base, exponent) walks an ordered cascade of identities and returns
the first one that applies, ending in the unreduced node
["^", base, exponent]. It never fails on algebraic input: when an
identity's precondition does not hold the cascade simply moves on.

Exact rational powers go through qpow, float powers through dpow, and
integer powers of sums are expanded with the multinomial series in
expanding mode.
"""

import math
from fractions import Fraction
from typing import List, Optional

from . import combine, complexnum, functions, product, tensor
from .arith import (
    extract_root, factorial, is_even_integer, is_float, is_integer, is_number,
    is_rational, is_zero, normalize,
)
from .context import EvalContext, TrigMode, resolve
from .expr import (
    E_CONST, IMAGINARY_UNIT, MULTIPLY, PI, POWER, ExprType, find, is_add,
    is_head, is_multiply, is_power, is_tensor,
)


def _is_exact(p, value) -> bool:
    return is_rational(p) and p == value


# ============================================================
# Numeric powers
# ============================================================

def qpow(base, expo, ctx: Optional[EvalContext] = None) -> ExprType:
    """
    Exact rational power.

    Perfect powers are pulled out of the numerator and the denominator;
    what is left stays under a radical with a positive proper fraction
    as its exponent.

    Examples:
        qpow(4, Fraction(1, 2))              -> 2
        qpow(8, Fraction(1, 2))              -> ["*", 2, ["^", 2, 1/2]]
        qpow(2, Fraction(-1, 2))             -> ["*", 1/2, ["^", 2, 1/2]]
        qpow(-1, Fraction(1, 3))             -> ["^", -1, 1/3]
    """
    if base == 0:
        if expo < 0:
            return [POWER, base, expo]
        return 1 if expo == 0 else 0

    if is_integer(expo):
        return normalize(Fraction(base) ** int(expo))

    if base == 1:
        return 1
    if base == -1:
        return [POWER, base, expo]
    if base < 0:
        return product.multiply(qpow(-1, expo, ctx), qpow(-base, expo, ctx), ctx)

    expo = Fraction(expo)
    k = math.floor(expo)
    r = expo - k
    p, q = r.numerator, r.denominator

    base = Fraction(base)
    num, den = base.numerator, base.denominator

    # num^r = s^p * t^(p/q)
    s, t = extract_root(num, q)
    # den^-r = den^(1-r) / den
    s2, t2 = extract_root(den, q)

    coefficient = normalize(base ** k * Fraction(s ** p * s2 ** (q - p), den))
    factors: List[ExprType] = [coefficient]
    if t > 1:
        factors.append([POWER, t, Fraction(p, q)])
    if t2 > 1:
        factors.append([POWER, t2, Fraction(q - p, q)])
    return product.multiply_all(factors, ctx)


def dpow(base: float, expo: float, ctx: Optional[EvalContext] = None) -> ExprType:
    """
    Float power.

    A negative base with a fractional exponent gives the principal value
    in rectangular form.
    """
    if base == 0.0 and expo < 0:
        return [POWER, base, expo]
    if base >= 0 or expo.is_integer():
        return base ** expo

    magnitude = (-base) ** expo
    theta = math.pi * expo
    if (2 * expo).is_integer():
        re = 0.0
    else:
        re = magnitude * math.cos(theta)
    im = magnitude * math.sin(theta)
    return combine.add(re, product.multiply(im, IMAGINARY_UNIT, ctx), ctx)


# ============================================================
# Multinomial expansion
# ============================================================

def power_sum(n: int, base: List, ctx: Optional[EvalContext] = None) -> ExprType:
    """
    Expand (a1 + ... + ak)^n with the multinomial series

        sum over n1 + ... + nk = n of  n!/(n1! ... nk!) a1^n1 ... ak^nk

    Powers a_i^j for 0 <= j <= n are computed once up front; partitions
    are enumerated by recursive descent.
    """
    ctx = resolve(ctx)
    terms = base[1:]
    k = len(terms)
    powers = [[power(term, j, ctx) for j in range(n + 1)] for term in terms]
    n_factorial = factorial(n)
    counts = [0] * k
    total: ExprType = 0

    def descend(i: int, remaining: int) -> None:
        nonlocal total
        if i < k - 1:
            for j in range(remaining + 1):
                counts[i] = j
                descend(i + 1, remaining - j)
            return
        counts[i] = remaining
        ctx.checkpoint()
        coefficient = n_factorial
        for c in counts:
            coefficient //= factorial(c)
        term = product.multiply_all(
            [coefficient] + [powers[idx][c] for idx, c in enumerate(counts)], ctx)
        total = combine.add(total, term, ctx)

    descend(0, n)
    return total


# ============================================================
# Polar forms
# ============================================================

def exponential(p: ExprType, ctx: Optional[EvalContext] = None) -> ExprType:
    """e^p"""
    return power(E_CONST, p, ctx)


def simplify_polar(expo: ExprType, ctx: Optional[EvalContext] = None) -> Optional[ExprType]:
    """
    Collapse e^(n/2 i pi) to 1, -1, i or -i.

    For a sum exponent the first quarter-turn term is split off:
    e^(i pi/2 + x) -> i e^x. Returns None when nothing applies.
    """
    value = complexnum.quarter_turn(expo)
    if value is not None:
        return value
    if is_add(expo):
        for term in expo[1:]:
            value = complexnum.quarter_turn(term)
            if value is not None:
                rest = combine.subtract(expo, term, ctx)
                return product.multiply(value, exponential(rest, ctx), ctx)
    return None


# ============================================================
# The cascade
# ============================================================

def power(base: ExprType, expo: ExprType, ctx: Optional[EvalContext] = None) -> ExprType:
    """
    Raise base to expo and normalize the result.

    Args:
        base: Base expression
        expo: Exponent expression
        ctx: Evaluation context (default context if None)

    Returns:
        A canonical expression; the unreduced ["^", base, expo] when no
        identity applies.

    Raises:
        Interrupted: If cancellation was requested.
        UnsupportedShape: From tensor powers that have no meaning.

    Examples:
        power("x", 1)                       -> "x"
        power(-1, Fraction(1, 2))           -> ["^", -1, 1/2]  (i)
        power(["*", "x", "y"], 2)           -> ["*", ["^", "x", 2], ["^", "y", 2]]
        power(["+", "a", "b"], 2)           -> a^2 + 2ab + b^2
    """
    ctx = resolve(ctx)

    # 1 ^ a -> 1,  a ^ 0 -> 1
    if (is_number(base) and base == 1) or is_zero(expo):
        return 1.0 if ctx.evaluating_as_floats else 1

    if is_number(expo) and expo == 1:
        return base

    if is_number(base) and base == -1:
        if is_number(expo) and expo == -1:
            return -1
        if _is_exact(expo, Fraction(1, 2)):
            return list(IMAGINARY_UNIT)
        if _is_exact(expo, Fraction(-1, 2)):
            return product.negate(IMAGINARY_UNIT, ctx)

    # (-1)^(p/q) in clock form, then rectangular
    if (_is_exact(base, -1) and is_rational(expo) and not is_integer(expo)
            and expo > 0 and not ctx.evaluating_as_floats):
        p, q = expo.numerator, expo.denominator
        clock = [POWER, base, Fraction(p % q, q)]
        # (-1)^(p/q) has period 2q in p
        if (p // q) % 2:
            clock = [MULTIPLY, -1, clock]
        return complexnum.rect(clock, ctx)

    if is_rational(base) and is_rational(expo):
        return qpow(base, expo, ctx)

    if is_number(base) and is_number(expo):
        return dpow(float(base), float(expo), ctx)

    if is_tensor(base):
        return tensor.power_tensor(base, expo, ctx)

    # |a|^2n = a^2n only holds for real a
    if is_head(base, "abs") and is_even_integer(expo) and ctx.assume_real_variables:
        return power(base[1], expo, ctx)

    if base == E_CONST:
        if is_head(expo, "log"):
            return expo[1]
        if is_float(expo):
            return math.exp(expo)

    # e^(i pi x) to rectangular, unless a polar form is being built
    if (base == E_CONST and find(expo, IMAGINARY_UNIT) and find(expo, PI)
            and not ctx.evaluating_polar):
        rectangular = complexnum.rect([POWER, base, expo], ctx)
        if not find(rectangular, PI):
            return rectangular

    # (a b)^n -> a^n b^n, for integer n only
    if is_multiply(base) and is_integer(expo):
        return product.multiply_all([power(f, expo, ctx) for f in base[1:]], ctx)

    # (a^b)^c -> a^(bc) when c is an integer or a > 0
    if is_power(base):
        a, b = base[1], base[2]
        if is_integer(expo) or (is_number(a) and a > 0):
            return power(a, product.multiply(b, expo, ctx), ctx)
        # (a^2n)^(1/2n) -> |a|
        if is_even_integer(b):
            bc = product.multiply(b, expo, ctx)
            if _is_exact(bc, 1):
                return complexnum.absval(a, ctx)

    if ctx.expanding and is_add(base) and is_integer(expo) and expo > 1:
        return power_sum(int(expo), base, ctx)

    # sin^2n -> (1 - cos^2)^n and cos^2n -> (1 - sin^2)^n
    if ctx.trig_mode == TrigMode.ELIMINATE_SIN and is_head(base, "sin") and is_even_integer(expo):
        square = power(functions.cosine(base[1], ctx), 2, ctx)
        return power(combine.subtract(1, square, ctx), expo // 2, ctx)
    if ctx.trig_mode == TrigMode.ELIMINATE_COS and is_head(base, "cos") and is_even_integer(expo):
        square = power(functions.sine(base[1], ctx), 2, ctx)
        return power(combine.subtract(1, square, ctx), expo // 2, ctx)

    if complexnum.is_complex_number(base):
        if is_integer(expo):
            if expo < 0:
                # z^-n = (conj(z) / (z conj(z)))^n
                conj = complexnum.conjugate(base, ctx)
                result = product.divide(conj, product.multiply(conj, base, ctx), ctx)
                if expo == -1:
                    return result
                return power(result, -expo, ctx)
        elif is_number(expo):
            if ctx.evaluating_as_floats or (complexnum.has_float_part(base) and is_float(expo)):
                pi = math.pi
            else:
                pi = PI
            angle = product.divide(
                product.multiply(complexnum.arg(base, ctx), expo, ctx), pi, ctx)
            result = product.multiply(
                power(complexnum.absval(base, ctx), expo, ctx),
                power(-1, angle, ctx),
                ctx)
            if ctx.avoid_arctan_powers and find(result, "arctan"):
                return [POWER, base, expo]
            return result

    if base == E_CONST:
        polar = simplify_polar(expo, ctx)
        if polar is not None:
            return polar

    return [POWER, base, expo]
