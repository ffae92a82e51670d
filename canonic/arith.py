"""
Exact number layer.

Exact rationals are Python ints and fractions.Fraction values, floats
are Python floats. Every exact result passes through normalize(), so a
Fraction with denominator 1 is always stored as an int and two equal
rationals always have the same representation.
"""

import math
from fractions import Fraction
from typing import Tuple, Union

NumberType = Union[int, Fraction, float]


def is_number(p) -> bool:
    """Check if p is a numeric atom (exact rational or float)."""
    return isinstance(p, (int, Fraction, float)) and not isinstance(p, bool)


def is_rational(p) -> bool:
    """Check if p is an exact rational."""
    return isinstance(p, (int, Fraction)) and not isinstance(p, bool)


def is_float(p) -> bool:
    return isinstance(p, float)


def is_integer(p) -> bool:
    """Check if p is an exact integer. Integral floats do not count."""
    if isinstance(p, Fraction):
        return p.denominator == 1
    return isinstance(p, int) and not isinstance(p, bool)


def is_even_integer(p) -> bool:
    return is_integer(p) and p % 2 == 0


def is_zero(p) -> bool:
    """
    Check if p is numerically zero.

    Float zero counts: adding 1.0 and -1.0 annihilates the pair just as
    the exact case does. Tensors are zero when every element is.
    """
    if is_number(p):
        return p == 0
    elems = getattr(p, 'elems', None)
    if elems is not None:
        return all(is_zero(e) for e in elems)
    return False


def is_negative(p) -> bool:
    return is_number(p) and p < 0


def is_positive(p) -> bool:
    return is_number(p) and p > 0


def normalize(value: NumberType) -> NumberType:
    """Store an integral Fraction as int; leave everything else alone."""
    if isinstance(value, Fraction) and value.denominator == 1:
        return int(value.numerator)
    return value


def to_float(p: NumberType) -> float:
    return float(p)


def add_numbers(p: NumberType, q: NumberType) -> NumberType:
    """Sum of two numbers; float if either operand is a float."""
    if isinstance(p, float) or isinstance(q, float):
        return float(p) + float(q)
    return normalize(Fraction(p) + Fraction(q))


def multiply_numbers(p: NumberType, q: NumberType) -> NumberType:
    """Product of two numbers; float if either operand is a float."""
    if isinstance(p, float) or isinstance(q, float):
        return float(p) * float(q)
    return normalize(Fraction(p) * Fraction(q))


def compare_numbers(p: NumberType, q: NumberType) -> int:
    """Return -1, 0 or 1 as p is less than, equal to or greater than q."""
    if p < q:
        return -1
    if p > q:
        return 1
    return 0


# ============================================================
# Integer roots
# ============================================================

def integer_root(n: int, k: int) -> int:
    """
    Largest integer r with r**k <= n, for n >= 0 and k >= 1.

    Newton's iteration on integers, exact for arbitrarily large n.
    """
    if n < 0:
        raise ValueError("integer_root: n must be non-negative")
    if k < 1:
        raise ValueError("integer_root: k must be positive")
    if n < 2 or k == 1:
        return n
    r = 1 << -(-n.bit_length() // k)
    while True:
        s = ((k - 1) * r + n // r ** (k - 1)) // k
        if s >= r:
            break
        r = s
    while r ** k > n:
        r -= 1
    return r


# Trial division stops here; larger cofactors are only checked for
# being a perfect power as a whole.
_TRIAL_LIMIT = 10000


def extract_root(n: int, k: int) -> Tuple[int, int]:
    """
    Split a positive integer n into s**k * t with t free of k-th powers
    over the trial-division range.

    Returns:
        (s, t) such that n == s**k * t

    Example:
        extract_root(72, 2) -> (6, 2)     # 72 = 6^2 * 2
    """
    s, t = 1, 1
    f = 2
    while f * f <= n and f <= _TRIAL_LIMIT:
        count = 0
        while n % f == 0:
            n //= f
            count += 1
        if count:
            s *= f ** (count // k)
            t *= f ** (count % k)
        f += 1 if f == 2 else 2
    if n > 1:
        r = integer_root(n, k)
        if r ** k == n:
            s *= r
        else:
            t *= n
    return s, t


def factorial(n: int) -> int:
    return math.factorial(n)
