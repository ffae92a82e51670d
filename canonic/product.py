"""
Product canonicalization.

A canonical product is ["*", coefficient?, factor, ...] where the
numeric coefficient (omitted when it is exactly 1) comes first, no
factor is itself a product or a number, no two factors share a base,
and the factors are sorted by base and then exponent. In expanding mode
products are distributed over sums.
"""

from collections import deque
from functools import cmp_to_key
from typing import Iterable, Optional

from . import combine, exponent, tensor
from .arith import is_float, is_number, is_zero, multiply_numbers
from .context import EvalContext, resolve
from .expr import (
    MULTIPLY, ExprType, base_and_exponent, cmp_expr, equal, is_add,
    is_multiply, is_tensor,
)


def _compare_factors(p, q) -> int:
    """Order (base, exponent, factor) entries by base, then exponent."""
    n = cmp_expr(p[0], q[0])
    if n:
        return n
    return cmp_expr(p[1], q[1])


_factor_key = cmp_to_key(_compare_factors)


def multiply_all(factors: Iterable[ExprType], ctx: Optional[EvalContext] = None) -> ExprType:
    """
    Multiply any number of expressions into canonical form.

    Examples:
        multiply_all([2, "x", 3])            -> ["*", 6, "x"]
        multiply_all(["x", ["^", "x", 2]])   -> ["^", "x", 3]
        multiply_all([2, ["+", "a", "b"]])   -> ["+", ["*", 2, "a"], ["*", 2, "b"]]
    """
    ctx = resolve(ctx)
    factors = list(factors)

    if ctx.expanding:
        for i, f in enumerate(factors):
            if is_add(f):
                rest = multiply_all(factors[:i] + factors[i + 1:], ctx)
                return combine.add_all([multiply(term, rest, ctx) for term in f[1:]], ctx)

    tensors = [f for f in factors if is_tensor(f)]
    if tensors:
        scalar = multiply_all([f for f in factors if not is_tensor(f)], ctx)
        if len(tensors) == 1:
            return tensor.scalar_times_tensor(scalar, tensors[0], ctx)
        if is_number(scalar) and scalar == 1:
            return [MULTIPLY] + tensors
        return [MULTIPLY, scalar] + tensors

    coefficient = 1
    entries = []  # [base, exponent, factor]
    pending = deque(factors)
    while pending:
        f = pending.popleft()
        if is_multiply(f):
            pending.extendleft(reversed(f[1:]))
            continue
        if is_number(f):
            coefficient = multiply_numbers(coefficient, f)
            continue
        base, expo = base_and_exponent(f)
        for i, entry in enumerate(entries):
            if equal(entry[0], base):
                del entries[i]
                pending.appendleft(
                    exponent.power(base, combine.add(entry[1], expo, ctx), ctx))
                break
        else:
            entries.append((base, expo, f))

    if is_zero(coefficient):
        return coefficient
    if not entries:
        return coefficient

    # merging bases can surface a sum, e.g. i (-1)^(1/3) -> (-1)^(5/6)
    if ctx.expanding and any(is_add(e[2]) for e in entries):
        return multiply_all([coefficient] + [e[2] for e in entries], ctx)

    entries.sort(key=_factor_key)
    result = [e[2] for e in entries]
    if coefficient == 1 and not is_float(coefficient):
        if len(result) == 1:
            return result[0]
        return [MULTIPLY] + result
    return [MULTIPLY, coefficient] + result


def multiply(p: ExprType, q: ExprType, ctx: Optional[EvalContext] = None) -> ExprType:
    """Multiply two expressions."""
    return multiply_all([p, q], ctx)


def negate(p: ExprType, ctx: Optional[EvalContext] = None) -> ExprType:
    """-p"""
    if is_number(p):
        return multiply_numbers(-1, p)
    return multiply_all([-1, p], ctx)


def reciprocate(p: ExprType, ctx: Optional[EvalContext] = None) -> ExprType:
    """1/p"""
    return exponent.power(p, -1, ctx)


def divide(p: ExprType, q: ExprType, ctx: Optional[EvalContext] = None) -> ExprType:
    """p/q"""
    return multiply_all([p, reciprocate(q, ctx)], ctx)
