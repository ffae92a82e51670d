"""
Canonical term combiner.

Terms in a sum are combined when they are identical modulo numeric
coefficients, so A + 2A becomes 3A while A + sqrt(2) A is left alone.

Combining can have second-order effects. In

    1/sqrt(2) A + 3/sqrt(2) A + sqrt(2) A

the first two terms merge into 2 sqrt(2) A, which then merges with the
third into 3 sqrt(2) A. Merged values therefore go back onto the
worklist instead of being emitted, and the sort/merge passes repeat
until no two adjacent terms combine.
"""

import logging
from collections import deque
from functools import cmp_to_key
from typing import Iterable, List, Optional, Tuple

from . import product, tensor
from .arith import add_numbers, is_number, is_zero
from .context import EvalContext, resolve
from .expr import (
    ADD, ExprType, cmp_expr, equal, is_add, is_multiply, is_tensor,
)

logger = logging.getLogger(__name__)

# Returned by _merge_pair when two terms do not combine
_UNCOMBINABLE = object()


# ============================================================
# Ordering
# ============================================================

def split_coefficient(term: ExprType) -> Tuple[ExprType, ExprType]:
    """
    Split a term into its numeric coefficient and the rest.

    Examples:
        ["*", 3, "a", "b"] -> (3, ["*", "a", "b"])
        ["*", 3, "a"]      -> (3, "a")
        ["*", "a", "b"]    -> (1, ["*", "a", "b"])
        "a"                -> (1, "a")
    """
    if is_multiply(term) and is_number(term[1]):
        rest = term[2:]
        if len(rest) == 1:
            return term[1], rest[0]
        return term[1], [term[0]] + rest
    return 1, term


def compare_terms(p: ExprType, q: ExprType) -> int:
    """
    Order two terms of a sum; 0 means they can be combined.

    All numbers combine. Tensors of the same shape combine. Products are
    compared without their leading numeric coefficient.
    """
    if is_number(p) and is_number(q):
        return 0
    if is_tensor(p) and is_tensor(q):
        return tensor.compare_shapes(p, q)
    return cmp_expr(split_coefficient(p)[1], split_coefficient(q)[1])


_term_key = cmp_to_key(compare_terms)


def _sort_terms(terms: List[ExprType]) -> bool:
    """Stable-sort terms in place; report whether any neighbours combine."""
    terms.sort(key=_term_key)
    return any(compare_terms(a, b) == 0 for a, b in zip(terms, terms[1:]))


# ============================================================
# Merging
# ============================================================

def _merge_pair(p: ExprType, q: ExprType, ctx: EvalContext):
    """
    Merge two adjacent terms.

    Returns:
        _UNCOMBINABLE if the terms do not combine, None if they cancel,
        otherwise the merged term.
    """
    if is_tensor(p) or is_tensor(q):
        if not (is_tensor(p) and is_tensor(q)):
            return _UNCOMBINABLE
        merged = tensor.tensor_plus_tensor(p, q, ctx)
        if merged is None:
            return _UNCOMBINABLE
        return None if is_zero(merged) else merged

    if is_number(p) or is_number(q):
        if not (is_number(p) and is_number(q)):
            return _UNCOMBINABLE
        total = add_numbers(p, q)
        return None if is_zero(total) else total

    p_coeff, p_rest = split_coefficient(p)
    q_coeff, q_rest = split_coefficient(q)
    if not equal(p_rest, q_rest):
        return _UNCOMBINABLE

    coeff = add_numbers(p_coeff, q_coeff)
    if is_zero(coeff):
        return None
    return product.multiply(coeff, p_rest, ctx)


def _combine_adjacent(terms: List[ExprType], ctx: EvalContext) -> List[ExprType]:
    """One merge pass over sorted terms, driven by a worklist."""
    pending = deque(terms)
    out: List[ExprType] = []
    while pending:
        ctx.checkpoint()
        first = pending.popleft()
        if not pending:
            out.append(first)
            break
        merged = _merge_pair(first, pending[0], ctx)
        if merged is _UNCOMBINABLE:
            out.append(first)
            continue
        pending.popleft()
        if merged is None:
            continue
        if is_add(merged):
            pending.extendleft(reversed(merged[1:]))
        else:
            pending.appendleft(merged)
    return out


# ============================================================
# Public API
# ============================================================

def push_term(terms: List[ExprType], p: ExprType) -> None:
    """Append p to terms, splicing sums and omitting exact zeros."""
    if is_add(p):
        terms.extend(p[1:])
    elif not (is_number(p) and is_zero(p)):
        terms.append(p)


def combine(terms: Iterable[ExprType], ctx: Optional[EvalContext] = None) -> ExprType:
    """
    Collapse additive terms into one canonical expression.

    Args:
        terms: Terms to add. Nested sums are flattened and zeros dropped.
        ctx: Evaluation context (default context if None)

    Returns:
        0 when nothing survives, the single surviving term, or a "+"
        node over the surviving terms in canonical order.

    Examples:
        combine([2, 3])                  -> 5
        combine(["a", "a"])              -> ["*", 2, "a"]
        combine(["b", ["*", 2, "a"]])    -> ["+", ["*", 2, "a"], "b"]
    """
    ctx = resolve(ctx)
    flat: List[ExprType] = []
    for t in terms:
        push_term(flat, t)

    limit = ctx.max_combine_passes
    for _ in range(limit):
        ctx.checkpoint()
        if len(flat) < 2 or not _sort_terms(flat):
            break
        flat = _combine_adjacent(flat, ctx)
    else:
        if len(flat) > 1 and _sort_terms(flat):
            logger.warning(
                "term combination reached no fixed point after %d passes (%d terms left)",
                limit, len(flat))

    if not flat:
        return 0
    if len(flat) == 1:
        return flat[0]
    return [ADD] + flat


def add(p: ExprType, q: ExprType, ctx: Optional[EvalContext] = None) -> ExprType:
    """Add two expressions."""
    return combine([p, q], ctx)


def add_all(terms: Iterable[ExprType], ctx: Optional[EvalContext] = None) -> ExprType:
    """Add any number of expressions."""
    return combine(terms, ctx)


def subtract(p: ExprType, q: ExprType, ctx: Optional[EvalContext] = None) -> ExprType:
    """p - q"""
    return combine([p, product.negate(q, ctx)], ctx)
