"""
Integral table: elementary antiderivatives as transform rules.

Each rule gives the antiderivative with respect to x_ of one form; a_
and b_ stand for anything free of x_. integrate_lookup() runs the table
through transform() in table mode.

Example:
    from canonic import E, integrate_lookup

    integrate_lookup(E("(sin (* 3 x))"), "x")
    # => (["*", -1/3, ["cos", ["*", 3, "x"]]], True)
"""

from functools import lru_cache
from typing import List, Optional, Tuple

from .context import EvalContext
from .expr import ExprType
from .transform import TransformRule, load_transform_table, transform

INTEGRALS = """
# integrals of elementary forms with respect to x_
@int-const "a":  a_ => (* a_ x_)
@int-recip "1/x": (^ x_ -1) => (log x_)
@int-power "a x^b": (* a_ (^ x_ b_)) => (* a_ (^ (+ b_ 1) -1) (^ x_ (+ b_ 1))) when (not (= b_ -1))
@int-exp "e^(a x)": (^ e (* a_ x_)) => (* (^ a_ -1) (^ e (* a_ x_))) when (not (= a_ 0))
@int-sin "sin(a x)": (sin (* a_ x_)) => (* -1 (^ a_ -1) (cos (* a_ x_))) when (not (= a_ 0))
@int-cos "cos(a x)": (cos (* a_ x_)) => (* (^ a_ -1) (sin (* a_ x_))) when (not (= a_ 0))
@int-linear-recip "1/(a + b x)": (^ (+ a_ (* b_ x_)) -1) => (* (^ b_ -1) (log (+ a_ (* b_ x_)))) when (not (= b_ 0))
"""


@lru_cache(maxsize=None)
def _integral_rules() -> Tuple[TransformRule, ...]:
    return tuple(load_transform_table(INTEGRALS))


def integral_table() -> List[TransformRule]:
    """The parsed INTEGRALS table."""
    return list(_integral_rules())


def integrate_lookup(f: ExprType, x: str, ctx: Optional[EvalContext] = None) -> Tuple[ExprType, bool]:
    """
    Look up the antiderivative of f with respect to x.

    Returns:
        (antiderivative, True) when a table entry matches, else
        (NoMatch, False).
    """
    return transform(f, x, integral_table(), False, ctx)
