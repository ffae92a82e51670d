"""
Bottom-up evaluation of expression trees.

evaluate() re-canonicalizes an arbitrary tree: arguments first, then
the node's head is looked up in a function table and its handler builds
the canonical result. Unknown heads are rebuilt with evaluated
arguments. This is what the rewriter uses to evaluate guards, patterns
and replacements.

A handler receives the evaluated argument list and the context, and
returns the result, or None when it cannot handle that arity (the node
then stays as it is).
"""

import math
from fractions import Fraction
from typing import Callable, Dict, List, Optional

from . import complexnum, exponent, product
from .arith import compare_numbers, is_integer, is_number, is_zero
from .combine import add_all, subtract
from .context import EvalContext, resolve
from .expr import (
    E_CONST, PI, ExprType, car, cdr, compound, constant, is_tensor, variable,
)
from .functions import arctan, cosine, logarithm, sine

# Handler: (evaluated args, ctx) -> result, or None if it can't apply
Handler = Callable[[List[ExprType], EvalContext], Optional[ExprType]]
FunctionsType = Dict[str, Handler]


# ============================================================
# Handler Builders
# ============================================================

def nary(
    identity: ExprType,
    fold_all: Callable[[List[ExprType], EvalContext], ExprType],
) -> Handler:
    """Create an n-ary handler with an identity element.

    Examples:
        nary(0, add_all)       # (+) = 0, (+ x y z) = x+y+z
        nary(1, product.multiply_all)  # (*) = 1, (* x y z) = x*y*z
    """
    def handler(args, ctx):
        if len(args) == 0:
            return identity
        if len(args) == 1:
            return args[0]
        return fold_all(args, ctx)
    return handler


def unary(f: Callable[[ExprType, EvalContext], ExprType]) -> Handler:
    """Create a unary-only handler (e.g., sin, abs, conj)."""
    def handler(args, ctx):
        if len(args) != 1:
            return None
        return f(args[0], ctx)
    return handler


def binary(f: Callable[[ExprType, ExprType, EvalContext], ExprType]) -> Handler:
    """Create a binary-only handler (e.g., ^, /)."""
    def handler(args, ctx):
        if len(args) != 2:
            return None
        return f(args[0], args[1], ctx)
    return handler


def _minus(args, ctx):
    """(-) = 0, (- x) = -x, (- x y) = x-y."""
    if len(args) == 0:
        return 0
    if len(args) == 1:
        return product.negate(args[0], ctx)
    if len(args) == 2:
        return subtract(args[0], args[1], ctx)
    return None


def _divide(args, ctx):
    if len(args) != 2:
        return None
    if is_zero(args[1]) and not is_tensor(args[1]):
        return None
    return product.divide(args[0], args[1], ctx)


# ============================================================
# Predicates
# ============================================================

def _truth(value: bool) -> int:
    return 1 if value else 0


def _compare(test: Callable[[int], bool]) -> Handler:
    """
    Numeric comparison. Decidable only when the difference of the two
    sides reduces to a number; anything else is false.
    """
    def handler(args, ctx):
        if len(args) != 2:
            return None
        diff = subtract(args[0], args[1], ctx)
        if not is_number(diff):
            return 0
        return _truth(test(compare_numbers(diff, 0)))
    return handler


def _equal(args, ctx):
    if len(args) != 2:
        return None
    return _truth(is_zero(subtract(args[0], args[1], ctx)))


def _not_equal(args, ctx):
    if len(args) != 2:
        return None
    return _truth(not is_zero(subtract(args[0], args[1], ctx)))


def _predicate(test: Callable[[ExprType], bool]) -> Handler:
    return unary(lambda x, ctx: _truth(test(x)))


def _is_true(x: ExprType) -> bool:
    return not (is_number(x) and is_zero(x))


# ============================================================
# Standard Function Tables
# ============================================================

def _sqrt(x, ctx):
    return exponent.power(x, Fraction(1, 2), ctx)


# Arithmetic: + * ^ - / sqrt exp
ARITHMETIC_FUNCTIONS: FunctionsType = {
    "+": nary(0, add_all),
    "*": nary(1, product.multiply_all),
    "^": binary(exponent.power),
    "-": _minus,
    "/": _divide,
    "sqrt": unary(_sqrt),
    "exp": unary(exponent.exponential),
}

# Complex decomposition
COMPLEX_FUNCTIONS: FunctionsType = {
    "abs": unary(complexnum.absval),
    "arg": unary(complexnum.arg),
    "real": unary(complexnum.real),
    "imag": unary(complexnum.imag),
    "rect": unary(complexnum.rect),
    "conj": unary(complexnum.conjugate),
}

# Trigonometric and logarithm
TRANSCENDENTAL_FUNCTIONS: FunctionsType = {
    "sin": unary(sine),
    "cos": unary(cosine),
    "arctan": unary(arctan),
    "log": unary(logarithm),
}

# Predicates for rule guards; true is 1 and false is 0
PREDICATE_FUNCTIONS: FunctionsType = {
    "=": _equal,
    "!=": _not_equal,
    "<": _compare(lambda c: c < 0),
    ">": _compare(lambda c: c > 0),
    "<=": _compare(lambda c: c <= 0),
    ">=": _compare(lambda c: c >= 0),
    "not": _predicate(lambda x: not _is_true(x)),
    "and": binary(lambda a, b, ctx: _truth(_is_true(a) and _is_true(b))),
    "or": binary(lambda a, b, ctx: _truth(_is_true(a) or _is_true(b))),
    "number?": _predicate(constant),
    "integer?": _predicate(is_integer),
    "symbol?": _predicate(variable),
    "zero?": _predicate(is_zero),
    "positive?": _predicate(lambda x: is_number(x) and x > 0),
    "negative?": _predicate(lambda x: is_number(x) and x < 0),
}

# Everything (the default)
DEFAULT_FUNCTIONS: FunctionsType = {
    **ARITHMETIC_FUNCTIONS,
    **COMPLEX_FUNCTIONS,
    **TRANSCENDENTAL_FUNCTIONS,
    **PREDICATE_FUNCTIONS,
}


# ============================================================
# Evaluation
# ============================================================

def evaluate(
    expr: ExprType,
    ctx: Optional[EvalContext] = None,
    functions: Optional[FunctionsType] = None,
) -> ExprType:
    """
    Evaluate an expression tree to canonical form.

    Args:
        expr: Expression to evaluate
        ctx: Evaluation context (default context if None)
        functions: Function table (DEFAULT_FUNCTIONS if None)

    Returns:
        The canonical expression

    Examples:
        evaluate(["+", "x", "x"])                -> ["*", 2, "x"]
        evaluate(["^", ["+", "a", "b"], 2])      -> a^2 + 2ab + b^2
        evaluate(["sin", ["*", 1/6, "pi"]])      -> 1/2
    """
    ctx = resolve(ctx)
    if functions is None:
        functions = DEFAULT_FUNCTIONS

    def loop(e: ExprType) -> ExprType:
        if is_tensor(e):
            return e.map(loop)
        if not compound(e):
            if ctx.evaluating_as_floats:
                if is_number(e):
                    return float(e)
                if e == PI:
                    return math.pi
                if e == E_CONST:
                    return math.e
            return e

        head = car(e)
        args = [loop(a) for a in cdr(e)]
        handler = functions.get(head) if isinstance(head, str) else None
        if handler is not None:
            result = handler(args, ctx)
            if result is not None:
                return result
        return [head] + args

    return loop(expr)
