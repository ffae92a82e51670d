#!/usr/bin/env python3
"""
canonic Feature Demonstration

Walks through canonical sums and products, powers of sums and of -1,
complex numbers, tensors, evaluation with custom functions and
table-driven rewriting.
"""

import logging
from fractions import Fraction

from canonic import (
    E, EvalContext, Tensor, CancellationToken, Interrupted,
    add_all, multiply, power, rect, absval, arg, conjugate,
    evaluate, unary, DEFAULT_FUNCTIONS,
    transform, integrate_lookup, load_transform_table,
    format_sexpr, parse_sexpr,
)


def section(title: str):
    """Print a section header."""
    print(f"\n{'='*60}")
    print(f" {title}")
    print('='*60)


def show(label: str, expr):
    print(f"  {label:<28} => {format_sexpr(expr)}")


def demo_canonical_sums():
    """Like terms merge and terms come out sorted."""
    section("Canonical Sums and Products")

    show("b + 2a + 3 + a - 1", add_all(["b", ["*", 2, "a"], 3, "a", -1]))
    show("x * 2 * x", multiply(multiply("x", 2), "x"))
    show("(+ a a)", E("(+ a a)"))
    show("(* (+ a b) (+ a b))", E("(* (+ a b) (+ a b))"))


def demo_powers():
    """Rational powers, roots of -1 and multinomials."""
    section("Powers")

    show("sqrt(72)", power(72, Fraction(1, 2)))
    show("(-1)^(1/2)", power(-1, Fraction(1, 2)))
    show("(-1)^(1/3)", power(-1, Fraction(1, 3)))
    show("(1 + x)^3", power(["+", 1, "x"], 3))
    show("(a + b)^2, not expanding",
         power(["+", "a", "b"], 2, EvalContext(expanding=False)))


def demo_complex():
    """Rectangular and polar views of complex numbers."""
    section("Complex Numbers")

    z = E("(+ 1 (^ -1 1/2))")
    show("z", z)
    show("conjugate(z)", conjugate(z))
    show("|z|", absval(z))
    show("arg(z)", arg(z))
    show("rect(e^(i pi/2))", rect(E("(^ e (* 1/2 pi (^ -1 1/2)))")))


def demo_tensors():
    """Matrix powers go through repeated inner products."""
    section("Tensors")

    m = Tensor.from_nested([[1, 1], [0, 1]])
    show("m", m)
    show("m^3", power(m, 3))
    show("m^-1", power(m, -1))


def demo_evaluate():
    """Evaluate expressions with the built-in and custom functions."""
    section("Evaluation")

    functions = dict(DEFAULT_FUNCTIONS)
    functions["double"] = unary(lambda x, ctx: multiply(2, x, ctx))

    for text in ["(- (* 3 x) x)", "(sin (* 1/6 pi))", "(double (+ y 1))"]:
        show(text, evaluate(parse_sexpr(text), functions=functions))

    show("(sqrt 2), as floats",
         evaluate(parse_sexpr("(sqrt 2)"), ctx=EvalContext(evaluating_as_floats=True)))


def demo_transform():
    """Table-driven rewriting with meta-variables."""
    section("Table-Driven Rewriting")

    rules = load_transform_table('''
        # derivative table
        @d-power: (^ x_ a_) => (* a_ (^ x_ (+ a_ -1)))
        @d-sin: (sin (* a_ x_)) => (* a_ (cos (* a_ x_)))
    ''')
    for text in ["(^ x 4)", "(sin (* 3 x))", "(cos x)"]:
        result, matched = transform(E(text), "x", rules)
        print(f"  {text:<28} => {format_sexpr(result) if matched else result}")

    section("Antiderivatives")
    for text in ["(* 5 x)", "(^ x -1)", "(^ e (* 2 x))", "(sin (^ x 2))"]:
        result, matched = integrate_lookup(E(text), "x")
        print(f"  {text:<28} => {format_sexpr(result) if matched else result}")


def demo_cancellation():
    """A cancelled token stops the work at the next checkpoint."""
    section("Cancellation")

    token = CancellationToken()
    token.cancel()
    try:
        power(["+", "a", "b", "c"], 10, EvalContext(cancellation=token))
    except Interrupted as e:
        print(f"  interrupted: {e}")


def main():
    logging.basicConfig(level=logging.WARNING, format="%(name)s: %(message)s")
    demo_canonical_sums()
    demo_powers()
    demo_complex()
    demo_tensors()
    demo_evaluate()
    demo_transform()
    demo_cancellation()


if __name__ == "__main__":
    main()
