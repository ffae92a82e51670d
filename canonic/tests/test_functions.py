"""Tests for sin, cos, arctan and log values."""

import math
from fractions import Fraction

import pytest
from canonic import sine, cosine, arctan, logarithm, EvalContext

HALF = Fraction(1, 2)
HALF_SQRT2 = ["*", HALF, ["^", 2, HALF]]
HALF_SQRT3 = ["*", HALF, ["^", 3, HALF]]


def pi_times(c):
    return ["*", c, "pi"]


class TestSine:
    """Tests for exact and symbolic sine."""

    def test_zero(self):
        """sin 0 = 0."""
        assert sine(0) == 0

    def test_table(self):
        """First-quadrant table values."""
        assert sine(pi_times(Fraction(1, 6))) == HALF
        assert sine(pi_times(Fraction(1, 4))) == HALF_SQRT2
        assert sine(pi_times(Fraction(1, 3))) == HALF_SQRT3
        assert sine(pi_times(HALF)) == 1

    def test_pi(self):
        """sin pi = 0."""
        assert sine("pi") == 0

    def test_other_quadrants(self):
        """Angles are reduced into the first quadrant."""
        assert sine(pi_times(Fraction(5, 6))) == HALF
        assert sine(pi_times(Fraction(4, 3))) == ["*", -HALF, ["^", 3, HALF]]
        assert sine(pi_times(Fraction(3, 2))) == -1

    def test_negative_argument(self):
        """sin(-x) = -sin(x)."""
        assert sine(["*", -1, "x"]) == ["*", -1, ["sin", "x"]]

    def test_symbolic(self):
        """Unknown values stay as sin nodes."""
        assert sine("x") == ["sin", "x"]
        assert sine(pi_times(Fraction(1, 5))) == ["sin", pi_times(Fraction(1, 5))]

    def test_float(self):
        """Float arguments go through math.sin."""
        assert sine(0.5) == pytest.approx(math.sin(0.5))

    def test_float_mode(self):
        """Exact arguments are converted in float mode."""
        ctx = EvalContext(evaluating_as_floats=True)
        assert sine(HALF, ctx) == pytest.approx(math.sin(0.5))


class TestCosine:
    """Tests for exact and symbolic cosine."""

    def test_zero(self):
        """cos 0 = 1."""
        assert cosine(0) == 1

    def test_table(self):
        """Table values through the quarter-turn shift."""
        assert cosine("pi") == -1
        assert cosine(pi_times(Fraction(1, 4))) == HALF_SQRT2
        assert cosine(pi_times(Fraction(1, 3))) == HALF
        assert cosine(pi_times(HALF)) == 0

    def test_even(self):
        """cos(-x) = cos(x)."""
        assert cosine(["*", -1, "x"]) == ["cos", "x"]

    def test_symbolic(self):
        """Unknown values stay as cos nodes."""
        assert cosine("x") == ["cos", "x"]


class TestArctan:
    """Tests for arctan."""

    def test_exact(self):
        """arctan of 0, 1, sqrt(3) and sqrt(3)/3."""
        assert arctan(0) == 0
        assert arctan(1) == pi_times(Fraction(1, 4))
        assert arctan(["^", 3, HALF]) == pi_times(Fraction(1, 3))
        assert arctan(["*", Fraction(1, 3), ["^", 3, HALF]]) == pi_times(Fraction(1, 6))

    def test_odd(self):
        """arctan(-y) = -arctan(y)."""
        assert arctan(-1) == pi_times(Fraction(-1, 4))
        assert arctan(["*", -1, "y"]) == ["*", -1, ["arctan", "y"]]

    def test_symbolic(self):
        """Unknown values stay as arctan nodes."""
        assert arctan("y") == ["arctan", "y"]
        assert arctan(2) == ["arctan", 2]

    def test_float(self):
        """Float arguments go through math.atan."""
        assert arctan(2.0) == pytest.approx(math.atan(2.0))


class TestLogarithm:
    """Tests for the natural logarithm."""

    def test_exact(self):
        """log 1 = 0 and log e = 1."""
        assert logarithm(1) == 0
        assert logarithm("e") == 1

    def test_exponential(self):
        """log e^y = y."""
        assert logarithm(["^", "e", "y"]) == "y"

    def test_float(self):
        """Positive floats go through math.log."""
        assert logarithm(2.0) == pytest.approx(math.log(2.0))

    def test_symbolic(self):
        """Unknown values stay as log nodes."""
        assert logarithm("x") == ["log", "x"]
        assert logarithm(2) == ["log", 2]
