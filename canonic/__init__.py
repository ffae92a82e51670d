"""
canonic - the rewriting core of a symbolic algebra engine

Canonical forms for sums, products and powers, complex-number
exponentiation, multinomial expansion, and table-driven rewriting with
meta-variables.

Quick Start:
    from canonic import E, add, power, transform

    E("(+ a a)")                         # => ["*", 2, "a"]
    power(["+", "a", "b"], 2)            # => a^2 + 2ab + b^2
    power(-1, Fraction(1, 2))            # => i, the node ["^", -1, 1/2]

    transform(E("(* 5 x)"), "x", ["(* a_ x_) => a_"])   # => (5, True)

Expressions:
    numbers       1, Fraction(3, 4), 0.5
    symbols       "x", "pi", "e"
    compounds     ["+", "x", 1], ["^", "x", 2], ["sin", "x"]
    tensors       Tensor((2, 2), [1, 0, 0, 1])

Rule DSL:
    # Comments start with #
    @name: pattern => replacement
    @name "Description": pattern => replacement when guard ...

    Meta-variables:
    a_, b_        bound to pieces of the input free of x_
    x_            the free variable
"""

__version__ = "0.1.0"

# Expression tree and numbers
from .expr import (
    ExprType,
    Tensor,
    ADD,
    MULTIPLY,
    POWER,
    PI,
    E_CONST,
    IMAGINARY_UNIT,
    car,
    cdr,
    cons,
    atom,
    compound,
    constant,
    variable,
    is_add,
    is_multiply,
    is_power,
    is_tensor,
    cmp_expr,
    equal,
    find,
    subst,
)
from .arith import (
    is_number,
    is_rational,
    is_integer,
    is_zero,
    is_negative,
    normalize,
    add_numbers,
    multiply_numbers,
    compare_numbers,
    to_float,
    integer_root,
    extract_root,
)

# Configuration and errors
from .context import EvalContext, TrigMode, CancellationToken, DEFAULT_CONTEXT
from .errors import CanonicError, Interrupted, UnsupportedShape

# Algebra
from .combine import combine, add, add_all, subtract
from .product import multiply, multiply_all, negate, divide, reciprocate
from .exponent import power, exponential, power_sum, simplify_polar, qpow, dpow
from .complexnum import (
    conjugate,
    real,
    imag,
    rect,
    arg,
    absval,
    is_complex_number,
    quarter_turn,
)
from .functions import sine, cosine, arctan, logarithm
from .tensor import inner, identity, determinant, inverse, power_tensor

# Evaluation
from .evaluate import (
    evaluate,
    Handler,
    FunctionsType,
    nary,
    unary,
    binary,
    ARITHMETIC_FUNCTIONS,
    COMPLEX_FUNCTIONS,
    TRANSCENDENTAL_FUNCTIONS,
    PREDICATE_FUNCTIONS,
    DEFAULT_FUNCTIONS,
)

# Rewriting and the DSL
from .sexpr import E, parse_sexpr, parse_sexprs, format_sexpr
from .transform import (
    transform,
    polyform,
    coefficients,
    is_polynomial,
    decompose,
    instantiate,
    TransformRule,
    Bindings,
    NoMatch,
    META_A,
    META_B,
    META_X,
    parse_transform_rule,
    load_transform_table,
    load_transform_file,
)
from .tables import INTEGRALS, integral_table, integrate_lookup

# Public API
__all__ = [
    # Version
    "__version__",
    # Expressions
    "ExprType",
    "Tensor",
    "ADD",
    "MULTIPLY",
    "POWER",
    "PI",
    "E_CONST",
    "IMAGINARY_UNIT",
    "car",
    "cdr",
    "cons",
    "atom",
    "compound",
    "constant",
    "variable",
    "is_add",
    "is_multiply",
    "is_power",
    "is_tensor",
    "cmp_expr",
    "equal",
    "find",
    "subst",
    # Numbers
    "is_number",
    "is_rational",
    "is_integer",
    "is_zero",
    "is_negative",
    "normalize",
    "add_numbers",
    "multiply_numbers",
    "compare_numbers",
    "to_float",
    "integer_root",
    "extract_root",
    # Configuration
    "EvalContext",
    "TrigMode",
    "CancellationToken",
    "DEFAULT_CONTEXT",
    # Errors
    "CanonicError",
    "Interrupted",
    "UnsupportedShape",
    # Sums and products
    "combine",
    "add",
    "add_all",
    "subtract",
    "multiply",
    "multiply_all",
    "negate",
    "divide",
    "reciprocate",
    # Powers
    "power",
    "exponential",
    "power_sum",
    "simplify_polar",
    "qpow",
    "dpow",
    # Complex numbers
    "conjugate",
    "real",
    "imag",
    "rect",
    "arg",
    "absval",
    "is_complex_number",
    "quarter_turn",
    # Functions
    "sine",
    "cosine",
    "arctan",
    "logarithm",
    # Tensors
    "inner",
    "identity",
    "determinant",
    "inverse",
    "power_tensor",
    # Evaluation
    "evaluate",
    "Handler",
    "FunctionsType",
    "nary",
    "unary",
    "binary",
    "ARITHMETIC_FUNCTIONS",
    "COMPLEX_FUNCTIONS",
    "TRANSCENDENTAL_FUNCTIONS",
    "PREDICATE_FUNCTIONS",
    "DEFAULT_FUNCTIONS",
    # Expression builder
    "E",
    # DSL utilities
    "parse_sexpr",
    "parse_sexprs",
    "format_sexpr",
    # Rewriting
    "transform",
    "polyform",
    "coefficients",
    "is_polynomial",
    "decompose",
    "instantiate",
    "TransformRule",
    "Bindings",
    "NoMatch",
    "META_A",
    "META_B",
    "META_X",
    "parse_transform_rule",
    "load_transform_table",
    "load_transform_file",
    # Tables
    "INTEGRALS",
    "integral_table",
    "integrate_lookup",
]
