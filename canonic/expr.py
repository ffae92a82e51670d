"""
Expression tree primitives.

An expression is an atom or a compound node:

    atoms      int, fractions.Fraction, float    numbers
               str                               symbols ("x", "pi", "e")
               Tensor                            tensors
    compound   [operator, arg1, arg2, ...]       e.g. ["+", "x", 1]

Nodes are never mutated once built; every operation in this package
returns a fresh list. Equality is structural (==).
"""

from fractions import Fraction
from typing import Any, Callable, List, Sequence, Tuple, Union

from .arith import compare_numbers, is_float, is_number
from .errors import UnsupportedShape

# Type aliases
ExprType = Union[int, Fraction, float, str, 'Tensor', List]

# Operators
ADD = "+"
MULTIPLY = "*"
POWER = "^"

# Reserved symbols
PI = "pi"
E_CONST = "e"

# i is represented as (-1)^(1/2)
IMAGINARY_UNIT = [POWER, -1, Fraction(1, 2)]


# ============================================================
# Tensors
# ============================================================

class Tensor:
    """
    A tensor of expressions stored row-major.

    Examples:
        Tensor((2,), ["a", "b"])                  # vector
        Tensor.from_nested([[1, 0], [0, 1]])      # 2x2 identity
    """

    __slots__ = ('dims', 'elems')

    def __init__(self, dims: Sequence[int], elems: Sequence[ExprType]):
        dims = tuple(dims)
        if not dims or any(d < 1 for d in dims):
            raise UnsupportedShape(f"invalid tensor dimensions {dims}")
        size = 1
        for d in dims:
            size *= d
        if size != len(elems):
            raise UnsupportedShape(
                f"tensor of dimensions {dims} needs {size} elements, got {len(elems)}")
        self.dims: Tuple[int, ...] = dims
        self.elems: List[ExprType] = list(elems)

    @classmethod
    def from_nested(cls, rows: Sequence) -> 'Tensor':
        """Build a tensor from nested Python lists of (atomic) elements."""
        dims = []
        level = rows
        while isinstance(level, (list, tuple)) and not isinstance(level, str):
            dims.append(len(level))
            level = level[0]
        flat: List[ExprType] = []

        def walk(node, depth):
            if depth == len(dims):
                flat.append(node)
                return
            if len(node) != dims[depth]:
                raise UnsupportedShape("ragged nested list")
            for child in node:
                walk(child, depth + 1)

        walk(rows, 0)
        return cls(dims, flat)

    @property
    def ndim(self) -> int:
        return len(self.dims)

    def map(self, f: Callable[[ExprType], ExprType]) -> 'Tensor':
        """Apply f to every element, returning a new tensor."""
        return Tensor(self.dims, [f(e) for e in self.elems])

    def __eq__(self, other):
        if isinstance(other, Tensor):
            return self.dims == other.dims and self.elems == other.elems
        return NotImplemented

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return True
        return not result

    __hash__ = None

    def __repr__(self) -> str:
        return f"Tensor({self.dims}, {self.elems})"


# ============================================================
# Primitive Operations (Lisp-like list operations)
# ============================================================

def car(lst: List) -> Any:
    """
    Return the first element of a list (head).

    Raises:
        TypeError: If argument is not a list
        ValueError: If list is empty
    """
    if not isinstance(lst, list):
        raise TypeError("car: argument must be a list")
    if not lst:
        raise ValueError("car: argument is an empty list")
    return lst[0]


def cdr(lst: List) -> List:
    """Return all but the first element of a list (tail)."""
    if not isinstance(lst, list):
        raise TypeError("cdr: argument must be a list")
    return lst[1:] if lst else []


def cons(item: Any, lst: List) -> List:
    """Construct a new list by prepending an item."""
    return [item] + lst


def atom(exp: ExprType) -> bool:
    """Check if an expression is atomic (number, symbol or tensor)."""
    return not isinstance(exp, list)


def compound(exp: ExprType) -> bool:
    """Check if an expression is a non-empty compound node."""
    return isinstance(exp, list) and len(exp) > 0


def constant(exp: ExprType) -> bool:
    """Check if an expression is a numeric constant."""
    return is_number(exp)


def variable(exp: ExprType) -> bool:
    """Check if an expression is a symbol."""
    return isinstance(exp, str)


def is_tensor(exp: ExprType) -> bool:
    return isinstance(exp, Tensor)


def is_add(exp: ExprType) -> bool:
    return compound(exp) and exp[0] == ADD


def is_multiply(exp: ExprType) -> bool:
    return compound(exp) and exp[0] == MULTIPLY


def is_power(exp: ExprType) -> bool:
    return compound(exp) and exp[0] == POWER and len(exp) == 3


def is_head(exp: ExprType, head: str) -> bool:
    """Check if exp is a compound node with the given operator."""
    return compound(exp) and exp[0] == head


def base_and_exponent(exp: ExprType) -> Tuple[ExprType, ExprType]:
    """Split x^n into (x, n); anything else is (exp, 1)."""
    if is_power(exp):
        return exp[1], exp[2]
    return exp, 1


# ============================================================
# Ordering
# ============================================================

def compare_tensors(p: Tensor, q: Tensor) -> int:
    """Order tensors by rank, then dimensions, then elements."""
    if p.ndim != q.ndim:
        return -1 if p.ndim < q.ndim else 1
    for a, b in zip(p.dims, q.dims):
        if a != b:
            return -1 if a < b else 1
    for a, b in zip(p.elems, q.elems):
        n = cmp_expr(a, b)
        if n:
            return n
    return 0


def cmp_expr(p: ExprType, q: ExprType) -> int:
    """
    Deterministic total order over expressions.

    numbers < symbols < compound nodes < tensors. Numbers compare by
    value, with an exact number before an equal float. Symbols compare
    by name, compound nodes element by element (the operator first),
    then by length.

    Returns:
        -1, 0 or 1
    """
    if p is q:
        return 0
    p_num, q_num = is_number(p), is_number(q)
    if p_num and q_num:
        return compare_numbers(p, q) or is_float(p) - is_float(q)
    if p_num:
        return -1
    if q_num:
        return 1

    p_sym, q_sym = variable(p), variable(q)
    if p_sym and q_sym:
        return (p > q) - (p < q)
    if p_sym:
        return -1
    if q_sym:
        return 1

    p_ten, q_ten = is_tensor(p), is_tensor(q)
    if p_ten and q_ten:
        return compare_tensors(p, q)
    if p_ten:
        return 1
    if q_ten:
        return -1

    for a, b in zip(p, q):
        n = cmp_expr(a, b)
        if n:
            return n
    return (len(p) > len(q)) - (len(p) < len(q))


def equal(p: ExprType, q: ExprType) -> bool:
    """
    Structural equality under cmp_expr.

    Unlike ==, an exact number and a float of the same value differ:
    equal(["^", "x", 2], ["^", "x", 2.0]) is False.
    """
    return cmp_expr(p, q) == 0


# ============================================================
# Searching and substitution
# ============================================================

def find(expr: ExprType, target: ExprType) -> bool:
    """
    Check if target occurs anywhere in expr (including expr itself).

    Examples:
        find(["+", ["*", 2, "x"], 1], "x") -> True
        find(["sin", "y"], "x")           -> False
    """
    if expr == target:
        return True
    if is_tensor(expr):
        return any(find(e, target) for e in expr.elems)
    if compound(expr):
        return any(find(sub, target) for sub in expr)
    return False


def subst(expr: ExprType, old: ExprType, new: ExprType) -> ExprType:
    """Replace every occurrence of old in expr with new (no evaluation)."""
    if expr == old:
        return new
    if is_tensor(expr):
        return expr.map(lambda e: subst(e, old, new))
    if compound(expr):
        return [subst(sub, old, new) for sub in expr]
    return expr
