"""
The small slice of tensor algebra the power normalizer needs.

Tensors are canonic.expr.Tensor values. Elements are arbitrary
expressions and are combined with the package's own add and multiply,
so a matrix of symbols squares symbolically.
"""

from typing import List, Optional

from . import combine, product
from .arith import is_integer, is_zero
from .context import EvalContext, resolve
from .errors import UnsupportedShape
from .expr import POWER, ExprType, Tensor, is_tensor


def compare_shapes(p: Tensor, q: Tensor) -> int:
    """Order tensors by rank, then dimensions; 0 when the shapes agree."""
    if p.ndim != q.ndim:
        return -1 if p.ndim < q.ndim else 1
    for a, b in zip(p.dims, q.dims):
        if a != b:
            return -1 if a < b else 1
    return 0


def tensor_plus_tensor(p: Tensor, q: Tensor, ctx: Optional[EvalContext] = None) -> Optional[Tensor]:
    """Element-wise sum, or None when the dimensions differ."""
    if p.dims != q.dims:
        return None
    return Tensor(p.dims, [combine.add(a, b, ctx) for a, b in zip(p.elems, q.elems)])


def scalar_times_tensor(scalar: ExprType, t: Tensor, ctx: Optional[EvalContext] = None) -> Tensor:
    return t.map(lambda e: product.multiply(scalar, e, ctx))


def inner(p: ExprType, q: ExprType, ctx: Optional[EvalContext] = None) -> ExprType:
    """
    Inner product: contract the last index of p with the first of q.

    Scalars multiply. Two vectors give a scalar, a matrix and a vector
    give a vector, two matrices give their matrix product.

    Raises:
        UnsupportedShape: If the contracted dimensions differ.
    """
    ctx = resolve(ctx)
    if not is_tensor(p) or not is_tensor(q):
        return product.multiply(p, q, ctx)

    n = p.dims[-1]
    if q.dims[0] != n:
        raise UnsupportedShape(f"inner: cannot contract {p.dims} with {q.dims}")

    outer_dims = p.dims[:-1] + q.dims[1:]
    rows = len(p.elems) // n
    cols = len(q.elems) // n
    elems: List[ExprType] = []
    for i in range(rows):
        for j in range(cols):
            elems.append(combine.add_all(
                [product.multiply(p.elems[i * n + k], q.elems[k * cols + j], ctx)
                 for k in range(n)],
                ctx))
    if not outer_dims:
        return elems[0]
    return Tensor(outer_dims, elems)


def identity(n: int) -> Tensor:
    """The n by n identity matrix."""
    return Tensor((n, n), [1 if i == j else 0 for i in range(n) for j in range(n)])


def _check_square(t: Tensor, what: str) -> int:
    if t.ndim != 2 or t.dims[0] != t.dims[1]:
        raise UnsupportedShape(f"{what}: need a square matrix, got dimensions {t.dims}")
    return t.dims[0]


def _minor(elems: List[ExprType], n: int, row: int, col: int) -> List[ExprType]:
    return [elems[i * n + j] for i in range(n) if i != row for j in range(n) if j != col]


def _det(elems: List[ExprType], n: int, ctx: EvalContext) -> ExprType:
    if n == 1:
        return elems[0]
    terms = []
    for j in range(n):
        ctx.checkpoint()
        cofactor = _det(_minor(elems, n, 0, j), n - 1, ctx)
        if j % 2:
            cofactor = product.negate(cofactor, ctx)
        terms.append(product.multiply(elems[j], cofactor, ctx))
    return combine.add_all(terms, ctx)


def determinant(t: Tensor, ctx: Optional[EvalContext] = None) -> ExprType:
    """Determinant by cofactor expansion along the first row."""
    ctx = resolve(ctx)
    n = _check_square(t, "determinant")
    return _det(t.elems, n, ctx)


def inverse(t: Tensor, ctx: Optional[EvalContext] = None) -> Tensor:
    """
    Matrix inverse via the adjugate.

    Raises:
        UnsupportedShape: If t is not square or is singular.
    """
    ctx = resolve(ctx)
    n = _check_square(t, "inverse")
    det = _det(t.elems, n, ctx)
    if is_zero(det):
        raise UnsupportedShape("inverse: matrix is singular")
    if n == 1:
        return Tensor((1, 1), [product.reciprocate(det, ctx)])

    scale = product.reciprocate(det, ctx)
    elems: List[ExprType] = []
    for i in range(n):
        for j in range(n):
            # adjugate is the transposed cofactor matrix
            cofactor = _det(_minor(t.elems, n, j, i), n - 1, ctx)
            if (i + j) % 2:
                cofactor = product.negate(cofactor, ctx)
            elems.append(product.multiply(scale, cofactor, ctx))
    return Tensor((n, n), elems)


def power_tensor(t: Tensor, n: ExprType, ctx: Optional[EvalContext] = None) -> ExprType:
    """
    Raise a tensor to an integer power by repeated inner products.

    Non-integer exponents, and tensors whose first and last dimensions
    differ, stay as an unreduced power node.

    Raises:
        UnsupportedShape: For t^0 with t not a matrix, or a negative
            power of a non-invertible matrix.
    """
    ctx = resolve(ctx)
    if t.dims[0] != t.dims[-1] or not is_integer(n):
        return [POWER, t, n]

    n = int(n)
    if n == 0:
        if t.ndim != 2:
            raise UnsupportedShape(f"power: tensor^0 needs a matrix, got rank {t.ndim}")
        return identity(t.dims[0])
    if n < 0:
        n = -n
        t = inverse(t, ctx)

    result = t
    for _ in range(1, n):
        ctx.checkpoint()
        result = inner(result, t, ctx)
        if is_zero(result):
            break
    return result
