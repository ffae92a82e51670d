"""
Exceptions raised by the canonicalization core.

Only two conditions are errors. A failed pattern match is not one of
them: transform() reports it through its ``matched`` flag.
"""


class CanonicError(Exception):
    """Base class for every error raised by canonic."""


class Interrupted(CanonicError):
    """The caller requested cancellation of a running computation."""


class UnsupportedShape(CanonicError, ValueError):
    """
    A tensor was used where its shape is not supported.

    Examples: abs() of a tensor of rank > 1, the zeroth power of a
    tensor that is not a matrix, or the inverse of a singular matrix.
    """
