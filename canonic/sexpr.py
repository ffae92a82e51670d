"""
S-expression reading and writing, and the expression builder.

Syntax:
    (op arg ...)    compound node, e.g. (+ x (* 2 y))
    42              integer
    3/4             exact rational
    0.5             float
    x               symbol

Example:
    from canonic import E

    E("(+ x x)")                 # => ["*", 2, "x"]   (parsed and evaluated)
    E.raw("(+ x x)")             # => ["+", "x", "x"] (parsed only)
    E.op("^", E.op("+", "a", "b"), 2)
"""

from fractions import Fraction
from typing import List, Optional, Tuple

from .arith import normalize
from .context import EvalContext
from .evaluate import evaluate
from .expr import ExprType, Tensor, atom


def _parse_atom(s: str) -> ExprType:
    """Integer, p/q rational, float, or symbol."""
    try:
        return int(s)
    except ValueError:
        pass
    if '/' in s and s != '/':
        num, _, den = s.partition('/')
        try:
            return normalize(Fraction(int(num), int(den)))
        except ValueError:
            pass
        except ZeroDivisionError:
            raise ValueError(f"Zero denominator in rational: {s}") from None
    # keep "inf" and "nan" as symbols
    if s[0].isdigit() or s[0] in '+-.':
        try:
            return float(s)
        except ValueError:
            pass
    return s


def split_top_level(s: str) -> List[str]:
    """
    Split text into its top-level s-expressions.

    Example:
        split_top_level("(= a_ 1) b_") -> ["(= a_ 1)", "b_"]

    Raises:
        ValueError: On unbalanced parentheses.
    """
    parts = []
    current = ''
    depth = 0
    for c in s:
        if c == '(':
            depth += 1
            current += c
        elif c == ')':
            depth -= 1
            if depth < 0:
                raise ValueError(f"Unbalanced ')' in: {s}")
            current += c
        elif c in ' \t\n' and depth == 0:
            if current:
                parts.append(current)
            current = ''
        else:
            current += c
    if depth != 0:
        raise ValueError(f"Unbalanced '(' in: {s}")
    if current:
        parts.append(current)
    return parts


def parse_sexpr(s: str) -> Optional[ExprType]:
    """
    Parse an S-expression string into a nested list.

    Returns None for empty input.

    Examples:
        "(+ x 1)"          -> ["+", "x", 1]
        "(^ x 1/2)"        -> ["^", "x", Fraction(1, 2)]
        "(sin (* 2 x))"    -> ["sin", ["*", 2, "x"]]

    Raises:
        ValueError: On unbalanced parentheses or trailing text.
    """
    s = s.strip()
    if not s:
        return None

    if s.startswith('('):
        depth = 0
        parts = []
        current = ''
        i = 1  # Skip opening paren

        while i < len(s):
            c = s[i]
            if c == '(':
                depth += 1
                current += c
            elif c == ')':
                if depth == 0:
                    if current.strip():
                        parts.append(parse_sexpr(current.strip()))
                    break
                depth -= 1
                current += c
            elif c in ' \t\n' and depth == 0:
                if current.strip():
                    parts.append(parse_sexpr(current.strip()))
                current = ''
            else:
                current += c
            i += 1
        else:
            raise ValueError(f"Unbalanced '(' in: {s}")

        if s[i + 1:].strip():
            raise ValueError(f"Unexpected text after expression: {s[i + 1:].strip()}")
        return parts

    if s.startswith(')') or ' ' in s or '(' in s:
        raise ValueError(f"Not a single expression: {s}")
    return _parse_atom(s)


def parse_sexprs(s: str) -> List[ExprType]:
    """Parse every top-level s-expression in s."""
    return [parse_sexpr(part) for part in split_top_level(s)]


def format_sexpr(expr: ExprType) -> str:
    """
    Format an expression as an S-expression string.

    Examples:
        ["+", "x", 1]                  -> "(+ x 1)"
        ["^", 2, Fraction(1, 2)]       -> "(^ 2 1/2)"
    """
    if not atom(expr):
        return "(" + " ".join(format_sexpr(e) for e in expr) + ")"
    if isinstance(expr, Fraction):
        return f"{expr.numerator}/{expr.denominator}"
    if isinstance(expr, Tensor):
        return _format_tensor(expr.dims, expr.elems)
    return str(expr)


def _format_tensor(dims: Tuple[int, ...], elems: List[ExprType]) -> str:
    if len(dims) == 1:
        return "[" + " ".join(format_sexpr(e) for e in elems) + "]"
    step = len(elems) // dims[0]
    rows = [_format_tensor(dims[1:], elems[i * step:(i + 1) * step]) for i in range(dims[0])]
    return "[" + " ".join(rows) + "]"


# ============================================================
# Expression Builder
# ============================================================

class _ExprBuilder:
    """
    Expression builder for canonic.

    Examples:
        from canonic import E

        # Parse and evaluate an s-expression string
        expr = E("(+ x (* 2 y))")

        # Build programmatically with E.op()
        expr = E.op("+", "x", E.op("*", 2, "y"))

        # Create variables
        x, y = E.vars("x", "y")
        expr = E.op("^", E.op("+", x, y), 2)   # expanded

        # Parse without evaluating
        E.raw("(+ x x)")
    """

    def __call__(self, s: str, ctx: Optional[EvalContext] = None) -> ExprType:
        """
        Parse an s-expression string and evaluate it to canonical form.

        Examples:
            E("(+ x 1)")       -> ["+", 1, "x"]
            E("(* x x)")       -> ["^", "x", 2]
        """
        return evaluate(parse_sexpr(s), ctx)

    def raw(self, s: str) -> ExprType:
        """Parse an s-expression string without evaluating it."""
        return parse_sexpr(s)

    def op(self, name: str, *args, ctx: Optional[EvalContext] = None) -> ExprType:
        """
        Build a compound expression and evaluate it.

        Examples:
            E.op("+", "x", 1)          -> ["+", 1, "x"]
            E.op("sin", "pi")          -> 0
            E.op("my-func", "a", "b")  -> ["my-func", "a", "b"]
        """
        return evaluate([name] + list(args), ctx)

    def var(self, name: str) -> str:
        """
        Create a variable.

        Variables are just strings. This method exists for clarity
        and to document intent.
        """
        return name

    def vars(self, *names: str) -> Tuple[str, ...]:
        """
        Create multiple variables for unpacking.

        Example:
            x, y, z = E.vars("x", "y", "z")
        """
        return names

    def __repr__(self) -> str:
        return "E (expression builder)"


# Singleton instance
E = _ExprBuilder()
