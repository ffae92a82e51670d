"""
Pattern-directed rewriting with meta-variables.

A transform rule is a pattern A over the meta-variables a_, b_ and x_, a
replacement B, and guard conditions C. transform() binds x_ to the free
variable, then searches bindings for a_ and b_ among the pieces of the
input expression until every guard evaluates to non-zero and the input
minus the instantiated pattern is zero. The result is B instantiated
and evaluated.

Matching is by value, not by shape: a pattern matches whenever
expr - A[bindings] simplifies to 0.

DSL Format (.rules files):
    # Comment
    @name: pattern => replacement
    @name "Description text": pattern => replacement when guard1 guard2
    pattern => replacement

    Example:
    @int-power: (* a_ (^ x_ b_)) => (* a_ (^ (+ b_ 1) -1) (^ x_ (+ b_ 1))) when (not (= b_ -1))

JSON Format:
    {
        "name": "integrals",
        "rules": [
            {"name": "...", "description": "...", "pattern": "...",
             "replacement": "...", "guards": ["..."]},
            or just [pattern, replacement, guard, ...]
        ]
    }
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from . import exponent, product
from .arith import is_integer, is_number, is_zero
from .combine import add_all, subtract
from .context import EvalContext, resolve
from .evaluate import evaluate
from .expr import (
    ExprType, car, cdr, compound, cons, find, is_add, is_multiply, is_power,
    is_tensor, variable,
)
from .sexpr import format_sexpr, parse_sexpr, parse_sexprs

logger = logging.getLogger(__name__)

# Meta-variables
META_A = "a_"
META_B = "b_"
META_X = "x_"


# ============================================================
# Bindings
# ============================================================

class Bindings:
    """
    Immutable binding table for the meta-variables.

    bind() returns a new table, so a recursive transform can never see
    or disturb the bindings of its caller.

    Examples:
        bindings = Bindings([["x_", "x"]])
        bindings = bindings.bind("a_", 3)
        bindings["a_"]      # => 3
        bindings.get("b_")  # => None
        "x_" in bindings    # => True
    """

    __slots__ = ('_dict',)

    def __init__(self, pairs: Iterable[Sequence] = ()):
        """Initialize from [name, value] pairs."""
        self._dict = {name: value for name, value in pairs}

    def bind(self, name: str, value: ExprType) -> 'Bindings':
        """Return a new table with name bound to value."""
        extended = Bindings()
        extended._dict = {**self._dict, name: value}
        return extended

    def __bool__(self) -> bool:
        """Bindings are always truthy (NoMatch marks a failed search)."""
        return True

    def __getitem__(self, key: str):
        return self._dict[key]

    def get(self, key: str, default=None):
        return self._dict.get(key, default)

    def __contains__(self, key: str) -> bool:
        return key in self._dict

    def __iter__(self):
        return iter(self._dict)

    def __len__(self) -> int:
        return len(self._dict)

    def __repr__(self) -> str:
        return f"Bindings({self._dict})"

    def __eq__(self, other):
        if isinstance(other, Bindings):
            return self._dict == other._dict
        return False

    __hash__ = None


class _NoMatch:
    """
    Singleton representing a failed binding search.

    NoMatch is falsy, allowing natural use in conditionals:

        if bindings := search(...):
            # matched
        else:
            # NoMatch
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NoMatch"

    def __getitem__(self, key: str):
        raise KeyError(f"NoMatch has no binding for '{key}'")

    def get(self, key: str, default=None):
        return default

    def __contains__(self, key: str) -> bool:
        return False

    def __len__(self) -> int:
        return 0

    def __iter__(self):
        return iter([])


# Singleton instance
NoMatch = _NoMatch()


def instantiate(template: ExprType, bindings: Bindings) -> ExprType:
    """
    Replace every bound meta-variable in template (no evaluation).

    Example:
        instantiate(["*", "a_", "x_"], Bindings([["a_", 5], ["x_", "x"]]))
        -> ["*", 5, "x"]
    """
    if variable(template):
        return bindings.get(template, template)
    if is_tensor(template):
        return template.map(lambda e: instantiate(e, bindings))
    if compound(template):
        return [instantiate(sub, bindings) for sub in template]
    return template


# ============================================================
# Rules
# ============================================================

class TransformRule:
    """A pattern, its replacement and its guards, with optional metadata."""

    __slots__ = ('pattern', 'replacement', 'guards', 'name', 'description')

    def __init__(self, pattern: ExprType, replacement: ExprType,
                 guards: Optional[List[ExprType]] = None,
                 name: Optional[str] = None, description: Optional[str] = None):
        self.pattern = pattern
        self.replacement = replacement
        self.guards = list(guards or [])
        self.name = name
        self.description = description

    @classmethod
    def from_list(cls, rule: Sequence[ExprType]) -> 'TransformRule':
        """Build from [pattern, replacement, guard, ...]."""
        if len(rule) < 2:
            raise ValueError(f"A transform rule needs a pattern and a replacement: {rule!r}")
        return cls(rule[0], rule[1], list(rule[2:]))

    def to_dsl(self) -> str:
        """Format as a DSL rule line."""
        line = f"{format_sexpr(self.pattern)} => {format_sexpr(self.replacement)}"
        if self.guards:
            line += " when " + " ".join(format_sexpr(g) for g in self.guards)
        if self.name:
            head = f"@{self.name}"
            if self.description:
                head += f" \"{self.description}\""
            line = f"{head}: {line}"
        return line

    def __repr__(self) -> str:
        base = f"@{self.name}" if self.name else "<anonymous>"
        if self.name and self.description:
            base += f" \"{self.description}\""
        return f"{base}: {format_sexpr(self.pattern)} => {format_sexpr(self.replacement)}"

    def __eq__(self, other):
        if isinstance(other, TransformRule):
            return (self.pattern == other.pattern
                    and self.replacement == other.replacement
                    and self.guards == other.guards)
        return False

    __hash__ = None


RuleLike = Union[TransformRule, str, Sequence[ExprType]]


def _find_when(rest: str) -> int:
    """Position of a top-level 'when' keyword in rest, or -1."""
    depth = 0
    i = 0
    while i < len(rest):
        if rest[i] == '(':
            depth += 1
        elif rest[i] == ')':
            depth -= 1
        elif depth == 0 and rest[i:i+4] == 'when' and (i == 0 or rest[i-1].isspace()):
            after = i + 4
            if after >= len(rest) or rest[after].isspace():
                return i
        i += 1
    return -1


def parse_transform_rule(line: str) -> Optional[TransformRule]:
    """
    Parse a single rule line.

    Formats:
        @name: pattern => replacement
        @name "description": pattern => replacement
        @name: pattern => replacement when guard1 guard2
        pattern => replacement

    Returns:
        The rule, or None for blank and comment lines.

    Raises:
        ValueError: If the line is not a well-formed rule.
    """
    line = line.strip()

    if not line or line.startswith('#'):
        return None

    name = description = None
    if line.startswith('@'):
        match_obj = re.match(r'@([\w-]+)\s+"([^"]+)":\s*(.+)', line)
        if match_obj:
            name, description, line = match_obj.groups()
        else:
            match_obj = re.match(r'@([\w-]+):\s*(.+)', line)
            if not match_obj:
                raise ValueError(f"Malformed rule header: {line}")
            name, line = match_obj.groups()

    if '=>' not in line:
        raise ValueError(f"Rule has no '=>': {line}")

    pattern_str, rest = (part.strip() for part in line.split('=>', 1))
    replacement_str = rest
    guards: List[ExprType] = []

    when_pos = _find_when(rest)
    if when_pos >= 0:
        replacement_str = rest[:when_pos].strip()
        guards = parse_sexprs(rest[when_pos + 4:].strip())

    pattern = parse_sexpr(pattern_str)
    replacement = parse_sexpr(replacement_str)
    if pattern is None or replacement is None:
        raise ValueError(f"Rule is missing a pattern or a replacement: {line}")

    return TransformRule(pattern, replacement, guards, name, description)


def load_transform_table(text: str) -> List[TransformRule]:
    """
    Load rules from DSL text, one rule per line.

    Raises:
        ValueError: On a malformed rule line.
    """
    rules = []
    for number, line in enumerate(text.split('\n'), 1):
        try:
            rule = parse_transform_rule(line)
        except ValueError as e:
            raise ValueError(f"line {number}: {e}") from e
        if rule is not None:
            rules.append(rule)
    logger.debug("parsed %d transform rules", len(rules))
    return rules


def _rule_from_json(entry: Union[Dict[str, Any], List]) -> TransformRule:
    def read(value):
        return parse_sexpr(value) if isinstance(value, str) else value

    if isinstance(entry, dict):
        try:
            pattern, replacement = entry['pattern'], entry['replacement']
        except KeyError as e:
            raise ValueError(f"JSON rule is missing {e}") from None
        return TransformRule(
            read(pattern), read(replacement),
            [read(g) for g in entry.get('guards', [])],
            entry.get('name'), entry.get('description'))
    return TransformRule.from_list([read(part) for part in entry])


def load_transform_file(path: Union[str, Path]) -> List[TransformRule]:
    """
    Load rules from a .rules (DSL) or .json file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: On malformed content.
    """
    path = Path(path)
    text = path.read_text()

    if path.suffix == '.json':
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"{path}: {e}") from e
        return [_rule_from_json(entry) for entry in data.get('rules', [])]
    return load_transform_table(text)


def _as_rule(rule: RuleLike) -> TransformRule:
    if isinstance(rule, TransformRule):
        return rule
    if isinstance(rule, str):
        parsed = parse_transform_rule(rule)
        if parsed is None:
            raise ValueError(f"Not a rule: {rule!r}")
        return parsed
    return TransformRule.from_list(rule)


# ============================================================
# Polynomial form and decomposition
# ============================================================

def _split_power_of(term: ExprType, x: ExprType) -> Optional[Tuple[int, List[ExprType]]]:
    """
    Split an expanded term into (degree in x, other factors).
    None if the term is not of the form c * x^k.
    """
    factors = term[1:] if is_multiply(term) else [term]
    degree = 0
    rest = []
    for f in factors:
        if f == x:
            degree += 1
        elif is_power(f) and f[1] == x:
            if not (is_integer(f[2]) and f[2] >= 0):
                return None
            degree += f[2]
        elif find(f, x):
            return None
        else:
            rest.append(f)
    return degree, rest


def is_polynomial(expr: ExprType, x: ExprType) -> bool:
    """Check if expr is an expanded polynomial in x."""
    terms = expr[1:] if is_add(expr) else [expr]
    return all(_split_power_of(t, x) is not None for t in terms)


def coefficients(expr: ExprType, x: ExprType, ctx: Optional[EvalContext] = None) -> List[ExprType]:
    """
    Coefficients [c0, c1, ..., cn] of an expanded polynomial in x.

    Example:
        coefficients(["+", 1, ["*", "a", "x"], ["*", "b", "x"]], "x")
        -> [1, ["+", "a", "b"]]

    Raises:
        ValueError: If expr is not an expanded polynomial in x.
    """
    ctx = resolve(ctx)
    collected: Dict[int, List[ExprType]] = {}
    for term in (expr[1:] if is_add(expr) else [expr]):
        split = _split_power_of(term, x)
        if split is None:
            raise ValueError(f"Not a polynomial in {format_sexpr(x)}: {format_sexpr(expr)}")
        degree, rest = split
        collected.setdefault(degree, []).append(product.multiply_all(rest, ctx))

    top = max(collected) if collected else 0
    return [add_all(collected.get(k, []), ctx) for k in range(top + 1)]


def polyform(expr: ExprType, x: ExprType, ctx: Optional[EvalContext] = None) -> ExprType:
    """
    Collect the coefficients of each power of x.

    An expanded polynomial in x is rebuilt as c_n x^n + ... + c_0 with
    expansion switched off, so a x + b x becomes (a + b) x. Anything
    else is rebuilt from the polyform of its arguments.
    """
    ctx = resolve(ctx)
    if is_tensor(expr):
        return expr.map(lambda e: polyform(e, x, ctx))
    if find(expr, x) and is_polynomial(expr, x):
        baking = ctx.replace(expanding=False)
        cs = coefficients(expr, x, ctx)
        terms = [product.multiply(c, exponent.power(x, k, baking), baking)
                 for k, c in reversed(list(enumerate(cs))) if not is_zero(c)]
        return add_all(terms, baking)
    if compound(expr):
        return [expr[0]] + [polyform(a, x, ctx) for a in expr[1:]]
    return expr


def decompose(expr: ExprType, x: Optional[ExprType], ctx: Optional[EvalContext] = None) -> List[ExprType]:
    """
    Break expr into candidate values for the meta-variables.

    With a free variable x, the pieces free of x are collected: the
    constant part of a sum (and its negation), the constant part of a
    product, and recursively the pieces of every dependent part. With
    x None, atoms are their own candidate and compound nodes are taken
    apart.

    Example:
        decompose(["+", 1, ["*", 3, "x"]], "x") -> [3, 1, -1]
    """
    ctx = resolve(ctx)

    def depends(e: ExprType) -> bool:
        return compound(e) if x is None else find(e, x)

    if not depends(expr):
        return [expr]
    if not compound(expr):
        return []

    out: List[ExprType] = []
    if is_add(expr) or is_multiply(expr):
        dependent = [a for a in expr[1:] if depends(a)]
        constant = [a for a in expr[1:] if not depends(a)]
        for a in dependent:
            out.extend(decompose(a, x, ctx))
        if constant:
            if is_add(expr):
                total = add_all(constant, ctx)
                out.extend([total, product.negate(total, ctx)])
            else:
                out.append(product.multiply_all(constant, ctx))
        return out

    for a in expr[1:]:
        out.extend(decompose(a, x, ctx))
    return out


# ============================================================
# Transform
# ============================================================

def _search(expr: ExprType, candidates: List[ExprType], rule: TransformRule,
            bindings: Bindings, pattern_ctx: EvalContext,
            ctx: EvalContext) -> Union[Bindings, _NoMatch]:
    """Find a_ and b_ among the candidates so that expr equals the pattern."""
    for a in candidates:
        with_a = bindings.bind(META_A, a)
        for b in candidates:
            ctx.checkpoint()
            trial = with_a.bind(META_B, b)
            if not all(not is_zero(evaluate(instantiate(g, trial), ctx)) for g in rule.guards):
                continue
            pattern = evaluate(instantiate(rule.pattern, trial), pattern_ctx)
            if is_zero(subtract(expr, pattern, ctx)):
                return trial
    return NoMatch


def transform(
    expr: ExprType,
    free_var: Optional[ExprType],
    rules: Union[RuleLike, Iterable[RuleLike]],
    general: bool = False,
    ctx: Optional[EvalContext] = None,
) -> Tuple[ExprType, bool]:
    """
    Rewrite expr with the first rule whose pattern it equals.

    Args:
        expr: Canonical expression to transform
        free_var: Variable bound to x_ (None in general mode)
        rules: Table mode: rules tried in order, each a TransformRule,
            a DSL rule line or [pattern, replacement, *guards].
            General mode: one such rule.
        general: Use general mode (one rule, recursion into arguments,
            numbers never match)
        ctx: Evaluation context (default context if None)

    Returns:
        (result, matched). On failure result is expr unchanged in general
        mode and NoMatch in table mode.

    Example:
        transform(["*", 5, "x"], "x", ["(* a_ x_) => a_"])  -> (5, True)
    """
    ctx = resolve(ctx)
    ctx.checkpoint()
    bindings = Bindings()
    if free_var is not None:
        bindings = bindings.bind(META_X, free_var)

    if general:
        if is_number(expr):
            return expr, False
        rule = _as_rule(rules)
        candidates = [1] + decompose(expr, None, ctx)
        found = _search(expr, candidates, rule, bindings,
                        ctx.replace(expanding=False), ctx)
        if found:
            logger.debug("transform: %r matched %s", rule, format_sexpr(expr))
            return evaluate(instantiate(rule.replacement, found), ctx), True

        if not compound(expr):
            return expr, False
        matched = False
        args = []
        for a in cdr(expr):
            result, ok = transform(a, None, rule, True, ctx)
            matched = matched or ok
            args.append(result)
        if matched:
            return evaluate(cons(car(expr), args), ctx), True
        return expr, False

    if isinstance(rules, (str, TransformRule)):
        rules = [rules]
    candidates = [1] + decompose(polyform(expr, free_var, ctx), free_var, ctx)
    for entry in rules:
        rule = _as_rule(entry)
        found = _search(expr, candidates, rule, bindings, ctx, ctx)
        if found:
            logger.debug("transform: %r matched %s", rule, format_sexpr(expr))
            return evaluate(instantiate(rule.replacement, found), ctx), True
    return NoMatch, False
