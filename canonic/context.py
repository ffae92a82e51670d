"""
Evaluation context for the canonicalization core.

Every combinator (add, multiply, power, transform, ...) takes an optional
``ctx`` argument. The context carries the evaluation-mode flags that
decide which identities apply, the fixed-point bound of the term
combiner, and an optional cancellation token. It is immutable; derive a
variant with ``ctx.replace(expanding=False)``.

Example:
    from canonic import EvalContext, TrigMode, power, E

    ctx = EvalContext(trig_mode=TrigMode.ELIMINATE_SIN)
    power(E("(sin x)"), 2, ctx)   # => 1 - cos(x)^2
"""

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .errors import Interrupted


class TrigMode(Enum):
    """Which trigonometric square to eliminate from even powers."""

    NONE = 0
    ELIMINATE_SIN = 1  # sin(x)^2n -> (1 - cos(x)^2)^n
    ELIMINATE_COS = 2  # cos(x)^2n -> (1 - sin(x)^2)^n


class CancellationToken:
    """
    Cooperative cancellation signal.

    Hand the token to an EvalContext, then call cancel() from wherever
    the request originates. The next checkpoint inside a running
    computation raises Interrupted.
    """

    __slots__ = ('_cancelled',)

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        """Request interruption of the computation using this token."""
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def check(self) -> None:
        """Raise Interrupted if cancellation was requested."""
        if self._cancelled:
            raise Interrupted("computation interrupted")

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self._cancelled})"


@dataclass(frozen=True)
class EvalContext:
    """
    Immutable set of evaluation-mode flags.

    Attributes:
        expanding: Distribute products over sums and expand integer
            powers of sums.
        evaluating_as_floats: Treat numbers and constants as floats.
        evaluating_polar: A polar form is being computed; do not convert
            e^(i pi ...) back to rectangular form.
        trig_mode: Square elimination for even powers of sin or cos.
        assume_real_variables: Symbols stand for real numbers.
        avoid_arctan_powers: Leave complex powers unevaluated rather
            than introduce arctan.
        max_combine_passes: Bound on the term combiner's sort/merge
            passes.
        cancellation: Token polled at every checkpoint.
    """

    expanding: bool = True
    evaluating_as_floats: bool = False
    evaluating_polar: bool = False
    trig_mode: TrigMode = TrigMode.NONE
    assume_real_variables: bool = True
    avoid_arctan_powers: bool = True
    max_combine_passes: int = 10
    cancellation: Optional[CancellationToken] = None

    def __post_init__(self):
        if self.max_combine_passes < 1:
            raise ValueError("max_combine_passes must be at least 1")

    def checkpoint(self) -> None:
        """Poll the cancellation token, if any."""
        if self.cancellation is not None:
            self.cancellation.check()

    def replace(self, **changes) -> 'EvalContext':
        """Return a copy of this context with some fields changed."""
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'EvalContext':
        """
        Build a context from plain configuration data.

        ``trig_mode`` may be given as a TrigMode, its name
        ("ELIMINATE_SIN") or its value (1).

        Raises:
            ValueError: On unknown keys, an unknown trig mode or a pass
                bound below 1.
        """
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown context option(s): {', '.join(sorted(unknown))}")

        options: Dict[str, Any] = dict(data)
        mode = options.get('trig_mode')
        if mode is not None and not isinstance(mode, TrigMode):
            try:
                options['trig_mode'] = TrigMode[mode.upper()] if isinstance(mode, str) else TrigMode(mode)
            except (KeyError, ValueError):
                raise ValueError(f"Unknown trig mode: {mode!r}") from None
        return cls(**options)


DEFAULT_CONTEXT = EvalContext()


def resolve(ctx: Optional[EvalContext]) -> EvalContext:
    """Return ctx, or the default context when ctx is None."""
    return DEFAULT_CONTEXT if ctx is None else ctx
