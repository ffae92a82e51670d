"""Tests for the evaluation context, cancellation and the error hierarchy."""

import dataclasses

import pytest
from canonic import (
    EvalContext, TrigMode, CancellationToken, DEFAULT_CONTEXT,
    CanonicError, Interrupted, UnsupportedShape,
)


class TestEvalContext:
    """Tests for EvalContext."""

    def test_defaults(self):
        """The default context expands and assumes real symbols."""
        ctx = EvalContext()
        assert ctx.expanding
        assert not ctx.evaluating_as_floats
        assert not ctx.evaluating_polar
        assert ctx.trig_mode is TrigMode.NONE
        assert ctx.assume_real_variables
        assert ctx.avoid_arctan_powers
        assert ctx.max_combine_passes == 10
        assert ctx.cancellation is None
        assert ctx == DEFAULT_CONTEXT

    def test_immutable(self):
        """Fields cannot be assigned."""
        ctx = EvalContext()
        with pytest.raises(dataclasses.FrozenInstanceError):
            ctx.expanding = False

    def test_replace(self):
        """replace() derives a new context."""
        ctx = EvalContext()
        derived = ctx.replace(expanding=False)
        assert not derived.expanding
        assert ctx.expanding

    def test_pass_bound_checked_on_construction(self):
        """A pass bound below 1 is rejected however the context is built."""
        with pytest.raises(ValueError):
            EvalContext(max_combine_passes=0)
        with pytest.raises(ValueError):
            EvalContext().replace(max_combine_passes=-1)

    def test_checkpoint_without_token(self):
        """checkpoint() is a no-op without a token."""
        EvalContext().checkpoint()


class TestFromDict:
    """Tests for building a context from configuration data."""

    def test_flags(self):
        """Plain flags are passed through."""
        ctx = EvalContext.from_dict({"expanding": False, "max_combine_passes": 3})
        assert not ctx.expanding
        assert ctx.max_combine_passes == 3

    def test_trig_mode_by_name(self):
        """Trig mode names are case-insensitive."""
        ctx = EvalContext.from_dict({"trig_mode": "eliminate_sin"})
        assert ctx.trig_mode is TrigMode.ELIMINATE_SIN

    def test_trig_mode_by_value(self):
        """Trig modes can be given by value."""
        ctx = EvalContext.from_dict({"trig_mode": 2})
        assert ctx.trig_mode is TrigMode.ELIMINATE_COS

    def test_trig_mode_enum(self):
        """TrigMode members are accepted as they are."""
        ctx = EvalContext.from_dict({"trig_mode": TrigMode.ELIMINATE_COS})
        assert ctx.trig_mode is TrigMode.ELIMINATE_COS

    def test_unknown_option(self):
        """Unknown keys raise ValueError."""
        with pytest.raises(ValueError, match="colour"):
            EvalContext.from_dict({"colour": "blue"})

    def test_unknown_trig_mode(self):
        """Unknown trig modes raise ValueError."""
        with pytest.raises(ValueError):
            EvalContext.from_dict({"trig_mode": "eliminate_tan"})
        with pytest.raises(ValueError):
            EvalContext.from_dict({"trig_mode": 7})

    def test_pass_bound(self):
        """max_combine_passes must be positive."""
        with pytest.raises(ValueError):
            EvalContext.from_dict({"max_combine_passes": 0})


class TestCancellation:
    """Tests for CancellationToken."""

    def test_initial_state(self):
        """A new token is not cancelled."""
        token = CancellationToken()
        assert not token.cancelled
        token.check()

    def test_cancel(self):
        """check() raises once cancel() was called."""
        token = CancellationToken()
        token.cancel()
        assert token.cancelled
        with pytest.raises(Interrupted):
            token.check()

    def test_checkpoint_polls_token(self):
        """EvalContext.checkpoint() polls its token."""
        token = CancellationToken()
        ctx = EvalContext(cancellation=token)
        ctx.checkpoint()
        token.cancel()
        with pytest.raises(Interrupted):
            ctx.checkpoint()


class TestErrors:
    """Tests for the exception hierarchy."""

    def test_hierarchy(self):
        """Both errors derive from CanonicError."""
        assert issubclass(Interrupted, CanonicError)
        assert issubclass(UnsupportedShape, CanonicError)

    def test_shape_error_is_value_error(self):
        """UnsupportedShape can be caught as ValueError."""
        assert issubclass(UnsupportedShape, ValueError)
        assert not issubclass(Interrupted, ValueError)
