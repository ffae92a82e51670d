"""Tests for pattern-directed rewriting with meta-variables."""

import json
import logging
from fractions import Fraction

import pytest
from canonic import (
    transform, polyform, coefficients, is_polynomial, decompose, instantiate,
    TransformRule, Bindings, NoMatch, E,
    parse_transform_rule, load_transform_table, load_transform_file,
    EvalContext, CancellationToken, Interrupted,
)


class TestBindings:
    """Tests for the immutable binding table."""

    def test_creation(self):
        """Bindings can be created from list of pairs."""
        bindings = Bindings([["a_", 1], ["x_", "x"]])
        assert bindings["a_"] == 1
        assert bindings["x_"] == "x"

    def test_bind_returns_new_table(self):
        """bind() leaves the original untouched."""
        base = Bindings([["x_", "x"]])
        extended = base.bind("a_", 3)
        assert extended["a_"] == 3
        assert "a_" not in base
        assert len(base) == 1
        assert len(extended) == 2

    def test_rebind(self):
        """bind() replaces an existing binding in the new table only."""
        base = Bindings([["a_", 1]])
        assert base.bind("a_", 2)["a_"] == 2
        assert base["a_"] == 1

    def test_missing_raises(self):
        """Accessing a missing key raises KeyError."""
        with pytest.raises(KeyError):
            _ = Bindings()["b_"]

    def test_get_with_default(self):
        """get() returns default for missing keys."""
        bindings = Bindings([["a_", 1]])
        assert bindings.get("a_") == 1
        assert bindings.get("b_") is None
        assert bindings.get("b_", 42) == 42

    def test_bool_always_true(self):
        """Bindings are always truthy (even if empty)."""
        assert bool(Bindings())

    def test_iteration(self):
        """Iterating yields the bound names."""
        bindings = Bindings([["a_", 1], ["b_", 2]])
        assert set(bindings) == {"a_", "b_"}
        assert len(bindings) == 2

    def test_equality(self):
        """Bindings equality based on contents."""
        assert Bindings([["a_", 1]]) == Bindings().bind("a_", 1)
        assert Bindings([["a_", 1]]) != Bindings([["a_", 2]])
        assert Bindings([["a_", 1]]) != {"a_": 1}


class TestNoMatch:
    """Tests for the NoMatch singleton."""

    def test_falsy(self):
        """NoMatch is falsy."""
        assert not NoMatch

    def test_singleton(self):
        """NoMatch is a singleton."""
        assert type(NoMatch)() is NoMatch

    def test_dict_like(self):
        """NoMatch behaves like an empty table."""
        assert NoMatch.get("a_") is None
        assert "a_" not in NoMatch
        assert len(NoMatch) == 0
        assert list(NoMatch) == []
        with pytest.raises(KeyError):
            _ = NoMatch["a_"]


class TestInstantiate:
    """Tests for substituting bindings into templates."""

    def test_substitutes(self):
        """Bound meta-variables are replaced."""
        bindings = Bindings([["a_", 5], ["x_", "x"]])
        assert instantiate(["*", "a_", "x_"], bindings) == ["*", 5, "x"]

    def test_unbound_kept(self):
        """Unbound meta-variables are left in place."""
        assert instantiate(["+", "a_", "b_"], Bindings([["a_", 1]])) == ["+", 1, "b_"]

    def test_no_evaluation(self):
        """Instantiation does not evaluate."""
        assert instantiate(["+", "a_", "a_"], Bindings([["a_", 1]])) == ["+", 1, 1]


class TestParseRule:
    """Tests for the rule DSL."""

    def test_plain(self):
        """pattern => replacement."""
        rule = parse_transform_rule("(* a_ x_) => a_")
        assert rule.pattern == ["*", "a_", "x_"]
        assert rule.replacement == "a_"
        assert rule.guards == []
        assert rule.name is None

    def test_named(self):
        """@name: prefix."""
        rule = parse_transform_rule("@lin: (* a_ x_) => a_")
        assert rule.name == "lin"

    def test_description_and_guards(self):
        """@name "description": with a when clause."""
        rule = parse_transform_rule(
            '@lin "a times x": (* a_ x_) => a_ when (not (= a_ 0)) (number? a_)')
        assert rule.name == "lin"
        assert rule.description == "a times x"
        assert rule.guards == [["not", ["=", "a_", 0]], ["number?", "a_"]]

    def test_when_inside_expression_ignored(self):
        """Only a top-level when starts the guards."""
        rule = parse_transform_rule("(when x_) => a_")
        assert rule.pattern == ["when", "x_"]
        assert rule.guards == []

    def test_blank_and_comment(self):
        """Blank and comment lines give None."""
        assert parse_transform_rule("") is None
        assert parse_transform_rule("   ") is None
        assert parse_transform_rule("# a comment") is None

    def test_missing_arrow(self):
        """A rule without => raises ValueError."""
        with pytest.raises(ValueError):
            parse_transform_rule("(* a_ x_) a_")

    def test_malformed_header(self):
        """A bad @ header raises ValueError."""
        with pytest.raises(ValueError):
            parse_transform_rule("@bad (* a_ x_) => a_")

    def test_missing_replacement(self):
        """An empty side raises ValueError."""
        with pytest.raises(ValueError):
            parse_transform_rule("(* a_ x_) =>")

    def test_dsl_round_trip(self):
        """to_dsl() output parses back to an equal rule."""
        rule = TransformRule(["*", "a_", "x_"], "a_", [["not", ["=", "a_", 0]]],
                             name="lin", description="a times x")
        again = parse_transform_rule(rule.to_dsl())
        assert again == rule
        assert again.name == "lin"
        assert again.description == "a times x"

    def test_from_list(self):
        """[pattern, replacement, *guards]."""
        rule = TransformRule.from_list([["*", "a_", "x_"], "a_", ["number?", "a_"]])
        assert rule.guards == [["number?", "a_"]]
        with pytest.raises(ValueError):
            TransformRule.from_list([["*", "a_", "x_"]])

    def test_repr(self):
        """repr shows the name and the rule."""
        rule = TransformRule(["*", "a_", "x_"], "a_", name="lin")
        assert repr(rule) == "@lin: (* a_ x_) => a_"


class TestLoadRules:
    """Tests for loading rule tables from text and files."""

    TABLE = """
    # linear and quadratic
    @lin: (* a_ x_) => a_
    @sq "square": (^ x_ 2) => (* 2 x_)
    """

    def test_load_table(self):
        """Every rule line becomes a rule, in order."""
        rules = load_transform_table(self.TABLE)
        assert [r.name for r in rules] == ["lin", "sq"]
        assert rules[1].description == "square"

    def test_error_names_line(self):
        """Errors report the offending line number."""
        with pytest.raises(ValueError, match="line 3"):
            load_transform_table("# rules\n(* a_ x_) => a_\n(* a_ x_) a_\n")

    def test_rules_file(self, tmp_path):
        """A .rules file is read as DSL."""
        path = tmp_path / "table.rules"
        path.write_text(self.TABLE)
        assert len(load_transform_file(path)) == 2
        assert len(load_transform_file(str(path))) == 2

    def test_json_file(self, tmp_path):
        """A .json file holds dict or list rules."""
        path = tmp_path / "table.json"
        path.write_text(json.dumps({
            "name": "demo",
            "rules": [
                {"name": "lin", "pattern": "(* a_ x_)", "replacement": "a_",
                 "guards": ["(number? a_)"]},
                ["(^ x_ 2)", "(* 2 x_)"],
            ],
        }))
        rules = load_transform_file(path)
        assert rules[0].name == "lin"
        assert rules[0].guards == [["number?", "a_"]]
        assert rules[1].pattern == ["^", "x_", 2]

    def test_json_missing_field(self, tmp_path):
        """A dict rule without a replacement raises ValueError."""
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"rules": [{"pattern": "x_"}]}))
        with pytest.raises(ValueError):
            load_transform_file(path)

    def test_missing_file(self, tmp_path):
        """A missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_transform_file(tmp_path / "nope.rules")


class TestPolynomials:
    """Tests for polynomial recognition and coefficient collection."""

    def test_is_polynomial(self):
        """Expanded polynomials with non-negative integer degrees."""
        assert is_polynomial(["+", 1, ["^", "x", 2]], "x")
        assert is_polynomial("y", "x")
        assert not is_polynomial(["^", "x", Fraction(1, 2)], "x")
        assert not is_polynomial(["sin", "x"], "x")

    def test_coefficients(self):
        """Coefficients are collected per degree."""
        expr = ["+", 1, ["*", "a", "x"], ["*", "b", "x"]]
        assert coefficients(expr, "x") == [1, ["+", "a", "b"]]

    def test_missing_degrees_are_zero(self):
        """Absent degrees have coefficient 0."""
        assert coefficients(["^", "x", 2], "x") == [0, 0, 1]

    def test_not_a_polynomial(self):
        """coefficients() rejects non-polynomials."""
        with pytest.raises(ValueError):
            coefficients(["sin", "x"], "x")

    def test_polyform_collects(self):
        """a x + b x becomes (a + b) x."""
        expr = ["+", ["*", "a", "x"], ["*", "b", "x"]]
        assert polyform(expr, "x") == ["*", "x", ["+", "a", "b"]]

    def test_polyform_inside_function(self):
        """Non-polynomials are rebuilt from their arguments."""
        expr = ["sin", ["+", ["*", "a", "x"], ["*", "b", "x"]]]
        assert polyform(expr, "x") == ["sin", ["*", "x", ["+", "a", "b"]]]

    def test_polyform_free_of_x(self):
        """Expressions free of x are untouched."""
        assert polyform(["+", "a", "b"], "x") == ["+", "a", "b"]


class TestDecompose:
    """Tests for candidate collection."""

    def test_sum(self):
        """The constant part of a sum comes with its negation."""
        assert decompose(["+", 1, ["*", 3, "x"]], "x") == [3, 1, -1]

    def test_product(self):
        """The constant part of a product is one candidate."""
        assert decompose(["*", "a", "b", "x"], "x") == [["*", "a", "b"]]

    def test_independent(self):
        """An expression free of x is its own candidate."""
        assert decompose("y", "x") == ["y"]

    def test_function(self):
        """Function arguments are searched."""
        assert decompose(["sin", ["*", 2, "x"]], "x") == [2]
        assert decompose(["sin", "x"], "x") == []

    def test_general(self):
        """Without a free variable every atom is a candidate."""
        assert decompose(["+", ["^", "y", 2], 1], None) == ["y", 2, 1, -1]


class TestTransform:
    """Tests for table-mode transform."""

    def test_coefficient(self):
        """(* a_ x_) => a_ extracts the coefficient of x."""
        assert transform(["*", 5, "x"], "x", ["(* a_ x_) => a_"]) == (5, True)

    def test_constant(self):
        """a_ matches anything free of x."""
        assert transform(7, "x", ["a_ => (* a_ x_)"]) == (["*", 7, "x"], True)

    def test_two_meta_variables(self):
        """a_ and b_ are bound independently."""
        expr = E("(+ 2 (* 3 x))")
        assert transform(expr, "x", ["(+ a_ (* b_ x_)) => (+ b_ a_)"]) == (5, True)

    def test_no_match(self):
        """Failure returns the NoMatch sentinel, not the input."""
        expr = ["sin", "x"]
        assert transform(expr, "x", ["(* a_ x_) => a_"]) == (NoMatch, False)

    def test_guard_blocks(self):
        """A false guard rejects the binding."""
        rules = ["(* a_ x_) => a_ when (not (= a_ 5))"]
        assert transform(["*", 5, "x"], "x", rules) == (NoMatch, False)

    def test_symbolic_guard(self):
        """number? guards reject symbolic coefficients."""
        expr = E("(* y x)")
        assert transform(expr, "x", ["(* a_ x_) => a_"]) == ("y", True)
        rules = ["(* a_ x_) => a_ when (number? a_)"]
        assert transform(expr, "x", rules) == (NoMatch, False)

    def test_first_rule_wins(self):
        """Rules are tried in order."""
        rules = ["(* a_ x_) => first", "(* a_ x_) => second"]
        assert transform(["*", 5, "x"], "x", rules) == ("first", True)

    def test_rule_forms(self):
        """Rule objects, DSL lines and lists are all accepted."""
        expected = (5, True)
        expr = ["*", 5, "x"]
        assert transform(expr, "x", [TransformRule(["*", "a_", "x_"], "a_")]) == expected
        assert transform(expr, "x", [[["*", "a_", "x_"], "a_"]]) == expected
        assert transform(expr, "x", TransformRule(["*", "a_", "x_"], "a_")) == expected
        assert transform(expr, "x", "(* a_ x_) => a_") == expected

    def test_match_by_value(self):
        """The pattern matches a collected form of the input."""
        expr = E("(+ (* a x) (* b x))")
        assert transform(expr, "x", ["(* a_ x_) => a_"]) == (["+", "a", "b"], True)

    def test_logs_match(self, caplog):
        """A successful match is logged at debug level."""
        caplog.set_level(logging.DEBUG, logger="canonic.transform")
        transform(["*", 5, "x"], "x", ["@lin: (* a_ x_) => a_"])
        assert "matched" in caplog.text

    def test_cancellation(self):
        """A cancelled token interrupts the search."""
        token = CancellationToken()
        token.cancel()
        ctx = EvalContext(cancellation=token)
        with pytest.raises(Interrupted):
            transform(["*", 5, "x"], "x", ["(* a_ x_) => a_"], ctx=ctx)


class TestGeneralTransform:
    """Tests for general-mode transform."""

    RULE = [["^", "a_", 2], ["sq", "a_"]]

    def test_matches_subexpression(self):
        """The rule is applied inside arguments and the result evaluated."""
        expr = ["+", ["^", "y", 2], 1]
        assert transform(expr, None, self.RULE, True) == (["+", 1, ["sq", "y"]], True)

    def test_matches_top_level(self):
        """The whole expression can match."""
        assert transform(["^", "y", 2], None, self.RULE, True) == (["sq", "y"], True)

    def test_numbers_never_match(self):
        """Numeric atoms are never rewritten."""
        assert transform(3, None, ["a_", ["wrapped", "a_"]], True) == (3, False)

    def test_no_match(self):
        """Failure returns the input unchanged."""
        expr = ["sin", "y"]
        assert transform(expr, None, self.RULE, True) == (expr, False)

    def test_dsl_rule(self):
        """A DSL line works as the single rule."""
        result = transform(["^", "y", 2], None, "(^ a_ 2) => (sq a_)", True)
        assert result == (["sq", "y"], True)
