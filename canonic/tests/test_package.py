"""Tests for the package surface."""

import subprocess
import sys
from pathlib import Path

import canonic

ROOT = Path(canonic.__file__).resolve().parent.parent


def run_fresh(code):
    """Run code in a new interpreter that has not imported canonic yet."""
    return subprocess.run(
        [sys.executable, "-c", code],
        cwd=ROOT, capture_output=True, text=True,
    )


class TestImport:
    """Tests for importing the package."""

    def test_cold_import(self):
        """A fresh interpreter imports the package and evaluates with it."""
        proc = run_fresh("import canonic; print(canonic.format_sexpr(canonic.E('(+ a a)')))")
        assert proc.returncode == 0, proc.stderr
        assert proc.stdout.strip() == "(* 2 a)"

    def test_cold_import_of_rewriter(self):
        """The rewriter module can be the first thing imported."""
        proc = run_fresh(
            "from canonic.transform import transform\n"
            "print(transform(['*', 5, 'x'], 'x', ['(* a_ x_) => a_']))")
        assert proc.returncode == 0, proc.stderr
        assert proc.stdout.strip() == "(5, True)"

    def test_all_names_exist(self):
        """Every name in __all__ is an attribute of the package."""
        missing = [name for name in canonic.__all__ if not hasattr(canonic, name)]
        assert missing == []

    def test_combine_is_the_function(self):
        """canonic.combine is the public combine() function."""
        assert canonic.combine(["a", "a"]) == ["*", 2, "a"]
