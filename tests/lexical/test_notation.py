"""Tests for set notation recognition and rewrites."""
import pytest

from cogscore.lexical.notation import (
    SYMBOLIC_CONFIDENCE,
    NotationStyle,
    SetExpression,
    SetOperation,
    add_structure,
    classify_notation,
    compact,
    enhance_clarity,
    expression_complexity,
    extract_terms,
    nesting_depth,
    notation_complexity,
    parse_set_expression,
    spell_out,
    symbolic_confidence,
    symbolic_share,
)


def _symbols(text: str) -> set[str]:
    return {ch for ch in text if ch in "∪∩×∅"}


class TestParse:
    """Test recognizing set operations."""

    @pytest.mark.parametrize(
        "expr,operation,left,right",
        [
            ("{1,2} ∪ {3,4}", SetOperation.UNION, "{1,2}", "{3,4}"),
            ("A union B", SetOperation.UNION, "A", "B"),
            ("A ∩ B", SetOperation.INTERSECTION, "A", "B"),
            ("A intersect B", SetOperation.INTERSECTION, "A", "B"),
            ("A intersection B", SetOperation.INTERSECTION, "A", "B"),
            ("A × B", SetOperation.CARTESIAN, "A", "B"),
            ("A cross B", SetOperation.CARTESIAN, "A", "B"),
            ("A \\ B", SetOperation.DIFFERENCE, "A", "B"),
            ("{1,2} - {2}", SetOperation.DIFFERENCE, "{1,2}", "{2}"),
        ],
    )
    def test_binary_operations(self, expr, operation, left, right):
        """Binary operators split into trimmed operands."""
        parsed = parse_set_expression(expr)
        assert parsed == SetExpression(operation, left, right)

    def test_power_set(self):
        """P(A) and 'power set of A'."""
        assert parse_set_expression("P(A)") == SetExpression(SetOperation.POWER_SET, "A")
        assert parse_set_expression("power set of B").left == "B"

    def test_complement(self):
        """A' and 'complement of A'."""
        assert parse_set_expression("A'") == SetExpression(SetOperation.COMPLEMENT, "A")
        assert parse_set_expression("complement of C").left == "C"

    def test_builder(self):
        """Set-builder notation is recognized whole."""
        parsed = parse_set_expression("{x | x > 0}")
        assert parsed.operation == SetOperation.BUILDER
        assert str(parsed) == "{x | x > 0}"

    def test_union_wins_over_intersection(self):
        """The first operator in recognition order is top-level."""
        parsed = parse_set_expression("A ∩ B ∪ C")
        assert parsed.operation == SetOperation.UNION
        assert parsed.left == "A ∩ B"

    @pytest.mark.parametrize("expr", ["x + 1", "x - 1", "", "2 * (y + 3)"])
    def test_non_set_text(self, expr):
        """Algebraic text is not set notation."""
        assert parse_set_expression(expr) is None


class TestTables:
    """Test tables keyed by SetOperation cover every member."""

    def test_confidence_table_exhaustive(self):
        """Every operation has a structural confidence."""
        assert set(SYMBOLIC_CONFIDENCE) == set(SetOperation)

    def test_every_operation_renders(self):
        """Every operation renders to text."""
        for operation in SetOperation:
            assert str(SetExpression(operation, "A", "B"))


class TestSimplified:
    """Test idempotence and self-cancellation."""

    def test_union_idempotent(self):
        assert SetExpression(SetOperation.UNION, "A", "A").simplified() == "A"

    def test_intersection_idempotent(self):
        assert SetExpression(SetOperation.INTERSECTION, "A", "A").simplified() == "A"

    def test_difference_cancels(self):
        assert SetExpression(SetOperation.DIFFERENCE, "A", "A").simplified() == "∅"

    def test_distinct_operands_unchanged(self):
        """Nothing to simplify."""
        assert SetExpression(SetOperation.UNION, "A", "B").simplified() == "A ∪ B"


class TestComplexity:
    """Test complexity and confidence estimates."""

    def test_set_complexity(self):
        """Operators, braces and nesting."""
        expr = "{1,2} ∪ {3,4}"
        assert expression_complexity(expr, parse_set_expression(expr)) == pytest.approx(0.14)

    def test_algebraic_complexity(self):
        """Operators, parenthesis depth and terms."""
        assert expression_complexity("x + y") == pytest.approx(0.35 / 8)

    def test_notation_complexity(self):
        """Set symbols count once as non-ASCII and once as symbols."""
        assert notation_complexity("A ∪ B") == pytest.approx(0.2)
        assert notation_complexity("x + y") == 0.0

    def test_symbolic_confidence(self):
        """Recognized operations use the table; other text is penalized."""
        expr = "A ∪ B"
        assert symbolic_confidence(expr, parse_set_expression(expr)) == 0.9
        assert symbolic_confidence("x", None) == 0.95
        assert symbolic_confidence("((x+y)*z)", None) == pytest.approx(0.5)
        assert symbolic_confidence("+" * 20, None) == pytest.approx(0.1)

    def test_helpers(self):
        """Nesting depth and term extraction."""
        assert nesting_depth("({[x]})") == 3
        assert extract_terms("{1,2} ∪ A1 ∩ 42") == ["{1,2}", "A1", "42"]


class TestSymbolicShare:
    """Test the share of set operators written as symbols."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("A ∪ B", 1.0),
            ("A union B", 0.0),
            ("A intersect B ∪ C", 0.5),
            ("{1,2} × {3} cross {4}", 0.5),
            ("x + y", 0.5),
            ("", 0.5),
        ],
    )
    def test_share(self, text, expected):
        assert symbolic_share(text) == pytest.approx(expected)


class TestClassify:
    """Test notation style classification."""

    @pytest.mark.parametrize(
        "text,style",
        [
            ("{x | x > 0}", NotationStyle.BUILDER),
            ("{1,2}", NotationStyle.ROSTER),
            ("A ∪ B", NotationStyle.SYMBOLIC),
            ("A union B", NotationStyle.VERBAL),
            ("x + 1", NotationStyle.OTHER),
        ],
    )
    def test_styles(self, text, style):
        assert classify_notation(text) == style


class TestRewrites:
    """Test textual rewrites."""

    def test_spell_out(self):
        """Symbols become spaced words."""
        assert spell_out("{1,2}∪{3,4}") == "{1,2} union {3,4}"

    def test_compact_restores_original(self):
        """Compacting a spelled-out expression restores its symbols."""
        original = "{1,2} ∪ {3,4}"
        assert compact(spell_out(original)) == original

    def test_mixed_operators_keep_symbol_set(self):
        """Spelling out and compacting keeps the operator set."""
        original = "A∩B∪C"
        spelled = spell_out(original)
        assert spelled == "A intersect B union C"
        assert _symbols(compact(spelled)) == _symbols(original)

    def test_add_structure_idempotent(self):
        """Wrapped text is not wrapped twice."""
        assert add_structure("A ∪ B") == "(A ∪ B)"
        assert add_structure(add_structure("A ∪ B")) == "(A ∪ B)"

    def test_enhance_clarity(self):
        """Binary operators are padded with single spaces."""
        assert enhance_clarity("A∪B") == "A ∪ B"
        assert enhance_clarity("A  ∩   B") == "A ∩ B"
