"""Set-theory notation: recognition, complexity estimates and rewrites.

Only set expressions get structural treatment. Anything else is algebraic
text whose complexity is estimated from operator counts and parenthesis
depth; full parsing of such text belongs to an external evaluator.

Recognition order matters because several surface forms overlap:
    1. union          A ∪ B, A union B
    2. intersection   A ∩ B, A intersect B, A intersection B
    3. cartesian      A × B, A cross B
    4. power set      P(A), power set of A
    5. complement     A', complement of A
    6. builder        {x | condition}
    7. difference     A \\ B, A ∖ B, A - B   (both operands set-like)

Every table keyed by ``SetOperation`` covers every member; adding a member
without extending the tables fails the notation tests.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional


class SetOperation(str, Enum):
    UNION = "union"
    INTERSECTION = "intersection"
    CARTESIAN = "cartesian_product"
    POWER_SET = "power_set"
    COMPLEMENT = "complement"
    DIFFERENCE = "difference"
    BUILDER = "builder"


# Rule-based structural confidence per recognized operation
SYMBOLIC_CONFIDENCE: dict[SetOperation, float] = {
    SetOperation.UNION: 0.9,
    SetOperation.INTERSECTION: 0.9,
    SetOperation.CARTESIAN: 0.85,
    SetOperation.POWER_SET: 0.8,
    SetOperation.COMPLEMENT: 0.88,
    SetOperation.DIFFERENCE: 0.87,
    SetOperation.BUILDER: 0.75,
}

ALGEBRAIC_OPERATORS = "+-*/^"
SET_SYMBOLS = "∪∩∅⊆⊇∈∉×"
SUBSCRIPTS = "₀₁₂₃₄₅₆₇₈₉"
SUPERSCRIPTS = "⁰¹²³⁴⁵⁶⁷⁸⁹"

# Compact symbol -> spelled-out word
SPELLED_WORDS: dict[str, str] = {
    "∪": "union",
    "∩": "intersect",
    "×": "cross",
    "∅": "empty",
}
_BINARY_SYMBOLS = "∪∩×"

TERM_PATTERN = re.compile(r"\{[^}]*\}|[A-Za-z][A-Za-z0-9]*|\d+")
_UNION_SPLIT = re.compile(r"∪|\bunion\b", re.IGNORECASE)
_INTERSECTION_SPLIT = re.compile(r"∩|\bintersect(?:ion)?\b", re.IGNORECASE)
_CARTESIAN_SPLIT = re.compile(r"×|\bcross\b", re.IGNORECASE)
_DIFFERENCE_SPLIT = re.compile(r"\\|∖|-")
_POWER_SET = re.compile(r"P\(([^)]*)\)|power\s*set\s*(?:of\s*)?(.*)", re.IGNORECASE)
_COMPLEMENT = re.compile(r"complement\s*(?:of\s*)?(.*)|(.+)'", re.IGNORECASE)
_BUILDER = re.compile(r"\s*\{[^}]*\|[^}]*\}\s*")
_SET_LIKE = re.compile(r"\{[^}]*\}|[A-Z][A-Za-z0-9]*|∅")
_WHITESPACE = re.compile(r"\s+")
_VERBAL = re.compile(r"\b(union|intersect(?:ion)?|complement|cross|empty|subset|power)\b", re.IGNORECASE)
_SPELLED_OPERATOR = re.compile(r"\b(union|intersect(?:ion)?|cross|empty)\b", re.IGNORECASE)


@dataclass(frozen=True)
class SetExpression:
    """A recognized set operation with its operand text."""

    operation: SetOperation
    left: str
    right: Optional[str] = None

    def simplified(self) -> str:
        """Render after idempotence/self-cancellation rules.

        A ∪ A -> A, A ∩ A -> A, A \\ A -> ∅.
        """
        if self.right is not None and self.left.strip() == self.right.strip():
            if self.operation in (SetOperation.UNION, SetOperation.INTERSECTION):
                return self.left.strip()
            if self.operation == SetOperation.DIFFERENCE:
                return "∅"
        return str(self)

    def __str__(self) -> str:
        return _RENDERERS[self.operation](self)


_RENDERERS: dict[SetOperation, Callable[[SetExpression], str]] = {
    SetOperation.UNION: lambda e: f"{e.left} ∪ {e.right}",
    SetOperation.INTERSECTION: lambda e: f"{e.left} ∩ {e.right}",
    SetOperation.CARTESIAN: lambda e: f"{e.left} × {e.right}",
    SetOperation.POWER_SET: lambda e: f"P({e.left})",
    SetOperation.COMPLEMENT: lambda e: f"{e.left}'",
    SetOperation.DIFFERENCE: lambda e: f"{e.left} \\ {e.right}",
    SetOperation.BUILDER: lambda e: e.left,
}


def _split_binary(pattern: re.Pattern, expr: str) -> Optional[tuple[str, str]]:
    parts = pattern.split(expr, maxsplit=1)
    if len(parts) != 2:
        return None
    left, right = parts[0].strip(), parts[1].strip()
    if not left or not right:
        return None
    return left, right


def parse_set_expression(expr: str) -> Optional[SetExpression]:
    """Recognize the top-level set operation of expr.

    Returns:
        The recognized expression, or None when expr is not set notation
    """
    for operation, pattern in (
        (SetOperation.UNION, _UNION_SPLIT),
        (SetOperation.INTERSECTION, _INTERSECTION_SPLIT),
        (SetOperation.CARTESIAN, _CARTESIAN_SPLIT),
    ):
        operands = _split_binary(pattern, expr)
        if operands:
            return SetExpression(operation, *operands)

    match = _POWER_SET.search(expr)
    if match:
        operand = (match.group(1) or match.group(2) or "").strip()
        if operand:
            return SetExpression(SetOperation.POWER_SET, operand)

    match = _COMPLEMENT.search(expr)
    if match:
        operand = (match.group(1) or match.group(2) or "").strip()
        if operand:
            return SetExpression(SetOperation.COMPLEMENT, operand)

    if _BUILDER.fullmatch(expr):
        return SetExpression(SetOperation.BUILDER, expr.strip())

    operands = _split_binary(_DIFFERENCE_SPLIT, expr)
    if operands and all(_SET_LIKE.fullmatch(op) for op in operands):
        return SetExpression(SetOperation.DIFFERENCE, *operands)

    return None


class NotationStyle(str, Enum):
    ROSTER = "roster"
    BUILDER = "builder"
    SYMBOLIC = "symbolic"
    VERBAL = "verbal"
    OTHER = "other"


def classify_notation(text: str) -> NotationStyle:
    """Classify the dominant notation style of text."""
    if re.search(r"\{[^}]*\|[^}]*\}", text):
        return NotationStyle.BUILDER
    if re.search(r"\{[^}|]*\}", text):
        return NotationStyle.ROSTER
    if any(ch in SET_SYMBOLS or ch in "∖'" for ch in text):
        return NotationStyle.SYMBOLIC
    if _VERBAL.search(text):
        return NotationStyle.VERBAL
    return NotationStyle.OTHER


def nesting_depth(text: str) -> int:
    """Maximum depth of (), {} and [] nesting."""
    depth = max_depth = 0
    for ch in text:
        if ch in "({[":
            depth += 1
            max_depth = max(max_depth, depth)
        elif ch in ")}]" and depth > 0:
            depth -= 1
    return max_depth


def parentheses_depth(text: str) -> int:
    """Maximum depth of round-bracket nesting."""
    depth = max_depth = 0
    for ch in text:
        if ch == "(":
            depth += 1
            max_depth = max(max_depth, depth)
        elif ch == ")" and depth > 0:
            depth -= 1
    return max_depth


def operator_count(text: str, operators: str = ALGEBRAIC_OPERATORS) -> int:
    return sum(1 for ch in text if ch in operators)


def extract_terms(text: str) -> list[str]:
    """Identifiers, numbers and roster sets in order of appearance."""
    return TERM_PATTERN.findall(text)


def expression_complexity(expr: str, parsed: Optional[SetExpression] = None) -> float:
    """Structural complexity in [0, 1].

    Set expressions weigh set operators, braces and nesting; algebraic text
    weighs operators, parenthesis depth and term count.
    """
    if parsed is not None:
        ops = operator_count(expr, SET_SYMBOLS + "∖\\'")
        braces = expr.count("{")
        score = (ops * 0.2 + braces * 0.1 + nesting_depth(expr) * 0.3) / 5.0
    else:
        ops = operator_count(expr)
        terms = len(extract_terms(expr))
        score = (ops * 0.15 + parentheses_depth(expr) * 0.25 + terms * 0.1) / 8.0
    return min(1.0, score)


def notation_complexity(expr: str) -> float:
    """Visual complexity from non-ASCII, set symbols, sub- and superscripts."""
    count = 0
    for ch in expr:
        if ord(ch) > 127:
            count += 1
        if ch in SET_SYMBOLS:
            count += 1
        if ch in SUBSCRIPTS:
            count += 1
        if ch in SUPERSCRIPTS:
            count += 1
    return min(1.0, count / 10.0)


def symbolic_share(expr: str) -> float:
    """Fraction of set operators written as symbols rather than words.

    Text with no set operator at all is neutral (0.5).
    """
    symbols = sum(expr.count(symbol) for symbol in SPELLED_WORDS)
    words = len(_SPELLED_OPERATOR.findall(expr))
    if symbols + words == 0:
        return 0.5
    return symbols / (symbols + words)


def symbolic_confidence(expr: str, parsed: Optional[SetExpression]) -> float:
    """Structural confidence S(x) of an expression.

    Recognized set operations map to fixed confidences; other text scores
    lower the more operators and parenthesis nesting it carries.
    """
    if parsed is not None:
        return SYMBOLIC_CONFIDENCE[parsed.operation]
    penalty = operator_count(expr) * 0.1 + parentheses_depth(expr) * 0.15
    return min(0.95, max(0.1, 1.0 - penalty))


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def spell_out(expr: str) -> str:
    """Replace compact symbols with words and space them out."""
    for symbol, word in SPELLED_WORDS.items():
        expr = expr.replace(symbol, f" {word} ")
    return collapse_whitespace(expr)


def compact(expr: str) -> str:
    """Replace spelled-out operators with their symbols."""
    for symbol, word in SPELLED_WORDS.items():
        if symbol in _BINARY_SYMBOLS:
            expr = re.sub(rf"\s*\b{word}\b\s*", f" {symbol} ", expr, flags=re.IGNORECASE)
        else:
            expr = re.sub(rf"\b{word}\b", symbol, expr, flags=re.IGNORECASE)
    return collapse_whitespace(expr)


def add_structure(expr: str) -> str:
    """Wrap in parentheses unless already wrapped."""
    stripped = expr.strip()
    if stripped.startswith("(") and stripped.endswith(")"):
        return stripped
    return f"({stripped})"


def enhance_clarity(expr: str) -> str:
    """Pad binary set operators with single spaces."""
    for symbol in _BINARY_SYMBOLS:
        expr = expr.replace(symbol, f" {symbol} ")
    return collapse_whitespace(expr)
