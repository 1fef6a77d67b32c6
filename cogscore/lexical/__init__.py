"""Set notation, lexical network and the Lexical Viability Scorer."""

from cogscore.lexical.notation import (
    SYMBOLIC_CONFIDENCE,
    NotationStyle,
    SetExpression,
    SetOperation,
    classify_notation,
    compact,
    expression_complexity,
    notation_complexity,
    parse_set_expression,
    spell_out,
    symbolic_confidence,
)
from cogscore.lexical.network import LexicalNetwork, LexicalNode, LexicalSuggestion
from cogscore.lexical.viability import (
    LEARNER_PROFILES,
    LearnerProfile,
    LexicalViabilityScorer,
    notation_preference,
)

__all__ = [
    "LEARNER_PROFILES",
    "LearnerProfile",
    "LexicalNetwork",
    "LexicalNode",
    "LexicalSuggestion",
    "LexicalViabilityScorer",
    "NotationStyle",
    "SYMBOLIC_CONFIDENCE",
    "SetExpression",
    "SetOperation",
    "classify_notation",
    "compact",
    "expression_complexity",
    "notation_complexity",
    "notation_preference",
    "parse_set_expression",
    "spell_out",
    "symbolic_confidence",
]
