"""Deterministic feature extraction for context vectors.

A context vector summarizes a piece of notation in four interpretable
features, then fills the remaining dimensions with seeded noise centred on
the feature mean so every vector has the configured dimension:

    [0] set-operation density   count of ∪ ∩ - × per character
    [1] structure density       count of { } | ∈ ⊆ ⊇ per character
    [2] nesting complexity      min(1, max bracket depth / 5)
    [3] notation style          roster 0.8, builder 0.6, symbolic 0.4,
                                verbal 0.3, other 0.2

Noise is drawn from a generator seeded with ``(seed, sha256(key))`` so the
same text always produces the same vector, independent of process or
interpreter hash randomization.
"""

from __future__ import annotations

import hashlib

import numpy as np

from cogscore.errors import EmbeddingError
from cogscore.lexical.notation import NotationStyle, classify_notation, nesting_depth

SET_OPERATION_SYMBOLS = "∪∩-×"
STRUCTURE_SYMBOLS = "{}|∈⊆⊇"
MAX_NESTING = 5
NOISE_SCALE = 0.1

STYLE_FEATURE = {
    NotationStyle.ROSTER: 0.8,
    NotationStyle.BUILDER: 0.6,
    NotationStyle.SYMBOLIC: 0.4,
    NotationStyle.VERBAL: 0.3,
    NotationStyle.OTHER: 0.2,
}


def seeded_rng(seed: int, key: str) -> np.random.Generator:
    """Generator seeded from an explicit seed and a stable digest of key."""
    digest = hashlib.sha256(key.encode("utf-8")).digest()
    return np.random.default_rng([seed, int.from_bytes(digest[:8], "big")])


def normalize(vector: np.ndarray) -> np.ndarray:
    """Return a unit-norm copy of vector.

    Raises:
        EmbeddingError: If the vector has zero norm
    """
    norm = float(np.linalg.norm(vector))
    if norm == 0.0 or not np.isfinite(norm):
        raise EmbeddingError("Cannot normalize a zero or non-finite vector")
    return np.asarray(vector, dtype=float) / norm


def context_features(text: str) -> np.ndarray:
    """Extract the four context features of a text."""
    length = len(text)
    if length == 0:
        return np.array([0.0, 0.0, 0.0, STYLE_FEATURE[NotationStyle.OTHER]])
    set_ops = sum(1 for ch in text if ch in SET_OPERATION_SYMBOLS)
    structure = sum(1 for ch in text if ch in STRUCTURE_SYMBOLS)
    complexity = min(1.0, nesting_depth(text) / MAX_NESTING)
    style = STYLE_FEATURE[classify_notation(text)]
    return np.array([set_ops / length, structure / length, complexity, style])


def expand_features(
    features: np.ndarray,
    dimension: int,
    seed: int,
    key: str,
) -> np.ndarray:
    """Place features in the leading slots, noise-fill the rest, normalize."""
    features = np.asarray(features, dtype=float)
    if len(features) > dimension:
        raise ValueError(f"{len(features)} features do not fit in dimension {dimension}")
    rng = seeded_rng(seed, key)
    vector = np.empty(dimension)
    vector[: len(features)] = features
    fill = float(features.mean()) if len(features) else 0.0
    vector[len(features):] = fill + rng.normal(0.0, NOISE_SCALE, dimension - len(features))
    return normalize(vector)


def context_vector(text: str, dimension: int, seed: int = 0) -> np.ndarray:
    """Unit-norm context vector for a piece of notation."""
    return expand_features(context_features(text), dimension, seed, text)
