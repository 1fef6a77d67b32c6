"""Cognitive-bias adjustment of probability estimates.

Seven bias models shift a base probability when their predicate holds in
the evidence/context maps. Models with strength above 0.1 apply in a fixed
order, each acting on the previous model's output and clamped to [0, 1].
The biased value is then blended with the base by the global strength:

    p' = p·(1 − g) + biased·g,    clamped to [0, 1]

Context keys:
    confirms_expectation (bool)  confirmation bias
    recency_score (0-1)          availability heuristic; optional vividness
    anchor (0-1)                 anchoring
    similarity (0-1)             representativeness; falls back to
                                 evidence["attention_level"]
    frame_type ("positive"|"negative")  framing effect
    involves_loss (bool)         loss aversion

Overconfidence applies unconditionally.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Union

from cogscore.stats import clamp

logger = logging.getLogger(__name__)

MIN_ACTIVE_STRENGTH = 0.1
MAX_STRENGTH = 2.0


class BiasType(str, Enum):
    CONFIRMATION = "confirmation"
    AVAILABILITY = "availability"
    ANCHORING = "anchoring"
    REPRESENTATIVENESS = "representativeness"
    OVERCONFIDENCE = "overconfidence"
    FRAMING = "framing"
    LOSS_AVERSION = "loss_aversion"


DEFAULT_STRENGTHS: dict[BiasType, float] = {
    BiasType.CONFIRMATION: 1.2,
    BiasType.AVAILABILITY: 1.1,
    BiasType.ANCHORING: 1.3,
    BiasType.REPRESENTATIVENESS: 1.1,
    BiasType.OVERCONFIDENCE: 1.4,
    BiasType.FRAMING: 1.2,
    BiasType.LOSS_AVERSION: 1.5,
}


@dataclass(frozen=True)
class BiasProfile:
    """Named strength overrides plus a global strength."""

    name: str
    strengths: dict[BiasType, float] = field(default_factory=dict)
    global_strength: float = 1.0


PROFILES: dict[str, BiasProfile] = {
    "conservative": BiasProfile(
        "conservative",
        {BiasType.CONFIRMATION: 1.5, BiasType.LOSS_AVERSION: 1.8, BiasType.ANCHORING: 1.4},
        1.2,
    ),
    "optimistic": BiasProfile(
        "optimistic",
        {BiasType.OVERCONFIDENCE: 1.6, BiasType.AVAILABILITY: 1.3, BiasType.CONFIRMATION: 0.8},
        1.1,
    ),
    "analytical": BiasProfile(
        "analytical",
        {BiasType.CONFIRMATION: 0.7, BiasType.OVERCONFIDENCE: 0.8, BiasType.REPRESENTATIVENESS: 0.6},
        0.8,
    ),
    "intuitive": BiasProfile(
        "intuitive",
        {BiasType.AVAILABILITY: 1.4, BiasType.REPRESENTATIVENESS: 1.5, BiasType.FRAMING: 1.3},
        1.3,
    ),
}

BiasFn = Callable[[float, float, Mapping[str, Any], Mapping[str, Any]], Optional[float]]


def _confirmation(p: float, s: float, evidence, context) -> Optional[float]:
    if "confirms_expectation" not in context:
        return None
    weight = 0.3
    if context["confirms_expectation"]:
        return p + (1.0 - p) * weight * s
    return p - p * weight * s * 0.5


def _availability(p: float, s: float, evidence, context) -> Optional[float]:
    if "recency_score" not in context:
        return None
    recency = clamp(float(context["recency_score"]))
    vividness = clamp(float(context.get("vividness", 0.0)))
    return p + (1.0 - p) * (recency * 0.4 + vividness * 0.5) * s * 0.3


def _anchoring(p: float, s: float, evidence, context) -> Optional[float]:
    if "anchor" not in context:
        return None
    anchor = clamp(float(context["anchor"]))
    anchor_strength = 0.5 * s
    adjusted = anchor + (p - anchor) * 0.7
    return p * (1.0 - anchor_strength) + adjusted * anchor_strength


def _representativeness(p: float, s: float, evidence, context) -> Optional[float]:
    similarity = context.get("similarity", evidence.get("attention_level"))
    if similarity is None:
        return None
    return p + (clamp(float(similarity)) - 0.5) * 0.6 * s * 0.4


def _overconfidence(p: float, s: float, evidence, context) -> Optional[float]:
    return 0.5 + (p - 0.5) * 1.3 * s * 0.8


def _framing(p: float, s: float, evidence, context) -> Optional[float]:
    frame = context.get("frame_type")
    if frame == "positive":
        return p + 0.2 * s * 0.3
    if frame == "negative":
        return p - 0.3 * s * 0.3
    return None


def _loss_aversion(p: float, s: float, evidence, context) -> Optional[float]:
    if not context.get("involves_loss"):
        return None
    loss_multiplier = 2.0
    return p - p * (loss_multiplier - 1.0) * s * 0.2


BIAS_FUNCTIONS: dict[BiasType, BiasFn] = {
    BiasType.CONFIRMATION: _confirmation,
    BiasType.AVAILABILITY: _availability,
    BiasType.ANCHORING: _anchoring,
    BiasType.REPRESENTATIVENESS: _representativeness,
    BiasType.OVERCONFIDENCE: _overconfidence,
    BiasType.FRAMING: _framing,
    BiasType.LOSS_AVERSION: _loss_aversion,
}


def _bias_type(name: Union[str, BiasType]) -> BiasType:
    try:
        return BiasType(name)
    except ValueError:
        raise ValueError(
            f"Unknown bias '{name}'. Known: {', '.join(b.value for b in BiasType)}"
        ) from None


class BiasAdjuster:
    """Applies the active bias profile to probability estimates."""

    def __init__(self, profile: Optional[str] = None):
        self._lock = threading.Lock()
        self._strengths: dict[BiasType, float] = dict(DEFAULT_STRENGTHS)
        self._global_strength = 1.0
        self._profile = "default"
        if profile is not None:
            self.apply_profile(profile)

    @property
    def profile(self) -> str:
        return self._profile

    @property
    def global_strength(self) -> float:
        return self._global_strength

    def strength(self, bias: Union[str, BiasType]) -> float:
        return self._strengths[_bias_type(bias)]

    def adjust(
        self,
        base_probability: float,
        evidence: Optional[Mapping[str, Any]] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> float:
        """Bias base_probability according to evidence and context.

        Raises:
            ValueError: If base_probability is outside [0, 1]
        """
        if not 0.0 <= base_probability <= 1.0:
            raise ValueError(f"base_probability must be in [0, 1], got {base_probability}")
        evidence = evidence or {}
        context = context or {}
        with self._lock:
            strengths = dict(self._strengths)
            global_strength = self._global_strength

        biased = base_probability
        for bias_type in BiasType:
            s = strengths[bias_type]
            if s <= MIN_ACTIVE_STRENGTH:
                continue
            shifted = BIAS_FUNCTIONS[bias_type](biased, s, evidence, context)
            if shifted is not None:
                biased = clamp(shifted)

        blended = base_probability * (1.0 - global_strength) + biased * global_strength
        return clamp(blended)

    def apply_profile(self, name: str) -> None:
        """Switch to a named profile; unknown names reset to defaults."""
        profile = PROFILES.get(name)
        with self._lock:
            self._strengths = dict(DEFAULT_STRENGTHS)
            if profile is None:
                self._global_strength = 1.0
                self._profile = "default"
            else:
                self._strengths.update(profile.strengths)
                self._global_strength = profile.global_strength
                self._profile = profile.name
        if profile is None:
            logger.warning(f"Unknown bias profile '{name}', reset to defaults")
        else:
            logger.info(f"Applied bias profile '{name}'")

    def set_strength(self, bias: Union[str, BiasType], value: float) -> None:
        """Set one bias strength, clamped to [0, 2].

        Raises:
            ValueError: If the bias name is unknown
        """
        bias_type = _bias_type(bias)
        with self._lock:
            self._strengths[bias_type] = clamp(value, 0.0, MAX_STRENGTH)

    def set_global_strength(self, value: float) -> None:
        with self._lock:
            self._global_strength = clamp(value, 0.0, MAX_STRENGTH)

    def reduce_global_strength(self, step: float = 0.1, floor: float = 0.8) -> float:
        """Lower the global strength by step, never below floor.

        A global strength already under the floor is left unchanged.
        """
        with self._lock:
            if self._global_strength > floor:
                self._global_strength = max(floor, self._global_strength - step)
            return self._global_strength

    def overall_intensity(self) -> float:
        """Mean strength across models, scaled by the global strength."""
        with self._lock:
            mean_strength = sum(self._strengths.values()) / len(self._strengths)
            return mean_strength * self._global_strength

    def bias_report(self) -> dict[str, Any]:
        with self._lock:
            return {
                "profile": self._profile,
                "global_strength": self._global_strength,
                "strengths": {b.value: s for b, s in self._strengths.items()},
                "active": [b.value for b, s in self._strengths.items() if s > MIN_ACTIVE_STRENGTH],
            }
