"""Multi-scale cognitive state simulation.

Each of K scales carries its own (attention, recognition, wandering) state
and evolves every component through a bounded quadratic recurrence

    z_{n+1} = clamp(z_n² + c)

where the drive ``c`` depends on the input and on the scale's own state:

    novelty ν        from the input (None 0.1, numbers |x|/100, text len/50
                     plus 0.2 when it contains a digit, collections size/20)
    wandering        c_w = wandering_constant when there is no input, else a
                     small residual that shrinks as novelty grows
    attention        c_a = attention_drive + novelty_gain·ν + influence − w/2
    recognition      c_r = recognition_drive + 0.3·attention·(1 − ν)

``influence`` couples scale k to scale k−1: scale_influence times the
previous tick's attention of the scale above. Drives above 0.25 push a
component toward saturation and drives below it settle on a low fixed
point, so engaged input drives attention up while absent input lets
wandering take over.

A tick is bulk-synchronous: all scales are stepped concurrently on the
simulator's pool and joined before the next tick starts, so no scale task
outlives ``simulate``.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Sized
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from enum import Enum
from numbers import Number
from typing import Any, Optional

import numpy as np

from cogscore.config import SimulationConfig
from cogscore.patterns import PatternDetector
from cogscore.schemas import CognitiveStateVector, ProcessingResult
from cogscore.simulation.meta_awareness import MetaAwarenessProcessor, MetaAwarenessSummary
from cogscore.stats import clamp

logger = logging.getLogger(__name__)

NO_INPUT_NOVELTY = 0.1


def input_novelty(value: Any) -> float:
    """Map an arbitrary input to a novelty score in [0, 1]."""
    if value is None:
        return NO_INPUT_NOVELTY
    if isinstance(value, bool):
        return 0.5
    if isinstance(value, Number):
        return clamp(abs(float(value)) / 100.0)
    if isinstance(value, str):
        bonus = 0.2 if any(ch.isdigit() for ch in value) else 0.0
        return clamp(len(value) / 50.0 + bonus)
    if isinstance(value, Sized):
        return clamp(len(value) / 20.0)
    return 0.5


class LoadLevel(str, Enum):
    LOW = "low_load"
    NORMAL = "normal_load"
    HIGH = "high_load"


@dataclass
class SystemAnalysis:
    """Snapshot of the simulator across all scales."""

    state: CognitiveStateVector
    cognitive_load: float
    load_level: LoadLevel
    in_flow: bool
    meta: Optional[MetaAwarenessSummary] = None

    def to_dict(self) -> dict:
        result = {
            "attention": self.state.attention,
            "recognition": self.state.recognition,
            "wandering": self.state.wandering,
            "cognitive_load": self.cognitive_load,
            "load_level": self.load_level.value,
            "in_flow": self.in_flow,
        }
        if self.meta is not None:
            result["meta"] = self.meta.to_dict()
        return result


@dataclass
class ScaleLevel:
    """Mutable state of one simulation scale."""

    index: int
    state: CognitiveStateVector
    history: deque
    rng: np.random.Generator
    tick: int = 0
    pattern_count: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock)


class CognitiveStateSimulator:
    """Concurrent multi-scale simulator of attention dynamics.

    Args:
        config: Simulation configuration
        meta_processor: Summarizes each tick; created from config if omitted
        pattern_detector: Run over each scale's history after every step; its
            pattern count feeds the meta-awareness summary
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        meta_processor: Optional[MetaAwarenessProcessor] = None,
        pattern_detector: Optional[PatternDetector] = None,
    ):
        self.config = config or SimulationConfig()
        self.meta_processor = meta_processor or MetaAwarenessProcessor(
            history_size=self.config.meta_history_size
        )
        self.pattern_detector = pattern_detector
        self._executor = ThreadPoolExecutor(
            max_workers=self.config.num_scales, thread_name_prefix="cogscore-scale"
        )
        self._scales: list[ScaleLevel] = []
        self.reset()

    @property
    def num_scales(self) -> int:
        return self.config.num_scales

    def _initial_state(self) -> CognitiveStateVector:
        return CognitiveStateVector(
            attention=self.config.initial_attention,
            recognition=self.config.initial_recognition,
            wandering=self.config.initial_wandering,
        )

    def reset(self) -> None:
        """Return every scale to the initial state and reseed its noise."""
        self._scales = [
            ScaleLevel(
                index=k,
                state=self._initial_state(),
                history=deque(maxlen=self.config.history_size),
                rng=np.random.default_rng([self.config.seed, k]),
            )
            for k in range(self.config.num_scales)
        ]
        self.meta_processor.reset()

    def simulate(self, value: Any = None, steps: int = 1) -> list[ProcessingResult]:
        """Advance all scales ``steps`` ticks on the given input.

        Returns:
            Results grouped by tick, then by scale within a tick
        """
        if steps < 0:
            raise ValueError(f"steps must be >= 0, got {steps}")
        novelty = input_novelty(value)
        has_input = value is not None
        results: list[ProcessingResult] = []

        for _ in range(steps):
            # Influence is read from the previous tick before any scale moves
            previous_attention = [scale.state.attention for scale in self._scales]
            futures = [
                self._executor.submit(
                    self._step_scale,
                    scale,
                    novelty,
                    has_input,
                    self._influence(scale.index, previous_attention),
                )
                for scale in self._scales
            ]
            wait(futures)
            tick_results = [f.result() for f in futures]
            pattern_count = sum(scale.pattern_count for scale in self._scales)
            self.meta_processor.process(tick_results, pattern_count=pattern_count)
            results.extend(tick_results)

        logger.debug(
            f"Simulated {steps} ticks over {self.num_scales} scales "
            f"(novelty={novelty:.2f}, results={len(results)})"
        )
        return results

    def _influence(self, index: int, previous_attention: list[float]) -> float:
        if index == 0:
            return 0.0
        return self.config.scale_influence * previous_attention[index - 1]

    def _step_scale(
        self,
        scale: ScaleLevel,
        novelty: float,
        has_input: bool,
        influence: float,
    ) -> ProcessingResult:
        cfg = self.config
        with scale.lock:
            a, r, w = scale.state.as_tuple()

            if has_input:
                c_w = cfg.wandering_constant * 0.2 * (1.0 - novelty)
            else:
                c_w = cfg.wandering_constant
            c_a = cfg.attention_drive + cfg.novelty_gain * novelty + influence - 0.5 * w
            c_r = cfg.recognition_drive + 0.3 * a * (1.0 - novelty)

            noise = scale.rng.normal(0.0, cfg.noise, 3) if cfg.noise > 0 else np.zeros(3)
            state = CognitiveStateVector(
                attention=clamp(a * a + c_a + noise[0]),
                recognition=clamp(r * r + c_r + noise[1]),
                wandering=clamp(w * w + c_w + noise[2]),
            )
            scale.state = state
            scale.tick += 1
            result = ProcessingResult.from_state(scale.index, scale.tick, state)
            scale.history.append(result)
            if self.pattern_detector is not None:
                scale.pattern_count = len(
                    self.pattern_detector.analyze([r.state for r in scale.history], scale=scale.index)
                )
            return result

    def history(self, scale: int) -> list[ProcessingResult]:
        """Retained results of one scale, oldest first."""
        level = self._scales[scale]
        with level.lock:
            return list(level.history)

    def current_state(self) -> CognitiveStateVector:
        """Mean of the latest state of every scale."""
        states = [scale.state for scale in self._scales]
        return CognitiveStateVector(
            attention=float(np.mean([s.attention for s in states])),
            recognition=float(np.mean([s.recognition for s in states])),
            wandering=float(np.mean([s.wandering for s in states])),
        )

    def predict_next_state(self) -> CognitiveStateVector:
        """Naive one-step projection of the current mean state."""
        state = self.current_state()
        return CognitiveStateVector(
            attention=state.attention * 1.1,
            recognition=state.recognition * 1.05,
            wandering=state.wandering * 0.95,
        )

    def system_analysis(self) -> SystemAnalysis:
        state = self.current_state()
        load = state.cognitive_load
        if load < 0.3:
            level = LoadLevel.LOW
        elif load < 0.7:
            level = LoadLevel.NORMAL
        else:
            level = LoadLevel.HIGH
        return SystemAnalysis(
            state=state,
            cognitive_load=load,
            load_level=level,
            in_flow=state.in_flow,
            meta=self.meta_processor.latest(),
        )

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "CognitiveStateSimulator":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
