"""Run the typing agent over several prediction conditions."""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, fields
from typing import List, Optional, Sequence

from .agent import TypingAgent, TypingConfig, TypingMetrics

logger = logging.getLogger(__name__)

DEFAULT_TEXTS = (
    "I would like a glass of water please",
    "Can you help me find my phone",
)


@dataclass(frozen=True)
class Condition:
    name: str
    config: TypingConfig


DEFAULT_CONDITIONS = (
    Condition("Baseline (No Prediction)", TypingConfig(20, 0.1, 0.0)),
    Condition("Word Prediction", TypingConfig(20, 0.1, 0.4)),
    Condition("Sentence Prediction", TypingConfig(20, 0.1, 0.6)),
)


@dataclass(frozen=True)
class Spread:
    wpm: float
    accuracy: float
    time_to_complete: float


@dataclass(frozen=True)
class ExperimentResult:
    condition: str
    average_metrics: TypingMetrics
    standard_deviation: Spread


def average_metrics(runs: Sequence[TypingMetrics]) -> TypingMetrics:
    if not runs:
        return TypingMetrics()
    return TypingMetrics(
        **{
            f.name: sum(getattr(run, f.name) for run in runs) / len(runs)
            for f in fields(TypingMetrics)
        }
    )


def population_std(values: Sequence[float], mean: float) -> float:
    if not values:
        return 0.0
    return math.sqrt(sum((value - mean) ** 2 for value in values) / len(values))


class ExperimentRunner:
    def __init__(
        self,
        texts: Sequence[str] = DEFAULT_TEXTS,
        conditions: Sequence[Condition] = DEFAULT_CONDITIONS,
        seed: Optional[int] = None,
    ) -> None:
        self.texts = list(texts)
        self.conditions = list(conditions)
        self.rng = random.Random(seed)

    def run(self, iterations: int = 3) -> List[ExperimentResult]:
        results: List[ExperimentResult] = []
        for condition in self.conditions:
            logger.info(f"Testing: {condition.name}")
            runs: List[TypingMetrics] = []
            for iteration in range(iterations):
                logger.debug(f"Iteration {iteration + 1}/{iterations}")
                agent = TypingAgent(condition.config, rng=self.rng)
                for text in self.texts:
                    runs.append(agent.simulate_typing(text))

            mean = average_metrics(runs)
            results.append(
                ExperimentResult(
                    condition=condition.name,
                    average_metrics=mean,
                    standard_deviation=Spread(
                        wpm=population_std([r.wpm for r in runs], mean.wpm),
                        accuracy=population_std([r.accuracy for r in runs], mean.accuracy),
                        time_to_complete=population_std(
                            [r.time_to_complete for r in runs], mean.time_to_complete
                        ),
                    ),
                )
            )
        return results


__all__ = [
    "Condition",
    "DEFAULT_CONDITIONS",
    "DEFAULT_TEXTS",
    "ExperimentResult",
    "ExperimentRunner",
    "Spread",
    "average_metrics",
    "population_std",
]
