"""Luck summary over a roll history.

Rolls are grouped into binomial streams by (label, probability) rather than by
label alone, since one label carries a different chance whenever the player's
knowledge changes. Each stream gets a z-score of observed successes against
expectation, and the stream scores are combined with Stouffer's method.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from expedition.rng import RollRecord

NO_ROLLS = "N/A (no RNG actions)"


@dataclass(slots=True)
class RollStream:
    label: str
    probability: float
    trials: int = 0
    successes: int = 0

    @property
    def z_score(self) -> float | None:
        variance = self.trials * self.probability * (1 - self.probability)
        if variance <= 0:
            return None
        return (self.successes - self.trials * self.probability) / math.sqrt(variance)


@dataclass(slots=True)
class LuckSummary:
    z: float
    percentile: float
    label: str
    streams: int

    def __str__(self) -> str:
        if self.z >= 0:
            position = f"Top {math.ceil(100 - self.percentile)}%"
        else:
            position = f"Bottom {math.ceil(self.percentile)}%"
        return f"{position} ({self.label} - {self.z:+.2f}σ)"


def normal_cdf(z: float) -> float:
    return 0.5 * (1.0 + math.erf(z / math.sqrt(2.0)))


def luck_label(z: float) -> str:
    if z >= 1.5:
        return "very lucky"
    if z >= 0.5:
        return "lucky"
    if z <= -1.5:
        return "very unlucky"
    if z <= -0.5:
        return "unlucky"
    return "average"


def build_streams(history: Iterable[RollRecord]) -> list[RollStream]:
    streams: dict[tuple[str, float], RollStream] = {}
    for record in history:
        key = (record.label, record.probability)
        stream = streams.get(key)
        if stream is None:
            stream = streams[key] = RollStream(label=record.label, probability=record.probability)
        stream.trials += 1
        if record.result:
            stream.successes += 1
    return list(streams.values())


def summarize_luck(history: Iterable[RollRecord]) -> LuckSummary | None:
    scores: list[float] = []
    for stream in build_streams(history):
        if stream.trials == 0 or not 0 < stream.probability < 1:
            continue
        z = stream.z_score
        if z is not None:
            scores.append(z)
    if not scores:
        return None

    combined = sum(scores) / math.sqrt(len(scores))
    return LuckSummary(
        z=combined,
        percentile=normal_cdf(combined) * 100,
        label=luck_label(combined),
        streams=len(scores),
    )


def build_luck_summary(history: Iterable[RollRecord]) -> str:
    """One-line verdict such as ``Top 16% (lucky - +1.00σ)``."""
    summary = summarize_luck(history)
    return NO_ROLLS if summary is None else str(summary)
