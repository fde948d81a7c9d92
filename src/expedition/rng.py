"""Counter-based deterministic random source.

Every value is derived from ``sha256("{seed}:{counter}")`` so a state is fully
described by its seed and counter. Copying those two fields is all a preview
needs to replay the future without touching the live state.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Sequence, TypeVar

T = TypeVar("T")

_SCALE = float(2**53)


@dataclass(slots=True)
class RollRecord:
    """One probability-gated decision, kept for luck reporting."""

    label: str
    probability: float
    result: bool
    counter: int


def _unit_value(seed: str, counter: int) -> float:
    digest = hashlib.sha256(f"{seed}:{counter}".encode("utf-8")).digest()
    return (int.from_bytes(digest[:8], "big") >> 11) / _SCALE


@dataclass(slots=True)
class RandomState:
    seed: str
    counter: int = 0

    def draw(self, label: str) -> float:
        """Return a value in [0, 1) and advance the counter by one."""
        value = _unit_value(self.seed, self.counter)
        self.counter += 1
        return value

    def fork(self) -> RandomState:
        """Copy that diverges from here without moving this state's counter."""
        return RandomState(seed=self.seed, counter=self.counter)

    def roll(
        self, probability: float, label: str, history: list[RollRecord] | None = None
    ) -> tuple[bool, float]:
        """Draw once against ``probability``; returns the verdict and the raw draw."""
        counter = self.counter
        value = self.draw(label)
        result = value < probability
        if history is not None:
            history.append(RollRecord(label=label, probability=probability, result=result, counter=counter))
        return result, value

    def uniform(self, low: float, high: float, label: str) -> float:
        return low + self.draw(label) * (high - low)

    def pick_index(self, size: int, label: str) -> int:
        if size <= 0:
            raise ValueError("cannot pick from an empty sequence")
        return min(int(self.draw(label) * size), size - 1)

    def choice(self, items: Sequence[T], label: str) -> T:
        return items[self.pick_index(len(items), label)]

    def weighted_index(self, weights: Sequence[float], label: str) -> int:
        total = sum(weights)
        if total <= 0:
            raise ValueError("weights must sum to a positive value")
        target = self.draw(label) * total
        running = 0.0
        for index, weight in enumerate(weights):
            running += weight
            if target < running:
                return index
        return len(weights) - 1

    def shuffle(self, items: Sequence[T], label: str) -> list[T]:
        """Fisher-Yates shuffle into a new list; consumes ``len(items) - 1`` draws."""
        shuffled = list(items)
        for i in range(len(shuffled) - 1, 0, -1):
            j = self.pick_index(i + 1, label)
            shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
        return shuffled


def create_rng(seed: str) -> RandomState:
    return RandomState(seed=seed)
