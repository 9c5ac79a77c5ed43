"""
RNG Stream - Seeded, counter-indexed deterministic randomness.

Two kinds of draws exist:
- Gameplay draws go through RngState. Each consumes the next counter value,
  and roll()/roll_weighted() append an RngRoll to the caller's log.
- Generation draws go through keyed_draw(). They are a pure function of
  (seed, entity_id, role) and never touch the counter, so world content does
  not depend on the order in which areas are materialized.

Replaying the same seed with the same action sequence reproduces every value.
"""

from __future__ import annotations
from dataclasses import dataclass
from hashlib import blake2b
from typing import Sequence, TypeVar

T = TypeVar("T")

_SCALE = float(1 << 64)


def _hash_unit(text: str) -> float:
    digest = blake2b(text.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big") / _SCALE


def draw(seed: str, counter: int) -> float:
    """Value in [0, 1) for a given seed and counter."""
    return _hash_unit(f"{seed}:{counter}")


def keyed_draw(seed: str, entity_id: str, role: str) -> float:
    """Order-independent value in [0, 1) for world generation."""
    return _hash_unit(f"{seed}|{entity_id}|{role}")


def keyed_choice(seed: str, entity_id: str, role: str, weights: Sequence[float]) -> int:
    """Pick an index proportional to weights using a keyed draw."""
    total = sum(weights)
    target = keyed_draw(seed, entity_id, role) * total
    cumulative = 0.0
    for index, weight in enumerate(weights):
        cumulative += weight
        if target < cumulative:
            return index
    return len(weights) - 1


def keyed_shuffle(seed: str, entity_id: str, role: str, items: Sequence[T]) -> list[T]:
    """Deterministic ordering of items, keyed per item rather than by position."""
    return sorted(items, key=lambda item: (keyed_draw(seed, entity_id, f"{role}:{item}"), str(item)))


@dataclass(frozen=True)
class RngRoll:
    """One logged gameplay draw."""
    label: str
    probability: float
    result: bool
    counter_before: int

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "probability": self.probability,
            "result": self.result,
            "counter_before": self.counter_before,
        }


@dataclass
class RngState:
    """
    Seed plus the monotonically increasing draw counter.

    Lives inside WorldState so a snapshot captures the exact stream position.
    """
    seed: str
    counter: int = 0

    def _next(self) -> tuple[float, int]:
        counter_before = self.counter
        value = draw(self.seed, counter_before)
        self.counter += 1
        return value, counter_before

    def draw_float(self) -> float:
        """Internal draw: consumes the counter, not logged."""
        value, _ = self._next()
        return value

    def roll(self, probability: float, label: str, log: list[RngRoll]) -> bool:
        """Single Bernoulli trial; appends the roll to log."""
        value, counter_before = self._next()
        result = value < probability
        log.append(RngRoll(label, probability, result, counter_before))
        return result

    def roll_weighted(
        self,
        entries: Sequence[tuple[T, float]],
        label: str,
        log: list[RngRoll],
    ) -> T:
        """
        Select one entry proportional to its weight.

        Draws once and logs one record per candidate so the full distribution
        stays auditable. Every record shares the same counter_before.
        """
        if not entries:
            raise ValueError("roll_weighted needs at least one entry")

        value, counter_before = self._next()
        total = sum(weight for _, weight in entries)
        target = value * total

        winner_index = len(entries) - 1
        cumulative = 0.0
        for index, (_, weight) in enumerate(entries):
            cumulative += weight
            if target < cumulative:
                winner_index = index
                break

        for index, (entry, weight) in enumerate(entries):
            log.append(RngRoll(
                label=f"{label}:{entry}",
                probability=weight / total if total else 0.0,
                result=index == winner_index,
                counter_before=counter_before,
            ))
        return entries[winner_index][0]
