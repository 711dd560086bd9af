"""Declarative modifier tables shared by the risk and target calculators.

A modifier set is a baseline plus a list of modifiers. Each modifier reads one
value from an evaluation context and contributes a delta:

* ``BandTable``: numeric bands, first matching band wins.
* ``LevelTable``: categorical value -> delta.
* ``Compound``: a fixed delta when a predicate over the context holds.

``ModifierSet.evaluate`` sums the applicable deltas and clamps, returning
``(value, details)`` where ``details`` maps each modifier name to the delta it
contributed. All tables are frozen module-level data, created once at import.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

_INF = float("inf")


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp a value to [lo, hi]."""
    return max(lo, min(hi, value))


def round1(value: float) -> float:
    """Round to one decimal place, halves rounding up."""
    return math.floor(value * 10 + 0.5) / 10


def apply_modifiers(baseline: float, deltas: Iterable[float], lo: float, hi: float) -> float:
    """Sum applicable deltas onto a baseline, then clamp."""
    return clamp(baseline + sum(deltas), lo, hi)


class Modifier(Protocol):
    name: str

    def delta(self, ctx: Any) -> float: ...


# ---------------------------------------------------------------------------
# Bands
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Band:
    """A numeric interval carrying a delta.

    Lower bound is inclusive and upper bound exclusive unless the
    ``*_inclusive`` flags say otherwise.
    """

    delta: float
    lo: float = -_INF
    hi: float = _INF
    lo_inclusive: bool = True
    hi_inclusive: bool = False

    def matches(self, value: float) -> bool:
        above = value >= self.lo if self.lo_inclusive else value > self.lo
        below = value <= self.hi if self.hi_inclusive else value < self.hi
        return above and below

    @classmethod
    def at_least(cls, threshold: float, delta: float) -> Band:
        return cls(delta, lo=threshold)

    @classmethod
    def above(cls, threshold: float, delta: float) -> Band:
        return cls(delta, lo=threshold, lo_inclusive=False)

    @classmethod
    def below(cls, threshold: float, delta: float) -> Band:
        return cls(delta, hi=threshold)

    @classmethod
    def at_most(cls, threshold: float, delta: float) -> Band:
        return cls(delta, hi=threshold, hi_inclusive=True)

    @classmethod
    def between(cls, lo: float, hi: float, delta: float) -> Band:
        """Closed interval [lo, hi]."""
        return cls(delta, lo=lo, hi=hi, hi_inclusive=True)

    @classmethod
    def always(cls, delta: float) -> Band:
        return cls(delta)


@dataclass(frozen=True)
class BandTable:
    """Numeric lookup: the first band matching ``key(ctx)`` supplies the delta."""

    name: str
    key: Callable[[Any], float]
    bands: tuple[Band, ...]
    # Optional gate, e.g. a sex-specific age table
    applies: Callable[[Any], bool] | None = None

    def delta(self, ctx: Any) -> float:
        if self.applies is not None and not self.applies(ctx):
            return 0.0
        value = self.key(ctx)
        for band in self.bands:
            if band.matches(value):
                return band.delta
        return 0.0


@dataclass(frozen=True)
class LevelTable:
    """Categorical lookup: ``deltas[key(ctx)]``, zero when absent."""

    name: str
    key: Callable[[Any], Any]
    deltas: Mapping[Any, float] = field(default_factory=dict)

    def delta(self, ctx: Any) -> float:
        return self.deltas.get(self.key(ctx), 0.0)


@dataclass(frozen=True)
class Compound:
    """A co-occurrence bonus (or relief) applied when ``when(ctx)`` holds."""

    name: str
    when: Callable[[Any], bool]
    amount: float

    def delta(self, ctx: Any) -> float:
        return self.amount if self.when(ctx) else 0.0


# ---------------------------------------------------------------------------
# Modifier sets
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ModifierSet:
    """A baseline, its modifiers and the clamp range of the result."""

    name: str
    modifiers: tuple[Modifier, ...]
    baseline: float = 0.0
    lo: float = 0.0
    hi: float = 100.0

    def evaluate(self, ctx: Any) -> tuple[float, dict[str, float]]:
        """Return ``(clamped value, {modifier name: delta})``.

        Modifiers contributing zero are left out of the details.
        """
        details: dict[str, float] = {}
        for modifier in self.modifiers:
            delta = modifier.delta(ctx)
            if delta:
                details[modifier.name] = details.get(modifier.name, 0.0) + delta
        value = apply_modifiers(self.baseline, details.values(), self.lo, self.hi)
        return value, details

    def value(self, ctx: Any) -> float:
        return self.evaluate(ctx)[0]


@dataclass(frozen=True)
class Adjustment:
    """A post-clamp adjustment: adds ``amount`` and re-clamps to [floor, cap]."""

    name: str
    when: Callable[[Any], bool]
    amount: float
    cap: float = 100.0
    floor: float = 0.0

    def apply(self, value: float, ctx: Any) -> float:
        if not self.when(ctx):
            return value
        return clamp(value + self.amount, self.floor, self.cap)


def apply_adjustments(
    value: float,
    adjustments: Iterable[Adjustment],
    ctx: Any,
    details: dict[str, float] | None = None,
) -> float:
    """Apply adjustments in order, recording the effective delta of each."""
    for adjustment in adjustments:
        before = value
        value = adjustment.apply(value, ctx)
        if details is not None and value != before:
            details[adjustment.name] = details.get(adjustment.name, 0.0) + (value - before)
    return value
