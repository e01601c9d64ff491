"""Confidence model and independence-aware evidence aggregation.

A confidence is never a certainty: it is a bounded estimate (``value``)
paired with how unsure we are about that estimate (``volatility``) and a
short provenance string (``basis``).
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from hypothesis_solver.structure.entities import Evidence

# Pseudo-count that controls how fast volatility shrinks with evidence.
VOLATILITY_PRIOR = 5


def clamp_unit(value: float) -> float:
    """Clamp a number into [0, 1]."""
    return min(1.0, max(0.0, float(value)))


class Confidence(BaseModel):
    """Value/volatility/basis triple attached to hypotheses, evidence and solutions."""

    model_config = ConfigDict(validate_assignment=True)

    value: float = Field(default=0.0, description="Estimated confidence (0-1)")
    volatility: float = Field(
        default=1.0,
        description="Uncertainty about the estimate itself (0-1)",
    )
    basis: str = Field(default="initial", description="Free-text provenance")

    @field_validator("value", "volatility", mode="before")
    @classmethod
    def _clamp(cls, v: float) -> float:
        return clamp_unit(v)

    def settled(self, threshold: float = 0.7, volatility_threshold: float = 0.4) -> bool:
        """Check whether the estimate is both high enough and stable enough."""
        return self.value >= threshold and self.volatility < volatility_threshold


def aggregate_confidence(
    evidence: Iterable[Evidence],
    same_group_weight: float = 1.0,
) -> Confidence:
    """
    Aggregate evidence into a single confidence.

    Evidence is walked in accumulation order. The first item of every
    independence group counts with weight 1.0; every later item of the same
    group counts with ``same_group_weight``.

    Args:
        evidence: Evidence items in accumulation order.
        same_group_weight: Weight for repeated items within a group.

    Returns:
        A freshly built Confidence (basis is overwritten, never appended).
    """
    items = list(evidence)
    if not items:
        return Confidence(value=0.0, volatility=1.0, basis="no evidence")

    group_counts: dict[str, int] = {}
    sup = ag = 0.0
    sup_n = ag_n = 0

    for e in items:
        group_counts[e.independence_group] = group_counts.get(e.independence_group, 0) + 1
        weight = 1.0 if group_counts[e.independence_group] == 1 else same_group_weight
        weighted = e.confidence.value * weight
        if e.supports:
            sup += weighted
            sup_n += 1
        else:
            ag += weighted
            ag_n += 1

    total = sup + ag
    n = len(items)
    return Confidence(
        value=sup / total if total > 0 else 0.0,
        volatility=max(0.0, 1.0 - n / (n + VOLATILITY_PRIOR)),
        basis=f"{sup_n} sup {ag_n} contra",
    )
