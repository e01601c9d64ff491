"""
Problem aggregate.

The Problem is the single owner of every collection the solver mutates:
known facts, gaps, constraints, sub-problems, hypotheses and solutions.
Strategies receive it per call and never keep a reference to it.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from hypothesis_solver.structure.entities import (
    Constraint,
    Gap,
    GapStatus,
    Hypothesis,
    HypothesisStatus,
    KnownFact,
    Solution,
)

# Known facts below this confidence count as low-confidence in gap statistics.
LOW_CONFIDENCE_KNOWN = 0.6


class GapStats(BaseModel):
    """Counts used by continuation judgment."""

    unanswerable: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)
    low_confidence_known: int = Field(default=0, ge=0)


class Problem(BaseModel):
    """An open problem and everything the solver has accumulated about it."""

    statement: str = Field(..., description="Problem statement")
    known: dict[str, KnownFact] = Field(default_factory=dict, description="Known facts by key")
    gaps: list[Gap] = Field(default_factory=list, description="Gaps in creation order")
    constraints: list[Constraint] = Field(default_factory=list, description="Constraints")
    sub_problems: list[Problem] = Field(default_factory=list, description="Recorded sub-problems")
    hypotheses: list[Hypothesis] = Field(default_factory=list, description="All hypotheses across turns")
    solutions: list[Solution] = Field(default_factory=list, description="One solution per completed turn")
    turn_count: int = Field(default=0, ge=0, description="Turns started so far")
    gap_rounds: int = Field(default=0, ge=0, description="Gap request rounds so far")
    known_snapshot: dict[str, KnownFact] | None = Field(
        default=None,
        description="Point-in-time copy of known facts used to compute deltas",
    )

    @field_validator("known", mode="before")
    @classmethod
    def _coerce_known(cls, v: Any) -> Any:
        if not isinstance(v, dict):
            return v
        coerced: dict[str, Any] = {}
        for key, fact in v.items():
            if isinstance(fact, (KnownFact, dict)):
                coerced[key] = fact
            else:
                coerced[key] = KnownFact(value=str(fact), confidence=0.9, source="given")
        return coerced

    @field_validator("gaps", mode="before")
    @classmethod
    def _coerce_gaps(cls, v: Any) -> Any:
        if not isinstance(v, list):
            return v
        return [Gap(key=g) if isinstance(g, str) else g for g in v]

    @field_validator("constraints", mode="before")
    @classmethod
    def _coerce_constraints(cls, v: Any) -> Any:
        if not isinstance(v, list):
            return v
        return [Constraint(description=c) if isinstance(c, str) else c for c in v]

    # ------------------------------------------------------------------
    # Gaps
    # ------------------------------------------------------------------

    def open_gaps(self) -> list[Gap]:
        """Get open, required gaps."""
        return [g for g in self.gaps if g.status == GapStatus.OPEN and g.required]

    def has_gaps(self) -> bool:
        return bool(self.open_gaps())

    def has_gap(self, key: str) -> bool:
        return any(g.key == key for g in self.gaps)

    def get_gap(self, key: str) -> Gap | None:
        for g in self.gaps:
            if g.key == key:
                return g
        return None

    def add_gap(self, gap: Gap | str) -> Gap:
        """
        Add a gap.

        Args:
            gap: Gap instance or bare key.

        Returns:
            The stored gap.
        """
        if isinstance(gap, str):
            gap = Gap(key=gap)
        self.gaps.append(gap)
        return gap

    def set_gap_status(self, key: str, status: GapStatus) -> bool:
        """
        Move an open gap to ``status``.

        Gaps that already left the open state keep their status.

        Returns:
            True if a gap changed status.
        """
        changed = False
        for g in self.gaps:
            if g.key == key and g.status == GapStatus.OPEN:
                g.status = status
                changed = True
        return changed

    def gap_stats(self) -> GapStats:
        """Count unanswerable/skipped gaps and low-confidence known facts."""
        return GapStats(
            unanswerable=sum(1 for g in self.gaps if g.status == GapStatus.UNANSWERABLE),
            skipped=sum(1 for g in self.gaps if g.status == GapStatus.SKIPPED),
            low_confidence_known=sum(
                1 for fact in self.known.values() if fact.confidence < LOW_CONFIDENCE_KNOWN
            ),
        )

    def complexity(self) -> int:
        return len(self.gaps) + len(self.constraints) + len(self.sub_problems)

    # ------------------------------------------------------------------
    # Known facts
    # ------------------------------------------------------------------

    def fill(
        self,
        key: str,
        value: KnownFact | str,
        confidence: float = 0.9,
        source: str = "user",
    ) -> KnownFact:
        """
        Store a known fact and mark the matching open gap answered.

        Facts are replaced wholesale, never mutated in place.

        Args:
            key: Fact key (matches a gap key when answering a gap).
            value: Fact text, or a ready-made KnownFact stored as-is.
            confidence: Confidence for a text value.
            source: Provenance for a text value.

        Returns:
            The stored KnownFact.
        """
        if isinstance(value, KnownFact):
            fact = value
        else:
            fact = KnownFact(value=str(value), confidence=confidence, source=source)
        self.known[key] = fact
        for g in self.gaps:
            if g.key == key and g.status == GapStatus.OPEN:
                g.status = GapStatus.ANSWERED
        return fact

    def known_value(self, key: str) -> str | None:
        fact = self.known.get(key)
        return fact.value if fact else None

    def known_confidence(self, key: str) -> float | None:
        fact = self.known.get(key)
        return fact.confidence if fact else None

    def snapshot_known(self) -> None:
        """Take a point-in-time copy of the known facts."""
        # KnownFact is frozen, so a shallow dict copy is a true snapshot.
        self.known_snapshot = dict(self.known)

    def changed_known_keys(self) -> list[str]:
        """
        Get keys that are new or whose value/confidence changed since the snapshot.

        Returns:
            Changed keys in known-fact order; empty before the first snapshot.
        """
        if self.known_snapshot is None:
            return []
        changed: list[str] = []
        for key, fact in self.known.items():
            prev = self.known_snapshot.get(key)
            if prev is None or prev.value != fact.value or prev.confidence != fact.confidence:
                changed.append(key)
        return changed

    # ------------------------------------------------------------------
    # Hypotheses
    # ------------------------------------------------------------------

    def active_hypotheses(self) -> list[Hypothesis]:
        """Get live (active or revised) hypotheses in accumulation order."""
        return [h for h in self.hypotheses if h.is_live]

    def prune_hypotheses(self, max_count: int) -> int:
        """
        Supersede everything beyond the ``max_count`` most confident hypotheses.

        Args:
            max_count: Number of hypotheses allowed to stay live.

        Returns:
            Number of hypotheses newly marked superseded.
        """
        if len(self.hypotheses) <= max_count:
            return 0
        ranked = sorted(self.hypotheses, key=lambda h: h.confidence.value, reverse=True)
        pruned = 0
        for h in ranked[max_count:]:
            if h.status != HypothesisStatus.SUPERSEDED:
                h.status = HypothesisStatus.SUPERSEDED
                pruned += 1
        return pruned
