"""
Pydantic schemas for the solver's entity model.

Defines known facts, gaps, constraints, evidence, hypotheses and
solutions. The Problem aggregate that owns them lives in
``hypothesis_solver.structure.problem``.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from hypothesis_solver.structure.confidence import Confidence, aggregate_confidence

if TYPE_CHECKING:
    from hypothesis_solver.config import SolverPolicy


class GapStatus(str, Enum):
    """Lifecycle status of a gap."""

    OPEN = "open"
    ANSWERED = "answered"
    SKIPPED = "skipped"
    UNANSWERABLE = "unanswerable"


class HypothesisStatus(str, Enum):
    """Lifecycle status of a hypothesis."""

    ACTIVE = "active"
    REVISED = "revised"
    SUPERSEDED = "superseded"  # terminal


class KnownFact(BaseModel):
    """An established input to the problem, carrying its own confidence."""

    model_config = ConfigDict(frozen=True)

    value: str = Field(..., description="Fact text")
    confidence: float = Field(default=0.9, ge=0.0, le=1.0, description="Confidence in the fact")
    source: str = Field(default="user", description="Provenance tag (user, given, inferred)")


class AutoResolve(BaseModel):
    """Inferred answer attached to a gap discovered mid-turn."""

    value: str = Field(..., description="Inferred value")
    confidence: float | None = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="Confidence of the inference (policy default when None)",
    )


class Gap(BaseModel):
    """A missing piece of information blocking confident reasoning."""

    key: str = Field(..., description="Key, unique within a problem")
    question: str = Field(default="", description="Question to ask for the missing information")
    required: bool = Field(default=True, description="Whether the gap blocks the turn")
    status: GapStatus = Field(default=GapStatus.OPEN, description="Current gap status")
    auto_resolve: AutoResolve | None = Field(default=None, description="Optional inferred answer")

    def model_post_init(self, __context: Any) -> None:
        if not self.question:
            self.question = f"{self.key}?"


class Constraint(BaseModel):
    """A condition the solution must satisfy."""

    description: str = Field(..., description="Human-readable constraint")
    verify: Callable[..., bool] | None = Field(
        default=None,
        description="Optional local check called as verify(solution, problem)",
    )


class Evidence(BaseModel):
    """A single supporting or contradicting observation owned by one hypothesis."""

    content: str = Field(default="", description="Observation text")
    supports: bool = Field(default=True, description="True if it supports the hypothesis")
    confidence: Confidence = Field(
        default_factory=lambda: Confidence(value=0.5, basis="default"),
        description="Confidence of this observation",
    )
    source_id: str = Field(default="unknown", description="Oracle call that produced it")
    independence_group: str = Field(default="default", description="Correlation tag")
    original_confidence: float | None = Field(
        default=None,
        description="Pre-discount confidence value, captured once by known-fact propagation",
    )


class Hypothesis(BaseModel):
    """A candidate claim with accumulated evidence and a confidence estimate."""

    hypothesis_id: UUID = Field(default_factory=uuid4, description="Unique hypothesis id")
    claim: str = Field(..., description="Claim text")
    evidence: list[Evidence] = Field(default_factory=list, description="Evidence in accumulation order")
    confidence: Confidence = Field(default_factory=Confidence, description="Current confidence")
    turn_id: int = Field(default=0, description="Turn in which the hypothesis was created")
    status: HypothesisStatus = Field(default=HypothesisStatus.ACTIVE, description="Lifecycle status")
    eval_count: int = Field(default=0, ge=0, description="Times selected for evaluation")

    @property
    def is_live(self) -> bool:
        """Active and revised hypotheses take part in ranking and synthesis."""
        return self.status in (HypothesisStatus.ACTIVE, HypothesisStatus.REVISED)

    def add_evidence(self, evidence: Evidence) -> None:
        """Append evidence, preserving accumulation order."""
        self.evidence.append(evidence)

    def update_confidence(self, policy: SolverPolicy | None = None) -> None:
        """
        Recompute confidence from the accumulated evidence.

        This is the only place a hypothesis's confidence is derived from its
        evidence. Without a policy no same-group discount is applied.
        """
        same_group_weight = policy.same_group_weight if policy is not None else 1.0
        self.confidence = aggregate_confidence(self.evidence, same_group_weight)


class Solution(BaseModel):
    """A synthesized answer together with its constraint check results."""

    content: str = Field(default="", description="Solution text")
    confidence: Confidence = Field(default_factory=Confidence, description="Solution confidence")
    basis: list[Hypothesis] = Field(
        default_factory=list,
        description="Hypotheses the solution was derived from (shared, not owned)",
    )
    constraint_results: dict[str, bool] = Field(
        default_factory=dict,
        description="Constraint description -> satisfied",
    )
    turn_id: int = Field(default=0, description="Turn that produced the solution")

    def satisfies_all(self) -> bool:
        """Check that every verified constraint passed."""
        return all(self.constraint_results.values())
