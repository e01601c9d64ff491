"""
Structure module: the solver's data model.

Confidence, evidence, hypotheses, gaps and the Problem aggregate that owns
them. Independent of strategies and policy.
"""

from hypothesis_solver.structure.confidence import Confidence, aggregate_confidence, clamp_unit
from hypothesis_solver.structure.entities import (
    AutoResolve,
    Constraint,
    Evidence,
    Gap,
    GapStatus,
    Hypothesis,
    HypothesisStatus,
    KnownFact,
    Solution,
)
from hypothesis_solver.structure.problem import GapStats, Problem

__all__ = [
    "AutoResolve",
    "Confidence",
    "Constraint",
    "Evidence",
    "Gap",
    "GapStats",
    "GapStatus",
    "Hypothesis",
    "HypothesisStatus",
    "KnownFact",
    "Problem",
    "Solution",
    "aggregate_confidence",
    "clamp_unit",
]
