"""
Reasoning module: evidence evaluation, hypothesis selection and
re-evaluation strategies.
"""

from hypothesis_solver.reasoning.evidence import (
    EvaluationResult,
    EvidenceEvaluator,
    IndependenceWeightedEvaluator,
    SelectiveEvaluator,
    SimpleCountEvaluator,
    apply_known_confidence,
    parse_discovered_gaps,
    parse_evidence,
)
from hypothesis_solver.reasoning.re_evaluation import (
    DecayReEvaluation,
    DeltaReEvaluation,
    NoOpReEvaluation,
    ReEvaluationResult,
    ReEvaluationStrategy,
)
from hypothesis_solver.reasoning.selection import (
    GreedySelection,
    HypothesisSelection,
    SelectionState,
    ThompsonSelection,
    UCB1Selection,
    sample_beta,
)

__all__ = [
    "DecayReEvaluation",
    "DeltaReEvaluation",
    "EvaluationResult",
    "EvidenceEvaluator",
    "GreedySelection",
    "HypothesisSelection",
    "IndependenceWeightedEvaluator",
    "NoOpReEvaluation",
    "ReEvaluationResult",
    "ReEvaluationStrategy",
    "SelectionState",
    "SelectiveEvaluator",
    "SimpleCountEvaluator",
    "ThompsonSelection",
    "UCB1Selection",
    "apply_known_confidence",
    "parse_discovered_gaps",
    "parse_evidence",
    "sample_beta",
]
