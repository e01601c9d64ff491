"""
Agents module containing the solver's swappable collaborators.

Each agent handles one phase of a turn behind an abstract base class.
"""

from hypothesis_solver.agents.constraint_verification import (
    ConstraintVerifier,
    HookConstraintVerifier,
    OracleConstraintVerifier,
)
from hypothesis_solver.agents.continuation import (
    AlwaysStopJudge,
    ContinuationAdvice,
    ContinuationJudge,
    ExpectedValueJudge,
)
from hypothesis_solver.agents.decomposition import Decomposer, NeverDecompose, ThresholdDecomposer
from hypothesis_solver.agents.gap_detection import GapDetector, OracleGapDetector, StaticGapDetector
from hypothesis_solver.agents.gap_resolution import (
    ConfidenceAwareResolver,
    DirectResolver,
    GapResolver,
)
from hypothesis_solver.agents.hypothesis_generation import (
    AdversarialGenerator,
    BiasAwareGenerator,
    DeltaAwareGenerator,
    HypothesisGenerator,
    OracleHypothesisGenerator,
)
from hypothesis_solver.agents.merge import SolutionMerger, WeakestLinkMerger
from hypothesis_solver.agents.synthesis import OracleSynthesizer, Synthesizer

__all__ = [
    "AdversarialGenerator",
    "AlwaysStopJudge",
    "BiasAwareGenerator",
    "ConfidenceAwareResolver",
    "ConstraintVerifier",
    "ContinuationAdvice",
    "ContinuationJudge",
    "Decomposer",
    "DeltaAwareGenerator",
    "DirectResolver",
    "ExpectedValueJudge",
    "GapDetector",
    "GapResolver",
    "HookConstraintVerifier",
    "HypothesisGenerator",
    "NeverDecompose",
    "OracleConstraintVerifier",
    "OracleGapDetector",
    "OracleHypothesisGenerator",
    "OracleSynthesizer",
    "SolutionMerger",
    "StaticGapDetector",
    "Synthesizer",
    "ThresholdDecomposer",
    "WeakestLinkMerger",
]
