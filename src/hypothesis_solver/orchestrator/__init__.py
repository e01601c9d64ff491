"""
Orchestrator module for running solver turns.
"""

from hypothesis_solver.orchestrator.schemas import (
    GapRequest,
    TurnFailure,
    TurnResult,
    TurnResultType,
    TurnSolution,
)
from hypothesis_solver.orchestrator.solver_engine import SolverEngine, SolverStrategies

__all__ = [
    "GapRequest",
    "SolverEngine",
    "SolverStrategies",
    "TurnFailure",
    "TurnResult",
    "TurnResultType",
    "TurnSolution",
]
