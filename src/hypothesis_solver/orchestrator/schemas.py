"""
Pydantic schemas for the orchestrator module.

Defines the results a turn can end with: a request for missing
information, a solution, or a failure.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from hypothesis_solver.agents.continuation import ContinuationAdvice
from hypothesis_solver.reasoning.evidence import EvaluationResult
from hypothesis_solver.reasoning.re_evaluation import ReEvaluationResult
from hypothesis_solver.structure import Gap, Hypothesis, Problem, Solution


class TurnResultType(str, Enum):
    """How a turn ended."""

    GAPS = "gaps"
    SOLUTION = "solution"
    ERROR = "error"


class GapRequest(BaseModel):
    """The turn is suspended until the listed gaps are answered."""

    type: Literal[TurnResultType.GAPS] = TurnResultType.GAPS
    gaps: list[Gap] = Field(..., description="Open, required gaps to ask about")
    problem: Problem = Field(..., description="Problem the turn ran on")


class TurnSolution(BaseModel):
    """A completed turn."""

    type: Literal[TurnResultType.SOLUTION] = TurnResultType.SOLUTION
    solution: Solution = Field(..., description="Solution recorded this turn")
    problem: Problem = Field(..., description="Problem the turn ran on")
    continuation: ContinuationAdvice = Field(..., description="Advice on running another turn")
    sub_solutions: list[Solution] = Field(
        default_factory=list,
        description="Sub-problem solutions when the turn decomposed the problem",
    )
    hypotheses: list[Hypothesis] = Field(
        default_factory=list,
        description="Live hypotheses in the order passed to synthesis",
    )
    new_hypotheses: list[Hypothesis] = Field(
        default_factory=list,
        description="Hypotheses generated this turn",
    )
    pruned_count: int = Field(default=0, ge=0, description="Hypotheses superseded by the accumulation cap")
    changed_keys: list[str] = Field(
        default_factory=list,
        description="Known keys new or changed since the previous turn",
    )
    re_eval_result: ReEvaluationResult = Field(
        default_factory=ReEvaluationResult,
        description="Outcome of re-evaluating earlier hypotheses",
    )
    eval_result: EvaluationResult = Field(
        default_factory=EvaluationResult,
        description="Outcome of evaluating the new hypotheses",
    )
    discovered_gaps: list[Gap] = Field(
        default_factory=list,
        description="Gaps injected mid-turn",
    )


class TurnFailure(BaseModel):
    """The turn could not produce anything."""

    type: Literal[TurnResultType.ERROR] = TurnResultType.ERROR
    message: str = Field(..., description="What went wrong")
    problem: Problem = Field(..., description="Problem the turn ran on")


TurnResult = GapRequest | TurnSolution | TurnFailure
