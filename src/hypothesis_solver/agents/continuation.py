"""
Continuation judgment.

After each solution the judge advises whether another turn is likely to
improve the answer, and what the user could do to make it so.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from hypothesis_solver.config import SolverPolicy
from hypothesis_solver.structure import GapStatus, Problem, Solution
from hypothesis_solver.structure.problem import LOW_CONFIDENCE_KNOWN

# Expected improvement contributed by each kind of weak spot.
UNANSWERABLE_WEIGHT = 0.05
SKIPPED_WEIGHT = 0.08
LOW_CONFIDENCE_KNOWN_WEIGHT = 0.03
VOLATILITY_BONUS = 0.05


class ContinuationAdvice(BaseModel):
    """Advice on whether to run another turn."""

    recommend: bool = Field(default=False, description="Whether another turn is recommended")
    expected_improvement: float = Field(default=0.0, ge=0.0, description="Estimated gain from another turn")
    reason: str = Field(default="", description="Why the recommendation was made")
    suggested_action: str = Field(default="", description="What the user could do next")


class ContinuationJudge(ABC):
    """Abstract base class for continuation judges."""

    @abstractmethod
    def judge(self, solution: Solution, problem: Problem, policy: SolverPolicy) -> ContinuationAdvice:
        """
        Judge whether another turn is worthwhile.

        Args:
            solution: Solution produced this turn.
            problem: Problem context.
            policy: Solver policy.

        Returns:
            Continuation advice.
        """
        ...


class AlwaysStopJudge(ContinuationJudge):
    """Never recommends another turn."""

    def judge(self, solution: Solution, problem: Problem, policy: SolverPolicy) -> ContinuationAdvice:
        return ContinuationAdvice(reason="always stop")


class ExpectedValueJudge(ContinuationJudge):
    """
    Estimates the improvement another turn could bring.

    Skipped gaps, unanswerable gaps and low-confidence known facts each add
    a fixed amount; a volatile solution adds a bonus. Another turn is
    recommended when the estimate reaches ``policy.continuation_threshold``.
    """

    def judge(self, solution: Solution, problem: Problem, policy: SolverPolicy) -> ContinuationAdvice:
        stats = problem.gap_stats()

        ei = (
            stats.unanswerable * UNANSWERABLE_WEIGHT
            + stats.skipped * SKIPPED_WEIGHT
            + stats.low_confidence_known * LOW_CONFIDENCE_KNOWN_WEIGHT
        )
        if solution.confidence.volatility > policy.volatility_threshold:
            ei += VOLATILITY_BONUS

        suggested = ""
        if stats.skipped:
            key = next(g.key for g in problem.gaps if g.status == GapStatus.SKIPPED)
            suggested = f"Digging into '{key}' is likely to help"
        elif stats.low_confidence_known:
            key, fact = next(
                (k, f) for k, f in problem.known.items() if f.confidence < LOW_CONFIDENCE_KNOWN
            )
            suggested = f"Raising confidence in '{key}' is likely to help (currently {fact.confidence:.1f})"
        elif stats.unanswerable:
            suggested = "Asking the unanswerable questions from a different angle may help"

        return ContinuationAdvice(
            recommend=ei >= policy.continuation_threshold,
            expected_improvement=ei,
            reason=(
                f"unanswerable={stats.unanswerable}, skipped={stats.skipped}, "
                f"low_conf_known={stats.low_confidence_known}, "
                f"volatility={solution.confidence.volatility:.2f}"
            ),
            suggested_action=suggested,
        )
