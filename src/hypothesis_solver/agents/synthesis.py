"""
Synthesis agents.

Turn a ranked list of live hypotheses into a single Solution.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from hypothesis_solver.models.llm_client import OracleBase
from hypothesis_solver.models.response_parsing import format_context
from hypothesis_solver.structure import Confidence, Hypothesis, Problem, Solution


def best_confidence(hypotheses: Sequence[Hypothesis], basis: str) -> Confidence:
    """Confidence of the most confident hypothesis (0/1 when none is above zero)."""
    value, volatility = 0.0, 1.0
    for h in hypotheses:
        if h.confidence.value > value:
            value, volatility = h.confidence.value, h.confidence.volatility
    return Confidence(value=value, volatility=volatility, basis=basis)


class Synthesizer(ABC):
    """Abstract base class for synthesizers."""

    @abstractmethod
    def synthesize(self, hypotheses: Sequence[Hypothesis], problem: Problem) -> Solution:
        """
        Build a solution from ranked hypotheses.

        Args:
            hypotheses: Live hypotheses, best first.
            problem: Problem context.

        Returns:
            Solution whose basis references (not copies) the given hypotheses.
        """
        ...


class OracleSynthesizer(Synthesizer):
    """
    Asks the oracle for a recommendation grounded in the evaluated hypotheses.

    The solution's confidence is that of the best hypothesis. When the
    oracle fails the top claim becomes the content.
    """

    SYNTHESIS_PROMPT = """Based on the evaluated hypotheses, propose the best solution.

Problem: {statement}

Evaluated hypotheses:
{hypotheses}

Known information:
{known}

Combining hypotheses is allowed. State the grounds explicitly."""

    def __init__(self, oracle: OracleBase) -> None:
        self._oracle = oracle

    @staticmethod
    def _describe(hypotheses: Sequence[Hypothesis]) -> str:
        lines: list[str] = []
        for i, h in enumerate(hypotheses, start=1):
            lines.append(f"{i}. {h.claim} (confidence: {h.confidence.value:.2f}, {h.confidence.basis})")
            for e in h.evidence:
                direction = "support" if e.supports else "contra"
                lines.append(f"   - [{direction} {e.confidence.value:.1f}] {e.content}")
        return "\n".join(lines)

    def synthesize(self, hypotheses: Sequence[Hypothesis], problem: Problem) -> Solution:
        prompt = self.SYNTHESIS_PROMPT.format(
            statement=problem.statement,
            hypotheses=self._describe(hypotheses) or "(none)",
            known=format_context(problem.known) or "(none)",
        )
        response = self._oracle.call(prompt)

        if response is not None:
            content = response.content
        else:
            content = hypotheses[0].claim if hypotheses else ""

        return Solution(
            content=content,
            confidence=best_confidence(hypotheses, f"{len(hypotheses)} hypotheses"),
            basis=list(hypotheses),
        )
