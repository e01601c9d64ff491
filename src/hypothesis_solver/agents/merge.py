"""
Sub-solution merge agents.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence

from hypothesis_solver.models.llm_client import OracleBase
from hypothesis_solver.structure import Confidence, Hypothesis, Problem, Solution

logger = logging.getLogger(__name__)


class SolutionMerger(ABC):
    """Abstract base class for sub-solution mergers."""

    @abstractmethod
    def merge(self, sub_solutions: Sequence[Solution], parent: Problem) -> Solution | None:
        """
        Merge sub-problem solutions into one solution for ``parent``.

        Returns:
            The merged solution, or None when there is nothing to merge.
        """
        ...


class WeakestLinkMerger(SolutionMerger):
    """
    A merged solution is only as strong as its weakest part.

    Confidence is the minimum sub-solution confidence, volatility the
    maximum. Content is merged by the oracle, or joined when it fails.
    """

    MERGE_PROMPT = """Combine the solutions of the sub-problems into one solution.

Problem: {statement}

Sub-solutions:
{contents}

Describe the combined solution."""

    def __init__(self, oracle: OracleBase) -> None:
        self._oracle = oracle

    def merge(self, sub_solutions: Sequence[Solution], parent: Problem) -> Solution | None:
        if not sub_solutions:
            return None

        contents = [s.content for s in sub_solutions]
        basis: list[Hypothesis] = [h for s in sub_solutions for h in s.basis]

        prompt = self.MERGE_PROMPT.format(
            statement=parent.statement,
            contents="\n---\n".join(contents),
        )
        response = self._oracle.call(prompt)

        return Solution(
            content=response.content if response is not None else "\n".join(contents),
            confidence=Confidence(
                value=min(s.confidence.value for s in sub_solutions),
                volatility=max(s.confidence.volatility for s in sub_solutions),
                basis=f"merged:{len(sub_solutions)}",
            ),
            basis=basis,
        )
