"""
Decomposition agents.

Decide whether a problem is complex enough to split, and split it into
independently solvable sub-problems.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from hypothesis_solver.config import SolverPolicy
from hypothesis_solver.models.llm_client import OracleBase
from hypothesis_solver.models.response_parsing import (
    STRICT_FORMAT,
    extract_marked,
    format_context,
)
from hypothesis_solver.structure import Problem

logger = logging.getLogger(__name__)

# Sub-problem statements this short are treated as noise.
MIN_STATEMENT_LENGTH = 5


class Decomposer(ABC):
    """Abstract base class for decomposition strategies."""

    @abstractmethod
    def should(self, problem: Problem, policy: SolverPolicy) -> bool:
        """Check whether ``problem`` should be decomposed."""
        ...

    @abstractmethod
    def decompose(self, problem: Problem) -> list[Problem]:
        """
        Split a problem into sub-problems.

        Sub-problems inherit copies of the parent's known facts and
        constraints.

        Returns:
            Sub-problems, or an empty list when the problem should not be split.
        """
        ...


class NeverDecompose(Decomposer):
    """Never splits."""

    def should(self, problem: Problem, policy: SolverPolicy) -> bool:
        return False

    def decompose(self, problem: Problem) -> list[Problem]:
        return []


class ThresholdDecomposer(Decomposer):
    """Splits problems whose complexity exceeds ``policy.decompose_threshold``."""

    DECOMPOSE_PROMPT = """Split the problem into sub-problems that can be solved independently.
Do not split it if the parts are tightly coupled.

Problem: {statement}

Known information:
{known}

If no split is needed, answer only "NOSPLIT".
Otherwise write one sub-problem per line:
SUB: description of the sub-problem"""

    def __init__(self, oracle: OracleBase) -> None:
        self._oracle = oracle

    def should(self, problem: Problem, policy: SolverPolicy) -> bool:
        return problem.complexity() > policy.decompose_threshold

    def decompose(self, problem: Problem) -> list[Problem]:
        prompt = self.DECOMPOSE_PROMPT.format(
            statement=problem.statement,
            known=format_context(problem.known) or "(none)",
        ) + STRICT_FORMAT

        response = self._oracle.call(prompt)
        if response is None or "NOSPLIT" in response.content:
            return []

        subs = [
            Problem(
                statement=statement,
                known=dict(problem.known),
                constraints=list(problem.constraints),
            )
            for statement in extract_marked(response.content, "SUB")
            if len(statement) > MIN_STATEMENT_LENGTH
        ]
        logger.info(f"Decomposed '{problem.statement[:60]}' into {len(subs)} sub-problems")
        return subs
