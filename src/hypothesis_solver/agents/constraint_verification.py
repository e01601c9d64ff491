"""
Constraint verification agents.

Check a solution against the problem's constraints. Results are keyed by
constraint description; constraints that could not be checked are left
out of the result.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Sequence

from hypothesis_solver.models.llm_client import OracleBase
from hypothesis_solver.models.response_parsing import STRICT_FORMAT
from hypothesis_solver.structure import Constraint, Problem, Solution

logger = logging.getLogger(__name__)

# Longest slice of solution content quoted in a verification prompt.
MAX_SOLUTION_CHARS = 2000

_CHECK_RE = re.compile(r"CHECK:\s*(\d+)\|\s*(\w+)")


def run_hooks(solution: Solution, constraints: Sequence[Constraint], problem: Problem) -> dict[str, bool]:
    """
    Evaluate every constraint that carries a local ``verify`` hook.

    A hook that raises is logged and its constraint left out of the result.
    """
    results: dict[str, bool] = {}
    for c in constraints:
        if c.verify is None:
            continue
        try:
            results[c.description] = bool(c.verify(solution, problem))
        except Exception as e:
            logger.warning(f"Constraint hook failed for '{c.description}': {e}")
    return results


class ConstraintVerifier(ABC):
    """Abstract base class for constraint verifiers."""

    @abstractmethod
    def verify(
        self,
        solution: Solution,
        constraints: Sequence[Constraint],
        problem: Problem,
    ) -> dict[str, bool]:
        """
        Verify a solution.

        Args:
            solution: Solution to check.
            constraints: Constraints to check it against.
            problem: Problem context.

        Returns:
            Mapping of constraint description to satisfied.
        """
        ...


class HookConstraintVerifier(ConstraintVerifier):
    """Checks only constraints with a local hook."""

    def verify(
        self,
        solution: Solution,
        constraints: Sequence[Constraint],
        problem: Problem,
    ) -> dict[str, bool]:
        return run_hooks(solution, constraints, problem)


class OracleConstraintVerifier(ConstraintVerifier):
    """
    Asks the oracle to judge constraints without a local hook.

    Hooked constraints are always checked locally and never sent to the
    oracle.
    """

    VERIFY_PROMPT = """Judge whether the solution satisfies each constraint.

Problem: {statement}
Solution:
{solution}

Constraints:
{constraints}

One per line:
CHECK: number|yes or no|reason

Example:
CHECK: 1|yes|Fits the team size
CHECK: 2|no|Likely over budget"""

    def __init__(self, oracle: OracleBase) -> None:
        self._oracle = oracle

    def verify(
        self,
        solution: Solution,
        constraints: Sequence[Constraint],
        problem: Problem,
    ) -> dict[str, bool]:
        results = run_hooks(solution, constraints, problem)
        pending = [c for c in constraints if c.verify is None]
        if not pending:
            return results

        listing = "\n".join(f"{i}. {c.description}" for i, c in enumerate(pending, start=1))
        prompt = self.VERIFY_PROMPT.format(
            statement=problem.statement,
            solution=solution.content[:MAX_SOLUTION_CHARS],
            constraints=listing,
        ) + STRICT_FORMAT

        response = self._oracle.call(prompt)
        if response is None:
            logger.warning("Constraint verification skipped: oracle failed")
            return results

        for line in response.content.splitlines():
            m = _CHECK_RE.search(line)
            if not m:
                continue
            idx = int(m.group(1))
            if 1 <= idx <= len(pending):
                results[pending[idx - 1].description] = m.group(2).lower() == "yes"
        return results
