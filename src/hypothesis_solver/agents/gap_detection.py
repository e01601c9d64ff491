"""
Gap detection agents.

A gap detector returns the open, required gaps that block the current
turn. Returning a non-empty list suspends the turn until the caller fills
the gaps.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from hypothesis_solver.models.llm_client import OracleBase
from hypothesis_solver.models.response_parsing import (
    STRICT_FORMAT,
    extract_marked,
    format_constraints,
    format_context,
)
from hypothesis_solver.structure import Gap, Problem

logger = logging.getLogger(__name__)


class GapDetector(ABC):
    """Abstract base class for gap detectors."""

    @abstractmethod
    def detect(self, problem: Problem) -> list[Gap]:
        """
        Find the gaps that must be answered before reasoning continues.

        Args:
            problem: Problem to inspect. Detectors may add new gaps to it.

        Returns:
            Open, required gaps (empty when nothing blocks the turn).
        """
        ...


class StaticGapDetector(GapDetector):
    """Reports only gaps that were declared up front."""

    def detect(self, problem: Problem) -> list[Gap]:
        return problem.open_gaps()


class OracleGapDetector(GapDetector):
    """
    Asks the oracle what is missing when no declared gaps are open.

    New gap keys are added to the problem; keys that already exist as gaps
    or known facts are ignored.
    """

    DETECTION_PROMPT = """Identify the important information that is missing to solve the problem.

Problem: {statement}

Known information:
{known}

Constraints:
{constraints}

If nothing is missing, answer only "COMPLETE".
Otherwise write one item per line in exactly this format:
GAP: key | question

Example:
GAP: team_size | How many people are on the team?
GAP: budget | What is the budget?"""

    def __init__(self, oracle: OracleBase) -> None:
        self._oracle = oracle

    def detect(self, problem: Problem) -> list[Gap]:
        open_gaps = problem.open_gaps()
        if open_gaps:
            return open_gaps

        prompt = self.DETECTION_PROMPT.format(
            statement=problem.statement,
            known=format_context(problem.known) or "(none)",
            constraints=format_constraints(problem.constraints),
        ) + STRICT_FORMAT

        response = self._oracle.call(prompt)
        if response is None or "COMPLETE" in response.content:
            return []

        for item in extract_marked(response.content, "GAP"):
            key, sep, question = item.partition("|")
            if sep:
                key = key.strip().replace("`", "")
                question = question.strip()
            else:
                key = item.split()[0] if item.split() else ""
                question = item
            if not key or problem.has_gap(key) or key in problem.known:
                continue
            problem.add_gap(Gap(key=key, question=question))
            logger.debug(f"Detected gap '{key}': {question}")

        return problem.open_gaps()
