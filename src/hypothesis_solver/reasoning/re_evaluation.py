"""Re-evaluation strategies.

Decide which existing hypotheses must be recomputed when known facts
change between turns. Invoked by the engine only when at least one known
key changed and hypotheses exist.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Sequence

from pydantic import BaseModel, Field

from hypothesis_solver.config import SolverPolicy
from hypothesis_solver.reasoning.evidence import apply_known_confidence
from hypothesis_solver.structure import Hypothesis, HypothesisStatus, Problem

logger = logging.getLogger(__name__)

_DECAY_SUFFIX_RE = re.compile(r" \(decay:[\d.]+ age:\d+\)$")


class ReEvaluationResult(BaseModel):
    """Summary of one re-evaluation pass."""

    updated: int = Field(default=0, ge=0, description="Hypotheses recomputed")
    superseded: int = Field(default=0, ge=0, description="Hypotheses newly superseded")
    delta: float = Field(default=0.0, ge=0.0, description="Sum of absolute confidence changes")


def _supersede_if_weak(hypothesis: Hypothesis, policy: SolverPolicy) -> bool:
    if hypothesis.confidence.value < policy.supersede_threshold:
        hypothesis.status = HypothesisStatus.SUPERSEDED
        return True
    return False


class ReEvaluationStrategy(ABC):
    """Abstract base class for re-evaluation strategies."""

    @abstractmethod
    def re_evaluate(
        self,
        problem: Problem,
        policy: SolverPolicy,
        changed_keys: Sequence[str],
    ) -> ReEvaluationResult:
        """
        Revisit existing hypotheses after known facts changed.

        Args:
            problem: Problem whose hypotheses are revisited.
            policy: Solver policy.
            changed_keys: Known keys that are new or changed since the last turn.

        Returns:
            Counts of updated and superseded hypotheses plus total confidence delta.
        """
        ...


class NoOpReEvaluation(ReEvaluationStrategy):
    """Never revisits anything."""

    def re_evaluate(
        self,
        problem: Problem,
        policy: SolverPolicy,
        changed_keys: Sequence[str],
    ) -> ReEvaluationResult:
        return ReEvaluationResult()


class DeltaReEvaluation(ReEvaluationStrategy):
    """
    Recompute only hypotheses whose evidence mentions a changed fact.

    An evidence item mentions a fact when the changed key or the fact's
    current value occurs in its content (plain substring match).
    """

    @staticmethod
    def _mentions_changed(hypothesis: Hypothesis, problem: Problem, changed_keys: Sequence[str]) -> bool:
        for e in hypothesis.evidence:
            for key in changed_keys:
                fact = problem.known.get(key)
                if fact is None:
                    continue
                if key in e.content or (fact.value and fact.value in e.content):
                    return True
        return False

    def re_evaluate(
        self,
        problem: Problem,
        policy: SolverPolicy,
        changed_keys: Sequence[str],
    ) -> ReEvaluationResult:
        result = ReEvaluationResult()
        if not changed_keys:
            return result

        for h in problem.active_hypotheses():
            if not self._mentions_changed(h, problem, changed_keys):
                continue

            old_value = h.confidence.value
            h.status = HypothesisStatus.REVISED
            apply_known_confidence(h, problem, policy)
            h.update_confidence(policy)

            result.updated += 1
            result.delta += abs(h.confidence.value - old_value)
            if _supersede_if_weak(h, policy):
                result.superseded += 1

        logger.debug(
            f"Delta re-evaluation: updated={result.updated} superseded={result.superseded} "
            f"delta={result.delta:.3f}"
        )
        return result


class DecayReEvaluation(ReEvaluationStrategy):
    """
    Decay confidence of hypotheses from earlier turns.

    Confidence is multiplied by ``hypothesis_decay_rate ** age`` where age is
    the number of turns since creation. Hypotheses from the current turn are
    left alone.
    """

    def re_evaluate(
        self,
        problem: Problem,
        policy: SolverPolicy,
        changed_keys: Sequence[str],
    ) -> ReEvaluationResult:
        result = ReEvaluationResult()
        current_turn = problem.turn_count or 1

        for h in problem.active_hypotheses():
            age = current_turn - h.turn_id
            if age <= 0:
                continue

            old_value = h.confidence.value
            decay = policy.hypothesis_decay_rate**age
            h.confidence.value = old_value * decay
            base = _DECAY_SUFFIX_RE.sub("", h.confidence.basis)
            h.confidence.basis = f"{base} (decay:{decay:.2f} age:{age})"

            result.updated += 1
            result.delta += abs(h.confidence.value - old_value)
            if _supersede_if_weak(h, policy):
                result.superseded += 1

        logger.debug(f"Decay re-evaluation: updated={result.updated} superseded={result.superseded}")
        return result
