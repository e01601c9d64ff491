"""Hypothesis selection (bandit core).

Selection strategies allocate a limited evaluation budget across competing
hypotheses and order hypotheses for synthesis. Every strategy exposes the
same contract:

- ``init(candidates)`` creates per-round state,
- ``next(candidates, state, policy)`` picks the next hypothesis or None,
- ``update(hypothesis, state)`` records an evaluation (and bumps
  ``eval_count``),
- ``rank(candidates, policy)`` orders candidates without touching them.
"""

from __future__ import annotations

import math
import random
from abc import ABC, abstractmethod
from collections.abc import Sequence
from uuid import UUID

from pydantic import BaseModel, Field

from hypothesis_solver.config import SolverPolicy
from hypothesis_solver.structure import Hypothesis, clamp_unit

# Added to volatility to scale the Thompson sampling spread.
VOLATILITY_SPREAD_OFFSET = 0.5


class SelectionState(BaseModel):
    """Per-round bookkeeping for one selection loop."""

    pulls: dict[UUID, int] = Field(default_factory=dict, description="Evaluations per hypothesis")
    rewards: dict[UUID, float] = Field(default_factory=dict, description="Cumulative observed confidence")
    visited: set[UUID] = Field(default_factory=set, description="Hypotheses evaluated this round")
    total_pulls: int = Field(default=0, ge=0, description="Evaluations across the round")
    alpha: dict[UUID, float] = Field(default_factory=dict, description="Thompson alpha per hypothesis")
    beta: dict[UUID, float] = Field(default_factory=dict, description="Thompson beta per hypothesis")


class HypothesisSelection(ABC):
    """Abstract base class for selection strategies."""

    name: str = "base"

    def init(self, candidates: Sequence[Hypothesis]) -> SelectionState:
        """
        Create state for a new selection round.

        Args:
            candidates: Hypotheses competing for evaluation.

        Returns:
            Fresh selection state.
        """
        return SelectionState(
            pulls={h.hypothesis_id: 0 for h in candidates},
            rewards={h.hypothesis_id: 0.0 for h in candidates},
        )

    @abstractmethod
    def next(
        self,
        candidates: Sequence[Hypothesis],
        state: SelectionState,
        policy: SolverPolicy,
    ) -> Hypothesis | None:
        """
        Pick the next hypothesis to evaluate.

        Returns:
            The chosen hypothesis, or None when nothing is left to pick.
        """
        ...

    def update(self, hypothesis: Hypothesis, state: SelectionState) -> None:
        """
        Record an evaluation of ``hypothesis`` using its current confidence as reward.

        Also increments the hypothesis's persisted ``eval_count``.
        """
        hid = hypothesis.hypothesis_id
        state.pulls[hid] = state.pulls.get(hid, 0) + 1
        state.rewards[hid] = state.rewards.get(hid, 0.0) + hypothesis.confidence.value
        state.total_pulls += 1
        state.visited.add(hid)
        hypothesis.eval_count += 1

    @abstractmethod
    def rank(self, candidates: Sequence[Hypothesis], policy: SolverPolicy) -> list[Hypothesis]:
        """Order candidates best-first. Pure: no state, no mutation."""
        ...


class GreedySelection(HypothesisSelection):
    """Always exploit: evaluate the most confident unvisited hypothesis."""

    name = "greedy"

    def next(
        self,
        candidates: Sequence[Hypothesis],
        state: SelectionState,
        policy: SolverPolicy,
    ) -> Hypothesis | None:
        best: Hypothesis | None = None
        for h in candidates:
            if h.hypothesis_id in state.visited:
                continue
            if best is None or h.confidence.value > best.confidence.value:
                best = h
        return best

    def rank(self, candidates: Sequence[Hypothesis], policy: SolverPolicy) -> list[Hypothesis]:
        return sorted(candidates, key=lambda h: h.confidence.value, reverse=True)


class UCB1Selection(HypothesisSelection):
    """
    Upper confidence bound selection.

    Within a round, never-pulled hypotheses always come first; after that
    the score is ``mean_reward + C * sqrt(ln(N) / n_i)``.

    ``rank`` has no live round to draw on, so it approximates the same score
    from the persisted ``eval_count`` (at least 1) and the current
    confidence. The two paths use different denominators and are not meant
    to agree numerically.
    """

    name = "ucb1"

    def next(
        self,
        candidates: Sequence[Hypothesis],
        state: SelectionState,
        policy: SolverPolicy,
    ) -> Hypothesis | None:
        if not candidates:
            return None

        for h in candidates:
            if state.pulls.get(h.hypothesis_id, 0) == 0:
                return h

        c = policy.exploration_constant
        log_total = math.log(max(state.total_pulls, 1))

        def score(h: Hypothesis) -> float:
            n_i = state.pulls[h.hypothesis_id]
            mean = state.rewards.get(h.hypothesis_id, 0.0) / n_i
            return mean + c * math.sqrt(log_total / n_i)

        return max(candidates, key=score)

    def rank(self, candidates: Sequence[Hypothesis], policy: SolverPolicy) -> list[Hypothesis]:
        if not candidates:
            return []
        c = policy.exploration_constant
        counts = {h.hypothesis_id: max(h.eval_count, 1) for h in candidates}
        log_total = math.log(sum(counts.values()))
        scores = {
            h.hypothesis_id: h.confidence.value + c * math.sqrt(log_total / counts[h.hypothesis_id])
            for h in candidates
        }
        return sorted(candidates, key=lambda h: scores[h.hypothesis_id], reverse=True)


def sample_beta(alpha: float, beta: float, rng: random.Random) -> float:
    """
    Draw from a Normal approximation of Beta(alpha, beta), clamped to [0, 1].

    Mean is ``alpha / (alpha + beta)``; variance follows the Beta formula.
    """
    total = alpha + beta
    mean = alpha / total
    variance = alpha * beta / (total * total * (total + 1.0))
    return clamp_unit(rng.gauss(mean, math.sqrt(variance)))


class ThompsonSelection(HypothesisSelection):
    """
    Thompson sampling over Beta posteriors derived from each hypothesis.

    Volatile hypotheses get a wider sampling spread and are therefore
    explored more often.
    """

    name = "thompson"

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    @staticmethod
    def beta_params(hypothesis: Hypothesis) -> tuple[float, float]:
        """
        Derive Beta parameters from confidence and evaluation count.

        Returns:
            ``(alpha, beta)`` with ``alpha = c*n + 1`` and ``beta = (1-c)*n + 1``
            where ``n = max(eval_count, 1)``.
        """
        n = max(hypothesis.eval_count, 1)
        c = hypothesis.confidence.value
        return c * n + 1.0, (1.0 - c) * n + 1.0

    def init(self, candidates: Sequence[Hypothesis]) -> SelectionState:
        state = super().init(candidates)
        for h in candidates:
            state.alpha[h.hypothesis_id], state.beta[h.hypothesis_id] = self.beta_params(h)
        return state

    def next(
        self,
        candidates: Sequence[Hypothesis],
        state: SelectionState,
        policy: SolverPolicy,
    ) -> Hypothesis | None:
        best: Hypothesis | None = None
        best_sample = -1.0
        for h in candidates:
            hid = h.hypothesis_id
            if hid in state.visited:
                continue
            if hid in state.alpha:
                alpha, beta = state.alpha[hid], state.beta[hid]
            else:
                alpha, beta = self.beta_params(h)
            spread = h.confidence.volatility + VOLATILITY_SPREAD_OFFSET
            sample = sample_beta(alpha / spread, beta / spread, self._rng)
            if sample > best_sample:
                best, best_sample = h, sample
        return best

    def update(self, hypothesis: Hypothesis, state: SelectionState) -> None:
        super().update(hypothesis, state)
        hid = hypothesis.hypothesis_id
        observed = hypothesis.confidence.value
        if hid not in state.alpha:
            state.alpha[hid], state.beta[hid] = self.beta_params(hypothesis)
        if observed > 0.5:
            state.alpha[hid] += observed
        else:
            state.beta[hid] += observed

    def rank(self, candidates: Sequence[Hypothesis], policy: SolverPolicy) -> list[Hypothesis]:
        def mean(h: Hypothesis) -> float:
            alpha, beta = self.beta_params(h)
            return alpha / (alpha + beta)

        return sorted(candidates, key=mean, reverse=True)
