"""Shared fakes for solver tests. No real oracle is ever called."""

from __future__ import annotations

from collections.abc import Callable, Sequence

import pytest

from hypothesis_solver.config import SolverPolicy
from hypothesis_solver.models.llm_client import OracleBase, OracleResponse
from hypothesis_solver.reasoning import EvidenceEvaluator
from hypothesis_solver.structure import Confidence, Evidence, Gap, Hypothesis, Problem

Reply = str | Callable[[str], str | None] | None


class ScriptedOracle(OracleBase):
    """
    Oracle that answers by prompt fragment.

    The first fragment found in the prompt picks the reply; a callable
    reply receives the prompt. Unmatched prompts fail (return None).
    """

    def __init__(self, replies: dict[str, Reply] | None = None) -> None:
        self.replies: dict[str, Reply] = dict(replies or {})
        self.prompts: list[str] = []

    def call(self, prompt: str) -> OracleResponse | None:
        self.prompts.append(prompt)
        call_id = f"fake-call-{len(self.prompts)}"
        for fragment, reply in self.replies.items():
            if fragment in prompt:
                content = reply(prompt) if callable(reply) else reply
                if content is None:
                    return None
                return OracleResponse(content=content, call_id=call_id)
        return None

    def prompts_with(self, fragment: str) -> list[str]:
        return [p for p in self.prompts if fragment in p]


class RecordingEvaluator(EvidenceEvaluator):
    """Adds one supporting evidence item per call and records what it saw."""

    def __init__(self, value: float = 0.7, gaps: Sequence[Gap] = ()) -> None:
        self.value = value
        self.gaps = list(gaps)
        self.seen: list[Hypothesis] = []

    def evaluate(self, hypothesis: Hypothesis, problem: Problem, policy: SolverPolicy) -> list[Gap]:
        self.seen.append(hypothesis)
        hypothesis.add_evidence(
            Evidence(
                content=f"evidence for {hypothesis.claim}",
                confidence=Confidence(value=self.value),
                independence_group=f"call-{len(self.seen)}",
            )
        )
        hypothesis.update_confidence(policy)
        return list(self.gaps)


def make_hypothesis(claim: str, value: float, volatility: float = 0.5, **kwargs) -> Hypothesis:
    """Build a hypothesis with a fixed confidence."""
    return Hypothesis(claim=claim, confidence=Confidence(value=value, volatility=volatility), **kwargs)


@pytest.fixture
def policy() -> SolverPolicy:
    return SolverPolicy()


@pytest.fixture
def oracle() -> ScriptedOracle:
    return ScriptedOracle()
