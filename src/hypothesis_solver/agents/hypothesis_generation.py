"""
Hypothesis generation agents.

Generators ask the oracle for candidate claims. Existing live hypotheses
are passed in so that generators can steer away from duplicates.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Sequence

from hypothesis_solver.config import SolverPolicy
from hypothesis_solver.models.llm_client import OracleBase
from hypothesis_solver.models.response_parsing import (
    STRICT_FORMAT,
    extract_marked,
    format_constraints,
    format_context,
)
from hypothesis_solver.structure import Hypothesis, Problem

logger = logging.getLogger(__name__)

# Claims this short are treated as noise.
MIN_CLAIM_LENGTH = 5

COUNTER_LABEL = "[counter]"

_COUNTER_RE = re.compile(r"COUNTER:\s*(\d+)\|\s*(.+)")


def claims_to_hypotheses(claims: Sequence[str]) -> list[Hypothesis]:
    """Wrap every claim longer than the noise threshold in a new Hypothesis."""
    return [Hypothesis(claim=claim) for claim in claims if len(claim) > MIN_CLAIM_LENGTH]


class HypothesisGenerator(ABC):
    """Abstract base class for hypothesis generators."""

    @abstractmethod
    def generate(
        self,
        problem: Problem,
        policy: SolverPolicy,
        existing: Sequence[Hypothesis],
    ) -> list[Hypothesis]:
        """
        Generate new candidate hypotheses.

        Args:
            problem: Problem to generate hypotheses for.
            policy: Solver policy (``max_hypotheses`` caps the request).
            existing: Live hypotheses from earlier turns.

        Returns:
            New hypotheses (empty when the oracle failed).
        """
        ...


class OracleHypothesisGenerator(HypothesisGenerator):
    """Plain oracle generation that asks for options beyond the obvious ones."""

    GENERATION_PROMPT = """Generate hypotheses (candidate solutions) for the problem.

Problem: {statement}

Known information:
{known}

Constraints:
{constraints}

Important: include options the user has not considered.
Even when asked to choose between two options, look for a third and a fourth.

At most {max_hypotheses}. One per line:
HYPOTHESIS: description of the hypothesis

Example:
HYPOTHESIS: Adopt a monolithic architecture
HYPOTHESIS: Start with a modular monolith and split it gradually"""

    def __init__(self, oracle: OracleBase) -> None:
        self._oracle = oracle

    def _prompt(self, problem: Problem, policy: SolverPolicy, existing: Sequence[Hypothesis]) -> str:
        return self.GENERATION_PROMPT.format(
            statement=problem.statement,
            known=format_context(problem.known) or "(none)",
            constraints=format_constraints(problem.constraints),
            max_hypotheses=policy.max_hypotheses,
        )

    def generate(
        self,
        problem: Problem,
        policy: SolverPolicy,
        existing: Sequence[Hypothesis],
    ) -> list[Hypothesis]:
        response = self._oracle.call(self._prompt(problem, policy, existing) + STRICT_FORMAT)
        if response is None:
            return []
        hypotheses = claims_to_hypotheses(extract_marked(response.content, "HYPOTHESIS"))
        logger.info(f"Generated {len(hypotheses)} hypotheses ({type(self).__name__})")
        return hypotheses


class BiasAwareGenerator(OracleHypothesisGenerator):
    """Generation with a cognitive-bias checklist in the prompt."""

    BIASES: list[tuple[str, str]] = [
        ("false dichotomy", "when asked A or B, also look for C and D"),
        ("status quo bias", "include doing nothing or keeping the current state"),
        ("anchoring", "check that the first piece of information is not dominating"),
        ("survivorship bias", "generate hypotheses from failure cases too"),
        ("fix-everything bias", "review feedback does not mean fixing everything; "
                                "identify items the context makes unnecessary"),
    ]

    GENERATION_PROMPT = """Generate hypotheses for the problem.

Problem: {statement}

Known information:
{known}
(Items marked [low confidence] are answers the user is unsure about. Do not lean on them as premises.)

Constraints:
{constraints}

Bias checklist:
{biases}

At most {max_hypotheses}. One per line:
HYPOTHESIS: description of the hypothesis"""

    def _prompt(self, problem: Problem, policy: SolverPolicy, existing: Sequence[Hypothesis]) -> str:
        biases = "\n".join(f"- [{name}] {check}" for name, check in self.BIASES)
        return self.GENERATION_PROMPT.format(
            statement=problem.statement,
            known=format_context(problem.known) or "(none)",
            constraints=format_constraints(problem.constraints),
            biases=biases,
            max_hypotheses=policy.max_hypotheses,
        )


class DeltaAwareGenerator(OracleHypothesisGenerator):
    """Lists the hypotheses already considered and asks for new angles."""

    GENERATION_PROMPT = """Generate new hypotheses for the problem.

Problem: {statement}

Known information:
{known}

Constraints:
{constraints}

{existing}
Hypotheses must come from a different perspective or approach than the ones above.
Do not merely rephrase existing hypotheses.

At most {max_hypotheses}. One per line:
HYPOTHESIS: description of the hypothesis"""

    def _prompt(self, problem: Problem, policy: SolverPolicy, existing: Sequence[Hypothesis]) -> str:
        existing_text = ""
        if existing:
            lines = [
                f"{i}. {h.claim} (conf: {h.confidence.value:.2f}, status: {h.status.value})"
                for i, h in enumerate(existing, start=1)
            ]
            existing_text = (
                "Hypotheses already considered (approach from a different angle):\n"
                + "\n".join(lines)
                + "\n"
            )
        return self.GENERATION_PROMPT.format(
            statement=problem.statement,
            known=format_context(problem.known) or "(none)",
            constraints=format_constraints(problem.constraints),
            existing=existing_text,
            max_hypotheses=policy.max_hypotheses,
        )


class AdversarialGenerator(HypothesisGenerator):
    """
    Pairs every generated hypothesis with its strongest counter-hypothesis.

    Counters are requested in a single oracle call and labelled
    ``[counter]``. The combined list is trimmed to ``policy.max_hypotheses``.
    """

    COUNTER_PROMPT = """For each hypothesis below, generate the single most convincing counter-hypothesis.

Problem: {statement}

Hypotheses:
{claims}

One line per hypothesis:
COUNTER: number|description of the counter-hypothesis

Example:
COUNTER: 1|Initial cost is too high for a small company"""

    def __init__(self, oracle: OracleBase, inner: HypothesisGenerator | None = None) -> None:
        self._oracle = oracle
        self._inner = inner or BiasAwareGenerator(oracle)

    def generate(
        self,
        problem: Problem,
        policy: SolverPolicy,
        existing: Sequence[Hypothesis],
    ) -> list[Hypothesis]:
        hypotheses = self._inner.generate(problem, policy, existing)
        if not hypotheses:
            return hypotheses

        claims = "\n".join(f"{i}. {h.claim}" for i, h in enumerate(hypotheses, start=1))
        prompt = self.COUNTER_PROMPT.format(statement=problem.statement, claims=claims) + STRICT_FORMAT

        response = self._oracle.call(prompt)
        if response is not None:
            for line in response.content.splitlines():
                m = _COUNTER_RE.search(line)
                if m and len(m.group(2)) > MIN_CLAIM_LENGTH:
                    hypotheses.append(Hypothesis(claim=f"{COUNTER_LABEL} {m.group(2).strip()}"))

        return hypotheses[: policy.max_hypotheses]
