"""Evidence evaluation.

Evaluators ask the oracle for supporting and contradicting statements,
attach them to a hypothesis as Evidence, propagate low-confidence known
facts into that evidence and recompute the hypothesis's confidence.

``SelectiveEvaluator`` wraps any evaluator with a selection strategy so
that only a budgeted number of hypotheses get evaluated per turn.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Sequence

from pydantic import BaseModel, Field

from hypothesis_solver.config import SolverPolicy
from hypothesis_solver.models.llm_client import OracleBase, OracleResponse
from hypothesis_solver.models.response_parsing import (
    STRICT_FORMAT,
    format_context,
    parse_confidence,
    split_table_cells,
)
from hypothesis_solver.reasoning.selection import HypothesisSelection
from hypothesis_solver.structure import (
    AutoResolve,
    Confidence,
    Evidence,
    Gap,
    Hypothesis,
    Problem,
    clamp_unit,
)

logger = logging.getLogger(__name__)

_EVIDENCE_RE = re.compile(r"EVIDENCE:\s*(\w+)\|([\d.]+)\|\s*(.+)")
_GAP_RE = re.compile(r"^\s*GAP:\s*(.+)")
_DISCOUNT_SUFFIX_RE = re.compile(r"\s*\(low_conf_known:[^)]*\)$")


class EvaluationResult(BaseModel):
    """Outcome of evaluating a batch of hypotheses."""

    discovered_gaps: list[Gap] = Field(
        default_factory=list,
        description="Gaps surfaced by the oracle while evaluating",
    )
    evaluated_count: int = Field(default=0, ge=0, description="Hypotheses actually evaluated")


def apply_known_confidence(hypothesis: Hypothesis, problem: Problem, policy: SolverPolicy) -> None:
    """
    Discount evidence that leans on low-confidence known facts.

    For each evidence item the pre-discount confidence is captured once in
    ``original_confidence``. On every call the discount is rebuilt from
    scratch as the product of the confidences of all known facts below
    ``policy.low_confidence_bound`` whose value or key appears in the
    evidence content, and applied to the captured original. Repeated calls
    with unchanged known facts therefore leave the values unchanged.

    Args:
        hypothesis: Hypothesis whose evidence is discounted in place.
        problem: Problem providing the known facts.
        policy: Solver policy (a ``None`` bound disables the discount).
    """
    bound = policy.low_confidence_bound
    if bound is None:
        return

    low_facts = [(key, fact) for key, fact in problem.known.items() if fact.confidence < bound]

    for e in hypothesis.evidence:
        if e.original_confidence is None:
            e.original_confidence = e.confidence.value

        discount = 1.0
        applied: list[str] = []
        for key, fact in low_facts:
            if (fact.value and fact.value in e.content) or key in e.content:
                discount *= fact.confidence
                applied.append(key)

        e.confidence.value = e.original_confidence * discount
        base = _DISCOUNT_SUFFIX_RE.sub("", e.confidence.basis)
        e.confidence.basis = f"{base} (low_conf_known:{','.join(applied)})" if applied else base


def parse_evidence(text: str, hypothesis: Hypothesis, call_id: str) -> int:
    """
    Parse ``EVIDENCE: support|0.8|text`` lines into evidence on ``hypothesis``.

    Falls back to markdown table rows (``| support | 0.8 | text |``) when no
    marked line is found. All evidence from one oracle call shares the call
    id as its independence group.

    Returns:
        Number of evidence items added.
    """
    added = 0

    def _add(direction: str, conf: float, content: str) -> None:
        nonlocal added
        hypothesis.add_evidence(
            Evidence(
                content=content.strip(),
                supports="support" in direction,
                confidence=Confidence(value=conf, volatility=1.0, basis="oracle_eval"),
                source_id=call_id,
                independence_group=call_id,
            )
        )
        added += 1

    lines = text.splitlines()
    for line in lines:
        m = _EVIDENCE_RE.search(line)
        if m:
            _add(m.group(1).lower(), parse_confidence(m.group(2)), m.group(3))

    if added:
        return added

    for line in lines:
        stripped = line.strip()
        if not stripped.startswith("|") or stripped.startswith("|-") or re.match(r"^\|\s*#", stripped):
            continue
        cells = split_table_cells(stripped)
        if len(cells) < 3:
            continue
        direction = cells[0].lower()
        if "support" in direction or "contra" in direction:
            _add(direction, parse_confidence(cells[1]), cells[2])

    return added


def parse_discovered_gaps(text: str) -> list[Gap]:
    """
    Parse ``GAP: key | question [| guess | confidence]`` lines.

    A guess turns into an ``auto_resolve`` payload. Lines without a key are
    dropped.
    """
    gaps: list[Gap] = []
    for line in text.splitlines():
        m = _GAP_RE.match(line)
        if not m:
            continue
        parts = [p.strip() for p in m.group(1).split("|")]
        key = parts[0].replace("`", "").strip()
        if not key:
            continue
        question = parts[1] if len(parts) > 1 and parts[1] else f"{key}?"
        auto_resolve = None
        if len(parts) > 2 and parts[2]:
            confidence = None
            if len(parts) > 3 and parts[3]:
                confidence = clamp_unit(parse_confidence(parts[3]))
            auto_resolve = AutoResolve(value=parts[2], confidence=confidence)
        gaps.append(Gap(key=key, question=question, auto_resolve=auto_resolve))
    return gaps


class EvidenceEvaluator(ABC):
    """Abstract base class for evidence evaluators."""

    @abstractmethod
    def evaluate(self, hypothesis: Hypothesis, problem: Problem, policy: SolverPolicy) -> list[Gap]:
        """
        Evaluate one hypothesis, appending evidence and updating its confidence.

        A failed oracle call leaves the hypothesis untouched.

        Args:
            hypothesis: Hypothesis to evaluate.
            problem: Problem context.
            policy: Solver policy.

        Returns:
            Gaps discovered while evaluating (usually empty).
        """
        ...

    def evaluate_batch(
        self,
        hypotheses: Sequence[Hypothesis],
        problem: Problem,
        policy: SolverPolicy,
    ) -> EvaluationResult:
        """Evaluate every hypothesis in order."""
        result = EvaluationResult()
        for h in hypotheses:
            result.discovered_gaps.extend(self.evaluate(h, problem, policy))
            h.eval_count += 1
            result.evaluated_count += 1
        return result


class OracleEvidenceEvaluator(EvidenceEvaluator):
    """Shared oracle plumbing for evidence evaluators."""

    EVIDENCE_PROMPT = """List the evidence that supports and contradicts the hypothesis.

Problem: {statement}
Hypothesis: {claim}

Known information:
{known}

One item per line:
EVIDENCE: support|0.8|description of supporting evidence
EVIDENCE: contradict|0.6|description of contradicting evidence

If the judgment depends on information that is missing, add one line per missing item:
GAP: key | question | best guess | confidence of the guess
(the guess and its confidence are optional)

Example:
EVIDENCE: support|0.7|The team is small, so coordination overhead is low
EVIDENCE: contradict|0.5|Future scaling may be constrained"""

    def __init__(self, oracle: OracleBase) -> None:
        self._oracle = oracle

    def _query(self, hypothesis: Hypothesis, problem: Problem) -> OracleResponse | None:
        prompt = self.EVIDENCE_PROMPT.format(
            statement=problem.statement,
            claim=hypothesis.claim,
            known=format_context(problem.known) or "(none)",
        ) + STRICT_FORMAT
        return self._oracle.call(prompt)

    def _collect(self, hypothesis: Hypothesis, problem: Problem) -> list[Gap] | None:
        response = self._query(hypothesis, problem)
        if response is None:
            logger.debug(f"No evidence for '{hypothesis.claim[:60]}': oracle failed")
            return None
        added = parse_evidence(response.content, hypothesis, response.call_id)
        logger.debug(f"Parsed {added} evidence items for '{hypothesis.claim[:60]}' ({response.call_id})")
        return parse_discovered_gaps(response.content)


class SimpleCountEvaluator(OracleEvidenceEvaluator):
    """Counts every evidence item at full weight."""

    def evaluate(self, hypothesis: Hypothesis, problem: Problem, policy: SolverPolicy) -> list[Gap]:
        gaps = self._collect(hypothesis, problem)
        if gaps is None:
            return []
        hypothesis.update_confidence()
        return gaps


class IndependenceWeightedEvaluator(OracleEvidenceEvaluator):
    """Discounts correlated evidence and evidence built on shaky known facts."""

    def evaluate(self, hypothesis: Hypothesis, problem: Problem, policy: SolverPolicy) -> list[Gap]:
        gaps = self._collect(hypothesis, problem)
        if gaps is None:
            return []
        apply_known_confidence(hypothesis, problem, policy)
        hypothesis.update_confidence(policy)
        return gaps


class SelectiveEvaluator(EvidenceEvaluator):
    """
    Budget-limited evaluation driven by a selection strategy.

    Evaluates at most ``policy.eval_budget`` hypotheses per batch (all of
    them when the budget is unset), letting the selection strategy decide
    which ones.
    """

    def __init__(self, inner: EvidenceEvaluator, selection: HypothesisSelection) -> None:
        self._inner = inner
        self._selection = selection

    @property
    def selection(self) -> HypothesisSelection:
        return self._selection

    def evaluate(self, hypothesis: Hypothesis, problem: Problem, policy: SolverPolicy) -> list[Gap]:
        return self._inner.evaluate(hypothesis, problem, policy)

    def evaluate_batch(
        self,
        hypotheses: Sequence[Hypothesis],
        problem: Problem,
        policy: SolverPolicy,
    ) -> EvaluationResult:
        candidates = list(hypotheses)
        result = EvaluationResult()
        if not candidates:
            return result

        budget = len(candidates)
        if policy.eval_budget is not None:
            budget = min(policy.eval_budget, budget)

        state = self._selection.init(candidates)
        while result.evaluated_count < budget:
            chosen = self._selection.next(candidates, state, policy)
            if chosen is None:
                break
            result.discovered_gaps.extend(self._inner.evaluate(chosen, problem, policy))
            self._selection.update(chosen, state)
            result.evaluated_count += 1

        logger.info(
            f"Selective evaluation ({self._selection.name}): "
            f"{result.evaluated_count}/{len(candidates)} hypotheses"
        )
        return result
