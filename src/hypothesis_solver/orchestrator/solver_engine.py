"""
Solver engine.

Advances a Problem one turn at a time: re-evaluate earlier hypotheses
when known facts change, ask for missing information, decompose, generate
and evaluate hypotheses, then synthesize and verify a solution.

The engine holds only strategies and policy. All state lives on the
Problem, so one engine can drive any number of problems.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict

from hypothesis_solver.agents import (
    ConfidenceAwareResolver,
    ConstraintVerifier,
    ContinuationJudge,
    Decomposer,
    ExpectedValueJudge,
    GapDetector,
    GapResolver,
    HypothesisGenerator,
    OracleConstraintVerifier,
    OracleGapDetector,
    OracleHypothesisGenerator,
    OracleSynthesizer,
    SolutionMerger,
    Synthesizer,
    ThresholdDecomposer,
    WeakestLinkMerger,
)
from hypothesis_solver.config import SolverPolicy
from hypothesis_solver.models.llm_client import LLMClient, OracleBase
from hypothesis_solver.orchestrator.schemas import (
    GapRequest,
    TurnFailure,
    TurnResult,
    TurnSolution,
)
from hypothesis_solver.reasoning import (
    DeltaReEvaluation,
    EvaluationResult,
    EvidenceEvaluator,
    HypothesisSelection,
    IndependenceWeightedEvaluator,
    ReEvaluationResult,
    ReEvaluationStrategy,
)
from hypothesis_solver.structure import (
    Confidence,
    Gap,
    GapStatus,
    HypothesisStatus,
    KnownFact,
    Problem,
    Solution,
)

logger = logging.getLogger(__name__)


class SolverStrategies(BaseModel):
    """The collaborators a SolverEngine delegates to."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    gap_detection: GapDetector
    gap_resolution: GapResolver
    decomposition: Decomposer
    hypothesis_generation: HypothesisGenerator
    evidence_evaluation: EvidenceEvaluator
    constraint_verification: ConstraintVerifier
    synthesis: Synthesizer
    merge: SolutionMerger
    continuation: ContinuationJudge
    re_evaluation: ReEvaluationStrategy
    hypothesis_selection: HypothesisSelection | None = None


class SolverEngine:
    """
    Turn-based hypothesis solver.

    Every strategy and the policy can be swapped independently. Strategies
    left unset fall back to oracle-backed defaults sharing one oracle.
    """

    def __init__(
        self,
        oracle: OracleBase | None = None,
        policy: SolverPolicy | None = None,
        *,
        gap_detection: GapDetector | None = None,
        gap_resolution: GapResolver | None = None,
        decomposition: Decomposer | None = None,
        hypothesis_generation: HypothesisGenerator | None = None,
        evidence_evaluation: EvidenceEvaluator | None = None,
        constraint_verification: ConstraintVerifier | None = None,
        synthesis: Synthesizer | None = None,
        merge: SolutionMerger | None = None,
        continuation: ContinuationJudge | None = None,
        re_evaluation: ReEvaluationStrategy | None = None,
        hypothesis_selection: HypothesisSelection | None = None,
    ) -> None:
        """
        Initialize the solver engine.

        Args:
            oracle: Oracle shared by the default strategies. Creates an
                Ollama client if None.
            policy: Solver thresholds. Loads defaults (and ``SOLVER_*``
                environment overrides) if None.
            hypothesis_selection: Strategy used to rank hypotheses before
                synthesis. Ranks by confidence if None.
        """
        self._oracle = oracle or LLMClient()
        self._policy = policy or SolverPolicy()
        self._strategies = SolverStrategies(
            gap_detection=gap_detection or OracleGapDetector(self._oracle),
            gap_resolution=gap_resolution or ConfidenceAwareResolver(),
            decomposition=decomposition or ThresholdDecomposer(self._oracle),
            hypothesis_generation=hypothesis_generation or OracleHypothesisGenerator(self._oracle),
            evidence_evaluation=evidence_evaluation or IndependenceWeightedEvaluator(self._oracle),
            constraint_verification=constraint_verification or OracleConstraintVerifier(self._oracle),
            synthesis=synthesis or OracleSynthesizer(self._oracle),
            merge=merge or WeakestLinkMerger(self._oracle),
            continuation=continuation or ExpectedValueJudge(),
            re_evaluation=re_evaluation or DeltaReEvaluation(),
            hypothesis_selection=hypothesis_selection,
        )

    @property
    def strategies(self) -> SolverStrategies:
        """Get the configured strategies."""
        return self._strategies

    @property
    def policy(self) -> SolverPolicy:
        """Get the solver policy."""
        return self._policy

    # ------------------------------------------------------------------
    # Turn
    # ------------------------------------------------------------------

    def turn(self, problem: Problem) -> TurnResult:
        """
        Run one turn on ``problem``.

        Args:
            problem: Problem to advance. Mutated in place.

        Returns:
            GapRequest when information is missing (answer the gaps and call
            ``turn`` again), TurnSolution when a solution was produced, or
            TurnFailure when no hypotheses could be generated.
        """
        s = self._strategies
        policy = self._policy

        problem.turn_count += 1
        turn_id = problem.turn_count
        logger.info(f"Turn {turn_id} started: {problem.statement[:60]}")

        changed_keys = problem.changed_known_keys()
        problem.snapshot_known()

        re_eval_result = ReEvaluationResult()
        if changed_keys and problem.hypotheses:
            re_eval_result = s.re_evaluation.re_evaluate(problem, policy, changed_keys)
            logger.info(
                f"Re-evaluated after changes to {changed_keys}: "
                f"updated={re_eval_result.updated} superseded={re_eval_result.superseded}"
            )

        # Gap phase
        if problem.gap_rounds < policy.max_gap_rounds:
            gaps = s.gap_detection.detect(problem)
            if gaps:
                problem.gap_rounds += 1
                logger.info(f"Turn {turn_id} suspended on {len(gaps)} gaps (round {problem.gap_rounds})")
                return GapRequest(gaps=gaps, problem=problem)

        # Decomposition phase
        if not problem.sub_problems and s.decomposition.should(problem, policy):
            subs = s.decomposition.decompose(problem)
            if subs:
                problem.sub_problems = subs
                sub_solutions = [self._solve_sub(sp, 1) for sp in subs]
                merged = s.merge.merge(sub_solutions, problem)
                if merged is not None:
                    merged.turn_id = turn_id
                    merged.constraint_results = s.constraint_verification.verify(
                        merged, problem.constraints, problem
                    )
                    problem.solutions.append(merged)
                    continuation = s.continuation.judge(merged, problem, policy)
                    logger.info(f"Turn {turn_id} solved through {len(subs)} sub-problems")
                    return TurnSolution(
                        solution=merged,
                        sub_solutions=sub_solutions,
                        problem=problem,
                        continuation=continuation,
                        changed_keys=changed_keys,
                        re_eval_result=re_eval_result,
                    )
                logger.info("Merge produced nothing; continuing without decomposition")

        # Generation phase
        existing = problem.active_hypotheses()
        new_hypotheses = s.hypothesis_generation.generate(problem, policy, existing)
        for h in new_hypotheses:
            h.turn_id = turn_id
            h.status = HypothesisStatus.ACTIVE

        if not new_hypotheses and not existing:
            logger.warning(f"Turn {turn_id} failed: no hypotheses")
            return TurnFailure(message="failed to generate hypotheses", problem=problem)

        # Evaluation phase
        eval_result = EvaluationResult()
        if new_hypotheses:
            eval_result = s.evidence_evaluation.evaluate_batch(new_hypotheses, problem, policy)
        injected = self._inject_gaps(problem, eval_result.discovered_gaps)

        # Accumulation
        problem.hypotheses.extend(new_hypotheses)
        pruned = problem.prune_hypotheses(policy.max_accumulated_hypotheses)
        if pruned:
            logger.info(f"Pruned {pruned} hypotheses beyond the accumulation cap")

        # Ranking and synthesis
        ranked = problem.active_hypotheses()
        if s.hypothesis_selection is not None:
            ranked = s.hypothesis_selection.rank(ranked, policy)
        else:
            ranked.sort(key=lambda h: h.confidence.value, reverse=True)

        solution = s.synthesis.synthesize(ranked, problem)
        solution.turn_id = turn_id
        solution.constraint_results = s.constraint_verification.verify(
            solution, problem.constraints, problem
        )
        problem.solutions.append(solution)
        continuation = s.continuation.judge(solution, problem, policy)

        logger.info(
            f"Turn {turn_id} solved: {len(new_hypotheses)} new, {len(ranked)} live, "
            f"confidence={solution.confidence.value:.2f}"
        )
        return TurnSolution(
            solution=solution,
            problem=problem,
            continuation=continuation,
            hypotheses=ranked,
            new_hypotheses=new_hypotheses,
            pruned_count=pruned,
            changed_keys=changed_keys,
            re_eval_result=re_eval_result,
            eval_result=eval_result,
            discovered_gaps=injected,
        )

    def _inject_gaps(self, problem: Problem, discovered: list[Gap]) -> list[Gap]:
        """Add gaps discovered during evaluation, filling inferred answers at once."""
        injected: list[Gap] = []
        for gap in discovered:
            if len(injected) >= self._policy.max_mid_turn_gaps:
                break
            if problem.has_gap(gap.key) or gap.key in problem.known:
                continue
            problem.add_gap(gap)
            injected.append(gap)
            if gap.auto_resolve is not None:
                confidence = gap.auto_resolve.confidence
                if confidence is None:
                    confidence = self._policy.inferred_confidence
                problem.fill(gap.key, gap.auto_resolve.value, confidence, source="inferred")
            logger.debug(f"Injected gap '{gap.key}' (auto_resolve={gap.auto_resolve is not None})")
        return injected

    def _solve_sub(self, problem: Problem, depth: int) -> Solution:
        """
        Solve a sub-problem without user interaction.

        Sub-problems that qualify for decomposition are split again, one
        level deeper, while ``depth < policy.max_sub_depth``. A sub-problem
        at the bound is solved directly. Only ``max_sub_depth == 0`` yields
        the depth-limit placeholder.
        """
        s = self._strategies
        policy = self._policy

        if depth > policy.max_sub_depth:
            return Solution(
                content=f"depth limit: {problem.statement}",
                confidence=Confidence(value=0.3, volatility=0.8, basis="depth_limit"),
            )

        if depth < policy.max_sub_depth and s.decomposition.should(problem, policy):
            subs = s.decomposition.decompose(problem)
            if subs:
                problem.sub_problems = subs
                merged = s.merge.merge([self._solve_sub(sp, depth + 1) for sp in subs], problem)
                if merged is not None:
                    problem.solutions.append(merged)
                    return merged

        hypotheses = s.hypothesis_generation.generate(problem, policy, [])
        if not hypotheses:
            return Solution(
                content=f"no hypotheses for: {problem.statement}",
                confidence=Confidence(value=0.1, volatility=1.0, basis="empty"),
            )

        s.evidence_evaluation.evaluate_batch(hypotheses, problem, policy)
        hypotheses.sort(key=lambda h: h.confidence.value, reverse=True)
        problem.hypotheses.extend(hypotheses)

        solution = s.synthesis.synthesize(hypotheses, problem)
        problem.solutions.append(solution)
        return solution

    # ------------------------------------------------------------------
    # Resuming after a gap request
    # ------------------------------------------------------------------

    def answer_gap(self, problem: Problem, key: str, user_input: str) -> KnownFact:
        """
        Answer a gap and store the resulting known fact.

        Args:
            problem: Problem the gap belongs to.
            key: Gap key.
            user_input: The user's answer.

        Returns:
            The stored fact.

        Raises:
            KeyError: If the problem has no gap with this key.
        """
        gap = problem.get_gap(key)
        if gap is None:
            raise KeyError(key)
        fact = self._strategies.gap_resolution.resolve(gap, user_input, problem)
        return problem.fill(key, fact)

    def mark_unanswerable(self, problem: Problem, key: str) -> GapStatus:
        """
        Record that the user cannot answer a gap.

        Returns:
            The status the gap resolution strategy assigned.

        Raises:
            KeyError: If the problem has no gap with this key.
            ValueError: If the gap is no longer open.
        """
        gap = problem.get_gap(key)
        if gap is None:
            raise KeyError(key)
        if gap.status != GapStatus.OPEN:
            raise ValueError(f"Gap '{key}' is already {gap.status.value}")
        status = self._strategies.gap_resolution.handle_unanswerable(gap, problem)
        problem.set_gap_status(key, status)
        return status
