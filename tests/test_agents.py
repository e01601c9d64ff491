"""
Tests for the oracle-backed collaborators and the local strategies.
"""

import pytest

from conftest import ScriptedOracle, make_hypothesis
from hypothesis_solver.agents import (
    AdversarialGenerator,
    AlwaysStopJudge,
    BiasAwareGenerator,
    ConfidenceAwareResolver,
    DeltaAwareGenerator,
    DirectResolver,
    ExpectedValueJudge,
    HookConstraintVerifier,
    NeverDecompose,
    OracleConstraintVerifier,
    OracleGapDetector,
    OracleHypothesisGenerator,
    OracleSynthesizer,
    StaticGapDetector,
    ThresholdDecomposer,
    WeakestLinkMerger,
)
from hypothesis_solver.config import SolverPolicy
from hypothesis_solver.structure import (
    Confidence,
    Constraint,
    Gap,
    GapStatus,
    KnownFact,
    Problem,
    Solution,
)


@pytest.fixture
def problem() -> Problem:
    return Problem(
        statement="Should we split the monolith?",
        known={"team_size": "8"},
        constraints=["Stay within budget"],
    )


class TestGapDetection:
    def test_static_returns_open_gaps(self, problem: Problem) -> None:
        problem.add_gap("budget")
        assert [g.key for g in StaticGapDetector().detect(problem)] == ["budget"]

    def test_oracle_returns_open_gaps_without_asking(self, problem: Problem) -> None:
        oracle = ScriptedOracle()
        problem.add_gap("budget")
        assert [g.key for g in OracleGapDetector(oracle).detect(problem)] == ["budget"]
        assert oracle.prompts == []

    def test_oracle_adds_new_gaps(self, problem: Problem) -> None:
        oracle = ScriptedOracle(
            {
                "COMPLETE": (
                    "GAP: budget | What is the budget?\n"
                    "GAP: `team_size` | Team size?\n"
                    "GAP: deadline | When is the deadline?\n"
                )
            }
        )

        gaps = OracleGapDetector(oracle).detect(problem)

        assert [g.key for g in gaps] == ["budget", "deadline"]
        assert gaps[0].question == "What is the budget?"
        assert "Stay within budget" in oracle.prompts[0]

    def test_oracle_complete(self, problem: Problem) -> None:
        oracle = ScriptedOracle({"COMPLETE": "COMPLETE"})
        assert OracleGapDetector(oracle).detect(problem) == []
        assert problem.gaps == []

    def test_oracle_failure(self, problem: Problem) -> None:
        assert OracleGapDetector(ScriptedOracle()).detect(problem) == []


class TestGapResolution:
    @pytest.fixture
    def gap(self) -> Gap:
        return Gap(key="env")

    @pytest.mark.parametrize(
        "answer, confidence",
        [
            ("Docker", 0.9),
            ("definitely Docker", 1.0),
            ("probably Docker", 0.7),
            ("Docker for now", 0.5),
            ("not sure but Docker", 0.3),
            ("my guess is Docker", 0.3),
        ],
    )
    def test_confidence_markers(self, gap: Gap, problem: Problem, answer: str, confidence: float) -> None:
        fact = ConfidenceAwareResolver().resolve(gap, answer, problem)
        assert fact.confidence == confidence
        assert fact.value == answer
        assert fact.source == "user"

    def test_leading_explicit_confidence(self, gap: Gap, problem: Problem) -> None:
        fact = ConfidenceAwareResolver().resolve(gap, "0.6: Docker", problem)
        assert fact == KnownFact(value="Docker", confidence=0.6, source="user")

    def test_trailing_explicit_confidence(self, gap: Gap, problem: Problem) -> None:
        fact = ConfidenceAwareResolver().resolve(gap, "Docker (0.4)", problem)
        assert fact.value == "Docker"
        assert fact.confidence == 0.4

    def test_direct(self, gap: Gap, problem: Problem) -> None:
        fact = DirectResolver().resolve(gap, "probably Docker", problem)
        assert fact.confidence == 0.9

    def test_unanswerable_is_skipped(self, gap: Gap, problem: Problem) -> None:
        assert ConfidenceAwareResolver().handle_unanswerable(gap, problem) == GapStatus.SKIPPED


class TestDecomposition:
    def test_threshold(self, problem: Problem, policy: SolverPolicy) -> None:
        decomposer = ThresholdDecomposer(ScriptedOracle())
        assert not decomposer.should(problem, policy)
        for key in ("a", "b", "c"):
            problem.add_gap(key)
        assert decomposer.should(problem, policy)

    def test_decompose(self, problem: Problem) -> None:
        oracle = ScriptedOracle({"SUB:": "SUB: Pick the data store\nSUB: tiny\nSUB: Plan the team split"})

        subs = ThresholdDecomposer(oracle).decompose(problem)

        assert [s.statement for s in subs] == ["Pick the data store", "Plan the team split"]
        assert subs[0].known == problem.known
        assert subs[0].known is not problem.known
        assert subs[0].constraints[0].description == "Stay within budget"

    def test_nosplit(self, problem: Problem) -> None:
        oracle = ScriptedOracle({"SUB:": "NOSPLIT"})
        assert ThresholdDecomposer(oracle).decompose(problem) == []

    def test_never(self, problem: Problem, policy: SolverPolicy) -> None:
        assert not NeverDecompose().should(problem, policy)
        assert NeverDecompose().decompose(problem) == []


class TestHypothesisGeneration:
    REPLY = "HYPOTHESIS: Keep the monolith\nHYPOTHESIS: Split\nHYPOTHESIS: Extract one service first"

    def test_oracle_generator_drops_short_claims(self, problem: Problem, policy: SolverPolicy) -> None:
        oracle = ScriptedOracle({"HYPOTHESIS:": self.REPLY})

        hypotheses = OracleHypothesisGenerator(oracle).generate(problem, policy, [])

        assert [h.claim for h in hypotheses] == ["Keep the monolith", "Extract one service first"]
        assert "At most 5" in oracle.prompts[0]

    def test_bias_aware_prompt(self, problem: Problem, policy: SolverPolicy) -> None:
        oracle = ScriptedOracle({"HYPOTHESIS:": self.REPLY})
        BiasAwareGenerator(oracle).generate(problem, policy, [])
        assert "status quo bias" in oracle.prompts[0]

    def test_delta_aware_lists_existing(self, problem: Problem, policy: SolverPolicy) -> None:
        oracle = ScriptedOracle({"HYPOTHESIS:": self.REPLY})
        existing = [make_hypothesis("Keep the monolith", 0.6)]

        DeltaAwareGenerator(oracle).generate(problem, policy, existing)

        assert "1. Keep the monolith (conf: 0.60, status: active)" in oracle.prompts[0]

    def test_adversarial_adds_counters(self, problem: Problem) -> None:
        oracle = ScriptedOracle(
            {
                "COUNTER:": "COUNTER: 1|Monolith slows every team down\nCOUNTER: 2|no",
                "HYPOTHESIS:": self.REPLY,
            }
        )
        policy = SolverPolicy(max_hypotheses=3)

        hypotheses = AdversarialGenerator(oracle).generate(problem, policy, [])

        assert [h.claim for h in hypotheses] == [
            "Keep the monolith",
            "Extract one service first",
            "[counter] Monolith slows every team down",
        ]

    def test_adversarial_trims(self, problem: Problem) -> None:
        oracle = ScriptedOracle(
            {
                "COUNTER:": "COUNTER: 1|Monolith slows every team down\nCOUNTER: 2|One service is not enough",
                "HYPOTHESIS:": self.REPLY,
            }
        )
        hypotheses = AdversarialGenerator(oracle).generate(problem, SolverPolicy(max_hypotheses=3), [])
        assert len(hypotheses) == 3

    def test_generation_failure(self, problem: Problem, policy: SolverPolicy) -> None:
        assert OracleHypothesisGenerator(ScriptedOracle()).generate(problem, policy, []) == []


class TestConstraintVerification:
    def test_oracle_checks(self, problem: Problem) -> None:
        problem.constraints.append(Constraint(description="Keep latency low"))
        oracle = ScriptedOracle({"CHECK:": "CHECK: 1|yes|fits\nCHECK: 2|no|slower\nCHECK: 9|yes|bogus"})

        results = OracleConstraintVerifier(oracle).verify(Solution(content="split"), problem.constraints, problem)

        assert results == {"Stay within budget": True, "Keep latency low": False}

    def test_hooks_are_local(self, problem: Problem) -> None:
        hooked = Constraint(description="Mentions Docker", verify=lambda s, p: "Docker" in s.content)
        oracle = ScriptedOracle({"CHECK:": "CHECK: 1|yes|fits"})

        results = OracleConstraintVerifier(oracle).verify(
            Solution(content="Use Docker"), [hooked, *problem.constraints], problem
        )

        assert results == {"Mentions Docker": True, "Stay within budget": True}
        assert "Mentions Docker" not in oracle.prompts[0]

    def test_failing_hook_is_left_out(self, problem: Problem, caplog: pytest.LogCaptureFixture) -> None:
        def broken(solution, problem):
            raise RuntimeError("hook backend down")

        constraints = [
            Constraint(description="broken", verify=broken),
            Constraint(description="short", verify=lambda s, p: len(s.content) < 5),
        ]

        results = HookConstraintVerifier().verify(Solution(content="ok"), constraints, problem)

        assert results == {"short": True}
        assert "hook backend down" in caplog.text

    def test_hook_verifier(self, problem: Problem) -> None:
        hooked = Constraint(description="short", verify=lambda s, p: len(s.content) < 5)
        results = HookConstraintVerifier().verify(Solution(content="too long"), [hooked, *problem.constraints], problem)
        assert results == {"short": False}

    def test_no_constraints(self, problem: Problem) -> None:
        oracle = ScriptedOracle()
        assert OracleConstraintVerifier(oracle).verify(Solution(), [], problem) == {}
        assert oracle.prompts == []


class TestSynthesisAndMerge:
    def test_synthesis_takes_best_confidence(self, problem: Problem) -> None:
        best = make_hypothesis("best", 0.8, volatility=0.3)
        other = make_hypothesis("other", 0.4, volatility=0.9)
        oracle = ScriptedOracle({"Evaluated hypotheses:": "Go with best"})

        solution = OracleSynthesizer(oracle).synthesize([best, other], problem)

        assert solution.content == "Go with best"
        assert solution.confidence.value == 0.8
        assert solution.confidence.volatility == 0.3
        assert solution.confidence.basis == "2 hypotheses"
        assert solution.basis[0] is best

    def test_synthesis_falls_back_to_top_claim(self, problem: Problem) -> None:
        solution = OracleSynthesizer(ScriptedOracle()).synthesize([make_hypothesis("top", 0.5)], problem)
        assert solution.content == "top"

    def test_weakest_link(self, problem: Problem) -> None:
        h1, h2 = make_hypothesis("a", 0.9), make_hypothesis("b", 0.4)
        subs = [
            Solution(content="one", confidence=Confidence(value=0.9, volatility=0.2), basis=[h1]),
            Solution(content="two", confidence=Confidence(value=0.4, volatility=0.6), basis=[h2]),
        ]

        merged = WeakestLinkMerger(ScriptedOracle()).merge(subs, problem)

        assert merged.content == "one\ntwo"
        assert merged.confidence.value == 0.4
        assert merged.confidence.volatility == 0.6
        assert merged.confidence.basis == "merged:2"
        assert merged.basis == [h1, h2]

    def test_merge_nothing(self, problem: Problem) -> None:
        assert WeakestLinkMerger(ScriptedOracle()).merge([], problem) is None


class TestContinuation:
    @pytest.fixture
    def solution(self) -> Solution:
        return Solution(content="test", confidence=Confidence(value=0.55, volatility=0.35))

    def test_expected_value(self, solution: Solution, policy: SolverPolicy) -> None:
        problem = Problem(
            statement="p",
            known={"a": "plain", "b": KnownFact(value="explicit", confidence=0.5)},
            gaps=["env"],
        )
        problem.fill("env", "Docker", 0.5)
        problem.add_gap(Gap(key="x", status=GapStatus.UNANSWERABLE))
        problem.add_gap(Gap(key="y", status=GapStatus.SKIPPED))

        advice = ExpectedValueJudge().judge(solution, problem, policy)

        assert advice.expected_improvement == pytest.approx(0.19, abs=0.01)
        assert advice.recommend
        assert "'y'" in advice.suggested_action
        assert "skipped=1" in advice.reason

    @pytest.mark.parametrize("skipped, low", [(0, 0), (0, 3), (1, 0), (1, 1), (2, 2)])
    def test_expected_value_formula(self, solution: Solution, skipped: int, low: int) -> None:
        problem = Problem(statement="p")
        for i in range(skipped):
            problem.add_gap(Gap(key=f"s{i}", status=GapStatus.SKIPPED))
        for i in range(low):
            problem.fill(f"k{i}", "v", 0.4)
        policy = SolverPolicy()

        advice = ExpectedValueJudge().judge(solution, problem, policy)

        expected = skipped * 0.08 + low * 0.03
        assert advice.expected_improvement == pytest.approx(expected)
        assert advice.recommend == (advice.expected_improvement >= policy.continuation_threshold)

    def test_volatility_bonus(self, policy: SolverPolicy) -> None:
        volatile = Solution(confidence=Confidence(value=0.5, volatility=0.9))
        advice = ExpectedValueJudge().judge(volatile, Problem(statement="p"), policy)
        assert advice.expected_improvement == pytest.approx(0.05)
        assert not advice.recommend

    def test_low_confidence_suggestion(self, solution: Solution, policy: SolverPolicy) -> None:
        problem = Problem(statement="p")
        problem.fill("budget", "about 10k", 0.4)
        advice = ExpectedValueJudge().judge(solution, problem, policy)
        assert "'budget'" in advice.suggested_action

    def test_always_stop(self, solution: Solution, policy: SolverPolicy) -> None:
        assert not AlwaysStopJudge().judge(solution, Problem(statement="p"), policy).recommend
