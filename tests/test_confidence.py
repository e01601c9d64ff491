import pytest

from hypothesis_solver.structure import Confidence, Evidence, Hypothesis, aggregate_confidence


def _evidence(value: float, supports: bool, group: str) -> Evidence:
    return Evidence(
        content=f"{group}-{value}",
        supports=supports,
        confidence=Confidence(value=value),
        independence_group=group,
    )


@pytest.fixture
def correlated_hypothesis() -> Hypothesis:
    h = Hypothesis(claim="test")
    h.add_evidence(_evidence(0.8, True, "grp-A"))
    h.add_evidence(_evidence(0.7, True, "grp-A"))
    h.add_evidence(_evidence(0.6, True, "grp-A"))
    h.add_evidence(_evidence(0.8, False, "grp-B"))
    h.add_evidence(_evidence(0.7, False, "grp-C"))
    return h


class TestConfidence:
    def test_defaults(self) -> None:
        c = Confidence()
        assert c.value == 0.0
        assert c.volatility == 1.0
        assert c.basis == "initial"

    def test_out_of_range_values_are_clamped(self) -> None:
        c = Confidence(value=1.7, volatility=-0.2)
        assert c.value == 1.0
        assert c.volatility == 0.0

    def test_assignment_is_clamped(self) -> None:
        c = Confidence(value=0.5)
        c.value = -3
        assert c.value == 0.0

    def test_settled(self) -> None:
        assert Confidence(value=0.8, volatility=0.2).settled()
        assert not Confidence(value=0.8, volatility=0.5).settled()
        assert not Confidence(value=0.6, volatility=0.1).settled()
        assert Confidence(value=0.6, volatility=0.1).settled(threshold=0.5)


class TestAggregateConfidence:
    def test_no_evidence(self) -> None:
        c = aggregate_confidence([])
        assert (c.value, c.volatility, c.basis) == (0.0, 1.0, "no evidence")

    def test_same_group_discount(self, correlated_hypothesis: Hypothesis) -> None:
        correlated_hypothesis.update_confidence()
        unweighted = correlated_hypothesis.confidence.value

        weighted = aggregate_confidence(correlated_hypothesis.evidence, same_group_weight=0.3).value

        assert unweighted > 0.5
        assert weighted < unweighted
        assert weighted == pytest.approx(1.19 / (1.19 + 1.5), abs=0.001)
        assert weighted == pytest.approx(0.4424, abs=0.001)

    def test_volatility_shrinks_with_evidence(self, correlated_hypothesis: Hypothesis) -> None:
        c = aggregate_confidence(correlated_hypothesis.evidence)
        assert c.volatility == pytest.approx(1 - 5 / 10)

    def test_basis_counts_directions(self, correlated_hypothesis: Hypothesis) -> None:
        c = aggregate_confidence(correlated_hypothesis.evidence)
        assert c.basis == "3 sup 2 contra"

    def test_zero_weight_evidence(self) -> None:
        c = aggregate_confidence([_evidence(0.0, True, "a"), _evidence(0.0, False, "b")])
        assert c.value == 0.0
