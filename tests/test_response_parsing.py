from hypothesis_solver.models import extract_marked, format_constraints, format_context, parse_confidence
from hypothesis_solver.reasoning import parse_discovered_gaps, parse_evidence
from hypothesis_solver.structure import Constraint, Hypothesis, KnownFact


class TestExtractMarked:
    def test_prefixed_lines(self) -> None:
        text = "Intro\nHYPOTHESIS: Use a monolith\nHYPOTHESIS:  Use microservices  \nnoise"
        assert extract_marked(text, "HYPOTHESIS") == ["Use a monolith", "Use microservices"]

    def test_table_rows(self) -> None:
        text = "| # | key | question |\n|---|---|---|\n| 1 | `team_size` | How big is the team? |"
        assert extract_marked(text, "GAP") == ["team_size | How big is the team?"]

    def test_list_items(self) -> None:
        text = "1. Adopt a modular monolith\n- Keep the status quo\n2. tiny"
        assert extract_marked(text, "HYPOTHESIS") == ["Adopt a modular monolith", "Keep the status quo"]

    def test_prefixed_lines_win(self) -> None:
        text = "1. numbered item here\nSUB: the real one"
        assert extract_marked(text, "SUB") == ["the real one"]

    def test_empty(self) -> None:
        assert extract_marked(None, "GAP") == []
        assert extract_marked("", "GAP") == []


def test_format_context_marks_confidence() -> None:
    known = {
        "a": KnownFact(value="sure", confidence=0.9),
        "b": KnownFact(value="hmm", confidence=0.7),
        "c": KnownFact(value="guess", confidence=0.3),
    }
    assert format_context(known) == "a: sure\nb: hmm [medium confidence]\nc: guess [low confidence]"


def test_format_constraints() -> None:
    assert format_constraints([]) == "(none)"
    assert format_constraints([Constraint(description="C1"), Constraint(description="C2")]) == "- C1\n- C2"


def test_parse_confidence_falls_back() -> None:
    assert parse_confidence("0.8") == 0.8
    assert parse_confidence("high") == 0.5
    assert parse_confidence("x", default=0.1) == 0.1


class TestParseEvidence:
    def test_marked_lines(self) -> None:
        h = Hypothesis(claim="claim")
        text = (
            "EVIDENCE: support|0.8|Small team keeps coordination cheap\n"
            "EVIDENCE: contradict|0.6|Scaling may be limited\n"
            "EVIDENCE: broken line\n"
        )

        assert parse_evidence(text, h, "call-7") == 2

        first, second = h.evidence
        assert first.supports and first.confidence.value == 0.8
        assert first.content == "Small team keeps coordination cheap"
        assert first.confidence.basis == "oracle_eval"
        assert not second.supports
        assert {e.independence_group for e in h.evidence} == {"call-7"}
        assert {e.source_id for e in h.evidence} == {"call-7"}

    def test_table_fallback(self) -> None:
        h = Hypothesis(claim="claim")
        text = (
            "| direction | conf | text |\n"
            "|---|---|---|\n"
            "| support | 0.7 | Cheap to run |\n"
            "| contradict | 0.4 | Hard to hire for |\n"
        )
        assert parse_evidence(text, h, "call-1") == 2
        assert [e.supports for e in h.evidence] == [True, False]

    def test_nothing_parsable(self) -> None:
        h = Hypothesis(claim="claim")
        assert parse_evidence("I cannot answer that.", h, "call-1") == 0
        assert h.evidence == []


class TestParseDiscoveredGaps:
    def test_plain_gap(self) -> None:
        (gap,) = parse_discovered_gaps("GAP: budget | What is the budget?")
        assert gap.key == "budget"
        assert gap.question == "What is the budget?"
        assert gap.auto_resolve is None

    def test_gap_with_guess(self) -> None:
        (gap,) = parse_discovered_gaps("GAP: rw_ratio | Read/write ratio? | 7:3 | 0.4")
        assert gap.auto_resolve is not None
        assert gap.auto_resolve.value == "7:3"
        assert gap.auto_resolve.confidence == 0.4

    def test_guess_without_confidence(self) -> None:
        (gap,) = parse_discovered_gaps("GAP: region | Which region? | eu-west")
        assert gap.auto_resolve.confidence is None

    def test_key_only_and_noise(self) -> None:
        gaps = parse_discovered_gaps("EVIDENCE: support|0.5|x\nGAP: `latency`\nGAP:  | no key")
        assert [g.key for g in gaps] == ["latency"]
        assert gaps[0].question == "latency?"
