"""
Gap resolution agents.

Turn a user's answer to a gap question into a KnownFact, and decide what
happens to a gap the user cannot answer.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod

from hypothesis_solver.structure import Gap, GapStatus, KnownFact, Problem

# Confidence given to a plain answer.
DEFAULT_ANSWER_CONFIDENCE = 0.9

_LEADING_CONFIDENCE_RE = re.compile(r"^(\d\.\d+):\s*(.+)", re.DOTALL)
_TRAILING_CONFIDENCE_RE = re.compile(r"^(.*?)\s*\((\d\.\d+)\)\s*$", re.DOTALL)


class GapResolver(ABC):
    """Abstract base class for gap resolvers."""

    @abstractmethod
    def resolve(self, gap: Gap, user_input: str, problem: Problem) -> KnownFact:
        """
        Convert a user's answer into a known fact.

        Args:
            gap: Gap being answered.
            user_input: Raw answer text.
            problem: Problem the gap belongs to.

        Returns:
            The fact to store under the gap's key.
        """
        ...

    def handle_unanswerable(self, gap: Gap, problem: Problem) -> GapStatus:
        """Status to record for a gap the user cannot answer."""
        return GapStatus.SKIPPED


class DirectResolver(GapResolver):
    """Takes every answer at face value."""

    def resolve(self, gap: Gap, user_input: str, problem: Problem) -> KnownFact:
        return KnownFact(value=user_input, confidence=DEFAULT_ANSWER_CONFIDENCE, source="user")


class ConfidenceAwareResolver(GapResolver):
    """
    Reads the user's certainty from the answer itself.

    An explicit confidence wins: ``"0.6: answer"`` or ``"answer (0.4)"``.
    Otherwise the first matching hedge marker sets the confidence, and a
    plain answer gets 0.9.
    """

    CONFIDENCE_MARKERS: list[tuple[tuple[str, ...], float]] = [
        (("definitely", "certainly", "absolutely", "for sure"), 1.0),
        (("probably", "maybe", "likely", "perhaps"), 0.7),
        (("for now", "tentatively", "provisionally", "temporarily"), 0.5),
        (("not sure but", "guess", "unsure", "no idea but"), 0.3),
    ]

    def resolve(self, gap: Gap, user_input: str, problem: Problem) -> KnownFact:
        m = _LEADING_CONFIDENCE_RE.match(user_input)
        if m:
            return self._explicit(m.group(2), m.group(1), user_input)
        m = _TRAILING_CONFIDENCE_RE.match(user_input)
        if m:
            return self._explicit(m.group(1), m.group(2), user_input)

        lowered = user_input.lower()
        confidence = DEFAULT_ANSWER_CONFIDENCE
        for patterns, marker_confidence in self.CONFIDENCE_MARKERS:
            if any(p in lowered for p in patterns):
                confidence = marker_confidence
                break

        return KnownFact(value=user_input, confidence=confidence, source="user")

    @staticmethod
    def _explicit(value: str, raw_confidence: str, user_input: str) -> KnownFact:
        confidence = min(max(float(raw_confidence), 0.0), 1.0)
        return KnownFact(value=value.strip() or user_input, confidence=confidence, source="user")
