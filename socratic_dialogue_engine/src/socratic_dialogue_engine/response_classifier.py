"""
Response Classifier

Converts one learner utterance into an Assessment using lightweight pattern
rules. Fast and deterministic: no LLM call and no hidden randomness, so the
same text always produces the same Assessment.

Rules live in the tables below, separate from the control flow:
- CONFIDENCE_RULES: ordered, first match wins
- MISCONCEPTION_RULES: every match contributes one tag
- DEPTH_RULES: every match adds one level (capped at 5)
- CONCEPTUAL_TERMS: matched-term count drives conceptual understanding
"""

import re
from dataclasses import dataclass
from typing import Callable, Tuple

from .session_state import Assessment, MAX_DEPTH, MIN_DEPTH


DEFAULT_CONFIDENCE = 0.5


def _words(*phrases: str) -> "re.Pattern[str]":
    """Case-insensitive, word-bounded alternation over literal phrases."""
    alternatives = "|".join(
        re.escape(p).replace("'", "['’]?") for p in phrases
    )
    return re.compile(rf"\b(?:{alternatives})\b", re.IGNORECASE)


@dataclass(frozen=True)
class ConfidenceRule:
    name: str
    pattern: "re.Pattern[str]"
    confidence: float


@dataclass(frozen=True)
class MisconceptionRule:
    tag: str
    pattern: "re.Pattern[str]"


@dataclass(frozen=True)
class DepthRule:
    name: str
    predicate: Callable[[str], bool]


CONFIDENCE_RULES: Tuple[ConfidenceRule, ...] = (
    ConfidenceRule(
        "uncertainty",
        _words(
            "i don't know", "not sure", "confused", "don't understand",
            "i need help", "help me", "stuck", "lost", "no idea",
            "can't figure", "don't get it", "too hard",
        ),
        0.2,
    ),
    ConfidenceRule(
        "certainty",
        _words(
            "i'm sure", "definitely", "certainly", "obviously", "i know",
            "i think i got it", "that makes sense",
        ),
        0.9,
    ),
    ConfidenceRule(
        "hedging",
        _words("maybe", "perhaps", "might", "could", "guess", "think so"),
        0.6,
    ),
)

MISCONCEPTION_RULES: Tuple[MisconceptionRule, ...] = (
    MisconceptionRule("overgeneralization:always", _words("always")),
    MisconceptionRule("overgeneralization:never", _words("never")),
    MisconceptionRule("overgeneralization:every time", _words("every time")),
)

_CAUSAL = _words("because", "since", "therefore", "so that")
_CONDITIONAL = re.compile(r"\b(?:if|when)\b.*\bthen\b", re.IGNORECASE | re.DOTALL)
_COMPARATIVE = _words("similar to", "different from", "unlike")
_HYPOTHETICAL = _words("what if", "suppose", "imagine")

DETAILED_RESPONSE_LENGTH = 50

DEPTH_RULES: Tuple[DepthRule, ...] = (
    DepthRule("detailed", lambda text: len(text) > DETAILED_RESPONSE_LENGTH),
    DepthRule("causal", lambda text: bool(_CAUSAL.search(text))),
    DepthRule("conditional", lambda text: bool(_CONDITIONAL.search(text))),
    DepthRule("comparative", lambda text: bool(_COMPARATIVE.search(text))),
    DepthRule("hypothetical", lambda text: bool(_HYPOTHETICAL.search(text))),
)

CONCEPTUAL_TERMS: Tuple[str, ...] = (
    "equation", "variable", "solve", "isolate", "substitute",
    "eliminate", "derivative", "integral", "area", "perimeter",
)
_CONCEPTUAL_PATTERNS = tuple(
    re.compile(rf"\b{re.escape(term)}\b", re.IGNORECASE) for term in CONCEPTUAL_TERMS
)
TERMS_FOR_FULL_UNDERSTANDING = 3


class ResponseClassifier:
    """
    Pattern-based learner response classifier.

    Never raises: empty or whitespace-only input yields a moderate-confidence
    assessment so the conversation is never blocked.
    """

    def classify(self, text: str) -> Assessment:
        """
        Classify a learner utterance.

        Args:
            text: The learner's message

        Returns:
            Assessment with confidence, misconceptions, readiness,
            conceptual understanding and depth of thinking
        """
        if not text or not text.strip():
            return Assessment.create(confidence_level=DEFAULT_CONFIDENCE)

        return Assessment.create(
            confidence_level=self.assess_confidence(text),
            misconceptions=self.detect_misconceptions(text),
            conceptual_understanding=self.assess_conceptual_understanding(text),
            depth_of_thinking=self.assess_thinking_depth(text),
        )

    def assess_confidence(self, text: str) -> float:
        for rule in CONFIDENCE_RULES:
            if rule.pattern.search(text):
                return rule.confidence
        return DEFAULT_CONFIDENCE

    def detect_misconceptions(self, text: str) -> Tuple[str, ...]:
        return tuple(rule.tag for rule in MISCONCEPTION_RULES if rule.pattern.search(text))

    def assess_thinking_depth(self, text: str) -> int:
        depth = MIN_DEPTH + sum(1 for rule in DEPTH_RULES if rule.predicate(text))
        return min(depth, MAX_DEPTH)

    def assess_conceptual_understanding(self, text: str) -> float:
        matches = sum(1 for pattern in _CONCEPTUAL_PATTERNS if pattern.search(text))
        return min(matches / TERMS_FOR_FULL_UNDERSTANDING, 1.0)
