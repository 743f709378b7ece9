"""
Socratic Compliance Filter

Post-generation check that tutor text does not hand the learner the
solution. Guidance phrasings are whitelisted first: a question that happens
to mention "x = 4" is still a question, not a leak.
"""

import re
from dataclasses import dataclass, field
from typing import List, Sequence

from .logger import get_logger
from .prompts import QUESTION_SUFFIX
from .session_state import ConversationTurn, Role

logger = get_logger(__name__)


GUIDANCE_PATTERNS = tuple(re.compile(p, re.IGNORECASE | re.DOTALL) for p in (
    r"what does.*become\?",
    r"how.*do.*that\?",
    r"what.*next.*step\?",
    r"how.*arrive.*conclusion\?",
    r"can you.*tell me",
    r"what.*think",
    r"do you.*know",
))

DIRECT_ANSWER_PATTERNS = tuple(re.compile(p, re.IGNORECASE) for p in (
    r"^the answer is\s*-?\d+",
    r"^the solution is\s*-?\d+",
    r"^x\s*=\s*-?\d+\.?$",
    r"^therefore,?\s*x\s*=\s*-?\d+",
    r"^so,?\s*x\s*=\s*-?\d+\.?$",
    r"^the final answer is",
    r"^the result is\s*-?\d+",
    r"we get\s*x\s*=\s*-?\d+\.?$",
    r"this gives us\s*x\s*=\s*-?\d+",
))

MAX_VIOLATION_EXAMPLES = 3


@dataclass(frozen=True)
class ComplianceResult:
    """Outcome of enforcing compliance on one generated utterance."""
    text: str
    leaked: bool = False
    question_appended: bool = False


@dataclass(frozen=True)
class ComplianceMetrics:
    direct_answer_violations: int = 0
    compliance_score: float = 100.0
    last_violation_turn: int = 0
    examples: List[str] = field(default_factory=list)


class ComplianceFilter:
    """Whitelist-then-blacklist direct answer detection."""

    def is_guidance(self, text: str) -> bool:
        stripped = text.strip()
        if stripped.endswith("?"):
            return True
        return any(pattern.search(stripped) for pattern in GUIDANCE_PATTERNS)

    def contains_direct_answer(self, text: str) -> bool:
        """
        Check whether text states the solution outright.

        Args:
            text: Generated tutor text

        Returns:
            True only when a direct-answer pattern matches and no guidance
            pattern does
        """
        if self.is_guidance(text):
            return False
        stripped = text.strip()
        return any(pattern.search(stripped) for pattern in DIRECT_ANSWER_PATTERNS)

    def enforce(self, text: str, fallback: str) -> ComplianceResult:
        """
        Make a generated utterance safe to show the learner.

        A leaking (or empty) text is replaced by the fallback question, and the
        final utterance always ends with a question mark.
        """
        leaked = self.contains_direct_answer(text)
        if leaked:
            logger.warning("Direct answer detected in generated text, using fallback question",
                           data={"generated": text})
        result = fallback if leaked or not text.strip() else text.strip()

        question_appended = False
        if not result.rstrip().endswith("?"):
            result = result.rstrip() + QUESTION_SUFFIX
            question_appended = True

        return ComplianceResult(text=result, leaked=leaked, question_appended=question_appended)

    def compliance_metrics(self, turns: Sequence[ConversationTurn]) -> ComplianceMetrics:
        """
        Summarize direct-answer violations over a conversation.

        Turn numbers count tutor turns, starting at 1.
        """
        tutor_turns = [t for t in turns if t.role is Role.TUTOR]
        violations = [
            (index, turn.content)
            for index, turn in enumerate(tutor_turns, start=1)
            if self.contains_direct_answer(turn.content)
        ]

        total = len(tutor_turns)
        score = ((total - len(violations)) / total) * 100 if total else 100.0

        return ComplianceMetrics(
            direct_answer_violations=len(violations),
            compliance_score=score,
            last_violation_turn=violations[-1][0] if violations else 0,
            examples=[content for _, content in violations[:MAX_VIOLATION_EXAMPLES]],
        )
