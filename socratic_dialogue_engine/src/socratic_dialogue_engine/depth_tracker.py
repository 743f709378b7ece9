"""
Conversation Depth Tracking

Tracks how abstractly and connectedly the learner is reasoning on a 1-5
scale. Depth only ever climbs within a session: one level at most per
classified turn, or up to the level supported by behavioral evidence.

Also picks the transfer challenges whose outcome becomes that evidence.
"""

from dataclasses import replace
from typing import Sequence, Tuple

from .dialogue_utils import compute_cycle_stage, compute_dialogue_level
from .logger import get_logger
from .prompts import (
    DEFAULT_TRANSFER_CATEGORY,
    DEFAULT_TRANSFER_TIER,
    TRANSFER_CATEGORY_KEYWORDS,
    TRANSFER_CHALLENGES,
)
from .session_state import (
    Assessment,
    BehavioralEvidence,
    DepthState,
    DifficultyTier,
    MAX_CONCEPTUAL_CONNECTIONS,
    MAX_DEPTH,
    MIN_DEPTH,
    QuestionType,
    TransferChallenge,
)

logger = get_logger(__name__)

ADVANCE_DEPTH_OF_THINKING = 3
DEEPEN_CONFIDENCE = 0.6


def _clamp(level: int) -> int:
    return max(MIN_DEPTH, min(MAX_DEPTH, level))


class DepthTracker:
    """Pure update functions over DepthState."""

    @staticmethod
    def initial() -> DepthState:
        """Depth-1 state used for new sessions and resets."""
        return DepthState()

    def update(
        self,
        state: DepthState,
        assessment: Assessment,
        concepts: Sequence[str]
    ) -> DepthState:
        """
        Fold one classified learner turn into the depth state.

        Args:
            state: Current depth state
            assessment: Classification of the learner's turn
            concepts: Concept tags extracted from the learner's turn

        Returns:
            New DepthState
        """
        current = state.current_depth
        if (assessment.readiness_for_advancement
                and assessment.depth_of_thinking >= ADVANCE_DEPTH_OF_THINKING):
            current = min(current + 1, MAX_DEPTH)
            if current != state.current_depth:
                logger.debug(f"Depth advanced {state.current_depth} → {current}")

        connections: Tuple[str, ...] = (state.conceptual_connections + tuple(concepts))
        connections = connections[-MAX_CONCEPTUAL_CONNECTIONS:]

        return replace(
            state,
            current_depth=current,
            max_depth_reached=max(state.max_depth_reached, current),
            conceptual_connections=connections,
            should_deepen_inquiry=(
                assessment.depth_of_thinking >= ADVANCE_DEPTH_OF_THINKING
                and assessment.confidence_level > DEEPEN_CONFIDENCE
            ),
            suggested_next_level=min(current + 1, MAX_DEPTH),
        )

    def record_question(
        self,
        state: DepthState,
        question_type: QuestionType,
        is_understanding_check: bool = False,
        initial: bool = False
    ) -> DepthState:
        """Store the framing of the question just asked."""
        return replace(
            state,
            question_type=question_type,
            dialogue_level=compute_dialogue_level(question_type, is_understanding_check),
            cycle_stage=compute_cycle_stage(question_type, is_understanding_check, initial),
        )

    def evidence_level(self, evidence: BehavioralEvidence) -> int:
        """
        Depth level demonstrated by behavioral evidence.

        1: no evidence, 2: reasoning or teach-back, 3: successful transfer,
        4: strong reasoning, 5: strong reasoning with deep explanation.
        """
        level = MIN_DEPTH
        if evidence.reasoning_score >= 2 or evidence.teach_back_score >= 2:
            level = 2
        if evidence.transfer_success:
            level = 3
        if evidence.reasoning_score >= 3:
            level = 4
        if evidence.reasoning_score >= 3 and evidence.depth_level_evidence >= 4:
            level = 5
        return level

    def apply_behavioral_evidence(
        self,
        state: DepthState,
        evidence: BehavioralEvidence
    ) -> Tuple[DepthState, int]:
        """
        Raise depth to the level supported by evidence. Never lowers it.

        Returns:
            (new state, evidence level)
        """
        level = self.evidence_level(evidence)
        current = _clamp(max(state.current_depth, level))
        new_state = replace(
            state,
            current_depth=current,
            max_depth_reached=max(state.max_depth_reached, current),
            suggested_next_level=min(current + 1, MAX_DEPTH),
        )
        return new_state, level

    def transfer_challenge(self, concept: str, tier: DifficultyTier) -> TransferChallenge:
        """
        Pick the transfer problem for a concept at a difficulty tier.

        The concept is matched by substring ("right triangle" → geometry);
        unmatched concepts use algebra. A missing template falls back to
        algebra at intermediate.
        """
        text = concept.lower()
        category = next(
            (name for name, keywords in TRANSFER_CATEGORY_KEYWORDS
             if any(keyword in text for keyword in keywords)),
            DEFAULT_TRANSFER_CATEGORY,
        )

        template = TRANSFER_CHALLENGES.get(category, {}).get(tier.value)
        if template is None:
            category, tier = DEFAULT_TRANSFER_CATEGORY, DifficultyTier(DEFAULT_TRANSFER_TIER)
            template = TRANSFER_CHALLENGES[category][tier.value]

        prompt, expected_approach = template
        return TransferChallenge(
            prompt=prompt,
            expected_approach=expected_approach,
            category=category,
            tier=tier,
        )
