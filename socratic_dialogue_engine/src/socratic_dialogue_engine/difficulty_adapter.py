"""
Automatic Difficulty Adaptation

Adjusts teaching difficulty from per-turn assessments. Uses a rolling
confidence window and a struggling-turn counter to decide whether the tier
should move, and never moves it more than one step per evaluation.
"""

from dataclasses import dataclass, replace
from typing import Optional, Sequence

from .logger import get_logger
from .session_state import Assessment, DifficultyState, DifficultyTier, StudentProfile

logger = get_logger(__name__)


@dataclass(frozen=True)
class DifficultyAdjustment:
    """Result of difficulty adjustment check."""
    should_adjust: bool
    direction: Optional[str]  # "increase", "decrease", or None
    reason: str
    new_difficulty: Optional[DifficultyTier] = None


class DifficultyAdapter:
    """
    Three-tier difficulty controller.

    Algorithm:
    - Average confidence over the last 5 learner turns
    - Struggling (counter > 2, or avg < 0.3 with misconceptions) → lower one tier
    - Thriving (avg > 0.7, deep reasoning, no misconceptions, depth >= 3) → raise one tier
    - Otherwise hold
    """

    DIFFICULTY_LEVELS = list(DifficultyTier)

    # Thresholds
    STRUGGLING_CONFIDENCE = 0.3
    STRUGGLING_TURN_LIMIT = 2
    THRIVING_CONFIDENCE = 0.7
    THRIVING_THINKING_DEPTH = 3
    THRIVING_CURRENT_DEPTH = 3
    CONFIDENCE_WINDOW = 5

    # Profile seeding
    LOW_MASTERY = 0.4
    HIGH_MASTERY = 0.7

    def __init__(self, confidence_window: int = CONFIDENCE_WINDOW):
        self.confidence_window = confidence_window

    def is_struggling_turn(self, assessment: Assessment) -> bool:
        return (assessment.confidence_level < self.STRUGGLING_CONFIDENCE
                or assessment.has_misconceptions)

    def record_struggle(self, state: DifficultyState, assessment: Assessment) -> DifficultyState:
        """Increment the struggling counter on a struggling turn, otherwise ease it off."""
        if self.is_struggling_turn(assessment):
            return replace(state, struggling_turns=state.struggling_turns + 1)
        return replace(state, struggling_turns=max(0, state.struggling_turns - 1))

    def auto_adjust(
        self,
        state: DifficultyState,
        assessment: Assessment,
        recent_confidences: Sequence[float],
        current_depth: int
    ) -> DifficultyAdjustment:
        """
        Check if difficulty should be adjusted.

        Args:
            state: Current difficulty state (with this turn's struggle recorded)
            assessment: Classification of the learner's latest turn
            recent_confidences: Recorded learner confidences, oldest first
            current_depth: Current conversation depth (1-5)

        Returns:
            DifficultyAdjustment with recommendation
        """
        window = list(recent_confidences)[-self.confidence_window:]
        avg_confidence = (
            sum(window) / len(window) if window else assessment.confidence_level
        )

        is_struggling = (
            state.struggling_turns > self.STRUGGLING_TURN_LIMIT
            or (avg_confidence < self.STRUGGLING_CONFIDENCE and assessment.has_misconceptions)
        )
        is_thriving = (
            avg_confidence > self.THRIVING_CONFIDENCE
            and assessment.depth_of_thinking >= self.THRIVING_THINKING_DEPTH
            and not assessment.has_misconceptions
            and current_depth >= self.THRIVING_CURRENT_DEPTH
        )

        if is_struggling:
            new_difficulty = self._lower_difficulty(state.tier)
            if new_difficulty != state.tier:
                return DifficultyAdjustment(
                    should_adjust=True,
                    direction="decrease",
                    reason=(
                        f"Struggling (avg={avg_confidence:.2f}, "
                        f"struggling_turns={state.struggling_turns})"
                    ),
                    new_difficulty=new_difficulty
                )
            return DifficultyAdjustment(
                should_adjust=False,
                direction=None,
                reason="Struggling but already at lowest difficulty"
            )

        if is_thriving:
            new_difficulty = self._raise_difficulty(state.tier)
            if new_difficulty != state.tier:
                return DifficultyAdjustment(
                    should_adjust=True,
                    direction="increase",
                    reason=f"Thriving (avg={avg_confidence:.2f}, depth={current_depth})",
                    new_difficulty=new_difficulty
                )
            return DifficultyAdjustment(
                should_adjust=False,
                direction=None,
                reason="Thriving but already at highest difficulty"
            )

        return DifficultyAdjustment(
            should_adjust=False,
            direction=None,
            reason=f"Performance stable (avg={avg_confidence:.2f})"
        )

    def _raise_difficulty(self, current: DifficultyTier) -> DifficultyTier:
        """Raise difficulty level."""
        current_idx = self.DIFFICULTY_LEVELS.index(current)
        if current_idx < len(self.DIFFICULTY_LEVELS) - 1:
            return self.DIFFICULTY_LEVELS[current_idx + 1]
        return current  # Already at max

    def _lower_difficulty(self, current: DifficultyTier) -> DifficultyTier:
        """Lower difficulty level."""
        current_idx = self.DIFFICULTY_LEVELS.index(current)
        if current_idx > 0:
            return self.DIFFICULTY_LEVELS[current_idx - 1]
        return current  # Already at min

    def apply_adjustment(
        self,
        state: DifficultyState,
        adjustment: DifficultyAdjustment
    ) -> DifficultyState:
        """
        Apply difficulty adjustment to the difficulty state.

        Args:
            state: Current DifficultyState
            adjustment: DifficultyAdjustment result

        Returns:
            New DifficultyState (the same object when nothing changes)
        """
        if not adjustment.should_adjust or adjustment.new_difficulty is None:
            return state

        logger.info(
            f"Difficulty adjusted: {state.tier.value} → {adjustment.new_difficulty.value}",
            data={"reason": adjustment.reason}
        )
        return replace(state, tier=adjustment.new_difficulty)

    def initial_tier(self, profile: Optional[StudentProfile]) -> DifficultyTier:
        """Seed the tier from a learner's mastery history."""
        if profile is None or profile.average_mastery is None:
            return DifficultyTier.INTERMEDIATE
        if profile.average_mastery < self.LOW_MASTERY:
            return DifficultyTier.BEGINNER
        if profile.average_mastery > self.HIGH_MASTERY:
            return DifficultyTier.ADVANCED
        return DifficultyTier.INTERMEDIATE

    def student_level(self, profile: Optional[StudentProfile]) -> str:
        """Label used in the system prompt: novice, intermediate or advanced."""
        tier = self.initial_tier(profile)
        if tier is DifficultyTier.BEGINNER:
            return "novice"
        return tier.value
