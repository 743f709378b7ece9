"""
Session State Data Model

Defines the value objects that make up a tutoring session. Every object here is
immutable: components take a state and return a new one, and the engine swaps
in the new SessionState once a turn has fully completed.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class Role(Enum):
    """Who produced a conversation turn."""
    STUDENT = "student"
    TUTOR = "tutor"
    SYSTEM = "system"

    @property
    def chat_role(self) -> str:
        """Role name used by chat-completion APIs."""
        return {
            Role.STUDENT: "user",
            Role.TUTOR: "assistant",
            Role.SYSTEM: "system",
        }[self]

    @classmethod
    def parse(cls, value: Union[str, "Role"]) -> "Role":
        """Accept both our role names and chat-API names ("user", "assistant")."""
        if isinstance(value, Role):
            return value
        aliases = {"user": cls.STUDENT, "assistant": cls.TUTOR}
        lowered = value.lower()
        if lowered in aliases:
            return aliases[lowered]
        return cls(lowered)


class QuestionType(Enum):
    """The six Socratic question categories, in rotation order."""
    CLARIFICATION = "clarification"        # "What do you mean by...?"
    ASSUMPTIONS = "assumptions"            # "What are you assuming?"
    EVIDENCE = "evidence"                  # "What supports this?"
    PERSPECTIVE = "perspective"            # "How might someone disagree?"
    IMPLICATIONS = "implications"          # "What happens if...?"
    META_QUESTIONING = "meta_questioning"  # "Why does this question matter?"


QUESTION_TYPE_ORDER: Tuple[QuestionType, ...] = tuple(QuestionType)


class DialogueLevel(Enum):
    DIALOGUE = "dialogue"                        # reciprocal questioning
    STRATEGIC_DISCOURSE = "strategic_discourse"  # shaping, probing, refining
    META_DISCOURSE = "meta_discourse"            # reflection on the inquiry itself


class CycleStage(Enum):
    WONDER_RECEIVE = "wonder_receive"
    REFLECT = "reflect"
    REFINE_CROSS_EXAMINE = "refine_cross_examine"
    RESTATE = "restate"
    REPEAT = "repeat"


class DifficultyTier(Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

    @property
    def index(self) -> int:
        return list(DifficultyTier).index(self)


MAX_DEPTH = 5
MIN_DEPTH = 1
MAX_CONCEPTUAL_CONNECTIONS = 20


@dataclass(frozen=True)
class Assessment:
    """Per-turn classification of one learner utterance. Never persisted."""
    confidence_level: float
    misconceptions: Tuple[str, ...]
    readiness_for_advancement: bool
    conceptual_understanding: float
    depth_of_thinking: int

    @classmethod
    def create(
        cls,
        confidence_level: float,
        misconceptions: Tuple[str, ...] = (),
        conceptual_understanding: float = 0.0,
        depth_of_thinking: int = MIN_DEPTH,
    ) -> "Assessment":
        """Build an assessment, deriving readiness from confidence and misconceptions."""
        misconceptions = tuple(misconceptions)
        return cls(
            confidence_level=confidence_level,
            misconceptions=misconceptions,
            readiness_for_advancement=confidence_level > 0.6 and not misconceptions,
            conceptual_understanding=conceptual_understanding,
            depth_of_thinking=max(MIN_DEPTH, min(MAX_DEPTH, depth_of_thinking)),
        )

    @property
    def has_misconceptions(self) -> bool:
        return len(self.misconceptions) > 0


@dataclass(frozen=True)
class ConversationTurn:
    """One message in the conversation log."""
    role: Role
    content: str
    timestamp: datetime = field(default_factory=datetime.now)
    question_type: Optional[QuestionType] = None
    depth_level: Optional[int] = None
    student_confidence: Optional[float] = None
    targeted_concepts: Tuple[str, ...] = ()
    is_understanding_check: bool = False
    dialogue_level: Optional[DialogueLevel] = None
    cycle_stage: Optional[CycleStage] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for a persistence layer."""
        return {
            "role": self.role.value,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "question_type": self.question_type.value if self.question_type else None,
            "depth_level": self.depth_level,
            "student_confidence": self.student_confidence,
            "targeted_concepts": list(self.targeted_concepts),
            "is_understanding_check": self.is_understanding_check,
            "dialogue_level": self.dialogue_level.value if self.dialogue_level else None,
            "cycle_stage": self.cycle_stage.value if self.cycle_stage else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConversationTurn":
        """Rebuild a turn from `to_dict()` output (or a plain role/content dict)."""
        timestamp = data.get("timestamp")
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp)
        question_type = data.get("question_type")
        dialogue_level = data.get("dialogue_level")
        cycle_stage = data.get("cycle_stage")
        return cls(
            role=Role.parse(data["role"]),
            content=data.get("content", ""),
            timestamp=timestamp or datetime.now(),
            question_type=QuestionType(question_type) if question_type else None,
            depth_level=data.get("depth_level"),
            student_confidence=data.get("student_confidence"),
            targeted_concepts=tuple(data.get("targeted_concepts") or ()),
            is_understanding_check=bool(data.get("is_understanding_check", False)),
            dialogue_level=DialogueLevel(dialogue_level) if dialogue_level else None,
            cycle_stage=CycleStage(cycle_stage) if cycle_stage else None,
        )


@dataclass(frozen=True)
class DepthState:
    """How deeply the learner is reasoning, plus the last question's framing."""
    current_depth: int = MIN_DEPTH
    max_depth_reached: int = MIN_DEPTH
    conceptual_connections: Tuple[str, ...] = ()
    should_deepen_inquiry: bool = False
    suggested_next_level: int = MIN_DEPTH
    question_type: QuestionType = QuestionType.CLARIFICATION
    dialogue_level: DialogueLevel = DialogueLevel.DIALOGUE
    cycle_stage: CycleStage = CycleStage.WONDER_RECEIVE


@dataclass(frozen=True)
class DifficultyState:
    tier: DifficultyTier = DifficultyTier.INTERMEDIATE
    struggling_turns: int = 0


@dataclass(frozen=True)
class AssessmentModeState:
    """Lifecycle of a single graded answer."""
    active: bool = True
    expected_answer: Optional[str] = None
    has_answered: bool = False


@dataclass(frozen=True)
class TutoringMode:
    """Regular Socratic questioning."""


@dataclass(frozen=True)
class AssessmentMode:
    """One direct answer, graded, then the problem is closed."""
    state: AssessmentModeState = field(default_factory=AssessmentModeState)


Mode = Union[TutoringMode, AssessmentMode]


@dataclass(frozen=True)
class BehavioralEvidence:
    """Scores gathered from teach-back, transfer and reasoning checks."""
    teach_back_score: int = 0        # 0-4
    transfer_success: bool = False
    reasoning_score: int = 0         # 0-4
    calibration_error: float = 0.0   # 0-1
    depth_level_evidence: int = 1    # 1-5


@dataclass(frozen=True)
class TransferChallenge:
    """A new problem that tests whether a concept carries over."""
    prompt: str
    expected_approach: str
    category: str
    tier: DifficultyTier


@dataclass(frozen=True)
class StudentProfile:
    """Minimal learner profile used to seed a session."""
    student_id: str
    name: Optional[str] = None
    mastery_history: Tuple[float, ...] = ()

    @property
    def average_mastery(self) -> Optional[float]:
        if not self.mastery_history:
            return None
        return sum(self.mastery_history) / len(self.mastery_history)


@dataclass(frozen=True)
class SessionState:
    """Aggregate root for one tutoring session."""
    session_id: str = ""
    problem: str = ""
    turns: Tuple[ConversationTurn, ...] = ()
    depth: DepthState = field(default_factory=DepthState)
    difficulty: DifficultyState = field(default_factory=DifficultyState)
    question_types: Tuple[QuestionType, ...] = ()
    mode: Mode = field(default_factory=TutoringMode)
    turn_count: int = 0
    last_understanding_check_turn: int = 0
    understanding_check_count: int = 0
    started_at: datetime = field(default_factory=datetime.now)
    student_profile: Optional[StudentProfile] = None
    behavioral_evidence: Tuple[BehavioralEvidence, ...] = ()

    @property
    def has_problem(self) -> bool:
        return bool(self.problem)

    def with_turn(self, turn: ConversationTurn) -> "SessionState":
        return replace(self, turns=self.turns + (turn,))

    def student_confidences(self) -> List[float]:
        """Confidence recorded on learner turns, oldest first."""
        return [
            t.student_confidence for t in self.turns
            if t.role is Role.STUDENT and t.student_confidence is not None
        ]

    def visible_turns(self) -> List[ConversationTurn]:
        return [t for t in self.turns if t.role is not Role.SYSTEM]

    def student_turns(self) -> List[ConversationTurn]:
        return [t for t in self.turns if t.role is Role.STUDENT]


@dataclass(frozen=True)
class SessionPerformance:
    """Analytics snapshot for a hosting layer to persist."""
    session_id: str
    start_time: datetime
    end_time: datetime
    total_interactions: int
    problems_solved: int
    average_response_time: float
    struggling_turns: int
    difficulty_level: DifficultyTier
    engagement_score: float
    completion_rate: float
    concepts_explored: List[str]
    mastery_score: float
    concepts_learned: List[str]
    hints_used: int
    struggled_concepts: List[str]
