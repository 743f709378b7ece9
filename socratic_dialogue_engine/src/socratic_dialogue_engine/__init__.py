"""
Adaptive Socratic Dialogue Engine

Socratic tutoring core: classifies learner turns, adapts depth, difficulty
and question type, and steers a text-generation service so it guides without
ever stating the solution.
"""

from .config import EngineConfig
from .dialogue_engine import DialogueEngine
from .errors import DialogueEngineError, LLMServiceError, SessionNotStartedError
from .session_state import (
    BehavioralEvidence,
    ConversationTurn,
    DifficultyTier,
    QuestionType,
    Role,
    SessionState,
    StudentProfile,
    TransferChallenge,
)
from .text_generator import GenerationParams, OpenAITextGenerator, TextGenerator

__all__ = [
    "BehavioralEvidence",
    "ConversationTurn",
    "DialogueEngine",
    "DialogueEngineError",
    "DifficultyTier",
    "EngineConfig",
    "GenerationParams",
    "LLMServiceError",
    "OpenAITextGenerator",
    "QuestionType",
    "Role",
    "SessionNotStartedError",
    "SessionState",
    "StudentProfile",
    "TextGenerator",
    "TransferChallenge",
]
