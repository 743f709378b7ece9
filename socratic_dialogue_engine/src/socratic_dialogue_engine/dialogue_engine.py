"""
Adaptive Socratic Dialogue Engine

Orchestrates one tutoring session:
- Classifies each learner turn (confidence, misconceptions, depth of thinking)
- Updates depth, difficulty and question-type state
- Decides when a turn should be an understanding check
- Builds the steering instruction and calls the text generator once per turn
- Filters the reply so it never states the solution and always ends in a question

Also runs assessment mode: one direct answer, graded, then the problem is closed.

All session data lives in an immutable SessionState. Each call builds the next
state and commits it only after the text generator has returned, so a failed
or cancelled call leaves the session as it was. Calls for one session must be
issued one at a time by the caller.
"""

import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .assessment_mode import AssessmentModeController
from .compliance_filter import ComplianceFilter, ComplianceMetrics
from .concept_extractor import ConceptExtractor
from .config import EngineConfig
from .depth_tracker import DepthTracker
from .difficulty_adapter import DifficultyAdapter
from .errors import LLMServiceError, SessionNotStartedError
from .instruction_builder import InstructionBuilder
from .logger import get_logger
from .prompts import DEFAULT_METACOGNITIVE_PROMPT, METACOGNITIVE_PROMPTS, OPENING_FALLBACK
from .question_selector import QuestionTypeSelector, RandomSelectionPolicy, SelectionPolicy
from .response_classifier import ResponseClassifier
from .session_state import (
    Assessment,
    AssessmentMode,
    BehavioralEvidence,
    ConversationTurn,
    DepthState,
    DifficultyState,
    DifficultyTier,
    MAX_DEPTH,
    QuestionType,
    Role,
    SessionPerformance,
    SessionState,
    StudentProfile,
    TransferChallenge,
    TutoringMode,
)
from .text_generator import GenerationParams, Message, OpenAITextGenerator, TextGenerator

logger = get_logger(__name__)

# Analytics
MEANINGFUL_RESPONSE_LENGTH = 10
COMPLETION_TARGET_EXCHANGES = 5
ENGAGED_RESPONSE_SECONDS = (5.0, 60.0)
STRUGGLED_CONFIDENCE = 0.3
METACOGNITIVE_DEPTH = 3


class DialogueEngine:
    """
    One engine instance per tutoring session.

    Args:
        text_generator: Reply generator; defaults to OpenAITextGenerator
        config: Engine configuration; defaults to EngineConfig.from_env()
        selection_policy: Source of randomness for question choice
    """

    def __init__(
        self,
        text_generator: Optional[TextGenerator] = None,
        config: Optional[EngineConfig] = None,
        selection_policy: Optional[SelectionPolicy] = None
    ):
        self.config = config or EngineConfig.from_env()
        self.policy = selection_policy or RandomSelectionPolicy(self.config.selection_seed)
        self.text_generator = text_generator or OpenAITextGenerator(self.config)

        self.classifier = ResponseClassifier()
        self.concept_extractor = ConceptExtractor()
        self.depth_tracker = DepthTracker()
        self.difficulty_adapter = DifficultyAdapter(self.config.confidence_window)
        self.question_selector = QuestionTypeSelector(
            self.policy, self.config.understanding_check_interval
        )
        self.instruction_builder = InstructionBuilder(
            self.config.scaffolding_struggle_threshold, self.policy
        )
        self.compliance_filter = ComplianceFilter()
        self.assessment_controller = AssessmentModeController()

        self._state = SessionState(session_id=str(uuid.uuid4()))

    @property
    def state(self) -> SessionState:
        """Current immutable session snapshot."""
        return self._state

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def initialize_session(self, session_id: str, student_profile: Optional[StudentProfile] = None):
        """Start a fresh session, seeding difficulty from the learner's mastery history."""
        tier = self.difficulty_adapter.initial_tier(student_profile)
        self._state = SessionState(
            session_id=session_id,
            student_profile=student_profile,
            difficulty=DifficultyState(tier=tier),
        )
        logger.info("[DialogueEngine] Session initialized", data={
            "session_id": session_id,
            "student_id": student_profile.student_id if student_profile else None,
            "difficulty": tier.value,
        })

    def reset_session(self):
        """Drop all conversation state but keep the session id and learner profile."""
        self.initialize_session(self._state.session_id, self._state.student_profile)

    async def start_problem(self, problem: str) -> str:
        """
        Begin Socratic tutoring on a problem and return the opening question.

        Raises:
            LLMServiceError: for permanent text generation failures; the
                session is left unchanged
        """
        state = self._state
        concepts = self.concept_extractor.extract(problem)
        student_level = self.difficulty_adapter.student_level(state.student_profile)
        system_prompt = self.instruction_builder.build_system_prompt(
            problem,
            concepts,
            student_level,
            self.concept_extractor.learning_objective(concepts),
        )
        question_type = self.question_selector.select_initial(problem)

        logger.section("New problem", {
            "problem": problem,
            "concepts": list(concepts),
            "student_level": student_level,
            "question_type": question_type.value,
        })

        messages: List[Message] = [
            {"role": Role.SYSTEM.chat_role, "content": system_prompt},
            {"role": Role.SYSTEM.chat_role,
             "content": self.instruction_builder.build_opening_instruction(question_type)},
        ]
        generated = await self._generate(messages, GenerationParams.opening(), OPENING_FALLBACK)
        result = self.compliance_filter.enforce(generated, OPENING_FALLBACK)

        depth = self.depth_tracker.record_question(state.depth, question_type, initial=True)
        opening_turn = ConversationTurn(
            role=Role.TUTOR,
            content=result.text,
            question_type=question_type,
            depth_level=depth.current_depth,
            targeted_concepts=concepts,
            dialogue_level=depth.dialogue_level,
            cycle_stage=depth.cycle_stage,
        )
        self._state = replace(
            state,
            problem=problem,
            turns=(ConversationTurn(role=Role.SYSTEM, content=system_prompt), opening_turn),
            depth=depth,
            question_types=state.question_types + (question_type,),
            mode=TutoringMode(),
            turn_count=0,
            last_understanding_check_turn=0,
        )
        return result.text

    async def start_assessment_problem(self, problem: str, expected_answer: Optional[str] = None) -> str:
        """Begin a single-answer assessment. Does not call the text generator."""
        mode_state, opening = self.assessment_controller.start(expected_answer)
        self._state = replace(
            self._state,
            problem=problem,
            turns=(
                ConversationTurn(
                    role=Role.SYSTEM,
                    content=self.instruction_builder.build_assessment_system_prompt(problem),
                ),
                ConversationTurn(role=Role.TUTOR, content=opening),
            ),
            mode=AssessmentMode(mode_state),
            turn_count=0,
            last_understanding_check_turn=0,
        )
        logger.section("New assessment", {
            "problem": problem,
            "has_expected_answer": expected_answer is not None,
        })
        return opening

    async def respond_to_student(self, text: str) -> str:
        """
        Process one learner message and return the tutor's reply.

        Raises:
            SessionNotStartedError: if no problem has been started
            LLMServiceError: for permanent text generation failures; the
                session is left unchanged
        """
        if not self._state.has_problem:
            raise SessionNotStartedError("Call start_problem() or start_assessment_problem() first")

        mode = self._state.mode
        if isinstance(mode, AssessmentMode):
            return self._respond_in_assessment(mode, text)
        return await self._respond_in_tutoring(text)

    # ------------------------------------------------------------------
    # Turn handling
    # ------------------------------------------------------------------

    def _respond_in_assessment(self, mode: AssessmentMode, text: str) -> str:
        mode_state, outcome = self.assessment_controller.evaluate(mode.state, text)
        if outcome.already_complete:
            return outcome.response

        state = self._state
        assessment = self.classifier.classify(text)
        state = state.with_turn(ConversationTurn(
            role=Role.STUDENT,
            content=text,
            student_confidence=assessment.confidence_level,
        ))
        state = state.with_turn(ConversationTurn(role=Role.TUTOR, content=outcome.response))
        self._state = replace(
            state,
            mode=AssessmentMode(mode_state),
            turn_count=state.turn_count + 1,
        )
        logger.subsection("Assessment answer", {
            "correct": outcome.is_correct,
            "confidence": assessment.confidence_level,
        })
        return outcome.response

    def _fold_student_turn(
        self,
        state: SessionState,
        text: str,
        timestamp: Optional[datetime] = None
    ) -> Tuple[SessionState, Assessment]:
        """Classify a learner turn, log it, and update depth and difficulty."""
        assessment = self.classifier.classify(text)
        concepts = self.concept_extractor.extract(text)

        state = replace(
            state.with_turn(ConversationTurn(
                role=Role.STUDENT,
                content=text,
                timestamp=timestamp or datetime.now(),
                student_confidence=assessment.confidence_level,
                targeted_concepts=concepts,
            )),
            turn_count=state.turn_count + 1,
        )

        depth = self.depth_tracker.update(state.depth, assessment, concepts)
        difficulty = self.difficulty_adapter.record_struggle(state.difficulty, assessment)
        adjustment = self.difficulty_adapter.auto_adjust(
            difficulty, assessment, state.student_confidences(), depth.current_depth
        )
        difficulty = self.difficulty_adapter.apply_adjustment(difficulty, adjustment)

        return replace(state, depth=depth, difficulty=difficulty), assessment

    async def _respond_in_tutoring(self, text: str) -> str:
        state, assessment = self._fold_student_turn(self._state, text)
        turn_number = state.turn_count

        question_type = self.question_selector.select_next(
            assessment, state.question_types, state.depth.current_depth
        )
        is_check = self.question_selector.should_check_understanding(
            assessment,
            turn_number,
            state.last_understanding_check_turn,
            state.student_confidences(),
            state.depth.should_deepen_inquiry,
        )
        if is_check:
            question_type = self.question_selector.select_understanding_check_type(assessment)

        example_question = self.instruction_builder.contextual_question(assessment, question_type, text)
        guidance = self.instruction_builder.build_guidance(
            state.problem,
            text,
            assessment,
            question_type,
            state.depth,
            state.difficulty,
            state.difficulty.struggling_turns,
            is_check,
            example_question,
        )

        messages = self._history_messages(state)
        messages.append({"role": Role.SYSTEM.chat_role, "content": guidance})
        generated = await self._generate(messages, GenerationParams.turn(), example_question)
        result = self.compliance_filter.enforce(generated, example_question)

        depth = self.depth_tracker.record_question(state.depth, question_type, is_check)
        tutor_turn = ConversationTurn(
            role=Role.TUTOR,
            content=result.text,
            question_type=question_type,
            depth_level=depth.current_depth,
            student_confidence=assessment.confidence_level,
            targeted_concepts=depth.conceptual_connections[-2:],
            is_understanding_check=is_check,
            dialogue_level=depth.dialogue_level,
            cycle_stage=depth.cycle_stage,
        )
        self._state = replace(
            state.with_turn(tutor_turn),
            depth=depth,
            question_types=state.question_types + (question_type,),
            last_understanding_check_turn=(
                turn_number if is_check else state.last_understanding_check_turn
            ),
            understanding_check_count=state.understanding_check_count + (1 if is_check else 0),
        )

        logger.turn(
            turn_number,
            question_type.value,
            assessment.confidence_level,
            depth.current_depth,
            self._state.difficulty.tier.value,
            understanding_check=is_check,
            concepts=depth.conceptual_connections[-2:],
        )
        return result.text

    async def _generate(self, messages: List[Message], params: GenerationParams, fallback: str) -> str:
        """Call the text generator; transient failures fall back to a bank question."""
        try:
            return await self.text_generator.generate(messages, params)
        except LLMServiceError as e:
            if not e.retryable:
                logger.error("[DialogueEngine] Text generation failed permanently", error=e)
                raise
            logger.warning(
                "[DialogueEngine] Text generation unavailable, using fallback question",
                data={"error": str(e), "fallback": fallback},
            )
            return fallback

    @staticmethod
    def _history_messages(state: SessionState) -> List[Message]:
        return [{"role": turn.role.chat_role, "content": turn.content} for turn in state.turns]

    # ------------------------------------------------------------------
    # Persistence support
    # ------------------------------------------------------------------

    def restore_conversation_history(
        self,
        turns: Iterable[Union[ConversationTurn, Dict[str, Any]]],
        problem: Optional[str] = None
    ) -> int:
        """
        Rehydrate the session from stored turns without calling the text generator.

        Learner turns are replayed through classification and the depth and
        difficulty updates; tutor and system turns are recorded as given.

        Args:
            turns: ConversationTurn objects or dicts from ConversationTurn.to_dict()
            problem: Problem text to restore alongside the turns

        Returns:
            Number of turns restored
        """
        state = self._state
        if problem is not None:
            state = replace(state, problem=problem)

        restored = 0
        for item in turns:
            turn = item if isinstance(item, ConversationTurn) else ConversationTurn.from_dict(item)
            restored += 1

            if turn.role is Role.STUDENT:
                state, _ = self._fold_student_turn(state, turn.content, turn.timestamp)
                continue

            state = state.with_turn(turn)
            if turn.role is Role.TUTOR and turn.question_type is not None:
                state = replace(
                    state,
                    depth=self.depth_tracker.record_question(
                        state.depth, turn.question_type, turn.is_understanding_check
                    ),
                    question_types=state.question_types + (turn.question_type,),
                )
            if turn.is_understanding_check:
                state = replace(
                    state,
                    last_understanding_check_turn=state.turn_count,
                    understanding_check_count=state.understanding_check_count + 1,
                )

        self._state = state
        logger.success(f"[DialogueEngine] Restored {restored} turns from history", data={
            "turn_count": state.turn_count,
            "current_depth": state.depth.current_depth,
            "difficulty": state.difficulty.tier.value,
        })
        return restored

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def update_difficulty(self, tier: Union[DifficultyTier, str]):
        """Set the difficulty tier directly (e.g. from an external recommendation)."""
        new_tier = tier if isinstance(tier, DifficultyTier) else DifficultyTier(tier)
        self._state = replace(self._state, difficulty=replace(self._state.difficulty, tier=new_tier))

    def record_behavioral_evidence(self, evidence: BehavioralEvidence) -> int:
        """
        Fold teach-back, transfer and reasoning scores into the depth state.

        Returns:
            Depth level the evidence supports
        """
        depth, level = self.depth_tracker.apply_behavioral_evidence(self._state.depth, evidence)
        self._state = replace(
            self._state,
            depth=depth,
            behavioral_evidence=self._state.behavioral_evidence + (evidence,),
        )
        logger.debug("[DialogueEngine] Behavioral evidence recorded", data={
            "evidence_level": level,
            "current_depth": depth.current_depth,
        })
        return level

    def generate_transfer_challenge(
        self,
        concept: str,
        tier: Optional[Union[DifficultyTier, str]] = None
    ) -> TransferChallenge:
        """
        Template-based transfer problem for a concept; no text generator call.

        Args:
            concept: Concept to transfer (e.g. "algebra", "right triangles")
            tier: Difficulty tier; defaults to the session's current tier

        Returns:
            TransferChallenge with the prompt and the expected approach
        """
        if tier is None:
            tier = self._state.difficulty.tier
        elif not isinstance(tier, DifficultyTier):
            tier = DifficultyTier(tier)
        return self.depth_tracker.transfer_challenge(concept, tier)

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    def get_conversation_history(self) -> List[ConversationTurn]:
        return self._state.visible_turns()

    def get_current_problem(self) -> str:
        return self._state.problem

    def get_conversation_length(self) -> int:
        return len(self._state.visible_turns())

    def get_depth_tracker(self) -> DepthState:
        return self._state.depth

    def get_question_type_sequence(self) -> List[QuestionType]:
        return list(self._state.question_types)

    def get_current_difficulty(self) -> DifficultyTier:
        return self._state.difficulty.tier

    def is_in_assessment_mode(self) -> bool:
        mode = self._state.mode
        return isinstance(mode, AssessmentMode) and mode.state.active

    def suggest_prerequisites(self, prerequisites: Optional[Sequence[str]] = None) -> str:
        return self.assessment_controller.suggest_prerequisites(prerequisites)

    def get_metacognitive_prompt(self, category: str) -> str:
        """Random prompt from a metacognitive category, or a generic one for unknown categories."""
        prompts = METACOGNITIVE_PROMPTS.get(category)
        if not prompts:
            return DEFAULT_METACOGNITIVE_PROMPT
        return self.policy.choose(prompts)

    def get_compliance_metrics(self) -> ComplianceMetrics:
        return self.compliance_filter.compliance_metrics(self._state.turns)

    def get_understanding_check_info(self) -> Dict[str, Any]:
        """
        Summarize the understanding checks asked so far.

        Returns:
            count, per-check details (learner turn number, question type,
            confidence at the time), and the average confidence of the learner
            replies that followed a check
        """
        turns = self._state.turns
        checks = []
        confidences_after = []
        student_count = 0
        for index, turn in enumerate(turns):
            if turn.role is Role.STUDENT:
                student_count += 1
            if not turn.is_understanding_check:
                continue
            checks.append({
                "turn": student_count,
                "question_type": turn.question_type or QuestionType.CLARIFICATION,
                "confidence": turn.student_confidence or 0.0,
            })
            reply = next((t for t in turns[index + 1:] if t.role is Role.STUDENT), None)
            if reply is not None and reply.student_confidence:
                confidences_after.append(reply.student_confidence)

        return {
            "count": self._state.understanding_check_count,
            "checks": checks,
            "average_confidence_after_check": (
                sum(confidences_after) / len(confidences_after) if confidences_after else 0.0
            ),
        }

    def _response_times(self) -> List[float]:
        """Seconds between each tutor turn and the learner reply that followed it."""
        times = []
        previous: Optional[ConversationTurn] = None
        for turn in self._state.turns:
            if turn.role is Role.STUDENT and previous is not None and previous.role is Role.TUTOR:
                times.append((turn.timestamp - previous.timestamp).total_seconds())
            previous = turn
        return times

    def _engagement_score(self) -> float:
        times = self._response_times()
        low, high = ENGAGED_RESPONSE_SECONDS
        if times:
            average = sum(times) / len(times)
            pace_score = 0.4 if low < average < high else 0.2
        else:
            pace_score = 0.4
        return min((self._state.depth.max_depth_reached / MAX_DEPTH) * 0.6 + pace_score, 1.0)

    def _completion_rate(self) -> float:
        meaningful = [
            t for t in self._state.student_turns()
            if len(t.content) > MEANINGFUL_RESPONSE_LENGTH
        ]
        return min(1.0, len(meaningful) / COMPLETION_TARGET_EXCHANGES)

    def _learning_gains(self) -> Dict[str, Any]:
        evidence = self._state.behavioral_evidence
        count = len(evidence)
        return {
            "depth_trajectory": [
                t.depth_level for t in self._state.turns if t.depth_level is not None
            ],
            "teach_back_scores": [e.teach_back_score for e in evidence],
            "transfer_success_rate": (
                sum(1 for e in evidence if e.transfer_success) / count if count else 0.0
            ),
            "reasoning_score_avg": (
                sum(e.reasoning_score for e in evidence) / count if count else 0.0
            ),
            "calibration_error_avg": (
                sum(e.calibration_error for e in evidence) / count if count else 0.0
            ),
            "breakthroughs": sum(
                1 for e in evidence if self.depth_tracker.evidence_level(e) >= 4
            ),
        }

    def generate_analytics(self) -> Dict[str, Any]:
        """Session analytics for a hosting layer to persist or display."""
        state = self._state
        distribution: Dict[str, int] = {}
        for question_type in state.question_types:
            distribution[question_type.value] = distribution.get(question_type.value, 0) + 1

        depth_levels = [t.depth_level for t in state.turns if t.depth_level is not None]

        return {
            "question_types_used": list(distribution),
            "question_type_distribution": distribution,
            "average_depth": sum(depth_levels) / len(depth_levels) if depth_levels else 0.0,
            "current_depth": state.depth.current_depth,
            "max_depth_reached": state.depth.max_depth_reached,
            "concepts_explored": list(dict.fromkeys(state.depth.conceptual_connections)),
            "confidence_progression": state.student_confidences(),
            "engagement_score": self._engagement_score(),
            "total_interactions": len(state.visible_turns()),
            "understanding_checks": state.understanding_check_count,
            "metacognitive_prompts": 2 if state.depth.max_depth_reached >= METACOGNITIVE_DEPTH else 0,
            "learning_gains": self._learning_gains(),
        }

    def get_session_performance(self) -> SessionPerformance:
        """Performance snapshot for analytics storage."""
        state = self._state
        times = self._response_times()
        completion_rate = self._completion_rate()
        struggled = [
            concept
            for turn in state.student_turns()
            if turn.student_confidence is not None and turn.student_confidence < STRUGGLED_CONFIDENCE
            for concept in turn.targeted_concepts
        ]

        return SessionPerformance(
            session_id=state.session_id,
            start_time=state.started_at,
            end_time=datetime.now(),
            total_interactions=len(state.student_turns()),
            problems_solved=1 if state.has_problem else 0,
            average_response_time=sum(times) / len(times) if times else 0.0,
            struggling_turns=state.difficulty.struggling_turns,
            difficulty_level=state.difficulty.tier,
            engagement_score=self._engagement_score(),
            completion_rate=completion_rate,
            concepts_explored=list(state.depth.conceptual_connections),
            mastery_score=completion_rate,
            concepts_learned=list(dict.fromkeys(state.depth.conceptual_connections)),
            hints_used=state.difficulty.struggling_turns,
            struggled_concepts=list(dict.fromkeys(struggled)),
        )
