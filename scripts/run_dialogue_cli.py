"""
Interactive Dialogue Harness

Drives a DialogueEngine from the terminal for manual testing.

Usage:
    python scripts/run_dialogue_cli.py "Solve 2x + 5 = 11"
    python scripts/run_dialogue_cli.py "What is 3 + 4?" --assessment --expected 7
    python scripts/run_dialogue_cli.py "Solve for x: x/2 = 6" --seed 42 --verbose

Type 'quit' to end the session, 'stats' for session analytics.
"""

import sys
import json
import logging
from dataclasses import replace
from pathlib import Path

project_root = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(project_root / "socratic_dialogue_engine" / "src"))

from socratic_dialogue_engine.config import EngineConfig
from socratic_dialogue_engine.dialogue_engine import DialogueEngine
from socratic_dialogue_engine.errors import LLMServiceError
from socratic_dialogue_engine.logger import get_logger, setup_logging

logger = get_logger("run_dialogue_cli")


async def main(problem: str, assessment: bool, expected: str, seed: int):
    config = EngineConfig.from_env()
    if seed is not None:
        config = replace(config, selection_seed=seed)

    engine = DialogueEngine(config=config)
    engine.initialize_session("cli-session")

    try:
        if assessment:
            opening = await engine.start_assessment_problem(problem, expected)
        else:
            opening = await engine.start_problem(problem)
    except LLMServiceError as e:
        logger.error("Could not start the problem", error=e)
        sys.exit(1)

    print(f"\nTutor: {opening}\n")

    while True:
        try:
            student_input = input("You: ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break

        if not student_input:
            continue
        if student_input.lower() in ("quit", "exit"):
            break
        if student_input.lower() == "stats":
            print(json.dumps(engine.generate_analytics(), indent=2, default=str))
            continue

        try:
            reply = await engine.respond_to_student(student_input)
        except LLMServiceError as e:
            logger.error("Text generation failed", error=e)
            break

        print(f"\nTutor: {reply}\n")

    performance = engine.get_session_performance()
    print("=" * 60)
    print("SESSION SUMMARY")
    print("=" * 60)
    print(f"Interactions: {performance.total_interactions}")
    print(f"Difficulty:   {performance.difficulty_level.value}")
    print(f"Depth:        {engine.get_depth_tracker().max_depth_reached}/5")
    print(f"Concepts:     {', '.join(performance.concepts_learned) or '-'}")
    print(f"Compliance:   {engine.get_compliance_metrics().compliance_score:.0f}%")


if __name__ == "__main__":
    import asyncio
    import argparse

    parser = argparse.ArgumentParser(description="Run an interactive Socratic tutoring session")
    parser.add_argument("problem", help="Problem statement to work on")
    parser.add_argument(
        "--assessment",
        action="store_true",
        help="Run in assessment mode (one graded answer)"
    )
    parser.add_argument("--expected", default=None, help="Expected answer for assessment mode")
    parser.add_argument("--seed", type=int, default=None, help="Seed for question selection")
    parser.add_argument("--verbose", action="store_true", help="Show debug logging")

    args = parser.parse_args()
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)
    asyncio.run(main(args.problem, args.assessment, args.expected, args.seed))
