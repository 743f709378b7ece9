"""
Prompt Tables

Static text used by the dialogue engine: the tutor system prompt, the
contextual question bank, metacognitive prompts, transfer challenge templates
and fixed fallback lines.
"""

from typing import Dict, Tuple


OPENING_FALLBACK = (
    "I'm excited to explore this problem with you! "
    "What's your initial understanding of what we're looking for?"
)

DEFAULT_METACOGNITIVE_PROMPT = "How are you thinking about this problem?"

QUESTION_SUFFIX = " What do you think?"


# question type -> context -> candidate questions
QUESTION_BANK: Dict[str, Dict[str, Tuple[str, ...]]] = {
    "clarification": {
        "high_confidence": (
            "Walk me through your thinking. How did you arrive at that?",
            "Can you explain that in your own words?",
            "What exactly are we trying to find here?",
        ),
        "low_confidence": (
            "Let's start simple. What information do we have?",
            "What's the very first thing you notice about this problem?",
            "If you had to describe this problem to a friend, what would you say?",
        ),
        "stuck": (
            "Let's break this down. What's just one small piece you understand?",
            "What's the easiest part of this problem?",
            "What do the numbers in the problem tell us?",
        ),
    },
    "assumptions": {
        "high_confidence": (
            "What are you assuming must be true for that to work?",
            "Does that hold true in every case?",
            "What if we didn't make that assumption? What changes?",
        ),
        "low_confidence": (
            "What do we know for certain about this type of problem?",
            "Are there any rules or patterns that apply here?",
            "Which properties of this problem can we count on?",
        ),
        "misconception": (
            "Let's test that. If that were true, what would happen?",
            "Can you think of a case where that might not work?",
            "What would need to be different for that to be correct?",
        ),
    },
    "evidence": {
        "high_confidence": (
            "What evidence supports that conclusion?",
            "How do you know that's the right approach?",
            "Can you show why that works?",
        ),
        "low_confidence": (
            "What makes you lean toward that answer?",
            "How could we check if that's on the right track?",
            "What part of the problem suggests that?",
        ),
        "after_correct": (
            "You got it! Can you explain why that works?",
            "Nice! Can you show me the reasoning behind that?",
            "Good! What rule or principle did you use there?",
        ),
    },
    "perspective": {
        "high_confidence": (
            "Is there another way you could approach this?",
            "How might someone else solve this differently?",
            "What if we started from what we want and worked backwards?",
        ),
        "low_confidence": (
            "What would this problem look like from a different angle?",
            "If you sketched this problem, what would the picture show?",
            "What's a simpler version of this problem we could try first?",
        ),
    },
    "implications": {
        "high_confidence": (
            "If that's true, what does it tell us about the next step?",
            "How does this connect to what you found earlier?",
            "What pattern do you notice emerging?",
        ),
        "low_confidence": (
            "If we tried that, what would happen?",
            "Let's follow that thought. Where does it lead?",
            "What's the next logical step from here?",
        ),
        "building": (
            "You're building toward something! What comes next?",
            "You've got part of it. How does this piece fit with what you found before?",
            "We're getting closer! What does this tell us about our goal?",
        ),
    },
    "meta_questioning": {
        "high_confidence": (
            "How did you decide to try that approach?",
            "What strategy are you using here?",
            "What does this problem remind you of?",
        ),
        "reflection": (
            "What made this problem challenging?",
            "How is this similar to problems you've solved before?",
            "If you saw this problem again, what would you do first?",
        ),
        "after_success": (
            "You figured it out! What was the key insight?",
            "How did your thinking change as you worked through this?",
            "What strategy worked best for you here?",
        ),
    },
}


METACOGNITIVE_PROMPTS: Dict[str, Tuple[str, ...]] = {
    "processReflection": (
        "How did you decide to take that approach?",
        "What was your thinking process here?",
        "What made you choose this method?",
    ),
    "confidenceCheck": (
        "How confident are you in this answer? What makes you feel that way?",
        "On a scale of 1-10, how sure are you about this step?",
        "What part of this solution feels most solid to you?",
    ),
    "strategyAwareness": (
        "What strategy are you using here? Have you used it before?",
        "Is this approach similar to problems you've solved before?",
        "What other methods could work for this problem?",
    ),
    "errorAnalysis": (
        "What do you think might have led to this mistake?",
        "If you were to start over, what would you do differently?",
        "What could help you avoid this error next time?",
    ),
}


SYSTEM_PROMPT_TEMPLATE = """You are a Socratic math tutor. You guide students to discover solutions themselves through short, well-timed questions.

=== CORE IDENTITY ===
You are warm, patient and curious about how the student is thinking. Their reasoning matters more to you than speed.

=== FUNDAMENTAL RULES ===
1. NEVER state the answer or the solution to the problem.
2. ALWAYS respond with a question, and end every response with a question mark.
3. Keep every response to at most 2 sentences.
4. NEVER suggest specific operations (no "subtract 5", no "divide by 2").
5. Refer to the structure of the actual problem. No metaphors, stories or "imagine" scenarios.
6. When the student is right, probe why before moving on.

=== THE SIX QUESTION TYPES ===
CLARIFICATION: "What exactly are we trying to find here?"
ASSUMPTIONS: "What are you assuming must be true for that to work?"
EVIDENCE: "What makes you think that?"
PERSPECTIVE: "How might someone solve this differently?"
IMPLICATIONS: "If that's true, what happens next?"
META_QUESTIONING: "How did you decide to try that approach?"

=== SCAFFOLDING EXCEPTION ===
When the student has been stuck for several turns you may restate:
- the goal: "We're trying to find [what the problem asks for]."
- the given facts: "The problem tells us [the given information]."
You must still never say HOW to solve it.

=== FORBIDDEN BEHAVIORS ===
- "The answer is X"
- "Here's how you solve it: step 1..."
- "That's wrong. Try again."
- Long explanations without a question
- Several questions at once

=== CURRENT CONTEXT ===
Student Level: {student_level}
Problem: {problem}
Key Concepts: {concepts}
Learning Goal: {learning_objective}

Begin with one Socratic question that opens the student's thinking about this problem."""


ASSESSMENT_SYSTEM_PROMPT_TEMPLATE = """You are a learning assessment tutor. The student will give a direct answer to this problem:

"{problem}"

Accept their answer, do not guide them to it, and keep responses to 1-2 sentences."""


# Transfer challenges: category -> difficulty tier -> (prompt, expected approach).
# Fixed templates so a challenge is reproducible across sessions.
TRANSFER_CHALLENGES: Dict[str, Dict[str, Tuple[str, str]]] = {
    "algebra": {
        "beginner": (
            "If you have 3x + 7 = 22, how would you solve for x?",
            "Subtract 7 from both sides, then divide by 3",
        ),
        "intermediate": (
            "Solve 2(x - 3) + 5 = 13. What steps would you take?",
            "Distribute 2, combine like terms, isolate x",
        ),
        "advanced": (
            "How would you solve the system: 2x + 3y = 12 and x - y = 1?",
            "Use substitution or elimination method",
        ),
    },
    "geometry": {
        "beginner": (
            "If a rectangle has length 8 and width 5, how would you find its area?",
            "Multiply length by width",
        ),
        "intermediate": (
            "A triangle has sides of length 3, 4, and 5. How would you determine if it's a right triangle?",
            "Use Pythagorean theorem: check if 3² + 4² = 5²",
        ),
        "advanced": (
            "Given a circle with radius r, how would you find the area of a sector with central angle θ?",
            "Use formula: (θ/360) × πr²",
        ),
    },
    "calculus": {
        "beginner": (
            "If f(x) = x², what is the derivative f'(x)?",
            "Apply power rule: 2x",
        ),
        "intermediate": (
            "How would you find the maximum value of f(x) = -x² + 4x + 1?",
            "Take derivative, set to zero, find critical point, verify maximum",
        ),
        "advanced": (
            "How would you evaluate the integral ∫(2x + 3)dx?",
            "Apply power rule for integration: x² + 3x + C",
        ),
    },
}

# Checked in order; a concept matching none of them gets algebra
TRANSFER_CATEGORY_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("geometry", ("geometry", "triangle", "circle")),
    ("calculus", ("calculus", "derivative", "integral")),
)
DEFAULT_TRANSFER_CATEGORY = "algebra"
DEFAULT_TRANSFER_TIER = "intermediate"
