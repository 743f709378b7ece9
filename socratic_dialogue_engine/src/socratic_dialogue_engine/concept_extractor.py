"""
Concept Extraction

Maps free text onto a fixed vocabulary of math domain tags using keyword
lookup. Used to tag problems and learner turns with the concepts they touch.
"""

import re
from typing import Dict, List, Sequence, Tuple


# Category -> keywords. Order matters: tags come back in table order.
CONCEPTUAL_FRAMEWORK: Dict[str, Tuple[str, ...]] = {
    "algebra": ("variables", "equations", "solving", "substitution", "elimination"),
    "geometry": ("shapes", "area", "perimeter", "angles", "theorems"),
    "calculus": ("derivatives", "integrals", "limits", "rates", "optimization"),
    "statistics": ("mean", "median", "distribution", "probability", "correlation"),
    "arithmetic": ("addition", "subtraction", "multiplication", "division"),
    "fractions": ("numerator", "denominator", "equivalent", "simplify"),
}

LEARNING_OBJECTIVES: Tuple[Tuple[str, str], ...] = (
    ("algebra", "Understand how to isolate variables through inverse operations"),
    ("geometry", "Apply appropriate formulas and understand spatial relationships"),
    ("calculus", "Understand rates of change and accumulation"),
    ("arithmetic", "Apply basic mathematical operations accurately"),
)

DEFAULT_LEARNING_OBJECTIVE = "Develop problem-solving strategies and mathematical reasoning"


def _compile(keywords: Sequence[str]) -> "re.Pattern[str]":
    alternatives = "|".join(re.escape(k) for k in keywords)
    return re.compile(rf"\b(?:{alternatives})\b", re.IGNORECASE)


class ConceptExtractor:
    """
    Keyword-based concept tagger.

    Matching is case-insensitive and word-bounded, so "area" matches
    "the area of" but not "areas" or "arealist".
    """

    def __init__(self, framework: Dict[str, Tuple[str, ...]] = CONCEPTUAL_FRAMEWORK):
        self._patterns: List[Tuple[str, "re.Pattern[str]"]] = [
            (category, _compile(keywords)) for category, keywords in framework.items()
        ]

    def extract(self, text: str) -> Tuple[str, ...]:
        """
        Extract concept tags from text.

        Args:
            text: Problem statement or learner utterance

        Returns:
            De-duplicated category tags in framework order
        """
        if not text:
            return ()
        return tuple(category for category, pattern in self._patterns if pattern.search(text))

    def learning_objective(self, concepts: Sequence[str]) -> str:
        """One-line learning goal for the first domain with a known objective."""
        for category, objective in LEARNING_OBJECTIVES:
            if category in concepts:
                return objective
        return DEFAULT_LEARNING_OBJECTIVE
