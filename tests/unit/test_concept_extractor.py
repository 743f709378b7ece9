"""
Unit Tests for Concept Extractor
"""

import pytest
import sys
import os

# Add project root to path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
sys.path.insert(0, os.path.join(project_root, "socratic_dialogue_engine", "src"))

from socratic_dialogue_engine.concept_extractor import (
    ConceptExtractor,
    DEFAULT_LEARNING_OBJECTIVE,
)


class TestConceptExtractor:
    """Test suite for ConceptExtractor."""

    @pytest.fixture
    def extractor(self):
        return ConceptExtractor()

    def test_single_category(self, extractor):
        assert extractor.extract("Find the area of the rectangle") == ("geometry",)

    def test_multiple_categories_in_table_order(self, extractor):
        text = "Use substitution, then simplify the denominator and check the mean"
        assert extractor.extract(text) == ("algebra", "statistics", "fractions")

    def test_case_insensitive(self, extractor):
        assert extractor.extract("DERIVATIVES and LIMITS") == ("calculus",)

    def test_word_boundaries(self, extractor):
        # "areas" and "meaning" are not keywords
        assert extractor.extract("the areas have meaning") == ()

    def test_duplicates_collapse(self, extractor):
        assert extractor.extract("area and perimeter and angles") == ("geometry",)

    def test_empty_text(self, extractor):
        assert extractor.extract("") == ()

    def test_learning_objective_for_known_domain(self, extractor):
        objective = extractor.learning_objective(("algebra",))
        assert "isolate variables" in objective

    def test_learning_objective_prefers_first_known_domain(self, extractor):
        objective = extractor.learning_objective(("calculus", "algebra"))
        assert "isolate variables" in objective

    def test_learning_objective_default(self, extractor):
        assert extractor.learning_objective(("statistics",)) == DEFAULT_LEARNING_OBJECTIVE
        assert extractor.learning_objective(()) == DEFAULT_LEARNING_OBJECTIVE


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
