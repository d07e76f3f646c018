"""Unittest suite for the roadmap prompt builder."""

from __future__ import annotations

import unittest

from functions.utils.prompts_builder import ROADMAP_SCHEMA_DESCRIPTION, build_roadmap_prompt
from tests.utils_test_support import SAMPLE_NARRATIVE, LoggingTestCase


class TestBuildRoadmapPrompt(LoggingTestCase):
    def test_contains_narrative_verbatim(self) -> None:
        narratives = [
            SAMPLE_NARRATIVE,
            "I teach high-school maths.\nI'd like to become a data scientist within 2 years.",
            'My manager says I "think in systems" {and} I love Kubernetes & Go.',
        ]
        for narrative in narratives:
            with self.subTest(narrative=narrative[:30]):
                self.assertIn(narrative, build_roadmap_prompt(narrative))

    def test_contains_literal_schema_description(self) -> None:
        prompt = build_roadmap_prompt(SAMPLE_NARRATIVE)
        self.assertIn(ROADMAP_SCHEMA_DESCRIPTION, prompt)

    def test_schema_names_every_allowed_literal(self) -> None:
        for literal in ("beginner", "intermediate", "advanced", "youtube", "documentation",
                        "course", "discord", "reddit", "forum"):
            self.assertIn(literal, ROADMAP_SCHEMA_DESCRIPTION)

    def test_formatting_constraints_present(self) -> None:
        prompt = build_roadmap_prompt(SAMPLE_NARRATIVE)
        self.assertIn("JSON only", prompt)
        self.assertIn("Do not use markdown", prompt)

    def test_is_deterministic(self) -> None:
        self.assertEqual(build_roadmap_prompt(SAMPLE_NARRATIVE), build_roadmap_prompt(SAMPLE_NARRATIVE))


if __name__ == "__main__":
    unittest.main()
