# functions/utils/prompts_builder.py
"""
Prompt construction for roadmap generation.

``build_roadmap_prompt`` is a pure template: the same narrative always
yields the same prompt. The schema block below is the contract the
normalizer in Stage C enforces, so keep the two in sync.
"""

from __future__ import annotations

ROADMAP_SCHEMA_DESCRIPTION = """{
  "meta": {
    "inferredCareer": "string",
    "confidence": "number between 0 and 100"
  },
  "understanding": {
    "interests": ["string"],
    "workStyle": "string",
    "longTermGoal": "string",
    "hoursPerWeek": "number (0 or more)"
  },
  "roadmap": {
    "phases": [
      {
        "id": "phase-1",
        "title": "string",
        "description": "string",
        "skills": [
          { "name": "string", "level": "beginner | intermediate | advanced" }
        ],
        "tools": ["string"],
        "projects": ["string"]
      }
    ],
    "resources": {
      "learning": [
        {
          "skill": "string",
          "type": "youtube | documentation | course",
          "title": "string",
          "description": "string"
        }
      ],
      "communities": [
        {
          "name": "string",
          "platform": "discord | reddit | forum",
          "purpose": "string"
        }
      ]
    }
  }
}"""

PROMPT_TEMPLATE = """You are an experienced career strategist.

Read the career narrative below and design a practical, phased learning roadmap
that takes this person from where they are today to the career they describe.

CAREER NARRATIVE:
\"\"\"
{narrative}
\"\"\"

Return a single JSON object that follows EXACTLY this schema:

{schema}

RULES:
- Respond with JSON only. No explanations before or after the JSON.
- Do not use markdown. Do not wrap the JSON in code fences.
- Use only the allowed values for "level", "type" and "platform".
- Order the phases from first to last; number their ids phase-1, phase-2, ...
- Give 3 to 6 phases, each with concrete skills, tools and projects.
- Base "understanding" only on what the narrative says or clearly implies.
"""


def build_roadmap_prompt(narrative: str) -> str:
    """Embed the narrative and the literal schema description in the prompt."""
    return PROMPT_TEMPLATE.format(
        narrative=narrative,
        schema=ROADMAP_SCHEMA_DESCRIPTION,
    )


__all__ = ["ROADMAP_SCHEMA_DESCRIPTION", "PROMPT_TEMPLATE", "build_roadmap_prompt"]
