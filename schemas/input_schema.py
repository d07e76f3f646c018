"""Input schema definitions for roadmap forge requests.

The request body is deliberately loose: ``narrative`` is typed ``Any`` so
that wrong types reach Stage A and get a human-readable reason instead of a
framework-level 422. Unknown keys are ignored.
"""

from typing import Any

from pydantic import BaseModel, Field


class ForgeRequest(BaseModel):
    """Body of ``POST /api/forge``."""

    narrative: Any = Field(
        default=None,
        description="Free-text career narrative written by the user",
        examples=[
            "I have been a backend engineer for 4 years and want to move "
            "into platform engineering"
        ],
    )

    model_config = {"extra": "ignore"}


__all__ = ["ForgeRequest"]
