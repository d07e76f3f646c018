"""
Output schema definitions for roadmap forge responses.

This module defines the roadmap document returned by the forge endpoint and
the success / error envelope wrapped around it.

Attributes are snake_case in Python; the wire format uses the camelCase
aliases (``inferredCareer``, ``hoursPerWeek`` ...). Always dump with
``by_alias=True`` when building HTTP bodies.
"""

from typing import Literal, Union

from pydantic import BaseModel, Field, field_serializer


SkillLevel = Literal["beginner", "intermediate", "advanced"]
LearningResourceType = Literal["youtube", "documentation", "course"]
CommunityPlatform = Literal["discord", "reddit", "forum"]

ALLOWED_SKILL_LEVELS: tuple[str, ...] = ("beginner", "intermediate", "advanced")
ALLOWED_RESOURCE_TYPES: tuple[str, ...] = ("youtube", "documentation", "course")
ALLOWED_COMMUNITY_PLATFORMS: tuple[str, ...] = ("discord", "reddit", "forum")

Number = Union[int, float]

MAX_HOURS_PER_WEEK = 168

_MODEL_CONFIG = {"extra": "forbid", "populate_by_name": True}


def _integral(value: float) -> Number:
    """82.0 goes out as 82, 82.5 stays 82.5."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


class RoadmapMeta(BaseModel):
    """What the model inferred about the target career."""

    inferred_career: str = Field(
        default="Unknown",
        alias="inferredCareer",
        description="Career the narrative points towards",
    )
    confidence: float = Field(
        default=0,
        ge=0,
        le=100,
        description="Model confidence in the inferred career (0-100)",
    )

    model_config = _MODEL_CONFIG

    @field_serializer("confidence")
    def _serialize_confidence(self, value: float) -> Number:
        return _integral(value)


class Understanding(BaseModel):
    """The model's reading of the user's situation."""

    interests: list[str] = Field(default_factory=list)
    work_style: str = Field(default="Not specified", alias="workStyle")
    long_term_goal: str = Field(default="Not specified", alias="longTermGoal")
    hours_per_week: float = Field(
        default=0, ge=0, le=MAX_HOURS_PER_WEEK, alias="hoursPerWeek"
    )

    model_config = _MODEL_CONFIG

    @field_serializer("hours_per_week")
    def _serialize_hours(self, value: float) -> Number:
        return _integral(value)


class PhaseSkill(BaseModel):
    name: str
    level: SkillLevel = "beginner"

    model_config = _MODEL_CONFIG


class RoadmapPhase(BaseModel):
    """One ordered step of the roadmap."""

    id: str = Field(
        ...,
        pattern=r"^phase-[1-9][0-9]*$",
        description="Stable sequential identifier (phase-1, phase-2, ...)",
    )
    title: str
    description: str = ""
    skills: list[PhaseSkill] = Field(default_factory=list)
    tools: list[str] = Field(default_factory=list)
    projects: list[str] = Field(default_factory=list)

    model_config = _MODEL_CONFIG


class LearningResource(BaseModel):
    skill: str = ""
    type: LearningResourceType = "documentation"
    title: str = ""
    description: str = ""

    model_config = _MODEL_CONFIG


class Community(BaseModel):
    name: str = ""
    platform: CommunityPlatform = "forum"
    purpose: str = ""

    model_config = _MODEL_CONFIG


class RoadmapResources(BaseModel):
    learning: list[LearningResource] = Field(default_factory=list)
    communities: list[Community] = Field(default_factory=list)

    model_config = _MODEL_CONFIG


class Roadmap(BaseModel):
    phases: list[RoadmapPhase] = Field(default_factory=list)
    resources: RoadmapResources = Field(default_factory=RoadmapResources)

    model_config = _MODEL_CONFIG


class RoadmapDocument(BaseModel):
    """Schema-complete roadmap returned to the caller."""

    meta: RoadmapMeta = Field(default_factory=RoadmapMeta)
    understanding: Understanding = Field(default_factory=Understanding)
    roadmap: Roadmap = Field(default_factory=Roadmap)

    model_config = _MODEL_CONFIG


class ErrorDetail(BaseModel):
    """Caller-safe error description."""

    message: str = Field(..., max_length=500, description="Human-readable error message")
    code: str = Field(
        ...,
        description="Machine-readable error code",
        examples=["INVALID_INPUT", "AI_ERROR", "FORGE_FAILED", "METHOD_NOT_ALLOWED"],
    )

    model_config = {"extra": "forbid"}


class ForgeResponse(BaseModel):
    """Envelope for every /api/forge response."""

    success: bool
    data: RoadmapDocument | None = None
    error: ErrorDetail | None = None

    model_config = {"extra": "forbid"}


__all__ = [
    "Number",
    "MAX_HOURS_PER_WEEK",
    "SkillLevel",
    "LearningResourceType",
    "CommunityPlatform",
    "ALLOWED_SKILL_LEVELS",
    "ALLOWED_RESOURCE_TYPES",
    "ALLOWED_COMMUNITY_PLATFORMS",
    "RoadmapMeta",
    "Understanding",
    "PhaseSkill",
    "RoadmapPhase",
    "LearningResource",
    "Community",
    "RoadmapResources",
    "Roadmap",
    "RoadmapDocument",
    "ErrorDetail",
    "ForgeResponse",
]
