"""Schema definitions for roadmap forging."""

from schemas.input_schema import ForgeRequest
from schemas.output_schema import (
    Community,
    ErrorDetail,
    ForgeResponse,
    LearningResource,
    PhaseSkill,
    Roadmap,
    RoadmapDocument,
    RoadmapMeta,
    RoadmapPhase,
    RoadmapResources,
    Understanding,
)

__all__ = [
    # Input schemas
    "ForgeRequest",
    # Output schemas
    "RoadmapDocument",
    "RoadmapMeta",
    "Understanding",
    "Roadmap",
    "RoadmapPhase",
    "PhaseSkill",
    "RoadmapResources",
    "LearningResource",
    "Community",
    "ForgeResponse",
    "ErrorDetail",
]
