"""
Pydantic schemas for the hazard classification engine.
"""

from src.schemas.models import (
    ImageRef,
    FireHazardTags,
    TripFallTags,
    HazardTagSet,
    ImageAssessment,
    BatchSummary,
    ChunkFailure,
    RunResult,
)

__all__ = [
    "ImageRef",
    "FireHazardTags",
    "TripFallTags",
    "HazardTagSet",
    "ImageAssessment",
    "BatchSummary",
    "ChunkFailure",
    "RunResult",
]
