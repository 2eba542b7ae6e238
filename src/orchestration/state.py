"""
State definition for the batch assessment workflow.
"""

from typing import TypedDict, Optional, Dict, List

from src.schemas.models import ChunkFailure, HazardTagSet, ImageAssessment, ImageRef, RunResult


class AssessmentState(TypedDict, total=False):
    """State for the batch assessment workflow."""

    # Input
    images: List[ImageRef]
    chunk_size: int
    allow_partial: bool

    # Request tracking
    request_id: str
    start_time: float

    # Chunk iteration
    chunks: List[List[ImageRef]]
    chunk_index: int

    # Per-chunk working data, replaced on every iteration
    descriptive: List[ImageAssessment]
    checks: Dict[str, HazardTagSet]
    assessments: List[ImageAssessment]
    failure: Optional[ChunkFailure]

    # Output
    result: RunResult

    # Metadata
    processing_time: Optional[float]
    current_step: str
