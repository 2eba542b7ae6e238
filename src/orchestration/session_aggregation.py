"""
Run-level aggregation of per-chunk results.
"""

from typing import List, Optional

from src.schemas.models import BatchSummary, ChunkFailure, ImageAssessment, ImageRef, RunResult
from utils.logger import setup_logger
from utils.config import config

logger = setup_logger(__name__, level=config.log_level, component="AGGREGATION")


def summarize(assessments: List[ImageAssessment]) -> BatchSummary:
    """Count assessments per final condition."""
    summary = BatchSummary()
    for assessment in assessments:
        summary.record(assessment)
    return summary


def merge_chunk(
    result: RunResult,
    chunk: List[ImageRef],
    assessments: List[ImageAssessment],
    failure: Optional[ChunkFailure] = None
) -> RunResult:
    """
    Append one chunk's outcome to the run result, in place.

    Args:
        result: Run result owned by the workflow
        chunk: Images submitted for this chunk
        assessments: Final assessments for the chunk, in chunk order
        failure: Set when the chunk failed and partial results are allowed

    Returns:
        The same run result
    """
    if failure is not None:
        result.failed_chunks.append(failure)
        logger.warning(
            f"Chunk {failure.index} failed ({failure.error_type}): {failure.message} - "
            f"{len(chunk)} image(s) without results"
        )
        return result

    for assessment in assessments:
        result.assessments.append(assessment)
        result.summary.record(assessment)

    returned = {a.id for a in assessments}
    result.missing_ids.extend(ref.id for ref in chunk if ref.id not in returned)
    return result
