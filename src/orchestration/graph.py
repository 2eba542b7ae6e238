"""
LangGraph workflow construction and execution.
"""

import uuid
from typing import List, Optional

from langgraph.graph import StateGraph, END

from src.agents.base import InferenceClientAdapter
from src.agents.dual_pass import DualPassAssessor
from src.exceptions import HazardEngineError
from src.orchestration.nodes import (
    initialize_run,
    assess_chunk,
    fuse_and_classify,
    accumulate,
    has_more_chunks,
    finalize_run,
)
from src.orchestration.state import AssessmentState
from src.schemas.models import ImageRef, RunResult
from utils.config import config
from utils.logger import setup_logger, clear_request_id, print_error, print_run_summary
from utils.validators import validate_chunk_size, validate_image_ids

logger = setup_logger(__name__, level=config.log_level, component="GRAPH")

# initialize + finalize, plus assess/fuse/accumulate per chunk
_FIXED_STEPS = 2
_STEPS_PER_CHUNK = 3


def create_assessment_workflow() -> StateGraph:
    """
    Create the batch assessment workflow graph.

    Returns:
        Configured StateGraph
    """
    workflow = StateGraph(AssessmentState)

    workflow.add_node("initialize", initialize_run)
    workflow.add_node("assess_chunk", assess_chunk)
    workflow.add_node("fuse_and_classify", fuse_and_classify)
    workflow.add_node("accumulate", accumulate)
    workflow.add_node("finalize", finalize_run)

    workflow.set_entry_point("initialize")

    workflow.add_edge("initialize", "assess_chunk")
    workflow.add_edge("assess_chunk", "fuse_and_classify")
    workflow.add_edge("fuse_and_classify", "accumulate")

    # Chunks are processed strictly one after another
    workflow.add_conditional_edges(
        "accumulate",
        has_more_chunks,
        {
            "assess_chunk": "assess_chunk",
            "finalize": "finalize"
        }
    )
    workflow.add_edge("finalize", END)

    return workflow


def run_hazard_assessment(
    images: List[ImageRef],
    chunk_size: Optional[int] = None,
    assessor: Optional[DualPassAssessor] = None,
    allow_partial: Optional[bool] = None,
    max_attempts: Optional[int] = None,
    request_id: Optional[str] = None,
    show_summary: bool = False
) -> RunResult:
    """
    Classify every image of a batch.

    Args:
        images: Images in report order; ids must be unique
        chunk_size: Images per provider call (defaults to config)
        assessor: Dual-pass assessor (defaults to one backed by the configured provider)
        allow_partial: Record failed chunks instead of failing the run (defaults to config)
        max_attempts: Attempts per chunk before giving up (defaults to config)
        request_id: Optional correlation id for logs
        show_summary: Print a rich summary table when done

    Returns:
        Run result with assessments in input order

    Raises:
        InvalidArgument: Empty batch, duplicate ids, bad chunk size or unresolvable
            images (before any inference call)
        InferenceError: A chunk failed after all attempts and partial results are off
    """
    images = list(images)
    validate_image_ids([ref.id for ref in images])
    size = validate_chunk_size(chunk_size, config.chunk_size)

    request_id = request_id or str(uuid.uuid4())[:8]
    assessor = assessor or DualPassAssessor(InferenceClientAdapter())
    assessor.check_images(images)
    partial = config.allow_partial_results if allow_partial is None else allow_partial
    attempts = max_attempts or config.api_max_retries

    chunk_count = -(-len(images) // size)
    app = create_assessment_workflow().compile()

    logger.info(f"Starting run {request_id}: {len(images)} image(s), partial results: {partial}")

    try:
        final_state = app.invoke(
            {
                "images": images,
                "chunk_size": size,
                "allow_partial": partial,
                "request_id": request_id,
            },
            config={
                "configurable": {"assessor": assessor, "max_attempts": attempts},
                "recursion_limit": _FIXED_STEPS + _STEPS_PER_CHUNK * chunk_count + 5,
            },
        )
    except HazardEngineError as e:
        logger.error(f"Run {request_id} failed: {type(e).__name__}: {e}")
        if show_summary:
            print_error(type(e).__name__, str(e), details=f"Request ID: {request_id}")
        raise
    finally:
        clear_request_id()

    result: RunResult = final_state["result"]

    if show_summary:
        print_run_summary(
            result.summary.model_dump(),
            total_images=len(images),
            missing=len(result.missing_ids),
            failed_chunks=len(result.failed_chunks),
            processing_time=final_state.get("processing_time"),
        )

    return result
