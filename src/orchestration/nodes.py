"""
Workflow node functions for the batch assessment pipeline.
"""

import time
import uuid

from langchain_core.runnables import RunnableConfig

from src.exceptions import InferenceError, InvalidArgument
from src.orchestration.chunking import chunk
from src.orchestration.session_aggregation import merge_chunk, summarize
from src.orchestration.state import AssessmentState
from src.safety.consensus import fuse_chunk
from src.safety.rules import apply_rules
from src.schemas.models import ChunkFailure, RunResult
from utils.logger import setup_logger, set_request_id
from utils.config import config

logger = setup_logger(__name__, level=config.log_level, component="WORKFLOW")


def _backoff_delay(attempt: int) -> float:
    """Calculate backoff delay in seconds (exponential backoff)."""
    return min(float(config.api_retry_backoff ** attempt), 10.0)  # Max 10 seconds


def initialize_run(state: AssessmentState) -> AssessmentState:
    """Split the batch into chunks and start an empty run result."""
    logger.info("=" * 80)
    logger.info("STARTING NEW HAZARD ASSESSMENT RUN")
    logger.info("=" * 80)

    request_id = state.get("request_id") or str(uuid.uuid4())[:8]
    set_request_id(request_id)

    chunks = chunk(state["images"], state["chunk_size"])
    logger.info(
        f"{len(state['images'])} image(s) in {len(chunks)} chunk(s) of up to {state['chunk_size']}"
    )

    return {
        "request_id": request_id,
        "start_time": time.time(),
        "chunks": chunks,
        "chunk_index": 0,
        "result": RunResult(),
        "current_step": "initialized",
    }


def assess_chunk(state: AssessmentState, config: RunnableConfig) -> AssessmentState:
    """
    Run both inference passes for the current chunk, retrying failed calls.

    After the last attempt the error propagates (whole-run failure) unless
    partial results are allowed, in which case the chunk is recorded as failed.
    """
    assessor = config["configurable"]["assessor"]
    max_attempts = config["configurable"].get("max_attempts", 1)
    index = state["chunk_index"]
    current = state["chunks"][index]

    logger.info(f"Chunk {index + 1}/{len(state['chunks'])}: {len(current)} image(s)")

    last_error = None
    for attempt in range(max_attempts):
        try:
            descriptive, checks = assessor.assess(current)
            return {
                "descriptive": descriptive,
                "checks": checks,
                "failure": None,
                "current_step": "assessed",
            }
        except InvalidArgument as e:
            # An unreadable image fails the same way on every attempt
            last_error = e
            break
        except InferenceError as e:
            last_error = e
            if attempt < max_attempts - 1:
                delay = _backoff_delay(attempt)
                logger.warning(
                    f"Chunk {index + 1} attempt {attempt + 1}/{max_attempts} failed: {e}, "
                    f"retrying in {delay:.0f}s..."
                )
                time.sleep(delay)

    logger.error(f"Chunk {index + 1} failed: {type(last_error).__name__}: {last_error}")
    if not state.get("allow_partial"):
        raise last_error

    return {
        "descriptive": [],
        "checks": {},
        "failure": ChunkFailure(
            index=index,
            image_ids=[ref.id for ref in current],
            error_type=type(last_error).__name__,
            message=str(last_error),
        ),
        "current_step": "assessment_failed",
    }


def fuse_and_classify(state: AssessmentState) -> AssessmentState:
    """Fuse both passes per image, then re-derive the classification."""
    if state.get("failure") is not None:
        return {"assessments": [], "current_step": "classified"}

    fused = fuse_chunk(state["descriptive"], state["checks"])
    assessments = [apply_rules(assessment) for assessment in fused]

    for assessment in assessments:
        logger.debug(
            f"[{assessment.id}] condition={assessment.condition} severity={assessment.severity} "
            f"recommendations={len(assessment.recommendations)}"
        )
    return {"assessments": assessments, "current_step": "classified"}


def accumulate(state: AssessmentState) -> AssessmentState:
    """Merge the chunk into the run result and advance to the next chunk."""
    index = state["chunk_index"]
    result = merge_chunk(
        state["result"],
        state["chunks"][index],
        state["assessments"],
        state.get("failure"),
    )
    return {"result": result, "chunk_index": index + 1, "current_step": "accumulated"}


def has_more_chunks(state: AssessmentState) -> str:
    """Route back to assessment while chunks remain."""
    return "assess_chunk" if state["chunk_index"] < len(state["chunks"]) else "finalize"


def finalize_run(state: AssessmentState) -> AssessmentState:
    """Finalize the run and log its summary."""
    result = state["result"]
    processing_time = time.time() - state["start_time"]

    recount = summarize(result.assessments)
    if recount != result.summary:
        logger.error(f"Summary drifted from assessments ({result.summary} vs {recount}), recounting")
        result.summary = recount

    logger.info("=" * 80)
    logger.info(
        f"RUN COMPLETE: fire_hazard={result.summary.fire_hazard_count} "
        f"trip_fall={result.summary.trip_fall_count} none={result.summary.none_count} "
        f"missing={len(result.missing_ids)} failed_chunks={len(result.failed_chunks)}"
    )
    logger.info(f"Processing time: {processing_time:.2f}s")
    logger.info("=" * 80)

    return {"result": result, "processing_time": processing_time, "current_step": "completed"}
