"""
Orchestration module for the hazard classification engine.
"""

from src.orchestration.chunking import chunk
from src.orchestration.state import AssessmentState
from src.orchestration.graph import (
    create_assessment_workflow,
    run_hazard_assessment,
)

__all__ = [
    "chunk",
    "AssessmentState",
    "create_assessment_workflow",
    "run_hazard_assessment",
]
