"""
Inference agents for the hazard classification engine.
"""

from src.agents.base import InferenceClientAdapter
from src.agents.dual_pass import DualPassAssessor
from src.agents.parsing import extract, repair_json, strip_code_fences


def get_assessor() -> DualPassAssessor:
    """Get a dual-pass assessor backed by the configured provider."""
    return DualPassAssessor(InferenceClientAdapter())


def health_check_agents() -> dict:
    """
    Perform health check on the inference provider.

    Returns:
        Dict of agent_name -> (status: bool, details: str)
    """
    from utils.config import config

    results = {}
    try:
        adapter = InferenceClientAdapter()
        status = adapter.health_check()
        results["Vision provider (HuggingFace)"] = (
            status,
            f"Model: {config.vlm_model}" if status else "Connection failed"
        )
    except Exception as e:
        results["Vision provider (HuggingFace)"] = (False, f"Error: {e}")
    return results


__all__ = [
    "InferenceClientAdapter",
    "DualPassAssessor",
    "extract",
    "repair_json",
    "strip_code_fences",
    "get_assessor",
    "health_check_agents",
]
