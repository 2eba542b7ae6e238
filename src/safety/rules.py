"""
Deterministic classification rule engine.

Condition, severity, recommendations and comment are re-derived from the
fused tags alone; the provider's own values for them are never trusted
(trip/fall severity may only keep an asserted "high").
"""

import re
from dataclasses import dataclass
from typing import List, Tuple

from src.schemas.models import HazardTagSet, ImageAssessment


# Fixed order: fire leaves, trip leaves, then rust
FIRE_RECOMMENDATIONS: Tuple[Tuple[str, str], ...] = (
    ("combustibles", "Remove combustibles or garbage from the area."),
    ("open_wiring", "Repair exposed wiring and restore insulation."),
    ("oil_leak", "Stop leak at the source and clean the spill."),
    ("uninsulated_hot_surface", "Install or repair insulation on hot surfaces."),
)

TRIP_RECOMMENDATIONS: Tuple[Tuple[str, str], ...] = (
    ("obstructed_walkway", "Remove obstruction to clear the walkway."),
    ("blocked_passage", "Unblock passage to ensure safe access."),
    ("broken_railing", "Repair or replace the broken railing."),
    ("unmarked_pipeline", "Mark pipelines crossing the walkway."),
    ("slippery_surface", "Clean or treat the slippery surface."),
)

RUST_RECOMMENDATION = "Derust affected surfaces by chemical or mechanical means (hydroblaster, pneumatic tools)."

# Fire leaves that raise a fire hazard to high severity
HIGH_SEVERITY_FIRE = ("open_wiring", "oil_leak", "uninsulated_hot_surface")

BANNED_COMMENT_PATTERN = re.compile(
    r"appears orderly|no observable|looks fine|no visible hazards|no issues visible",
    re.IGNORECASE,
)

FALLBACK_COMMENTS = {
    "fire_hazard": "Fire hazard noted - check and correct as per safety rules.",
    "trip_fall": "Trip/fall hazard noted - remove obstruction or repair railing.",
    "rust": "Rust observed - schedule cleaning or derusting.",
    "tidy": "Area appears tidy with clear walk path and safe stowage.",
}


@dataclass(frozen=True)
class Classification:
    condition: str
    severity: str
    recommendations: Tuple[str, ...]
    comment: str


def derive_condition(tags: HazardTagSet) -> str:
    if tags.any_fire:
        return "fire_hazard"
    if tags.any_trip:
        return "trip_fall"
    return "none"


def derive_severity(tags: HazardTagSet, condition: str, asserted: str) -> str:
    if condition == "fire_hazard":
        fire = tags.fire_hazard
        return "high" if any(getattr(fire, leaf) for leaf in HIGH_SEVERITY_FIRE) else "medium"
    if condition == "trip_fall":
        return "high" if asserted == "high" else "medium"
    return "low"


def derive_recommendations(tags: HazardTagSet) -> List[str]:
    recommendations = [text for leaf, text in FIRE_RECOMMENDATIONS if getattr(tags.fire_hazard, leaf)]
    recommendations += [text for leaf, text in TRIP_RECOMMENDATIONS if getattr(tags.trip_fall, leaf)]
    if tags.rust_stains:
        recommendations.append(RUST_RECOMMENDATION)
    return recommendations


def is_generic_comment(comment: str) -> bool:
    return not (comment or "").strip() or bool(BANNED_COMMENT_PATTERN.search(comment))


def derive_comment(tags: HazardTagSet, condition: str, comment: str) -> str:
    if not is_generic_comment(comment):
        return comment
    if condition in ("fire_hazard", "trip_fall"):
        return FALLBACK_COMMENTS[condition]
    if tags.rust_stains:
        return FALLBACK_COMMENTS["rust"]
    return FALLBACK_COMMENTS["tidy"]


def classify(tags: HazardTagSet, asserted_severity: str = "low", comment: str = "") -> Classification:
    """
    Classify one image from its fused tags.

    Args:
        tags: Fused hazard tags
        asserted_severity: Severity the descriptive pass proposed
        comment: Descriptive-pass comment

    Returns:
        Classification with condition, severity, recommendations and comment
    """
    condition = derive_condition(tags)
    return Classification(
        condition=condition,
        severity=derive_severity(tags, condition, asserted_severity),
        recommendations=tuple(derive_recommendations(tags)),
        comment=derive_comment(tags, condition, comment),
    )


def apply_rules(assessment: ImageAssessment) -> ImageAssessment:
    """Return a copy of the assessment with all derived fields overwritten."""
    result = classify(assessment.tags, assessment.severity, assessment.comment)
    return assessment.model_copy(update={
        "condition": result.condition,
        "severity": result.severity,
        "recommendations": list(result.recommendations),
        "comment": result.comment,
    })
