"""
Consensus fusion between the descriptive and checker passes.

Fire and trip/fall leaves are OR-fused: either pass asserting a hazard wins.
Corrosion is AND-fused and additionally gated on the descriptive text
mentioning corrosion, since it is the noisiest visual signal.
"""

from typing import Dict, List, Optional

from src.schemas.models import (
    FireHazardTags,
    HazardTagSet,
    ImageAssessment,
    TripFallTags,
)
from utils.logger import setup_logger
from utils.config import config

logger = setup_logger(__name__, level=config.log_level, component="CONSENSUS")

CORROSION_TERMS = ("rust", "corrosion", "oxidation", "corroded", "rusted")


def has_corrosion_evidence(text: str) -> bool:
    """Case-insensitive substring match against the corrosion vocabulary."""
    lowered = (text or "").lower()
    return any(term in lowered for term in CORROSION_TERMS)


def _or_group(first, second, model):
    return model(**{
        name: getattr(first, name) or getattr(second, name)
        for name in model.model_fields
    })


def fuse_tags(descriptive: ImageAssessment, checker: Optional[HazardTagSet]) -> HazardTagSet:
    """
    Fuse one image's tags.

    Args:
        descriptive: Descriptive-pass assessment (tags plus evidence text)
        checker: Checker-pass tags for the same id, if it returned any

    Returns:
        Fused tag set; the descriptive tags unchanged when there is no checker record
    """
    own = descriptive.tags
    if checker is None:
        return own.model_copy(deep=True)

    rust = own.rust_stains and checker.rust_stains
    if rust and not has_corrosion_evidence(f"{descriptive.comment} {descriptive.description}"):
        logger.info(
            f"[{descriptive.id}] Both passes flagged rust but the comment has no "
            f"corrosion wording - suppressing rust_stains"
        )
        rust = False

    return HazardTagSet(
        fire_hazard=_or_group(own.fire_hazard, checker.fire_hazard, FireHazardTags),
        trip_fall=_or_group(own.trip_fall, checker.trip_fall, TripFallTags),
        rust_stains=rust,
    )


def fuse_chunk(
    descriptive: List[ImageAssessment],
    checks: Dict[str, HazardTagSet]
) -> List[ImageAssessment]:
    """
    Fuse every descriptive record of a chunk with its checker record.

    Returns:
        New assessments with fused tags, same order; inputs are not mutated
    """
    fused = []
    upgraded = 0
    for assessment in descriptive:
        tags = fuse_tags(assessment, checks.get(assessment.id))
        if (tags.any_fire and not assessment.tags.any_fire) or (
            tags.any_trip and not assessment.tags.any_trip
        ):
            upgraded += 1
        fused.append(assessment.model_copy(update={"tags": tags}))

    if upgraded:
        logger.info(f"Checker pass raised hazards on {upgraded} image(s) the descriptive pass missed")
    return fused
