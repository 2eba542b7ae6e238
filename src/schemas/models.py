"""
Pydantic schemas for data validation.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


Condition = Literal["fire_hazard", "trip_fall", "none"]
Severity = Literal["low", "medium", "high"]

CONDITIONS = ("fire_hazard", "trip_fall", "none")
SEVERITIES = ("low", "medium", "high")

_TRUTHY_STRINGS = {"true", "yes", "y", "1"}


def coerce_flag(value: Any) -> bool:
    """
    Lenient boolean coercion for provider output.

    Only an explicit assertion counts as True; anything unrecognised is False.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY_STRINGS
    return False


def _clean_text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


class ImageRef(BaseModel):
    """An uploaded photograph. `locator` is resolved by the upload store."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Unique within a run")
    locator: str = Field(..., description="Opaque handle, a file path by default")


class _FlagGroup(BaseModel):
    """Fixed set of boolean leaves, every one always present."""
    model_config = ConfigDict(extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def normalize_flag(cls, v: Any) -> bool:
        return coerce_flag(v)

    def any(self) -> bool:
        return any(getattr(self, name) for name in type(self).model_fields)


class FireHazardTags(_FlagGroup):
    combustibles: bool = False
    open_wiring: bool = False
    oil_leak: bool = False
    uninsulated_hot_surface: bool = False


class TripFallTags(_FlagGroup):
    obstructed_walkway: bool = False
    blocked_passage: bool = False
    broken_railing: bool = False
    unmarked_pipeline: bool = False
    slippery_surface: bool = False


class HazardTagSet(BaseModel):
    """All ten hazard leaves; missing or malformed input normalises to False."""
    model_config = ConfigDict(extra="ignore")

    fire_hazard: FireHazardTags = Field(default_factory=FireHazardTags)
    trip_fall: TripFallTags = Field(default_factory=TripFallTags)
    rust_stains: bool = False

    @field_validator("fire_hazard", "trip_fall", mode="before")
    @classmethod
    def normalize_group(cls, v: Any) -> Any:
        if isinstance(v, BaseModel):
            return v
        return v if isinstance(v, dict) else {}

    @field_validator("rust_stains", mode="before")
    @classmethod
    def normalize_rust(cls, v: Any) -> bool:
        return coerce_flag(v)

    @classmethod
    def from_provider(cls, raw: Any) -> "HazardTagSet":
        """Build a fully populated tag set from whatever the provider sent."""
        return cls.model_validate(raw if isinstance(raw, dict) else {})

    @property
    def any_fire(self) -> bool:
        return self.fire_hazard.any()

    @property
    def any_trip(self) -> bool:
        return self.trip_fall.any()


class ImageAssessment(BaseModel):
    """Per-image hazard record. Condition, severity, recommendations and
    comment are always re-derived by the rule engine."""
    id: str
    location: str = ""
    condition: Condition = "none"
    comment: str = ""
    severity: Severity = "low"
    recommendations: List[str] = Field(default_factory=list)
    tags: HazardTagSet = Field(default_factory=HazardTagSet)
    # Free-text the descriptive pass may add; only used as corrosion evidence
    description: str = Field(default="", exclude=True)

    @classmethod
    def from_provider(cls, raw: Dict[str, Any]) -> Optional["ImageAssessment"]:
        """
        Normalise one descriptive-pass record.

        Args:
            raw: Record as parsed from model output

        Returns:
            Assessment, or None when the record has no usable id
        """
        if not isinstance(raw, dict):
            return None
        image_id = raw.get("id")
        if not isinstance(image_id, str) or not image_id.strip():
            return None

        condition = raw.get("condition")
        severity = raw.get("severity")
        recs = raw.get("recommendations", raw.get("recommendations_high_severity_only"))

        return cls(
            id=image_id.strip(),
            location=_clean_text(raw.get("location")),
            condition=condition if condition in CONDITIONS else "none",
            comment=_clean_text(raw.get("comment")),
            severity=severity if severity in SEVERITIES else "low",
            recommendations=[r for r in recs if isinstance(r, str)] if isinstance(recs, list) else [],
            tags=HazardTagSet.from_provider(raw.get("tags")),
            description=_clean_text(raw.get("description")),
        )

    @property
    def display_condition(self) -> str:
        """Label used in inspection reports."""
        if self.condition == "fire_hazard":
            return "Fire hazard"
        if self.condition == "trip_fall":
            return "Trip/Fall"
        if self.tags.rust_stains:
            return "Rust"
        if self.recommendations:
            return "Attention"
        return "No issues"


class BatchSummary(BaseModel):
    """Image counts per final condition."""
    fire_hazard_count: int = Field(default=0, ge=0)
    trip_fall_count: int = Field(default=0, ge=0)
    none_count: int = Field(default=0, ge=0)

    @property
    def total(self) -> int:
        return self.fire_hazard_count + self.trip_fall_count + self.none_count

    def record(self, assessment: ImageAssessment) -> None:
        """Count one assessment under its final condition."""
        if assessment.condition == "fire_hazard":
            self.fire_hazard_count += 1
        elif assessment.condition == "trip_fall":
            self.trip_fall_count += 1
        else:
            self.none_count += 1


class ChunkFailure(BaseModel):
    """A chunk whose inference failed after all retries."""
    index: int
    image_ids: List[str]
    error_type: str
    message: str


class RunResult(BaseModel):
    """Output of a full run, in input image order."""
    summary: BatchSummary = Field(default_factory=BatchSummary)
    assessments: List[ImageAssessment] = Field(default_factory=list)
    missing_ids: List[str] = Field(
        default_factory=list, description="Images absent from the descriptive pass"
    )
    failed_chunks: List[ChunkFailure] = Field(
        default_factory=list, description="Only populated when partial results are allowed"
    )

    @property
    def rust_count(self) -> int:
        return sum(1 for a in self.assessments if a.tags.rust_stains)

    @property
    def is_partial(self) -> bool:
        return bool(self.failed_chunks)
