"""
Dual-pass assessor: a descriptive pass and an independently worded
boolean checker pass over the same chunk of images.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Protocol, Tuple

from src.agents.parsing import extract
from src.schemas.models import HazardTagSet, ImageAssessment, ImageRef
from utils.config import config
from utils.logger import setup_logger
from utils.prompts import (
    CHECKER_INSTRUCTION,
    CHECKER_PROMPT,
    DESCRIPTIVE_INSTRUCTION,
    DESCRIPTIVE_PROMPT,
)


class SupportsInfer(Protocol):
    def check_images(self, images: List[ImageRef]) -> None:
        ...

    def encode_images(self, images: List[ImageRef]) -> List[Dict[str, Any]]:
        ...

    def infer(
        self,
        system_prompt: str,
        images: List[ImageRef],
        max_output_tokens: int,
        instruction: str = ...,
        image_parts: Optional[List[Dict[str, Any]]] = ...
    ) -> str:
        ...


def _per_image_records(parsed: Any) -> List[Dict[str, Any]]:
    """Per-image records of a parsed response; anything else yields []."""
    records = parsed.get("per_image") if isinstance(parsed, dict) else None
    if not isinstance(records, list):
        return []
    return [r for r in records if isinstance(r, dict)]


def parse_descriptive(raw: str, chunk: List[ImageRef]) -> List[ImageAssessment]:
    """
    Parse descriptive-pass output into assessments in chunk order.

    Records without a usable id, with an id outside the chunk, or repeating
    an id already seen are dropped. Missing images are not synthesized.
    """
    by_id: Dict[str, ImageAssessment] = {}
    known = {ref.id for ref in chunk}
    for record in _per_image_records(extract(raw, {"per_image": []})):
        assessment = ImageAssessment.from_provider(record)
        if assessment is None or assessment.id not in known or assessment.id in by_id:
            continue
        by_id[assessment.id] = assessment
    return [by_id[ref.id] for ref in chunk if ref.id in by_id]


def parse_checker(raw: str, chunk: List[ImageRef]) -> Dict[str, HazardTagSet]:
    """Parse checker-pass output into fully populated tag sets keyed by id."""
    known = {ref.id for ref in chunk}
    checks: Dict[str, HazardTagSet] = {}
    for record in _per_image_records(extract(raw, {"per_image": []})):
        image_id = record.get("id")
        if not isinstance(image_id, str):
            continue
        image_id = image_id.strip()
        if image_id in known and image_id not in checks:
            checks[image_id] = HazardTagSet.from_provider(record.get("tags"))
    return checks


class DualPassAssessor:
    """Runs both inference passes for one chunk, concurrently."""

    def __init__(
        self,
        client: SupportsInfer,
        descriptive_max_tokens: Optional[int] = None,
        checker_max_tokens: Optional[int] = None,
    ):
        self.client = client
        self.descriptive_max_tokens = descriptive_max_tokens or config.descriptive_max_tokens
        self.checker_max_tokens = checker_max_tokens or config.checker_max_tokens
        self.logger = setup_logger(
            "agent.dual_pass",
            level=config.log_level,
            component="ASSESSOR"
        )

    def check_images(self, images: List[ImageRef]) -> None:
        """Raise InvalidArgument if any image cannot be resolved."""
        self.client.check_images(images)

    def _descriptive(self, chunk: List[ImageRef], parts: List[Dict[str, Any]]) -> str:
        return self.client.infer(
            DESCRIPTIVE_PROMPT, chunk, self.descriptive_max_tokens,
            instruction=DESCRIPTIVE_INSTRUCTION, image_parts=parts
        )

    def _checker(self, chunk: List[ImageRef], parts: List[Dict[str, Any]]) -> str:
        return self.client.infer(
            CHECKER_PROMPT, chunk, self.checker_max_tokens,
            instruction=CHECKER_INSTRUCTION, image_parts=parts
        )

    def assess(
        self,
        chunk: List[ImageRef]
    ) -> Tuple[List[ImageAssessment], Dict[str, HazardTagSet]]:
        """
        Run the descriptive and checker passes over one chunk.

        Args:
            chunk: Images for a single provider call

        Returns:
            (descriptive assessments in chunk order, checker tags by image id)

        Raises:
            InvalidArgument: If an image cannot be loaded or encoded
            InferenceError: If either call fails (descriptive failure wins)
        """
        self.logger.info(f"Assessing chunk of {len(chunk)} image(s)")
        # Both passes share one encoding of the chunk
        parts = self.client.encode_images(chunk)

        with ThreadPoolExecutor(max_workers=2) as executor:
            descriptive_future = executor.submit(self._descriptive, chunk, parts)
            checker_future = executor.submit(self._checker, chunk, parts)
            # result() re-raises in pass order
            descriptive_raw = descriptive_future.result()
            checker_raw = checker_future.result()

        descriptive = parse_descriptive(descriptive_raw, chunk)
        checks = parse_checker(checker_raw, chunk)

        returned = {a.id for a in descriptive}
        missing = [ref.id for ref in chunk if ref.id not in returned]
        if missing:
            self.logger.warning(f"Descriptive pass returned no record for: {', '.join(missing)}")
        unchecked = [a.id for a in descriptive if a.id not in checks]
        if unchecked:
            self.logger.warning(f"Checker pass returned no record for: {', '.join(unchecked)}")

        self.logger.info(
            f"Descriptive records: {len(descriptive)}/{len(chunk)}, "
            f"checker records: {len(checks)}/{len(chunk)}"
        )
        return descriptive, checks
