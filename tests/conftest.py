"""
Shared fixtures for the hazard classification engine tests.
"""

import json
import tempfile
import threading
from pathlib import Path
from typing import Callable, List, Optional

import pytest

from src.exceptions import InvalidArgument
from src.schemas.models import FireHazardTags, ImageRef, TripFallTags
from utils.prompts import CHECKER_PROMPT


FIRE_LEAVES = list(FireHazardTags.model_fields)
TRIP_LEAVES = list(TripFallTags.model_fields)


def make_tags(*true_leaves: str) -> dict:
    """Provider-shaped tag dict with the named leaves set to true."""
    tags = {
        "fire_hazard": {leaf: leaf in true_leaves for leaf in FIRE_LEAVES},
        "trip_fall": {leaf: leaf in true_leaves for leaf in TRIP_LEAVES},
        "rust_stains": "rust_stains" in true_leaves,
    }
    return tags


def descriptive_record(image_id: str, *true_leaves: str, comment: str = "Walkway clear.", **extra) -> dict:
    record = {
        "id": image_id,
        "location": "",
        "condition": "none",
        "comment": comment,
        "severity": "low",
        "recommendations": [],
        "tags": make_tags(*true_leaves),
    }
    record.update(extra)
    return record


def checker_record(image_id: str, *true_leaves: str) -> dict:
    return {"id": image_id, "tags": make_tags(*true_leaves)}


def per_image(records: List[dict]) -> str:
    return json.dumps({"per_image": records})


class ScriptedClient:
    """
    Stand-in for the inference adapter.

    `descriptive` and `checker` map the chunk's image ids to raw model text.
    `failures` is a list of exceptions raised by successive calls (None = succeed).
    `missing` ids fail the up-front check; `unreadable` ids fail encoding.
    """

    def __init__(
        self,
        descriptive: Optional[Callable[[List[str]], str]] = None,
        checker: Optional[Callable[[List[str]], str]] = None,
        failures: Optional[List[Optional[Exception]]] = None,
        missing: Optional[List[str]] = None,
        unreadable: Optional[List[str]] = None,
    ):
        self.descriptive = descriptive or (lambda ids: per_image([descriptive_record(i) for i in ids]))
        self.checker = checker or (lambda ids: per_image([checker_record(i) for i in ids]))
        self.failures = list(failures or [])
        self.missing = set(missing or [])
        self.unreadable = set(unreadable or [])
        self.encoded: List[List[str]] = []
        self.calls: List[tuple] = []
        self._lock = threading.Lock()

    def check_images(self, images):
        absent = [ref.id for ref in images if ref.id in self.missing]
        if absent:
            raise InvalidArgument(f"Images not found in upload store: {', '.join(absent)}")

    def encode_images(self, images):
        ids = [ref.id for ref in images]
        bad = [i for i in ids if i in self.unreadable]
        if bad:
            raise InvalidArgument(f"Image '{bad[0]}' could not be loaded")
        self.encoded.append(ids)
        return [{"type": "text", "text": f"id: {i}"} for i in ids]

    def infer(self, system_prompt, images, max_output_tokens, instruction="", image_parts=None):
        pass_name = "checker" if system_prompt == CHECKER_PROMPT else "descriptive"
        ids = [ref.id for ref in images]
        with self._lock:
            self.calls.append((pass_name, ids, max_output_tokens))
            failure = self.failures.pop(0) if self.failures else None
        if failure is not None:
            raise failure
        return self.checker(ids) if pass_name == "checker" else self.descriptive(ids)

    def calls_for(self, pass_name: str) -> List[List[str]]:
        return [ids for name, ids, _ in self.calls if name == pass_name]


@pytest.fixture
def temp_dir():
    """Temporary directory removed after the test."""
    with tempfile.TemporaryDirectory() as tmp:
        yield Path(tmp)


@pytest.fixture
def image_refs() -> Callable[[int], List[ImageRef]]:
    """Factory for n ImageRefs with ids img_00.jpg, img_01.jpg, ..."""
    def _make(n: int) -> List[ImageRef]:
        return [ImageRef(id=f"img_{i:02d}.jpg", locator=f"img_{i:02d}.jpg") for i in range(n)]
    return _make


@pytest.fixture
def scripted_client() -> Callable[..., ScriptedClient]:
    return ScriptedClient
