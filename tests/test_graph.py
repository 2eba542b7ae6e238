"""
End-to-end tests for the batch assessment workflow.
"""

from unittest.mock import MagicMock

import pytest
from PIL import Image

from src.agents.base import InferenceClientAdapter
from src.agents.dual_pass import DualPassAssessor
from src.exceptions import InferenceProviderError, InferenceTimeout, InvalidArgument
from src.orchestration import graph, nodes
from src.orchestration.graph import create_assessment_workflow, run_hazard_assessment
from src.safety.rules import RUST_RECOMMENDATION
from src.schemas.models import ImageRef
from src.storage.uploads import UploadStore
from tests.conftest import checker_record, descriptive_record, per_image


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    """Retries happen immediately in tests."""
    monkeypatch.setattr(nodes, "_backoff_delay", lambda attempt: 0)


def _scenario_client(scripted_client, descriptive_leaves, checker_leaves=None, comments=None, **kwargs):
    checker_leaves = checker_leaves or {}
    comments = comments or {}

    def descriptive(ids):
        return per_image([
            descriptive_record(i, *descriptive_leaves.get(i, ()), comment=comments.get(i, "Deck plate."))
            for i in ids
        ])

    def checker(ids):
        return per_image([checker_record(i, *checker_leaves.get(i, ())) for i in ids])

    return scripted_client(descriptive=descriptive, checker=checker, **kwargs)


class TestWorkflowGraph:
    """Tests for graph construction."""

    def test_compiles(self):
        app = create_assessment_workflow().compile()

        assert app is not None


class TestRunHazardAssessment:
    """Tests for run_hazard_assessment()."""

    def test_seventeen_images_three_chunks(self, image_refs, scripted_client):
        """Test a 17-image batch at chunk size 8."""
        images = image_refs(17)
        client = _scenario_client(
            scripted_client,
            descriptive_leaves={images[0].id: ("combustibles",), images[9].id: ("blocked_passage",)},
            checker_leaves={images[16].id: ("oil_leak",)},
        )

        result = run_hazard_assessment(images, chunk_size=8, assessor=DualPassAssessor(client))

        assert [len(ids) for ids in client.calls_for("descriptive")] == [8, 8, 1]
        assert [len(ids) for ids in client.calls_for("checker")] == [8, 8, 1]
        assert [a.id for a in result.assessments] == [ref.id for ref in images]
        assert result.summary.fire_hazard_count == 2
        assert result.summary.trip_fall_count == 1
        assert result.summary.none_count == 14
        assert result.summary.total == 17
        assert result.missing_ids == []
        assert result.failed_chunks == []

    def test_checker_only_hazard_is_classified(self, image_refs, scripted_client):
        """Test that a hazard the descriptive pass missed still drives the verdict."""
        images = image_refs(1)
        client = _scenario_client(
            scripted_client,
            descriptive_leaves={},
            checker_leaves={images[0].id: ("open_wiring", "obstructed_walkway")},
        )

        result = run_hazard_assessment(images, assessor=DualPassAssessor(client))
        assessment = result.assessments[0]

        assert assessment.condition == "fire_hazard"
        assert assessment.severity == "high"
        assert assessment.recommendations == [
            "Repair exposed wiring and restore insulation.",
            "Remove obstruction to clear the walkway.",
        ]

    def test_rust_needs_agreement_and_evidence(self, image_refs, scripted_client):
        images = image_refs(3)
        ids = [ref.id for ref in images]
        client = _scenario_client(
            scripted_client,
            descriptive_leaves={i: ("rust_stains",) for i in ids},
            checker_leaves={ids[0]: ("rust_stains",), ids[1]: ("rust_stains",)},
            comments={ids[0]: "Rust on the bollard.", ids[1]: "Brown patch.", ids[2]: "Rust on hatch."},
        )

        result = run_hazard_assessment(images, assessor=DualPassAssessor(client))

        assert [a.tags.rust_stains for a in result.assessments] == [True, False, False]
        assert result.assessments[0].condition == "none"
        assert result.assessments[0].recommendations == [RUST_RECOMMENDATION]
        assert result.rust_count == 1
        assert result.summary.none_count == 3

    def test_missing_descriptive_records(self, image_refs, scripted_client):
        """Test that images without a descriptive record are reported, not counted."""
        images = image_refs(4)
        client = scripted_client(
            descriptive=lambda ids: per_image([descriptive_record(i) for i in ids[:-1]])
        )

        result = run_hazard_assessment(images, chunk_size=2, assessor=DualPassAssessor(client))

        assert result.missing_ids == [images[1].id, images[3].id]
        assert [a.id for a in result.assessments] == [images[0].id, images[2].id]
        assert result.summary.total == 2

    def test_empty_batch_rejected_before_inference(self, scripted_client):
        client = scripted_client()

        with pytest.raises(InvalidArgument):
            run_hazard_assessment([], assessor=DualPassAssessor(client))
        assert client.calls == []

    def test_duplicate_ids_rejected(self, scripted_client):
        client = scripted_client()
        images = [ImageRef(id="a.jpg", locator="a.jpg"), ImageRef(id="a.jpg", locator="b.jpg")]

        with pytest.raises(InvalidArgument):
            run_hazard_assessment(images, assessor=DualPassAssessor(client))
        assert client.calls == []

    @pytest.mark.parametrize("size", [0, -3])
    def test_bad_chunk_size_rejected(self, image_refs, scripted_client, size):
        client = scripted_client()

        with pytest.raises(InvalidArgument):
            run_hazard_assessment(image_refs(2), chunk_size=size, assessor=DualPassAssessor(client))
        assert client.calls == []


class TestFailureHandling:
    """Tests for retries and chunk failures."""

    def test_transient_failure_retried(self, image_refs, scripted_client):
        """Test that a chunk succeeds on a later attempt."""
        images = image_refs(3)
        client = scripted_client(failures=[InferenceTimeout(1)])

        result = run_hazard_assessment(
            images, assessor=DualPassAssessor(client), max_attempts=3, allow_partial=False
        )

        assert len(result.assessments) == 3
        assert len(client.calls) == 4

    def test_run_fails_after_last_attempt(self, image_refs, scripted_client):
        """Test that a persistent failure fails the whole run."""
        images = image_refs(10)
        client = scripted_client(failures=[None, None] + [InferenceProviderError("HTTP 500")] * 4)

        with pytest.raises(InferenceProviderError):
            run_hazard_assessment(
                images, chunk_size=8, assessor=DualPassAssessor(client),
                max_attempts=2, allow_partial=False
            )

    def test_partial_results_record_failed_chunk(self, image_refs, scripted_client):
        """Test that opt-in partial mode keeps the chunks that succeeded."""
        images = image_refs(10)
        client = scripted_client(failures=[None, None] + [InferenceProviderError("HTTP 500")] * 2)

        result = run_hazard_assessment(
            images, chunk_size=8, assessor=DualPassAssessor(client),
            max_attempts=1, allow_partial=True
        )

        assert [a.id for a in result.assessments] == [ref.id for ref in images[:8]]
        assert result.is_partial is True
        assert len(result.failed_chunks) == 1
        failure = result.failed_chunks[0]
        assert failure.index == 1
        assert failure.image_ids == [images[8].id, images[9].id]
        assert failure.error_type == "InferenceProviderError"
        assert result.summary.total == 8

    def test_show_summary_prints(self, image_refs, scripted_client, monkeypatch):
        calls = []
        monkeypatch.setattr(graph, "print_run_summary", lambda *args, **kwargs: calls.append(kwargs))

        run_hazard_assessment(
            image_refs(2), assessor=DualPassAssessor(scripted_client()), show_summary=True
        )

        assert calls and calls[0]["total_images"] == 2

    def test_show_summary_reports_failure(self, image_refs, scripted_client, monkeypatch):
        errors = []
        monkeypatch.setattr(graph, "print_error", lambda *args, **kwargs: errors.append(args))
        client = scripted_client(failures=[InferenceTimeout(1)] * 2)

        with pytest.raises(InferenceTimeout):
            run_hazard_assessment(
                image_refs(2), assessor=DualPassAssessor(client),
                max_attempts=1, allow_partial=False, show_summary=True
            )

        assert errors[0][0] == "InferenceTimeout"


class TestImageResolution:
    """Tests for images that cannot be loaded."""

    def test_missing_image_rejected_before_inference(self, image_refs, scripted_client):
        """Test that a missing file fails the run before any provider call, even in partial mode."""
        images = image_refs(4)
        client = scripted_client(missing=[images[3].id])

        with pytest.raises(InvalidArgument, match=images[3].id):
            run_hazard_assessment(
                images, chunk_size=2, assessor=DualPassAssessor(client), allow_partial=True
            )
        assert client.calls == []
        assert client.encoded == []

    def test_missing_file_with_provider_adapter(self, temp_dir):
        """Test the up-front check against a real upload store."""
        for name in ("a.jpg", "b.jpg", "c.jpg"):
            Image.new("RGB", (8, 8), "gray").save(temp_dir / name, format="JPEG")
        images = [ImageRef(id=n, locator=n) for n in ("a.jpg", "b.jpg", "c.jpg", "gone.jpg")]
        provider = MagicMock()
        adapter = InferenceClientAdapter(client=provider, store=UploadStore(temp_dir))

        with pytest.raises(InvalidArgument, match="gone.jpg"):
            run_hazard_assessment(
                images, chunk_size=2, assessor=DualPassAssessor(adapter), allow_partial=True
            )
        provider.chat.completions.create.assert_not_called()

    def test_unreadable_image_recorded_in_partial_mode(self, image_refs, scripted_client):
        """Test that a chunk whose image cannot be encoded is recorded, not retried."""
        images = image_refs(4)
        client = scripted_client(unreadable=[images[0].id])

        result = run_hazard_assessment(
            images, chunk_size=2, assessor=DualPassAssessor(client),
            max_attempts=3, allow_partial=True
        )

        assert [a.id for a in result.assessments] == [images[2].id, images[3].id]
        assert result.failed_chunks[0].index == 0
        assert result.failed_chunks[0].error_type == "InvalidArgument"
        assert client.calls_for("descriptive") == [[images[2].id, images[3].id]]

    def test_unreadable_image_fails_run_by_default(self, image_refs, scripted_client):
        client = scripted_client(unreadable=[image_refs(1)[0].id])

        with pytest.raises(InvalidArgument):
            run_hazard_assessment(
                image_refs(1), assessor=DualPassAssessor(client), allow_partial=False
            )
        assert client.calls == []

    def test_chunk_encoded_once(self, image_refs, scripted_client):
        """Test that both passes share one encoding per chunk."""
        images = image_refs(5)
        client = scripted_client()

        run_hazard_assessment(images, chunk_size=2, assessor=DualPassAssessor(client))

        assert [len(ids) for ids in client.encoded] == [2, 2, 1]
        assert len(client.calls) == 6
