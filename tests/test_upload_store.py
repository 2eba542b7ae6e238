"""
Unit tests for the upload store.
"""

import pytest
from PIL import Image

from src.exceptions import InvalidArgument
from src.schemas.models import ImageRef
from src.storage.uploads import UploadStore
from utils.config import config


class TestUploadStore:
    """Tests for UploadStore."""

    def test_save_and_read(self, temp_dir):
        store = UploadStore(temp_dir)

        ref = store.save("engine room 1.jpg", b"jpeg-bytes")

        assert ref.id.endswith("-engine_room_1.jpg")
        assert ref.locator == ref.id
        assert store.read_bytes(ref) == b"jpeg-bytes"

    def test_save_never_overwrites(self, temp_dir):
        store = UploadStore(temp_dir)

        first = store.save("a.jpg", b"1")
        second = store.save("a.jpg", b"2")

        assert first.id != second.id
        assert store.read_bytes(first) == b"1"

    def test_path_traversal_stripped(self, temp_dir):
        store = UploadStore(temp_dir)

        ref = store.save("../../etc/deck.png", b"x")

        assert store.path_for(ref).parent == temp_dir

    def test_rejects_extension(self, temp_dir):
        with pytest.raises(InvalidArgument, match="extension"):
            UploadStore(temp_dir).save("notes.txt", b"x")

    def test_rejects_oversize(self, temp_dir, monkeypatch):
        monkeypatch.setattr(config, "max_file_size_mb", 1)

        with pytest.raises(InvalidArgument, match="too large"):
            UploadStore(temp_dir).save("big.jpg", b"x" * (1024 * 1024 + 1))

    def test_read_missing(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            UploadStore(temp_dir).read_bytes(ImageRef(id="gone.jpg", locator="gone.jpg"))

    def test_list_images(self, temp_dir):
        """Test that only image files are listed, sorted by name."""
        Image.new("RGB", (4, 4)).save(temp_dir / "b.png")
        Image.new("RGB", (4, 4)).save(temp_dir / "a.jpg")
        (temp_dir / "readme.txt").write_text("skip me")

        refs = UploadStore(temp_dir).list_images()

        assert [r.id for r in refs] == ["a.jpg", "b.png"]
        assert UploadStore(temp_dir).read_bytes(refs[0]) == (temp_dir / "a.jpg").read_bytes()

    def test_verify_names_missing_ids(self, temp_dir):
        """Test that unresolvable references are all reported at once."""
        (temp_dir / "here.jpg").write_bytes(b"x")
        store = UploadStore(temp_dir)
        refs = [
            ImageRef(id="here.jpg", locator="here.jpg"),
            ImageRef(id="gone.jpg", locator="gone.jpg"),
            ImageRef(id="dir", locator=str(temp_dir)),
        ]

        with pytest.raises(InvalidArgument) as exc_info:
            store.verify(refs)

        assert "gone.jpg, dir" in str(exc_info.value)
        store.verify(refs[:1])
