"""
Upload store: resolves image ids to bytes for inference payloads.
Separates file I/O from the inference layer.
"""

import time
from pathlib import Path
from typing import List, Optional

from src.exceptions import InvalidArgument
from src.schemas.models import ImageRef
from utils.config import config
from utils.image_utils import is_image_file
from utils.logger import setup_logger
from utils.validators import sanitize_filename

logger = setup_logger(__name__, level=config.log_level, component="UPLOADS")


class UploadStore:
    """Directory-backed store; an ImageRef locator is a path inside it or an absolute path."""

    def __init__(self, root: Optional[Path] = None):
        self.root = Path(root) if root is not None else config.get_upload_dir()
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, ref: ImageRef) -> Path:
        path = Path(ref.locator)
        return path if path.is_absolute() else self.root / path

    def read_bytes(self, ref: ImageRef) -> bytes:
        """
        Load the bytes behind an image reference.

        Raises:
            FileNotFoundError: If the locator does not resolve to a file
        """
        path = self.path_for(ref)
        if not path.is_file():
            raise FileNotFoundError(f"Image '{ref.id}' not found at {path}")
        return path.read_bytes()

    def verify(self, refs: List[ImageRef]) -> None:
        """
        Check that every reference resolves to a file.

        Raises:
            InvalidArgument: Naming the ids that do not resolve
        """
        missing = [ref.id for ref in refs if not self.path_for(ref).is_file()]
        if missing:
            raise InvalidArgument(f"Images not found in upload store: {', '.join(missing)}")

    def save(self, filename: str, data: bytes) -> ImageRef:
        """
        Store an uploaded file under a unique, sanitized id.

        Args:
            filename: Client-supplied filename
            data: File contents

        Returns:
            ImageRef whose id is the stored filename
        """
        safe_name = sanitize_filename(filename)
        ext = Path(safe_name).suffix.lower().lstrip(".")
        if ext not in config.allowed_extensions_list:
            raise InvalidArgument(
                f"Invalid extension '{ext}'. Allowed: {config.allowed_extensions_list}"
            )
        if len(data) > config.max_file_size_bytes:
            raise InvalidArgument(
                f"File too large: {len(data) / (1024 * 1024):.1f}MB "
                f"(max: {config.max_file_size_mb}MB)"
            )

        image_id = f"{int(time.time() * 1000)}-{safe_name}"
        path = self.root / image_id
        suffix = 1
        while path.exists():
            image_id = f"{int(time.time() * 1000)}-{suffix}-{safe_name}"
            path = self.root / image_id
            suffix += 1

        path.write_bytes(data)
        logger.info(f"Saved uploaded file: {path}")
        return ImageRef(id=image_id, locator=image_id)

    def list_images(self, directory: Optional[Path] = None) -> List[ImageRef]:
        """Image files of a directory as refs, sorted by filename."""
        directory = Path(directory) if directory is not None else self.root
        return [
            ImageRef(id=path.name, locator=str(path.resolve()))
            for path in sorted(directory.iterdir())
            if is_image_file(path)
        ]
