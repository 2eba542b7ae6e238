"""
Utility modules for the hazard classification engine.
"""

from utils.config import config
from utils.logger import setup_logger
from utils.prompts import (
    DESCRIPTIVE_PROMPT,
    CHECKER_PROMPT,
    get_prompt
)
from utils.image_utils import (
    load_image,
    resize_image,
    encode_image_data_uri
)
from utils.validators import (
    validate_chunk_size,
    validate_image_ids,
    sanitize_filename
)

__all__ = [
    "config",
    "setup_logger",
    "DESCRIPTIVE_PROMPT",
    "CHECKER_PROMPT",
    "get_prompt",
    "load_image",
    "resize_image",
    "encode_image_data_uri",
    "validate_chunk_size",
    "validate_image_ids",
    "sanitize_filename",
]
