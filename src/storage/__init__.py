"""
Upload storage for the hazard classification engine.
"""

from src.storage.uploads import UploadStore

__all__ = ["UploadStore"]
