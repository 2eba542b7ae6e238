"""
Consensus fusion and classification rules.
"""

from src.safety.consensus import fuse_chunk, fuse_tags, has_corrosion_evidence
from src.safety.rules import Classification, apply_rules, classify

__all__ = [
    "Classification",
    "apply_rules",
    "classify",
    "fuse_chunk",
    "fuse_tags",
    "has_corrosion_evidence",
]
