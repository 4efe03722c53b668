"""
LERM ATIS - Synthesizer Module
Deterministic precedence fusion of provider snapshots.
"""

from .fusion import (
    fuse_snapshots,
    merge_snapshots,
)

__all__ = [
    "fuse_snapshots",
    "merge_snapshots",
]
