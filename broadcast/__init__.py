"""
LERM ATIS - Broadcast Module
Identifier rotation, runway selection and the two report formats.
"""

from .rotation import (
    ATIS_IDENTIFIERS,
    RotationState,
    RotationStore,
    advance_rotation,
)
from .runway import select_runway
from .report import (
    AtisBroadcast,
    format_report,
    render_reports,
)

__all__ = [
    "ATIS_IDENTIFIERS",
    "RotationState",
    "RotationStore",
    "advance_rotation",
    "select_runway",
    "AtisBroadcast",
    "format_report",
    "render_reports",
]
