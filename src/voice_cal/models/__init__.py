"""Data models for voice-cal."""

from __future__ import annotations

from voice_cal.models.backend import (
    AddEventRequest,
    AddEventResponse,
    ConflictCheckRequest,
    ConflictCheckResponse,
    ConflictRecord,
    ConflictReport,
    ExtractRequest,
    ExtractResponse,
    format_conflicts,
)
from voice_cal.models.draft import EventDraft
from voice_cal.models.resolution import (
    ResolutionOutcome,
    TimeRange,
    WorkflowResult,
    WorkflowState,
)

__all__ = [
    "AddEventRequest",
    "AddEventResponse",
    "ConflictCheckRequest",
    "ConflictCheckResponse",
    "ConflictRecord",
    "ConflictReport",
    "EventDraft",
    "ExtractRequest",
    "ExtractResponse",
    "ResolutionOutcome",
    "TimeRange",
    "WorkflowResult",
    "WorkflowState",
    "format_conflicts",
]
