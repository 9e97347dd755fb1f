"""voice-cal: spoken requests to calendar events.

Sends a transcript to a remote extraction service, checks the resulting
event for scheduling conflicts, walks the user through rescheduling,
force-adding or cancelling, and commits the event to the calendar service.
"""

from __future__ import annotations

from voice_cal.backend import (
    BackendError,
    BackendTransport,
    CommitClient,
    CommitError,
    ConflictCheckError,
    ConflictClient,
    ExtractionClient,
    ExtractionError,
)
from voice_cal.collaborators import (
    ChoicePrompter,
    SpeechOutput,
    TimeRangePicker,
    TranscriptSource,
)
from voice_cal.exceptions import ValidationGap, WorkflowBusyError
from voice_cal.models import (
    ConflictRecord,
    ConflictReport,
    EventDraft,
    ResolutionOutcome,
    TimeRange,
    WorkflowResult,
    WorkflowState,
)
from voice_cal.resolution import ResolutionController

__version__ = "0.1.0"

__all__ = [
    "BackendError",
    "BackendTransport",
    "ChoicePrompter",
    "CommitClient",
    "CommitError",
    "ConflictCheckError",
    "ConflictClient",
    "ConflictRecord",
    "ConflictReport",
    "EventDraft",
    "ExtractionClient",
    "ExtractionError",
    "ResolutionController",
    "ResolutionOutcome",
    "SpeechOutput",
    "TimeRange",
    "TimeRangePicker",
    "TranscriptSource",
    "ValidationGap",
    "WorkflowBusyError",
    "WorkflowResult",
    "WorkflowState",
]
