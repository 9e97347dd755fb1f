"""Clients for the extraction/calendar backend service."""

from __future__ import annotations

from voice_cal.backend.commit import CommitClient
from voice_cal.backend.conflicts import ConflictClient
from voice_cal.backend.exceptions import (
    BackendError,
    CommitError,
    ConflictCheckError,
    ExtractionError,
)
from voice_cal.backend.extraction import ExtractionClient
from voice_cal.backend.transport import BackendTransport

__all__ = [
    "BackendError",
    "BackendTransport",
    "CommitClient",
    "CommitError",
    "ConflictCheckError",
    "ConflictClient",
    "ExtractionClient",
    "ExtractionError",
]
