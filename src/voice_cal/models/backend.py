"""Pydantic models for the three backend endpoints.

Each endpoint gets an explicit request model (serialised with
``model_dump``) and a response model decoded once at the client boundary:

- ``POST /extract`` -- :class:`ExtractRequest` / :class:`ExtractResponse`
- ``POST /check_conflicts`` -- :class:`ConflictCheckRequest` /
  :class:`ConflictCheckResponse` (items are :class:`ConflictRecord`)
- ``POST /add_event`` -- :class:`AddEventRequest` / :class:`AddEventResponse`

Every response field is optional.  ``null`` is treated the same as an
absent field, and a timestamp that does not parse becomes ``None`` instead
of failing the whole response.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from voice_cal.exceptions import ValidationGap
from voice_cal.models.draft import EventDraft

logger = logging.getLogger(__name__)

UNTITLED = "Untitled"


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO 8601 timestamp leniently.

    Returns ``None`` for ``None``, empty strings, non-strings, and text
    that :meth:`datetime.fromisoformat` rejects.
    """
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    candidate = value.strip()
    # fromisoformat only accepts a "Z" suffix from Python 3.11 on.
    if candidate[-1:] in ("Z", "z"):
        candidate = candidate[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(candidate)
    except ValueError:
        logger.warning("Ignoring malformed timestamp %r", value)
        return None


def _text_or_empty(value: Any) -> Any:
    return "" if value is None else value


# ---------------------------------------------------------------------------
# /extract
# ---------------------------------------------------------------------------


class ExtractRequest(BaseModel):
    """Body of ``POST /extract``."""

    text: str


class ExtractResponse(BaseModel):
    """Decoded body of an ``/extract`` response.

    Attributes:
        title: Extracted event title.
        location: Extracted location.
        start: Parsed start, or ``None`` if absent or malformed.
        end: Parsed end, or ``None`` if absent or malformed.
        spoken_response: Feedback for the user.
    """

    model_config = ConfigDict(extra="ignore")

    title: str = ""
    location: str = ""
    start: datetime | None = None
    end: datetime | None = None
    spoken_response: str = ""

    @field_validator("title", "location", "spoken_response", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any) -> Any:
        return _text_or_empty(value)

    @field_validator("start", "end", mode="before")
    @classmethod
    def _lenient_timestamp(cls, value: Any) -> datetime | None:
        return parse_timestamp(value)

    def to_draft(self) -> EventDraft:
        """Build a fresh :class:`EventDraft` from this response."""
        return EventDraft(
            title=self.title,
            start=self.start,
            end=self.end,
            location=self.location,
            assistant_message=self.spoken_response,
        )


# ---------------------------------------------------------------------------
# /check_conflicts
# ---------------------------------------------------------------------------


class ConflictCheckRequest(BaseModel):
    """Body of ``POST /check_conflicts``; times are ISO 8601 text."""

    start: str
    end: str

    @classmethod
    def for_range(cls, start: datetime, end: datetime) -> ConflictCheckRequest:
        return cls(start=start.isoformat(), end=end.isoformat())


class ConflictRecord(BaseModel):
    """One existing calendar event that overlaps the candidate range.

    ``start`` and ``end`` are kept as the text the service sent; they are
    only ever displayed.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    title: str = UNTITLED
    start: str = ""
    end: str = ""

    @field_validator("title", mode="before")
    @classmethod
    def _default_title(cls, value: Any) -> Any:
        return UNTITLED if value is None else value

    @field_validator("start", "end", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any) -> Any:
        return _text_or_empty(value)

    def describe(self) -> str:
        """Render as ``"<title> — <start> to <end>"``."""
        return f"{self.title} — {self.start} to {self.end}"


class ConflictCheckResponse(BaseModel):
    """Decoded body of a ``/check_conflicts`` response."""

    model_config = ConfigDict(extra="ignore")

    spoken_response: str = ""
    conflicts: list[ConflictRecord] = Field(default_factory=list)

    @field_validator("spoken_response", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any) -> Any:
        return _text_or_empty(value)

    @field_validator("conflicts", mode="before")
    @classmethod
    def _null_to_list(cls, value: Any) -> Any:
        return [] if value is None else value


class ConflictReport(BaseModel):
    """What the conflict client hands back to the controller.

    Attributes:
        assistant_message: The service's spoken summary.
        conflicts: Overlapping events, in the order the service sent them.
    """

    assistant_message: str = ""
    conflicts: list[ConflictRecord] = Field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return len(self.conflicts) > 0


def format_conflicts(conflicts: list[ConflictRecord]) -> str:
    """Render conflicts one per line for a choice prompt."""
    return "\n".join(record.describe() for record in conflicts)


# ---------------------------------------------------------------------------
# /add_event
# ---------------------------------------------------------------------------


class AddEventRequest(BaseModel):
    """Body of ``POST /add_event``.

    ``force`` is passed through untouched; only the service interprets it.
    """

    title: str
    start: str
    end: str
    location: str = ""
    force: bool = False

    @classmethod
    def from_draft(cls, draft: EventDraft, force: bool) -> AddEventRequest:
        """Build the request from a complete draft.

        Raises:
            ValidationGap: If the draft has no start or no end.
        """
        if draft.start is None or draft.end is None:
            missing = tuple(name for name in ("start", "end") if getattr(draft, name) is None)
            raise ValidationGap("Start and end are required", missing=missing)
        return cls(
            title=draft.title,
            start=draft.start.isoformat(),
            end=draft.end.isoformat(),
            location=draft.location,
            force=force,
        )


class AddEventResponse(BaseModel):
    """Decoded body of an ``/add_event`` response."""

    model_config = ConfigDict(extra="ignore")

    spoken_response: str = ""

    @field_validator("spoken_response", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any) -> Any:
        return _text_or_empty(value)
