"""The in-progress event being scheduled.

:class:`EventDraft` is a plain mutable dataclass: every field may be unset
at any moment because extraction and user edits are both partial.  The
resolution controller never mutates a draft it was handed; it returns a
new one built with :func:`dataclasses.replace`.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime


@dataclass
class EventDraft:
    """Structured representation of the event before it is committed.

    Attributes:
        title: Event title; empty until extracted or typed in.
        start: Event start, or ``None`` if unknown.
        end: Event end, or ``None`` if unknown.
        location: Free-text location; empty when unknown.
        assistant_message: The last feedback shown/spoken to the user.
    """

    title: str = ""
    start: datetime | None = None
    end: datetime | None = None
    location: str = ""
    assistant_message: str = ""

    @property
    def has_times(self) -> bool:
        """Whether both ``start`` and ``end`` are set."""
        return self.start is not None and self.end is not None

    @property
    def has_valid_range(self) -> bool:
        """Whether both times are set and ``start`` is before ``end``.

        A naive/aware mix cannot be ordered and counts as invalid.
        """
        if not self.has_times:
            return False
        try:
            return self.start < self.end  # type: ignore[operator]
        except TypeError:
            return False

    @property
    def is_complete(self) -> bool:
        """Whether the draft has everything the commit endpoint needs."""
        return bool(self.title.strip()) and self.has_times

    def with_times(self, start: datetime, end: datetime) -> EventDraft:
        """Return a copy with ``start`` and ``end`` replaced."""
        return replace(self, start=start, end=end)

    def with_message(self, message: str) -> EventDraft:
        """Return a copy with ``assistant_message`` replaced."""
        return replace(self, assistant_message=message)
