"""Interfaces for the I/O collaborators the resolution controller drives.

Speech capture, speech output, the date/time picker and the conflict
dialog all live outside the workflow.  Each is an abstract base class with
a single coroutine; every call is a suspension point of the workflow.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from voice_cal.models.backend import ConflictRecord
from voice_cal.models.resolution import ResolutionOutcome, TimeRange


class TranscriptSource(ABC):
    """Produces one finalized transcript per listen session."""

    @abstractmethod
    async def listen(self) -> str:
        """Listen until the session ends and return the final transcript.

        Returns an empty string if nothing was recognised.  Call again to
        start a new session.
        """


class SpeechOutput(ABC):
    """Speaks feedback to the user."""

    @abstractmethod
    async def speak(self, text: str) -> None:
        """Speak *text*. Best effort; failures may be raised and are logged."""


class TimeRangePicker(ABC):
    """Lets the user choose a new start and end."""

    @abstractmethod
    async def pick(
        self,
        current_start: datetime | None,
        current_end: datetime | None,
    ) -> TimeRange | None:
        """Ask for a new range, seeded with the current values.

        Returns ``None`` if the user cancels at any sub-step.
        """


class ChoicePrompter(ABC):
    """Asks the user how to resolve a set of conflicts."""

    @abstractmethod
    async def prompt(
        self,
        conflicts: list[ConflictRecord],
        details: str,
    ) -> ResolutionOutcome | None:
        """Show the conflicts and wait for a choice.

        Args:
            conflicts: The overlapping events, in service order.
            details: The same events rendered one per line, ready to show.

        Returns:
            The chosen outcome, or ``None`` if the prompt is dismissed
            without a choice.
        """
