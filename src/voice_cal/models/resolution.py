"""Types used by the resolution controller and its collaborators."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from voice_cal.models.backend import ConflictRecord
from voice_cal.models.draft import EventDraft


class ResolutionOutcome(str, Enum):
    """The user's answer to a conflict prompt."""

    RESCHEDULE = "reschedule"
    FORCE_ADD = "force"
    CANCEL = "cancel"


class WorkflowState(str, Enum):
    """States of the resolution workflow.

    ``COMMITTED``, ``FAILED`` and ``CANCELLED`` are only ever reported in a
    :class:`WorkflowResult`; the controller itself settles back on
    ``IDLE`` (or ``AWAITING_CONFLICT_CHECK`` after an extraction) once an
    operation returns.
    """

    IDLE = "idle"
    EXTRACTING = "extracting"
    AWAITING_CONFLICT_CHECK = "awaiting_conflict_check"
    CHECKING_CONFLICTS = "checking_conflicts"
    AWAITING_CHOICE = "awaiting_choice"
    AWAITING_TIME_PICK = "awaiting_time_pick"
    COMMITTING = "committing"
    COMMITTED = "committed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class TimeRange:
    """A start/end pair chosen by a :class:`~voice_cal.collaborators.TimeRangePicker`."""

    start: datetime
    end: datetime


@dataclass(frozen=True)
class WorkflowResult:
    """Outcome of one controller operation.

    Attributes:
        draft: The draft after the operation; feed it into the next call.
        state: Where the operation ended up.
        conflicts: Conflicts from the most recent check, if any ran.
        conflict_checks: Number of conflict-check calls issued.
    """

    draft: EventDraft
    state: WorkflowState
    conflicts: list[ConflictRecord] = field(default_factory=list)
    conflict_checks: int = 0

    @property
    def committed(self) -> bool:
        return self.state is WorkflowState.COMMITTED
