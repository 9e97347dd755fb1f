"""Resolution controller for the transcript-to-calendar workflow.

Drives one candidate event from a raw transcript to a committed calendar
entry:

1. **Extract** -- send the transcript to the extraction service and build
   a fresh :class:`~voice_cal.models.draft.EventDraft`.
2. **Check conflicts** -- triggered explicitly by the user ("check and
   add"), never automatically after extraction.
3. **Resolve** -- with no conflicts, commit straight away.  Otherwise ask
   the user to reschedule, force-add, or cancel.  Rescheduling picks a new
   range and goes back to step 2, as many times as the user likes.
4. **Commit** -- persist the draft, with ``force`` set only on the
   force-add path.

Every remote failure is terminal for the attempt but never escapes the
controller: the user gets a displayed message (in the returned draft's
``assistant_message``) and a spoken one, and the controller settles back
to an idle state.  Missing or inconsistent draft fields are answered with
a spoken prompt and no remote call at all.

The controller never mutates the draft it is given.  Each operation
returns a :class:`~voice_cal.models.resolution.WorkflowResult` carrying the
new draft, which the caller passes into the next operation.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterator

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
from voice_cal.collaborators import (
    ChoicePrompter,
    SpeechOutput,
    TimeRangePicker,
    TranscriptSource,
)
from voice_cal.exceptions import WorkflowBusyError
from voice_cal.models.backend import ConflictRecord, format_conflicts
from voice_cal.models.draft import EventDraft
from voice_cal.models.resolution import ResolutionOutcome, WorkflowResult, WorkflowState

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Spoken prompts
# ---------------------------------------------------------------------------

SET_TIMES_PROMPT = "Please set start and end times before checking for conflicts."
TIME_ORDER_PROMPT = "The end time must be after the start time. Please pick the times again."
COMPLETE_DRAFT_PROMPT = "Please ensure title, start and end are set before adding the event."
RECHECK_PROMPT = "Checking conflicts for the new time"

# States the controller may rest in between operations.
_RESTING_STATES = frozenset({WorkflowState.IDLE, WorkflowState.AWAITING_CONFLICT_CHECK})


class ResolutionController:
    """State machine that takes a draft from transcript to committed event.

    Only one operation may run at a time; starting another while one is
    suspended on a remote call or a prompt raises
    :class:`~voice_cal.exceptions.WorkflowBusyError`.

    Args:
        extraction: Client for ``/extract``.
        conflicts: Client for ``/check_conflicts``.
        commit: Client for ``/add_event``.
        speech: Where spoken feedback goes.
        picker: Asks the user for a new time range.
        prompter: Asks the user how to resolve conflicts.
    """

    def __init__(
        self,
        extraction: ExtractionClient,
        conflicts: ConflictClient,
        commit: CommitClient,
        speech: SpeechOutput,
        picker: TimeRangePicker,
        prompter: ChoicePrompter,
    ) -> None:
        self._extraction = extraction
        self._conflicts = conflicts
        self._commit = commit
        self._speech = speech
        self._picker = picker
        self._prompter = prompter
        self._state = WorkflowState.IDLE
        self._running = False

    @classmethod
    def from_transport(
        cls,
        transport: BackendTransport,
        speech: SpeechOutput,
        picker: TimeRangePicker,
        prompter: ChoicePrompter,
    ) -> ResolutionController:
        """Build a controller whose three clients share one transport."""
        return cls(
            extraction=ExtractionClient(transport),
            conflicts=ConflictClient(transport),
            commit=CommitClient(transport),
            speech=speech,
            picker=picker,
            prompter=prompter,
        )

    @property
    def state(self) -> WorkflowState:
        """The controller's current state."""
        return self._state

    @property
    def busy(self) -> bool:
        """Whether an operation is in flight."""
        return self._running

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def handle_transcript(self, transcript: str, draft: EventDraft) -> WorkflowResult:
        """Extract a new draft from *transcript*.

        An empty transcript is a no-op: no call is made and *draft* comes
        back unchanged.  On failure the previous draft is kept and only its
        ``assistant_message`` changes.

        Args:
            transcript: The finalized transcript.
            draft: The current draft (returned as-is on no-op or failure).

        Returns:
            ``AWAITING_CONFLICT_CHECK`` with the extracted draft, ``FAILED``
            with the previous draft, or the current state for a no-op.
        """
        if not transcript.strip():
            logger.info("Empty transcript, skipping extraction")
            return WorkflowResult(draft=draft, state=self._state)

        with self._exclusive():
            self._transition(WorkflowState.EXTRACTING)
            try:
                extracted = await self._extraction.extract(transcript)
            except ExtractionError as exc:
                return await self._fail(draft, exc)

            self._transition(WorkflowState.AWAITING_CONFLICT_CHECK)
            await self._say(extracted.assistant_message)
            return WorkflowResult(draft=extracted, state=WorkflowState.AWAITING_CONFLICT_CHECK)

    async def listen_and_extract(
        self,
        source: TranscriptSource,
        draft: EventDraft,
    ) -> WorkflowResult:
        """Run one listen session on *source* and extract from its transcript."""
        transcript = await source.listen()
        logger.debug("Listen session finished: %r", transcript)
        return await self.handle_transcript(transcript, draft)

    async def check_and_add(self, draft: EventDraft) -> WorkflowResult:
        """Check *draft* for conflicts, resolve them, and commit.

        This is the explicit "check and add" action.  It loops through
        check -> prompt -> reschedule until the range is free, the user
        force-adds, or the user cancels.

        Returns:
            A result whose state is ``COMMITTED``, ``FAILED``,
            ``CANCELLED``, ``IDLE`` (reschedule abandoned) or
            ``AWAITING_CONFLICT_CHECK`` (draft needs fixing first).
        """
        with self._exclusive():
            return await self._resolve(draft)

    async def reschedule(self, draft: EventDraft) -> WorkflowResult:
        """Pick a new range for *draft* and re-enter the conflict loop.

        Cancelling the picker leaves *draft* untouched and performs no
        conflict check.
        """
        with self._exclusive():
            rescheduled = await self._pick_new_range(draft)
            if rescheduled is None:
                return WorkflowResult(draft=draft, state=WorkflowState.IDLE)
            await self._say(RECHECK_PROMPT)
            return await self._resolve(rescheduled)

    async def add_now(self, draft: EventDraft) -> WorkflowResult:
        """Commit *draft* without a conflict check (``force=False``)."""
        with self._exclusive():
            return await self._commit_draft(draft, force=False, conflicts=[], checks=0)

    async def repeat_last_message(self, draft: EventDraft) -> None:
        """Speak ``draft.assistant_message`` again, if there is one."""
        await self._say(draft.assistant_message)

    # ------------------------------------------------------------------
    # Resolution loop
    # ------------------------------------------------------------------

    async def _resolve(self, draft: EventDraft) -> WorkflowResult:
        checks = 0
        conflicts: list[ConflictRecord] = []

        while True:
            prompt = _range_problem(draft)
            if prompt is not None:
                logger.info("Conflict check skipped: %s", prompt)
                await self._say(prompt)
                self._transition(WorkflowState.AWAITING_CONFLICT_CHECK)
                return WorkflowResult(
                    draft=draft,
                    state=WorkflowState.AWAITING_CONFLICT_CHECK,
                    conflicts=conflicts,
                    conflict_checks=checks,
                )

            self._transition(WorkflowState.CHECKING_CONFLICTS)
            checks += 1
            try:
                report = await self._conflicts.check_conflicts(draft.start, draft.end)
            except ConflictCheckError as exc:
                return await self._fail(draft, exc, conflicts=conflicts, checks=checks)

            conflicts = report.conflicts
            draft = draft.with_message(report.assistant_message)
            await self._say(report.assistant_message)

            if not report.has_conflicts:
                return await self._commit_draft(
                    draft, force=False, conflicts=conflicts, checks=checks
                )

            self._transition(WorkflowState.AWAITING_CHOICE)
            outcome = await self._prompter.prompt(conflicts, format_conflicts(conflicts))
            if outcome is None:
                outcome = ResolutionOutcome.CANCEL
            logger.info(
                "Resolution choice after %d conflict(s): %s", len(conflicts), outcome.value
            )

            if outcome is ResolutionOutcome.FORCE_ADD:
                return await self._commit_draft(
                    draft, force=True, conflicts=conflicts, checks=checks
                )

            if outcome is ResolutionOutcome.CANCEL:
                self._transition(WorkflowState.CANCELLED)
                return WorkflowResult(
                    draft=draft,
                    state=WorkflowState.CANCELLED,
                    conflicts=conflicts,
                    conflict_checks=checks,
                )

            rescheduled = await self._pick_new_range(draft)
            if rescheduled is None:
                return WorkflowResult(
                    draft=draft,
                    state=WorkflowState.IDLE,
                    conflicts=conflicts,
                    conflict_checks=checks,
                )
            draft = rescheduled
            await self._say(RECHECK_PROMPT)

    async def _pick_new_range(self, draft: EventDraft) -> EventDraft | None:
        self._transition(WorkflowState.AWAITING_TIME_PICK)
        picked = await self._picker.pick(draft.start, draft.end)
        if picked is None:
            logger.info("Reschedule cancelled, keeping previous times")
            self._transition(WorkflowState.IDLE)
            return None
        logger.info(
            "Rescheduled to %s - %s", picked.start.isoformat(), picked.end.isoformat()
        )
        return draft.with_times(picked.start, picked.end)

    async def _commit_draft(
        self,
        draft: EventDraft,
        force: bool,
        conflicts: list[ConflictRecord],
        checks: int,
    ) -> WorkflowResult:
        prompt = None
        if not draft.is_complete:
            prompt = COMPLETE_DRAFT_PROMPT
        elif not draft.has_valid_range:
            prompt = TIME_ORDER_PROMPT
        if prompt is not None:
            logger.info("Commit skipped: %s", prompt)
            await self._say(prompt)
            self._transition(WorkflowState.AWAITING_CONFLICT_CHECK)
            return WorkflowResult(
                draft=draft,
                state=WorkflowState.AWAITING_CONFLICT_CHECK,
                conflicts=conflicts,
                conflict_checks=checks,
            )

        self._transition(WorkflowState.COMMITTING)
        try:
            confirmation = await self._commit.add_event(draft, force=force)
        except CommitError as exc:
            return await self._fail(draft, exc, conflicts=conflicts, checks=checks)

        committed = draft.with_message(confirmation)
        await self._say(confirmation)
        self._transition(WorkflowState.COMMITTED)
        return WorkflowResult(
            draft=committed,
            state=WorkflowState.COMMITTED,
            conflicts=conflicts,
            conflict_checks=checks,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _fail(
        self,
        draft: EventDraft,
        error: BackendError,
        conflicts: list[ConflictRecord] | None = None,
        checks: int = 0,
    ) -> WorkflowResult:
        """Surface a remote failure and report ``FAILED``.

        Only ``assistant_message`` changes; every other draft field is kept
        so the user can retry by hand.
        """
        logger.error(
            "%s failed (%s error, status=%s): %s",
            error.endpoint or "backend call",
            error.kind,
            error.status_code,
            error,
        )
        self._transition(WorkflowState.FAILED)
        await self._say(error.spoken_message)
        return WorkflowResult(
            draft=draft.with_message(error.user_message),
            state=WorkflowState.FAILED,
            conflicts=conflicts or [],
            conflict_checks=checks,
        )

    async def _say(self, text: str) -> None:
        """Speak *text*; speech problems are logged, never raised."""
        if not text:
            return
        try:
            await self._speech.speak(text)
        except Exception as exc:
            logger.warning("Speech output failed: %s", exc)

    def _transition(self, new_state: WorkflowState) -> None:
        if new_state is not self._state:
            logger.debug("Workflow state: %s -> %s", self._state.value, new_state.value)
            self._state = new_state

    @contextlib.contextmanager
    def _exclusive(self) -> Iterator[None]:
        """Hold the single-run lock and settle to a resting state afterwards."""
        if self._running:
            raise WorkflowBusyError(
                f"A workflow operation is already running (state: {self._state.value})"
            )
        self._running = True
        try:
            yield
        finally:
            self._running = False
            if self._state not in _RESTING_STATES:
                self._transition(WorkflowState.IDLE)


def _range_problem(draft: EventDraft) -> str | None:
    """Return the corrective prompt for a draft that cannot be checked yet."""
    if not draft.has_times:
        return SET_TIMES_PROMPT
    if not draft.has_valid_range:
        return TIME_ORDER_PROMPT
    return None
