"""Console front end for the resolution workflow.

Implements the collaborator interfaces on top of stdin/stdout so the
workflow can be driven from a terminal:

- :class:`ConsoleTranscriptSource` -- a typed line stands in for a listen
  session.
- :class:`ConsoleSpeechOutput` -- "speaks" by printing.
- :class:`ConsoleTimeRangePicker` -- asks for start/end date and time,
  one field at a time; ``c`` at any step cancels.
- :class:`ConsoleChoicePrompter` -- shows the conflicts and asks for
  reschedule / force add / cancel.

:class:`ConsoleSession` ties them to a
:class:`~voice_cal.resolution.ResolutionController` and runs either a
single request or an interactive loop.  Blocking ``input()`` calls run in
a worker thread so the event loop stays free while waiting for the user.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from dataclasses import replace
from datetime import date, datetime, time, timedelta, tzinfo
from typing import TextIO

from voice_cal.collaborators import (
    ChoicePrompter,
    SpeechOutput,
    TimeRangePicker,
    TranscriptSource,
)
from voice_cal.models.backend import ConflictRecord
from voice_cal.models.draft import EventDraft
from voice_cal.models.resolution import (
    ResolutionOutcome,
    TimeRange,
    WorkflowResult,
    WorkflowState,
)
from voice_cal.resolution import ResolutionController

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_DEFAULT_DURATION = timedelta(hours=1)
_CANCEL_WORDS = frozenset({"c", "cancel", "q", "quit"})
_DATE_FORMAT = "%Y-%m-%d"
_TIME_FORMAT = "%H:%M"

_CHOICES: dict[str, ResolutionOutcome] = {
    "r": ResolutionOutcome.RESCHEDULE,
    "reschedule": ResolutionOutcome.RESCHEDULE,
    "f": ResolutionOutcome.FORCE_ADD,
    "force": ResolutionOutcome.FORCE_ADD,
    "add anyway": ResolutionOutcome.FORCE_ADD,
    "c": ResolutionOutcome.CANCEL,
    "cancel": ResolutionOutcome.CANCEL,
}

HELP_TEXT = """\
Commands:
  say <text>        Send a request, as if spoken
  listen            Type a request at the listening prompt
  title <text>      Edit the event title
  location <text>   Edit the event location
  pick              Pick new start/end times and check again
  check             Check conflicts and add the event
  add               Add the event now, without checking
  repeat            Repeat the last assistant message
  show              Show the current event
  help              Show this help
  quit              Leave
Anything else is treated as a spoken request."""

InputFunc = Callable[[str], str]

# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def format_datetime(value: datetime | None) -> str:
    """Format as ``M/D/YYYY h:mm AM``; ``"Not set"`` for ``None``."""
    if value is None:
        return "Not set"
    hour = value.hour % 12 or 12
    meridiem = "AM" if value.hour < 12 else "PM"
    return f"{value.month}/{value.day}/{value.year} {hour}:{value.minute:02d} {meridiem}"


def format_draft(draft: EventDraft) -> str:
    """Render the draft the way the event card shows it."""
    lines = [
        f"  Title:     {draft.title or '(none)'}",
        f"  Start:     {format_datetime(draft.start)}",
        f"  End:       {format_datetime(draft.end)}",
        f"  Location:  {draft.location or '(none)'}",
        f"  Assistant: {draft.assistant_message or '—'}",
    ]
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


class _ConsoleIO:
    """Shared line-based input/output for the console collaborators."""

    def __init__(self, input_func: InputFunc = input, output: TextIO | None = None) -> None:
        self._input = input_func
        self._output = output or sys.stdout

    def _write(self, text: str) -> None:
        self._output.write(text + "\n")
        self._output.flush()

    async def _ask(self, prompt: str) -> str | None:
        """Read one line; ``None`` on end of input."""
        try:
            answer = await asyncio.to_thread(self._input, prompt)
        except EOFError:
            return None
        return answer.strip()


class ConsoleTranscriptSource(_ConsoleIO, TranscriptSource):
    """Reads one typed line per listen session."""

    async def listen(self) -> str:
        self._write("Listening... (type your request)")
        return await self._ask("You: ") or ""


class ConsoleSpeechOutput(_ConsoleIO, SpeechOutput):
    """Prints what would be spoken."""

    async def speak(self, text: str) -> None:
        self._write(f"Assistant: {text}")


class ConsoleTimeRangePicker(_ConsoleIO, TimeRangePicker):
    """Asks for start date, start time, end date and end time in turn.

    An empty answer accepts the shown default.  ``c`` (or end of input)
    at any step cancels the whole pick.

    Args:
        input_func: Line reader, ``input`` by default.
        output: Stream for messages, ``sys.stdout`` by default.
        now: Clock used for defaults when the draft has no times.
    """

    def __init__(
        self,
        input_func: InputFunc = input,
        output: TextIO | None = None,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        super().__init__(input_func, output)
        self._now = now

    async def pick(
        self,
        current_start: datetime | None,
        current_end: datetime | None,
    ) -> TimeRange | None:
        now = self._now().replace(second=0, microsecond=0)

        start_date = await self._ask_date("Start date", (current_start or now).date())
        if start_date is None:
            return None
        start_time = await self._ask_time(
            "Start time", (current_start or now + _DEFAULT_DURATION).time()
        )
        if start_time is None:
            return None
        new_start = datetime.combine(start_date, start_time, tzinfo=_tz_of(current_start))

        end_default = current_end or new_start + _DEFAULT_DURATION
        end_date = await self._ask_date("End date", end_default.date(), earliest=start_date)
        if end_date is None:
            return None
        end_time = await self._ask_time("End time", end_default.time())
        if end_time is None:
            return None
        new_end = datetime.combine(end_date, end_time, tzinfo=_tz_of(current_end or current_start))

        return TimeRange(start=new_start, end=new_end)

    async def _ask_date(
        self,
        label: str,
        default: date,
        earliest: date | None = None,
    ) -> date | None:
        while True:
            answer = await self._ask(f"{label} [{default.strftime(_DATE_FORMAT)}]: ")
            if answer is None or answer.lower() in _CANCEL_WORDS:
                return None
            if not answer:
                value = default
            else:
                try:
                    value = datetime.strptime(answer, _DATE_FORMAT).date()
                except ValueError:
                    self._write("Please enter a date as YYYY-MM-DD, or c to cancel.")
                    continue
            if earliest is not None and value < earliest:
                self._write(f"The date cannot be before {earliest.strftime(_DATE_FORMAT)}.")
                continue
            return value

    async def _ask_time(self, label: str, default: time) -> time | None:
        while True:
            answer = await self._ask(f"{label} [{default.strftime(_TIME_FORMAT)}]: ")
            if answer is None or answer.lower() in _CANCEL_WORDS:
                return None
            if not answer:
                return default.replace(second=0, microsecond=0, tzinfo=None)
            try:
                return datetime.strptime(answer, _TIME_FORMAT).time()
            except ValueError:
                self._write("Please enter a time as HH:MM (24-hour), or c to cancel.")


class ConsoleChoicePrompter(_ConsoleIO, ChoicePrompter):
    """Shows the conflicts and asks how to resolve them.

    An empty answer or end of input dismisses the prompt.
    """

    async def prompt(
        self,
        conflicts: list[ConflictRecord],
        details: str,
    ) -> ResolutionOutcome | None:
        self._write("Conflicts found:")
        self._write(details)
        while True:
            answer = await self._ask("[r]eschedule, [f]orce add, [c]ancel: ")
            if not answer:
                return None
            outcome = _CHOICES.get(answer.lower())
            if outcome is not None:
                return outcome
            self._write("Please answer r, f or c.")


def _tz_of(value: datetime | None) -> tzinfo | None:
    return value.tzinfo if value is not None else None


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class ConsoleSession:
    """Holds the current draft and feeds console commands to the controller.

    Args:
        controller: The workflow controller.
        source: Transcript source used by the ``listen`` command.
        input_func: Line reader for the command prompt.
        output: Stream for displayed text.
    """

    def __init__(
        self,
        controller: ResolutionController,
        source: TranscriptSource,
        input_func: InputFunc = input,
        output: TextIO | None = None,
    ) -> None:
        self._controller = controller
        self._source = source
        self._input = input_func
        self._output = output or sys.stdout
        self.draft = EventDraft()
        self._commands: dict[str, Callable[[str], Awaitable[None]]] = {
            "say": self._cmd_say,
            "listen": self._cmd_listen,
            "title": self._cmd_title,
            "location": self._cmd_location,
            "pick": self._cmd_pick,
            "check": self._cmd_check,
            "add": self._cmd_add,
            "repeat": self._cmd_repeat,
            "show": self._cmd_show,
            "help": self._cmd_help,
        }

    async def run_once(self, text: str) -> int:
        """Extract *text*, then check and add it.

        Returns:
            ``1`` if a backend call failed, else ``0``.
        """
        result = await self._apply(self._controller.handle_transcript(text, self.draft))
        if result.state is WorkflowState.AWAITING_CONFLICT_CHECK:
            result = await self._apply(self._controller.check_and_add(self.draft))
        self._show()
        return 1 if result.state is WorkflowState.FAILED else 0

    async def run_interactive(self) -> int:
        """Read commands until ``quit`` or end of input."""
        self._write("AI Event Assistant -- type 'help' for commands.")
        while True:
            try:
                line = await asyncio.to_thread(self._input, "> ")
            except EOFError:
                self._write("")
                return 0
            line = line.strip()
            if not line:
                continue
            name, _, rest = line.partition(" ")
            name = name.lower()
            if name in {"quit", "exit"}:
                return 0
            handler = self._commands.get(name)
            if handler is None:
                await self._cmd_say(line)
            else:
                await handler(rest.strip())

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def _cmd_say(self, text: str) -> None:
        if not text:
            self._write("Nothing to send.")
            return
        await self._apply(self._controller.handle_transcript(text, self.draft))
        self._show()

    async def _cmd_listen(self, _: str) -> None:
        await self._apply(self._controller.listen_and_extract(self._source, self.draft))
        self._show()

    async def _cmd_title(self, text: str) -> None:
        self.draft = replace(self.draft, title=text)
        self._show()

    async def _cmd_location(self, text: str) -> None:
        self.draft = replace(self.draft, location=text)
        self._show()

    async def _cmd_pick(self, _: str) -> None:
        await self._apply(self._controller.reschedule(self.draft))
        self._show()

    async def _cmd_check(self, _: str) -> None:
        await self._apply(self._controller.check_and_add(self.draft))
        self._show()

    async def _cmd_add(self, _: str) -> None:
        await self._apply(self._controller.add_now(self.draft))
        self._show()

    async def _cmd_repeat(self, _: str) -> None:
        await self._controller.repeat_last_message(self.draft)

    async def _cmd_show(self, _: str) -> None:
        self._show()

    async def _cmd_help(self, _: str) -> None:
        self._write(HELP_TEXT)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _apply(self, operation: Awaitable[WorkflowResult]) -> WorkflowResult:
        result = await operation
        self.draft = result.draft
        logger.debug("Operation finished in state %s", result.state.value)
        return result

    def _show(self) -> None:
        self._write(format_draft(self.draft))

    def _write(self, text: str) -> None:
        self._output.write(text + "\n")
        self._output.flush()
