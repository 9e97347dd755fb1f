"""Unit tests for the extraction, conflict and commit clients.

All tests use ``httpx.MockTransport`` -- no real backend calls are made.
"""

from __future__ import annotations

from datetime import datetime
from unittest.mock import AsyncMock

import httpx
import pytest

from voice_cal.backend.commit import CommitClient
from voice_cal.backend.conflicts import ConflictClient
from voice_cal.backend.exceptions import CommitError, ConflictCheckError, ExtractionError
from voice_cal.backend.extraction import ExtractionClient
from voice_cal.collaborators import ChoicePrompter, SpeechOutput, TimeRangePicker
from voice_cal.exceptions import ValidationGap
from voice_cal.models.draft import EventDraft
from voice_cal.models.resolution import WorkflowState
from voice_cal.resolution import ResolutionController

_START = datetime(2026, 10, 20, 12, 0)
_END = datetime(2026, 10, 20, 13, 0)
_REQUEST = httpx.Request("POST", "https://calendar.example.test/extract")


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


class TestExtractionClient:
    """``POST /extract``."""

    @pytest.mark.asyncio
    async def test_extract_full_response(self, make_transport) -> None:
        transport, handler = make_transport(
            [
                (
                    200,
                    {
                        "title": "Lunch with Sam",
                        "location": "Cafe Roma",
                        "start": "2026-10-20T12:00:00",
                        "end": "2026-10-20T13:00:00",
                        "spoken_response": "Got it, lunch with Sam.",
                    },
                )
            ]
        )

        draft = await ExtractionClient(transport).extract("lunch with Sam tomorrow at noon")

        assert handler.paths == ["/extract"]
        assert handler.bodies == [{"text": "lunch with Sam tomorrow at noon"}]
        assert draft.title == "Lunch with Sam"
        assert draft.location == "Cafe Roma"
        assert draft.start == _START
        assert draft.end == _END
        assert draft.assistant_message == "Got it, lunch with Sam."

    @pytest.mark.asyncio
    async def test_extract_partial_response(self, make_transport) -> None:
        """Missing fields default; a bad start leaves end intact."""
        transport, _ = make_transport(
            [(200, {"start": "sometime", "end": "2026-10-20T13:00:00"})]
        )

        draft = await ExtractionClient(transport).extract("something at one")

        assert draft.title == ""
        assert draft.location == ""
        assert draft.assistant_message == ""
        assert draft.start is None
        assert draft.end == _END

    @pytest.mark.asyncio
    async def test_extract_empty_transcript_makes_no_call(self, make_transport) -> None:
        transport, handler = make_transport([])

        with pytest.raises(ValidationGap):
            await ExtractionClient(transport).extract("   ")

        assert handler.requests == []

    @pytest.mark.asyncio
    async def test_extract_network_failure(self, make_transport) -> None:
        transport, _ = make_transport([httpx.ConnectError("down", request=_REQUEST)])

        with pytest.raises(ExtractionError) as exc_info:
            await ExtractionClient(transport).extract("lunch")

        assert exc_info.value.kind == "transport"

    @pytest.mark.asyncio
    async def test_extract_bad_field_type_is_decode_error(self, make_transport) -> None:
        transport, _ = make_transport([(200, {"title": ["not", "text"]})])

        with pytest.raises(ExtractionError) as exc_info:
            await ExtractionClient(transport).extract("lunch")

        assert exc_info.value.kind == "decode"

    @pytest.mark.asyncio
    async def test_extract_empty_body_is_decode_error(self, make_transport) -> None:
        transport, _ = make_transport([(200, b"")])

        with pytest.raises(ExtractionError) as exc_info:
            await ExtractionClient(transport).extract("lunch")

        assert exc_info.value.kind == "decode"


# ---------------------------------------------------------------------------
# Conflicts
# ---------------------------------------------------------------------------


class TestConflictClient:
    """``POST /check_conflicts``."""

    @pytest.mark.asyncio
    async def test_no_conflicts(self, make_transport) -> None:
        transport, handler = make_transport([(200, {"spoken_response": "You're free."})])

        report = await ConflictClient(transport).check_conflicts(_START, _END)

        assert handler.bodies == [
            {"start": "2026-10-20T12:00:00", "end": "2026-10-20T13:00:00"}
        ]
        assert report.conflicts == []
        assert not report.has_conflicts
        assert report.assistant_message == "You're free."

    @pytest.mark.asyncio
    async def test_conflicts_returned_in_order(self, make_transport) -> None:
        transport, _ = make_transport(
            [
                (
                    200,
                    {
                        "spoken_response": "You have two conflicts.",
                        "conflicts": [
                            {"title": "Standup", "start": "12:00", "end": "12:15"},
                            {"start": "12:30", "end": "13:30"},
                        ],
                    },
                )
            ]
        )

        report = await ConflictClient(transport).check_conflicts(_START, _END)

        assert report.has_conflicts
        assert [c.title for c in report.conflicts] == ["Standup", "Untitled"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("start", "end"), [(None, _END), (_START, None), (None, None)])
    async def test_missing_bound_makes_no_call(
        self, make_transport, start: datetime | None, end: datetime | None
    ) -> None:
        transport, handler = make_transport([])

        with pytest.raises(ValidationGap):
            await ConflictClient(transport).check_conflicts(start, end)

        assert handler.requests == []

    @pytest.mark.asyncio
    async def test_server_error(self, make_transport) -> None:
        transport, _ = make_transport([(503, {})])

        with pytest.raises(ConflictCheckError):
            await ConflictClient(transport).check_conflicts(_START, _END)


# ---------------------------------------------------------------------------
# Commit
# ---------------------------------------------------------------------------


class TestCommitClient:
    """``POST /add_event``."""

    def _draft(self, **overrides) -> EventDraft:
        fields = {"title": "Lunch with Sam", "start": _START, "end": _END, "location": "Cafe"}
        fields.update(overrides)
        return EventDraft(**fields)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("force", [False, True])
    async def test_payload_matches_draft(self, make_transport, force: bool) -> None:
        transport, handler = make_transport([(200, {"spoken_response": "Added."})])

        message = await CommitClient(transport).add_event(self._draft(), force=force)

        assert message == "Added."
        assert handler.paths == ["/add_event"]
        assert handler.bodies == [
            {
                "title": "Lunch with Sam",
                "start": "2026-10-20T12:00:00",
                "end": "2026-10-20T13:00:00",
                "location": "Cafe",
                "force": force,
            }
        ]

    @pytest.mark.asyncio
    async def test_empty_confirmation(self, make_transport) -> None:
        transport, _ = make_transport([(200, {})])

        assert await CommitClient(transport).add_event(self._draft()) == ""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("overrides", "missing"),
        [
            ({"title": ""}, ("title",)),
            ({"start": None}, ("start",)),
            ({"end": None, "title": " "}, ("title", "end")),
        ],
    )
    async def test_incomplete_draft_makes_no_call(
        self, make_transport, overrides: dict, missing: tuple[str, ...]
    ) -> None:
        transport, handler = make_transport([])

        with pytest.raises(ValidationGap) as exc_info:
            await CommitClient(transport).add_event(self._draft(**overrides))

        assert exc_info.value.missing == missing
        assert handler.requests == []

    @pytest.mark.asyncio
    async def test_invalid_json(self, make_transport) -> None:
        transport, _ = make_transport([(200, b"not json")])

        with pytest.raises(CommitError) as exc_info:
            await CommitClient(transport).add_event(self._draft())

        assert exc_info.value.kind == "decode"


# ---------------------------------------------------------------------------
# Controller over the wire
# ---------------------------------------------------------------------------


class TestControllerOverTransport:
    """A controller wired to real clients keeps the draft on bad replies."""

    def _controller(self, transport) -> tuple[ResolutionController, AsyncMock]:
        speech = AsyncMock(spec=SpeechOutput)
        controller = ResolutionController.from_transport(
            transport,
            speech=speech,
            picker=AsyncMock(spec=TimeRangePicker),
            prompter=AsyncMock(spec=ChoicePrompter),
        )
        return controller, speech

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [b"", b"<html></html>", b"[]"])
    async def test_bad_extract_body_keeps_previous_draft(
        self, make_transport, body: bytes
    ) -> None:
        transport, _ = make_transport([(200, body)])
        controller, speech = self._controller(transport)
        previous = EventDraft(title="Lunch", start=_START, end=_END, location="Cafe")

        result = await controller.handle_transcript("lunch tomorrow", previous)

        assert result.state is WorkflowState.FAILED
        assert result.draft.title == "Lunch"
        assert (result.draft.start, result.draft.end) == (_START, _END)
        assert result.draft.location == "Cafe"
        assert result.draft.assistant_message == ExtractionError.user_message
        speech.speak.assert_awaited_once_with(ExtractionError.spoken_message)

    @pytest.mark.asyncio
    async def test_empty_commit_body_is_failure(self, make_transport) -> None:
        transport, handler = make_transport(
            [(200, {"spoken_response": "You're free."}), (200, b"")]
        )
        controller, _ = self._controller(transport)

        result = await controller.check_and_add(
            EventDraft(title="Lunch", start=_START, end=_END)
        )

        assert handler.paths == ["/check_conflicts", "/add_event"]
        assert result.state is WorkflowState.FAILED
        assert result.draft.assistant_message == CommitError.user_message
