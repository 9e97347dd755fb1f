"""Client for the remote add-event endpoint."""

from __future__ import annotations

import logging

from voice_cal.backend.exceptions import CommitError
from voice_cal.backend.transport import BackendTransport, decode_response
from voice_cal.exceptions import ValidationGap
from voice_cal.models.backend import AddEventRequest, AddEventResponse
from voice_cal.models.draft import EventDraft

logger = logging.getLogger(__name__)

ADD_EVENT_ENDPOINT = "/add_event"


class CommitClient:
    """Persists a finished draft via ``POST /add_event``.

    Args:
        transport: Shared backend transport.
    """

    def __init__(self, transport: BackendTransport) -> None:
        self._transport = transport

    async def add_event(self, draft: EventDraft, force: bool = False) -> str:
        """Commit *draft* to the calendar.

        Args:
            draft: A draft with a title and both times set.
            force: Passed to the service verbatim; lets it skip its own
                conflict policy.

        Returns:
            The service's confirmation message (possibly empty).

        Raises:
            ValidationGap: If the draft is incomplete; no call is made.
            CommitError: On transport or decode failure.
        """
        if not draft.is_complete:
            missing = tuple(
                name
                for name, ok in (
                    ("title", bool(draft.title.strip())),
                    ("start", draft.start is not None),
                    ("end", draft.end is not None),
                )
                if not ok
            )
            raise ValidationGap("Title, start and end are required", missing=missing)

        request = AddEventRequest.from_draft(draft, force=force)
        data = await self._transport.post_json(
            ADD_EVENT_ENDPOINT, request.model_dump(), CommitError
        )
        response = decode_response(AddEventResponse, data, ADD_EVENT_ENDPOINT, CommitError)

        logger.info(
            "Committed event %r (%s - %s, force=%s)",
            request.title,
            request.start,
            request.end,
            force,
        )
        return response.spoken_response
