"""Client for the remote natural-language extraction endpoint."""

from __future__ import annotations

import logging

from voice_cal.backend.exceptions import ExtractionError
from voice_cal.backend.transport import BackendTransport, decode_response
from voice_cal.exceptions import ValidationGap
from voice_cal.models.backend import ExtractRequest, ExtractResponse
from voice_cal.models.draft import EventDraft

logger = logging.getLogger(__name__)

EXTRACT_ENDPOINT = "/extract"


class ExtractionClient:
    """Turns a transcript into an :class:`EventDraft` via ``POST /extract``.

    Args:
        transport: Shared backend transport.
    """

    def __init__(self, transport: BackendTransport) -> None:
        self._transport = transport

    async def extract(self, transcript: str) -> EventDraft:
        """Extract a candidate event from *transcript*.

        Partial success is the normal case: any field the service leaves
        out comes back empty, and ``start``/``end`` are parsed
        independently so a bad ``start`` never costs the ``end``.

        Args:
            transcript: Non-empty transcript text.

        Returns:
            A new draft populated from the response.

        Raises:
            ValidationGap: If *transcript* is empty; no call is made.
            ExtractionError: On transport or decode failure.
        """
        if not transcript.strip():
            raise ValidationGap("Transcript is empty", missing=("text",))

        logger.debug("Extracting event from transcript: %r", transcript)
        request = ExtractRequest(text=transcript)
        data = await self._transport.post_json(
            EXTRACT_ENDPOINT, request.model_dump(), ExtractionError
        )
        response = decode_response(ExtractResponse, data, EXTRACT_ENDPOINT, ExtractionError)

        draft = response.to_draft()
        logger.info(
            "Extracted draft: title=%r start=%s end=%s location=%r",
            draft.title,
            draft.start.isoformat() if draft.start else None,
            draft.end.isoformat() if draft.end else None,
            draft.location,
        )
        return draft
