"""Client for the remote conflict-check endpoint."""

from __future__ import annotations

import logging
from datetime import datetime

from voice_cal.backend.exceptions import ConflictCheckError
from voice_cal.backend.transport import BackendTransport, decode_response
from voice_cal.exceptions import ValidationGap
from voice_cal.models.backend import ConflictCheckRequest, ConflictCheckResponse, ConflictReport

logger = logging.getLogger(__name__)

CHECK_CONFLICTS_ENDPOINT = "/check_conflicts"


class ConflictClient:
    """Asks the calendar service which events overlap a time range.

    Args:
        transport: Shared backend transport.
    """

    def __init__(self, transport: BackendTransport) -> None:
        self._transport = transport

    async def check_conflicts(
        self,
        start: datetime | None,
        end: datetime | None,
    ) -> ConflictReport:
        """Return the existing events that overlap ``[start, end)``.

        Conflicts are returned exactly as the service ordered them; no
        sorting or de-duplication happens here.

        Raises:
            ValidationGap: If either bound is ``None``; no call is made.
            ConflictCheckError: On transport or decode failure.
        """
        if start is None or end is None:
            missing = tuple(
                name for name, value in (("start", start), ("end", end)) if value is None
            )
            raise ValidationGap("Both start and end are required", missing=missing)

        request = ConflictCheckRequest.for_range(start, end)
        data = await self._transport.post_json(
            CHECK_CONFLICTS_ENDPOINT, request.model_dump(), ConflictCheckError
        )
        response = decode_response(
            ConflictCheckResponse, data, CHECK_CONFLICTS_ENDPOINT, ConflictCheckError
        )

        if response.conflicts:
            logger.info(
                "Range %s - %s conflicts with %d event(s): %s",
                request.start,
                request.end,
                len(response.conflicts),
                ", ".join(c.title for c in response.conflicts),
            )
        else:
            logger.info("No conflicts for %s - %s", request.start, request.end)

        return ConflictReport(
            assistant_message=response.spoken_response,
            conflicts=response.conflicts,
        )
