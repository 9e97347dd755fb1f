"""Shared HTTP transport for the backend clients.

Wraps a single ``httpx.AsyncClient`` configured with the backend base URL,
JSON headers and the request timeout.  :meth:`BackendTransport.post_json`
is the only network primitive the clients use: it posts a JSON body and
returns the decoded JSON object, translating every failure into the
caller's :class:`~voice_cal.backend.exceptions.BackendError` subclass.

No retries are attempted here.  A failed call is terminal for the
workflow attempt and is reported to the user instead.
"""

from __future__ import annotations

import json
import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from voice_cal.backend.exceptions import DECODE, BackendError, classify_http_error

logger = logging.getLogger(__name__)

_ModelT = TypeVar("_ModelT", bound=BaseModel)

_DEFAULT_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}


class BackendTransport:
    """HTTP transport shared by the extraction, conflict and commit clients.

    Args:
        base_url: Backend base URL (e.g. ``"https://calendar.example.com"``).
        timeout: Per-request timeout in seconds, or ``None`` to wait
            indefinitely.
        client: Optional pre-built ``httpx.AsyncClient``.  If ``None``, one
            is created from *base_url* and *timeout*.  Pass one built on
            ``httpx.MockTransport`` in tests.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float | None = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(
            base_url=self._base_url,
            headers=_DEFAULT_HEADERS,
            timeout=timeout,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> BackendTransport:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def post_json(
        self,
        endpoint: str,
        payload: dict[str, Any],
        error_cls: type[BackendError],
    ) -> dict[str, Any]:
        """POST *payload* as JSON and return the decoded response object.

        Args:
            endpoint: Path relative to the base URL (e.g. ``"/extract"``).
            payload: JSON-serialisable request body.
            error_cls: Exception type to raise on failure.

        Returns:
            The response body as a ``dict``.

        Raises:
            BackendError: As *error_cls*, of kind ``"transport"`` for
                network errors, timeouts and non-2xx statuses, or of kind
                ``"decode"`` when the body is empty or not a JSON object.
        """
        logger.debug("POST %s%s", self._base_url, endpoint)
        try:
            response = await self._client.post(endpoint, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            error = classify_http_error(exc, endpoint, error_cls)
            logger.error("Backend transport error on %s: %s", endpoint, error)
            raise error from exc

        if not response.content.strip():
            logger.error("Backend returned an empty body on %s", endpoint)
            raise error_cls(
                f"{endpoint} returned an empty body",
                kind=DECODE,
                endpoint=endpoint,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.error("Backend returned invalid JSON on %s: %s", endpoint, exc)
            raise error_cls(
                f"{endpoint} returned invalid JSON: {exc}",
                kind=DECODE,
                endpoint=endpoint,
                status_code=response.status_code,
            ) from exc

        if not isinstance(data, dict):
            logger.error(
                "Backend returned %s instead of an object on %s",
                type(data).__name__,
                endpoint,
            )
            raise error_cls(
                f"{endpoint} returned {type(data).__name__}, expected an object",
                kind=DECODE,
                endpoint=endpoint,
                status_code=response.status_code,
            )

        return data


def decode_response(
    model: type[_ModelT],
    data: dict[str, Any],
    endpoint: str,
    error_cls: type[BackendError],
) -> _ModelT:
    """Validate a decoded JSON object against a response *model*.

    Raises:
        BackendError: As *error_cls* of kind ``"decode"`` if the object
            does not fit the schema (e.g. ``conflicts`` is not a list).
    """
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        logger.error("Backend response on %s failed schema validation: %s", endpoint, exc)
        raise error_cls(
            f"{endpoint} response did not match the expected schema: {exc}",
            kind=DECODE,
            endpoint=endpoint,
        ) from exc
