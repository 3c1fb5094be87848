"""HTTP upload command built on ``httpx``."""

from __future__ import annotations

from collections.abc import Mapping
import logging

import httpx

from chainable.command import Command
from chainable.errors import UploadError
from chainable.result import Failure, Result, Success

log = logging.getLogger(__name__)

_HTTP_ERROR_HINTS = {
    401: "Check the credentials sent with the upload.",
    403: "The credentials lack permission for this endpoint.",
    404: "Upload endpoint not found; verify the URL.",
    413: "Payload too large for the endpoint.",
    429: "Rate limited by the server; wait before uploading again.",
    500: "Server error; the upload may succeed later.",
    503: "Service unavailable; the upload may succeed later.",
}


class UploadCommand(Command[bytes, httpx.Response]):
    """POST the input bytes to ``url`` and emit the response.

    A shared ``client`` is used when given (and left open); otherwise a
    short-lived ``httpx.AsyncClient`` is created per upload, on ``transport``
    when one is given. Transport errors and HTTP statuses >= 400 become
    ``Failure(UploadError)``.
    """

    def __init__(
        self,
        url: str,
        *,
        client: httpx.AsyncClient | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self._client = client
        self._headers = dict(headers or {})
        self._timeout = timeout
        self._transport = transport

    async def main(self, input: bytes) -> Result[httpx.Response]:
        if self._client is not None:
            return await self._post(self._client, input)
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            return await self._post(client, input)

    async def _post(
        self, client: httpx.AsyncClient, payload: bytes
    ) -> Result[httpx.Response]:
        try:
            response = await client.post(
                self.url, content=payload, headers=self._headers
            )
        except httpx.HTTPError as e:
            err = UploadError(
                f"Upload to {self.url} failed: {e}",
                url=self.url,
                hint="Check network connectivity and the endpoint URL.",
            )
            err.__cause__ = e
            return Failure(err)

        if response.status_code >= 400:
            return Failure(
                UploadError(
                    f"Upload to {self.url} failed with HTTP {response.status_code}",
                    status_code=response.status_code,
                    url=self.url,
                    hint=_HTTP_ERROR_HINTS.get(response.status_code),
                )
            )
        log.debug(
            "Uploaded %d bytes to %s (HTTP %d)",
            len(payload),
            self.url,
            response.status_code,
        )
        return Success(response)
