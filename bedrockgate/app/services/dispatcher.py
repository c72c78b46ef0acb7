############################################################
#
# bedrockgate - Signed Inference Gateway for Amazon Bedrock
#
# dispatcher.py: Sends signed requests to the backend
#
# Luke Sheneman
# Research Computing and Data Services (RCDS)
# Institute for Interdisciplinary Data Sciences (IIDS)
# University of Idaho
# sheneman@uidaho.edu
#
############################################################

"""Dispatcher - issues signed requests over HTTP."""

from typing import Optional

import httpx

from bedrockgate.app.core.descriptors import (
    BackendResponse,
    SignedRequestDescriptor,
    resolve_target,
)
from bedrockgate.app.errors import TransportError
from bedrockgate.app.logging_config import get_logger

logger = get_logger(__name__)


class Dispatcher:
    """
    Sends a SignedRequestDescriptor and returns the raw backend response.

    The target URL comes only from ``resolve_target``; the body and headers
    are sent byte-for-byte as signed. There are no retries here.
    """

    def __init__(
        self,
        timeout: float = 300.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._timeout = timeout
        self._http_client = client

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(
                    connect=10.0,
                    read=self._timeout,
                    write=10.0,
                    pool=10.0,
                ),
            )
        return self._http_client

    async def send(self, signed: SignedRequestDescriptor) -> BackendResponse:
        """
        Send a signed request.

        Raises:
            SigningError: if ``signed`` is not a signed descriptor
            TransportError: on network failure or timeout
        """
        url = f"{resolve_target(signed)}{signed.path}"
        client = await self._get_http_client()

        try:
            response = await client.request(
                signed.method,
                url,
                content=signed.body,
                headers=dict(signed.headers),
            )
        except httpx.TimeoutException as e:
            logger.warning("backend_timeout", model=signed.model, hostname=signed.hostname)
            raise TransportError(f"Timed out waiting for Bedrock: {e}") from e
        except httpx.HTTPError as e:
            logger.warning(
                "backend_connection_error",
                model=signed.model,
                hostname=signed.hostname,
                error=str(e),
            )
            raise TransportError(f"Error connecting to Bedrock: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = response.text

        return BackendResponse(
            status_code=response.status_code,
            body=body,
            headers=dict(response.headers),
        )

    async def close(self) -> None:
        if self._http_client is not None and not self._http_client.is_closed:
            await self._http_client.aclose()
