"""
Async forwarder delivering validated submissions to the n8n webhook.

One attempt per submission, no retry. The outcome is returned as a value so
callers can tell a downstream rejection from a transport failure.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional, Union

import aiohttp
import structlog

from ..models.contact import NormalizedPayload
from .credentials import Credential

logger = structlog.get_logger(__name__)

UNREADABLE_BODY = "Unable to read error response"


@dataclass(frozen=True)
class Delivered:
    status: int


@dataclass(frozen=True)
class DownstreamRejected:
    status: int
    body: str


@dataclass(frozen=True)
class TransportFailure:
    cause: str


ForwardOutcome = Union[Delivered, DownstreamRejected, TransportFailure]


class WebhookForwarder:
    """
    Posts payloads to the configured webhook with a bearer credential.

    The HTTP session lives between start() and stop(), which the application
    lifespan calls.
    """

    def __init__(self, url: str, timeout_seconds: float = 10):
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.session: Optional[aiohttp.ClientSession] = None

        logger.info("Webhook forwarder initialized", webhook_url=url, timeout_seconds=timeout_seconds)

    async def start(self) -> None:
        """Open the HTTP session."""
        if self.session is not None:
            return

        self.session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout_seconds)
        )
        logger.info("Webhook forwarder started")

    async def stop(self) -> None:
        """Close the HTTP session."""
        if self.session:
            await self.session.close()
            self.session = None

        logger.info("Webhook forwarder stopped")

    async def forward(self, payload: NormalizedPayload, credential: Credential) -> ForwardOutcome:
        """
        Deliver payload to the webhook.

        Returns:
            Delivered for a 2xx response, DownstreamRejected for any other
            status, TransportFailure when no response was obtained
        """
        if not self.session:
            return TransportFailure(cause="Forwarder not started")

        headers = {
            "Content-Type": "application/json",
            "Authorization": credential.authorization_header(),
        }

        try:
            async with self.session.post(
                self.url,
                json=payload.to_wire(),
                headers=headers,
            ) as response:
                if 200 <= response.status < 300:
                    logger.debug("Webhook accepted submission", status=response.status)
                    return Delivered(status=response.status)

                error_text = await self._read_body(response)
                logger.error(
                    "Webhook returned error",
                    status=response.status,
                    webhook_url=self.url,
                    error=error_text,
                )
                return DownstreamRejected(status=response.status, body=error_text)

        except asyncio.TimeoutError:
            cause = f"Timed out after {self.timeout_seconds}s"
            logger.error("Error forwarding to webhook", webhook_url=self.url, error=cause)
            return TransportFailure(cause=cause)
        except aiohttp.ClientError as e:
            cause = str(e) or type(e).__name__
            logger.error(
                "Error forwarding to webhook",
                webhook_url=self.url,
                error=cause,
                error_type=type(e).__name__,
            )
            return TransportFailure(cause=cause)

    async def _read_body(self, response: aiohttp.ClientResponse) -> str:
        """Best-effort read of an error body, for logs only."""
        try:
            return await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError, UnicodeDecodeError, LookupError) as e:
            logger.debug("Could not read webhook error body", error=str(e))
            return UNREADABLE_BODY
