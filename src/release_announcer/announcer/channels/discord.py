"""Discord webhook delivery client."""

from __future__ import annotations

import json
import logging
from types import TracebackType
from typing import TYPE_CHECKING, Any

import httpx

from release_announcer.announcer.errors import DeliveryError
from release_announcer.announcer.models import DeliveryOutcome

if TYPE_CHECKING:
    from release_announcer.announcer.models import WebhookEndpoint

logger = logging.getLogger(__name__)

# CI runners can be slow to reach Discord
DEFAULT_REQUEST_TIMEOUT = 30.0


def serialize_payload(payload: dict[str, Any]) -> bytes:
    """Serialize a webhook payload to the exact bytes that are sent."""
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


class DiscordWebhookClient:
    """Discord webhook client for posting release announcements.

    One underlying HTTP client is shared by all calls made inside the
    ``async with`` block. Calls are made once, without retries; the
    response status is returned as data rather than raised.
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the Discord client.

        Args:
            timeout: HTTP request timeout in seconds.
            transport: Optional httpx transport, mainly for tests.
        """
        self.timeout = timeout
        self.name = "discord"
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> DiscordWebhookClient:
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def send(
        self, endpoint: WebhookEndpoint, payload: dict[str, Any]
    ) -> DeliveryOutcome:
        """Execute the webhook with the given payload.

        Args:
            endpoint: Target webhook.
            payload: Webhook message payload.

        Returns:
            DeliveryOutcome with the response status and the raw request body.

        Raises:
            DeliveryError: If the request could not be completed.
        """
        if self._client is None:
            raise RuntimeError("DiscordWebhookClient must be used as an async context manager")

        body = serialize_payload(payload)

        try:
            response = await self._client.post(
                endpoint.url,
                content=body,
                headers={"Content-Type": "application/json"},
            )
        except httpx.TimeoutException as e:
            raise DeliveryError(
                f"Discord webhook {endpoint.id} timed out after {self.timeout}s"
            ) from e
        except httpx.HTTPError as e:
            raise DeliveryError(f"Discord webhook {endpoint.id} request failed: {e}") from e

        outcome = DeliveryOutcome(status_code=response.status_code, raw_body=body)
        if outcome.is_success:
            logger.info(f"Discord webhook {endpoint.id} responded {response.status_code}")
        else:
            logger.warning(
                f"Discord webhook {endpoint.id} responded "
                f"{response.status_code}: {response.text}"
            )

        return outcome
