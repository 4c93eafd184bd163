"""Release notification pipeline.

Runs one announcement end to end: classify the version, compose the
announcement, deliver it, record the outcome, and then, unless the
release is a suppressed pre-release, mention the notification role in
a separate follow-up message a few seconds later.

The outcome of the announcement is always written before the follow-up
is attempted, so a failing follow-up never loses the primary record.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Protocol

from release_announcer.announcer.channels.discord import DiscordWebhookClient
from release_announcer.announcer.classifier import classify
from release_announcer.announcer.composer import (
    build_announcement_payload,
    build_ping_payload,
    compose,
)
from release_announcer.announcer.errors import AnnouncerError, ConfigurationError
from release_announcer.announcer.models import (
    PingOverride,
    PipelineResult,
    PipelineStage,
    ReleaseChannel,
)
from release_announcer.announcer.normalizer import normalize, resolve_role_id
from release_announcer.announcer.reporter import OutcomeReporter

if TYPE_CHECKING:
    from pathlib import Path

    from release_announcer.announcer.models import (
        DeliveryOutcome,
        ReleaseAnnouncementConfig,
        WebhookEndpoint,
    )
    from release_announcer.config import Settings

logger = logging.getLogger(__name__)

# Gap between the announcement and the role mention
PING_DELAY_SECONDS = 5.0


class WebhookSender(Protocol):
    """Protocol for webhook delivery clients."""

    async def send(
        self, endpoint: WebhookEndpoint, payload: dict[str, Any]
    ) -> DeliveryOutcome:
        """Send payload to the endpoint and return the outcome."""
        ...


class OutcomeSink(Protocol):
    """Protocol for the primary outcome writer."""

    def report(self, outcome: DeliveryOutcome) -> None:
        """Persist the outcome."""
        ...


def should_ping(override: PingOverride, release_channel: ReleaseChannel) -> bool:
    """Decide whether the notification role is mentioned.

    An explicit override always wins; otherwise only stable releases ping.
    """
    if override is PingOverride.FORCE_TRUE:
        return True
    if override is PingOverride.FORCE_FALSE:
        return False
    return release_channel is ReleaseChannel.STABLE


class NotificationPipeline:
    """Sequential announce-then-ping pipeline.

    The pipeline has no retries and no cancellation: each stage either
    completes or the run aborts with the error.
    """

    def __init__(
        self,
        client: WebhookSender,
        reporter: OutcomeSink,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        """Initialize the pipeline.

        Args:
            client: Delivery client, reused for both messages.
            reporter: Sink for the primary delivery outcome.
            sleep: Awaitable sleep used for the follow-up delay.
            clock: Source of the embed timestamp.
        """
        self.client = client
        self.reporter = reporter
        self._sleep = sleep
        self._clock = clock
        self.stage = PipelineStage.NORMALIZING

    def _enter(self, stage: PipelineStage) -> None:
        self.stage = stage
        logger.debug(f"Pipeline stage: {stage.value}")

    async def run(self, config: ReleaseAnnouncementConfig) -> PipelineResult:
        """Run the pipeline for one release.

        Args:
            config: Normalized announcement configuration.

        Returns:
            PipelineResult with the primary and optional follow-up outcomes.

        Raises:
            ConfigurationError: If a ping is required but the role ID is invalid.
            DeliveryError: If a webhook request fails.
            OutcomeWriteError: If the outcome cannot be recorded.
        """
        try:
            return await self._run(config)
        except AnnouncerError as e:
            logger.error(f"Pipeline failed during {self.stage.value}: {e}")
            raise

    async def _run(self, config: ReleaseAnnouncementConfig) -> PipelineResult:
        self._enter(PipelineStage.CLASSIFYING)
        release_channel = classify(config.project_version)
        ping = should_ping(config.ping_override, release_channel)
        logger.info(
            f"{config.project_name} {config.project_version} classified as "
            f"{release_channel.value}"
        )
        # Validated up front so a bad role ID fails before anything is sent
        role_id = resolve_role_id(config.notification_role_id) if ping else None

        self._enter(PipelineStage.COMPOSING)
        message = compose(config)
        payload = build_announcement_payload(message, self._clock())

        self._enter(PipelineStage.DELIVERING_PRIMARY)
        logger.info("Sending webhook message to Discord")
        outcome = await self.client.send(config.webhook_endpoint, payload)

        self._enter(PipelineStage.REPORTING_OUTCOME)
        self.reporter.report(outcome)
        result = PipelineResult(release_channel=release_channel, primary=outcome)

        self._enter(PipelineStage.DECIDING_PING)
        if role_id is None:
            logger.info(
                f"Not pinging notification role (override={config.ping_override.value})"
            )
            self._enter(PipelineStage.DONE)
            return result

        self._enter(PipelineStage.AWAITING_DELAY)
        logger.info(f"Waiting {PING_DELAY_SECONDS:.0f} seconds before pinging notification role")
        await self._sleep(PING_DELAY_SECONDS)

        self._enter(PipelineStage.DELIVERING_SECONDARY)
        logger.info(f"Pinging notification role {role_id}")
        result.ping = await self.client.send(config.webhook_endpoint, build_ping_payload(role_id))
        result.pinged = True

        self._enter(PipelineStage.DONE)
        return result


async def announce_release(
    settings: Settings,
    *,
    client: WebhookSender | None = None,
    output_path: str | Path | None = None,
) -> PipelineResult:
    """Normalize settings and run the full pipeline.

    Args:
        settings: Loaded application settings.
        client: Delivery client; a DiscordWebhookClient is created if omitted.
        output_path: Outcome file; defaults to ``settings.github_output``.

    Returns:
        PipelineResult of the run.

    Raises:
        ConfigurationError: If the settings cannot be normalized or no
            outcome path is available. Raised before any request is sent.
    """
    logger.debug(f"Pipeline stage: {PipelineStage.NORMALIZING.value}")
    config = normalize(settings)

    path = output_path or settings.github_output
    if not path:
        raise ConfigurationError("GITHUB_OUTPUT environment variable not set")
    reporter = OutcomeReporter(path)

    if client is not None:
        return await NotificationPipeline(client, reporter).run(config)

    async with DiscordWebhookClient(timeout=settings.request_timeout) as discord:
        return await NotificationPipeline(discord, reporter).run(config)
