"""Announcement layer - compose, deliver and report release notifications."""

from release_announcer.announcer.channels.discord import DiscordWebhookClient
from release_announcer.announcer.classifier import classify
from release_announcer.announcer.composer import compose
from release_announcer.announcer.errors import (
    AnnouncerError,
    ConfigurationError,
    DeliveryError,
    OutcomeWriteError,
)
from release_announcer.announcer.models import (
    ComposedMessage,
    DeliveryOutcome,
    DownloadLink,
    PingOverride,
    PipelineResult,
    PipelineStage,
    ReleaseAnnouncementConfig,
    ReleaseChannel,
    WebhookEndpoint,
)
from release_announcer.announcer.normalizer import normalize
from release_announcer.announcer.pipeline import (
    NotificationPipeline,
    announce_release,
    should_ping,
)
from release_announcer.announcer.reporter import OutcomeReporter

__all__ = [
    "AnnouncerError",
    "ComposedMessage",
    "ConfigurationError",
    "DeliveryError",
    "DeliveryOutcome",
    "DiscordWebhookClient",
    "DownloadLink",
    "NotificationPipeline",
    "OutcomeReporter",
    "OutcomeWriteError",
    "PingOverride",
    "PipelineResult",
    "PipelineStage",
    "ReleaseAnnouncementConfig",
    "ReleaseChannel",
    "WebhookEndpoint",
    "announce_release",
    "classify",
    "compose",
    "normalize",
    "should_ping",
]
