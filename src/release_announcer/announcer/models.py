"""Data models for the announcer module."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum


class PingOverride(Enum):
    """Explicit override for the follow-up role mention."""

    UNSET = "unset"
    FORCE_TRUE = "force_true"
    FORCE_FALSE = "force_false"


class ReleaseChannel(Enum):
    """Release classification derived from a version string."""

    STABLE = "stable"
    PRE_RELEASE = "pre_release"


class PipelineStage(Enum):
    """Stages of the notification pipeline, in execution order."""

    NORMALIZING = "normalizing"
    CLASSIFYING = "classifying"
    COMPOSING = "composing"
    DELIVERING_PRIMARY = "delivering_primary"
    REPORTING_OUTCOME = "reporting_outcome"
    DECIDING_PING = "deciding_ping"
    AWAITING_DELAY = "awaiting_delay"
    DELIVERING_SECONDARY = "delivering_secondary"
    DONE = "done"


@dataclass(frozen=True)
class WebhookEndpoint:
    """A Discord webhook target.

    Attributes:
        id: Numeric webhook ID.
        token: Webhook token.
        api_base: Base URL of the webhooks API the endpoint lives under.
    """

    id: int
    token: str
    api_base: str = "https://discord.com/api"

    @property
    def url(self) -> str:
        """Return the execute-webhook URL for this endpoint."""
        return f"{self.api_base}/webhooks/{self.id}/{self.token}"

    def __repr__(self) -> str:
        return f"WebhookEndpoint(id={self.id}, token='***', api_base={self.api_base!r})"


@dataclass(frozen=True)
class DownloadLink:
    """A single download entry in the announcement."""

    platform_label: str
    url: str
    emoji_prefix: str = ""


@dataclass(frozen=True)
class ReleaseAnnouncementConfig:
    """Normalized, immutable input for one announcement run.

    Attributes:
        project_name: Display name of the project, never empty.
        project_version: Opaque version string, never empty.
        webhook_endpoint: Target webhook for both messages.
        source_code_url: Link to the source repository, empty if unknown.
        thumbnail_url: Embed thumbnail, empty if none.
        notification_role_id: Role to mention, unvalidated until a ping is needed.
        ping_override: Explicit override of the pre-release ping suppression.
        download_links: Download entries in display order.
        source_code_emoji: Prefix glyph for the source code link.
    """

    project_name: str
    project_version: str
    webhook_endpoint: WebhookEndpoint
    source_code_url: str = ""
    thumbnail_url: str = ""
    notification_role_id: str = ""
    ping_override: PingOverride = PingOverride.UNSET
    download_links: tuple[DownloadLink, ...] = ()
    source_code_emoji: str = ""


@dataclass(frozen=True)
class ComposedMessage:
    """Rendered announcement body."""

    description: str
    thumbnail_url: str | None = None


@dataclass(frozen=True)
class DeliveryOutcome:
    """Response status and raw request body of one webhook call."""

    status_code: int
    raw_body: bytes = b""

    @property
    def is_success(self) -> bool:
        """Return True for 2xx responses."""
        return 200 <= self.status_code < 300


@dataclass
class PipelineResult:
    """Result of a complete pipeline run."""

    release_channel: ReleaseChannel
    primary: DeliveryOutcome
    pinged: bool = False
    ping: DeliveryOutcome | None = None
    finished_at: datetime = field(default_factory=lambda: datetime.now(UTC))
