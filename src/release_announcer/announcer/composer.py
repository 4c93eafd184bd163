"""Release announcement message composer.

This module renders a ReleaseAnnouncementConfig into the markdown
description of the announcement embed, and wraps rendered messages
into Discord webhook payloads.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from release_announcer.announcer.models import ComposedMessage

if TYPE_CHECKING:
    from release_announcer.announcer.models import DownloadLink, ReleaseAnnouncementConfig

# Posting identity used for every webhook message
WEBHOOK_USERNAME = "Mod Updates"
WEBHOOK_AVATAR_URL = "https://avatars.githubusercontent.com/u/141473891?s=256"

# Discord embed color (decimal value)
EMBED_COLOR = 0x8DCF88  # Green (#8DCF88)

DOWNLOADS_HEADER = "## Downloads:"
DOWNLOAD_SEPARATOR = " | "
SOURCE_CODE_LABEL = "Source Code"


def with_prefix(emoji: str, text: str) -> str:
    """Prefix text with an emoji, or return it unchanged if there is none."""
    if not emoji:
        return text
    return f"{emoji} {text}"


def format_download_link(link: DownloadLink) -> str:
    """Format a single download entry as a markdown link."""
    return with_prefix(link.emoji_prefix, f"[{link.platform_label}]({link.url})")


def compose(config: ReleaseAnnouncementConfig) -> ComposedMessage:
    """Render the announcement description.

    Sections (title, downloads, source code) are separated by one blank
    line; absent sections leave no trace.

    Args:
        config: Normalized announcement configuration.

    Returns:
        ComposedMessage with the description and optional thumbnail.
    """
    sections = [f"# {config.project_name} {config.project_version}"]

    if config.download_links:
        downloads = DOWNLOAD_SEPARATOR.join(
            format_download_link(link) for link in config.download_links
        )
        sections.append(f"{DOWNLOADS_HEADER}\n{downloads}")

    if config.source_code_url:
        sections.append(
            with_prefix(
                config.source_code_emoji,
                f"[{SOURCE_CODE_LABEL}]({config.source_code_url})",
            )
        )

    return ComposedMessage(
        description="\n\n".join(sections),
        thumbnail_url=config.thumbnail_url or None,
    )


def build_embed(message: ComposedMessage, timestamp: datetime) -> dict[str, object]:
    """Build the Discord embed for a composed message."""
    embed: dict[str, object] = {
        "description": message.description,
        "color": EMBED_COLOR,
        "timestamp": timestamp.isoformat(),
    }
    if message.thumbnail_url:
        embed["thumbnail"] = {"url": message.thumbnail_url}
    return embed


def build_announcement_payload(
    message: ComposedMessage, timestamp: datetime
) -> dict[str, object]:
    """Build the webhook payload carrying the announcement embed."""
    return {
        "username": WEBHOOK_USERNAME,
        "avatar_url": WEBHOOK_AVATAR_URL,
        "embeds": [build_embed(message, timestamp)],
    }


def build_ping_payload(role_id: int) -> dict[str, object]:
    """Build the mention-only follow-up payload.

    Only the given role is allowed to be notified.
    """
    return {
        "username": WEBHOOK_USERNAME,
        "avatar_url": WEBHOOK_AVATAR_URL,
        "content": f"<@&{role_id}>",
        "allowed_mentions": {"roles": [str(role_id)]},
    }
