"""Webhook delivery clients."""

from release_announcer.announcer.channels.discord import DiscordWebhookClient

__all__ = [
    "DiscordWebhookClient",
]
