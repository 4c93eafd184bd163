"""Metadata normalization for release announcements.

This module turns the raw, possibly-empty string settings into a
validated ReleaseAnnouncementConfig. Problems that make the run
impossible (no delivery target, no identifiable project) raise
ConfigurationError before anything is sent.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

import httpx

from release_announcer.announcer.errors import ConfigurationError
from release_announcer.announcer.models import (
    DownloadLink,
    PingOverride,
    ReleaseAnnouncementConfig,
    WebhookEndpoint,
)

if TYPE_CHECKING:
    from release_announcer.config import Settings

logger = logging.getLogger(__name__)

# Discord exposes provider-compatible variants of every webhook; they reject
# the native execute-webhook payload.
INCOMPATIBLE_WEBHOOK_SUFFIXES = ("/github", "/slack")

# Download platform URL templates
CURSEFORGE_PROJECT_URL = "https://www.curseforge.com/projects/{project_id}"
MODRINTH_PROJECT_URL = "https://modrinth.com/mod/{project_id}"

GITHUB_REPOSITORY_URL = "https://github.com/{repository}"

TAG_REF_PREFIX = "refs/tags/"
VERSION_TAG_PATTERN = re.compile(r"v\d")

ROLE_MENTION_PREFIX = "<@&"
ROLE_MENTION_SUFFIX = ">"

# Discord snowflakes are unsigned 64-bit integers
MAX_SNOWFLAKE = 2**64 - 1


def _is_ascii_digits(value: str) -> bool:
    return value.isascii() and value.isdigit()


def strip_incompatible_suffix(path: str) -> str:
    """Remove a provider-compat suffix from a webhook URL path, if present."""
    trimmed = path.rstrip("/")
    for suffix in INCOMPATIBLE_WEBHOOK_SUFFIXES:
        if trimmed.endswith(suffix):
            logger.warning(
                f"Webhook URL ends with incompatible suffix '{suffix}', removing it"
            )
            return trimmed[: -len(suffix)]
    return path


def parse_webhook_url(url: str) -> WebhookEndpoint:
    """Parse a Discord webhook URL into its ID and token.

    Args:
        url: Webhook URL, e.g. ``https://discord.com/api/webhooks/{id}/{token}``.

    Returns:
        The parsed webhook endpoint.

    Raises:
        ConfigurationError: If the URL has no numeric ID or no token.
    """
    try:
        parsed = httpx.URL(url.strip())
    except httpx.InvalidURL as e:
        raise ConfigurationError(f"Failed to parse webhook URL: {e}") from e

    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ConfigurationError("Failed to parse webhook URL: not an HTTP(S) URL")

    # Query and fragment are dropped; the endpoint is rebuilt from id and token
    path = strip_incompatible_suffix(parsed.path)
    segments = [segment for segment in path.split("/") if segment]
    if "webhooks" not in segments:
        raise ConfigurationError("Failed to parse webhook URL: missing 'webhooks' path segment")

    index = segments.index("webhooks")
    remainder = segments[index + 1 :]

    if not remainder or not _is_ascii_digits(remainder[0]):
        raise ConfigurationError("Failed to parse webhook URL: missing numeric webhook ID")
    webhook_id = int(remainder[0])
    if not 0 < webhook_id <= MAX_SNOWFLAKE:
        raise ConfigurationError("Failed to parse webhook URL: webhook ID out of range")

    if len(remainder) < 2:
        raise ConfigurationError("Webhook URL contained no token")
    if len(remainder) > 2:
        raise ConfigurationError(
            f"Failed to parse webhook URL: unexpected path after token "
            f"'/{'/'.join(remainder[2:])}'"
        )

    origin = f"{parsed.scheme}://{parsed.host}"
    if parsed.port is not None:
        origin = f"{origin}:{parsed.port}"
    prefix = "/".join(segments[:index])
    api_base = f"{origin}/{prefix}" if prefix else origin

    return WebhookEndpoint(id=webhook_id, token=remainder[1], api_base=api_base)


def resolve_source_code_url(repository: str) -> str:
    """Resolve a repository reference to a browsable URL.

    A full http(s) URL is kept as is. A bare ``owner/repo`` pair is
    expanded to its GitHub URL. Empty input resolves to an empty string.
    """
    repository = repository.strip()
    if not repository:
        return ""
    if repository.startswith(("http://", "https://")):
        return repository.rstrip("/")

    owner, _, name = repository.partition("/")
    if not owner or not name or "/" in name:
        raise ConfigurationError(
            f"Invalid repository '{repository}'. Expected format owner/repo or a URL."
        )
    return GITHUB_REPOSITORY_URL.format(repository=repository)


def derive_project_name(explicit_name: str, source_code_url: str) -> str:
    """Pick the project name, falling back to the repository name.

    Raises:
        ConfigurationError: If neither a name nor a source URL is available.
    """
    if explicit_name.strip():
        return explicit_name

    segment = source_code_url.rstrip("/").rsplit("/", 1)[-1] if source_code_url else ""
    segment = segment.removesuffix(".git")
    if not segment:
        raise ConfigurationError(
            "project name is required when no source repository is provided"
        )
    return segment


def version_from_ref(ref: str) -> str:
    """Derive a version from a tag ref such as ``refs/tags/v1.2.0``.

    A leading ``v`` is dropped only when a digit follows it. Refs that
    are not tags yield an empty string.
    """
    ref = ref.strip()
    if not ref.startswith(TAG_REF_PREFIX):
        return ""
    tag = ref[len(TAG_REF_PREFIX) :]
    if VERSION_TAG_PATTERN.match(tag):
        return tag[1:]
    return tag


def normalize_role_id(raw_role_id: str, default_role_id: str) -> str:
    """Strip mention decoration from a role ID and apply the default."""
    role_id = raw_role_id.strip()
    if role_id.startswith(ROLE_MENTION_PREFIX) and role_id.endswith(ROLE_MENTION_SUFFIX):
        role_id = role_id[len(ROLE_MENTION_PREFIX) : -len(ROLE_MENTION_SUFFIX)].strip()
    if not role_id:
        role_id = default_role_id.strip()
    return role_id


def resolve_role_id(role_id: str) -> int:
    """Parse a normalized role ID into a Discord snowflake.

    Raises:
        ConfigurationError: If the ID is not a positive 64-bit integer.
    """
    if not _is_ascii_digits(role_id) or not 0 < int(role_id) <= MAX_SNOWFLAKE:
        raise ConfigurationError(f"Invalid notification role ID: '{role_id}'")
    return int(role_id)


def parse_ping_override(raw: str) -> PingOverride:
    """Interpret the ping override input.

    Empty means "decide from the version", ``false`` (any case) disables
    the ping and any other value forces it.
    """
    value = raw.strip()
    if not value:
        return PingOverride.UNSET
    if value.lower() == "false":
        return PingOverride.FORCE_FALSE
    return PingOverride.FORCE_TRUE


def build_download_links(
    curseforge_project_id: str,
    modrinth_project_id: str,
    *,
    curseforge_emoji: str = "",
    modrinth_emoji: str = "",
) -> tuple[DownloadLink, ...]:
    """Build download entries for every platform with a project ID.

    CurseForge always precedes Modrinth.
    """
    links: list[DownloadLink] = []
    curseforge_project_id = curseforge_project_id.strip()
    modrinth_project_id = modrinth_project_id.strip()

    if curseforge_project_id:
        links.append(
            DownloadLink(
                platform_label="CurseForge",
                url=CURSEFORGE_PROJECT_URL.format(project_id=curseforge_project_id),
                emoji_prefix=curseforge_emoji,
            )
        )
    if modrinth_project_id:
        links.append(
            DownloadLink(
                platform_label="Modrinth",
                url=MODRINTH_PROJECT_URL.format(project_id=modrinth_project_id),
                emoji_prefix=modrinth_emoji,
            )
        )
    return tuple(links)


def normalize(settings: Settings) -> ReleaseAnnouncementConfig:
    """Build the announcement configuration from raw settings.

    Args:
        settings: Loaded application settings.

    Returns:
        Normalized, immutable announcement configuration.

    Raises:
        ConfigurationError: If the webhook URL, project name or version
            cannot be resolved.
    """
    endpoint = parse_webhook_url(settings.discord_webhook_url.get_secret_value())

    source_code_url = resolve_source_code_url(settings.project_repository)
    project_name = derive_project_name(settings.project_name, source_code_url)

    project_version = settings.project_version.strip()
    if not project_version and settings.is_workflow_repository:
        project_version = version_from_ref(settings.github_ref)
        if project_version:
            logger.info(f"Using version {project_version} from {settings.github_ref}")
    if not project_version:
        raise ConfigurationError("project version is required")

    config = ReleaseAnnouncementConfig(
        project_name=project_name,
        project_version=project_version,
        webhook_endpoint=endpoint,
        source_code_url=source_code_url,
        thumbnail_url=settings.discord_thumbnail_url.strip(),
        notification_role_id=normalize_role_id(
            settings.discord_notification_role_id,
            settings.default_notification_role_id,
        ),
        ping_override=parse_ping_override(settings.discord_ping_notification_role),
        download_links=build_download_links(
            settings.curseforge_project_id,
            settings.modrinth_project_id,
            curseforge_emoji=settings.curseforge_emoji,
            modrinth_emoji=settings.modrinth_emoji,
        ),
        source_code_emoji=settings.source_code_emoji,
    )

    logger.debug(
        f"Normalized announcement for {config.project_name} {config.project_version} "
        f"({len(config.download_links)} download link(s))"
    )
    return config
