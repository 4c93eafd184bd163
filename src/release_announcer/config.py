"""Configuration management service with Pydantic Settings.

This module provides centralized configuration for the release
announcer, loading and validating environment variables (and values
passed in from the command line) at startup.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Role mentioned by the follow-up message when none is configured
DEFAULT_NOTIFICATION_ROLE_ID = "918884941461352469"

# Custom emoji used as link prefixes in the announcement
DEFAULT_CURSEFORGE_EMOJI = "<:curseforge:1231714919561429023>"
DEFAULT_MODRINTH_EMOJI = "<:modrinth:1231714923503943710>"
DEFAULT_SOURCE_CODE_EMOJI = "<:github:1231714921331425310>"

WEBHOOK_TOKEN_PATTERN = re.compile(r"(/webhooks/\d+/)[^/?#]+")


class Settings(BaseSettings):
    """Release announcer settings.

    Every release field is a plain string; empty means "not provided".
    Normalization into an announcement happens later, in
    ``release_announcer.announcer.normalizer``.

    Example:
        ```python
        from release_announcer.config import get_settings

        settings = get_settings()
        print(settings.project_version)
        print(settings.log_level)
        ```
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Release metadata
    project_name: str = Field(
        default="",
        alias="PROJECT_NAME",
        description="Display name of the project (derived from the repository if empty)",
    )
    project_version: str = Field(
        default="",
        alias="PROJECT_VERSION",
        description="Version being announced",
    )
    project_repository: str = Field(
        default="",
        alias="PROJECT_REPOSITORY",
        description="Source repository as owner/repo or a full URL (defaults to GITHUB_REPOSITORY)",
    )
    curseforge_project_id: str = Field(
        default="",
        alias="CURSEFORGE_PROJECT_ID",
        description="CurseForge project ID",
    )
    modrinth_project_id: str = Field(
        default="",
        alias="MODRINTH_PROJECT_ID",
        description="Modrinth project ID or slug",
    )

    # Discord delivery
    discord_webhook_url: SecretStr = Field(
        alias="DISCORD_WEBHOOK_URL",
        description="Discord webhook URL the announcement is posted to",
    )
    discord_thumbnail_url: str = Field(
        default="",
        alias="DISCORD_THUMBNAIL_URL",
        description="Thumbnail shown in the announcement embed",
    )
    discord_notification_role_id: str = Field(
        default="",
        alias="DISCORD_NOTIFICATION_ROLE_ID",
        description="Role to mention after the announcement",
    )
    discord_ping_notification_role: str = Field(
        default="",
        alias="DISCORD_PING_NOTIFICATION_ROLE",
        description="Force ('true') or suppress ('false') the role mention",
    )
    default_notification_role_id: str = Field(
        default=DEFAULT_NOTIFICATION_ROLE_ID,
        alias="DEFAULT_NOTIFICATION_ROLE_ID",
        description="Role mentioned when no notification role is configured",
    )

    # Link prefixes
    curseforge_emoji: str = Field(default=DEFAULT_CURSEFORGE_EMOJI, alias="CURSEFORGE_EMOJI")
    modrinth_emoji: str = Field(default=DEFAULT_MODRINTH_EMOJI, alias="MODRINTH_EMOJI")
    source_code_emoji: str = Field(default=DEFAULT_SOURCE_CODE_EMOJI, alias="SOURCE_CODE_EMOJI")

    # Workflow context
    github_repository: str = Field(
        default="",
        alias="GITHUB_REPOSITORY",
        description="owner/repo of the repository running the workflow",
    )
    github_ref: str = Field(
        default="",
        alias="GITHUB_REF",
        description="Ref that triggered the workflow, e.g. refs/tags/v1.2.0",
    )

    # Application settings
    github_output: str | None = Field(
        default=None,
        alias="GITHUB_OUTPUT",
        description="File the delivery outcome is written to",
    )
    request_timeout: float = Field(
        default=30.0,
        alias="REQUEST_TIMEOUT",
        description="Webhook request timeout in seconds",
        gt=0,
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )

    @field_validator("discord_webhook_url")
    @classmethod
    def validate_webhook_url(cls, v: SecretStr) -> SecretStr:
        """Validate webhook URL format."""
        if not v.get_secret_value().strip().startswith(("http://", "https://")):
            raise ValueError("DISCORD_WEBHOOK_URL must be an HTTP(S) URL")
        return v

    @model_validator(mode="after")
    def default_repository(self) -> Settings:
        """Fall back to the workflow repository when none is given."""
        if not self.project_repository.strip():
            self.project_repository = self.github_repository.strip()
        return self

    @property
    def is_workflow_repository(self) -> bool:
        """Whether the announced repository is the one running the workflow."""
        workflow = self.github_repository.strip()
        return bool(workflow) and self.project_repository.strip().upper() == workflow.upper()

    def redacted_summary(self) -> dict[str, str]:
        """Get a summary of settings with secrets redacted.

        Returns:
            Dictionary of settings with the webhook token masked.
        """
        return {
            "project_name": self.project_name or "(from repository)",
            "project_version": self.project_version or "(not set)",
            "project_repository": self.project_repository or "(not set)",
            "curseforge_project_id": self.curseforge_project_id or "(not set)",
            "modrinth_project_id": self.modrinth_project_id or "(not set)",
            "discord_webhook_url": self._redact_webhook_url(
                self.discord_webhook_url.get_secret_value()
            ),
            "discord_ping_notification_role": self.discord_ping_notification_role
            or "(auto)",
            "github_output": self.github_output or "(not set)",
            "log_level": self.log_level,
        }

    @staticmethod
    def _redact_webhook_url(url: str) -> str:
        """Redact the token segment of a webhook URL."""
        return WEBHOOK_TOKEN_PATTERN.sub(r"\1***", url)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Uses LRU cache to ensure settings are loaded only once and
    reused across the application.

    Returns:
        The Settings instance.

    Raises:
        ValidationError: If required environment variables are missing
            or have invalid values.
    """
    return Settings()  # type: ignore[call-arg]


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing when you need to reload settings with
    different environment variables.
    """
    get_settings.cache_clear()
