"""CLI entry point for the release announcer.

This module provides the main entry point for announcing a release
from the command line or a CI workflow step.

Usage:
    python -m release_announcer --project-version 1.2.0 [options]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import logging.config
import sys
from typing import Any, NoReturn

from pydantic import ValidationError

from release_announcer import __version__
from release_announcer.announcer import ConfigurationError, announce_release, normalize
from release_announcer.config import Settings, clear_settings_cache, get_settings

# Application info
APP_VERSION = __version__

# Exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130

# CLI flags that map directly onto Settings fields
SETTINGS_ARGUMENTS = (
    ("--project-name", "project_name", "Project display name (defaults to the repository name)"),
    ("--project-version", "project_version", "Version being released"),
    ("--project-repository", "project_repository", "Source repository as owner/repo or URL"),
    ("--curseforge-project-id", "curseforge_project_id", "CurseForge project ID"),
    ("--modrinth-project-id", "modrinth_project_id", "Modrinth project ID or slug"),
    ("--discord-webhook-url", "discord_webhook_url", "Discord webhook URL"),
    ("--discord-thumbnail-url", "discord_thumbnail_url", "Thumbnail URL for the embed"),
    ("--discord-notification-role-id", "discord_notification_role_id", "Role to mention"),
    (
        "--discord-ping-notification-role",
        "discord_ping_notification_role",
        "Force ('true') or suppress ('false') the role mention",
    ),
)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog="release-announcer",
        description="Announce a release on Discord and mention the notification role.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Every option can also be set through the environment variable of the same
name in upper case (e.g. DISCORD_WEBHOOK_URL). Command line values win.

Examples:
  python -m release_announcer --project-version 1.2.0 --project-repository org/Foo
  python -m release_announcer --config-check     Validate config and exit
  python -m release_announcer --log-level DEBUG  Enable debug logging
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {APP_VERSION}",
    )

    for flag, dest, help_text in SETTINGS_ARGUMENTS:
        parser.add_argument(flag, dest=dest, default=None, help=help_text)

    parser.add_argument(
        "--config-check",
        action="store_true",
        help="Validate configuration and exit without sending anything",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override logging level (default: from settings)",
    )

    return parser


def configure_logging(level: str) -> None:
    """Configure logging for the application.

    Args:
        level: Logging level string (DEBUG, INFO, etc.)
    """
    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "detailed": {
                "format": (
                    "%(asctime)s [%(levelname)s] %(name)s (%(filename)s:%(lineno)d): %(message)s"
                ),
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "detailed" if level == "DEBUG" else "standard",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {
            "level": level,
            "handlers": ["console"],
        },
        # Quieter logging for noisy libraries
        "loggers": {
            "httpx": {"level": "WARNING"},
            "httpcore": {"level": "WARNING"},
        },
    }
    logging.config.dictConfig(config)


def settings_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Collect the settings given on the command line."""
    overrides: dict[str, Any] = {}
    for _flag, dest, _help in SETTINGS_ARGUMENTS:
        value = getattr(args, dest, None)
        if value is not None:
            overrides[dest] = value
    if args.log_level:
        overrides["log_level"] = args.log_level
    return overrides


def print_config_summary(settings: Settings) -> None:
    """Print a summary of the configuration.

    Args:
        settings: Application settings.
    """
    print("Configuration:")
    for key, value in settings.redacted_summary().items():
        print(f"  {key}: {value}")
    print()


def validate_config(overrides: dict[str, Any] | None = None) -> Settings | None:
    """Validate and load configuration.

    Args:
        overrides: Values from the command line, taking precedence over
            the environment.

    Returns:
        Settings instance if valid, None if invalid.
    """
    try:
        if overrides:
            # Keyed by alias so they take precedence over the same env variable
            return Settings(
                **{Settings.model_fields[name].alias or name: v for name, v in overrides.items()}
            )
        # Clear cache to force reload
        clear_settings_cache()
        return get_settings()
    except ValidationError as e:
        print("Configuration validation failed:", file=sys.stderr)
        for error in e.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            msg = error["msg"]
            print(f"  {field}: {msg}", file=sys.stderr)
        return None


def run_config_check(settings: Settings) -> int:
    """Run configuration check and exit.

    Args:
        settings: Validated settings.

    Returns:
        Exit code (0 for success).
    """
    try:
        config = normalize(settings)
    except ConfigurationError as e:
        print(f"Configuration is invalid: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    print("Configuration is valid!")
    print()
    print_config_summary(settings)
    print(f"Announcement: {config.project_name} {config.project_version}")
    print(f"Webhook: {config.webhook_endpoint.id}")
    print(f"Download links: {len(config.download_links)}")
    if not settings.github_output:
        print("Warning: GITHUB_OUTPUT is not set, a real run would fail")
    print()
    print("All checks passed. Ready to run.")
    return EXIT_SUCCESS


async def run_announcement(settings: Settings) -> int:
    """Run the announcement pipeline.

    Args:
        settings: Application settings.

    Returns:
        Exit code.
    """
    logger = logging.getLogger(__name__)

    try:
        result = await announce_release(settings)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return EXIT_CONFIG_ERROR
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return EXIT_INTERRUPTED
    except Exception as e:
        logger.exception("Announcement failed: %s", e)
        return EXIT_ERROR

    logger.info(
        "Success (status=%s, pinged=%s)", result.primary.status_code, result.pinged
    )
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:]).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Validate configuration first
    settings = validate_config(settings_overrides(args))
    if settings is None:
        sys.exit(EXIT_CONFIG_ERROR)

    configure_logging(settings.log_level)

    # Config check mode
    if args.config_check:
        sys.exit(run_config_check(settings))

    exit_code = asyncio.run(run_announcement(settings))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
