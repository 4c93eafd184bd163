"""Tests for announcement metadata normalization."""

from __future__ import annotations

import logging
import os
from unittest.mock import patch

import pytest

from release_announcer.announcer.errors import ConfigurationError
from release_announcer.announcer.models import DownloadLink, PingOverride, WebhookEndpoint
from release_announcer.announcer.normalizer import (
    build_download_links,
    derive_project_name,
    normalize,
    normalize_role_id,
    parse_ping_override,
    parse_webhook_url,
    resolve_role_id,
    resolve_source_code_url,
    strip_incompatible_suffix,
    version_from_ref,
)
from release_announcer.config import Settings

WEBHOOK_URL = "https://discord.com/api/webhooks/123456789/token-abc_DEF"


def make_settings(**overrides: str) -> Settings:
    """Build settings from explicit values only."""
    values = {
        "discord_webhook_url": WEBHOOK_URL,
        "project_version": "1.0.0",
        "project_repository": "org/Foo",
    }
    values.update(overrides)
    with patch.dict(os.environ, {}, clear=True):
        return Settings(_env_file=None, **values)


# ============================================================================
# Webhook URL
# ============================================================================


class TestParseWebhookUrl:
    """Tests for webhook URL parsing."""

    def test_valid_url(self) -> None:
        """ID and token are extracted."""
        endpoint = parse_webhook_url(WEBHOOK_URL)
        assert endpoint.id == 123456789
        assert endpoint.token == "token-abc_DEF"
        assert endpoint.api_base == "https://discord.com/api"
        assert endpoint.url == WEBHOOK_URL

    def test_versioned_api_path(self) -> None:
        """API version prefixes are preserved."""
        endpoint = parse_webhook_url("https://discord.com/api/v10/webhooks/1/tok")
        assert endpoint.api_base == "https://discord.com/api/v10"
        assert endpoint.url == "https://discord.com/api/v10/webhooks/1/tok"

    def test_incompatible_suffix_is_stripped(self, caplog: pytest.LogCaptureFixture) -> None:
        """A /github suffix is removed and parsing succeeds."""
        with caplog.at_level(logging.WARNING):
            endpoint = parse_webhook_url(f"{WEBHOOK_URL}/github")

        assert endpoint == WebhookEndpoint(id=123456789, token="token-abc_DEF")
        assert "incompatible suffix" in caplog.text

    def test_slack_suffix_with_trailing_slash(self) -> None:
        """A /slack/ suffix is removed too."""
        endpoint = parse_webhook_url(f"{WEBHOOK_URL}/slack/")
        assert endpoint.token == "token-abc_DEF"

    def test_suffix_before_query_string(self) -> None:
        """The suffix is found in the path even when a query follows it."""
        endpoint = parse_webhook_url(f"{WEBHOOK_URL}/github?wait=true")
        assert endpoint == WebhookEndpoint(id=123456789, token="token-abc_DEF")
        assert endpoint.url == WEBHOOK_URL

    def test_query_string_is_dropped(self) -> None:
        """A query after the token does not end up in the token."""
        endpoint = parse_webhook_url(f"{WEBHOOK_URL}?thread_id=1#frag")
        assert endpoint.token == "token-abc_DEF"

    def test_surrounding_whitespace(self) -> None:
        """Whitespace around the URL is ignored."""
        assert parse_webhook_url(f"  {WEBHOOK_URL}\n").id == 123456789

    def test_missing_token(self) -> None:
        """A URL without token is fatal."""
        with pytest.raises(ConfigurationError, match="no token"):
            parse_webhook_url("https://discord.com/api/webhooks/123456789")

    def test_non_numeric_id(self) -> None:
        """The webhook ID must be numeric."""
        with pytest.raises(ConfigurationError, match="webhook ID"):
            parse_webhook_url("https://discord.com/api/webhooks/abc/token")

    def test_zero_id(self) -> None:
        """The webhook ID must be positive."""
        with pytest.raises(ConfigurationError, match="out of range"):
            parse_webhook_url("https://discord.com/api/webhooks/0/token")

    def test_not_a_webhook_url(self) -> None:
        """URLs without a webhooks segment are rejected."""
        with pytest.raises(ConfigurationError, match="webhooks"):
            parse_webhook_url("https://example.com/hooks/1/token")

    def test_not_http(self) -> None:
        """Non-HTTP URLs are rejected."""
        with pytest.raises(ConfigurationError):
            parse_webhook_url("not a url")

    def test_extra_path_after_token(self) -> None:
        """Unknown trailing segments are rejected."""
        with pytest.raises(ConfigurationError, match="unexpected path"):
            parse_webhook_url(f"{WEBHOOK_URL}/messages/1")

    def test_token_hidden_in_repr(self) -> None:
        """The token is not shown in the endpoint repr."""
        endpoint = parse_webhook_url(WEBHOOK_URL)
        assert "token-abc_DEF" not in repr(endpoint)


class TestStripIncompatibleSuffix:
    """Tests for suffix correction."""

    def test_unchanged_without_suffix(self) -> None:
        """URLs without a known suffix are returned as is."""
        assert strip_incompatible_suffix(WEBHOOK_URL) == WEBHOOK_URL

    def test_github_suffix(self) -> None:
        """The /github suffix is removed."""
        assert strip_incompatible_suffix(f"{WEBHOOK_URL}/github") == WEBHOOK_URL

    def test_path_only(self) -> None:
        """Works on a bare URL path."""
        assert strip_incompatible_suffix("/api/webhooks/1/tok/slack/") == "/api/webhooks/1/tok"


class TestVersionFromRef:
    """Tests for deriving a version from the workflow ref."""

    @pytest.mark.parametrize(
        ("ref", "expected"),
        [
            ("refs/tags/v1.2.0", "1.2.0"),
            ("refs/tags/1.2.0", "1.2.0"),
            ("refs/tags/version-2", "version-2"),
            ("refs/tags/v", "v"),
            ("refs/heads/main", ""),
            ("refs/pull/1/merge", ""),
            ("", ""),
        ],
    )
    def test_values(self, ref: str, expected: str) -> None:
        """Tags give a version, other refs do not."""
        assert version_from_ref(ref) == expected


# ============================================================================
# Project name and repository
# ============================================================================


class TestResolveSourceCodeUrl:
    """Tests for repository resolution."""

    def test_owner_repo(self) -> None:
        """owner/repo expands to a GitHub URL."""
        assert resolve_source_code_url("org/Foo") == "https://github.com/org/Foo"

    def test_full_url(self) -> None:
        """Full URLs are kept, minus a trailing slash."""
        assert (
            resolve_source_code_url("https://gitlab.com/org/Foo/")
            == "https://gitlab.com/org/Foo"
        )

    def test_empty(self) -> None:
        """Empty input stays empty."""
        assert resolve_source_code_url("  ") == ""

    @pytest.mark.parametrize("repository", ["Foo", "org/", "/Foo", "a/b/c"])
    def test_invalid(self, repository: str) -> None:
        """Malformed repository references are rejected."""
        with pytest.raises(ConfigurationError, match="owner/repo"):
            resolve_source_code_url(repository)


class TestDeriveProjectName:
    """Tests for project name resolution."""

    def test_explicit_name_verbatim(self) -> None:
        """An explicit name wins and is used unchanged."""
        assert derive_project_name("My Mod", "https://github.com/org/Foo") == "My Mod"

    def test_from_source_url(self) -> None:
        """The last path segment of the source URL is used."""
        assert derive_project_name("", "https://github.com/org/Foo") == "Foo"

    def test_strips_git_suffix(self) -> None:
        """A .git suffix is not part of the name."""
        assert derive_project_name("", "https://example.com/org/Foo.git") == "Foo"

    def test_missing_both(self) -> None:
        """Neither name nor URL is fatal."""
        with pytest.raises(ConfigurationError, match="project name"):
            derive_project_name("", "")


# ============================================================================
# Notification role
# ============================================================================


class TestRoleId:
    """Tests for notification role handling."""

    def test_bare_id(self) -> None:
        """A bare ID is kept."""
        assert normalize_role_id("42", "1") == "42"

    def test_mention_is_unwrapped(self) -> None:
        """Mention decoration is stripped."""
        assert normalize_role_id("<@&918884941461352469>", "1") == "918884941461352469"

    def test_empty_uses_default(self) -> None:
        """An empty value falls back to the default role."""
        assert normalize_role_id("", "918884941461352469") == "918884941461352469"

    def test_resolve_valid(self) -> None:
        """Numeric IDs resolve to integers."""
        assert resolve_role_id("918884941461352469") == 918884941461352469

    @pytest.mark.parametrize("role_id", ["", "abc", "0", "-5", "12a", str(2**64)])
    def test_resolve_invalid(self, role_id: str) -> None:
        """Non-positive or non-numeric IDs are rejected."""
        with pytest.raises(ConfigurationError, match="role ID"):
            resolve_role_id(role_id)


class TestParsePingOverride:
    """Tests for the ping override flag."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("", PingOverride.UNSET),
            ("  ", PingOverride.UNSET),
            ("false", PingOverride.FORCE_FALSE),
            ("FALSE", PingOverride.FORCE_FALSE),
            ("true", PingOverride.FORCE_TRUE),
            ("yes", PingOverride.FORCE_TRUE),
        ],
    )
    def test_values(self, raw: str, expected: PingOverride) -> None:
        """Only 'false' disables; anything else non-empty forces."""
        assert parse_ping_override(raw) == expected


# ============================================================================
# Download links
# ============================================================================


class TestBuildDownloadLinks:
    """Tests for download link construction."""

    def test_none(self) -> None:
        """No IDs means no links."""
        assert build_download_links("", "") == ()

    def test_order_is_curseforge_then_modrinth(self) -> None:
        """CurseForge comes before Modrinth."""
        links = build_download_links("123", "abc", curseforge_emoji="C", modrinth_emoji="M")
        assert links == (
            DownloadLink("CurseForge", "https://www.curseforge.com/projects/123", "C"),
            DownloadLink("Modrinth", "https://modrinth.com/mod/abc", "M"),
        )

    def test_modrinth_only(self) -> None:
        """Platforms without ID are omitted."""
        links = build_download_links("", "m1")
        assert [link.platform_label for link in links] == ["Modrinth"]


# ============================================================================
# normalize()
# ============================================================================


class TestNormalize:
    """Tests for the full normalization."""

    def test_full_settings(self) -> None:
        """All fields are resolved into the config."""
        settings = make_settings(
            curseforge_project_id="123",
            modrinth_project_id="m1",
            discord_thumbnail_url="https://example.com/icon.png",
            discord_notification_role_id="<@&42>",
            discord_ping_notification_role="false",
        )

        config = normalize(settings)

        assert config.project_name == "Foo"
        assert config.project_version == "1.0.0"
        assert config.source_code_url == "https://github.com/org/Foo"
        assert config.webhook_endpoint.id == 123456789
        assert config.thumbnail_url == "https://example.com/icon.png"
        assert config.notification_role_id == "42"
        assert config.ping_override == PingOverride.FORCE_FALSE
        assert [link.platform_label for link in config.download_links] == [
            "CurseForge",
            "Modrinth",
        ]
        assert config.source_code_emoji == settings.source_code_emoji

    def test_default_role(self) -> None:
        """The default role is applied when none is configured."""
        config = normalize(make_settings())
        assert config.notification_role_id == "918884941461352469"
        assert config.ping_override == PingOverride.UNSET

    def test_missing_version(self) -> None:
        """An empty version is fatal."""
        with pytest.raises(ConfigurationError, match="version"):
            normalize(make_settings(project_version=""))

    def test_version_from_tag_ref(self) -> None:
        """Without a version, the tag that triggered the workflow is used."""
        env = {
            "DISCORD_WEBHOOK_URL": WEBHOOK_URL,
            "GITHUB_REPOSITORY": "org/Foo",
            "GITHUB_REF": "refs/tags/v1.2.0",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings(_env_file=None)

        config = normalize(settings)
        assert config.project_name == "Foo"
        assert config.project_version == "1.2.0"

    def test_explicit_version_wins_over_ref(self) -> None:
        """The tag is only a fallback."""
        settings = make_settings(
            project_version="2.0.0", github_repository="org/Foo", github_ref="refs/tags/v1.2.0"
        )
        assert normalize(settings).project_version == "2.0.0"

    def test_ref_ignored_for_other_repository(self) -> None:
        """Another repository's version cannot come from this workflow's tag."""
        settings = make_settings(
            project_version="",
            project_repository="org/Other",
            github_repository="org/Foo",
            github_ref="refs/tags/v1.2.0",
        )
        with pytest.raises(ConfigurationError, match="version"):
            normalize(settings)

    def test_branch_ref_gives_no_version(self) -> None:
        """A branch ref is not a version."""
        settings = make_settings(
            project_version="", github_repository="org/Foo", github_ref="refs/heads/main"
        )
        with pytest.raises(ConfigurationError, match="version"):
            normalize(settings)

    def test_missing_project(self) -> None:
        """No name and no repository is fatal."""
        with pytest.raises(ConfigurationError, match="project name"):
            normalize(make_settings(project_repository=""))

    def test_invalid_role_is_not_checked_here(self) -> None:
        """Role IDs are only validated when a ping is needed."""
        config = normalize(make_settings(discord_notification_role_id="not-a-role"))
        assert config.notification_role_id == "not-a-role"

    def test_webhook_suffix_corrected(self) -> None:
        """A webhook URL with a compat suffix normalizes fine."""
        config = normalize(make_settings(discord_webhook_url=f"{WEBHOOK_URL}/github"))
        assert config.webhook_endpoint.url == WEBHOOK_URL
