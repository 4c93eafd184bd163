"""Pre-release detection for version strings.

The check is a heuristic: a version is a pre-release when one of the
usual markers (alpha, beta, rc, pre/prerelease/pre-release, snapshot, dev)
directly follows a ``-``, ``+`` or ``_`` separator. Markers without a
leading separator are ignored, so ``devotion-1.0`` stays stable.
"""

from __future__ import annotations

import re

from release_announcer.announcer.models import ReleaseChannel

PRE_RELEASE_PATTERN = re.compile(
    r"[-+_](?:alpha|beta|rc|pre(?:-?release)?|snapshot|dev).*",
    re.IGNORECASE,
)


def classify(version: str) -> ReleaseChannel:
    """Classify a version string as stable or pre-release."""
    if PRE_RELEASE_PATTERN.search(version):
        return ReleaseChannel.PRE_RELEASE
    return ReleaseChannel.STABLE
