"""Delivery outcome reporting for the invoking workflow.

The record uses the GitHub Actions output file syntax: a plain
``key=value`` line for the status and a heredoc-style block for the
multi-line request body.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from release_announcer.announcer.errors import OutcomeWriteError

if TYPE_CHECKING:
    from release_announcer.announcer.models import DeliveryOutcome

logger = logging.getLogger(__name__)

STATUS_KEY = "response_status"
BODY_START_MARKER = b"message<<EOF"
BODY_END_MARKER = b"EOF"


def format_record(outcome: DeliveryOutcome) -> bytes:
    """Render the outcome record.

    The body block is left out when the body is empty. The body is not
    escaped, so a body line equal to the end marker would end the block early.
    """
    record = f"{STATUS_KEY}={outcome.status_code}\n".encode()
    if outcome.raw_body:
        record += BODY_START_MARKER + b"\n" + outcome.raw_body + b"\n" + BODY_END_MARKER + b"\n"
    return record


class OutcomeReporter:
    """Writes the primary delivery outcome to an output file exactly once."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._written = False

    @property
    def written(self) -> bool:
        """Return True once the record has been written."""
        return self._written

    def report(self, outcome: DeliveryOutcome) -> None:
        """Append the outcome record to the output file.

        Raises:
            OutcomeWriteError: If a record was already written or the
                file cannot be written.
        """
        if self._written:
            raise OutcomeWriteError(f"Outcome already reported to {self.path}")

        if BODY_END_MARKER in outcome.raw_body.splitlines():
            logger.warning("Message body contains the EOF delimiter, output may be truncated")

        try:
            with self.path.open("ab") as f:
                f.write(format_record(outcome))
        except OSError as e:
            raise OutcomeWriteError(f"Failed to write outcome to {self.path}: {e}") from e

        self._written = True
        logger.debug(f"Wrote response_status={outcome.status_code} to {self.path}")
