"""Exceptions raised by the announcer pipeline."""

from __future__ import annotations


class AnnouncerError(Exception):
    """Base exception for announcer errors."""


class ConfigurationError(AnnouncerError):
    """Raised when required input is missing or malformed."""


class DeliveryError(AnnouncerError):
    """Raised when a webhook request could not be completed."""


class OutcomeWriteError(AnnouncerError):
    """Raised when the outcome record cannot be written."""
