"""Exceptions and advisory warnings raised by sdpraster."""

from __future__ import annotations


class SDPError(Exception):
    """Base class for all sdpraster failures."""


class UsageError(SDPError, ValueError):
    """Raised when a caller violates a precondition."""


class UnsupportedSelection(UsageError):
    """Raised when a temporal selection is given for a dataset that cannot honor it."""


class NoOverlap(SDPError):
    """Raised when a requested window shares no time steps with a dataset."""


class NoMatchingLayers(SDPError):
    """Raised when a temporal filter matches none of a handle's layers."""


class InvalidTemplate(SDPError):
    """Raised when a locator template lacks a token its cadence requires."""


class PartialOverlap(UserWarning):
    """Some requested time steps were unavailable and have been dropped."""


class IncompatibleExtractionPolicy(UserWarning):
    """An extraction option was not honored and a fallback was used instead."""
