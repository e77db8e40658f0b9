"""Exception hierarchy for tracewrap.

All tracewrap-specific exceptions inherit from :class:`TraceWrapError` so
that callers can catch a single base class when they do not care about the
specific failure mode.

Failures raised by a traced method itself are never wrapped: they reach the
original caller exactly as the method raised them.
"""

from __future__ import annotations

from typing import Any


class TraceWrapError(Exception):
    """Base exception for all tracewrap operations."""


class InvalidOptionError(TraceWrapError, ValueError):
    """Raised when an option value is not one of the accepted choices.

    Raised by :meth:`tracewrap.Tracer.wrap` for an unknown ``visibility`` or
    ``method_type`` before any method has been wrapped, and by the colour
    resolution for an unrecognised ``TRACEWRAP_COLOUR`` value.

    Attributes:
        option: Name of the offending option (e.g. ``"visibility"``).
        value:  The value that was received.
    """

    def __init__(self, option: str, value: Any, choices: tuple[str, ...] = ()) -> None:
        message = f"Invalid {option}: {value!r}"
        if choices:
            message += f" (expected one of: {', '.join(choices)})"
        super().__init__(message)
        self.option = option
        self.value = value
