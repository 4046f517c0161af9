"""Exception types for nicestream.

Only ValidationError subclasses escape a component as a failure. Offload
failures are absorbed by the coordinator's inline fallback, and degraded
generator values or malformed filter bounds are recovered where they occur.
"""

from __future__ import annotations


class NicestreamError(Exception):
    """Base class for all nicestream errors."""


class ValidationError(NicestreamError, ValueError):
    """Invalid caller input; fatal to the call that raised it."""


class InvalidTimestamp(ValidationError):
    """Timestamp is not finite or is negative."""


class InvalidCount(ValidationError):
    """Count is not a non-negative integer."""


class InvalidPeriod(ValidationError):
    """Window, stride or bucket size is not a positive integer."""


class OffloadFailure(NicestreamError):
    """The auxiliary worker could not produce a result (error reply, timeout, dead process)."""


class MessageError(NicestreamError, ValueError):
    """A worker protocol message failed validation at the boundary."""
