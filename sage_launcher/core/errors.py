"""Shared error types.

The goal is to make errors explicit and easy to handle at the caller boundary.
Synchronous API misuse is raised; failures of a running job are reported through
``JobState`` instead.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(eq=False)
class AppError(Exception):
    """Base error for application-level failures."""

    message: str
    cause: Exception | None = None

    def __str__(self) -> str:  # pragma: no cover
        if self.cause is None:
            return self.message
        return f"{self.message} (cause: {self.cause})"


class SubmitError(AppError):
    """A job could not be submitted."""


class AlreadyRunningError(SubmitError):
    """A job is already active on this supervisor."""


class ValidationError(SubmitError):
    """Invalid job spec (missing required fields)."""


class CancelError(AppError):
    """A cancel request could not be honoured."""


class NotRunningError(CancelError):
    """Cancel requested while no job is active."""


class LaunchError(AppError):
    """Backend failed to start: executable missing, permission denied, no thread."""


class EngineError(AppError):
    """The search engine reported a failure."""
