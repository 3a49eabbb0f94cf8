"""Errors raised by the challenge workflows.

Messages are meant to be shown to the end user as-is.
"""


class WorkflowError(Exception):
    """Base class for challenge workflow failures."""


class ChallengeNotFoundError(WorkflowError, LookupError):
    """The referenced challenge does not exist."""


class NotAuthorizedError(WorkflowError, PermissionError):
    """The requesting user may not perform the action."""


class ChallengeStateError(WorkflowError, ValueError):
    """The challenge is not in a state that allows the action."""


__all__ = [
    "ChallengeNotFoundError",
    "ChallengeStateError",
    "NotAuthorizedError",
    "WorkflowError",
]
