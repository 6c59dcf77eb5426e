"""Failures a turn can hit.

Every one of these is caught at the turn boundary in TurnProcessor and
turned into a spoken reply plus a terminal state; none reaches the
telephony webhook as a raw exception.
"""


class DialogueError(Exception):
    """Base class for turn-level failures."""

    def __init__(self, message: str = "", call_id: str = ""):
        super().__init__(message or self.__class__.__name__)
        self.call_id = call_id


class MissingCallIdentifier(DialogueError):
    """The webhook arrived without a call id."""


class NoPendingCallData(DialogueError):
    """No customer record was registered for this call before it connected."""


class NoActiveSession(DialogueError):
    """The call id is unknown, or its session already expired."""


class ClassificationOrResolutionFailure(DialogueError):
    """An unexpected exception while classifying or deciding a turn."""
