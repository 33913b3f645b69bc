from typing import Optional


class ReminderError(Exception):
    """Base class for reminder service errors."""


class PushDeliveryError(ReminderError):
    """The push transport rejected or failed to deliver a message."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class StoreUnavailableError(ReminderError):
    """The appointment store could not be reached or is not configured."""


class FirebaseNotConfiguredError(StoreUnavailableError):
    pass
