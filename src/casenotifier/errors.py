"""
Exceptions raised by the schedule engine and its store.

None of these are fatal: the controller turns them into warnings and the
in-memory account list stays the source of truth for the session.
"""


class NotifierError(Exception):
    """Base class for casenotifier errors."""


class InvalidTimestamp(NotifierError, ValueError):
    """The timestamp has no local calendar date or does not fit in a u64."""

    def __init__(self, timestamp, reason: str = ""):
        self.timestamp = timestamp
        msg = f"invalid timestamp: {timestamp!r}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)


class IndexOutOfRange(NotifierError, IndexError):
    """A positional account index is not (or no longer) valid."""

    def __init__(self, index: int, length: int):
        self.index = index
        self.length = length
        super().__init__(f"account index {index} out of range (have {length})")


class InvalidName(NotifierError, ValueError):
    """Account names may not contain the record terminator byte."""


class CorruptStream(NotifierError, ValueError):
    """The persisted byte stream is malformed at ``offset``."""

    def __init__(self, message: str, offset: int):
        self.offset = offset
        super().__init__(f"{message} at byte {offset}")


class StorageError(NotifierError):
    """Reading or writing the account file failed."""
