"""
Single-slot edit state: at most one account is edited at a time.

    Idle --begin--> Editing --commit|cancel--> Idle

While editing, every draft that parses as a display date is applied to the
account right away (in memory only); ``commit`` writes the store once and
``cancel`` restores the values captured by ``begin``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Union

from .errors import InvalidName, InvalidTimestamp
from .model import AccountStore
from .shared import format_date, parse_date


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Editing:
    account_id: int
    draft_text: str
    original_name: str
    original_last_event: int


EditState = Union[Idle, Editing]

IDLE = Idle()


class EditGuard:
    def __init__(self, store: AccountStore):
        self.store = store
        self.state: EditState = IDLE

    def is_locked(self) -> bool:
        return isinstance(self.state, Editing)

    @property
    def index(self) -> Optional[int]:
        """Current position of the account under edit, if any."""
        if not isinstance(self.state, Editing):
            return None
        return self.store.index_of(self.state.account_id)

    @property
    def draft_text(self) -> Optional[str]:
        if not isinstance(self.state, Editing):
            return None
        return self.state.draft_text

    def begin(self, index: int, initial_text: Optional[str] = None) -> bool:
        """
        Start editing the account at ``index``. Returns False, leaving the
        current session untouched, when an edit is already in progress.
        """
        if self.is_locked():
            return False
        account = self.store[index]
        if initial_text is None:
            try:
                initial_text = format_date(account.last_event)
            except InvalidTimestamp:
                initial_text = ""
        self.state = Editing(
            account_id=account.id,
            draft_text=initial_text,
            original_name=account.name,
            original_last_event=account.last_event,
        )
        return True

    def update_draft(self, text: str) -> Optional[int]:
        """
        Record the draft and, when it parses, apply it as the account's last
        drop. Returns the applied timestamp or None.
        """
        if not isinstance(self.state, Editing):
            return None
        self.state = replace(self.state, draft_text=text)
        timestamp = parse_date(text)
        index = self.index
        if timestamp is None or index is None:
            return None
        try:
            self.store.retime(index, timestamp, persist=False)
        except InvalidTimestamp:
            return None
        return timestamp

    def update_name(self, text: str) -> bool:
        index = self.index
        if index is None:
            return False
        try:
            self.store.rename(index, text, persist=False)
        except InvalidName:
            return False
        return True

    def commit(self) -> None:
        """Close the session and persist whatever was last applied."""
        if not isinstance(self.state, Editing):
            return
        self.state = IDLE
        self.store.save()

    def cancel(self) -> None:
        """Close the session and put back the values seen at ``begin``."""
        if not isinstance(self.state, Editing):
            return
        editing = self.state
        self.state = IDLE
        index = self.store.index_of(editing.account_id)
        if index is None:
            return
        account = self.store[index]
        account.name = editing.original_name
        account.last_event = editing.original_last_event
