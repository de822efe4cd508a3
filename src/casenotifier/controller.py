from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .clock import Clock
from .errors import (
    IndexOutOfRange,
    InvalidName,
    InvalidTimestamp,
    NotifierError,
    StorageError,
)
from .guard import EditGuard
from .model import AccountStore
from .notifier_env import NotifierEnvironment
from .recurrence import remaining_time, weekday_from_name
from .shared import (
    READY,
    UNKNOWN,
    format_date,
    format_remaining,
    log_msg,
    parse_date,
)
from .storage import FileStorage

DEFAULT_NAME = "Account name"


@dataclass(frozen=True)
class AccountRow:
    id: int
    index: int
    name: str
    last_event_display: str
    next_occurrence_display: str
    remaining: Optional[int]  # None when the next drop cannot be computed
    remaining_display: str

    @property
    def ready(self) -> bool:
        return self.remaining == 0


def safe_format_date(timestamp: int) -> str:
    try:
        return format_date(timestamp)
    except InvalidTimestamp:
        return UNKNOWN


def open_store(env: NotifierEnvironment, clock: Optional[Clock] = None) -> AccountStore:
    config = env.config
    storage = FileStorage(env.data_path, atomic=config.store.atomic_writes)
    return AccountStore.load(
        storage,
        clock=clock,
        anchor_weekday=weekday_from_name(config.schedule.anchor_weekday),
    )


class Controller:
    """
    What the UI talks to: display rows, the ready summary and the account
    intents. Add/remove/reset/rename/retime are refused while an edit is in
    progress. Engine errors become entries in ``warnings``; none of them
    propagate to the UI.
    """

    def __init__(self, store: AccountStore, clock: Optional[Clock] = None):
        self.store = store
        self.clock = clock or store.clock
        self.guard = EditGuard(store)
        self.warnings: list[str] = []
        if store.load_error is not None:
            self._warn(f"problem loading accounts: {store.load_error}")

    @classmethod
    def from_env(
        cls, env: NotifierEnvironment, clock: Optional[Clock] = None
    ) -> "Controller":
        return cls(open_store(env, clock), clock)

    # ── display ──────────────────────────────────────────────────

    def rows(self, now: Optional[int] = None) -> list[AccountRow]:
        """Display rows as of ``now`` (default: one clock reading)."""
        if now is None:
            now = self.clock.now()
        rows = []
        for i, account in enumerate(self.store):
            try:
                next_at = account.get_next_occurrence()
            except InvalidTimestamp:
                next_at = None
            if next_at is None:
                remaining = None
                next_display = UNKNOWN
                remaining_display = UNKNOWN
            else:
                remaining = remaining_time(now, next_at)
                next_display = safe_format_date(next_at)
                remaining_display = READY if remaining == 0 else format_remaining(remaining)
            rows.append(
                AccountRow(
                    id=account.id,
                    index=i,
                    name=account.name,
                    last_event_display=safe_format_date(account.last_event),
                    next_occurrence_display=next_display,
                    remaining=remaining,
                    remaining_display=remaining_display,
                )
            )
        return rows

    def summary(self, now: Optional[int] = None) -> tuple[int, int]:
        """(eligible_count, total_count) as of ``now``"""
        if now is None:
            now = self.clock.now()
        return self.store.count_eligible(now), len(self.store)

    def pop_warnings(self) -> list[str]:
        warnings, self.warnings = self.warnings, []
        return warnings

    # ── intents ──────────────────────────────────────────────────

    def is_locked(self) -> bool:
        return self.guard.is_locked()

    @property
    def editing_index(self) -> Optional[int]:
        return self.guard.index

    def add_account(
        self,
        name: str = DEFAULT_NAME,
        last_event: Optional[int] = None,
        edit: bool = False,
    ) -> Optional[int]:
        """
        Append an account (last drop = now unless given) and optionally
        open it for editing. Returns its index, or None when refused.
        """
        if self._refused("add"):
            return None
        try:
            index = self._apply(self.store.add, name, last_event)
        except NotifierError as e:
            self._warn(f"add refused: {e}")
            return None
        if index is None:
            # stored in memory, but the write failed
            index = len(self.store) - 1
        if edit:
            self.guard.begin(index)
        return index

    def remove_account(self, index: int) -> bool:
        if self._refused("remove"):
            return False
        return self._intent("remove", self.store.remove, index)

    def reset_account(self, index: int) -> bool:
        if self._refused("reset"):
            return False
        return self._intent("reset", self.store.reset, index)

    def rename_account(self, index: int, name: str) -> bool:
        if self._refused("rename"):
            return False
        return self._intent("rename", self.store.rename, index, name)

    def retime_account(self, index: int, when: int | str) -> bool:
        """``when`` is Unix seconds or display text 'HH:MM:SS DD/MM/YYYY'."""
        if self._refused("retime"):
            return False
        if isinstance(when, str):
            timestamp = parse_date(when)
            if timestamp is None:
                self._warn(f"retime refused: {when!r} is not HH:MM:SS DD/MM/YYYY")
                return False
        else:
            timestamp = when
        return self._intent("retime", self.store.retime, index, timestamp)

    # ── edit session ─────────────────────────────────────────────

    def begin_edit(self, index: int) -> bool:
        try:
            return self.guard.begin(index)
        except IndexOutOfRange as e:
            self._warn(f"edit refused: {e}")
            return False

    def edit_draft(self, text: str) -> Optional[int]:
        return self.guard.update_draft(text)

    def edit_name(self, text: str) -> bool:
        return self.guard.update_name(text)

    def commit_edit(self) -> None:
        try:
            self.guard.commit()
        except StorageError as e:
            self._warn(f"could not save accounts: {e}")

    def cancel_edit(self) -> None:
        self.guard.cancel()

    # ── internals ────────────────────────────────────────────────

    def _refused(self, action: str) -> bool:
        if self.guard.is_locked():
            log_msg(f"{action} refused: an account is being edited")
            return True
        return False

    def _apply(self, fn, *args):
        try:
            return fn(*args)
        except StorageError as e:
            self._warn(f"could not save accounts: {e}")
            return None

    def _intent(self, action: str, fn, *args) -> bool:
        try:
            self._apply(fn, *args)
        except (IndexOutOfRange, InvalidName, InvalidTimestamp) as e:
            self._warn(f"{action} refused: {e}")
            return False
        return True

    def _warn(self, msg: str) -> None:
        log_msg(msg)
        self.warnings.append(msg)
