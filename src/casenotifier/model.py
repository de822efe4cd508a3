from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

from . import codec
from .clock import Clock, SystemClock
from .errors import IndexOutOfRange, InvalidTimestamp, NotifierError, StorageError
from .recurrence import WEDNESDAY, next_occurrence, remaining_time
from .shared import log_msg
from .storage import Storage


@dataclass
class Account:
    """
    A named account and the Unix time its last drop was collected.

    The derived queries are recomputed on every call from ``last_event``
    and the current clock reading.
    """

    name: str
    last_event: int
    id: int = field(default=0, compare=False)
    clock: Clock = field(default_factory=SystemClock, compare=False, repr=False)
    anchor_weekday: int = field(default=WEDNESDAY, compare=False, repr=False)

    def get_name(self) -> str:
        return self.name

    def get_last_event(self) -> int:
        return self.last_event

    def get_next_occurrence(self) -> int:
        return next_occurrence(self.last_event, self.anchor_weekday)

    def get_remaining_time(self) -> int:
        return remaining_time(self.clock.now(), self.get_next_occurrence())

    def is_eligible(self) -> bool:
        return self.get_remaining_time() == 0


class AccountStore:
    """
    Ordered list of accounts with write-through persistence.

    Accounts are addressed by position, as the UI presents them. Each
    account also gets a session-unique ``id`` so a reference captured before
    a removal can be resolved again with ``index_of``.

    Every mutation is followed by ``save()`` unless ``persist=False`` is
    passed. A failed save raises ``StorageError`` but leaves the in-memory
    change in place.
    """

    def __init__(
        self,
        storage: Storage,
        clock: Optional[Clock] = None,
        anchor_weekday: int = WEDNESDAY,
        records: Iterable[tuple[str, int]] = (),
    ):
        self.storage = storage
        self.clock = clock or SystemClock()
        self.anchor_weekday = anchor_weekday
        self.load_error: Optional[NotifierError] = None
        self._accounts: list[Account] = []
        self._next_id = 1
        for name, last_event in records:
            self._append(name, last_event)

    @classmethod
    def load(
        cls,
        storage: Storage,
        clock: Optional[Clock] = None,
        anchor_weekday: int = WEDNESDAY,
    ) -> "AccountStore":
        """
        Build a store from whatever ``storage`` holds. Nothing stored yet
        gives an empty store; a corrupt tail keeps the records before it.
        """
        load_error: Optional[NotifierError] = None
        records: list[codec.Record] = []
        try:
            data = storage.read()
        except StorageError as e:
            log_msg(f"load failed, starting empty: {e}")
            data = None
            load_error = e

        if data:
            result = codec.decode(data)
            records = result.records
            if result.error is not None:
                log_msg(
                    f"{storage!r}: kept {len(records)} accounts, stopped at: {result.error}"
                )
                load_error = result.error

        store = cls(storage, clock, anchor_weekday, records)
        store.load_error = load_error
        return store

    # ── queries ──────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._accounts)

    def __iter__(self) -> Iterator[Account]:
        return iter(self._accounts)

    def __getitem__(self, index: int) -> Account:
        self._check_index(index)
        return self._accounts[index]

    def records(self) -> list[codec.Record]:
        return [codec.Record(a.name, a.last_event) for a in self._accounts]

    def index_of(self, account_id: int) -> Optional[int]:
        for i, account in enumerate(self._accounts):
            if account.id == account_id:
                return i
        return None

    def count_eligible(self, now: Optional[int] = None) -> int:
        """Number of accounts whose next drop is available at ``now``."""
        if now is None:
            now = self.clock.now()
        count = 0
        for account in self._accounts:
            try:
                next_at = account.get_next_occurrence()
            except InvalidTimestamp:
                # unknown schedule never counts as ready
                continue
            if remaining_time(now, next_at) == 0:
                count += 1
        return count

    # ── mutations ────────────────────────────────────────────────

    def add(
        self, name: str, last_event: Optional[int] = None, persist: bool = True
    ) -> int:
        codec.check_name(name)
        if last_event is None:
            last_event = self.clock.now()
        codec.check_timestamp(last_event)
        self._append(name, last_event)
        if persist:
            self.save()
        return len(self._accounts) - 1

    def remove(self, index: int, persist: bool = True) -> Account:
        self._check_index(index)
        account = self._accounts.pop(index)
        if persist:
            self.save()
        return account

    def reset(self, index: int, persist: bool = True) -> int:
        self._check_index(index)
        now = self.clock.now()
        self._accounts[index].last_event = now
        if persist:
            self.save()
        return now

    def rename(self, index: int, new_name: str, persist: bool = True) -> None:
        self._check_index(index)
        codec.check_name(new_name)
        self._accounts[index].name = new_name
        if persist:
            self.save()

    def retime(self, index: int, new_last_event: int, persist: bool = True) -> None:
        self._check_index(index)
        codec.check_timestamp(new_last_event)
        self._accounts[index].last_event = new_last_event
        if persist:
            self.save()

    def save(self) -> None:
        """Overwrite storage with the current account list."""
        self.storage.write(codec.encode(self.records()))

    # ── internals ────────────────────────────────────────────────

    def _append(self, name: str, last_event: int) -> Account:
        account = Account(
            name=name,
            last_event=last_event,
            id=self._next_id,
            clock=self.clock,
            anchor_weekday=self.anchor_weekday,
        )
        self._next_id += 1
        self._accounts.append(account)
        return account

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._accounts):
            raise IndexOutOfRange(index, len(self._accounts))
