"""
Ledger Store

The in-memory list of spending entries, mirrored to one key of the
local key-value store.

DESIGN DECISION: The whole ledger is rewritten on every mutation.
It is a personal list of a few hundred rows at most; a full rewrite
keeps the stored copy and the in-memory copy trivially identical.

INVARIANTS:
- Entries are kept newest first (new entries are prepended)
- Transaction ids are unique
- Stored data that fails to parse is treated as "no prior data"
"""

import json
from datetime import date
from typing import Callable, Iterator, Optional, Union

from pydantic import ValidationError

from daybook.audit import ActivityLogger
from daybook.clock import DashboardClock
from daybook.models.ledger import (
    LEDGER_ADAPTER,
    Category,
    Transaction,
    parse_amount,
)
from daybook.services.storage import KeyValueStore, StorageError


DEFAULT_LEDGER_KEY = "gemini_weather_ledger"

LedgerListener = Callable[[], None]


class LedgerStore:
    """
    Persisted, day-filterable list of transactions.

    The storage backend is injected; the ledger is read from it once,
    at construction, and written back after every add or remove.
    """

    def __init__(
        self,
        storage: KeyValueStore,
        clock: DashboardClock,
        key: str = DEFAULT_LEDGER_KEY,
        max_amount: int = 1_000_000_000,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._storage = storage
        self._clock = clock
        self._key = key
        self._max_amount = max_amount
        self._activity = activity_logger or ActivityLogger()
        self._listeners: list[LedgerListener] = []
        self._transactions: list[Transaction] = self._load()

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _load(self) -> list[Transaction]:
        """Read the stored ledger; any failure yields an empty list."""
        try:
            raw = self._storage.get(self._key)
        except StorageError as e:
            self._activity.log_ledger_load_failed(str(e))
            return []

        if raw is None:
            self._activity.log_ledger_loaded(0)
            return []

        try:
            records = LEDGER_ADAPTER.validate_json(raw)
        except ValidationError as e:
            self._activity.log_ledger_load_failed(str(e))
            return []

        transactions = [r.to_transaction(self._clock.zone) for r in records]
        if len({t.id for t in transactions}) != len(transactions):
            self._activity.log_ledger_load_failed("Duplicate transaction ids in stored ledger")
            return []

        self._activity.log_ledger_loaded(len(transactions))
        return transactions

    def _persist(self) -> None:
        payload = json.dumps(
            [t.to_record() for t in self._transactions],
            ensure_ascii=False,
        )
        try:
            self._storage.set(self._key, payload)
        except StorageError as e:
            self._activity.log_ledger_save_failed(str(e))
            raise

    # -------------------------------------------------------------------------
    # Observers
    # -------------------------------------------------------------------------

    def subscribe(self, listener: LedgerListener) -> Callable[[], None]:
        """Call `listener` after every mutation. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        try:
            self._persist()
        finally:
            for listener in list(self._listeners):
                listener()

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add(
        self,
        amount: Union[str, int, None],
        category: Union[Category, str, None],
        day: date,
    ) -> Optional[Transaction]:
        """
        Record a new spending entry on `day` at the current time of day.

        Returns the new Transaction, or None when the submission is
        ignored (amount empty, non-numeric or too large; category unset
        or unknown).
        """
        if isinstance(amount, int) and not isinstance(amount, bool):
            value = amount if 0 <= amount <= self._max_amount else None
        else:
            value = parse_amount(amount, self._max_amount)

        try:
            tag = Category(category) if category else None
        except ValueError:
            tag = None

        if value is None or tag is None:
            self._activity.log_transaction_rejected(
                None if amount is None else str(amount),
                None if category is None else str(category),
            )
            return None

        transaction = Transaction(
            amount=value,
            category=tag,
            timestamp=self._clock.at_current_time(day),
        )
        self._transactions.insert(0, transaction)
        self._activity.log_transaction_added(transaction.id, value, tag.value)
        self._changed()
        return transaction

    def remove(self, transaction_id: str) -> bool:
        """Delete an entry by id. Returns False when no entry matched."""
        for index, transaction in enumerate(self._transactions):
            if transaction.id == transaction_id:
                del self._transactions[index]
                self._activity.log_transaction_removed(transaction_id)
                self._changed()
                return True
        return False

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return tuple(self._transactions)

    def __len__(self) -> int:
        return len(self._transactions)

    def transactions_for(self, day: date) -> Iterator[Transaction]:
        """
        Lazily yield the entries whose calendar day is `day`, in stored order.

        Iterates over a copy taken at call time, so a mutation while the
        caller is still consuming the iterator neither repeats nor skips rows.
        """
        local_day = self._clock.local_day
        snapshot = tuple(self._transactions)
        return (t for t in snapshot if local_day(t.timestamp) == day)

    def total_for(self, day: date) -> int:
        return sum(t.amount for t in self.transactions_for(day))

    def categories_for(self, day: date) -> list[str]:
        """Category tags of the day's entries, in order, duplicates kept."""
        return [t.category.value for t in self.transactions_for(day)]
