"""
Ledger Store

Holds the ordered transaction list (newest first) and keeps it in
sync with local storage.

CRITICAL: Every mutation writes the whole ledger through to storage
before it returns. A write failure is logged and the in-memory change
stands - there is no rollback.
"""

import json
from typing import Callable, Iterator, Optional, Union
from uuid import UUID

from pydantic import ValidationError

from smart_ledger.audit import AuditLogger
from smart_ledger.models.transaction import Transaction, TransactionDraft
from smart_ledger.services.storage import (
    KeyValueStoreInterface,
    PersistenceWriteError,
    StorageError,
)


LedgerSnapshot = tuple[Transaction, ...]
LedgerListener = Callable[[LedgerSnapshot], None]


class LedgerStore:
    """
    The single owner of the transaction list.

    Mutations: add (prepend), remove by id, clear.
    Readers get immutable snapshots, so nothing outside this class
    can change the ledger.
    """

    def __init__(
        self,
        storage: KeyValueStoreInterface,
        key: str = "transactions",
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._key = key
        self._audit_logger = audit_logger or AuditLogger()
        self._transactions: LedgerSnapshot = ()
        self._listeners: list[LedgerListener] = []

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    @property
    def transactions(self) -> LedgerSnapshot:
        """Current ledger, newest first."""
        return self._transactions

    def __len__(self) -> int:
        return len(self._transactions)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(self._transactions)

    def get(self, transaction_id: Union[UUID, str]) -> Optional[Transaction]:
        try:
            target = _as_uuid(transaction_id)
        except ValueError:
            return None
        for transaction in self._transactions:
            if transaction.id == target:
                return transaction
        return None

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------

    def subscribe(self, listener: LedgerListener) -> None:
        """Call `listener(snapshot)` after every load and mutation."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: LedgerListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        snapshot = self._transactions
        for listener in list(self._listeners):
            listener(snapshot)

    # ------------------------------------------------------------------
    # Lifecycle and mutations
    # ------------------------------------------------------------------

    def load(self) -> LedgerSnapshot:
        """
        Hydrate the ledger from storage.

        Absent, unreadable or malformed data all lead to an empty
        ledger. This method never raises.
        """
        try:
            transactions = self._read()
        except (StorageError, ValidationError, ValueError, TypeError) as e:
            self._audit_logger.log_storage_read_failed(self._key, str(e))
            transactions = ()
        else:
            self._audit_logger.log_ledger_loaded(self._key, len(transactions))

        self._transactions = transactions
        self._notify()
        return self._transactions

    def add(self, draft: TransactionDraft) -> Transaction:
        """Assign an id, prepend, persist."""
        existing = {t.id for t in self._transactions}
        transaction = Transaction.from_draft(draft)
        while transaction.id in existing:
            transaction = Transaction.from_draft(draft)

        self._transactions = (transaction, *self._transactions)
        self._persist()

        self._audit_logger.log_transaction_added(
            transaction_id=transaction.id,
            category=transaction.category,
            amount=str(transaction.amount),
            transaction_type=transaction.type.value,
        )
        self._notify()
        return transaction

    def remove(self, transaction_id: Union[UUID, str]) -> bool:
        """
        Remove a transaction by id.

        Returns False when no transaction has that id; nothing is
        written in that case.
        """
        try:
            target = _as_uuid(transaction_id)
        except ValueError:
            return False

        remaining = tuple(t for t in self._transactions if t.id != target)
        if len(remaining) == len(self._transactions):
            self._audit_logger.log_transaction_not_found(target)
            return False

        self._transactions = remaining
        self._persist()
        self._audit_logger.log_transaction_removed(target)
        self._notify()
        return True

    def clear(self) -> None:
        """Empty the ledger and delete the stored record. Idempotent."""
        removed = len(self._transactions)
        self._transactions = ()
        try:
            self._storage.delete(self._key)
        except PersistenceWriteError as e:
            self._audit_logger.log_storage_write_failed(self._key, str(e))

        self._audit_logger.log_ledger_cleared(removed)
        self._notify()

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def serialize(self) -> str:
        """The exact JSON written to storage for the current ledger."""
        return json.dumps([t.to_storage_dict() for t in self._transactions])

    def _persist(self) -> None:
        try:
            self._storage.set(self._key, self.serialize())
        except PersistenceWriteError as e:
            self._audit_logger.log_storage_write_failed(self._key, str(e))

    def _read(self) -> LedgerSnapshot:
        raw = self._storage.get(self._key)
        if raw is None:
            return ()

        records = json.loads(raw)
        if not isinstance(records, list):
            raise ValueError(f"Expected a JSON array under {self._key!r}")

        seen: set[UUID] = set()
        transactions = []
        for record in records:
            transaction = Transaction.model_validate(record)
            if transaction.id in seen:
                self._audit_logger.log_duplicate_record_dropped(transaction.id)
                continue
            seen.add(transaction.id)
            transactions.append(transaction)
        return tuple(transactions)


def _as_uuid(value: Union[UUID, str]) -> UUID:
    if isinstance(value, UUID):
        return value
    return UUID(str(value))
