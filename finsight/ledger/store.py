"""
Transaction Store

The sole owner of committed transactions. Records are only ever added
or deleted; a Transaction is frozen once created.

Persistence is an observer: after every accepted mutation the store
calls `on_change(store)`, which the state repository wires to a
synchronous write. Rejected operations (e.g. deleting an unknown id)
do not notify.
"""

from typing import Callable, Iterable, Iterator, Optional

from finsight.models.transaction import Transaction


class TransactionStore:
    """In-memory ordered transaction log, newest first."""

    def __init__(
        self,
        transactions: Iterable[Transaction] = (),
        on_change: Optional[Callable[["TransactionStore"], None]] = None,
    ):
        self._transactions: list[Transaction] = list(transactions)
        self._on_change = on_change

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return tuple(self._transactions)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(tuple(self._transactions))

    def __len__(self) -> int:
        return len(self._transactions)

    def get(self, transaction_id: str) -> Optional[Transaction]:
        for t in self._transactions:
            if t.id == transaction_id:
                return t
        return None

    def add(self, transaction: Transaction) -> Transaction:
        """
        Insert a transaction at the front of the log.

        Raises:
            ValueError: If a transaction with the same id already exists
        """
        if self.get(transaction.id) is not None:
            raise ValueError(f"Transaction {transaction.id} already exists")
        self._transactions.insert(0, transaction)
        self._notify()
        return transaction

    def delete(self, transaction_id: str) -> bool:
        """Remove a transaction. Returns False if the id is unknown."""
        remaining = [t for t in self._transactions if t.id != transaction_id]
        if len(remaining) == len(self._transactions):
            return False
        self._transactions = remaining
        self._notify()
        return True

    def to_json(self) -> list[dict]:
        return [t.model_dump(mode="json") for t in self._transactions]

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self)
