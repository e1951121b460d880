"""Ledger capability interface and an in-memory implementation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from tx_provenance.errors.provenance_errors import LookupFailure

if TYPE_CHECKING:
    from collections.abc import Iterable

    from tx_provenance.provenance.models import LedgerTransaction


class Ledger(Protocol):
    """Narrow lookup capability the provenance pipeline depends on."""

    def fetch_transaction(self, txid: str) -> LedgerTransaction:
        """Return the settled transaction *txid*.

        Raises:
            LookupFailure: If the transaction cannot be retrieved.
        """
        ...


class InMemoryLedger:
    """Dict-backed ledger for tests and offline use.

    Every lookup is recorded in :attr:`lookups`, hits and misses alike.
    """

    def __init__(self, transactions: Iterable[LedgerTransaction] = ()) -> None:
        self._transactions: dict[str, LedgerTransaction] = {}
        self.lookups: list[str] = []
        for tx in transactions:
            self.add(tx)

    def add(self, tx: LedgerTransaction) -> None:
        """Store (or replace) a transaction under its txid."""
        self._transactions[tx.txid] = tx

    def __contains__(self, txid: object) -> bool:
        return txid in self._transactions

    def __len__(self) -> int:
        return len(self._transactions)

    def fetch_transaction(self, txid: str) -> LedgerTransaction:
        self.lookups.append(txid)
        try:
            return self._transactions[txid]
        except KeyError:
            msg = f"Transaction {txid} not found in ledger"
            raise LookupFailure(msg, txid=txid) from None
