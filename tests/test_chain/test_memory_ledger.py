"""Tests for the in-memory ledger."""

from __future__ import annotations

import pytest

from tx_provenance.chain.ledger import InMemoryLedger, Ledger
from tx_provenance.errors import LookupFailure
from tx_provenance.provenance.models import LedgerOutput, LedgerTransaction


def _tx(txid: str) -> LedgerTransaction:
    return LedgerTransaction(txid=txid, outputs=(LedgerOutput(1_000, b"\x51\x02\xaa\xbb"),))


class TestInMemoryLedger:
    def test_empty(self) -> None:
        ledger = InMemoryLedger()
        assert len(ledger) == 0
        assert "ab" * 32 not in ledger

    def test_fetch(self) -> None:
        tx = _tx("ab" * 32)
        ledger = InMemoryLedger([tx])
        assert ledger.fetch_transaction("ab" * 32) is tx

    def test_add_replaces(self) -> None:
        ledger = InMemoryLedger([_tx("ab" * 32)])
        replacement = LedgerTransaction(txid="ab" * 32)
        ledger.add(replacement)
        assert len(ledger) == 1
        assert ledger.fetch_transaction("ab" * 32) is replacement

    def test_missing(self) -> None:
        ledger = InMemoryLedger()
        with pytest.raises(LookupFailure, match="not found") as exc_info:
            ledger.fetch_transaction("cd" * 32)
        assert exc_info.value.txid == "cd" * 32
        assert exc_info.value.step is None

    def test_lookups_recorded(self) -> None:
        ledger = InMemoryLedger([_tx("ab" * 32)])
        ledger.fetch_transaction("ab" * 32)
        with pytest.raises(LookupFailure):
            ledger.fetch_transaction("cd" * 32)
        assert ledger.lookups == ["ab" * 32, "cd" * 32]

    def test_satisfies_protocol(self) -> None:
        ledger: Ledger = InMemoryLedger()
        assert callable(ledger.fetch_transaction)
