"""Shared test fixtures for the tx-provenance test suite."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from tx_provenance.btc.address import Network, script_to_address
from tx_provenance.btc.script import witness_lock_script
from tx_provenance.chain.ledger import InMemoryLedger
from tx_provenance.provenance.models import (
    SATS_PER_BTC,
    Confirmed,
    LedgerInput,
    LedgerOutput,
    LedgerTransaction,
)

PRIOR_TXID = "a1" * 32
SUBJECT_TXID = "c3" * 32
BLOCK_HASH = "0" * 61 + "abc"
COINBASE_TXID = "0" * 64
COINBASE_INDEX = 0xFFFFFFFF


def p2wpkh(tag: int) -> bytes:
    """A P2WPKH locking script whose 20-byte program repeats *tag*."""
    return witness_lock_script(0, bytes([tag]) * 20)


MINER_SCRIPT = p2wpkh(0x11)
TRADER_SCRIPT = p2wpkh(0x22)
CHANGE_SCRIPT = p2wpkh(0x33)


@dataclass
class Scenario:
    """A regtest payment: a 50 BTC coinbase output spent as 20 BTC + change."""

    ledger: InMemoryLedger
    prior: LedgerTransaction
    tx: LedgerTransaction
    miner_address: str
    trader_address: str
    change_address: str


@pytest.fixture
def scenario() -> Scenario:
    """The miner-pays-trader regtest transaction and its funding coinbase."""
    prior = LedgerTransaction(
        txid=PRIOR_TXID,
        inputs=(LedgerInput(COINBASE_TXID, COINBASE_INDEX),),
        outputs=(LedgerOutput(50 * SATS_PER_BTC, MINER_SCRIPT),),
        confirmation=Confirmed(block_height=1, block_hash="11" * 32, fee=0),
    )
    tx = LedgerTransaction(
        txid=SUBJECT_TXID,
        inputs=(LedgerInput(PRIOR_TXID, 0),),
        outputs=(
            LedgerOutput(20 * SATS_PER_BTC, TRADER_SCRIPT),
            LedgerOutput(2_999_990_000, CHANGE_SCRIPT),
        ),
        confirmation=Confirmed(block_height=101, block_hash=BLOCK_HASH, fee=-10_000),
    )
    return Scenario(
        ledger=InMemoryLedger([prior]),
        prior=prior,
        tx=tx,
        miner_address=script_to_address(MINER_SCRIPT, Network.REGTEST),
        trader_address=script_to_address(TRADER_SCRIPT, Network.REGTEST),
        change_address=script_to_address(CHANGE_SCRIPT, Network.REGTEST),
    )
