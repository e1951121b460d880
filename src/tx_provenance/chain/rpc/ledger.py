"""Ledger backed by a Bitcoin Core node."""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from tx_provenance.btc.transaction import Transaction
from tx_provenance.errors.chain_errors import RPC_INVALID_ADDRESS_OR_KEY, RPCError
from tx_provenance.errors.provenance_errors import LookupFailure, PreconditionViolation
from tx_provenance.provenance.models import (
    SATS_PER_BTC,
    UNCONFIRMED,
    Confirmation,
    Confirmed,
    LedgerTransaction,
)

if TYPE_CHECKING:
    from tx_provenance.chain.rpc.client import BitcoinRPCClient

logger = logging.getLogger(__name__)


def _btc_to_sats(value: Any) -> int:
    """Convert a BTC amount from an RPC response to integer satoshis."""
    try:
        sats = Decimal(str(value)) * SATS_PER_BTC
    except InvalidOperation:
        msg = f"Invalid BTC amount: {value!r}"
        raise ValueError(msg) from None
    if sats != sats.to_integral_value():
        msg = f"BTC amount has sub-satoshi precision: {value!r}"
        raise ValueError(msg)
    return int(sats)


class RPCLedger:
    """:class:`~tx_provenance.chain.ledger.Ledger` over Bitcoin Core RPC.

    Args:
        client: A connected :class:`BitcoinRPCClient`.
        wallet: Wallet consulted for wallet-tracked transactions and as a
            fallback source of raw hex when the node has no ``-txindex``.
    """

    def __init__(self, client: BitcoinRPCClient, *, wallet: str = "") -> None:
        self._client = client
        self._wallet = wallet

    @property
    def wallet(self) -> str:
        return self._wallet

    def fetch_transaction(self, txid: str) -> LedgerTransaction:
        """Fetch and decode *txid*; confirmation metadata is not looked up.

        Raises:
            LookupFailure: If the node (and wallet) cannot provide the
                transaction, or its hex does not decode to *txid*.
        """
        try:
            raw_hex = self._client.get_raw_transaction(txid)
        except RPCError as exc:
            if exc.rpc_code != RPC_INVALID_ADDRESS_OR_KEY or not self._wallet:
                msg = f"Transaction {txid} not retrievable: {exc.message}"
                raise LookupFailure(msg, txid=txid) from exc
            logger.debug("Node has no index entry for %s, asking wallet %s", txid, self._wallet)
            details = self._wallet_details(txid)
            raw_hex = str(details.get("hex", ""))
        return LedgerTransaction.from_transaction(self._decode(txid, raw_hex))

    def fetch_wallet_transaction(self, txid: str) -> LedgerTransaction:
        """Fetch *txid* through the wallet, including fee and confirming block.

        Raises:
            LookupFailure: If no wallet is configured or it does not track *txid*.
            PreconditionViolation: If the wallet reports a confirming block but
                no fee or height for it.
        """
        if not self._wallet:
            msg = f"No wallet configured to look up {txid}"
            raise LookupFailure(msg, txid=txid)
        details = self._wallet_details(txid)
        tx = self._decode(txid, str(details.get("hex", "")))
        return LedgerTransaction.from_transaction(tx, self._confirmation(txid, details))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _wallet_details(self, txid: str) -> dict[str, Any]:
        try:
            return self._client.get_wallet_transaction(txid, self._wallet)
        except RPCError as exc:
            msg = f"Transaction {txid} not retrievable from wallet {self._wallet}: {exc.message}"
            raise LookupFailure(msg, txid=txid) from exc

    @staticmethod
    def _decode(txid: str, raw_hex: str) -> Transaction:
        try:
            tx = Transaction.from_hex(raw_hex)
        except ValueError as exc:
            msg = f"Transaction {txid} could not be decoded: {exc}"
            raise LookupFailure(msg, txid=txid) from exc
        if tx.txid() != txid.lower():
            msg = f"Node returned transaction {tx.txid()} for requested {txid}"
            raise LookupFailure(msg, txid=txid)
        return tx

    @staticmethod
    def _confirmation(txid: str, details: dict[str, Any]) -> Confirmation:
        block_hash = details.get("blockhash")
        if not block_hash:
            return UNCONFIRMED
        height = details.get("blockheight")
        fee = details.get("fee")
        if height is None or fee is None:
            missing = "block height" if height is None else "fee"
            msg = (
                f"Transaction {txid} is confirmed in {block_hash} "
                f"but the wallet reports no {missing}"
            )
            raise PreconditionViolation(msg)
        try:
            fee_sats = _btc_to_sats(fee)
        except ValueError as exc:
            msg = f"Transaction {txid} has an unusable fee: {exc}"
            raise PreconditionViolation(msg) from exc
        return Confirmed(block_height=int(height), block_hash=str(block_hash), fee=fee_sats)
