"""Input Resolver — follow the first input one hop back to its spent output."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tx_provenance.btc.address import Network, script_to_address
from tx_provenance.errors.provenance_errors import (
    IndexOutOfRange,
    LookupFailure,
    PreconditionViolation,
)
from tx_provenance.provenance.models import ResolvedInput

if TYPE_CHECKING:
    from tx_provenance.chain.ledger import Ledger
    from tx_provenance.provenance.models import LedgerTransaction

logger = logging.getLogger(__name__)


def resolve_input(
    tx: LedgerTransaction,
    ledger: Ledger,
    network: str = Network.REGTEST,
) -> ResolvedInput:
    """Resolve the address and amount spent by the first input of *tx*.

    Issues exactly one ledger lookup, for the transaction the first input
    references, and no retries.

    Raises:
        PreconditionViolation: If *tx* has no inputs.
        LookupFailure: If the input is a coinbase or the prior transaction
            cannot be retrieved.
        IndexOutOfRange: If the referenced output index does not exist.
        AddressDecodeFailure: If the prior output's script has no address form.
    """
    if not tx.inputs:
        msg = f"Transaction {tx.txid} has no inputs to resolve"
        raise PreconditionViolation(msg)

    first = tx.inputs[0]
    if first.is_coinbase:
        msg = f"Transaction {tx.txid} is a coinbase; its input spends no prior output"
        raise LookupFailure(msg, txid=first.txid)

    prior = ledger.fetch_transaction(first.txid)
    if first.vout >= len(prior.outputs):
        msg = (
            f"Input {first.txid}:{first.vout} references output {first.vout}, "
            f"but the transaction has {len(prior.outputs)} outputs"
        )
        raise IndexOutOfRange(msg, index=first.vout, output_count=len(prior.outputs))

    spent = prior.outputs[first.vout]
    address = script_to_address(spent.script_pubkey, network)
    logger.debug("Input %s:%d spends %d sat from %s", first.txid, first.vout, spent.value, address)
    return ResolvedInput(address=address, value=spent.value)
