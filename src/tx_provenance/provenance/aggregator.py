"""Fee & Metadata Aggregator — fee magnitude and confirming block."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tx_provenance.errors.provenance_errors import PreconditionViolation
from tx_provenance.provenance.models import BlockSummary, Confirmed

if TYPE_CHECKING:
    from tx_provenance.provenance.models import LedgerTransaction


def summarize_confirmation(tx: LedgerTransaction) -> BlockSummary:
    """Extract the absolute fee and the confirming block of *tx*.

    Raises:
        PreconditionViolation: If *tx* is not confirmed.
    """
    confirmation = tx.confirmation
    if not isinstance(confirmation, Confirmed):
        msg = f"Transaction {tx.txid} is not confirmed; no fee or block metadata available"
        raise PreconditionViolation(msg)
    return BlockSummary(
        fee=abs(confirmation.fee),
        block_height=confirmation.block_height,
        block_hash=confirmation.block_hash,
    )
