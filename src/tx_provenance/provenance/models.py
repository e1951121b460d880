"""Provenance data model — ledger views, confirmation state, report.

All amounts are integer satoshis; they are rendered as 8-decimal BTC only
when a report is serialized.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tx_provenance.btc.transaction import Transaction

SATS_PER_BTC = 100_000_000

_COINBASE_TXID_HEX = "0" * 64
_COINBASE_INDEX = 0xFFFFFFFF


# ---------------------------------------------------------------------------
# Ledger views
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LedgerInput:
    """Reference to a previously created output being spent."""

    txid: str
    vout: int

    @property
    def is_coinbase(self) -> bool:
        return self.txid == _COINBASE_TXID_HEX and self.vout == _COINBASE_INDEX


@dataclass(frozen=True)
class LedgerOutput:
    """A value-bearing output slot.

    Attributes:
        value: Amount in satoshis.
        script_pubkey: Locking script encoding the receiving address.
    """

    value: int
    script_pubkey: bytes

    def __post_init__(self) -> None:
        if self.value < 0:
            msg = f"Output value must be non-negative, got {self.value}"
            raise ValueError(msg)


@dataclass(frozen=True)
class Unconfirmed:
    """The transaction has not been included in a block (or it is not known)."""


UNCONFIRMED = Unconfirmed()


@dataclass(frozen=True)
class Confirmed:
    """The transaction is included in a block and its fee is fixed.

    Attributes:
        block_height: Height of the confirming block.
        block_hash: Hex hash of the confirming block.
        fee: Fee in satoshis as the tracking wallet reports it; negative when
            the wallet counts it as value leaving the wallet.
    """

    block_height: int
    block_hash: str
    fee: int


Confirmation = Unconfirmed | Confirmed


@dataclass(frozen=True)
class LedgerTransaction:
    """Read-only view of a transaction committed to the ledger."""

    txid: str
    inputs: tuple[LedgerInput, ...] = ()
    outputs: tuple[LedgerOutput, ...] = ()
    confirmation: Confirmation = UNCONFIRMED

    @property
    def is_confirmed(self) -> bool:
        return isinstance(self.confirmation, Confirmed)

    @classmethod
    def from_transaction(
        cls, tx: Transaction, confirmation: Confirmation = UNCONFIRMED
    ) -> LedgerTransaction:
        """Build a ledger view from a decoded raw transaction."""
        return cls(
            txid=tx.txid(),
            inputs=tuple(
                LedgerInput(inp.prev_tx_id_hex, inp.prev_tx_out_index) for inp in tx.inputs
            ),
            outputs=tuple(LedgerOutput(out.value, out.script_pubkey) for out in tx.outputs),
            confirmation=confirmation,
        )


# ---------------------------------------------------------------------------
# Step results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ResolvedInput:
    """Address and amount of the output spent by the first input."""

    address: str
    value: int


@dataclass(frozen=True)
class ClassifiedOutput:
    """An output of the inspected transaction with its decoded address."""

    index: int
    address: str
    value: int


@dataclass(frozen=True)
class NoMatch:
    """No output pays the recipient address."""

    def chosen(self) -> ClassifiedOutput | None:
        return None


@dataclass(frozen=True)
class SingleMatch:
    """Exactly one output pays the recipient address."""

    output: ClassifiedOutput

    def chosen(self) -> ClassifiedOutput | None:
        return self.output


@dataclass(frozen=True)
class MultipleMatches:
    """Several outputs pay the recipient address; the last one fills the report slot."""

    outputs: tuple[ClassifiedOutput, ...]

    def chosen(self) -> ClassifiedOutput | None:
        return self.outputs[-1]


RecipientMatch = NoMatch | SingleMatch | MultipleMatches


@dataclass(frozen=True)
class Classification:
    """Outputs partitioned into the recipient match and everything else."""

    recipient: RecipientMatch
    change: tuple[ClassifiedOutput, ...] = field(default_factory=tuple)

    @property
    def change_output(self) -> ClassifiedOutput | None:
        """The output reported as change (the last non-recipient output)."""
        return self.change[-1] if self.change else None


@dataclass(frozen=True)
class BlockSummary:
    """Fee magnitude and confirming block of a confirmed transaction."""

    fee: int
    block_height: int
    block_hash: str


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProvenanceReport:
    """The ten-field provenance artifact, in serialization order."""

    txid: str
    input_address: str
    input_amount: int
    recipient_address: str
    recipient_amount: int
    change_address: str
    change_amount: int
    fee: int
    block_height: int
    block_hash: str

    @classmethod
    def assemble(
        cls,
        txid: str,
        source: ResolvedInput,
        classification: Classification,
        summary: BlockSummary,
    ) -> ProvenanceReport:
        """Combine the results of the pipeline steps into a report."""
        recipient = classification.recipient.chosen()
        change = classification.change_output
        return cls(
            txid=txid,
            input_address=source.address,
            input_amount=source.value,
            recipient_address=recipient.address if recipient else "",
            recipient_amount=recipient.value if recipient else 0,
            change_address=change.address if change else "",
            change_amount=change.value if change else 0,
            fee=summary.fee,
            block_height=summary.block_height,
            block_hash=summary.block_hash,
        )
