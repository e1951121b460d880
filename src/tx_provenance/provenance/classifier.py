"""Output Classifier — split outputs into the recipient payment and change."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tx_provenance.btc.address import Network, canonical_address, script_to_address
from tx_provenance.provenance.models import (
    Classification,
    ClassifiedOutput,
    MultipleMatches,
    NoMatch,
    RecipientMatch,
    SingleMatch,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from tx_provenance.provenance.models import LedgerOutput


def decode_outputs(
    outputs: Sequence[LedgerOutput], network: str = Network.REGTEST
) -> list[ClassifiedOutput]:
    """Decode every output's address, failing on the first non-standard script.

    Raises:
        AddressDecodeFailure: If any output's locking script has no address form.
    """
    return [
        ClassifiedOutput(
            index=i,
            address=script_to_address(out.script_pubkey, network),
            value=out.value,
        )
        for i, out in enumerate(outputs)
    ]


def match_recipient(
    outputs: Iterable[ClassifiedOutput], recipient_address: str
) -> RecipientMatch:
    """Find the decoded outputs whose address equals *recipient_address*."""
    matches = tuple(out for out in outputs if out.address == recipient_address)
    if not matches:
        return NoMatch()
    if len(matches) == 1:
        return SingleMatch(matches[0])
    return MultipleMatches(matches)


def classify_outputs(
    outputs: Sequence[LedgerOutput],
    recipient_address: str,
    network: str = Network.REGTEST,
) -> Classification:
    """Partition *outputs* into the recipient match and change.

    The recipient address is compared in canonical form, so the casing of a
    bech32 address does not affect the match.

    Raises:
        AddressDecodeFailure: If the recipient address is invalid on *network*
            or any output's locking script has no address form.
    """
    recipient = canonical_address(recipient_address, network)
    decoded = decode_outputs(outputs, network)
    match = match_recipient(decoded, recipient)
    change = tuple(out for out in decoded if out.address != recipient)
    return Classification(recipient=match, change=change)
