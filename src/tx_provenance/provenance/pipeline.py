"""Provenance pipeline — resolve, classify, aggregate, serialize.

The steps run once, in order; any failure aborts the run before the report
file is touched.
"""

from __future__ import annotations

import contextlib
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from tx_provenance.btc.address import Network
from tx_provenance.errors.provenance_errors import ProvenanceError
from tx_provenance.provenance.aggregator import summarize_confirmation
from tx_provenance.provenance.classifier import classify_outputs
from tx_provenance.provenance.models import MultipleMatches, NoMatch, ProvenanceReport
from tx_provenance.provenance.report import write_report
from tx_provenance.provenance.resolver import resolve_input

if TYPE_CHECKING:
    from collections.abc import Iterator

    from tx_provenance.chain.ledger import Ledger
    from tx_provenance.provenance.models import Classification, LedgerTransaction

logger = logging.getLogger(__name__)

STEP_INPUT_RESOLVER = "input-resolver"
STEP_OUTPUT_CLASSIFIER = "output-classifier"
STEP_FEE_AGGREGATOR = "fee-aggregator"
STEP_REPORT_SERIALIZER = "report-serializer"


@contextlib.contextmanager
def _step(name: str) -> Iterator[None]:
    """Tag provenance errors escaping the block with the step *name*."""
    try:
        yield
    except ProvenanceError as exc:
        if exc.step is None:
            exc.step = name
        logger.error("Step %s failed: %s (%s)", name, exc.message, exc.code)
        raise


class ProvenanceService:
    """Builds and writes provenance reports for confirmed transactions.

    Usage::

        service = ProvenanceService(ledger, network="regtest", report_path="out.txt")
        report = service.generate(tx, recipient_address)
    """

    def __init__(
        self,
        ledger: Ledger,
        *,
        network: str = Network.REGTEST,
        report_path: str | Path = "out.txt",
    ) -> None:
        """Initialize the service.

        Args:
            ledger: Lookup capability used to resolve the spent output.
            network: Network whose address encoding applies.
            report_path: Destination of :meth:`generate`.
        """
        self._ledger = ledger
        self._network = Network(network)
        self._report_path = Path(report_path)

    @property
    def network(self) -> Network:
        return self._network

    @property
    def report_path(self) -> Path:
        return self._report_path

    def build_report(self, tx: LedgerTransaction, recipient_address: str) -> ProvenanceReport:
        """Run the resolver, classifier and aggregator over *tx*.

        Raises:
            ProvenanceError: The first failure of any step, tagged with the step.
        """
        logger.info("Building provenance report for %s", tx.txid)

        with _step(STEP_INPUT_RESOLVER):
            source = resolve_input(tx, self._ledger, self._network)

        with _step(STEP_OUTPUT_CLASSIFIER):
            classification = classify_outputs(tx.outputs, recipient_address, self._network)
        self._warn_ambiguities(tx, recipient_address, classification)

        with _step(STEP_FEE_AGGREGATOR):
            summary = summarize_confirmation(tx)

        return ProvenanceReport.assemble(tx.txid, source, classification, summary)

    def generate(self, tx: LedgerTransaction, recipient_address: str) -> ProvenanceReport:
        """Build the report for *tx* and write it to the configured path."""
        report = self.build_report(tx, recipient_address)
        with _step(STEP_REPORT_SERIALIZER):
            write_report(report, self._report_path)
        return report

    @staticmethod
    def _warn_ambiguities(
        tx: LedgerTransaction, recipient_address: str, classification: Classification
    ) -> None:
        match = classification.recipient
        if isinstance(match, NoMatch):
            logger.warning("No output of %s pays %s", tx.txid, recipient_address)
        elif isinstance(match, MultipleMatches):
            logger.warning(
                "%d outputs of %s pay %s; reporting output %d",
                len(match.outputs),
                tx.txid,
                recipient_address,
                match.outputs[-1].index,
            )
        if len(classification.change) > 1:
            logger.warning(
                "%d change outputs in %s; reporting output %d",
                len(classification.change),
                tx.txid,
                classification.change[-1].index,
            )
