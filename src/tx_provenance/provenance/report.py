"""Report Serializer — render and write the ten-line provenance artifact."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from tx_provenance.errors.provenance_errors import ReportWriteFailure
from tx_provenance.provenance.models import SATS_PER_BTC

if TYPE_CHECKING:
    from tx_provenance.provenance.models import ProvenanceReport

logger = logging.getLogger(__name__)

# Field labels in serialization order, used for human-readable output
REPORT_FIELDS = (
    ("txid", "Transaction ID"),
    ("input_address", "Input address"),
    ("input_amount", "Input amount"),
    ("recipient_address", "Recipient address"),
    ("recipient_amount", "Recipient amount"),
    ("change_address", "Change address"),
    ("change_amount", "Change amount"),
    ("fee", "Fee"),
    ("block_height", "Block height"),
    ("block_hash", "Block hash"),
)


def format_btc(sats: int) -> str:
    """Render a satoshi amount as BTC with exactly 8 decimals."""
    sign = "-" if sats < 0 else ""
    whole, frac = divmod(abs(sats), SATS_PER_BTC)
    return f"{sign}{whole}.{frac:08d}"


def report_lines(report: ProvenanceReport) -> list[str]:
    """The ten report lines, without terminators, in serialization order."""
    return [
        report.txid,
        report.input_address,
        format_btc(report.input_amount),
        report.recipient_address,
        format_btc(report.recipient_amount),
        report.change_address,
        format_btc(report.change_amount),
        format_btc(report.fee),
        str(report.block_height),
        report.block_hash,
    ]


def render_report(report: ProvenanceReport) -> str:
    """Render *report* as newline-terminated lines."""
    return "".join(f"{line}\n" for line in report_lines(report))


def write_report(report: ProvenanceReport, path: str | Path) -> Path:
    """Create or overwrite *path* with the rendered report.

    The write is not atomic; a failure part-way may leave a truncated file.

    Raises:
        ReportWriteFailure: If the file cannot be created or written.
    """
    destination = Path(path)
    content = render_report(report)
    try:
        with destination.open("w", encoding="utf-8", newline="\n") as fh:
            fh.write(content)
    except OSError as exc:
        msg = f"Could not write report to {destination}: {exc.strerror or exc}"
        raise ReportWriteFailure(msg, path=str(destination)) from exc
    logger.info("Report for %s written to %s", report.txid, destination)
    return destination


def read_report_lines(path: str | Path) -> list[tuple[str, str]]:
    """Read a written report back as ``(label, value)`` pairs.

    Raises:
        ReportWriteFailure: If the file cannot be read.
        ValueError: If the file does not hold exactly ten lines.
    """
    source = Path(path)
    try:
        text = source.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Could not read report {source}: {exc.strerror or exc}"
        raise ReportWriteFailure(msg, path=str(source)) from exc
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    if len(lines) != len(REPORT_FIELDS):
        msg = f"Report {source} has {len(lines)} lines, expected {len(REPORT_FIELDS)}"
        raise ValueError(msg)
    return [(label, value) for (_, label), value in zip(REPORT_FIELDS, lines, strict=True)]
