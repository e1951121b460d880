#!/usr/bin/env python3
"""Transaction provenance tool — write and inspect provenance reports.

A standalone CLI around the provenance pipeline:

    # Report on a confirmed wallet transaction paying <recipient_address>
    python -m tx_provenance.tools.report_tool report <txid> <recipient_address> [output_path]

    # Print a previously written report with field labels
    python -m tx_provenance.tools.report_tool show <path>

Node, wallet, network and default output path come from ``TXPROV_*``
environment variables or the YAML file named by ``TXPROV_CONFIG_PATH``.
"""

from __future__ import annotations

import logging
import sys

from tx_provenance.errors.provenance_errors import ProvenanceError

logger = logging.getLogger("tx_provenance.tools.report_tool")


def _cmd_report(txid: str, recipient_address: str, output_path: str | None = None) -> int:
    """Fetch *txid* through the configured wallet and write its report."""
    from tx_provenance.chain.rpc.client import BitcoinRPCClient
    from tx_provenance.chain.rpc.ledger import RPCLedger
    from tx_provenance.config.logging_setup import setup_logging
    from tx_provenance.config.settings import AppConfig
    from tx_provenance.provenance.pipeline import ProvenanceService
    from tx_provenance.provenance.report import format_btc

    config = AppConfig()
    setup_logging(config.effective_log_level)

    rpc = BitcoinRPCClient(config.rpc)
    rpc.connect()
    try:
        info = rpc.get_blockchain_info()
        logger.info("Connected to %s node at height %s", info.get("chain"), info.get("blocks"))

        ledger = RPCLedger(rpc, wallet=config.rpc.wallet)
        tx = ledger.fetch_wallet_transaction(txid)
        service = ProvenanceService(
            ledger,
            network=config.network,
            report_path=output_path or config.report.path,
        )
        report = service.generate(tx, recipient_address)
    finally:
        rpc.close()

    print(f"Transaction: {report.txid}")
    print(f"Input:       {report.input_address}  {format_btc(report.input_amount)} BTC")
    print(f"Recipient:   {report.recipient_address}  {format_btc(report.recipient_amount)} BTC")
    print(f"Change:      {report.change_address}  {format_btc(report.change_amount)} BTC")
    print(f"Fee:         {format_btc(report.fee)} BTC")
    print(f"Block:       {report.block_height}  {report.block_hash}")
    print()
    print(f"Report written to {service.report_path}")
    return 0


def _cmd_show(path: str) -> int:
    """Print a written report with field labels."""
    from tx_provenance.provenance.report import read_report_lines

    try:
        fields = read_report_lines(path)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    width = max(len(label) for label, _ in fields)
    for label, value in fields:
        print(f"{label:<{width}}  {value}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print(__doc__)
        return 1

    cmd = args[0].lower()
    try:
        if cmd == "report":
            if len(args) < 3:
                print("Usage: report_tool report <txid> <recipient_address> [output_path]")
                return 1
            return _cmd_report(args[1], args[2], args[3] if len(args) > 3 else None)
        if cmd == "show":
            if len(args) < 2:
                print("Usage: report_tool show <path>")
                return 1
            return _cmd_show(args[1])
    except ProvenanceError as exc:
        step = exc.step or "ledger"
        print(f"error [{step}] {exc.code}: {exc.message}", file=sys.stderr)
        return 1

    print(f"Unknown command: {cmd}")
    print(__doc__)
    return 1


if __name__ == "__main__":
    sys.exit(main())
