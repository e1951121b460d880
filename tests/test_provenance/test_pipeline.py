"""End-to-end tests for the provenance pipeline."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

import pytest

from tx_provenance.btc.address import Network, script_to_address
from tx_provenance.btc.script import op_return_script, witness_lock_script
from tx_provenance.chain.ledger import InMemoryLedger
from tx_provenance.errors import (
    AddressDecodeFailure,
    IndexOutOfRange,
    LookupFailure,
    PreconditionViolation,
    ReportWriteFailure,
)
from tx_provenance.provenance import ProvenanceService
from tx_provenance.provenance.models import (
    UNCONFIRMED,
    LedgerInput,
    LedgerOutput,
)
from tx_provenance.provenance.pipeline import (
    STEP_FEE_AGGREGATOR,
    STEP_INPUT_RESOLVER,
    STEP_OUTPUT_CLASSIFIER,
    STEP_REPORT_SERIALIZER,
)

if TYPE_CHECKING:
    from pathlib import Path


class TestGenerate:
    """The full resolve -> classify -> aggregate -> write run."""

    def test_report_file(self, scenario, tmp_path: Path) -> None:
        out = tmp_path / "out.txt"
        service = ProvenanceService(scenario.ledger, network=Network.REGTEST, report_path=out)
        service.generate(scenario.tx, scenario.trader_address)

        assert out.read_text().split("\n") == [
            scenario.tx.txid,
            scenario.miner_address,
            "50.00000000",
            scenario.trader_address,
            "20.00000000",
            scenario.change_address,
            "29.99990000",
            "0.00010000",
            "101",
            scenario.tx.confirmation.block_hash,
            "",
        ]

    def test_report_value(self, scenario, tmp_path: Path) -> None:
        service = ProvenanceService(scenario.ledger, report_path=tmp_path / "out.txt")
        report = service.generate(scenario.tx, scenario.trader_address)
        assert report.input_amount == 5_000_000_000
        assert report.recipient_amount + report.change_amount + report.fee == report.input_amount

    def test_single_lookup(self, scenario, tmp_path: Path) -> None:
        service = ProvenanceService(scenario.ledger, report_path=tmp_path / "out.txt")
        service.generate(scenario.tx, scenario.trader_address)
        assert scenario.ledger.lookups == [scenario.prior.txid]

    def test_rerun_identical(self, scenario, tmp_path: Path) -> None:
        out = tmp_path / "out.txt"
        service = ProvenanceService(scenario.ledger, report_path=out)
        service.generate(scenario.tx, scenario.trader_address)
        first = out.read_bytes()
        service.generate(scenario.tx, scenario.trader_address)
        assert out.read_bytes() == first

    def test_build_report_writes_nothing(self, scenario, tmp_path: Path) -> None:
        out = tmp_path / "out.txt"
        service = ProvenanceService(scenario.ledger, report_path=out)
        report = service.build_report(scenario.tx, scenario.trader_address)
        assert report.fee == 10_000
        assert not out.exists()

    def test_properties(self, scenario, tmp_path: Path) -> None:
        service = ProvenanceService(
            scenario.ledger, network="mainnet", report_path=str(tmp_path / "r.txt")
        )
        assert service.network == Network.MAINNET
        assert service.report_path == tmp_path / "r.txt"

    def test_unknown_network(self, scenario) -> None:
        with pytest.raises(ValueError):
            ProvenanceService(scenario.ledger, network="litecoin")


class TestAmbiguity:
    def test_no_match(self, scenario, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        service = ProvenanceService(scenario.ledger, report_path=tmp_path / "out.txt")
        with caplog.at_level(logging.WARNING, logger="tx_provenance.provenance.pipeline"):
            report = service.generate(scenario.tx, scenario.miner_address)
        assert report.recipient_address == ""
        assert report.recipient_amount == 0
        assert report.change_address == scenario.change_address
        assert "No output" in caplog.text
        assert "2 change outputs" in caplog.text

    def test_multiple_matches(
        self, scenario, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        trader_script = scenario.tx.outputs[0].script_pubkey
        tx = replace(
            scenario.tx,
            outputs=(
                LedgerOutput(1_000_000_000, trader_script),
                LedgerOutput(2_999_990_000, scenario.tx.outputs[1].script_pubkey),
                LedgerOutput(1_000_000_000, trader_script),
            ),
        )
        service = ProvenanceService(scenario.ledger, report_path=tmp_path / "out.txt")
        with caplog.at_level(logging.WARNING, logger="tx_provenance.provenance.pipeline"):
            report = service.generate(tx, scenario.trader_address)
        assert report.recipient_address == scenario.trader_address
        assert report.recipient_amount == 1_000_000_000
        assert report.change_amount == 2_999_990_000
        assert "2 outputs" in caplog.text
        assert "reporting output 2" in caplog.text

    def test_only_recipient_no_change(self, scenario, tmp_path: Path) -> None:
        taproot = witness_lock_script(1, b"\x55" * 32)
        tx = replace(scenario.tx, outputs=(LedgerOutput(4_999_990_000, taproot),))
        service = ProvenanceService(scenario.ledger, report_path=tmp_path / "out.txt")
        report = service.generate(tx, script_to_address(taproot))
        assert report.recipient_amount == 4_999_990_000
        assert report.change_address == ""
        assert report.change_amount == 0


class TestFailures:
    """Each failure aborts the run, names its step and leaves no report."""

    def _run(self, ledger, tx, recipient: str, out: Path):
        return ProvenanceService(ledger, report_path=out).generate(tx, recipient)

    def test_missing_prior(self, scenario, tmp_path: Path) -> None:
        out = tmp_path / "out.txt"
        with pytest.raises(LookupFailure) as exc_info:
            self._run(InMemoryLedger(), scenario.tx, scenario.trader_address, out)
        assert exc_info.value.step == STEP_INPUT_RESOLVER
        assert str(exc_info.value).startswith(f"[{STEP_INPUT_RESOLVER}]")
        assert not out.exists()

    def test_index_out_of_range(self, scenario, tmp_path: Path) -> None:
        out = tmp_path / "out.txt"
        tx = replace(scenario.tx, inputs=(LedgerInput(scenario.prior.txid, 1),))
        with pytest.raises(IndexOutOfRange) as exc_info:
            self._run(scenario.ledger, tx, scenario.trader_address, out)
        assert exc_info.value.step == STEP_INPUT_RESOLVER
        assert not out.exists()

    def test_no_inputs(self, scenario, tmp_path: Path) -> None:
        out = tmp_path / "out.txt"
        tx = replace(scenario.tx, inputs=())
        with pytest.raises(PreconditionViolation) as exc_info:
            self._run(scenario.ledger, tx, scenario.trader_address, out)
        assert exc_info.value.step == STEP_INPUT_RESOLVER
        assert scenario.ledger.lookups == []

    def test_undecodable_output(self, scenario, tmp_path: Path) -> None:
        out = tmp_path / "out.txt"
        tx = replace(
            scenario.tx,
            outputs=(*scenario.tx.outputs, LedgerOutput(0, op_return_script(b"memo"))),
        )
        with pytest.raises(AddressDecodeFailure) as exc_info:
            self._run(scenario.ledger, tx, scenario.trader_address, out)
        assert exc_info.value.step == STEP_OUTPUT_CLASSIFIER
        assert not out.exists()

    def test_invalid_recipient(self, scenario, tmp_path: Path) -> None:
        out = tmp_path / "out.txt"
        with pytest.raises(AddressDecodeFailure) as exc_info:
            self._run(scenario.ledger, scenario.tx, "not-an-address", out)
        assert exc_info.value.step == STEP_OUTPUT_CLASSIFIER
        assert not out.exists()

    def test_unconfirmed(self, scenario, tmp_path: Path) -> None:
        out = tmp_path / "out.txt"
        tx = replace(scenario.tx, confirmation=UNCONFIRMED)
        with pytest.raises(PreconditionViolation) as exc_info:
            self._run(scenario.ledger, tx, scenario.trader_address, out)
        assert exc_info.value.step == STEP_FEE_AGGREGATOR
        assert not out.exists()

    def test_unwritable_destination(self, scenario, tmp_path: Path) -> None:
        out = tmp_path / "missing" / "out.txt"
        with pytest.raises(ReportWriteFailure) as exc_info:
            self._run(scenario.ledger, scenario.tx, scenario.trader_address, out)
        assert exc_info.value.step == STEP_REPORT_SERIALIZER

    def test_failure_logged(
        self, scenario, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        tx = replace(scenario.tx, confirmation=UNCONFIRMED)
        with caplog.at_level(logging.ERROR, logger="tx_provenance.provenance.pipeline"):
            with pytest.raises(PreconditionViolation):
                self._run(scenario.ledger, tx, scenario.trader_address, tmp_path / "o.txt")
        assert "fee-aggregator" in caplog.text
        assert "precondition-violation" in caplog.text

