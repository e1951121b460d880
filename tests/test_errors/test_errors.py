"""Tests for the error taxonomy."""

from __future__ import annotations

import pytest

from tx_provenance.errors import (
    AddressDecodeFailure,
    ChainError,
    IndexOutOfRange,
    LookupFailure,
    PreconditionViolation,
    ProvenanceError,
    ReportWriteFailure,
    RPCError,
)
from tx_provenance.errors.chain_errors import RPC_INVALID_ADDRESS_OR_KEY

# ---------------------------------------------------------------------------
# ProvenanceError base class
# ---------------------------------------------------------------------------


class TestProvenanceError:
    def test_default_attributes(self) -> None:
        err = ProvenanceError("something broke")
        assert str(err) == "something broke"
        assert err.message == "something broke"
        assert err.code == "provenance-error"
        assert err.step is None

    def test_custom_code(self) -> None:
        err = ProvenanceError("bad input", code="bad-input")
        assert err.code == "bad-input"

    def test_step_prefixes_str(self) -> None:
        err = ProvenanceError("boom", step="input-resolver")
        assert str(err) == "[input-resolver] boom"
        assert err.message == "boom"

    def test_step_assigned_later(self) -> None:
        err = ProvenanceError("boom")
        err.step = "fee-aggregator"
        assert str(err) == "[fee-aggregator] boom"

    def test_is_exception(self) -> None:
        with pytest.raises(ProvenanceError, match="boom"):
            raise ProvenanceError("boom")


# ---------------------------------------------------------------------------
# Taxonomy
# ---------------------------------------------------------------------------


class TestTaxonomy:
    """Each failure kind carries its own code and context."""

    @pytest.mark.parametrize(
        ("err", "code"),
        [
            (LookupFailure("missing"), "lookup-failure"),
            (IndexOutOfRange("too far"), "index-out-of-range"),
            (AddressDecodeFailure("not an address"), "address-decode-failure"),
            (PreconditionViolation("unconfirmed"), "precondition-violation"),
            (ReportWriteFailure("disk full"), "report-write-failure"),
            (ChainError("node down"), "chain-error"),
            (RPCError("bad params"), "rpc-error"),
        ],
    )
    def test_codes(self, err: ProvenanceError, code: str) -> None:
        assert isinstance(err, ProvenanceError)
        assert err.code == code

    def test_lookup_failure_txid(self) -> None:
        err = LookupFailure("not found", txid="ab" * 32)
        assert err.txid == "ab" * 32

    def test_index_out_of_range_context(self) -> None:
        err = IndexOutOfRange("vout 3 of 2", index=3, output_count=2, step="input-resolver")
        assert err.index == 3
        assert err.output_count == 2
        assert str(err) == "[input-resolver] vout 3 of 2"

    def test_report_write_failure_path(self) -> None:
        err = ReportWriteFailure("cannot write", path="/nope/out.txt")
        assert err.path == "/nope/out.txt"


class TestRPCError:
    def test_is_chain_error(self) -> None:
        err = RPCError("rpc failed")
        assert isinstance(err, ChainError)
        assert err.rpc_code is None

    def test_rpc_code(self) -> None:
        err = RPCError("No such mempool or blockchain transaction", rpc_code=-5)
        assert err.rpc_code == RPC_INVALID_ADDRESS_OR_KEY

    def test_raise(self) -> None:
        with pytest.raises(ChainError):
            raise RPCError("rejected")
