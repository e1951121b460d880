"""Ledger node transport errors."""

from __future__ import annotations

from tx_provenance.errors.provenance_errors import ProvenanceError

# Bitcoin Core RPC error codes the ledger reacts to
RPC_INVALID_ADDRESS_OR_KEY = -5
RPC_WALLET_NOT_FOUND = -18


class ChainError(ProvenanceError):
    """Error talking to a ledger node."""

    def __init__(self, message: str, *, code: str = "chain-error") -> None:
        super().__init__(message, code=code)


class RPCError(ChainError):
    """Error returned by (or while reaching) a Bitcoin Core JSON-RPC endpoint.

    Attributes:
        rpc_code: The node's JSON-RPC error code, or None for transport and
            HTTP-level failures.
    """

    def __init__(self, message: str, *, rpc_code: int | None = None) -> None:
        super().__init__(message, code="rpc-error")
        self.rpc_code = rpc_code
