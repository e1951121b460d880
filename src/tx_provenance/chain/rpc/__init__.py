"""Bitcoin Core JSON-RPC client and the ledger built on it."""

from tx_provenance.chain.rpc.client import BitcoinRPCClient
from tx_provenance.chain.rpc.ledger import RPCLedger

__all__ = ["BitcoinRPCClient", "RPCLedger"]
