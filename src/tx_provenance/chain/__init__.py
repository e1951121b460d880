"""Ledger collaborators — lookup interface, in-memory fake, Bitcoin Core RPC."""

from tx_provenance.chain.ledger import InMemoryLedger, Ledger
from tx_provenance.chain.rpc.client import BitcoinRPCClient
from tx_provenance.chain.rpc.ledger import RPCLedger

__all__ = ["BitcoinRPCClient", "InMemoryLedger", "Ledger", "RPCLedger"]
