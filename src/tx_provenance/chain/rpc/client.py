"""Bitcoin Core JSON-RPC client — raw transactions, wallet transactions, chain info.

Synchronous HTTP client for the node's JSON-RPC 1.0 interface:
- POST /                  node-level calls (``getrawtransaction``, ``getblockcount``)
- POST /wallet/<name>     wallet-scoped calls (``gettransaction``)

Amounts in responses are parsed as :class:`~decimal.Decimal` so BTC values
convert to satoshis exactly.
"""

from __future__ import annotations

import itertools
import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx

from tx_provenance.errors.chain_errors import RPCError

if TYPE_CHECKING:
    from tx_provenance.config.settings import RPCConfig

logger = logging.getLogger(__name__)


class BitcoinRPCClient:
    """Blocking JSON-RPC client for a Bitcoin Core node.

    Usage::

        rpc = BitcoinRPCClient(config.rpc)
        rpc.connect()
        try:
            raw_hex = rpc.get_raw_transaction(txid)
        finally:
            rpc.close()
    """

    def __init__(self, config: RPCConfig) -> None:
        """Initialize the RPC client.

        Args:
            config: RPC configuration (url, credentials, wallet, timeout).
        """
        self._config = config
        self._client: httpx.Client | None = None
        self._ids = itertools.count(1)

    def connect(self) -> None:
        """Create the underlying HTTP client."""
        self._client = httpx.Client(
            base_url=self._config.url.rstrip("/"),
            auth=(self._config.user, self._config.password),
            headers={"Content-Type": "application/json"},
            timeout=self._config.timeout,
        )

    def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    @property
    def is_connected(self) -> bool:
        """Check if the HTTP client is active."""
        return self._client is not None

    @property
    def default_wallet(self) -> str:
        """Wallet name from configuration."""
        return self._config.wallet

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def call(self, method: str, *params: Any, wallet: str | None = None) -> Any:
        """Invoke a JSON-RPC method and return its ``result``.

        Args:
            method: RPC method name.
            params: Positional parameters.
            wallet: Route the call to this wallet's endpoint.

        Raises:
            RPCError: On transport failures, HTTP errors, or a JSON-RPC error
                object in the response.
        """
        client = self._ensure_connected()
        path = f"/wallet/{quote(wallet, safe='')}" if wallet else "/"
        request_id = next(self._ids)
        payload = {"jsonrpc": "1.0", "id": request_id, "method": method, "params": list(params)}

        logger.debug("RPC %s%s params=%s", method, f" [{wallet}]" if wallet else "", params)
        try:
            response = client.post(path, json=payload)
        except httpx.HTTPError as exc:
            msg = f"RPC {method} failed: {exc}"
            raise RPCError(msg) from exc

        if response.status_code == 401:
            msg = f"RPC {method} rejected: authentication failed"
            raise RPCError(msg)

        try:
            body = response.json(parse_float=Decimal)
        except ValueError:
            msg = f"RPC {method} returned HTTP {response.status_code} with a non-JSON body"
            raise RPCError(msg) from None

        error = body.get("error") if isinstance(body, dict) else None
        if error:
            msg = f"RPC {method} error {error.get('code')}: {error.get('message', '')}"
            raise RPCError(msg, rpc_code=error.get("code"))
        if response.status_code >= 400 or not isinstance(body, dict):
            msg = f"RPC {method} returned HTTP {response.status_code}"
            raise RPCError(msg)
        return body.get("result")

    def get_raw_transaction(self, txid: str) -> str:
        """Get the raw transaction hex for *txid*.

        Needs the transaction to be in the mempool, or ``-txindex`` on the node.
        """
        return str(self.call("getrawtransaction", txid, False))

    def get_wallet_transaction(self, txid: str, wallet: str | None = None) -> dict[str, Any]:
        """Get the wallet's view of *txid*: hex, fee, block height and hash.

        Args:
            txid: Transaction hash (hex).
            wallet: Wallet name; defaults to the configured wallet.
        """
        result: dict[str, Any] = self.call(
            "gettransaction", txid, wallet=wallet or self.default_wallet
        )
        return result

    def get_block_count(self) -> int:
        """Height of the most-work fully-validated chain."""
        return int(self.call("getblockcount"))

    def get_blockchain_info(self) -> dict[str, Any]:
        """Chain name, height and sync state of the node."""
        result: dict[str, Any] = self.call("getblockchaininfo")
        return result

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _ensure_connected(self) -> httpx.Client:
        if self._client is None:
            msg = "BitcoinRPCClient is not connected — call connect() first"
            raise RuntimeError(msg)
        return self._client
