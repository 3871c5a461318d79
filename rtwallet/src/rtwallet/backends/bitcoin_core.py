"""
Bitcoin Core JSON-RPC gateway.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any
from urllib.parse import quote

import httpx
from loguru import logger

from rtwallet.backends.base import NodeGateway
from rtwallet.errors import NodeRPCError, TransportError

# Timeout for regular RPC calls (seconds)
DEFAULT_RPC_TIMEOUT = 30.0


class BitcoinCoreRPC(NodeGateway):
    """
    Node gateway over Bitcoin Core's HTTP JSON-RPC interface.

    Wallet-scoped gateways created with for_wallet() share the parent's
    httpx client, so only the root gateway needs to be closed.
    """

    def __init__(
        self,
        rpc_url: str = "http://127.0.0.1:18443",
        rpc_user: str = "rpcuser",
        rpc_password: str = "rpcpassword",
        timeout: float = DEFAULT_RPC_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
        client: httpx.Client | None = None,
        wallet: str | None = None,
    ):
        self.rpc_url = rpc_url.rstrip("/")
        self.rpc_user = rpc_user
        self.rpc_password = rpc_password
        self.timeout = timeout
        self.wallet = wallet
        self._owns_client = client is None
        self.client = client or httpx.Client(
            timeout=timeout, auth=(rpc_user, rpc_password), transport=transport
        )
        self._request_id = 0

    @property
    def endpoint(self) -> str:
        """URL the calls are posted to"""
        if self.wallet is None:
            return self.rpc_url
        return f"{self.rpc_url}/wallet/{quote(self.wallet, safe='')}"

    def for_wallet(self, name: str) -> BitcoinCoreRPC:
        return BitcoinCoreRPC(
            rpc_url=self.rpc_url,
            rpc_user=self.rpc_user,
            rpc_password=self.rpc_password,
            timeout=self.timeout,
            client=self.client,
            wallet=name,
        )

    def call(self, method: str, params: list[Any] | None = None) -> Any:
        """
        Make an RPC call to Bitcoin Core.

        Floating point numbers in the response are parsed as Decimal so that
        BTC amounts keep their exact value.

        Raises:
            NodeRPCError: The node returned an error object
            TransportError: Connection, timeout, authentication or HTTP errors
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "1.0",
            "id": self._request_id,
            "method": method,
            "params": params or [],
        }
        logger.debug(f"RPC {method} (wallet={self.wallet})")

        try:
            response = self.client.post(self.endpoint, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"RPC call failed: {method} - {e}")
            raise TransportError(f"{method}: {e}") from e

        if response.status_code == httpx.codes.UNAUTHORIZED:
            raise TransportError(f"{method}: authentication rejected by node")

        # Older nodes report RPC errors with HTTP 500 and a JSON body, so the
        # body is inspected before the status code.
        try:
            data = response.json(parse_float=Decimal)
        except ValueError as e:
            raise TransportError(
                f"{method}: non-JSON response (HTTP {response.status_code})"
            ) from e

        error = data.get("error") if isinstance(data, dict) else None
        if error:
            raise NodeRPCError(
                method, error.get("code", 0), error.get("message", str(error))
            )

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(f"{method}: {e}") from e

        return data.get("result")

    def close(self) -> None:
        if self._owns_client:
            self.client.close()
