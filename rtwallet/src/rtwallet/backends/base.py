"""
Base node gateway interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from rtwallet.wallet.amount import format_btc


class NodeGateway(ABC):
    """
    Blocking request/response access to a Bitcoin Core node.

    Implementations only provide the raw `call` and wallet scoping. The typed
    helpers below are shared so that test doubles get the exact same RPC
    parameter shapes as the real client.

    A gateway is either node-scoped (wallet is None) or scoped to a single
    loaded wallet. Wallet RPCs must go through a wallet-scoped gateway since
    the node cannot pick a wallet when several are loaded.
    """

    wallet: str | None = None

    @abstractmethod
    def call(self, method: str, params: list[Any] | None = None) -> Any:
        """Issue one RPC and return its result"""

    @abstractmethod
    def for_wallet(self, name: str) -> NodeGateway:
        """Return a gateway whose calls are scoped to wallet `name`"""

    def close(self) -> None:
        """Release transport resources"""
        pass

    # Node-level calls

    def get_blockchain_info(self) -> dict[str, Any]:
        return self.call("getblockchaininfo")

    def list_wallet_dir(self) -> list[str]:
        """Names of all wallets in the node's wallet directory"""
        result = self.call("listwalletdir")
        return [w["name"] for w in result.get("wallets", [])]

    def list_wallets(self) -> list[str]:
        """Names of currently loaded wallets"""
        return list(self.call("listwallets"))

    def create_wallet(self, name: str) -> dict[str, Any]:
        return self.call("createwallet", [name])

    def load_wallet(self, name: str) -> dict[str, Any]:
        return self.call("loadwallet", [name])

    def get_raw_transaction(self, txid: str, block_hash: str | None = None) -> dict[str, Any]:
        """
        Decoded transaction (getrawtransaction verbose).

        Without -txindex the node only finds mempool transactions unless
        `block_hash` names the block containing the transaction.
        """
        params: list[Any] = [txid, True]
        if block_hash is not None:
            params.append(block_hash)
        return self.call("getrawtransaction", params)

    def get_block_info(self, block_hash: str) -> dict[str, Any]:
        """Block metadata without transaction bodies (getblock verbosity 1)"""
        return self.call("getblock", [block_hash, 1])

    def generate_to_address(self, count: int, address: str) -> list[str]:
        """Mine `count` blocks paying to `address`, returns their hashes"""
        return list(self.call("generatetoaddress", [count, address]))

    # Wallet-scoped calls

    def get_new_address(self, label: str = "") -> str:
        return self.call("getnewaddress", [label])

    def send_to_address(self, address: str, amount: int) -> str:
        """Pay `amount` sats to `address`, letting the wallet pick inputs and fee"""
        # Decimal string, not float, so the amount stays exact
        return self.call("sendtoaddress", [address, format_btc(amount)])

    def get_transaction(
        self, txid: str, include_watchonly: bool = True, verbose: bool = True
    ) -> dict[str, Any]:
        """Wallet view of a transaction, including fee and confirming block"""
        return self.call("gettransaction", [txid, include_watchonly, verbose])
