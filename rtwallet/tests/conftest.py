"""
Test configuration for rtwallet tests.

FakeNode is an in-memory stand-in for a regtest bitcoind. It implements the
NodeGateway interface and simulates just enough of Bitcoin Core's wallet and
chain behaviour for the provisioning, payment and inspection flows: wallet
directory and load state, address generation, coinbase maturity, payments
with a fixed fee, and block confirmation.
"""

from __future__ import annotations

import hashlib
from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

import bech32
import pytest

from rtwallet.backends.base import NodeGateway
from rtwallet.errors import NodeRPCError
from rtwallet.wallet.amount import btc_to_sats, sats_to_btc

BLOCK_SUBSIDY = 50 * 100_000_000
FAKE_FEE = 1_410  # sats


def _hash_hex(data: str) -> str:
    return hashlib.sha256(data.encode()).hexdigest()


@dataclass
class FakeChain:
    chain: str = "regtest"
    hrp: str = "bcrt"
    fee: int | None = FAKE_FEE
    supports_decoded: bool = True
    change_first: bool = False
    # Without txindex getrawtransaction only finds confirmed txs given their block
    txindex: bool = True

    wallet_dir: list[str] = field(default_factory=list)
    loaded: list[str] = field(default_factory=list)
    blocks: list[dict[str, Any]] = field(default_factory=list)
    txs: dict[str, dict[str, Any]] = field(default_factory=dict)
    tx_heights: dict[str, int] = field(default_factory=dict)
    mempool: list[str] = field(default_factory=list)
    address_owner: dict[str, str] = field(default_factory=dict)
    address_script: dict[str, str] = field(default_factory=dict)
    wallet_txs: dict[str, dict[str, int | None]] = field(default_factory=dict)
    spent: set[tuple[str, int]] = field(default_factory=set)
    calls: list[tuple[str | None, str, list[Any]]] = field(default_factory=list)
    _counter: int = 0

    def __post_init__(self) -> None:
        self.blocks.append({"hash": _hash_hex("genesis"), "height": 0, "tx": []})

    @property
    def height(self) -> int:
        return len(self.blocks) - 1

    def next_id(self, tag: str) -> str:
        self._counter += 1
        return _hash_hex(f"{tag}/{self._counter}")

    def methods_called(self, method: str) -> list[list[Any]]:
        return [params for _, name, params in self.calls if name == method]


class FakeNode(NodeGateway):
    """In-memory regtest node implementing the NodeGateway interface."""

    def __init__(self, chain: FakeChain | None = None, wallet: str | None = None):
        self.chain = chain or FakeChain()
        self.wallet = wallet
        self.closed = False

    def for_wallet(self, name: str) -> FakeNode:
        return FakeNode(self.chain, wallet=name)

    def close(self) -> None:
        self.closed = True

    def call(self, method: str, params: list[Any] | None = None) -> Any:
        params = list(params or [])
        self.chain.calls.append((self.wallet, method, params))
        handler = getattr(self, f"_rpc_{method}", None)
        if handler is None:
            raise NodeRPCError(method, -32601, "Method not found")
        return handler(method, *params)

    # Helpers

    def _require_wallet(self, method: str) -> str:
        if self.wallet is None or self.wallet not in self.chain.loaded:
            raise NodeRPCError(method, -18, "Requested wallet does not exist or is not loaded")
        return self.wallet

    def _new_address(self, wallet: str) -> str:
        program = bytes.fromhex(self.chain.next_id(f"addr/{wallet}"))[:20]
        address = bech32.encode(self.chain.hrp, 0, program)
        self.chain.address_owner[address] = wallet
        self.chain.address_script[address] = "0014" + program.hex()
        return address

    def _output(self, address: str, value: int, n: int) -> dict[str, Any]:
        return {
            "value": sats_to_btc(value),
            "n": n,
            "scriptPubKey": {
                "hex": self.chain.address_script[address],
                "address": address,
                "type": "witness_v0_keyhash",
            },
        }

    def _record_wallet_tx(self, wallet: str, txid: str, fee: int | None) -> None:
        self.chain.wallet_txs.setdefault(wallet, {})[txid] = fee

    def _spendable(self, wallet: str) -> list[tuple[str, int, int]]:
        """(txid, n, value) of confirmed, unspent, mature outputs owned by wallet"""
        utxos = []
        for txid, tx in self.chain.txs.items():
            if txid not in self.chain.tx_heights:
                continue
            depth = self.chain.height - self.chain.tx_heights[txid] + 1
            is_coinbase = "coinbase" in tx["vin"][0]
            # Coinbase outputs need 100 blocks on top of the one creating them
            if is_coinbase and depth < 101:
                continue
            for out in tx["vout"]:
                address = out["scriptPubKey"]["address"]
                if self.chain.address_owner.get(address) != wallet:
                    continue
                if (txid, out["n"]) in self.chain.spent:
                    continue
                utxos.append((txid, out["n"], btc_to_sats(out["value"])))
        return utxos

    # Node RPCs

    def _rpc_getblockchaininfo(self, method: str) -> dict[str, Any]:
        return {"chain": self.chain.chain, "blocks": self.chain.height}

    def _rpc_listwalletdir(self, method: str) -> dict[str, Any]:
        return {"wallets": [{"name": name} for name in self.chain.wallet_dir]}

    def _rpc_listwallets(self, method: str) -> list[str]:
        return list(self.chain.loaded)

    def _rpc_createwallet(self, method: str, name: str) -> dict[str, Any]:
        if name in self.chain.wallet_dir:
            raise NodeRPCError(
                method,
                -4,
                f"Wallet file verification failed. Failed to create database path "
                f"'/regtest/wallets/{name}'. Database already exists.",
            )
        self.chain.wallet_dir.append(name)
        self.chain.loaded.append(name)
        return {"name": name, "warning": ""}

    def _rpc_loadwallet(self, method: str, name: str) -> dict[str, Any]:
        if name not in self.chain.wallet_dir:
            raise NodeRPCError(method, -18, f"Wallet file not found: {name}")
        if name in self.chain.loaded:
            raise NodeRPCError(method, -35, f'Wallet "{name}" is already loaded.')
        self.chain.loaded.append(name)
        return {"name": name, "warning": ""}

    def _rpc_generatetoaddress(self, method: str, count: int, address: str) -> list[str]:
        hashes = []
        for _ in range(count):
            height = self.chain.height + 1
            included, self.chain.mempool = self.chain.mempool, []
            fees = sum(
                self.chain.wallet_txs.get(self._sender(txid), {}).get(txid) or 0
                for txid in included
            )
            coinbase_id = self.chain.next_id("coinbase")
            self.chain.txs[coinbase_id] = {
                "txid": coinbase_id,
                "vin": [{"coinbase": f"{height:04x}", "sequence": 4294967295}],
                "vout": [self._output(address, BLOCK_SUBSIDY - fees, 0)],
            }
            owner = self.chain.address_owner.get(address)
            if owner is not None:
                self._record_wallet_tx(owner, coinbase_id, None)

            block_hash = self.chain.next_id("block")
            for txid in [coinbase_id, *included]:
                self.chain.tx_heights[txid] = height
            self.chain.blocks.append(
                {"hash": block_hash, "height": height, "tx": [coinbase_id, *included]}
            )
            hashes.append(block_hash)
        return hashes

    def _sender(self, txid: str) -> str | None:
        for wallet, txs in self.chain.wallet_txs.items():
            if txs.get(txid) is not None:
                return wallet
        return None

    def _rpc_getrawtransaction(
        self, method: str, txid: str, verbose: bool = False, block_hash: str | None = None
    ) -> Any:
        if txid not in self.chain.txs:
            raise NodeRPCError(method, -5, "No such mempool or blockchain transaction")
        if block_hash is not None:
            height = self.chain.tx_heights.get(txid)
            if height is None or self.chain.blocks[height]["hash"] != block_hash:
                raise NodeRPCError(method, -5, "No such transaction found in the provided block")
        elif not self.chain.txindex and txid not in self.chain.mempool:
            raise NodeRPCError(
                method,
                -5,
                "No such mempool transaction. Use -txindex or provide a block hash to enable "
                "blockchain transaction queries. Use gettransaction for wallet transactions.",
            )
        return dict(self.chain.txs[txid])

    def _rpc_getblock(self, method: str, block_hash: str, verbosity: int = 1) -> dict:
        for block in self.chain.blocks:
            if block["hash"] == block_hash:
                return dict(block)
        raise NodeRPCError(method, -5, "Block not found")

    # Wallet RPCs

    def _rpc_getnewaddress(self, method: str, label: str = "") -> str:
        return self._new_address(self._require_wallet(method))

    def _rpc_sendtoaddress(self, method: str, address: str, amount: str) -> str:
        wallet = self._require_wallet(method)
        if address not in self.chain.address_script:
            raise NodeRPCError(method, -5, "Invalid Bitcoin address")
        value = btc_to_sats(Decimal(str(amount)))
        fee = self.chain.fee if self.chain.fee is not None else FAKE_FEE

        utxo = next((u for u in self._spendable(wallet) if u[2] >= value + fee), None)
        if utxo is None:
            raise NodeRPCError(method, -6, "Insufficient funds")
        prev_txid, prev_n, prev_value = utxo

        change_address = self._new_address(wallet)
        pay = (address, value)
        change = (change_address, prev_value - value - fee)
        ordered = [change, pay] if self.chain.change_first else [pay, change]

        txid = self.chain.next_id("tx")
        self.chain.txs[txid] = {
            "txid": txid,
            "vin": [{"txid": prev_txid, "vout": prev_n, "sequence": 4294967293}],
            "vout": [self._output(addr, val, n) for n, (addr, val) in enumerate(ordered)],
        }
        self.chain.spent.add((prev_txid, prev_n))
        self.chain.mempool.append(txid)

        self._record_wallet_tx(wallet, txid, -fee if self.chain.fee is not None else None)
        recipient_wallet = self.chain.address_owner.get(address)
        if recipient_wallet:
            self.chain.wallet_txs.setdefault(recipient_wallet, {}).setdefault(txid, None)
        return txid

    def _rpc_gettransaction(
        self, method: str, txid: str, include_watchonly: bool = True, verbose: bool = False
    ) -> dict[str, Any]:
        wallet = self._require_wallet(method)
        if txid not in self.chain.wallet_txs.get(wallet, {}):
            raise NodeRPCError(method, -5, "Invalid or non-wallet transaction id")

        result: dict[str, Any] = {"txid": txid, "confirmations": 0}
        if txid in self.chain.tx_heights:
            height = self.chain.tx_heights[txid]
            result["confirmations"] = self.chain.height - height + 1
            result["blockhash"] = self.chain.blocks[height]["hash"]
            result["blockheight"] = height

        fee = self.chain.wallet_txs[wallet][txid]
        if fee is not None:
            result["fee"] = sats_to_btc(fee)
        if verbose and self.chain.supports_decoded:
            result["decoded"] = dict(self.chain.txs[txid])
        return result


@pytest.fixture
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def node(chain: FakeChain) -> FakeNode:
    """Node-scoped gateway over a fresh regtest chain containing only genesis."""
    return FakeNode(chain)


@pytest.fixture
def make_node() -> Callable[..., FakeNode]:
    """Factory for nodes with non-default chain behaviour (e.g. make_node(hrp="tb"))."""

    def _make(**chain_options: Any) -> FakeNode:
        return FakeNode(FakeChain(**chain_options))

    return _make
