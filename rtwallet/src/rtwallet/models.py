"""
Shared enums.
"""

from __future__ import annotations

from enum import Enum


class NetworkType(str, Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"
    SIGNET = "signet"
    REGTEST = "regtest"

    @property
    def chain_name(self) -> str:
        """Name reported by getblockchaininfo for this network."""
        return {
            NetworkType.MAINNET: "main",
            NetworkType.TESTNET: "test",
            NetworkType.SIGNET: "signet",
            NetworkType.REGTEST: "regtest",
        }[self]
