"""
Node gateway implementations.

Available gateways:
- BitcoinCoreRPC: Bitcoin Core JSON-RPC over HTTP with basic auth
"""

from rtwallet.backends.base import NodeGateway
from rtwallet.backends.bitcoin_core import BitcoinCoreRPC

__all__ = [
    "BitcoinCoreRPC",
    "NodeGateway",
]
