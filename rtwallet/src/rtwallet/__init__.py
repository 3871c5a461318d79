"""
rtwallet - Regtest wallet provisioning, payment and transaction inspection.

Provisions named Bitcoin Core wallets, mines spendable funds, sends a single
payment and reconstructs its inputs, outputs, fee and confirming block from
the node's RPC interface.
"""

__version__ = "0.1.0"

from rtwallet.errors import (
    AddressValidationError,
    InsufficientFundsError,
    NodeRPCError,
    PreconditionError,
    ReconstructionError,
    RtWalletError,
    TransportError,
)
from rtwallet.models import NetworkType

__all__ = [
    "AddressValidationError",
    "InsufficientFundsError",
    "NetworkType",
    "NodeRPCError",
    "PreconditionError",
    "ReconstructionError",
    "RtWalletError",
    "TransportError",
]
