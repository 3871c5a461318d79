"""
Wallet data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from rtwallet.backends.base import NodeGateway


@dataclass(frozen=True)
class WalletHandle:
    """Reference to a created and loaded wallet, with a gateway scoped to it"""

    name: str
    gateway: NodeGateway = field(compare=False, repr=False)


@dataclass(frozen=True)
class TxOutputInfo:
    """Transaction output with its reconstructed address"""

    address: str
    value: int  # sats


@dataclass(frozen=True)
class PaymentResult:
    """Result of funding a wallet and paying from it"""

    txid: str
    mining_address: str  # Funder address the coinbase and confirmation blocks pay to
    recipient_address: str
    amount: int  # sats


@dataclass(frozen=True)
class TransactionRecord:
    """Reconstructed view of a confirmed payment"""

    txid: str
    input_address: str
    input_amount: int
    recipient_output: TxOutputInfo | None
    change_output: TxOutputInfo | None
    fee: int  # Non-negative magnitude in sats
    block_height: int
    block_hash: str
