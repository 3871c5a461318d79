"""
Fund a wallet by mining and pay from it.
"""

from __future__ import annotations

from loguru import logger

from rtwallet.constants import (
    BLOCKS_TO_MATURE_COINBASE,
    CONFIRMATION_BLOCKS,
    RPC_WALLET_INSUFFICIENT_FUNDS,
)
from rtwallet.errors import InsufficientFundsError, NodeRPCError
from rtwallet.models import NetworkType
from rtwallet.wallet.address import require_network
from rtwallet.wallet.amount import format_btc
from rtwallet.wallet.models import PaymentResult, WalletHandle


class PaymentExecutor:
    """Mines spendable funds to one wallet and sends a single payment to another."""

    def __init__(self, network: NetworkType = NetworkType.REGTEST):
        self.network = network

    def new_address(self, wallet: WalletHandle, label: str = "") -> str:
        """Fresh receiving address of `wallet`, validated against the configured network"""
        return require_network(wallet.gateway.get_new_address(label), self.network)

    def fund_and_pay(
        self, funder: WalletHandle, recipient: WalletHandle, amount: int
    ) -> PaymentResult:
        """
        Mine a mature coinbase to `funder`, pay `amount` sats to a fresh
        `recipient` address and mine one block to confirm it.

        Raises:
            AddressValidationError: A wallet returned an address of another network
            InsufficientFundsError: The funder cannot cover amount plus fee
        """
        mining_address = self.new_address(funder, "Mining Reward")

        funder.gateway.generate_to_address(BLOCKS_TO_MATURE_COINBASE, mining_address)
        logger.info(
            f"Mined {BLOCKS_TO_MATURE_COINBASE} blocks to {funder.name} so one coinbase matures"
        )

        recipient_address = self.new_address(recipient, "Received")

        try:
            txid = funder.gateway.send_to_address(recipient_address, amount)
        except NodeRPCError as e:
            if e.code == RPC_WALLET_INSUFFICIENT_FUNDS:
                raise InsufficientFundsError(
                    f"Wallet '{funder.name}' cannot pay {format_btc(amount)} BTC: {e.message}"
                ) from e
            raise
        logger.info(f"Sent {format_btc(amount)} BTC from {funder.name} to {recipient.name}: {txid}")

        funder.gateway.generate_to_address(CONFIRMATION_BLOCKS, mining_address)
        logger.debug(f"Mined {CONFIRMATION_BLOCKS} block to confirm {txid}")

        return PaymentResult(
            txid=txid,
            mining_address=mining_address,
            recipient_address=recipient_address,
            amount=amount,
        )
