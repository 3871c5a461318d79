"""
Idempotent wallet provisioning.
"""

from __future__ import annotations

from loguru import logger

from rtwallet.backends.base import NodeGateway
from rtwallet.constants import RPC_WALLET_ALREADY_LOADED, RPC_WALLET_ERROR, RPC_WALLET_NOT_FOUND
from rtwallet.errors import NodeRPCError, PreconditionError
from rtwallet.wallet.models import WalletHandle


# Codes Core uses when a wallet file cannot be created or opened as requested
WALLET_FILE_ERRORS = (RPC_WALLET_ERROR, RPC_WALLET_NOT_FOUND)


class WalletProvisioner:
    """
    Ensures named wallets exist on the node and are loaded.

    Safe to call repeatedly for the same name: an existing wallet is never
    re-created and a loaded wallet is never re-loaded. "Already exists" and
    "already loaded" answers from a concurrent caller count as success.
    """

    def __init__(self, gateway: NodeGateway):
        self.gateway = gateway

    def ensure_wallet(self, name: str) -> WalletHandle:
        if name not in self.gateway.list_wallet_dir():
            try:
                self.gateway.create_wallet(name)
                logger.info(f"Created wallet '{name}'")
            except NodeRPCError as e:
                if "already exists" in e.message:
                    logger.debug(f"Wallet '{name}' was created concurrently: {e.message}")
                elif e.code in WALLET_FILE_ERRORS:
                    raise PreconditionError(
                        f"Wallet '{name}' cannot be created: {e.message}"
                    ) from e
                else:
                    raise

        # createwallet also loads the wallet, so this is normally a no-op after creation
        if name not in self.gateway.list_wallets():
            try:
                self.gateway.load_wallet(name)
                logger.info(f"Loaded wallet '{name}'")
            except NodeRPCError as e:
                if e.code == RPC_WALLET_ALREADY_LOADED or "already loaded" in e.message:
                    logger.debug(f"Wallet '{name}' was loaded concurrently: {e.message}")
                elif e.code in WALLET_FILE_ERRORS:
                    # e.g. a wallet file of an incompatible type or format
                    raise PreconditionError(
                        f"Wallet '{name}' cannot be loaded: {e.message}"
                    ) from e
                else:
                    raise
        else:
            logger.debug(f"Wallet '{name}' already loaded")

        return WalletHandle(name=name, gateway=self.gateway.for_wallet(name))
