"""
Bitcoin consensus and unit constants.
"""

from __future__ import annotations

# Number of satoshis in 1 BTC
SATS_PER_BTC = 100_000_000

# Coinbase maturity: a block reward output can only be spent once it has
# 100 confirmations. This is a consensus rule of Bitcoin (including regtest),
# not a tunable of this project.
COINBASE_MATURITY = 100

# Blocks to mine to a fresh address so that exactly one coinbase output is
# mature: the first block creates the reward, the next 100 bury it.
BLOCKS_TO_MATURE_COINBASE = COINBASE_MATURITY + 1

# Blocks mined on top of a payment to give it its first confirmation
CONFIRMATION_BLOCKS = 1

# Bitcoin Core RPC error codes
RPC_WALLET_ERROR = -4
RPC_INVALID_ADDRESS_OR_KEY = -5
RPC_WALLET_INSUFFICIENT_FUNDS = -6
RPC_WALLET_NOT_FOUND = -18
RPC_WALLET_ALREADY_LOADED = -35
