"""
BTC amount conversions.

Amounts are integer satoshis everywhere inside rtwallet. Bitcoin Core speaks
BTC with up to 8 decimal places, parsed as Decimal on the way in.
"""

from __future__ import annotations

from decimal import Decimal

from rtwallet.constants import SATS_PER_BTC


def btc_to_sats(value: Decimal | int | str) -> int:
    """Convert a BTC amount to satoshis, rejecting sub-satoshi precision"""
    btc = Decimal(str(value))
    sats = btc * SATS_PER_BTC
    if sats != sats.to_integral_value():
        raise ValueError(f"Amount has more than 8 decimal places: {value}")
    return int(sats)


def sats_to_btc(sats: int) -> Decimal:
    return Decimal(sats) / SATS_PER_BTC


def format_btc(sats: int) -> str:
    """
    Human-facing BTC rendering without trailing zeros.

    5_000_000_000 -> "50", 2_999_998_590 -> "29.9999859", 0 -> "0"
    """
    btc = sats_to_btc(sats).normalize()
    return format(btc, "f")
