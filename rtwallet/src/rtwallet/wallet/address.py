"""
Bitcoin address <-> scriptPubKey conversion.

Supports:
- P2PKH / P2SH (base58check)
- P2WPKH / P2WSH (bech32, witness v0)

Witness v1+ programs (P2TR) need the bech32m checksum, which the bech32
package does not implement. They are rejected rather than encoded with the
v0 checksum.
"""

from __future__ import annotations

from dataclasses import dataclass

import base58
import bech32

from rtwallet.errors import AddressValidationError, ReconstructionError
from rtwallet.models import NetworkType

OP_0 = 0x00
OP_1 = 0x51
OP_16 = 0x60
OP_DUP = 0x76
OP_HASH160 = 0xA9
OP_EQUAL = 0x87
OP_EQUALVERIFY = 0x88
OP_CHECKSIG = 0xAC


@dataclass(frozen=True)
class NetworkParams:
    hrp: str
    p2pkh_version: int
    p2sh_version: int


NETWORK_PARAMS: dict[NetworkType, NetworkParams] = {
    NetworkType.MAINNET: NetworkParams(hrp="bc", p2pkh_version=0x00, p2sh_version=0x05),
    NetworkType.TESTNET: NetworkParams(hrp="tb", p2pkh_version=0x6F, p2sh_version=0xC4),
    NetworkType.SIGNET: NetworkParams(hrp="tb", p2pkh_version=0x6F, p2sh_version=0xC4),
    NetworkType.REGTEST: NetworkParams(hrp="bcrt", p2pkh_version=0x6F, p2sh_version=0xC4),
}


def get_bech32_hrp(network: NetworkType) -> str:
    """Get bech32 human-readable part for network."""
    return NETWORK_PARAMS[network].hrp


def _witness_version(opcode: int) -> int | None:
    if opcode == OP_0:
        return 0
    if OP_1 <= opcode <= OP_16:
        return opcode - OP_1 + 1
    return None


def script_to_address(scriptpubkey: bytes | str, network: NetworkType) -> str:
    """
    Reconstruct the address paying to `scriptpubkey` on `network`.

    Args:
        scriptpubkey: Raw script bytes or its hex encoding
        network: Network the address is displayed for

    Raises:
        ReconstructionError: Script is not a standard address-bearing script
    """
    if isinstance(scriptpubkey, str):
        try:
            script = bytes.fromhex(scriptpubkey)
        except ValueError as e:
            raise ReconstructionError(f"scriptPubKey is not valid hex: {scriptpubkey}") from e
    else:
        script = scriptpubkey

    params = NETWORK_PARAMS[network]

    # P2PKH: OP_DUP OP_HASH160 <20 bytes> OP_EQUALVERIFY OP_CHECKSIG
    if (
        len(script) == 25
        and script[0] == OP_DUP
        and script[1] == OP_HASH160
        and script[2] == 0x14
        and script[23] == OP_EQUALVERIFY
        and script[24] == OP_CHECKSIG
    ):
        return base58.b58encode_check(bytes([params.p2pkh_version]) + script[3:23]).decode()

    # P2SH: OP_HASH160 <20 bytes> OP_EQUAL
    if len(script) == 23 and script[0] == OP_HASH160 and script[1] == 0x14 and script[22] == OP_EQUAL:
        return base58.b58encode_check(bytes([params.p2sh_version]) + script[2:22]).decode()

    # Witness programs: <version opcode> <push 2-40 bytes>
    if 4 <= len(script) <= 42 and script[1] == len(script) - 2:
        witver = _witness_version(script[0])
        witprog = script[2:]
        if witver is not None and witver > 0:
            raise ReconstructionError(
                f"Witness v{witver} scriptPubKey {script.hex()} needs a bech32m address, "
                "which is not supported"
            )
        # P2WPKH (20 bytes) or P2WSH (32 bytes)
        if witver == 0 and len(witprog) in (20, 32):
            address = bech32.encode(params.hrp, 0, witprog)
            if address is not None:
                return address

    raise ReconstructionError(f"No address for scriptPubKey {script.hex()} on {network.value}")


def address_to_scriptpubkey(address: str, network: NetworkType) -> bytes:
    """
    Decode an address into its scriptPubKey, requiring it to belong to `network`.

    Raises:
        AddressValidationError: Malformed address or address of another network
    """
    params = NETWORK_PARAMS[network]
    lowered = address.lower()

    known_hrps = {p.hrp for p in NETWORK_PARAMS.values()}
    # "bcrt1..." also starts with "bc"; match on the full "<hrp>1" prefix, longest first
    prefix_hrp = next(
        (hrp for hrp in sorted(known_hrps, key=len, reverse=True) if lowered.startswith(hrp + "1")),
        None,
    )

    if prefix_hrp is not None:
        if prefix_hrp != params.hrp:
            raise AddressValidationError(
                f"Address {address} is for hrp '{prefix_hrp}', expected '{params.hrp}' "
                f"({network.value})"
            )
        # First data character after the separator is the witness version ("q" = v0)
        version_char = lowered[len(prefix_hrp) + 1 : len(prefix_hrp) + 2]
        if version_char and version_char in bech32.CHARSET and version_char != "q":
            raise AddressValidationError(
                f"Address {address} is witness v{bech32.CHARSET.index(version_char)} "
                "(bech32m), only witness v0 addresses are supported"
            )
        witver, witprog = bech32.decode(params.hrp, address)
        if witver is None or witprog is None:
            raise AddressValidationError(f"Invalid bech32 address: {address}")
        return bytes([OP_0, len(witprog)]) + bytes(witprog)

    try:
        decoded = base58.b58decode_check(address)
    except ValueError as e:
        raise AddressValidationError(f"Invalid address: {address}") from e

    if len(decoded) != 21:
        raise AddressValidationError(f"Invalid base58 payload length for {address}")

    version, payload = decoded[0], decoded[1:]
    if version == params.p2pkh_version:
        return bytes([OP_DUP, OP_HASH160, 0x14]) + payload + bytes([OP_EQUALVERIFY, OP_CHECKSIG])
    if version == params.p2sh_version:
        return bytes([OP_HASH160, 0x14]) + payload + bytes([OP_EQUAL])

    raise AddressValidationError(
        f"Address {address} has version byte {version:#04x}, not valid on {network.value}"
    )


@dataclass(frozen=True)
class AddressCheck:
    """Outcome of validating an address against a network"""

    address: str
    valid: bool
    scriptpubkey: bytes | None = None
    error: str | None = None


def check_address(address: str, network: NetworkType) -> AddressCheck:
    """Validate `address` for `network` without raising."""
    try:
        script = address_to_scriptpubkey(address, network)
    except AddressValidationError as e:
        return AddressCheck(address=address, valid=False, error=str(e))
    return AddressCheck(address=address, valid=True, scriptpubkey=script)


def require_network(address: str, network: NetworkType) -> str:
    """Return `address` unchanged if it is valid on `network`, raise otherwise."""
    check = check_address(address, network)
    if not check.valid:
        raise AddressValidationError(check.error)
    return address
