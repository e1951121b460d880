"""Address encoding — Base58Check, Bech32/Bech32m, script <-> address.

Bitcoin address operations:
- Network parameter sets (version bytes, Bech32 human-readable part)
- Base58Check encoding for P2PKH / P2SH
- Bech32 (BIP173) and Bech32m (BIP350) encoding for witness programs
- Decoding an output's locking script into its address and back
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from tx_provenance.btc.script import (
    ADDRESS_TYPES,
    ScriptType,
    detect_script_type,
    extract_witness_program,
    p2pkh_lock_script,
    p2sh_lock_script,
    witness_lock_script,
)
from tx_provenance.errors.provenance_errors import AddressDecodeFailure
from tx_provenance.utils.crypto import sha256d

# ---------------------------------------------------------------------------
# Network parameters
# ---------------------------------------------------------------------------


class Network(enum.StrEnum):
    """Bitcoin networks an address can belong to."""

    MAINNET = "mainnet"
    TESTNET = "testnet"
    SIGNET = "signet"
    REGTEST = "regtest"


@dataclass(frozen=True)
class NetworkParams:
    """Address encoding parameters of one network."""

    p2pkh_version: int
    p2sh_version: int
    bech32_hrp: str


NETWORK_PARAMS: dict[Network, NetworkParams] = {
    Network.MAINNET: NetworkParams(p2pkh_version=0x00, p2sh_version=0x05, bech32_hrp="bc"),
    Network.TESTNET: NetworkParams(p2pkh_version=0x6F, p2sh_version=0xC4, bech32_hrp="tb"),
    Network.SIGNET: NetworkParams(p2pkh_version=0x6F, p2sh_version=0xC4, bech32_hrp="tb"),
    Network.REGTEST: NetworkParams(p2pkh_version=0x6F, p2sh_version=0xC4, bech32_hrp="bcrt"),
}


def network_params(network: str) -> NetworkParams:
    """Look up the parameter set for *network* (enum member or its value)."""
    try:
        return NETWORK_PARAMS[Network(network)]
    except ValueError:
        msg = f"Unknown network: {network!r}"
        raise ValueError(msg) from None


# ---------------------------------------------------------------------------
# Base58Check encoding / decoding
# ---------------------------------------------------------------------------

_B58_ALPHABET = b"123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"


def base58_encode(payload: bytes) -> str:
    """Encode raw bytes to Base58 (no checksum)."""
    n = int.from_bytes(payload, "big")
    result: list[int] = []
    while n > 0:
        n, remainder = divmod(n, 58)
        result.append(_B58_ALPHABET[remainder])
    # Preserve leading zero bytes
    for byte in payload:
        if byte == 0:
            result.append(_B58_ALPHABET[0])
        else:
            break
    return bytes(reversed(result)).decode("ascii")


def base58_decode(s: str) -> bytes:
    """Decode Base58 string to raw bytes (no checksum).

    Raises:
        ValueError: If *s* contains a character outside the Base58 alphabet.
    """
    n = 0
    for char in s:
        index = _B58_ALPHABET.find(char.encode("ascii", errors="replace"))
        if index < 0:
            msg = f"Invalid Base58 character: {char!r}"
            raise ValueError(msg)
        n = n * 58 + index
    result = n.to_bytes((n.bit_length() + 7) // 8, "big") if n > 0 else b""
    # Preserve leading '1' chars as 0x00 bytes
    pad_count = len(s) - len(s.lstrip("1"))
    return b"\x00" * pad_count + result


def base58check_encode(payload: bytes) -> str:
    """Encode bytes with a 4-byte SHA256d checksum (Base58Check)."""
    checksum = sha256d(payload)[:4]
    return base58_encode(payload + checksum)


def base58check_decode(s: str) -> bytes:
    """Decode a Base58Check string, verifying the checksum.

    Raises:
        ValueError: If the string is malformed or the checksum is invalid.
    """
    raw = base58_decode(s)
    if len(raw) < 4:
        msg = "Base58Check string too short"
        raise ValueError(msg)
    payload, checksum = raw[:-4], raw[-4:]
    if checksum != sha256d(payload)[:4]:
        msg = "Base58Check checksum mismatch"
        raise ValueError(msg)
    return payload


# ---------------------------------------------------------------------------
# Bech32 / Bech32m
# ---------------------------------------------------------------------------

_BECH32_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
_BECH32_GENERATOR = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)
_BECH32_CONST = 1
_BECH32M_CONST = 0x2BC830A3
_BECH32_MAX_LENGTH = 90


def _bech32_polymod(values: list[int]) -> int:
    chk = 1
    for value in values:
        top = chk >> 25
        chk = (chk & 0x1FFFFFF) << 5 ^ value
        for i, gen in enumerate(_BECH32_GENERATOR):
            if (top >> i) & 1:
                chk ^= gen
    return chk


def _bech32_hrp_expand(hrp: str) -> list[int]:
    return [ord(c) >> 5 for c in hrp] + [0] + [ord(c) & 31 for c in hrp]


def _convert_bits(
    data: bytes | list[int], from_bits: int, to_bits: int, *, pad: bool
) -> list[int]:
    """Regroup a sequence of *from_bits*-wide integers into *to_bits*-wide ones.

    Raises:
        ValueError: On out-of-range input or non-zero padding when *pad* is False.
    """
    acc = 0
    bits = 0
    result: list[int] = []
    max_value = (1 << to_bits) - 1
    max_acc = (1 << (from_bits + to_bits - 1)) - 1
    for value in data:
        if value < 0 or value >> from_bits:
            msg = f"Value out of range for {from_bits}-bit group: {value}"
            raise ValueError(msg)
        acc = ((acc << from_bits) | value) & max_acc
        bits += from_bits
        while bits >= to_bits:
            bits -= to_bits
            result.append((acc >> bits) & max_value)
    if pad:
        if bits:
            result.append((acc << (to_bits - bits)) & max_value)
    elif bits >= from_bits or ((acc << (to_bits - bits)) & max_value):
        msg = "Invalid padding in bech32 data"
        raise ValueError(msg)
    return result


def segwit_encode(hrp: str, version: int, program: bytes) -> str:
    """Encode a witness program as a Bech32 (v0) or Bech32m (v1+) address."""
    data = [version] + _convert_bits(program, 8, 5, pad=True)
    const = _BECH32_CONST if version == 0 else _BECH32M_CONST
    polymod = _bech32_polymod(_bech32_hrp_expand(hrp) + data + [0] * 6) ^ const
    checksum = [(polymod >> (5 * (5 - i))) & 31 for i in range(6)]
    return hrp + "1" + "".join(_BECH32_CHARSET[d] for d in data + checksum)


def segwit_decode(hrp: str, address: str) -> tuple[int, bytes]:
    """Decode a segwit address into ``(version, program)``.

    Raises:
        ValueError: If the string is not a valid witness address for *hrp*.
    """
    if any(ord(c) < 33 or ord(c) > 126 for c in address):
        msg = "Invalid character in bech32 string"
        raise ValueError(msg)
    if address.lower() != address and address.upper() != address:
        msg = "Mixed-case bech32 string"
        raise ValueError(msg)
    if len(address) > _BECH32_MAX_LENGTH:
        msg = "Bech32 string too long"
        raise ValueError(msg)
    address = address.lower()
    sep = address.rfind("1")
    if sep < 1 or sep + 7 > len(address):
        msg = "Bech32 separator misplaced"
        raise ValueError(msg)
    if address[:sep] != hrp:
        msg = f"Bech32 prefix {address[:sep]!r} does not match {hrp!r}"
        raise ValueError(msg)
    try:
        data = [_BECH32_CHARSET.index(c) for c in address[sep + 1 :]]
    except ValueError:
        msg = "Invalid bech32 data character"
        raise ValueError(msg) from None

    const = _bech32_polymod(_bech32_hrp_expand(hrp) + data)
    if const not in (_BECH32_CONST, _BECH32M_CONST):
        msg = "Bech32 checksum mismatch"
        raise ValueError(msg)

    if len(data) < 7:
        msg = "Bech32 data part is empty"
        raise ValueError(msg)
    version = data[0]
    program = bytes(_convert_bits(data[1:-6], 5, 8, pad=False))
    if version > 16:
        msg = f"Invalid witness version: {version}"
        raise ValueError(msg)
    if not 2 <= len(program) <= 40:
        msg = f"Invalid witness program length: {len(program)}"
        raise ValueError(msg)
    if version == 0 and len(program) not in (20, 32):
        msg = f"Invalid v0 witness program length: {len(program)}"
        raise ValueError(msg)
    expected = _BECH32_CONST if version == 0 else _BECH32M_CONST
    if const != expected:
        msg = "Wrong checksum variant for witness version"
        raise ValueError(msg)
    return version, program


# ---------------------------------------------------------------------------
# Script <-> address
# ---------------------------------------------------------------------------


def script_to_address(script: bytes, network: str = Network.REGTEST) -> str:
    """Decode an output's locking script into its address on *network*.

    Args:
        script: The output's locking script (scriptPubKey).
        network: Network whose encoding parameters apply.

    Returns:
        The Base58Check or Bech32/Bech32m address string.

    Raises:
        AddressDecodeFailure: If the script is not a standard address pattern.
    """
    params = network_params(network)
    script_type = detect_script_type(script)

    if script_type == ScriptType.P2PKH:
        return base58check_encode(bytes([params.p2pkh_version]) + script[3:23])
    if script_type == ScriptType.P2SH:
        return base58check_encode(bytes([params.p2sh_version]) + script[2:22])
    if script_type in ADDRESS_TYPES:
        witness = extract_witness_program(script)
        if witness is not None:
            version, program = witness
            return segwit_encode(params.bech32_hrp, version, program)

    msg = f"Script has no address form ({script_type.value}): {script.hex() or '<empty>'}"
    raise AddressDecodeFailure(msg)


def address_to_script(address: str, network: str = Network.REGTEST) -> bytes:
    """Parse an address on *network* into the locking script it stands for.

    Raises:
        AddressDecodeFailure: If the address is malformed or belongs to another
            network.
    """
    params = network_params(network)

    if address.lower().startswith(params.bech32_hrp + "1"):
        try:
            version, program = segwit_decode(params.bech32_hrp, address)
        except ValueError as exc:
            msg = f"Invalid segwit address {address!r}: {exc}"
            raise AddressDecodeFailure(msg) from exc
        return witness_lock_script(version, program)

    try:
        payload = base58check_decode(address)
    except ValueError as exc:
        msg = f"Invalid address {address!r} for {Network(network).value}: {exc}"
        raise AddressDecodeFailure(msg) from exc
    if len(payload) != 21:
        msg = f"Invalid address payload length: {len(payload)}"
        raise AddressDecodeFailure(msg)
    version_byte, digest = payload[0], payload[1:]
    if version_byte == params.p2pkh_version:
        return p2pkh_lock_script(digest)
    if version_byte == params.p2sh_version:
        return p2sh_lock_script(digest)
    msg = f"Address version byte 0x{version_byte:02x} is not valid on {Network(network).value}"
    raise AddressDecodeFailure(msg)


def canonical_address(address: str, network: str = Network.REGTEST) -> str:
    """Return the canonical (re-encoded, lower-case bech32) form of *address*."""
    return script_to_address(address_to_script(address, network), network)


def validate_address(address: str, network: str = Network.REGTEST) -> bool:
    """Check if *address* is a valid address on *network*."""
    try:
        address_to_script(address, network)
    except AddressDecodeFailure:
        return False
    return True
