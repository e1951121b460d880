"""Bitcoin locking scripts — standard templates and type detection.

Provides construction and classification of the standard output scripts an
address can stand for:
- P2PKH / P2SH (legacy, Base58Check addresses)
- Witness programs v0 (P2WPKH, P2WSH) and v1+ (P2TR and future versions)
- OP_RETURN, P2PK and bare multisig, which have no address form
"""

from __future__ import annotations

import enum
import struct

# ---------------------------------------------------------------------------
# Opcodes
# ---------------------------------------------------------------------------


class OpCode(int, enum.Enum):
    """Opcodes that appear in standard output scripts."""

    OP_0 = 0x00
    OP_FALSE = 0x00
    OP_PUSHDATA1 = 0x4C
    OP_PUSHDATA2 = 0x4D
    OP_PUSHDATA4 = 0x4E
    OP_1 = 0x51
    OP_16 = 0x60
    OP_RETURN = 0x6A
    OP_DUP = 0x76
    OP_EQUAL = 0x87
    OP_EQUALVERIFY = 0x88
    OP_HASH160 = 0xA9
    OP_CHECKSIG = 0xAC
    OP_CHECKMULTISIG = 0xAE


# ---------------------------------------------------------------------------
# Script Type
# ---------------------------------------------------------------------------


class ScriptType(enum.StrEnum):
    """Known script types, named as Bitcoin Core reports them."""

    P2PKH = "pubkeyhash"
    P2SH = "scripthash"
    P2WPKH = "witness_v0_keyhash"
    P2WSH = "witness_v0_scripthash"
    P2TR = "witness_v1_taproot"
    WITNESS_UNKNOWN = "witness_unknown"
    NULL_DATA = "nulldata"
    P2PK = "pubkey"
    MULTISIG = "multisig"
    UNKNOWN = "nonstandard"


# Types that map to an address
ADDRESS_TYPES = frozenset(
    {
        ScriptType.P2PKH,
        ScriptType.P2SH,
        ScriptType.P2WPKH,
        ScriptType.P2WSH,
        ScriptType.P2TR,
        ScriptType.WITNESS_UNKNOWN,
    }
)


# ---------------------------------------------------------------------------
# Data push helpers
# ---------------------------------------------------------------------------


def push_data(data: bytes) -> bytes:
    """Encode a data push operation using minimal encoding rules.

    Args:
        data: Arbitrary data bytes.

    Returns:
        The opcode(s) + data for a minimal push of *data*.
    """
    length = len(data)
    if length == 0:
        return bytes([OpCode.OP_0])
    if length <= 0x4B:
        return bytes([length]) + data
    if length <= 0xFF:
        return bytes([OpCode.OP_PUSHDATA1, length]) + data
    if length <= 0xFFFF:
        return bytes([OpCode.OP_PUSHDATA2]) + struct.pack("<H", length) + data
    return bytes([OpCode.OP_PUSHDATA4]) + struct.pack("<I", length) + data


def _small_int_opcode(n: int) -> int:
    """Opcode pushing the small integer *n* (0..16)."""
    if n == 0:
        return OpCode.OP_0
    if 1 <= n <= 16:
        return OpCode.OP_1 + n - 1
    msg = f"small integer out of range: {n}"
    raise ValueError(msg)


def _decode_small_int(opcode: int) -> int | None:
    if opcode == OpCode.OP_0:
        return 0
    if OpCode.OP_1 <= opcode <= OpCode.OP_16:
        return opcode - OpCode.OP_1 + 1
    return None


# ---------------------------------------------------------------------------
# Locking script templates
# ---------------------------------------------------------------------------


def p2pkh_lock_script(pubkey_hash: bytes) -> bytes:
    """Build a P2PKH locking script.

    OP_DUP OP_HASH160 <20 bytes> OP_EQUALVERIFY OP_CHECKSIG
    """
    if len(pubkey_hash) != 20:
        msg = f"pubkey_hash must be 20 bytes, got {len(pubkey_hash)}"
        raise ValueError(msg)
    return (
        bytes([OpCode.OP_DUP, OpCode.OP_HASH160])
        + push_data(pubkey_hash)
        + bytes([OpCode.OP_EQUALVERIFY, OpCode.OP_CHECKSIG])
    )


def p2sh_lock_script(script_hash: bytes) -> bytes:
    """Build a P2SH locking script.

    OP_HASH160 <20 bytes> OP_EQUAL
    """
    if len(script_hash) != 20:
        msg = f"script_hash must be 20 bytes, got {len(script_hash)}"
        raise ValueError(msg)
    return bytes([OpCode.OP_HASH160]) + push_data(script_hash) + bytes([OpCode.OP_EQUAL])


def witness_lock_script(version: int, program: bytes) -> bytes:
    """Build a segwit locking script: ``<version opcode> <program>``.

    Args:
        version: Witness version, 0..16.
        program: Witness program, 2..40 bytes.
    """
    if not 2 <= len(program) <= 40:
        msg = f"witness program must be 2..40 bytes, got {len(program)}"
        raise ValueError(msg)
    return bytes([_small_int_opcode(version)]) + push_data(program)


def op_return_script(*data_items: bytes) -> bytes:
    """Build an OP_RETURN (null data) script: ``OP_RETURN <push data> ...``."""
    script = bytes([OpCode.OP_RETURN])
    for item in data_items:
        script += push_data(item)
    return script


# ---------------------------------------------------------------------------
# Script type detection
# ---------------------------------------------------------------------------


def extract_witness_program(script: bytes) -> tuple[int, bytes] | None:
    """Split a witness output script into ``(version, program)``.

    A witness output is a version opcode (OP_0, OP_1..OP_16) followed by a
    single direct push of 2 to 40 bytes. Returns None for anything else.
    """
    if not 4 <= len(script) <= 42:
        return None
    version = _decode_small_int(script[0])
    if version is None:
        return None
    if script[1] != len(script) - 2:
        return None
    return version, script[2:]


def detect_script_type(script: bytes) -> ScriptType:
    """Detect the type of a locking script."""
    if len(script) == 0:
        return ScriptType.UNKNOWN

    if (
        len(script) == 25
        and script[0] == OpCode.OP_DUP
        and script[1] == OpCode.OP_HASH160
        and script[2] == 0x14  # push 20 bytes
        and script[23] == OpCode.OP_EQUALVERIFY
        and script[24] == OpCode.OP_CHECKSIG
    ):
        return ScriptType.P2PKH

    if (
        len(script) == 23
        and script[0] == OpCode.OP_HASH160
        and script[1] == 0x14
        and script[22] == OpCode.OP_EQUAL
    ):
        return ScriptType.P2SH

    witness = extract_witness_program(script)
    if witness is not None:
        version, program = witness
        if version == 0:
            if len(program) == 20:
                return ScriptType.P2WPKH
            if len(program) == 32:
                return ScriptType.P2WSH
            # v0 programs of any other length are unspendable
            return ScriptType.UNKNOWN
        if version == 1 and len(program) == 32:
            return ScriptType.P2TR
        return ScriptType.WITNESS_UNKNOWN

    if script[0] == OpCode.OP_RETURN:
        return ScriptType.NULL_DATA

    if (len(script) == 35 and script[0] == 0x21 and script[34] == OpCode.OP_CHECKSIG) or (
        len(script) == 67 and script[0] == 0x41 and script[66] == OpCode.OP_CHECKSIG
    ):
        return ScriptType.P2PK

    if (
        len(script) >= 3
        and OpCode.OP_1 <= script[0] <= OpCode.OP_16
        and OpCode.OP_1 <= script[-2] <= OpCode.OP_16
        and script[-1] == OpCode.OP_CHECKMULTISIG
    ):
        return ScriptType.MULTISIG

    return ScriptType.UNKNOWN
