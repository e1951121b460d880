"""Raw transaction codec — legacy and segwit (BIP144) serialisation, txid.

Provides pure-Python Bitcoin transaction (de)serialization:
- TxInput / TxOutput data classes
- Transaction class with serialize / deserialize / txid computation
- VarInt encoding/decoding
- Raw hex format support
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from io import BytesIO

from tx_provenance.utils.crypto import sha256d

# ---------------------------------------------------------------------------
# VarInt encoding / decoding
# ---------------------------------------------------------------------------


def encode_varint(n: int) -> bytes:
    """Encode an integer as a Bitcoin-style variable-length integer."""
    if n < 0xFD:
        return struct.pack("<B", n)
    if n <= 0xFFFF:
        return b"\xfd" + struct.pack("<H", n)
    if n <= 0xFFFFFFFF:
        return b"\xfe" + struct.pack("<I", n)
    return b"\xff" + struct.pack("<Q", n)


def _read_exact(stream: BytesIO, size: int, what: str) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        msg = f"Unexpected end of stream reading {what}"
        raise ValueError(msg)
    return data


def read_varint(stream: BytesIO) -> int:
    """Read a Bitcoin-style variable-length integer from a byte stream."""
    first = stream.read(1)
    if len(first) == 0:
        msg = "Unexpected end of stream reading varint"
        raise ValueError(msg)
    n = first[0]
    if n < 0xFD:
        return n
    if n == 0xFD:
        return struct.unpack("<H", _read_exact(stream, 2, "varint"))[0]
    if n == 0xFE:
        return struct.unpack("<I", _read_exact(stream, 4, "varint"))[0]
    return struct.unpack("<Q", _read_exact(stream, 8, "varint"))[0]


# Default sequence: 0xFFFFFFFF (final)
DEFAULT_SEQUENCE = 0xFFFFFFFF

# The null previous outpoint used in coinbase transactions
COINBASE_TXID = b"\x00" * 32
COINBASE_INDEX = 0xFFFFFFFF

# BIP144 marker and flag bytes following the version field
_SEGWIT_MARKER = 0x00
_SEGWIT_FLAG = 0x01


# ---------------------------------------------------------------------------
# TxInput
# ---------------------------------------------------------------------------


@dataclass
class TxInput:
    """A transaction input.

    Attributes:
        prev_tx_id: 32-byte hash of the previous transaction (internal byte order).
        prev_tx_out_index: Index of the output in the previous transaction.
        script_sig: Unlocking script (scriptSig).
        sequence: Sequence number (default 0xFFFFFFFF).
        witness: Segwit witness stack items (empty for legacy inputs).
    """

    prev_tx_id: bytes
    prev_tx_out_index: int
    script_sig: bytes = b""
    sequence: int = DEFAULT_SEQUENCE
    witness: list[bytes] = field(default_factory=list)

    @property
    def prev_tx_id_hex(self) -> str:
        """Previous transaction ID in display (reversed) hex."""
        return self.prev_tx_id[::-1].hex()

    @property
    def is_coinbase(self) -> bool:
        """Check if this is a coinbase input."""
        return self.prev_tx_id == COINBASE_TXID and self.prev_tx_out_index == COINBASE_INDEX

    def serialize(self) -> bytes:
        """Serialize the input to bytes (witness data is serialized separately)."""
        result = self.prev_tx_id
        result += struct.pack("<I", self.prev_tx_out_index)
        result += encode_varint(len(self.script_sig))
        result += self.script_sig
        result += struct.pack("<I", self.sequence)
        return result

    def serialize_witness(self) -> bytes:
        """Serialize the witness stack of this input."""
        result = encode_varint(len(self.witness))
        for item in self.witness:
            result += encode_varint(len(item)) + item
        return result

    @classmethod
    def deserialize(cls, stream: BytesIO) -> TxInput:
        """Deserialize a transaction input from a byte stream."""
        prev_tx_id = _read_exact(stream, 32, "prev_tx_id")
        prev_tx_out_index = struct.unpack("<I", _read_exact(stream, 4, "prev_tx_out_index"))[0]
        script_len = read_varint(stream)
        script_sig = _read_exact(stream, script_len, "script_sig")
        sequence = struct.unpack("<I", _read_exact(stream, 4, "sequence"))[0]
        return cls(
            prev_tx_id=prev_tx_id,
            prev_tx_out_index=prev_tx_out_index,
            script_sig=script_sig,
            sequence=sequence,
        )


# ---------------------------------------------------------------------------
# TxOutput
# ---------------------------------------------------------------------------


@dataclass
class TxOutput:
    """A transaction output.

    Attributes:
        value: Output value in satoshis.
        script_pubkey: Locking script (scriptPubKey).
    """

    value: int
    script_pubkey: bytes

    def serialize(self) -> bytes:
        """Serialize the output to bytes."""
        result = struct.pack("<q", self.value)
        result += encode_varint(len(self.script_pubkey))
        result += self.script_pubkey
        return result

    @classmethod
    def deserialize(cls, stream: BytesIO) -> TxOutput:
        """Deserialize a transaction output from a byte stream."""
        value = struct.unpack("<q", _read_exact(stream, 8, "value"))[0]
        script_len = read_varint(stream)
        script_pubkey = _read_exact(stream, script_len, "script_pubkey")
        return cls(value=value, script_pubkey=script_pubkey)


# ---------------------------------------------------------------------------
# Transaction
# ---------------------------------------------------------------------------


@dataclass
class Transaction:
    """A Bitcoin transaction.

    Attributes:
        version: Transaction version (default 2).
        inputs: List of transaction inputs.
        outputs: List of transaction outputs.
        locktime: Transaction locktime (default 0).
    """

    version: int = 2
    inputs: list[TxInput] = field(default_factory=list)
    outputs: list[TxOutput] = field(default_factory=list)
    locktime: int = 0

    @property
    def has_witness(self) -> bool:
        """True if any input carries witness data."""
        return any(inp.witness for inp in self.inputs)

    def serialize(self, *, include_witness: bool = True) -> bytes:
        """Serialize the transaction to raw bytes.

        Args:
            include_witness: Emit the BIP144 form when any input has witness
                data. The txid is always computed without it.
        """
        segwit = include_witness and self.has_witness
        result = struct.pack("<i", self.version)
        if segwit:
            result += bytes([_SEGWIT_MARKER, _SEGWIT_FLAG])
        result += encode_varint(len(self.inputs))
        for inp in self.inputs:
            result += inp.serialize()
        result += encode_varint(len(self.outputs))
        for out in self.outputs:
            result += out.serialize()
        if segwit:
            for inp in self.inputs:
                result += inp.serialize_witness()
        result += struct.pack("<I", self.locktime)
        return result

    def to_hex(self) -> str:
        """Serialize to hex string."""
        return self.serialize().hex()

    @classmethod
    def deserialize(cls, stream: BytesIO) -> Transaction:
        """Deserialize a transaction from a byte stream."""
        version = struct.unpack("<i", _read_exact(stream, 4, "version"))[0]
        n_inputs = read_varint(stream)
        segwit = False
        if n_inputs == _SEGWIT_MARKER:
            flag = _read_exact(stream, 1, "segwit flag")[0]
            if flag != _SEGWIT_FLAG:
                msg = f"Unsupported segwit flag: 0x{flag:02x}"
                raise ValueError(msg)
            segwit = True
            n_inputs = read_varint(stream)
        inputs = [TxInput.deserialize(stream) for _ in range(n_inputs)]
        n_outputs = read_varint(stream)
        outputs = [TxOutput.deserialize(stream) for _ in range(n_outputs)]
        if segwit:
            for inp in inputs:
                n_items = read_varint(stream)
                inp.witness = [
                    _read_exact(stream, read_varint(stream), "witness item")
                    for _ in range(n_items)
                ]
        locktime = struct.unpack("<I", _read_exact(stream, 4, "locktime"))[0]
        return cls(version=version, inputs=inputs, outputs=outputs, locktime=locktime)

    @classmethod
    def from_hex(cls, hex_str: str) -> Transaction:
        """Deserialize a transaction from a hex string."""
        raw = bytes.fromhex(hex_str)
        return cls.from_bytes(raw)

    @classmethod
    def from_bytes(cls, data: bytes) -> Transaction:
        """Deserialize a transaction from raw bytes.

        Raises:
            ValueError: If *data* is truncated or has trailing bytes.
        """
        stream = BytesIO(data)
        tx = cls.deserialize(stream)
        if stream.tell() != len(data):
            msg = f"Trailing data after transaction: {len(data) - stream.tell()} bytes"
            raise ValueError(msg)
        return tx

    def txid(self) -> str:
        """Compute the transaction ID (double-SHA256 of the non-witness form, reversed hex)."""
        raw_hash = sha256d(self.serialize(include_witness=False))
        return raw_hash[::-1].hex()

    @property
    def size(self) -> int:
        """Transaction size in bytes, witness included."""
        return len(self.serialize())

    def add_input(
        self,
        prev_tx_id: bytes,
        prev_tx_out_index: int,
        script_sig: bytes = b"",
        sequence: int = DEFAULT_SEQUENCE,
    ) -> TxInput:
        """Add an input to the transaction.

        Returns:
            The newly created :class:`TxInput`.
        """
        inp = TxInput(
            prev_tx_id=prev_tx_id,
            prev_tx_out_index=prev_tx_out_index,
            script_sig=script_sig,
            sequence=sequence,
        )
        self.inputs.append(inp)
        return inp

    def add_output(self, value: int, script_pubkey: bytes) -> TxOutput:
        """Add an output to the transaction.

        Returns:
            The newly created :class:`TxOutput`.
        """
        out = TxOutput(value=value, script_pubkey=script_pubkey)
        self.outputs.append(out)
        return out
