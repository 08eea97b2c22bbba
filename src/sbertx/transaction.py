"""
SBER transaction structure, serialization and signing.

Transactions are built in the legacy (non-witness) version 1 format with
P2PKH inputs. Signatures are produced by coincurve (libsecp256k1, RFC6979 nonces)
so the same inputs always give the same transaction bytes.
"""

from __future__ import annotations

import copy
import hashlib
import struct
from dataclasses import dataclass, field

from loguru import logger

from sbertx.keys import KeyPair
from sbertx.networks import NetworkParams
from sbertx.script import address_to_output_script, compile_script, p2pkh_script

TX_VERSION = 1
SIGHASH_ALL = 1
DEFAULT_SEQUENCE = 0xFFFFFFFF
MAX_OUTPUT_VALUE = 0xFFFFFFFFFFFFFFFF


class TransactionSigningError(Exception):
    pass


class TransactionBuildError(Exception):
    pass


class TransactionParseError(ValueError):
    pass


@dataclass
class TxInput:
    txid: str
    vout: int
    script_sig: bytes = b""
    sequence: int = DEFAULT_SEQUENCE

    @property
    def txid_le(self) -> bytes:
        # txid is in display order (big-endian), raw transactions store it reversed
        return bytes.fromhex(self.txid)[::-1]


@dataclass
class TxOutput:
    value: int
    script: bytes


@dataclass
class Transaction:
    version: int = TX_VERSION
    inputs: list[TxInput] = field(default_factory=list)
    outputs: list[TxOutput] = field(default_factory=list)
    locktime: int = 0

    def serialize(self) -> bytes:
        result = struct.pack("<I", self.version)

        result += encode_varint(len(self.inputs))
        for inp in self.inputs:
            result += inp.txid_le + struct.pack("<I", inp.vout)
            result += encode_varint(len(inp.script_sig)) + inp.script_sig
            result += struct.pack("<I", inp.sequence)

        result += encode_varint(len(self.outputs))
        for out in self.outputs:
            result += struct.pack("<Q", out.value)
            result += encode_varint(len(out.script)) + out.script

        result += struct.pack("<I", self.locktime)
        return result

    def to_hex(self) -> str:
        return self.serialize().hex()

    @property
    def txid(self) -> str:
        return hash256(self.serialize())[::-1].hex()

    def hash_for_signature(
        self, input_index: int, prev_out_script: bytes, hash_type: int = SIGHASH_ALL
    ) -> bytes:
        """
        Legacy signature hash of one input.

        Every scriptSig is emptied except the one being signed, which carries
        the script of the output it spends. Only SIGHASH_ALL is supported.
        """
        if hash_type != SIGHASH_ALL:
            raise TransactionSigningError(f"Unsupported sighash type: {hash_type}")
        if not 0 <= input_index < len(self.inputs):
            raise TransactionSigningError(f"Input index {input_index} out of range")

        tx_copy = copy.deepcopy(self)
        for i, inp in enumerate(tx_copy.inputs):
            inp.script_sig = prev_out_script if i == input_index else b""

        return hash256(tx_copy.serialize() + struct.pack("<I", hash_type))


def hash256(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def read_varint(data: bytes, offset: int) -> tuple[int, int]:
    """Read a CompactSize integer at offset. Returns (value, next offset)."""
    prefix = data[offset]
    size = {0xFD: 2, 0xFE: 4, 0xFF: 8}.get(prefix)
    if size is None:
        return prefix, offset + 1

    end = offset + 1 + size
    if end > len(data):
        raise IndexError("varint runs past the end of the data")
    return int.from_bytes(data[offset + 1 : end], "little"), end


def encode_varint(value: int) -> bytes:
    if value < 0xFD:
        return bytes([value])
    if value <= 0xFFFF:
        return b"\xfd" + value.to_bytes(2, "little")
    if value <= 0xFFFFFFFF:
        return b"\xfe" + value.to_bytes(4, "little")
    return b"\xff" + value.to_bytes(8, "little")


def deserialize_transaction(tx_bytes: bytes) -> Transaction:
    """Parse a raw legacy transaction, the format TransactionBuilder produces."""
    offset = 0

    def take(size: int) -> bytes:
        nonlocal offset
        chunk = tx_bytes[offset : offset + size]
        if len(chunk) != size:
            raise TransactionParseError(f"Truncated transaction at offset {offset}")
        offset += size
        return chunk

    def take_varint() -> int:
        nonlocal offset
        value, offset = read_varint(tx_bytes, offset)
        return value

    try:
        version = int.from_bytes(take(4), "little")
        if tx_bytes[offset : offset + 2] == b"\x00\x01":
            raise TransactionParseError("Witness transactions are not supported")

        inputs = []
        for _ in range(take_varint()):
            txid = take(32)[::-1].hex()
            vout = int.from_bytes(take(4), "little")
            script_sig = take(take_varint())
            sequence = int.from_bytes(take(4), "little")
            inputs.append(TxInput(txid, vout, script_sig, sequence))

        outputs = []
        for _ in range(take_varint()):
            value = int.from_bytes(take(8), "little")
            outputs.append(TxOutput(value, take(take_varint())))

        locktime = int.from_bytes(take(4), "little")
    except IndexError as e:
        raise TransactionParseError(f"Truncated transaction at offset {offset}") from e

    if offset != len(tx_bytes):
        raise TransactionParseError(f"{len(tx_bytes) - offset} trailing bytes after locktime")
    return Transaction(version, inputs, outputs, locktime)


class TransactionBuilder:
    """
    Incrementally builds and signs a transaction.

    Inputs and outputs are frozen once the first input is signed, since
    SIGHASH_ALL signatures commit to all of them.
    """

    def __init__(self, network: NetworkParams, version: int = TX_VERSION, locktime: int = 0):
        self.network = network
        self._tx = Transaction(version=version, locktime=locktime)
        self._prev_out_scripts: list[bytes | None] = []
        self._signed: list[bool] = []

    def _check_modifiable(self) -> None:
        if any(self._signed):
            raise TransactionBuildError("Transaction is already signed")

    def add_input(
        self,
        txid: str,
        vout: int,
        sequence: int = DEFAULT_SEQUENCE,
        prev_out_script: bytes | None = None,
    ) -> int:
        """Add an input spending txid:vout. Returns its index."""
        self._check_modifiable()

        try:
            valid_txid = len(bytes.fromhex(txid)) == 32
        except ValueError:
            valid_txid = False
        if not valid_txid:
            raise TransactionBuildError(f"Invalid txid: {txid}")
        if vout < 0:
            raise TransactionBuildError(f"Invalid output index: {vout}")
        if any(inp.txid == txid and inp.vout == vout for inp in self._tx.inputs):
            raise TransactionBuildError(f"Duplicate input {txid}:{vout}")

        self._tx.inputs.append(TxInput(txid=txid, vout=vout, sequence=sequence))
        self._prev_out_scripts.append(prev_out_script)
        self._signed.append(False)
        return len(self._tx.inputs) - 1

    def add_output(self, script_or_address: str | bytes, value: int) -> int:
        """Add an output paying value to an address or raw output script."""
        self._check_modifiable()

        if isinstance(value, bool) or not isinstance(value, int):
            raise TransactionBuildError(f"Output value must be an integer, got {value!r}")
        if not 0 <= value <= MAX_OUTPUT_VALUE:
            raise TransactionBuildError(f"Output value out of range: {value}")

        if isinstance(script_or_address, str):
            script = address_to_output_script(script_or_address, self.network)
        else:
            script = bytes(script_or_address)

        self._tx.outputs.append(TxOutput(value=value, script=script))
        return len(self._tx.outputs) - 1

    def sign(self, vin: int, key_pair: KeyPair, hash_type: int = SIGHASH_ALL) -> None:
        """Sign input vin as a P2PKH spend of key_pair's address."""
        if not 0 <= vin < len(self._tx.inputs):
            raise TransactionSigningError(f"No input at index: {vin}")
        if key_pair.network != self.network:
            raise TransactionSigningError(
                f"Inconsistent network: key is for {key_pair.network.name}, "
                f"transaction is for {self.network.name}"
            )
        if self._signed[vin]:
            raise TransactionSigningError(f"Signature already exists for input {vin}")

        prev_out_script = p2pkh_script(key_pair.pubkey_hash)
        expected = self._prev_out_scripts[vin]
        if expected is not None and expected != prev_out_script:
            raise TransactionSigningError(f"Key pair cannot sign input {vin}")

        sighash = self._tx.hash_for_signature(vin, prev_out_script, hash_type)
        signature = key_pair.sign(sighash) + bytes([hash_type])

        self._tx.inputs[vin].script_sig = compile_script([signature, key_pair.public_key])
        self._signed[vin] = True
        inp = self._tx.inputs[vin]
        logger.debug(f"Signed input {vin} ({inp.txid}:{inp.vout})")

    def build(self) -> Transaction:
        """Return the finished transaction. Every input must be signed."""
        if not self._tx.inputs:
            raise TransactionBuildError("Transaction has no inputs")
        if not self._tx.outputs:
            raise TransactionBuildError("Transaction has no outputs")
        if not all(self._signed):
            unsigned = [i for i, signed in enumerate(self._signed) if not signed]
            raise TransactionBuildError(f"Transaction is not complete, unsigned inputs: {unsigned}")

        return copy.deepcopy(self._tx)
