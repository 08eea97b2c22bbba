"""
Script compilation and SBER contract output scripts.

A contract output script is:
- Create: OP_4 <gas_limit> <gas_price> <bytecode> OP_CREATE
- Call:   OP_4 <gas_limit> <gas_price> <call_data> <contract_address> OP_CALL

OP_4 is the contract version marker. Gas fields are script numbers.
"""

from __future__ import annotations

import struct
from collections.abc import Iterable

from sbertx.models import CallContractParams, CreateContractParams
from sbertx.networks import NetworkParams
from sbertx.script_number import encode_script_number, hex_to_bytes

OP_0 = 0x00
OP_PUSHDATA1 = 0x4C
OP_PUSHDATA2 = 0x4D
OP_PUSHDATA4 = 0x4E
OP_1NEGATE = 0x4F
OP_1 = 0x51
OP_4 = 0x54
OP_16 = 0x60
OP_DUP = 0x76
OP_EQUAL = 0x87
OP_EQUALVERIFY = 0x88
OP_HASH160 = 0xA9
OP_CHECKSIG = 0xAC
OP_CREATE = 0xC1
OP_CALL = 0xC2

OP_CONTRACT_VERSION = OP_4

ScriptChunk = int | bytes


def _minimal_push_opcode(data: bytes) -> int | None:
    """Return the opcode that replaces a push of data, if there is one."""
    if len(data) == 0:
        return OP_0
    if len(data) != 1:
        return None
    if 1 <= data[0] <= 16:
        return OP_1 + data[0] - 1
    if data[0] == 0x81:
        return OP_1NEGATE
    return None


def encode_push(data: bytes) -> bytes:
    """Encode a data push with the shortest length prefix."""
    length = len(data)
    if length < OP_PUSHDATA1:
        return bytes([length]) + data
    if length <= 0xFF:
        return bytes([OP_PUSHDATA1, length]) + data
    if length <= 0xFFFF:
        return bytes([OP_PUSHDATA2]) + struct.pack("<H", length) + data
    return bytes([OP_PUSHDATA4]) + struct.pack("<I", length) + data


def compile_script(chunks: Iterable[ScriptChunk]) -> bytes:
    """
    Compile opcodes (ints) and pushes (bytes) into a script.

    Pushes that have a dedicated opcode (empty, 1..16, -1) are written as
    that opcode.
    """
    result = bytearray()
    for chunk in chunks:
        if isinstance(chunk, int):
            if not 0 <= chunk <= 0xFF:
                raise ValueError(f"Invalid opcode: {chunk}")
            result.append(chunk)
            continue

        opcode = _minimal_push_opcode(chunk)
        if opcode is not None:
            result.append(opcode)
        else:
            result += encode_push(chunk)
    return bytes(result)


def encode_gas_price(gas_price: int) -> bytes:
    """
    Encode a gas price for a contract script.

    Values up to 16 get a trailing zero byte so the push is not compiled
    into OP_1..OP_16, which validators would not read as a gas price.
    """
    if gas_price > 16:
        return encode_script_number(gas_price)
    return encode_script_number(gas_price) + b"\x00"


def create_contract_chunks(params: CreateContractParams) -> list[ScriptChunk]:
    return [
        OP_CONTRACT_VERSION,
        encode_script_number(params.gas_limit),
        encode_gas_price(params.gas_price),
        hex_to_bytes(params.bytecode),
        OP_CREATE,
    ]


def call_contract_chunks(params: CallContractParams) -> list[ScriptChunk]:
    return [
        OP_CONTRACT_VERSION,
        encode_script_number(params.gas_limit),
        encode_gas_price(params.gas_price),
        hex_to_bytes(params.encoded_data),
        hex_to_bytes(params.contract_address),
        OP_CALL,
    ]


def create_contract_script(params: CreateContractParams) -> bytes:
    """Build the output script of a contract creation."""
    return compile_script(create_contract_chunks(params))


def call_contract_script(params: CallContractParams) -> bytes:
    """Build the output script of a contract call."""
    return compile_script(call_contract_chunks(params))


def p2pkh_script(pubkey_hash: bytes) -> bytes:
    """OP_DUP OP_HASH160 <20-byte-pubkeyhash> OP_EQUALVERIFY OP_CHECKSIG"""
    if len(pubkey_hash) != 20:
        raise ValueError(f"Invalid pubkey hash length: {len(pubkey_hash)}")
    return compile_script([OP_DUP, OP_HASH160, pubkey_hash, OP_EQUALVERIFY, OP_CHECKSIG])


def p2sh_script(script_hash: bytes) -> bytes:
    """OP_HASH160 <20-byte-scripthash> OP_EQUAL"""
    if len(script_hash) != 20:
        raise ValueError(f"Invalid script hash length: {len(script_hash)}")
    return compile_script([OP_HASH160, script_hash, OP_EQUAL])


def address_to_output_script(address: str, network: NetworkParams) -> bytes:
    """
    Convert a SBER address to the output script paying it.

    Supports:
    - P2PKH and P2SH base58 addresses of the given network
    - P2WPKH and P2WSH bech32 addresses with the network's prefix
    """
    if address.lower().startswith(network.bech32 + "1"):
        import bech32

        witver, witprog = bech32.decode(network.bech32, address)
        if witver is None or witprog is None:
            raise ValueError(f"Invalid bech32 address: {address}")
        if witver != 0 or len(witprog) not in (20, 32):
            raise ValueError(f"Unsupported witness program in {address}")
        return compile_script([OP_0, bytes(witprog)])

    import base58

    try:
        decoded = base58.b58decode_check(address)
    except ValueError as e:
        raise ValueError(f"Invalid address: {address}") from e

    if len(decoded) != 21:
        raise ValueError(f"Invalid address payload length: {len(decoded)}")

    version, payload = decoded[0], decoded[1:]
    if version == network.pub_key_hash:
        return p2pkh_script(payload)
    if version == network.script_hash:
        return p2sh_script(payload)

    raise ValueError(f"Address {address} does not belong to network {network.name}")
