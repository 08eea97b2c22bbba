"""
Tests for transaction serialization and the transaction builder.
"""

from __future__ import annotations

import pytest
from coincurve import PrivateKey, PublicKey

from sbertx.keys import KeyPair
from sbertx.networks import SBERCOIN, SBERCOIN_TESTNET
from sbertx.script import p2pkh_script
from sbertx.transaction import (
    DEFAULT_SEQUENCE,
    SIGHASH_ALL,
    Transaction,
    TransactionBuildError,
    TransactionBuilder,
    TransactionParseError,
    TransactionSigningError,
    TxInput,
    TxOutput,
    deserialize_transaction,
    encode_varint,
    hash256,
    read_varint,
)

TXID_A = "aa" * 32
TXID_B = "0123456789abcdef" * 4


def split_script_sig(script_sig: bytes) -> tuple[bytes, bytes]:
    """Split a P2PKH scriptSig into (signature with hash type, pubkey)."""
    sig_len = script_sig[0]
    signature = script_sig[1 : 1 + sig_len]
    pubkey_len = script_sig[1 + sig_len]
    pubkey = script_sig[2 + sig_len : 2 + sig_len + pubkey_len]
    assert len(script_sig) == 2 + sig_len + pubkey_len
    return signature, pubkey


def signed_builder(key_pair: KeyPair, recipient: KeyPair) -> TransactionBuilder:
    tx = TransactionBuilder(SBERCOIN)
    tx.add_input(TXID_A, 0)
    tx.add_input(TXID_B, 3)
    tx.add_output(recipient.get_address(), 1_0000000)
    tx.add_output(key_pair.get_address(), 2_5000000)
    tx.sign(0, key_pair)
    tx.sign(1, key_pair)
    return tx


class TestHash256:
    def test_empty_input(self) -> None:
        expected = bytes.fromhex("5df6e0e2761359d30a8275058e299fcc0381534545f55cf43e41983f5d4c9456")
        assert hash256(b"") == expected


class TestVarint:
    def test_encode(self) -> None:
        assert encode_varint(5) == bytes([5])
        assert encode_varint(0x100) == bytes([0xFD, 0x00, 0x01])
        assert encode_varint(0x10000) == bytes([0xFE, 0x00, 0x00, 0x01, 0x00])
        assert encode_varint(0x100000000) == bytes([0xFF]) + (0x100000000).to_bytes(8, "little")

    def test_read(self) -> None:
        assert read_varint(bytes([0x05, 0xFF]), 0) == (5, 1)
        assert read_varint(bytes([0xFD, 0x01, 0x00]), 0) == (1, 3)
        assert read_varint(bytes([0xFE, 0x01, 0x00, 0x00, 0x00]), 0) == (1, 5)

    def test_read_truncated(self) -> None:
        with pytest.raises(IndexError):
            read_varint(bytes([0xFD, 0x01]), 0)


class TestTransactionSerialization:
    def test_layout(self) -> None:
        tx = Transaction(
            inputs=[TxInput(TXID_B, 1)],
            outputs=[TxOutput(5000, b"\x51")],
            locktime=0,
        )
        raw = tx.serialize()

        assert raw[:4] == bytes.fromhex("01000000")
        assert raw[4] == 1
        assert raw[5:37] == bytes.fromhex(TXID_B)[::-1]
        assert raw[37:41] == bytes([1, 0, 0, 0])
        assert raw[41] == 0  # empty scriptSig
        assert raw[42:46] == b"\xff\xff\xff\xff"
        assert raw[46] == 1
        assert raw[47:55] == (5000).to_bytes(8, "little")
        assert raw[55:57] == b"\x01\x51"
        assert raw[57:] == b"\x00\x00\x00\x00"

    def test_txid_is_reversed_hash(self) -> None:
        tx = Transaction(inputs=[TxInput(TXID_A, 0)], outputs=[TxOutput(0, b"")])
        assert tx.txid == hash256(tx.serialize())[::-1].hex()

    def test_parse_roundtrip(self) -> None:
        tx = Transaction(
            inputs=[TxInput(TXID_A, 7, b"\x01\x02", 0xFFFFFFFE)],
            outputs=[TxOutput(123, b"\x00\x14" + b"\x11" * 20), TxOutput(0, b"\x6a")],
            locktime=500,
        )
        assert deserialize_transaction(tx.serialize()) == tx

    def test_parse_rejects_witness(self) -> None:
        raw = bytes.fromhex(
            "02000000"
            "0001"
            "01"
            "0000000000000000000000000000000000000000000000000000000000000000"
            "00000000"
            "00"
            "ffffffff"
            "01"
            "0000000000000000"
            "16"
            "0014751e76e8199196d454941c45d1b3a323f1433bd6"
            "00"
            "00000000"
        )
        with pytest.raises(TransactionParseError, match="Witness"):
            deserialize_transaction(raw)

    def test_parse_truncated_script(self) -> None:
        raw = Transaction(inputs=[TxInput(TXID_A, 0, b"\x01\x02")], outputs=[]).serialize()
        with pytest.raises(TransactionParseError, match="Truncated"):
            deserialize_transaction(raw[:43])

    def test_parse_invalid(self) -> None:
        with pytest.raises(TransactionParseError):
            deserialize_transaction(b"\x00\x01\x02")

    def test_parse_trailing_bytes(self) -> None:
        tx = Transaction(inputs=[TxInput(TXID_A, 0)], outputs=[TxOutput(1, b"\x51")])
        with pytest.raises(TransactionParseError):
            deserialize_transaction(tx.serialize() + b"\x00")


class TestSignatureHash:
    def test_other_scripts_are_cleared(self) -> None:
        tx = Transaction(
            inputs=[TxInput(TXID_A, 0, b"\xaa"), TxInput(TXID_B, 1, b"\xbb")],
            outputs=[TxOutput(1, b"\x51")],
        )
        clean = Transaction(
            inputs=[TxInput(TXID_A, 0), TxInput(TXID_B, 1)],
            outputs=[TxOutput(1, b"\x51")],
        )
        script = b"\x76\xa9"
        assert tx.hash_for_signature(1, script) == clean.hash_for_signature(1, script)
        assert tx.hash_for_signature(0, script) != tx.hash_for_signature(1, script)

    def test_hash_does_not_mutate(self) -> None:
        tx = Transaction(inputs=[TxInput(TXID_A, 0, b"\xaa")], outputs=[TxOutput(1, b"\x51")])
        tx.hash_for_signature(0, b"\x51")
        assert tx.inputs[0].script_sig == b"\xaa"

    def test_unsupported_hash_type(self) -> None:
        tx = Transaction(inputs=[TxInput(TXID_A, 0)], outputs=[TxOutput(1, b"\x51")])
        with pytest.raises(TransactionSigningError, match="sighash"):
            tx.hash_for_signature(0, b"", hash_type=0x81)


class TestTransactionBuilder:
    def test_signatures_verify(self, key_pair: KeyPair, recipient: KeyPair) -> None:
        tx = signed_builder(key_pair, recipient).build()
        prev_out_script = p2pkh_script(key_pair.pubkey_hash)

        for vin, inp in enumerate(tx.inputs):
            signature, pubkey = split_script_sig(inp.script_sig)
            assert signature[-1] == SIGHASH_ALL
            assert pubkey == key_pair.public_key

            sighash = tx.hash_for_signature(vin, prev_out_script)
            assert PublicKey(pubkey).verify(signature[:-1], sighash, hasher=None)

    def test_inputs_and_outputs(self, key_pair: KeyPair, recipient: KeyPair) -> None:
        tx = deserialize_transaction(signed_builder(key_pair, recipient).build().serialize())

        assert tx.version == 1
        assert tx.locktime == 0
        assert [(i.txid, i.vout, i.sequence) for i in tx.inputs] == [
            (TXID_A, 0, DEFAULT_SEQUENCE),
            (TXID_B, 3, DEFAULT_SEQUENCE),
        ]
        assert [(o.value, o.script) for o in tx.outputs] == [
            (1_0000000, p2pkh_script(recipient.pubkey_hash)),
            (2_5000000, p2pkh_script(key_pair.pubkey_hash)),
        ]

    def test_deterministic(self, key_pair: KeyPair, recipient: KeyPair) -> None:
        first = signed_builder(key_pair, recipient).build().to_hex()
        second = signed_builder(key_pair, recipient).build().to_hex()
        assert first == second

    def test_raw_script_output(self, key_pair: KeyPair) -> None:
        tx = TransactionBuilder(SBERCOIN)
        tx.add_input(TXID_A, 0)
        tx.add_output(b"\x54\xc1", 0)
        tx.sign(0, key_pair)
        assert tx.build().outputs[0] == TxOutput(0, b"\x54\xc1")

    def test_build_requires_signatures(self, key_pair: KeyPair) -> None:
        tx = TransactionBuilder(SBERCOIN)
        tx.add_input(TXID_A, 0)
        tx.add_input(TXID_B, 0)
        tx.add_output(key_pair.get_address(), 1)
        tx.sign(0, key_pair)
        with pytest.raises(TransactionBuildError, match="not complete"):
            tx.build()

    def test_build_requires_inputs_and_outputs(self, key_pair: KeyPair) -> None:
        with pytest.raises(TransactionBuildError, match="no inputs"):
            TransactionBuilder(SBERCOIN).build()

        tx = TransactionBuilder(SBERCOIN)
        tx.add_input(TXID_A, 0)
        with pytest.raises(TransactionBuildError, match="no outputs"):
            tx.build()

    def test_frozen_after_signing(self, key_pair: KeyPair, recipient: KeyPair) -> None:
        tx = signed_builder(key_pair, recipient)
        with pytest.raises(TransactionBuildError, match="already signed"):
            tx.add_output(recipient.get_address(), 1)
        with pytest.raises(TransactionBuildError, match="already signed"):
            tx.add_input("cc" * 32, 0)

    def test_built_transaction_is_a_copy(self, key_pair: KeyPair, recipient: KeyPair) -> None:
        builder = signed_builder(key_pair, recipient)
        built = builder.build()
        built.outputs.clear()
        assert len(builder.build().outputs) == 2

    def test_invalid_txid(self) -> None:
        tx = TransactionBuilder(SBERCOIN)
        with pytest.raises(TransactionBuildError, match="Invalid txid"):
            tx.add_input("abcd", 0)
        with pytest.raises(TransactionBuildError, match="Invalid txid"):
            tx.add_input("zz" * 32, 0)

    def test_duplicate_input(self) -> None:
        tx = TransactionBuilder(SBERCOIN)
        tx.add_input(TXID_A, 1)
        with pytest.raises(TransactionBuildError, match="Duplicate"):
            tx.add_input(TXID_A, 1)

    @pytest.mark.parametrize("value", [-1, 1.5, True, 2**64])
    def test_invalid_output_value(self, key_pair: KeyPair, value: object) -> None:
        tx = TransactionBuilder(SBERCOIN)
        with pytest.raises(TransactionBuildError):
            tx.add_output(key_pair.get_address(), value)  # type: ignore[arg-type]

    def test_sign_out_of_range(self, key_pair: KeyPair) -> None:
        tx = TransactionBuilder(SBERCOIN)
        tx.add_input(TXID_A, 0)
        with pytest.raises(TransactionSigningError, match="No input"):
            tx.sign(1, key_pair)

    def test_sign_twice(self, key_pair: KeyPair) -> None:
        tx = TransactionBuilder(SBERCOIN)
        tx.add_input(TXID_A, 0)
        tx.add_output(key_pair.get_address(), 1)
        tx.sign(0, key_pair)
        with pytest.raises(TransactionSigningError, match="already exists"):
            tx.sign(0, key_pair)

    def test_sign_wrong_network(self) -> None:
        testnet_key = KeyPair(PrivateKey(bytes.fromhex("01" * 32)), SBERCOIN_TESTNET)
        tx = TransactionBuilder(SBERCOIN)
        tx.add_input(TXID_A, 0)
        with pytest.raises(TransactionSigningError, match="Inconsistent network"):
            tx.sign(0, testnet_key)

    def test_sign_with_foreign_key(self, key_pair: KeyPair, recipient: KeyPair) -> None:
        tx = TransactionBuilder(SBERCOIN)
        tx.add_input(TXID_A, 0, prev_out_script=p2pkh_script(recipient.pubkey_hash))
        with pytest.raises(TransactionSigningError, match="cannot sign"):
            tx.sign(0, key_pair)
