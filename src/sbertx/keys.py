"""
Key pairs for signing SBER transactions.
"""

from __future__ import annotations

import hashlib

import base58
from coincurve import PrivateKey

from sbertx.networks import NetworkParams


class InvalidKeyError(ValueError):
    pass


def hash160(data: bytes) -> bytes:
    """RIPEMD160(SHA256(data))"""
    h = hashlib.new("ripemd160")
    h.update(hashlib.sha256(data).digest())
    return h.digest()


class KeyPair:
    """
    A private key bound to a network.

    The compressed flag decides which public key serialization is hashed
    into the address and pushed in scriptSigs.
    """

    def __init__(self, private_key: PrivateKey, network: NetworkParams, compressed: bool = True):
        self._private_key = private_key
        self.network = network
        self.compressed = compressed

    @classmethod
    def from_wif(cls, wif: str, network: NetworkParams) -> KeyPair:
        """Import a WIF encoded private key for the given network."""
        try:
            decoded = base58.b58decode_check(wif)
        except ValueError as e:
            raise InvalidKeyError(f"Invalid WIF encoding: {e}") from e

        if not decoded:
            raise InvalidKeyError("Empty WIF payload")
        if decoded[0] != network.wif:
            raise InvalidKeyError(
                f"WIF version 0x{decoded[0]:02x} does not match network {network.name}"
            )

        payload = decoded[1:]
        if len(payload) == 33 and payload[32] == 0x01:
            compressed = True
            payload = payload[:32]
        elif len(payload) == 32:
            compressed = False
        else:
            raise InvalidKeyError(f"Invalid WIF payload length: {len(payload)}")

        try:
            private_key = PrivateKey(payload)
        except ValueError as e:
            raise InvalidKeyError(f"Invalid private key: {e}") from e

        return cls(private_key, network, compressed)

    @property
    def private_key(self) -> PrivateKey:
        """Return the coincurve PrivateKey instance."""
        return self._private_key

    @property
    def public_key(self) -> bytes:
        return self._private_key.public_key.format(compressed=self.compressed)

    @property
    def pubkey_hash(self) -> bytes:
        return hash160(self.public_key)

    def get_address(self) -> str:
        """P2PKH address of this key on its network."""
        payload = bytes([self.network.pub_key_hash]) + self.pubkey_hash
        return base58.b58encode_check(payload).decode("ascii")

    def to_wif(self) -> str:
        payload = bytes([self.network.wif]) + self._private_key.secret
        if self.compressed:
            payload += b"\x01"
        return base58.b58encode_check(payload).decode("ascii")

    def sign(self, digest: bytes) -> bytes:
        """Sign a 32-byte digest. Returns a low-S DER signature."""
        # digest is already double SHA-256, hasher=None skips hashing
        return self._private_key.sign(digest, hasher=None)

    def __repr__(self) -> str:
        return f"KeyPair(address={self.get_address()!r}, network={self.network.name!r})"
